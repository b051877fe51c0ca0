from byte_buffer.buffer import ByteBuffer

# Console rendering of byte buffers, in the shape a JS console prints typed arrays:
#   ByteBuffer(4) [ 0, 255, 127, 128 ]

ITEMS_PER_ROW = 16


def format_buffer(buf: ByteBuffer, *, max_items: int = 100, width: int = 72) -> str:
    if max_items < 0:
        raise ValueError(f"max_items must be non-negative, got {max_items}")
    values = buf.to_list()
    header = f"{type(buf).__name__}({len(values)})"
    if not values:
        return f"{header} []"

    shown = values[:max_items]
    hidden = len(values) - len(shown)
    more = f"... {hidden} more item{'' if hidden == 1 else 's'}" if hidden else None

    parts = [str(v) for v in shown] + ([more] if more else [])
    single = f"{header} [ {', '.join(parts)} ]"
    if len(single) <= width:
        return single

    cells = [f"{v:>3}" for v in shown]
    rows = [cells[i : i + ITEMS_PER_ROW] for i in range(0, len(cells), ITEMS_PER_ROW)]
    lines = [f"{header} ["]
    for i, row in enumerate(rows):
        line = "  " + ", ".join(row)
        if i < len(rows) - 1 or more:
            line += ","
        lines.append(line)
    if more:
        lines.append(f"  {more}")
    lines.append("]")
    return "\n".join(lines)


def format_hexdump(buf: ByteBuffer, *, row: int = 16) -> str:
    """Offset / hex / printable-ASCII dump, one line per `row` bytes."""
    if row <= 0:
        raise ValueError(f"row width must be positive, got {row}")
    data = buf.to_bytes()
    hex_width = row * 3 - 1
    lines = []
    for offset in range(0, len(data), row):
        chunk = data[offset : offset + row]
        hex_part = " ".join(f"{b:02x}" for b in chunk)
        ascii_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in chunk)
        lines.append(f"{offset:08x}  {hex_part:<{hex_width}}  |{ascii_part}|")
    return "\n".join(lines)
