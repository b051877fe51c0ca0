import pytest

from byte_buffer.buffer import ByteBuffer
from byte_buffer.render import format_buffer, format_hexdump


def test_demo_buffer_renders_on_one_line():
    buf = ByteBuffer.from_values([0, 255, 127, 128])
    assert format_buffer(buf) == "ByteBuffer(4) [ 0, 255, 127, 128 ]"
    assert str(buf) == repr(buf) == format_buffer(buf)


def test_empty_buffer():
    assert format_buffer(ByteBuffer()) == "ByteBuffer(0) []"


def test_long_buffer_uses_rows():
    buf = ByteBuffer.from_values(range(20))
    lines = format_buffer(buf).splitlines()
    assert lines[0] == "ByteBuffer(20) ["
    assert lines[1] == "    0,   1,   2,   3,   4,   5,   6,   7,   8,   9,  10,  11,  12,  13,  14,  15,"
    assert lines[2] == "   16,  17,  18,  19"
    assert lines[3] == "]"


def test_truncated_buffer_reports_hidden_items():
    text = format_buffer(ByteBuffer(3), max_items=2)
    assert text == "ByteBuffer(3) [ 0, 0, ... 1 more item ]"

    lines = format_buffer(ByteBuffer(150)).splitlines()
    assert lines[-2] == "  ... 50 more items"
    assert lines[-3].endswith(",")


def test_hexdump():
    buf = ByteBuffer.from_bytes(b"\x00\xff\x7f\x80Hi")
    assert format_hexdump(buf) == "00000000  00 ff 7f 80 48 69" + " " * 30 + "  |....Hi|"

    two_rows = format_hexdump(ByteBuffer(5), row=4).splitlines()
    assert two_rows == [
        "00000000  00 00 00 00  |....|",
        "00000004  " + "00".ljust(11) + "  |.|",
    ]
    assert format_hexdump(ByteBuffer()) == ""


def test_negative_max_items_is_rejected():
    with pytest.raises(ValueError):
        format_buffer(ByteBuffer(3), max_items=-1)
    assert format_buffer(ByteBuffer(2), max_items=0) == "ByteBuffer(2) [ ... 2 more items ]"
