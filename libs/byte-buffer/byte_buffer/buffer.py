import logging
import operator
from typing import Any, Iterable, Iterator

from byte_buffer.overflow import UINT8_MAX, ByteRangeError, OverflowPolicy, coerce

logger = logging.getLogger("byte_buffer")


class ByteBuffer:
    """Fixed-length sequence of 8-bit unsigned slots with an explicit overflow policy.

    The storage is a single `bytearray`; every buffer holds a `memoryview` into it, so
    `subarray` views share memory with their parent while `slice` (and `buf[a:b]`)
    always copy. Writes coerce the value with the buffer's policy before storing it.
    """

    __slots__ = ("_data", "_policy")

    def __init__(self, length: int = 0, policy: OverflowPolicy = OverflowPolicy.WRAP):
        try:
            length = operator.index(length)
        except TypeError:
            raise ValueError(f"buffer length must be an integer, got {length!r}") from None
        if length < 0:
            raise ValueError(f"buffer length must be non-negative, got {length}")
        self._data = memoryview(bytearray(length))
        self._policy = OverflowPolicy(policy)

    @classmethod
    def _from_view(cls, view: memoryview, policy: OverflowPolicy) -> "ByteBuffer":
        buf = cls.__new__(cls)
        buf._data = view
        buf._policy = policy
        return buf

    @classmethod
    def from_values(
        cls, values: Iterable[Any], policy: OverflowPolicy = OverflowPolicy.WRAP
    ) -> "ByteBuffer":
        policy = OverflowPolicy(policy)
        values = list(values)
        coerced = _coerce_all(values, policy)
        changed = sum(1 for raw, stored in zip(values, coerced) if raw != stored)
        if changed:
            logger.debug(f"{changed} of {len(values)} values altered by policy '{policy.value}'")
        return cls._from_view(memoryview(bytearray(coerced)), policy)

    @classmethod
    def of(cls, *values: Any, policy: OverflowPolicy = OverflowPolicy.WRAP) -> "ByteBuffer":
        return cls.from_values(values, policy)

    @classmethod
    def from_bytes(cls, data: Any, policy: OverflowPolicy = OverflowPolicy.WRAP) -> "ByteBuffer":
        # memoryview() refuses ints, which bytearray() would read as a length.
        return cls._from_view(
            memoryview(bytearray(memoryview(data).tobytes())), OverflowPolicy(policy)
        )

    @property
    def policy(self) -> OverflowPolicy:
        return self._policy

    @property
    def byte_length(self) -> int:
        return self._data.nbytes

    # ------------------------------------------------------------------------ #
    #                             Sequence Protocol                            #
    # ------------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[int]:
        return iter(self._data.tolist())

    def __contains__(self, value: object) -> bool:
        byte = _as_byte(value)
        if byte is None:
            return False
        return byte in self._data.tobytes()

    def __getitem__(self, key):
        if isinstance(key, slice):
            return ByteBuffer._from_view(
                memoryview(bytearray(self._data[key].tobytes())), self._policy
            )
        return self._data[self._normalize_index(key)]

    def __setitem__(self, key, value: Any):
        if isinstance(key, slice):
            raise TypeError("slice assignment is not supported, use set() or fill()")
        index = self._normalize_index(key)
        self._data[index] = coerce(value, self._policy)

    def _normalize_index(self, key: Any) -> int:
        index = operator.index(key)
        size = len(self._data)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError(f"index {key} out of range for buffer of length {size}")
        return index

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ByteBuffer):
            return self._data.tobytes() == other._data.tobytes()
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._data.tobytes() == bytes(other)
        if isinstance(other, (list, tuple)):
            return self._data.tolist() == list(other)
        return NotImplemented

    __hash__ = None  # mutable

    def __str__(self) -> str:
        from byte_buffer.render import format_buffer

        return format_buffer(self)

    __repr__ = __str__

    # ------------------------------------------------------------------------ #
    #                              Bulk Operations                             #
    # ------------------------------------------------------------------------ #

    def slice(self, start: int | None = None, end: int | None = None) -> "ByteBuffer":
        """Independent copy of `[start, end)`."""
        return self[start:end]

    def subarray(self, start: int | None = None, end: int | None = None) -> "ByteBuffer":
        """View of `[start, end)` sharing memory with this buffer."""
        lo, hi, _ = slice(start, end).indices(len(self._data))
        return ByteBuffer._from_view(self._data[lo : max(lo, hi)], self._policy)

    def set(self, values: Iterable[Any], offset: int = 0) -> None:
        values = list(values)
        if offset < 0 or offset + len(values) > len(self._data):
            raise IndexError(
                f"cannot write {len(values)} values at offset {offset} "
                f"into buffer of length {len(self._data)}"
            )
        coerced = _coerce_all(values, self._policy)
        self._data[offset : offset + len(coerced)] = bytes(coerced)

    def fill(self, value: Any, start: int = 0, end: int | None = None) -> "ByteBuffer":
        byte = coerce(value, self._policy)
        lo, hi, _ = slice(start, end).indices(len(self._data))
        if hi > lo:
            self._data[lo:hi] = bytes([byte]) * (hi - lo)
        return self

    def index(self, value: int, start: int = 0) -> int:
        byte = _as_byte(value)
        if byte is None:
            raise ValueError(f"{value!r} is not in buffer")
        found = self._data.tobytes().find(byte, start)
        if found < 0:
            raise ValueError(f"{value!r} is not in buffer")
        return found

    def count(self, value: int) -> int:
        byte = _as_byte(value)
        if byte is None:
            return 0
        return self._data.tobytes().count(byte)

    def reverse(self) -> "ByteBuffer":
        self._data[:] = self._data.tobytes()[::-1]
        return self

    def to_bytes(self) -> bytes:
        return self._data.tobytes()

    def to_list(self) -> list[int]:
        return self._data.tolist()

    def hex(self, sep: str = "") -> str:
        if sep:
            return self._data.hex(sep)
        return self._data.hex()


def _as_byte(value: object) -> int | None:
    """The stored form of `value` if it equals some byte, else None."""
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    try:
        number = operator.index(value)
    except TypeError:
        return None
    return number if 0 <= number <= UINT8_MAX else None


def _coerce_all(values: list[Any], policy: OverflowPolicy) -> list[int]:
    out = []
    for idx, value in enumerate(values):
        try:
            out.append(coerce(value, policy))
        except ByteRangeError as e:
            raise ByteRangeError(e.value, e.policy, f"index {idx}: {e}") from e
    return out
