import math
import operator
from enum import Enum
from typing import Any


class OverflowPolicy(str, Enum):
    WRAP = "wrap"
    SATURATE = "saturate"
    REJECT = "reject"


class ByteRangeError(ValueError):
    def __init__(self, value: Any, policy: OverflowPolicy, message: str | None = None):
        self.value = value
        self.policy = policy
        super().__init__(message or f"value {value!r} does not fit in a byte (policy={policy.value})")


UINT8_MAX = 0xFF


# ---------------------------------------------------------------------------- #
#                              Fixed-Width Helpers                             #
# ---------------------------------------------------------------------------- #


def wrap_unsigned(value: int, bits: int) -> int:
    """Keep the low `bits` bits of `value`. Negative values wrap as two's complement."""
    if bits <= 0:
        raise ValueError(f"bit width must be positive, got {bits}")
    return value & ((1 << bits) - 1)


def saturate_unsigned(value: int, bits: int) -> int:
    if bits <= 0:
        raise ValueError(f"bit width must be positive, got {bits}")
    return min(max(value, 0), (1 << bits) - 1)


# ---------------------------------------------------------------------------- #
#                                Byte Coercion                                 #
# ---------------------------------------------------------------------------- #


def _as_number(value: Any) -> int | float:
    # bool is an int subclass and passes through unchanged.
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (str, bytes)) or value is None:
        raise TypeError(f"expected a number, got {type(value).__name__}")
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(f"expected a number, got {type(value).__name__}") from None


def to_uint8(value: Any) -> int:
    """Wrap-around coercion: non-finite floats become 0, finite floats truncate toward
    zero, then only the low 8 bits are kept.
    """
    number = _as_number(value)
    if isinstance(number, float):
        if not math.isfinite(number):
            return 0
        number = math.trunc(number)
    return wrap_unsigned(int(number), 8)


def to_uint8_clamped(value: Any) -> int:
    """Saturating coercion: clamp into [0, 255]; floats round half to even."""
    number = _as_number(value)
    if isinstance(number, float):
        if math.isnan(number):
            return 0
        if math.isinf(number):
            return UINT8_MAX if number > 0 else 0
        number = round(number)
    return saturate_unsigned(int(number), 8)


def to_uint8_strict(value: Any) -> int:
    number = _as_number(value)
    if isinstance(number, float):
        if not number.is_integer():
            raise ByteRangeError(value, OverflowPolicy.REJECT, f"value {value!r} is not integral")
        number = int(number)
    if not 0 <= number <= UINT8_MAX:
        raise ByteRangeError(value, OverflowPolicy.REJECT)
    return int(number)


_COERCIONS = {
    OverflowPolicy.WRAP: to_uint8,
    OverflowPolicy.SATURATE: to_uint8_clamped,
    OverflowPolicy.REJECT: to_uint8_strict,
}


def coerce(value: Any, policy: OverflowPolicy = OverflowPolicy.WRAP) -> int:
    return _COERCIONS[OverflowPolicy(policy)](value)
