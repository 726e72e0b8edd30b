"""Uniform views over list-like, map-like and numeric values.

Payloads wrap arbitrary values. These helpers answer the questions a
payload asks of its value: is it a list or a map, what does it hold,
and how does it read as a number.
"""

from __future__ import annotations

import logging
import math
import numbers
import struct
from collections.abc import Mapping
from typing import Any, Optional, Union

_log = logging.getLogger(__name__)

_ARRAY_TYPES = (list, tuple, bytes, bytearray)
_UINT64 = 1 << 64
_INT64_SIGN = 1 << 63


class ConversionError(ValueError):
    """Raised when a value cannot be converted to the requested form."""


def _is_payload(obj: Any) -> bool:
    return callable(getattr(obj, "value", None)) and callable(
        getattr(obj, "is_array", None)
    )


def _unwrap(value: Any) -> Any:
    """Follow payload wrappers down to the raw value they hold."""
    while _is_payload(value):
        inner = value.value()
        if inner is value:
            break
        value = inner
    return value


def _require_array(value: Any) -> Any:
    raw = _unwrap(value)
    if not isinstance(raw, _ARRAY_TYPES):
        raise ConversionError(f"value of type {type(raw).__name__} is not an array")
    return raw


def _require_map(value: Any) -> Mapping:
    raw = _unwrap(value)
    if not isinstance(raw, Mapping):
        raise ConversionError(f"value of type {type(raw).__name__} is not a map")
    return raw


def is_array(value: Any) -> bool:
    """Tell whether ``value`` (or the payload's value) is list-like."""
    return isinstance(_unwrap(value), _ARRAY_TYPES)


def as_list(value: Any) -> list[Any]:
    """Return the items of a list-like value as a new list.

    Items that are payloads are replaced by the values they hold.
    """
    return [_unwrap(item) for item in _require_array(value)]


def array_first(value: Any) -> Any:
    """Return the first item of a list-like value."""
    raw = _require_array(value)
    if not raw:
        raise IndexError("array is empty")
    return raw[0]


def array_len(value: Any) -> int:
    """Return the number of items of a list-like value."""
    return len(_require_array(value))


def is_map(value: Any) -> bool:
    """Tell whether ``value`` (or the payload's value) is map-like."""
    return isinstance(_unwrap(value), Mapping)


def as_dict(value: Any) -> dict[str, Any]:
    """Return a map-like value as a new dict with string keys."""
    return {
        key if isinstance(key, str) else str(key): item
        for key, item in _require_map(value).items()
    }


def map_len(value: Any) -> int:
    """Return the number of entries of a map-like value."""
    return len(_require_map(value))


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ConversionError(f"Could not convert string: {text} to a number!")
    try:
        return float(text)
    except ValueError as exc:
        raise ConversionError(f"Could not convert string: {text} to a number!") from exc


def _number(value: Any) -> Optional[Union[int, float]]:
    """Read ``value`` as a number; ``None`` when its type is not numeric."""
    if isinstance(value, str):
        return _parse_float(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    return None


def _unsupported(value: Any) -> None:
    _log.warning("no number conversion for type %s", type(value).__name__)


def _integer(value: Any) -> Optional[int]:
    number = _number(value)
    if number is None:
        _unsupported(value)
        return None
    if isinstance(number, float):
        if not math.isfinite(number):
            raise ConversionError(f"Could not convert {value!r} to an integer!")
        return int(number)
    return number


def _wrap_signed(number: int) -> int:
    number %= _UINT64
    return number - _UINT64 if number >= _INT64_SIGN else number


def to_int(value: Any) -> int:
    """Read ``value`` as a signed 64-bit integer, truncating fractions.

    Values of a non-numeric type read as 0; unparsable strings raise
    :class:`ConversionError`.
    """
    number = _integer(value)
    return 0 if number is None else _wrap_signed(number)


def to_int64(value: Any) -> int:
    """Read ``value`` as a signed 64-bit integer, truncating fractions."""
    return to_int(value)


def to_uint(value: Any) -> int:
    """Read ``value`` as an unsigned 64-bit integer, wrapping negatives."""
    number = _integer(value)
    return 0 if number is None else number % _UINT64


def to_float(value: Any) -> float:
    """Read ``value`` as a double precision float."""
    number = _number(value)
    if number is None:
        _unsupported(value)
        return 0.0
    try:
        return float(number)
    except OverflowError:
        return math.copysign(math.inf, number)


def to_float32(value: Any) -> float:
    """Read ``value`` as a float rounded to single precision."""
    number = to_float(value)
    if not math.isfinite(number):
        return number
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)