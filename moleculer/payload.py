"""Payload: a wrapper giving typed, path-aware access to arbitrary values."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable, Optional

from moleculer import convert

_INDEXED_KEY = re.compile(r"^(\w+)\[(\d+)\]$", re.ASCII)


class PayloadError(Exception):
    """An error that carries a payload with further details."""

    def __init__(self, message: str, payload: Optional["Payload"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload

    def __str__(self) -> str:
        return self.message


def _go_str(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Payload):
        return value.string()
    return str(value)


def _sprint(args: tuple) -> str:
    parts: list[str] = []
    previous: Any = None
    for position, arg in enumerate(args):
        if position and not isinstance(arg, str) and not isinstance(previous, str):
            parts.append(" ")
        parts.append(_go_str(arg))
        previous = arg
    return "".join(parts)


def _bson_value(item: "Payload") -> Any:
    if item.is_array():
        return item.bson_array()
    if item.is_map():
        return item.bson()
    return item.value()


class Payload:
    """Wraps a value and reads it as numbers, strings, lists, maps and paths."""

    __slots__ = ("_source",)

    def __init__(self, source: Any = None) -> None:
        self._source = source

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Payload):
            return NotImplemented
        return type(self._source) is type(other._source) and self._source == other._source

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Payload({self._source!r})"

    def __str__(self) -> str:
        return self.string()

    def __len__(self) -> int:
        if convert.is_array(self._source):
            return convert.array_len(self._source)
        if convert.is_map(self._source):
            return convert.map_len(self._source)
        return 0

    # --- basic state -------------------------------------------------

    def value(self) -> Any:
        """Return the wrapped value."""
        return self._source

    def exists(self) -> bool:
        """Tell whether a value is present."""
        return self._source is not None

    def is_error(self) -> bool:
        """Tell whether the wrapped value is an error."""
        return isinstance(self._source, BaseException)

    def error(self) -> Optional[BaseException]:
        """Return the wrapped error, or ``None``."""
        return self._source if self.is_error() else None

    def error_payload(self) -> Optional["Payload"]:
        """Return the payload attached to a :class:`PayloadError`, or ``None``."""
        if isinstance(self._source, PayloadError):
            return self._source.payload
        return None

    def is_array(self) -> bool:
        """Tell whether the value is list-like."""
        return convert.is_array(self._source)

    def is_map(self) -> bool:
        """Tell whether the value is map-like."""
        return convert.is_map(self._source)

    # --- scalars -------------------------------------------------------

    def as_int(self) -> int:
        """Read the value as an integer."""
        return convert.to_int(self._source)

    def as_int64(self) -> int:
        """Read the value as a 64-bit integer."""
        return convert.to_int64(self._source)

    def as_uint(self) -> int:
        """Read the value as an unsigned 64-bit integer."""
        return convert.to_uint(self._source)

    def as_float(self) -> float:
        """Read the value as a float."""
        return convert.to_float(self._source)

    def as_float32(self) -> float:
        """Read the value as a single precision float."""
        return convert.to_float32(self._source)

    def as_bool(self) -> bool:
        """Read the value as a bool; anything but a bool or ``"true"`` is false."""
        if isinstance(self._source, bool):
            return self._source
        return _go_str(self._source).lower() == "true"

    def as_time(self) -> datetime:
        """Return the value as a datetime."""
        if not isinstance(self._source, datetime):
            raise TypeError(f"payload value of type {type(self._source).__name__} is not a time")
        return self._source

    def string(self) -> str:
        """Return the value as text."""
        if isinstance(self._source, str):
            return self._source
        return _go_str(self._source)

    def byte_array(self) -> Optional[bytes]:
        """Return the value if it is bytes, else ``None``."""
        if isinstance(self._source, (bytes, bytearray)):
            return bytes(self._source)
        return None

    # --- lists -----------------------------------------------------------

    def array(self) -> Optional[list["Payload"]]:
        """Return the items as payloads, or ``None`` if not list-like."""
        if not self.is_array():
            return None
        return [new(item) for item in convert.as_list(self._source)]

    def _converted(self, reader: Callable[["Payload"], Any]) -> Optional[list]:
        items = self.array()
        if items is None:
            return None
        return [reader(item) for item in items]

    def value_array(self) -> Optional[list]:
        return self._converted(Payload.value)

    def string_array(self) -> Optional[list[str]]:
        return self._converted(Payload.string)

    def int_array(self) -> Optional[list[int]]:
        return self._converted(Payload.as_int)

    def int64_array(self) -> Optional[list[int]]:
        return self._converted(Payload.as_int64)

    def uint_array(self) -> Optional[list[int]]:
        return self._converted(Payload.as_uint)

    def float32_array(self) -> Optional[list[float]]:
        return self._converted(Payload.as_float32)

    def float_array(self) -> Optional[list[float]]:
        return self._converted(Payload.as_float)

    def bool_array(self) -> Optional[list[bool]]:
        return self._converted(Payload.as_bool)

    def time_array(self) -> Optional[list[datetime]]:
        return self._converted(Payload.as_time)

    def map_array(self) -> Optional[list[Optional[dict]]]:
        return self._converted(Payload.raw_map)

    def first(self) -> "Payload":
        """Return the first item, or an empty payload."""
        if self.is_array() and convert.array_len(self._source) > 0:
            return new(convert.array_first(self._source))
        return new(None)

    def at(self, index: int) -> Optional["Payload"]:
        """Return the item at ``index``, or ``None`` when out of range."""
        if not self.is_array():
            return None
        items = convert.as_list(self._source)
        if 0 <= index < len(items):
            return new(items[index])
        return None

    # --- maps ------------------------------------------------------------

    def raw_map(self) -> Optional[dict[str, Any]]:
        """Return the value as a new dict, or ``None`` if not map-like."""
        if not self.is_map():
            return None
        return convert.as_dict(self._source)

    def map(self) -> Optional[dict[str, "Payload"]]:
        """Return the entries as payloads, or ``None`` if not map-like."""
        raw = self.raw_map()
        if raw is None:
            return None
        return {key: new(item) for key, item in raw.items()}

    def bson(self) -> Optional[dict[str, Any]]:
        """Return the map with nested maps and lists made plain."""
        entries = self.map()
        if entries is None:
            return None
        return {key: _bson_value(item) for key, item in entries.items()}

    def bson_array(self) -> Optional[list[Any]]:
        """Return the list with nested maps and lists made plain."""
        items = self.array()
        if items is None:
            return None
        return [_bson_value(item) for item in items]

    # --- lookup ----------------------------------------------------------

    def _map_get(self, key: str) -> tuple[Any, bool]:
        if self.is_map():
            raw = convert.as_dict(self._source)
            if key in raw:
                return raw[key], True
        return None, False

    def _get_key(self, key: str, defaults: tuple) -> "Payload":
        value, found = self._map_get(key)
        if found:
            return new(value)
        if len(defaults) > 1:
            return new(list(defaults))
        if defaults:
            return new(defaults[0])
        return new(None)

    def _get_path(self, path: str, defaults: tuple) -> Optional["Payload"]:
        head, *rest = path.split(".")
        current = self.get(head, *defaults)
        for key in rest:
            if current is None:
                return new(None)
            current = current.get(key, *defaults)
        return current

    def get(self, path: str, *defaults: Any) -> Optional["Payload"]:
        """Look up a key, a dotted path or an indexed key such as ``items[0]``.

        Extra arguments give the default value when the key is missing.
        """
        _, found = self._map_get(path)
        if found:
            return self._get_key(path, defaults)
        if "." in path:
            return self._get_path(path, defaults)
        match = _INDEXED_KEY.match(path)
        if match:
            return self._get_key(match.group(1), defaults).at(int(match.group(2)))
        return self._get_key(path, defaults)

    def only(self, path: str) -> "Payload":
        """Return a map holding only ``path``, or an empty payload."""
        value, found = self._map_get(path)
        if found:
            return new({path: value})
        return new(None)

    # --- iteration and transformation ---------------------------------------

    def for_each(self, iterator: Callable[[Any, "Payload"], bool]) -> None:
        """Call ``iterator(key, item)`` for each entry until it returns false."""
        if self.is_array():
            for index, item in enumerate(self.array() or ()):
                if not iterator(index, item):
                    break
        elif self.is_map():
            for key, item in (self.map() or {}).items():
                if not iterator(key, item):
                    break
        else:
            iterator(None, self)

    def map_over(self, transform: Callable[["Payload"], Any]) -> "Payload":
        """Return a list payload of ``transform`` applied to each item."""
        if not self.is_array():
            return error("payload.MapOver can only deal with array payloads.")
        return new([new(transform(item)).value() for item in self.array() or ()])

    def sort(self, field: str) -> "Payload":
        """Return the items ordered by the text of ``field``."""
        if not self.is_array():
            return self
        ordered = sorted(self.array() or (), key=lambda item: item.get(field).string())
        return new([item.value() for item in ordered])

    def remove(self, *fields: str) -> "Payload":
        """Return a copy without ``fields``; lists have them removed per item."""
        if self.is_map():
            return new({k: v for k, v in (self.raw_map() or {}).items() if k not in fields})
        if self.is_array():
            return new([item.remove(*fields).value() for item in self.array() or ()])
        return error("payload.Remove can only deal with map and array payloads.")

    def add_item(self, value: Any) -> "Payload":
        """Return a list payload with ``value`` appended."""
        if not self.is_array():
            return error("payload.AddItem can only deal with lists/arrays.")
        return new([*convert.as_list(self._source), new(value).value()])

    def add(self, field: str, value: Any) -> "Payload":
        """Return a map payload with ``field`` set to ``value``."""
        if not self.is_map():
            return error("payload.Add can only deal with map payloads.")
        merged = self.raw_map() or {}
        merged[field] = value
        return new(merged)

    def add_many(self, values: dict[str, Any]) -> "Payload":
        """Return a map payload merged with ``values``."""
        if not self.is_map():
            return error("payload.Add can only deal with map payloads.")
        merged = self.raw_map() or {}
        merged.update(values)
        return new(merged)


def new(source: Any) -> Payload:
    """Wrap ``source``; a payload is returned as it is."""
    if isinstance(source, Payload):
        return source
    return Payload(source)


def empty() -> Payload:
    """Return a payload holding an empty map."""
    return Payload({})


def empty_list() -> Payload:
    """Return a payload holding an empty list."""
    return Payload([])


def error(*args: Any) -> Payload:
    """Return a payload holding an error built from ``args``."""
    return Payload(Exception(_sprint(args)))


def payload_error(msg: str, payload: Payload) -> Payload:
    """Return a payload holding an error that carries ``payload``."""
    return Payload(PayloadError(msg, payload))