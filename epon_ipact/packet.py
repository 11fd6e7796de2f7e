"""Data, grant and request frames exchanged on the PON."""

from __future__ import annotations

import copy
import math
import re
from dataclasses import dataclass

from epon_ipact.ping import FieldError

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_TIME_UNITS = {
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "ns": 1e-9,
    "ps": 1e-12,
    "fs": 1e-15,
}
_TIME_PATTERN = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-z]*)\s*$")

_TRUE_WORDS = frozenset({"true", "1", "yes"})
_FALSE_WORDS = frozenset({"false", "0", "no"})


def _format(kind: str, value: object) -> str:
    """Render a field value of the given kind as text."""
    if kind == "bool":
        return "true" if value else "false"
    if kind == "int":
        return str(value)
    return format(value, ".16g")


def _parse_int(field: str, value: str) -> int:
    try:
        number = int(value.strip(), 10)
    except (ValueError, AttributeError) as exc:
        raise FieldError(f"cannot parse {value!r} as an integer for field {field!r}") from exc
    if not _INT_MIN <= number <= _INT_MAX:
        raise FieldError(f"value {number} out of range for integer field {field!r}")
    return number


def _parse_double(field: str, value: str) -> float:
    try:
        number = float(value.strip())
    except (ValueError, AttributeError) as exc:
        raise FieldError(f"cannot parse {value!r} as a number for field {field!r}") from exc
    return number


def _parse_bool(field: str, value: str) -> bool:
    if not isinstance(value, str):
        raise FieldError(f"cannot parse {value!r} as a boolean for field {field!r}")
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise FieldError(f"cannot parse {value!r} as a boolean for field {field!r}")


def _parse_simtime(field: str, value: str) -> float:
    if not isinstance(value, str):
        raise FieldError(f"cannot parse {value!r} as a time for field {field!r}")
    match = _TIME_PATTERN.match(value)
    if match is None:
        raise FieldError(f"cannot parse {value!r} as a time for field {field!r}")
    number, unit = match.groups()
    if unit and unit not in _TIME_UNITS:
        raise FieldError(f"unknown time unit {unit!r} for field {field!r}")
    seconds = float(number) * _TIME_UNITS.get(unit or "s")
    if not math.isfinite(seconds):
        raise FieldError(f"time {value!r} out of range for field {field!r}")
    return seconds


_PARSERS = {
    "simtime": _parse_simtime,
    "int": _parse_int,
    "bool": _parse_bool,
    "double": _parse_double,
}

# Field name -> (attribute, kind), in declaration order.
_FIELD_TABLE = {
    "GenerationTime": ("generation_time", "simtime"),
    "OnuArrivalTime": ("onu_arrival_time", "simtime"),
    "OnuDepartureTime": ("onu_departure_time", "simtime"),
    "OnuId": ("onu_id", "int"),
    "IsGrant": ("is_grant", "bool"),
    "Grant": ("grant", "double"),
    "IsRequest": ("is_request", "bool"),
    "Request": ("request", "double"),
}
_FIELD_NAMES = tuple(_FIELD_TABLE)


@dataclass
class PonPacket:
    """A frame on the PON: application data, a grant from the OLT or a request from an ONU.

    Times are in seconds, lengths in bytes, grants and requests in bytes.
    """

    name: str = ""
    kind: int = 0
    byte_length: int = 0
    generation_time: float = 0.0
    onu_arrival_time: float = 0.0
    onu_departure_time: float = 0.0
    onu_id: int = 0
    is_grant: bool = False
    grant: float = 0.0
    is_request: bool = False
    request: float = 0.0

    def __post_init__(self) -> None:
        if self.byte_length < 0:
            raise ValueError(f"byte length must not be negative, got {self.byte_length}")

    @property
    def bit_length(self) -> int:
        """Length of the frame in bits."""
        return self.byte_length * 8

    def dup(self) -> PonPacket:
        """Return an independent copy of this frame."""
        return copy.copy(self)

    def field_names(self) -> tuple[str, ...]:
        """Return the names of the frame's own fields, in declaration order."""
        return _FIELD_NAMES

    @staticmethod
    def _resolve(field: str | int) -> str:
        if isinstance(field, bool):
            raise FieldError(f"no field {field!r} in class 'ponPacket'")
        if isinstance(field, int):
            if 0 <= field < len(_FIELD_NAMES):
                return _FIELD_NAMES[field]
            raise FieldError(f"no field {field} in class 'ponPacket'")
        if field in _FIELD_TABLE:
            return field
        raise FieldError(f"no field {field!r} in class 'ponPacket'")

    def field_value_as_string(self, field: str | int) -> str:
        """Return the value of ``field`` (a name or an index) as text."""
        attribute, kind = _FIELD_TABLE[self._resolve(field)]
        return _format(kind, getattr(self, attribute))

    def set_field_value_as_string(self, field: str | int, value: str) -> None:
        """Set ``field`` (a name or an index) from its text form."""
        name = self._resolve(field)
        attribute, kind = _FIELD_TABLE[name]
        setattr(self, attribute, _PARSERS[kind](name, value))