"""Ranging message the OLT sends to learn each ONU's round-trip time."""

from __future__ import annotations

import copy
from dataclasses import dataclass

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class FieldError(ValueError):
    """Raised when a message field is unknown or given an invalid value."""


def _parse_int(field: str, value: str) -> int:
    try:
        number = int(value.strip(), 10)
    except (ValueError, AttributeError) as exc:
        raise FieldError(f"cannot parse {value!r} as an integer for field {field!r}") from exc
    if not _INT_MIN <= number <= _INT_MAX:
        raise FieldError(f"value {number} out of range for integer field {field!r}")
    return number


@dataclass
class Ping:
    """A ping carrying the index of the ONU that answered it."""

    name: str = "ping"
    kind: int = 0
    onu_id: int = 0

    _FIELDS = ("ONU_id",)

    def dup(self) -> Ping:
        """Return an independent copy of this message."""
        return copy.copy(self)

    def field_names(self) -> tuple[str, ...]:
        """Return the names of the message's own fields, in declaration order."""
        return self._FIELDS

    def _resolve(self, field: str | int) -> str:
        if isinstance(field, bool):
            raise FieldError(f"no field {field!r} in class 'ping'")
        if isinstance(field, int):
            if 0 <= field < len(self._FIELDS):
                return self._FIELDS[field]
            raise FieldError(f"no field {field} in class 'ping'")
        if field in self._FIELDS:
            return field
        raise FieldError(f"no field {field!r} in class 'ping'")

    def field_value_as_string(self, field: str | int) -> str:
        """Return the value of ``field`` (a name or an index) as text."""
        self._resolve(field)
        return str(self.onu_id)

    def set_field_value_as_string(self, field: str | int, value: str) -> None:
        """Set ``field`` (a name or an index) from its text form."""
        name = self._resolve(field)
        self.onu_id = _parse_int(name, value)