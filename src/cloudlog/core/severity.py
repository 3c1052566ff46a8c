"""Log severities and their wire codes.

Severities form a small ordered set. Codes received from the service that
have no name are kept as opaque values rather than being folded into a
default, so filtering and comparisons still see the original number:

    >>> Severity(200) is Severity.INFO
    True
    >>> str(Severity(-99))
    '-99'
    >>> Severity(-99) < Severity.DEFAULT
    True
"""

from __future__ import annotations

from enum import IntEnum


class Severity(IntEnum):
    """Severity of a log entry, valued by its wire code."""

    DEFAULT = 0
    DEBUG = 100
    INFO = 200
    NOTICE = 300
    WARNING = 400
    ERROR = 500
    CRITICAL = 600
    ALERT = 700
    EMERGENCY = 800

    @classmethod
    def _missing_(cls, value: object) -> Severity | None:
        # Unnamed codes become pseudo-members carrying the raw integer
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        pseudo = int.__new__(cls, value)
        pseudo._name_ = str(value)
        pseudo._value_ = value
        return pseudo

    @property
    def is_named(self) -> bool:
        return self._value_ in type(self)._value2member_map_

    def __str__(self) -> str:
        if self.is_named:
            return self._name_.title()
        return str(self._value_)


def parse_severity_code(code: int) -> Severity:
    """Map a wire integer to a severity, preserving unknown codes."""
    return Severity(int(code))


def render_severity(severity: Severity | int) -> int:
    """Return the wire code for a severity; unnamed values map to DEFAULT."""
    sev = Severity(int(severity))
    if not sev.is_named:
        return int(Severity.DEFAULT)
    return int(sev)


def parse_severity(name: str) -> Severity:
    """Parse a case-insensitive severity name; unknown names map to DEFAULT."""
    return Severity.__members__.get(name.strip().upper(), Severity.DEFAULT)


__all__ = [
    "Severity",
    "parse_severity",
    "parse_severity_code",
    "render_severity",
]
