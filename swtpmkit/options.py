"""Parsing of comma-separated ``name=value`` option strings.

An option string such as ``"dir=/var/lib/tpm,mode=0640,truncate"`` is
parsed against a list of option descriptors that give each option's name
and type. A bare option name stands for ``name=true``.
"""

from __future__ import annotations

import grp
import pwd
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterable, Iterator, Optional, Union

INT_MIN = -(1 << 31)
INT_MAX = (1 << 31) - 1
UINT_MAX = (1 << 32) - 1
MODE_MAX = 0o777

# Value returned by the unsigned getters when the option has another type.
UNSIGNED_MISMATCH = UINT_MAX

_WHITESPACE = r"[ \t\n\v\f\r]*"
_INTEGER_PATTERNS = {
    10: re.compile(_WHITESPACE + r"([+-]?[0-9]+)"),
    8: re.compile(_WHITESPACE + r"([+-]?[0-7]+)"),
}


class OptionType(Enum):
    """The data type an option's value is parsed as."""

    STRING = auto()
    INT = auto()
    UINT = auto()
    BOOLEAN = auto()
    MODE_T = auto()
    UID_T = auto()
    GID_T = auto()


class OptionError(ValueError):
    """An option string could not be parsed."""


@dataclass(frozen=True)
class OptionDesc:
    """Template for one option: its name and the type of its value."""

    name: str
    type: OptionType


OptionData = Union[str, int, bool]


@dataclass(frozen=True)
class OptionValue:
    """One parsed option with its type and converted value."""

    name: str
    type: OptionType
    value: OptionData


@dataclass
class OptionValues:
    """The options parsed from an option string, in the order given."""

    options: list[OptionValue] = field(default_factory=list)

    def __iter__(self) -> Iterator[OptionValue]:
        return iter(self.options)

    def __len__(self) -> int:
        return len(self.options)

    def __contains__(self, name: object) -> bool:
        return any(option.name == name for option in self.options)

    def _get(self, name: str, expected: OptionType, default, mismatch):
        for option in self.options:
            if option.name == name:
                return option.value if option.type is expected else mismatch
        return default

    def get_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return a string option; None if the option has another type."""
        return self._get(name, OptionType.STRING, default, None)

    def get_int(self, name: str, default: int) -> int:
        """Return an int option; -1 if the option has another type."""
        return self._get(name, OptionType.INT, default, -1)

    def get_uint(self, name: str, default: int) -> int:
        """Return an unsigned option; UINT_MAX if the option has another type."""
        return self._get(name, OptionType.UINT, default, UNSIGNED_MISMATCH)

    def get_bool(self, name: str, default: bool) -> bool:
        """Return a boolean option; False if the option has another type."""
        return self._get(name, OptionType.BOOLEAN, default, False)

    def get_mode(self, name: str, default: int) -> int:
        """Return a file mode option; UINT_MAX if the option has another type."""
        return self._get(name, OptionType.MODE_T, default, UNSIGNED_MISMATCH)

    def get_uid(self, name: str, default: int) -> int:
        """Return a user id option; UINT_MAX if the option has another type."""
        return self._get(name, OptionType.UID_T, default, UNSIGNED_MISMATCH)

    def get_gid(self, name: str, default: int) -> int:
        """Return a group id option; UINT_MAX if the option has another type."""
        return self._get(name, OptionType.GID_T, default, UNSIGNED_MISMATCH)


def _parse_integer(text: str, base: int) -> Optional[int]:
    """Parse a whole string as an integer, allowing leading blanks and a sign."""
    match = _INTEGER_PATTERNS[base].fullmatch(text)
    if match is None:
        return None
    return int(match.group(1), base)


def _to_int(val: str) -> int:
    number = _parse_integer(val, 10)
    if number is None:
        raise OptionError(f"invalid number '{val}'")
    if not INT_MIN <= number <= INT_MAX:
        raise OptionError(f"number {number} outside valid range")
    return number


def _to_uint(val: str) -> int:
    number = _parse_integer(val, 10)
    if number is None:
        raise OptionError(f"invalid number '{val}'")
    if not 0 <= number <= UINT_MAX:
        raise OptionError(f"number {number} outside valid range")
    return number


def _to_bool(val: str) -> bool:
    return val.lower() in ("true", "1")


def _to_mode(val: str) -> int:
    number = _parse_integer(val, 8)
    if number is None:
        raise OptionError(f"invalid mode type '{val}'")
    if not 0 <= number <= MODE_MAX:
        raise OptionError(f"mode {val} is invalid")
    return number


def _to_uid(val: str) -> int:
    number = _parse_integer(val, 10)
    if number is not None:
        if not 0 <= number <= UINT_MAX:
            raise OptionError(f"uid {val} outside valid range")
        return number
    try:
        return pwd.getpwnam(val).pw_uid
    except KeyError:
        raise OptionError(f"User '{val}' does not exist.") from None


def _to_gid(val: str) -> int:
    number = _parse_integer(val, 10)
    if number is not None:
        if not 0 <= number <= UINT_MAX:
            raise OptionError(f"gid {val} outside valid range")
        return number
    try:
        return grp.getgrnam(val).gr_gid
    except KeyError:
        raise OptionError(f"Group '{val}' does not exist.") from None


_CONVERTERS: dict[OptionType, Callable[[str], OptionData]] = {
    OptionType.STRING: str,
    OptionType.INT: _to_int,
    OptionType.UINT: _to_uint,
    OptionType.BOOLEAN: _to_bool,
    OptionType.MODE_T: _to_mode,
    OptionType.UID_T: _to_uid,
    OptionType.GID_T: _to_gid,
}


def _match(token: str, desc: OptionDesc) -> Optional[str]:
    """Return the raw value if token names desc, else None."""
    name = desc.name
    if len(token) > len(name) + 1 and token.startswith(name + "="):
        return token[len(name) + 1:]
    if token == name:
        return "true"
    return None


def parse_options(opts: str, optdesc: Iterable[OptionDesc]) -> OptionValues:
    """Parse a comma-separated option string following the descriptors.

    Empty items are skipped. Raises OptionError for unknown options and
    for values that cannot be converted to their option's type.
    """
    descriptors = list(optdesc)
    values = OptionValues()
    for token in filter(None, opts.split(",")):
        for desc in descriptors:
            raw = _match(token, desc)
            if raw is not None:
                value = _CONVERTERS[desc.type](raw)
                values.options.append(OptionValue(desc.name, desc.type, value))
                break
        else:
            raise OptionError(f"Unknown option '{token}'")
    return values