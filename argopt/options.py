r"""
Argopt option records and value coercion.

Overview
- Kind: the fixed type tag of a registered option (flag, string, integer, float).
- Option: the single mutable record shared by every alias of one option.
  • count: how many times the option was activated (each bundled short flag counts).
  • values: coerced values in order of occurrence (always empty for flags).
  • fallback: returned by .value while no value was recorded.
- parseint / parsefloat: the value grammars shared by option coercion and by
  the positional helpers of the parser.

Grammars
- integer: [+-]? ( 0x<hex> | 0o<oct> | 0b<bin> | <decimal> ), prefixes case-insensitive;
  a leading zero on a decimal number stays decimal ("010" is ten).
- float: [+-]? ( <digits>[.<digits>] | .<digits> ) [ e[+-]?<digits> ];
  no inf/nan spellings, no digit separators.

Quick example:
    >>> option = Option(Kind.INTEGER, 8)
    >>> option.try_set_value("0x10")
    >>> option.count += 1
    >>> option.value, option.values
    (16, [16])
"""
import enum
import re

from .faults import FaultCode, InvalidValueFormatError
from .utils import mirror

_INTEGER = re.compile(
    r"(?P<sign>[+-]?)(?:0[xX](?P<hex>[0-9a-fA-F]+)|0[oO](?P<oct>[0-7]+)|0[bB](?P<bin>[01]+)|(?P<dec>[0-9]+))"
)
_FLOAT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parseint(raw, /):
    """
    parse `raw` with the integer grammar.

    raises
    - InvalidValueFormatError when raw is not a well-formed integer.
    """
    if not (match := _INTEGER.fullmatch(raw)):
        raise InvalidValueFormatError(
            "cannot parse %r as an integer" % raw,
            title="invalid integer",
            code=FaultCode.INVALID_VALUE_FORMAT,
            hint="use a decimal number (for example: 42) or a 0x/0o/0b prefixed one (for example: 0x2a)",
            value=raw,
        )
    for group, base in (("hex", 16), ("oct", 8), ("bin", 2), ("dec", 10)):
        if (digits := match[group]) is not None:
            number = int(digits, base)
            return -number if match["sign"] == "-" else number
    raise AssertionError("unreachable")


def parsefloat(raw, /):
    """
    parse `raw` with the float grammar.

    raises
    - InvalidValueFormatError when raw is not a well-formed decimal number.
    """
    if not _FLOAT.fullmatch(raw):
        raise InvalidValueFormatError(
            "cannot parse %r as a float" % raw,
            title="invalid float",
            code=FaultCode.INVALID_VALUE_FORMAT,
            hint="use a decimal number (for example: 2.5 or 1e-3)",
            value=raw,
        )
    return float(raw)


class Kind(enum.Enum):
    FLAG = "flag"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"

    def __repr__(self):
        return f"{type(self).__name__}.{self.name}"


_converters = {
    Kind.STRING: str,
    Kind.INTEGER: parseint,
    Kind.FLOAT: parsefloat,
}


def _sanitize_fallback(kind, fallback, /):
    """
    Internal: validate a registration-time fallback against the option kind.

    - flag: fallback is always False (presence-only).
    - string: must be str.
    - integer: must be int (bool is rejected).
    - float: must be float or int (ints are widened).
    """
    match kind:
        case Kind.FLAG:
            return False
        case Kind.STRING if isinstance(fallback, str):
            return fallback
        case Kind.INTEGER if isinstance(fallback, int) and not isinstance(fallback, bool):
            return fallback
        case Kind.FLOAT if isinstance(fallback, int | float) and not isinstance(fallback, bool):
            return float(fallback)
    raise TypeError(f"{kind.value} option fallback cannot be {type(fallback).__name__}")


class Option:
    """
    One registered flag or option, shared by all of its aliases.

    The record is created at registration and mutated only by a parse pass:
    the parser increments `count` and calls try_set_value() for valued kinds.
    """
    __slots__ = ("_kind", "_fallback", "_values", "count")

    values = mirror("values")

    def __init__(self, kind, fallback=False, /):
        if not isinstance(kind, Kind):
            raise TypeError("option kind must be a Kind member")
        self._kind = kind
        self._fallback = _sanitize_fallback(kind, fallback)
        self._values = []
        self.count = 0

    @property
    def kind(self):
        return self._kind

    @property
    def fallback(self):
        return self._fallback

    @property
    def found(self):
        return self.count > 0

    @property
    def value(self):
        """
        The last recorded value, or the fallback when none was recorded.

        For flags this is the presence (count > 0).
        """
        if self._kind is Kind.FLAG:
            return self.found
        return self._values[-1] if self._values else self._fallback

    def try_set_value(self, raw, /):
        """
        coerce `raw` according to the kind and append it to values.

        the occurrence counter is left alone; the parser owns it.

        raises
        - TypeError for flags (they never take a value).
        - InvalidValueFormatError when an integer/float value is malformed.
        """
        try:
            convert = _converters[self._kind]
        except KeyError:
            raise TypeError("flags do not take values") from None
        self._values.append(convert(raw))

    def __rich_repr__(self):
        yield "kind", self._kind.value
        yield "count", self.count
        if self._kind is not Kind.FLAG:
            yield "values", self.values
            yield "fallback", self._fallback

    def __repr__(self):
        return "option(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "Kind",
    "Option",
    "parseint",
    "parsefloat",
)
