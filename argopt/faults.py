"""
Argopt faults (errors, warnings, terminal exits) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
- ParseError: base type for user-input errors raised by a parse pass; carries a
  message plus read-only options and knows how to render itself with rich.
- ParserExit: the terminal outcome of --help/--version and the help command.
  It is not an error: it unwinds the whole parse so the embedding code can
  print-and-exit or just look at the text.
- InvalidNameLookupError: programmer error (querying an unregistered name).
  Deliberately outside the ParseError hierarchy so shells never swallow it.
- ParserWarning / AliasOverrideWarning: soft issues surfaced through `warnings`.
- trigger(): central entry point to surface a fault with render options.

Host configuration (read from __main__ at render time)
- __prog__: program label shown in headers (defaults to basename of sys.argv[0]).
- __codes__: mapping FaultCode -> label, overriding numeric ids.
- __styles__: mapping style-name -> rich style, overriding the palette.
"""
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, UnsetType

console = Console(stderr=True)
stdout = Console()


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - routing (1110x): UNRECOGNIZED_COMMAND
    - options/flags (1111x): UNRECOGNIZED_OPTION, MISSING_ARGUMENT, FLAG_ASSIGNMENT, EMPTY_VALUE
    - values (1112x): INVALID_VALUE_FORMAT
    - programmer errors (1190x): INVALID_NAME_LOOKUP
    - warnings (12xxx): ALIAS_OVERRIDE
    """
    # --- routing errors ---
    UNRECOGNIZED_COMMAND        = 11101

    # --- option/flag errors ---
    UNRECOGNIZED_OPTION         = 11111
    MISSING_ARGUMENT            = 11112
    FLAG_ASSIGNMENT             = 11113
    EMPTY_VALUE                 = 11114

    # --- value errors ---
    INVALID_VALUE_FORMAT        = 11121

    # --- programmer errors ---
    INVALID_NAME_LOOKUP         = 11901

    # --- warnings ---
    ALIAS_OVERRIDE              = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _prog():
    main = __import__("__main__")
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "argopt")


class ParseError(Exception):
    """
    base class for every user-input error raised while parsing.

    options
    - title, code, hint: rendering metadata supplied at the raise site.
    - colorful, fancy: rendering switches merged in by trigger().
    - any other key is free-form context (input, token, value, ...).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # green arrow
            "hint": "italic #9CE19C",  # green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"
        header = Text.assemble(
            "[ ",
            text(_prog(), "prog-name"),
            " — ",
            text(code, "code"),
            " | ",
            text(self.options.get("title", "error").title(), "error-title"),
            " ]"
        )
        message = text(self, "error-message")
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnrecognizedOptionError(ParseError): ...
class UnrecognizedCommandError(ParseError): ...
class MissingArgumentError(ParseError): ...
class FlagAssignmentError(ParseError): ...
class EmptyValueError(ParseError): ...
class InvalidValueFormatError(ParseError): ...


class InvalidNameLookupError(LookupError):
    """
    raised when the query API is asked about a name that was never registered.

    this is a contract violation by the calling code, not bad user input, so it
    is not a ParseError and invoke() does not render it.
    """

    def __init__(self, name, /):
        super().__init__("%r is not a registered flag or option name" % name)
        self.name = name
        self.code = FaultCode.INVALID_NAME_LOOKUP


class ParserExit(Exception):
    """
    terminal outcome of a parse: print `text` and stop with `status`.

    raised by the automatic --help/-h, --version/-v and `help <command>` handling.
    the parse pass is abandoned at every level, parents included.
    """

    def __init__(self, text="", /, status=0, **options):
        super().__init__(text)
        self.text = text
        self.status = status
        self.options = MappingProxyType(options)

    def __rich__(self):
        return Text(self.text)

    def __trigger__(self):
        if self.text:
            stdout.print(self, highlight=False, soft_wrap=True)
        sys.exit(self.status)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.text, self.status, **{**self.options, **overrides})


class ParserWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")


class AliasOverrideWarning(ParserWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given render options.

    contract
    - fault must provide __trigger__ and __replace__ methods.
    - options are merged into a copy of the fault via __replace__(**options)
      before triggering; the original fault is left untouched.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "ParseError",
    "UnrecognizedOptionError",
    "UnrecognizedCommandError",
    "MissingArgumentError",
    "FlagAssignmentError",
    "EmptyValueError",
    "InvalidValueFormatError",
    "InvalidNameLookupError",
    "ParserExit",
    "ParserWarning",
    "AliasOverrideWarning",
    "trigger",
)
