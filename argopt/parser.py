"""
Argopt parser layer: register, parse, and query command-line arguments.

What this module provides
- Parser: owns an option registry (alias -> shared Option record), a command
  registry (alias -> child Parser), and the positional arguments found by the
  last parse pass.
- invoke(parser, prompt): convenience runner that feeds sys.argv (or a prompt)
  to a parser and turns faults into printed output and an exit status.

Token grammar (first match wins)
- "--"             terminator: every remaining token is positional.
- "--name=value"   long equals-form; "--name" takes the next token for valued options.
- "-" / "-<digit>" positional (stdin marker, negative numbers).
- "-n=value"       short equals-form.
- "-abc"           condensed short options; each valued letter takes the next stream token.
- "<command>"      command alias, only before the first positional; the child
                   parser consumes the rest of the stream.
- "help <command>" automatic help command (when enabled).
- anything else    positional.

Quick start
    from argopt import Parser, invoke

    parser = Parser("Usage: tool [--verbose] [--jobs N] FILE...", "1.0.0")
    parser.flag("verbose v")
    parser.integer("jobs j", 1)

    build = parser.command("build b")
    build.flag("release r")

    invoke(parser)  # reads sys.argv[1:]
    if parser.command_name:
        print(parser.command_parser.found("release"))

Design notes
- Aliases of one option share a single record, so activating "-v" is visible
  through "verbose" as well.
- Faults are raised, never printed here: the first one aborts the pass.
  --help/--version raise ParserExit so embedders decide whether to exit.
"""
import difflib
import shlex
import sys
import warnings
from collections.abc import Iterable

from rich.box import ROUNDED
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .faults import *
from .options import Kind, Option, parseint, parsefloat
from .stream import TokenStream
from .utils import *


class Parser:
    """
    Recursive command-line parser.

    Responsibilities
    - Registration: flag()/string()/integer()/floating() add options under
      space-separated aliases; command() adds a child parser.
    - Parsing: parse() runs the single left-to-right dispatch pass.
    - Querying: count()/found()/value()/values() and the kind-specific
      accessors read the shared option records after a pass.

    Lifecycle
    - Register everything first, then parse. State is not reset between
      passes: counts, values and positionals accumulate.
    """

    args = mirror("args")

    def __init__(self, /, helptext=Unset, version=Unset, *, callback=Unset, enable_help_command=False):
        self._options = {}
        self._commands = {}
        self._args = []
        self._command_name = Unset
        self._command_parser = Unset
        self.helptext = helptext
        self.version = version
        self.callback = callback
        self.enable_help_command = enable_help_command

    # ------------------------------------------------------------------ #
    #  configuration
    # ------------------------------------------------------------------ #

    @property
    def helptext(self):
        """
        Text printed by --help/-h and by `help <command>` on a parent.

        A non-empty value enables the automatic --help flag; -h is only used
        when no registered flag or option claims it.
        """
        return coalesce(self._helptext)

    @helptext.setter
    def helptext(self, helptext):
        if not isinstance(helptext, str | UnsetType | None):
            raise TypeError("parser helptext must be a string")
        self._helptext = helptext

    @property
    def version(self):
        """
        Text printed by --version/-v; a non-empty value enables both.
        """
        return coalesce(self._version)

    @version.setter
    def version(self, version):
        if not isinstance(version, str | UnsetType | None):
            raise TypeError("parser version must be a string")
        self._version = version

    @property
    def callback(self):
        return coalesce(self._callback)

    @callback.setter
    def callback(self, callback):
        if callback is not Unset and callback is not None and not callable(callback):
            raise TypeError("parser callback must be callable")
        self._callback = callback

    # ------------------------------------------------------------------ #
    #  registration
    # ------------------------------------------------------------------ #

    def _register(self, kind, aliases, fallback):
        option = Option(kind, fallback)
        for alias in splitnames(aliases):
            if alias in self._options:
                warnings.warn(AliasOverrideWarning(
                    "alias %r was already registered; it now refers to a new %s" % (alias, kind.value),
                    code=FaultCode.ALIAS_OVERRIDE,
                    alias=alias,
                ), stacklevel=3)
            self._options[alias] = option
        return option

    def flag(self, aliases, /):
        """
        Register a presence-only flag under space-separated aliases (e.g. "verbose v").
        """
        return self._register(Kind.FLAG, aliases, False)

    def string(self, aliases, /, fallback=""):
        return self._register(Kind.STRING, aliases, fallback)

    def integer(self, aliases, /, fallback=0):
        return self._register(Kind.INTEGER, aliases, fallback)

    def floating(self, aliases, /, fallback=0.0):
        return self._register(Kind.FLOAT, aliases, fallback)

    def command(self, aliases, /, helptext=Unset, version=Unset, *, callback=Unset):
        """
        Register a subcommand and return its child parser.

        Behavior
        - Every alias maps to the same child parser.
        - Turns on the automatic `help <command>` pseudo-command; set
          enable_help_command back to False afterwards to opt out.
        - callback(name, child) runs right after the child finished parsing,
          receiving the alias exactly as it appeared on the command line.
        """
        child = type(self)(helptext, version, callback=callback)
        for alias in splitnames(aliases):
            if alias in self._commands:
                warnings.warn(AliasOverrideWarning(
                    "command %r was already registered; it now refers to a new parser" % alias,
                    code=FaultCode.ALIAS_OVERRIDE,
                    alias=alias,
                ), stacklevel=2)
            self._commands[alias] = child
        self.enable_help_command = True
        return child

    # ------------------------------------------------------------------ #
    #  queries
    # ------------------------------------------------------------------ #

    def _lookup(self, name, kind=Unset, /):
        try:
            option = self._options[name]
        except (KeyError, TypeError):
            raise InvalidNameLookupError(name) from None
        if kind is not Unset and option.kind is not kind:
            raise TypeError("%r is a %s, not a %s option" % (name, option.kind.value, kind.value))
        return option

    def count(self, name, /):
        return self._lookup(name).count

    def found(self, name, /):
        return self._lookup(name).found

    def value(self, name, /):
        """
        Return the last value of an option, or its fallback when it never
        occurred. Flags report their presence as a bool.
        """
        return self._lookup(name).value

    def values(self, name, /):
        return self._lookup(name).values

    def string_value(self, name, /):
        return self._lookup(name, Kind.STRING).value

    def int_value(self, name, /):
        return self._lookup(name, Kind.INTEGER).value

    def float_value(self, name, /):
        return self._lookup(name, Kind.FLOAT).value

    def string_values(self, name, /):
        return self._lookup(name, Kind.STRING).values

    def int_values(self, name, /):
        return self._lookup(name, Kind.INTEGER).values

    def float_values(self, name, /):
        return self._lookup(name, Kind.FLOAT).values

    def args_as_ints(self):
        """
        Convert every positional argument with the integer grammar.

        All or nothing: the first malformed token raises InvalidValueFormatError.
        """
        return [parseint(arg) for arg in self._args]

    def args_as_floats(self):
        return [parsefloat(arg) for arg in self._args]

    @property
    def command_name(self):
        return coalesce(self._command_name)

    @property
    def command_parser(self):
        return coalesce(self._command_parser)

    # ------------------------------------------------------------------ #
    #  parsing
    # ------------------------------------------------------------------ #

    def parse(self, tokens, /):
        """
        Parse a sequence of argument tokens (program name excluded).

        raises
        - ParseError subclasses on the first invalid token.
        - ParserExit when a help/version action fires, at any depth.
        - whatever a command callback raises.
        """
        self._parsestream(tokens if isinstance(tokens, TokenStream) else TokenStream(tokens))

    def _helper(self):
        raise ParserExit((self.helptext or "").strip(), kind="help")

    def _versioner(self):
        raise ParserExit((self.version or "").strip(), kind="version")

    def _hint(self, names, input):
        """
        suggest the closest registered name, falling back to --help when available.
        """
        if suggestions := difflib.get_close_matches(input, names, 1):
            return "did you mean %r?" % suggestions[0]
        if self.helptext:
            return "run with --help to see what is accepted"
        return None

    def _parsestream(self, stream):
        while stream.has_next():
            token = stream.next()

            if token == "--":
                self._args.extend(stream)
                return

            if token.startswith("--"):
                self._parselong(token[2:], stream)
                continue

            if token.startswith("-"):
                if token == "-" or token[1].isdecimal():
                    self._args.append(token)
                else:
                    self._parseshort(token[1:], stream)
                continue

            if not self._args and (child := self._commands.get(token)) is not None:
                self._command_name = token
                self._command_parser = child
                child._parsestream(stream)
                if child.callback is not None:
                    child.callback(token, child)
                return

            if not self._args and self.enable_help_command and token == "help":
                if not stream.has_next():
                    raise MissingArgumentError(
                        "help requires a command name",
                        title="missing command name",
                        code=FaultCode.MISSING_ARGUMENT,
                        hint="name the command to describe (for example: help <command>)",
                        input=token,
                    )
                if (child := self._commands.get(name := stream.next())) is not None:
                    child._helper()
                raise UnrecognizedCommandError(
                    "help: %r is not a recognized command name" % name,
                    title="unknown command",
                    code=FaultCode.UNRECOGNIZED_COMMAND,
                    hint=self._hint(list(self._commands), name),
                    input=name,
                )

            self._args.append(token)

    def _parselong(self, name, stream):
        if "=" in name:
            return self._parseequals("--", name)

        if (option := self._options.get(name)) is not None:
            option.count += 1
            if option.kind is Kind.FLAG:
                return
            if not stream.has_next():
                raise MissingArgumentError(
                    "missing argument for option '--%s'" % name,
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    hint="pass a value after the option (for example: --%s <value>)" % name,
                    input="--" + name,
                )
            return option.try_set_value(stream.next())

        if name == "help" and self.helptext:
            self._helper()

        if name == "version" and self.version:
            self._versioner()

        raise UnrecognizedOptionError(
            "'--%s' is not a recognized flag or option name" % name,
            title="unknown option or flag",
            code=FaultCode.UNRECOGNIZED_OPTION,
            hint=self._hint(["--" + alias for alias in self._options], "--" + name),
            input="--" + name,
        )

    def _parseshort(self, bundle, stream):
        if "=" in bundle:
            return self._parseequals("-", bundle)

        # each character is an alias of its own; valued ones take the next stream token
        for char in bundle:
            if (option := self._options.get(char)) is not None:
                option.count += 1
                if option.kind is Kind.FLAG:
                    continue
                if stream.has_next():
                    option.try_set_value(stream.next())
                    continue
                if len(bundle) > 1:
                    message = "missing argument for option %r in '-%s'" % (char, bundle)
                else:
                    message = "missing argument for option '-%s'" % char
                raise MissingArgumentError(
                    message,
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    hint="pass a value after the option (for example: -%s <value>)" % char,
                    input="-" + char,
                    token="-" + bundle,
                )

            if char == "h" and self.helptext:
                self._helper()

            if char == "v" and self.version:
                self._versioner()

            if len(bundle) > 1:
                message = "%r in '-%s' is not a recognized flag or option name" % (char, bundle)
            else:
                message = "'-%s' is not a recognized flag or option name" % char
            raise UnrecognizedOptionError(
                message,
                title="unknown option or flag",
                code=FaultCode.UNRECOGNIZED_OPTION,
                hint=self._hint(["-" + alias for alias in self._options if len(alias) == 1], "-" + char),
                input="-" + char,
                token="-" + bundle,
            )

    def _parseequals(self, prefix, argument):
        name, value = argument.split("=", 1)
        input = prefix + name

        if (option := self._options.get(name)) is None:
            raise UnrecognizedOptionError(
                "%r is not a recognized option name" % input,
                title="unknown option",
                code=FaultCode.UNRECOGNIZED_OPTION,
                hint=self._hint([prefix + alias for alias in self._options], input),
                input=input,
            )

        if option.kind is Kind.FLAG:
            raise FlagAssignmentError(
                "invalid value assignment for flag %r" % input,
                title="flag cannot take a value",
                code=FaultCode.FLAG_ASSIGNMENT,
                hint="remove everything from '=' (for example: %s)" % input,
                input=input,
            )

        if not value:
            raise EmptyValueError(
                "missing value for %r" % input,
                title="empty value",
                code=FaultCode.EMPTY_VALUE,
                hint="add a value after '=' (for example: %s=<value>)" % input,
                input=input,
            )

        option.try_set_value(value)
        option.count += 1

    # ------------------------------------------------------------------ #
    #  rendering
    # ------------------------------------------------------------------ #

    def __str__(self):
        lines = ["Options:"]
        if self._options:
            for name in sorted(self._options):
                option = self._options[name]
                if option.kind is Kind.FLAG:
                    values = str(option.count)
                else:
                    values = "(%s) %s" % (option.fallback, option.values)
                lines.append("  %s [%s]: %s" % (name, option.kind.value, values))
        else:
            lines.append("  [none]")

        lines.append("\nArguments:")
        if self._args:
            lines.extend("  %s" % arg for arg in self._args)
        else:
            lines.append("  [none]")

        lines.append("\nCommand:")
        lines.append("  %s" % coalesce(self._command_name, "[none]"))

        return "\n".join(lines)

    def __rich__(self):
        options = Table(title="options", box=ROUNDED, title_justify="left")
        for column in ("alias", "kind", "count", "values", "fallback"):
            options.add_column(column)
        for name in sorted(self._options):
            option = self._options[name]
            if option.kind is Kind.FLAG:
                options.add_row(name, option.kind.value, str(option.count), "", "")
            else:
                options.add_row(name, option.kind.value, str(option.count), repr(option.values), repr(option.fallback))

        arguments = Text(" ".join(map(shlex.quote, self._args)) or "[none]")
        command = Text(coalesce(self._command_name, "[none]"))

        return Group(
            options,
            Text.assemble(("arguments: ", "bold"), arguments),
            Text.assemble(("command: ", "bold"), command),
        )

    def __repr__(self):
        return "%s(options=%d, commands=%d, args=%r)" % (
            type(self).__name__, len(self._options), len(self._commands), self._args
        )


def invoke(parser, prompt=Unset, /, *, colorful=True, fancy=False):
    """
    Run a parser as the outer CLI shell.

    Parameters
    - parser: Parser
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string, split via shlex.split.
      • Iterable[str]: pre-tokenized sequence, used as is.
    - colorful / fancy: rendering switches for error output.

    Behavior
    - ParserExit: prints its text to stdout and exits with its status (0).
    - ParseError: renders the fault to stderr and exits with status 1.
    - Otherwise returns the parser for chaining.

    Raises
    - TypeError when parser is not a Parser or prompt has an invalid shape.
    """
    if not isinstance(parser, Parser):
        raise TypeError("invoke() first argument must be a parser")

    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("invoke() argument must be a string or an iterable of strings")
    else:
        raise TypeError("invoke() argument must be a string or an iterable of strings")

    try:
        parser.parse(tokens)
    except (ParseError, ParserExit) as fault:
        trigger(fault, colorful=colorful, fancy=fancy)

    return parser


__all__ = (
    "Parser",
    "invoke",
)
