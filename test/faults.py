"""
Faults module and invoke() behavioral tests (rendering, codes, exit statuses).

Scope
- Validate ParseError metadata (message, code, read-only options) and rich rendering.
- Validate host overrides read from __main__ (__codes__, __prog__).
- Validate invoke(): prompt shapes, exit status 0 on help, 1 on parse errors.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with redirected std streams; rich writes plain text to them.
"""

from __future__ import annotations

import io
import sys
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase, mock

from rich.console import Console

from argopt import Parser, invoke, trigger
from argopt.faults import (
    FaultCode,
    ParseError,
    ParserExit,
    UnrecognizedOptionError,
    InvalidNameLookupError,
)


def _render(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestParseError(TestCase):
    """ParseError carries message and options and renders itself."""

    def setUp(self):
        self.error = UnrecognizedOptionError(
            "'--nope' is not a recognized flag or option name",
            title="unknown option or flag",
            code=FaultCode.UNRECOGNIZED_OPTION,
            hint="did you mean '--note'?",
            input="--nope",
        )

    def testMessageAndCode(self):
        self.assertEqual(str(self.error), "'--nope' is not a recognized flag or option name")
        self.assertIs(self.error.code, FaultCode.UNRECOGNIZED_OPTION)
        self.assertIsInstance(self.error, ParseError)

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            self.error.options["input"] = "--other"

    def testReplaceMergesOptions(self):
        replaced = self.error.__replace__(colorful=False)
        self.assertIsNot(replaced, self.error)
        self.assertIs(type(replaced), UnrecognizedOptionError)
        self.assertFalse(replaced.options["colorful"])
        self.assertNotIn("colorful", self.error.options)

    def testPlainRendering(self):
        with mock.patch.object(sys.modules["__main__"], "__prog__", "tool", create=True):
            output = _render(self.error.__replace__(colorful=False))
        self.assertIn("[ tool — 11111 | Unknown Option Or Flag ]", output)
        self.assertIn("is not a recognized flag or option name", output)
        self.assertIn("→ did you mean '--note'?", output)

    def testFancyRendering(self):
        output = _render(self.error.__replace__(colorful=False, fancy=True))
        self.assertIn("is not a recognized flag or option name", output)
        self.assertIn("╭", output)

    def testHostCodeLabels(self):
        with mock.patch.object(sys.modules["__main__"], "__codes__", {FaultCode.UNRECOGNIZED_OPTION: "E-UNK"}, create=True):
            self.assertEqual(FaultCode.UNRECOGNIZED_OPTION.normalize(), "E-UNK")
            self.assertEqual(FaultCode.EMPTY_VALUE.normalize(), str(FaultCode.EMPTY_VALUE.value))

    def testNameLookupIsNotAParseError(self):
        error = InvalidNameLookupError("nope")
        self.assertNotIsInstance(error, ParseError)
        self.assertIsInstance(error, LookupError)
        self.assertEqual(error.name, "nope")


class TestTrigger(TestCase):
    """trigger() surfaces faults through __replace__ and __trigger__."""

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testParseErrorExitsWithOne(self):
        error = ParseError("bad input", code=FaultCode.MISSING_ARGUMENT, title="missing argument")
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(error, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("bad input", stderr.getvalue())

    def testParserExitPrintsText(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            trigger(ParserExit("Usage: tool"))
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue().strip(), "Usage: tool")


class TestInvoke(TestCase):
    """invoke() as the outer CLI shell."""

    def setUp(self):
        self.parser = Parser("Usage: tool [--count N]", "2.0.0")
        self.parser.integer("count c", 1)

    def testStringPrompt(self):
        self.assertIs(invoke(self.parser, "--count 3 'a b'"), self.parser)
        self.assertEqual(self.parser.int_value("count"), 3)
        self.assertEqual(self.parser.args, ["a b"])

    def testIterablePromptKeepsTokensVerbatim(self):
        invoke(self.parser, ("-c", "4", "", " x "))
        self.assertEqual(self.parser.int_value("c"), 4)
        self.assertEqual(self.parser.args, ["", " x "])

    def testArgvPrompt(self):
        with mock.patch.object(sys, "argv", ["tool", "-c", "9", "file"]):
            invoke(self.parser)
        self.assertEqual(self.parser.int_value("count"), 9)
        self.assertEqual(self.parser.args, ["file"])

    def testInvalidPrompt(self):
        with self.assertRaises(TypeError):
            invoke(self.parser, 42)
        with self.assertRaises(TypeError):
            invoke(self.parser, ["--count", 3])
        with self.assertRaises(TypeError):
            invoke(object(), "x")

    def testVersionExitsWithZero(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            invoke(self.parser, "--version")
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue().strip(), "2.0.0")

    def testLongHelpLinesAreNotWrapped(self):
        helptext = "Usage: tool " + "x" * 120
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit):
            invoke(Parser(helptext), ["--help"])
        self.assertEqual(stdout.getvalue(), helptext + "\n")

    def testParseErrorExitsWithOne(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            invoke(self.parser, "--count nope", colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("cannot parse 'nope' as an integer", stderr.getvalue())

    def testNameLookupErrorsAreNotHandled(self):
        invoke(self.parser, "")
        with self.assertRaises(InvalidNameLookupError):
            self.parser.count("missing")


if __name__ == "__main__":
    unittest.main()
