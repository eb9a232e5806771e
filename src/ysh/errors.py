"""
Errors raised while turning a line into a command.

Every tokenizer and parser raises a ParseError subclass. The kind tells a
caller whether the line was empty, unfinished, or simply wrong, which is all
a REPL needs to decide what to print.
"""

from enum import Enum

from .text import Span


class ErrorKind(Enum):
    NO_INPUT = "no_input"
    INCOMPLETE = "incomplete"
    UNRECOGNIZED = "unrecognized"
    OTHER = "other"


class ParseError(Exception):
    """Base class for every failure to parse a line."""
    kind = ErrorKind.OTHER
    default_message = "parse error"

    def __init__(self, message: str | None = None, *, at: Span | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.at = at


class NoInput(ParseError):
    kind = ErrorKind.NO_INPUT
    default_message = "more input required"


class Incomplete(ParseError):
    """The text opened a form (quote, bracket) and ended before closing it."""
    kind = ErrorKind.INCOMPLETE
    default_message = "unterminated input"


class Unrecognized(ParseError):
    kind = ErrorKind.UNRECOGNIZED
    default_message = "not recognized"


class BuiltinError(ParseError):
    """A builtin was named but its arguments are wrong."""


class NoPath(BuiltinError):
    default_message = "cd: no path provided"


class TooManyArguments(BuiltinError):
    def __init__(self, builtin: str, *, at: Span | None = None):
        super().__init__(f"{builtin}: too many arguments", at=at)
        self.builtin = builtin
