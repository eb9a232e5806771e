"""
Leading ``KEY=value`` assignments on a command line.

    [key=value ]* command text ...

Assignments are only recognized as an unbroken run at the front of the line.
Keys are bare words that run right up to the ``=``; values are a bare word,
a single-quoted string, or a double-quoted string.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from .errors import ParseError
from .text import Span
from .token import keyval, trim_start


@dataclass(frozen=True)
class EnvVar:
    """One ``key=value`` assignment, both sides borrowed from the line."""
    key: Span
    value: Span

    def __iter__(self) -> Iterator[Span]:
        yield self.key
        yield self.value


class EnvIter:
    """
    Iterate over the environment assignments at the front of a text.

    ``text`` always holds what has not been consumed yet. The first piece of
    text that is not a ``key=value`` pair ends the scan; the command proper
    starts there and no later assignment is looked for. That includes a value
    that fails to parse: in ``FOO="bar baz`` the quote never closes, so nothing
    is consumed and the whole text is left for the command.

    Example:
        >>> envs = EnvIter('KEY=val TEST="good work" echo $TEST')
        >>> [(str(k), str(v)) for k, v in envs]
        [('KEY', 'val'), ('TEST', 'good work')]
        >>> str(envs.text)
        ' echo $TEST'
    """

    def __init__(self, text: "str | Span"):
        self.text = Span.of(text)
        self._done = False

    def __iter__(self) -> "EnvIter":
        return self

    def __next__(self) -> EnvVar:
        if self._done:
            raise StopIteration
        try:
            rem, (key, value) = trim_start(keyval)(self.text)
        except ParseError:
            self._done = True
            raise StopIteration from None
        self.text = rem
        return EnvVar(key, value)


def scan_env(text: "str | Span") -> tuple[list[EnvVar], Span]:
    """Consume the leading assignments; return them and the remaining text."""
    envs = EnvIter(text)
    found = list(envs)
    return found, envs.text


def overlay(env: Iterable[EnvVar], base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Apply assignments over ``base`` in order. Later keys win."""
    merged = dict(base or {})
    for var in env:
        merged[str(var.key)] = str(var.value)
    return merged
