"""
Commands assembled from a tokenized line.

A line is parsed into a WithEnv: the leading environment assignments plus a
Cmd. A Cmd is either a Builtin the shell runs itself or an Invoke naming an
external program. Builtins are matched first, so ``cd`` can never reach an
executable of the same name.

Every type here has a ``parse_from(text)`` classmethod; ``parse`` is the
generic entry point.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Union

from .env import EnvVar, scan_env
from .errors import NoInput, NoPath, ParseError, TooManyArguments, Unrecognized
from .text import Span
from .token import span, trim_start

logger = logging.getLogger(__name__)

_argument = trim_start(span)


class ArgsIter:
    """
    Lazy iterator over the argument tokens left in a text.

    The iterator owns a cursor, ``text``, and advances it one token per step.
    ``copy()`` gives an independent iterator starting at the same position.
    Iteration ends when only whitespace is left or a token fails to parse;
    in the second case the failure is kept in ``error``.
    """

    def __init__(self, text: "str | Span"):
        self.text = Span.of(text)
        self.error: ParseError | None = None

    def __iter__(self) -> "ArgsIter":
        return self

    def __next__(self) -> Span:
        if self.text.is_blank():
            raise StopIteration
        try:
            self.text, arg = _argument(self.text)
        except ParseError as err:
            self.error = err
            raise StopIteration from None
        return arg

    def copy(self) -> "ArgsIter":
        return ArgsIter(self.text)

    __copy__ = copy

    def __repr__(self) -> str:
        return f"ArgsIter({str(self.text)!r})"


class Builtin:
    """Commands implemented by the shell itself."""

    name = ""

    @classmethod
    def parse_from(cls, text: "str | Span") -> "Builtin":
        args = ArgsIter(text)
        name = next(args, None)
        if name is None:
            raise args.error or NoInput("no command given", at=args.text)

        parser = BUILTINS.get(str(name))
        if parser is None:
            raise Unrecognized(f"{name}: not a builtin", at=name)
        return parser(name, args)


@dataclass(frozen=True)
class Clear(Builtin):
    name = "clear"


@dataclass(frozen=True)
class Cd(Builtin):
    name = "cd"
    path: Span

    def as_path(self) -> Path:
        return Path(str(self.path))


@dataclass(frozen=True)
class Exit(Builtin):
    name = "exit"


def _rest(args: ArgsIter) -> list[Span]:
    rest = list(args)
    if args.error is not None:
        raise args.error
    return rest


def _no_arguments(builtin: type[Builtin]) -> Callable[[Span, ArgsIter], Builtin]:
    def parse(name: Span, args: ArgsIter) -> Builtin:
        if _rest(args):
            raise TooManyArguments(builtin.name, at=name)
        return builtin()
    return parse


def _cd(name: Span, args: ArgsIter) -> Cd:
    rest = _rest(args)
    if not rest:
        raise NoPath(at=name)
    if len(rest) > 1:
        raise TooManyArguments("cd", at=name)
    return Cd(rest[0])


BUILTINS: dict[str, Callable[[Span, ArgsIter], Builtin]] = {
    "clear": _no_arguments(Clear),
    "cd": _cd,
    "exit": _no_arguments(Exit),
}


@dataclass
class Invoke:
    """An external program and its (lazy) arguments."""
    command: Span
    args: ArgsIter

    @classmethod
    def parse_from(cls, text: "str | Span") -> "Invoke":
        args = ArgsIter(text)
        command = next(args, None)
        if command is None:
            raise args.error or NoInput("no command given", at=args.text)
        return cls(command=command, args=args)

    def iter_args(self) -> Iterator[Span]:
        """Iterate the arguments without moving this command's own cursor."""
        return self.args.copy()

    def argv(self) -> list[str]:
        """
        Materialize ``[command, *args]`` for process execution.

        Raises the tokenizer's error if the arguments stopped on bad syntax
        rather than at the end of the line.
        """
        args = self.args.copy()
        argv = [str(self.command)] + [str(arg) for arg in args]
        if args.error is not None:
            raise args.error
        return argv

    def __str__(self) -> str:
        return " ".join([str(self.command)] + [str(arg) for arg in self.iter_args()])


Cmd = Union[Builtin, Invoke]


def parse_cmd(text: "str | Span") -> Cmd:
    """
    Parse the command proper: a builtin if the name is one, else an Invoke.

    Only an unrecognized builtin name falls through to Invoke. A builtin
    given the wrong arguments raises its own error.
    """
    try:
        return Builtin.parse_from(text)
    except Unrecognized as err:
        logger.debug("not a builtin (%s), parsing as invocation", err)
    return Invoke.parse_from(text)


@dataclass
class WithEnv:
    """
    A full line: environment assignments followed by a command.

    Covers forms such as ``FOO=foo BAR=bar command args...``.
    """
    cmd: Cmd
    env: list[EnvVar] = field(default_factory=list)

    @classmethod
    def parse_from(cls, text: "str | Span") -> "WithEnv":
        env, rest = scan_env(text)
        return cls(cmd=parse_cmd(rest), env=env)


def parse(text: "str | Span", into=WithEnv):
    """Parse ``text`` into any of the command types (default: a full line)."""
    return into.parse_from(text)
