"""
Running parsed lines.

State holds what the shell knows about its session (working directory, user,
host, prompt). It is built once at startup and handed to the Dispatcher,
which executes one parsed line at a time. Nothing that goes wrong inside a
line ends the session; only ``exit`` or end of input does.
"""

import getpass
import logging
import os
import socket
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, TextIO

from .command import Cd, Clear, Exit, Invoke, WithEnv
from .config import DEFAULT_PROMPT, Config
from .env import overlay
from .errors import ParseError

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\x1b[2J\x1b[H"
STATUS_NOT_FOUND = 127
STATUS_NOT_EXECUTABLE = 126


class Outcome(Enum):
    CONTINUE = "continue"
    EXIT = "exit"


@dataclass
class State:
    """Session state for one shell."""
    pwd: Path
    host: str
    user: str
    prompt_format: str
    last_status: int = 0

    @classmethod
    def discover(cls, config: Config) -> "State":
        """Build state from the running process and export HOST and USER."""
        host = socket.gethostname()
        user = getpass.getuser()
        os.environ["HOST"] = host
        os.environ["USER"] = user
        return cls(
            pwd=Path.cwd(),
            host=host,
            user=user,
            prompt_format=config.prompt,
        )

    @property
    def prompt(self) -> str:
        """The formatted prompt. A format that does not render falls back to the default."""
        fields = {"user": self.user, "host": self.host, "pwd": self.pwd}
        try:
            return self.prompt_format.format(**fields)
        except (AttributeError, KeyError, IndexError, ValueError) as err:
            logger.warning("bad prompt format %r: %s", self.prompt_format, err)
            return DEFAULT_PROMPT.format(**fields)

    def cd(self, to: Path):
        """Change directory, relative to ``pwd``. Raises OSError on failure."""
        target = (self.pwd / to).resolve(strict=True)
        if not target.is_dir():
            raise NotADirectoryError(f"cd: not a directory: {to}")
        os.chdir(target)
        self.pwd = target


class Dispatcher:
    """
    Executes parsed lines against a State.

    Args:
        state: Session state, mutated by ``cd``
        config: Extra environment for invoked programs comes from here
        stdout, stderr: Where the shell itself writes
        runner: Runs an external program, ``subprocess.run`` compatible
    """

    def __init__(
        self,
        state: State,
        config: Config | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.state = state
        self.config = config or Config()
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.runner = runner

    def run_line(self, line: str) -> Outcome:
        """Parse and dispatch one line. Errors are reported, never raised."""
        if not line.strip():
            return Outcome.CONTINUE
        try:
            parsed = WithEnv.parse_from(line)
            return self.dispatch(parsed)
        except ParseError as err:
            logger.debug("rejected line %r: %s (%s)", line, err, err.kind.value)
            self._error(str(err))
        except OSError as err:
            self._error(str(err))
        self.state.last_status = 1
        return Outcome.CONTINUE

    def dispatch(self, parsed: WithEnv) -> Outcome:
        cmd = parsed.cmd
        if isinstance(cmd, Invoke):
            self.state.last_status = self._invoke(cmd, parsed)
            return Outcome.CONTINUE

        if parsed.env:
            logger.debug("ignoring %d env assignments for builtin %s", len(parsed.env), cmd.name)

        if isinstance(cmd, Exit):
            return Outcome.EXIT
        if isinstance(cmd, Clear):
            self.stdout.write(CLEAR_SCREEN)
            self.stdout.flush()
        elif isinstance(cmd, Cd):
            self.state.cd(cmd.as_path())
        self.state.last_status = 0
        return Outcome.CONTINUE

    def _invoke(self, cmd: Invoke, parsed: WithEnv) -> int:
        argv = cmd.argv()
        env = overlay(parsed.env, {**os.environ, **self.config.env})
        logger.debug("invoking %s with %d env overrides", argv, len(parsed.env))
        try:
            result = self.runner(argv, env=env, cwd=self.state.pwd)
        except FileNotFoundError:
            self._error(f"command not found: {cmd.command}")
            return STATUS_NOT_FOUND
        except PermissionError as err:
            logger.warning("could not start %s: %s", argv[0], err)
            self._error(f"permission denied: {cmd.command}")
            return STATUS_NOT_EXECUTABLE
        return result.returncode

    def _error(self, message: str):
        print(f"ysh: {message}", file=self.stderr)


def repl(dispatcher: Dispatcher, stdin: TextIO | None = None) -> int:
    """
    Read, parse and dispatch lines until ``exit`` or end of input.

    Returns the status of the last command.
    """
    stdin = stdin or sys.stdin
    out = dispatcher.stdout
    while True:
        out.write(dispatcher.state.prompt)
        out.flush()
        line = stdin.readline()
        if not line:
            out.write("\n")
            break
        if dispatcher.run_line(line) is Outcome.EXIT:
            break
    return dispatcher.state.last_status
