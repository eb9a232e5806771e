"""ysh: a small interactive shell and its command-line parser."""

__version__ = "0.1.0"

from .command import (
    ArgsIter,
    Builtin,
    Cd,
    Clear,
    Cmd,
    Exit,
    Invoke,
    WithEnv,
    parse,
    parse_cmd,
)
from .env import EnvIter, EnvVar, scan_env
from .errors import (
    BuiltinError,
    ErrorKind,
    Incomplete,
    NoInput,
    NoPath,
    ParseError,
    TooManyArguments,
    Unrecognized,
)
from .text import Span
