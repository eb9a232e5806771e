#!/usr/bin/env python3
"""
CLI for ysh.

Commands:
    repl   - Start the interactive shell (default)
    run    - Run a single command line
    parse  - Show how a command line is parsed
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__


def _fail(message):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _load_config(args):
    from .config import Config, ConfigError

    if args.config is None:
        path = None
    else:
        path = Path(args.config)
        if not path.exists():
            _fail(f"Config file not found: {path}")
    try:
        return Config.load(path)
    except ConfigError as err:
        _fail(err)


def _log_level(args, config):
    from .config import ConfigError, check_log_level

    if args.log_level is None:
        return config.log_level
    try:
        return check_log_level(args.log_level)
    except ConfigError as err:
        _fail(err)


def _dispatcher(config):
    from .shell import Dispatcher, State

    return Dispatcher(State.discover(config), config)


def cmd_repl(args, config):
    """Run the interactive shell."""
    from .shell import repl

    return repl(_dispatcher(config))


def cmd_run(args, config):
    """Run one command line and exit with its status."""
    dispatcher = _dispatcher(config)
    dispatcher.run_line(args.line)
    return dispatcher.state.last_status


def cmd_parse(args, config):
    """Print the parsed structure of a command line."""
    from .command import Builtin, Cd, WithEnv
    from .errors import ParseError

    print(f"Line: {args.line}")
    try:
        parsed = WithEnv.parse_from(args.line)
    except ParseError as err:
        print(f"Error [{err.kind.value}]: {err}")
        return 1

    print(f"Env: {len(parsed.env)}")
    for var in parsed.env:
        print(f"  {var.key} = {var.value}")

    cmd = parsed.cmd
    if isinstance(cmd, Builtin):
        print(f"Builtin: {cmd.name}")
        if isinstance(cmd, Cd):
            print(f"  path: {cmd.path}")
    else:
        print(f"Invoke: {cmd.command}")
        for i, arg in enumerate(cmd.iter_args()):
            print(f"  [{i}] {arg}")
        try:
            cmd.argv()
        except ParseError as err:
            print(f"Error [{err.kind.value}]: {err}")
            return 1
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="ysh - a small interactive shell",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", "-c", help="Config file path")
    parser.add_argument("--log-level", help="Logging level (overrides config)")

    subparsers = parser.add_subparsers(dest="command")

    # repl command
    p_repl = subparsers.add_parser("repl", help="Start the interactive shell")
    p_repl.set_defaults(func=cmd_repl)

    # run command
    p_run = subparsers.add_parser("run", help="Run a single command line")
    p_run.add_argument("line", help="Command line to run")
    p_run.set_defaults(func=cmd_run)

    # parse command
    p_parse = subparsers.add_parser("parse", help="Show how a line is parsed")
    p_parse.add_argument("line", help="Command line to parse")
    p_parse.set_defaults(func=cmd_parse)

    args = parser.parse_args(argv)
    config = _load_config(args)

    logging.basicConfig(
        level=_log_level(args, config),
        format="%(levelname)s %(name)s: %(message)s",
    )

    func = getattr(args, "func", cmd_repl)
    return func(args, config)


if __name__ == "__main__":
    sys.exit(main())
