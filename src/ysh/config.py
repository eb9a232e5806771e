"""
Shell configuration.

Read from a TOML file, by default ``~/.config/ysh.toml``:

    [settings]
    prompt = "{user}@{host} {pwd} $ "
    log_level = "WARNING"

    [env]
    EDITOR = "vi"
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomli
except ImportError:
    import tomllib as tomli  # Python 3.11+

DEFAULT_PATH = Path.home() / ".config" / "ysh.toml"
DEFAULT_PROMPT = "{user}@{host} {pwd} $ "


class ConfigError(ValueError):
    """A config file that cannot be used."""


def check_log_level(level: str) -> str:
    """Return ``level`` upper-cased, or raise ConfigError if logging has no such level."""
    level = str(level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level: {level}")
    return level


def check_prompt(prompt: str) -> str:
    """Raise ConfigError unless ``prompt`` formats with only user, host and pwd."""
    try:
        str(prompt).format(user="user", host="host", pwd=Path("/"))
    except (AttributeError, KeyError, IndexError, ValueError) as err:
        raise ConfigError(f"Invalid prompt {prompt!r}: {err}") from err
    return str(prompt)


@dataclass
class Config:
    """Shell configuration."""
    prompt: str = DEFAULT_PROMPT
    log_level: str = "WARNING"
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load config from TOML file. A missing default file means defaults.

        Raises ConfigError for malformed TOML, an unknown log level, or a
        prompt that does not format.
        """
        if path is None:
            if not DEFAULT_PATH.exists():
                return cls()
            path = DEFAULT_PATH

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as err:
                raise ConfigError(f"Invalid TOML in {path}: {err}") from err

        settings = data.get("settings", {})
        env = {str(key): str(value) for key, value in data.get("env", {}).items()}

        return cls(
            prompt=check_prompt(settings.get("prompt", DEFAULT_PROMPT)),
            log_level=check_log_level(settings.get("log_level", "WARNING")),
            env=env,
        )
