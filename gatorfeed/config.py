"""Reading and writing the per-user JSON configuration file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = ".gatorconfig.json"


def config_file_path() -> Path:
    """Return the location of the configuration file in the home directory."""
    return Path.home() / CONFIG_FILE_NAME


@dataclass
class Config:
    """Database location and the name of the user currently logged in."""

    db_url: str = ""
    current_user_name: str = ""
    path: Path | None = field(default=None, repr=False, compare=False)

    def set_user(self, user_name: str) -> None:
        """Make ``user_name`` the current user and save the configuration."""
        self.current_user_name = user_name
        target = self.path if self.path is not None else config_file_path()
        payload = {"db_url": self.db_url, "current_user_name": self.current_user_name}
        Path(target).write_text(
            json.dumps(payload, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"config field {key!r} must be a string")
    return value


def read(path: str | Path | None = None) -> Config:
    """Load the configuration from ``path``, or from the default location.

    Raises ``OSError`` if the file cannot be read and ``ValueError`` if its
    contents are not a valid configuration.
    """
    target = Path(path) if path is not None else config_file_path()
    data = json.loads(target.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("config file must hold a JSON object")
    return Config(
        db_url=_string_field(data, "db_url"),
        current_user_name=_string_field(data, "current_user_name"),
        path=target,
    )