"""The configuration file stored in the user's profile."""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any

_APP = "photoflow"
_CONFIG_NAME = "photoflow.json"


def _user_config_dir() -> str | None:
    if sys.platform.startswith("win"):
        return os.environ.get("APPDATA") or None
    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        return os.path.join(home, "Library", "Application Support") if home else None
    d = os.environ.get("XDG_CONFIG_HOME", "")
    if d == "":
        home = os.environ.get("HOME")
        return os.path.join(home, ".config") if home else None
    return d if os.path.isabs(d) else None


def _user_cache_dir() -> str | None:
    if sys.platform.startswith("win"):
        return os.environ.get("LOCALAPPDATA") or None
    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        return os.path.join(home, "Library", "Caches") if home else None
    d = os.environ.get("XDG_CACHE_HOME", "")
    if d == "":
        home = os.environ.get("HOME")
        return os.path.join(home, ".cache") if home else None
    return d if os.path.isabs(d) else None


@dataclass
class Configuration:
    """Server connection settings."""

    api_url: str = ""
    server_url: str = ""
    api_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.api_url:
            out["APIURL"] = self.api_url
        if self.server_url:
            out["ServerURL"] = self.server_url
        out["APIKey"] = self.api_key
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Configuration":
        if not isinstance(data, dict):
            raise ValueError("configuration must be a JSON object")
        # JSON keys match field names case-insensitively, without underscores.
        known = {f.name.replace("_", ""): f.name for f in dataclasses.fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            attr = known.get(key.lower())
            if attr is None or value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"invalid value for {key!r}: {value!r}")
            values[attr] = value
        return cls(**values)

    def write(self, name: str) -> None:
        """Write the configuration to name, creating its directories."""
        directory = os.path.dirname(name)
        if directory:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        fd = os.open(name, os.O_CREAT | os.O_RDWR | os.O_TRUNC, 0o700)
        with open(fd, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")


def default_config_file() -> str:
    """Return the default configuration file, or a local one when no config dir is known."""
    config = _user_config_dir()
    if config is None:
        return "./" + _CONFIG_NAME
    return os.path.join(config, _APP, _CONFIG_NAME)


def config_read(name: str) -> Configuration:
    """Read the configuration file name; raise OSError or ValueError on failure."""
    with open(name, encoding="utf-8") as f:
        text = f.read()
    try:
        data, _ = json.JSONDecoder().raw_decode(text.lstrip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid configuration file {name}: {exc}") from exc
    return Configuration.from_dict(data)


def default_log_file() -> str:
    """Return a time stamped log file name in the user's cache directory."""
    f = datetime.now().strftime(f"{_APP}_%Y-%m-%d_%H-%M-%S.log")
    d = _user_cache_dir()
    if d is None:
        return f
    return os.path.join(d, _APP, f)


def make_dir_for_file(name: str) -> None:
    """Create every directory needed to write the file name."""
    os.makedirs(os.path.dirname(name) or ".", mode=0o700, exist_ok=True)