"""Persisted settings of the desktop client."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path

SETTINGS_PATH = "anet_settings.json"


@dataclass
class AppSettings:
    """Remembers the last configuration file the user opened."""

    last_config_path: str | None = None

    @classmethod
    def load(cls, path: str | Path = SETTINGS_PATH) -> "AppSettings":
        """Read settings from ``path``; any problem yields the defaults."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return cls()
        if not isinstance(data, dict):
            return cls()
        value = data.get("last_config_path")
        if value is not None and not isinstance(value, str):
            return cls()
        return cls(last_config_path=value)

    def save(self, path: str | Path = SETTINGS_PATH) -> None:
        """Write settings as pretty JSON; write failures are ignored."""
        try:
            Path(path).write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        except OSError:
            pass