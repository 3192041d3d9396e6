"""Client configuration loaded from TOML."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = "./client.toml"

_KEY_FIELDS = ("private_key", "server_pub_key")


class ConfigError(ValueError):
    """The configuration is missing, malformed or has wrong values."""


_MISSING = object()


def _field(table: Mapping[str, Any], key: str, section: str, check, default=_MISSING):
    if key not in table:
        if default is _MISSING:
            raise ConfigError(f"missing field `{key}` in [{section}]")
        return default() if callable(default) else default
    value = table[key]
    check(value, f"{section}.{key}")
    return value


def _is_str(value, name):
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")


def _is_bool(value, name):
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be a boolean")


def _is_uint(value, name):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{name} must be a non-negative integer")


def _is_str_list(value, name):
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings")


def _is_table(value, name):
    if not isinstance(value, Mapping):
        raise ConfigError(f"{name} must be a table")


@dataclass
class MainConfig:
    address: str = "127.0.0.1:443"
    tun_name: str = "anet-client"
    manual_routing: bool = False
    route_for: list[str] = field(default_factory=list)
    exclude_route_for: list[str] = field(default_factory=list)
    dns_server_list: list[str] = field(
        default_factory=lambda: ["1.1.1.1", "8.8.8.8"]
    )


@dataclass
class ClientKeys:
    private_key: str = field(default_factory=str)
    server_pub_key: str = field(default_factory=str)


@dataclass
class StatsConfig:
    enabled: bool = False
    interval_minutes: int = 1


def _main_from(table: Mapping[str, Any]) -> MainConfig:
    s = "main"
    return MainConfig(
        address=_field(table, "address", s, _is_str),
        tun_name=_field(table, "tun_name", s, _is_str),
        manual_routing=_field(table, "manual_routing", s, _is_bool, False),
        route_for=list(_field(table, "route_for", s, _is_str_list, list)),
        exclude_route_for=list(_field(table, "exclude_route_for", s, _is_str_list, list)),
        dns_server_list=list(_field(table, "dns_server_list", s, _is_str_list, list)),
    )


def _keys_from(table: Mapping[str, Any]) -> ClientKeys:
    values = {name: _field(table, name, "keys", _is_str) for name in _KEY_FIELDS}
    return ClientKeys(**values)


def _stats_from(table: Mapping[str, Any]) -> StatsConfig:
    return StatsConfig(
        enabled=_field(table, "enabled", "stats", _is_bool),
        interval_minutes=_field(table, "interval_minutes", "stats", _is_uint),
    )


@dataclass
class CoreConfig:
    """Full client configuration; transport and stealth sections are kept as tables."""

    main: MainConfig = field(default_factory=MainConfig)
    keys: ClientKeys = field(default_factory=ClientKeys)
    quic_transport: dict[str, Any] = field(default_factory=dict)
    stats: StatsConfig = field(default_factory=StatsConfig)
    stealth: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CoreConfig":
        """Build a configuration from parsed TOML data; absent sections take defaults."""
        _is_table(data, "config")

        def section(name, build, default):
            if name not in data:
                return default()
            _is_table(data[name], name)
            return build(data[name])

        return cls(
            main=section("main", _main_from, MainConfig),
            keys=section("keys", _keys_from, ClientKeys),
            quic_transport=section("quic_transport", dict, dict),
            stats=section("stats", _stats_from, StatsConfig),
            stealth=section("stealth", dict, dict),
        )


def parse_config(text: str) -> CoreConfig:
    """Parse TOML text into a configuration."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML: {exc}") from exc
    return CoreConfig.from_dict(data)


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> CoreConfig:
    """Read and parse the configuration file at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Cannot find client config file in {path}, use '-c' or '--cfg', "
            "'./anet-client -c /home/anet/anet/config.toml' for example"
        ) from exc
    return parse_config(text)