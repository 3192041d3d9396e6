# anet

Building blocks for the ANet VPN client and its access-control service.

The package covers:

- **Identities** — Ed25519 key pairs and their short fingerprints (`anet.keygen`).
- **Access control** — a user table backed by SQLite (`anet.users`) and a small
  WSGI application that answers "is this fingerprint allowed?", guarded by an
  `X-Auth-Key` header (`anet.access`).
- **Client configuration** — TOML client configs (`anet.config`), plus the
  persisted settings of the desktop client (`anet.settings`).
- **Events** — a process-wide event hook for status, warning and error
  messages (`anet.events`).
- **System integration** — DNS managers for Linux (`resolv.conf`) and macOS
  (`scutil`), and a macOS route manager (the `route` tool) that tracks every
  route it adds so it can be removed again (`anet.dns`, `anet.routing`).
- **Console helpers** — byte formatting, the start-up banner and a privilege
  check (`anet.display`).

Requires Python 3.11 or later. The only runtime dependency is `cryptography`.

## Identities

```python
import base64

from anet.keygen import generate_identity, fingerprint_of

identity = generate_identity()
print(identity.private_key)   # base64 of the raw 32-byte Ed25519 private key
print(identity.public_key)    # base64 of the raw 32-byte public key
print(identity.fingerprint)   # base64 of the first 16 bytes of SHA-256(public key)

raw_public = base64.b64decode(identity.public_key)
assert fingerprint_of(raw_public) == identity.fingerprint
```

`fingerprint_of` accepts 32 raw bytes or an `Ed25519PublicKey` and raises
`ValueError` for any other length.

## Client configuration

```python
from anet.config import parse_config, load_config, ConfigError

config = parse_config("""
[main]
address = "203.0.113.10:443"
tun_name = "anet-client"
route_for = ["10.0.0.0/8"]
""")

print(config.main.route_for)          # ['10.0.0.0/8']
print(config.stats.interval_minutes)  # 1

config = load_config("client.toml")   # defaults to ./client.toml
```

Sections that are absent take the defaults of `CoreConfig`: `main.address` is
`127.0.0.1:443`, `main.tun_name` is `anet-client`, `main.dns_server_list` is
`["1.1.1.1", "8.8.8.8"]`, statistics are off with a one-minute interval.

When a section is present, its required keys must be given: `address` and
`tun_name` in `[main]`, `private_key` and `server_pub_key` in `[keys]`,
`enabled` and `interval_minutes` in `[stats]`. The optional keys of `[main]`
(`manual_routing`, `route_for`, `exclude_route_for`, `dns_server_list`)
default to `false` and empty lists. `[quic_transport]` and `[stealth]` are kept
as plain tables. Missing files, invalid TOML and wrongly typed values raise
`ConfigError`.

`CoreConfig.from_dict` builds a configuration from already-parsed data.

## Desktop settings

```python
from anet.settings import AppSettings

settings = AppSettings.load()          # reads anet_settings.json, defaults on any problem
settings.last_config_path = "client.toml"
settings.save()                        # pretty JSON; write failures are ignored
```

## Access control

```python
from anet.users import UserStore
from anet.access import check_access, create_app

store = UserStore("users.db")          # ":memory:" by default
store.create_schema()
store.add("c2FtcGxlLWZpbmdlcnByaW50", None, True)

response = check_access(store, "c2FtcGxlLWZpbmdlcnByaW50")
print(response.allowed, response.message)   # True Access granted

api_key = "placeholder"
app = create_app(store, api_key)             # a WSGI application
```

`check_access` answers `Access granted`, `Account is banned or inactive` or
`User not found`; fingerprints shorter than 10 characters raise
`AccessValidationError`. `UserStore.add` raises `ValueError` when the
fingerprint is already taken, and `UserStore` works as a context manager.

The application serves:

- `POST /check_access` with a JSON body `{"fingerprint": "..."}`, answering
  `{"allowed": ..., "message": ...}`; malformed bodies get `400`, other
  methods `405`.
- `GET /spec`, an OpenAPI description of the endpoint.

Requests must carry the configured key in the `X-Auth-Key` header, except
paths containing `/swagger` or `/spec`; others are answered with
`401 Unauthorized`. Any WSGI server can host the application, for example
`wsgiref.simple_server`.

## DNS and routing

```python
from anet.dns import create_dns_manager, LinuxDnsManager
from anet.routing import (
    MacOSRouteManager,
    parse_route_get_output,
    default_tun_name,
    requires_elevated_privileges,
)

dns = create_dns_manager("Linux")      # LinuxDnsManager; "Darwin" gives MacOSDnsManager
dns.set_dns(["1.1.1.1", "8.8.8.8"])
# ... tunnel is up ...
dns.restore_dns()

gateway, interface = parse_route_get_output(
    "    gateway: 192.168.1.1\n  interface: en0\n"
)
print(gateway, interface)              # 192.168.1.1 en0
print(default_tun_name("Linux"))       # anet0
print(requires_elevated_privileges("Windows"))  # False
```

`LinuxDnsManager` keeps the original `resolv.conf` in memory and in a backup
file, and restores from the backup file if the in-memory copy is gone; both
paths can be passed to its constructor. Other systems get `NoOpDnsManager`.

`MacOSRouteManager` backs up the default gateway, adds bypass routes through
it, sends all traffic into the tunnel with the `0.0.0.0/1` and `128.0.0.0/1`
routes, adds split-tunnel routes, and removes its routes in reverse order on
`restore_routes()`. It takes an optional `runner` callable in place of the
`route` command. `NoOpRouteManager` does nothing.

Changing DNS or routes needs root privileges; `anet.display.check_privileges()`
reports whether the current process has them.

## Console helpers

```python
from anet.display import format_bytes, generate_ascii_art

print(format_bytes(1536))              # 1.50 KiB
print(generate_ascii_art("Local dev", "abc1234", "2024-01-01 00:00:00"))
```

## Events

```python
from anet.events import EventHandler, set_handler, status

class PrintHandler(EventHandler):
    def on_event(self, event):
        print(event.kind, event.message)

set_handler(PrintHandler())
status("Connecting")
```

Only the first handler installed is kept (`set_handler` returns `False` for
later ones); events emitted before a handler is set are dropped.

## What this package does not do

It does not open VPN connections: there is no tunnel device handling, no
encrypted transport, no packet forwarding and no DNS resolution of route
targets. There is no command to run and no graphical client. Route management
exists only for macOS; on Linux and Windows only `NoOpRouteManager` is
available. The access service is a WSGI application and ships no server of
its own.

## Tests

The test suite uses pytest and is declared in the `test` extra.