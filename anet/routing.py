"""System route management for VPN sessions."""

from __future__ import annotations

import ipaddress
import logging
import platform
import subprocess
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass

log = logging.getLogger(__name__)

IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
RouteRunner = Callable[[Sequence[str]], subprocess.CompletedProcess]

_EXPECTED_ERRORS = ("file exists", "not in table", "no such process")
_DEFAULT_HALVES = (
    (ipaddress.ip_address("0.0.0.0"), 1),
    (ipaddress.ip_address("128.0.0.0"), 1),
)


class RouteError(RuntimeError):
    """A route could not be read, added or removed."""


class RouteManager(ABC):
    """Changes the system routing table for the tunnel and undoes the changes."""

    @abstractmethod
    def backup_routes(self) -> None:
        """Remember the current default route."""

    @abstractmethod
    def add_bypass_route(self, target, prefix: int) -> None:
        """Route ``target/prefix`` around the tunnel via the physical gateway."""

    @abstractmethod
    def set_default_route(self, gateway: str, interface_name: str) -> None:
        """Send all traffic into the tunnel."""

    @abstractmethod
    def add_specific_route(
        self, target, prefix: int, gateway: str, interface_name: str
    ) -> None:
        """Send only ``target/prefix`` into the tunnel (split tunnelling)."""

    @abstractmethod
    def restore_routes(self) -> None:
        """Remove every route this manager added."""


class NoOpRouteManager(RouteManager):
    """Route manager for platforms, or setups, where routing is handled elsewhere."""

    def backup_routes(self) -> None:
        return None

    def add_bypass_route(self, target, prefix: int) -> None:
        return None

    def set_default_route(self, gateway: str, interface_name: str) -> None:
        return None

    def add_specific_route(
        self, target, prefix: int, gateway: str, interface_name: str
    ) -> None:
        return None

    def restore_routes(self) -> None:
        return None


@dataclass(frozen=True)
class AddedRoute:
    """A route added by the VPN, kept for cleanup."""

    destination: IpAddress
    prefix: int
    via_gateway: bool
    gateway: IpAddress | None = None
    interface: str | None = None


def parse_route_get_output(output: str) -> tuple[IpAddress, str]:
    """Extract the gateway and interface from ``route -n get default`` output."""
    gateway: IpAddress | None = None
    interface: str | None = None

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line.startswith("gateway:"):
            text = line[len("gateway:"):].strip().split("%", 1)[0]
            try:
                gateway = ipaddress.ip_address(text)
            except ValueError:
                pass
        elif line.startswith("interface:"):
            interface = line[len("interface:"):].strip()

    if gateway is not None and interface is not None:
        return gateway, interface
    if gateway is None and interface is not None:
        raise RouteError("Could not parse gateway from route output")
    if gateway is not None:
        raise RouteError("Could not parse interface from route output")
    raise RouteError(
        f"Could not parse gateway or interface from route output: {output}"
    )


def _run_route(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["route", *args], capture_output=True, text=True, check=False
    )


class MacOSRouteManager(RouteManager):
    """Manages routes with the ``route`` command-line tool."""

    def __init__(self, runner: RouteRunner | None = None) -> None:
        self._runner = runner or _run_route
        self._lock = threading.Lock()
        self._original_gateway: IpAddress | None = None
        self._original_interface: str | None = None
        self._added: list[AddedRoute] = []

    @property
    def original_gateway(self) -> IpAddress | None:
        return self._original_gateway

    @property
    def original_interface(self) -> str | None:
        return self._original_interface

    @property
    def added_routes(self) -> tuple[AddedRoute, ...]:
        with self._lock:
            return tuple(self._added)

    def _exec(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        try:
            return self._runner(list(args))
        except OSError as exc:
            raise RouteError(f"Failed to execute route command: {exc}") from exc

    def _run_route_cmd(self, args: Sequence[str]) -> bool:
        log.debug("Executing: route %s", " ".join(args))
        result = self._exec(args)
        stdout = (result.stdout or "").strip()
        stderr = (result.stderr or "").strip()
        if result.returncode != 0:
            if any(marker in stderr.lower() for marker in _EXPECTED_ERRORS):
                log.debug("Route command returned expected error: %s", stderr)
                return True
            log.warning(
                "Route command failed: %s %s (args: %s)", stdout, stderr, list(args)
            )
            return False
        log.debug("Route command succeeded: %s", stdout)
        return True

    def _get_default_gateway(self) -> tuple[IpAddress, str]:
        result = self._exec(["-n", "get", "default"])
        if result.returncode != 0:
            raise RouteError(
                f"route command failed: {(result.stderr or '').strip()}"
            )
        return parse_route_get_output(result.stdout or "")

    def _add_via_gateway(self, target: IpAddress, prefix: int, gateway: IpAddress) -> None:
        if prefix == 32:
            self._run_route_cmd(["add", "-host", str(target), str(gateway)])
        else:
            self._run_route_cmd(["add", "-net", f"{target}/{prefix}", str(gateway)])

    def _add_via_interface(self, target: IpAddress, prefix: int, interface: str) -> None:
        if prefix == 32:
            self._run_route_cmd(["add", "-host", str(target), "-interface", interface])
        else:
            self._run_route_cmd(
                ["add", "-net", f"{target}/{prefix}", "-interface", interface]
            )

    def _delete(self, target: IpAddress, prefix: int) -> None:
        if prefix == 32:
            self._run_route_cmd(["delete", "-host", str(target)])
        else:
            self._run_route_cmd(["delete", "-net", f"{target}/{prefix}"])

    def _delete_net(self, target: IpAddress, prefix: int) -> None:
        self._run_route_cmd(["delete", "-net", f"{target}/{prefix}"])

    def _track(self, route: AddedRoute) -> None:
        with self._lock:
            self._added.append(route)

    def backup_routes(self) -> None:
        gateway, interface = self._get_default_gateway()
        log.info(
            "Backed up default route: gateway %s via interface %s", gateway, interface
        )
        with self._lock:
            self._original_gateway = gateway
            self._original_interface = interface

    def add_bypass_route(self, target, prefix: int) -> None:
        with self._lock:
            gateway = self._original_gateway
        if gateway is None:
            raise RouteError("Gateway not backed up - call backup_routes() first")
        destination = ipaddress.ip_address(target)
        log.info(
            "Adding BYPASS route: %s/%s via gateway %s", destination, prefix, gateway
        )
        self._add_via_gateway(destination, prefix, gateway)
        self._track(AddedRoute(destination, prefix, True, gateway=gateway))

    def set_default_route(self, gateway: str, interface_name: str) -> None:
        log.info("Redirecting ALL traffic to TUN interface: %s", interface_name)
        for destination, prefix in _DEFAULT_HALVES:
            try:
                self._delete_net(destination, prefix)
            except RouteError:
                pass
            try:
                self._add_via_interface_net(destination, prefix, interface_name)
            except RouteError as exc:
                log.error("Failed to add route %s/%s: %s", destination, prefix, exc)
                continue
            self._track(
                AddedRoute(destination, prefix, False, interface=interface_name)
            )
        log.info("Default route redirected to %s", interface_name)

    def _add_via_interface_net(
        self, target: IpAddress, prefix: int, interface: str
    ) -> None:
        self._run_route_cmd(
            ["add", "-net", f"{target}/{prefix}", "-interface", interface]
        )

    def add_specific_route(
        self, target, prefix: int, gateway: str, interface_name: str
    ) -> None:
        destination = ipaddress.ip_address(target)
        log.info(
            "Adding split-tunnel route: %s/%s via interface %s",
            destination,
            prefix,
            interface_name,
        )
        try:
            self._delete(destination, prefix)
        except RouteError:
            pass
        self._add_via_interface(destination, prefix, interface_name)
        self._track(AddedRoute(destination, prefix, False, interface=interface_name))

    def restore_routes(self) -> None:
        log.info("Restoring original routing table...")
        errors: list[str] = []
        with self._lock:
            routes, self._added = self._added, []
        for route in reversed(routes):
            log.debug(
                "Removing route: %s/%s (via_gateway: %s)",
                route.destination,
                route.prefix,
                route.via_gateway,
            )
            try:
                self._delete(route.destination, route.prefix)
            except RouteError as exc:
                errors.append(f"{route.destination}/{route.prefix}: {exc}")
        if errors:
            log.warning("Some routes could not be removed: %s", errors)
        log.info("Routing table restored.")


def _normalise_system(system: str | None) -> str:
    name = (system or platform.system()).lower()
    return "macos" if name == "darwin" else name


def requires_elevated_privileges(system: str | None = None) -> bool:
    """True where creating tunnels and changing routes needs root."""
    return _normalise_system(system) in ("linux", "macos")


def default_tun_name(system: str | None = None) -> str:
    """Recommended tunnel interface name for ``system`` (defaults to this OS)."""
    return {
        "linux": "anet0",
        "windows": "ANet",
        "macos": "utun",
        "android": "tun0",
    }.get(_normalise_system(system), "tun0")