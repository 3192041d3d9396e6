"""System DNS configuration for VPN sessions."""

from __future__ import annotations

import logging
import platform
import subprocess
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

log = logging.getLogger(__name__)

RESOLV_CONF_PATH = "/etc/resolv.conf"
BACKUP_PATH = "/etc/resolv.conf.anet-backup"
DNS_SERVICE_NAME = "ANetVPN"


class DnsError(OSError):
    """DNS configuration could not be read, written or applied."""


class DnsManager(ABC):
    """Sets and restores the system DNS servers."""

    @abstractmethod
    def set_dns(self, servers: Sequence[str]) -> None:
        """Configure DNS servers for the VPN connection."""

    @abstractmethod
    def restore_dns(self) -> None:
        """Restore the original DNS configuration."""


class NoOpDnsManager(DnsManager):
    """DNS manager for platforms that handle DNS elsewhere."""

    def set_dns(self, servers: Sequence[str]) -> None:
        return None

    def restore_dns(self) -> None:
        return None


def build_resolv_conf(servers: Sequence[str]) -> str:
    """Return resolv.conf content listing the given name servers."""
    lines = ["# Generated by ANet VPN\n"]
    lines.extend(f"nameserver {server}\n" for server in servers)
    return "".join(lines)


class LinuxDnsManager(DnsManager):
    """Rewrites resolv.conf, keeping the original in memory and in a backup file."""

    def __init__(
        self,
        resolv_conf_path: str | Path = RESOLV_CONF_PATH,
        backup_path: str | Path = BACKUP_PATH,
    ) -> None:
        self.resolv_conf_path = Path(resolv_conf_path)
        self.backup_path = Path(backup_path)
        self._original: str | None = None
        self._lock = threading.Lock()

    def _is_symlink(self) -> bool:
        try:
            return self.resolv_conf_path.is_symlink()
        except OSError:
            return False

    def set_dns(self, servers: Sequence[str]) -> None:
        if not servers:
            log.info("No DNS servers configured, skipping DNS setup")
            return

        if self._is_symlink():
            log.warning(
                "%s is a symlink (likely managed by systemd-resolved). "
                "DNS configuration may not work as expected. "
                "Consider using systemd-resolved integration instead.",
                self.resolv_conf_path,
            )

        log.info("Configuring DNS servers: %s", list(servers))

        try:
            original = self.resolv_conf_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DnsError(f"Failed to read {self.resolv_conf_path}: {exc}") from exc

        with self._lock:
            self._original = original

        try:
            self.backup_path.write_text(original, encoding="utf-8")
        except OSError as exc:
            log.warning("Failed to write backup file: %s", exc)

        new_content = build_resolv_conf(servers)
        try:
            self.resolv_conf_path.write_text(new_content, encoding="utf-8")
        except OSError as exc:
            raise DnsError(f"Failed to write {self.resolv_conf_path}: {exc}") from exc

        log.debug("Wrote new resolv.conf:\n%s", new_content)
        log.info("DNS configured successfully")

    def _remove_backup(self) -> None:
        try:
            self.backup_path.unlink(missing_ok=True)
        except OSError:
            pass

    def restore_dns(self) -> None:
        with self._lock:
            original, self._original = self._original, None

        if original is not None:
            log.info("Restoring original DNS configuration...")
            try:
                self.resolv_conf_path.write_text(original, encoding="utf-8")
            except OSError as exc:
                raise DnsError(
                    f"Failed to restore {self.resolv_conf_path}: {exc}"
                ) from exc
            self._remove_backup()
            log.info("DNS configuration restored")
            return

        if not self.backup_path.exists():
            log.debug("No DNS backup found, nothing to restore")
            return

        log.info("Restoring DNS from backup file...")
        try:
            backup = self.backup_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DnsError(f"Failed to read backup file: {exc}") from exc
        try:
            self.resolv_conf_path.write_text(backup, encoding="utf-8")
        except OSError as exc:
            raise DnsError(
                f"Failed to restore {self.resolv_conf_path} from backup: {exc}"
            ) from exc
        self._remove_backup()
        log.info("DNS configuration restored from backup")


def build_dns_set_commands(servers: Sequence[str]) -> str:
    """Return the scutil script that publishes the given DNS servers."""
    server_list = " ".join(servers)
    return (
        "d.init\n"
        f"d.add ServerAddresses * {server_list}\n"
        'd.add SupplementalMatchDomains * ""\n'
        f"set State:/Network/Service/{DNS_SERVICE_NAME}/DNS\n"
    )


def build_dns_remove_command() -> str:
    """Return the scutil script that removes the VPN DNS entry."""
    return f"remove State:/Network/Service/{DNS_SERVICE_NAME}/DNS\n"


class MacOSDnsManager(DnsManager):
    """Configures DNS through scutil's dynamic store."""

    def __init__(self) -> None:
        self._configured = False
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        with self._lock:
            return self._configured

    @staticmethod
    def _run_scutil(commands: str) -> None:
        log.debug("Running scutil with commands:\n%s", commands)
        try:
            result = subprocess.run(
                ["scutil"],
                input=commands,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise DnsError(f"Failed to spawn scutil: {exc}") from exc
        if result.returncode != 0:
            log.warning(
                "scutil command may have failed: stdout=%s, stderr=%s",
                (result.stdout or "").strip(),
                (result.stderr or "").strip(),
            )

    def set_dns(self, servers: Sequence[str]) -> None:
        if not servers:
            log.info("No DNS servers configured, skipping DNS setup")
            return
        log.info("Configuring DNS servers: %s", list(servers))
        self._run_scutil(build_dns_set_commands(servers))
        with self._lock:
            self._configured = True
        log.info("DNS configured successfully via scutil")

    def restore_dns(self) -> None:
        if not self.configured:
            log.debug("DNS was not configured, skipping restore")
            return
        log.info("Restoring original DNS configuration...")
        self._run_scutil(build_dns_remove_command())
        with self._lock:
            self._configured = False
        log.info("DNS configuration restored")


def create_dns_manager(system: str | None = None) -> DnsManager:
    """Return the DNS manager suited to ``system`` (defaults to the running OS)."""
    name = (system or platform.system()).lower()
    if name in ("darwin", "macos"):
        return MacOSDnsManager()
    if name == "linux":
        return LinuxDnsManager()
    return NoOpDnsManager()