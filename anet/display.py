"""Console presentation helpers for the command-line client."""

from __future__ import annotations

import os

KIB = 1024.0
MIB = 1024.0 * 1024.0
GIB = 1024.0 * 1024.0 * 1024.0


def format_bytes(count: int) -> str:
    """Render a byte count with a binary unit and two decimals."""
    value = float(count)
    if value < KIB:
        return f"{count} B"
    if value < MIB:
        return f"{value / KIB:.2f} KiB"
    if value < GIB:
        return f"{value / MIB:.2f} MiB"
    return f"{value / GIB:.2f} GiB"


_BANNER = """
                    ╔═══════════════════════════════════════════════════════════════╗
                    ║                                                               ║
                    ║                 █████╗ ███╗   ██╗███████╗████████╗            ║
                    ║                 ██╔══██╗████╗  ██║██╔════╝╚══██╔══╝           ║
                    ║                 ███████║██╔██╗ ██║█████╗     ██║              ║
                    ║                 ██╔══██║██║╚██╗██║██╔══╝     ██║              ║
                    ║                 ██║  ██║██║ ╚████║███████╗   ██║              ║
                    ║                 ╚═╝  ╚═╝╚═╝  ╚═══╝╚══════╝   ╚═╝              ║
                    ╠═══════════════════════════════════════════════════════════════╣
                    ║                                                               ║
                    ║                   Build Type: {build_type:<16}                ║
                    ║                   Commit Hash: {commit_hash:<16}               ║
                    ║                   Build Time:  {build_time:<19}            ║
                    ║                                                               ║
                    ║                                                               ║
                    ╚═══════════════════════════════════════════════════════════════╝
"""


def generate_ascii_art(build_type: str, commit_hash: str, build_time: str) -> str:
    """Return the start-up banner with the build details, truncated to fit."""
    return _BANNER.format(
        build_type=build_type[:10],
        commit_hash=commit_hash[:7],
        build_time=build_time[:19],
    )


def check_privileges() -> bool:
    """True when running as root; platforms without user ids always pass."""
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return True
    return geteuid() == 0