"""
Preflight checks, evaluated once at process start.

fedtune is host-locked: it refuses to run anywhere but the machine it was
written for.  The expected hostname comes from --expect-host / FEDTUNE_HOST,
and an optional hardware pin from --expect-uuid / FEDTUNE_HW_UUID.
"""

import os
import socket
from pathlib import Path
from typing import Optional

from .executor import Executor
from ._util import debug as _debug_fn

DEFAULT_HOST = "zer0sum"
_PRODUCT_UUID = "sys/class/dmi/id/product_uuid"


def _debug(msg: str) -> None:
    _debug_fn("preflight", msg)


def current_hostname(executor: Executor) -> str:
    """``hostnamectl --static``, falling back to the short socket hostname."""
    r = executor(["hostnamectl", "--static"])
    name = r.stdout.strip() if r.returncode == 0 else ""
    if not name:
        name = socket.gethostname().split(".")[0]
    return name or "unknown"


def product_uuid(host_root: Path = Path("/")) -> str:
    try:
        return (Path(host_root) / _PRODUCT_UUID).read_text().strip()
    except OSError:
        return ""


def check_host(
    expected_host: str,
    executor: Executor,
    expected_uuid: Optional[str] = None,
    host_root: Path = Path("/"),
) -> Optional[str]:
    """Return an error message if this is not the expected machine, else None."""
    host = current_hostname(executor)
    if host != expected_host:
        _debug(f"host: FAIL ({host!r} != {expected_host!r})")
        return f"Refusing to run: host mismatch (expected {expected_host}, got {host})"
    if expected_uuid:
        cur = product_uuid(host_root)
        if cur.lower() != expected_uuid.strip().lower():
            _debug(f"uuid: FAIL ({cur!r})")
            return "Refusing to run: hardware UUID mismatch"
    _debug(f"host: ok ({host})")
    return None


def check_root() -> Optional[str]:
    """Apply paths modify /etc and systemd state; they need euid 0."""
    if os.geteuid() == 0:
        return None
    return "Run with sudo for apply operations (must be root)."
