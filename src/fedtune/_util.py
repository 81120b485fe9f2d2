"""Shared utilities for fedtune: debug logging, safe filesystem helpers, atomic writes."""

import os
import sys
import tempfile
from pathlib import Path

_DEBUG = bool(os.environ.get("FEDTUNE_DEBUG", ""))


def debug(label: str, msg: str) -> None:
    """Print a debug message to stderr when FEDTUNE_DEBUG is set."""
    if _DEBUG:
        print(f"[fedtune] {label}: {msg}", file=sys.stderr)


def make_warning(source: str, message: str, severity: str = "warning") -> dict:
    """Build a structured warning dict with consistent keys."""
    return {"source": source, "message": message, "severity": severity}


def safe_read(p: Path, label: str = "") -> str:
    """Read a text file, returning '' on permission/OS errors."""
    try:
        return p.read_text()
    except (PermissionError, OSError) as exc:
        if label:
            debug(label, f"cannot read {p}: {exc}")
        return ""


def atomic_write(dest: Path, content: str, mode: int = 0o644) -> None:
    """Replace *dest* with *content* without ever leaving a partial file.

    The temp file lives in the destination directory so ``os.replace`` stays
    on one filesystem.
    """
    dest = Path(dest)
    fd, tmp = tempfile.mkstemp(prefix=f"{dest.name}.new.", dir=str(dest.parent))
    try:
        with os.fdopen(fd, "w") as fh:
            fh.write(content)
        os.chmod(tmp, mode)
        os.replace(tmp, dest)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
