"""
Mount optimizer: audit /etc/fstab, write a proposal, validate it, show the diff,
and (with --apply) atomically replace /etc/fstab.

Default is read-only apart from the proposal file.  Root mount option changes
are never remounted live; a reboot picks them up.
"""

import difflib
import shutil
from pathlib import Path
from typing import Optional

from . import fstab as fstab_mod
from .console import Console, timestamp
from .executor import NOT_FOUND, Executor
from .schema import MountConfig, MountOutcome, Proposal
from .system import Mounts, Services
from ._util import atomic_write, debug as _debug_fn


def _debug(msg: str) -> None:
    _debug_fn("mounts", msg)


class MountOptimizerError(RuntimeError):
    """The mount table could not be read, written or replaced."""


class FstabValidationError(MountOptimizerError):
    """systemd-analyze or mount --fake rejected the proposed table."""


def describe_mounts(executor: Executor, console: Console) -> None:
    mounts = Mounts(executor)
    for label, target in (("Root", "/"), ("Home", "/home")):
        source = mounts.source(target) or "unknown"
        fstype = mounts.fstype(target) or "unknown"
        console.info(f"{label} device:  {source} (fs: {fstype})")


def unified_diff(old_text: str, new_text: str, old_name: str, new_name: str) -> str:
    return "".join(difflib.unified_diff(
        old_text.splitlines(keepends=True),
        new_text.splitlines(keepends=True),
        fromfile=old_name,
        tofile=new_name,
    ))


def propose(src: Path, out: Path) -> Proposal:
    """Rewrite *src* into *out* and describe what changed."""
    src, out = Path(src), Path(out)
    if not src.is_file():
        raise MountOptimizerError(f"{src} not found.")
    try:
        old_text = src.read_text()
    except OSError as exc:
        raise MountOptimizerError(f"cannot read {src}: {exc}") from exc

    before = fstab_mod.parse_fstab(old_text)
    after = fstab_mod.transform(before)
    new_text = fstab_mod.render_fstab(after)

    try:
        atomic_write(out, new_text)
    except OSError as exc:
        raise MountOptimizerError(f"cannot write {out}: {exc}") from exc

    return Proposal(
        source=str(src),
        output=str(out),
        changed_targets=fstab_mod.changed_targets(before, after),
        malformed_lines=[ln.line_no for ln in fstab_mod.iter_malformed(before)],
        diff=unified_diff(old_text, new_text, str(src), str(out)),
    )


def validate(path: Path, executor: Executor, console: Console) -> None:
    """Run systemd-analyze verify and, when supported, a mount --fake dry run."""
    console.info(f"Validating: {path}")
    r = executor(["systemd-analyze", "verify", str(path)])
    if r.returncode == NOT_FOUND:
        raise FstabValidationError(f"systemd-analyze not found; cannot verify {path}")
    if r.returncode != 0:
        raise FstabValidationError(
            f"systemd-analyze flagged issues in {path}: {(r.stderr or r.stdout).strip()[:500]}"
        )

    help_text = executor(["mount", "--help"])
    if "--fake" not in (help_text.stdout + help_text.stderr):
        console.warn("mount --fake not available; skipping dry-run")
        return
    r = executor(["mount", "--fake", "-a", "-T", str(path)])
    if r.returncode != 0:
        raise FstabValidationError(f"mount --fake -a failed: {(r.stderr or r.stdout).strip()[:500]}")


def backup_file(src: Path, stamp: Optional[str] = None) -> Path:
    dst = src.with_name(f"{src.name}.bak.{stamp or timestamp()}")
    try:
        shutil.copy2(str(src), str(dst))
    except OSError as exc:
        raise MountOptimizerError(f"cannot back up {src}: {exc}") from exc
    return dst


def restorecon(path: Path, executor: Executor) -> None:
    r = executor(["restorecon", "-v", str(path)])
    if r.returncode not in (0, NOT_FOUND):
        _debug(f"restorecon {path} exited {r.returncode}")


def apply(new_fstab: Path, target: Path, executor: Executor, console: Console) -> Path:
    """Back up *target*, atomically replace it with *new_fstab*, reload systemd.

    Returns the backup path.
    """
    new_fstab, target = Path(new_fstab), Path(target)
    backup = backup_file(target)
    try:
        atomic_write(target, new_fstab.read_text(), mode=0o644)
    except OSError as exc:
        raise MountOptimizerError(f"cannot replace {target}: {exc}") from exc
    restorecon(target, executor)

    console.info("Reloading systemd daemon and testing remount service")
    services = Services(executor, console)
    services.daemon_reload()
    if services.start("systemd-remount-fs.service").returncode != 0:
        console.warn("systemd-remount-fs.service returned non-zero; skipping.")
    console.ok(f"Applied new {target}. Backup at: {backup}")
    return backup


def configure_trim(executor: Executor, console: Console) -> bool:
    services = Services(executor, console)
    if not services.exists("fstrim.timer"):
        console.warn("fstrim.timer not found; util-linux missing?")
        return False
    if services.enable_now(["fstrim.timer"]).returncode != 0:
        console.warn("fstrim.timer enable failed")
        return False
    console.info("Ensured fstrim.timer is enabled (weekly TRIM).")
    return True


def run(config: MountConfig, executor: Executor, console: Console) -> MountOutcome:
    """Audit → propose → validate → diff → optionally apply."""
    console.set_source("mounts")
    console.say("Mount optimizer")
    outcome = MountOutcome()

    describe_mounts(executor, console)

    console.info(f"Building proposed fstab at {config.proposal}")
    proposal = propose(config.fstab, config.proposal)
    outcome.proposal = proposal
    for line_no in proposal.malformed_lines:
        console.warn(f"{config.fstab}:{line_no}: unparseable entry left untouched")

    validate(config.proposal, executor, console)
    outcome.validated = True

    if proposal.changed_targets:
        console.info("Showing diff (proposed vs current):")
        console.diff(proposal.diff)
    else:
        console.ok("No changes proposed; mount options already optimal")

    if not config.apply:
        console.ok(f"Proposal complete. Review {config.proposal}. Re-run with --apply to commit.")
        return outcome

    if proposal.changed_targets:
        console.warn(f"About to APPLY changes to {config.fstab}.")
        outcome.backup = str(apply(config.proposal, config.fstab, executor, console))
        outcome.applied = True
    configure_trim(executor, console)
    if outcome.applied:
        console.ok("Done. Reboot recommended for root mount options.")
    return outcome
