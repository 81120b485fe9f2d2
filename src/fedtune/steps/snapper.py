"""Snapper on a btrfs root: root config plus conservative timeline limits."""

from typing import Dict

from ..console import Console
from ..executor import Executor
from ..schema import StepResult, StepStatus, TuneConfig
from ..system import Mounts, Services, Snapper
from .._util import atomic_write, safe_read
from ._common import note
from .packages import ensure_packages

SNAPPER_PACKAGES = ["snapper"]
SNAPPER_TIMERS = ["snapper-timeline.timer", "snapper-cleanup.timer"]

TIMELINE_SETTINGS: Dict[str, str] = {
    "TIMELINE_CREATE": "yes",
    "TIMELINE_LIMIT_HOURLY": "6",
    "TIMELINE_LIMIT_DAILY": "7",
    "TIMELINE_LIMIT_WEEKLY": "4",
    "TIMELINE_LIMIT_MONTHLY": "3",
    "TIMELINE_LIMIT_YEARLY": "0",
}


def rewrite_timeline(text: str, settings: Dict[str, str] = TIMELINE_SETTINGS) -> str:
    """Set existing ``KEY="value"`` lines for the timeline keys; everything else is untouched.

    Keys absent from the config are not appended.
    """
    out = []
    for line in text.splitlines(keepends=True):
        key = line.split("=", 1)[0].strip() if "=" in line else ""
        if key in settings and not line.lstrip().startswith("#"):
            newline = "\n" if line.endswith("\n") else ""
            out.append(f'{key}="{settings[key]}"{newline}')
        else:
            out.append(line)
    return "".join(out)


def run(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="snapper", title="Snapper (Btrfs only)")
    console.say("Snapper setup (Btrfs only)")
    if Mounts(executor).fstype("/") != "btrfs":
        console.warn("/ is not Btrfs; skipping snapper")
        result.status = StepStatus.SKIPPED
        return result

    ensure_packages(result, config, SNAPPER_PACKAGES, executor, console, failure="snapper install failed")

    snapper = Snapper(executor, console)
    if "root" in snapper.configs():
        note(result, console, "ok", "snapper root config exists")
    elif not config.applying:
        note(result, console, "info", "Would create snapper root config for /")
    elif snapper.create_config("root", "/").returncode != 0:
        note(result, console, "warn", "snapper create-config root failed")
    else:
        result.mark_changed()
        note(result, console, "ok", "snapper root config created")

    cfg = config.host_root / "etc/snapper/configs/root"
    if cfg.is_file():
        current = safe_read(cfg, "snapper")
        wanted = rewrite_timeline(current)
        if wanted == current:
            note(result, console, "ok", "timeline limits already set")
        elif not config.applying:
            note(result, console, "info", f"Would set timeline limits in {cfg}")
        else:
            atomic_write(cfg, wanted)
            executor(["restorecon", "-v", str(cfg)])
            result.mark_changed()
            note(result, console, "ok", f"timeline limits set in {cfg}")

    services = Services(executor, console)
    if not config.applying:
        pending = [t for t in SNAPPER_TIMERS if not services.is_enabled(t)]
        if pending:
            note(result, console, "info", f"Would enable {' '.join(pending)}")
        return result
    try:
        if services.ensure_enabled(SNAPPER_TIMERS):
            result.mark_changed()
            note(result, console, "ok", "snapper timers enabled")
    except RuntimeError:
        note(result, console, "warn", "snapper timers enable failed")
    return result
