"""Weekly TRIM and read-only mount option checks against the live root mount."""

from ..console import Console
from ..executor import Executor
from ..fstab import BTRFS_COMPRESSION, recommend_options
from ..schema import StepResult, TuneConfig
from ..system import Mounts, Services
from ._common import note


def run_trim(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="trim", title="Weekly TRIM (fstrim.timer)")
    console.say("Enable fstrim.timer")
    services = Services(executor, console)
    if services.is_enabled("fstrim.timer"):
        note(result, console, "ok", "fstrim.timer already enabled")
    elif not config.applying:
        note(result, console, "info", "Would enable fstrim.timer")
    elif services.enable_now(["fstrim.timer"]).returncode != 0:
        note(result, console, "warn", "fstrim.timer enable failed")
    else:
        result.mark_changed()
        note(result, console, "ok", "fstrim.timer enabled")
    return result


def run_btrfs_checks(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    """Compare the live options of / with what the fstab rewriter would recommend."""
    result = StepResult(name="btrfs_checks", title="Mount option recommendations (checks only)")
    console.say("Btrfs mount option recommendations (checks only)")
    mounts = Mounts(executor)
    fstype = mounts.fstype("/")
    if fstype != "btrfs":
        note(result, console, "warn", f"/ is not Btrfs (fs: {fstype or 'unknown'})")
        return result

    opts = [o for o in mounts.options("/").split(",") if o]
    wanted = recommend_options(fstype, opts)
    if BTRFS_COMPRESSION in wanted:
        note(result, console, "warn", f"No compression set; recommend {BTRFS_COMPRESSION}")
    else:
        current = next(o for o in opts if o.startswith("compress="))
        note(result, console, "ok", f"compression set ({current})")
    if "noatime" in opts:
        note(result, console, "ok", "noatime set")
    else:
        note(result, console, "warn", "Recommend noatime")
    return result
