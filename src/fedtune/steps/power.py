"""Power management: opt-in powertop autotune unit and tuned profile selection."""

from typing import List, Optional

from ..console import Console
from ..executor import Executor
from ..renderers import render_powertop_unit
from ..schema import PowertopMode, StepResult, StepStatus, TuneConfig
from ..system import Services, Tuned
from .._util import atomic_write, safe_read
from ._common import note

POWERTOP_UNIT = "powertop-autotune.service"
# First available wins.
TUNED_PREFERENCE = ["latency-performance", "balanced", "powersave"]


def pick_profile(available: List[str], preference: List[str] = TUNED_PREFERENCE) -> Optional[str]:
    for name in preference:
        if name in available:
            return name
    return None


def _disable_powertop(result: StepResult, config: TuneConfig, services: Services, console: Console) -> None:
    if not services.is_enabled(POWERTOP_UNIT):
        return
    if not config.applying:
        note(result, console, "info", f"Would disable {POWERTOP_UNIT}")
        return
    if services.disable_now([POWERTOP_UNIT]).returncode != 0:
        note(result, console, "warn", f"{POWERTOP_UNIT} disable failed")
        return
    result.mark_changed()
    note(result, console, "ok", f"{POWERTOP_UNIT} disabled")


def run_powertop(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="powertop", title="Powertop autotune (opt-in)")
    services = Services(executor, console)
    if not config.powertop_enabled:
        console.say("Powertop autotune: skipped (opt-in)")
        if config.powertop == PowertopMode.OFF:
            _disable_powertop(result, config, services, console)
        if result.status == StepStatus.OK:
            result.status = StepStatus.SKIPPED
        return result

    console.say("Powertop autotune service (opt-in)")
    unit_path = config.host_root / "etc/systemd/system" / POWERTOP_UNIT
    content = render_powertop_unit()
    if unit_path.exists() and safe_read(unit_path, "powertop") == content:
        note(result, console, "ok", f"Unit already installed: {unit_path}")
    elif not config.applying:
        note(result, console, "info", f"Would install unit: {unit_path}")
    else:
        unit_path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(unit_path, content)
        executor(["restorecon", "-v", str(unit_path)])
        services.daemon_reload()
        result.mark_changed()
        note(result, console, "ok", f"Installed unit: {unit_path}")

    if not config.applying:
        if not services.is_enabled(POWERTOP_UNIT):
            note(result, console, "info", f"Would enable {POWERTOP_UNIT}")
        return result
    try:
        if services.ensure_enabled([POWERTOP_UNIT]):
            result.mark_changed()
    except RuntimeError:
        note(result, console, "warn", "powertop unit enable failed")
    return result


def run_tuned(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="tuned", title="Tuned profile")
    console.say("Tuned setup with fallback")
    services = Services(executor, console)
    tuned = Tuned(executor, console)

    if config.applying:
        try:
            if services.ensure_enabled(["tuned"]):
                result.mark_changed()
        except RuntimeError:
            note(result, console, "warn", "tuned enable failed")

    available = tuned.profiles()
    target = pick_profile(available)
    if target is None:
        note(result, console, "warn", "no tuned profiles available (is tuned installed?)")
        return result

    active = tuned.active()
    if active == target:
        note(result, console, "ok", f"tuned profile already {target}")
    elif not config.applying:
        note(result, console, "info", f"Would set tuned profile {target} (active: {active or 'none'})")
    elif tuned.set_profile(target).returncode != 0:
        note(result, console, "warn", f"failed to set tuned profile {target}")
    else:
        result.mark_changed()
        note(result, console, "ok", f"tuned profile set to {target}")

    console.log(f"   Current active profile: {tuned.active() or 'none'}")
    return result
