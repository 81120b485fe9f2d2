"""Package sets: base utilities and container tooling."""

from typing import List

from ..console import Console
from ..executor import Executor
from ..schema import StepResult, TuneConfig
from ..system import Packages
from ._common import note

BASE_PACKAGES = ["dnf-plugins-core", "jq", "git", "wget", "curl", "powertop", "tuned"]
CONTAINER_PACKAGES = ["podman", "toolbox"]


def ensure_packages(
    result: StepResult,
    config: TuneConfig,
    pkgs: List[str],
    executor: Executor,
    console: Console,
    failure: str = "Package install had issues",
) -> None:
    """Install the missing subset of *pkgs* (apply) or report it (verify)."""
    packages = Packages(executor, console)
    missing = packages.missing(pkgs)
    if not missing:
        note(result, console, "ok", f"Already installed: {' '.join(pkgs)}")
        return
    if not config.applying:
        note(result, console, "info", f"Would install: {' '.join(missing)}")
        return
    try:
        packages.ensure_installed(missing)
    except RuntimeError as exc:
        note(result, console, "warn", f"{failure}: {exc}")
        return
    result.mark_changed()
    note(result, console, "ok", f"Installed: {' '.join(missing)}")


def run_base(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="base_packages", title="Base utilities")
    console.say("Installing base utilities")
    ensure_packages(result, config, BASE_PACKAGES, executor, console)
    return result


def run_containers(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="containers", title="Containers (podman + toolbox)")
    console.say("Containers (podman + toolbox)")
    ensure_packages(result, config, CONTAINER_PACKAGES, executor, console, failure="Container pkgs failed")
    return result
