"""RPM Fusion (free + nonfree) and the Flathub remote."""

from ..console import Console
from ..executor import Executor
from ..schema import StepResult, TuneConfig
from ..system import Flatpak, Packages
from ._common import note

RPMFUSION_REPOS = ("free", "nonfree")
RPMFUSION_URL = "https://mirrors.rpmfusion.org/{repo}/fedora/rpmfusion-{repo}-release-{release}.noarch.rpm"
FLATHUB_URL = "https://flathub.org/repo/flathub.flatpakrepo"


def rpmfusion_urls(release: str, repos=RPMFUSION_REPOS) -> list:
    return [RPMFUSION_URL.format(repo=r, release=release) for r in repos]


def _rpmfusion(result: StepResult, config: TuneConfig, packages: Packages, console: Console) -> None:
    if not packages.available():
        note(result, console, "warn", "dnf missing?")
        return
    missing = [r for r in RPMFUSION_REPOS if not packages.installed(f"rpmfusion-{r}-release")]
    if not missing:
        note(result, console, "ok", "RPM Fusion already enabled")
        return
    if not config.applying:
        note(result, console, "info", f"Would enable RPM Fusion: {', '.join(missing)}")
        return
    release = packages.fedora_release()
    if not release:
        note(result, console, "warn", "cannot determine Fedora release (rpm -E %fedora); skipping RPM Fusion")
        return
    if packages.install(rpmfusion_urls(release, missing)).returncode != 0:
        note(result, console, "warn", "RPM Fusion install failed")
        return
    result.mark_changed()
    note(result, console, "ok", "RPM Fusion enabled")


def _flathub(result: StepResult, config: TuneConfig, flatpak: Flatpak, console: Console) -> None:
    if not flatpak.available():
        note(result, console, "warn", "flatpak not installed; skipping")
        return
    if "flathub" in flatpak.remotes():
        note(result, console, "ok", "Flathub already present")
        return
    if not config.applying:
        note(result, console, "info", "Would add flathub remote")
        return
    if flatpak.add_remote("flathub", FLATHUB_URL).returncode != 0:
        note(result, console, "warn", "flatpak remote-add flathub failed")
        return
    result.mark_changed()
    note(result, console, "ok", "Flathub added")


def run(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="repos", title="RPM Fusion + Flathub")
    console.say("Enabling RPM Fusion + Flathub (if missing)")
    _rpmfusion(result, config, Packages(executor, console), console)
    _flathub(result, config, Flatpak(executor, console), console)
    return result
