"""KVM/QEMU + virt-manager, libvirtd, and hardware virtualization health checks."""

import re
from pathlib import Path

from ..console import Console
from ..executor import Executor
from ..schema import StepResult, TuneConfig
from ..system import Services
from .._util import safe_read
from ._common import note
from .packages import ensure_packages

VIRT_PACKAGES = ["qemu-kvm", "libvirt", "virt-install", "virt-manager"]

_VIRT_FLAGS_RE = re.compile(r"^flags\s*:.*\b(vmx|svm)\b", re.MULTILINE)


def cpu_supports_virtualization(cpuinfo: str) -> bool:
    return bool(_VIRT_FLAGS_RE.search(cpuinfo))


def _health_checks(result: StepResult, host_root: Path, console: Console) -> None:
    if cpu_supports_virtualization(safe_read(host_root / "proc/cpuinfo", "virtualization")):
        note(result, console, "ok", "CPU virtualization supported")
    else:
        note(result, console, "warn", "No VMX/SVM flags")
    if (host_root / "dev/kvm").exists():
        note(result, console, "ok", "/dev/kvm present")
    else:
        note(result, console, "warn", "/dev/kvm missing (Secure Boot? BIOS off?)")


def run(config: TuneConfig, executor: Executor, console: Console) -> StepResult:
    result = StepResult(name="virtualization", title="Virtualization (KVM/QEMU + virt-manager)")
    console.say("Virtualization stack (KVM/QEMU + virt-manager)")
    ensure_packages(
        result, config, VIRT_PACKAGES, executor, console,
        failure="Could not install virtualization packages",
    )

    services = Services(executor, console)
    if config.applying:
        try:
            if services.ensure_enabled(["libvirtd"]):
                result.mark_changed()
                note(result, console, "ok", "libvirtd enabled")
            else:
                note(result, console, "ok", "libvirtd already enabled")
        except RuntimeError:
            note(result, console, "warn", "libvirtd enable failed")
    elif not services.is_enabled("libvirtd"):
        note(result, console, "info", "Would enable libvirtd")

    _health_checks(result, config.host_root, console)
    return result
