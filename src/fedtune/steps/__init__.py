"""
Laptop tuner steps. Each step receives the tune config, an executor and the
console; it inspects live state, acts only in apply mode, and returns a
StepResult for the run report.
"""

from typing import Callable, List, Tuple

from ..console import Console
from ..executor import Executor
from ..schema import StepResult, TuneConfig
from ._common import _safe_run
from .packages import run_base as run_base_packages, run_containers
from .power import run_powertop, run_tuned
from .repos import run as run_repos
from .snapper import run as run_snapper
from .storage import run_btrfs_checks, run_trim
from .virtualization import run as run_virtualization

StepFn = Callable[[TuneConfig, Executor, Console], StepResult]

STEPS: List[Tuple[str, StepFn]] = [
    ("repos", run_repos),
    ("base_packages", run_base_packages),
    ("virtualization", run_virtualization),
    ("containers", run_containers),
    ("powertop", run_powertop),
    ("tuned", run_tuned),
    ("snapper", run_snapper),
    ("trim", run_trim),
    ("btrfs_checks", run_btrfs_checks),
]


def run_all(config: TuneConfig, executor: Executor, console: Console) -> List[StepResult]:
    """Run every step in order and return their results."""
    console.say(f"Mode: {config.mode.value}  | Powertop: {config.powertop.value.upper()}")
    results: List[StepResult] = []
    for name, fn in STEPS:
        console.set_source(name)
        results.append(_safe_run(name, lambda fn=fn: fn(config, executor, console), console))
    console.say("All done. Re-run with --verify-only to audit without changes.")
    return results
