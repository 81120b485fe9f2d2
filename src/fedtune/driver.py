"""
Orchestrator driver: mount optimizer (audit → optional apply), then the laptop
tuner (verify or apply), with prompts, a run log, and a summary.

Every console line is mirrored to <log-dir>/run-<ts>.log; the structured run
report and a Markdown summary are written next to it.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from . import mount_optimizer
from .console import Console, timestamp
from .executor import Executor
from .preflight import check_root, current_hostname
from .renderers import make_env, render_summary
from .schema import DriverConfig, Mode, RunReport, StepStatus, TuneConfig
from .steps import run_all as run_all_steps

Ask = Callable[[str], str]
RootCheck = Callable[[], Optional[str]]


class UsageError(ValueError):
    """Conflicting or invalid driver flags."""


def prompt_yes_no(question: str, non_interactive: bool, ask: Ask = input) -> bool:
    """Ask a y/N question. Non-interactive runs take the default answer (no)."""
    if non_interactive:
        return False
    try:
        answer = ask(f"{question} [y/N]: ")
    except EOFError:
        return False
    return answer.strip() in ("y", "Y")


def check_flags(config: DriverConfig) -> None:
    if config.force_verify and config.apply_tuner:
        raise UsageError("conflicting flags: --verify-only and --apply-tuner")


def _need_root(root_check: RootCheck) -> None:
    err = root_check()
    if err:
        raise PermissionError(err)


def save_report(report: RunReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2))


def load_report(path: Path) -> RunReport:
    return RunReport.model_validate(json.loads(Path(path).read_text()))


def _mount_step(
    config: DriverConfig,
    executor: Executor,
    console: Console,
    report: RunReport,
    ask: Ask,
    root_check: RootCheck,
) -> None:
    if config.skip_mount:
        console.log("[mount] skipped")
        return

    if config.apply_mount:
        _need_root(root_check)
        console.log("[mount] applying per flag")
        outcome = mount_optimizer.run(config.mount.model_copy(update={"apply": True}), executor, console)
    else:
        console.log("[mount] audit")
        outcome = mount_optimizer.run(config.mount, executor, console)
        if outcome.proposal and outcome.proposal.changed_targets and prompt_yes_no(
            "Apply fstab changes now?", config.non_interactive, ask
        ):
            _need_root(root_check)
            outcome = mount_optimizer.run(config.mount.model_copy(update={"apply": True}), executor, console)

    report.mount = outcome
    # An apply run with nothing to change still leaves the table in its applied state.
    report.mount_result = "applied" if outcome.applied or config.apply_mount else "audited"


def _tuner_step(
    config: DriverConfig,
    executor: Executor,
    console: Console,
    report: RunReport,
    ask: Ask,
    root_check: RootCheck,
) -> None:
    if config.skip_tuner:
        console.log("[tuner] skipped")
        return

    if config.apply_tuner:
        console.log("[tuner] apply mode")
        mode = Mode.APPLY
    elif config.force_verify:
        console.log("[tuner] verify-only per flag")
        mode = Mode.VERIFY
    elif prompt_yes_no("Run laptop tuner in APPLY mode now?", config.non_interactive, ask):
        mode = Mode.APPLY
    else:
        console.log("[tuner] verify-only")
        mode = Mode.VERIFY

    if mode == Mode.APPLY:
        _need_root(root_check)
    tune = TuneConfig(mode=mode, powertop=config.powertop, host_root=config.host_root)
    report.steps = run_all_steps(tune, executor, console)
    report.tuner_result = "applied" if mode == Mode.APPLY else "audited"


def print_summary(report: RunReport, console: Console) -> None:
    console.info("=== Fedora Tune Summary ===")
    console.result("Mount optimizer", report.mount_result)
    console.result("Laptop tuner   ", report.tuner_result)
    failed = [s.name for s in report.steps if s.status == StepStatus.FAILED]
    if failed:
        console.err(f"Failed steps: {', '.join(failed)}")
    console.info(f"Logs: {report.meta.get('log_file', '')}")


def run_driver(
    config: DriverConfig,
    executor: Executor,
    console: Console,
    ask: Ask = input,
    root_check: RootCheck = check_root,
    now: Optional[datetime] = None,
) -> RunReport:
    """Run the mount optimizer and the laptop tuner as one logged session."""
    check_flags(config)

    ts = timestamp(now)
    log_dir = Path(config.log_dir)
    log_file = log_dir / f"run-{ts}.log"
    console.attach_log(log_file)
    mount_optimizer.restorecon(log_dir, executor)

    hostname = current_hostname(executor)
    report = RunReport(meta={"timestamp": ts, "hostname": hostname, "log_file": str(log_file)})

    console.log(f"=== Fedora Tune Driver @ {ts} ===")
    console.log(f"Host: {hostname} | Log: {log_file}")
    console.log(f"Mount optimizer: {'skipped' if config.skip_mount else config.mount.fstab}")
    console.log(f"Laptop tuner   : {'skipped' if config.skip_tuner else 'enabled'}")

    _mount_step(config, executor, console, report, ask, root_check)
    _tuner_step(config, executor, console, report, ask, root_check)

    print_summary(report, console)
    report.warnings = list(console.warnings)
    save_report(report, log_dir / f"run-{ts}.json")
    render_summary(report, make_env(), log_dir / f"run-{ts}-summary.md")
    console.log(f"=== Done. Logs saved to {log_file} ===")
    return report
