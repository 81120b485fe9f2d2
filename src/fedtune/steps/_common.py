"""Helpers shared by the tuner steps."""

from typing import Callable

from ..console import Console
from ..schema import StepResult, StepStatus


def note(result: StepResult, console: Console, level: str, text: str) -> None:
    """Record *text* on the step result and print it at the matching level."""
    result.note(level, text)
    if level == "ok":
        console.ok(text)
    elif level == "warn":
        console.warn(text)
    elif level == "error":
        console.err(text)
    else:
        console.dry(text)


def _safe_run(name: str, fn: Callable[[], StepResult], console: Console) -> StepResult:
    """Run a step; an OSError from file handling fails the step, not the run."""
    try:
        return fn()
    except (PermissionError, OSError) as exc:
        console.err(f"{name} step failed: {exc}")
        return StepResult(
            name=name,
            title=name,
            status=StepStatus.FAILED,
            messages=[{"level": "error", "text": str(exc)}],
        )
