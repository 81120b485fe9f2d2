"""
Command executor. Every shell-out in fedtune goes through an Executor so that
steps can be tested with fixture executors instead of a real host.
"""

import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

from ._util import debug as _debug_fn

# Conventional shell exit status for "command not found".
NOT_FOUND = 127


@dataclass
class RunResult:
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Executor = Callable[..., RunResult]


def _debug(msg: str) -> None:
    _debug_fn("executor", msg)


def make_executor(timeout: Optional[int] = None) -> Executor:
    """Return an executor that runs commands on the local host.

    A missing binary yields returncode 127 instead of raising, so callers can
    treat it as "tool not installed".
    """

    def run(cmd: List[str], cwd: Optional[str] = None) -> RunResult:
        _debug(" ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            return RunResult(stdout="", stderr=str(exc), returncode=NOT_FOUND)
        except subprocess.TimeoutExpired:
            return RunResult(stdout="", stderr=f"timed out: {' '.join(cmd)}", returncode=124)
        return RunResult(stdout=proc.stdout, stderr=proc.stderr, returncode=proc.returncode)

    return run
