"""Shared test helpers: a recording fixture executor and a captured console."""

import io
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import pytest

from fedtune.console import Console
from fedtune.executor import RunResult

FIXTURES = Path(__file__).parent / "fixtures"

Response = Union[RunResult, Callable[[List[str]], RunResult]]


def ok(stdout: str = "") -> RunResult:
    return RunResult(stdout=stdout, stderr="", returncode=0)


def fail(returncode: int = 1, stderr: str = "failed") -> RunResult:
    return RunResult(stdout="", stderr=stderr, returncode=returncode)


class FakeExecutor:
    """Executor returning canned results keyed by command prefix; records every call.

    The longest matching prefix wins.  Unknown commands get *default*.
    """

    def __init__(self, responses: Dict[Tuple[str, ...], Response] = None, default: RunResult = None):
        self.responses = dict(responses or {})
        self.default = default if default is not None else ok()
        self.calls: List[List[str]] = []

    def __call__(self, cmd, cwd=None) -> RunResult:
        cmd = [str(c) for c in cmd]
        self.calls.append(cmd)
        for prefix in sorted(self.responses, key=len, reverse=True):
            if tuple(cmd[:len(prefix)]) == prefix:
                res = self.responses[prefix]
                return res(cmd) if callable(res) else res
        return self.default

    def ran(self, *prefix: str) -> bool:
        return any(tuple(c[:len(prefix)]) == prefix for c in self.calls)

    def find(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[:len(prefix)]) == prefix]


@pytest.fixture
def console() -> Console:
    return Console(stream=io.StringIO(), err_stream=io.StringIO(), color=False)


def output(console: Console) -> str:
    return console.stream.getvalue() + console.err_stream.getvalue()
