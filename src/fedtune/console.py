"""Console output: section banners, status lines, optional tee to a run log."""

import re
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from ._util import make_warning

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")


class _C:
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    RESET = "\033[0m"


class Console:
    """Prints progress for humans and mirrors every line into *log_path* when set.

    Colors are only emitted when the stream is a TTY; the log file never gets
    escape codes.  Warnings and errors are collected in ``self.warnings`` so
    the driver can put them in the run report.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        err_stream: Optional[TextIO] = None,
        log_path: Optional[Path] = None,
        color: Optional[bool] = None,
        quiet: bool = False,
    ):
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or sys.stderr
        self.log_path = log_path
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.color = color
        self.quiet = quiet
        self.warnings: List[dict] = []
        self._source = "fedtune"

    # ── plumbing ─────────────────────────────────────────────────────────

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _emit(self, text: str, err: bool = False) -> None:
        print(text, file=self.err_stream if err else self.stream)
        if self.log_path is not None:
            with open(self.log_path, "a") as fh:
                fh.write(_ANSI_RE.sub("", text) + "\n")

    def set_source(self, source: str) -> None:
        """Label subsequent warnings with the step that raised them."""
        self._source = source

    def attach_log(self, log_path: Path) -> None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.touch()
        self.log_path = log_path

    # ── public helpers ───────────────────────────────────────────────────

    def log(self, msg: str) -> None:
        self._emit(msg)

    def say(self, msg: str) -> None:
        self._emit(f"\n{self._c(_C.BOLD)}==> {msg}{self._c(_C.RESET)}")

    def info(self, msg: str) -> None:
        self._emit(f"{self._c(_C.BLUE)}{msg}{self._c(_C.RESET)}")

    def ok(self, msg: str) -> None:
        if not self.quiet:
            self._emit(f"   {self._c(_C.GREEN)}ok{self._c(_C.RESET)}    {msg}")

    def warn(self, msg: str) -> None:
        self.warnings.append(make_warning(self._source, msg))
        self._emit(f"   {self._c(_C.YELLOW)}warn{self._c(_C.RESET)}  {msg}")

    def err(self, msg: str) -> None:
        self.warnings.append(make_warning(self._source, msg, severity="error"))
        self._emit(f"   {self._c(_C.RED)}error{self._c(_C.RESET)} {msg}", err=True)

    def dry(self, msg: str) -> None:
        self._emit(f"   {self._c(_C.YELLOW)}[verify]{self._c(_C.RESET)} {msg}")

    def run(self, cmd: List[str]) -> None:
        if not self.quiet:
            self._emit(f"{self._c(_C.DIM)}> {' '.join(cmd)}{self._c(_C.RESET)}")

    def diff(self, text: str) -> None:
        for line in text.splitlines():
            if line.startswith("+") and not line.startswith("+++"):
                self._emit(f"{self._c(_C.GREEN)}{line}{self._c(_C.RESET)}")
            elif line.startswith("-") and not line.startswith("---"):
                self._emit(f"{self._c(_C.RED)}{line}{self._c(_C.RESET)}")
            else:
                self._emit(line)

    def result(self, label: str, value: str) -> None:
        """Summary line: green when something was applied, yellow otherwise."""
        code = _C.GREEN if value == "applied" else _C.YELLOW
        self._emit(f"{self._c(code)}{label}: {value}{self._c(_C.RESET)}")


def timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
