"""
fedtune data model.

Mount table records consumed by the fstab rewriter, the immutable configuration
records passed into each workflow, and the run report written by the driver.
"""

from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


# --- Mount table ---


class MountEntry(BaseModel):
    """One structured line of /etc/fstab."""

    kind: Literal["entry"] = "entry"
    source: str
    target: str
    fs_type: str
    options: List[str] = Field(default_factory=list)
    dump_freq: int = 0
    pass_no: int = 0
    # Original text of the line; None once the options have been rewritten.
    raw: Optional[str] = None
    line_no: int = 0


class OpaqueLine(BaseModel):
    """Comment, blank or malformed line, reproduced verbatim."""

    kind: Literal["opaque"] = "opaque"
    text: str
    malformed: bool = False
    line_no: int = 0


class MountTable(BaseModel):
    lines: List[Union[MountEntry, OpaqueLine]] = Field(default_factory=list)
    trailing_newline: bool = True


# --- Configuration ---


class Mode(str, Enum):
    VERIFY = "verify"
    APPLY = "apply"


class PowertopMode(str, Enum):
    AUTO = "auto"  # treated as off; powertop is opt-in
    ON = "on"
    OFF = "off"


class MountConfig(BaseModel):
    """Inputs of the mount optimizer workflow."""

    fstab: Path = Path("/etc/fstab")
    proposal: Path = Path("/etc/fstab.optimized")
    apply: bool = False

    model_config = {"frozen": True, "extra": "forbid"}


class TuneConfig(BaseModel):
    """Inputs of the laptop tuner. host_root prefixes every file the steps read or write."""

    mode: Mode = Mode.APPLY
    powertop: PowertopMode = PowertopMode.AUTO
    host_root: Path = Path("/")

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def applying(self) -> bool:
        return self.mode == Mode.APPLY

    @property
    def powertop_enabled(self) -> bool:
        return self.powertop == PowertopMode.ON


class DriverConfig(BaseModel):
    """Inputs of the orchestrator driver (``fedtune run``)."""

    non_interactive: bool = False
    apply_mount: bool = False
    apply_tuner: bool = False
    force_verify: bool = False
    skip_mount: bool = False
    skip_tuner: bool = False
    powertop: PowertopMode = PowertopMode.AUTO
    log_dir: Path = Path("/var/log/fedora-tune")
    mount: MountConfig = Field(default_factory=MountConfig)
    host_root: Path = Path("/")

    model_config = {"frozen": True, "extra": "forbid"}


# --- Results ---


class StepStatus(str, Enum):
    OK = "ok"            # already in the desired state
    CHANGED = "changed"  # state was changed in apply mode
    PLANNED = "planned"  # verify mode: a change would be made
    SKIPPED = "skipped"
    WARNING = "warning"
    FAILED = "failed"


class StepMessage(BaseModel):
    level: Literal["ok", "warn", "error", "info"] = "ok"
    text: str


class StepResult(BaseModel):
    name: str
    title: str
    status: StepStatus = StepStatus.OK
    messages: List[StepMessage] = Field(default_factory=list)

    def note(self, level: str, text: str) -> None:
        self.messages.append(StepMessage(level=level, text=text))
        if level == "error":
            self.status = StepStatus.FAILED
        elif level == "warn" and self.status != StepStatus.FAILED:
            self.status = StepStatus.WARNING
        elif level == "info" and self.status == StepStatus.OK:
            self.status = StepStatus.PLANNED

    def mark_changed(self) -> None:
        if self.status in (StepStatus.OK, StepStatus.PLANNED):
            self.status = StepStatus.CHANGED


class Proposal(BaseModel):
    """Outcome of proposing a rewritten mount table."""

    source: str
    output: str
    changed_targets: List[str] = Field(default_factory=list)
    malformed_lines: List[int] = Field(default_factory=list)
    diff: str = ""


class MountOutcome(BaseModel):
    proposal: Optional[Proposal] = None
    validated: bool = False
    applied: bool = False
    backup: Optional[str] = None


class RunReport(BaseModel):
    """Everything one driver invocation did. Serialized as run-<ts>.json."""

    meta: dict = Field(default_factory=dict)  # hostname, timestamp, log_file
    mount_result: str = "skipped"
    tuner_result: str = "skipped"
    mount: Optional[MountOutcome] = None
    steps: List[StepResult] = Field(default_factory=list)
    warnings: List[dict] = Field(default_factory=list)

    model_config = {"extra": "forbid"}
