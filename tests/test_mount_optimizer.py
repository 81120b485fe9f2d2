"""Tests for the mount optimizer workflow. File I/O goes to tmp_path; commands to a fixture executor."""

from pathlib import Path

import pytest

from fedtune import mount_optimizer
from fedtune.executor import NOT_FOUND
from fedtune.mount_optimizer import FstabValidationError, MountOptimizerError
from fedtune.schema import MountConfig

from conftest import FIXTURES, FakeExecutor, fail, ok, output

MOUNT_HELP_WITH_FAKE = ok(" -f, --fake              dry run; skip the mount(2) syscall\n")


@pytest.fixture
def fstab(tmp_path) -> Path:
    p = tmp_path / "fstab"
    p.write_text((FIXTURES / "fstab_fedora.txt").read_text())
    return p


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor({
        ("mount", "--help"): MOUNT_HELP_WITH_FAKE,
        ("systemctl", "list-unit-files"): ok("fstrim.timer  disabled  disabled\nfstrim.service static -\n"),
        ("findmnt", "-no", "SOURCE"): ok("/dev/nvme0n1p3[/root]\n"),
        ("findmnt", "-no", "FSTYPE"): ok("btrfs\n"),
    })


def test_propose_writes_proposal_and_diff(fstab, tmp_path):
    out = tmp_path / "fstab.optimized"
    proposal = mount_optimizer.propose(fstab, out)
    assert out.exists()
    assert "noatime" in out.read_text()
    assert proposal.changed_targets == ["/", "/boot", "/home", "/data"]
    assert proposal.malformed_lines == [16]
    assert proposal.diff.startswith(f"--- {fstab}")
    assert "+UUID=9c8b7a6d-5e4f-4a3b-9c2d-1e0f9a8b7c6d\t/data\tbtrfs" in proposal.diff
    # The source is never touched by a proposal.
    assert fstab.read_text() == (FIXTURES / "fstab_fedora.txt").read_text()


def test_propose_missing_source(tmp_path):
    with pytest.raises(MountOptimizerError, match="not found"):
        mount_optimizer.propose(tmp_path / "nope", tmp_path / "out")


def test_propose_no_changes_gives_empty_diff(tmp_path):
    src = tmp_path / "fstab"
    src.write_text("/dev/sda2 none swap sw 0 0\n")
    proposal = mount_optimizer.propose(src, tmp_path / "out")
    assert proposal.diff == ""
    assert proposal.changed_targets == []


def test_validate_runs_both_checks(tmp_path, executor, console):
    path = tmp_path / "fstab.optimized"
    mount_optimizer.validate(path, executor, console)
    assert executor.ran("systemd-analyze", "verify", str(path))
    assert executor.ran("mount", "--fake", "-a", "-T", str(path))


def test_validate_systemd_analyze_failure(tmp_path, executor, console):
    executor.responses[("systemd-analyze", "verify")] = fail(stderr="bad option")
    with pytest.raises(FstabValidationError, match="systemd-analyze"):
        mount_optimizer.validate(tmp_path / "f", executor, console)
    assert not executor.ran("mount", "--fake")


def test_validate_mount_fake_failure(tmp_path, executor, console):
    executor.responses[("mount", "--fake")] = fail(stderr="mount: /data: can't find UUID")
    with pytest.raises(FstabValidationError, match="mount --fake"):
        mount_optimizer.validate(tmp_path / "f", executor, console)


def test_validate_refuses_without_systemd_analyze(tmp_path, executor, console):
    executor.responses[("systemd-analyze",)] = fail(returncode=NOT_FOUND)
    with pytest.raises(FstabValidationError, match="systemd-analyze not found"):
        mount_optimizer.validate(tmp_path / "f", executor, console)


def test_run_apply_without_any_validator_leaves_fstab(fstab, tmp_path, executor, console):
    executor.responses[("systemd-analyze",)] = fail(returncode=NOT_FOUND)
    executor.responses[("mount", "--help")] = ok("Usage: mount [-lhV]\n")
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized", apply=True)
    with pytest.raises(FstabValidationError):
        mount_optimizer.run(config, executor, console)
    assert fstab.read_text() == (FIXTURES / "fstab_fedora.txt").read_text()
    assert not executor.ran("restorecon")


def test_already_optimal_space_delimited_table_is_not_applied(tmp_path, executor, console):
    fstab = tmp_path / "fstab"
    fstab.write_text("UUID=x / ext4 defaults,noatime 1 1\n")
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized", apply=True)
    outcome = mount_optimizer.run(config, executor, console)
    assert outcome.proposal.changed_targets == []
    assert not outcome.applied
    assert fstab.read_text() == "UUID=x / ext4 defaults,noatime 1 1\n"
    assert not list(tmp_path.glob("fstab.bak.*"))
    assert "No changes proposed" in output(console)


def test_validate_skips_dry_run_without_fake_support(tmp_path, executor, console):
    executor.responses[("mount", "--help")] = ok("Usage: mount [-lhV]\n")
    mount_optimizer.validate(tmp_path / "f", executor, console)
    assert not executor.ran("mount", "--fake")
    assert "mount --fake not available" in output(console)


def test_apply_backs_up_and_replaces(fstab, tmp_path, executor, console):
    original = fstab.read_text()
    new = tmp_path / "fstab.optimized"
    new.write_text("UUID=x / ext4 defaults,noatime 1 1\n")

    backup = mount_optimizer.apply(new, fstab, executor, console)

    assert backup.read_text() == original
    assert backup.name.startswith("fstab.bak.")
    assert fstab.read_text() == new.read_text()
    assert oct(fstab.stat().st_mode & 0o777) == oct(0o644)
    assert executor.ran("restorecon", "-v", str(fstab))
    assert executor.ran("systemctl", "daemon-reload")
    assert executor.ran("systemctl", "start", "systemd-remount-fs.service")
    # No temp files left behind.
    assert not list(tmp_path.glob("fstab.new.*"))


def test_apply_remount_failure_is_only_a_warning(fstab, tmp_path, executor, console):
    executor.responses[("systemctl", "start")] = fail()
    new = tmp_path / "new"
    new.write_text("x\n")
    mount_optimizer.apply(new, fstab, executor, console)
    assert fstab.read_text() == "x\n"
    assert "systemd-remount-fs.service returned non-zero" in output(console)


def test_configure_trim_enables_timer(executor, console):
    assert mount_optimizer.configure_trim(executor, console) is True
    assert executor.ran("systemctl", "enable", "--now", "fstrim.timer")


def test_configure_trim_without_timer(executor, console):
    executor.responses[("systemctl", "list-unit-files")] = ok("sshd.service enabled enabled\n")
    assert mount_optimizer.configure_trim(executor, console) is False
    assert not executor.ran("systemctl", "enable")
    assert "fstrim.timer not found" in output(console)


def test_run_audit_only(fstab, tmp_path, executor, console):
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized")
    outcome = mount_optimizer.run(config, executor, console)
    assert outcome.validated
    assert not outcome.applied
    assert outcome.backup is None
    assert fstab.read_text() == (FIXTURES / "fstab_fedora.txt").read_text()
    text = output(console)
    assert "Root device:  /dev/nvme0n1p3[/root] (fs: btrfs)" in text
    assert "unparseable entry left untouched" in text
    assert "Re-run with --apply" in text


def test_run_apply(fstab, tmp_path, executor, console):
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized", apply=True)
    outcome = mount_optimizer.run(config, executor, console)
    assert outcome.applied
    assert Path(outcome.backup).exists()
    assert fstab.read_text() == (tmp_path / "fstab.optimized").read_text()
    assert executor.ran("systemctl", "enable", "--now", "fstrim.timer")
    assert "Reboot recommended" in output(console)


def test_run_apply_twice_is_a_no_op(fstab, tmp_path, executor, console):
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized", apply=True)
    mount_optimizer.run(config, executor, console)
    applied = fstab.read_text()
    second = mount_optimizer.run(config, executor, console)
    assert not second.applied
    assert second.proposal.diff == ""
    assert fstab.read_text() == applied


def test_run_validation_failure_leaves_fstab(fstab, tmp_path, executor, console):
    executor.responses[("systemd-analyze", "verify")] = fail()
    config = MountConfig(fstab=fstab, proposal=tmp_path / "fstab.optimized", apply=True)
    with pytest.raises(FstabValidationError):
        mount_optimizer.run(config, executor, console)
    assert fstab.read_text() == (FIXTURES / "fstab_fedora.txt").read_text()
    assert not list(tmp_path.glob("fstab.bak.*"))


def test_describe_mounts_unknown_when_findmnt_missing(console):
    executor = FakeExecutor(default=fail(returncode=NOT_FOUND))
    mount_optimizer.describe_mounts(executor, console)
    assert "Root device:  unknown (fs: unknown)" in output(console)
