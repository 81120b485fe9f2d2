"""
CLI argument parsing. Three subcommands: ``mounts`` (mount optimizer), ``tune``
(laptop tuner) and ``run`` (orchestrator driver covering both).
"""

import argparse
import os
from pathlib import Path
from typing import Optional

from .preflight import DEFAULT_HOST
from .schema import DriverConfig, Mode, MountConfig, PowertopMode, TuneConfig

DEFAULT_LOG_DIR = Path("/var/log/fedora-tune")


def _add_fstab_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--fstab",
        type=Path,
        default=Path("/etc/fstab"),
        help="Mount table to audit (default: /etc/fstab)",
    )
    p.add_argument(
        "--proposal",
        type=Path,
        default=Path("/etc/fstab.optimized"),
        help="Where to write the proposed mount table (default: /etc/fstab.optimized)",
    )


def _add_powertop_args(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument(
        "--powertop",
        dest="powertop",
        action="store_const",
        const=PowertopMode.ON,
        default=PowertopMode.AUTO,
        help="Opt in to the powertop autotune service",
    )
    group.add_argument(
        "--no-powertop",
        dest="powertop",
        action="store_const",
        const=PowertopMode.OFF,
        default=PowertopMode.AUTO,
        help="Force-disable the powertop autotune service",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fedtune",
        description="Audit and tune a Fedora laptop: fstab mount options and OS services.",
    )
    parser.add_argument(
        "--expect-host",
        default=os.environ.get("FEDTUNE_HOST", DEFAULT_HOST),
        metavar="HOST",
        help=f"Refuse to run unless the static hostname matches (default: $FEDTUNE_HOST or {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--expect-uuid",
        default=os.environ.get("FEDTUNE_HW_UUID") or None,
        metavar="UUID",
        help="Also require this DMI product UUID (default: $FEDTUNE_HW_UUID)",
    )
    parser.add_argument(
        "--host-root",
        type=Path,
        default=Path("/"),
        help="Root path for files read and written by the tuner (default: /)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress per-command and per-check output; show banners, warnings and errors",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # Mount optimizer
    mounts = sub.add_parser(
        "mounts",
        help="Audit /etc/fstab and propose conservative mount options",
        description="Writes a proposal and prints a diff. Only replaces /etc/fstab with --apply.",
    )
    _add_fstab_args(mounts)
    mounts.add_argument(
        "--apply",
        action="store_true",
        help="After validation, replace /etc/fstab with the proposal and enable fstrim.timer",
    )

    # Laptop tuner
    tune = sub.add_parser(
        "tune",
        help="Configure repositories, virtualization, containers, power and snapshots",
    )
    mode = tune.add_mutually_exclusive_group()
    mode.add_argument(
        "--apply",
        dest="mode",
        action="store_const",
        const=Mode.APPLY,
        default=Mode.APPLY,
        help="Perform actions (default)",
    )
    mode.add_argument(
        "--verify-only",
        dest="mode",
        action="store_const",
        const=Mode.VERIFY,
        default=Mode.APPLY,
        help="Run checks only; make no changes",
    )
    _add_powertop_args(tune)

    # Driver
    run = sub.add_parser(
        "run",
        help="Run the mount optimizer and the laptop tuner with prompts and logging",
    )
    run.add_argument("--non-interactive", action="store_true",
                     help="Take the default answer (no) at every prompt")
    run.add_argument("--apply-mount", action="store_true",
                     help="Apply fstab changes after the audit")
    run.add_argument("--apply-tuner", action="store_true",
                     help="Run the tuner in apply mode (else verify-only or prompt)")
    run.add_argument("--verify-only", action="store_true",
                     help="Force the tuner to verify-only")
    run.add_argument("--skip-mount", action="store_true",
                     help="Skip the mount optimizer entirely")
    run.add_argument("--skip-tuner", action="store_true",
                     help="Skip the laptop tuner entirely")
    run.add_argument(
        "--log-dir",
        type=Path,
        default=Path(os.environ.get("FEDTUNE_LOG_DIR") or DEFAULT_LOG_DIR),
        help=f"Log directory (default: $FEDTUNE_LOG_DIR or {DEFAULT_LOG_DIR})",
    )
    _add_powertop_args(run)
    _add_fstab_args(run)

    return parser


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def mount_config_from_args(args: argparse.Namespace) -> MountConfig:
    return MountConfig(fstab=args.fstab, proposal=args.proposal, apply=getattr(args, "apply", False))


def tune_config_from_args(args: argparse.Namespace) -> TuneConfig:
    return TuneConfig(mode=args.mode, powertop=args.powertop, host_root=args.host_root)


def driver_config_from_args(args: argparse.Namespace) -> DriverConfig:
    return DriverConfig(
        non_interactive=args.non_interactive,
        apply_mount=args.apply_mount,
        apply_tuner=args.apply_tuner,
        force_verify=args.verify_only,
        skip_mount=args.skip_mount,
        skip_tuner=args.skip_tuner,
        powertop=args.powertop,
        log_dir=args.log_dir,
        mount=MountConfig(fstab=args.fstab, proposal=args.proposal),
        host_root=args.host_root,
    )
