"""
CLI entry point. Parses args, runs the host guard, and delegates to the
mount optimizer, the laptop tuner, or the driver.
"""

import sys
from typing import Optional

from .cli import driver_config_from_args, mount_config_from_args, parse_args, tune_config_from_args
from .console import Console
from .executor import Executor, make_executor
from .preflight import check_host, check_root
from .schema import StepStatus


def _require_root() -> bool:
    err = check_root()
    if err:
        print(f"ERROR: {err}", file=sys.stderr)
        return False
    return True


def main(argv: Optional[list] = None, executor: Optional[Executor] = None) -> int:
    args = parse_args(argv)
    if executor is None:
        executor = make_executor()

    err = check_host(args.expect_host, executor, args.expect_uuid, args.host_root)
    if err:
        print(err, file=sys.stderr)
        return 1

    console = Console(quiet=args.quiet)
    try:
        if args.command == "mounts":
            config = mount_config_from_args(args)
            if config.apply and not _require_root():
                return 1
            from .mount_optimizer import run as run_mounts
            run_mounts(config, executor, console)
            return 0

        if args.command == "tune":
            config = tune_config_from_args(args)
            if config.applying and not _require_root():
                return 1
            from .steps import run_all
            results = run_all(config, executor, console)
            return 1 if any(r.status == StepStatus.FAILED for r in results) else 0

        from .driver import UsageError, run_driver
        try:
            report = run_driver(driver_config_from_args(args), executor, console)
        except UsageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        return 1 if any(s.status == StepStatus.FAILED for s in report.steps) else 0
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
