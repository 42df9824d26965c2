"""
``pywasa hindcast`` subcommand.

Runs WASA-SED over all configured sub-catchments, weather realizations and
years.

Usage::

    pywasa hindcast --config hindcast.json [--workers 5]
                    [--on-failure abort|continue] [--dry-run] [--debug]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def add_hindcast_parser(subparsers: argparse._SubParsersAction) -> None:  # type: ignore[type-arg]
    """Register the ``hindcast`` subcommand."""
    p = subparsers.add_parser(
        "hindcast",
        help="Run WASA-SED hindcasts over sub-catchments, realizations and years.",
    )
    p.add_argument(
        "--config",
        type=Path,
        required=True,
        metavar="FILE",
        help="Hindcast configuration (JSON)",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of realizations run in parallel (overrides the configuration)",
    )
    p.add_argument(
        "--on-failure",
        choices=["abort", "continue"],
        default=None,
        help="Stop the batch at the first failure or keep going (overrides the configuration)",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Validate the setup and print the processing order without running",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    p.set_defaults(func=run_hindcast)


def run_hindcast(args: argparse.Namespace) -> int:
    """Run the ``hindcast`` subcommand."""
    from pywasa.core.exceptions import PyWASAError
    from pywasa.io.config import FailurePolicy, load_config
    from pywasa.runner.hindcast import HindcastScheduler

    log_level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
        if args.workers is not None:
            config.max_workers = max(1, args.workers)
        if args.on_failure is not None:
            config.on_failure = FailurePolicy(args.on_failure)

        scheduler = HindcastScheduler(config)

        if args.dry_run:
            order, realizations = scheduler.preflight()
            print("Processing order:")
            for sub in order:
                upstream = ", ".join(f"{u} ({sb})" for u, sb in sub.dependencies.items())
                print(f"  {sub.name}" + (f"  <- {upstream}" if upstream else ""))
            print(f"Realizations ({len(realizations)}): {', '.join(realizations)}")
            print(f"Years: {config.period.years[0]}-{config.period.years[-1]}")
            return 0

        result = scheduler.run()

    except PyWASAError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    counts = result.summary()
    print(", ".join(f"{n} {status}" for status, n in counts.items()))
    if result.success:
        return 0

    for failure in result.failures:
        print(
            f"Error: {failure.subcatchment}/{failure.realization}: {failure.message}",
            file=sys.stderr,
        )
    return 1
