"""
pywasa command-line interface.

Usage:
    pywasa hindcast --config FILE [options]   Run a WASA-SED hindcast
    python -m pywasa <command>                Same as above
"""

from __future__ import annotations

import argparse


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pywasa",
        description="Python tools for WASA-SED hindcast runs.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Register subcommands
    from pywasa.cli.hindcast import add_hindcast_parser

    add_hindcast_parser(subparsers)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    # Dispatch to the subcommand handler
    result: int = args.func(args)
    return result


__all__ = ["main"]
