# -*- coding: utf-8 -*-
"""``minemodel`` command dispatcher.

Sub-commands are discovered through the ``minemodel.actions`` entry point
group; each one receives the remaining arguments and returns an exit code.
"""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import entry_points

import minemodel_lib

ACTIONS_GROUP = "minemodel.actions"


def build_parser(command_names: list[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minemodel",
        description="Mining survey data to GeoJSON and cross sections",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s version: {minemodel_lib.__version__}",
    )
    parser.add_argument(
        "command",
        choices=command_names,
        help="Sub-command to run",
    )
    parser.add_argument(
        "args",
        help=argparse.SUPPRESS,
        nargs=argparse.REMAINDER,
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    registered_commands = entry_points(group=ACTIONS_GROUP)
    parser = build_parser(sorted(registered_commands.names))

    args = parser.parse_args(argv)
    command_fn = registered_commands[args.command].load()
    return command_fn(args.args)


if __name__ == "__main__":
    sys.exit(main())
