# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
ACP command line entry point.

Usage:
    acp install <repository-url> [-y]
    acp list [-v] [--outdated] [--modified]
    acp remove <package-name> [-y] [--keep-modified]
    acp validate [--level quick|standard|full] [--skip-tests] [--skip-docker] [--fix] [-v]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from acp import __version__
from acp.cli import install, list as list_command, remove, validate
from acp.cli.context import CommandContext
from acp.cli.output import Output
from acp.core.config import find_config_file, load_config
from acp.core.errors import ACPError, OperationCancelled, sanitize_error_for_user
from acp.core.logging import get_logger

logger = logging.getLogger(__name__)

COMMANDS = (install, list_command, remove, validate)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="acp",
        description="ACP package manager: install, list, remove and validate agent packages"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--project-dir",
        default=".",
        help="Project root containing agent/ (default: current directory)"
    )
    parser.add_argument("--config", help="Config file (default: $ACP_CONFIG or acp.yaml)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING, or $ACP_LOG_LEVEL)"
    )
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    for command in COMMANDS:
        command.add_parser(subparsers)

    return parser


def main(argv: Optional[List[str]] = None, **context_kwargs) -> int:
    """
    Run one command.

    Args:
        argv: Arguments (default: sys.argv[1:])
        **context_kwargs: CommandContext overrides (out, input_fn, runner, client)

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    out = context_kwargs.pop("out", None) or Output(color=False if args.no_color else None)

    try:
        project_dir = Path(args.project_dir)
        config = load_config(find_config_file(project_dir, args.config))

        log_level = args.log_level or config.log_level
        get_logger(
            "acp",
            log_level=log_level,
            log_format=config.log_format,
            log_file=Path(config.log_file) if config.log_file else None
        )

        ctx = CommandContext.create(project_dir, config, out=out, **context_kwargs)
        return args.handler(args, ctx)

    except OperationCancelled as e:
        out.line(e.message)
        return e.exit_code
    except ACPError as e:
        logger.debug(f"{args.command} failed", exc_info=True, extra={"error": e.to_dict()})
        out.error(sanitize_error_for_user(e))
        return e.exit_code
    except OSError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        out.error(sanitize_error_for_user(e))
        return 1
    except KeyboardInterrupt:
        out.line()
        out.error("Interrupted")
        return 130


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
