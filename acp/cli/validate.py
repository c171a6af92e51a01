# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
validate: run the MCP auth server project checks.
"""

import argparse

from acp.cli.context import CommandContext
from acp.validation import LEVELS, ValidationOptions, ValidationRunner


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "validate",
        help="Validate an MCP auth server project",
        description="Validate project structure, dependencies, configuration, build and deployment files"
    )
    parser.add_argument("--level", choices=LEVELS, default="quick", help="Validation level (default: quick)")
    parser.add_argument("--skip-tests", action="store_true", help="Don't run the test suite")
    parser.add_argument("--skip-docker", action="store_true", help="Skip Docker checks")
    parser.add_argument("--fix", action="store_true", help="Apply safe automatic fixes before checking")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show tool output and info messages")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CommandContext) -> int:
    options = ValidationOptions(
        level=args.level,
        skip_tests=args.skip_tests,
        skip_docker=args.skip_docker,
        fix=args.fix,
        verbose=args.verbose,
    )
    runner = ValidationRunner(
        ctx.project_dir,
        options,
        runner=ctx.runner,
        config=ctx.config,
        out=ctx.out
    )
    report = runner.run()
    report.render(ctx.out, verbose=options.verbose)
    return report.exit_code
