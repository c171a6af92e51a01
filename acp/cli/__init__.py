# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Command line interface: one module per subcommand, each exposing
add_parser(subparsers) and run(args, ctx) -> exit code.
"""
