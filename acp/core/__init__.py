# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the ACP package manager.

This package contains:
- config: Configuration management
- errors: Custom exceptions
- logging: Structured logging
"""

from acp.core.config import load_config, Config
from acp.core.errors import ACPError, ParseError, PackageNotFoundError
from acp.core.logging import get_logger

__all__ = [
    "load_config",
    "Config",
    "ACPError",
    "ParseError",
    "PackageNotFoundError",
    "get_logger",
]
