# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Project validation battery for MCP auth server projects.
"""

from acp.validation.checks import LEVELS, ValidationOptions, ValidationRunner
from acp.validation.report import (
    CheckResult,
    CheckStatus,
    Remediation,
    ValidationFailure,
    ValidationReport,
)

__all__ = [
    "LEVELS",
    "CheckResult",
    "CheckStatus",
    "Remediation",
    "ValidationFailure",
    "ValidationOptions",
    "ValidationReport",
    "ValidationRunner",
]
