# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
ACP package manager.

Installs, tracks and removes Agent Context Protocol content packages
and validates MCP auth server projects.
"""

__version__ = "1.0.0"
