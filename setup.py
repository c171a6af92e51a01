# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the ACP package manager
"""

from setuptools import setup, find_packages

setup(
    name="acp-package-manager",
    version="1.0.0",
    description="Install, track, update and remove ACP agent packages from git repositories",
    author="adcl.io",
    packages=find_packages(include=["acp", "acp.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "packaging>=23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "acp=acp.cli.main:run",
        ]
    },
)
