# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the ACP package manager.

All exceptions inherit from ACPError for consistent error handling.
The CLI maps every ACPError to a single-line message and its exit code.
"""

from typing import Optional


class ACPError(Exception):
    """Base exception for all ACP errors."""

    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        details: Optional[dict] = None
    ):
        """
        Initialize ACP error.

        Args:
            message: Human-readable error message
            exit_code: Process exit code when this error ends a command
            details: Additional error details
        """
        self.message = message
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "exit_code": self.exit_code,
            "details": self.details
        }


# =============================================================================
# YAML subset
# =============================================================================

class ParseError(ACPError):
    """Malformed subset document."""

    def __init__(self, message: str, line: Optional[int] = None, details: Optional[dict] = None):
        """
        Initialize parse error.

        Args:
            message: Parse error message
            line: 1-based line number of the offending line
            details: Additional error details
        """
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message, details=details)
        self.line = line


class DuplicateKeyError(ParseError):
    """A mapping declares the same key more than once."""

    def __init__(self, key: str, line: Optional[int] = None, first_line: Optional[int] = None):
        message = f"duplicate key '{key}'"
        if first_line is not None:
            message += f" (first defined on line {first_line})"
        super().__init__(message, line=line)
        self.key = key
        self.first_line = first_line


class UnwritableError(ACPError):
    """A node tree that this YAML subset cannot represent."""
    pass


class MissingKeyError(ACPError):
    """Write target does not exist."""

    def __init__(self, key: str):
        super().__init__(f"Key does not exist: {key}")
        self.key = key


# =============================================================================
# Manifest and packages
# =============================================================================

class ManifestNotFoundError(ACPError):
    """No manifest at the expected path."""

    def __init__(self, path: str):
        super().__init__(f"No manifest found at {path}. No packages installed.")
        self.path = path


class PackageNotFoundError(ACPError):
    """Package is not installed."""

    def __init__(self, name: str):
        super().__init__(f"Package not installed: {name}")
        self.name = name


class InvalidVersionError(ACPError):
    """Version string is not major.minor.patch."""

    def __init__(self, version: str):
        super().__init__(
            f"Invalid version format. Expected semver (e.g., '1.2.3'), got '{version}'"
        )
        self.version = version


class PackageStructureError(ACPError):
    """A package repository does not match its package.yaml."""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message, details={"missing": missing or []})
        self.missing = missing or []


class NetworkError(ACPError):
    """Clone or fetch failure."""

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize network error.

        Args:
            message: Error message
            source: Repository URL being fetched
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.source = source


class OperationCancelled(ACPError):
    """User declined a confirmation prompt."""

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message, exit_code=0)


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = False) -> str:
    """
    Sanitize error messages for user display.
    Collapses the message to one line and removes stack traces.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly single-line error message
    """
    error_msg = " ".join(str(error).split())

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
