# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package version handling.

ACP packages use plain major.minor.patch versions. Components compare as
integers, so 1.10.0 is newer than 1.9.0.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from packaging import version

from acp.core.errors import InvalidVersionError

_SEMVER_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


class VersionComparison(str, Enum):
    """Where the first version sits relative to the second"""
    OLDER = "older"
    SAME = "same"
    NEWER = "newer"


@dataclass(frozen=True, order=True)
class SemVer:
    """major.minor.patch with numeric components"""
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, value: Union[str, "SemVer"]) -> "SemVer":
        """
        Parse a version string.

        Raises:
            InvalidVersionError: If value is not major.minor.patch
        """
        if isinstance(value, SemVer):
            return value

        text = str(value).strip()
        if text.startswith("v"):
            text = text[1:]
        if not _SEMVER_RE.match(text):
            raise InvalidVersionError(str(value))

        major, minor, patch = version.Version(text).release
        return cls(major, minor, patch)

    @classmethod
    def is_valid(cls, value: str) -> bool:
        try:
            cls.parse(value)
        except InvalidVersionError:
            return False
        return True

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def compare_versions(a: Union[str, SemVer], b: Union[str, SemVer]) -> VersionComparison:
    """
    Compare two semantic versions

    Args:
        a: First version
        b: Second version

    Returns:
        OLDER if a < b, SAME if equal, NEWER if a > b

    Raises:
        InvalidVersionError: If either version is not major.minor.patch
    """
    v1 = SemVer.parse(a)
    v2 = SemVer.parse(b)

    if v1 < v2:
        return VersionComparison.OLDER
    elif v1 > v2:
        return VersionComparison.NEWER
    else:
        return VersionComparison.SAME
