# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Data Models

Defines the installed-package ledger: the manifest, one record per
installed package, and one entry per tracked file. Validators enforce
the ledger invariants, so an invalid record can't be built or loaded.
"""

import re
from typing import Dict, Iterator, List, Optional, Tuple
from datetime import datetime, UTC
from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum

from acp.core.errors import InvalidVersionError, PackageNotFoundError
from acp.registry.versions import SemVer

MANIFEST_VERSION = "1.0.0"

# package names are manifest keys, so they must be plain YAML keys
PACKAGE_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")


def validate_package_name(name: str) -> str:
    if not name:
        raise ValueError("Package name cannot be empty")
    if not PACKAGE_NAME_RE.match(name):
        raise ValueError(
            f"Invalid package name: {name!r} (use letters, digits, '.', '_' and '-')"
        )
    return name


class Category(str, Enum):
    """Content category of an installed file"""
    PATTERNS = "patterns"
    COMMANDS = "commands"
    DESIGNS = "designs"


class FileEntry(BaseModel):
    """One tracked installed file"""
    name: str
    installed_path: str
    checksum: Optional[str] = None  # "sha256:<hex>" baseline recorded at install time

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("File name cannot be empty")
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"File name must not contain a path: {value}")
        return value


class PackageContents(BaseModel):
    """Tracked files of one package, by category"""
    patterns: List[FileEntry] = Field(default_factory=list)
    commands: List[FileEntry] = Field(default_factory=list)
    designs: List[FileEntry] = Field(default_factory=list)

    @field_validator("patterns", "commands", "designs")
    @classmethod
    def _unique_names(cls, entries: List[FileEntry]) -> List[FileEntry]:
        seen = set()
        for entry in entries:
            if entry.name in seen:
                raise ValueError(f"Duplicate file entry: {entry.name}")
            seen.add(entry.name)
        return entries

    def for_category(self, category: str) -> List[FileEntry]:
        return list(getattr(self, Category(category).value))

    def iter_files(self) -> Iterator[Tuple[Category, FileEntry]]:
        for category in Category:
            for entry in getattr(self, category.value):
                yield category, entry

    def counts(self) -> Dict[str, int]:
        return {category.value: len(getattr(self, category.value)) for category in Category}

    @property
    def total(self) -> int:
        return sum(self.counts().values())


class PackageRecord(BaseModel):
    """Record of an installed package"""
    source: str
    package_version: str
    installed_at: datetime
    updated_at: datetime
    contents: PackageContents = Field(default_factory=PackageContents)

    @field_validator("package_version")
    @classmethod
    def _semver(cls, value: str) -> str:
        try:
            return str(SemVer.parse(value))
        except InvalidVersionError as e:
            raise ValueError(e.message)

    @field_validator("installed_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        # timestamps without an offset are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _timestamps_ordered(self) -> "PackageRecord":
        if self.installed_at > self.updated_at:
            raise ValueError(
                f"installed_at ({self.installed_at.isoformat()}) is after "
                f"updated_at ({self.updated_at.isoformat()})"
            )
        return self

    @property
    def version(self) -> SemVer:
        return SemVer.parse(self.package_version)


class Manifest(BaseModel):
    """
    Installed-package ledger.

    Operations return a new Manifest; the one they were called on is
    left unchanged, so a command can abandon its work at any point
    without having touched what was loaded.
    """
    manifest_version: str = MANIFEST_VERSION
    updated_at: Optional[datetime] = None
    packages: Dict[str, PackageRecord] = Field(default_factory=dict)

    @field_validator("packages")
    @classmethod
    def _package_names(cls, packages: Dict[str, PackageRecord]) -> Dict[str, PackageRecord]:
        for name in packages:
            validate_package_name(name)
        return packages

    def names(self) -> List[str]:
        return list(self.packages)

    def get(self, name: str) -> PackageRecord:
        """
        Raises:
            PackageNotFoundError: If the package isn't installed
        """
        if name not in self.packages:
            raise PackageNotFoundError(name)
        return self.packages[name]

    def upsert(self, name: str, record: PackageRecord) -> "Manifest":
        """Replace the record in place, or append it after every other package."""
        validate_package_name(name)
        packages = dict(self.packages)
        packages[name] = record
        return self.model_copy(update={"packages": packages})

    def remove(self, name: str) -> "Manifest":
        """
        Raises:
            PackageNotFoundError: If the package isn't installed
        """
        if name not in self.packages:
            raise PackageNotFoundError(name)
        packages = {key: value for key, value in self.packages.items() if key != name}
        return self.model_copy(update={"packages": packages})

    def list_files(self, name: str, category: str) -> List[FileEntry]:
        return self.get(name).contents.for_category(category)

    def __contains__(self, name: str) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)
