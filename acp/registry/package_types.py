# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Type Definitions for ACP packages

Defines the package.yaml format a package repository publishes: name,
version, and the patterns, commands and designs it installs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from acp.core.errors import InvalidVersionError, PackageStructureError, ParseError
from acp.registry.models import Category, validate_package_name
from acp.registry.versions import SemVer
from acp.yaml import Mapping, Scalar, YamlDocument

PACKAGE_FILE = "package.yaml"

# where a category's files live inside a package repository, in lookup order
SOURCE_DIRS: Dict[str, List[str]] = {
    "patterns": ["agent/patterns", "patterns"],
    "commands": ["agent/commands", "commands"],
    "designs": ["agent/design", "agent/designs", "design", "designs"],
}


@dataclass
class ContentFile:
    """A file a package declares under contents"""
    category: Category
    name: str
    description: str = ""

    def __post_init__(self):
        """Validate content file fields"""
        if not self.name:
            raise ValueError("Content file name cannot be empty")

        if "/" in self.name or "\\" in self.name or self.name in (".", ".."):
            raise ValueError(f"Content file name must not contain a path: {self.name}")

    def __str__(self) -> str:
        return f"{self.category.value}/{self.name}"


@dataclass
class PackageDefinition:
    """
    Package metadata loaded from a repository's package.yaml.

    Contains the package identity and the files it installs.
    """
    name: str
    version: str
    description: str = ""
    files: List[ContentFile] = field(default_factory=list)

    def __post_init__(self):
        """Validate package fields"""
        validate_package_name(self.name)

        if not self.version:
            raise ValueError("Package version cannot be empty")

        # raises InvalidVersionError for anything but major.minor.patch
        self.version = str(SemVer.parse(self.version))

        seen = set()
        for content in self.files:
            key = (content.category, content.name)
            if key in seen:
                raise ValueError(f"Duplicate {content.category.value} entry: {content.name}")
            seen.add(key)

    @property
    def semver(self) -> SemVer:
        return SemVer.parse(self.version)

    def files_in(self, category: Category) -> List[ContentFile]:
        return [content for content in self.files if content.category == category]

    def counts(self) -> Dict[str, int]:
        return {category.value: len(self.files_in(category)) for category in Category}

    @classmethod
    def from_document(cls, document: YamlDocument) -> "PackageDefinition":
        """
        Create PackageDefinition from a parsed package.yaml.

        Raises:
            ParseError: If required fields are missing or malformed
        """
        name = document.read("name")
        version = document.read("version")

        if not all([name, version]):
            raise ParseError(
                f"{PACKAGE_FILE} missing required fields: name or version. "
                f"Found: name={name}, version={version}"
            )

        files = []
        for category in Category:
            node = document.get_node(f"contents.{category.value}")
            if node is None or (isinstance(node, Scalar) and node.is_null):
                continue
            for item in document.get_objects(f"contents.{category.value}"):
                files.append(_content_file(category, item))
            # scalar shorthand: "- file.md"
            values = document.get_array(f"contents.{category.value}")
            if isinstance(values, list):
                files.extend(ContentFile(category=category, name=value) for value in values if value)

        try:
            return cls(
                name=name,
                version=version,
                description=document.read("description") or "",
                files=files,
            )
        except InvalidVersionError as e:
            raise ParseError(f"{PACKAGE_FILE}: {e.message}")
        except ValueError as e:
            raise ParseError(f"{PACKAGE_FILE}: {e}")

    @classmethod
    def from_file(cls, package_file: Path) -> "PackageDefinition":
        """
        Load package definition from a package.yaml file.

        Raises:
            FileNotFoundError: If package.yaml doesn't exist
            ParseError: If package.yaml is malformed
        """
        package_file = Path(package_file)
        if not package_file.exists():
            raise FileNotFoundError(f"Package definition not found: {package_file}")
        return cls.from_document(YamlDocument.load(package_file))

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


def _content_file(category: Category, item: Mapping) -> ContentFile:
    name_node = item.get("name")
    description_node = item.get("description")
    name = name_node.value if isinstance(name_node, Scalar) else None
    if not name:
        raise ParseError(
            f"{PACKAGE_FILE}: every contents.{category.value} entry needs a name",
            line=item.line
        )
    description = description_node.value if isinstance(description_node, Scalar) else ""
    try:
        return ContentFile(category=category, name=name, description=description or "")
    except ValueError as e:
        raise ParseError(f"{PACKAGE_FILE}: {e}", line=item.line)


def source_path(package_dir: Path, content: ContentFile) -> Optional[Path]:
    """Location of a declared file inside a package repository, if present."""
    for directory in SOURCE_DIRS[content.category.value]:
        candidate = Path(package_dir) / directory / content.name
        if candidate.is_file():
            return candidate
    return None


def validate_package_structure(package_dir: Path, package: PackageDefinition) -> Dict[str, Path]:
    """
    Validate that a package repository contains every file it declares.

    Args:
        package_dir: Path to the cloned package repository
        package: Definition loaded from its package.yaml

    Returns:
        Mapping of "category/name" to the file's path in the repository

    Raises:
        PackageStructureError: Listing every declared file that is missing
    """
    if not Path(package_dir).is_dir():
        raise PackageStructureError(f"Package directory does not exist: {package_dir}")

    found: Dict[str, Path] = {}
    missing: List[str] = []
    for content in package.files:
        path = source_path(package_dir, content)
        if path is None:
            missing.append(str(content))
        else:
            found[str(content)] = path

    if missing:
        raise PackageStructureError(
            f"Package {package} declares files missing from the repository: {', '.join(missing)}",
            missing=missing
        )

    return found
