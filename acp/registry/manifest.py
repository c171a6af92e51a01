# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Manifest Store

Single responsibility: Load and save the installed-package ledger
(agent/manifest.yaml) through the YAML subset reader/writer.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from acp.core.config import Config
from acp.core.errors import ManifestNotFoundError, ParseError
from acp.core.logging import log_event
from acp.registry.models import Category, FileEntry, Manifest, MANIFEST_VERSION, PackageContents, PackageRecord
from acp.utils import atomic_write_text, format_timestamp, utc_now
from acp.yaml import Document, Mapping, MappingEntry, Scalar, Sequence, YamlDocument
from acp.yaml.serializer import serialize

logger = logging.getLogger(__name__)

MANIFEST_HEADER = [
    "# ACP Package Manifest",
    "# Tracks installed packages, their versions and installed files",
    "",
]


class ManifestStore:
    """Handle on one manifest file; passed to every operation that reads or writes it"""

    def __init__(self, path: Path, config: Optional[Config] = None):
        """
        Initialize manifest store.

        Args:
            path: Path to manifest.yaml
            config: Tool configuration (category directories for legacy entries)
        """
        self.path = Path(path)
        self.config = config or Config()

    @classmethod
    def for_project(cls, project_dir: Path, config: Config) -> "ManifestStore":
        return cls(config.manifest_path(project_dir), config)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Manifest:
        """
        Load the manifest from disk.

        Returns:
            Manifest with packages in document order

        Raises:
            ManifestNotFoundError: If the manifest file doesn't exist
            ParseError: If the document or a package record is malformed
        """
        if not self.exists():
            raise ManifestNotFoundError(str(self.path))

        document = YamlDocument.load(self.path)
        packages_node = document.root.get("packages")

        packages = {}
        if isinstance(packages_node, Mapping):
            for entry in packages_node:
                packages[entry.key] = self._load_record(entry)
        elif packages_node is not None and not _is_null(packages_node):
            raise ParseError("'packages' must be a mapping of package names")

        try:
            return Manifest(
                manifest_version=document.read("manifest_version") or MANIFEST_VERSION,
                updated_at=document.read("updated_at"),
                packages=packages,
            )
        except ValidationError as e:
            raise ParseError(f"invalid manifest header: {_first_error(e)}")

    def load_or_empty(self) -> Manifest:
        """Installed packages, or an empty manifest before the first install."""
        if not self.exists():
            return Manifest()
        return self.load()

    def save(self, manifest: Manifest) -> Manifest:
        """
        Write the manifest atomically and stamp its updated_at.

        The previous file stays intact until the new one is complete.

        Returns:
            The manifest as written
        """
        stamped = manifest.model_copy(update={"updated_at": utc_now()})
        atomic_write_text(self.path, self.render(stamped))
        log_event(
            logger, "manifest_saved",
            path=str(self.path), package_count=len(stamped)
        )
        return stamped

    # -- conversion --

    def _load_record(self, entry: MappingEntry) -> PackageRecord:
        name = entry.key
        node = entry.value
        if not isinstance(node, Mapping):
            raise ParseError(f"package '{name}' must be a mapping", line=entry.line)

        contents_node = node.get("contents")
        contents = {}
        for category in Category:
            contents[category.value] = self._load_files(name, category, contents_node)

        try:
            return PackageRecord(
                source=_text(node, "source"),
                package_version=_text(node, "package_version"),
                installed_at=_text(node, "installed_at"),
                updated_at=_text(node, "updated_at") or _text(node, "installed_at"),
                contents=PackageContents(**contents),
            )
        except ValidationError as e:
            raise ParseError(f"invalid record for package '{name}': {_first_error(e)}", line=entry.line)

    def _load_files(self, package: str, category: Category, contents_node) -> List[FileEntry]:
        if not isinstance(contents_node, Mapping):
            return []

        files_node = contents_node.get(category.value)
        if files_node is None or _is_null(files_node):
            return []
        if not isinstance(files_node, Sequence):
            raise ParseError(f"'{package}.contents.{category.value}' must be a list", line=files_node.line)

        entries = []
        for item in files_node:
            if not isinstance(item, Mapping):
                raise ParseError(
                    f"'{package}.contents.{category.value}' entries must be '- name: <file>'",
                    line=item.line
                )
            file_name = _text(item, "name")
            try:
                entries.append(FileEntry(
                    name=file_name,
                    installed_path=_text(item, "installed_path")
                    or self.config.category_relpath(category.value, file_name),
                    checksum=_text(item, "checksum"),
                ))
            except ValidationError as e:
                raise ParseError(f"invalid file entry in '{package}': {_first_error(e)}", line=item.line)
        return entries

    def render(self, manifest: Manifest) -> str:
        """Manifest document text."""
        root = Mapping()
        root.entries.append(MappingEntry(
            "manifest_version", Scalar(manifest.manifest_version), leading=list(MANIFEST_HEADER)
        ))
        root.entries.append(MappingEntry("updated_at", Scalar(format_timestamp(manifest.updated_at))))

        packages = Mapping()
        for name, record in manifest.packages.items():
            packages.entries.append(MappingEntry(name, _record_node(record)))
        root.entries.append(MappingEntry("packages", packages))

        return serialize(Document(root=root))


def _record_node(record: PackageRecord) -> Mapping:
    node = Mapping()
    node.set("source", Scalar(record.source))
    node.set("package_version", Scalar(record.package_version))
    node.set("installed_at", Scalar(format_timestamp(record.installed_at)))
    node.set("updated_at", Scalar(format_timestamp(record.updated_at)))

    contents = Mapping()
    for category in Category:
        files = Sequence()
        for entry in getattr(record.contents, category.value):
            item = Mapping()
            item.set("name", Scalar(entry.name))
            item.set("installed_path", Scalar(entry.installed_path))
            if entry.checksum:
                item.set("checksum", Scalar(entry.checksum))
            files.append(item)
        contents.set(category.value, files)
    node.set("contents", contents)
    return node


def _text(node: Mapping, key: str) -> Optional[str]:
    value = node.get(key)
    if isinstance(value, Scalar):
        return value.value
    return None


def _is_null(node) -> bool:
    return isinstance(node, Scalar) and node.is_null


def _first_error(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
