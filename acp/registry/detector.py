# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Modification Detector

Single responsibility: Decide whether an installed file differs from
what was installed.

The baseline is the checksum recorded in the manifest at install time.
Entries written without one are compared against the package source
instead, provided the source is still at the installed version. If the
source can't be read or has moved on, the verdict is UNKNOWN, which is
treated as not modified.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from acp.core.errors import ACPError, sanitize_error_for_user
from acp.registry.client import RegistryClient
from acp.registry.models import Category, FileEntry, Manifest
from acp.utils import file_checksum

logger = logging.getLogger(__name__)


class ModificationStatus(str, Enum):
    """Verdict on one installed file"""
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    MISSING = "missing"
    UNKNOWN = "unknown"


class ModificationDetector:
    """Compares installed files against their installation baseline"""

    def __init__(self, project_dir: Path, manifest: Manifest, client: Optional[RegistryClient] = None):
        """
        Initialize modification detector.

        Args:
            project_dir: Project root that installed_path values are relative to
            manifest: Loaded manifest
            client: Registry client for entries without a recorded checksum;
                    without one those entries are UNKNOWN
        """
        self.project_dir = Path(project_dir)
        self.manifest = manifest
        self.client = client
        # per-package source checksums; None marks a source that couldn't be read
        self._source_checksums: Dict[str, Optional[Dict[str, str]]] = {}

    def status(self, package: str, category: str, file_name: str) -> ModificationStatus:
        """
        Raises:
            PackageNotFoundError: If the package isn't installed
        """
        entry = self._entry(package, category, file_name)
        if entry is None:
            return ModificationStatus.UNKNOWN
        return self.entry_status(package, Category(category), entry)

    def entry_status(self, package: str, category: Category, entry: FileEntry) -> ModificationStatus:
        path = self.project_dir / entry.installed_path
        if not path.is_file():
            return ModificationStatus.MISSING

        baseline = entry.checksum or self._source_checksum(package, category, entry.name)
        if baseline is None:
            return ModificationStatus.UNKNOWN

        try:
            current = file_checksum(path)
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return ModificationStatus.UNKNOWN

        if current == baseline:
            return ModificationStatus.UNMODIFIED
        return ModificationStatus.MODIFIED

    def is_modified(self, package: str, category: str, file_name: str) -> bool:
        """True only when the file provably differs from its baseline."""
        return self.status(package, category, file_name) == ModificationStatus.MODIFIED

    def modified_files(self, package: str) -> List[Tuple[Category, FileEntry]]:
        """Modified files of a package, in manifest order."""
        record = self.manifest.get(package)
        return [
            (category, entry)
            for category, entry in record.contents.iter_files()
            if self.entry_status(package, category, entry) == ModificationStatus.MODIFIED
        ]

    def statuses(self, package: str) -> List[Tuple[Category, FileEntry, ModificationStatus]]:
        record = self.manifest.get(package)
        return [
            (category, entry, self.entry_status(package, category, entry))
            for category, entry in record.contents.iter_files()
        ]

    def _entry(self, package: str, category: str, file_name: str) -> Optional[FileEntry]:
        for entry in self.manifest.list_files(package, category):
            if entry.name == file_name:
                return entry
        return None

    def _source_checksum(self, package: str, category: Category, file_name: str) -> Optional[str]:
        if self.client is None:
            return None

        if package not in self._source_checksums:
            record = self.manifest.get(package)
            try:
                checksums = self.client.fetch_file_checksums(record.source, version=record.package_version)
            except (ACPError, OSError) as e:
                logger.warning(
                    f"No baseline for {package}; source unavailable: {sanitize_error_for_user(e)}"
                )
                checksums = None
            else:
                if checksums is None:
                    logger.warning(
                        f"No baseline for {package}; source is no longer at {record.package_version}"
                    )
            self._source_checksums[package] = checksums

        checksums = self._source_checksums[package]
        if checksums is None:
            return None
        return checksums.get(f"{category.value}/{file_name}")
