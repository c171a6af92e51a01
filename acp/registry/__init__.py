# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Module - manifest-based package tracking

Each module does one thing:
- models / manifest: the installed-package ledger and its store
- versions: semantic version comparison
- package_types: the package.yaml a repository publishes
- client: shallow clones of package repositories
- detector: local modification detection
"""

from .client import RegistryClient, UpdateCheck, UpdateStatus
from .detector import ModificationDetector, ModificationStatus
from .manifest import ManifestStore
from .models import Category, FileEntry, Manifest, PackageContents, PackageRecord
from .package_types import ContentFile, PackageDefinition
from .versions import SemVer, VersionComparison, compare_versions

__all__ = [
    "RegistryClient",
    "UpdateCheck",
    "UpdateStatus",
    "ModificationDetector",
    "ModificationStatus",
    "ManifestStore",
    "Category",
    "FileEntry",
    "Manifest",
    "PackageContents",
    "PackageRecord",
    "ContentFile",
    "PackageDefinition",
    "SemVer",
    "VersionComparison",
    "compare_versions",
]
