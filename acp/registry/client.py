# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Client

Single responsibility: Fetch package repositories (shallow git clones)
and read what they declare.
"""

import logging
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

from acp.core.errors import ACPError, NetworkError, ParseError, sanitize_error_for_user
from acp.registry.models import Category, PackageRecord
from acp.registry.package_types import ContentFile, PACKAGE_FILE, PackageDefinition, source_path
from acp.registry.versions import SemVer, VersionComparison, compare_versions
from acp.utils import file_checksum

logger = logging.getLogger(__name__)


class UpdateStatus(str, Enum):
    """Result of an update check"""
    OUTDATED = "outdated"
    CURRENT = "current"
    UNKNOWN = "unknown"


@dataclass
class UpdateCheck:
    """Outcome of comparing an installed package against its source"""
    package: str
    status: UpdateStatus
    local_version: str
    remote_version: Optional[str] = None
    error: Optional[str] = None

    @property
    def update_available(self) -> bool:
        return self.status == UpdateStatus.OUTDATED


class RegistryClient:
    """Reads package repositories through shallow git clones"""

    def __init__(
        self,
        git_binary: str = "git",
        timeout: int = 120,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run
    ):
        """
        Initialize registry client.

        Args:
            git_binary: git executable
            timeout: Seconds before a clone is abandoned
            runner: subprocess.run-compatible callable
        """
        self.git_binary = git_binary
        self.timeout = timeout
        self.runner = runner

    @contextmanager
    def clone(self, source_url: str) -> Iterator[Path]:
        """
        Shallow-clone a repository into a temporary directory.

        The directory is deleted when the block exits, whether it
        succeeded, failed to parse, or the clone itself failed.

        Yields:
            Path to the clone

        Raises:
            NetworkError: If the clone fails
        """
        with tempfile.TemporaryDirectory(prefix="acp-clone-") as temp_dir:
            target = Path(temp_dir) / "repo"
            self._run_clone(source_url, target)
            yield target

    def _run_clone(self, source_url: str, target: Path) -> None:
        command = [self.git_binary, "clone", "--depth", "1", "--quiet", source_url, str(target)]
        logger.debug(f"Cloning {source_url}")

        try:
            result = self.runner(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            raise NetworkError(f"git not found ({self.git_binary}); install git to fetch packages",
                               source=source_url)
        except subprocess.TimeoutExpired:
            raise NetworkError(f"Timed out after {self.timeout}s cloning {source_url}", source=source_url)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip().splitlines()
            reason = stderr[-1] if stderr else f"git exited with {result.returncode}"
            raise NetworkError(f"Failed to clone {source_url}: {reason}", source=source_url)

    def fetch_package(self, source_url: str) -> PackageDefinition:
        """
        Read package.yaml from a repository.

        Raises:
            NetworkError: If the clone fails
            ParseError: If package.yaml is missing or malformed
        """
        with self.clone(source_url) as repo:
            return read_package_definition(repo, source_url)

    def fetch_remote_version(self, source_url: str) -> SemVer:
        """
        Version a repository currently declares in package.yaml.

        Raises:
            NetworkError: If the clone fails
            ParseError: If package.yaml or its version field is missing
        """
        return self.fetch_package(source_url).semver

    def fetch_file_checksums(self, source_url: str, version: Optional[str] = None) -> Optional[Dict[str, str]]:
        """
        Checksums of every declared file at the repository's current version.

        Args:
            source_url: Package repository
            version: Only answer if the repository is still at this version

        Returns:
            Mapping of "category/name" to checksum, or None when `version`
            is given and the repository has moved to another version

        Raises:
            NetworkError: If the clone fails
            ParseError: If package.yaml is missing or malformed
        """
        with self.clone(source_url) as repo:
            package = read_package_definition(repo, source_url)
            if version is not None and package.semver != SemVer.parse(version):
                logger.info(f"{source_url} is at {package.version}, not {version}")
                return None
            checksums = {}
            for content in package.files:
                path = source_path(repo, content)
                if path is not None:
                    checksums[str(content)] = file_checksum(path)
            return checksums

    def fetch_file_checksum(self, source_url: str, category: str, name: str) -> Optional[str]:
        key = str(ContentFile(category=Category(category), name=name))
        return (self.fetch_file_checksums(source_url) or {}).get(key)

    def check_for_update(self, name: str, record: PackageRecord) -> UpdateCheck:
        """
        Compare an installed package with its source. Never raises.

        Returns:
            UpdateCheck with status UNKNOWN when the source can't be read
        """
        try:
            remote = self.fetch_remote_version(record.source)
        except (ACPError, OSError) as e:
            reason = sanitize_error_for_user(e)
            logger.warning(f"Update check failed for {name}: {reason}")
            return UpdateCheck(
                package=name,
                status=UpdateStatus.UNKNOWN,
                local_version=record.package_version,
                error=reason
            )

        comparison = compare_versions(record.package_version, remote)
        status = UpdateStatus.OUTDATED if comparison == VersionComparison.OLDER else UpdateStatus.CURRENT
        return UpdateCheck(
            package=name,
            status=status,
            local_version=record.package_version,
            remote_version=str(remote)
        )


def read_package_definition(repo: Path, source_url: str = "") -> PackageDefinition:
    """
    Raises:
        ParseError: If package.yaml is missing or malformed
    """
    package_file = Path(repo) / PACKAGE_FILE
    if not package_file.is_file():
        raise ParseError(f"No {PACKAGE_FILE} found in {source_url or repo}")
    return PackageDefinition.from_file(package_file)
