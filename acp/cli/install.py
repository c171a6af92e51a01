# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
install: clone a package repository, copy its files into agent/, record
it in the manifest.
"""

import argparse
import logging
import shutil
from pathlib import Path
from typing import Dict, List

from acp.cli.context import CommandContext
from acp.cli.output import GREEN, confirm
from acp.core.errors import ACPError, OperationCancelled
from acp.core.logging import log_event
from acp.registry.client import read_package_definition
from acp.registry.detector import ModificationDetector, ModificationStatus
from acp.registry.models import Category, FileEntry, Manifest, PackageContents, PackageRecord
from acp.registry.package_types import PackageDefinition, validate_package_structure
from acp.registry.versions import VersionComparison, compare_versions
from acp.utils import file_checksum, utc_now

logger = logging.getLogger(__name__)


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "install",
        help="Install a package from a git repository",
        description="Install an ACP package from a git repository"
    )
    parser.add_argument("url", metavar="repository-url", help="Git URL of the package repository")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompts")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CommandContext) -> int:
    out = ctx.out
    out.title("📦 ACP Package Installer")
    out.line("=" * 40)
    out.line()

    # a malformed manifest aborts before anything is fetched
    manifest = ctx.store.load_or_empty()

    out.line(f"Cloning {args.url}...")
    with ctx.client.clone(args.url) as repo:
        package = read_package_definition(repo, args.url)
        sources = validate_package_structure(repo, package)
        out.line(f"Package: {package.name} ({package.version})")
        if package.description:
            out.line(f"  {package.description}")
        out.line()

        existing = manifest.packages.get(package.name)
        if existing is not None:
            comparison = compare_versions(package.version, existing.package_version)
            if comparison == VersionComparison.SAME:
                out.success(f"{package.name} {package.version} is already installed")
                return 0
            direction = "Upgrading" if comparison == VersionComparison.NEWER else "Downgrading"
            out.line(f"{direction} {package.name}: {existing.package_version} → {package.version}")
            out.line()

        _check_conflicts(ctx, manifest, package)
        _print_plan(ctx, package)

        at_risk = _files_at_risk(ctx, manifest, package)
        if at_risk:
            out.warning("Locally modified files will be overwritten:")
            for path in at_risk:
                out.line(f"  - {path}")
            out.line()

        if not args.yes and not confirm(f"Install package '{package.name}'?", ctx.input_fn):
            raise OperationCancelled("Installation cancelled")

        out.line()
        out.line("Installing files...")
        contents = _copy_files(ctx, package, sources)

    stale_kept = _remove_stale_files(ctx, manifest, package, contents) if existing else []

    now = utc_now()
    record = PackageRecord(
        source=args.url,
        package_version=package.version,
        installed_at=existing.installed_at if existing else now,
        updated_at=now,
        contents=contents,
    )

    out.line()
    out.line("Updating manifest...")
    ctx.store.save(manifest.upsert(package.name, record))
    out.success("Manifest updated")
    log_event(
        logger, "package_installed",
        package=package.name, version=package.version, source=args.url,
        file_count=contents.total
    )

    counts = contents.counts()
    out.line()
    out.line(out.paint("✅ Installation complete!", GREEN))
    out.line()
    if counts["patterns"]:
        out.line(f"  - {counts['patterns']} pattern(s)")
    if counts["commands"]:
        out.line(f"  - {counts['commands']} command(s)")
    if counts["designs"]:
        out.line(f"  - {counts['designs']} design(s)")
    out.line(f"Total: {contents.total} file(s)")
    if stale_kept:
        out.line(f"Kept: {len(stale_kept)} file(s) no longer in the package (modified)")
    out.line()
    return 0


def _print_plan(ctx: CommandContext, package: PackageDefinition) -> None:
    counts = package.counts()
    ctx.out.line("This will install:")
    if counts["patterns"]:
        ctx.out.line(f"  - {counts['patterns']} pattern(s)")
    if counts["commands"]:
        ctx.out.line(f"  - {counts['commands']} command(s)")
    if counts["designs"]:
        ctx.out.line(f"  - {counts['designs']} design(s)")
    ctx.out.line()


def _check_conflicts(ctx: CommandContext, manifest: Manifest, package: PackageDefinition) -> None:
    """
    Raises:
        ACPError: If another installed package already tracks one of the files
    """
    owners: Dict[str, str] = {}
    for name, record in manifest.packages.items():
        if name == package.name:
            continue
        for _, entry in record.contents.iter_files():
            owners[entry.installed_path] = name

    for content in package.files:
        installed_path = ctx.config.category_relpath(content.category.value, content.name)
        owner = owners.get(installed_path)
        if owner:
            raise ACPError(f"File conflict: {installed_path} is already installed by package '{owner}'")


def _files_at_risk(ctx: CommandContext, manifest: Manifest, package: PackageDefinition) -> List[str]:
    """Tracked files of the installed version that differ from their baseline."""
    if package.name not in manifest:
        return []

    detector = ModificationDetector(ctx.project_dir, manifest)
    declared = {(content.category, content.name) for content in package.files}
    return [
        entry.installed_path
        for category, entry, status in detector.statuses(package.name)
        if (category, entry.name) in declared
        and status in (ModificationStatus.MODIFIED, ModificationStatus.UNKNOWN)
    ]


def _copy_files(ctx: CommandContext, package: PackageDefinition, sources: Dict[str, Path]) -> PackageContents:
    contents: Dict[str, List[FileEntry]] = {category.value: [] for category in Category}

    for content in package.files:
        category = content.category.value
        target_dir = ctx.category_dir(category)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / content.name

        shutil.copyfile(sources[str(content)], target)
        contents[category].append(FileEntry(
            name=content.name,
            installed_path=ctx.config.category_relpath(category, content.name),
            checksum=file_checksum(target),
        ))
        ctx.out.success(f"Installed {category}/{content.name}")

    return PackageContents(**contents)


def _remove_stale_files(
    ctx: CommandContext,
    manifest: Manifest,
    package: PackageDefinition,
    contents: PackageContents
) -> List[str]:
    """Delete files the previous version tracked that the new one dropped; keep modified ones."""
    installed = {entry.installed_path for _, entry in contents.iter_files()}
    detector = ModificationDetector(ctx.project_dir, manifest)
    kept: List[str] = []

    for category, entry, status in detector.statuses(package.name):
        if entry.installed_path in installed:
            continue
        if status in (ModificationStatus.MODIFIED, ModificationStatus.UNKNOWN):
            ctx.out.warning(f"Kept {category.value}/{entry.name} (no longer in package, {status.value})")
            kept.append(entry.installed_path)
            continue
        path = ctx.project_dir / entry.installed_path
        if path.is_file():
            path.unlink()
            ctx.out.success(f"Removed {category.value}/{entry.name} (no longer in package)")

    return kept
