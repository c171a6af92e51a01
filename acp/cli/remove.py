# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
remove: delete an installed package's files and drop its manifest record.
"""

import argparse
import logging

from acp.cli.context import CommandContext
from acp.cli.output import confirm
from acp.core.errors import OperationCancelled
from acp.core.logging import log_event
from acp.registry.detector import ModificationDetector, ModificationStatus

logger = logging.getLogger(__name__)


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "remove",
        help="Remove an installed package",
        description="Remove an installed ACP package"
    )
    parser.add_argument("package", metavar="package-name", help="Name of the installed package")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompt")
    parser.add_argument(
        "--keep-modified",
        action="store_true",
        help="Keep files that were modified after installation"
    )
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CommandContext) -> int:
    out = ctx.out
    out.title("🗑️  ACP Package Remover")
    out.line("=" * 40)
    out.line()

    # ManifestNotFoundError / PackageNotFoundError end the command with exit 1
    manifest = ctx.store.load()
    record = manifest.get(args.package)

    detector = ModificationDetector(ctx.project_dir, manifest, client=ctx.client)
    statuses = detector.statuses(args.package)
    modified = [(category, entry) for category, entry, status in statuses
                if status == ModificationStatus.MODIFIED]

    out.line(f"Package: {args.package} ({record.package_version})")
    out.line(f"Source: {record.source}")
    out.line()

    counts = record.contents.counts()
    out.line("Files to remove:")
    if counts["patterns"]:
        out.line(f"  - {counts['patterns']} pattern(s)")
    if counts["commands"]:
        out.line(f"  - {counts['commands']} command(s)")
    if counts["designs"]:
        out.line(f"  - {counts['designs']} design(s)")
    out.line(f"Total: {record.contents.total} file(s)")
    out.line()

    if modified:
        out.warning("Modified files:")
        for category, entry in modified:
            out.line(f"  - {category.value}/{entry.name}")
        if args.keep_modified:
            out.info("These files will be kept (--keep-modified)")
        else:
            out.warning("These files will be deleted; use --keep-modified to keep them")
        out.line()

    if not args.yes and not confirm(f"Remove package '{args.package}'?", ctx.input_fn):
        raise OperationCancelled("Removal cancelled")

    out.line()
    removed = 0
    kept = 0
    failed = 0
    for category, entry, status in statuses:
        label = f"{category.value}/{entry.name}"
        # unknown is never deleted when the user asked to keep modified files
        if args.keep_modified and status in (ModificationStatus.MODIFIED, ModificationStatus.UNKNOWN):
            out.warning(f"Kept {label} ({status.value})")
            kept += 1
            continue

        path = ctx.project_dir / entry.installed_path
        if status == ModificationStatus.MISSING or not path.is_file():
            out.info(f"Already gone: {label}")
            continue

        try:
            path.unlink()
        except OSError as e:
            out.failure(f"Could not remove {label}: {e.strerror or e}")
            failed += 1
            continue
        out.success(f"Removed {label}")
        removed += 1

    ctx.store.save(manifest.remove(args.package))
    log_event(
        logger, "package_removed",
        package=args.package, removed=removed, kept=kept, failed=failed
    )

    out.line()
    out.line(f"Removed: {removed} file(s)")
    if kept:
        out.line(f"Kept: {kept} file(s) (modified)")
    if failed:
        out.line(f"Failed: {failed} file(s) could not be removed")
        out.warning(f"Package '{args.package}' removed from the manifest; delete the remaining files by hand")
        return 1
    out.success(f"Package '{args.package}' removed")
    return 0
