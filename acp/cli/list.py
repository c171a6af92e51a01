# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
list: show installed packages, optionally filtered to outdated or
locally modified ones.
"""

import argparse
from typing import Dict, List, Optional, Tuple

from acp.cli.context import CommandContext
from acp.cli.output import BLUE, GREEN, YELLOW
from acp.registry.client import UpdateCheck, UpdateStatus
from acp.registry.detector import ModificationDetector
from acp.registry.models import Category, FileEntry, PackageRecord
from acp.utils import format_timestamp


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "list",
        help="List installed packages",
        description="List installed ACP packages"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show per-package details")
    parser.add_argument("--outdated", action="store_true", help="Only packages with a newer version available")
    parser.add_argument("--modified", action="store_true", help="Only packages with locally modified files")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CommandContext) -> int:
    out = ctx.out
    out.title("📦 Installed ACP Packages")
    out.line()

    if not ctx.store.exists():
        out.info("No packages installed")
        out.line()
        out.line("Install a package with:")
        out.line("  acp install <repository-url>")
        return 0

    manifest = ctx.store.load()
    if not manifest.packages:
        out.info("No packages installed")
        return 0

    # both checks may clone the package source, so they only run when asked for
    detector = ModificationDetector(ctx.project_dir, manifest, client=ctx.client) if args.modified else None

    updates: Dict[str, UpdateCheck] = {}
    modified: Dict[str, List[Tuple[Category, FileEntry]]] = {}
    shown = 0

    for name, record in manifest.packages.items():
        if args.outdated:
            updates[name] = ctx.client.check_for_update(name, record)
        modified[name] = detector.modified_files(name) if detector else []

        if args.outdated and not updates[name].update_available:
            continue
        if args.modified and not modified[name]:
            continue

        _print_package(ctx, name, record, updates.get(name), modified[name], args.verbose)
        shown += 1

    out.line(f"Total: {shown} of {len(manifest)} package(s)")

    if args.outdated and shown == 0:
        unknown = [name for name, check in updates.items() if check.status == UpdateStatus.UNKNOWN]
        if unknown:
            out.warning(f"Could not check {len(unknown)} package(s): {', '.join(unknown)}")
        else:
            out.success("All packages are up to date")
    if args.modified and shown == 0:
        out.success("No packages have local modifications")

    return 0


def _print_package(
    ctx: CommandContext,
    name: str,
    record: PackageRecord,
    update: Optional[UpdateCheck],
    modified: List[Tuple[Category, FileEntry]],
    verbose: bool
) -> None:
    out = ctx.out
    summary = f"{out.paint(name, GREEN)} ({record.package_version}) - {record.contents.total} file(s)"
    if update is not None and update.update_available:
        summary += " " + out.paint(f"[update: {update.remote_version}]", YELLOW)
    if modified:
        summary += " " + out.paint("[modified]", YELLOW)
    out.line(summary)

    if not verbose:
        return

    out.line(f"  Source: {record.source}")
    out.line(f"  Installed: {format_timestamp(record.installed_at)}")
    if record.updated_at != record.installed_at:
        out.line(f"  Updated: {format_timestamp(record.updated_at)}")

    counts = record.contents.counts()
    if counts["patterns"]:
        out.line(f"  {counts['patterns']} pattern(s)")
    if counts["commands"]:
        out.line(f"  {counts['commands']} command(s)")
    if counts["designs"]:
        out.line(f"  {counts['designs']} design(s)")

    if modified:
        out.line(out.paint("  Modified files:", YELLOW))
        for category, entry in modified:
            out.line(f"    - {category.value}/{entry.name}")

    if update is not None:
        if update.status == UpdateStatus.OUTDATED:
            out.line(out.paint(f"  Update available: {update.local_version} → {update.remote_version}", BLUE))
        elif update.status == UpdateStatus.UNKNOWN:
            out.line(f"  Update check: unknown ({update.error})")
    out.line()
