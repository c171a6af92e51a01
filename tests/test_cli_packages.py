# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
End-to-end tests for acp install, list and remove

Runs the real CLI against a temp project; git clones are served from
local package repositories by the fake runner.
"""

import shutil
from pathlib import Path

import pytest

from acp.registry.manifest import ManifestStore
from acp.core.config import Config

URL = "https://github.com/example/firebase.git"
OTHER_URL = "https://github.com/example/other.git"

PATTERNS = ["auth.md", "firestore.md", "functions.md"]
COMMANDS = ["deploy.md", "emulate.md"]
DESIGNS = ["architecture.md"]


@pytest.fixture
def firebase_repo(fake_git, package_repo):
    repo = package_repo(
        "firebase", name="firebase", version="1.0.0",
        patterns=PATTERNS, commands=COMMANDS, designs=DESIGNS
    )
    fake_git.add(URL, repo)
    return repo


@pytest.fixture
def installed(run_cli, firebase_repo):
    result = run_cli("install", URL, "-y")
    assert result.exit_code == 0, result.output
    return result


def load_manifest(project_dir):
    return ManifestStore.for_project(project_dir, Config()).load()


class TestInstall:
    """Test suite for acp install"""

    def test_install_copies_files(self, installed, project_dir):
        """Test every declared file lands in its category directory"""
        for name in PATTERNS:
            assert (project_dir / "agent" / "patterns" / name).is_file()
        for name in COMMANDS:
            assert (project_dir / "agent" / "commands" / name).is_file()
        assert (project_dir / "agent" / "design" / "architecture.md").is_file()

    def test_install_records_manifest(self, installed, project_dir):
        """Test the manifest record"""
        record = load_manifest(project_dir).get("firebase")

        assert record.source == URL
        assert record.package_version == "1.0.0"
        assert record.installed_at == record.updated_at
        assert record.contents.counts() == {"patterns": 3, "commands": 2, "designs": 1}
        assert all(entry.checksum.startswith("sha256:") for _, entry in record.contents.iter_files())

    def test_install_output(self, installed):
        """Test the summary"""
        assert "  - 3 pattern(s)" in installed.output
        assert "  - 2 command(s)" in installed.output
        assert "  - 1 design(s)" in installed.output
        assert "Total: 6 file(s)" in installed.output

    def test_same_version_already_installed(self, installed, run_cli, project_dir):
        """Test reinstalling the same version changes nothing"""
        before = load_manifest(project_dir).model_dump()
        result = run_cli("install", URL, "-y")

        assert result.exit_code == 0
        assert "firebase 1.0.0 is already installed" in result.output
        assert load_manifest(project_dir).model_dump()["packages"] == before["packages"]

    def test_install_confirmation_declined(self, run_cli, firebase_repo, project_dir):
        """Test declining the prompt installs nothing"""
        result = run_cli("install", URL, answers=["n"])

        assert result.exit_code == 0
        assert "Install package 'firebase'? (y/N)" in result.output
        assert "Installation cancelled" in result.output
        assert not (project_dir / "agent").exists()

    def test_install_clone_failure(self, run_cli, project_dir):
        """Test an unreachable repository"""
        result = run_cli("install", "https://example.com/missing.git", "-y")

        assert result.exit_code == 1
        assert "Error: Failed to clone" in result.output
        assert not (project_dir / "agent").exists()

    def test_install_missing_declared_file(self, run_cli, fake_git, package_repo, project_dir):
        """Test a repository that lacks a declared file"""
        repo = package_repo("broken", name="broken", patterns=["a.md"])
        (repo / "agent" / "patterns" / "a.md").unlink()
        fake_git.add(OTHER_URL, repo)

        result = run_cli("install", OTHER_URL, "-y")

        assert result.exit_code == 1
        assert "patterns/a.md" in result.output
        assert not ManifestStore.for_project(project_dir, Config()).exists()

    def test_install_invalid_package_name(self, run_cli, fake_git, package_repo, project_dir):
        """Test a package name that can't be a manifest key is refused before copying"""
        fake_git.add(OTHER_URL, package_repo("scoped", name="@acme/tools", patterns=["a.md"]))

        result = run_cli("install", OTHER_URL, "-y")

        assert result.exit_code == 1
        assert "Error: " in result.output
        assert "Invalid package name" in result.output
        assert not (project_dir / "agent").exists()

    def test_install_description_with_apostrophe(self, run_cli, fake_git, package_repo, project_dir):
        """Test a plain description containing quotes installs and reads back"""
        fake_git.add(OTHER_URL, package_repo(
            "rock", name="rock", patterns=["riff.md"], description="Rock 'n roll patterns"
        ))

        result = run_cli("install", OTHER_URL, "-y")

        assert result.exit_code == 0, result.output
        assert "Rock 'n roll patterns" in result.output
        assert load_manifest(project_dir).get("rock").package_version == "1.0.0"

    def test_install_copy_failure(self, run_cli, firebase_repo, project_dir, monkeypatch):
        """Test an OS error while copying is a one-line error"""
        copyfile = shutil.copyfile

        def failing_copy(src, dst, *args, **kwargs):
            if Path(dst).is_relative_to(project_dir):
                raise OSError(28, "No space left on device")
            return copyfile(src, dst, *args, **kwargs)

        monkeypatch.setattr(shutil, "copyfile", failing_copy)
        result = run_cli("install", URL, "-y")

        assert result.exit_code == 1
        assert "Error: [Errno 28] No space left on device" in result.output
        assert not ManifestStore.for_project(project_dir, Config()).exists()

    def test_install_conflict_with_other_package(self, installed, run_cli, fake_git, package_repo):
        """Test a file already owned by another package"""
        fake_git.add(OTHER_URL, package_repo("other", name="other", patterns=["auth.md"]))

        result = run_cli("install", OTHER_URL, "-y")

        assert result.exit_code == 1
        assert "File conflict: agent/patterns/auth.md" in result.output

    def test_update_keeps_installed_at(self, installed, run_cli, fake_git, package_repo, project_dir):
        """Test installing a newer version updates the record"""
        first = load_manifest(project_dir).get("firebase")
        fake_git.add(URL, package_repo(
            "firebase-2", name="firebase", version="1.1.0",
            patterns=PATTERNS, commands=COMMANDS, designs=DESIGNS
        ))

        result = run_cli("install", URL, "-y")
        record = load_manifest(project_dir).get("firebase")

        assert result.exit_code == 0
        assert "Upgrading firebase: 1.0.0 → 1.1.0" in result.output
        assert record.package_version == "1.1.0"
        assert record.installed_at == first.installed_at
        assert record.updated_at >= first.updated_at
        assert "Version 1.1.0" in (project_dir / "agent" / "patterns" / "auth.md").read_text()

    def test_update_removes_dropped_files(self, installed, run_cli, fake_git, package_repo, project_dir):
        """Test files the new version no longer declares are deleted unless modified"""
        (project_dir / "agent" / "commands" / "emulate.md").write_text("my notes")
        fake_git.add(URL, package_repo(
            "firebase-2", name="firebase", version="2.0.0", patterns=["auth.md"]
        ))

        result = run_cli("install", URL, "-y")

        assert result.exit_code == 0
        assert not (project_dir / "agent" / "patterns" / "firestore.md").exists()
        assert not (project_dir / "agent" / "commands" / "deploy.md").exists()
        assert (project_dir / "agent" / "commands" / "emulate.md").read_text() == "my notes"
        assert load_manifest(project_dir).get("firebase").contents.total == 1

    def test_update_warns_before_overwriting_modified(self, installed, run_cli, fake_git, package_repo,
                                                      project_dir):
        """Test an update prompt lists modified files and can be declined"""
        modified = project_dir / "agent" / "patterns" / "auth.md"
        modified.write_text("local edits")
        fake_git.add(URL, package_repo(
            "firebase-2", name="firebase", version="1.1.0",
            patterns=PATTERNS, commands=COMMANDS, designs=DESIGNS
        ))

        result = run_cli("install", URL, answers=["n"])

        assert result.exit_code == 0
        assert "Locally modified files will be overwritten" in result.output
        assert "agent/patterns/auth.md" in result.output
        assert modified.read_text() == "local edits"
        assert load_manifest(project_dir).get("firebase").package_version == "1.0.0"


class TestList:
    """Test suite for acp list"""

    def test_no_manifest(self, run_cli):
        """Test listing before anything is installed"""
        result = run_cli("list")

        assert result.exit_code == 0
        assert "No packages installed" in result.output
        assert "acp install <repository-url>" in result.output

    def test_list_summary(self, installed, run_cli):
        """Test one line per package"""
        result = run_cli("list")

        assert result.exit_code == 0
        assert "firebase (1.0.0) - 6 file(s)" in result.output
        assert "Total: 1 of 1 package(s)" in result.output

    def test_list_verbose_counts(self, installed, run_cli):
        """Test verbose output shows per-category counts"""
        result = run_cli("list", "-v")

        assert f"Source: {URL}" in result.output
        assert "Installed: " in result.output
        assert "  3 pattern(s)" in result.output
        assert "  2 command(s)" in result.output
        assert "  1 design(s)" in result.output
        assert "Updated: " not in result.output

    def test_list_modified(self, installed, run_cli, project_dir):
        """Test --modified shows packages with edited files"""
        unmodified = run_cli("list", "--modified")
        assert "No packages have local modifications" in unmodified.output
        assert "Total: 0 of 1 package(s)" in unmodified.output

        (project_dir / "agent" / "commands" / "deploy.md").write_text("changed")
        result = run_cli("list", "--modified", "-v")

        assert "firebase (1.0.0) - 6 file(s) [modified]" in result.output
        assert "    - commands/deploy.md" in result.output
        assert "Total: 1 of 1 package(s)" in result.output

    def test_list_outdated(self, installed, run_cli, fake_git, package_repo):
        """Test --outdated compares against the repository"""
        current = run_cli("list", "--outdated")
        assert "All packages are up to date" in current.output

        fake_git.add(URL, package_repo("firebase-2", name="firebase", version="1.2.0"))
        result = run_cli("list", "--outdated")

        assert "firebase (1.0.0) - 6 file(s) [update: 1.2.0]" in result.output
        assert "Total: 1 of 1 package(s)" in result.output

    def test_list_outdated_unreachable(self, installed, run_cli, fake_git):
        """Test an unreachable source is reported and listing continues"""
        del fake_git.repos[URL]
        result = run_cli("list", "--outdated")

        assert result.exit_code == 0
        assert "Could not check 1 package(s): firebase" in result.output

    def test_list_without_flags_makes_no_clones(self, installed, run_cli, fake_git, project_dir):
        """Test plain and verbose listing never contact the package source"""
        manifest = project_dir / "agent" / "manifest.yaml"
        lines = manifest.read_text().splitlines(keepends=True)
        manifest.write_text("".join(line for line in lines if "checksum:" not in line))
        clones = len(fake_git.calls)

        plain = run_cli("list")
        verbose = run_cli("list", "-v")

        assert plain.exit_code == 0
        assert verbose.exit_code == 0
        assert len(fake_git.calls) == clones
        assert "[modified]" not in verbose.output
        assert "Update" not in verbose.output

    def test_list_legacy_entries_compared_with_source(self, installed, run_cli, fake_git, project_dir):
        """Test --modified clones once for entries without a recorded checksum"""
        manifest = project_dir / "agent" / "manifest.yaml"
        lines = manifest.read_text().splitlines(keepends=True)
        manifest.write_text("".join(line for line in lines if "checksum:" not in line))
        (project_dir / "agent" / "patterns" / "auth.md").write_text("changed")
        clones = len(fake_git.calls)

        result = run_cli("list", "--modified")

        assert len(fake_git.calls) == clones + 1
        assert "firebase (1.0.0) - 6 file(s) [modified]" in result.output

    def test_list_manifest_not_utf8(self, run_cli, project_dir):
        """Test undecodable manifest bytes are a one-line error"""
        manifest = project_dir / "agent" / "manifest.yaml"
        manifest.parent.mkdir(parents=True)
        manifest.write_bytes(b"packages:\n  a\xff: x\n")

        result = run_cli("list")

        assert result.exit_code == 1
        assert "not valid UTF-8" in result.output
        assert "Traceback" not in result.output

    def test_list_malformed_manifest(self, run_cli, project_dir):
        """Test a manifest with duplicate keys"""
        manifest = project_dir / "agent" / "manifest.yaml"
        manifest.parent.mkdir(parents=True)
        manifest.write_text("packages:\n  a:\n    source: x\n  a:\n    source: y\n")

        result = run_cli("list")

        assert result.exit_code == 1
        assert "duplicate key 'a'" in result.output


class TestRemove:
    """Test suite for acp remove"""

    def test_remove_deletes_everything(self, installed, run_cli, project_dir):
        """Test remove leaves no tracked files and drops the record"""
        result = run_cli("remove", "firebase", "-y")

        assert result.exit_code == 0
        for name in PATTERNS:
            assert not (project_dir / "agent" / "patterns" / name).exists()
        assert not (project_dir / "agent" / "design" / "architecture.md").exists()
        assert "firebase" not in load_manifest(project_dir)
        assert "Removed: 6 file(s)" in result.output

    def test_remove_deletes_modified_without_flag(self, installed, run_cli, project_dir):
        """Test modified files are deleted unless --keep-modified"""
        (project_dir / "agent" / "patterns" / "auth.md").write_text("mine")

        result = run_cli("remove", "firebase", "-y")

        assert "These files will be deleted" in result.output
        assert not (project_dir / "agent" / "patterns" / "auth.md").exists()

    def test_remove_keep_modified(self, installed, run_cli, project_dir):
        """Test --keep-modified keeps exactly the modified file"""
        kept = project_dir / "agent" / "patterns" / "auth.md"
        kept.write_text("mine")

        result = run_cli("remove", "firebase", "-y", "--keep-modified")

        assert result.exit_code == 0
        assert kept.read_text() == "mine"
        remaining = [p for p in (project_dir / "agent").rglob("*.md")]
        assert remaining == [kept]
        assert "firebase" not in load_manifest(project_dir)
        assert "Kept patterns/auth.md (modified)" in result.output
        assert "Removed: 5 file(s)" in result.output
        assert "Kept: 1 file(s) (modified)" in result.output

    def test_remove_cancelled(self, installed, run_cli, project_dir):
        """Test declining leaves files and manifest untouched"""
        manifest = project_dir / "agent" / "manifest.yaml"
        before = manifest.read_bytes()

        result = run_cli("remove", "firebase", answers=["n"])

        assert result.exit_code == 0
        assert "Remove package 'firebase'? (y/N)" in result.output
        assert "Removal cancelled" in result.output
        assert manifest.read_bytes() == before
        assert (project_dir / "agent" / "patterns" / "auth.md").exists()

    def test_remove_interrupted(self, installed, run_cli, project_dir):
        """Test Ctrl-C at the prompt leaves the manifest byte-identical"""
        manifest = project_dir / "agent" / "manifest.yaml"
        before = manifest.read_bytes()

        def interrupt(prompt):
            raise KeyboardInterrupt

        result = run_cli("remove", "firebase", input_fn=interrupt)

        assert result.exit_code == 130
        assert manifest.read_bytes() == before

    def test_remove_unknown_package(self, installed, run_cli):
        """Test removing a package that isn't installed"""
        result = run_cli("remove", "ghost", "-y")

        assert result.exit_code == 1
        assert "Error: Package not installed: ghost" in result.output

    def test_remove_without_manifest(self, run_cli):
        """Test removing before anything is installed"""
        result = run_cli("remove", "firebase", "-y")

        assert result.exit_code == 1
        assert "No manifest found" in result.output

    def test_remove_already_deleted_file(self, installed, run_cli, project_dir):
        """Test a tracked file the user already deleted"""
        (project_dir / "agent" / "design" / "architecture.md").unlink()

        result = run_cli("remove", "firebase", "-y")

        assert result.exit_code == 0
        assert "Already gone: designs/architecture.md" in result.output
        assert "Removed: 5 file(s)" in result.output

    def test_remove_unlink_failure(self, installed, run_cli, project_dir, monkeypatch):
        """Test a file that can't be deleted is reported and the command exits 1"""
        locked = project_dir / "agent" / "patterns" / "auth.md"
        unlink = Path.unlink

        def failing_unlink(path, *args, **kwargs):
            if path == locked:
                raise PermissionError(13, "Permission denied", str(path))
            return unlink(path, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", failing_unlink)
        result = run_cli("remove", "firebase", "-y")

        assert result.exit_code == 1
        assert "Could not remove patterns/auth.md: Permission denied" in result.output
        assert "Removed: 5 file(s)" in result.output
        assert "Failed: 1 file(s) could not be removed" in result.output
        assert locked.exists()
        assert "firebase" not in load_manifest(project_dir)
        assert "Traceback" not in result.output
