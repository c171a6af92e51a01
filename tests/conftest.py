# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides temp project directories, package repositories on disk, and a
fake git runner that "clones" those repositories by copying them, so
install/list/remove run end to end without network access.
"""

import io
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from acp.cli.main import main
from acp.cli.output import Output


# ============================================================================
# Directories
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def project_dir(temp_dir):
    """Empty project root"""
    project = temp_dir / "project"
    project.mkdir()
    return project


# ============================================================================
# Package repositories
# ============================================================================

def write_package_repo(
    repo: Path,
    name: str = "demo",
    version: str = "1.0.0",
    patterns: Optional[List[str]] = None,
    commands: Optional[List[str]] = None,
    designs: Optional[List[str]] = None,
    description: str = "Demo package",
) -> Path:
    """Write package.yaml and the files it declares under agent/."""
    repo.mkdir(parents=True, exist_ok=True)
    files = {
        "patterns": (patterns or [], "agent/patterns"),
        "commands": (commands or [], "agent/commands"),
        "designs": (designs or [], "agent/design"),
    }

    lines = [
        f"name: {name}",
        f"version: {version}",
        f"description: {description}",
        "contents:",
    ]
    for category, (names, directory) in files.items():
        if not names:
            lines.append(f"  {category}: []")
            continue
        lines.append(f"  {category}:")
        target_dir = repo / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        for file_name in names:
            lines.append(f"    - name: {file_name}")
            lines.append(f"      description: {file_name} from {name}")
            (target_dir / file_name).write_text(f"# {file_name}\n\nVersion {version} of {name}.\n")

    (repo / "package.yaml").write_text("\n".join(lines) + "\n")
    return repo


@pytest.fixture
def package_repo(temp_dir) -> Callable[..., Path]:
    """Factory: package_repo(url_name, **package_fields) -> repository directory"""
    def factory(repo_name: str, **kwargs) -> Path:
        return write_package_repo(temp_dir / "repos" / repo_name, **kwargs)
    return factory


class FakeGit:
    """subprocess.run stand-in that serves `git clone` from local directories"""

    def __init__(self):
        self.repos: Dict[str, Path] = {}
        self.calls: List[List[str]] = []
        self.clone_targets: List[Path] = []

    def add(self, url: str, repo: Path) -> str:
        self.repos[url] = repo
        return url

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        if command[1:2] != ["clone"]:
            return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

        url, target = command[-2], Path(command[-1])
        self.clone_targets.append(target)
        if url not in self.repos:
            return subprocess.CompletedProcess(
                command, 128, stdout="", stderr=f"fatal: repository '{url}' not found\n"
            )

        shutil.copytree(self.repos[url], target)
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")


@pytest.fixture
def fake_git():
    return FakeGit()


# ============================================================================
# CLI
# ============================================================================

class CLIResult:
    def __init__(self, exit_code: int, output: str):
        self.exit_code = exit_code
        self.output = output


@pytest.fixture
def run_cli(project_dir, fake_git, monkeypatch):
    """
    Run `acp` against the temp project.

    Usage: run_cli("list", "-v", answers=["y"])
    """
    monkeypatch.delenv("ACP_CONFIG", raising=False)
    monkeypatch.delenv("ACP_LOG_LEVEL", raising=False)

    def runner(*argv: str, answers: Optional[List[str]] = None, input_fn=None) -> CLIResult:
        stream = io.StringIO()
        replies = list(answers or [])

        def answer(prompt: str) -> str:
            stream.write(prompt + "\n")
            if not replies:
                raise EOFError
            return replies.pop(0)

        exit_code = main(
            ["--project-dir", str(project_dir), *argv],
            out=Output(stream=stream, color=False),
            input_fn=input_fn or answer,
            runner=fake_git,
        )
        return CLIResult(exit_code, stream.getvalue())

    return runner
