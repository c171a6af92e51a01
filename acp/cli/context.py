# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Per-invocation state handed to every command.
"""

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from acp.cli.output import Output
from acp.core.config import Config
from acp.registry.client import RegistryClient
from acp.registry.manifest import ManifestStore


@dataclass
class CommandContext:
    """Everything a command needs; built once in main()"""
    project_dir: Path
    config: Config
    store: ManifestStore
    client: RegistryClient
    out: Output = field(default_factory=Output)
    input_fn: Callable[[str], str] = input
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run

    @classmethod
    def create(cls, project_dir: Path, config: Config, **kwargs) -> "CommandContext":
        runner = kwargs.pop("runner", subprocess.run)
        client = kwargs.pop("client", None) or RegistryClient(
            git_binary=config.git_binary,
            timeout=config.clone_timeout,
            runner=runner
        )
        return cls(
            project_dir=Path(project_dir),
            config=config,
            store=ManifestStore.for_project(project_dir, config),
            client=client,
            runner=runner,
            **kwargs
        )

    def category_dir(self, category: str) -> Path:
        return self.config.category_dir(self.project_dir, category)
