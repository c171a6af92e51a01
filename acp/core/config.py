# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
ACP Configuration - Single source of truth for tool settings.
YAML file for settings. Env vars only for per-invocation overrides.

The config is loaded once by the CLI and passed to every component
explicitly; nothing in the package reads a global config instance.
"""

import os
import yaml
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional

from acp.core.errors import ParseError

DEFAULT_CONFIG_FILENAME = "acp.yaml"
CONFIG_ENV_VAR = "ACP_CONFIG"

CATEGORIES = ("patterns", "commands", "designs")


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable tool configuration.
    All values from YAML, with defaults matching the ACP layout.
    """

    # -- Paths (relative to the project directory) --
    agent_dir: str = "agent"
    manifest_filename: str = "manifest.yaml"
    category_dirs: Dict[str, str] = field(default_factory=lambda: {
        "patterns": "patterns",
        "commands": "commands",
        "designs": "design",
    })

    # -- Git --
    git_binary: str = "git"
    clone_timeout: int = 120

    # -- Validate subprocesses --
    command_timeout: int = 60
    build_timeout: int = 300
    test_timeout: int = 600

    # -- Logging --
    log_level: str = "WARNING"
    log_format: str = "text"
    log_file: Optional[str] = None

    def manifest_path(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.agent_dir / self.manifest_filename

    def category_dir(self, project_dir: Path, category: str) -> Path:
        """Directory installed files of `category` are copied into."""
        if category not in self.category_dirs:
            raise ValueError(f"Unknown category: {category}")
        return Path(project_dir) / self.agent_dir / self.category_dirs[category]

    def category_relpath(self, category: str, name: str) -> str:
        """Project-relative path recorded in the manifest as installed_path."""
        return f"{self.agent_dir}/{self.category_dirs[category]}/{name}"


# =============================================================================
# LOADER
# =============================================================================

def find_config_file(project_dir: Path, explicit: Optional[str] = None) -> Optional[Path]:
    """
    Resolve the config file: explicit path, then $ACP_CONFIG, then
    acp.yaml in the project directory.
    """
    if explicit:
        return Path(explicit)

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    candidate = Path(project_dir) / DEFAULT_CONFIG_FILENAME
    if candidate.exists():
        return candidate

    return None


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if no file is given or the file doesn't exist.
    """
    if path is None or not Path(path).exists():
        return _apply_env_overrides(Config())

    try:
        with open(path) as f:
            y = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid config file {path}: {e}")

    if not isinstance(y, dict):
        raise ParseError(f"Invalid config file {path}: expected a mapping")

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()
    category_dirs = dict(defaults.category_dirs)
    category_dirs.update(get(y, "paths", "categories") or {})

    config = Config(
        # Paths
        agent_dir=get(y, "paths", "agent_dir") or defaults.agent_dir,
        manifest_filename=get(y, "paths", "manifest") or defaults.manifest_filename,
        category_dirs=category_dirs,

        # Git
        git_binary=get(y, "git", "binary") or defaults.git_binary,
        clone_timeout=int(get(y, "git", "clone_timeout") or defaults.clone_timeout),

        # Validate
        command_timeout=int(get(y, "validate", "timeouts", "command") or defaults.command_timeout),
        build_timeout=int(get(y, "validate", "timeouts", "build") or defaults.build_timeout),
        test_timeout=int(get(y, "validate", "timeouts", "test") or defaults.test_timeout),

        # Logging
        log_level=get(y, "logging", "level") or defaults.log_level,
        log_format=get(y, "logging", "format") or defaults.log_format,
        log_file=get(y, "logging", "file"),
    )
    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    level = os.getenv("ACP_LOG_LEVEL")
    if not level:
        return config
    return replace(config, log_level=level)
