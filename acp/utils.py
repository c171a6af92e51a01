# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Utility functions shared across the ACP package manager
"""

import hashlib
import os
from datetime import datetime, UTC
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def read_env_file(env_path: Union[str, Path]) -> Dict[str, str]:
    """
    Read KEY=VALUE pairs from a .env file without touching os.environ.

    Args:
        env_path: Path to .env file

    Returns:
        Mapping of variable name to value; empty if the file doesn't exist.
        Keys declared without a value map to an empty string.
    """
    env_file = Path(env_path)
    if not env_file.exists():
        return {}

    return {key: value or "" for key, value in dotenv_values(env_file).items()}


def atomic_write_text(file_path: Union[str, Path], text: str) -> None:
    """
    Write a text file atomically using temp file + rename.

    The temp file lives next to the target so the rename never crosses
    filesystems. On any failure the temp file is removed and the target
    is left as it was.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = file_path.parent / f".{file_path.name}.tmp"

    try:
        with open(temp_file, 'w', encoding='utf-8') as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_file, file_path)
    except BaseException:
        temp_file.unlink(missing_ok=True)
        raise


def file_checksum(file_path: Union[str, Path], chunk_size: int = 65536) -> str:
    """
    Content checksum of a file, as recorded in the manifest.

    Returns:
        "sha256:<hex digest>"
    """
    digest = hashlib.sha256()
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return f"sha256:{digest.hexdigest()}"


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds, as stored in the manifest."""
    return datetime.now(UTC).replace(microsecond=0)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)
