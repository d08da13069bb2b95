"""Filesystem helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path

from catalog_export.common.errors import ConfigError


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def require_writable_dir(path: Path) -> Path:
    # Never created here; a missing output directory is a deployment mistake.
    if not path.is_dir() or not os.access(path, os.W_OK):
        raise ConfigError(f"{path} is not a writable directory")
    return path


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return 0
