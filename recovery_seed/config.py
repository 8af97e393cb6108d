from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .logging_utils import DEFAULT_LOG_PATH

DEFAULT_SEED_DIR = "/run/mnt/ubuntu-seed"
DEFAULT_CHANNEL = "latest/stable"


@dataclass(frozen=True)
class SeedConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def seed_dir(self) -> str:
        return str(((self.raw.get("seed") or {}).get("dir")) or DEFAULT_SEED_DIR)

    @property
    def default_channel(self) -> str:
        return str(((self.raw.get("seed") or {}).get("default_channel")) or DEFAULT_CHANNEL)

    @property
    def log_path(self) -> str:
        return str(((self.raw.get("logging") or {}).get("path")) or DEFAULT_LOG_PATH)

    @property
    def log_level(self) -> str:
        return str(((self.raw.get("logging") or {}).get("level")) or "INFO")


def load_seed_config(path: str) -> SeedConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("seed config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p.name} must contain a mapping/object")

    return SeedConfig(raw=raw)
