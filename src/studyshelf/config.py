"""Configuration loading for the browse tools."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

DB_ENV_VAR = "STUDYSHELF_DB"
DEFAULT_CONFIG_PATH = Path("config/studyshelf.json")


@dataclass
class ShelfConfig:
    """Runtime settings with sensible defaults."""

    db_path: Path = field(default_factory=lambda: Path("data/materials.db"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    debounce_seconds: float = 0.3
    file_logging: bool = True

    def __post_init__(self) -> None:
        """Ensure paths are Path objects."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        if self.debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")


def load_config(config_path: Path | None = None) -> ShelfConfig:
    """Load configuration from JSON, falling back to defaults.

    Reads ``config/studyshelf.json`` when *config_path* is ``None``; a
    missing file means all defaults. Unknown keys are ignored. The
    ``STUDYSHELF_DB`` environment variable overrides ``db_path`` from the
    file.

    Args:
        config_path: Optional explicit path to the JSON config file.

    Returns:
        ShelfConfig with file values and environment overrides applied.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)

    # Build kwargs from JSON data, only including recognised fields
    field_names = set(ShelfConfig.__dataclass_fields__)
    kwargs = {k: v for k, v in data.items() if k in field_names}

    env_db = os.environ.get(DB_ENV_VAR)
    if env_db:
        kwargs["db_path"] = env_db

    return ShelfConfig(**kwargs)
