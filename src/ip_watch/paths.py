# --- Standard library imports ---
from pathlib import Path
from dataclasses import dataclass


CONFIG_FILE_NAME = "config.env"
CACHE_FILE_NAME = "cache.env"
LOCK_DIR_NAME = ".lock"


@dataclass(frozen=True)
class StoragePaths:
    """On-disk layout under the storage directory."""
    base_dir: Path

    @classmethod
    def from_base(cls, base_dir) -> "StoragePaths":
        return cls(Path(base_dir).expanduser())

    @property
    def config_file(self) -> Path:
        return self.base_dir / CONFIG_FILE_NAME

    @property
    def cache_file(self) -> Path:
        return self.base_dir / CACHE_FILE_NAME

    @property
    def lock_dir(self) -> Path:
        return self.base_dir / LOCK_DIR_NAME
