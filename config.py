#!/usr/bin/env python3
"""
Configuration for the Granola → Obsidian sync server

Every field can be overridden with an environment variable.
See README.md for environment variable names.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict
import os

# Transcript source → speaker label
SPEAKER_LABELS: Dict[str, str] = {
    "microphone": "Me",
    "system": "Them",
}
UNKNOWN_SPEAKER = "Unknown"

@dataclass
class GranolaConfig:
    """Configuration for the Granola sync server."""

    # Paths - Update these to match your system
    # Environment variables: OBSIDIAN_VAULT_MEETINGS_PATH, CACHE_DIR_PATH
    vault_path: Path = Path(os.path.expanduser(os.getenv("OBSIDIAN_VAULT_MEETINGS_PATH", "/path/to/your/obsidian/vault/Meetings")))
    cache_dir_path: Path = Path(os.path.expanduser(os.getenv("CACHE_DIR_PATH", "~/Library/Application Support/Granola")))

    # Server settings
    # Environment variables: GRANOLA_PORT, GRANOLA_HOST
    port: int = int(os.getenv("GRANOLA_PORT", "5002"))
    host: str = os.getenv("GRANOLA_HOST", "0.0.0.0")
    log_level: str = os.getenv("GRANOLA_LOG_LEVEL", "INFO")

    # Transcript dedup settings
    # Environment variables: GRANOLA_DEDUP_WINDOW_MS, GRANOLA_SIMILARITY_THRESHOLD
    dedup_window_ms: int = int(os.getenv("GRANOLA_DEDUP_WINDOW_MS", "4500"))
    similarity_threshold: float = float(os.getenv("GRANOLA_SIMILARITY_THRESHOLD", "0.68"))

    # Panels from this template are rendered first (empty = keep API order)
    priority_template: str = os.getenv("GRANOLA_PRIORITY_TEMPLATE", "")

    @property
    def cache_path(self) -> Path:
        """Path of the desktop app's calendar cache file."""
        return self.cache_dir_path / "cache-v3.json"

    @property
    def vault_configured(self) -> bool:
        return str(self.vault_path) != "/path/to/your/obsidian/vault/Meetings"

# Default configuration instance
config = GranolaConfig()
