"""
Layered configuration for tally.
Priority: defaults → ~/.tally/config.yaml → environment variables
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR = Path.home() / ".tally"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


def _default_cache_path() -> str:
    if sys.platform == "win32":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return str(Path(appdata) / "Granola" / "cache-v3.json")
    return "~/Library/Application Support/Granola/cache-v3.json"


class GranolaConfig(BaseModel):
    cache_path: str = Field(default_factory=_default_cache_path)

    @property
    def cache_file(self) -> Path:
        return Path(self.cache_path).expanduser()


class DashboardConfig(BaseModel):
    repo_dir: str = "."
    data_file: str = "data.json"
    state_file: str = ".sync-state.json"

    @property
    def repo_path(self) -> Path:
        return Path(self.repo_dir).expanduser()

    @property
    def data_path(self) -> Path:
        return self.repo_path / self.data_file

    @property
    def state_path(self) -> Path:
        return self.repo_path / self.state_file


class ExtractionConfig(BaseModel):
    default_owner: str = "Unassigned"
    known_names: list[str] = Field(default_factory=list)
    min_line_length: int = Field(default=10, ge=0)
    dedup_prefix: int = Field(default=50, gt=0)

    @field_validator("default_owner")
    @classmethod
    def _owner_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("default_owner must not be empty")
        return value

    @field_validator("known_names", mode="before")
    @classmethod
    def _split_names(cls, value):
        if isinstance(value, str):
            return [n.strip() for n in value.split(",") if n.strip()]
        return value


class PublishConfig(BaseModel):
    enabled: bool = True
    remote: Optional[str] = None
    branch: Optional[str] = None


class WatchConfig(BaseModel):
    poll_interval: int = 60


class DisplayConfig(BaseModel):
    log_level: str = "INFO"


class Config(BaseModel):
    granola: GranolaConfig = Field(default_factory=GranolaConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    # Convenience proxy
    @property
    def data_path(self) -> Path:
        return self.dashboard.data_path

    @property
    def state_path(self) -> Path:
        return self.dashboard.state_path


def load_config(path: Optional[Path] = None) -> Config:
    """Load config from file with safe defaults for any missing key."""
    config_file = path or CONFIG_FILE
    raw: dict = {}

    if config_file.exists():
        with open(config_file) as f:
            loaded = yaml.safe_load(f)
            if isinstance(loaded, dict):
                raw = loaded

    # Environment variable overrides (TALLY_KEY format)
    _apply_env_overrides(raw)

    return Config(**raw)


def _apply_env_overrides(raw: dict) -> None:
    mappings = {
        "TALLY_CACHE_PATH": ("granola", "cache_path"),
        "TALLY_REPO_DIR": ("dashboard", "repo_dir"),
        "TALLY_DEFAULT_OWNER": ("extraction", "default_owner"),
        "TALLY_KNOWN_NAMES": ("extraction", "known_names"),
        "TALLY_PUBLISH": ("publish", "enabled"),
        "TALLY_LOG_LEVEL": ("display", "log_level"),
    }
    for env_key, (section, key) in mappings.items():
        val = os.getenv(env_key)
        if val:
            raw.setdefault(section, {})[key] = val
