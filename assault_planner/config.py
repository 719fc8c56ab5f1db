"""
Configuration for Deadly Assault planning.

Tuned game-balance constants live here as named values; run options are
validated by `AssaultConfig`, which can be read from a YAML file.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .models import Unit

# Search limits
TOP_K = 20  # Teams per boss considered by the combination search
RESULT_LIMIT = 5  # Combinations shown by default
TOP_TEAMS_PER_BOSS = 7  # Matchup listing depth
MIN_TEAMS_TO_SHOW = 6  # Team-builder mode minimum

# Tier thresholds
DEFAULT_TIER = 2.5  # Unrated units
ELITE_TIER = 0.0  # Units the dominance check expects to be used
UNUSED_ELITE_PENALTY = 1000  # Priority penalty per unexcused unused elite support

# Units that may join any pair regardless of join conditions
DEFAULT_FLEX_UNITS = ["Nicole", "Astra"]

BOSS_COUNT = 3


def get_data_dir() -> Path:
    """Get the data directory path."""
    if env_path := os.environ.get("ASSAULT_DATA_DIR"):
        return Path(env_path)

    # Default to ./data relative to project root
    return Path(__file__).parent.parent / "data"


class AssaultConfig(BaseModel):
    """Options for one deadly-assault batch run."""

    bosses: list[str]  # Exactly three boss names, in display order
    include: list[str] = Field(default_factory=list)  # Whitelist (empty = everyone)
    exclude: list[str] = Field(default_factory=list)  # Blacklist
    flex_units: list[str] = Field(default_factory=lambda: list(DEFAULT_FLEX_UNITS))
    developer_units: list[Unit] = Field(default_factory=list)  # Units not in the static roster
    result_limit: int = Field(default=RESULT_LIMIT, ge=1)
    top_k: int = Field(default=TOP_K, ge=1)
    debug: bool = False

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AssaultConfig":
        """Load a run configuration from a YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)
