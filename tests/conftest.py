"""
Pytest fixtures and configuration for the test suite.

Units and bosses are built with small factories so every test states the
tags that matter to it and nothing else.
"""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from assault_planner.models import Boss, Synergy, Unit

PROJECT_ROOT = Path(__file__).parent.parent
SAMPLE_DATA_DIR = PROJECT_ROOT / "data"


def build_unit(
    name: str,
    role: str,
    element: str | None = None,
    rank: str = "S",
    tier: float | None = 1.0,
    join: list[str] | None = None,
    extra_tags: list[str] | None = None,
    synergy: dict | None = None,
    limited: bool = False,
) -> Unit:
    tags = [role]
    if element:
        tags.append(element)
    tags.extend(extra_tags or [])
    return Unit(
        name=name,
        rank=rank,
        tier=tier,
        tags=tags,
        join=join or [],
        synergy=Synergy(**synergy) if synergy else None,
        limited=limited,
    )


@pytest.fixture
def make_unit() -> Callable[..., Unit]:
    """Factory: make_unit(name, role, element=None, rank="S", tier=1.0, ...)."""
    return build_unit


@pytest.fixture
def make_boss() -> Callable[..., Boss]:
    """Factory: make_boss(name="Test Boss", weaknesses=[...], ...)."""

    def _make(name: str = "Test Boss", **fields) -> Boss:
        return Boss(name=name, **fields)

    return _make


@pytest.fixture
def stunner(make_unit) -> Unit:
    """S-rank ice stunner that joins attackers."""
    return make_unit("Lycaon", "stun", "ice", join=["attack"])


@pytest.fixture
def attacker(make_unit) -> Unit:
    """S-rank ice attacker that joins stunners."""
    return make_unit("Ellen", "attack", "ice", join=["stun"])


@pytest.fixture
def ice_boss(make_boss) -> Boss:
    return make_boss("Notorious Ice Weak", weaknesses=["ice"])


@pytest.fixture
def sample_data_dir() -> Path:
    """The data directory shipped with the project."""
    return SAMPLE_DATA_DIR


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Small data directory with a known roster and three bosses."""
    units = [
        {"name": "Lycaon", "rank": "S", "tier": 1, "tags": ["stun", "ice"], "join": ["attack"]},
        {"name": "Ellen", "rank": "S", "tier": 1, "tags": ["attack", "ice"], "join": ["stun"]},
        {"name": "Anby", "rank": "A", "tier": 1, "tags": ["stun", "electric"], "join": ["attack"]},
        {"name": "Harumasa", "rank": "S", "tier": 1, "tags": ["attack", "electric"], "join": ["stun"]},
        {"name": "Lighter", "rank": "S", "tier": 1, "tags": ["stun", "fire"], "join": ["attack"]},
        {"name": "Soldier 11", "rank": "A", "tier": 1, "tags": ["attack", "fire"], "join": ["stun"]},
        {"name": "Nicole", "rank": "A", "tier": 1.5, "tags": ["support", "ether"], "join": ["ether"]},
        {"name": "Soukaku", "rank": "A", "tier": 1, "tags": ["support", "ice"], "join": ["attack"]},
        {"name": "Lucy", "rank": "A", "tier": 1, "tags": ["support", "fire"], "join": ["attack"]},
    ]
    bosses = [
        {"name": "Notorious Ice Weak", "weaknesses": ["ice"]},
        {"name": "Notorious Electric Weak", "weaknesses": ["electric"]},
        {"name": "Fire Weak", "weaknesses": ["fire"]},
        {"name": "Stun Shill", "weaknesses": ["ice"], "shill": "stun"},
    ]
    (tmp_path / "units.yaml").write_text(yaml.safe_dump(units), encoding="utf-8")
    (tmp_path / "bosses.yaml").write_text(yaml.safe_dump(bosses), encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def reset_package_log_level():
    """CLI commands adjust the package log level; restore it after each test."""
    yield
    logging.getLogger("assault_planner").setLevel(logging.NOTSET)
