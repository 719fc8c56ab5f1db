"""
Tests for run configuration.
"""

import pytest
from pydantic import ValidationError

from assault_planner.config import DEFAULT_FLEX_UNITS, RESULT_LIMIT, TOP_K, AssaultConfig, get_data_dir


class TestAssaultConfig:
    def test_defaults(self):
        config = AssaultConfig(bosses=["A", "B", "C"])
        assert config.flex_units == DEFAULT_FLEX_UNITS
        assert config.flex_units is not DEFAULT_FLEX_UNITS
        assert config.result_limit == RESULT_LIMIT
        assert config.top_k == TOP_K
        assert config.include == []
        assert not config.debug

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            "bosses: [Notorious Pompey, Miasma Priest, Typhon Slugger]\n"
            "exclude: [Billy]\n"
            "flex_units: []\n"
            "result_limit: 3\n"
            "developer_units:\n"
            "  - name: New Kid\n"
            "    rank: S\n"
            "    tier: 0.5\n"
            "    tags: [attack, fire]\n"
            "    join: [stun]\n",
            encoding="utf-8",
        )
        config = AssaultConfig.from_yaml(path)

        assert config.bosses[1] == "Miasma Priest"
        assert config.exclude == ["Billy"]
        assert config.flex_units == []
        assert config.result_limit == 3
        assert config.developer_units[0].id == "new-kid"
        assert config.developer_units[0].element == "fire"

    def test_rejects_bad_limits(self):
        with pytest.raises(ValidationError):
            AssaultConfig(bosses=["A", "B", "C"], result_limit=0)


class TestDataDir:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASSAULT_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path

    def test_default_is_project_data(self, monkeypatch):
        monkeypatch.delenv("ASSAULT_DATA_DIR", raising=False)
        assert get_data_dir().name == "data"
        assert (get_data_dir() / "units.yaml").exists()
