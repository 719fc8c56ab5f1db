"""
End-to-end tests for the planner over a small data directory.
"""

import logging

import pytest

from assault_planner.catalog import GameCatalog
from assault_planner.config import AssaultConfig
from assault_planner.errors import BossNotFoundError, ConfigurationError
from assault_planner.models import ScoreStatus
from assault_planner.planner import AssaultPlanner

BOSSES = ["Notorious Ice Weak", "Notorious Electric Weak", "Fire Weak"]


@pytest.fixture
def planner(data_dir):
    return AssaultPlanner.from_data_dir(data_dir)


@pytest.fixture
def anomaly_planner(make_unit, make_boss):
    """Planner whose only team is a lone non-titled anomaly unit with two supports."""
    units = [
        make_unit("Piper", "anomaly", "physical", rank="A", tier=2.5, join=["support"]),
        make_unit("Sup One", "support", "physical", join=["anomaly"]),
        make_unit("Sup Two", "support", "physical", join=["anomaly"]),
    ]

    def _planner(**x_fields):
        bosses = [make_boss("X", weaknesses=["physical"], **x_fields)]
        bosses += [make_boss(name, weaknesses=["physical"]) for name in ("Y", "Z")]
        return AssaultPlanner(GameCatalog(units=units, bosses=bosses))

    return _planner


class TestPlan:
    def test_finds_disjoint_combinations(self, planner):
        result = planner.plan(AssaultConfig(bosses=BOSSES))

        assert result.has_results
        assert result.total_found >= len(result.combinations)
        assert len(result.combinations) <= 5
        assert result.unit_count == 9
        assert result.team_count > 0
        assert result.lenient_bosses == []
        assert [b.name for b in result.bosses] == BOSSES

        for combo in result.combinations:
            assert [a.boss for a in combo.assignments] == BOSSES
            masks = [a.team.mask for a in combo.assignments]
            assert masks[0] & masks[1] == 0
            assert masks[0] & masks[2] == 0
            assert masks[1] & masks[2] == 0
            assert all(a.team.size == 3 for a in combo.assignments)
            assert combo.utilization is not None

        priorities = [(c.priority, -c.total_score) for c in result.combinations]
        assert priorities == sorted(priorities)

    def test_viable_teams_ranked_per_boss(self, planner):
        result = planner.plan(AssaultConfig(bosses=BOSSES))
        for boss in BOSSES:
            viable = result.viable_by_boss[boss]
            assert viable
            assert [t.rank for t in viable] == list(range(1, len(viable) + 1))
            assert all(t.score > 0 for t in viable)

    def test_result_limit(self, planner):
        result = planner.plan(AssaultConfig(bosses=BOSSES, result_limit=1))
        assert len(result.combinations) == 1
        assert result.total_found >= 1

    def test_deterministic(self, planner):
        config = AssaultConfig(bosses=BOSSES)
        first = planner.plan(config)
        second = planner.plan(config)
        assert [c.labels for c in first.combinations] == [c.labels for c in second.combinations]

    def test_exclude_removes_unit_everywhere(self, planner):
        result = planner.plan(AssaultConfig(bosses=BOSSES, exclude=["Ellen"]))
        for combo in result.combinations:
            for assignment in combo.assignments:
                assert "Ellen" not in assignment.team.names

    def test_owned_roster_limits_units(self, planner):
        owned = {"Lycaon": "M0W1", "Ellen": None, "Soukaku": None}
        result = planner.plan(AssaultConfig(bosses=BOSSES), owned=owned)
        assert result.unit_count == 3
        # One team cannot cover three bosses
        assert not result.has_results
        assert result.total_found == 0

    def test_thin_roster_is_empty_not_an_error(self, planner):
        result = planner.plan(AssaultConfig(bosses=BOSSES), owned=["Ellen"])
        assert result.unit_count == 1
        assert result.team_count == 0
        assert not result.has_results

    def test_wrong_boss_count(self, planner):
        with pytest.raises(ConfigurationError, match="Exactly 3 bosses"):
            planner.plan(AssaultConfig(bosses=BOSSES[:2]))

    def test_duplicate_bosses(self, planner):
        """Name and short name of the same boss count as a duplicate."""
        with pytest.raises(ConfigurationError, match="distinct"):
            planner.plan(AssaultConfig(bosses=["Notorious Ice Weak", "Ice Weak", "Fire Weak"]))

    def test_unknown_boss(self, planner):
        with pytest.raises(BossNotFoundError):
            planner.plan(AssaultConfig(bosses=["Fire Weak", "Ice Weak", "Nobody"]))

    def test_lenient_fallback_reported(self, anomaly_planner):
        """A lone non-titled anomaly unit is only viable leniently."""
        planner = anomaly_planner()

        result = planner.plan(AssaultConfig(bosses=["X", "Y", "Z"], flex_units=[]))
        assert result.lenient_bosses == ["X", "Y", "Z"]
        assert all(t.lenient for t in result.viable_by_boss["X"])
        assert not result.has_results

    def test_debug_logs_rejections(self, anomaly_planner, caplog):
        planner = anomaly_planner(anti=["anomaly"])
        config = AssaultConfig(bosses=["X", "Y", "Z"], flex_units=[], debug=True)

        with caplog.at_level(logging.INFO, logger="assault_planner"):
            result = planner.plan(config)

        assert result.viable_by_boss["X"] == []
        assert "X: 0 viable teams" in caplog.text
        assert "disqualified (ANTI check failed: anomaly DPS)" in caplog.text

    def test_developer_units_join_the_pool(self, planner, make_unit):
        newcomer = make_unit("Newcomer", "attack", "ice", tier=0, join=["stun"])
        config = AssaultConfig(bosses=BOSSES, developer_units=[newcomer])
        result = planner.plan(config)

        assert result.unit_count == 10
        assert any(
            "Newcomer" in team.label for team in result.viable_by_boss["Notorious Ice Weak"]
        )


class TestMatchups:
    def test_single_boss(self, planner):
        ranked = planner.matchups(boss_names=["Ice Weak"], limit=3)
        assert list(ranked) == ["Notorious Ice Weak"]
        teams = ranked["Notorious Ice Weak"]
        assert 0 < len(teams) <= 3
        assert teams[0].rank == 1

    def test_all_bosses(self, planner):
        ranked = planner.matchups()
        assert list(ranked) == BOSSES + ["Stun Shill"]

    def test_stun_shill_requires_stunner(self, planner):
        ranked = planner.matchups(boss_names=["Stun Shill"], limit=50)
        for scored in ranked["Stun Shill"]:
            assert any(unit.role == "stun" for unit in scored.team.members)


class TestBestTeams:
    def test_returns_archetype_teams(self, planner):
        selected = planner.best_teams()
        assert selected
        assert all(entry.team.size == 3 for entry in selected)

    def test_too_few_units(self, planner):
        assert planner.best_teams(owned=["Ellen", "Lycaon"]) == []


class TestExplain:
    def test_trace_for_known_team(self, planner):
        result = planner.explain(["Soukaku", "Ellen", "Lycaon"], "Ice Weak")
        assert result.status == ScoreStatus.SCORED
        assert result.value == 277
        assert result.trace[-1].running_score == 277

    def test_missing_shill_role_disqualified(self, planner):
        result = planner.explain(["Ellen", "Soukaku"], "Stun Shill")
        assert result.status == ScoreStatus.DISQUALIFIED
        assert result.value == -1
        assert result.reason == "Missing required role: stun"

    def test_unknown_unit(self, planner):
        with pytest.raises(ValueError, match="Unit 'Nobody' not found"):
            planner.explain(["Ellen", "Nobody"], "Ice Weak")

    def test_team_size(self, planner):
        with pytest.raises(ValueError, match="2 or 3 units"):
            planner.explain(["Ellen"], "Ice Weak")
        with pytest.raises(ValueError, match="2 or 3 units"):
            planner.explain(["Ellen", "Lycaon", "Anby", "Lucy"], "Ice Weak")

    def test_duplicate_units(self, planner):
        with pytest.raises(ValueError, match="Duplicate"):
            planner.explain(["Ellen", "Ellen", "Lycaon"], "Ice Weak")

    def test_unknown_boss(self, planner):
        with pytest.raises(BossNotFoundError):
            planner.explain(["Ellen", "Lycaon"], "Nobody")
