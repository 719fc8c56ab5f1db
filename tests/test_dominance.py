"""
Tests for the dominance filter and elite utilization report.
"""

import pytest

from assault_planner.config import UNUSED_ELITE_PENALTY
from assault_planner.dominance import (
    apply_dominance_filter,
    check_elite_utilization,
    is_dominated_combination,
    is_elite,
)
from assault_planner.models import Assignment, Combination, ScoredTeam
from assault_planner.team_builder import TeamGenerator


@pytest.fixture
def roster(make_unit):
    return {
        "S1": make_unit("S1", "stun", "ice"),
        "A1": make_unit("A1", "attack", "ice"),
        "S2": make_unit("S2", "stun", "fire"),
        "A2": make_unit("A2", "attack", "fire"),
        "S3": make_unit("S3", "stun", "electric"),
        "A3": make_unit("A3", "attack", "electric"),
        "Elite": make_unit("Elite", "support", "ether", tier=0),
    }


@pytest.fixture
def generator(roster):
    return TeamGenerator(list(roster.values()))


@pytest.fixture
def combine(roster, generator):
    """combine([["S1", "A1"], ...], ranks=[1, 1, 1]) -> Combination over bosses X, Y, Z."""

    def _combine(teams, ranks=(1, 1, 1)):
        assignments = [
            Assignment(
                boss=boss,
                team=generator.build_team([roster[name] for name in names]),
                score=200,
                rank=rank,
            )
            for boss, names, rank in zip(("X", "Y", "Z"), teams, ranks)
        ]
        return Combination.from_assignments(assignments)

    return _combine


def _viable(generator, roster, boss, *teams):
    return [
        ScoredTeam(team=generator.build_team([roster[n] for n in names]), boss=boss, score=100, rank=rank)
        for rank, names in enumerate(teams, 1)
    ]


class TestIsElite:
    def test_tier_zero_is_elite(self, make_unit):
        assert is_elite(make_unit("Miyabi", "anomaly", "ice", tier=0))

    def test_rated_and_unrated(self, make_unit):
        assert not is_elite(make_unit("Ellen", "attack", "ice", tier=0.5))
        assert not is_elite(make_unit("Nobody", "attack", "ice", tier=None))


class TestDominance:
    def test_swappable_elite_dominates(self, roster, generator, combine):
        """An elite unit that fits one boss without touching the others dominates."""
        combo = combine([["S1", "A1"], ["S2", "A2"], ["S3", "A3"]])
        viable = {"X": _viable(generator, roster, "X", ["S1", "A1"], ["A1", "Elite"])}

        check = is_dominated_combination(combo, viable, roster.values())
        assert check.dominated
        assert check.reason == "Could use A1 / Elite for X to include Elite"

    def test_overlapping_alternative_does_not_dominate(self, roster, generator, combine):
        """The only team with the elite unit reuses a unit from another boss."""
        combo = combine([["S1", "A1"], ["S2", "A2"], ["S3", "A3"]])
        viable = {"X": _viable(generator, roster, "X", ["S1", "A1"], ["A2", "Elite"])}

        check = is_dominated_combination(combo, viable, roster.values())
        assert not check.dominated
        assert check.reason is None

    def test_elite_already_used(self, roster, generator, combine):
        combo = combine([["S1", "A1", "Elite"], ["S2", "A2"], ["S3", "A3"]])
        viable = {"X": _viable(generator, roster, "X", ["A1", "Elite"])}
        assert not is_dominated_combination(combo, viable, roster.values()).dominated


class TestUtilization:
    @pytest.fixture
    def units(self, make_unit):
        return [
            make_unit("Free", "support", tier=0),
            make_unit("Picky", "support", tier=0, synergy={"avoid": ["attack"]}),
            make_unit("Choosy", "support", tier=0, synergy={"avoid": ["anomaly"]}),
            make_unit("Frost", "anomaly", "ice", tier=0),
            make_unit("Blaze", "anomaly", "fire", tier=0),
        ]

    @pytest.fixture
    def bosses(self, make_boss):
        return [
            make_boss("Notorious Ice Weak", weaknesses=["ice"]),
            make_boss("Fire Weak", weaknesses=["fire"], anti=["anomaly"]),
            make_boss("Plain"),
        ]

    def test_unused_elite_report(self, combine, units, bosses):
        combo = combine([["S1", "A1"], ["S2", "A2"], ["S3", "A3"]])
        report = check_elite_utilization(combo, units, bosses)

        assert report.warnings == [
            "Free (elite support, no restrictions) is not used",
            "Choosy (elite support) not used despite compatible teams (attack)",
        ]
        assert report.notes == ["Frost (elite anomaly) not used but matches weakness for: Ice Weak"]
        assert report.elite_used == 0
        assert report.elite_available == 5
        assert report.used_units == ["S1", "A1", "S2", "A2", "S3", "A3"]

    def test_used_elite_counted(self, roster, combine, bosses):
        combo = combine([["S1", "A1", "Elite"], ["S2", "A2"], ["S3", "A3"]])
        report = check_elite_utilization(combo, list(roster.values()), bosses)
        assert report.warnings == []
        assert report.elite_used == 1
        assert report.elite_available == 1


class TestApplyDominanceFilter:
    def test_unused_elite_support_pushes_combination_down(self, roster, combine):
        """The penalty outweighs a better rank profile."""
        leaves_elite = combine([["S1", "A1"], ["S2", "A2"], ["S3", "A3"]], ranks=(1, 1, 1))
        uses_elite = combine([["S1", "A1"], ["S2", "A2"], ["S3", "Elite"]], ranks=(2, 2, 2))

        kept, dominated = apply_dominance_filter(
            [leaves_elite, uses_elite], {}, list(roster.values()), []
        )

        assert dominated == 0
        assert [c.labels[2] for c in kept] == ["S3 / Elite", "S3 / A3"]
        assert kept[0].priority == 206
        assert kept[1].priority == 103 + UNUSED_ELITE_PENALTY
        assert kept[1].utilization.warnings
        assert kept[0].dominance is not None and not kept[0].dominance.dominated

    def test_dominated_combinations_removed(self, roster, generator, combine):
        combo = combine([["S1", "A1"], ["S2", "A2"], ["S3", "A3"]])
        viable = {"Z": _viable(generator, roster, "Z", ["S3", "Elite"])}

        kept, dominated = apply_dominance_filter([combo], viable, list(roster.values()), [])
        assert kept == []
        assert dominated == 1
