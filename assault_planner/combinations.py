"""
Cross-boss assignment search.

Ranks viable teams per boss, then finds every way to assign one team to
each of three bosses with no unit used twice.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .config import BOSS_COUNT, TOP_K
from .errors import ConfigurationError
from .models import Assignment, Boss, Combination, ScoredTeam, Team
from .team_builder import teams_overlap
from .team_scorer import score_team

logger = logging.getLogger(__name__)


def _score_viable(teams: Iterable[Team], boss: Boss, lenient: bool) -> list[ScoredTeam]:
    scored = []
    for team in teams:
        result = score_team(team, boss, lenient=lenient)
        if result.viable:
            scored.append(ScoredTeam(team=team, boss=boss.name, score=result.value, lenient=lenient))
    return scored


def _ranked(teams: Iterable[ScoredTeam]) -> list[ScoredTeam]:
    return [scored.model_copy(update={"rank": position}) for position, scored in enumerate(teams, 1)]


def rank_viable_teams(teams: Iterable[Team], boss: Boss) -> list[ScoredTeam]:
    """
    Score teams against a boss and rank the viable ones.

    Strict scoring first; if no team is viable the whole set is rescored
    in lenient mode.

    Args:
        teams: Candidate teams (normally the 3-unit teams).
        boss: Target boss.

    Returns:
        Viable teams sorted by descending score (label breaks ties), with
        1-based ranks assigned in that order. Empty if nothing is viable.
    """
    teams = list(teams)
    viable = _score_viable(teams, boss, lenient=False)

    if not viable and teams:
        logger.debug(f"{boss.name}: no viable teams, rescoring in lenient mode")
        viable = _score_viable(teams, boss, lenient=True)

    viable.sort(key=lambda scored: (-scored.score, scored.label))
    return _ranked(viable)


def find_exclusive_combinations(
    viable_by_boss: Mapping[str, Sequence[ScoredTeam]],
    boss_names: Sequence[str],
    top_k: int = TOP_K,
) -> list[Combination]:
    """
    Find all combinations of disjoint teams, one per boss.

    Args:
        viable_by_boss: Viable teams keyed by boss name, sorted best first.
            Ranks are assigned from list position; any incoming rank is
            ignored.
        boss_names: Exactly three boss names, in display order.
        top_k: Teams per boss considered by the search.

    Returns:
        Combinations sorted by ascending priority, then descending total
        score. Priority is max(ranks) * 100 + sum(ranks), so the worst
        per-boss pick dominates the ordering.

    Raises:
        ConfigurationError: If not exactly three distinct bosses are given.
    """
    if len(boss_names) != BOSS_COUNT:
        raise ConfigurationError(f"Exactly {BOSS_COUNT} bosses are required, got {len(boss_names)}")
    if len(set(boss_names)) != BOSS_COUNT:
        raise ConfigurationError(f"Bosses must be distinct: {', '.join(boss_names)}")

    teams1, teams2, teams3 = (_ranked(viable_by_boss.get(name, []))[:top_k] for name in boss_names)

    combinations: list[Combination] = []

    for t1 in teams1:
        for t2 in teams2:
            if teams_overlap(t1.team, t2.team):
                continue
            for t3 in teams3:
                if teams_overlap(t1.team, t3.team) or teams_overlap(t2.team, t3.team):
                    continue
                assignments = [
                    Assignment(boss=scored.boss, team=scored.team, score=scored.score, rank=scored.rank, lenient=scored.lenient)
                    for scored in (t1, t2, t3)
                ]
                combinations.append(Combination.from_assignments(assignments))

    combinations.sort(key=Combination.sort_key)
    logger.debug(f"Found {len(combinations)} exclusive combinations")
    return combinations
