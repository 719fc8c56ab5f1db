"""
Team-builder mode: best teams per archetype.

Scores 3-unit teams against a neutral boss and lays them out in an
element x DPS-type grid so the user sees one strong team per playstyle.
"""

import logging
from collections.abc import Iterable, Sequence

from .config import MIN_TEAMS_TO_SHOW
from .models import DPS_ROLES, ELEMENTS, SUBDPS_TAG, ArchetypeTeam, Boss, Role, Team, TeamFilters, Unit
from .team_scorer import score_team

logger = logging.getLogger(__name__)


# =============================================================================
# TEAM CLASSIFICATION
# =============================================================================


def _unique_elements(units: Iterable[Unit]) -> list[str]:
    elements: list[str] = []
    for unit in units:
        if unit.element and unit.element not in elements:
            elements.append(unit.element)
    return elements


def get_team_elements(team: Team) -> list[str]:
    """
    Team element(s) based on DPS units.

    Falls back to stunners, then support/defense units, for DPS-less teams.
    """
    dps_units = [unit for unit in team.members if unit.is_dps]
    if dps_units:
        return _unique_elements(dps_units)

    stun_units = [unit for unit in team.members if unit.is_stun]
    if stun_units:
        return _unique_elements(stun_units)

    return _unique_elements(unit for unit in team.members if unit.is_support or unit.is_defense)


def get_team_dps_type(team: Team) -> str | None:
    """Team DPS type. Attack+anomaly hybrids count as attack."""
    dps_types = {unit.dps_type for unit in team.members if unit.is_dps}
    for dps_type in (Role.ATTACK.value, Role.ANOMALY.value, Role.RUPTURE.value):
        if dps_type in dps_types:
            return dps_type
    return None


def team_has_matching_dps(team: Team, element: str, dps_type: str) -> bool:
    """True if one member is a DPS of both the element and the DPS type."""
    return any(unit.element == element and unit.dps_type == dps_type for unit in team.members)


def count_units_with_element(team: Team, element: str) -> int:
    return sum(1 for unit in team.members if element in unit.tags)


def score_anomaly_archetype(team: Team, element: str) -> int:
    """
    Preference score for an anomaly cell.

    1000 for two anomaly units of different elements, 100 when the
    on-element anomaly unit is a main dealer (not ``subdps``), plus one per
    member of the element as a tiebreaker.
    """
    anomaly_units = [unit for unit in team.members if unit.is_anomaly]
    score = 0

    if len(anomaly_units) >= 2 and len({unit.element for unit in anomaly_units}) >= 2:
        score += 1000

    on_element = next((unit for unit in anomaly_units if element in unit.tags), None)
    if on_element is not None and SUBDPS_TAG not in on_element.synergy_tags:
        score += 100

    return score + count_units_with_element(team, element)


# =============================================================================
# FILTERS
# =============================================================================


def _matches_unit(unit: Unit, names: Sequence[str]) -> bool:
    return unit.name in names or unit.id in names


def apply_team_filters(teams: Iterable[Team], filters: TeamFilters) -> list[Team]:
    """Keep the teams that satisfy every active filter."""
    kept = []
    for team in teams:
        members = team.members

        # At least 2 units of one selected element
        if filters.elements and not any(
            count_units_with_element(team, element) >= 2 for element in filters.elements
        ):
            continue

        if filters.dps_roles and not any(unit.role in filters.dps_roles for unit in members):
            continue

        if sum(1 for unit in members if unit.is_s_rank) < filters.min_s_rank:
            continue

        # Unrated units are not filtered by tier
        if filters.max_tier is not None and any(
            unit.tier is not None and unit.tier > filters.max_tier for unit in members
        ):
            continue

        if filters.must_include and not any(_matches_unit(unit, filters.must_include) for unit in members):
            continue

        if filters.exclude and any(_matches_unit(unit, filters.exclude) for unit in members):
            continue

        kept.append(team)
    return kept


def available_elements(units: Iterable[Unit], filters: TeamFilters) -> list[str]:
    """Elements carried by an available DPS unit, in canonical order."""
    found = {
        unit.element
        for unit in units
        if unit.is_dps and unit.element and not _matches_unit(unit, filters.exclude)
    }
    return [e for e in ELEMENTS if e in found and (not filters.elements or e in filters.elements)]


def available_dps_types(units: Iterable[Unit], filters: TeamFilters) -> list[str]:
    """DPS types carried by an available unit, in canonical order."""
    found = {unit.dps_type for unit in units if unit.is_dps and not _matches_unit(unit, filters.exclude)}
    return [t for t in DPS_ROLES if t in found and (not filters.dps_roles or t in filters.dps_roles)]


# =============================================================================
# SELECTION
# =============================================================================


def select_best_teams(
    teams: Iterable[Team],
    units: Sequence[Unit],
    filters: TeamFilters | None = None,
    min_teams: int = MIN_TEAMS_TO_SHOW,
) -> list[ArchetypeTeam]:
    """
    Pick the best teams per element x DPS-type archetype.

    Args:
        teams: Candidate teams; only 3-unit teams are considered.
        units: Available units (defines which archetypes exist).
        filters: User filters. Defaults to no filtering.
        min_teams: Lower bound on the number of teams returned when enough
                   viable teams exist.

    Returns:
        Selected teams, grid cells first, then top-ups by score.
    """
    filters = filters or TeamFilters()
    triples = apply_team_filters((team for team in teams if team.size == 3), filters)
    if not triples:
        return []

    neutral = Boss.neutral()
    scored: list[tuple[Team, int]] = []
    for team in triples:
        result = score_team(team, neutral, lenient=True)
        if result.viable:
            scored.append((team, result.value))
    scored.sort(key=lambda item: (-item[1], item[0].label))

    elements = available_elements(units, filters)
    dps_types = available_dps_types(units, filters)
    per_cell = filters.teams_per_archetype

    grid: dict[tuple[str, str], list[ArchetypeTeam]] = {
        (element, dps_type): [] for element in elements for dps_type in dps_types
    }
    used: set[str] = set()

    # First pass: archetype-specific preferences
    for element, dps_type in grid:
        matching = [
            (team, score)
            for team, score in scored
            if team.label not in used and team_has_matching_dps(team, element, dps_type)
        ]
        if not matching:
            continue

        if dps_type == Role.ANOMALY.value:
            ranked = sorted(matching, key=lambda item: -score_anomaly_archetype(item[0], element))
        else:
            # More members of the element first, 2 at minimum when possible
            on_element = [item for item in matching if count_units_with_element(item[0], element) >= 2]
            ranked = (
                sorted(on_element, key=lambda item: -count_units_with_element(item[0], element))
                if on_element
                else matching
            )

        for team, score in ranked[:per_cell]:
            grid[element, dps_type].append(
                ArchetypeTeam(team=team, score=score, element=element, dps_type=dps_type)
            )
            used.add(team.label)

    # Second pass: fill cells still below the limit
    for team, score in scored:
        if team.label in used:
            continue
        for (element, dps_type), cell in grid.items():
            if len(cell) < per_cell and team_has_matching_dps(team, element, dps_type):
                cell.append(ArchetypeTeam(team=team, score=score, element=element, dps_type=dps_type))
                used.add(team.label)
                break

    selected: dict[str, ArchetypeTeam] = {}
    for cell in grid.values():
        for entry in cell:
            selected.setdefault(entry.label, entry)

    # Top up with the best remaining teams
    for team, score in scored:
        if len(selected) >= min_teams:
            break
        if team.label not in selected:
            team_elements = get_team_elements(team)
            selected[team.label] = ArchetypeTeam(
                team=team,
                score=score,
                element=team_elements[0] if team_elements else None,
                dps_type=get_team_dps_type(team),
            )

    logger.debug(f"Selected {len(selected)} archetype teams from {len(scored)} viable teams")
    return list(selected.values())
