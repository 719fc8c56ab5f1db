"""
Dominance filter and elite-unit utilization check.

A combination is dominated when an unused elite unit could be swapped into
one of its assignments without touching the other two. Surviving
combinations are checked for unused elite units; unexcused unused elite
supports push a combination down the ranking.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .config import ELITE_TIER, UNUSED_ELITE_PENALTY
from .models import Boss, Combination, DominanceCheck, ScoredTeam, Unit, UtilizationCheck, shorten_boss_name

logger = logging.getLogger(__name__)


def is_elite(unit: Unit) -> bool:
    return unit.tier is not None and unit.tier <= ELITE_TIER


def _used_ids(combination: Combination) -> set[str]:
    return {unit.id for assignment in combination.assignments for unit in assignment.team.members}


def is_dominated_combination(
    combination: Combination,
    viable_by_boss: Mapping[str, Sequence[ScoredTeam]],
    units: Iterable[Unit],
) -> DominanceCheck:
    """
    Check whether an unused elite unit fits into the combination.

    For every unused elite unit and every assignment, looks for a viable
    team for that assignment's boss that contains the unit and shares no
    unit with the other two assignments.
    """
    used = _used_ids(combination)
    missing_elite = [unit for unit in units if is_elite(unit) and unit.id not in used]

    for missing_unit in missing_elite:
        for position, assignment in enumerate(combination.assignments):
            other_mask = 0
            for other_position, other in enumerate(combination.assignments):
                if other_position != position:
                    other_mask |= other.team.mask

            for candidate in viable_by_boss.get(assignment.boss, []):
                if not candidate.team.has_unit(missing_unit):
                    continue
                if candidate.team.mask & other_mask:
                    continue
                return DominanceCheck(
                    dominated=True,
                    reason=(
                        f"Could use {candidate.label} for {shorten_boss_name(assignment.boss)} "
                        f"to include {missing_unit.name}"
                    ),
                )

    return DominanceCheck(dominated=False)


def check_elite_utilization(
    combination: Combination,
    units: Sequence[Unit],
    bosses: Sequence[Boss],
) -> UtilizationCheck:
    """
    Report elite units left out of a combination.

    Rules:
    - Elite supports should be used unless their synergy avoids every DPS
      type fielded by the combination (warning otherwise).
    - Elite DPS should be used if their element matches a selected boss
      weakness and their type is not anti'd there (note otherwise).

    Args:
        combination: Combination to check.
        units: All available units.
        bosses: The selected bosses.
    """
    warnings: list[str] = []
    notes: list[str] = []

    used_names: list[str] = []
    for assignment in combination.assignments:
        for unit in assignment.team.members:
            if unit.name not in used_names:
                used_names.append(unit.name)

    dps_types_in_combo = sorted(
        {unit.dps_type for a in combination.assignments for unit in a.team.members if unit.is_dps}
    )

    elite_units = [unit for unit in units if is_elite(unit)]

    for support in (unit for unit in elite_units if unit.is_support):
        if support.name in used_names:
            continue

        avoid_tags = support.synergy_avoid
        if not avoid_tags:
            warnings.append(f"{support.name} (elite support, no restrictions) is not used")
            continue

        compatible_types = [dps_type for dps_type in dps_types_in_combo if dps_type not in avoid_tags]
        if compatible_types:
            warnings.append(
                f"{support.name} (elite support) not used despite compatible teams "
                f"({'/'.join(compatible_types)})"
            )

    for dps in (unit for unit in elite_units if unit.is_dps):
        if dps.name in used_names:
            continue

        matching_bosses = [
            boss for boss in bosses if dps.element in boss.weaknesses and dps.dps_type not in boss.anti
        ]
        if matching_bosses:
            boss_names = ", ".join(shorten_boss_name(boss.name, 15) for boss in matching_bosses)
            notes.append(f"{dps.name} (elite {dps.dps_type}) not used but matches weakness for: {boss_names}")

    elite_names = {unit.name for unit in elite_units}
    return UtilizationCheck(
        warnings=warnings,
        notes=notes,
        elite_used=sum(1 for name in used_names if name in elite_names),
        elite_available=len(elite_units),
        used_units=used_names,
    )


def apply_dominance_filter(
    combinations: Iterable[Combination],
    viable_by_boss: Mapping[str, Sequence[ScoredTeam]],
    units: Sequence[Unit],
    bosses: Sequence[Boss],
) -> tuple[list[Combination], int]:
    """
    Drop dominated combinations and penalize unexcused unused elite supports.

    Returns:
        Tuple of (re-sorted surviving combinations, dominated count).
    """
    kept: list[Combination] = []
    dominated_count = 0

    for combination in combinations:
        dominance = is_dominated_combination(combination, viable_by_boss, units)
        if dominance.dominated:
            dominated_count += 1
            continue

        utilization = check_elite_utilization(combination, units, bosses)
        kept.append(
            combination.model_copy(
                update={
                    "dominance": dominance,
                    "utilization": utilization,
                    "priority": combination.priority + len(utilization.warnings) * UNUSED_ELITE_PENALTY,
                }
            )
        )

    kept.sort(key=Combination.sort_key)
    logger.debug(f"Dominance filter kept {len(kept)} combinations ({dominated_count} dominated removed)")
    return kept, dominated_count
