"""
Team generation for Deadly Assault planning.

Enumerates every legal 2- and 3-unit team from a roster. A team is legal
when every member's join condition is satisfied by at least one teammate.
Flex units can additionally be added to any legal pair.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from itertools import combinations

from .models import ROLE_ORDER, TEAM_SEPARATOR, Team, Unit

logger = logging.getLogger(__name__)


def sort_team_by_role(units: Iterable[Unit]) -> list[Unit]:
    """Sort units by role order (stun, anomaly, attack, rupture, defense, support), then name."""
    return sorted(units, key=lambda unit: (ROLE_ORDER.index(unit.role), unit.name.casefold(), unit.name))


def team_label(units: Iterable[Unit]) -> str:
    """Canonical label for a team (assumes it is already sorted)."""
    return TEAM_SEPARATOR.join(unit.name for unit in units)


def teams_overlap(team1: Team, team2: Team) -> bool:
    """Check if two teams share any units."""
    return bool(team1.mask & team2.mask)


def split_by_size(teams: Mapping[str, Team]) -> tuple[dict[str, Team], dict[str, Team]]:
    """
    Separate a team map into 2-person and 3-person teams.

    Returns:
        Tuple of (pairs, triples), each keyed by label.
    """
    pairs = {label: team for label, team in teams.items() if team.size == 2}
    triples = {label: team for label, team in teams.items() if team.size == 3}
    return pairs, triples


class RosterIndex:
    """Assigns every roster unit a unique power-of-two bit."""

    def __init__(self, units: Sequence[Unit]):
        self._bits: dict[str, int] = {}
        names: set[str] = set()
        for position, unit in enumerate(units):
            if unit.id in self._bits or unit.name in names:
                raise ValueError(f"Duplicate unit in roster: {unit.name}")
            self._bits[unit.id] = 1 << position
            names.add(unit.name)

    def __contains__(self, unit: Unit) -> bool:
        return unit.id in self._bits

    def __len__(self) -> int:
        return len(self._bits)

    def bit(self, unit: Unit) -> int:
        try:
            return self._bits[unit.id]
        except KeyError:
            raise ValueError(f"Unit not in roster: {unit.name}") from None

    def mask(self, units: Iterable[Unit]) -> int:
        mask = 0
        for unit in units:
            mask |= self.bit(unit)
        return mask


class TeamGenerator:
    """
    Builds every legal team for one roster.

    The generator owns the roster index, so teams built by different
    generators must not be compared with each other.
    """

    def __init__(self, units: Sequence[Unit]):
        """
        Initialize the generator.

        Args:
            units: Roster in a fixed order. Bit positions follow this order.
        """
        self.units = list(units)
        self.index = RosterIndex(self.units)

    def build_team(self, units: Iterable[Unit], flex_members: Iterable[str] = ()) -> Team:
        """Create a canonical team from member units."""
        members = sort_team_by_role(units)
        if len({unit.id for unit in members}) != len(members):
            raise ValueError(f"Team has duplicate members: {team_label(members)}")
        return Team(
            members=tuple(members),
            mask=self.index.mask(members),
            flex_members=tuple(flex_members),
        )

    def generate(self) -> dict[str, Team]:
        """
        Generate all valid team combinations.

        Pairs are emitted only when acceptance is mutual. Triples need each
        member to accept at least one of the other two.

        Returns:
            Map of team label to team, ordered by roster bitmask.
        """
        permutations: dict[int, list[Unit]] = {}

        for unit_a, unit_b in combinations(self.units, 2):
            if unit_a.accepts(unit_b) and unit_b.accepts(unit_a):
                permutations[self.index.mask((unit_a, unit_b))] = [unit_a, unit_b]

        for trio in combinations(self.units, 3):
            if all(
                any(member.accepts(other) for other in trio if other is not member)
                for member in trio
            ):
                permutations[self.index.mask(trio)] = list(trio)

        teams: dict[str, Team] = {}
        for mask in sorted(permutations):
            team = self.build_team(permutations[mask])
            teams[team.label] = team

        logger.debug(f"Generated {len(teams)} teams from {len(self.units)} units")
        return teams

    def extend_with_flex_units(
        self,
        pairs: Mapping[str, Team],
        triples: dict[str, Team],
        flex_units: Iterable[Unit],
    ) -> int:
        """
        Extend 2-person teams with flex units to create additional 3-person teams.

        Flex units join any pair regardless of join conditions.

        Args:
            pairs: Map of label to 2-person team.
            triples: Map of label to 3-person team (modified in place).
            flex_units: Units that can join any team.

        Returns:
            Number of new teams created.
        """
        flex_units = list(flex_units)
        extended_count = 0

        for team in pairs.values():
            for flex_unit in flex_units:
                # Skip if this unit is already on the team
                if team.has_unit(flex_unit):
                    continue

                extended = self.build_team(
                    (*team.members, flex_unit),
                    flex_members=(*team.flex_members, flex_unit.name),
                )
                if extended.label not in triples:
                    triples[extended.label] = extended
                    extended_count += 1

        if extended_count:
            logger.debug(f"Extended {extended_count} teams using flex units")
        return extended_count


def generate_teams(units: Sequence[Unit]) -> dict[str, Team]:
    """Generate all valid 2- and 3-unit teams for a roster."""
    return TeamGenerator(units).generate()
