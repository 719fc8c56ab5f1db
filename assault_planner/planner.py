"""
Deadly Assault planner.

Orchestrates one run:
1. Select available units (roster, developer units, whitelist, blacklist)
2. Generate legal teams and extend pairs with flex units
3. Rank viable 3-unit teams per boss (lenient fallback)
4. Search disjoint combinations across the three bosses
5. Drop dominated combinations and apply the elite-utilization penalty

All game knowledge comes from data; every step is deterministic.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from .archetypes import select_best_teams
from .catalog import GameCatalog
from .combinations import find_exclusive_combinations, rank_viable_teams
from .config import BOSS_COUNT, DEFAULT_FLEX_UNITS, TOP_TEAMS_PER_BOSS, AssaultConfig
from .dominance import apply_dominance_filter
from .errors import ConfigurationError
from .models import ArchetypeTeam, Boss, Combination, ScoredTeam, ScoreResult, Team, TeamFilters, Unit
from .team_builder import TeamGenerator, split_by_size
from .team_scorer import score_team

logger = logging.getLogger(__name__)


class AssaultResult(BaseModel):
    """Outcome of one deadly-assault run."""

    bosses: list[Boss]
    combinations: list[Combination] = Field(default_factory=list)  # Truncated to the result limit
    total_found: int = 0  # Combinations before truncation, after dominance filtering
    dominated_count: int = 0
    lenient_bosses: list[str] = Field(default_factory=list)
    viable_by_boss: dict[str, list[ScoredTeam]] = Field(default_factory=dict)
    unit_count: int = 0
    team_count: int = 0  # 3-unit teams scored per boss

    @property
    def has_results(self) -> bool:
        return bool(self.combinations)


class AssaultPlanner:
    """
    Main entry point for team planning.

    Flow:
    1. Resolve bosses and units from the catalog
    2. Build teams for the unit selection
    3. Score, search and filter
    """

    def __init__(self, catalog: GameCatalog):
        """
        Initialize the planner.

        Args:
            catalog: Source of units and bosses.
        """
        self.catalog = catalog

    @classmethod
    def from_data_dir(cls, data_dir: str | Path) -> "AssaultPlanner":
        return cls(GameCatalog.from_data_dir(data_dir))

    # =========================================================================
    # TEAM PREPARATION
    # =========================================================================

    def build_teams(self, units: Sequence[Unit], flex_units: Iterable[str] = ()) -> dict[str, Team]:
        """
        Generate the 3-unit teams for a unit selection.

        Args:
            units: Available units.
            flex_units: Names of units that may join any pair. Names not in
                        the selection are ignored.

        Returns:
            Map of label to 3-unit team.
        """
        generator = TeamGenerator(units)
        pairs, triples = split_by_size(generator.generate())

        flex_names = set(flex_units)
        flex = [unit for unit in units if unit.name in flex_names]
        if flex:
            logger.debug(f"Flex units: {', '.join(unit.name for unit in flex)}")
            generator.extend_with_flex_units(pairs, triples, flex)

        logger.debug(f"Total 3-unit teams: {len(triples)}")
        return triples

    def _resolve_bosses(self, boss_names: Sequence[str]) -> list[Boss]:
        if len(boss_names) != BOSS_COUNT:
            raise ConfigurationError(f"Exactly {BOSS_COUNT} bosses are required, got {len(boss_names)}")
        bosses = self.catalog.get_bosses(boss_names)
        if len({boss.name for boss in bosses}) != BOSS_COUNT:
            raise ConfigurationError(f"Bosses must be distinct: {', '.join(boss_names)}")
        return bosses

    @staticmethod
    def _log_rejections(teams: Iterable[Team], boss: Boss, diag, sample: int = 3) -> None:
        """Log why the first few teams fail against a boss."""
        for team in list(teams)[:sample]:
            result = score_team(team, boss)
            if result.disqualified:
                diag(f"  {team.label}: disqualified ({result.reason})")
            else:
                diag(f"  {team.label}: score {result.value} (raw {result.total})")

    # =========================================================================
    # DEADLY ASSAULT
    # =========================================================================

    def plan(
        self,
        config: AssaultConfig,
        owned: Mapping[str, str | None] | Iterable[str] | None = None,
    ) -> AssaultResult:
        """
        Run the deadly-assault batch mode.

        Args:
            config: Run options (bosses, filters, limits).
            owned: Owned unit names. None means every catalog unit.

        Returns:
            AssaultResult; empty combinations when the roster is too thin.

        Raises:
            ConfigurationError: Wrong boss count or duplicate bosses.
            BossNotFoundError: A boss name is not in the data.
        """
        bosses = self._resolve_bosses(config.bosses)
        diag = logger.info if config.debug else logger.debug

        for boss in bosses:
            diag(
                f"{boss.name} | Weak: {', '.join(boss.weaknesses) or 'none'} | "
                f"Resist: {', '.join(boss.resistances) or 'none'} | "
                f"Shill: {boss.shill or 'none'} | Assists: {boss.assists}"
            )

        units = self.catalog.select_units(
            owned=owned,
            include=config.include,
            exclude=config.exclude,
            developer_units=config.developer_units,
        )
        result = AssaultResult(bosses=bosses, unit_count=len(units))

        if len(units) < 2:
            logger.warning(f"Only {len(units)} units available, no teams can be formed")
            return result

        triples = self.build_teams(units, config.flex_units)
        result.team_count = len(triples)

        viable_by_boss: dict[str, list[ScoredTeam]] = {}
        for boss in bosses:
            viable = rank_viable_teams(triples.values(), boss)
            viable_by_boss[boss.name] = viable
            lenient = bool(viable) and viable[0].lenient
            if lenient:
                result.lenient_bosses.append(boss.name)
            diag(f"{boss.name}: {len(viable)} viable teams{' (LENIENT)' if lenient else ''}")

            if config.debug:
                for scored in viable[:TOP_TEAMS_PER_BOSS]:
                    diag(f"  #{scored.rank}: {scored.label} ({scored.score})")
                if not viable:
                    self._log_rejections(triples.values(), boss, diag)

        if result.lenient_bosses:
            logger.warning(f"No strictly viable teams for: {', '.join(result.lenient_bosses)} - using fallback mode")

        result.viable_by_boss = viable_by_boss

        combinations = find_exclusive_combinations(
            viable_by_boss, [boss.name for boss in bosses], top_k=config.top_k
        )
        combinations, dominated_count = apply_dominance_filter(combinations, viable_by_boss, units, bosses)
        diag(f"Found {len(combinations)} valid team allocations ({dominated_count} dominated removed)")

        result.total_found = len(combinations)
        result.dominated_count = dominated_count
        result.combinations = combinations[: config.result_limit]
        return result

    # =========================================================================
    # MATCHUPS / TEAM BUILDER / EXPLAIN
    # =========================================================================

    def matchups(
        self,
        boss_names: Sequence[str] | None = None,
        owned: Mapping[str, str | None] | Iterable[str] | None = None,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        flex_units: Iterable[str] = DEFAULT_FLEX_UNITS,
        limit: int = TOP_TEAMS_PER_BOSS,
    ) -> dict[str, list[ScoredTeam]]:
        """
        Rank the top teams for each boss independently.

        Args:
            boss_names: Bosses to rank for. None means every boss.
            limit: Teams kept per boss.

        Returns:
            Map of boss name to its top viable teams.
        """
        bosses = self.catalog.get_bosses(boss_names) if boss_names else self.catalog.bosses
        units = self.catalog.select_units(owned=owned, include=include, exclude=exclude)
        triples = self.build_teams(units, flex_units) if len(units) >= 2 else {}

        return {boss.name: rank_viable_teams(triples.values(), boss)[:limit] for boss in bosses}

    def best_teams(
        self,
        filters: TeamFilters | None = None,
        owned: Mapping[str, str | None] | Iterable[str] | None = None,
        flex_units: Iterable[str] = DEFAULT_FLEX_UNITS,
    ) -> list[ArchetypeTeam]:
        """Team-builder mode: best team per element x DPS type."""
        units = self.catalog.select_units(owned=owned)
        if len(units) < 3:
            logger.warning("Need at least 3 units to build teams")
            return []
        triples = self.build_teams(units, flex_units)
        return select_best_teams(triples.values(), units, filters)

    def explain(self, unit_names: Sequence[str], boss_name: str, lenient: bool = False) -> ScoreResult:
        """
        Score one hand-picked team and return the full rule trace.

        Raises:
            ValueError: Unknown unit name, or not 2-3 distinct units.
            BossNotFoundError: Unknown boss.
        """
        boss = self.catalog.get_boss(boss_name)

        members = []
        for name in unit_names:
            unit = self.catalog.get_unit(name)
            if unit is None:
                raise ValueError(f"Unit '{name}' not found in unit data")
            members.append(unit)

        if not 2 <= len(members) <= 3:
            raise ValueError(f"A team has 2 or 3 units, got {len(members)}")

        team = TeamGenerator(members).build_team(members)
        return score_team(team, boss, lenient=lenient)
