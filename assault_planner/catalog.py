"""
Game catalog for Deadly Assault data.

Wraps the data loader with name lookups and roster selection.
All returned data is human-curated.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from .data_loader import DataLoader
from .errors import BossNotFoundError
from .models import Boss, Unit

logger = logging.getLogger(__name__)


class GameCatalog:
    """
    Name-indexed units and bosses.

    Data is loaded lazily on first access and cached for the lifetime of
    the catalog.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        units: Iterable[Unit] | None = None,
        bosses: Iterable[Boss] | None = None,
    ):
        """
        Initialize the catalog.

        Args:
            data_dir: Path to the data directory. Ignored for any collection
                      passed explicitly.
            units: Pre-loaded units.
            bosses: Pre-loaded bosses.
        """
        self.data_loader = DataLoader(data_dir) if data_dir is not None else None

        self._units_cache: dict[str, Unit] | None = None
        self._bosses_cache: dict[str, Boss] | None = None

        if units is not None:
            self._units_cache = {unit.name: unit for unit in units}
        if bosses is not None:
            self._bosses_cache = {boss.name: boss for boss in bosses}

    @classmethod
    def from_data_dir(cls, data_dir: str | Path) -> "GameCatalog":
        return cls(data_dir=data_dir)

    def initialize(self) -> dict[str, int]:
        """
        Load data into the caches.

        Returns:
            Dictionary with counts of loaded entities.
        """
        stats = {"units": len(self._units()), "bosses": len(self._bosses())}
        logger.info(f"Initialized game catalog: {stats}")
        return stats

    def _units(self) -> dict[str, Unit]:
        if self._units_cache is None:
            units = self.data_loader.load_units() if self.data_loader else []
            self._units_cache = {unit.name: unit for unit in units}
        return self._units_cache

    def _bosses(self) -> dict[str, Boss]:
        if self._bosses_cache is None:
            bosses = self.data_loader.load_bosses() if self.data_loader else []
            self._bosses_cache = {boss.name: boss for boss in bosses}
        return self._bosses_cache

    # =========================================================================
    # BOSS LOOKUP
    # =========================================================================

    @property
    def bosses(self) -> list[Boss]:
        return list(self._bosses().values())

    def get_boss(self, name: str) -> Boss:
        """
        Get a boss by exact name, ID or short name.

        Raises:
            BossNotFoundError: If no boss matches.
        """
        bosses = self._bosses()
        if name in bosses:
            return bosses[name]

        for boss in bosses.values():
            if name in (boss.id, boss.short_name):
                return boss

        raise BossNotFoundError(name, list(bosses))

    def get_bosses(self, names: Iterable[str]) -> list[Boss]:
        return [self.get_boss(name) for name in names]

    # =========================================================================
    # UNIT LOOKUP
    # =========================================================================

    @property
    def units(self) -> list[Unit]:
        return list(self._units().values())

    def get_unit(self, name: str) -> Unit | None:
        """Get a unit by exact name or ID."""
        units = self._units()
        if name in units:
            return units[name]
        return next((unit for unit in units.values() if unit.id == name), None)

    def select_units(
        self,
        owned: Mapping[str, str | None] | Iterable[str] | None = None,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        developer_units: Iterable[Unit] = (),
    ) -> list[Unit]:
        """
        Select the units available for a run.

        Order: owned filter, developer units appended, whitelist, blacklist.

        Args:
            owned: Owned unit names (or name -> investment map). None means
                   the full catalog.
            include: Whitelist of names; empty means everyone.
            exclude: Blacklist of names.
            developer_units: Units not present in the static data.

        Returns:
            Available units in catalog order.
        """
        available = self.units

        if owned is not None:
            stats = owned if isinstance(owned, Mapping) else dict.fromkeys(owned)
            unknown = [name for name in stats if name not in self._units()]
            if unknown:
                logger.warning(f"Unknown units in roster: {', '.join(unknown)}")
            available = [
                unit.model_copy(update={"stat": stats[unit.name]}) if stats[unit.name] else unit
                for unit in available
                if unit.name in stats
            ]

        developer_units = list(developer_units)
        if developer_units:
            known = {unit.name for unit in available}
            available.extend(unit for unit in developer_units if unit.name not in known)
            logger.debug(f"Developer units added: {', '.join(unit.name for unit in developer_units)}")

        include = list(include)
        if include:
            available = [unit for unit in available if unit.name in include]
            logger.debug(f"Whitelist active: {len(include)} units specified")

        exclude = set(exclude)
        available = [unit for unit in available if unit.name not in exclude]

        logger.debug(f"Using {len(available)} units")
        return available
