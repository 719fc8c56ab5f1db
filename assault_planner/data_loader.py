"""
Data loader for Deadly Assault game data.

Loads human-curated unit and boss files and parses them into Pydantic models.
Handles validation and provides helpful error messages for malformed data.

Each collection can be given as a single list file (``units.yaml``,
``units.yml`` or ``units.json``) and/or as one file per entry under a
directory of the same name (``units/astra-yao.yaml``).
"""

import logging
from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import ValidationError

from .models import Boss, Unit

logger = logging.getLogger(__name__)

T = TypeVar("T", Unit, Boss)

DATA_SUFFIXES = (".yaml", ".yml", ".json")


class DataLoader:
    """
    Loads game data from YAML/JSON files.

    All loaded data is human-curated. This loader does NOT repair or
    infer any game knowledge - it only reads what humans have provided.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the data loader.

        Args:
            data_dir: Path to the data directory containing the units and
                      bosses files.
        """
        self.data_dir = Path(data_dir)
        self._validate_data_dir()

    def _validate_data_dir(self) -> None:
        """Validate that the data directory exists."""
        if not self.data_dir.exists():
            raise FileNotFoundError(f"Data directory not found: {self.data_dir}")

        for collection in ("units", "bosses"):
            if not self._collection_sources(collection):
                logger.warning(f"No {collection} data found in {self.data_dir}")

    def _load_yaml_file(self, file_path: Path):
        """Load a single YAML file (JSON is valid YAML)."""
        with open(file_path, encoding="utf-8") as f:
            return yaml.safe_load(f)

    def _is_data_file(self, file_path: Path) -> bool:
        """Check if a file is a data file (not schema/template/example)."""
        # Skip schema, template, and example files
        if file_path.stem.startswith("_"):
            return False
        return file_path.suffix in DATA_SUFFIXES

    def _collection_sources(self, collection: str) -> list[Path]:
        """List files for a collection: list files first, then per-entry files."""
        sources = [
            self.data_dir / f"{collection}{suffix}"
            for suffix in DATA_SUFFIXES
            if (self.data_dir / f"{collection}{suffix}").is_file()
        ]
        entry_dir = self.data_dir / collection
        if entry_dir.is_dir():
            sources.extend(
                path for path in sorted(entry_dir.iterdir()) if self._is_data_file(path)
            )
        return sources

    def _parse_entry(self, data, model_class: type[T], source: str) -> T | None:
        """
        Parse one entry into a model.

        Returns:
            Parsed model instance, or None if validation fails.
        """
        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            logger.error(f"Validation error in {source}:\n{e}")
            return None

    def _load_collection(self, collection: str, model_class: type[T]) -> list[T]:
        """Load every entry of a collection, skipping malformed ones."""
        entities: list[T] = []

        for file_path in self._collection_sources(collection):
            try:
                data = self._load_yaml_file(file_path)
            except yaml.YAMLError as e:
                logger.error(f"YAML parse error in {file_path}:\n{e}")
                continue

            if not data:
                logger.warning(f"Empty file: {file_path}")
                continue

            entries = data if isinstance(data, list) else [data]
            for position, entry in enumerate(entries):
                entity = self._parse_entry(entry, model_class, f"{file_path}[{position}]")
                if entity:
                    entities.append(entity)
                    logger.debug(f"Loaded {model_class.__name__.lower()}: {entity.id}")

        return entities

    def load_units(self) -> list[Unit]:
        """
        Load all units.

        Returns:
            List of parsed Unit models, in file order.
        """
        units = self._load_collection("units", Unit)
        logger.info(f"Loaded {len(units)} units")
        return units

    def load_bosses(self) -> list[Boss]:
        """
        Load all bosses.

        Returns:
            List of parsed Boss models, in file order.
        """
        bosses = self._load_collection("bosses", Boss)
        logger.info(f"Loaded {len(bosses)} bosses")
        return bosses

    def load_all(self) -> tuple[list[Unit], list[Boss]]:
        """
        Load all game data.

        Returns:
            Tuple of (units, bosses).
        """
        return self.load_units(), self.load_bosses()


def load_roster(path: str | Path) -> dict[str, str | None]:
    """
    Load an ownership file.

    The file is either a list of unit names or a mapping of unit name to
    investment string (e.g. ``Miyabi: M1W1``). A null investment still
    counts as owned.

    Returns:
        Map of owned unit name to investment string (or None).
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if isinstance(data, list):
        return {str(name): None for name in data}
    if isinstance(data, dict):
        return {str(name): (str(stat) if stat is not None else None) for name, stat in data.items()}
    raise ValueError(f"Roster file must contain a list or mapping: {path}")
