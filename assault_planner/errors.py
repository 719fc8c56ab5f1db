"""
Exceptions for Deadly Assault planning.

Only invalid configuration raises. Thin rosters and disqualified teams are
reported as empty results and sentinel scores instead.
"""


class ConfigurationError(ValueError):
    """Invalid run configuration (wrong boss count, duplicate bosses, ...)."""


class BossNotFoundError(ConfigurationError, KeyError):
    """A named boss is not present in the boss dataset."""

    def __init__(self, boss_name: str, available: list[str] | None = None):
        self.boss_name = boss_name
        self.available = available or []
        super().__init__(f"Boss '{boss_name}' not found in boss data")

    def __str__(self) -> str:
        return self.args[0]
