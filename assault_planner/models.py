"""
Pydantic models for Deadly Assault planning.

Units and bosses are human-curated game data and are immutable once loaded.
Teams, scored teams and combinations are produced fresh for every run.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# =============================================================================
# ENUMS
# =============================================================================


class Role(str, Enum):
    """Unit roles (in canonical team order)."""

    STUN = "stun"
    ANOMALY = "anomaly"
    ATTACK = "attack"
    RUPTURE = "rupture"
    DEFENSE = "defense"
    SUPPORT = "support"


class Element(str, Enum):
    """Damage elements."""

    FIRE = "fire"
    ICE = "ice"
    ELECTRIC = "electric"
    PHYSICAL = "physical"
    ETHER = "ether"


class Rank(str, Enum):
    """Unit rank: S is top tier, A is second tier."""

    S = "S"
    A = "A"


class ScoreStatus(str, Enum):
    """Outcome of scoring one team against one boss."""

    SCORED = "scored"
    DISQUALIFIED = "disqualified"


ROLE_ORDER = [role.value for role in Role]
DPS_ROLES = ["attack", "anomaly", "rupture"]
NON_DPS_ROLES = ["defense", "stun", "support"]
ELEMENTS = [element.value for element in Element]

TITLE_TAG = "title"
DEFENSIVE_ASSIST_TAG = "assist:defensive"
SUBDPS_TAG = "subdps"

TEAM_SEPARATOR = " / "


def create_unit_id(name: str) -> str:
    """Create a safe ID from a unit name."""
    id_str = name.lower()
    id_str = re.sub(r"['`]", "", id_str)  # Remove apostrophes
    id_str = re.sub(r"[^a-z0-9]+", "-", id_str)
    return id_str.strip("-")


def shorten_boss_name(name: str, width: int = 20) -> str:
    """Short display name for a boss ("Notorious " prefix dropped)."""
    return name.removeprefix("Notorious ")[:width]


# =============================================================================
# UNIT MODELS
# =============================================================================


class Synergy(BaseModel):
    """Teammate preferences of a unit."""

    model_config = ConfigDict(frozen=True)

    units: list[str] = Field(default_factory=list)  # Named teammates that grant a bonus
    tags: list[str] = Field(default_factory=list)  # Preferred teammate tags (roles or elements)
    avoid: list[str] = Field(default_factory=list)  # Teammate tags that penalize the team


class Unit(BaseModel):
    """
    A playable character.

    Exactly one role tag and at most one element tag are allowed in `tags`.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    # Identity
    id: str = ""
    name: str

    # Strength
    rank: Rank = Rank.A
    limited: bool = False
    tier: float | None = None  # Lower is better; None means unrated

    # Composition
    tags: list[str] = Field(default_factory=list)
    join: list[str] = Field(default_factory=list)  # Tags a teammate must carry
    synergy: Synergy | None = None

    # Investment (e.g. "M2W1"), informational only
    stat: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data):
        if isinstance(data, dict) and not data.get("id") and data.get("name"):
            data = {**data, "id": create_unit_id(data["name"])}
        return data

    @model_validator(mode="after")
    def _check_tags(self):
        roles = [tag for tag in self.tags if tag in ROLE_ORDER]
        if len(roles) != 1:
            raise ValueError(f"{self.name} must have exactly one role tag, got {roles}")
        elements = [tag for tag in self.tags if tag in ELEMENTS]
        if len(elements) > 1:
            raise ValueError(f"{self.name} must have at most one element tag, got {elements}")
        return self

    # -------------------------------------------------------------------------
    # Role helpers
    # -------------------------------------------------------------------------

    @property
    def role(self) -> str:
        return next(tag for tag in self.tags if tag in ROLE_ORDER)

    @property
    def element(self) -> str | None:
        return next((tag for tag in self.tags if tag in ELEMENTS), None)

    @property
    def dps_type(self) -> str | None:
        """Damage archetype, or None for stun/defense/support units."""
        return self.role if self.role in DPS_ROLES else None

    @property
    def is_dps(self) -> bool:
        return self.role in DPS_ROLES

    @property
    def is_attacker(self) -> bool:
        return self.role == Role.ATTACK.value

    @property
    def is_anomaly(self) -> bool:
        return self.role == Role.ANOMALY.value

    @property
    def is_rupture(self) -> bool:
        return self.role == Role.RUPTURE.value

    @property
    def is_stun(self) -> bool:
        return self.role == Role.STUN.value

    @property
    def is_defense(self) -> bool:
        return self.role == Role.DEFENSE.value

    @property
    def is_support(self) -> bool:
        return self.role == Role.SUPPORT.value

    @property
    def is_titled(self) -> bool:
        return TITLE_TAG in self.tags

    @property
    def is_s_rank(self) -> bool:
        return self.rank == Rank.S.value

    @property
    def is_a_rank(self) -> bool:
        return self.rank == Rank.A.value

    @property
    def has_defensive_assist(self) -> bool:
        return DEFENSIVE_ASSIST_TAG in self.tags

    # -------------------------------------------------------------------------
    # Synergy helpers
    # -------------------------------------------------------------------------

    @property
    def synergy_units(self) -> list[str]:
        return self.synergy.units if self.synergy else []

    @property
    def synergy_tags(self) -> list[str]:
        return self.synergy.tags if self.synergy else []

    @property
    def synergy_avoid(self) -> list[str]:
        return self.synergy.avoid if self.synergy else []

    def accepts(self, other: "Unit") -> bool:
        """True if `other` satisfies this unit's join condition."""
        return any(tag in other.tags for tag in self.join)


# =============================================================================
# BOSS MODELS
# =============================================================================


class Boss(BaseModel):
    """A Deadly Assault encounter."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = ""
    name: str
    short_name: str = ""

    weaknesses: list[Element] = Field(default_factory=list)  # Ordered
    resistances: list[Element] = Field(default_factory=list)

    shill: Role | None = None  # Preferred role or DPS type
    anti: list[Role] = Field(default_factory=list)  # DPS types that disqualify a team
    favored: list[str] = Field(default_factory=list)  # Unit names with a flat bonus

    assists: int = Field(default=0, ge=0)  # Minimum defensive-assist units

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data):
        if isinstance(data, dict) and data.get("name"):
            data = dict(data)
            if not data.get("id"):
                data["id"] = create_unit_id(data["name"])
            if not data.get("short_name"):
                data["short_name"] = shorten_boss_name(data["name"])
        return data

    @classmethod
    def neutral(cls) -> "Boss":
        """Synthetic boss with no element bias, used to rank teams generically."""
        return cls(name="neutral")


# =============================================================================
# TEAM MODELS
# =============================================================================


class Team(BaseModel):
    """
    Two or three distinct units in canonical role order.

    `mask` is the OR of the members' roster bits; two teams overlap
    exactly when their masks intersect.
    """

    model_config = ConfigDict(frozen=True)

    members: tuple[Unit, ...]
    mask: int
    flex_members: tuple[str, ...] = ()  # Names added without a join check

    @property
    def label(self) -> str:
        return TEAM_SEPARATOR.join(unit.name for unit in self.members)

    @property
    def names(self) -> list[str]:
        return [unit.name for unit in self.members]

    @property
    def size(self) -> int:
        return len(self.members)

    def has_unit(self, unit: Unit) -> bool:
        return any(member.id == unit.id for member in self.members)


class ScoredTeam(BaseModel):
    """A team with its score and rank for one boss."""

    team: Team
    boss: str
    score: int
    rank: int = 0  # 1 = best among viable teams for this boss
    lenient: bool = False

    @property
    def label(self) -> str:
        return self.team.label


class TraceEntry(BaseModel):
    """One scoring rule application."""

    reason: str
    delta: int
    running_score: int


class ScoreResult(BaseModel):
    """
    Tagged scoring outcome.

    Disqualified results carry a sentinel value (-1 or -999) and a reason;
    scored results carry the usable score (0 means non-viable).
    """

    status: ScoreStatus
    value: int
    total: int  # Raw accumulated score before clamping
    reason: str | None = None
    trace: list[TraceEntry] = Field(default_factory=list)

    @property
    def disqualified(self) -> bool:
        return self.status == ScoreStatus.DISQUALIFIED

    @property
    def viable(self) -> bool:
        return not self.disqualified and self.value > 0


# =============================================================================
# COMBINATION MODELS
# =============================================================================


class Assignment(BaseModel):
    """A team assigned to one boss inside a combination."""

    boss: str
    team: Team
    score: int
    rank: int
    lenient: bool = False

    @property
    def label(self) -> str:
        return self.team.label


class DominanceCheck(BaseModel):
    """Whether an unused elite unit could be swapped into a combination."""

    dominated: bool = False
    reason: str | None = None


class UtilizationCheck(BaseModel):
    """Elite unit usage report for one combination."""

    warnings: list[str] = Field(default_factory=list)  # Unused elite supports with no excuse
    notes: list[str] = Field(default_factory=list)  # Unused elite DPS matching a weakness
    elite_used: int = 0
    elite_available: int = 0
    used_units: list[str] = Field(default_factory=list)


class Combination(BaseModel):
    """Three disjoint teams, one per boss."""

    assignments: list[Assignment]
    total_score: int
    rank_sum: int
    max_rank: int
    priority: int  # Lower is better

    dominance: DominanceCheck | None = None
    utilization: UtilizationCheck | None = None

    @classmethod
    def from_assignments(cls, assignments: list[Assignment]) -> "Combination":
        ranks = [a.rank for a in assignments]
        rank_sum = sum(ranks)
        max_rank = max(ranks)
        return cls(
            assignments=assignments,
            total_score=sum(a.score for a in assignments),
            rank_sum=rank_sum,
            max_rank=max_rank,
            priority=max_rank * 100 + rank_sum,
        )

    @property
    def ranks(self) -> list[int]:
        return [a.rank for a in self.assignments]

    @property
    def labels(self) -> list[str]:
        return [a.label for a in self.assignments]

    def sort_key(self) -> tuple:
        """Ascending priority, then descending total score."""
        return (self.priority, -self.total_score, self.labels)


# =============================================================================
# QUERY/OUTPUT MODELS
# =============================================================================


class TeamFilters(BaseModel):
    """User filters for the team-builder mode."""

    elements: list[Element] = Field(default_factory=list)  # 2+ members of a selected element
    dps_roles: list[Role] = Field(default_factory=list)
    min_s_rank: int = Field(default=0, ge=0, le=3)
    max_tier: float | None = None
    must_include: list[str] = Field(default_factory=list)  # Unit names, any one required
    exclude: list[str] = Field(default_factory=list)  # Unit names
    teams_per_archetype: int = Field(default=1, ge=1)

    model_config = ConfigDict(use_enum_values=True)


class ArchetypeTeam(BaseModel):
    """A team-builder result placed in an element x DPS-type cell."""

    team: Team
    score: int
    element: str | None = None
    dps_type: str | None = None

    @property
    def label(self) -> str:
        return self.team.label
