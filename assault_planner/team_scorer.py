"""
Team scoring for Deadly Assault planning.

Scores a team against a boss by running an ordered pipeline of rule
functions over a running total. A rule may disqualify the team, which
stops the pipeline and yields a sentinel value:

- DISQUALIFIED (-1): the team breaks a hard requirement of the boss.
- HARD_DISQUALIFIED (-999): the team contains an illegal pairing.

Every result carries the trace of rules that produced it.
"""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from itertools import combinations

from .config import DEFAULT_TIER
from .models import (
    DPS_ROLES,
    ELEMENTS,
    Boss,
    Role,
    ScoreResult,
    ScoreStatus,
    Team,
    TraceEntry,
    Unit,
)

logger = logging.getLogger(__name__)

DISQUALIFIED = -1
HARD_DISQUALIFIED = -999

BASE_SCORE = 100
LENIENT_BASE_SCORE = 200  # Offsets penalties that are unavoidable on thin rosters


# =============================================================================
# PAIRWISE SYNERGY
# =============================================================================


def units_have_synergy(unit1: Unit, unit2: Unit) -> bool:
    """True if either unit names the other or prefers one of its tags."""
    u1_likes_u2 = unit2.name in unit1.synergy_units or any(
        tag in unit2.tags for tag in unit1.synergy_tags
    )
    u2_likes_u1 = unit1.name in unit2.synergy_units or any(
        tag in unit1.tags for tag in unit2.synergy_tags
    )
    return u1_likes_u2 or u2_likes_u1


def units_mutually_linked(unit1: Unit, unit2: Unit) -> bool:
    """Both units explicitly list each other in synergy.units."""
    return unit2.name in unit1.synergy_units and unit1.name in unit2.synergy_units


def has_stun_synergy_tag(unit: Unit) -> bool:
    return Role.STUN.value in unit.synergy_tags


def has_hybrid_link(
    candidates: Sequence[Unit],
    partners: Sequence[Unit],
    tag: str = Role.ANOMALY.value,
) -> bool:
    """
    Attacker-anomaly exception.

    A candidate whose synergy prefers `tag`, teamed with a partner of its
    own element. By default: a non-anomaly DPS that prefers anomaly, next
    to an anomaly unit.
    """
    for unit in candidates:
        if tag not in unit.synergy_tags or unit.element is None:
            continue
        if any(partner.element == unit.element for partner in partners):
            return True
    return False


def calculate_synergy_score(unit: Unit, teammates: Sequence[Unit], boss: Boss) -> int:
    """
    Score one unit's synergy preferences against its teammates.

    Returns:
        Additive synergy score, or HARD_DISQUALIFIED when the unit avoids
        a DPS teammate.
    """
    synergy = unit.synergy
    if synergy is None:
        return 0

    score = 0

    # Explicit unit synergy is the strongest signal
    for teammate in teammates:
        if teammate.name in synergy.units:
            score += 40

    if synergy.tags:
        synergy_elements = [tag for tag in synergy.tags if tag in ELEMENTS]

        # Element-synergy unit with no teammate of that element is wasted
        if synergy_elements and not any(
            element in teammate.tags for teammate in teammates for element in synergy_elements
        ):
            score -= 120

        for teammate in teammates:
            matches_preference = any(tag in teammate.tags for tag in synergy.tags)

            if matches_preference:
                if synergy_elements:
                    # Boss must be weak to a synergy element and the team
                    # must field a DPS of that element
                    matching_element = next(
                        (element for element in synergy_elements if element in boss.weaknesses),
                        None,
                    )
                    unit_is_element_dps = unit.is_dps and unit.element in synergy_elements
                    team_has_element_dps = unit_is_element_dps or (
                        matching_element is not None
                        and any(t.is_dps and t.element == matching_element for t in teammates)
                    )

                    if matching_element is None or not team_has_element_dps:
                        score -= 70
                    elif teammate.is_dps:
                        score += 10
                    else:
                        score += 5
                elif teammate.is_dps:
                    score += 10
                else:
                    score += 5
            elif teammate.is_dps:
                score -= 20

    for avoid_tag in synergy.avoid:
        avoided = [teammate for teammate in teammates if avoid_tag in teammate.tags]
        if avoided:
            if any(teammate.is_dps for teammate in avoided):
                return HARD_DISQUALIFIED
            score -= 35

    return score


def calculate_dps_mixing_penalty(team: Sequence[Unit]) -> int:
    """
    Score the mix of damage archetypes on a team.

    Returns:
        Bonus/penalty for the DPS mix, or HARD_DISQUALIFIED for
        combinations that never work.
    """
    dps_units = [unit for unit in team if unit.is_dps]
    if len(dps_units) < 2:
        return 0

    penalty = 0

    attackers = [unit for unit in dps_units if unit.is_attacker]
    anomaly_units = [unit for unit in dps_units if unit.is_anomaly]
    rupture_units = [unit for unit in dps_units if unit.is_rupture]
    dps_types = {unit.dps_type for unit in dps_units}

    # Double attack - check for mutual synergy
    if len(attackers) >= 2:
        pairs = list(combinations(attackers, 2))
        if any(units_mutually_linked(a, b) for a, b in pairs):
            penalty += 20
        elif not any(units_have_synergy(a, b) for a, b in pairs):
            penalty -= 60

    # Rupture teams never want two rupture DPS without synergy
    if len(rupture_units) >= 2:
        if not any(units_have_synergy(a, b) for a, b in combinations(rupture_units, 2)):
            return HARD_DISQUALIFIED

    if len(dps_types) <= 1:
        return penalty

    if {"attack", "rupture"} <= dps_types:
        return HARD_DISQUALIFIED

    if {"attack", "anomaly"} <= dps_types:
        if not (
            has_hybrid_link(attackers, anomaly_units)
            or has_hybrid_link(anomaly_units, attackers, tag=Role.ATTACK.value)
        ):
            return HARD_DISQUALIFIED

    if {"anomaly", "rupture"} <= dps_types:
        return HARD_DISQUALIFIED

    return penalty


# =============================================================================
# SCORING PIPELINE
# =============================================================================


@dataclass(frozen=True)
class TeamContext:
    """Role buckets for one team/boss pair."""

    team: tuple[Unit, ...]
    boss: Boss
    lenient: bool
    dps: list[Unit]
    attackers: list[Unit]
    anomaly: list[Unit]
    rupture: list[Unit]
    supports: list[Unit]
    stuns: list[Unit]
    defenders: list[Unit]
    non_dps: list[Unit]

    @classmethod
    def build(cls, team: Sequence[Unit], boss: Boss, lenient: bool) -> "TeamContext":
        team = tuple(team)
        return cls(
            team=team,
            boss=boss,
            lenient=lenient,
            dps=[u for u in team if u.is_dps],
            attackers=[u for u in team if u.is_attacker],
            anomaly=[u for u in team if u.is_anomaly],
            rupture=[u for u in team if u.is_rupture],
            supports=[u for u in team if u.is_support],
            stuns=[u for u in team if u.is_stun],
            defenders=[u for u in team if u.is_defense],
            non_dps=[u for u in team if not u.is_dps],
        )

    @property
    def support_like(self) -> list[Unit]:
        return self.supports + self.defenders

    def on_weakness(self, unit: Unit) -> bool:
        return unit.element is not None and unit.element in self.boss.weaknesses

    def resisted(self, unit: Unit) -> bool:
        return unit.element is not None and unit.element in self.boss.resistances


@dataclass
class ScoreState:
    """Running score, trace, and disqualification flag."""

    score: int
    trace: list[TraceEntry] = field(default_factory=list)
    sentinel: int | None = None
    reason: str | None = None

    @property
    def disqualified(self) -> bool:
        return self.sentinel is not None

    def add(self, reason: str, delta: int) -> "ScoreState":
        self.score += delta
        self.trace.append(TraceEntry(reason=reason, delta=delta, running_score=self.score))
        return self

    def disqualify(self, reason: str, sentinel: int = DISQUALIFIED) -> "ScoreState":
        self.sentinel = sentinel
        self.reason = reason
        self.trace.append(TraceEntry(reason=reason, delta=0, running_score=sentinel))
        return self


Rule = Callable[[TeamContext, ScoreState], ScoreState]


def _check_anti(ctx: TeamContext, state: ScoreState) -> ScoreState:
    for anti_type in ctx.boss.anti:
        if any(anti_type in unit.tags for unit in ctx.dps):
            return state.disqualify(f"ANTI check failed: {anti_type} DPS")
    return state


def _apply_shill(ctx: TeamContext, state: ScoreState) -> ScoreState:
    shill = ctx.boss.shill
    if not shill:
        return state

    if shill in DPS_ROLES:
        if any(shill in unit.tags for unit in ctx.dps):
            state.add("Has shilled DPS", 15)
        elif any(ctx.on_weakness(unit) for unit in ctx.dps):
            state.add("No shilled DPS but on-element", -10)
        else:
            state.add("No shilled DPS and off-element", -35)
    elif not any(shill in unit.tags for unit in ctx.team):
        state.disqualify(f"Missing required role: {shill}")
    else:
        state.add("Has shilled role", 15)
    return state


def _apply_favored(ctx: TeamContext, state: ScoreState) -> ScoreState:
    for unit in ctx.team:
        if unit.name in ctx.boss.favored:
            state.add(f"Favored unit: {unit.name}", 25)
    return state


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _tier_delta(tier: float, lenient: bool) -> tuple[str, int]:
    """Cliff-based tier curve. Neighbouring bands are far apart on purpose."""
    if tier <= 0.5:
        return "Elite tier", _round_half_up(65 - tier * 20)  # T0: +65, T0.5: +55
    if tier <= 1.5:
        return "Good tier", _round_half_up(25 - (tier - 1) * 10)  # T1: +25, T1.5: +20
    if tier <= 2:
        return "Mediocre tier", -15 if lenient else -40
    if tier <= 3:
        return "Bad tier", -40 if lenient else -130
    if tier <= 3.5:
        return "Very bad tier", -60 if lenient else -180
    return "Terrible tier", -80 if lenient else -230


def _apply_tier_cliffs(ctx: TeamContext, state: ScoreState) -> ScoreState:
    for unit in ctx.team:
        tier = unit.tier if unit.tier is not None else DEFAULT_TIER
        label, delta = _tier_delta(tier, ctx.lenient)
        state.add(f"{label} {unit.name}", delta)
    return state


def _check_composition(ctx: TeamContext, state: ScoreState) -> ScoreState:
    if len(ctx.dps) >= 3:
        return state.disqualify("Too many DPS (3+)")
    if not ctx.dps:
        return state.disqualify("No DPS")

    non_titled_anomaly = [u for u in ctx.anomaly if not u.is_titled]
    non_anomaly_dps = [u for u in ctx.dps if not u.is_anomaly]

    if non_titled_anomaly and len(ctx.anomaly) < 2:
        if non_anomaly_dps and not has_hybrid_link(non_anomaly_dps, ctx.anomaly):
            if not ctx.lenient:
                return state.disqualify("Non-titled anomaly with non-anomaly DPS")
            state.add("Non-titled anomaly with non-anomaly DPS (lenient)", -80)
        if len(ctx.dps) == len(non_titled_anomaly):
            if not ctx.lenient:
                return state.disqualify("Solo non-titled anomaly")
            state.add("Solo non-titled anomaly (lenient)", -100)
    return state


def _apply_anomaly_archetype(ctx: TeamContext, state: ScoreState) -> ScoreState:
    boss = ctx.boss
    if boss.shill != Role.ANOMALY.value:
        return state

    has_titled_anomaly = any(u.is_titled for u in ctx.anomaly)

    if not (has_titled_anomaly or len(ctx.anomaly) >= 2):
        # No valid anomaly comp - need on-element DPS as fallback
        if not any(ctx.on_weakness(u) for u in ctx.dps):
            if not ctx.lenient:
                return state.disqualify("Off-element on anomaly-shill")
            state.add("Off-element on anomaly-shill (lenient)", -120)
        return state

    if not ctx.non_dps:
        state.add("Anomaly comp with no support", -50)
    else:
        state.add("Valid anomaly comp with support", 10)

    if len(ctx.anomaly) >= 2:
        state.add("Double anomaly base bonus", 25)
        if len({u.element for u in ctx.anomaly}) >= 2:
            state.add("Different element anomalies", 30)
        else:
            state.add("Same element anomalies", -15)
        if not any(ctx.on_weakness(u) for u in ctx.anomaly):
            state.add("No anomaly matches weakness", -30)
    elif has_titled_anomaly and not ctx.on_weakness(ctx.anomaly[0]):
        state.add("Solo titled anomaly off-element", -40)

    if any(not u.is_anomaly for u in ctx.dps):
        state.add("Non-anomaly DPS in anomaly comp", -40)

    # Stun does not contribute to anomaly buildup
    if ctx.stuns and not ctx.supports and not ctx.defenders:
        state.add("Stun-only support on anomaly", -40)
    elif ctx.stuns:
        state.add("Stun on anomaly team", -20)

    if ctx.supports:
        state.add("Support on anomaly team", 25)
    if ctx.defenders:
        state.add("Defense on anomaly team", 15)
    return state


def _apply_attack_archetype(ctx: TeamContext, state: ScoreState) -> ScoreState:
    shill = ctx.boss.shill
    if not (shill == Role.ATTACK.value or (not shill and ctx.attackers)):
        return state

    if ctx.anomaly and has_hybrid_link(ctx.attackers, ctx.anomaly):
        # The anomaly unit provides stun-like utility
        state.add("Hybrid attacker-anomaly composition", 10)
    elif ctx.stuns:
        state.add("Attack team with stunner", 15)
    else:
        state.add("Attack team without stunner", -60)

    if ctx.supports or ctx.defenders:
        state.add("Attack team with support/defense", 10)
    if len(ctx.attackers) > 1:
        state.add("Double attacker", -50)
    return state


def _apply_rupture_archetype(ctx: TeamContext, state: ScoreState) -> ScoreState:
    shill = ctx.boss.shill
    rupture_shill = shill == Role.RUPTURE.value

    if rupture_shill or (not shill and ctx.rupture):
        # stun/rupture/[support|defense] or rupture/2x[support|defense]
        has_stun_composition = bool(ctx.stuns) and bool(ctx.support_like)
        has_double_support = len(ctx.support_like) >= 2
        if has_stun_composition or has_double_support:
            state.add("Valid rupture composition", 15)

        for unit in ctx.stuns:
            if Role.RUPTURE.value in unit.synergy_tags:
                state.add(f"Rupture-synergy stunner: {unit.name}", 40)
            elif rupture_shill:
                state.add(f"Non-synergy stunner on rupture-shill: {unit.name}", -25)
            else:
                state.add(f"Non-synergy stunner on rupture: {unit.name}", -15)

    if rupture_shill and ctx.attackers:
        state.add("Attacker on rupture-shill boss", -100)
    return state


def _apply_elemental_fit(ctx: TeamContext, state: ScoreState) -> ScoreState:
    boss = ctx.boss

    for unit in ctx.dps:
        if ctx.resisted(unit):
            return state.disqualify(f"DPS {unit.name} resisted")

    on_element_count = sum(1 for unit in ctx.dps if ctx.on_weakness(unit))
    # Two on-element attackers share the element bonus
    diminished = on_element_count >= 2 and len(ctx.attackers) >= 2

    for unit in ctx.dps:
        if ctx.on_weakness(unit):
            rank = "S-rank" if unit.is_s_rank else "A-rank"
            if diminished:
                state.add(f"On-element {rank} (diminished): {unit.name}", 25 if unit.is_s_rank else 12)
            else:
                state.add(f"On-element {rank}: {unit.name}", 40 if unit.is_s_rank else 20)
        else:
            state.add(f"Off-element DPS: {unit.name}", -10 if ctx.lenient else -30)

    if ctx.dps and on_element_count == 0:
        state.add("No DPS matches weakness", -5 if ctx.lenient else -15)

    if len(boss.weaknesses) >= 2:
        dps_elements = {unit.element for unit in ctx.dps}
        covered = [w for w in boss.weaknesses if w in dps_elements]
        if not covered:
            state.add("Covers zero weaknesses", -100)
        elif len(ctx.anomaly) >= 2 and len(covered) >= 2:
            if boss.shill == Role.ANOMALY.value:
                state.add("Dual-element anomaly on anomaly-shill", 50)
            else:
                state.add("Dual-element anomaly on non-shill", 15)

    # Stunners deal damage too
    for unit in ctx.stuns:
        if ctx.resisted(unit):
            state.add(f"Resisted stunner: {unit.name}", -80)
        if ctx.on_weakness(unit):
            state.add(f"On-element stunner: {unit.name}", 15)
        elif not ctx.resisted(unit):
            if boss.shill == Role.STUN.value:
                state.add(f"Off-element stunner on stun-shill: {unit.name}", -15)
            else:
                state.add(f"Off-element stunner: {unit.name}", -35)

    for unit in ctx.defenders:
        if ctx.resisted(unit):
            state.add(f"Resisted defense: {unit.name}", -10)
        if ctx.on_weakness(unit):
            state.add(f"On-element defense: {unit.name}", 3)
    return state


def _apply_rank_bonuses(ctx: TeamContext, state: ScoreState) -> ScoreState:
    for unit in ctx.dps:
        if unit.is_s_rank:
            state.add(f"S-rank DPS: {unit.name}", 20)
            if unit.is_titled:
                state.add(f"Titled DPS: {unit.name}", 25)
            if unit.limited:
                state.add(f"Limited DPS: {unit.name}", 10)
        else:
            tier = unit.tier if unit.tier is not None else DEFAULT_TIER
            if tier >= 2:
                # Filler DPS
                state.add(f"A-rank T2+ DPS: {unit.name}", -25 if ctx.lenient else -80)
            else:
                state.add(f"A-rank good DPS: {unit.name}", -10)

    for unit in ctx.stuns:
        if unit.is_s_rank:
            state.add(f"S-rank stunner: {unit.name}", 10)
            if unit.limited:
                state.add(f"Limited stunner: {unit.name}", 5)
        else:
            state.add(f"A-rank stunner: {unit.name}", -5)

    for unit in ctx.support_like:
        if unit.is_s_rank:
            state.add(f"S-rank support/defense: {unit.name}", 15)
            if unit.limited:
                state.add(f"Limited support/defense: {unit.name}", 10)
        else:
            state.add(f"A-rank support/defense: {unit.name}", -8)
    return state


def _apply_support_specialization(ctx: TeamContext, state: ScoreState) -> ScoreState:
    # Generalists carry no synergy tags; specialists name the DPS type they enable
    if len({unit.element for unit in ctx.team}) > 1:
        for unit in ctx.support_like:
            if not unit.synergy_tags:
                state.add(f"Universal support on mixed team: {unit.name}", 8)

    if ctx.rupture:
        for unit in ctx.support_like:
            if not unit.synergy_tags:
                state.add(f"Universal support on rupture: {unit.name}", -60)
            elif Role.RUPTURE.value in unit.synergy_tags:
                state.add(f"Rupture-synergy support: {unit.name}", 45)
            else:
                state.add(f"Wrong-synergy support on rupture: {unit.name}", -35)

    if ctx.anomaly:
        for unit in ctx.support_like:
            if not unit.synergy_tags:
                state.add(f"Universal support on anomaly: {unit.name}", -30)
            elif Role.ANOMALY.value in unit.synergy_tags:
                state.add(f"Anomaly-synergy support: {unit.name}", 20)
    return state


def _apply_synergy(ctx: TeamContext, state: ScoreState) -> ScoreState:
    for unit in ctx.team:
        teammates = [t for t in ctx.team if t.id != unit.id]
        synergy_score = calculate_synergy_score(unit, teammates, ctx.boss)
        if synergy_score == HARD_DISQUALIFIED:
            return state.disqualify(f"{unit.name} avoids a DPS teammate", HARD_DISQUALIFIED)
        if synergy_score:
            state.add(f"Synergy for {unit.name}", synergy_score)

    for unit1, unit2 in combinations(ctx.team, 2):
        if units_mutually_linked(unit1, unit2):
            state.add(f"Mutual synergy: {unit1.name} + {unit2.name}", 25)
    return state


def _apply_dps_mixing(ctx: TeamContext, state: ScoreState) -> ScoreState:
    mixing = calculate_dps_mixing_penalty(ctx.team)
    if mixing == HARD_DISQUALIFIED:
        return state.disqualify("Invalid DPS mix", HARD_DISQUALIFIED)
    if mixing:
        state.add("DPS mixing penalty", mixing)
    return state


def _apply_double_stun(ctx: TeamContext, state: ScoreState) -> ScoreState:
    if any(has_stun_synergy_tag(unit) for unit in ctx.dps):
        if len(ctx.stuns) >= 2:
            state.add("Double stun with stun-synergy DPS", 60)
        elif len(ctx.stuns) == 1:
            state.add("Single stun with stun-synergy DPS", -15)
        else:
            state.add("No stun with stun-synergy DPS", -80)
    elif len(ctx.stuns) >= 2 and ctx.boss.shill != Role.STUN.value:
        if not any(units_have_synergy(a, b) for a, b in combinations(ctx.stuns, 2)):
            state.add("Double stun without synergy", -80)
    return state


def _check_defensive_assists(ctx: TeamContext, state: ScoreState) -> ScoreState:
    count = sum(1 for unit in ctx.team if unit.has_defensive_assist)
    if count < ctx.boss.assists:
        return state.disqualify("Insufficient defensive assists")
    surplus = count - ctx.boss.assists
    if surplus:
        state.add("Extra defensive assists", surplus * 3)
    return state


SCORING_RULES: tuple[Rule, ...] = (
    _check_anti,
    _apply_shill,
    _apply_favored,
    _apply_tier_cliffs,
    _check_composition,
    _apply_anomaly_archetype,
    _apply_attack_archetype,
    _apply_rupture_archetype,
    _apply_elemental_fit,
    _apply_rank_bonuses,
    _apply_support_specialization,
    _apply_synergy,
    _apply_dps_mixing,
    _apply_double_stun,
    _check_defensive_assists,
)


def score_team(team: Team | Sequence[Unit], boss: Boss, lenient: bool = False) -> ScoreResult:
    """
    Score a team against a boss.

    Args:
        team: Team (or plain sequence of units) to score.
        boss: Target boss.
        lenient: Turn several hard disqualifications into heavy penalties.
                 Used only when strict scoring finds nothing viable.

    Returns:
        ScoreResult. Disqualified results carry -1 or -999; scored results
        carry max(total, 0), so 0 means non-viable.
    """
    members = team.members if isinstance(team, Team) else tuple(team)
    ctx = TeamContext.build(members, boss, lenient)
    state = ScoreState(score=LENIENT_BASE_SCORE if lenient else BASE_SCORE)

    for rule in SCORING_RULES:
        state = rule(ctx, state)
        if state.disqualified:
            return ScoreResult(
                status=ScoreStatus.DISQUALIFIED,
                value=state.sentinel,
                total=state.sentinel,
                reason=state.reason,
                trace=state.trace,
            )

    return ScoreResult(
        status=ScoreStatus.SCORED,
        value=max(state.score, 0),
        total=state.score,
        trace=state.trace,
    )


def score_team_for_boss(
    team: Team | Sequence[Unit],
    boss: Boss,
    lenient: bool = False,
    debug: bool = False,
) -> int | tuple[int, list[TraceEntry]]:
    """
    Integer form of `score_team`.

    Returns:
        The score, or (score, trace) when debug is set.
    """
    result = score_team(team, boss, lenient=lenient)
    if debug:
        return result.value, result.trace
    return result.value
