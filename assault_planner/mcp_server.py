"""
MCP Server for the Deadly Assault Planner.

Exposes the planner as MCP tools that can be called by assistants in
editors or other MCP-compatible clients.

Usage:
    assault-planner mcp-serve

IMPORTANT: MCP uses stdio for JSON-RPC communication.
- NEVER print() or write to stdout - it corrupts the protocol
- All logging must go to stderr
"""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .config import AssaultConfig, DEFAULT_FLEX_UNITS, RESULT_LIMIT, TOP_TEAMS_PER_BOSS, get_data_dir
from .errors import BossNotFoundError, ConfigurationError
from .models import Boss, Combination, ScoredTeam, Unit
from .planner import AssaultPlanner

# Configure logging to stderr only (stdout is reserved for MCP protocol)
# Use WARNING level to minimize noise during MCP operation
logging.basicConfig(
    level=logging.WARNING,
    format="%(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
    force=True,  # Override any existing config
)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("assault-planner")

# Global planner (initialized lazily)
_planner: AssaultPlanner | None = None


def get_planner() -> AssaultPlanner:
    """Get or create the planner (lazy initialization)."""
    global _planner
    if _planner is None:
        _planner = AssaultPlanner.from_data_dir(get_data_dir())
        _planner.catalog.initialize()
    return _planner


def unit_summary(unit: Unit) -> dict:
    """Create a brief summary of a unit for list results."""
    return {
        "name": unit.name,
        "rank": unit.rank,
        "tier": unit.tier,
        "role": unit.role,
        "element": unit.element,
        "limited": unit.limited,
    }


def boss_summary(boss: Boss) -> dict:
    return {
        "name": boss.name,
        "weaknesses": list(boss.weaknesses),
        "resistances": list(boss.resistances),
        "shill": boss.shill,
        "anti": list(boss.anti),
        "assists": boss.assists,
    }


def scored_team_to_dict(scored: ScoredTeam) -> dict:
    return {
        "rank": scored.rank,
        "team": scored.team.names,
        "label": scored.label,
        "score": scored.score,
        "lenient": scored.lenient,
    }


def combination_to_dict(combo: Combination) -> dict:
    """Convert a Combination to a clean dictionary for JSON output."""
    result = {
        "total_score": combo.total_score,
        "priority": combo.priority,
        "ranks": combo.ranks,
        "assignments": [
            {
                "boss": a.boss,
                "team": a.team.names,
                "score": a.score,
                "rank": a.rank,
                "lenient": a.lenient,
            }
            for a in combo.assignments
        ],
    }
    if combo.utilization is not None:
        result["elite_check"] = {
            "used": combo.utilization.elite_used,
            "available": combo.utilization.elite_available,
            "warnings": combo.utilization.warnings,
            "notes": combo.utilization.notes,
        }
    return result


def configuration_error_message(error: ConfigurationError) -> str:
    message = str(error)
    if isinstance(error, BossNotFoundError) and error.available:
        message += f". Available bosses: {', '.join(error.available)}"
    return message


# =============================================================================
# MCP TOOLS
# =============================================================================


@mcp.tool()
def plan_deadly_assault(
    bosses: list[str],
    owned_units: list[str] | None = None,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
    flex_units: list[str] | None = None,
    limit: int = RESULT_LIMIT,
) -> dict | str:
    """
    Recommend non-overlapping teams for a three-boss Deadly Assault.

    Each unit is used at most once across the three teams. Combinations
    are ordered so the weakest per-boss pick is as strong as possible.

    Args:
        bosses: Exactly three boss names (see list_bosses).
        owned_units: Unit names the player owns. Omit to use every unit.
        include: Whitelist of unit names.
        exclude: Blacklist of unit names.
        flex_units: Units that may join any pair (default: Nicole, Astra).
        limit: Maximum combinations to return.

    Returns:
        Ranked combinations with per-boss teams, or an error message.
    """
    planner = get_planner()

    config = AssaultConfig(
        bosses=bosses,
        include=include or [],
        exclude=exclude or [],
        flex_units=flex_units if flex_units is not None else list(DEFAULT_FLEX_UNITS),
        result_limit=max(limit, 1),
    )

    try:
        result = planner.plan(config, owned=owned_units)
    except ConfigurationError as e:
        return configuration_error_message(e)

    return {
        "bosses": [boss.name for boss in result.bosses],
        "combinations": [combination_to_dict(c) for c in result.combinations],
        "total_found": result.total_found,
        "dominated_removed": result.dominated_count,
        "lenient_bosses": result.lenient_bosses,
        "units_considered": result.unit_count,
    }


@mcp.tool()
def rank_teams_for_boss(
    boss: str,
    owned_units: list[str] | None = None,
    limit: int = TOP_TEAMS_PER_BOSS,
) -> list[dict] | str:
    """
    Rank the best 3-unit teams for a single boss.

    Args:
        boss: Boss name.
        owned_units: Unit names the player owns. Omit to use every unit.
        limit: Maximum teams to return.

    Returns:
        Teams with rank and score, best first, or an error message.
    """
    planner = get_planner()
    try:
        ranked = planner.matchups([boss], owned=owned_units, limit=limit)
    except ConfigurationError as e:
        return configuration_error_message(e)

    return [scored_team_to_dict(scored) for teams in ranked.values() for scored in teams]


@mcp.tool()
def explain_team_score(units: list[str], boss: str, lenient: bool = False) -> dict | str:
    """
    Explain how a specific team scores against a boss.

    Use this to understand why a team ranks where it does, or why it is
    disqualified.

    Args:
        units: Two or three unit names.
        boss: Boss name.
        lenient: Use the lenient fallback scoring.

    Returns:
        Final score, disqualification reason if any, and the rule trace.
    """
    planner = get_planner()
    try:
        result = planner.explain(units, boss, lenient=lenient)
    except ConfigurationError as e:
        return configuration_error_message(e)
    except ValueError as e:
        return str(e)

    return result.model_dump(mode="json")


@mcp.tool()
def list_bosses() -> list[dict]:
    """
    List all bosses with their weaknesses, resistances and preferences.

    Returns:
        Boss summaries.
    """
    return [boss_summary(boss) for boss in get_planner().catalog.bosses]


@mcp.tool()
def list_units(role: str | None = None, element: str | None = None) -> list[dict]:
    """
    List units, optionally filtered by role or element.

    Args:
        role: One of stun, anomaly, attack, rupture, defense, support.
        element: One of fire, ice, electric, physical, ether.

    Returns:
        Unit summaries (name, rank, tier, role, element).
    """
    units = get_planner().catalog.units
    return [
        unit_summary(unit)
        for unit in units
        if (role is None or unit.role == role) and (element is None or unit.element == element)
    ]


# =============================================================================
# SERVER ENTRY POINT
# =============================================================================


def run_mcp_server():
    """Run the MCP server with stdio transport."""
    # Note: No logging here - stdout is reserved for MCP protocol
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_mcp_server()
