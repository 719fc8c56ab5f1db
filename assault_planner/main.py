"""
CLI Entry Point for the Deadly Assault Planner.

Provides commands for:
- Planning a three-boss deadly assault
- Ranking teams per boss and per archetype
- Explaining a team's score
- Exploring data
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import RESULT_LIMIT, TOP_K, TOP_TEAMS_PER_BOSS, AssaultConfig, get_data_dir
from .data_loader import load_roster
from .errors import BossNotFoundError, ConfigurationError
from .models import TeamFilters
from .planner import AssaultPlanner, AssaultResult

# Setup rich console
console = Console()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="assault-planner",
    help="Deadly Assault team recommendations from your roster",
    add_completion=False,
)


def split_names(values: Optional[list[str]]) -> list[str]:
    """Flatten repeated and comma-separated name options."""
    names = []
    for value in values or []:
        names.extend(name.strip() for name in value.split(",") if name.strip())
    return names


def configure_logging(debug: bool = False, quiet: bool = False) -> None:
    """Adjust the package log level. JSON output is kept free of log lines."""
    package_logger = logging.getLogger("assault_planner")
    if quiet:
        package_logger.setLevel(logging.ERROR)
    elif debug:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.NOTSET)


def create_planner() -> AssaultPlanner:
    """Create a planner over the configured data directory."""
    data_dir = get_data_dir()
    try:
        return AssaultPlanner.from_data_dir(data_dir)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


def read_roster(path: Optional[Path]) -> Optional[dict[str, Optional[str]]]:
    if path is None:
        return None
    try:
        return load_roster(path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Cannot read roster {path}: {e}[/]")
        raise typer.Exit(1)


def report_configuration_error(error: ConfigurationError) -> None:
    console.print(f"[red]Error: {error}[/]")
    if isinstance(error, BossNotFoundError) and error.available:
        console.print("Available bosses:")
        for name in error.available:
            console.print(f"  • {name}")


def render_assault(result: AssaultResult) -> None:
    """Pretty print a deadly-assault result."""
    console.print("[bold]Selected Bosses:[/]")
    for boss in result.bosses:
        console.print(f"  • {boss.name}")
    console.print()

    if result.lenient_bosses:
        console.print(f"[yellow]No strictly viable teams for: {', '.join(result.lenient_bosses)} - using fallback mode[/]")

    if not result.has_results:
        console.print("[yellow]No valid combinations found. Try different bosses or expand your unit pool.[/]")
        return

    console.print(f"[bold blue]Top {len(result.combinations)} Team Allocations[/]")
    console.print()

    for i, combo in enumerate(result.combinations, 1):
        table = Table(show_header=True)
        table.add_column("Boss", style="cyan")
        table.add_column("Rank", justify="right")
        table.add_column("Team", style="green")
        table.add_column("Score", justify="right")

        for assignment in combo.assignments:
            boss_name = next(b.short_name for b in result.bosses if b.name == assignment.boss)
            table.add_row(boss_name, f"#{assignment.rank}", assignment.label, str(assignment.score))

        lines = []
        check = combo.utilization
        if check is not None:
            if check.warnings or check.notes:
                lines.append(f"Elite check ({check.elite_used}/{check.elite_available} used)")
                lines.extend(f"[yellow]• {warning}[/]" for warning in check.warnings)
                lines.extend(f"[dim]• {note}[/]" for note in check.notes)
            else:
                lines.append(f"[green]✓ Elite utilization: {check.elite_used}/{check.elite_available}[/]")

        ranks = "+".join(str(rank) for rank in combo.ranks)
        console.print(Panel.fit(
            table if not lines else _stack(table, lines),
            title=f"Combination #{i} (Ranks: {ranks}, Total: {combo.total_score})",
        ))

    remaining = result.total_found - len(result.combinations)
    if remaining > 0:
        console.print(f"... and {remaining} more combinations. Increase --limit to see more.")


def _stack(table: Table, lines: list[str]) -> Table:
    grid = Table.grid()
    grid.add_row(table)
    for line in lines:
        grid.add_row(line)
    return grid


# =============================================================================
# COMMANDS
# =============================================================================


@app.command()
def assault(
    bosses: Optional[list[str]] = typer.Option(None, "--boss", "-b", help="Boss name (repeat 3 times)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML run configuration"),
    include: Optional[list[str]] = typer.Option(None, "--include", "-i", help="Whitelist of unit names (comma-separated)"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="Blacklist of unit names (comma-separated)"),
    flex: Optional[list[str]] = typer.Option(None, "--flex", help="Units that may join any pair (comma-separated)"),
    roster: Optional[Path] = typer.Option(None, "--roster", "-r", help="Owned units file (YAML list or mapping)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help=f"Combinations to show (default {RESULT_LIMIT})"),
    top_k: Optional[int] = typer.Option(None, "--top-k", help=f"Teams per boss searched (default {TOP_K})"),
    debug: bool = typer.Option(False, "--debug", help="Show per-boss diagnostics"),
    output_json: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Plan non-overlapping teams for three Deadly Assault bosses."""
    configure_logging(debug=debug, quiet=output_json)

    try:
        config = AssaultConfig.from_yaml(config_path) if config_path else AssaultConfig(bosses=[])
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/]")
        raise typer.Exit(1)

    overrides = {}
    if bosses:
        overrides["bosses"] = split_names(bosses)
    if include:
        overrides["include"] = split_names(include)
    if exclude:
        overrides["exclude"] = split_names(exclude)
    if flex:
        overrides["flex_units"] = split_names(flex)
    if limit is not None:
        overrides["result_limit"] = limit
    if top_k is not None:
        overrides["top_k"] = top_k
    if debug:
        overrides["debug"] = True

    try:
        config = AssaultConfig.model_validate({**config.model_dump(), **overrides})
    except ValueError as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/]")
        raise typer.Exit(1)

    planner = create_planner()
    owned = read_roster(roster)

    try:
        result = planner.plan(config, owned=owned)
    except ConfigurationError as e:
        report_configuration_error(e)
        raise typer.Exit(1)

    if output_json:
        typer.echo(json.dumps(result.model_dump(mode="json", exclude={"viable_by_boss"}), indent=2))
        return

    render_assault(result)


@app.command()
def matchups(
    bosses: Optional[list[str]] = typer.Option(None, "--boss", "-b", help="Boss name (default: all bosses)"),
    include: Optional[list[str]] = typer.Option(None, "--include", "-i", help="Whitelist of unit names"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="Blacklist of unit names"),
    roster: Optional[Path] = typer.Option(None, "--roster", "-r", help="Owned units file"),
    limit: int = typer.Option(TOP_TEAMS_PER_BOSS, "--limit", "-n", help="Teams per boss"),
    output_json: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Show the top teams for each boss independently."""
    configure_logging(quiet=output_json)
    planner = create_planner()

    try:
        ranked = planner.matchups(
            boss_names=split_names(bosses) or None,
            owned=read_roster(roster),
            include=split_names(include),
            exclude=split_names(exclude),
            limit=limit,
        )
    except ConfigurationError as e:
        report_configuration_error(e)
        raise typer.Exit(1)

    if output_json:
        data = {
            boss: [{"rank": t.rank, "team": t.label, "score": t.score, "lenient": t.lenient} for t in teams]
            for boss, teams in ranked.items()
        }
        typer.echo(json.dumps(data, indent=2))
        return

    for boss_name, teams in ranked.items():
        if not teams:
            console.print(f"[bold]{boss_name}[/]: [yellow]no viable teams[/]")
            console.print()
            continue

        table = Table(title=boss_name + (" (lenient)" if teams[0].lenient else ""))
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Team", style="green")
        table.add_column("Score", justify="right")
        for scored in teams:
            table.add_row(str(scored.rank), scored.label, str(scored.score))
        console.print(table)
        console.print()


@app.command()
def teams(
    elements: Optional[list[str]] = typer.Option(None, "--element", "-e", help="Elements (2+ members of one)"),
    dps_roles: Optional[list[str]] = typer.Option(None, "--dps", "-d", help="DPS types: attack, anomaly, rupture"),
    min_s_rank: int = typer.Option(0, "--min-s", help="Minimum S-rank members"),
    max_tier: Optional[float] = typer.Option(None, "--max-tier", help="Maximum unit tier"),
    must_include: Optional[list[str]] = typer.Option(None, "--must", "-m", help="At least one of these units"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", "-x", help="None of these units"),
    per_archetype: int = typer.Option(1, "--per-archetype", "-p", help="Teams per element x DPS type"),
    roster: Optional[Path] = typer.Option(None, "--roster", "-r", help="Owned units file"),
    output_json: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Best general-purpose team per element and DPS type."""
    configure_logging(quiet=output_json)
    try:
        filters = TeamFilters(
            elements=split_names(elements),
            dps_roles=split_names(dps_roles),
            min_s_rank=min_s_rank,
            max_tier=max_tier,
            must_include=split_names(must_include),
            exclude=split_names(exclude),
            teams_per_archetype=per_archetype,
        )
    except ValueError as e:
        console.print(f"[red]Error: Invalid filters: {e}[/]")
        raise typer.Exit(1)

    planner = create_planner()
    selected = planner.best_teams(filters, owned=read_roster(roster))

    if output_json:
        data = [
            {"team": t.label, "score": t.score, "element": t.element, "dps_type": t.dps_type}
            for t in selected
        ]
        typer.echo(json.dumps(data, indent=2))
        return

    if not selected:
        console.print("[yellow]No teams match the filters.[/]")
        return

    table = Table(title="Best Teams by Archetype")
    table.add_column("Element", style="cyan")
    table.add_column("DPS", style="yellow")
    table.add_column("Team", style="green")
    table.add_column("Score", justify="right")
    for entry in selected:
        table.add_row(entry.element or "-", entry.dps_type or "-", entry.label, str(entry.score))
    console.print(table)


@app.command()
def score(
    units: list[str] = typer.Argument(..., help="Two or three unit names"),
    boss: str = typer.Option(..., "--boss", "-b", help="Boss name"),
    lenient: bool = typer.Option(False, "--lenient", help="Use lenient scoring"),
    output_json: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Explain how a team scores against a boss."""
    configure_logging(quiet=output_json)
    planner = create_planner()

    try:
        result = planner.explain(split_names(units), boss, lenient=lenient)
    except ConfigurationError as e:
        report_configuration_error(e)
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if output_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    table = Table(title=f"Score trace vs {boss}")
    table.add_column("Rule")
    table.add_column("Delta", justify="right")
    table.add_column("Running", justify="right", style="cyan")
    for entry in result.trace:
        style = "green" if entry.delta > 0 else "red" if entry.delta < 0 else "dim"
        table.add_row(entry.reason, f"[{style}]{entry.delta:+d}[/]", str(entry.running_score))
    console.print(table)

    if result.disqualified:
        console.print(Panel(f"[red]Disqualified ({result.value}): {result.reason}[/]", title="Result"))
    else:
        console.print(Panel(f"[bold]{result.value}[/] (raw total {result.total})", title="Result"))


@app.command()
def list_bosses():
    """List all bosses."""
    planner = create_planner()
    bosses = planner.catalog.bosses

    if not bosses:
        console.print("[yellow]No bosses found in data directory.[/]")
        return

    table = Table(title="Bosses")
    table.add_column("Name", style="cyan")
    table.add_column("Weak", style="green")
    table.add_column("Resist", style="red")
    table.add_column("Shill")
    table.add_column("Anti")
    table.add_column("Assists", justify="right")
    for boss in bosses:
        table.add_row(
            boss.name,
            ", ".join(boss.weaknesses) or "-",
            ", ".join(boss.resistances) or "-",
            boss.shill or "-",
            ", ".join(boss.anti) or "-",
            str(boss.assists),
        )
    console.print(table)


@app.command()
def list_units(
    roster: Optional[Path] = typer.Option(None, "--roster", "-r", help="Only owned units"),
):
    """List all units."""
    planner = create_planner()
    units = planner.catalog.select_units(owned=read_roster(roster))

    if not units:
        console.print("[yellow]No units found in data directory.[/]")
        return

    table = Table(title="Units")
    table.add_column("Name", style="cyan")
    table.add_column("Rank")
    table.add_column("Tier", justify="right")
    table.add_column("Role", style="yellow")
    table.add_column("Element", style="green")
    for unit in units:
        tier = "-" if unit.tier is None else f"{unit.tier:g}"
        table.add_row(unit.name, unit.rank, tier, unit.role, unit.element or "-")
    console.print(table)


@app.command("mcp-serve")
def mcp_serve():
    """
    Start the MCP server for editor/assistant integration.

    Configure the client by adding to its MCP settings:

    {
      "mcpServers": {
        "assault-planner": {
          "command": "assault-planner",
          "args": ["mcp-serve"]
        }
      }
    }
    """
    from .mcp_server import run_mcp_server
    run_mcp_server()


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
