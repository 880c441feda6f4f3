"""CLI for the Architecture Recommender.

Analyzes an application and prints ranked architecture recommendations
with their services, cost estimates and guidance.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app_analyzer.cli import configure_logging, load_input
from app_analyzer.pattern_analyzer import PatternAnalyzer
from app_analyzer.schema import AnalysisResult

from .catalog import shared_catalog_cache
from .config import find_config_file, load_config
from .engine import RecommendationEngine
from .schema import Preferences, RankingContext, Recommendation, TrafficLevel

console = Console()

PREFERENCE = click.IntRange(1, 5)


@click.group()
@click.version_option(version="1.0.0", prog_name="architecture-recommender")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Path to recommender configuration YAML"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(config_path: Optional[str], verbose: bool):
    """Architecture Recommender.

    Matches an analyzed application to cloud architecture templates and
    ranks their variants against your preferences.
    """
    configure_logging(verbose)
    path = Path(config_path) if config_path else find_config_file()
    if path:
        load_config(path)


@main.command("recommend")
@click.argument("path", type=click.Path(exists=True))
@click.option("--description", "-d", help="Free-text description of the application")
@click.option("--cost-priority", type=PREFERENCE, default=3, show_default=True, help="How much cost matters (1-5)")
@click.option(
    "--complexity-tolerance", type=PREFERENCE, default=3, show_default=True,
    help="How much operational complexity is acceptable (1-5)"
)
@click.option("--performance", type=PREFERENCE, default=3, show_default=True, help="Performance requirements (1-5)")
@click.option(
    "--traffic",
    type=click.Choice([t.value for t in TrafficLevel]),
    help="Expected traffic level"
)
@click.option("--budget", type=click.FloatRange(min=0, min_open=True), help="Monthly budget in USD")
@click.option(
    "--max-recommendations", "-n",
    default=5,
    type=int,
    help="Maximum number of recommendations to show"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for JSON results"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
def recommend_cmd(
    path: str,
    description: Optional[str],
    cost_priority: int,
    complexity_tolerance: int,
    performance: int,
    traffic: Optional[str],
    budget: Optional[float],
    max_recommendations: int,
    out: Optional[str],
    json_output: bool,
):
    """Recommend architectures for an application directory or file.

    Examples:
        architecture-recommender recommend ./my-app
        architecture-recommender recommend ./my-app --cost-priority 5 --traffic low -j
    """
    try:
        analysis = PatternAnalyzer().analyze_application(load_input(Path(path), description))
        preferences = Preferences(
            cost_priority=cost_priority,
            complexity_tolerance=complexity_tolerance,
            performance_requirements=performance,
        )
        context = RankingContext(
            traffic=TrafficLevel(traffic) if traffic else None,
            budget=budget,
        )
        recommendations = RecommendationEngine().recommend(analysis, preferences, context)
        recommendations = recommendations[:max_recommendations]

        if json_output:
            output_json(analysis, recommendations, out)
        else:
            display_recommendations(analysis, recommendations)
            if out:
                output_json(analysis, recommendations, out)
                console.print(f"\n[green]Results saved to {out}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("catalog")
def catalog_cmd():
    """List the architecture templates and services in the catalog."""
    try:
        catalog = shared_catalog_cache().get()
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    templates = Table(title=f"Architecture Templates ({len(catalog.templates)})")
    templates.add_column("ID", style="cyan")
    templates.add_column("Name")
    templates.add_column("App types")
    templates.add_column("Services")
    for template in catalog.templates.values():
        templates.add_row(
            template.id,
            template.name,
            ", ".join(template.app_types),
            ", ".join(slot.service for slot in template.services),
        )
    console.print(templates)

    services = Table(title=f"Services ({len(catalog.services)})")
    services.add_column("ID", style="cyan")
    services.add_column("Name")
    services.add_column("Category")
    services.add_column("Typical $/month", justify="right")
    for service in catalog.services.values():
        pricing = service.pricing
        typical = (
            f"{pricing.estimated_monthly.typical:.2f}"
            if pricing and pricing.estimated_monthly else "-"
        )
        services.add_row(service.id, service.name, service.category, typical)
    console.print()
    console.print(services)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="recommender-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default recommender configuration file.

    Example:
        architecture-recommender init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out_path)
        console.print(f"[green]✓[/green] Config file created: {out}")
        console.print("\nThe recommender will look for config in this order:")
        console.print("  1. ARCHITECTURE_RECOMMENDER_CONFIG environment variable")
        console.print("  2. ./recommender-config.yaml (current directory)")
        console.print("  3. ~/.config/architecture-recommender/config.yaml")
    except OSError as e:
        console.print(f"[red]Error creating config:[/red] {e}")
        sys.exit(1)


def display_recommendations(analysis: AnalysisResult, recommendations: list[Recommendation]):
    """Display recommendations in formatted text."""
    console.print(Panel(
        f"Framework: [bold cyan]{analysis.framework.primary.display_name}[/bold cyan]\n"
        f"Application type: [bold cyan]{analysis.app_type.primary.display_name}[/bold cyan]\n"
        f"Overall confidence: [bold]{analysis.overall_confidence:.0%}[/bold]",
        title="Analysis",
    ))

    if not recommendations:
        console.print("\n[yellow]No suitable architectures found.[/yellow]")
        return

    for rec in recommendations:
        savings = f", saves ${rec.savings:.2f}/month" if rec.savings and rec.savings > 0 else ""
        console.print(
            f"\n[bold]#{rec.rank} {rec.name}[/bold] "
            f"[dim]({rec.tier.value}, suitability {rec.suitability_score:.0%})[/dim]"
        )
        console.print(f"  Estimated cost: ${rec.cost_estimate.monthly:.2f}/month{savings}")
        if rec.deployment_time:
            console.print(f"  Deployment time: {rec.deployment_time}")

        table = Table(show_header=True, box=None, padding=(0, 2))
        table.add_column("Service", style="cyan")
        table.add_column("Purpose")
        table.add_column("Score", justify="right")
        table.add_column("Tier")
        for service in rec.services:
            table.add_row(service.name, service.candidate.purpose, f"{service.overall:.2f}", service.tier.value)
        console.print(table)

        for reason in rec.reasons:
            console.print(f"  [green]✓[/green] {reason}")
        for warning in rec.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
        for suggestion in rec.summary.optimization_suggestions:
            console.print(f"  [cyan]→[/cyan] {suggestion.message}")


def output_json(analysis: AnalysisResult, recommendations: list[Recommendation], out_path: Optional[str]):
    """Output analysis and recommendations as JSON."""
    data = {
        "analysis": analysis.model_dump(mode="json"),
        "recommendations": [rec.model_dump(mode="json") for rec in recommendations],
    }
    json_str = json.dumps(data, indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


if __name__ == "__main__":
    main()
