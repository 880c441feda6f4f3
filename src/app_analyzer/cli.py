"""CLI for the Application Analyzer.

Reads a source directory or file, runs the detection pipeline and prints
the detected framework, application type and infrastructure needs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import find_config_file, load_config
from .pattern_analyzer import PatternAnalyzer
from .schema import AnalysisInput, AnalysisResult, InputFile
from .validator import AnalysisValidator, ValidationReport

logger = logging.getLogger(__name__)

console = Console()

SKIP_DIRS = {".git", "node_modules", "__pycache__", ".venv", "venv", "dist", "build", ".next"}
MAX_FILE_BYTES = 512 * 1024


def load_input(path: Path, description: Optional[str] = None) -> AnalysisInput:
    """Build an AnalysisInput from a file or a directory tree.

    Binary, oversized and vendored files are skipped. File names are
    stored relative to `path` with forward slashes.

    Raises:
        ValueError: If the path does not exist.
    """
    if not path.exists():
        raise ValueError(f"Path not found: {path}")

    if path.is_file():
        candidates = [(path, path.name)]
    else:
        candidates = []
        for file_path in sorted(path.rglob("*")):
            rel = file_path.relative_to(path)
            if not file_path.is_file() or any(part in SKIP_DIRS for part in rel.parts):
                continue
            candidates.append((file_path, rel.as_posix()))

    files = []
    for file_path, name in candidates:
        if file_path.stat().st_size > MAX_FILE_BYTES:
            logger.debug("Skipping large file %s", name)
            continue
        try:
            content = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", name)
            continue
        files.append(InputFile(name=name, content=content))

    return AnalysisInput(description=description, files=files)


def configure_logging(verbose: bool) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version="1.0.0", prog_name="app-analyzer")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True),
    help="Path to analyzer configuration YAML"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(config_path: Optional[str], verbose: bool):
    """Application Analyzer.

    Detects the framework, application type and infrastructure
    requirements of an application from its source files.
    """
    configure_logging(verbose)
    path = Path(config_path) if config_path else find_config_file()
    if path:
        load_config(path)


@main.command("analyze")
@click.argument("path", type=click.Path(exists=True))
@click.option("--description", "-d", help="Free-text description of the application")
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
def analyze_cmd(path: str, description: Optional[str], out: Optional[str], json_output: bool):
    """Analyze an application directory or file.

    Examples:
        app-analyzer analyze ./my-app
        app-analyzer analyze ./my-app -d "Photo sharing site" -j
    """
    try:
        analysis_input = load_input(Path(path), description)
        result = PatternAnalyzer().analyze_application(analysis_input)

        if json_output:
            output_json(result, out)
        else:
            display_analysis(result)
            if out:
                output_json(result, out)
                console.print(f"\n[green]Results saved to {out}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@main.command("validate")
@click.argument("path", type=click.Path(exists=True))
@click.option("--description", "-d", help="Free-text description of the application")
def validate_cmd(path: str, description: Optional[str]):
    """Analyze an application and check the result for consistency.

    Exits with status 1 when the analysis has invariant violations.
    """
    try:
        analysis_input = load_input(Path(path), description)
        result = PatternAnalyzer().analyze_application(analysis_input)
        report = AnalysisValidator().validate(result)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    display_validation(report)
    sys.exit(0 if report.is_valid else 1)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="analyzer-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default analyzer configuration file.

    Example:
        app-analyzer init-config --out my-config.yaml
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
        console.print("\nThe analyzer will look for config in this order:")
        console.print("  1. APP_ANALYZER_CONFIG environment variable")
        console.print("  2. ./analyzer-config.yaml (current directory)")
        console.print("  3. ~/.config/app-analyzer/config.yaml")
    except OSError as e:
        console.print(f"[red]Error creating config:[/red] {e}")
        sys.exit(1)


def display_analysis(result: AnalysisResult):
    """Display an analysis result in formatted text."""
    summary = result.input_summary
    console.print(Panel(
        f"Framework: [bold cyan]{result.framework.primary.display_name}[/bold cyan] "
        f"({result.framework.primary.confidence:.0%})\n"
        f"Application type: [bold cyan]{result.app_type.primary.display_name}[/bold cyan] "
        f"({result.app_type.primary.confidence:.0%})\n"
        f"Complexity: {result.infrastructure.complexity}/5\n"
        f"Overall confidence: [bold]{result.overall_confidence:.0%}[/bold]\n"
        f"Input: {summary.input_type.value} ({summary.file_count} files)",
        title="Analysis Summary",
    ))

    alternatives = result.framework.alternatives + result.app_type.alternatives
    if alternatives:
        console.print("\n[bold]Alternatives:[/bold]")
        for alt in result.framework.alternatives:
            console.print(f"  [dim]framework[/dim] {alt.display_name} ({alt.score:.0%})")
        for alt in result.app_type.alternatives:
            console.print(f"  [dim]app type[/dim] {alt.display_name} ({alt.score:.0%})")

    table = Table(title="Infrastructure")
    table.add_column("Capability", style="cyan")
    table.add_column("Required")
    table.add_column("Confidence", justify="right")
    table.add_column("Subtype")
    for capability, requirement in result.infrastructure.capabilities.items():
        table.add_row(
            capability.value,
            "[green]yes[/green]" if requirement.required else "[dim]no[/dim]",
            f"{requirement.confidence:.0%}",
            requirement.subtype.value if requirement.subtype else "",
        )
    console.print()
    console.print(table)


def display_validation(report: ValidationReport):
    """Display a validation report."""
    if report.is_valid:
        console.print(f"[green]✓ Analysis valid[/green] (confidence: {report.confidence_level.value})")
    else:
        console.print(f"[red]✗ Analysis invalid[/red] (confidence: {report.confidence_level.value})")
        for issue in report.issues:
            console.print(f"  - {issue}")

    for warning in report.warnings:
        console.print(f"  [yellow]•[/yellow] {warning}")
    for suggestion in report.suggestions:
        console.print(f"  [cyan]→[/cyan] {suggestion}")


def output_json(result: AnalysisResult, out_path: Optional[str]):
    """Output result as JSON."""
    json_str = result.model_dump_json(indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


if __name__ == "__main__":
    main()
