"""CLI entry point for the visual comparison tool."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from visual_compare.models.config import CompareConfig, EnvironmentConfig
from visual_compare.orchestrator import Orchestrator

console = Console()

DEFAULT_CONFIG = "visual-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> CompareConfig:
    try:
        return CompareConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'visual-compare init' to create a default config.")
        sys.exit(1)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid config {config}:[/red] {e}")
        sys.exit(1)


def _print_summary(results: dict) -> None:
    console.print("\n[bold green]Comparison Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", results["run_id"])
    table.add_row("Duration", f"{results['duration']}s")
    table.add_row("Total Pages", str(results["results"]["total"]))
    table.add_row("Passed", f"[green]{results['results']['passed']}[/green]")
    table.add_row("Failed", f"[red]{results['results']['failed']}[/red]")
    table.add_row("Errors", f"[yellow]{results['results']['errors']}[/yellow]")
    console.print(table)

    for fmt, path in results["reports"].items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual comparison of a staging and a production deployment"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def run(config: str) -> None:
    """Capture both environments, compare every page and write the report."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg)
    _print_summary(orchestrator.run_full_pipeline())


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def compare(config: str) -> None:
    """Compare screenshots already on disk and write the report."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg)
    _print_summary(orchestrator.run_compare_only())


@cli.command("check-images")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def check_images(config: str) -> None:
    """Check every <img> on the baseline pages for broken sources."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg)
    reports = orchestrator.run_image_check()

    table = Table(title="Image Check")
    table.add_column("Page")
    table.add_column("Checked", justify="right")
    table.add_column("Broken", justify="right")
    table.add_column("Tracking skipped", justify="right")
    table.add_column("Status")
    for r in reports:
        status = "[green]pass[/green]" if r.passed else "[red]fail[/red]"
        table.add_row(r.page_url, str(r.checked), str(len(r.broken)),
                      str(r.skipped_tracking), status)
    console.print(table)

    for r in reports:
        if r.error:
            console.print(f"[red]{r.page_url}:[/red] {r.error}")
        for b in r.broken:
            console.print(f"  [red]Image {b.index}[/red] {b.url or '(no src)'}: {b.reason}")


@cli.command()
@click.option("--baseline", "-b", prompt="Baseline (staging) URL", help="Baseline origin")
@click.option("--candidate", "-p", prompt="Candidate (prod) URL", help="Candidate origin")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(baseline: str, candidate: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = CompareConfig(
        baseline=EnvironmentConfig(name="staging", base_url=baseline),
        candidate=EnvironmentConfig(name="prod", base_url=candidate),
    )
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nAdd the pages to compare under \"pages\", then run:")
    console.print("  [blue]visual-compare run[/blue]")


if __name__ == "__main__":
    cli()
