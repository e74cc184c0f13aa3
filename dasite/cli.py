"""CLI entry point for dasite."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dasite.errors import DasiteError
from dasite.models.config import DasiteConfig
from dasite.models.run import RunOutcome
from dasite.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def build_config(
    config_path: Optional[str],
    output: Optional[str],
    crawl: Optional[bool],
    compare: Optional[bool],
    report: Optional[bool],
    threshold: Optional[float],
    headful: bool,
) -> DasiteConfig:
    """Load the config file (if any) and apply command-line overrides."""
    cfg = DasiteConfig.load(config_path) if config_path else DasiteConfig()
    overrides = {
        "output_dir": output,
        "crawl": crawl,
        "compare": compare,
        "report": report,
        "threshold": threshold,
    }
    update = {k: v for k, v in overrides.items() if v is not None}
    if headful:
        update["headless"] = False
    if not update:
        return cfg
    return DasiteConfig(**{**cfg.model_dump(), **update})


def _print_outcome(outcome: RunOutcome, crawl_enabled: bool) -> None:
    crawl = outcome.crawl
    if crawl is not None:
        console.print(f"\n[bold green]Captured {crawl.pages_captured} page(s)[/bold green]")
        for url, error in crawl.failed.items():
            console.print(f"  [red]Failed:[/red] {url}: {error}")
        if not crawl_enabled and outcome.additional_links:
            console.print(f"Found {len(outcome.additional_links)} additional links")
            console.print("  Run without [blue]--no-crawl[/blue] to capture the whole site.")

    summary = outcome.summary
    if summary is None:
        return

    if summary.results:
        table = Table(title="Visual Comparison")
        table.add_column("Target", style="bold")
        table.add_column("Status")
        table.add_column("Changed", justify="right")
        table.add_column("Regions", justify="right")
        for r in summary.results:
            status = "[red]changed[/red]" if r.changed else "[green]unchanged[/green]"
            table.add_row(r.target, status, f"{r.diff_percentage:.2f}%", str(len(r.changed_regions)))
        console.print(table)

    for identity, error in summary.errors.items():
        console.print(f"  [red]Error comparing {identity}:[/red] {error}")

    for line in summary.message.splitlines():
        console.print(line)

    decision = outcome.decision
    if decision is not None and summary.changed:
        color = "green" if decision.passed else "red"
        console.print(f"[{color}]{decision.message}[/{color}]")

    for fmt, path in outcome.reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@click.command()
@click.argument("url", required=False)
@click.option("--crawl/--no-crawl", "-c", default=None, help="Crawl same-domain links (default: on)")
@click.option("--compare/--no-compare", default=None, help="Compare against baselines (default: on)")
@click.option("--accept", is_flag=True, help="Promote current screenshots to baselines")
@click.option("--tag", default=None, help="Save accepted baselines under this version tag")
@click.option("--threshold", type=float, default=None, help="Max allowed change percentage (default: 0)")
@click.option("--output", "-o", default=None, help="Output directory (default: ./dasite)")
@click.option("--report/--no-report", default=None, help="Write HTML/JSON reports (default: on)")
@click.option("--export", "export_path", default=None, help="Export an HTML report to another format")
@click.option("--format", "export_format", default="pdf", help="Export format: pdf, json or markdown")
@click.option("--export-output", default=None, help="Path for the exported file")
@click.option("--list-versions", is_flag=True, help="List saved baseline versions")
@click.option("--restore-version", default=None, help="Restore baselines from a saved version")
@click.option("--prune-baselines", is_flag=True, help="Delete old baselines")
@click.option("--older-than", type=float, default=30, show_default=True, help="Age in days for --prune-baselines")
@click.option("--export-baselines", type=click.Path(), default=None, help="Copy baselines to a directory")
@click.option("--import-baselines", type=click.Path(), default=None, help="Copy baselines from a directory")
@click.option("--config", "config_path", default=None, help="JSON config file path")
@click.option("--headful", is_flag=True, help="Show the browser window")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(package_name="dasite")
def main(
    url: Optional[str],
    crawl: Optional[bool],
    compare: Optional[bool],
    accept: bool,
    tag: Optional[str],
    threshold: Optional[float],
    output: Optional[str],
    report: Optional[bool],
    export_path: Optional[str],
    export_format: str,
    export_output: Optional[str],
    list_versions: bool,
    restore_version: Optional[str],
    prune_baselines: bool,
    older_than: float,
    export_baselines: Optional[str],
    import_baselines: Optional[str],
    config_path: Optional[str],
    headful: bool,
    verbose: bool,
) -> None:
    """Visual regression testing for websites.

    Captures URL (and every same-domain page it links to) and compares the
    screenshots against stored baselines. Without a URL, compares the
    screenshots already in the output directory.
    """
    setup_logging(verbose)

    try:
        cfg = build_config(config_path, output, crawl, compare, report, threshold, headful)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    orchestrator = Orchestrator(cfg)

    try:
        if list_versions:
            versions = orchestrator.list_versions()
            console.print(f"Found {len(versions)} baseline versions")
            if versions:
                table = Table(title="Baseline Versions")
                table.add_column("Tag", style="bold")
                table.add_column("Created")
                table.add_column("Baselines", justify="right")
                for v in versions:
                    table.add_row(v.tag, v.created_at, str(len(v.identities)))
                console.print(table)
            return

        if restore_version:
            count = orchestrator.restore_version(restore_version)
            console.print(f"[green]Restored baselines from version {restore_version}[/green] ({count} baselines)")
            return

        if prune_baselines:
            removed = orchestrator.prune(older_than)
            console.print(f"[green]Pruned {removed} baselines older than {older_than:g} days[/green]")
            return

        if export_baselines:
            count = orchestrator.export_baselines(Path(export_baselines))
            console.print(f"[green]Exported {count} baselines to {export_baselines}[/green]")
            return

        if import_baselines:
            console.print(f"Importing baselines from {import_baselines}")
            count = orchestrator.import_baselines(Path(import_baselines))
            console.print(f"[green]Imported {count} baselines[/green]")
            return

        if export_path is not None:
            path = orchestrator.export(
                Path(export_path),
                export_format,
                Path(export_output) if export_output else None,
            )
            console.print(f"[green]Exported report to[/green] [blue]{path}[/blue]")
            return

        if accept:
            if url:
                orchestrator.capture(url)
            count = orchestrator.accept(tag)
            if count:
                suffix = f" (version {tag})" if tag else ""
                console.print(f"[green]Accepted {count} screenshots as new baselines{suffix}[/green]")
            else:
                console.print("[yellow]No screenshots found to accept[/yellow]")
            return

        if url:
            outcome = orchestrator.run(url)
        else:
            outcome = orchestrator.compare_only()
    except (DasiteError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except OSError as e:
        logging.getLogger(__name__).error("Operation failed: %s", e)
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    _print_outcome(outcome, cfg.crawl)
    if outcome.exit_code:
        sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
