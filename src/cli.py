"""CLI entry point for the GoDiffy action."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from src.api.client import GodiffyClient
from src.capture.capturer import ScreenshotCapturer
from src.github.actions import AnnotationHandler, append_step_summary, running_in_actions
from src.models.config import ActionConfig, CaptureConfig, ConfigError
from src.models.report import ActionOutcome
from src.orchestrator import Orchestrator
from src.reporter.outputs import write_action_outputs
from src.reporter.summary import build_markdown_summary, build_results_table

console = Console()

DEFAULT_CONFIG = "godiffy.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [RichHandler(console=console, rich_tracebacks=True)]
    if running_in_actions():
        handlers.append(AnnotationHandler())
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_config(config: Optional[str], overrides: dict[str, Any]) -> ActionConfig:
    """Config file (if present) < GitHub inputs < CLI options."""
    file_data: dict[str, Any] = {}
    path = Path(config or DEFAULT_CONFIG)
    if path.exists():
        with open(path) as f:
            file_data = json.load(f)
    elif config:
        raise FileNotFoundError(f"Config file not found: {path}")
    return ActionConfig.resolve(file_data, overrides=overrides)


def _load_or_exit(config: Optional[str], overrides: dict[str, Any]) -> ActionConfig:
    try:
        return load_config(config, overrides)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Run 'godiffy init' to create a default config.")
        sys.exit(1)
    except ConfigError as e:
        logging.getLogger(__name__).error("%s", e)
        sys.exit(1)
    except json.JSONDecodeError as e:
        logging.getLogger(__name__).error("Config file %s is not valid JSON: %s", config or DEFAULT_CONFIG, e)
        sys.exit(1)


def _finish(outcome: ActionOutcome) -> None:
    write_action_outputs(outcome)
    append_step_summary(build_markdown_summary(outcome))
    console.print(build_results_table(outcome))
    if outcome.status == "failed":
        sys.exit(1)
    console.print("[bold green]Action completed successfully[/bold green]")


_backend_options = [
    click.option("--config", "-c", default=None, help=f"Config file path (default: {DEFAULT_CONFIG} if present)"),
    click.option("--api-key", envvar="GODIFFY_API_KEY", default=None, help="Backend API key"),
    click.option("--site-id", default=None, help="Site identifier"),
    click.option("--images-path", default=None, help="Directory containing screenshots"),
    click.option("--base-url", default=None, help="Backend base URL"),
    click.option("--branch", "candidate_branch", default=None, help="Candidate branch"),
    click.option("--commit", "candidate_commit", default=None, help="Candidate commit"),
]


def backend_options(func):
    for option in reversed(_backend_options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Upload visual-regression screenshots to GoDiffy and request comparison reports."""
    setup_logging(verbose)


@cli.command()
@backend_options
@click.option("--create-report/--no-create-report", default=None, help="Create a comparison report on pull requests")
@click.option("--baseline-branch", default=None, help="Baseline branch (default: master)")
@click.option("--baseline-commit", default=None, help="Baseline commit or 'latest'")
@click.option("--flow", "comparison_flow", type=click.Choice(["reports", "compare"]), default=None,
              help="Match client-side and create a report, or compare server-side")
@click.option("--algorithm", default=None, help="Comparison algorithm")
@click.option("--threshold", type=float, default=None, help="Comparison threshold in [0, 1]")
@click.option("--event", "event_name", default=None, help="Override GITHUB_EVENT_NAME")
def run(config: Optional[str], **options: Any) -> None:
    """Upload screenshots, then compare against the baseline on pull requests."""
    cfg = _load_or_exit(config, options)
    with GodiffyClient.from_config(cfg) as client:
        outcome = Orchestrator(cfg, client).run()
    _finish(outcome)


@cli.command()
@backend_options
def upload(config: Optional[str], **options: Any) -> None:
    """Upload screenshots only."""
    cfg = _load_or_exit(config, options)
    with GodiffyClient.from_config(cfg) as client:
        uploads = Orchestrator(cfg, client).run_upload()
    outcome = ActionOutcome(
        status="failed" if uploads.failed else "completed",
        uploads=uploads,
        error_message=f"{len(uploads.failed)} image(s) failed to upload" if uploads.failed else None,
    )
    _finish(outcome)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
@click.option("--output", "-o", default=None, help="Output directory (default: images_path from config)")
def capture(config: str, output: Optional[str]) -> None:
    """Capture screenshots of the configured pages with Playwright."""
    config_path = Path(config)
    if not config_path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        sys.exit(1)
    try:
        with open(config_path) as f:
            data = json.load(f)
        capture_cfg = CaptureConfig(**(data.get("capture") or {}))
    except ValueError as e:
        console.print(f"[red]Invalid capture configuration in {config_path}:[/red] {escape(str(e))}")
        sys.exit(1)
    if not capture_cfg.pages:
        console.print("[yellow]No 'capture' pages configured[/yellow]")
        return
    output_dir = Path(output or data.get("images_path") or "screenshots")
    paths = ScreenshotCapturer(capture_cfg, output_dir).capture()
    console.print(f"[green]Capture complete:[/green] {len(paths)} screenshot(s) in {output_dir}")


@cli.command()
@click.option("--site-id", prompt="Site ID", help="GoDiffy site identifier")
@click.option("--images-path", default="screenshots", show_default=True, help="Screenshot directory")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(site_id: str, images_path: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    # save() drops the key; it is supplied at run time
    cfg = ActionConfig(api_key="unset", site_id=site_id, images_path=images_path)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nSet the API key and run:")
    console.print("  [blue]GODIFFY_API_KEY=... godiffy run[/blue]")


if __name__ == "__main__":
    cli()
