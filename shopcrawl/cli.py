"""CLI for the catalog crawler."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from . import export
from .agents.factory import create_agent
from .checker import AccessibilityChecker
from .config import ConfigError, CrawlConfig, load_config
from .crawler import CrawlCoordinator
from .logging_setup import configure_logging

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/default_config.yaml"
DEFAULT_OVERRIDES_DIR = "config/yaml_config"


def _load_raw_config(config_path: str, overrides_dir: Optional[str]) -> Dict[str, Any]:
    if overrides_dir is None and Path(DEFAULT_OVERRIDES_DIR).is_dir():
        overrides_dir = DEFAULT_OVERRIDES_DIR
    try:
        return load_config(config_path, overrides_dir)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _config_options(func):
    func = click.option(
        "--overrides",
        "overrides_dir",
        type=click.Path(file_okay=False),
        help=f"Directory of YAML files merged on top (default: {DEFAULT_OVERRIDES_DIR} if present)",
    )(func)
    func = click.option(
        "--config",
        "config_path",
        default=DEFAULT_CONFIG_PATH,
        show_default=True,
        type=click.Path(dir_okay=False),
        help="Default YAML configuration file",
    )(func)
    return func


@click.group()
def cli():
    """Catalog crawler CLI."""
    pass


@cli.command()
@_config_options
@click.option("--concurrency", type=int, help="Number of parallel workers")
@click.option("--agent", "agent_kind", help="Agent type (requests, httpx, browser)")
@click.option("--delay", type=float, help="Seconds each worker waits between links")
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    help="Write extracted items to a .json, .csv or .yaml file",
)
@click.option("-v", "--verbose", is_flag=True, help="Also log to stdout")
def crawl(
    config_path: str,
    overrides_dir: Optional[str],
    concurrency: Optional[int],
    agent_kind: Optional[str],
    delay: Optional[float],
    output: Optional[str],
    verbose: bool,
) -> None:
    """Crawl the configured start page and extract every product."""
    raw = _load_raw_config(config_path, overrides_dir)
    configure_logging(raw.get("logging"), console=verbose)

    try:
        config = CrawlConfig.from_mapping(raw).with_overrides(
            concurrency=concurrency,
            agent_kind=agent_kind,
            delay_between_requests=delay,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"🚀 Crawling {config.start_page} (concurrency={config.concurrency})")
    result = CrawlCoordinator(config).start()

    totals = result.totals
    click.echo(
        f"Links: {totals['links']}, processed: {totals['processed']}, "
        f"succeeded: {totals['succeeded']}, failed: {totals['failed']}"
    )

    if output:
        try:
            path = export.save(result.items, output)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"✅ Saved {len(result.items)} item(s) to {path}")

    if not result.success:
        click.echo("❌ Crawl failed", err=True)
        raise SystemExit(1)
    click.echo(f"✅ Crawl finished with {len(result.items)} item(s)")


@cli.command()
@click.argument("url")
@click.option("--agent", "agent_kind", default="requests", show_default=True, help="Agent type")
@click.option("--retries", default=3, show_default=True, type=int, help="Maximum attempts")
@click.option("--timeout", default=30.0, show_default=True, type=float, help="Per-request timeout")
def check(url: str, agent_kind: str, retries: int, timeout: float) -> None:
    """Check whether URL is reachable."""
    with create_agent(agent_kind, timeout=timeout) as agent:
        ok = AccessibilityChecker(agent, max_retries=retries).check_url(url)
    if ok:
        click.echo(f"✅ {url} is accessible")
        return
    click.echo(f"❌ {url} is not accessible", err=True)
    raise SystemExit(1)


@cli.command("show-config")
@_config_options
def show_config(config_path: str, overrides_dir: Optional[str]) -> None:
    """Print the merged configuration as JSON."""
    raw = _load_raw_config(config_path, overrides_dir)
    click.echo(json.dumps(raw, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":
    cli()
