"""CLI entry point for apidoc."""

import logging
from pathlib import Path

import click
import structlog

from apidoc.builder import build, collect_blocks, parse_blocks, render
from apidoc.config import CONFIG_FILENAME, OUTPUT_FORMATS, load_config
from apidoc.errors import ApidocError
from apidoc.sanitize import sanitize
from apidoc.scanner import Languages


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _load(config_path: Path):
    languages = Languages.default()
    config = load_config(config_path)
    config.sanitize(languages)
    blocks = collect_blocks(config, languages, base=config_path.parent)
    return config, blocks


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log every parsed block and dropped tag.")
def main(verbose: bool):
    """apidoc: build OpenAPI documents from @api comment annotations."""
    _configure_logging(verbose)


@main.command("build")
@click.option("-c", "--config", "config_path", default=CONFIG_FILENAME, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Config file.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Override the configured output path.")
@click.option("--format", "fmt", default=None, type=click.Choice(OUTPUT_FORMATS), help="Override the configured output format.")
@click.option("--workers", default=None, type=int, help="Parser threads.")
def build_cmd(config_path: Path, output: Path | None, fmt: str | None, workers: int | None):
    """Scan the configured inputs and write the OpenAPI document."""
    try:
        config, blocks = _load(config_path)
        click.echo(f"Found {len(blocks)} annotation blocks.")
        document = build(blocks, max_workers=workers)
    except ApidocError as e:
        raise click.ClickException(str(e))

    output = output or config_path.parent / config.output.path
    fmt = fmt or config.output.format
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render(document, fmt), encoding="utf-8")
    click.echo(f"OpenAPI document saved to {output}")


@main.command()
@click.option("-c", "--config", "config_path", default=CONFIG_FILENAME, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Config file.")
def check(config_path: Path):
    """Parse and validate without writing output."""
    try:
        _, blocks = _load(config_path)
        doc = parse_blocks(blocks)
        sanitize(doc)
    except ApidocError as e:
        raise click.ClickException(str(e))
    click.echo(f"OK: {len(doc.apis)} APIs in {len(blocks)} blocks.")
