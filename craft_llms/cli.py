"""
craft-llms command line entry point.

Usage:
    craft-llms build
    craft-llms build --config llms_config.yml --no-sync
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from craft_llms.errors import BuildError
from craft_llms.llms_build.builder import build
from craft_llms.llms_build.config import load_build_config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
def cli(verbose: bool, quiet: bool) -> None:
    """Generate llms.txt artifacts from the Craft CMS documentation."""
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("CRAFT_LLMS_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(levelname)-7s - %(message)s")


@cli.command("build")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON or YAML config file.",
)
@click.option("--output-dir", default=None, help="Output directory (env: OUTPUT_DIR).")
@click.option("--base-url", default=None, help="Base docs URL (env: BASE_URL).")
@click.option("--no-sync", is_flag=True, help="Use the existing docs clone as-is.")
def build_command(
    config_path: Path | None,
    output_dir: str | None,
    base_url: str | None,
    no_sync: bool,
) -> None:
    """Write llms-full.txt and llms.txt."""
    overrides = {"output_dir": output_dir, "base_url": base_url}
    try:
        config = load_build_config(config_path)
        config = config.merge({k: v for k, v in overrides.items() if v})
        if no_sync:
            config = config.merge({"sync": False})
        result = build(config)
    except (BuildError, OSError) as exc:
        click.echo(f"Build failed: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Generated {result.total_files} pages.")
    click.echo(f"Full output: {result.full_path}")
    click.echo(f"Index output: {result.index_path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
