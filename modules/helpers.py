"""Helper functions module for the secure CI/CD blueprint tooling.

Console status output shared by every command, in the style of the blueprint's
original shell helpers (an OK/FAIL/progress marker ahead of each line).
"""

import json
import logging
from typing import Any, Dict

import click

import modules.config.blueprint_config as blueprint_config


def echo_step(message: str) -> None:
    """Print a progress line for a step that is about to run."""
    click.echo(f"{blueprint_config.FANCY_NONE} {message}")


def echo_ok(message: str) -> None:
    """Print a success line."""
    click.echo(click.style(f"{blueprint_config.FANCY_OK} {message}", fg="green"))


def echo_fail(message: str) -> None:
    """Print a failure line to stderr."""
    click.echo(
        click.style(f"{blueprint_config.FANCY_FAIL} {message}", fg="red", bold=True),
        err=True,
    )


def echo_heading(title: str) -> None:
    click.echo(click.style(f"\n{title}\n", fg="white", bold=True))


def print_outputs(outputs: Dict[str, Any]) -> None:
    """Print terraform outputs as indented, key-sorted JSON.

    Args:
        outputs: Mapping of output name to value
    """
    echo_heading("Terraform outputs:")
    if not outputs:
        click.echo("  (no outputs declared)")
        return
    click.echo(json.dumps(outputs, indent=4, sort_keys=True))


def configure_logging(debug: bool) -> None:
    """Configure the root logger; DEBUG when --debug was given, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
