"""
campusgate CLI entry point.

Commands:
  campusgate version                          — show version
  campusgate features list --role R           — features on for a role
  campusgate features check FEATURE --role R  — one decision, with reason code
  campusgate features status                  — registry + override matrix dump
  campusgate features summary                 — per-role enabled/applicable counts
  campusgate features enable|disable|toggle   — change an override as a given user
  campusgate features set                     — admin-only update (simulated remote)
  campusgate pages check PAGE --role R        — page access for a role
"""

from __future__ import annotations

import click
from rich.console import Console

from campusgate import __version__
from campusgate.cli._features import features_group
from campusgate.cli._pages import pages_group
from campusgate.core.constants import ExitCode

console = Console()
err_console = Console(stderr=True)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="campusgate %(version)s")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.toml (default: CAMPUSGATE_CONFIG or the data dir).",
)
@click.option("--log-level", default=None, hidden=True, help="Override the configured log level.")
@click.option("--log-json", is_flag=True, default=False, hidden=True, help="Emit JSON log lines.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None, log_json: bool) -> None:
    """campusgate — role-based feature gating for the school app."""
    from campusgate.core.config import load_config_or_default
    from campusgate.core.exceptions import ConfigError
    from campusgate.core.logging import configure_logging

    try:
        config = load_config_or_default(config_path)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from exc

    configure_logging(
        level=log_level or config.logging.level,
        json_output=log_json or config.logging.format == "json",
    )
    ctx.ensure_object(dict)["config"] = config


@cli.command("version")
def version_cmd() -> None:
    """Show the campusgate version."""
    console.print(f"campusgate {__version__}")


cli.add_command(features_group)
cli.add_command(pages_group)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
