"""campusgate pages — check which app pages a role can open."""

from __future__ import annotations

import json

import click
from rich.console import Console

from campusgate.cli._features import _ROLE_CHOICE, _cli_user, _provider
from campusgate.core.constants import ExitCode

console = Console()


@click.group("pages")
def pages_group() -> None:
    """Page access for each role."""


@pages_group.command("check")
@click.argument("page")
@click.option("--role", required=True, type=_ROLE_CHOICE, help="Role of the viewer")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def pages_check(ctx: click.Context, page: str, role: str, as_json: bool) -> None:
    """Resolve access to PAGE.  Exits 1 when the page is blocked."""
    from campusgate.features.pages import resolve_page

    provider, _ = _provider(ctx)
    access = resolve_page(provider.for_user(_cli_user(role)), page)

    if as_json:
        click.echo(json.dumps(access.to_dict(), indent=2))
    elif access.allowed:
        console.print(f"[green]open[/green]    {page} for {role}")
    else:
        console.print(f"[red]blocked[/red] {page} for {role}")
        console.print(f"  The {access.feature_id or page} feature is disabled for this role.")
        if access.can_manage_features:
            console.print("  Manage it on the [cyan]feature-management[/cyan] page.")
        console.print(f"  Falling back to [cyan]{access.fallback_page}[/cyan].")

    if not access.allowed:
        raise SystemExit(ExitCode.ERROR)
