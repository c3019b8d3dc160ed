"""campusgate features — inspect and change role feature overrides."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from campusgate.core.constants import ExitCode
from campusgate.features.catalog import Role

console = Console()

_ROLE_CHOICE = click.Choice([r.value for r in Role], case_sensitive=False)


def _provider(ctx: click.Context):
    """Build a FeatureProvider from the config loaded by the root group."""
    from campusgate.core.config import load_config_or_default
    from campusgate.core.exceptions import ConfigError, StoreError
    from campusgate.features.context import FeatureProvider

    obj = ctx.find_object(dict) or {}
    try:
        config = obj.get("config") or load_config_or_default()
        return FeatureProvider.from_config(config), config
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        raise SystemExit(ExitCode.CONFIG_ERROR) from exc
    except StoreError as exc:
        console.print(f"[red]Store error:[/red] {exc}")
        raise SystemExit(ExitCode.STORE_ERROR) from exc


def _cli_user(role: str):
    from campusgate.features.context import SessionUser

    return SessionUser(id="cli", name="campusgate-cli", role=role)


@click.group("features")
def features_group() -> None:
    """Inspect and manage role-based features."""


@features_group.command("list")
@click.option("--role", required=True, type=_ROLE_CHOICE, help="Role to resolve for")
@click.option("--nav", "view", flag_value="nav", help="Only navigation features")
@click.option("--bottom-nav", "view", flag_value="bottom", help="Only mobile bottom-bar features")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def features_list(ctx: click.Context, role: str, view: str | None, as_json: bool) -> None:
    """List the features switched on for a role."""
    provider, _ = _provider(ctx)
    resolver = provider.resolver
    if view == "nav":
        features = resolver.get_navigation_features(role)
    elif view == "bottom":
        features = resolver.get_bottom_nav_features(role)
    else:
        features = resolver.get_enabled_features(role)

    if as_json:
        click.echo(json.dumps([f.to_dict() for f in features], indent=2))
        return

    if not features:
        console.print(f"[dim]No features enabled for {role}.[/dim]")
        return

    table = Table(title=f"Features for {role}")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Icon")
    table.add_column("Category")
    for f in features:
        table.add_row(f.id.value, f.name, f.icon.value, f.category.value)
    console.print(table)


@features_group.command("check")
@click.argument("feature_id")
@click.option("--role", required=True, help="Role to resolve for")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def features_check(ctx: click.Context, feature_id: str, role: str, as_json: bool) -> None:
    """Resolve one feature for a role.  Exits 1 when it is off."""
    provider, _ = _provider(ctx)
    decision = provider.resolver.decide(feature_id, role)

    if as_json:
        click.echo(json.dumps(decision.to_dict(), indent=2))
    elif decision.allowed:
        console.print(f"[green]enabled[/green]  {feature_id} for {role}")
    else:
        console.print(f"[red]disabled[/red] {feature_id} for {role} ({decision.reason_code})")

    if not decision.allowed:
        raise SystemExit(ExitCode.ERROR)


@features_group.command("status")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def features_status(ctx: click.Context, as_json: bool) -> None:
    """Dump the feature registry and the role override matrix."""
    provider, _ = _provider(ctx)
    status = provider.resolver.get_feature_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    table = Table(title="Role feature matrix")
    table.add_column("Feature", style="cyan")
    table.add_column("Global", justify="center")
    for r in Role:
        table.add_column(r.value.capitalize(), justify="center")

    role_config = status["role_config"]
    for fid, info in status["features"].items():
        cells = []
        for r in Role:
            entry = role_config.get(r.value, {}).get(fid)
            if r.value not in info["roles"]:
                cells.append("[dim]n/a[/dim]")
            elif entry is None:
                cells.append("[dim]-[/dim]")
            else:
                cells.append("[green]on[/green]" if entry["enabled"] else "[red]off[/red]")
        label = f"{fid} [yellow](beta)[/yellow]" if info["beta"] else fid
        table.add_row(label, "yes" if info["enabled"] else "[red]no[/red]", *cells)
    console.print(table)


@features_group.command("summary")
@click.option("--json", "as_json", is_flag=True, default=False)
@click.pass_context
def features_summary(ctx: click.Context, as_json: bool) -> None:
    """Show active/beta totals and per-role enabled counts."""
    provider, _ = _provider(ctx)
    summary = provider.resolver.get_role_summary()

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
        return

    console.print(
        f"\n[bold]Features[/bold]  total {summary.total}  "
        f"active [green]{summary.active}[/green]  beta [blue]{summary.beta}[/blue]\n"
    )
    for r in summary.roles:
        console.print(
            f"  {r.role.value + 's':<10} {r.enabled}/{r.applicable}  ({r.percent}%)"
        )
    console.print()


def _report(result, store_kind: str) -> None:
    from campusgate.features.mutator import MutationStatus

    if result.status == MutationStatus.OK:
        state = "[green]on[/green]" if result.enabled else "[red]off[/red]"
        console.print(f"{result.feature_id} for {result.role}: {state}")
        if store_kind == "memory":
            console.print(
                "[yellow]In-memory store: this change ends with the process. "
                "Set \\[features] store = \"yaml\" to keep it.[/yellow]"
            )
        return

    console.print(f"[red]{result.status.value}[/red]: {result.feature_id} for {result.role}")
    if result.status == MutationStatus.DENIED:
        raise SystemExit(ExitCode.PERMISSION_ERROR)
    raise SystemExit(ExitCode.ERROR)


def _mutate(ctx: click.Context, action: str, feature_id: str, as_role: str, target: str | None):
    from campusgate.core.exceptions import FeatureAccessDenied, StoreError
    from campusgate.core.logging import bind_session_user, clear_session_user

    provider, config = _provider(ctx)
    user = _cli_user(as_role)
    bind_session_user(user.id, as_role)
    fctx = provider.for_user(user)
    try:
        result = getattr(fctx, f"{action}_feature")(feature_id, target)
    except FeatureAccessDenied as exc:
        console.print(f"[red]denied[/red]: {exc}")
        raise SystemExit(ExitCode.PERMISSION_ERROR) from exc
    except StoreError as exc:
        console.print(f"[red]Store error:[/red] {exc}")
        raise SystemExit(ExitCode.STORE_ERROR) from exc
    finally:
        clear_session_user()
    _report(result, config.features.store)


_AS_ROLE = click.option(
    "--as-role", required=True, type=_ROLE_CHOICE, help="Role of the user making the change"
)
_TARGET = click.option(
    "--target-role", default=None, help="Role to change (default: the caller's own role)"
)


@features_group.command("enable")
@click.argument("feature_id")
@_AS_ROLE
@_TARGET
@click.pass_context
def features_enable(ctx: click.Context, feature_id: str, as_role: str, target_role: str | None):
    """Switch a feature on for a role."""
    _mutate(ctx, "enable", feature_id, as_role, target_role)


@features_group.command("disable")
@click.argument("feature_id")
@_AS_ROLE
@_TARGET
@click.pass_context
def features_disable(ctx: click.Context, feature_id: str, as_role: str, target_role: str | None):
    """Switch a feature off for a role."""
    _mutate(ctx, "disable", feature_id, as_role, target_role)


@features_group.command("toggle")
@click.argument("feature_id")
@_AS_ROLE
@_TARGET
@click.pass_context
def features_toggle(ctx: click.Context, feature_id: str, as_role: str, target_role: str | None):
    """Flip a feature for a role (beta and core features are locked)."""
    _mutate(ctx, "toggle", feature_id, as_role, target_role)


@features_group.command("set")
@click.argument("feature_id")
@click.option("--role", "target_role", required=True, help="Role to change")
@click.option("--on/--off", "enabled", required=True, help="New state")
@_AS_ROLE
@click.pass_context
def features_set(
    ctx: click.Context, feature_id: str, target_role: str, enabled: bool, as_role: str
) -> None:
    """Admin-only: set a feature for any role, bypassing the toggle lock."""
    import asyncio

    from campusgate.core.exceptions import FeatureAccessDenied, StoreError

    provider, config = _provider(ctx)
    fctx = provider.for_user(_cli_user(as_role))
    try:
        result = asyncio.run(fctx.update_role_feature(feature_id, target_role, enabled))
    except FeatureAccessDenied as exc:
        console.print(f"[red]denied[/red]: {exc}")
        raise SystemExit(ExitCode.PERMISSION_ERROR) from exc
    except StoreError as exc:
        console.print(f"[red]Store error:[/red] {exc}")
        raise SystemExit(ExitCode.STORE_ERROR) from exc
    _report(result, config.features.store)
