"""
cookplan CLI - plan and dry-run converge cookbook run lists.

Commands:
    cookplan plan        - Show the execution plan for a node
    cookplan converge    - Dry-run the plan against observed state
    cookplan recipes     - List known recipes
    cookplan platform-info
    cookplan version
"""

import json
import sys
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console

from cookplan.backend import DryRunBackend, converge as converge_plan
from cookplan.core.attributes import resolve
from cookplan.core.errors import CookplanError
from cookplan.core.planner import ExecutionPlan, plan as build_plan
from cookplan.core.platform import Platform
from cookplan.core.policy import DEFAULT_RUN_LIST, PolicyEngine
from cookplan.logging import COOKPLAN_THEME, console, get_plan_logger, setup_logging


@click.group(invoke_without_command=True)
@click.option('--log-level', default='WARNING', envvar='COOKPLAN_LOG_LEVEL',
              show_default=True, help='Log level (DEBUG, INFO, WARNING, ERROR)')
@click.pass_context
def cli(ctx, log_level: str):
    """cookplan - derive convergence plans from cookbooks."""
    setup_logging(log_level)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def node_options(func):
    """Options describing the node and its run list."""
    options = [
        click.option('--attributes', 'attributes_file', type=click.Path(exists=True, dir_okay=False),
                     help='Node attributes JSON file'),
        click.option('--platform', 'platform_name', help='Platform name (ubuntu, redhat, smartos...)'),
        click.option('--family', help='Platform family (debian, rhel, smartos, omnios...)'),
        click.option('--platform-version', help='Platform version'),
        click.option('--set', 'settings', multiple=True, metavar='COOKBOOK.KEY=VALUE',
                     help='Override an attribute, e.g. rsyslog.use_relp=true'),
        click.option('--recipe', 'recipes', multiple=True,
                     help=f'Recipe to run (default: {", ".join(DEFAULT_RUN_LIST)})'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command()
@node_options
@click.option('--changed', multiple=True, metavar='RESOURCE_ID',
              help='Show which notifications fire if this resource changes')
@click.option('--json', 'as_json', is_flag=True, help='Print the plan as JSON')
def plan(attributes_file: Optional[str], platform_name: Optional[str], family: Optional[str],
         platform_version: Optional[str], settings: Tuple[str, ...], recipes: Tuple[str, ...],
         changed: Tuple[str, ...], as_json: bool):
    """
    Show the execution plan for a node.

    Example:
        cookplan plan --platform ubuntu --platform-version 12.04
        cookplan plan --attributes node.json --set rsyslog.use_relp=true
    """
    run_list = recipes or DEFAULT_RUN_LIST
    execution_plan, platform = _build(attributes_file, platform_name, family,
                                      platform_version, settings, run_list)

    if as_json:
        data = execution_plan.to_dict()
        if changed:
            data["triggered"] = [n.to_dict() for n in execution_plan.triggered(changed)]
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Planning {', '.join(run_list)} for {platform}...\n")
    _display_plan(execution_plan)

    if changed:
        unknown = [rid for rid in changed if rid not in execution_plan]
        if unknown:
            click.secho(f"Unknown resources: {', '.join(unknown)}", fg="red")
            sys.exit(1)

        click.echo(f"\nIf {', '.join(changed)} changed:")
        fired = execution_plan.triggered(changed)
        if not fired:
            click.echo("  no notifications fire")
        for edge in fired:
            click.echo(f"  {_notify_symbol(edge.action.value)} {edge.action.value} {edge.target} "
                       f"(from {edge.source}, {edge.timing.value})")

    click.echo(f"\nPlan: {len(execution_plan)} resources, "
               f"{len(execution_plan.notifications)} notifications")


@cli.command()
@node_options
@click.option('--observed', 'observed_file', type=click.Path(exists=True, dir_okay=False),
              help='Observed state JSON file (resource id -> state)')
def converge(attributes_file: Optional[str], platform_name: Optional[str], family: Optional[str],
             platform_version: Optional[str], settings: Tuple[str, ...], recipes: Tuple[str, ...],
             observed_file: Optional[str]):
    """
    Dry-run a convergence against observed state.

    Nothing on the system is changed.

    Example:
        cookplan converge --attributes node.json --observed state.json
    """
    run_list = recipes or DEFAULT_RUN_LIST
    execution_plan, platform = _build(attributes_file, platform_name, family,
                                      platform_version, settings, run_list)

    observed: Dict[str, Any] = {}
    if observed_file:
        observed = _read_json(observed_file, "observed state")

    click.echo(f"Converging {', '.join(run_list)} for {platform} (dry run)...\n")

    backend = DryRunBackend(observed, output=console)
    result = converge_plan(execution_plan, backend)

    if result.errors:
        click.secho("\nErrors during converge:", fg="red")
        for error in result.errors:
            click.secho(f"  ! {error}", fg="red")
        sys.exit(1)

    if not result.changed_resources and not result.notified:
        click.secho("No changes needed.", fg="green")
        return

    backend.log.success(f"Dry run finished for {platform}")
    click.secho(f"\n{len(result.changed_resources)} to change, "
                f"{len(result.notified)} notifications ({result.duration:.2f}s)", fg="green")


@cli.command()
def recipes():
    """List known recipes."""
    engine = PolicyEngine()
    out = get_plan_logger(__name__, Console(theme=COOKPLAN_THEME))
    for name in sorted(engine.recipes):
        summary = (engine.recipes[name].__doc__ or "").strip().splitlines()
        out.table_row(name, summary[0] if summary else "", widths=[26, 0])


@cli.command()
def version():
    """Show cookplan version."""
    from cookplan import __version__
    click.echo(f"cookplan version {__version__}")


@cli.command()
def platform_info():
    """Show detected platform information."""
    plat = Platform.detect()
    click.echo("Platform Information:")
    click.echo(f"  Name:    {plat.name}")
    click.echo(f"  Family:  {plat.family}")
    click.echo(f"  Version: {plat.version}")


def _build(attributes_file, platform_name, family, platform_version, settings, run_list):
    """Resolve attributes, derive and plan. Exits on any cookplan error."""
    try:
        raw = _load_attributes(attributes_file, platform_name, family, platform_version, settings)
        snapshot = resolve(raw)
        execution_plan = build_plan(PolicyEngine().derive(snapshot, run_list))
    except CookplanError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)
    return execution_plan, snapshot.platform


def _load_attributes(attributes_file: Optional[str], platform_name: Optional[str],
                     family: Optional[str], platform_version: Optional[str],
                     settings: Tuple[str, ...]) -> Dict[str, Any]:
    """
    Assemble raw node attributes.

    The JSON file is the base, command line options override it. Without
    any platform information the local platform is detected.
    """
    raw: Dict[str, Any] = {}
    if attributes_file:
        raw = _read_json(attributes_file, "attributes")

    platform = raw.get("platform") or {}
    if not isinstance(platform, dict):
        click.secho(f"Error reading attributes from {attributes_file}: 'platform' must be an object",
                    fg="red")
        sys.exit(1)
    platform = dict(platform)
    if platform_name:
        platform["name"] = platform_name
    if family:
        platform["family"] = family
    if platform_version:
        platform["version"] = platform_version

    if not platform.get("name") and not platform.get("family"):
        detected = Platform.detect()
        platform.setdefault("name", detected.name)
        platform.setdefault("family", detected.family)
        platform.setdefault("version", detected.version)
    raw["platform"] = platform

    for setting in settings:
        cookbook, key, value = _parse_setting(setting)
        section = raw.setdefault(cookbook, {})
        if not isinstance(section, dict):
            raise click.BadParameter(f"'{cookbook}' attributes are not a mapping", param_hint="--set")
        section[key] = value

    return raw


def _parse_setting(setting: str) -> Tuple[str, str, Any]:
    """
    Split "cookbook.key=value". Values are JSON literals when they parse,
    plain strings otherwise.
    """
    name, sep, text = setting.partition("=")
    cookbook, dot, key = name.strip().partition(".")
    if not sep or not dot or not cookbook or not key:
        raise click.BadParameter(f"expected COOKBOOK.KEY=VALUE, got {setting!r}", param_hint="--set")

    try:
        value = json.loads(text)
    except ValueError:
        value = text
    return cookbook, key, value


def _read_json(path: str, what: str) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
    except ValueError as e:
        click.secho(f"Error reading {what} from {path}: {e}", fg="red")
        sys.exit(1)

    if not isinstance(data, dict):
        click.secho(f"Error reading {what} from {path}: expected a JSON object", fg="red")
        sys.exit(1)
    return data


def _display_plan(execution_plan: ExecutionPlan) -> None:
    """Display resources, notifications and stages."""
    for number, resource in enumerate(execution_plan.resources, start=1):
        click.echo(f"  {number:>2}. {resource.id}{_describe(resource)}")

    if execution_plan.notifications:
        click.echo("\nNotifications:")
        for edge in execution_plan.notifications:
            click.echo(f"  {edge.source} {_notify_symbol(edge.action.value)} "
                       f"{edge.action.value} {edge.target} ({edge.timing.value})")

    click.echo("\nStages:")
    for number, stage in enumerate(execution_plan.stages(), start=1):
        click.echo(f"  {number}. {', '.join(stage)}")


def _describe(resource) -> str:
    details = resource.to_dict()
    parts = []
    owner, group = details.get("owner"), details.get("group")
    if owner or group:
        parts.append(f"{owner or '-'}:{group or '-'}")
    if details.get("mode"):
        parts.append(details["mode"])
    actions = getattr(resource, "actions", None)
    if actions:
        parts.append(",".join(actions))
    if details.get("notified_only"):
        parts.append("when notified")
    return f"  [{' '.join(parts)}]" if parts else ""


def _notify_symbol(action: str) -> str:
    if action == "restart":
        return click.style("↻", fg="magenta")
    elif action == "reload":
        return click.style("⟳", fg="magenta")
    else:
        return click.style("▶", fg="magenta")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
