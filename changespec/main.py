"""changespec CLI — all commands."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import httpx
import tomlkit
import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from changespec.diffs import effective_path, group_file_diffs, parse_file_diffs
from changespec.errors import ChangespecError
from changespec.features import FeatureFlags
from changespec.groups import groups_for_repository, validate_groups
from changespec.loader import load_execution_result, load_outputs, load_task
from changespec.models import CommitAuthor
from changespec.service import ServiceClient
from changespec.settings import CONFIG_PATH, ChangespecSettings, _list_profiles, get_settings
from changespec.specs import create_changeset_specs
from changespec.templating import ChangesetTemplateContext, render_changeset_template_field

app = typer.Typer(help="changespec: split a batch change diff into changeset specs", no_args_is_help=True)

logger = logging.getLogger(__name__)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/changespec/config.toml"),
]
VersionOpt = Annotated[
    str | None,
    typer.Option("--version", help="Service version to target instead of the configured or queried one"),
]
TaskArg = Annotated[Path, typer.Argument(help="Task file (TOML)")]
DiffArg = Annotated[Path, typer.Argument(help="Combined diff produced by the task, or - for stdin")]

_FLAG_NAMES = ("allow_optional_published", "include_auto_author_details")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(exc: Exception) -> NoReturn:
    rprint(f"[red]{escape(str(exc))}[/red]")
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Feature resolution
# ---------------------------------------------------------------------------


def get_features(settings: ChangespecSettings, version: str | None = None) -> FeatureFlags:
    """Resolve the capability set for the active profile.

    Version precedence: explicit version argument, service_version setting,
    version queried from the service (needs an access token). Without any
    version every feature is on. Per-flag settings override the result.
    """
    version = version or settings.service_version
    if not version and settings.access_token:
        try:
            version = ServiceClient(settings).product_version()
        except (RuntimeError, httpx.HTTPError) as exc:
            _fail(exc)

    try:
        features = FeatureFlags.from_version(version) if version else FeatureFlags.latest()
    except ValueError as exc:
        _fail(exc)

    overrides = {name: value for name in _FLAG_NAMES if (value := getattr(settings, name)) is not None}
    if overrides:
        logger.debug("feature overrides from settings: %s", overrides)
        features = features.model_copy(update=overrides)
    return features


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("build")
def build(
    task_file: TaskArg,
    diff_file: DiffArg,
    profile: ProfileOpt = None,
    version: VersionOpt = None,
    outputs_file: Annotated[
        Path | None,
        typer.Option("--outputs", help="TOML file with step outputs exposed to templates"),
    ] = None,
    workdir: Annotated[str, typer.Option("--path", help="Working directory path the task ran in")] = "",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write specs to file instead of stdout"),
    ] = None,
) -> None:
    """Assemble changeset specs for one repository."""
    settings = get_settings(profile=profile)
    features = get_features(settings, version)
    author = CommitAuthor(name=settings.author_name, email=settings.author_email)

    try:
        task = load_task(task_file)
        outputs = load_outputs(outputs_file) if outputs_file else None
        result = load_execution_result(diff_file, outputs=outputs, path=workdir)
        specs = create_changeset_specs(task, result, features, default_author=author)
    except ChangespecError as exc:
        _fail(exc)

    rendered = json.dumps([spec.to_wire() for spec in specs], indent=2)
    if not output:
        typer.echo(rendered)
        return

    output.write_text(rendered + "\n")

    table = Table(title=f"Changeset specs for {task.repository.name}")
    table.add_column("Head ref", style="cyan")
    table.add_column("Files")
    table.add_column("Published")
    for spec in specs:
        published = spec.published.wire()
        table.add_row(
            spec.head_ref,
            str(len(parse_file_diffs(spec.commits[0].diff))),
            "[dim](unset)[/dim]" if published is None else str(published).lower(),
        )
    rprint(table)
    rprint(f"[green]✓[/green] Wrote {len(specs)} changeset spec(s) to {output}")


@app.command("split")
def split(task_file: TaskArg, diff_file: DiffArg) -> None:
    """Show which branch each file of the diff lands on."""
    try:
        task = load_task(task_file)
        result = load_execution_result(diff_file)
        ctx = ChangesetTemplateContext.build(task.batch_change, task.repository, result)
        default_branch = render_changeset_template_field("branch", task.template.branch, ctx)
        groups = groups_for_repository(task.repository.name, task.transform_changes)
        validate_groups(task.repository.name, task.template.branch, groups)
        diffs_by_branch = group_file_diffs(result.diff, default_branch, groups)
    except ChangespecError as exc:
        _fail(exc)

    table = Table(title=f"Branches for {task.repository.name}")
    table.add_column("Branch", style="cyan")
    table.add_column("File")
    for branch, diff in diffs_by_branch.items():
        names = [effective_path(f) for f in parse_file_diffs(diff)] or ["[dim](no changes)[/dim]"]
        for name in names:
            table.add_row(branch, name)
    rprint(table)


@app.command("check-groups")
def check_groups(task_file: TaskArg) -> None:
    """List the transformChanges groups applying to the task's repository and validate them."""
    try:
        task = load_task(task_file)
    except ChangespecError as exc:
        _fail(exc)

    repo_name = task.repository.name
    groups = groups_for_repository(repo_name, task.transform_changes)
    if not groups:
        rprint(f"No groups apply to {repo_name}; the whole diff goes to {task.template.branch}.")
        return

    table = Table(title=f"Groups for {repo_name}")
    table.add_column("Directory", style="cyan")
    table.add_column("Branch")
    table.add_column("Repository", style="dim")
    for g in groups:
        table.add_row(g.directory, g.branch, g.repository or "(all)")
    rprint(table)

    try:
        validate_groups(repo_name, task.template.branch, groups)
    except ChangespecError as exc:
        _fail(exc)
    rprint(f"[green]✓[/green] {len(groups)} group(s) valid")


@app.command("features")
def features_cmd(profile: ProfileOpt = None, version: VersionOpt = None) -> None:
    """Show the capability set changeset specs are built against."""
    settings = get_settings(profile=profile)
    features = get_features(settings, version)

    table = Table(title="Features")
    table.add_column("Feature", style="bold")
    table.add_column("Enabled")
    for name in _FLAG_NAMES:
        enabled = getattr(features, name)
        table.add_row(name, "[green]yes[/green]" if enabled else "[red]no[/red]")
    rprint(table)


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/changespec/config.toml."""
    # A missing config may name a profile that `init` has yet to write.
    if CONFIG_PATH.exists():
        doc = tomlkit.load(CONFIG_PATH.open())
        known = _list_profiles(doc)
        if profile not in known:
            _fail(ValueError(f"Profile '{profile}' not found in {CONFIG_PATH}. Available: {known or '(none)'}"))
    else:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f"[green]✓[/green] {escape(profile)} is now the default profile ({CONFIG_PATH})")


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    def show(val: object) -> str:
        return "[dim](not set)[/dim]" if val is None else str(val)

    table = Table(title="changespec Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", show(settings.default_profile))
    table.add_row("endpoint", settings.endpoint)
    table.add_row("access_token", mask(settings.access_token.get_secret_value() if settings.access_token else None))
    table.add_row("service_version", show(settings.service_version))
    for name in _FLAG_NAMES:
        table.add_row(name, show(getattr(settings, name)))
    table.add_row("author_name", settings.author_name)
    table.add_row("author_email", settings.author_email)

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive first-time setup wizard."""
    rprint("[bold]changespec Setup Wizard[/bold]")
    rprint("")

    profile_name = typer.prompt("Profile name (e.g. work, cloud)").strip()
    if not profile_name:
        rprint("[red]Profile name cannot be empty.[/red]")
        raise typer.Exit(1)

    endpoint = typer.prompt("Service URL", default="https://sourcegraph.com").strip().rstrip("/")
    profile_config: dict = {"endpoint": endpoint}

    rprint(f"Create an access token at: {endpoint}/user/settings/tokens (leave blank to skip)")
    token = typer.prompt("Paste access token", default="", hide_input=True, show_default=False).strip()
    if token:
        profile_config["access_token"] = token
        verify = typer.confirm("Query the service version to confirm the token works?", default=True)
        if verify:
            try:
                settings = ChangespecSettings(endpoint=endpoint, access_token=token)  # type: ignore[call-arg]
                found = ServiceClient(settings).product_version()
                rprint(f"[green]✓[/green] Connected. Service version {found}.")
            except (RuntimeError, httpx.HTTPError) as exc:
                rprint(f"[yellow]Warning:[/yellow] Could not query the service version: {exc}")
    else:
        version = typer.prompt("Service version to target (blank for latest)", default="").strip()
        if version:
            profile_config["service_version"] = version

    set_as_default = typer.confirm(f"Set '{profile_name}' as default profile?", default=True)

    # round-trip preserves any existing comments
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()

    doc[profile_name] = profile_config
    if set_as_default:
        doc["default_profile"] = profile_name

    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f"[green]✓[/green] Profile '{profile_name}' written to {CONFIG_PATH}")
