"""CLI for repograft."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from repograft import __version__


def _workspace_root(root: Path | None) -> Path:
    return (root or Path.cwd()).resolve()


def _fail(error: Exception) -> click.ClickException:
    from repograft.errors import RepograftError

    if isinstance(error, RepograftError):
        return click.ClickException(f"[{error.kind}] {error.message}")
    return click.ClickException(str(error))


root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root. Defaults to the current directory.",
)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log git activity to stderr.")
def main(verbose: bool) -> None:
    """Import the history of another repository into this one.

    Every commit of the external repository is replayed onto the current
    branch with its files moved under a package directory, keeping the
    original messages, authors and dates.

    Examples:

        repograft import ../my-lib                # into packages/my-lib

        repograft import ../my-lib --dest modules # into modules/my-lib

        repograft plan ../my-lib --flatten        # list what would be imported
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command("import")
@click.argument("directory", type=click.Path(path_type=Path))
@click.option(
    "--dest",
    help="Package directory to import into. Defaults to the first package directory.",
)
@click.option(
    "--flatten/--no-flatten",
    default=None,
    help="Import first-parent history only, each merge as a single commit.",
)
@click.option(
    "--preserve-commit/--no-preserve-commit",
    default=None,
    help="Keep the original author as committer and the author date as commit date.",
)
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@root_option
def import_command(
    directory: Path,
    dest: str | None,
    flatten: bool | None,
    preserve_commit: bool | None,
    yes: bool,
    root: Path | None,
) -> None:
    """Import the history of DIRECTORY into a package directory.

    Options not given on the command line fall back to the repository's
    git config ([repograft] dest, flatten, preserveCommit) and then to
    ~/.repograft/config.yml.

    If any commit fails to apply the current branch is reset to where it
    was before the import started.
    """
    from repograft.config import resolve_import_options
    from repograft.errors import RepograftError
    from repograft.session import ImportPlan, ImportSession

    workspace_root = _workspace_root(root)
    options = resolve_import_options(
        workspace_root, dest=dest, flatten=flatten, preserve_commit=preserve_commit, yes=yes
    )

    def confirm(plan: ImportPlan) -> bool:
        click.echo(plan.summary)
        return click.confirm(
            "Are you sure you want to import these commits onto the current branch?",
            default=False,
        )

    def on_progress(record, index: int, total: int) -> None:
        click.echo(f"  [{index + 1}/{total}] {record.sha}")

    session = ImportSession(
        directory,
        options,
        workspace_root=workspace_root,
        confirm=confirm,
        on_progress=on_progress,
    )

    try:
        result = session.run()
    except RepograftError as e:
        raise _fail(e)

    if result.cancelled:
        click.echo("Import cancelled.")
        return

    click.echo(f"Imported {result.applied_count} commits into {result.target_path}")
    if result.skipped:
        click.echo(f"  Skipped {len(result.skipped)} empty commit(s): {', '.join(result.skipped)}")


@main.command()
@click.argument("directory", type=click.Path(path_type=Path))
@click.option("--dest", help="Package directory to import into.")
@click.option("--flatten/--no-flatten", default=None, help="List first-parent history only.")
@root_option
def plan(directory: Path, dest: str | None, flatten: bool | None, root: Path | None) -> None:
    """Show what importing DIRECTORY would do, without changing anything."""
    from rich.console import Console
    from rich.table import Table

    from repograft.config import resolve_import_options
    from repograft.errors import RepograftError
    from repograft.session import ImportSession
    from repograft.source import CommitEnumerator

    workspace_root = _workspace_root(root)
    options = resolve_import_options(workspace_root, dest=dest, flatten=flatten)

    try:
        import_plan = ImportSession(directory, options, workspace_root=workspace_root).plan()
    except RepograftError as e:
        raise _fail(e)

    console = Console()
    enumerator = CommitEnumerator(import_plan.source_repo, flatten=options.flatten)

    count_label = "commit" if len(import_plan.commits) == 1 else "commits"
    table = Table(title=f"{len(import_plan.commits)} {count_label} -> {import_plan.target.relative_to_git_root}")
    table.add_column("#", style="dim", width=4)
    table.add_column("Commit", style="cyan")
    table.add_column("Author", style="magenta")
    table.add_column("Subject")

    for i, record in enumerate(import_plan.commits, 1):
        author, subject = enumerator.describe(record)
        table.add_row(str(i), record.sha, author, subject)

    console.print(table)
    console.print(f"Package: [bold]{import_plan.external.package_name}[/bold]")
    console.print(f"Mode: {options.patch_mode.value}")


@main.command()
@root_option
def workspaces(root: Path | None) -> None:
    """List workspace plugins and the package directories they found."""
    from repograft.plugins import get_configured_plugin_manager
    from repograft.workspace import Workspace

    pm = get_configured_plugin_manager()

    click.echo("Workspace plugins:\n")
    for info in pm.hook.repograft_get_plugin_info():
        if info:
            name = info.get("name", "unknown")
            description = info.get("description", "No description")
            click.echo(f"  {name}: {description}")

    workspace = Workspace.discover(_workspace_root(root), pm)
    click.echo(f"\nWorkspace root: {workspace.root}")
    click.echo(f"  Package globs: {', '.join(workspace.package_globs)}")
    click.echo(f"  Package directories: {', '.join(workspace.package_directories)}")


@main.command()
@click.option("--dest", help="Default package directory for imports.")
@click.option("--flatten/--no-flatten", default=None, help="Flatten history by default.")
@click.option(
    "--preserve-commit/--no-preserve-commit",
    default=None,
    help="Preserve original committers by default.",
)
@click.option(
    "--global",
    "global_",
    is_flag=True,
    help="Use ~/.repograft/config.yml instead of this repository's git config.",
)
@root_option
def config(
    dest: str | None,
    flatten: bool | None,
    preserve_commit: bool | None,
    global_: bool,
    root: Path | None,
) -> None:
    """Show or set import defaults.

    With no options, prints the current values. Repository values win
    over global ones when importing.
    """
    from repograft.config import ProjectConfig, load_config, save_config

    changing = dest is not None or flatten is not None or preserve_commit is not None

    if global_:
        from repograft.settings import get_import_defaults, get_settings, save_settings

        if changing:
            settings = get_settings()
            defaults = get_import_defaults()
            for key, value in (
                ("dest", dest),
                ("flatten", flatten),
                ("preserve_commit", preserve_commit),
            ):
                if value is not None:
                    defaults[key] = value
            settings["import"] = defaults
            save_settings(settings)

        defaults = get_import_defaults()
        current = ProjectConfig(
            dest=defaults.get("dest"),
            flatten=defaults.get("flatten"),
            preserve_commit=defaults.get("preserve_commit"),
        )
    else:
        from repograft.host import HostRepository

        host = HostRepository.discover(_workspace_root(root))
        if host is None:
            raise click.ClickException("Not in a git repository.")

        if changing:
            save_config(
                host.root,
                ProjectConfig(dest=dest, flatten=flatten, preserve_commit=preserve_commit),
            )
        current = load_config(host.root)

    def show(value: object) -> str:
        return "(unset)" if value is None else str(value).lower()

    click.echo(f"dest: {current.dest if current.dest is not None else '(unset)'}")
    click.echo(f"flatten: {show(current.flatten)}")
    click.echo(f"preserveCommit: {show(current.preserve_commit)}")
