"""Command line interface for HubKit."""

import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigManager
from .exceptions import HubKitError
from .helpers.branch_alias import BranchAliasResolver, ConsolePrompt, set_branch_alias
from .services.git_branch import GitBranch, SyncStatus
from .services.git_config import GitConfig
from .services.upmerge import BranchUpMerger
from .utils.exception_logger import ExceptionLogger
from .utils.git_runner import CliProcess

logger = logging.getLogger(__name__)

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

_STATUS_STYLES = {
    SyncStatus.UP_TO_DATE: "green",
    SyncStatus.NEED_PULL: "yellow",
    SyncStatus.NEED_PUSH: "yellow",
    SyncStatus.DIVERGED: "red",
}


def handle_errors(func: Callable) -> Callable:
    """Print HubKit failures as a single red line and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HubKitError as e:
            exception_logger = ExceptionLogger.get_instance()
            if exception_logger:
                context = {"cli_command": func.__name__}
                if hasattr(e, "context"):
                    context.update(e.context())
                exception_logger.log_exception(e, context=context)

            logger.debug("Command failed", exc_info=True)
            err_console.print(f"❌ {e}", style="red", markup=False)
            sys.exit(1)

    return wrapper


def _services(ctx: click.Context) -> Dict[str, Any]:
    """Build the services for the project, keeping any already in ``ctx.obj``."""
    obj = ctx.find_root().obj

    if "config" not in obj:
        obj["config"] = obj["config_manager"].load()

    config = obj["config"]
    if "process" not in obj:
        obj["process"] = CliProcess(obj["project_root"], timeout=config.git_timeout)
    if "git_branch" not in obj:
        obj["git_branch"] = GitBranch(obj["process"], console=err_console)
    if "git_config" not in obj:
        obj["git_config"] = GitConfig(obj["process"])

    return obj


def _primary_branch(obj: Dict[str, Any]) -> str:
    config = obj["config"]
    if config.primary_branch:
        return config.primary_branch

    return obj["git_branch"].get_primary_branch(config.remote)


@click.group(invoke_without_command=True)
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option(
    "--path",
    "-p",
    type=click.Path(exists=True, file_okay=False),
    help="Project directory (default: current directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="hubkit")
@click.pass_context
def cli(ctx, config: Optional[str], path: Optional[str], verbose: bool):
    """Keep Git branches in sync and manage the development branch alias.

    \b
    EXAMPLES:
      hubkit branch-alias              # Show (or ask for) the branch alias
      hubkit branch-alias 2.1          # Store 2.1-dev as branch alias
      hubkit version-branches origin   # List maintenance branches
      hubkit sync 1.0 --no-push        # Pull 1.0, refuse to push it
      hubkit upmerge 1.0 --all         # Merge 1.0 into all newer versions

    \b
    CONFIGURATION:
      Config file: .hubkit/config.json (searched in parent directories)
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    project_root = Path(path).resolve() if path else Path.cwd()

    if config:
        ctx.obj.setdefault("config_manager", ConfigManager(Path(config)))
    else:
        ctx.obj.setdefault(
            "config_manager", ConfigManager.create_with_backtrack(project_root)
        )
    ctx.obj.setdefault("project_root", project_root)

    ExceptionLogger.initialize(project_root)

    if verbose:
        err_console.print(f"📁 Project root: {project_root}", style="dim")


@cli.command("branch-alias")
@click.argument("alias", required=False)
@click.pass_context
@handle_errors
def branch_alias(ctx, alias: Optional[str]):
    """Show or set the development alias of the primary branch.

    \b
    Without ALIAS the alias is resolved from the manifest file, the Git
    config or, when neither has one, asked for and stored in Git config.
    ALIAS is a major and minor version, eg. 2.1 (stored as 2.1-dev).
    """
    obj = _services(ctx)
    primary_branch = _primary_branch(obj)

    if alias is not None:
        console.print(set_branch_alias(obj["git_config"], primary_branch, alias))
        return

    config = obj["config"]
    resolver = BranchAliasResolver(
        obj["git_config"],
        prompt=obj.get("prompt") or ConsolePrompt(),
        cwd=obj["project_root"],
        primary_branch=primary_branch,
        manifest_file=config.manifest_file,
        console=err_console,
    )
    resolved, source = resolver.get_alias()

    console.print(resolved, markup=False)
    err_console.print(
        f"Detected by: {source.describe(primary_branch, config.manifest_file)}",
        style="dim",
    )


@cli.command("version-branches")
@click.argument("remote", required=False)
@click.pass_context
@handle_errors
def version_branches(ctx, remote: Optional[str]):
    """List the version branches of REMOTE, lowest version first."""
    obj = _services(ctx)
    remote = remote or obj["config"].remote

    branches = obj["git_branch"].get_version_branches(remote)
    if not branches:
        err_console.print(
            f'No version branches found for remote "{remote}".', style="yellow"
        )
        return

    for branch in branches:
        console.print(branch, markup=False)


@cli.command()
@click.argument("branch", required=False)
@click.option("--remote", "-r", help="Remote to compare with (default: from config)")
@click.option("--no-fetch", is_flag=True, help="Do not fetch the remote first")
@click.pass_context
@handle_errors
def status(ctx, branch: Optional[str], remote: Optional[str], no_fetch: bool):
    """Show whether BRANCH needs a pull or a push (default: active branch)."""
    obj = _services(ctx)
    git_branch = obj["git_branch"]
    remote = remote or obj["config"].remote
    branch = branch or git_branch.get_active_branch_name()

    if not no_fetch:
        git_branch.remote_update(remote)

    sync_status = git_branch.get_remote_diff_status(remote, branch)
    console.print(
        f"{branch} ({remote}): {sync_status.value}",
        style=_STATUS_STYLES[sync_status],
    )


@cli.command()
@click.argument("branch", required=False)
@click.option("--remote", "-r", help="Remote to sync with (default: from config)")
@click.option(
    "--no-push", is_flag=True, help="Fail instead of pushing local commits"
)
@click.pass_context
@handle_errors
def sync(ctx, branch: Optional[str], remote: Optional[str], no_push: bool):
    """Pull or push BRANCH so it matches the remote (default: active branch).

    \b
    Diverged branches are never synchronized, resolve those manually.
    """
    obj = _services(ctx)
    git_branch = obj["git_branch"]
    remote = remote or obj["config"].remote
    branch = branch or git_branch.get_active_branch_name()

    git_branch.remote_update(remote)
    git_branch.ensure_branch_in_sync(remote, branch, allow_push=not no_push)

    console.print(f'✅ Branch "{branch}" is in sync with "{remote}".', style="green")


@cli.command()
@click.argument("branch", required=False)
@click.option("--all", "all_branches", is_flag=True, help="Merge into all newer versions")
@click.option("--dry-run", is_flag=True, help="Only show what would be merged")
@click.option("--remote", "-r", help="Remote to merge with (default: from config)")
@click.pass_context
@handle_errors
def upmerge(
    ctx,
    branch: Optional[str],
    all_branches: bool,
    dry_run: bool,
    remote: Optional[str],
):
    """Merge version BRANCH into the next version (default: active branch).

    \b
    The newest version branch is merged into the primary branch. With --all
    the merge continues through every newer version branch. Merged branches
    are pushed to the remote.

    \b
    EXAMPLES:
      hubkit upmerge 1.0            # Merge 1.0 into 1.1
      hubkit upmerge 1.0 --all      # Merge 1.0 into 1.1, 1.1 into 2.0, ...
      hubkit upmerge --dry-run      # Show what merging would do
    """
    obj = _services(ctx)
    git_branch = obj["git_branch"]
    remote = remote or obj["config"].remote

    git_branch.guard_working_tree_ready()
    git_branch.remote_update(remote)

    if branch is None:
        branch = git_branch.get_active_branch_name()
    else:
        git_branch.checkout_remote_branch(remote, branch)

    upmerger = BranchUpMerger(
        git_branch, remote, _primary_branch(obj), console=err_console
    )

    if dry_run:
        try:
            changed = upmerger.dry_merge(branch, all_branches)
        except HubKitError:
            err_console.print(
                "Operation would have failed, you need to resolve these problems manually.",
                style="red",
            )
            raise

        if not changed:
            console.print(
                "This operation would not perform anything, everything is up-to-date "
                "or current branch is not a version branch.",
                style="green",
            )
            return

        console.print(
            "✅ [DRY-RUN] Branch(es) were merged.", style="green", markup=False
        )
        return

    try:
        changed = upmerger.merge(branch, all_branches)
    except HubKitError:
        err_console.print(
            "Operation failed, please resolve this problem manually.\n"
            "In the case of a conflict, run `git add` and `git commit` when done.\n"
            "And run this command again to finish.",
            style="red",
            markup=False,
        )
        raise

    if not changed:
        console.print("Nothing to do here or not a version branch.", style="green")
        return

    console.print(
        f"✅ Branch(es) were merged: {', '.join(changed)}",
        style="green",
        markup=False,
    )


@cli.command()
@click.option("--show", is_flag=True, help="Display current configuration")
@click.option("--primary-branch", help="Set the primary branch")
@click.option("--remote", help="Set the default remote")
@click.option("--manifest-file", help="Set the manifest file holding the branch alias")
@click.pass_context
@handle_errors
def config(
    ctx,
    show: bool,
    primary_branch: Optional[str],
    remote: Optional[str],
    manifest_file: Optional[str],
):
    """Manage the project configuration.

    \b
    EXAMPLES:
      hubkit config --show
      hubkit config --primary-branch main --remote origin
    """
    config_manager: ConfigManager = ctx.find_root().obj["config_manager"]

    updates = {
        key: value
        for key, value in (
            ("primary_branch", primary_branch),
            ("remote", remote),
            ("manifest_file", manifest_file),
        )
        if value is not None
    }

    if updates:
        config_manager.update_config(**updates)
        console.print(
            f"✅ Configuration saved to {config_manager.config_path}", style="green"
        )

    if show or not updates:
        current = config_manager.get_config()

        table = Table(title="HubKit configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for key, value in current.model_dump().items():
            table.add_row(key, "(auto)" if value is None else str(value))

        console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
