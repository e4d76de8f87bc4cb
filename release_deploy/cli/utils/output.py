# release_deploy/cli/utils/output.py
"""Output formatting utilities"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...constants import (
    EMOJI_ERROR,
    EMOJI_SUCCESS,
    EMOJI_WARNING,
    MSG_DEPLOY_FAILED,
    MSG_DEPLOY_SUCCESS,
    MSG_ROLLED_BACK,
)
from ...models import DeployOutcome, DeploymentConfig, Release

console = Console()


def format_deploy_plan(config: DeploymentConfig) -> None:
    """Display what a deployment is about to do"""
    table = Table(title="Deployment Plan", box=box.ROUNDED, show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Application", config.app)
    table.add_row("Root", str(config.app_root))
    table.add_row("Source", config.artifact.describe() if config.artifact else "-")
    table.add_row("Supervisor", config.supervisor.describe())
    table.add_row("Health URL", config.health_url or "-")
    table.add_row("Timeout", f"{config.timeout:g}s (every {config.poll_interval:g}s)")
    table.add_row("Keep", str(config.keep))
    if config.env_file:
        table.add_row("Env file", config.env_file)
    if config.pre_hook:
        table.add_row("Pre hook", config.pre_hook)
    if config.post_hook:
        table.add_row("Post hook", config.post_hook)

    console.print(table)


def format_deploy_outcome(outcome: DeployOutcome) -> None:
    """Format and display a deployment outcome"""
    if outcome.is_success:
        lines = [
            f"[green]{MSG_DEPLOY_SUCCESS.format(app=outcome.app, release=outcome.release_id)}[/green]",
            "",
        ]
        if outcome.previous_release_id:
            lines.append(f"[bold]Previous:[/bold] {outcome.previous_release_id}")
        if outcome.health:
            lines.append(
                f"[bold]Health:[/bold] {outcome.health.last_status} after "
                f"{outcome.health.attempts} probe(s)"
            )
        if outcome.prune and outcome.prune.removed:
            lines.append(f"[bold]Pruned:[/bold] {', '.join(outcome.prune.removed)}")
        border, title = "green", "Deploy Result"

    elif outcome.is_rolled_back:
        lines = [
            "[yellow]" + MSG_ROLLED_BACK.format(
                failed=outcome.release_id,
                app=outcome.app,
                restored=outcome.restored_release_id,
            ) + "[/yellow]",
        ]
        if outcome.error:
            lines.extend(["", f"[bold]Cause:[/bold] {outcome.error}"])
        border, title = "yellow", "Rolled Back"

    else:
        reason = str(outcome.error) if outcome.error else "unknown error"
        lines = [f"[red]{MSG_DEPLOY_FAILED.format(app=outcome.app, reason=reason)}[/red]"]
        if outcome.release_id:
            lines.append(f"[bold]Release:[/bold] {outcome.release_id}")
        border, title = "red", "Deploy Error"

    if outcome.duration is not None:
        lines.append(f"[dim]Duration: {outcome.duration:.2f}s[/dim]")

    console.print(Panel("\n".join(lines), title=title, border_style=border))

    if outcome.warnings:
        console.print("\n[bold yellow]Warnings:[/bold yellow]")
        for warning in outcome.warnings:
            console.print(f"  {EMOJI_WARNING} {warning}")


def format_release_list(releases: List[Release], current: Optional[Release] = None) -> None:
    """Format and display release list"""
    if not releases:
        console.print("[yellow]No releases found[/yellow]")
        return

    table = Table(title="Releases", box=box.SIMPLE)
    table.add_column("", justify="center")
    table.add_column("Release", style="cyan", no_wrap=True)
    table.add_column("Created", style="dim")
    table.add_column("Path", style="dim", overflow="fold")

    current_id = current.id if current else None
    for release in releases:
        created = release.created_at
        table.add_row(
            "[green]*[/green]" if release.id == current_id else "",
            release.id,
            created.strftime("%Y-%m-%d %H:%M:%S UTC") if created else "N/A",
            str(release.path),
        )

    console.print(table)


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]{EMOJI_ERROR} Error:[/red] {message}: {str(error)}")
    else:
        console.print(f"[red]{EMOJI_ERROR} Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[green]{EMOJI_SUCCESS}[/green] {message}")
