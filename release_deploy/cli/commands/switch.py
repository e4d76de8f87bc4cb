"""Manual release switch command"""

import asyncio
import sys

import click
from rich.console import Console
from rich.prompt import Confirm

from ..decorators import app_options, supervisor_options, confirm_option
from ..utils.output import print_error, print_success
from ...api import Deployer
from ...api.exceptions import (
    ConfigurationError,
    ConcurrentDeploymentDetected,
    ReleaseDeployError,
    ReleaseNotFoundError,
)
from ...constants import MSG_LINK_UPDATED, PROMPT_CONFIRM_SWITCH, ExitCode
from ...utils.async_utils import run_cancellable

console = Console()


@click.command()
@app_options
@click.option('--release', 'release_id', required=True, help='Release to make live')
@click.option('--restart/--no-restart', default=True,
              help='Restart the supervisor for the release')
@supervisor_options
@confirm_option
def switch(app, root, config_path, release_id, restart, systemd, compose,
           compose_project, sudo, yes):
    """Point current at an existing release

    Operator rollback or roll forward without staging anything. The health
    check is not run.

    Example:

        release-deploy switch --app api --release 20240120103000123456 \\
            --systemd api.service
    """
    try:
        deployer = Deployer.from_options(
            config_path,
            for_deploy=False,
            app=app,
            root=root,
            systemd=systemd,
            compose=compose,
            compose_project=compose_project,
            sudo=sudo or None,
        )
    except ConfigurationError as e:
        print_error("Invalid configuration", e)
        sys.exit(ExitCode.CONFIG_ERROR)

    config = deployer.config
    if not yes and sys.stdin.isatty():
        if not Confirm.ask(
            f"[cyan]{PROMPT_CONFIRM_SWITCH.format(app=config.app, release=release_id)}[/cyan]"
        ):
            console.print("[yellow]Switch cancelled[/yellow]")
            sys.exit(ExitCode.CONFIG_ERROR)

    try:
        release = run_cancellable(deployer.service().switch(release_id, restart=restart))
    except ReleaseNotFoundError as e:
        print_error("Unknown release", e)
        sys.exit(ExitCode.CONFIG_ERROR)
    except ConcurrentDeploymentDetected as e:
        print_error("Application is locked", e)
        sys.exit(ExitCode.DEPLOY_FAILED)
    except ReleaseDeployError as e:
        print_error("Switch failed", e)
        sys.exit(ExitCode.DEPLOY_FAILED)
    except (asyncio.CancelledError, KeyboardInterrupt):
        console.print("\n[yellow]Switch interrupted[/yellow]")
        sys.exit(ExitCode.INTERRUPTED)

    print_success(MSG_LINK_UPDATED.format(link=config.current_link, target=release.path))
