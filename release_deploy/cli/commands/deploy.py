"""Deploy command implementation"""

import asyncio
import sys

import click
from rich.console import Console
from rich.prompt import Confirm

from ..decorators import app_options, supervisor_options, confirm_option
from ..utils.output import format_deploy_outcome, format_deploy_plan, print_error
from ...api import Deployer
from ...api.exceptions import ConfigurationError
from ...constants import (
    DEFAULT_GIT_REF,
    DEFAULT_KEEP,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
    EMOJI_ROCKET,
    PROMPT_CONFIRM_DEPLOY,
    ExitCode,
)
from ...utils.async_utils import run_cancellable

console = Console()


@click.command()
@app_options
@click.option('--artifact', type=click.Path(exists=True),
              help='Archive (.tar, .tar.gz, .tgz, ...) or directory to deploy')
@click.option('--repo', metavar='URL', help='Git repository to clone and build')
@click.option('--ref', help=f'Branch or tag for --repo [default: {DEFAULT_GIT_REF}]')
@click.option('--health-url', help='HTTP endpoint that must answer 2xx')
@click.option('--timeout', type=float,
              help=f'Seconds to wait for health [default: {DEFAULT_TIMEOUT}]')
@click.option('--poll-interval', type=float,
              help=f'Seconds between health probes [default: {DEFAULT_POLL_INTERVAL:g}]')
@click.option('--keep', type=int,
              help=f'Previous releases to keep [default: {DEFAULT_KEEP}]')
@click.option('--env-file', type=click.Path(dir_okay=False),
              help='File copied into the release as .env')
@click.option('--pre', 'pre_hook', metavar='CMD',
              help='Command run in the release before switching')
@click.option('--post', 'post_hook', metavar='CMD',
              help='Command run in the release after a healthy start')
@supervisor_options
@confirm_option
@click.pass_context
def deploy(ctx, app, root, config_path, artifact, repo, ref, health_url, timeout,
           poll_interval, keep, env_file, pre_hook, post_hook, systemd, compose,
           compose_project, sudo, yes):
    """Deploy a new release of an application

    Stages the artifact into <root>/<app>/releases/<id>, runs the pre hook,
    switches <root>/<app>/current to it, starts it and waits for the health
    URL. On a failed start or health check, current is switched back to the
    previous release.

    Exit codes: 0 deployed, 1 configuration error, 2 failed, 3 rolled back,
    130 interrupted.

    Examples:

        # Deploy a build archive under systemd
        release-deploy deploy --app api --artifact build.tgz \\
            --health-url http://127.0.0.1:8080/health --systemd api.service

        # Clone, build and run with docker compose
        release-deploy deploy --app web --repo https://example.com/web.git \\
            --ref v2.1 --compose docker-compose.prod.yml \\
            --health-url http://127.0.0.1:3000/healthz -y

        # Everything from a file, overriding the artifact
        release-deploy deploy --config api.yml --artifact build.tgz
    """
    overrides = {
        'app': app,
        'root': root,
        'artifact': artifact,
        'repo': repo,
        'ref': ref,
        'health_url': health_url,
        'timeout': timeout,
        'poll_interval': poll_interval,
        'keep': keep,
        'env_file': env_file,
        'pre_hook': pre_hook,
        'post_hook': post_hook,
        'systemd': systemd,
        'compose': compose,
        'compose_project': compose_project,
        'sudo': sudo or None,
    }

    try:
        deployer = Deployer.from_options(config_path, **overrides)
    except ConfigurationError as e:
        print_error("Invalid configuration", e)
        sys.exit(ExitCode.CONFIG_ERROR)

    config = deployer.config

    # Ask only when someone can answer
    if not yes and sys.stdin.isatty():
        format_deploy_plan(config)
        if not Confirm.ask(
            f"\n[cyan]{PROMPT_CONFIRM_DEPLOY.format(app=config.app, root=config.app_root)}[/cyan]"
        ):
            console.print("[yellow]Deployment cancelled[/yellow]")
            sys.exit(ExitCode.CONFIG_ERROR)

    console.print(f"\n[cyan]{EMOJI_ROCKET} Deploying {config.app} from {config.artifact.describe()}...[/cyan]")

    try:
        outcome = run_cancellable(deployer.deploy_async())
    except (asyncio.CancelledError, KeyboardInterrupt):
        console.print("\n[yellow]Deployment interrupted[/yellow]")
        current = deployer.current_release()
        console.print(f"[dim]current -> {current.id if current else 'nothing'}[/dim]")
        sys.exit(ExitCode.INTERRUPTED)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if ctx.obj and ctx.obj.debug:
            console.print_exception()
        sys.exit(ExitCode.DEPLOY_FAILED)

    format_deploy_outcome(outcome)
    sys.exit(outcome.exit_code)
