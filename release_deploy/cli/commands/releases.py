"""Release listing command"""

import json
import sys

import click
from rich.console import Console

from ..decorators import app_options
from ..utils.output import format_release_list, print_error
from ...api import Deployer
from ...api.exceptions import ConfigurationError
from ...constants import ExitCode

console = Console()


@click.command()
@app_options
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
def releases(app, root, config_path, as_json):
    """List releases of an application, newest first

    The live release (the target of <root>/<app>/current) is marked with *.

    Examples:

        release-deploy releases --app api
        release-deploy releases --app api --root /srv --json
    """
    try:
        deployer = Deployer.from_options(config_path, for_deploy=False, app=app, root=root)
    except ConfigurationError as e:
        print_error("Invalid configuration", e)
        sys.exit(ExitCode.CONFIG_ERROR)

    items = deployer.list_releases()
    current = deployer.current_release()

    if as_json:
        click.echo(json.dumps({
            "app": deployer.config.app,
            "current": current.id if current else None,
            "releases": [r.to_dict() for r in items],
        }, indent=2))
        return

    console.print(f"[bold]{deployer.config.app_root}[/bold]")
    format_release_list(items, current)
    if current and not current.exists:
        console.print(f"[red]current points at a missing release: {current.id}[/red]")
