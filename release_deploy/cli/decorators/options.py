"""Shared click options for CLI commands"""

from typing import Callable, List

import click

from ...constants import DEFAULT_ROOT, ENV_CONFIG_PATH, ENV_ROOT


def _apply(options: List[Callable], func: Callable) -> Callable:
    # Applied in reverse so --help lists options in declaration order
    for option in reversed(options):
        func = option(func)
    return func


def app_options(func: Callable) -> Callable:
    """Add --app, --root and --config

    --root and --config may also come from the environment. Values left
    unset stay None so a configuration file can supply them.
    """
    return _apply([
        click.option('--app', help='Application name (directory under root)'),
        click.option('--root', envvar=ENV_ROOT, type=click.Path(file_okay=False),
                     help=f'Parent directory of application roots [default: {DEFAULT_ROOT}]'),
        click.option('--config', 'config_path', envvar=ENV_CONFIG_PATH,
                     type=click.Path(exists=True, dir_okay=False),
                     help='YAML configuration file; flags override its values'),
    ], func)


def supervisor_options(func: Callable) -> Callable:
    """Add --systemd, --compose, --compose-project and --sudo"""
    return _apply([
        click.option('--systemd', metavar='UNIT', help='Restart this systemd unit'),
        click.option('--compose', metavar='FILE', type=click.Path(dir_okay=False),
                     help='Run this docker compose manifest'),
        click.option('--compose-project', metavar='NAME',
                     help='Compose project name [default: app name]'),
        click.option('--sudo', is_flag=True,
                     help='Prefix supervisor commands with "sudo -n"'),
    ], func)


def confirm_option(func: Callable) -> Callable:
    """Add -y/--yes"""
    return click.option('-y', '--yes', is_flag=True,
                        help='Do not ask for confirmation')(func)
