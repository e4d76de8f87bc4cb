# release_deploy/cli/decorators/__init__.py
"""CLI decorators"""

from .options import app_options, supervisor_options, confirm_option

__all__ = [
    'app_options',
    'supervisor_options',
    'confirm_option',
]
