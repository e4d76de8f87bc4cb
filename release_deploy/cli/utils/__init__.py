"""CLI utility functions"""

from .output import (
    format_deploy_plan,
    format_deploy_outcome,
    format_release_list,
    print_error,
    print_warning,
    print_success,
)

__all__ = [

    # Output utilities
    'format_deploy_plan',
    'format_deploy_outcome',
    'format_release_list',
    'print_error',
    'print_warning',
    'print_success',
]
