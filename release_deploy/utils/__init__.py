# release_deploy/utils/__init__.py
"""Utility functions for release-deploy"""

from .file_utils import (
    detect_archive_compression,
    extract_archive,
    mirror_directory,
    atomic_symlink,
    safe_remove,
    copy_file,
    format_size,
    calculate_directory_size,
)

from .process_utils import (
    CommandResult,
    CommandRunner,
    run_command,
    command_exists,
)

from .git_utils import (
    is_git_available,
    shallow_clone,
    get_head_commit,
)

from .async_utils import (
    run_async,
    run_cancellable,
)

__all__ = [
    # File utilities
    'detect_archive_compression',
    'extract_archive',
    'mirror_directory',
    'atomic_symlink',
    'safe_remove',
    'copy_file',
    'format_size',
    'calculate_directory_size',

    # Process utilities
    'CommandResult',
    'CommandRunner',
    'run_command',
    'command_exists',

    # Git utilities
    'is_git_available',
    'shallow_clone',
    'get_head_commit',

    # Async utilities
    'run_async',
    'run_cancellable',
]
