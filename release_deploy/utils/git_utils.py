"""Git operation utilities"""

import subprocess
from pathlib import Path
from typing import List, Optional

from .process_utils import CommandResult, CommandRunner, command_exists, run_command


def is_git_available() -> bool:
    """
    Check if the git executable is installed

    Returns:
        True if git is on PATH
    """
    return command_exists('git')


def shallow_clone_args(repo_url: str, ref: str, destination: Path) -> List[str]:
    """
    Build the command line for a depth-1 clone of a branch or tag

    Args:
        repo_url: Repository URL
        ref: Branch or tag name
        destination: Checkout directory

    Returns:
        Argument list
    """
    return ['git', 'clone', '--depth', '1', '--branch', ref, repo_url, str(destination)]


async def shallow_clone(repo_url: str,
                        ref: str,
                        destination: Path,
                        runner: CommandRunner = run_command) -> CommandResult:
    """
    Fetch a shallow copy of a ref

    Args:
        repo_url: Repository URL
        ref: Branch or tag name
        destination: Checkout directory (must not exist)
        runner: Command runner

    Returns:
        CommandResult of the clone
    """
    return await runner(shallow_clone_args(repo_url, ref, destination))


def get_head_commit(path: Path) -> Optional[str]:
    """
    Get the commit hash checked out in a repository

    Args:
        path: Repository path

    Returns:
        Commit hash or None
    """
    try:
        result = subprocess.run(
            ['git', 'rev-parse', 'HEAD'],
            cwd=path,
            capture_output=True,
            text=True,
            check=True
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
