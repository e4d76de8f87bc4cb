"""Subprocess helpers built on asyncio"""

import asyncio
import logging
import shlex
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, Sequence, Union

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished subprocess"""
    args: Sequence[str]
    returncode: int
    output: str = ""
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return shlex.join(self.args)

    def tail(self, lines: int = 20) -> str:
        """Last lines of output, for error reports"""
        return "\n".join(self.output.strip().splitlines()[-lines:])


# Signature shared by run_command and the fakes used in tests
CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(args: Sequence[str],
                      cwd: Optional[Union[str, Path]] = None,
                      env: Optional[Dict[str, str]] = None,
                      log_level: int = logging.DEBUG) -> CommandResult:
    """
    Run a command and capture its merged stdout and stderr

    No timeout is imposed. If the awaiting task is cancelled the child is
    terminated before the cancellation propagates.

    Args:
        args: Program and arguments
        cwd: Working directory
        env: Environment (inherits the current one if None)
        log_level: Level used to log each output line

    Returns:
        CommandResult with exit status and output

    Raises:
        FileNotFoundError: If the program does not exist
    """
    command = shlex.join(args)
    logger.debug(f"Running: {command} (cwd={cwd or '.'})")
    started = time.monotonic()

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd) if cwd else None,
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )

    try:
        stdout, _ = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                process.kill()
        raise

    output = stdout.decode(errors="replace") if stdout else ""
    for line in output.splitlines():
        logger.log(log_level, f"[{args[0]}] {line}")

    result = CommandResult(
        args=list(args),
        returncode=process.returncode,
        output=output,
        duration=time.monotonic() - started,
    )
    if not result.success:
        logger.debug(f"Command exited with {result.returncode}: {command}")
    return result


def command_exists(name: str) -> bool:
    """
    Check whether an executable is on PATH

    Args:
        name: Program name

    Returns:
        True if found
    """
    return shutil.which(name) is not None
