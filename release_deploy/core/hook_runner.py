"""Pre/post deployment hook execution"""

import logging
from pathlib import Path
from typing import Optional

from ..api.exceptions import HookFailure
from ..constants import DEFAULT_SHELL
from ..models import HookResult
from ..utils.process_utils import CommandRunner, run_command

logger = logging.getLogger(__name__)


class HookRunner:
    """Run user supplied shell commands inside a release directory"""

    def __init__(self, shell: str = DEFAULT_SHELL, runner: CommandRunner = run_command):
        """Initialize hook runner

        Args:
            shell: Shell used as ``<shell> -lc <command>``
            runner: Command runner
        """
        self.shell = shell
        self._runner = runner

    async def run(self, command: str, working_directory: Path) -> HookResult:
        """Run a hook command

        The command inherits the deployer's environment. Output is captured
        and logged; the exit status is returned, not raised.

        Args:
            command: Shell command string
            working_directory: Directory to run in

        Returns:
            HookResult with exit status and output
        """
        logger.info(f"Running hook in {working_directory}: {command}")

        try:
            result = await self._runner(
                [self.shell, '-lc', command],
                cwd=working_directory,
                log_level=logging.INFO,
            )
        except OSError as e:
            # Shell missing or working directory gone
            logger.error(f"Could not start hook: {e}")
            return HookResult(command=command, exit_code=127, output=str(e))

        hook_result = HookResult(
            command=command,
            exit_code=result.returncode,
            output=result.output,
            duration=result.duration,
        )

        if hook_result.success:
            logger.info(f"Hook finished in {hook_result.duration:.2f}s")
        elif hook_result.exit_code < 0:
            logger.error(f"Hook terminated by signal {-hook_result.exit_code}")
        else:
            logger.error(f"Hook exited with status {hook_result.exit_code}")

        return hook_result

    async def check(self, command: str, working_directory: Path,
                    step: Optional[str] = None, release: Optional[str] = None) -> HookResult:
        """Run a hook command and raise if it fails

        Raises:
            HookFailure: On non-zero or abnormal exit
        """
        result = await self.run(command, working_directory)
        if not result.success:
            raise HookFailure(command, result.exit_code, step=step, release=release)
        return result
