"""Deploy service: switch, verify and roll back releases"""

import asyncio
import logging
from typing import Optional

from ..api.exceptions import (
    HealthTimeout,
    ReleaseDeployError,
    RollbackUnavailable,
    StageFailure,
    SupervisorFailure,
)
from ..core import (
    ArtifactStager,
    DeployLock,
    HealthVerifier,
    HookRunner,
    ReleaseStore,
    Supervisor,
    create_supervisor,
)
from ..models import (
    DeployOutcome,
    DeploymentConfig,
    DeployState,
    ErrorDetail,
    OutcomeStatus,
    Release,
    StepRecord,
)
from ..utils.process_utils import CommandRunner, run_command

logger = logging.getLogger(__name__)


class DeployService:
    """Runs the deployment state machine for one application

    Staging -> PreHook -> Switching -> Starting -> HealthChecking, then either
    Succeeded -> Completed (post-hook, prune) or RollingBack -> RolledBack.
    Failures before the pointer switch end in Failed with nothing to undo.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        store: Optional[ReleaseStore] = None,
        stager: Optional[ArtifactStager] = None,
        hook_runner: Optional[HookRunner] = None,
        supervisor: Optional[Supervisor] = None,
        health_verifier: Optional[HealthVerifier] = None,
        lock: Optional[DeployLock] = None,
        runner: CommandRunner = run_command
    ):
        """Initialize deploy service

        Args:
            config: Validated deployment configuration
            store: Release store (defaults to one at config.app_root)
            stager: Artifact stager
            hook_runner: Hook runner
            supervisor: Supervisor backend (defaults to the configured one)
            health_verifier: Health verifier
            lock: Application lock
            runner: Command runner shared by the default collaborators
        """
        self.config = config
        self.store = store or ReleaseStore(config.app_root)
        self.stager = stager or ArtifactStager(config, runner)
        self.hook_runner = hook_runner or HookRunner(config.shell, runner)
        self.supervisor = supervisor or create_supervisor(config, runner)
        self.health_verifier = health_verifier or HealthVerifier(
            poll_interval=config.poll_interval,
            request_timeout=config.request_timeout
        )
        self.lock = lock or DeployLock(config.lock_path)

    async def deploy(self) -> DeployOutcome:
        """Deploy a new release

        Returns:
            DeployOutcome with status COMPLETED, ROLLED_BACK or FAILED

        Raises:
            asyncio.CancelledError: If the run was cancelled; the pointer keeps
                whatever value was last committed
        """
        outcome = DeployOutcome(app=self.config.app)

        try:
            with self.lock:
                self.store.ensure_layout()
                return await self._run(outcome)
        except ReleaseDeployError as e:
            # Lock held elsewhere, or the application root is unusable
            logger.error(str(e))
            return outcome.complete(
                OutcomeStatus.FAILED, DeployState.FAILED, ErrorDetail.from_exception(e)
            )
        except OSError as e:
            logger.error(f"Cannot prepare {self.config.app_root}: {e}")
            return outcome.complete(
                OutcomeStatus.FAILED, DeployState.FAILED, ErrorDetail.from_exception(e)
            )
        except asyncio.CancelledError:
            logger.warning(
                f"Deployment of {self.config.app} cancelled during {outcome.state.value}; "
                f"current pointer left at {self._current_id() or 'nothing'}"
            )
            raise

    async def _run(self, outcome: DeployOutcome) -> DeployOutcome:
        previous = self.store.get_current()
        outcome.previous_release_id = previous.id if previous else None

        # Staging
        step = outcome.enter(DeployState.STAGING)
        release: Optional[Release] = None
        try:
            release = self.store.create_release()
            outcome.release_id = release.id
            await self.stager.stage(release)
        except StageFailure as e:
            return self._fail(outcome, step, e)
        except OSError as e:
            return self._fail(outcome, step, StageFailure(f"Could not create release: {e}"))
        step.finish(True)

        # Pre-hook
        if self.config.pre_hook:
            step = outcome.enter(DeployState.PRE_HOOK)
            try:
                await self.hook_runner.check(
                    self.config.pre_hook, release.path,
                    step=DeployState.PRE_HOOK.value, release=release.id
                )
            except ReleaseDeployError as e:
                return self._fail(outcome, step, e)
            step.finish(True)

        # Switching: point of no return
        step = outcome.enter(DeployState.SWITCHING)
        try:
            self.store.set_current(release)
        except ReleaseDeployError as e:
            return self._fail(outcome, step, e)
        step.finish(True, f"current -> {release.id}")

        # Starting
        step = outcome.enter(DeployState.STARTING)
        try:
            await self.supervisor.start(release)
        except SupervisorFailure as e:
            step.finish(False, str(e))
            logger.error(f"Failed to start release {release.id}: {e}")
            return await self._rollback(outcome, release, e, DeployState.STARTING)
        step.finish(True, self.supervisor.describe())

        # Health checking
        step = outcome.enter(DeployState.HEALTH_CHECKING)
        health = await self.health_verifier.check(self.config.health_url, self.config.timeout)
        outcome.health = health
        if not health.success:
            error = HealthTimeout(
                self.config.health_url, self.config.timeout, health.attempts,
                health.last_error or (f"HTTP {health.last_status}" if health.last_status else None),
                release=release.id
            )
            step.finish(False, str(error))
            logger.error(f"Health check failed; rolling back release {release.id}")
            return await self._rollback(outcome, release, error, DeployState.HEALTH_CHECKING)
        step.finish(True, f"{health.attempts} attempt(s)")

        outcome.enter(DeployState.SUCCEEDED).finish(True)
        return await self._finish_success(outcome, release)

    async def _finish_success(self, outcome: DeployOutcome, release: Release) -> DeployOutcome:
        if self.config.post_hook:
            hook = await self.hook_runner.run(self.config.post_hook, release.path)
            if not hook.success:
                message = f"Post-deploy hook exited with status {hook.exit_code}"
                logger.warning(message)
                outcome.add_warning(message)

        logger.info(f"Cleaning old releases (keep {self.config.keep})")
        try:
            outcome.prune = self.store.prune(self.config.keep)
        except OSError as e:
            message = f"Pruning old releases failed: {e}"
            logger.warning(message)
            outcome.add_warning(message)
        else:
            for release_id, reason in outcome.prune.failed.items():
                outcome.add_warning(f"Could not prune release {release_id}: {reason}")

        logger.info(f"Deployment of {self.config.app} completed with release {release.id}")
        outcome.enter(DeployState.COMPLETED).finish(True)
        return outcome.complete(OutcomeStatus.COMPLETED, DeployState.COMPLETED)

    async def _rollback(self, outcome: DeployOutcome, failed: Release,
                        cause: ReleaseDeployError, failed_state: DeployState) -> DeployOutcome:
        cause_detail = ErrorDetail.from_exception(cause, failed_state)
        step = outcome.enter(DeployState.ROLLING_BACK)

        target = self.store.previous_release(failed)
        if target is None:
            error = RollbackUnavailable(failed.id, cause=cause.message)
            logger.error(f"{error}; current pointer left at {failed.id}")
            step.finish(False, str(error))
            outcome.add_warning(f"Original failure: {cause}")
            return outcome.complete(
                OutcomeStatus.FAILED, DeployState.FAILED,
                ErrorDetail.from_exception(error, DeployState.ROLLING_BACK)
            )

        try:
            self.store.set_current(target)
        except ReleaseDeployError as e:
            logger.error(f"Could not restore release {target.id}: {e}")
            step.finish(False, str(e))
            outcome.add_warning(f"Rollback to {target.id} failed: {e}")
            return outcome.complete(OutcomeStatus.FAILED, DeployState.FAILED, cause_detail)

        outcome.restored_release_id = target.id
        logger.warning(f"Rolled back {self.config.app} to release {target.id}")

        try:
            await self.supervisor.start(target, rollback=True)
        except SupervisorFailure as e:
            message = f"Restart of restored release {target.id} failed: {e}"
            logger.error(message)
            outcome.add_warning(message)

        step.finish(True, f"current -> {target.id}")
        outcome.enter(DeployState.ROLLED_BACK).finish(True)
        return outcome.complete(OutcomeStatus.ROLLED_BACK, DeployState.ROLLED_BACK, cause_detail)

    def _fail(self, outcome: DeployOutcome, step: StepRecord, error: Exception) -> DeployOutcome:
        state = step.state
        step.finish(False, str(error))
        logger.error(f"Deployment failed during {state.value}: {error}")
        if outcome.release_id:
            logger.info(f"Release {outcome.release_id} left in place for inspection")
        return outcome.complete(
            OutcomeStatus.FAILED, DeployState.FAILED, ErrorDetail.from_exception(error, state)
        )

    def _current_id(self) -> Optional[str]:
        try:
            current = self.store.get_current()
        except OSError:
            return None
        return current.id if current else None

    async def switch(self, release_id: str, restart: bool = True) -> Release:
        """Point current at an existing release, outside of a deploy

        Args:
            release_id: Release to make live
            restart: Re-invoke the supervisor for it

        Returns:
            The release now live

        Raises:
            ReleaseNotFoundError: If the release does not exist
            ConcurrentDeploymentDetected: If a deployment is running
            SupervisorFailure: If the restart fails (the pointer stays switched)
        """
        with self.lock:
            release = self.store.get_release(release_id)
            self.store.set_current(release)
            logger.info(f"Switched {self.config.app} to release {release.id}")
            if restart:
                await self.supervisor.start(release, rollback=True)
        return release
