# release_deploy/core/artifact_stager.py
"""Materialize a release's file tree"""

import logging
import os
import tarfile
from pathlib import Path
from typing import Optional

from ..api.exceptions import InvalidArtifact, StageFailure
from ..constants import (
    ArtifactKind,
    BUILD_OUTPUT_DIR,
    BUILD_SCRIPT,
    RELEASE_ENV_FILE,
    SOURCE_CHECKOUT_DIR,
    VCS_METADATA_DIRS,
)
from ..models import DeploymentConfig, Release
from ..utils.file_utils import (
    calculate_directory_size,
    copy_file,
    detect_archive_compression,
    extract_archive,
    format_size,
    mirror_directory,
    safe_remove,
)
from ..utils.git_utils import get_head_commit, is_git_available, shallow_clone
from ..utils.process_utils import CommandRunner, run_command

logger = logging.getLogger(__name__)


class ArtifactStager:
    """Populate a release directory from an archive, a directory or git

    A partially staged release is left on disk for inspection when staging
    fails; the controller never links it.
    """

    def __init__(self, config: DeploymentConfig, runner: CommandRunner = run_command):
        """Initialize artifact stager

        Args:
            config: Deployment configuration
            runner: Command runner used for git and build steps
        """
        self.config = config
        self._runner = runner

    async def stage(self, release: Release) -> Release:
        """Fill the release directory

        Args:
            release: Freshly created, empty release

        Returns:
            The populated release

        Raises:
            InvalidArtifact: If the artifact path is unusable
            StageFailure: On any I/O or subprocess error
        """
        source = self.config.artifact
        if source is None:
            raise StageFailure("No artifact source configured", release=release.id)

        logger.info(f"Staging release {release.id} from {source.describe()}")

        try:
            if source.kind == ArtifactKind.GIT:
                await self._stage_from_git(release, source.repo_url, source.ref)
            else:
                self._stage_from_path(release, Path(source.path))
            self._inject_env_file(release)
        except StageFailure:
            raise
        except (OSError, tarfile.TarError, EOFError) as e:
            raise StageFailure(
                f"Failed to stage release: {e}",
                release=release.id,
                source=source.describe()
            ) from e

        size = format_size(calculate_directory_size(release.path))
        logger.info(f"Release {release.id} staged at {release.path} ({size})")
        return release

    def _stage_from_path(self, release: Release, path: Path) -> None:
        if path.is_dir():
            logger.debug(f"Mirroring directory {path} into {release.path}")
            mirror_directory(path, release.path)
            return

        compression = detect_archive_compression(path)
        if compression is None:
            raise InvalidArtifact(str(path), release=release.id)

        logger.debug(f"Extracting archive {path} into {release.path}")
        extract_archive(path, release.path, compression)

    async def _stage_from_git(self, release: Release, repo_url: str, ref: str) -> None:
        if not is_git_available():
            raise StageFailure("git not found", release=release.id)

        checkout = release.path / SOURCE_CHECKOUT_DIR
        result = await shallow_clone(repo_url, ref, checkout, runner=self._runner)
        if not result.success:
            raise StageFailure(
                "git clone failed",
                release=release.id,
                command=result.command,
                exit_code=result.returncode,
                output=result.tail(5) or None
            )

        commit = get_head_commit(checkout)
        if commit:
            logger.info(f"Checked out {ref} at {commit[:12]}")

        build_script = checkout / BUILD_SCRIPT
        if build_script.is_file() and os.access(build_script, os.X_OK):
            logger.info(f"Running build script {BUILD_SCRIPT}")
            build = await self._runner([f"./{BUILD_SCRIPT}"], cwd=checkout, log_level=logging.INFO)
            if not build.success:
                raise StageFailure(
                    "Build script failed",
                    release=release.id,
                    command=build.command,
                    exit_code=build.returncode,
                    output=build.tail(5) or None
                )

        build_output = checkout / BUILD_OUTPUT_DIR
        if build_output.is_dir():
            logger.debug(f"Using build output {build_output}")
            mirror_directory(build_output, release.path, top_level_exclude=[SOURCE_CHECKOUT_DIR])
        else:
            mirror_directory(
                checkout,
                release.path,
                exclude=VCS_METADATA_DIRS,
                top_level_exclude=[SOURCE_CHECKOUT_DIR]
            )

        if not safe_remove(checkout):
            raise StageFailure("Could not remove source checkout", release=release.id,
                               path=str(checkout))

    def _inject_env_file(self, release: Release) -> Optional[Path]:
        env_file = self.config.env_file
        if not env_file:
            return None

        env_path = Path(env_file)
        if not env_path.is_file():
            logger.warning(f"Environment file {env_path} not found; skipping")
            return None

        destination = copy_file(env_path, release.path / RELEASE_ENV_FILE)
        logger.info(f"Copied environment file to {destination}")
        return destination
