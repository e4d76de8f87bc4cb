"""Global constants for release-deploy"""

from enum import Enum
import re

APP_NAME = "release-deploy"
LOG_FORMAT = "%(message)s"

# Defaults mirrored by the CLI flags
DEFAULT_ROOT = "/var/www"
DEFAULT_KEEP = 5
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_REQUEST_TIMEOUT = 2.0  # seconds
DEFAULT_GIT_REF = "main"
DEFAULT_SHELL = "bash"

# Application root layout
RELEASES_DIR = "releases"
CURRENT_LINK_NAME = "current"
DEPLOYMENT_LOCK_FILE = ".deploy.lock"

# Well-known names inside a release directory
RELEASE_ENV_FILE = ".env"
RELEASE_COMPOSE_FILE = "docker-compose.yml"

# Git source mode
SOURCE_CHECKOUT_DIR = ".src"
BUILD_SCRIPT = "build.sh"
BUILD_OUTPUT_DIR = "dist"
VCS_METADATA_DIRS = (".git",)

# Release identifiers: UTC timestamp with microseconds, fixed width
RELEASE_ID_FORMAT = "%Y%m%d%H%M%S%f"
APP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# Recognised archive suffixes
ARCHIVE_SUFFIXES = {
    ".tar.gz": "gz",
    ".tgz": "gz",
    ".tar.bz2": "bz2",
    ".tbz": "bz2",
    ".tbz2": "bz2",
    ".tar.xz": "xz",
    ".txz": "xz",
    ".tar": "",
}


class ArtifactKind(Enum):
    ARCHIVE = "archive"
    DIRECTORY = "directory"
    GIT = "git"


class SupervisorKind(Enum):
    SYSTEMD = "systemd"
    COMPOSE = "compose"
    NONE = "none"


# Error codes
class ErrorCode:
    CONFIGURATION_ERROR = "RD001"
    STAGE_FAILURE = "RD002"
    INVALID_ARTIFACT = "RD003"
    HOOK_FAILURE = "RD004"
    SWITCH_FAILURE = "RD005"
    SUPERVISOR_FAILURE = "RD006"
    HEALTH_TIMEOUT = "RD007"
    ROLLBACK_UNAVAILABLE = "RD008"
    CONCURRENT_DEPLOYMENT = "RD009"
    RELEASE_NOT_FOUND = "RD010"


# CLI exit codes
class ExitCode:
    SUCCESS = 0
    CONFIG_ERROR = 1
    DEPLOY_FAILED = 2
    ROLLED_BACK = 3
    INTERRUPTED = 130


# Environment variables
ENV_CONFIG_PATH = "RELEASE_DEPLOY_CONFIG"
ENV_ROOT = "RELEASE_DEPLOY_ROOT"
ENV_LOG_LEVEL = "RELEASE_DEPLOY_LOG_LEVEL"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_LINK = "🔗"
EMOJI_ROCKET = "🚀"

# Messages templates
MSG_DEPLOY_SUCCESS = f"{EMOJI_SUCCESS} Deployed {{app}} release {{release}}"
MSG_ROLLED_BACK = (
    f"{EMOJI_WARNING} Release {{failed}} failed; {{app}} rolled back to {{restored}}"
)
MSG_DEPLOY_FAILED = f"{EMOJI_ERROR} Deployment of {{app}} failed: {{reason}}"
MSG_LINK_UPDATED = f"{EMOJI_LINK} Link updated: {{link}} {EMOJI_ARROW} {{target}}"

# Interactive prompts
PROMPT_CONFIRM_DEPLOY = "Deploy {app} into {root}?"
PROMPT_CONFIRM_SWITCH = "Switch {app} to release {release}?"
