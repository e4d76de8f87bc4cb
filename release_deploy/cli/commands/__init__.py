# release_deploy/cli/commands/__init__.py
"""CLI commands"""

from . import deploy
from . import releases
from . import switch
from . import doctor

__all__ = [
    "deploy",
    "releases",
    "switch",
    "doctor",
]
