# release_deploy/cli/commands/doctor.py
"""System diagnostic command"""

import os
import sys
from pathlib import Path
from typing import List

import click
from rich import box
from rich.console import Console
from rich.table import Table

from ...constants import DEFAULT_ROOT, DEFAULT_SHELL, ENV_ROOT
from ...core.supervisor import ComposeSupervisor
from ...utils.git_utils import is_git_available
from ...utils.process_utils import command_exists

console = Console()


class DiagnosticCheck:
    """Base class for diagnostic checks"""

    # Required checks fail the command; optional ones only report
    required = True

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.passed = False
        self.message = ""
        self.fixes: List[str] = []

    def run(self) -> 'DiagnosticCheck':
        """Run the diagnostic check"""
        raise NotImplementedError


class ShellCheck(DiagnosticCheck):
    """Hooks run through a login shell"""

    def __init__(self, shell: str = DEFAULT_SHELL):
        super().__init__("Shell", f"'{shell}' available for hooks")
        self.shell = shell

    def run(self):
        self.passed = command_exists(self.shell)
        if self.passed:
            self.message = f"{self.shell} found"
        else:
            self.message = f"{self.shell} not found on PATH"
            self.fixes = [f"Install {self.shell}"]
        return self


class GitCheck(DiagnosticCheck):
    """Needed for --repo sources"""

    required = False

    def __init__(self):
        super().__init__("Git", "git available for --repo sources")

    def run(self):
        self.passed = is_git_available()
        self.message = "git found" if self.passed else "git not found; --repo will fail"
        return self


class SystemdCheck(DiagnosticCheck):
    """Needed for --systemd"""

    required = False

    def __init__(self):
        super().__init__("systemd", "systemctl available for --systemd")

    def run(self):
        self.passed = command_exists("systemctl")
        self.message = "systemctl found" if self.passed else "systemctl not found; --systemd will fail"
        return self


class ComposeCheck(DiagnosticCheck):
    """Needed for --compose"""

    required = False

    def __init__(self):
        super().__init__("Compose", "docker compose available for --compose")

    def run(self):
        if command_exists("docker") or command_exists("docker-compose"):
            self.passed = True
            self.message = f"using '{' '.join(ComposeSupervisor.compose_command())}'"
        else:
            self.passed = False
            self.message = "docker not found; --compose will fail"
        return self


class RootCheck(DiagnosticCheck):
    """Check the root directory is writable"""

    def __init__(self, root: Path):
        super().__init__("Root", f"{root} is writable")
        self.root = root

    def run(self):
        # The root is created on first deploy, so check the nearest existing parent
        path = self.root
        while not path.exists() and path != path.parent:
            path = path.parent

        if not path.is_dir():
            self.passed = False
            self.message = f"{path} is not a directory"
        elif os.access(path, os.W_OK | os.X_OK):
            self.passed = True
            self.message = f"{path} is writable"
        else:
            self.passed = False
            self.message = f"No write permission: {path}"
            self.fixes = [f"Run as a user that can write {path}, or pass --root"]
        return self


@click.command()
@click.option('--root', envvar=ENV_ROOT, default=DEFAULT_ROOT, show_default=True,
              type=click.Path(file_okay=False), help='Parent directory of application roots')
def doctor(root):
    """Run system diagnostics

    Checks the tools a deployment relies on and that the root directory
    can be written. Missing git, systemctl or docker only matter for the
    source and supervisor that need them.

    Examples:

        release-deploy doctor
        release-deploy doctor --root /srv/apps
    """
    console.print("[bold]Release Deploy Diagnostics[/bold]\n")

    checks = [
        ShellCheck(),
        RootCheck(Path(root)),
        GitCheck(),
        SystemdCheck(),
        ComposeCheck(),
    ]

    failed_checks = []
    for diagnostic_check in checks:
        diagnostic_check.run()
        if not diagnostic_check.passed and diagnostic_check.required:
            failed_checks.append(diagnostic_check)

    table = Table(title="Diagnostic Results", box=box.ROUNDED)
    table.add_column("Check", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Details")

    for diagnostic_check in checks:
        if diagnostic_check.passed:
            status = "[green]✓ PASS[/green]"
        elif diagnostic_check.required:
            status = "[red]✗ FAIL[/red]"
        else:
            status = "[yellow]- SKIP[/yellow]"
        table.add_row(diagnostic_check.name, status, diagnostic_check.message)

    console.print(table)

    if failed_checks:
        console.print(f"\n[red]{len(failed_checks)} check(s) failed[/red]")
        for diagnostic_check in failed_checks:
            for fix in diagnostic_check.fixes:
                console.print(f"  • {fix}")
        sys.exit(1)

    console.print("\n[green]All required checks passed![/green]")
