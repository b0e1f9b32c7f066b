# ABOUTME: Runtime dependency checks for server commands and guided remediation.
# ABOUTME: Installers stream output line by line; presence is re-checked after every attempt.
import logging
import re
import subprocess
import sys
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from mcpi.errors import DependencyMissing
from mcpi.models import ServerDefinition
from mcpi.utils.validation import is_command_available

logger = logging.getLogger(__name__)

OSName = str  # 'mac' | 'linux' | 'windows'

MAX_REASON_LENGTH = 200


@dataclass(frozen=True)
class CommandInstallation:
    """How to obtain one runtime command.

    ABOUTME: instructions are shown to the user, auto_install commands are run
    ABOUTME: Both are keyed by OS name: mac, linux, windows
    """
    name: str
    description: str
    instructions: Mapping[OSName, tuple[str, ...]]
    auto_install: Mapping[OSName, tuple[str, ...]] = field(default_factory=dict)


_NODE_MANUAL = {
    "mac": ("Install Node.js from https://nodejs.org/", "Or via Homebrew: brew install node"),
    "linux": (
        "Install Node.js via package manager:",
        "  Ubuntu/Debian: sudo apt install nodejs npm",
        "  CentOS/RHEL: sudo yum install nodejs npm",
        "  Or from https://nodejs.org/",
    ),
    "windows": (
        "Install Node.js from https://nodejs.org/",
        "Or via Chocolatey: choco install nodejs",
        "Or via Winget: winget install OpenJS.NodeJS",
    ),
}
_NODE_AUTO = {
    "mac": ("brew install node",),
    "windows": ("winget install --silent OpenJS.NodeJS", "choco install -y nodejs"),
}

_UV_MANUAL = {
    "mac": (
        "Install via Homebrew: brew install uv",
        "Or via curl: curl -LsSf https://astral.sh/uv/install.sh | sh",
    ),
    "linux": (
        "Install via curl: curl -LsSf https://astral.sh/uv/install.sh | sh",
        "Or via pip: pip install uv",
    ),
    "windows": (
        'Install via PowerShell: powershell -c "irm https://astral.sh/uv/install.ps1 | iex"',
        "Or via Scoop: scoop install uv",
        "Or via pip: pip install uv",
    ),
}
_UV_AUTO = {
    "mac": ("brew install uv", "curl -LsSf https://astral.sh/uv/install.sh | sh"),
    "linux": ("curl -LsSf https://astral.sh/uv/install.sh | sh", "pip install uv"),
    "windows": (
        'powershell -ExecutionPolicy ByPass -c "irm https://astral.sh/uv/install.ps1 | iex"',
        "pip install uv",
    ),
}

_PYTHON_MANUAL = {
    "mac": ("Install Python from https://python.org/", "Or via Homebrew: brew install python"),
    "linux": (
        "Install Python via package manager:",
        "  Ubuntu/Debian: sudo apt install python3 python3-pip",
        "  CentOS/RHEL: sudo yum install python3 python3-pip",
    ),
    "windows": (
        "Install Python from https://python.org/",
        "Or via Chocolatey: choco install python",
        "pip is included with Python 3.4+",
    ),
}
_PYTHON_AUTO = {
    "mac": ("brew install python",),
    "windows": ("winget install --silent Python.Python.3.12",),
}

# ABOUTME: Immutable installer table keyed by command name
COMMAND_INSTALLATIONS: Mapping[str, CommandInstallation] = MappingProxyType({
    "npx": CommandInstallation(
        "Node.js & npm", "JavaScript runtime and package manager", _NODE_MANUAL, _NODE_AUTO
    ),
    "node": CommandInstallation("Node.js", "JavaScript runtime", _NODE_MANUAL, _NODE_AUTO),
    "uvx": CommandInstallation(
        "uv (Python package manager)", "Modern Python package and project manager",
        _UV_MANUAL, _UV_AUTO,
    ),
    "uv": CommandInstallation(
        "uv (Python package manager)", "Modern Python package and project manager",
        _UV_MANUAL, _UV_AUTO,
    ),
    "docker": CommandInstallation(
        "Docker",
        "Container platform",
        {
            "mac": (
                "Install Docker Desktop from https://docker.com/products/docker-desktop/",
                "Or via Homebrew: brew install --cask docker",
            ),
            "linux": (
                "Install Docker Engine:",
                "  Ubuntu: sudo apt install docker.io",
                "  CentOS: sudo yum install docker",
                "Start Docker service: sudo systemctl start docker",
                "Add user to docker group: sudo usermod -aG docker $USER",
            ),
            "windows": (
                "Install Docker Desktop from https://docker.com/products/docker-desktop/",
                "Or via Winget: winget install Docker.DockerDesktop",
            ),
        },
        {"mac": ("brew install --cask docker",)},
    ),
    "pip": CommandInstallation(
        "Python & pip", "Python runtime and package installer", _PYTHON_MANUAL, _PYTHON_AUTO
    ),
    "python": CommandInstallation("Python", "Python runtime", _PYTHON_MANUAL, _PYTHON_AUTO),
})

# ABOUTME: Ordered (pattern, message) table; first match classifies the failure
FAULT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"permission denied|EACCES|access is denied|operation not permitted", re.I),
        "Permission denied - try running with elevated privileges",
    ),
    (
        re.compile(r"command not found|is not recognized as an internal or external command", re.I),
        "Installer command not found on this system",
    ),
    (
        re.compile(
            r"could not resolve host|network is unreachable|connection (refused|timed out|reset)"
            r"|ETIMEDOUT|ENOTFOUND|temporary failure in name resolution",
            re.I,
        ),
        "Network failure - check your internet connection",
    ),
    (
        re.compile(r"no space left on device|ENOSPC|insufficient disk space|disk full", re.I),
        "Insufficient disk space",
    ),
    (
        re.compile(r"already installed|is already the newest version", re.I),
        "Already installed but not found on PATH - restart your shell",
    ),
    (
        re.compile(r"certificate|SSL", re.I),
        "Certificate error - check proxy or TLS settings",
    ),
)


def current_os(platform: str | None = None) -> OSName:
    """Map sys.platform to the installer table's OS names."""
    platform = platform or sys.platform
    if platform == "darwin":
        return "mac"
    if platform == "win32":
        return "windows"
    return "linux"


def classify_failure(output: str, returncode: int | None = None) -> str:
    """Turn captured installer output into a short failure reason.

    ABOUTME: Known fault patterns first, then the first non-empty line

    Examples:
        >>> classify_failure("npm ERR! Error: EACCES: permission denied")
        'Permission denied - try running with elevated privileges'
    """
    for pattern, message in FAULT_PATTERNS:
        if pattern.search(output):
            return message

    for line in output.splitlines():
        line = line.strip()
        if line:
            return line[:MAX_REASON_LENGTH]

    if returncode is not None:
        return f"Installer exited with code {returncode}"
    return "Installation failed"


@dataclass(frozen=True)
class MissingCommand:
    """A required command that isn't on PATH.

    ABOUTME: remediation is None when the command is not in the installer table
    """
    command: str
    remediation: CommandInstallation | None = None


@dataclass
class DependencyCheck:
    missing: list[MissingCommand] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


@dataclass
class RemediationResult:
    """Outcome of remediate().

    ABOUTME: declined and failed are kept apart so callers can advise differently
    ABOUTME: manual maps each unresolved command to its manual instructions
    """
    installed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    declined: list[str] = field(default_factory=list)
    manual: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.declined and not self.manual

    def raise_for_missing(self) -> None:
        """Raise DependencyMissing for the first unresolved command, if any."""
        for command, reason in self.failed.items():
            raise DependencyMissing(
                command, DependencyMissing.FAILED, reason, self.manual.get(command)
            )
        for command in self.declined:
            raise DependencyMissing(
                command, DependencyMissing.DECLINED, instructions=self.manual.get(command)
            )
        for command, instructions in self.manual.items():
            raise DependencyMissing(
                command, DependencyMissing.NO_AUTO_INSTALLER, instructions=instructions
            )


class DependencyValidator:
    """Checks server commands and drives guided installation.

    ABOUTME: Installer table, platform and lookup are injected
    ABOUTME: One installer subprocess at a time, each runs until it exits
    """

    def __init__(
        self,
        installations: Mapping[str, CommandInstallation] = COMMAND_INSTALLATIONS,
        platform: str | None = None,
        command_exists: Callable[[str], bool] = is_command_available,
    ) -> None:
        self._installations = installations
        self._os = current_os(platform)
        self._command_exists = command_exists

    def check(self, server: ServerDefinition) -> DependencyCheck:
        """Report whether the server's declared command is available."""
        result = DependencyCheck()
        command = server.installation.command
        if not command or (server.is_remote and server.installation.url):
            return result

        if not self._command_exists(command):
            result.missing.append(MissingCommand(command, self._installations.get(command)))
        return result

    def manual_instructions(self, missing: MissingCommand) -> list[str]:
        """Human-readable install steps for the running OS."""
        info = missing.remediation
        if info is None:
            return [f"Install '{missing.command}' and make sure it is on your PATH"]
        lines = [f"Missing command: {missing.command} ({info.name})", f"  {info.description}"]
        lines.extend(f"  {step}" for step in info.instructions.get(self._os, ()))
        return lines

    def remediate(
        self,
        missing: list[MissingCommand],
        interactive: bool,
        confirm: Callable[[str], bool] | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> RemediationResult:
        """Try to install each missing command.

        ABOUTME: Without auto-installers for this OS only manual steps are returned
        ABOUTME: Non-interactive runs never spawn installers (recorded as declined)

        Args:
            missing: Commands reported by check()
            interactive: Whether the user can be asked for confirmation
            confirm: Callback asked before running installers
            on_output: Receives installer output lines as they arrive

        Returns:
            RemediationResult
        """
        result = RemediationResult()

        for item in missing:
            commands = ()
            if item.remediation is not None:
                commands = item.remediation.auto_install.get(self._os, ())

            if not commands:
                result.manual[item.command] = self.manual_instructions(item)
                continue

            prompt = f"'{item.command}' is required. Install it now using: {commands[0]}?"
            if not interactive or confirm is None or not confirm(prompt):
                logger.info(f"Installation of '{item.command}' declined")
                result.declined.append(item.command)
                result.manual[item.command] = self.manual_instructions(item)
                continue

            reason = self._run_installers(item.command, commands, on_output)
            if reason is None:
                result.installed.append(item.command)
            else:
                result.failed[item.command] = reason
                result.manual[item.command] = self.manual_instructions(item)

        return result

    def _run_installers(
        self,
        command: str,
        installers: tuple[str, ...],
        on_output: Callable[[str], None] | None,
    ) -> str | None:
        """Run installers in order until the command resolves.

        Returns:
            None on success, otherwise the last failure reason
        """
        reason = "Installation failed"
        for installer in installers:
            logger.info(f"Installing '{command}' with: {installer}")
            output, returncode = self._stream(installer, on_output)

            if self._command_exists(command):
                logger.info(f"'{command}' is now available")
                return None

            reason = classify_failure(output, returncode)
            logger.warning(f"Installer '{installer}' did not provide '{command}': {reason}")
        return reason

    def _stream(
        self,
        installer: str,
        on_output: Callable[[str], None] | None,
    ) -> tuple[str, int | None]:
        lines: list[str] = []
        try:
            process = subprocess.Popen(
                installer,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            return str(e), None

        assert process.stdout is not None
        with process.stdout:
            for line in process.stdout:
                lines.append(line)
                if on_output is not None:
                    on_output(line.rstrip("\n"))

        returncode = process.wait()
        return "".join(lines), returncode
