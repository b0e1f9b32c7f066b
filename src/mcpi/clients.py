# Client application table and detection
import json
import logging
import os
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from mcpi.models import ClientDescriptor, ClientInfo
from mcpi.utils.validation import is_command_available

logger = logging.getLogger(__name__)

_CLAUDE_DESKTOP = "claude_desktop_config.json"

# ABOUTME: Immutable client table; order is the detection/reporting order
# ABOUTME: Path templates use ~ and %APPDATA%, expanded per platform
DEFAULT_CLIENTS: tuple[ClientDescriptor, ...] = (
    ClientDescriptor(
        type="claude-desktop",
        name="Claude Desktop",
        config_paths={
            "darwin": (f"~/Library/Application Support/Claude/{_CLAUDE_DESKTOP}",),
            "linux": (f"~/.config/Claude/{_CLAUDE_DESKTOP}", f"~/.claude/{_CLAUDE_DESKTOP}"),
            "win32": (f"%APPDATA%/Claude/{_CLAUDE_DESKTOP}",),
        },
        auto_create=True,
    ),
    ClientDescriptor(
        type="claude-code",
        name="Claude Code",
        config_paths={
            "darwin": ("~/.claude.json",),
            "linux": ("~/.claude.json",),
            "win32": ("~/.claude.json",),
        },
        detect_command="claude",
    ),
    ClientDescriptor(
        type="cursor",
        name="Cursor",
        config_paths={
            "darwin": ("~/.cursor/mcp.json",),
            "linux": ("~/.cursor/mcp.json",),
            "win32": ("~/.cursor/mcp.json",),
        },
        detect_command="cursor",
        auto_create=True,
    ),
    ClientDescriptor(
        type="gemini",
        name="Gemini CLI",
        config_paths={
            "darwin": ("~/.gemini/settings.json",),
            "linux": ("~/.gemini/settings.json",),
            "win32": ("~/.gemini/settings.json",),
        },
        detect_command="gemini",
    ),
    ClientDescriptor(
        type="vscode",
        name="Visual Studio Code",
        config_paths={
            "darwin": ("~/Library/Application Support/Code/User/mcp.json",),
            "linux": ("~/.config/Code/User/mcp.json",),
            "win32": ("%APPDATA%/Code/User/mcp.json",),
        },
        servers_key="servers",
        detect_command="code",
    ),
    ClientDescriptor(
        type="windsurf",
        name="Windsurf",
        config_paths={
            "darwin": ("~/.codeium/windsurf/mcp_config.json",),
            "linux": ("~/.codeium/windsurf/mcp_config.json",),
            "win32": ("~/.codeium/windsurf/mcp_config.json",),
        },
        detect_command="windsurf",
    ),
    ClientDescriptor(
        type="kiro",
        name="Kiro",
        config_paths={
            "darwin": ("~/.kiro/settings/mcp.json",),
            "linux": ("~/.kiro/settings/mcp.json",),
        },
    ),
    ClientDescriptor(
        type="codex",
        name="Codex CLI",
        config_paths={
            "darwin": ("~/.codex/config.toml",),
            "linux": ("~/.codex/config.toml",),
            "win32": ("~/.codex/config.toml",),
        },
        servers_key="mcp_servers",
        detect_command="codex",
        config_format="toml",
    ),
)

# ABOUTME: Short names accepted in place of client types
CLIENT_ALIASES: Mapping[str, str] = MappingProxyType({
    "claude": "claude-code",
    "code": "vscode",
})


def expand_path_template(template: str, environ: Mapping[str, str] | None = None) -> Path:
    """Expand ~ and %APPDATA% in a client path template.

    ABOUTME: %APPDATA% falls back to ~/AppData/Roaming when unset
    """
    env = os.environ if environ is None else environ
    if "%APPDATA%" in template:
        appdata = env.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        template = template.replace("%APPDATA%", appdata)
    return Path(template).expanduser()


class ClientLocator:
    """Enumerates supported clients and resolves their config paths.

    ABOUTME: Descriptor table is passed in, never mutated
    ABOUTME: command_exists is injectable so detection can be tested
    """

    def __init__(
        self,
        clients: tuple[ClientDescriptor, ...] = DEFAULT_CLIENTS,
        platform: str | None = None,
        command_exists: Callable[[str], bool] = is_command_available,
        aliases: Mapping[str, str] = CLIENT_ALIASES,
    ) -> None:
        self._clients = {client.type: client for client in clients}
        self._platform = platform or sys.platform
        self._command_exists = command_exists
        self._aliases = aliases

    @property
    def platform(self) -> str:
        return self._platform

    def supported_clients(self) -> list[str]:
        return list(self._clients)

    def is_supported(self, client_type: str) -> bool:
        return self.resolve_alias(client_type) in self._clients

    def resolve_alias(self, name: str) -> str:
        return self._aliases.get(name, name)

    def descriptor(self, client_type: str) -> ClientDescriptor | None:
        return self._clients.get(self.resolve_alias(client_type))

    def candidate_paths(self, client_type: str) -> list[Path]:
        """Config path candidates for the running platform, in order."""
        client = self.descriptor(client_type)
        if client is None:
            return []
        key = self._platform if self._platform in ("darwin", "win32") else "linux"
        return [expand_path_template(t) for t in client.config_paths.get(key, ())]

    def config_path(self, client_type: str) -> Path | None:
        """First existing candidate, else the first candidate (creation target).

        Returns:
            Path, or None when the client has no candidates on this platform
        """
        candidates = self.candidate_paths(client_type)
        for path in candidates:
            if path.exists():
                return path
        return candidates[0] if candidates else None

    def detect(self, client_type: str) -> ClientInfo:
        """Determine install state and config path for one client.

        ABOUTME: Installed = detection command resolves, or config exists
        ABOUTME: auto_create clients get a template config when the parent dir exists
        """
        client = self.descriptor(client_type)
        if client is None:
            return ClientInfo(type=client_type, name=client_type, config_path=None, is_installed=False)

        candidates = self.candidate_paths(client.type)
        config_path = candidates[0] if candidates else None
        config_exists = False

        for path in candidates:
            if path.exists():
                config_path = path
                config_exists = True
                break
            if client.auto_create and client.config_format == "json" and path.parent.is_dir():
                try:
                    path.write_text(
                        json.dumps({client.servers_key: {}}, indent=2) + "\n", encoding="utf-8"
                    )
                except OSError as e:
                    logger.warning(f"Failed to auto-create config at {path}: {e}")
                    continue
                logger.info(f"Created {client.name} config at {path}")
                config_path = path
                config_exists = True
                break

        is_installed = False
        if client.detect_command:
            is_installed = self._command_exists(client.detect_command)
        if not is_installed and config_exists:
            is_installed = True

        return ClientInfo(
            type=client.type,
            name=client.name,
            config_path=config_path,
            is_installed=is_installed,
            config_exists=config_exists,
        )

    def detect_all(self) -> list[ClientInfo]:
        return [self.detect(client_type) for client_type in self._clients]

    def installed_clients(self) -> list[ClientInfo]:
        return [info for info in self.detect_all() if info.is_installed]
