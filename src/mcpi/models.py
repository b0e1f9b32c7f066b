# Core data models for mcpi
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Literal, get_args

# ABOUTME: "stdio" servers run as a local process, the others are remote
ServerType = Literal["stdio", "http", "sse"]
SERVER_TYPES = frozenset(get_args(ServerType))

ConfigFormat = Literal["json", "toml"]


@dataclass(frozen=True)
class ParameterSpec:
    """Declared user parameter of a server definition.

    ABOUTME: type drives per-type validation in the templater
    ABOUTME: pattern/min_length/max_length apply after the type check
    """
    type: str = "string"
    required: bool = False
    description: str = ""
    default: str | None = None
    placeholder: str | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParameterSpec":
        if not isinstance(data, dict):
            raise ValueError("Parameter spec must be an object")
        validation = data.get("validation") or {}
        if not isinstance(validation, dict):
            raise ValueError("Parameter validation must be an object")
        pattern = validation.get("pattern")
        if pattern is not None:
            if not isinstance(pattern, str):
                raise ValueError("Parameter validation pattern must be a string")
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid parameter validation pattern {pattern!r}: {e}") from e
        for key in ("minLength", "maxLength"):
            bound = validation.get(key)
            if bound is None:
                continue
            if not isinstance(bound, int) or isinstance(bound, bool) or bound < 0:
                raise ValueError(f"Parameter validation {key} must be a non-negative integer")
        default = data.get("default")
        return cls(
            type=str(data.get("type", "string")),
            required=data.get("required") is True,
            description=str(data.get("description", "")),
            default=str(default) if default is not None else None,
            placeholder=data.get("placeholder"),
            pattern=pattern,
            min_length=validation.get("minLength"),
            max_length=validation.get("maxLength"),
        )


@dataclass(frozen=True)
class InstallationTemplate:
    """Command template with {{name}} placeholders.

    ABOUTME: url is only used by remote (http/sse) servers
    """
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None


@dataclass(frozen=True)
class ServerDefinition:
    """Immutable catalog entry for an installable MCP server.

    ABOUTME: Owned by the registry, never mutated after load
    ABOUTME: parameters keys are unique by construction (dict)
    """
    id: str
    name: str
    installation: InstallationTemplate
    description: str = ""
    category: str = "utility"
    type: ServerType = "stdio"
    requires_auth: bool = False
    parameters: dict[str, ParameterSpec] = field(default_factory=dict)
    documentation: str = ""
    repository: str | None = None
    tags: list[str] = field(default_factory=list)
    difficulty: str | None = None
    version: str | None = None
    author: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.type != "stdio"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerDefinition":
        """Build a definition from a registry payload entry.

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("Server entry must be an object")

        server_id = data.get("id")
        if not isinstance(server_id, str) or not server_id:
            raise ValueError("Server entry missing required 'id' field")
        if not isinstance(data.get("name"), str):
            raise ValueError(f"Server '{server_id}' missing required 'name' field")
        server_type = data.get("type", "stdio")
        if not isinstance(server_type, str) or server_type not in SERVER_TYPES:
            raise ValueError(f"Server '{server_id}' has unknown type: {server_type!r}")

        installation = data.get("installation")
        if not isinstance(installation, dict):
            raise ValueError(f"Server '{server_id}' missing 'installation' section")
        if not isinstance(installation.get("command"), str):
            raise ValueError(f"Server '{server_id}' missing installation command")
        if not isinstance(installation.get("args", []), list):
            raise ValueError(f"Server '{server_id}' installation args must be an array")
        if not isinstance(installation.get("env") or {}, dict):
            raise ValueError(f"Server '{server_id}' installation env must be an object")

        raw_params = data.get("parameters") or {}
        if not isinstance(raw_params, dict):
            raise ValueError(f"Server '{server_id}' parameters must be an object")

        return cls(
            id=server_id,
            name=data["name"],
            description=str(data.get("description", "")),
            category=str(data.get("category", "utility")),
            type=server_type,
            requires_auth=bool(data.get("requiresAuth", False)),
            parameters={
                name: ParameterSpec.from_dict(spec) for name, spec in raw_params.items()
            },
            installation=InstallationTemplate(
                command=installation["command"],
                args=[str(arg) for arg in installation.get("args", [])],
                env={k: str(v) for k, v in (installation.get("env") or {}).items()},
                url=installation.get("url"),
            ),
            documentation=str(data.get("documentation", "")),
            repository=data.get("repository"),
            tags=[str(tag) for tag in data.get("tags") or []],
            difficulty=data.get("difficulty"),
            version=data.get("version"),
            author=data.get("author"),
        )


@dataclass(frozen=True)
class Catalog:
    """Loaded registry: the full list of server definitions.

    ABOUTME: source records which resolution layer produced it
    """
    version: str
    last_updated: str
    servers: tuple[ServerDefinition, ...]
    source: str = ""


@dataclass(frozen=True)
class CacheEnvelope:
    """Registry payload plus fetch time and TTL.

    ABOUTME: fetched_at comes from the cache file mtime
    """
    payload: dict[str, Any]
    fetched_at: datetime
    ttl: timedelta

    def age_hours(self, now: datetime) -> float:
        return (now - self.fetched_at).total_seconds() / 3600

    def is_fresh(self, now: datetime) -> bool:
        return now - self.fetched_at <= self.ttl


@dataclass(frozen=True)
class ServerEntry:
    """Installation record of one server inside one client config.

    ABOUTME: Local record uses command/args/env/cwd, remote uses url/type
    ABOUTME: Shape is only enforced by ConfigMutator.validate()
    """
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    url: str | None = None
    type: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.url is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to client config dict format.

        ABOUTME: Omits empty env and unset cwd for cleaner output
        """
        if self.is_remote:
            result: dict[str, Any] = {"url": self.url}
            if self.type:
                result["type"] = self.type
            return result

        result = {"command": self.command, "args": list(self.args)}
        if self.env:
            result["env"] = dict(self.env)
        if self.cwd:
            result["cwd"] = self.cwd
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerEntry":
        if data.get("url"):
            return cls(url=data["url"], type=data.get("type"))
        return cls(
            command=data.get("command"),
            args=list(data.get("args", [])),
            env=dict(data.get("env", {})),
            cwd=data.get("cwd"),
        )


@dataclass(frozen=True)
class ClientDescriptor:
    """Static description of a supported client application.

    ABOUTME: config_paths maps platform key (darwin/linux/win32) to candidates
    ABOUTME: servers_key differs by client family (mcpServers, servers, ...)
    """
    type: str
    name: str
    config_paths: dict[str, tuple[str, ...]]
    servers_key: str = "mcpServers"
    detect_command: str | None = None
    config_format: ConfigFormat = "json"
    auto_create: bool = False


@dataclass(frozen=True)
class ClientInfo:
    """Detection result for one client on this machine."""
    type: str
    name: str
    config_path: Path | None
    is_installed: bool
    config_exists: bool = False


@dataclass
class ClientConfigDocument:
    """Parsed client config.

    ABOUTME: data holds every top-level field in original order
    ABOUTME: servers is the managed mapping stored under servers_key
    """
    data: dict[str, Any]
    servers_key: str = "mcpServers"

    def __post_init__(self) -> None:
        self.data.setdefault(self.servers_key, {})

    @property
    def servers(self) -> dict[str, Any]:
        return self.data[self.servers_key]

    @property
    def passthrough(self) -> dict[str, Any]:
        """Top-level fields other than the managed key."""
        return {k: v for k, v in self.data.items() if k != self.servers_key}


@dataclass(frozen=True)
class BackupRecord:
    """Bookkeeping for one backup copy.

    ABOUTME: client is inferred from the path and may be None
    """
    timestamp: datetime
    client: str | None
    config_path: Path | None
    backup_path: Path


@dataclass
class ValidationResult:
    """Outcome of a validation pass.

    ABOUTME: Errors make the result invalid, warnings do not
    """
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors
