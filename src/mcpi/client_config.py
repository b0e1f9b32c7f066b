# Read-modify-write of one client's config document
import json
import logging
from pathlib import Path
from typing import Any

import tomli
import tomli_w

from mcpi.config import Settings
from mcpi.errors import AlreadyInstalled, InvalidConfig, NotInstalled
from mcpi.models import (
    BackupRecord,
    ClientConfigDocument,
    ClientDescriptor,
    ConfigFormat,
    ServerEntry,
    ValidationResult,
)
from mcpi.utils.backup import create_backup, get_backup_dir
from mcpi.utils.env import find_unset_env_vars
from mcpi.utils.files import atomic_write_text
from mcpi.utils.validation import validate_url

logger = logging.getLogger(__name__)


class ConfigMutator:
    """Adds and removes server entries in one client's config file.

    ABOUTME: Managed key comes from the ClientDescriptor, never hardcoded
    ABOUTME: Every other top-level field is preserved across read-modify-write
    ABOUTME: No file locking: concurrent writers to the same path can race
    """

    def __init__(
        self,
        servers_key: str = "mcpServers",
        config_format: ConfigFormat = "json",
        backup_dir: Path | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.servers_key = servers_key
        self.config_format = config_format
        self.backup_dir = backup_dir or get_backup_dir(settings)

    @classmethod
    def for_client(
        cls,
        client: ClientDescriptor,
        backup_dir: Path | None = None,
        settings: Settings | None = None,
    ) -> "ConfigMutator":
        return cls(
            servers_key=client.servers_key,
            config_format=client.config_format,
            backup_dir=backup_dir,
            settings=settings,
        )

    def read(self, path: Path) -> ClientConfigDocument:
        """Load a client config document.

        ABOUTME: Missing file yields an empty managed-entries document

        Raises:
            InvalidConfig: If the file can't be parsed or has the wrong shape
        """
        if not path.exists():
            return ClientConfigDocument(data={}, servers_key=self.servers_key)

        data = self._load(path)
        if not isinstance(data, dict):
            raise InvalidConfig(path, "top-level value must be an object")
        if not isinstance(data.get(self.servers_key, {}), dict):
            raise InvalidConfig(path, f"'{self.servers_key}' must be an object")

        return ClientConfigDocument(data=data, servers_key=self.servers_key)

    def write(self, path: Path, doc: ClientConfigDocument) -> None:
        """Write a document atomically (temp file + rename).

        ABOUTME: Creates parent directories if needed
        """
        if self.config_format == "toml":
            content = tomli_w.dumps(doc.data)
        else:
            content = json.dumps(doc.data, indent=2, ensure_ascii=False) + "\n"

        atomic_write_text(path, content)

    def is_installed(self, path: Path, server_id: str) -> bool:
        return server_id in self.read(path).servers

    def list_entries(self, path: Path) -> dict[str, Any]:
        return dict(self.read(path).servers)

    def install(
        self,
        path: Path,
        server_id: str,
        entry: ServerEntry | dict[str, Any],
        backup: bool = True,
        force: bool = False,
    ) -> BackupRecord | None:
        """Add (or with force, replace) one server entry.

        Returns:
            BackupRecord if a backup was taken, else None

        Raises:
            AlreadyInstalled: If server_id exists and force is not set
        """
        doc = self.read(path)

        if server_id in doc.servers and not force:
            raise AlreadyInstalled(server_id, path)

        record = self.backup(path) if backup and path.exists() else None

        doc.servers[server_id] = entry.to_dict() if isinstance(entry, ServerEntry) else dict(entry)
        self.write(path, doc)
        logger.info(f"Installed '{server_id}' into {path}")
        return record

    def uninstall(self, path: Path, server_id: str, backup: bool = True) -> BackupRecord | None:
        """Remove one server entry.

        Raises:
            NotInstalled: If server_id is absent
        """
        doc = self.read(path)

        if server_id not in doc.servers:
            raise NotInstalled(server_id, path)

        record = self.backup(path) if backup else None

        del doc.servers[server_id]
        self.write(path, doc)
        logger.info(f"Removed '{server_id}' from {path}")
        return record

    def backup(self, path: Path) -> BackupRecord:
        """Copy the config into the backup directory.

        Raises:
            SourceMissing: If path doesn't exist
        """
        return create_backup(path, self.backup_dir)

    def validate(self, path: Path) -> ValidationResult:
        """Check every managed entry's shape without modifying the file.

        ABOUTME: Exactly one of command/url per entry
        ABOUTME: Unset ${VAR} references in env values are warnings only
        """
        result = ValidationResult()

        if not path.exists():
            result.warnings.append(f"Config file does not exist: {path}")
            return result

        try:
            data = self._load(path)
        except InvalidConfig as e:
            result.errors.append(str(e))
            return result

        if not isinstance(data, dict):
            result.errors.append("Config top-level value must be an object")
            return result

        servers = data.get(self.servers_key)
        if servers is None:
            result.warnings.append(f"No {self.servers_key} section found in config")
            return result
        if not isinstance(servers, dict):
            result.errors.append(f"'{self.servers_key}' must be an object")
            return result

        for server_id, entry in servers.items():
            self._validate_entry(server_id, entry, result)

        return result

    def _validate_entry(self, server_id: str, entry: Any, result: ValidationResult) -> None:
        if not isinstance(entry, dict) or not entry:
            result.errors.append(f"Server '{server_id}' has empty configuration")
            return

        has_command = bool(entry.get("command"))
        has_url = bool(entry.get("url"))

        if has_command and has_url:
            result.errors.append(
                f"Server '{server_id}' cannot have both 'url' and 'command' - choose one"
            )
            return
        if not has_command and not has_url:
            result.errors.append(
                f"Server '{server_id}' must have either 'command' (for local servers) "
                f"or 'url' (for remote servers)"
            )
            return

        if has_command:
            if not isinstance(entry["command"], str):
                result.errors.append(f"Server '{server_id}' 'command' must be a string")

            args = entry.get("args")
            if args is not None and (
                not isinstance(args, list) or not all(isinstance(a, str) for a in args)
            ):
                result.errors.append(f"Server '{server_id}' 'args' must be an array of strings")

            env = entry.get("env")
            if env is not None:
                if not isinstance(env, dict) or not all(
                    isinstance(k, str) and isinstance(v, str) for k, v in env.items()
                ):
                    result.errors.append(
                        f"Server '{server_id}' 'env' must be an object of string values"
                    )
                else:
                    for key, value in env.items():
                        for var_name in find_unset_env_vars(value):
                            result.warnings.append(
                                f"Environment variable '{var_name}' not set "
                                f"(referenced in {server_id}.env.{key})"
                            )

            cwd = entry.get("cwd")
            if cwd is not None and not isinstance(cwd, str):
                result.errors.append(f"Server '{server_id}' 'cwd' must be a string")
        else:
            url_error = validate_url(entry["url"], schemes=None)
            if url_error:
                result.errors.append(f"Server '{server_id}' has invalid URL: {url_error}")

            entry_type = entry.get("type")
            if entry_type is not None and not isinstance(entry_type, str):
                result.errors.append(f"Server '{server_id}' 'type' must be a string")

    def _load(self, path: Path) -> Any:
        try:
            if self.config_format == "toml":
                with open(path, "rb") as f:
                    return tomli.load(f)
            with open(path, encoding="utf-8") as f:
                content = f.read()
        except tomli.TOMLDecodeError as e:
            raise InvalidConfig(path, f"invalid TOML: {e}") from e

        # Treat an empty file like a missing one
        if not content.strip():
            return {}
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidConfig(path, f"invalid JSON: {e}") from e
