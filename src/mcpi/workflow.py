# Install/uninstall orchestration across clients
import logging
from dataclasses import dataclass, field
from pathlib import Path

from mcpi.client_config import ConfigMutator
from mcpi.clients import ClientLocator
from mcpi.config import Settings
from mcpi.errors import InstallerError, ServerNotFound
from mcpi.models import BackupRecord, ClientInfo, ServerDefinition
from mcpi.parameters import ParameterTemplater
from mcpi.registry import ServerRegistry

logger = logging.getLogger(__name__)


@dataclass
class InstallationResult:
    """Outcome for one client.

    ABOUTME: error holds the failure message when success is False
    """
    client: str
    server_id: str
    success: bool
    message: str
    config_path: Path | None = None
    backup: BackupRecord | None = None
    error: str | None = None


@dataclass
class InstallReport:
    """Per-client results of one install or uninstall run.

    ABOUTME: A failure on one client never stops the others
    """
    server_id: str
    results: list[InstallationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[InstallationResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[InstallationResult]:
        return [r for r in self.results if not r.success]


def resolve_server(registry: ServerRegistry, server_id: str) -> ServerDefinition:
    """Look up a server, raising when it's absent.

    Raises:
        ServerNotFound: If server_id is not in the catalog
    """
    server = registry.get_server(server_id)
    if server is None:
        raise ServerNotFound(server_id)
    return server


def _mutator_for(
    locator: ClientLocator,
    client: ClientInfo,
    backup_dir: Path | None,
    settings: Settings | None,
) -> ConfigMutator:
    descriptor = locator.descriptor(client.type)
    if descriptor is None:
        raise InstallerError(f"Unsupported client: {client.type}")
    return ConfigMutator.for_client(descriptor, backup_dir=backup_dir, settings=settings)


def install_server(
    server: ServerDefinition,
    clients: list[ClientInfo],
    values: dict[str, str],
    locator: ClientLocator,
    templater: ParameterTemplater | None = None,
    backup: bool = True,
    force: bool = False,
    backup_dir: Path | None = None,
    settings: Settings | None = None,
) -> InstallReport:
    """Write the server entry into each client's config.

    ABOUTME: Each client's file is handled independently
    ABOUTME: Parameters must already be collected and validated

    Args:
        server: Catalog definition to install
        clients: Target clients (from ClientLocator.detect*)
        values: Collected parameter values
        locator: Source of client descriptors
        templater: Templater used to build the entry
        backup: Back up each existing config before writing
        force: Overwrite an existing entry with the same id
        backup_dir: Override the backup directory
        settings: Settings whose backup_dir is used when no override is given

    Returns:
        InstallReport with one result per client
    """
    templater = templater or ParameterTemplater()
    entry = templater.build_entry(server, values)
    report = InstallReport(server_id=server.id)

    for client in clients:
        if client.config_path is None:
            report.results.append(InstallationResult(
                client=client.type,
                server_id=server.id,
                success=False,
                message=f"Failed to install to {client.name}",
                error="No config path for this platform",
            ))
            continue

        try:
            mutator = _mutator_for(locator, client, backup_dir, settings)
            record = mutator.install(client.config_path, server.id, entry, backup=backup, force=force)
        except (InstallerError, OSError) as e:
            logger.warning(f"Install of '{server.id}' to {client.name} failed: {e}")
            report.results.append(InstallationResult(
                client=client.type,
                server_id=server.id,
                success=False,
                message=f"Failed to install to {client.name}",
                config_path=client.config_path,
                error=str(e),
            ))
            continue

        report.results.append(InstallationResult(
            client=client.type,
            server_id=server.id,
            success=True,
            message=f"Successfully installed to {client.name}",
            config_path=client.config_path,
            backup=record,
        ))

    return report


def uninstall_server(
    server_id: str,
    clients: list[ClientInfo],
    locator: ClientLocator,
    backup: bool = True,
    backup_dir: Path | None = None,
    settings: Settings | None = None,
) -> InstallReport:
    """Remove a server entry from each client's config."""
    report = InstallReport(server_id=server_id)

    for client in clients:
        try:
            if client.config_path is None:
                raise InstallerError("No config path for this platform")
            mutator = _mutator_for(locator, client, backup_dir, settings)
            record = mutator.uninstall(client.config_path, server_id, backup=backup)
        except (InstallerError, OSError) as e:
            logger.warning(f"Uninstall of '{server_id}' from {client.name} failed: {e}")
            report.results.append(InstallationResult(
                client=client.type,
                server_id=server_id,
                success=False,
                message=f"Failed to uninstall from {client.name}",
                config_path=client.config_path,
                error=str(e),
            ))
            continue

        report.results.append(InstallationResult(
            client=client.type,
            server_id=server_id,
            success=True,
            message=f"Successfully uninstalled from {client.name}",
            config_path=client.config_path,
            backup=record,
        ))

    return report


def backup_clients(
    clients: list[ClientInfo],
    locator: ClientLocator,
    backup_dir: Path | None = None,
    settings: Settings | None = None,
) -> tuple[list[BackupRecord], dict[str, str]]:
    """Back up every client's existing config file.

    Returns:
        Tuple of (backup records, errors keyed by client type)
    """
    records: list[BackupRecord] = []
    errors: dict[str, str] = {}

    for client in clients:
        try:
            if client.config_path is None:
                raise InstallerError("No config path for this platform")
            mutator = _mutator_for(locator, client, backup_dir, settings)
            records.append(mutator.backup(client.config_path))
        except (InstallerError, OSError) as e:
            errors[client.type] = str(e)

    return records, errors
