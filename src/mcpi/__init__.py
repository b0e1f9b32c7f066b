# mcpi - MCP server installer core
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export components, models and errors
from mcpi.client_config import ConfigMutator
from mcpi.clients import CLIENT_ALIASES, DEFAULT_CLIENTS, ClientLocator
from mcpi.config import Settings, ensure_data_dir, load_settings
from mcpi.dependencies import COMMAND_INSTALLATIONS, DependencyValidator, classify_failure
from mcpi.errors import (
    AlreadyInstalled,
    DependencyMissing,
    InstallerError,
    InvalidConfig,
    NotInstalled,
    ParameterValidationFailed,
    RegistryUnavailable,
    ServerNotFound,
    SourceMissing,
)
from mcpi.models import (
    BackupRecord,
    Catalog,
    ClientConfigDocument,
    ClientDescriptor,
    ClientInfo,
    ParameterSpec,
    ServerDefinition,
    ServerEntry,
    ValidationResult,
)
from mcpi.parameters import ParameterTemplater
from mcpi.registry import ServerRegistry
from mcpi.workflow import backup_clients, install_server, resolve_server, uninstall_server

__all__ = [
    "__version__",
    "ConfigMutator",
    "ClientLocator",
    "CLIENT_ALIASES",
    "DEFAULT_CLIENTS",
    "Settings",
    "ensure_data_dir",
    "load_settings",
    "COMMAND_INSTALLATIONS",
    "DependencyValidator",
    "classify_failure",
    "AlreadyInstalled",
    "DependencyMissing",
    "InstallerError",
    "InvalidConfig",
    "NotInstalled",
    "ParameterValidationFailed",
    "RegistryUnavailable",
    "ServerNotFound",
    "SourceMissing",
    "BackupRecord",
    "Catalog",
    "ClientConfigDocument",
    "ClientDescriptor",
    "ClientInfo",
    "ParameterSpec",
    "ServerDefinition",
    "ServerEntry",
    "ValidationResult",
    "ParameterTemplater",
    "ServerRegistry",
    "backup_clients",
    "install_server",
    "resolve_server",
    "uninstall_server",
]
