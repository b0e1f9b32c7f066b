# Exception taxonomy for mcpi
from pathlib import Path


class InstallerError(Exception):
    """Base class for every error raised by mcpi.

    ABOUTME: Callers can catch this to handle any installer failure
    """


class RegistryUnavailable(InstallerError):
    """No registry source produced a valid catalog.

    ABOUTME: Carries the last underlying cause from the source chain
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ServerNotFound(InstallerError, LookupError):
    """A server id is not present in the catalog."""

    def __init__(self, server_id: str) -> None:
        super().__init__(f"Server '{server_id}' not found in registry")
        self.server_id = server_id


class AlreadyInstalled(InstallerError):
    """Server entry already exists in a client config and force was not set."""

    def __init__(self, server_id: str, path: Path) -> None:
        super().__init__(
            f"Server '{server_id}' is already installed in {path}. Use force to overwrite."
        )
        self.server_id = server_id
        self.path = path


class NotInstalled(InstallerError):
    """Server entry is absent from a client config."""

    def __init__(self, server_id: str, path: Path) -> None:
        super().__init__(f"Server '{server_id}' is not installed in {path}")
        self.server_id = server_id
        self.path = path


class SourceMissing(InstallerError, FileNotFoundError):
    """File to back up or restore does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"File does not exist: {path}")
        self.path = path


class InvalidConfig(InstallerError, ValueError):
    """Client config document cannot be parsed or has the wrong shape.

    ABOUTME: errors holds individual messages when produced by validation
    """

    def __init__(self, path: Path, message: str, errors: list[str] | None = None) -> None:
        super().__init__(f"Invalid config {path}: {message}")
        self.path = path
        self.errors = errors or [message]


class DependencyMissing(InstallerError):
    """A server's runtime command is missing and remediation did not fix it.

    ABOUTME: reason is one of 'declined', 'failed', 'no_auto_installer'
    ABOUTME: instructions carries manual, platform-specific install steps
    """

    DECLINED = "declined"
    FAILED = "failed"
    NO_AUTO_INSTALLER = "no_auto_installer"

    def __init__(
        self,
        command: str,
        reason: str,
        detail: str = "",
        instructions: list[str] | None = None,
    ) -> None:
        message = f"Missing command '{command}' ({reason})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.command = command
        self.reason = reason
        self.detail = detail
        self.instructions = instructions or []


class ParameterValidationFailed(InstallerError, ValueError):
    """One or more parameter values failed validation.

    ABOUTME: errors maps parameter name to its validation message
    """

    def __init__(self, server_id: str, errors: dict[str, str]) -> None:
        fields = ", ".join(f"{name}: {msg}" for name, msg in errors.items())
        super().__init__(f"Invalid parameters for '{server_id}': {fields}")
        self.server_id = server_id
        self.errors = errors
