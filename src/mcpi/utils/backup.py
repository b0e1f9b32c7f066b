# ABOUTME: Backup utilities for client configuration files.
# ABOUTME: Timestamped copies named after the sanitized source path; never pruned.
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

from mcpi.config import Settings, load_settings
from mcpi.errors import SourceMissing
from mcpi.models import BackupRecord

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S%f"

# ABOUTME: Ordered (substring, client type) hints; first match wins
CLIENT_PATH_HINTS: tuple[tuple[str, str], ...] = (
    (".cursor", "cursor"),
    (".gemini", "gemini"),
    (".codex", "codex"),
    (".kiro", "kiro"),
    ("windsurf", "windsurf"),
    (".claude.json", "claude-code"),
    ("Claude", "claude-desktop"),
    (".claude", "claude-desktop"),
    (".vscode", "vscode"),
    ("Code", "vscode"),
)

_UNSAFE_CHARS = re.compile(r"[\\/:]")

# Pattern matches: {sanitized}.{YYYYMMDDTHHMMSSffffff}[-N].backup
_BACKUP_NAME = re.compile(r"^(?P<source>.+)\.(?P<ts>\d{8}T\d{12})(?:-\d+)?\.backup$")


def get_backup_dir(settings: Settings | None = None) -> Path:
    """Get the backup directory path.

    ABOUTME: Resolved at call time, so MCPI_HOME moves backups too
    ABOUTME: Returns ~/.mcp-installer/backups by default
    ABOUTME: Does not create the directory
    """
    return (settings or load_settings()).backup_dir


def sanitize_path(path: Path) -> str:
    """Turn an absolute path into a filesystem-safe filename stem.

    ABOUTME: Replaces path separators and drive-letter colons with '_'

    Examples:
        >>> sanitize_path(Path("/home/user/.cursor/mcp.json"))
        'home_user_.cursor_mcp.json'
    """
    return _UNSAFE_CHARS.sub("_", str(path)).strip("_")


def infer_client(path: Path | str) -> str | None:
    """Guess the owning client from substrings of a path.

    ABOUTME: Best-effort bookkeeping only, returns None when nothing matches
    """
    text = str(path)
    for hint, client in CLIENT_PATH_HINTS:
        if hint in text:
            return client
    return None


def create_backup(source_path: Path, backup_dir: Path | None = None) -> BackupRecord:
    """Create a timestamped backup of a file.

    ABOUTME: Backup format: {sanitized-source-path}.{YYYYMMDDTHHMMSSffffff}.backup
    ABOUTME: Uses shutil.copy2() to preserve file metadata
    ABOUTME: Appends -N when a name with the same timestamp already exists

    Args:
        source_path: Path to file to backup
        backup_dir: Directory where backup should be created

    Returns:
        BackupRecord describing the copy

    Raises:
        SourceMissing: If source_path doesn't exist
        OSError: If backup creation fails
    """
    source_path = Path(source_path).absolute()
    if not source_path.exists():
        raise SourceMissing(source_path)

    backup_dir = backup_dir or get_backup_dir()
    backup_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now()
    stem = f"{sanitize_path(source_path)}.{now.strftime(TIMESTAMP_FORMAT)}"
    backup_path = backup_dir / f"{stem}{BACKUP_SUFFIX}"
    counter = 1
    while backup_path.exists():
        backup_path = backup_dir / f"{stem}-{counter}{BACKUP_SUFFIX}"
        counter += 1

    shutil.copy2(source_path, backup_path)
    logger.info(f"Backed up {source_path} to {backup_path}")

    return BackupRecord(
        timestamp=now,
        client=infer_client(source_path),
        config_path=source_path,
        backup_path=backup_path,
    )


def list_backups(backup_dir: Path | None = None) -> list[BackupRecord]:
    """List backup files, newest first.

    ABOUTME: Original path cannot be recovered from the sanitized name,
    ABOUTME: so config_path is None on listed records
    """
    backup_dir = backup_dir or get_backup_dir()
    if not backup_dir.exists():
        return []

    records: list[BackupRecord] = []
    for file_path in backup_dir.iterdir():
        if not file_path.is_file():
            continue
        match = _BACKUP_NAME.match(file_path.name)
        if not match:
            continue
        records.append(BackupRecord(
            timestamp=datetime.strptime(match.group("ts"), TIMESTAMP_FORMAT),
            client=infer_client(match.group("source")),
            config_path=None,
            backup_path=file_path,
        ))

    records.sort(key=lambda r: (r.timestamp, r.backup_path.name), reverse=True)
    return records


def restore_backup(backup_path: Path, target_path: Path) -> None:
    """Copy a backup over a client config file.

    ABOUTME: Target must be given explicitly; parent dirs are created

    Raises:
        SourceMissing: If backup_path doesn't exist
    """
    if not backup_path.exists():
        raise SourceMissing(backup_path)

    target_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(backup_path, target_path)
    logger.info(f"Restored {target_path} from {backup_path}")
