# Runtime settings for mcpi
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping

# ABOUTME: Per-user data directory holding cache and backups
DATA_DIR = Path.home() / ".mcp-installer"

# ABOUTME: Backups are never deleted by mcpi
BACKUP_DIR = DATA_DIR / "backups"

# ABOUTME: Local registry cache, same shape as the remote payload
CACHE_FILE = DATA_DIR / "registry-cache.json"

REMOTE_REGISTRY_URL = (
    "https://raw.githubusercontent.com/joobisb/mcp-installer/main/packages/registry/servers.json"
)
REMOTE_TIMEOUT = 10.0  # seconds
CACHE_TTL_HOURS = 24.0

# ABOUTME: Read-only snapshot shipped inside the package
BUNDLED_REGISTRY = Path(__file__).parent / "data" / "servers.json"


@dataclass(frozen=True)
class Settings:
    """Immutable settings built once and passed into components.

    ABOUTME: bundled_registry=None disables the bundled snapshot layer
    """
    data_dir: Path = DATA_DIR
    backup_dir: Path = BACKUP_DIR
    cache_file: Path = CACHE_FILE
    registry_url: str = REMOTE_REGISTRY_URL
    remote_timeout: float = REMOTE_TIMEOUT
    cache_ttl: timedelta = timedelta(hours=CACHE_TTL_HOURS)
    bundled_registry: Path | None = BUNDLED_REGISTRY


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from defaults and MCPI_* environment overrides.

    ABOUTME: MCPI_HOME relocates cache and backups together
    ABOUTME: MCPI_REGISTRY_FILE points the bundled layer at a local file
    ABOUTME: MCPI_NO_BUNDLED=1 skips the bundled layer entirely

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric override cannot be parsed
    """
    env = os.environ if environ is None else environ

    data_dir = Path(env["MCPI_HOME"]).expanduser() if env.get("MCPI_HOME") else DATA_DIR

    bundled: Path | None = BUNDLED_REGISTRY
    if env.get("MCPI_REGISTRY_FILE"):
        bundled = Path(env["MCPI_REGISTRY_FILE"]).expanduser()
    if env.get("MCPI_NO_BUNDLED", "").lower() in ("1", "true", "yes"):
        bundled = None

    ttl_hours = float(env.get("MCPI_CACHE_TTL_HOURS", CACHE_TTL_HOURS))

    return Settings(
        data_dir=data_dir,
        backup_dir=data_dir / "backups",
        cache_file=data_dir / "registry-cache.json",
        registry_url=env.get("MCPI_REGISTRY_URL", REMOTE_REGISTRY_URL),
        cache_ttl=timedelta(hours=ttl_hours),
        bundled_registry=bundled,
    )


def ensure_data_dir(settings: Settings) -> Path:
    """Create the data directory if it doesn't exist.

    Returns:
        Path to data directory (guaranteed to exist)
    """
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings.data_dir
