# ABOUTME: Validation helpers shared by the locator, validator and mutator
# ABOUTME: Command presence checks go through the OS lookup command
import logging
import shutil
import subprocess
import sys
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def lookup_command_name(platform: str | None = None) -> str:
    """Return the OS executable-lookup command for a platform.

    ABOUTME: 'where' on Windows, 'which' everywhere else
    """
    platform = platform or sys.platform
    return "where" if platform == "win32" else "which"


def is_command_available(command: str, platform: str | None = None) -> bool:
    """Check whether a command resolves on this system.

    ABOUTME: Runs `which <command>` (or `where` on Windows) and checks exit code
    ABOUTME: Falls back to shutil.which() when the lookup tool itself is absent

    Args:
        command: Command name to look up
        platform: Platform key override (defaults to sys.platform)

    Returns:
        True if the command was found

    Examples:
        >>> is_command_available("definitely_not_a_real_command_xyz123")
        False
    """
    lookup = lookup_command_name(platform)
    try:
        result = subprocess.run(
            [lookup, command],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as e:
        logger.debug(f"Lookup command '{lookup}' unavailable ({e}), using shutil.which")
        return shutil.which(command) is not None
    return result.returncode == 0


def validate_url(url: object, schemes: tuple[str, ...] | None = ("http", "https")) -> str | None:
    """Validate that a URL is properly formatted.

    ABOUTME: Uses urllib.parse for URL parsing
    ABOUTME: schemes=None accepts any scheme but still requires one

    Args:
        url: URL value to validate
        schemes: Allowed schemes, or None for any

    Returns:
        Error message if URL invalid, None otherwise
    """
    if not isinstance(url, str):
        return f"URL must be a string: {url!r}"
    try:
        parsed = urlparse(url)
    except ValueError as e:
        return f"Invalid URL format '{url}': {e}"

    if not parsed.scheme:
        return f"URL missing scheme: {url}"
    if schemes is not None and parsed.scheme not in schemes:
        return f"URL must use {' or '.join(s.upper() for s in schemes)} scheme: {url}"
    if not parsed.netloc and parsed.scheme in ("http", "https", "ws", "wss"):
        return f"URL missing host/domain: {url}"
    if not parsed.netloc and not parsed.path:
        return f"Invalid URL format: {url}"
    return None
