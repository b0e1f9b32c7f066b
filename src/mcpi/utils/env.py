# Environment variable reference utilities
import os
import re
from typing import Mapping

# ABOUTME: Pattern matches ${VAR_NAME} references in config values
ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')


def referenced_env_vars(value: str) -> list[str]:
    """Return variable names referenced as ${VAR} in value, in order.

    Examples:
        >>> referenced_env_vars("Bearer ${API_TOKEN}")
        ['API_TOKEN']
    """
    return ENV_VAR_PATTERN.findall(value)


def find_unset_env_vars(value: str, environ: Mapping[str, str] | None = None) -> list[str]:
    """Return ${VAR} references in value that are not set in the environment.

    ABOUTME: Used for warnings only, never expands or rewrites the value

    Args:
        value: String potentially containing ${VAR} references
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Names of unset variables, in order of appearance
    """
    env = os.environ if environ is None else environ
    return [name for name in referenced_env_vars(value) if name not in env]
