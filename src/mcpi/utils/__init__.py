# ABOUTME: Utility modules for mcpi
# ABOUTME: Exports env reference, backup, and validation functions

from mcpi.utils.backup import (
    create_backup,
    get_backup_dir,
    infer_client,
    list_backups,
    restore_backup,
    sanitize_path,
)
from mcpi.utils.env import find_unset_env_vars, referenced_env_vars
from mcpi.utils.files import atomic_write_text
from mcpi.utils.validation import is_command_available, lookup_command_name, validate_url

__all__ = [
    "atomic_write_text",
    "find_unset_env_vars",
    "referenced_env_vars",
    "is_command_available",
    "lookup_command_name",
    "validate_url",
    "create_backup",
    "get_backup_dir",
    "infer_client",
    "list_backups",
    "restore_backup",
    "sanitize_path",
]
