# Tests for settings loading
from datetime import timedelta
from pathlib import Path

import pytest

from mcpi.config import (
    BUNDLED_REGISTRY,
    REMOTE_REGISTRY_URL,
    Settings,
    ensure_data_dir,
    load_settings,
)


def test_default_settings():
    """Test defaults with an empty environment."""
    settings = load_settings({})

    assert settings.registry_url == REMOTE_REGISTRY_URL
    assert settings.bundled_registry == BUNDLED_REGISTRY
    assert settings.cache_ttl == timedelta(hours=24)
    assert settings.backup_dir.name == "backups"
    assert settings.cache_file.name == "registry-cache.json"


def test_bundled_registry_ships_with_package():
    """Test the bundled snapshot file exists."""
    assert BUNDLED_REGISTRY.exists()


def test_home_override(tmp_path):
    """Test MCPI_HOME relocates cache and backups."""
    settings = load_settings({"MCPI_HOME": str(tmp_path)})

    assert settings.data_dir == tmp_path
    assert settings.backup_dir == tmp_path / "backups"
    assert settings.cache_file == tmp_path / "registry-cache.json"


def test_registry_file_override(tmp_path):
    """Test MCPI_REGISTRY_FILE replaces the bundled snapshot path."""
    registry = tmp_path / "servers.json"
    settings = load_settings({"MCPI_REGISTRY_FILE": str(registry)})
    assert settings.bundled_registry == registry


def test_no_bundled_flag():
    """Test MCPI_NO_BUNDLED disables the bundled layer."""
    settings = load_settings({"MCPI_NO_BUNDLED": "1"})
    assert settings.bundled_registry is None


def test_ttl_override():
    """Test MCPI_CACHE_TTL_HOURS."""
    settings = load_settings({"MCPI_CACHE_TTL_HOURS": "2"})
    assert settings.cache_ttl == timedelta(hours=2)


def test_invalid_ttl_override():
    """Test non-numeric TTL fails fast."""
    with pytest.raises(ValueError):
        load_settings({"MCPI_CACHE_TTL_HOURS": "soon"})


def test_settings_are_frozen():
    """Test Settings cannot be mutated."""
    settings = Settings()
    with pytest.raises(AttributeError):
        settings.registry_url = "https://example.com"


def test_ensure_data_dir(tmp_path):
    """Test data directory creation."""
    settings = Settings(data_dir=tmp_path / "nested" / "data")
    result = ensure_data_dir(settings)
    assert result.is_dir()
    assert isinstance(result, Path)
