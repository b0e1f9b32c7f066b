# Tests for validation utilities
import subprocess
from unittest.mock import MagicMock, patch

from mcpi.utils.validation import is_command_available, lookup_command_name, validate_url


class TestLookupCommand:
    """Tests for OS lookup command selection."""

    def test_windows_uses_where(self):
        assert lookup_command_name("win32") == "where"

    def test_posix_uses_which(self):
        assert lookup_command_name("linux") == "which"
        assert lookup_command_name("darwin") == "which"


class TestIsCommandAvailable:
    """Tests for is_command_available."""

    def test_found_command(self):
        """Test exit code 0 means found."""
        with patch("mcpi.utils.validation.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            assert is_command_available("node", platform="linux") is True
            mock_run.assert_called_once_with(
                ["which", "node"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )

    def test_missing_command(self):
        """Test non-zero exit code means missing."""
        with patch("mcpi.utils.validation.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            assert is_command_available("uvx", platform="win32") is False
            assert mock_run.call_args[0][0] == ["where", "uvx"]

    def test_lookup_tool_absent_falls_back(self):
        """Test shutil.which is used when which/where can't be spawned."""
        with patch("mcpi.utils.validation.subprocess.run", side_effect=FileNotFoundError), \
                patch("mcpi.utils.validation.shutil.which", return_value="/usr/bin/npx") as which:
            assert is_command_available("npx", platform="linux") is True
            which.assert_called_once_with("npx")


class TestValidateUrl:
    """Tests for validate_url."""

    def test_valid_https(self):
        assert validate_url("https://api.example.com/mcp") is None

    def test_rejects_other_scheme_by_default(self):
        error = validate_url("ftp://example.com/file")
        assert error is not None
        assert "scheme" in error

    def test_any_scheme_allowed(self):
        assert validate_url("ftp://example.com/file", schemes=None) is None

    def test_missing_scheme(self):
        assert "scheme" in validate_url("example.com", schemes=None)

    def test_missing_host(self):
        assert "host" in validate_url("https://", schemes=None)

    def test_non_string(self):
        assert "string" in validate_url(42)
