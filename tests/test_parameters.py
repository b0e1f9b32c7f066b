# ABOUTME: Tests for parameter collection, validation and placeholder substitution.
# ABOUTME: Uses in-memory server definitions and tmp_path for path parameters.
import pytest

from mcpi.errors import ParameterValidationFailed
from mcpi.models import ParameterSpec, ServerDefinition
from mcpi.parameters import ParameterTemplater, substitute_placeholders


def _server(parameters, installation, **extra):
    return ServerDefinition.from_dict({
        "id": "demo",
        "name": "Demo",
        "parameters": parameters,
        "installation": installation,
        **extra,
    })


@pytest.fixture
def templater():
    return ParameterTemplater()


class TestSubstitutePlaceholders:
    """Tests for substitute_placeholders."""

    def test_replaces_all_occurrences(self):
        assert substitute_placeholders("{{a}}-{{b}}-{{a}}", {"a": "1", "b": "2"}) == "1-2-1"

    def test_missing_value_becomes_empty(self):
        assert substitute_placeholders("--flag={{missing}}", {}) == "--flag="

    def test_plain_text_untouched(self):
        assert substitute_placeholders("${HOME}/x", {"HOME": "no"}) == "${HOME}/x"


class TestPartition:
    """Tests for required/optional partitioning."""

    def test_partition(self, templater):
        server = _server(
            {
                "token": {"type": "api_key", "required": True},
                "region": {"type": "string"},
            },
            {"command": "npx"},
        )
        assert templater.has_parameters(server)
        assert list(templater.required_params(server)) == ["token"]
        assert list(templater.optional_params(server)) == ["region"]

    def test_no_parameters(self, templater):
        assert not templater.has_parameters(_server({}, {"command": "npx"}))


class TestValidateValue:
    """Tests for ParameterTemplater.validate_value."""

    def test_required_empty(self, templater):
        assert templater.validate_value("  ", ParameterSpec(), required=True) == "This parameter is required"

    def test_optional_empty(self, templater):
        assert templater.validate_value("", ParameterSpec(), required=False) is None

    def test_directory_path(self, templater, tmp_path):
        spec = ParameterSpec(type="directory_path")
        assert templater.validate_value(str(tmp_path), spec, True) is None
        assert "does not exist" in templater.validate_value(str(tmp_path / "nope"), spec, True)

    def test_directory_path_given_file(self, templater, tmp_path):
        file_path = tmp_path / "db.sqlite"
        file_path.write_text("")
        spec = ParameterSpec(type="directory_path")
        assert "Not a directory" in templater.validate_value(str(file_path), spec, True)

    def test_file_path_given_directory(self, templater, tmp_path):
        spec = ParameterSpec(type="file_path")
        assert "Not a file" in templater.validate_value(str(tmp_path), spec, True)

    def test_url(self, templater):
        spec = ParameterSpec(type="url")
        assert templater.validate_value("https://example.com", spec, True) is None
        assert templater.validate_value("example.com", spec, True) is not None

    def test_number(self, templater):
        spec = ParameterSpec(type="number")
        assert templater.validate_value("3.5", spec, True) is None
        assert templater.validate_value("three", spec, True) == "Please enter a valid number"

    def test_boolean(self, templater):
        spec = ParameterSpec(type="boolean")
        assert templater.validate_value("TRUE", spec, True) is None
        assert templater.validate_value("yes", spec, True) is not None

    def test_secret_minimum_length(self, templater):
        spec = ParameterSpec(type="api_key")
        assert "too short" in templater.validate_value("short", spec, True)
        assert templater.validate_value("0123456789", spec, True) is None

    def test_pattern(self, templater):
        spec = ParameterSpec(type="api_key", pattern="^ghp_")
        assert "pattern" in templater.validate_value("xxx_0123456789", spec, True)
        assert templater.validate_value("ghp_0123456789", spec, True) is None

    def test_length_bounds(self, templater):
        spec = ParameterSpec(min_length=3, max_length=5)
        assert "at least 3" in templater.validate_value("ab", spec, True)
        assert "no more than 5" in templater.validate_value("abcdef", spec, True)
        assert templater.validate_value("abcd", spec, True) is None


class TestCollect:
    """Tests for ParameterTemplater.collect."""

    def test_required_asked_first(self, templater, tmp_path):
        server = _server(
            {
                "region": {"type": "string"},
                "root": {"type": "directory_path", "required": True},
            },
            {"command": "npx"},
        )
        asked = []

        def supply(name, spec):
            asked.append(name)
            return str(tmp_path) if name == "root" else None

        values = templater.collect(server, supply)

        assert asked == ["root", "region"]
        assert values == {"root": str(tmp_path), "region": ""}

    def test_optional_default(self, templater):
        server = _server({"region": {"default": "eu"}}, {"command": "npx"})
        assert templater.collect(server, lambda name, spec: None) == {"region": "eu"}

    def test_collects_every_error(self, templater):
        server = _server(
            {
                "token": {"type": "api_key", "required": True},
                "port": {"type": "number"},
            },
            {"command": "npx"},
        )
        supplied = {"token": "", "port": "eighty"}

        with pytest.raises(ParameterValidationFailed) as exc_info:
            templater.collect(server, lambda name, spec: supplied[name])

        assert set(exc_info.value.errors) == {"token", "port"}
        assert exc_info.value.server_id == "demo"


class TestSubstitution:
    """Tests for substitute, preview and build_entry."""

    @pytest.fixture
    def server(self):
        return _server(
            {
                "root": {"type": "directory_path", "required": True},
                "flag": {"type": "string"},
                "token": {"type": "api_key", "required": True},
            },
            {
                "command": "npx",
                "args": ["-y", "pkg", "{{root}}", "{{flag}}"],
                "env": {"TOKEN": "{{token}}", "EMPTY": "{{flag}}"},
            },
        )

    def test_no_parameters_template_unchanged(self, templater):
        """Test that a server without parameters gets its args and env back as written."""
        server = _server(
            {},
            {
                "command": "node",
                "args": ["server.js", "", "--x"],
                "env": {"MODE": "prod", "EMPTY": ""},
            },
        )

        result = templater.substitute(server, {})

        assert result.args == ["server.js", "", "--x"]
        assert result.env == {"MODE": "prod", "EMPTY": ""}

    def test_literal_empty_arg_kept_alongside_placeholders(self, templater, server):
        """Test that only args whose placeholders resolve to '' are dropped."""
        literal = _server(
            {"flag": {"type": "string"}},
            {"command": "npx", "args": ["", "{{flag}}", "pkg"]},
        )
        assert templater.substitute(literal, {"flag": ""}).args == ["", "pkg"]

    def test_empty_args_dropped_env_kept(self, templater, server):
        result = templater.substitute(server, {"root": "/data", "flag": "", "token": "secret-value"})
        assert result.args == ["-y", "pkg", "/data"]
        assert result.env == {"TOKEN": "secret-value", "EMPTY": ""}

    def test_preview(self, templater, server):
        preview = templater.preview(server, {"root": "/my data", "flag": "", "token": "abc"})
        assert preview == "TOKEN=abc EMPTY='' npx -y pkg '/my data'"

    def test_build_local_entry(self, templater, server):
        entry = templater.build_entry(server, {"root": "/data", "flag": "-v", "token": "t"})
        assert entry.to_dict() == {
            "command": "npx",
            "args": ["-y", "pkg", "/data", "-v"],
            "env": {"TOKEN": "t", "EMPTY": "-v"},
        }

    def test_build_remote_entry(self, templater):
        server = _server(
            {},
            {"command": "npx", "url": "https://mcp.example.com/mcp"},
            type="http",
        )
        entry = templater.build_entry(server, {})
        assert entry.to_dict() == {"url": "https://mcp.example.com/mcp", "type": "http"}
        assert templater.preview(server, {}) == "http https://mcp.example.com/mcp"
