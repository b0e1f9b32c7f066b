# Parameter collection and {{placeholder}} substitution
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from mcpi.errors import ParameterValidationFailed
from mcpi.models import ParameterSpec, ServerDefinition, ServerEntry
from mcpi.utils.validation import validate_url

# ABOUTME: Matches {{parameter_name}} placeholders in template strings
PLACEHOLDER_PATTERN = re.compile(r'\{\{([^}]+)\}\}')

PATH_TYPES = frozenset({"path", "file_path", "directory_path"})
SECRET_TYPES = frozenset({"secret", "api_key"})
MIN_SECRET_LENGTH = 10

# ABOUTME: Caller-supplied value source: (name, spec) -> raw value or None
ValueSupplier = Callable[[str, ParameterSpec], str | None]


@dataclass(frozen=True)
class Substitution:
    """Fully substituted installation template."""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None


def substitute_placeholders(template: str, values: dict[str, str]) -> str:
    """Replace {{name}} with values[name]; absent names become ''.

    Examples:
        >>> substitute_placeholders("--root={{dir}}", {"dir": "/tmp"})
        '--root=/tmp'
        >>> substitute_placeholders("{{missing}}", {})
        ''
    """
    return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1)) or "", template)


class ParameterTemplater:
    """Partitions, collects, validates and substitutes server parameters.

    ABOUTME: Stateless; every method works on the definition it is given
    """

    def has_parameters(self, server: ServerDefinition) -> bool:
        return bool(server.parameters)

    def required_params(self, server: ServerDefinition) -> dict[str, ParameterSpec]:
        return {name: spec for name, spec in server.parameters.items() if spec.required}

    def optional_params(self, server: ServerDefinition) -> dict[str, ParameterSpec]:
        return {name: spec for name, spec in server.parameters.items() if not spec.required}

    def collect(self, server: ServerDefinition, supply: ValueSupplier) -> dict[str, str]:
        """Ask supply() once per parameter, required ones first.

        ABOUTME: Optional values fall back to their default, then ''
        ABOUTME: All fields are checked before failing, errors are per field

        Raises:
            ParameterValidationFailed: If any value is missing or invalid
        """
        values: dict[str, str] = {}
        errors: dict[str, str] = {}

        for name, spec in self.required_params(server).items():
            value = supply(name, spec) or ""
            error = self.validate_value(value, spec, required=True)
            if error:
                errors[name] = error
            values[name] = value

        for name, spec in self.optional_params(server).items():
            value = supply(name, spec) or ""
            error = self.validate_value(value, spec, required=False)
            if error:
                errors[name] = error
            values[name] = value or spec.default or ""

        if errors:
            raise ParameterValidationFailed(server.id, errors)
        return values

    def validate_value(self, value: str, spec: ParameterSpec, required: bool) -> str | None:
        """Validate a single value against its spec.

        Returns:
            Error message, or None if the value is acceptable
        """
        if not value or not value.strip():
            return "This parameter is required" if required else None

        if spec.type in PATH_TYPES:
            error = self._validate_path(value, spec.type)
        elif spec.type == "url":
            error = validate_url(value, schemes=None)
        elif spec.type == "number":
            error = self._validate_number(value)
        elif spec.type == "boolean":
            error = None if value.lower() in ("true", "false") else "Value must be true or false"
        elif spec.type in SECRET_TYPES:
            error = (
                f"Value seems too short (minimum {MIN_SECRET_LENGTH} characters)"
                if len(value) < MIN_SECRET_LENGTH else None
            )
        else:
            error = None
        if error:
            return error

        if spec.pattern and not re.search(spec.pattern, value):
            return f"Value must match pattern: {spec.pattern}"
        if spec.min_length is not None and len(value) < spec.min_length:
            return f"Value must be at least {spec.min_length} characters"
        if spec.max_length is not None and len(value) > spec.max_length:
            return f"Value must be no more than {spec.max_length} characters"
        return None

    def _validate_path(self, value: str, path_type: str) -> str | None:
        path = Path(value).expanduser()
        if not path.exists():
            return f"Path does not exist: {value}"
        if path_type == "directory_path" and not path.is_dir():
            return f"Not a directory: {value}"
        if path_type == "file_path" and not path.is_file():
            return f"Not a file: {value}"
        return None

    def _validate_number(self, value: str) -> str | None:
        try:
            float(value)
        except ValueError:
            return "Please enter a valid number"
        return None

    def substitute(self, server: ServerDefinition, values: dict[str, str]) -> Substitution:
        """Fill the installation template with collected values.

        ABOUTME: Args whose placeholders resolve to '' are dropped (unset optional flags vanish)
        ABOUTME: Literal args, empty ones included, are kept as written
        ABOUTME: Env keys are always kept, their values may be empty
        """
        template = server.installation
        args: list[str] = []
        for raw in template.args:
            arg = substitute_placeholders(raw, values)
            if arg == "" and PLACEHOLDER_PATTERN.search(raw):
                continue
            args.append(arg)
        return Substitution(
            args=args,
            env={key: substitute_placeholders(value, values) for key, value in template.env.items()},
            url=substitute_placeholders(template.url, values) if template.url else None,
        )

    def preview(self, server: ServerDefinition, values: dict[str, str]) -> str:
        """Render the final invocation: env assignments, command, args."""
        result = self.substitute(server, values)
        if server.is_remote and result.url:
            return f"{server.type} {result.url}"

        parts = [f"{key}={shlex.quote(value)}" for key, value in result.env.items()]
        parts.append(server.installation.command)
        parts.extend(shlex.quote(arg) for arg in result.args)
        return " ".join(parts)

    def build_entry(self, server: ServerDefinition, values: dict[str, str]) -> ServerEntry:
        """Client config entry for a server with these values."""
        result = self.substitute(server, values)
        if server.is_remote and result.url:
            return ServerEntry(url=result.url, type=server.type)
        return ServerEntry(
            command=server.installation.command,
            args=result.args,
            env=result.env,
        )
