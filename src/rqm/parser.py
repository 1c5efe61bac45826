"""YAML reading and writing for requirements documents."""

import io
from pathlib import Path
from typing import IO, Any

import yaml

from rqm.core.errors import ParseError
from rqm.core.files import atomic_write_text
from rqm.core.models import (
    OwnerReference,
    PersonAlias,
    Priority,
    Reference,
    Requirement,
    RequirementConfig,
    RequirementReference,
    Status,
)

REFERENCE_HINT = """Hint: A requirement in the 'requirements' array has an invalid format.

Valid formats:
  1. String reference (just the summary):
     - "Parent Requirement Summary"

  2. Full requirement object:
     - summary: "Requirement summary"
       description: "Description text"
       requirements: [...]  # optional nested requirements

Common issues:
  - Missing 'summary' field in a requirement object
  - Using a mapping (key: value) instead of a string for reference
  - Incorrect indentation in nested requirements"""

MISSING_FIELD_HINT = """Required field '{field}' is missing.

Each requirement must have a 'summary' field.

Minimal example:
  requirements:
    - summary: "My requirement"

Full example:
  requirements:
    - summary: "User Authentication"
      name: "AUTH-001"
      description: "System must authenticate users"
      owner: "user@example.com\""""

SYNTAX_HINT = """Hint: Check the YAML syntax and structure.

Common issues:
  - Incorrect indentation (YAML uses 2 spaces)
  - Missing colon after field names
  - Using tabs instead of spaces
  - Unclosed quotes

Example of correct structure:
  version: "1.0"
  requirements:
    - summary: "Requirement 1"
      description: "Description here\""""

_OPTIONAL_TEXT_FIELDS = (
    "name",
    "description",
    "justification",
    "acceptance_test",
    "acceptance_test_link",
    "created_at",
    "updated_at",
)


class _BlockScalarDumper(yaml.SafeDumper):
    """YAML dumper that uses literal block scalar style for multiline strings."""


def _str_representer(dumper: _BlockScalarDumper, data: str) -> yaml.ScalarNode:
    """Represent strings using literal block scalar style for multiline values.

    Args:
        dumper: The YAML dumper instance.
        data: The string value to represent.

    Returns:
        A YAML scalar node, using literal block style if the string
        contains newlines.
    """
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_BlockScalarDumper.add_representer(str, _str_representer)


def dump_yaml(data: dict[str, Any], stream: IO[str], **kwargs: Any) -> None:
    """Dump YAML using block scalar style for multiline strings.

    Args:
        data: The dictionary to serialize as YAML.
        stream: A writable file-like object for the YAML output.
        **kwargs: Additional keyword arguments passed to ``yaml.dump``.
    """
    kwargs.setdefault("default_flow_style", False)
    kwargs.setdefault("sort_keys", False)
    kwargs.setdefault("allow_unicode", True)
    yaml.dump(data, stream, Dumper=_BlockScalarDumper, **kwargs)


def _missing_field(field_name: str, location: str) -> ParseError:
    return ParseError(
        f"{location}: missing field `{field_name}`",
        hint=MISSING_FIELD_HINT.format(field=field_name),
    )


def _optional_str(data: dict[str, Any], key: str, location: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ParseError(f"{location}.{key}: expected a string, got {type(value).__name__}")
    return str(value)


def _str_list(data: dict[str, Any], key: str, location: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"{location}.{key}: expected a list of strings, got {type(value).__name__}")
    result = []
    for i, entry in enumerate(value):
        if isinstance(entry, (dict, list)) or entry is None:
            raise ParseError(f"{location}.{key}[{i}]: expected a string")
        result.append(str(entry))
    return result


def _enum_value(data: dict[str, Any], key: str, enum_type: type, location: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    try:
        return enum_type(str(value))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ParseError(
            f"{location}.{key}: unknown variant `{value}`, expected one of {allowed}",
            hint=SYNTAX_HINT,
        ) from None


def _parse_reference(entry: Any, location: str) -> RequirementReference:
    """Decide between an inline requirement and a by-name reference."""
    if isinstance(entry, str):
        return Reference(entry)
    if isinstance(entry, dict):
        if "summary" not in entry:
            raise ParseError(
                f"{location}: data did not match any variant of RequirementReference",
                hint=REFERENCE_HINT,
            )
        return _parse_requirement(entry, location)
    raise ParseError(
        f"{location}: data did not match any variant of RequirementReference",
        hint=REFERENCE_HINT,
    )


def _parse_requirement(data: Any, location: str) -> Requirement:
    if not isinstance(data, dict):
        raise ParseError(f"{location}: expected a requirement mapping, got {type(data).__name__}", hint=SYNTAX_HINT)

    summary = data.get("summary")
    if summary is None:
        raise _missing_field("summary", location)
    if isinstance(summary, (dict, list)):
        raise ParseError(f"{location}.summary: expected a string")

    owner = data.get("owner")
    if owner is not None and not isinstance(owner, str):
        raise ParseError(f"{location}.owner: expected a string, got {type(owner).__name__}")

    raw_children = data.get("requirements")
    if raw_children is None:
        raw_children = []
    if not isinstance(raw_children, list):
        raise ParseError(f"{location}.requirements: expected a list", hint=REFERENCE_HINT)

    children = [
        _parse_reference(entry, f"{location}.requirements[{i}]") for i, entry in enumerate(raw_children)
    ]

    fields = {key: _optional_str(data, key, location) for key in _OPTIONAL_TEXT_FIELDS}

    return Requirement(
        summary=str(summary),
        owner=OwnerReference(owner) if owner is not None else None,
        requirements=children,
        further_information=_str_list(data, "further_information", location),
        tags=_str_list(data, "tags", location),
        priority=_enum_value(data, "priority", Priority, location),
        status=_enum_value(data, "status", Status, location),
        **fields,
    )


def _parse_alias(data: Any, location: str) -> PersonAlias:
    if not isinstance(data, dict):
        raise ParseError(f"{location}: expected an alias mapping, got {type(data).__name__}")
    alias = data.get("alias")
    if alias is None:
        raise ParseError(f"{location}: missing field `alias`")
    return PersonAlias(
        alias=str(alias),
        name=_optional_str(data, "name", location),
        email=_optional_str(data, "email", location),
        github=_optional_str(data, "github", location),
    )


def config_from_data(data: Any) -> RequirementConfig:
    """Build a RequirementConfig from already-deserialized YAML data.

    Args:
        data: The document root, normally a dict.

    Returns:
        The parsed document.

    Raises:
        ParseError: If the data does not have the document shape.
    """
    if data is None:
        raise ParseError("EOF while parsing a value", hint=SYNTAX_HINT)
    if not isinstance(data, dict):
        raise ParseError(f"invalid type: expected a mapping at the document root, got {type(data).__name__}")

    if "version" not in data or data["version"] is None:
        raise _missing_field("version", "(root)")
    if "requirements" not in data:
        raise _missing_field("requirements", "(root)")

    raw_aliases = data.get("aliases") or []
    if not isinstance(raw_aliases, list):
        raise ParseError("aliases: expected a list")
    raw_requirements = data["requirements"] or []
    if not isinstance(raw_requirements, list):
        raise ParseError("requirements: expected a list", hint=REFERENCE_HINT)

    return RequirementConfig(
        version=str(data["version"]),
        aliases=[_parse_alias(entry, f"aliases[{i}]") for i, entry in enumerate(raw_aliases)],
        requirements=[
            _parse_requirement(entry, f"requirements[{i}]") for i, entry in enumerate(raw_requirements)
        ],
    )


def parse_str(content: str) -> RequirementConfig:
    """Parse a YAML string into a RequirementConfig.

    Raises:
        ParseError: If the YAML is malformed or not a requirements document.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParseError(str(e), hint=SYNTAX_HINT) from e
    return config_from_data(data)


def parse_file(path: Path) -> RequirementConfig:
    """Parse a YAML file into a RequirementConfig.

    Raises:
        OSError: If the file cannot be read.
        ParseError: If the content is not a valid requirements document.
    """
    with open(path, encoding="utf-8") as f:
        content = f.read()
    return parse_str(content)


def to_yaml(config: RequirementConfig) -> str:
    """Serialize a RequirementConfig to a YAML string."""
    stream = io.StringIO()
    dump_yaml(config.to_dict(), stream)
    return stream.getvalue()


def write_file(path: Path, config: RequirementConfig) -> None:
    """Write a RequirementConfig to a YAML file atomically."""
    atomic_write_text(Path(path), to_yaml(config))
