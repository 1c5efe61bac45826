"""JSON Schema conformance checks for requirements documents."""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema

from rqm.core.errors import RqmError

logger = logging.getLogger("rqm")

BUNDLED_SCHEMA = "requirements.schema.json"


def _load_bundled_schema() -> dict[str, Any]:
    text = resources.files("rqm").joinpath("schemas").joinpath(BUNDLED_SCHEMA).read_text(encoding="utf-8")
    return json.loads(text)


def _load_schema(schema_path: Path) -> dict[str, Any]:
    try:
        return json.loads(schema_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RqmError(f"Failed to read schema {schema_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RqmError(f"Failed to parse schema {schema_path}: {e}") from e


class SchemaChecker:
    """Check a document's structured form against a JSON Schema.

    Args:
        schema_path: Schema file to use. ``None`` selects the schema
            shipped with rqm.

    Raises:
        RqmError: If the schema cannot be read or is not a valid schema.
    """

    def __init__(self, schema_path: Path | None = None) -> None:
        if schema_path is None:
            schema = _load_bundled_schema()
        else:
            schema = _load_schema(Path(schema_path))

        validator_cls = jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)
        try:
            validator_cls.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise RqmError(f"Failed to compile schema: {e.message}") from e

        self.schema = schema
        self._validator = validator_cls(schema)
        logger.debug("Loaded schema %s", schema_path or BUNDLED_SCHEMA)

    def check(self, instance: Any) -> list[str]:
        """Return one message per schema violation, ordered by location.

        Args:
            instance: The document in generic structured form.

        Returns:
            Messages formatted as ``"<path>: <message>"``. Empty when the
            instance conforms.
        """
        messages = []
        for error in self._validator.iter_errors(instance):
            path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "(root)"
            messages.append(f"{path}: {error.message}")
        return sorted(messages)
