"""Structured results for embedding callers and machine-readable output."""

import json
from dataclasses import asdict, dataclass, field
from typing import Any

from rqm.core.errors import ParseError, RqmError
from rqm.core.models import RequirementConfig
from rqm.graph import RequirementGraph
from rqm.parser import parse_str
from rqm.validation import SchemaChecker, Validator


@dataclass
class ValidationResult:
    """Outcome of validating one document.

    ``warnings`` is reserved; no check produces warnings yet.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class CycleCheckResult:
    """Outcome of a cycle check, with the full adjacency map."""

    has_cycles: bool
    cycles: list[list[str]] = field(default_factory=list)
    graph: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def validate_yaml(content: str, checker: SchemaChecker | None = None) -> ValidationResult:
    """Parse and validate a YAML document without raising for its problems.

    Args:
        content: The YAML text.
        checker: Schema checker to use. Defaults to the bundled schema.

    Returns:
        A ValidationResult; parse failures are reported as
        ``"Parse error: ..."`` so callers can tell them apart from a
        document that parsed but is invalid.
    """
    try:
        config = parse_str(content)
    except ParseError as e:
        return ValidationResult(valid=False, errors=[f"Parse error: {e}"])

    try:
        Validator(checker).validate(config)
    except RqmError as e:
        return ValidationResult(valid=False, errors=[str(e)])
    return ValidationResult(valid=True)


def adjacency_map(config: RequirementConfig) -> dict[str, list[str]]:
    """Map every inline requirement's summary to its direct child summaries.

    References are listed verbatim, whether or not they resolve.
    """
    return {req.summary: req.child_summaries() for req in config.all_requirements()}


def check_cycles(config: RequirementConfig) -> CycleCheckResult:
    """Build the graph for a document and report any cycles.

    Raises:
        InvalidReferenceError: If the graph cannot be built.
    """
    graph = RequirementGraph.from_config(config)
    cycles = graph.find_cycles()
    return CycleCheckResult(has_cycles=bool(cycles), cycles=cycles, graph=adjacency_map(config))
