"""Exception hierarchy for rqm operations."""

from pathlib import Path


class RqmError(Exception):
    """Base class for every error raised by rqm."""


class ParseError(RqmError):
    """The requirements document could not be deserialized.

    Attributes:
        hint (str | None): Guidance on how to fix the document, appended to
            the message when present.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        self.hint = hint
        text = f"YAML parsing error: {message}"
        if hint:
            text = f"{text}\n\n{hint}"
        super().__init__(text)


class SchemaValidationError(RqmError):
    """The document does not conform to the requirements schema."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(f"JSON schema validation error: {'; '.join(self.violations)}")


class RequirementNotFoundError(RqmError):
    """No requirement with the given summary exists in the graph."""

    def __init__(self, summary: str) -> None:
        self.summary = summary
        super().__init__(f"Requirement not found: {summary}")


class CircularReferenceError(RqmError):
    """An operation that needs an acyclic graph was given a cyclic one."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Circular reference detected: {message}")


class InvalidReferenceError(RqmError):
    """A requirement references a summary that is not defined anywhere."""

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Invalid reference: Requirement '{source}' references non-existent '{target}'")


class DuplicateSummaryError(RqmError):
    """Two requirements in one document share a summary."""

    def __init__(self, summary: str) -> None:
        self.summary = summary
        super().__init__(f"Duplicate summary: {summary}")


class InvalidOwnerError(RqmError):
    """An owner is neither an email, a handle, nor a defined alias."""

    def __init__(self, owner: str) -> None:
        self.owner = owner
        super().__init__(
            f"Invalid owner reference: '{owner}' is not a valid email, GitHub username, or defined alias"
        )


class GraphError(RqmError):
    """Traversal or sorting failed for a structural reason."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Graph error: {message}")


class MetadataError(RqmError):
    """A persisted metadata or project config file is malformed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Metadata error: {path}: {message}")
