"""Domain models for requirements documents."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

logger = logging.getLogger("rqm")


class Priority(str, Enum):
    """Priority level of a requirement."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Status(str, Enum):
    """Lifecycle status of a requirement."""

    DRAFT = "draft"
    PROPOSED = "proposed"
    APPROVED = "approved"
    IMPLEMENTED = "implemented"
    VERIFIED = "verified"
    DEPRECATED = "deprecated"


@dataclass(frozen=True)
class OwnerReference:
    """Owner of a requirement: an email, a ``@handle``, or an alias name."""

    value: str

    @property
    def is_email(self) -> bool:
        """Return True if the value looks like an email address."""
        return "@" in self.value and not self.value.startswith("@")

    @property
    def is_github(self) -> bool:
        """Return True if the value looks like a ``@handle``."""
        return self.value.startswith("@")

    def __str__(self) -> str:
        return self.value


@dataclass
class PersonAlias:
    """Short alias that can be used as a requirement owner.

    Attributes:
        alias (str): The alias string referenced from ``owner`` fields.
        name (str | None): Display name of the person.
        email (str | None): Email address.
        github (str | None): GitHub username.
    """

    alias: str
    name: str | None = None
    email: str | None = None
    github: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the alias as a plain dict, omitting unset fields."""
        data: dict[str, Any] = {"alias": self.alias}
        for key in ("name", "email", "github"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class Reference:
    """By-name pointer to a requirement defined elsewhere in the document."""

    summary: str


@dataclass
class Requirement:
    """A single trackable requirement.

    ``requirements`` holds the ordered children, each either an inline
    :class:`Requirement` owning its own sub-tree or a :class:`Reference`
    naming another requirement's summary.
    """

    summary: str
    name: str | None = None
    description: str | None = None
    justification: str | None = None
    acceptance_test: str | None = None
    acceptance_test_link: str | None = None
    owner: OwnerReference | None = None
    requirements: list["RequirementReference"] = field(default_factory=list)
    further_information: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    priority: Priority | None = None
    status: Status | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def id(self) -> str:
        """Return the name if set, otherwise the summary."""
        return self.name or self.summary

    def flatten(self) -> list["Requirement"]:
        """Return this requirement followed by its inline descendants.

        Walks depth-first, parent before children, in child order.
        References are not expanded.
        """
        result = [self]
        for child in self.requirements:
            if isinstance(child, Requirement):
                result.extend(child.flatten())
        return result

    def child_summaries(self) -> list[str]:
        """Return the summaries of all direct children, inline or referenced."""
        return [child.summary for child in self.requirements]

    def to_dict(self) -> dict[str, Any]:
        """Return the requirement as plain data, omitting unset fields."""
        data: dict[str, Any] = {"summary": self.summary}
        for key in ("name", "description", "justification", "acceptance_test", "acceptance_test_link"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.owner is not None:
            data["owner"] = self.owner.value
        if self.requirements:
            data["requirements"] = [
                child.to_dict() if isinstance(child, Requirement) else child.summary for child in self.requirements
            ]
        if self.further_information:
            data["further_information"] = list(self.further_information)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.priority is not None:
            data["priority"] = self.priority.value
        if self.status is not None:
            data["status"] = self.status.value
        if self.created_at is not None:
            data["created_at"] = self.created_at
        if self.updated_at is not None:
            data["updated_at"] = self.updated_at
        return data


RequirementReference = Union[Requirement, Reference]


@dataclass
class RequirementConfig:
    """Root of a requirements document.

    Attributes:
        version (str): Schema version string.
        aliases (list[PersonAlias]): Person aliases usable as owners.
        requirements (list[Requirement]): Top-level requirements.
    """

    version: str
    aliases: list[PersonAlias] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)

    def all_requirements(self) -> list[Requirement]:
        """Flatten every inline requirement in document order."""
        result: list[Requirement] = []
        for req in self.requirements:
            result.extend(req.flatten())
        return result

    def alias_map(self) -> dict[str, PersonAlias]:
        """Map alias strings to their records. Later duplicates win."""
        aliases: dict[str, PersonAlias] = {}
        for alias in self.aliases:
            if alias.alias in aliases:
                logger.warning("Duplicate alias '%s'; later definition wins", alias.alias)
            aliases[alias.alias] = alias
        return aliases

    def to_dict(self) -> dict[str, Any]:
        """Return the generic structured form of the document."""
        data: dict[str, Any] = {"version": self.version}
        if self.aliases:
            data["aliases"] = [alias.to_dict() for alias in self.aliases]
        data["requirements"] = [req.to_dict() for req in self.requirements]
        return data
