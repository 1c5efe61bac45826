"""Core domain models for rqm."""

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

__all__ = [
    "OwnerReference",
    "PersonAlias",
    "Priority",
    "Reference",
    "Requirement",
    "RequirementConfig",
    "RequirementReference",
    "Status",
]
