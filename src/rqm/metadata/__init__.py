"""Persistent requirement metadata."""

from rqm.metadata.store import (
    MetadataStore,
    ProjectConfig,
    RequirementMetadata,
    hash_summary,
    kebab_case,
)

__all__ = [
    "MetadataStore",
    "ProjectConfig",
    "RequirementMetadata",
    "hash_summary",
    "kebab_case",
]
