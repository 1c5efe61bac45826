"""rqm - requirements management in code."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rqm")
except PackageNotFoundError:
    __version__ = "0.0.0"

from rqm.core.models import PersonAlias, Reference, Requirement, RequirementConfig
from rqm.graph import RequirementGraph
from rqm.metadata import MetadataStore
from rqm.validation import Validator

__all__ = [
    "MetadataStore",
    "PersonAlias",
    "Reference",
    "Requirement",
    "RequirementConfig",
    "RequirementGraph",
    "Validator",
]
