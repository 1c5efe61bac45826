"""Document validation for rqm."""

from rqm.validation.schema import SchemaChecker
from rqm.validation.validator import Validator

__all__ = ["SchemaChecker", "Validator"]
