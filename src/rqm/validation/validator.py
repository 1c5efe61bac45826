"""Schema and semantic validation of requirements documents."""

import logging

from rqm.core.errors import DuplicateSummaryError, InvalidOwnerError, SchemaValidationError
from rqm.core.models import RequirementConfig
from rqm.validation.schema import SchemaChecker

logger = logging.getLogger("rqm")


class Validator:
    """Validate a parsed document in three stages.

    Stages run in order and the first failing stage raises:

    1. Schema conformance of the document's structured form.
    2. Every summary is unique (first repeat in document order).
    3. Every non-empty owner is an email, a ``@handle``, or a defined alias.

    Args:
        checker: Schema checker to use. Defaults to the bundled schema.
    """

    def __init__(self, checker: SchemaChecker | None = None) -> None:
        self.checker = checker if checker is not None else SchemaChecker()

    def validate(self, config: RequirementConfig) -> None:
        """Validate a document, raising on the first failing stage.

        Raises:
            SchemaValidationError: If the schema reports any violation.
            DuplicateSummaryError: If a summary appears more than once.
            InvalidOwnerError: If an owner cannot be resolved.
        """
        violations = self.checker.check(config.to_dict())
        if violations:
            raise SchemaValidationError(violations)

        self._validate_unique_summaries(config)
        self._validate_owner_references(config)
        logger.debug("Validated %d requirements", len(config.all_requirements()))

    @staticmethod
    def _validate_unique_summaries(config: RequirementConfig) -> None:
        seen: set[str] = set()
        for req in config.all_requirements():
            if req.summary in seen:
                raise DuplicateSummaryError(req.summary)
            seen.add(req.summary)

    @staticmethod
    def _validate_owner_references(config: RequirementConfig) -> None:
        aliases = config.alias_map()
        for req in config.all_requirements():
            owner = req.owner
            if owner is None or not owner.value:
                continue
            if not owner.is_email and not owner.is_github and owner.value not in aliases:
                raise InvalidOwnerError(owner.value)
