"""Operation selector: discriminator value -> backend action id."""

import logging
from typing import Any

from form_engine.errors import UnknownOperation
from form_engine.schemas.form_schema import OperationRule, UnknownValuePolicy
from form_engine.utils.value_parsing import as_text

logger = logging.getLogger(__name__)


def select_action(discriminator_value: Any, rule: OperationRule) -> str:
    """Map a discriminator value to an action id.

    Args:
        discriminator_value: Current value of the discriminator (e.g. "send")
        rule: Operation rule from the schema

    Returns:
        Action id

    Raises:
        UnknownOperation: If the value is unmapped and the policy is strict-throw
    """
    key = as_text(discriminator_value)
    if key is not None and key in rule.mapping:
        return rule.mapping[key]

    if rule.unknown_value_policy == UnknownValuePolicy.FALLBACK_DEFAULT:
        logger.debug(
            f"Unmapped {rule.discriminator_field}={discriminator_value!r}, "
            f"falling back to '{rule.default}'"
        )
        return rule.default

    raise UnknownOperation(discriminator_value, rule.discriminator_field)
