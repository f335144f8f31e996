import logging
import math
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from app.schemas.assignment import Condition
from app.schemas.common import ConditionOperator

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a field the entity does not carry at all."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality: ``1 == 1.0`` but ``True != 1`` and ``"5" != 5``."""
    left, right = _plain(left), _plain(right)
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def to_float(value: Any) -> float:
    """Parse *value* as a float; anything unparsable becomes NaN."""
    value = _plain(value)
    if value is MISSING or value is None or isinstance(value, bool):
        return math.nan
    if _is_number(value):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return math.nan


def _stringify(value: Any) -> str:
    value = _plain(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


class ConditionEvaluator:
    """Evaluates a single rule condition against an entity's field map.

    A field the entity lacks is compared as :data:`MISSING`.  That makes
    every operator false except ``not_equals``, which is true: a rule
    like ``source not_equals "referral"`` also matches entities that
    have no ``source`` at all.  Unknown operators and malformed
    comparison values never raise; they simply do not match.
    """

    @staticmethod
    def matches(condition: Condition, entity_fields: Mapping[str, Any]) -> bool:
        field_value = entity_fields.get(condition.field, MISSING)
        expected = condition.value
        try:
            return ConditionEvaluator._apply(condition.operator, field_value, expected)
        except (TypeError, ValueError, AttributeError):
            logger.debug(
                "Condition on %s (%s) could not be evaluated",
                condition.field,
                condition.operator,
                exc_info=True,
            )
            return False

    @staticmethod
    def _apply(operator: str, field_value: Any, expected: Any) -> bool:
        if operator == ConditionOperator.equals.value:
            return strict_equals(field_value, expected)

        if operator == ConditionOperator.not_equals.value:
            return not strict_equals(field_value, expected)

        if operator == ConditionOperator.contains.value:
            if field_value is MISSING or not field_value:
                return False
            return _stringify(expected).lower() in _stringify(field_value).lower()

        if operator == ConditionOperator.greater_than.value:
            return to_float(field_value) > to_float(expected)

        if operator == ConditionOperator.less_than.value:
            return to_float(field_value) < to_float(expected)

        if operator == ConditionOperator.between.value:
            if not isinstance(expected, (list, tuple)) or len(expected) != 2:
                return False
            number = to_float(field_value)
            return to_float(expected[0]) <= number <= to_float(expected[1])

        if operator == ConditionOperator.in_.value:
            if not isinstance(expected, (list, tuple, set, frozenset)):
                return False
            return any(strict_equals(field_value, item) for item in expected)

        return False
