import logging
from typing import List

from app.core.exceptions import InvalidRuleError, RuleNotFoundError
from app.models.assignment_rule import AssignmentRule
from app.repositories.assignment_rule_repository import AssignmentRuleRepository
from app.schemas.assignment import AssignmentRuleBase
from app.schemas.common import ConditionOperator, EntityType

logger = logging.getLogger(__name__)

_OPERATORS = {op.value for op in ConditionOperator}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_rule_data(rule: AssignmentRuleBase) -> List[str]:
    """Return every problem with *rule*; an empty list means it is valid."""
    errors: List[str] = []

    if not rule.name or not rule.name.strip():
        errors.append("Rule name is required")

    conditions = rule.criteria.conditions
    if not conditions:
        errors.append("At least one condition is required")

    for position, condition in enumerate(conditions, start=1):
        prefix = f"Condition {position}"
        if not condition.field or not condition.field.strip():
            errors.append(f"{prefix}: field is required")

        if condition.operator not in _OPERATORS:
            errors.append(f"{prefix}: unknown operator '{condition.operator}'")
        elif condition.operator == ConditionOperator.between.value:
            value = condition.value
            if (
                not isinstance(value, (list, tuple))
                or len(value) != 2
                or not all(_is_number(v) for v in value)
            ):
                errors.append(f"{prefix}: 'between' needs a [min, max] pair of numbers")
            elif value[0] > value[1]:
                errors.append(f"{prefix}: 'between' minimum exceeds maximum")
        elif condition.operator == ConditionOperator.in_.value:
            if not isinstance(condition.value, (list, tuple)) or not condition.value:
                errors.append(f"{prefix}: 'in' needs a non-empty list of values")

        if condition.value is None or condition.value == "":
            errors.append(f"{prefix}: value is required")

        if condition.assign_to is None and rule.assign_to is None:
            errors.append(f"{prefix}: assignee is required")

    return errors


class AssignmentRuleService:
    """CRUD for assignment rules, with validation on every write."""

    def __init__(self, rule_repo: AssignmentRuleRepository) -> None:
        self._rule_repo = rule_repo

    async def list_rules(self) -> List[AssignmentRule]:
        try:
            return await self._rule_repo.list_all()
        except Exception:
            logger.error("Failed to load assignment rules", exc_info=True)
            return []

    async def list_active_for_entity(self, entity: EntityType) -> List[AssignmentRule]:
        try:
            return await self._rule_repo.get_active_by_entity(entity.value)
        except Exception:
            logger.error("Failed to load %s rules", entity.value, exc_info=True)
            return []

    async def get_rule(self, rule_id: int) -> AssignmentRule:
        rule = await self._rule_repo.get_by_id(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Assignment rule {rule_id} not found")
        return rule

    async def create_rule(self, data: AssignmentRuleBase) -> AssignmentRule:
        errors = validate_rule_data(data)
        if errors:
            raise InvalidRuleError(errors)

        rule = await self._rule_repo.create(
            name=data.name.strip(),
            entity=data.entity.value,
            is_active=data.is_active,
            priority=data.priority,
            criteria=data.criteria,
            fallback_strategy=data.fallback_strategy.value,
            assign_to=data.assign_to,
        )
        await self._rule_repo.commit()
        logger.info("Created assignment rule %s (%s)", rule.id, rule.name)
        return rule

    async def update_rule(self, rule_id: int, data: AssignmentRuleBase) -> AssignmentRule:
        errors = validate_rule_data(data)
        if errors:
            raise InvalidRuleError(errors)
        rule = await self.get_rule(rule_id)

        rule.name = data.name.strip()
        rule.entity = data.entity.value
        rule.is_active = data.is_active
        rule.priority = data.priority
        rule.criteria = data.criteria
        rule.fallback_strategy = data.fallback_strategy.value
        rule.assign_to = data.assign_to
        await self._rule_repo.commit()
        return rule

    async def toggle_rule(self, rule_id: int) -> AssignmentRule:
        rule = await self.get_rule(rule_id)
        rule.is_active = not rule.is_active
        await self._rule_repo.commit()
        logger.info(
            "Assignment rule %s %s",
            rule_id,
            "enabled" if rule.is_active else "disabled",
        )
        return rule

    async def delete_rule(self, rule_id: int) -> None:
        rule = await self.get_rule(rule_id)
        await self._rule_repo.delete(rule)
        await self._rule_repo.commit()
