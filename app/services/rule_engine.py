import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from app.schemas.team import TeamMember
from app.services.condition_evaluator import ConditionEvaluator

logger = logging.getLogger(__name__)


def _entity_name(entity: Any) -> str:
    return getattr(entity, "value", entity)


@dataclass(frozen=True)
class RuleMatch:
    """The rule and assignee selected for an entity."""

    rule: Any
    assignee_id: int


class RuleEngine:
    """Selects an assignee by walking active rules in priority order.

    Rules are tried by ascending ``priority`` (ties keep their storage
    order).  Inside a rule, conditions are tried in order and the first
    one that matches *and* names an available team member wins.  A
    condition without its own ``assign_to`` targets the rule's.
    """

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None) -> None:
        self._evaluator = evaluator or ConditionEvaluator()

    @staticmethod
    def applicable_rules(entity_type: Any, rules: Iterable[Any]) -> List[Any]:
        entity = _entity_name(entity_type)
        applicable = [
            r for r in rules if r.is_active and _entity_name(r.entity) == entity
        ]
        # sorted() is stable, so equal priorities keep their input order.
        return sorted(applicable, key=lambda r: r.priority)

    def find_match(
        self,
        entity_type: Any,
        entity_fields: Mapping[str, Any],
        rules: Iterable[Any],
        team_members: Sequence[TeamMember],
    ) -> Optional[RuleMatch]:
        roster = {m.id: m for m in team_members}

        for rule in self.applicable_rules(entity_type, rules):
            for condition in rule.criteria.conditions:
                if not self._evaluator.matches(condition, entity_fields):
                    continue

                target = (
                    condition.assign_to
                    if condition.assign_to is not None
                    else rule.assign_to
                )
                member = roster.get(target)
                if member is not None and member.is_available:
                    return RuleMatch(rule=rule, assignee_id=member.id)

                logger.debug(
                    "Rule %s matched but member %s is not available",
                    rule.id,
                    target,
                )
        return None

    def evaluate(
        self,
        entity_type: Any,
        entity_fields: Mapping[str, Any],
        rules: Iterable[Any],
        team_members: Sequence[TeamMember],
    ) -> Optional[int]:
        """Return the chosen assignee id, or ``None`` if no rule applies."""
        match = self.find_match(entity_type, entity_fields, rules, team_members)
        return match.assignee_id if match else None
