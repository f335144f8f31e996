from app.models.base import Base
from app.models.lead import Lead
from app.models.deal import Deal
from app.models.contact import Contact
from app.models.task import Task
from app.models.assignment_rule import AssignmentRule

__all__ = [
    "Base",
    "Lead",
    "Deal",
    "Contact",
    "Task",
    "AssignmentRule",
]
