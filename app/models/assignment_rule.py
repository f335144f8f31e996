from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.types import JSONDocument
from app.schemas.assignment import RuleCriteria


class AssignmentRule(Base):
    """Prioritised routing rule for one entity type.

    ``criteria`` holds the ordered condition list as a JSON document.
    Lower ``priority`` values are evaluated first; ties fall back to
    ``id`` (insertion order).
    """

    __tablename__ = "assignment_rules"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    entity = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default="true")
    priority = Column(Integer, nullable=False, server_default="1")
    criteria = Column(JSONDocument(RuleCriteria, default=RuleCriteria))
    fallback_strategy = Column(
        String(50), nullable=False, server_default="least_workload"
    )
    assign_to = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_assignment_rules_entity_active", "entity", "is_active", "priority"),
    )
