from typing import Any, Dict, List

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.types import JSONDocument
from app.schemas.assignment import AssignmentHistoryEntry
from app.schemas.lead import QualificationChecklist, ScoreHistoryEntry


class Lead(Base):
    """Sales prospect with a computed 1–100 score.

    ``score`` and ``score_history`` are owned by the scoring engine and
    are rewritten on every create/update; the qualification checklist
    and both history logs are stored as JSON text documents.
    ``updated_at`` is set explicitly by the service layer so that a bulk
    score recalculation does not reset lead recency.
    """

    __tablename__ = "leads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    contact_name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    value = Column(Numeric(15, 2, asdecimal=False))
    budget = Column(Numeric(15, 2, asdecimal=False))
    timeline = Column(String(100))
    source = Column(String(50), nullable=False, server_default="website")
    stage = Column(String(50), nullable=False, server_default="new")
    notes = Column(Text)
    assigned_to = Column(Integer)
    assignment_history = Column(
        JSONDocument(List[AssignmentHistoryEntry], default=list)
    )
    qualification = Column(
        JSONDocument(QualificationChecklist, default=QualificationChecklist)
    )
    score = Column(Integer, nullable=False, server_default="1")
    score_history = Column(JSONDocument(List[ScoreHistoryEntry], default=list))
    tags = Column(JSONDocument(List[str], default=list))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_leads_assigned_stage", "assigned_to", "stage"),
        Index("idx_leads_score", "score"),
        CheckConstraint("score BETWEEN 1 AND 100", name="ck_lead_score_range"),
    )

    def to_fields(self) -> Dict[str, Any]:
        """Field map used by assignment rule conditions."""
        return {
            "title": self.title,
            "company": self.company,
            "contact_name": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "value": self.value,
            "budget": self.budget,
            "timeline": self.timeline,
            "source": self.source,
            "stage": self.stage,
            "notes": self.notes,
            "score": self.score,
            "tags": list(self.tags or []),
        }
