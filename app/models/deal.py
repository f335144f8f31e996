from typing import Any, Dict, List

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.types import JSONDocument
from app.schemas.assignment import AssignmentHistoryEntry
from app.schemas.deal import StageHistoryEntry


class Deal(Base):
    """Sales opportunity moving through the deal pipeline.

    ``stage_history`` always ends with exactly one open entry matching
    ``stage``; it is only advanced through the stage-transition flow.
    """

    __tablename__ = "deals"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2, asdecimal=False), nullable=False, server_default="0")
    stage = Column(String(50), nullable=False, server_default="new")
    probability = Column(Integer, nullable=False, server_default="25")
    close_date = Column(Date)
    notes = Column(Text)
    deal_owner = Column(Integer)
    contact_id = Column(Integer)
    stage_history = Column(JSONDocument(List[StageHistoryEntry], default=list))
    assignment_history = Column(
        JSONDocument(List[AssignmentHistoryEntry], default=list)
    )
    tags = Column(JSONDocument(List[str], default=list))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("idx_deals_owner_stage", "deal_owner", "stage"),
        CheckConstraint(
            "probability BETWEEN 0 AND 100", name="ck_deal_probability_range"
        ),
    )

    def to_fields(self) -> Dict[str, Any]:
        """Field map used by assignment rule conditions."""
        return {
            "title": self.title,
            "amount": self.amount,
            "stage": self.stage,
            "probability": self.probability,
            "notes": self.notes,
            "contact_id": self.contact_id,
            "tags": list(self.tags or []),
        }
