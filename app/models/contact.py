from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.models.base import Base


class Contact(Base):
    """Person record; only its owner matters to workload balancing."""

    __tablename__ = "contacts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    company = Column(String(255))
    assigned_to = Column(Integer, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
