from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from app.schemas.common import Availability


class TeamMember(BaseModel):
    id: int
    name: str
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    department: Optional[str] = None
    availability: Availability = Availability.available
    last_updated: Optional[datetime] = None

    @property
    def is_available(self) -> bool:
        return self.availability == Availability.available


class Workload(BaseModel):
    """Snapshot of a member's open items, by entity type."""

    contacts: int = 0
    leads: int = 0
    deals: int = 0
    tasks: int = 0

    @property
    def total_active(self) -> int:
        return self.contacts + self.leads + self.deals + self.tasks


class WorkloadOut(BaseModel):
    member_id: int
    contacts: int
    leads: int
    deals: int
    tasks: int
    total_active: int


class AvailabilityUpdate(BaseModel):
    availability: Availability
