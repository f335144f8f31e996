from sqlalchemy import func, select

from app.core.constants import (
    COMPLETED_TASK_STATUSES,
    TERMINAL_DEAL_STAGES,
    TERMINAL_LEAD_STAGES,
)
from app.models.contact import Contact
from app.models.deal import Deal
from app.models.lead import Lead
from app.models.task import Task
from app.repositories.base import BaseRepository
from app.schemas.team import Workload


class WorkloadRepository(BaseRepository):
    """Counts the open items each team member currently owns.

    Leads and deals in a terminal stage and completed tasks are not
    counted; every owned contact is.
    """

    async def get_workload(self, member_id: int) -> Workload:
        contacts = await self._count(
            select(func.count()).select_from(Contact).where(
                Contact.assigned_to == member_id
            )
        )
        leads = await self._count(
            select(func.count()).select_from(Lead).where(
                Lead.assigned_to == member_id,
                Lead.stage.notin_(sorted(TERMINAL_LEAD_STAGES)),
            )
        )
        deals = await self._count(
            select(func.count()).select_from(Deal).where(
                Deal.deal_owner == member_id,
                Deal.stage.notin_(sorted(TERMINAL_DEAL_STAGES)),
            )
        )
        tasks = await self._count(
            select(func.count()).select_from(Task).where(
                Task.assigned_to == member_id,
                Task.status.notin_(sorted(COMPLETED_TASK_STATUSES)),
            )
        )
        return Workload(contacts=contacts, leads=leads, deals=deals, tasks=tasks)

    async def _count(self, query) -> int:
        result = await self._db.execute(query)
        return result.scalar() or 0
