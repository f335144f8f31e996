from fastapi import APIRouter, Depends

from app.api.deps import get_assignment_orchestrator
from app.schemas.assignment import AutoAssignRequest, AutoAssignResponse
from app.services.auto_assignment import AssignmentOrchestrator

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.post("/auto", response_model=AutoAssignResponse)
async def auto_assign(
    payload: AutoAssignRequest,
    orchestrator: AssignmentOrchestrator = Depends(get_assignment_orchestrator),
) -> AutoAssignResponse:
    """Preview who would own an entity with the given fields.

    Nothing is persisted.  A ``None`` decision means no rule or
    available member could be found.
    """
    decision = await orchestrator.auto_assign(payload.entity_type, payload.fields)
    return AutoAssignResponse(
        decision=decision, requires_manual_assignment=decision is None
    )
