from typing import List

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_lead_service
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.assignment import BulkAssignRequest
from app.schemas.common import BulkResult, SuccessResponse
from app.schemas.lead import (
    LeadCreate,
    LeadCreateResponse,
    LeadOut,
    LeadUpdate,
    ScoreBreakdown,
    ScoringConfigOut,
)
from app.services.lead_service import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("", response_model=List[LeadOut])
async def list_leads(service: LeadService = Depends(get_lead_service)):
    return await service.list_leads()


@router.get("/by-score", response_model=List[LeadOut])
async def list_leads_by_score(service: LeadService = Depends(get_lead_service)):
    """All leads, highest score first."""
    return await service.list_by_score()


@router.get("/scoring-rules", response_model=ScoringConfigOut)
async def get_scoring_rules(service: LeadService = Depends(get_lead_service)):
    """Weights and thresholds used by the lead scorer."""
    return service.scoring_config()


@router.get("/assignee/{assignee_id}", response_model=List[LeadOut])
async def list_leads_for_assignee(
    assignee_id: int, service: LeadService = Depends(get_lead_service)
):
    return await service.list_by_assignee(assignee_id)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(lead_id: int, service: LeadService = Depends(get_lead_service)):
    return await service.get_lead(lead_id)


@router.get("/{lead_id}/score-breakdown", response_model=ScoreBreakdown)
async def get_score_breakdown(
    lead_id: int, service: LeadService = Depends(get_lead_service)
):
    return await service.score_breakdown(lead_id)


@router.post("", response_model=LeadCreateResponse, status_code=201)
async def create_lead(
    payload: LeadCreate, service: LeadService = Depends(get_lead_service)
) -> LeadCreateResponse:
    """Create a lead, auto-assigning an owner when none is given.

    ``requires_manual_assignment`` is set when the lead was left
    without an owner.
    """
    lead, decision = await service.create_lead(payload)
    return LeadCreateResponse(
        lead=LeadOut.model_validate(lead),
        assignment=decision,
        requires_manual_assignment=lead.assigned_to is None,
    )


@router.put("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    service: LeadService = Depends(get_lead_service),
):
    return await service.update_lead(lead_id, payload)


@router.delete("/{lead_id}", response_model=SuccessResponse)
async def delete_lead(lead_id: int, service: LeadService = Depends(get_lead_service)):
    await service.delete_lead(lead_id)
    return SuccessResponse()


@router.post("/recalculate-scores", response_model=BulkResult)
@limiter.limit(settings.BULK_RATE_LIMIT)
async def recalculate_scores(
    request: Request, service: LeadService = Depends(get_lead_service)
):
    """Re-score every lead.  Rate-limited; this touches every row."""
    return await service.recalculate_all_scores()


@router.post("/bulk-assign", response_model=BulkResult)
@limiter.limit(settings.BULK_RATE_LIMIT)
async def bulk_assign_leads(
    request: Request,
    payload: BulkAssignRequest,
    service: LeadService = Depends(get_lead_service),
):
    return await service.bulk_assign(payload.ids, payload.assignee_id)
