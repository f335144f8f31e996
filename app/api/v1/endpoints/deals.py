from typing import List

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_deal_service
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.assignment import BulkAssignRequest
from app.schemas.common import BulkResult, DealStage, SuccessResponse
from app.schemas.deal import (
    BulkStageUpdateRequest,
    DealCreate,
    DealCreateResponse,
    DealOut,
    DealUpdate,
    PipelineMetrics,
    StageDurationAnalytics,
    StageHistoryEntry,
    StageTransitionRequest,
)
from app.services.deal_service import DealService

router = APIRouter(prefix="/deals", tags=["Deals"])


@router.get("", response_model=List[DealOut])
async def list_deals(service: DealService = Depends(get_deal_service)):
    return await service.list_deals()


@router.get("/analytics/stage-durations", response_model=StageDurationAnalytics)
async def get_stage_duration_analytics(
    service: DealService = Depends(get_deal_service),
):
    """Average time spent per stage, in milliseconds."""
    return await service.stage_duration_analytics()


@router.get("/analytics/pipeline", response_model=PipelineMetrics)
async def get_pipeline_metrics(service: DealService = Depends(get_deal_service)):
    return await service.pipeline_metrics()


@router.get("/stage/{stage}", response_model=List[DealOut])
async def list_deals_by_stage(
    stage: DealStage, service: DealService = Depends(get_deal_service)
):
    return await service.list_by_stage(stage)


@router.get("/owner/{owner_id}", response_model=List[DealOut])
async def list_deals_by_owner(
    owner_id: int, service: DealService = Depends(get_deal_service)
):
    return await service.list_by_owner(owner_id)


@router.get("/{deal_id}", response_model=DealOut)
async def get_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    return await service.get_deal(deal_id)


@router.get("/{deal_id}/stage-history", response_model=List[StageHistoryEntry])
async def get_stage_history(
    deal_id: int, service: DealService = Depends(get_deal_service)
):
    return await service.get_stage_history(deal_id)


@router.post("", response_model=DealCreateResponse, status_code=201)
async def create_deal(
    payload: DealCreate, service: DealService = Depends(get_deal_service)
) -> DealCreateResponse:
    deal, decision = await service.create_deal(payload)
    return DealCreateResponse(
        deal=DealOut.model_validate(deal),
        assignment=decision,
        requires_manual_assignment=deal.deal_owner is None,
    )


@router.put("/{deal_id}", response_model=DealOut)
async def update_deal(
    deal_id: int,
    payload: DealUpdate,
    service: DealService = Depends(get_deal_service),
):
    """Update deal fields.  Use ``POST /deals/{id}/stage`` to move stages."""
    return await service.update_deal(deal_id, payload)


@router.post("/{deal_id}/stage", response_model=DealOut)
async def transition_deal_stage(
    deal_id: int,
    payload: StageTransitionRequest,
    service: DealService = Depends(get_deal_service),
):
    return await service.transition_stage(deal_id, payload.stage)


@router.post("/bulk-stage", response_model=BulkResult)
@limiter.limit(settings.BULK_RATE_LIMIT)
async def bulk_update_stage(
    request: Request,
    payload: BulkStageUpdateRequest,
    service: DealService = Depends(get_deal_service),
):
    return await service.bulk_update_stage(payload.ids, payload.stage)


@router.post("/bulk-assign", response_model=BulkResult)
@limiter.limit(settings.BULK_RATE_LIMIT)
async def bulk_assign_deals(
    request: Request,
    payload: BulkAssignRequest,
    service: DealService = Depends(get_deal_service),
):
    return await service.bulk_assign(payload.ids, payload.assignee_id)


@router.delete("/{deal_id}", response_model=SuccessResponse)
async def delete_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    await service.delete_deal(deal_id)
    return SuccessResponse()
