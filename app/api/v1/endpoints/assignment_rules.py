from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_rule_service
from app.schemas.assignment import (
    AssignmentRuleCreate,
    AssignmentRuleOut,
    AssignmentRuleUpdate,
)
from app.schemas.common import EntityType, SuccessResponse
from app.services.assignment_rules import AssignmentRuleService

router = APIRouter(prefix="/assignment-rules", tags=["Assignment Rules"])


@router.get("", response_model=List[AssignmentRuleOut])
async def list_rules(service: AssignmentRuleService = Depends(get_rule_service)):
    return await service.list_rules()


@router.get("/entity/{entity}", response_model=List[AssignmentRuleOut])
async def list_active_rules_for_entity(
    entity: EntityType, service: AssignmentRuleService = Depends(get_rule_service)
):
    """Active rules for one entity type, in evaluation order."""
    return await service.list_active_for_entity(entity)


@router.get("/{rule_id}", response_model=AssignmentRuleOut)
async def get_rule(
    rule_id: int, service: AssignmentRuleService = Depends(get_rule_service)
):
    return await service.get_rule(rule_id)


@router.post("", response_model=AssignmentRuleOut, status_code=201)
async def create_rule(
    payload: AssignmentRuleCreate,
    service: AssignmentRuleService = Depends(get_rule_service),
):
    return await service.create_rule(payload)


@router.put("/{rule_id}", response_model=AssignmentRuleOut)
async def update_rule(
    rule_id: int,
    payload: AssignmentRuleUpdate,
    service: AssignmentRuleService = Depends(get_rule_service),
):
    return await service.update_rule(rule_id, payload)


@router.post("/{rule_id}/toggle", response_model=AssignmentRuleOut)
async def toggle_rule(
    rule_id: int, service: AssignmentRuleService = Depends(get_rule_service)
):
    return await service.toggle_rule(rule_id)


@router.delete("/{rule_id}", response_model=SuccessResponse)
async def delete_rule(
    rule_id: int, service: AssignmentRuleService = Depends(get_rule_service)
):
    await service.delete_rule(rule_id)
    return SuccessResponse()
