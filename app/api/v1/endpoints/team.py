from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_team_directory
from app.schemas.team import AvailabilityUpdate, TeamMember, WorkloadOut
from app.services.team_directory import TeamDirectory

router = APIRouter(prefix="/team", tags=["Team"])


@router.get("/members", response_model=List[TeamMember])
async def list_members(directory: TeamDirectory = Depends(get_team_directory)):
    return await directory.list_members()


@router.get("/members/available", response_model=List[TeamMember])
async def list_available_members(
    directory: TeamDirectory = Depends(get_team_directory),
):
    return await directory.list_available()


@router.get("/members/{member_id}", response_model=TeamMember)
async def get_member(
    member_id: int, directory: TeamDirectory = Depends(get_team_directory)
):
    return await directory.get_member(member_id)


@router.get("/members/{member_id}/workload", response_model=WorkloadOut)
async def get_member_workload(
    member_id: int, directory: TeamDirectory = Depends(get_team_directory)
) -> WorkloadOut:
    """Open contacts, leads, deals and tasks owned by the member."""
    await directory.get_member(member_id)
    workload = await directory.get_workload(member_id)
    return WorkloadOut(
        member_id=member_id,
        **workload.model_dump(),
        total_active=workload.total_active,
    )


@router.put("/members/{member_id}/availability", response_model=TeamMember)
async def set_member_availability(
    member_id: int,
    payload: AvailabilityUpdate,
    directory: TeamDirectory = Depends(get_team_directory),
):
    return await directory.set_availability(member_id, payload.availability)
