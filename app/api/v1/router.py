from fastapi import APIRouter

from app.api.v1.endpoints import (
    assignment_rules,
    assignments,
    deals,
    health,
    leads,
    team,
)

router = APIRouter(prefix="/api/v1")

router.include_router(leads.router)
router.include_router(deals.router)
router.include_router(assignment_rules.router)
router.include_router(assignments.router)
router.include_router(team.router)
router.include_router(health.router)
