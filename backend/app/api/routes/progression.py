"""XP curve reference endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Query

from app.api.schemas.progression import LevelRequirementPayload, LevelRequirementsResponse
from app.services.progression import get_level_xp_requirements

router = APIRouter()


@router.get("/progression/levels", response_model=LevelRequirementsResponse, tags=["progression"])
def list_level_requirements(max_level: int = Query(20, ge=1, le=100)) -> LevelRequirementsResponse:
    """Cumulative and incremental XP needed for each level up to ``max_level``."""
    return LevelRequirementsResponse(
        levels=[
            LevelRequirementPayload(level=req.level, total_xp=req.total_xp, xp_to_reach=req.xp_to_reach)
            for req in get_level_xp_requirements(max_level)
        ]
    )
