from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from bant_scoring.api.deps import get_scoring_service
from bant_scoring.schemas.common import ChangeReason, Dimension
from bant_scoring.schemas.scoring_config import (
    ConfigUpdateResponse,
    InitializeConfigResponse,
    ScoringConfigOut,
    ScoringConfigUpdate,
)
from bant_scoring.services.lead_scoring import LeadScoringService

router = APIRouter(prefix="/scoring", tags=["Scoring configuration"])


@router.post("/initialize", response_model=InitializeConfigResponse)
async def initialize_config(
    service: LeadScoringService = Depends(get_scoring_service),
) -> InitializeConfigResponse:
    """Seed the default BANT rubric when no configuration exists."""
    inserted = await service.initialize_default_config()
    return InitializeConfigResponse(inserted=inserted)


@router.get("/config", response_model=List[ScoringConfigOut])
async def list_config(
    service: LeadScoringService = Depends(get_scoring_service),
) -> List[ScoringConfigOut]:
    return await service.list_configs()


@router.put("/config/{dimension}", response_model=ConfigUpdateResponse)
async def update_config(
    dimension: Dimension,
    update: ScoringConfigUpdate,
    background_tasks: BackgroundTasks,
    service: LeadScoringService = Depends(get_scoring_service),
) -> ConfigUpdateResponse:
    """Update one dimension's configuration.

    Changes that affect computed scores (weight, activity, rules or
    bonus rules) schedule a full recalculation after the response is
    sent.
    """
    config = await service.update_config(dimension, update)
    scheduled = service.requires_recalculation(update)
    if scheduled:
        background_tasks.add_task(service.recalculate_all, ChangeReason.config_update)
    return ConfigUpdateResponse(
        config=config,
        recalculation_scheduled=scheduled,
    )
