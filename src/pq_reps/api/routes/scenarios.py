"""Scenario presets for the UI picker."""

from fastapi import APIRouter

from ...practice import SCENARIOS
from ..models.responses import ScenarioItem, ScenarioListResponse

router = APIRouter()


@router.get("/scenarios", response_model=ScenarioListResponse, response_model_by_alias=True)
async def list_scenarios() -> ScenarioListResponse:
    return ScenarioListResponse(
        scenarios=[ScenarioItem.model_validate(scenario.to_dict()) for scenario in SCENARIOS]
    )
