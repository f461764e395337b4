from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ... import errors
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import ChartSettingsPayload

router = APIRouter()


@router.get("/", response_model=ChartSettingsPayload)
def get_settings(container: ServiceContainer = Depends(get_container)) -> ChartSettingsPayload:
    settings = container.read(container.service.chart_settings)
    return ChartSettingsPayload.model_validate(settings.to_dict())


@router.put("/", response_model=ChartSettingsPayload)
def save_settings(payload: ChartSettingsPayload, container: ServiceContainer = Depends(get_container)) -> ChartSettingsPayload:
    try:
        settings = container.mutate(container.service.save_chart_settings, **payload.model_dump())
    except errors.ArpolarError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ChartSettingsPayload.model_validate(settings.to_dict())
