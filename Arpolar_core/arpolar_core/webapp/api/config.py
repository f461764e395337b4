from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...errors import ValidationError
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import ConfigPayload, Message

router = APIRouter()


@router.get("/", response_model=ConfigPayload)
def get_config(container: ServiceContainer = Depends(get_container)) -> ConfigPayload:
    return ConfigPayload(**container.config.to_dict())


@router.post("/recarregar", response_model=Message)
def reload_config(container: ServiceContainer = Depends(get_container)) -> Message:
    try:
        container.reload_config()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Message(detail="Configuracao recarregada do arquivo.")
