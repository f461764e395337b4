from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...errors import PayloadTooLargeError
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import Message

router = APIRouter()


@router.post("/resetar", response_model=Message)
def reset_tree(container: ServiceContainer = Depends(get_container)) -> Message:
    try:
        container.mutate(container.service.reset)
    except PayloadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return Message(detail=container.localizer.text("tree.reset"))


@router.post("/recarregar", response_model=Message)
def reload_state(container: ServiceContainer = Depends(get_container)) -> Message:
    container.reload_state()
    return Message(detail="Estado recarregado do armazenamento.")
