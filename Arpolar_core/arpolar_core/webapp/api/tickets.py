from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ... import errors
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import TicketCreate, TicketOut

router = APIRouter()


@router.get("/", response_model=List[TicketOut])
def list_tickets(container: ServiceContainer = Depends(get_container)) -> List[TicketOut]:
    tickets = container.read(container.service.list_tickets)
    return [TicketOut.model_validate(ticket.to_dict()) for ticket in tickets]


@router.post("/", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
def open_ticket(payload: TicketCreate, container: ServiceContainer = Depends(get_container)) -> TicketOut:
    data = payload.model_dump(exclude={"node_id"})
    try:
        ticket = container.mutate(container.service.open_ticket, payload.node_id, **data)
    except errors.ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except errors.PayloadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return TicketOut.model_validate(ticket.to_dict())
