from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ...service import OrgChartService
from ..dependencies import get_service
from ..schemas import ContractOut

router = APIRouter()


@router.get("/", response_model=List[ContractOut])
def list_contracts(service: OrgChartService = Depends(get_service)) -> List[ContractOut]:
    return [ContractOut.model_validate(contract.to_dict()) for contract in service.list_contracts()]
