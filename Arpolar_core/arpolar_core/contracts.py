from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .models import Contract, OrgNode, new_contract_id
from .utils import fold


@dataclass(slots=True)
class ContractDefaults:
    address: str = "A definir"
    region: str = "A definir"
    background_image: str = "https://placehold.co/600x400"


@dataclass(slots=True)
class SyncResult:
    contracts: list[Contract]
    created: Contract | None = None


def find_contract(contracts: Sequence[Contract], name: str) -> Contract | None:
    wanted = fold(name)
    for contract in contracts:
        if fold(contract.name) == wanted:
            return contract
    return None


def sync_contract(
    contracts: Sequence[Contract],
    contract_name: str | None,
    parent: OrgNode | None,
    *,
    defaults: ContractDefaults | None = None,
) -> SyncResult:
    """Garante que o contrato de um subordinado de Supervisor esteja cadastrado.

    Apenas acrescenta registros: contratos existentes nunca sao editados nem
    removidos. Sem nome de contrato, sem pai ou com pai que nao seja fronteira
    de contratos, a lista volta como estava.
    """
    current = list(contracts)
    name = (contract_name or "").strip()
    if not name or parent is None or not parent.role.syncs_contracts:
        return SyncResult(current)
    if any(contract.name == name for contract in current):
        return SyncResult(current)
    defaults = defaults or ContractDefaults()
    created = Contract(
        id=new_contract_id(),
        name=name,
        supervisor_id=parent.id,
        supervisor_name=parent.name,
        address=defaults.address,
        region=defaults.region,
        background_image=defaults.background_image,
    )
    current.append(created)
    return SyncResult(current, created)
