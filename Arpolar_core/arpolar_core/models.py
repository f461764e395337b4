from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from .utils import epoch_millis, fold, random_token, to_nfc, utcnow_iso

ROOT_ID = "arpolar"
ROOT_AVATAR = "https://i.ibb.co/zVzbGGgD/fundoaqc.jpg"
PLACEHOLDER_AVATAR = "https://placehold.co/100x100"


@dataclass(frozen=True, slots=True)
class Role:
    """Cargo de um no do organograma.

    O rotulo e livre; as capacidades vem do catalogo de cargos conhecidos.
    ``syncs_contracts`` marca o cargo cujos subordinados registram contratos
    automaticamente (o Supervisor).
    """

    label: str
    syncs_contracts: bool = False
    is_contract: bool = False

    @property
    def key(self) -> str:
        return fold(self.label)

    def __str__(self) -> str:
        return self.label


ROLE_CATALOG: tuple[Role, ...] = (
    Role("Empresa"),
    Role("Diretor"),
    Role("Gerente"),
    Role("Coordenador"),
    Role("Supervisor", syncs_contracts=True),
    Role("Região"),
    Role("Contrato", is_contract=True),
    Role("Apoio"),
    Role("Mecânico"),
    Role("1/2 Oficial"),
    Role("Ajudante"),
    Role("Eletricista"),
    Role("Auxiliar de PMOC"),
    Role("PMOC"),
    Role("Técnico de Planejamento"),
    Role("Coordenador de Contratos"),
    Role("Gerente de Contratos"),
    Role("Auxiliar Administrativo"),
    Role("Supervisor de Qualidade"),
)

_ROLES_BY_KEY: Dict[str, Role] = {role.key: role for role in ROLE_CATALOG}

SUPERVISOR = _ROLES_BY_KEY["SUPERVISOR"]


def normalize_role(value: str | Role) -> Role:
    if isinstance(value, Role):
        return value
    label = to_nfc(str(value).strip())
    if not label:
        raise ValueError("Funcao obrigatoria")
    return _ROLES_BY_KEY.get(fold(label), Role(label))


def new_node_id() -> str:
    return f"node-{epoch_millis()}-{random_token()}"


def new_contract_id() -> str:
    return f"contract-{epoch_millis()}-{uuid4().hex[:6]}"


def new_ticket_id() -> str:
    return f"ticket-{epoch_millis()}-{uuid4().hex[:6]}"


@dataclass(slots=True)
class OrgNode:
    id: str
    name: str
    role: Role
    avatar: str = ""
    contact: str = ""
    contract: str = ""
    show_in_neural_net: Optional[bool] = None
    children: list["OrgNode"] = field(default_factory=list)
    contract_settings: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.role = normalize_role(self.role)

    @property
    def visible(self) -> bool:
        # Only an explicit False hides the node.
        return self.show_in_neural_net is not False

    def shallow_copy(self) -> "OrgNode":
        return replace(self, children=list(self.children))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "role": self.role.label,
            "avatar": self.avatar,
        }
        if self.contact:
            data["contact"] = self.contact
        if self.contract:
            data["contract"] = self.contract
        if self.show_in_neural_net is not None:
            data["showInNeuralNet"] = self.show_in_neural_net
        if self.contract_settings is not None:
            data["contractSettings"] = dict(self.contract_settings)
        data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrgNode":
        flag = data.get("showInNeuralNet")
        settings = data.get("contractSettings")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            role=normalize_role(str(data["role"])),
            avatar=str(data.get("avatar") or ""),
            contact=str(data.get("contact") or ""),
            contract=str(data.get("contract") or ""),
            show_in_neural_net=None if flag is None else bool(flag),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            contract_settings=dict(settings) if settings is not None else None,
        )


def seed_tree() -> OrgNode:
    return OrgNode(
        id=ROOT_ID,
        name="Arpolar",
        role="Empresa",
        avatar=ROOT_AVATAR,
        show_in_neural_net=True,
        children=[
            OrgNode(id="dir1", name="Diretoria", role="Diretor", avatar=PLACEHOLDER_AVATAR),
        ],
    )


@dataclass(slots=True)
class Contract:
    id: str
    name: str
    supervisor_id: str
    supervisor_name: str
    address: str = ""
    region: str = ""
    background_image: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "supervisorId": self.supervisor_id,
            "supervisorName": self.supervisor_name,
            "address": self.address,
            "region": self.region,
            "backgroundImage": self.background_image,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contract":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            supervisor_id=str(data.get("supervisorId") or ""),
            supervisor_name=str(data.get("supervisorName") or ""),
            address=str(data.get("address") or ""),
            region=str(data.get("region") or ""),
            background_image=str(data.get("backgroundImage") or ""),
        )


@dataclass(slots=True)
class Employee:
    id: str
    name: str
    role: str
    email: str
    phone: str
    supervisor_id: str
    contract: str
    avatar: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "supervisorId": self.supervisor_id,
            "contract": self.contract,
            "avatar": self.avatar,
        }


URGENCIES: tuple[str, ...] = ("Rotina", "Atenção", "Crítico")
TICKET_STATUSES: tuple[str, ...] = ("Em andamento", "Finalizado")
VISIBILITIES: tuple[str, ...] = ("publico", "privado")


def _pick(value: str, choices: tuple[str, ...], label: str) -> str:
    wanted = fold(value)
    for choice in choices:
        if fold(choice) == wanted:
            return choice
    raise ValueError(f"{label} desconhecida: {value}")


@dataclass(slots=True)
class Ticket:
    id: str
    contract_name: str
    supervisor: str
    contact: str
    message: str
    author: str
    urgency: str = "Rotina"
    status: str = "Em andamento"
    visibility: str = "publico"
    created_at: str = field(default_factory=utcnow_iso)
    recipient_id: str | None = None
    equipment_name: str | None = None
    equipment_brand: str | None = None
    equipment_model: str | None = None
    cause: str | None = None

    def __post_init__(self) -> None:
        self.urgency = _pick(self.urgency, URGENCIES, "Urgencia")
        self.status = _pick(self.status, TICKET_STATUSES, "Status")
        self.visibility = _pick(self.visibility, VISIBILITIES, "Visibilidade")
        if self.visibility == "publico":
            self.recipient_id = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "contractName": self.contract_name,
            "supervisor": self.supervisor,
            "contact": self.contact,
            "message": self.message,
            "urgency": self.urgency,
            "status": self.status,
            "author": self.author,
            "createdAt": self.created_at,
            "visibility": self.visibility,
        }
        optional = {
            "recipientId": self.recipient_id,
            "equipmentName": self.equipment_name,
            "equipmentBrand": self.equipment_brand,
            "equipmentModel": self.equipment_model,
            "cause": self.cause,
        }
        data.update({key: value for key, value in optional.items() if value})
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ticket":
        return cls(
            id=str(data["id"]),
            contract_name=str(data.get("contractName") or ""),
            supervisor=str(data.get("supervisor") or ""),
            contact=str(data.get("contact") or ""),
            message=str(data.get("message") or ""),
            author=str(data.get("author") or ""),
            urgency=str(data.get("urgency") or "Rotina"),
            status=str(data.get("status") or "Em andamento"),
            visibility=str(data.get("visibility") or "publico"),
            created_at=str(data.get("createdAt") or utcnow_iso()),
            recipient_id=data.get("recipientId"),
            equipment_name=data.get("equipmentName"),
            equipment_brand=data.get("equipmentBrand"),
            equipment_model=data.get("equipmentModel"),
            cause=data.get("cause"),
        )


@dataclass(slots=True)
class ChartSettings:
    contract_name: str = "Contrato Principal"
    region: str = "N/A"
    address: str = "N/A"
    responsible: str = "N/A"
    background_image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "contractName": self.contract_name,
            "region": self.region,
            "address": self.address,
            "responsible": self.responsible,
        }
        if self.background_image is not None:
            data["backgroundImage"] = self.background_image
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChartSettings":
        defaults = cls()
        return cls(
            contract_name=str(data.get("contractName") or defaults.contract_name),
            region=str(data.get("region") or defaults.region),
            address=str(data.get("address") or defaults.address),
            responsible=str(data.get("responsible") or defaults.responsible),
            background_image=data.get("backgroundImage"),
        )
