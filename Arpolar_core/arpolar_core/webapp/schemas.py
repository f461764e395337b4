from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NodeOut(CamelModel):
    id: str
    name: str
    role: str
    avatar: str = ""
    contact: Optional[str] = None
    contract: Optional[str] = None
    show_in_neural_net: Optional[bool] = Field(default=None, alias="showInNeuralNet")
    contract_settings: Optional[Dict[str, Any]] = Field(default=None, alias="contractSettings")
    children: List["NodeOut"] = Field(default_factory=list)


class NodeCreate(CamelModel):
    name: str
    role: str
    contact: str = ""
    contract: str = ""
    avatar: str = ""
    contract_settings: Optional[Dict[str, Any]] = Field(default=None, alias="contractSettings")

    @field_validator("name", "role")
    @classmethod
    def required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("campo obrigatorio")
        return v.strip()


class NodeUpdate(CamelModel):
    name: Optional[str] = None
    role: Optional[str] = None
    contact: Optional[str] = None
    contract: Optional[str] = None
    avatar: Optional[str] = None
    show_in_neural_net: Optional[bool] = Field(default=None, alias="showInNeuralNet")
    contract_settings: Optional[Dict[str, Any]] = Field(default=None, alias="contractSettings")


class MoveRequest(CamelModel):
    dragged_id: str = Field(alias="draggedId")
    target_id: str = Field(alias="targetId")


class ContractOut(CamelModel):
    id: str
    name: str
    supervisor_id: str = Field(alias="supervisorId")
    supervisor_name: str = Field(alias="supervisorName")
    address: str = ""
    region: str = ""
    background_image: str = Field(default="", alias="backgroundImage")


class NodeChangeOut(CamelModel):
    changed: bool
    node: Optional[NodeOut] = None
    contract: Optional[ContractOut] = None
    avatar_error: Optional[str] = Field(default=None, alias="avatarError")
    message: str


class EmployeeOut(CamelModel):
    id: str
    name: str
    role: str
    email: str
    phone: str
    supervisor_id: str = Field(alias="supervisorId")
    contract: str
    avatar: str


class VisibleNodeOut(CamelModel):
    id: str
    name: str
    role: str
    avatar: str
    index: int
    angle: float
    x: float
    y: float


class TicketCreate(CamelModel):
    node_id: str = Field(alias="nodeId")
    message: str
    urgency: str = "Rotina"
    status: str = "Em andamento"
    visibility: str = "publico"
    recipient_id: Optional[str] = Field(default=None, alias="recipientId")
    contract_name: Optional[str] = Field(default=None, alias="contractName")
    supervisor: Optional[str] = None
    contact: Optional[str] = None
    equipment_name: Optional[str] = Field(default=None, alias="equipmentName")
    equipment_brand: Optional[str] = Field(default=None, alias="equipmentBrand")
    equipment_model: Optional[str] = Field(default=None, alias="equipmentModel")
    cause: Optional[str] = None

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("mensagem obrigatoria")
        return v


class TicketOut(CamelModel):
    id: str
    contract_name: str = Field(alias="contractName")
    supervisor: str
    contact: str
    message: str
    urgency: str
    status: str
    author: str
    created_at: str = Field(alias="createdAt")
    visibility: str
    recipient_id: Optional[str] = Field(default=None, alias="recipientId")
    equipment_name: Optional[str] = Field(default=None, alias="equipmentName")
    equipment_brand: Optional[str] = Field(default=None, alias="equipmentBrand")
    equipment_model: Optional[str] = Field(default=None, alias="equipmentModel")
    cause: Optional[str] = None


class ChartSettingsPayload(CamelModel):
    contract_name: str = Field(default="Contrato Principal", alias="contractName")
    region: str = "N/A"
    address: str = "N/A"
    responsible: str = "N/A"
    background_image: Optional[str] = Field(default=None, alias="backgroundImage")


class ConfigPayload(BaseModel):
    general: Dict[str, Any]
    storage: Dict[str, Any]
    contracts: Dict[str, Any]


class Message(BaseModel):
    detail: str


NodeOut.model_rebuild()
