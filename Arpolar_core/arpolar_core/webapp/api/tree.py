from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ... import errors
from ...models import OrgNode
from ...service import NodeChange
from ..container import ServiceContainer
from ..dependencies import get_container
from ..schemas import (
    ContractOut,
    EmployeeOut,
    MoveRequest,
    NodeChangeOut,
    NodeCreate,
    NodeOut,
    NodeUpdate,
    VisibleNodeOut,
)

router = APIRouter()


def _node_to_schema(node: OrgNode) -> NodeOut:
    return NodeOut.model_validate(node.to_dict())


def _change_to_schema(container: ServiceContainer, change: NodeChange, key: str, node_id: str) -> NodeChangeOut:
    if not change.changed:
        message = container.localizer.text("node.not_found", node_id=node_id)
    else:
        message = container.localizer.text(key)
    return NodeChangeOut(
        changed=change.changed,
        node=_node_to_schema(change.node) if change.node is not None else None,
        contract=ContractOut.model_validate(change.contract.to_dict()) if change.contract else None,
        avatar_error=change.avatar_error,
        message=message,
    )


def _mutate(container: ServiceContainer, func, *args, **kwargs) -> Any:
    try:
        return container.mutate(func, *args, **kwargs)
    except errors.ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except errors.PayloadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc


@router.get("/", response_model=NodeOut)
def get_tree(container: ServiceContainer = Depends(get_container)) -> NodeOut:
    tree = container.read(lambda: container.service.tree)
    return _node_to_schema(tree)


@router.get("/visible", response_model=List[VisibleNodeOut])
def visible_nodes(
    supervisors_only: bool = Query(default=False, alias="supervisorsOnly"),
    radius: float = Query(default=1.0, gt=0),
    container: ServiceContainer = Depends(get_container),
) -> List[VisibleNodeOut]:
    service = container.service

    def build() -> List[VisibleNodeOut]:
        nodes = {node.id: node for node in service.visible_nodes(supervisors_only=supervisors_only)}
        layout = service.neural_net_layout(supervisors_only=supervisors_only, radius=radius)
        return [
            VisibleNodeOut(
                id=position.node_id,
                name=nodes[position.node_id].name,
                role=nodes[position.node_id].role.label,
                avatar=service.resolve_avatar(nodes[position.node_id]),
                index=position.index,
                angle=position.angle,
                x=position.x,
                y=position.y,
            )
            for position in layout
        ]

    return container.read(build)


@router.get("/employees", response_model=List[EmployeeOut])
def list_employees(container: ServiceContainer = Depends(get_container)) -> List[EmployeeOut]:
    employees = container.read(container.service.employees)
    return [EmployeeOut.model_validate(employee.to_dict()) for employee in employees]


@router.post("/move", response_model=NodeChangeOut)
def move_node(payload: MoveRequest, container: ServiceContainer = Depends(get_container)) -> NodeChangeOut:
    change = _mutate(container, container.service.move_node, payload.dragged_id, payload.target_id)
    return _change_to_schema(container, change, "node.moved", payload.dragged_id)


@router.get("/nodes/{node_id}", response_model=NodeOut)
def get_node(node_id: str, container: ServiceContainer = Depends(get_container)) -> NodeOut:
    node = container.read(container.service.get_node, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=container.localizer.text("node.not_found", node_id=node_id))
    return _node_to_schema(node)


@router.put("/nodes/{node_id}", response_model=NodeChangeOut)
def update_node(node_id: str, payload: NodeUpdate, container: ServiceContainer = Depends(get_container)) -> NodeChangeOut:
    data = payload.model_dump(exclude_unset=True)
    change = _mutate(container, container.service.update_node, node_id, **data)
    return _change_to_schema(container, change, "node.updated", node_id)


@router.delete("/nodes/{node_id}", response_model=NodeChangeOut)
def remove_node(node_id: str, container: ServiceContainer = Depends(get_container)) -> NodeChangeOut:
    service = container.service

    def remove() -> tuple[bool, NodeChange]:
        is_root = node_id == service.tree.id
        return is_root, service.remove_node(node_id)

    is_root, change = _mutate(container, remove)
    return _change_to_schema(container, change, "tree.reset" if is_root else "node.removed", node_id)


@router.post("/nodes/{parent_id}/children", response_model=NodeChangeOut, status_code=status.HTTP_201_CREATED)
def add_child(parent_id: str, payload: NodeCreate, container: ServiceContainer = Depends(get_container)) -> NodeChangeOut:
    change = _mutate(
        container,
        container.service.add_child,
        parent_id,
        name=payload.name,
        role=payload.role,
        contact=payload.contact,
        contract=payload.contract,
        avatar=payload.avatar,
        contract_settings=payload.contract_settings,
    )
    return _change_to_schema(container, change, "node.added", parent_id)


@router.post("/nodes/{node_id}/visibility", response_model=NodeChangeOut)
def toggle_visibility(node_id: str, container: ServiceContainer = Depends(get_container)) -> NodeChangeOut:
    change = _mutate(container, container.service.toggle_visibility, node_id)
    return _change_to_schema(container, change, "node.visibility", node_id)


@router.get("/nodes/{node_id}/supervisor", response_model=NodeOut)
def supervisor_of(node_id: str, container: ServiceContainer = Depends(get_container)) -> NodeOut:
    parent = container.read(container.service.supervisor_of, node_id)
    if parent is None:
        raise HTTPException(status_code=404, detail=f"Sem superior para {node_id}.")
    return _node_to_schema(parent)


@router.get("/nodes/{node_id}/avatar")
def node_avatar(node_id: str, container: ServiceContainer = Depends(get_container)) -> dict[str, str]:
    node = container.read(container.service.get_node, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=container.localizer.text("node.not_found", node_id=node_id))
    return {"id": node_id, "avatar": container.read(container.service.resolve_avatar, node)}
