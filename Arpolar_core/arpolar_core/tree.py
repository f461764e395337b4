"""Operacoes estruturais sobre o organograma.

Todas as funcoes sao puras: recebem uma arvore e devolvem uma arvore nova,
sem alterar o snapshot recebido. Ids inexistentes nunca levantam excecao;
a arvore volta inalterada.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Iterator, Mapping

from .models import ROOT_ID, Employee, OrgNode, new_node_id, normalize_role, seed_tree

NodeTransform = Callable[[OrgNode], OrgNode]
ChildrenEdit = Callable[[list[OrgNode]], list[OrgNode]]

NODE_FIELDS: tuple[str, ...] = (
    "name",
    "role",
    "avatar",
    "contact",
    "contract",
    "show_in_neural_net",
    "contract_settings",
)


@dataclass(slots=True)
class NodePosition:
    node_id: str
    index: int
    angle: float
    x: float
    y: float


# lookup ---------------------------------------------------------------
def find_node(tree: OrgNode, node_id: str) -> OrgNode | None:
    if tree.id == node_id:
        return tree
    for child in tree.children:
        found = find_node(child, node_id)
        if found is not None:
            return found
    return None


def find_parent(tree: OrgNode, node_id: str) -> OrgNode | None:
    for child in tree.children:
        if child.id == node_id:
            return tree
        found = find_parent(child, node_id)
        if found is not None:
            return found
    return None


def iter_nodes(tree: OrgNode) -> Iterator[OrgNode]:
    yield tree
    for child in tree.children:
        yield from iter_nodes(child)


def get_all_nodes(tree: OrgNode) -> list[OrgNode]:
    return list(iter_nodes(tree))


def count_nodes(tree: OrgNode) -> int:
    return sum(1 for _ in iter_nodes(tree))


def is_descendant(tree: OrgNode, ancestor_id: str, node_id: str) -> bool:
    ancestor = find_node(tree, ancestor_id)
    if ancestor is None or ancestor_id == node_id:
        return False
    return find_node(ancestor, node_id) is not None


# traversal ------------------------------------------------------------
def map_nodes(tree: OrgNode, transform: NodeTransform) -> OrgNode:
    """Reconstroi a arvore em pre-ordem aplicando ``transform`` a cada no.

    ``transform`` recebe uma copia rasa (com lista ``children`` propria) e o
    no devolvido ocupa a mesma posicao; os filhos dele sao reconstruidos em
    seguida.
    """
    updated = transform(tree.shallow_copy())
    return replace(updated, children=[map_nodes(child, transform) for child in updated.children])


update_tree = map_nodes


def splice_children(tree: OrgNode, parent_id: str, edit: ChildrenEdit) -> OrgNode:
    def transform(node: OrgNode) -> OrgNode:
        if node.id == parent_id:
            node.children = list(edit(node.children))
        return node

    return map_nodes(tree, transform)


# mutations ------------------------------------------------------------
def build_node(data: Mapping[str, Any], node_id: str | None = None) -> OrgNode:
    settings = data.get("contract_settings", data.get("contractSettings"))
    return OrgNode(
        id=node_id or new_node_id(),
        name=str(data["name"]),
        role=normalize_role(data["role"]),
        avatar=str(data.get("avatar") or ""),
        contact=str(data.get("contact") or ""),
        contract=str(data.get("contract") or ""),
        show_in_neural_net=True,
        children=[],
        contract_settings=dict(settings) if settings is not None else None,
    )


def add_child_node(
    tree: OrgNode,
    parent_id: str,
    child_data: Mapping[str, Any],
    node_id: str | None = None,
) -> OrgNode:
    if find_node(tree, parent_id) is None:
        return tree
    child = build_node(child_data, node_id)
    return splice_children(tree, parent_id, lambda children: [*children, child])


def remove_node(tree: OrgNode, node_id: str) -> OrgNode:
    if node_id == tree.id:
        return seed_tree()
    if find_parent(tree, node_id) is None:
        return tree

    def drop(node: OrgNode) -> OrgNode:
        node.children = [child for child in node.children if child.id != node_id]
        return node

    return map_nodes(tree, drop)


def move_node(dragged_id: str, target_id: str, tree: OrgNode) -> OrgNode:
    if dragged_id == target_id:
        return tree

    captured: list[OrgNode] = []

    def detach(node: OrgNode) -> OrgNode:
        if captured:
            return node
        for index, child in enumerate(node.children):
            if child.id == dragged_id:
                captured.append(child)
                node.children = node.children[:index] + node.children[index + 1 :]
                break
        return node

    detached = map_nodes(tree, detach)
    if not captured:
        return tree

    # The reattachment point is searched in the detached tree only, so a target
    # living inside the dragged subtree is unreachable and cannot form a cycle.
    assert find_node(detached, dragged_id) is None
    if find_node(detached, target_id) is None:
        return tree

    moved = captured[0]
    return splice_children(detached, target_id, lambda children: [*children, moved])


def update_node(tree: OrgNode, node_id: str, values: Mapping[str, Any]) -> OrgNode:
    unknown = sorted(set(values) - set(NODE_FIELDS))
    if unknown:
        raise ValueError(f"Campos desconhecidos: {', '.join(unknown)}")
    if find_node(tree, node_id) is None:
        return tree

    def transform(node: OrgNode) -> OrgNode:
        if node.id == node_id:
            return replace(node, **values)
        return node

    return map_nodes(tree, transform)


def toggle_visibility(tree: OrgNode, node_id: str) -> OrgNode:
    node = find_node(tree, node_id)
    if node is None:
        return tree
    return update_node(tree, node_id, {"show_in_neural_net": node.show_in_neural_net is False})


# derived views --------------------------------------------------------
def get_visible_nodes(tree: OrgNode, roles: Iterable[str] | None = None) -> list[OrgNode]:
    wanted = None if roles is None else {normalize_role(role).key for role in roles}
    excluded = {ROOT_ID, tree.id}
    return [
        node
        for node in iter_nodes(tree)
        if node.visible and node.id not in excluded and (wanted is None or node.role.key in wanted)
    ]


def _split_contact(contact: str) -> tuple[str, str]:
    if "@" in contact:
        return contact, ""
    return "", contact


def flatten_tree_to_employees(tree: OrgNode) -> list[Employee]:
    employees: list[Employee] = []

    def traverse(node: OrgNode, supervisor_id: str) -> None:
        if node.id != ROOT_ID:
            email, phone = _split_contact(node.contact or "")
            employees.append(
                Employee(
                    id=node.id,
                    name=node.name or "",
                    role=node.role.label,
                    email=email,
                    phone=phone,
                    supervisor_id=supervisor_id,
                    contract=node.contract or "",
                    avatar=node.avatar or "",
                )
            )
        for child in node.children:
            traverse(child, node.id)

    for child in tree.children:
        traverse(child, tree.id)
    return employees


def radial_layout(nodes: list[OrgNode], radius: float = 1.0) -> list[NodePosition]:
    if not nodes:
        return []
    step = 2 * math.pi / len(nodes)
    positions = []
    for index, node in enumerate(nodes):
        angle = index * step
        positions.append(
            NodePosition(
                node_id=node.id,
                index=index,
                angle=angle,
                x=radius * math.cos(angle),
                y=radius * math.sin(angle),
            )
        )
    return positions
