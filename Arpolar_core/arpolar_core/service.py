from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List

from .config import Config
from .contracts import sync_contract
from .errors import PayloadTooLargeError, ValidationError
from .models import (
    PLACEHOLDER_AVATAR,
    ChartSettings,
    Contract,
    Employee,
    OrgNode,
    Ticket,
    new_node_id,
    new_ticket_id,
    seed_tree,
)
from .repository import CONTRACTS_KEY, SETTINGS_KEY, TICKETS_KEY, TREE_KEY, AvatarStorage, JsonFileStore, OrgStorage
from .tree import (
    NodePosition,
    add_child_node,
    find_node,
    find_parent,
    flatten_tree_to_employees,
    get_visible_nodes,
    iter_nodes,
    move_node,
    radial_layout,
    remove_node,
    toggle_visibility,
    update_node,
)
from .utils import AVATAR_REF_PREFIX, avatar_ref, is_data_url

logger = logging.getLogger(__name__)

NEURAL_NET_ROLES = ("Supervisor",)


@dataclass(slots=True)
class NodeChange:
    """Resultado de uma alteracao no organograma.

    ``avatar_error`` e preenchido quando a imagem nao pode ser guardada; a
    alteracao da arvore permanece valida mesmo assim.
    """

    tree: OrgNode
    node: OrgNode | None = None
    changed: bool = True
    contract: Contract | None = None
    avatar_error: str | None = None


class OrgChartService:
    def __init__(self, storage: OrgStorage, config: Config | None = None) -> None:
        self.storage = storage
        self.config = config or Config()
        self._tree = self.storage.tree.load() or seed_tree()

    @classmethod
    def from_config(cls, config: Config, state_path: Path | str | None = None) -> "OrgChartService":
        path = Path(state_path or config.storage.state_path)
        store = JsonFileStore.open(path, quota_bytes=config.quota)
        storage = OrgStorage.from_store(store, avatar_max_bytes=config.avatar_limit)
        return cls(storage, config)

    # data access -----------------------------------------------------
    @property
    def tree(self) -> OrgNode:
        return self._tree

    def reload(self) -> OrgNode:
        self._tree = self.storage.tree.load() or seed_tree()
        return self._tree

    def get_node(self, node_id: str) -> OrgNode | None:
        return find_node(self._tree, node_id)

    def supervisor_of(self, node_id: str) -> OrgNode | None:
        return find_parent(self._tree, node_id)

    def resolve_avatar(self, node: OrgNode) -> str:
        stored = self.storage.avatars.get(node.id)
        if stored:
            return stored
        if node.avatar.startswith(AVATAR_REF_PREFIX):
            return PLACEHOLDER_AVATAR
        return node.avatar or PLACEHOLDER_AVATAR

    # tree mutations --------------------------------------------------
    def add_child(
        self,
        parent_id: str,
        *,
        name: str,
        role: str,
        contact: str = "",
        contract: str = "",
        avatar: str = "",
        contract_settings: dict[str, Any] | None = None,
    ) -> NodeChange:
        self._require(name, role)
        parent = find_node(self._tree, parent_id)
        if parent is None:
            logger.info("No pai %s nao encontrado; organograma inalterado", parent_id)
            return NodeChange(self._tree, changed=False)
        node_id = new_node_id()
        stored_avatar, pending = self._externalize_avatar(node_id, avatar)
        data = {
            "name": name.strip(),
            "role": role.strip(),
            "contact": (contact or "").strip(),
            "contract": (contract or "").strip(),
            "avatar": stored_avatar,
            "contract_settings": contract_settings,
        }
        tree = add_child_node(self._tree, parent_id, data, node_id=node_id)
        self._commit(tree)
        logger.info("No %s adicionado sob %s", node_id, parent_id)
        change = NodeChange(tree, find_node(tree, node_id))
        if pending is not None:
            change.avatar_error = self._store_avatar(node_id, pending)
        change.contract = self._sync_contract(data["contract"], parent)
        return change

    def update_node(self, node_id: str, **values: Any) -> NodeChange:
        for key in ("name", "role"):
            if key in values and not str(values[key] or "").strip():
                raise ValidationError("Nome e Funcao sao obrigatorios.")
        for key in ("name", "role", "contact", "contract"):
            if key in values:
                values[key] = str(values[key] or "").strip()
        if "avatar" in values and values["avatar"] is None:
            values["avatar"] = ""
        if find_node(self._tree, node_id) is None:
            logger.info("No %s nao encontrado; organograma inalterado", node_id)
            return NodeChange(self._tree, changed=False)
        pending = None
        if "avatar" in values:
            values["avatar"], pending = self._externalize_avatar(node_id, values["avatar"] or "")
        try:
            tree = update_node(self._tree, node_id, values)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        self._commit(tree)
        change = NodeChange(tree, find_node(tree, node_id))
        if pending is not None:
            change.avatar_error = self._store_avatar(node_id, pending)
        if values.get("contract"):
            change.contract = self._sync_contract(values["contract"], find_parent(tree, node_id))
        return change

    def toggle_visibility(self, node_id: str) -> NodeChange:
        tree = toggle_visibility(self._tree, node_id)
        if tree is self._tree:
            return NodeChange(tree, changed=False)
        self._commit(tree)
        return NodeChange(tree, find_node(tree, node_id))

    def remove_node(self, node_id: str) -> NodeChange:
        if node_id == self._tree.id:
            return self.reset()
        node = find_node(self._tree, node_id)
        tree = remove_node(self._tree, node_id)
        if node is None or tree is self._tree:
            return NodeChange(tree, changed=False)
        self._commit(tree)
        self._drop_avatars(item.id for item in iter_nodes(node))
        logger.info("No %s removido", node_id)
        return NodeChange(tree, node)

    def move_node(self, dragged_id: str, target_id: str) -> NodeChange:
        tree = move_node(dragged_id, target_id, self._tree)
        if tree is self._tree:
            logger.debug("Movimento %s -> %s ignorado", dragged_id, target_id)
            return NodeChange(tree, changed=False)
        self._commit(tree)
        logger.info("No %s movido para %s", dragged_id, target_id)
        return NodeChange(tree, find_node(tree, dragged_id))

    def reset(self) -> NodeChange:
        previous = self._tree
        self.storage.tree.clear()
        self.storage.notifier.publish(TREE_KEY)
        tree = remove_node(previous, previous.id)
        self._commit(tree)
        kept = {node.id for node in iter_nodes(tree)}
        self._drop_avatars(node.id for node in iter_nodes(previous) if node.id not in kept)
        logger.info("Organograma restaurado para a arvore inicial")
        return NodeChange(tree, tree)

    # derived views ---------------------------------------------------
    def visible_nodes(self, *, supervisors_only: bool = False) -> List[OrgNode]:
        return get_visible_nodes(self._tree, NEURAL_NET_ROLES if supervisors_only else None)

    def neural_net_layout(self, *, supervisors_only: bool = True, radius: float = 1.0) -> List[NodePosition]:
        return radial_layout(self.visible_nodes(supervisors_only=supervisors_only), radius)

    def employees(self) -> List[Employee]:
        return flatten_tree_to_employees(self._tree)

    def list_contracts(self) -> List[Contract]:
        return self.storage.contracts.load()

    # tickets ----------------------------------------------------------
    def list_tickets(self) -> List[Ticket]:
        return self.storage.tickets.load()

    def open_ticket(
        self,
        node_id: str,
        *,
        message: str,
        urgency: str = "Rotina",
        status: str = "Em andamento",
        visibility: str = "publico",
        recipient_id: str | None = None,
        contract_name: str | None = None,
        supervisor: str | None = None,
        contact: str | None = None,
        equipment_name: str | None = None,
        equipment_brand: str | None = None,
        equipment_model: str | None = None,
        cause: str | None = None,
    ) -> Ticket:
        node = self.get_node(node_id)
        if node is None:
            raise ValidationError("Membro nao encontrado.")
        fields = {
            "contract_name": (contract_name if contract_name is not None else node.contract).strip(),
            "supervisor": (supervisor if supervisor is not None else node.name).strip(),
            "contact": (contact if contact is not None else node.contact).strip(),
            "message": message.strip(),
        }
        if not all(fields.values()):
            raise ValidationError("Contrato, supervisor, contato e mensagem sao obrigatorios.")
        try:
            ticket = Ticket(
                id=new_ticket_id(),
                author=node.name,
                urgency=urgency,
                status=status,
                visibility=visibility,
                recipient_id=recipient_id,
                equipment_name=equipment_name,
                equipment_brand=equipment_brand,
                equipment_model=equipment_model,
                cause=cause,
                **fields,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if ticket.visibility == "privado" and not ticket.recipient_id:
            raise ValidationError("Selecione um destinatario para a ocorrencia privada.")
        self.storage.tickets.prepend(ticket)
        self.storage.notifier.publish(TICKETS_KEY)
        logger.info("Ocorrencia %s aberta por %s", ticket.id, node.name)
        return ticket

    # chart settings ---------------------------------------------------
    def chart_settings(self) -> ChartSettings:
        return self.storage.settings.load()

    def save_chart_settings(self, **values: Any) -> ChartSettings:
        current = self.storage.settings.load().to_dict()
        keys = {
            "contract_name": "contractName",
            "region": "region",
            "address": "address",
            "responsible": "responsible",
            "background_image": "backgroundImage",
        }
        for name, value in values.items():
            if name not in keys:
                raise ValidationError(f"Campo desconhecido: {name}")
            if value is not None:
                current[keys[name]] = value
        settings = ChartSettings.from_dict(current)
        self.storage.settings.save(settings)
        self.storage.notifier.publish(SETTINGS_KEY)
        return settings

    # helpers ----------------------------------------------------------
    @staticmethod
    def _require(name: str | None, role: str | None) -> None:
        if not (name or "").strip() or not (role or "").strip():
            raise ValidationError("Nome e Funcao sao obrigatorios.")

    def _commit(self, tree: OrgNode) -> None:
        self.storage.tree.save(tree)
        self._tree = tree
        self.storage.notifier.publish(TREE_KEY)

    @staticmethod
    def _externalize_avatar(node_id: str, avatar: str) -> tuple[str, str | None]:
        if not is_data_url(avatar):
            return avatar, None
        return avatar_ref(node_id), avatar

    def _store_avatar(self, node_id: str, payload: str) -> str | None:
        try:
            self.storage.avatars.save(node_id, payload)
        except PayloadTooLargeError as exc:
            logger.warning("Falha ao salvar avatar de %s: %s", node_id, exc)
            return str(exc)
        self.storage.notifier.publish(AvatarStorage.key(node_id))
        return None

    def _drop_avatars(self, node_ids) -> None:
        for node_id in node_ids:
            if self.storage.avatars.get(node_id) is not None:
                self.storage.avatars.remove(node_id)
                self.storage.notifier.publish(AvatarStorage.key(node_id))

    def _sync_contract(self, contract_name: str | None, parent: OrgNode | None) -> Contract | None:
        result = sync_contract(
            self.storage.contracts.load(),
            contract_name,
            parent,
            defaults=self.config.contract_defaults(),
        )
        if result.created is None:
            return None
        try:
            self.storage.contracts.save(result.contracts)
        except PayloadTooLargeError as exc:
            logger.warning("Contrato %s nao registrado: %s", result.created.name, exc)
            return None
        self.storage.notifier.publish(CONTRACTS_KEY)
        logger.info("Contrato %s registrado para o supervisor %s", result.created.name, parent.name)
        return result.created
