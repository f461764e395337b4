from __future__ import annotations

import json

import pytest

from arpolar_core.config import Config
from arpolar_core.errors import ValidationError
from arpolar_core.models import PLACEHOLDER_AVATAR, seed_tree
from arpolar_core.repository import CONTRACTS_KEY, TICKETS_KEY, TREE_KEY, MemoryStore, OrgStorage
from arpolar_core.service import OrgChartService

SMALL_IMAGE = "data:image/png;base64,iVBORw0KGgo="
LARGE_IMAGE = "data:image/png;base64," + "A" * 500


def collect_events(service):
    events = []
    service.storage.notifier.subscribe(events.append)
    return events


def test_starts_from_seed_when_storage_is_empty():
    service = OrgChartService(OrgStorage.from_store(MemoryStore()))
    assert service.tree.to_dict() == seed_tree().to_dict()


def test_malformed_stored_tree_falls_back_to_seed():
    storage = OrgStorage.from_store(MemoryStore({TREE_KEY: "{oops"}))
    assert OrgChartService(storage).tree.to_dict() == seed_tree().to_dict()


def test_add_child_persists_and_publishes(service, storage):
    events = collect_events(service)
    change = service.add_child("sup2", name="Luiz Souza", role="Mecânico", contact="(21) 99999-0000")
    assert change.changed
    assert change.node.name == "Luiz Souza"
    assert change.node.show_in_neural_net is True
    assert change.contract is None
    assert storage.tree.load().to_dict() == service.tree.to_dict()
    assert events == [TREE_KEY]


def test_add_child_under_supervisor_registers_contract_once(service, storage):
    events = collect_events(service)
    first = service.add_child("sup2", name="Luiz", role="Mecânico", contract="Contrato Beta")
    second = service.add_child("sup2", name="Rita", role="Ajudante", contract="Contrato Beta")

    assert first.contract.name == "Contrato Beta"
    assert first.contract.supervisor_id == "sup2"
    assert first.contract.supervisor_name == "Beatriz Costa"
    assert second.contract is None
    assert [contract.name for contract in service.list_contracts()] == ["Contrato Beta"]
    assert storage.contracts.load()[0].id == first.contract.id
    assert events.count(CONTRACTS_KEY) == 1


def test_add_child_outside_supervisor_skips_contract(service):
    change = service.add_child("ger1", name="Nova Equipe", role="Coordenador", contract="Contrato Delta")
    assert change.changed
    assert change.contract is None
    assert service.list_contracts() == []


def test_add_child_requires_name_and_role(service):
    with pytest.raises(ValidationError):
        service.add_child("sup2", name="  ", role="Mecânico")
    with pytest.raises(ValidationError):
        service.add_child("sup2", name="Luiz", role="")


def test_add_child_to_unknown_parent(service):
    before = service.tree
    change = service.add_child("ghost", name="Luiz", role="Mecânico")
    assert not change.changed
    assert service.tree is before


def test_data_url_avatar_is_stored_outside_tree(service, storage):
    change = service.add_child("sup2", name="Luiz", role="Mecânico", avatar=SMALL_IMAGE)
    node = change.node
    assert change.avatar_error is None
    assert node.avatar == f"avatar:{node.id}"
    assert SMALL_IMAGE not in storage.store.get(TREE_KEY)
    assert storage.avatars.get(node.id) == SMALL_IMAGE
    assert service.resolve_avatar(node) == SMALL_IMAGE


def test_avatar_failure_keeps_tree_change(service, storage):
    change = service.add_child("sup2", name="Luiz", role="Mecânico", avatar=LARGE_IMAGE)
    assert change.changed
    assert change.avatar_error
    assert service.get_node(change.node.id) is not None
    assert storage.avatars.get(change.node.id) is None
    assert service.resolve_avatar(change.node) == PLACEHOLDER_AVATAR


def test_plain_avatar_url_is_kept(service):
    change = service.update_node("sup2", avatar="https://example.com/b.png")
    assert change.node.avatar == "https://example.com/b.png"
    assert service.resolve_avatar(change.node) == "https://example.com/b.png"


def test_update_contract_syncs_with_parent(service):
    change = service.update_node("emp2", contract="Contrato Gama")
    assert change.node.contract == "Contrato Gama"
    assert change.contract.supervisor_id == "sup1"


def test_update_root_contract_has_no_parent(service):
    change = service.update_node("arpolar", contract="Contrato Raiz")
    assert change.changed
    assert change.contract is None
    assert service.list_contracts() == []


def test_update_validation(service):
    with pytest.raises(ValidationError):
        service.update_node("emp1", name="")
    with pytest.raises(ValidationError):
        service.update_node("emp1", salary=1)
    assert not service.update_node("ghost", name="X").changed


def test_update_clears_contact_with_none(service):
    change = service.update_node("emp1", contact=None)
    assert change.node.contact == ""


def test_remove_drops_subtree_avatars(service, storage):
    added = service.add_child("emp1", name="Aprendiz", role="Ajudante", avatar=SMALL_IMAGE)
    change = service.remove_node("sup1")
    assert change.changed
    assert service.get_node("sup1") is None
    assert service.get_node(added.node.id) is None
    assert storage.avatars.get(added.node.id) is None


def test_remove_root_resets_tree(service, storage):
    added = service.add_child("sup2", name="Luiz", role="Mecânico", avatar=SMALL_IMAGE)
    change = service.remove_node("arpolar")
    assert change.tree.to_dict() == seed_tree().to_dict()
    assert storage.tree.load().to_dict() == seed_tree().to_dict()
    assert storage.avatars.get(added.node.id) is None


def test_remove_unknown_node(service):
    assert not service.remove_node("ghost").changed


def test_move_is_persisted(service, storage):
    change = service.move_node("emp1", "sup2")
    assert change.changed
    reopened = OrgChartService(storage)
    assert reopened.supervisor_of("emp1").id == "sup2"


def test_invalid_move_does_not_commit(service):
    events = collect_events(service)
    assert not service.move_node("ger1", "emp1").changed
    assert events == []


def test_toggle_visibility_updates_network(service):
    assert [node.id for node in service.visible_nodes(supervisors_only=True)] == ["sup1", "sup2"]
    service.toggle_visibility("sup1")
    assert [position.node_id for position in service.neural_net_layout()] == ["sup2"]


def test_employees(service):
    employees = service.employees()
    assert len(employees) == 6
    assert employees[0].id == "dir1"


def test_open_ticket_defaults_from_node(service, storage):
    events = collect_events(service)
    ticket = service.open_ticket("emp1", message="Compressor parado", urgency="Critico")
    assert ticket.id.startswith("ticket-")
    assert ticket.contract_name == "Contrato Alpha"
    assert ticket.supervisor == "Joao Silva"
    assert ticket.contact == "(11) 98765-4321"
    assert ticket.author == "Joao Silva"
    assert ticket.urgency == "Crítico"
    assert events == [TICKETS_KEY]

    later = service.open_ticket("emp1", message="Vazamento")
    assert [item.id for item in service.list_tickets()] == [later.id, ticket.id]


def test_open_ticket_validation(service):
    with pytest.raises(ValidationError):
        service.open_ticket("ghost", message="x")
    with pytest.raises(ValidationError):
        service.open_ticket("emp2", message="Sem contrato")
    with pytest.raises(ValidationError):
        service.open_ticket("emp1", message="Privado", visibility="privado")
    with pytest.raises(ValidationError):
        service.open_ticket("emp1", message="x", urgency="Imediata")


def test_private_ticket_keeps_recipient(service):
    ticket = service.open_ticket("emp1", message="Privado", visibility="privado", recipient_id="sup1")
    assert ticket.recipient_id == "sup1"


def test_chart_settings(service):
    assert service.chart_settings().contract_name == "Contrato Principal"
    saved = service.save_chart_settings(contract_name="Contrato Alpha", region="Sul")
    assert saved.contract_name == "Contrato Alpha"
    assert service.chart_settings().region == "Sul"
    assert service.chart_settings().address == "N/A"
    with pytest.raises(ValidationError):
        service.save_chart_settings(color="azul")


def test_contract_sync_keeps_undecodable_records(service, storage):
    storage.store.set(
        CONTRACTS_KEY,
        json.dumps(
            [
                {"id": "c1", "name": "Contrato Alpha", "supervisorId": "sup1", "supervisorName": "Carlos Ferreira"},
                {"name": "Contrato Sem Id"},
            ]
        ),
    )
    change = service.add_child("sup1", name="Pedro", role="Ajudante", contract="Contrato Novo")
    assert change.contract.name == "Contrato Novo"
    names = [item["name"] for item in json.loads(storage.store.get(CONTRACTS_KEY))]
    assert names == ["Contrato Alpha", "Contrato Novo", "Contrato Sem Id"]


def test_open_ticket_keeps_undecodable_records(service, storage):
    broken = {
        "id": "t2",
        "contractName": "Contrato Alpha",
        "supervisor": "Carlos",
        "contact": "c",
        "message": "m",
        "author": "Carlos",
        "urgency": "Alta",
    }
    storage.store.set(TICKETS_KEY, json.dumps([broken]))
    ticket = service.open_ticket("emp1", message="Vazamento")
    stored = [item["id"] for item in json.loads(storage.store.get(TICKETS_KEY))]
    assert stored == [ticket.id, "t2"]


def test_corrupt_state_file_starts_from_seed(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    service = OrgChartService.from_config(Config(), path)
    assert service.tree.to_dict() == seed_tree().to_dict()
    assert (tmp_path / "state.json.bak").exists()

    service.add_child("dir1", name="Ana", role="Supervisor")
    reopened = OrgChartService.from_config(Config(), path)
    assert [child.name for child in reopened.get_node("dir1").children] == ["Ana"]


def test_contact_and_contract_are_trimmed(service):
    change = service.add_child("sup2", name=" Luiz ", role="Mecânico", contact=" 1234 ", contract=" Contrato X ")
    assert change.node.name == "Luiz"
    assert change.node.contact == "1234"
    assert change.node.contract == "Contrato X"
    assert change.contract.name == "Contrato X"

    updated = service.update_node("emp2", contract="  Contrato Y ")
    assert updated.node.contract == "Contrato Y"
    assert updated.contract.name == "Contrato Y"
