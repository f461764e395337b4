from __future__ import annotations

import pytest

from arpolar_core.models import (
    ROOT_AVATAR,
    ROOT_ID,
    SUPERVISOR,
    ChartSettings,
    OrgNode,
    Ticket,
    normalize_role,
    seed_tree,
)


def test_catalog_roles_are_case_and_accent_insensitive():
    assert normalize_role("supervisor") is SUPERVISOR
    assert normalize_role("  SUPERVISOR ").syncs_contracts
    assert normalize_role("mecanico").label == "Mecânico"
    assert normalize_role("contrato").is_contract


def test_unknown_role_is_kept_without_capabilities():
    role = normalize_role("Gerente de Frota")
    assert role.label == "Gerente de Frota"
    assert not role.syncs_contracts
    assert not role.is_contract


def test_empty_role_is_rejected():
    with pytest.raises(ValueError):
        normalize_role("   ")


def test_seed_tree_shape():
    tree = seed_tree()
    assert tree.id == ROOT_ID
    assert tree.name == "Arpolar"
    assert tree.role.label == "Empresa"
    assert tree.avatar == ROOT_AVATAR
    assert [child.id for child in tree.children] == ["dir1"]
    assert tree.children[0].role.label == "Diretor"
    assert seed_tree() is not seed_tree()


def test_node_dict_uses_camel_case_and_omits_empty_fields():
    node = OrgNode(id="n1", name="Ana", role="Supervisor", show_in_neural_net=False)
    data = node.to_dict()
    assert data == {
        "id": "n1",
        "name": "Ana",
        "role": "Supervisor",
        "avatar": "",
        "showInNeuralNet": False,
        "children": [],
    }
    assert OrgNode.from_dict(data).to_dict() == data


def test_node_visibility_only_hidden_when_false():
    assert OrgNode(id="a", name="A", role="Apoio").visible
    assert OrgNode(id="a", name="A", role="Apoio", show_in_neural_net=True).visible
    assert not OrgNode(id="a", name="A", role="Apoio", show_in_neural_net=False).visible


def test_ticket_normalizes_choices():
    ticket = Ticket(
        id="t1",
        contract_name="Contrato Alpha",
        supervisor="Carlos",
        contact="carlos@arpolar.com",
        message="Compressor parado",
        author="Carlos",
        urgency="critico",
        status="finalizado",
        visibility="PUBLICO",
        recipient_id="sup2",
    )
    assert ticket.urgency == "Crítico"
    assert ticket.status == "Finalizado"
    assert ticket.visibility == "publico"
    assert ticket.recipient_id is None
    assert ticket.created_at.endswith("Z")


def test_ticket_rejects_unknown_urgency():
    with pytest.raises(ValueError):
        Ticket(id="t1", contract_name="C", supervisor="S", contact="c", message="m", author="a", urgency="Urgente")


def test_chart_settings_defaults_fill_blank_values():
    settings = ChartSettings.from_dict({"contractName": "", "region": "Sul"})
    assert settings.contract_name == "Contrato Principal"
    assert settings.region == "Sul"
    assert settings.background_image is None
    assert "backgroundImage" not in settings.to_dict()
