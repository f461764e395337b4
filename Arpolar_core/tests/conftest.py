from __future__ import annotations

import pytest

from arpolar_core.models import OrgNode
from arpolar_core.repository import MemoryStore, OrgStorage
from arpolar_core.service import OrgChartService

SAMPLE_TREE = {
    "id": "arpolar",
    "name": "Arpolar",
    "role": "Empresa",
    "avatar": "",
    "showInNeuralNet": True,
    "children": [
        {
            "id": "dir1",
            "name": "Diretoria",
            "role": "Diretor",
            "avatar": "",
            "children": [
                {
                    "id": "ger1",
                    "name": "Gerencia Sul",
                    "role": "Gerente",
                    "avatar": "",
                    "children": [
                        {
                            "id": "sup1",
                            "name": "Carlos Ferreira",
                            "role": "Supervisor",
                            "avatar": "",
                            "contact": "carlos.f@arpolar.com",
                            "children": [
                                {
                                    "id": "emp1",
                                    "name": "Joao Silva",
                                    "role": "Mecânico",
                                    "avatar": "https://placehold.co/100x100",
                                    "contact": "(11) 98765-4321",
                                    "contract": "Contrato Alpha",
                                    "children": [],
                                },
                                {
                                    "id": "emp2",
                                    "name": "Maria Oliveira",
                                    "role": "Eletricista",
                                    "avatar": "",
                                    "showInNeuralNet": False,
                                    "children": [],
                                },
                            ],
                        }
                    ],
                },
                {
                    "id": "sup2",
                    "name": "Beatriz Costa",
                    "role": "Supervisor",
                    "avatar": "",
                    "children": [],
                },
            ],
        }
    ],
}



@pytest.fixture
def sample_tree() -> OrgNode:
    return OrgNode.from_dict(SAMPLE_TREE)


@pytest.fixture
def storage() -> OrgStorage:
    return OrgStorage.from_store(MemoryStore(), avatar_max_bytes=200)


@pytest.fixture
def service(storage: OrgStorage, sample_tree: OrgNode) -> OrgChartService:
    storage.tree.save(sample_tree)
    return OrgChartService(storage)
