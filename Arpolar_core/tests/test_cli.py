from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from arpolar_core.cli import app
from arpolar_core.errors import ValidationError

runner = CliRunner()


@pytest.fixture
def base_args(tmp_path) -> list[str]:
    return ["--config", str(tmp_path / "config.toml"), "--state", str(tmp_path / "state.json")]


def invoke(base_args, *args):
    return runner.invoke(app, [*base_args, *args])


def test_show_seed_tree(base_args):
    result = invoke(base_args, "arvore", "mostrar")
    assert result.exit_code == 0, result.output
    assert "Arpolar [Empresa] (arpolar)" in result.output
    assert "Diretoria [Diretor] (dir1)" in result.output


def test_add_member_and_sync_contract(base_args, tmp_path):
    result = invoke(base_args, "arvore", "adicionar", "--pai", "dir1", "--nome", "Ana", "--funcao", "Supervisor")
    assert result.exit_code == 0, result.output
    assert "Membro adicionado" in result.output
    ana_id = next(line for line in result.output.splitlines() if line.startswith("node-"))

    result = invoke(
        base_args,
        "arvore",
        "adicionar",
        "--pai",
        ana_id,
        "--nome",
        "Joao",
        "--funcao",
        "Mecanico",
        "--contrato",
        "Contrato Alpha",
    )
    assert result.exit_code == 0, result.output
    assert "Contrato Contrato Alpha registrado" in result.output

    result = invoke(base_args, "--format", "json", "contratos", "listar")
    contracts = json.loads(result.output)
    assert [contract["supervisorId"] for contract in contracts] == [ana_id]
    assert (tmp_path / "state.json").exists()


def test_employees_json(base_args):
    invoke(base_args, "arvore", "adicionar", "--pai", "dir1", "--nome", "Ana", "--funcao", "Supervisor", "--contato", "ana@arpolar.com")
    result = invoke(base_args, "funcionarios", "listar", "--format", "json")
    assert result.exit_code == 0, result.output
    employees = json.loads(result.output)
    assert [employee["name"] for employee in employees] == ["Diretoria", "Ana"]
    assert employees[1]["email"] == "ana@arpolar.com"
    assert employees[1]["supervisorId"] == "dir1"


def test_move_and_network(base_args):
    invoke(base_args, "arvore", "adicionar", "--pai", "dir1", "--nome", "Ana", "--funcao", "Supervisor")
    result = invoke(base_args, "rede", "listar", "--format", "json")
    rows = json.loads(result.output)
    assert [row["name"] for row in rows] == ["Ana"]

    result = invoke(base_args, "arvore", "mover", "dir1", "--para", "ghost")
    assert result.exit_code == 0
    assert "nao encontrado" in result.output


def test_remove_root_resets(base_args):
    invoke(base_args, "arvore", "adicionar", "--pai", "dir1", "--nome", "Ana", "--funcao", "Supervisor")
    result = invoke(base_args, "arvore", "remover", "arpolar")
    assert result.exit_code == 0, result.output
    assert "restaurado" in result.output
    shown = invoke(base_args, "arvore", "mostrar").output
    assert "Ana" not in shown


def test_edit_requires_a_field(base_args):
    result = invoke(base_args, "arvore", "editar", "dir1")
    assert result.exit_code != 0


def test_blank_name_is_a_validation_error(base_args):
    result = invoke(base_args, "arvore", "editar", "dir1", "--nome", " ")
    assert isinstance(result.exception, ValidationError)


def test_tickets(base_args):
    invoke(base_args, "arvore", "editar", "dir1", "--contato", "dir@arpolar.com", "--contrato", "Contrato Alpha")
    result = invoke(base_args, "ocorrencias", "abrir", "dir1", "--mensagem", "Chiller parado", "--urgencia", "Critico")
    assert result.exit_code == 0, result.output
    assert "Ocorrencia registrada" in result.output

    result = invoke(base_args, "ocorrencias", "listar", "--format", "json")
    tickets = json.loads(result.output)
    assert tickets[0]["urgency"] == "Crítico"
    assert tickets[0]["contractName"] == "Contrato Alpha"


def test_locale_option(base_args):
    result = invoke(base_args, "--locale", "en-US", "arvore", "resetar")
    assert result.exit_code == 0
    assert "Chart restored to default." in result.output


def test_config_show(base_args):
    result = invoke(base_args, "config", "mostrar")
    assert "[storage]" in result.output


def test_chart_settings_commands(base_args):
    result = invoke(base_args, "configuracoes", "salvar", "--contrato", "Contrato Alpha", "--regiao", "Sul")
    assert result.exit_code == 0, result.output
    assert "Configuracao do contrato salva" in result.output

    result = invoke(base_args, "configuracoes", "mostrar", "--format", "json")
    settings = json.loads(result.output)
    assert settings[0]["contractName"] == "Contrato Alpha"
    assert settings[0]["region"] == "Sul"
    assert settings[0]["address"] == "N/A"


def test_chart_settings_require_a_field(base_args):
    result = invoke(base_args, "configuracoes", "salvar")
    assert result.exit_code != 0


def test_corrupt_state_file_shows_seed(base_args, tmp_path):
    (tmp_path / "state.json").write_text("{not json", encoding="utf-8")
    result = invoke(base_args, "arvore", "mostrar")
    assert result.exit_code == 0, result.output
    assert "Diretoria [Diretor] (dir1)" in result.output
