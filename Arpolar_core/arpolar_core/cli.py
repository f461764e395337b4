from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import typer

from .config import Config, DEFAULT_CONFIG_PATH
from .errors import ArpolarError, UsageError, ValidationError
from .localization import Localizer
from .output import render_json, render_output, render_tree, render_yaml
from .service import NodeChange, OrgChartService

APP_NAME = "organograma"
SUPPORTED_FORMATS = {"table", "json", "csv", "yaml"}

EMPLOYEE_COLUMNS = ["id", "name", "role", "email", "phone", "supervisorId", "contract"]
CONTRACT_COLUMNS = ["id", "name", "supervisorId", "supervisorName", "address", "region"]
TICKET_COLUMNS = ["id", "createdAt", "contractName", "supervisor", "urgency", "status", "visibility", "message"]
SETTINGS_COLUMNS = ["contractName", "region", "address", "responsible", "backgroundImage"]

app = typer.Typer(name=APP_NAME, add_completion=False, context_settings={"help_option_names": ["-h", "--help"]})

arvore_app = typer.Typer(help="Edicao do organograma.")
rede_app = typer.Typer(help="Rede neural de supervisores.")
funcionarios_app = typer.Typer(help="Lista plana de funcionarios.")
contratos_app = typer.Typer(help="Contratos registrados.")
ocorrencias_app = typer.Typer(help="Ocorrencias (tickets).")
configuracoes_app = typer.Typer(help="Configuracao do contrato exibida no organograma.")
config_app = typer.Typer(help="Configuracao do sistema.")

app.add_typer(arvore_app, name="arvore")
app.add_typer(rede_app, name="rede")
app.add_typer(funcionarios_app, name="funcionarios")
app.add_typer(contratos_app, name="contratos")
app.add_typer(ocorrencias_app, name="ocorrencias")
app.add_typer(configuracoes_app, name="configuracoes")
app.add_typer(config_app, name="config")


@dataclass
class AppContext:
    config: Config
    config_path: Path
    state_path: Path
    service: OrgChartService
    formatter: str
    localizer: Localizer


def _ensure_format(value: str) -> str:
    fmt = value.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise UsageError(f"Formato nao suportado: {value}")
    return fmt


def get_ctx(ctx: typer.Context) -> AppContext:
    if not isinstance(ctx.obj, AppContext):
        raise RuntimeError("Contexto nao inicializado")
    return ctx.obj


def print_rows(ctx: AppContext, rows: Sequence[dict], columns: Sequence[str], *, fmt: Optional[str] = None) -> None:
    formatter = _ensure_format(fmt or ctx.formatter)
    widths = {"name": ctx.config.general.name_width, "message": 40}
    typer.echo(render_output(rows, columns, formatter, width_overrides=widths))


def report_change(ctx: AppContext, change: NodeChange, key: str, node_id: str) -> None:
    if not change.changed:
        typer.echo(ctx.localizer.text("node.not_found", node_id=node_id), err=True)
        return
    typer.echo(ctx.localizer.text(key))
    if change.node is not None:
        typer.echo(change.node.id)
    if change.contract is not None:
        typer.echo(ctx.localizer.text("contract.created", name=change.contract.name))
    if change.avatar_error:
        typer.echo(ctx.localizer.text("avatar.failed", error=change.avatar_error), err=True)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Caminho do config TOML."),
    state_path: Optional[Path] = typer.Option(None, "--state", help="Arquivo de estado JSON."),
    locale: Optional[str] = typer.Option(None, "--locale", help="Locale BCP-47."),
    formatter: str = typer.Option("table", "--format", help="table|json|csv|yaml"),
) -> None:
    overrides: dict[str, Any] = {}
    if locale:
        overrides["general.default_locale"] = locale
    if state_path:
        overrides["storage.state_path"] = str(state_path)
    config = Config.load(path=config_path, env=os.environ, overrides=overrides)
    target = Path(config.storage.state_path)
    ctx.obj = AppContext(
        config=config,
        config_path=config_path,
        state_path=target,
        service=OrgChartService.from_config(config, target),
        formatter=_ensure_format(formatter),
        localizer=Localizer(config.general.default_locale),
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@arvore_app.command("mostrar")
def arvore_mostrar(
    ctx: typer.Context,
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    fmt = _ensure_format(format or app_ctx.formatter)
    tree = app_ctx.service.tree
    if fmt == "table":
        typer.echo(render_tree(tree, name_width=app_ctx.config.general.name_width))
    elif fmt == "json":
        typer.echo(render_json(tree.to_dict()))
    elif fmt == "yaml":
        typer.echo(render_yaml(tree.to_dict()))
    else:
        rows = [employee.to_dict() for employee in app_ctx.service.employees()]
        print_rows(app_ctx, rows, EMPLOYEE_COLUMNS, fmt=fmt)


@arvore_app.command("adicionar")
def arvore_adicionar(
    ctx: typer.Context,
    pai: str = typer.Option(..., "--pai", help="ID do no pai."),
    nome: str = typer.Option(..., "--nome"),
    funcao: str = typer.Option(..., "--funcao"),
    contato: str = typer.Option("", "--contato"),
    contrato: str = typer.Option("", "--contrato"),
    avatar: str = typer.Option("", "--avatar", help="URL ou data URL da imagem."),
) -> None:
    app_ctx = get_ctx(ctx)
    change = app_ctx.service.add_child(
        pai,
        name=nome,
        role=funcao,
        contact=contato,
        contract=contrato,
        avatar=avatar,
    )
    report_change(app_ctx, change, "node.added", pai)


@arvore_app.command("editar")
def arvore_editar(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="ID do no."),
    nome: Optional[str] = typer.Option(None, "--nome"),
    funcao: Optional[str] = typer.Option(None, "--funcao"),
    contato: Optional[str] = typer.Option(None, "--contato"),
    contrato: Optional[str] = typer.Option(None, "--contrato"),
    avatar: Optional[str] = typer.Option(None, "--avatar"),
) -> None:
    app_ctx = get_ctx(ctx)
    values = {
        "name": nome,
        "role": funcao,
        "contact": contato,
        "contract": contrato,
        "avatar": avatar,
    }
    values = {key: value for key, value in values.items() if value is not None}
    if not values:
        raise UsageError("Informe ao menos um campo para editar.")
    change = app_ctx.service.update_node(node_id, **values)
    report_change(app_ctx, change, "node.updated", node_id)


@arvore_app.command("remover")
def arvore_remover(ctx: typer.Context, node_id: str = typer.Argument(...)) -> None:
    app_ctx = get_ctx(ctx)
    change = app_ctx.service.remove_node(node_id)
    key = "tree.reset" if node_id == change.tree.id else "node.removed"
    report_change(app_ctx, change, key, node_id)


@arvore_app.command("mover")
def arvore_mover(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="ID do no arrastado."),
    para: str = typer.Option(..., "--para", help="ID do novo pai."),
) -> None:
    app_ctx = get_ctx(ctx)
    change = app_ctx.service.move_node(node_id, para)
    report_change(app_ctx, change, "node.moved", node_id)


@arvore_app.command("visibilidade")
def arvore_visibilidade(ctx: typer.Context, node_id: str = typer.Argument(...)) -> None:
    app_ctx = get_ctx(ctx)
    change = app_ctx.service.toggle_visibility(node_id)
    report_change(app_ctx, change, "node.visibility", node_id)


@arvore_app.command("supervisor")
def arvore_supervisor(
    ctx: typer.Context,
    node_id: str = typer.Argument(...),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    parent = app_ctx.service.supervisor_of(node_id)
    if parent is None:
        raise ValidationError(f"Sem superior para {node_id}.")
    rows = [{"id": parent.id, "name": parent.name, "role": parent.role.label}]
    print_rows(app_ctx, rows, ["id", "name", "role"], fmt=format)


@arvore_app.command("resetar")
def arvore_resetar(ctx: typer.Context) -> None:
    app_ctx = get_ctx(ctx)
    app_ctx.service.reset()
    typer.echo(app_ctx.localizer.text("tree.reset"))


@rede_app.command("listar")
def rede_listar(
    ctx: typer.Context,
    todos: bool = typer.Option(False, "--todos", help="Inclui todos os cargos, nao so supervisores."),
    format: Optional[str] = typer.Option(None, "--format"),
) -> None:
    app_ctx = get_ctx(ctx)
    service = app_ctx.service
    nodes = {node.id: node for node in service.visible_nodes(supervisors_only=not todos)}
    rows = [
        {
            "id": position.node_id,
            "name": nodes[position.node_id].name,
            "role": nodes[position.node_id].role.label,
            "angle": round(position.angle, 4),
        }
        for position in service.neural_net_layout(supervisors_only=not todos)
    ]
    print_rows(app_ctx, rows, ["id", "name", "role", "angle"], fmt=format)


@funcionarios_app.command("listar")
def funcionarios_listar(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
    app_ctx = get_ctx(ctx)
    rows = [employee.to_dict() for employee in app_ctx.service.employees()]
    print_rows(app_ctx, rows, EMPLOYEE_COLUMNS, fmt=format)


@contratos_app.command("listar")
def contratos_listar(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
    app_ctx = get_ctx(ctx)
    rows = [contract.to_dict() for contract in app_ctx.service.list_contracts()]
    print_rows(app_ctx, rows, CONTRACT_COLUMNS, fmt=format)


@ocorrencias_app.command("abrir")
def ocorrencias_abrir(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="ID do no que abre a ocorrencia."),
    mensagem: str = typer.Option(..., "--mensagem"),
    urgencia: str = typer.Option("Rotina", "--urgencia", help="Rotina|Atencao|Critico"),
    status: str = typer.Option("Em andamento", "--status"),
    privado_para: Optional[str] = typer.Option(None, "--privado-para", help="ID do destinatario."),
    contrato: Optional[str] = typer.Option(None, "--contrato"),
    contato: Optional[str] = typer.Option(None, "--contato"),
    equipamento: Optional[str] = typer.Option(None, "--equipamento"),
    causa: Optional[str] = typer.Option(None, "--causa"),
) -> None:
    app_ctx = get_ctx(ctx)
    ticket = app_ctx.service.open_ticket(
        node_id,
        message=mensagem,
        urgency=urgencia,
        status=status,
        visibility="privado" if privado_para else "publico",
        recipient_id=privado_para,
        contract_name=contrato,
        contact=contato,
        equipment_name=equipamento,
        cause=causa,
    )
    typer.echo(app_ctx.localizer.text("ticket.opened"))
    typer.echo(ticket.id)


@ocorrencias_app.command("listar")
def ocorrencias_listar(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
    app_ctx = get_ctx(ctx)
    rows = [ticket.to_dict() for ticket in app_ctx.service.list_tickets()]
    print_rows(app_ctx, rows, TICKET_COLUMNS, fmt=format)


@configuracoes_app.command("mostrar")
def configuracoes_mostrar(ctx: typer.Context, format: Optional[str] = typer.Option(None, "--format")) -> None:
    app_ctx = get_ctx(ctx)
    rows = [app_ctx.service.chart_settings().to_dict()]
    print_rows(app_ctx, rows, SETTINGS_COLUMNS, fmt=format)


@configuracoes_app.command("salvar")
def configuracoes_salvar(
    ctx: typer.Context,
    contrato: Optional[str] = typer.Option(None, "--contrato", help="Nome do contrato principal."),
    regiao: Optional[str] = typer.Option(None, "--regiao"),
    endereco: Optional[str] = typer.Option(None, "--endereco"),
    responsavel: Optional[str] = typer.Option(None, "--responsavel"),
    fundo: Optional[str] = typer.Option(None, "--fundo", help="URL da imagem de fundo."),
) -> None:
    app_ctx = get_ctx(ctx)
    values = {
        "contract_name": contrato,
        "region": regiao,
        "address": endereco,
        "responsible": responsavel,
        "background_image": fundo,
    }
    if all(value is None for value in values.values()):
        raise UsageError("Informe ao menos um campo para salvar.")
    app_ctx.service.save_chart_settings(**values)
    typer.echo(app_ctx.localizer.text("settings.saved"))


@config_app.command("mostrar")
def config_mostrar(ctx: typer.Context) -> None:
    app_ctx = get_ctx(ctx)
    typer.echo(app_ctx.config.to_toml())


# entrada principal
def main_entry() -> None:
    try:
        app(standalone_mode=True)
    except ArpolarError as exc:
        typer.secho(str(exc), err=True)
        raise SystemExit(exc.code) from exc


if __name__ == "__main__":  # pragma: no cover
    main_entry()
