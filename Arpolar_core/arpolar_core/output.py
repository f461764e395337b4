from __future__ import annotations

import csv
import io
import json
from typing import Any, Mapping, Sequence

import yaml

from .models import OrgNode

ELLIPSIS = "..."
HIDDEN_MARK = " (oculto)"


def truncate(value: str, width: int) -> str:
    if width <= 0 or len(value) <= width:
        return value
    if width <= len(ELLIPSIS):
        return value[:width]
    return value[: width - len(ELLIPSIS)] + ELLIPSIS


def format_cell(value: Any) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "sim" if value else "nao"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def render_table(rows: Sequence[Mapping[str, Any]], columns: Sequence[str], widths: Mapping[str, int] | None = None) -> str:
    widths = widths or {}
    cells = [
        [truncate(format_cell(row.get(column)), widths.get(column, 0)) for column in columns]
        for row in rows
    ]
    col_widths = [
        max([len(column), *(len(line[idx]) for line in cells)])
        for idx, column in enumerate(columns)
    ]
    header = " | ".join(column.ljust(col_widths[idx]) for idx, column in enumerate(columns))
    divider = "-+-".join("-" * width for width in col_widths)
    body = [" | ".join(cell.ljust(col_widths[idx]) for idx, cell in enumerate(line)) for line in cells]
    if not body:
        body.append("(sem registros)")
    return "\n".join([header, divider, *body])


def render_tree(tree: OrgNode, *, name_width: int = 0) -> str:
    """Desenha o organograma como um esboco indentado."""
    lines = [f"{truncate(tree.name, name_width)} [{tree.role}] ({tree.id})"]

    def walk(node: OrgNode, prefix: str) -> None:
        for index, child in enumerate(node.children):
            last = index == len(node.children) - 1
            branch = "`-- " if last else "|-- "
            label = f"{truncate(child.name, name_width)} [{child.role}] ({child.id})"
            if not child.visible:
                label += HIDDEN_MARK
            lines.append(prefix + branch + label)
            walk(child, prefix + ("    " if last else "|   "))

    walk(tree, "")
    return "\n".join(lines)


def render_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def render_yaml(data: Any) -> str:
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)


def render_csv(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({column: row.get(column, "") for column in columns})
    return buffer.getvalue()


def render_output(rows: Sequence[Mapping[str, Any]], columns: Sequence[str], fmt: str, *, width_overrides: Mapping[str, int] | None = None) -> str:
    fmt = fmt.lower()
    if fmt == "table":
        return render_table(rows, columns, widths=width_overrides)
    data = [dict(row) for row in rows]
    if fmt == "json":
        return render_json(data)
    if fmt == "yaml":
        return render_yaml(data)
    if fmt == "csv":
        return render_csv(data, columns)
    raise ValueError(f"Formato nao suportado: {fmt}")
