"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from parse_rest.core.domain.errors import ParseCodeError, ParseSDKError
from parse_rest.core.domain.models import ParseObject
from parse_rest.core.domain.values import encode_value, format_iso

_MAX_CELL = 60


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("parse-rest", style="bold cyan")
    subtitle = Text("Parse Server REST client • Objects • Queries • Sessions", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _cell(value: object) -> str:
    text = value if isinstance(value, str) else json.dumps(encode_value(value), ensure_ascii=False)
    return text if len(text) <= _MAX_CELL else text[: _MAX_CELL - 1] + "…"


def build_results_table(class_name: str, results: Sequence[ParseObject]) -> Table:
    """Tabla con objectId, fechas y la unión de campos de todos los resultados."""

    columns: list[str] = []
    for obj in results:
        for key in obj.fields:
            if key not in columns:
                columns.append(key)

    table = Table(title=f"{class_name} ({len(results)})")
    table.add_column("objectId", style="cyan", no_wrap=True)
    table.add_column("updatedAt", style="dim")
    for key in columns:
        table.add_column(key, style="white")

    for obj in results:
        updated = format_iso(obj.updated_at) if obj.updated_at else ""
        table.add_row(obj.object_id or "", updated, *[_cell(obj.get(key)) if key in obj else "" for key in columns])
    return table


def build_error_panel(error: ParseSDKError) -> Panel:
    body = Text()
    body.append(f"{error.kind.value}\n", style="bold")
    if isinstance(error, ParseCodeError):
        known = error.known_code
        body.append(f"code {error.code}" + (f" ({known.name})" if known else "") + "\n")
    body.append(error.message)
    return Panel(body, title=Text("Error", style="bold red"), border_style="red")
