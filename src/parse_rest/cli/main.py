"""CLI de `parse-rest` (Typer + Rich).

Comandos:
- `doctor`: tabla de configuración + chequeo `/health`.
- `setup`: guarda credenciales en el .env de usuario.
- `query`: ejecuta una consulta simple y la muestra (o exporta a JSON).
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from parse_rest.adapters.json_exporter import export_results_json, export_value_json
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.cli import doctor
from parse_rest.cli.ui_components import build_error_panel, build_results_table, print_banner
from parse_rest.client import ParseClient
from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import ParseSDKError
from parse_rest.core.domain.values import decode_value

app = typer.Typer(no_args_is_help=True, help="Parse Server REST client.")
app.command(name="doctor")(doctor.run)
app.command(name="setup")(doctor.setup)

_console = Console()


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Do not print the banner."),
) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    if not no_banner:
        print_banner(_console)


def _apply_where(query: ParseQuery, where: dict[str, Any]) -> None:
    """Traduce un `where` JSON simple (igualdad u operadores) al builder."""

    operators = {
        "$ne": query.not_equal_to,
        "$gt": query.greater_than,
        "$gte": query.greater_than_or_equal_to,
        "$lt": query.less_than,
        "$lte": query.less_than_or_equal_to,
        "$in": query.contained_in,
        "$nin": query.not_contained_in,
        "$all": query.contains_all,
    }
    for field, condition in where.items():
        if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            for token, operand in condition.items():
                if token == "$exists":
                    (query.exists if operand else query.does_not_exist)(field)
                elif token == "$regex":
                    query.matches_regex(field, operand, condition.get("$options"))
                elif token == "$options":
                    continue
                elif token in operators:
                    operators[token](field, decode_value(operand))
                else:
                    raise typer.BadParameter(f"Unsupported operator {token!r} in --where")
        else:
            query.equal_to(field, decode_value(condition))


async def _run_query(
    settings: ParseSettings,
    class_name: str,
    where: dict[str, Any],
    limit: int | None,
    order: str | None,
    count: bool,
    master: bool,
) -> Any:
    async with ParseClient(settings) as client:
        query = client.query(class_name)
        _apply_where(query, where)
        if master:
            query.use_master_key()
        if count:
            return await query.count()
        if order:
            query.order(*[key.strip() for key in order.split(",") if key.strip()])
        if limit is not None:
            query.limit(limit)
        return await query.find()


@app.command()
def query(
    class_name: str = typer.Argument(..., help="Class to query (e.g. GameScore, _User)."),
    where: Optional[str] = typer.Option(None, "--where", help='JSON filter, e.g. \'{"score":{"$gt":100}}\'.'),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Maximum number of results."),
    order: Optional[str] = typer.Option(None, "--order", help="Comma-separated keys; prefix '-' for descending."),
    count: bool = typer.Option(False, "--count", help="Only count matching objects."),
    master: bool = typer.Option(False, "--master", help="Send the master key."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results to a JSON file."),
) -> None:
    """Run a query against CLASS and print the results."""

    try:
        where_obj = json.loads(where) if where else {}
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--where is not valid JSON: {exc}") from exc
    if not isinstance(where_obj, dict):
        raise typer.BadParameter("--where must be a JSON object")

    settings = ParseSettings()
    try:
        result = asyncio.run(_run_query(settings, class_name, where_obj, limit, order, count, master))
    except ParseSDKError as exc:
        _console.print(build_error_panel(exc))
        raise typer.Exit(code=1) from exc

    if count:
        if output:
            export_value_json(value={"count": result}, output_path=output)
        _console.print(f"[bold]{class_name}[/bold]: {result} object(s)")
        return

    if output:
        path = export_results_json(results=result, output_path=output)
        _console.print(f"[green]Saved {len(result)} result(s) to:[/green] {path}")
    else:
        _console.print(build_results_table(class_name, result))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
