"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from parse_rest.client import ParseClient
from parse_rest.core.config import ParseSettings, get_user_env_file, write_user_env_vars
from parse_rest.core.domain.errors import ParseSDKError

_console = Console()


async def _check_health(settings: ParseSettings) -> tuple[bool, str]:
    try:
        async with ParseClient(settings) as client:
            payload = await client.health()
    except ParseSDKError as exc:
        return False, f"{exc.kind.value}: {exc.message}"
    status = payload.get("status")
    return status == "ok", f"status={status!r}"


def _key_row(table: Table, label: str, value: str | None, note: str) -> None:
    # Nunca se muestran valores de claves: solo si están presentes.
    table.add_row(label, "OK" if value else "OPTIONAL", "configured" if value else note)


def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = ParseSettings()

    table = Table(title="parse-rest Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Server URL", "OK", settings.server_url)
    if settings.app_id:
        table.add_row("Application ID", "OK", "configured")
    else:
        table.add_row("Application ID", "MISSING", "Set PARSE_REST_APP_ID or run `parse-rest setup`")
    _key_row(table, "REST API key", settings.rest_api_key, "Not set -> requests rely on server defaults")
    _key_row(table, "JavaScript key", settings.javascript_key, "Not set")
    _key_row(table, "Master key", settings.master_key, "Not set -> schemas/config/jobs unavailable")
    table.add_row("User config", "OK" if get_user_env_file().exists() else "NONE", str(get_user_env_file()))

    if settings.app_id:
        ok, detail = asyncio.run(_check_health(settings))
        table.add_row("Server health", "OK" if ok else "FAIL", detail)
    else:
        table.add_row("Server health", "SKIPPED", "No application id")

    _console.print(table)


def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    current = ParseSettings()
    server_url = typer.prompt("Server URL", default=current.server_url, show_default=True).strip()
    app_id = typer.prompt("Application ID", default=current.app_id or "", show_default=bool(current.app_id)).strip()
    rest_key = typer.prompt("REST API key (empty to skip)", default="", hide_input=True, show_default=False).strip()
    master_key = typer.prompt("Master key (empty to skip)", default="", hide_input=True, show_default=False).strip()

    if not server_url or not app_id:
        raise typer.BadParameter("server URL and application id are required")

    env_path = write_user_env_vars(
        {
            "PARSE_REST_SERVER_URL": server_url,
            "PARSE_REST_APP_ID": app_id,
            "PARSE_REST_REST_API_KEY": rest_key or None,
            "PARSE_REST_MASTER_KEY": master_key or None,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
