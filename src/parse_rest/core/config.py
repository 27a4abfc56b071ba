"""Configuración del cliente.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI ni los adaptadores.
- Se lee una sola vez al construir el `ParseClient`; no se recarga en caliente.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "PARSE_REST_"
APP_DIR_NAME = "parse-rest"


def get_user_config_dir() -> Path:
    """`%APPDATA%`, `~/Library/Application Support` o `$XDG_CONFIG_HOME` (por defecto `~/.config`)."""

    home = Path.home()
    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or home)
    elif sys.platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _read_env_file(path: Path) -> dict[str, str]:
    """Lee pares `KEY=value`; ignora comentarios, líneas sin `=` y un `export ` inicial."""

    if not path.exists():
        return {}
    pairs: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip().removeprefix("export ").strip()
        if stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if sep and key.strip():
            pairs[key.strip()] = value.strip().strip("\"'")
    return pairs


def write_user_env_vars(values: Mapping[str, str | None], *, env_path: Path | None = None) -> Path:
    """Fusiona variables `PARSE_REST_*` en el .env de usuario y devuelve su ruta.

    Los valores `None` o vacíos no pisan lo ya guardado.
    """

    foreign = [key for key in values if not key.startswith(ENV_PREFIX)]
    if foreign:
        raise ValueError(f"Refusing to write {foreign[0]!r}: only {ENV_PREFIX}* keys are stored")

    target = env_path or get_user_env_file()
    merged = _read_env_file(target)
    merged.update({key: value for key, value in values.items() if value})

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(f"# {APP_DIR_NAME} user config\n{body}", encoding="utf-8")
    return target


class ParseSettings(BaseSettings):
    """Credenciales y parámetros de conexión con Parse Server.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para el cliente y la CLI.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    server_url: str = Field(
        default="http://localhost:1337/parse",
        min_length=1,
        description="URL de montaje del servidor (incluye el path, p.ej. /parse).",
    )
    app_id: str = Field(
        default="",
        description="Application ID (obligatorio para construir peticiones).",
    )
    javascript_key: str | None = Field(
        default=None,
        description="JavaScript key (opcional).",
    )
    rest_api_key: str | None = Field(
        default=None,
        description="REST API key (opcional).",
    )
    master_key: str | None = Field(
        default=None,
        description="Master key: acceso privilegiado (schemas, config, jobs, borrado de archivos).",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="parse-rest/0.1",
        min_length=1,
        description="User-Agent de las peticiones.",
    )

    @field_validator("server_url")
    @classmethod
    def _normalize_server_url(cls, value: str) -> str:
        url = value.strip()
        if "://" not in url:
            url = f"http://{url}"
        return url.rstrip("/")

    @field_validator("javascript_key", "rest_api_key", "master_key")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def has_master_key(self) -> bool:
        return bool(self.master_key)
