"""Exportación JSON de resultados de consulta.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines (`jq`, importadores de Parse).
- Los valores de dominio se escriben en su codificación de cable, así que el archivo
  se puede reenviar tal cual al servidor.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from parse_rest.core.domain.models import ParseObject
from parse_rest.core.domain.values import encode_value, format_iso


def object_to_json(obj: ParseObject) -> dict[str, Any]:
    payload: dict[str, Any] = {"className": obj.class_name}
    if obj.object_id is not None:
        payload["objectId"] = obj.object_id
    if obj.created_at is not None:
        payload["createdAt"] = format_iso(obj.created_at)
    if obj.updated_at is not None:
        payload["updatedAt"] = format_iso(obj.updated_at)
    payload.update(obj.to_payload())
    return payload


def export_results_json(*, results: Iterable[ParseObject], output_path: Path) -> Path:
    """Exporta objetos a JSON UTF-8 con formato estable (`{"results": [...]}`)."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"results": [object_to_json(obj) for obj in results]}
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def export_value_json(*, value: Any, output_path: Path) -> Path:
    """Exporta un valor arbitrario (p.ej. un conteo) en codificación de cable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(encode_value(value), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
