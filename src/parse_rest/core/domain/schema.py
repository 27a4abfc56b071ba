"""Modelos de forma fija (Pydantic v2): esquemas de clase y configuración del servidor.

Por qué Pydantic aquí:
- Son registros con forma conocida que el servidor devuelve tal cual; validarlos
  en el borde convierte una forma inesperada en `DecodeError` y no en un KeyError tardío.
- Los alias mantienen los nombres camelCase del cable sin ensuciar el código Python.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class FieldType(str, Enum):
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    OBJECT = "Object"
    ARRAY = "Array"
    POINTER = "Pointer"
    RELATION = "Relation"
    FILE = "File"
    GEOPOINT = "GeoPoint"
    ACL = "ACL"
    BYTES = "Bytes"
    POLYGON = "Polygon"


class FieldSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: FieldType = Field(
        ...,
        description="Tipo Parse del campo.",
    )
    target_class: str | None = Field(
        default=None,
        alias="targetClass",
        description="Clase destino para Pointer/Relation.",
    )
    required: bool | None = Field(
        default=None,
        description="Si el servidor exige el campo al crear.",
    )
    default_value: Any = Field(
        default=None,
        alias="defaultValue",
        description="Valor por defecto (en codificación de cable).",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ParseSchema(BaseModel):
    """Definición estructural de una clase (`/schemas/{className}`)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    class_name: str = Field(
        ...,
        alias="className",
        min_length=1,
        description="Nombre de la clase.",
    )
    fields: dict[str, FieldSchema] = Field(
        default_factory=dict,
        description="Campos declarados (incluye objectId/createdAt/updatedAt/ACL).",
    )
    class_level_permissions: dict[str, Any] | None = Field(
        default=None,
        alias="classLevelPermissions",
        description="CLPs: get/find/count/create/update/delete/addField/protectedFields.",
    )
    indexes: dict[str, dict[str, Any]] | None = Field(
        default=None,
        description="Índices por nombre.",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ServerConfig(BaseModel):
    """Parámetros de `GET /config` ya decodificados al modelo de valores."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, arbitrary_types_allowed=True)

    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Parámetros públicos de configuración.",
    )
    master_key_only: dict[str, bool] = Field(
        default_factory=dict,
        alias="masterKeyOnly",
        description="Parámetros visibles solo con master key.",
    )

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)
