"""Modelo de valores compatible con Parse (codificación de cable).

Por qué dataclasses congeladas y no dicts:
- Cada tipo de dominio (Date, Pointer, GeoPoint, File, Relation, Bytes, operaciones
  de campo) tiene un discriminador fijo (`__type` / `__op`) y una forma exacta en el
  cable; modelarlos como valores inmutables hace que `encode`/`decode` sean inversas.
- Los escalares JSON (None, bool, int, float, str) y los contenedores (list, dict)
  se representan con los tipos nativos de Python.

Reglas:
- `decode_value(encode_value(v)) == v` para todo valor de dominio.
- Un `__type` desconocido se decodifica como mapping genérico (compatibilidad hacia adelante).
- Las fechas se truncan a milisegundos y viajan siempre con el envoltorio `Date`.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable

from parse_rest.core.domain.errors import DecodeError, PreconditionError

TYPE_KEY = "__type"
OP_KEY = "__op"

ObjectFactory = Callable[[Mapping[str, Any]], Any]


# Fechas ---------------------------------------------------------------------


def truncate_to_millis(value: datetime) -> datetime:
    """Normaliza a UTC con precisión de milisegundos (la del servidor)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_iso(value: datetime) -> str:
    value = truncate_to_millis(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(text: str) -> datetime:
    raw = text.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise DecodeError(f"Invalid ISO-8601 date: {text!r}") from exc
    return truncate_to_millis(parsed)


def decode_date(raw: object) -> datetime:
    """Acepta `{"__type": "Date", "iso": ...}` y también la cadena ISO desnuda.

    El servidor emite una u otra forma según el endpoint (`createdAt` suele ir desnudo).
    """

    if isinstance(raw, datetime):
        return truncate_to_millis(raw)
    if isinstance(raw, str):
        return parse_iso(raw)
    if isinstance(raw, Mapping) and raw.get(TYPE_KEY) == "Date" and isinstance(raw.get("iso"), str):
        return parse_iso(raw["iso"])
    raise DecodeError(f"Expected a Parse date, got {type(raw).__name__}")


def encode_date(value: datetime) -> dict[str, str]:
    return {TYPE_KEY: "Date", "iso": format_iso(value)}


# Tipos de dominio -------------------------------------------------------------


@dataclass(frozen=True)
class Pointer:
    """Referencia a otro objeto (className + objectId)."""

    class_name: str
    object_id: str

    def to_wire(self) -> dict[str, str]:
        return {TYPE_KEY: "Pointer", "className": self.class_name, "objectId": self.object_id}


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise PreconditionError(f"Latitude must be between -90 and 90 degrees, got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise PreconditionError(f"Longitude must be between -180 and 180 degrees, got {self.longitude}")

    def to_wire(self) -> dict[str, Any]:
        return {TYPE_KEY: "GeoPoint", "latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class FileRef:
    """Archivo ya subido al servidor (nombre definitivo + URL pública)."""

    name: str
    url: str | None = None

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {TYPE_KEY: "File", "name": self.name}
        if self.url is not None:
            out["url"] = self.url
        return out


@dataclass(frozen=True)
class Relation:
    """Marcador de campo relación (one-to-many / many-to-many)."""

    class_name: str

    def to_wire(self) -> dict[str, str]:
        return {TYPE_KEY: "Relation", "className": self.class_name}


@dataclass(frozen=True)
class Bytes:
    base64: str

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bytes":
        return cls(base64=base64.b64encode(data).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64)

    def to_wire(self) -> dict[str, str]:
        return {TYPE_KEY: "Bytes", "base64": self.base64}


class FieldOpKind(str, Enum):
    INCREMENT = "Increment"
    ADD = "Add"
    ADD_UNIQUE = "AddUnique"
    REMOVE = "Remove"
    DELETE = "Delete"
    ADD_RELATION = "AddRelation"
    REMOVE_RELATION = "RemoveRelation"


_ARRAY_OPS = {
    FieldOpKind.ADD,
    FieldOpKind.ADD_UNIQUE,
    FieldOpKind.REMOVE,
    FieldOpKind.ADD_RELATION,
    FieldOpKind.REMOVE_RELATION,
}


@dataclass(frozen=True)
class FieldOp:
    """Operación atómica sobre un campo (`{"__op": ...}`) aplicada por el servidor."""

    op: FieldOpKind
    operand: Any = None

    def __post_init__(self) -> None:
        if self.op is FieldOpKind.INCREMENT:
            if isinstance(self.operand, bool) or not isinstance(self.operand, (int, float)):
                raise PreconditionError("Increment requires a numeric amount")
        elif self.op in _ARRAY_OPS:
            if not isinstance(self.operand, (list, tuple)):
                raise PreconditionError(f"{self.op.value} requires a list of objects")
            object.__setattr__(self, "operand", tuple(self.operand))
        elif self.operand is not None:
            raise PreconditionError("Delete takes no operand")

    @classmethod
    def increment(cls, amount: int | float = 1) -> "FieldOp":
        return cls(FieldOpKind.INCREMENT, amount)

    @classmethod
    def decrement(cls, amount: int | float = 1) -> "FieldOp":
        return cls(FieldOpKind.INCREMENT, -amount)

    @classmethod
    def add(cls, *objects: Any) -> "FieldOp":
        return cls(FieldOpKind.ADD, list(objects))

    @classmethod
    def add_unique(cls, *objects: Any) -> "FieldOp":
        return cls(FieldOpKind.ADD_UNIQUE, list(objects))

    @classmethod
    def remove(cls, *objects: Any) -> "FieldOp":
        return cls(FieldOpKind.REMOVE, list(objects))

    @classmethod
    def delete(cls) -> "FieldOp":
        return cls(FieldOpKind.DELETE)

    @classmethod
    def add_relation(cls, *pointers: Pointer) -> "FieldOp":
        return cls(FieldOpKind.ADD_RELATION, list(pointers))

    @classmethod
    def remove_relation(cls, *pointers: Pointer) -> "FieldOp":
        return cls(FieldOpKind.REMOVE_RELATION, list(pointers))

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {OP_KEY: self.op.value}
        if self.op is FieldOpKind.INCREMENT:
            out["amount"] = self.operand
        elif self.op in _ARRAY_OPS:
            out["objects"] = [encode_value(item) for item in self.operand]
        return out


# Codificación ---------------------------------------------------------------

_DOMAIN_TYPES = (Pointer, GeoPoint, FileRef, Relation, Bytes, FieldOp)


def encode_value(value: Any) -> Any:
    """Convierte un valor Python/dominio a JSON de cable."""

    if value is None or isinstance(value, (bool, str, int, float)):
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, datetime):
        return encode_date(value)
    if isinstance(value, date):
        return encode_date(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, _DOMAIN_TYPES):
        return value.to_wire()
    if isinstance(value, Enum):
        return encode_value(value.value)
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise PreconditionError(f"Object keys must be strings, got {type(key).__name__}")
            out[key] = encode_value(item)
        return out
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    # ParseObject, ACL y otros modelos saben serializarse a sí mismos.
    to_wire = getattr(value, "to_wire", None)
    if callable(to_wire):
        return to_wire()
    raise PreconditionError(f"Unsupported value type for Parse encoding: {type(value).__name__}")


# Decodificación -------------------------------------------------------------


def _decode_typed(raw: Mapping[str, Any], object_factory: ObjectFactory | None) -> Any:
    kind = raw.get(TYPE_KEY)
    try:
        if kind == "Date":
            return decode_date(raw)
        if kind == "Pointer":
            return Pointer(class_name=str(raw["className"]), object_id=str(raw["objectId"]))
        if kind == "GeoPoint":
            return GeoPoint(latitude=float(raw["latitude"]), longitude=float(raw["longitude"]))
        if kind == "File":
            url = raw.get("url")
            return FileRef(name=str(raw["name"]), url=str(url) if url is not None else None)
        if kind == "Relation":
            return Relation(class_name=str(raw["className"]))
        if kind == "Bytes":
            return Bytes(base64=str(raw["base64"]))
        if kind == "Object" and object_factory is not None:
            return object_factory(raw)
    except KeyError as exc:
        raise DecodeError(f"Malformed {kind} value: missing {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Malformed {kind} value: {exc}") from exc
    return None


def _decode_op(raw: Mapping[str, Any], object_factory: ObjectFactory | None) -> FieldOp | None:
    try:
        kind = FieldOpKind(raw[OP_KEY])
    except ValueError:
        return None
    try:
        if kind is FieldOpKind.INCREMENT:
            return FieldOp(kind, raw.get("amount"))
        if kind in _ARRAY_OPS:
            objects = raw.get("objects")
            return FieldOp(kind, decode_value(objects, object_factory=object_factory))
        return FieldOp(kind)
    except PreconditionError as exc:
        raise DecodeError(f"Malformed {kind.value} operation: {exc.message}") from exc


def decode_value(raw: Any, *, object_factory: ObjectFactory | None = None) -> Any:
    """Convierte JSON de cable al modelo de valores.

    `object_factory` recibe los `{"__type": "Object", ...}` anidados (punteros expandidos
    por `include`); sin factory se devuelven como mapping genérico.
    """

    if isinstance(raw, list):
        return [decode_value(item, object_factory=object_factory) for item in raw]
    if not isinstance(raw, Mapping):
        return raw
    if isinstance(raw.get(TYPE_KEY), str):
        typed = _decode_typed(raw, object_factory)
        if typed is not None:
            return typed
    if isinstance(raw.get(OP_KEY), str):
        op = _decode_op(raw, object_factory)
        if op is not None:
            return op
    return {key: decode_value(item, object_factory=object_factory) for key, item in raw.items()}


__all__ = [
    "Bytes",
    "FieldOp",
    "FieldOpKind",
    "FileRef",
    "GeoPoint",
    "ObjectFactory",
    "Pointer",
    "Relation",
    "decode_date",
    "decode_value",
    "encode_date",
    "encode_value",
    "format_iso",
    "parse_iso",
    "truncate_to_millis",
]
