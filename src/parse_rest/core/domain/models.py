"""Entidades del dominio: objetos Parse y ACL.

Por qué clases mutables y no modelos Pydantic:
- Un objeto Parse es una bolsa de campos sin esquema con ciclo de vida
  (nuevo -> creado -> actualizado -> borrado); el estado cambia tras cada
  respuesta del servidor y no encaja en un modelo validado una sola vez.
- Los registros de forma fija (esquemas, config) sí usan Pydantic (ver `schema.py`).

Nota:
- Estas clases no hacen I/O. Los módulos de `adapters.resources` aplican las
  respuestas del servidor mediante los métodos `apply_*`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.values import (
    FieldOp,
    FileRef,
    GeoPoint,
    Pointer,
    TYPE_KEY,
    decode_date,
    decode_value,
    encode_value,
)

T = TypeVar("T")

RESERVED_KEYS = frozenset({"objectId", "createdAt", "updatedAt", "className", "ACL", TYPE_KEY})

PUBLIC_KEY = "*"

_CLASS_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_class_name(class_name: str) -> str:
    """Letra o `_` inicial, luego alfanuméricos o `_` (regla del servidor)."""

    if not class_name:
        raise PreconditionError("Class name cannot be empty")
    if not _CLASS_NAME_RE.match(class_name):
        raise PreconditionError(
            f"Invalid class name {class_name!r}: must start with a letter or underscore and "
            "contain only letters, numbers or underscores"
        )
    return class_name


class ACL:
    """Lista de control de acceso: `*`, ids de usuario y `role:<nombre>`."""

    def __init__(self, permissions: Mapping[str, Mapping[str, bool]] | None = None) -> None:
        self._permissions: dict[str, dict[str, bool]] = {}
        for key, access in (permissions or {}).items():
            self._permissions[key] = {k: bool(v) for k, v in access.items() if k in ("read", "write")}

    def _set(self, key: str, kind: str, allowed: bool) -> None:
        self._permissions.setdefault(key, {})[kind] = allowed

    def _get(self, key: str, kind: str) -> bool:
        return self._permissions.get(key, {}).get(kind, False)

    def set_public_read_access(self, allowed: bool) -> None:
        self._set(PUBLIC_KEY, "read", allowed)

    def set_public_write_access(self, allowed: bool) -> None:
        self._set(PUBLIC_KEY, "write", allowed)

    def set_user_read_access(self, user_id: str, allowed: bool) -> None:
        self._set(user_id, "read", allowed)

    def set_user_write_access(self, user_id: str, allowed: bool) -> None:
        self._set(user_id, "write", allowed)

    def set_role_read_access(self, role_name: str, allowed: bool) -> None:
        self._set(f"role:{role_name}", "read", allowed)

    def set_role_write_access(self, role_name: str, allowed: bool) -> None:
        self._set(f"role:{role_name}", "write", allowed)

    def get_public_read_access(self) -> bool:
        return self._get(PUBLIC_KEY, "read")

    def get_public_write_access(self) -> bool:
        return self._get(PUBLIC_KEY, "write")

    def get_user_read_access(self, user_id: str) -> bool:
        return self._get(user_id, "read")

    def get_user_write_access(self, user_id: str) -> bool:
        return self._get(user_id, "write")

    def get_role_read_access(self, role_name: str) -> bool:
        return self._get(f"role:{role_name}", "read")

    def get_role_write_access(self, role_name: str) -> bool:
        return self._get(f"role:{role_name}", "write")

    def to_wire(self) -> dict[str, dict[str, bool]]:
        # Parse rechaza entradas vacías: solo se envían los permisos concedidos.
        out: dict[str, dict[str, bool]] = {}
        for key, access in self._permissions.items():
            granted = {k: v for k, v in access.items() if v}
            if granted:
                out[key] = granted
        return out

    @classmethod
    def from_wire(cls, raw: object) -> "ACL":
        if not isinstance(raw, Mapping):
            raise DecodeError(f"ACL must be an object, got {type(raw).__name__}")
        permissions: dict[str, Mapping[str, bool]] = {}
        for key, access in raw.items():
            if not isinstance(access, Mapping):
                raise DecodeError(f"ACL entry {key!r} must be an object")
            permissions[str(key)] = access
        return cls(permissions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ACL):
            return NotImplemented
        return self.to_wire() == other.to_wire()

    def __repr__(self) -> str:
        return f"ACL({self.to_wire()!r})"


class ParseObject:
    """Objeto de una clase Parse: identidad `(class_name, object_id)` + bolsa de campos.

    Ciclo de vida:
    - nuevo: sin `object_id`.
    - creado: `object_id` y `created_at` (== `updated_at`) tras el primer save.
    - actualizado: `updated_at` se refresca en cada update.
    - borrado: inerte; cualquier operación posterior lanza `PreconditionError`.
    """

    class_name: str = ""

    def __init__(
        self,
        class_name: str | None = None,
        fields: Mapping[str, Any] | None = None,
        *,
        object_id: str | None = None,
        acl: ACL | None = None,
    ) -> None:
        resolved = class_name or type(self).class_name
        if not resolved:
            raise PreconditionError("A class name is required")
        self.class_name = resolved
        self.object_id = object_id
        self.created_at: datetime | None = None
        self.updated_at: datetime | None = None
        self.acl = acl
        self._fields: dict[str, Any] = {}
        self._dirty: set[str] = set()
        self._deleted = False
        for key, value in (fields or {}).items():
            self.set(key, value)

    # Estado -------------------------------------------------------------

    @property
    def is_new(self) -> bool:
        return self.object_id is None

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def dirty_keys(self) -> frozenset[str]:
        return frozenset(self._dirty)

    @property
    def fields(self) -> dict[str, Any]:
        """Copia superficial de los campos (modificar la copia no afecta al objeto)."""

        return dict(self._fields)

    def ensure_alive(self) -> None:
        if self._deleted:
            raise PreconditionError(
                f"{self.class_name} object {self.object_id!r} was deleted; no further operations are valid"
            )

    def require_object_id(self) -> str:
        self.ensure_alive()
        if not self.object_id:
            raise PreconditionError(f"{self.class_name} object has no objectId; save it first")
        return self.object_id

    # Campos -------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        self.ensure_alive()
        if key in RESERVED_KEYS:
            raise PreconditionError(f"{key!r} is managed by the server and cannot be set directly")
        self._fields[key] = value
        self._dirty.add(key)

    def unset(self, key: str) -> None:
        self.set(key, FieldOp.delete())

    def increment(self, key: str, amount: int | float = 1) -> None:
        self.set(key, FieldOp.increment(amount))

    def decrement(self, key: str, amount: int | float = 1) -> None:
        self.set(key, FieldOp.decrement(amount))

    def add(self, key: str, *items: Any) -> None:
        self.set(key, FieldOp.add(*items))

    def add_unique(self, key: str, *items: Any) -> None:
        self.set(key, FieldOp.add_unique(*items))

    def remove(self, key: str, *items: Any) -> None:
        self.set(key, FieldOp.remove(*items))

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return self._fields.get(key, default)

    def _typed(self, key: str, expected: type[T] | tuple[type, ...], default: T | None) -> T | None:
        if key not in self._fields or self._fields[key] is None:
            return default
        value = self._fields[key]
        if isinstance(value, bool) and bool not in (expected if isinstance(expected, tuple) else (expected,)):
            raise DecodeError(f"Field {key!r} is a bool, expected {expected}")
        if not isinstance(value, expected):
            raise DecodeError(f"Field {key!r} is {type(value).__name__}, expected {expected}")
        return value  # type: ignore[return-value]

    def get_str(self, key: str, default: str | None = None) -> str | None:
        return self._typed(key, str, default)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self._typed(key, (int, float), default)
        if isinstance(value, float):
            if not value.is_integer():
                raise DecodeError(f"Field {key!r} is a non-integral number")
            return int(value)
        return value

    def get_float(self, key: str, default: float | None = None) -> float | None:
        value = self._typed(key, (int, float), default)
        return float(value) if value is not None else None

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        return self._typed(key, bool, default)

    def get_date(self, key: str, default: datetime | None = None) -> datetime | None:
        if self._fields.get(key) is None:
            return default
        return decode_date(self._fields[key])

    def get_pointer(self, key: str) -> Pointer | None:
        value = self._fields.get(key)
        if isinstance(value, ParseObject):
            return value.to_pointer()
        return self._typed(key, Pointer, None)

    def get_object(self, key: str) -> "ParseObject | None":
        """Objeto anidado expandido con `include`."""

        return self._typed(key, ParseObject, None)

    def get_geopoint(self, key: str) -> GeoPoint | None:
        return self._typed(key, GeoPoint, None)

    def get_file(self, key: str) -> FileRef | None:
        return self._typed(key, FileRef, None)

    def get_list(self, key: str, default: list[Any] | None = None) -> list[Any] | None:
        return self._typed(key, list, default)

    def get_dict(self, key: str, default: dict[str, Any] | None = None) -> dict[str, Any] | None:
        return self._typed(key, dict, default)

    # Cable --------------------------------------------------------------

    def to_pointer(self) -> Pointer:
        return Pointer(class_name=self.class_name, object_id=self.require_object_id())

    def to_wire(self) -> dict[str, str]:
        """Un objeto embebido en otro viaja como puntero."""

        return self.to_pointer().to_wire()

    def to_payload(self, *, only_dirty: bool = False) -> dict[str, Any]:
        """Cuerpo JSON para create (todo) o update (solo campos modificados)."""

        keys = [k for k in self._fields if k in self._dirty] if only_dirty else list(self._fields)
        body = {key: encode_value(self._fields[key]) for key in keys}
        if self.acl is not None and (not only_dirty or "ACL" in self._dirty):
            body["ACL"] = self.acl.to_wire()
        return body

    def set_acl(self, acl: ACL) -> None:
        self.ensure_alive()
        self.acl = acl
        self._dirty.add("ACL")

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any], class_name: str | None = None) -> "ParseObject":
        """Construye la subclase registrada para `className` a partir de JSON del servidor."""

        resolved = class_name or raw.get("className") or cls.class_name
        if not isinstance(resolved, str) or not resolved:
            raise DecodeError("Cannot decode an object without a class name")
        target = object_class_for(resolved) if cls is ParseObject else cls
        obj = target.__new__(target)
        ParseObject.__init__(obj, resolved)
        obj.merge_server_data(raw)
        return obj

    def merge_server_data(self, raw: Mapping[str, Any]) -> None:
        """Aplica una respuesta del servidor: metadatos + campos decodificados."""

        if not isinstance(raw, Mapping):
            raise DecodeError(f"Expected an object payload, got {type(raw).__name__}")
        for key, value in raw.items():
            if key == "objectId":
                self.object_id = str(value)
            elif key == "createdAt":
                self.created_at = decode_date(value)
            elif key == "updatedAt":
                self.updated_at = decode_date(value)
            elif key == "ACL":
                self.acl = ACL.from_wire(value)
            elif key in ("className", TYPE_KEY):
                continue
            else:
                self._absorb(key, value)
                self._fields[key] = decode_value(value, object_factory=ParseObject.from_wire)
                self._dirty.discard(key)

    def _absorb(self, key: str, value: Any) -> None:
        """Hook para subclases que sacan claves del mapa de campos (p.ej. sessionToken)."""

    # Transiciones (las invocan los adaptadores tras un round trip exitoso) --

    def apply_created(self, raw: Mapping[str, Any]) -> None:
        if "objectId" not in raw or "createdAt" not in raw:
            raise DecodeError("Create response must contain objectId and createdAt")
        self._settle_operations()
        self.merge_server_data(raw)
        if "updatedAt" not in raw:
            self.updated_at = self.created_at
        self._dirty.clear()

    def apply_updated(self, raw: Mapping[str, Any]) -> None:
        if "updatedAt" not in raw:
            raise DecodeError("Update response must contain updatedAt")
        self._settle_operations()
        self.merge_server_data(raw)
        self._dirty.clear()

    def apply_fetched(self, raw: Mapping[str, Any]) -> None:
        self._fields.clear()
        self.merge_server_data(raw)
        self._dirty.clear()

    def mark_deleted(self) -> None:
        self._deleted = True
        self._dirty.clear()

    def _settle_operations(self) -> None:
        # El resultado de un __op solo se conoce si el servidor lo devuelve.
        for key, value in list(self._fields.items()):
            if isinstance(value, FieldOp):
                del self._fields[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseObject):
            return NotImplemented
        if self.object_id is None or other.object_id is None:
            return self is other
        return self.class_name == other.class_name and self.object_id == other.object_id

    def __hash__(self) -> int:
        return hash((self.class_name, self.object_id)) if self.object_id else id(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(class_name={self.class_name!r}, object_id={self.object_id!r})"


class ParseUser(ParseObject):
    class_name = "_User"
    session_token: str | None = None

    def __init__(
        self,
        fields: Mapping[str, Any] | None = None,
        *,
        username: str | None = None,
        password: str | None = None,
        email: str | None = None,
        object_id: str | None = None,
    ) -> None:
        super().__init__("_User", fields, object_id=object_id)
        self.session_token: str | None = None
        if username is not None:
            self.set("username", username)
        if password is not None:
            self.set("password", password)
        if email is not None:
            self.set("email", email)

    @property
    def username(self) -> str | None:
        return self.get_str("username")

    @property
    def email(self) -> str | None:
        return self.get_str("email")

    @property
    def email_verified(self) -> bool | None:
        return self.get_bool("emailVerified")

    def _absorb(self, key: str, value: Any) -> None:
        if key == "sessionToken" and isinstance(value, str):
            self.session_token = value

    def merge_server_data(self, raw: Mapping[str, Any]) -> None:
        super().merge_server_data(raw)
        self._fields.pop("sessionToken", None)

    def _settle_operations(self) -> None:
        super()._settle_operations()
        # La contraseña nunca vuelve del servidor; no la retenemos en memoria.
        self._fields.pop("password", None)


class ParseRole(ParseObject):
    class_name = "_Role"

    def __init__(
        self,
        name: str | None = None,
        acl: ACL | None = None,
        fields: Mapping[str, Any] | None = None,
        *,
        object_id: str | None = None,
    ) -> None:
        super().__init__("_Role", fields, object_id=object_id, acl=acl)
        if name is not None:
            self.set("name", name)

    @property
    def name(self) -> str | None:
        return self.get_str("name")


class ParseSession(ParseObject):
    class_name = "_Session"

    def __init__(self, fields: Mapping[str, Any] | None = None, *, object_id: str | None = None) -> None:
        super().__init__("_Session", fields, object_id=object_id)

    @property
    def session_token(self) -> str | None:
        return self.get_str("sessionToken")

    @property
    def expires_at(self) -> datetime | None:
        return self.get_date("expiresAt")

    @property
    def restricted(self) -> bool | None:
        return self.get_bool("restricted")

    @property
    def installation_id(self) -> str | None:
        return self.get_str("installationId")

    @property
    def user(self) -> Pointer | None:
        return self.get_pointer("user")


class ParseInstallation(ParseObject):
    class_name = "_Installation"

    def __init__(self, fields: Mapping[str, Any] | None = None, *, object_id: str | None = None) -> None:
        super().__init__("_Installation", fields, object_id=object_id)

    @property
    def device_type(self) -> str | None:
        return self.get_str("deviceType")

    @property
    def installation_id(self) -> str | None:
        return self.get_str("installationId")

    @property
    def channels(self) -> list[Any] | None:
        return self.get_list("channels")


_OBJECT_CLASSES: dict[str, type[ParseObject]] = {
    "_User": ParseUser,
    "_Role": ParseRole,
    "_Session": ParseSession,
    "_Installation": ParseInstallation,
}


def object_class_for(class_name: str) -> type[ParseObject]:
    return _OBJECT_CLASSES.get(class_name, ParseObject)


def register_object_class(class_name: str, cls: type[ParseObject]) -> None:
    """Permite subclases propias (p.ej. `GameScore(ParseObject)`) al decodificar."""

    _OBJECT_CLASSES[class_name] = cls


def pointers_for(class_name: str, ids_or_objects: Iterable[str | ParseObject | Pointer]) -> list[Pointer]:
    out: list[Pointer] = []
    for item in ids_or_objects:
        if isinstance(item, Pointer):
            out.append(item)
        elif isinstance(item, ParseObject):
            out.append(item.to_pointer())
        else:
            out.append(Pointer(class_name=class_name, object_id=str(item)))
    return out


__all__ = [
    "ACL",
    "ParseInstallation",
    "ParseObject",
    "ParseRole",
    "ParseSession",
    "ParseUser",
    "object_class_for",
    "pointers_for",
    "register_object_class",
    "validate_class_name",
]
