"""Especificación de consultas (datos puros, sin I/O).

Por qué separar la especificación del compilador:
- `QuerySpec` es el estado inerte que construye el builder; solo las operaciones
  terminales lo compilan y ejecutan.
- Validar operador/operando al construir cada `Constraint` hace que una combinación
  inválida falle en el acto con `PreconditionError`, nunca que se descarte en silencio.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.values import GeoPoint, Pointer, encode_value


class QueryOperator(str, Enum):
    EQUAL_TO = "equalTo"
    NOT_EQUAL_TO = "notEqualTo"
    GREATER_THAN = "greaterThan"
    GREATER_OR_EQUAL = "greaterThanOrEqualTo"
    LESS_THAN = "lessThan"
    LESS_OR_EQUAL = "lessThanOrEqualTo"
    CONTAINED_IN = "containedIn"
    NOT_CONTAINED_IN = "notContainedIn"
    CONTAINS_ALL = "containsAll"
    EXISTS = "exists"
    DOES_NOT_EXIST = "doesNotExist"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    CONTAINS = "contains"
    MATCHES_REGEX = "matchesRegex"
    NEAR = "near"


_NO_OPERAND = {QueryOperator.EXISTS, QueryOperator.DOES_NOT_EXIST}
_LIST_OPERAND = {QueryOperator.CONTAINED_IN, QueryOperator.NOT_CONTAINED_IN, QueryOperator.CONTAINS_ALL}
_TEXT_OPERAND = {
    QueryOperator.STARTS_WITH,
    QueryOperator.ENDS_WITH,
    QueryOperator.CONTAINS,
    QueryOperator.MATCHES_REGEX,
}
_COMPARISON = {
    QueryOperator.GREATER_THAN,
    QueryOperator.GREATER_OR_EQUAL,
    QueryOperator.LESS_THAN,
    QueryOperator.LESS_OR_EQUAL,
}
# Operadores que comparten clave en el cable: dos de ellos sobre el mismo campo chocarían.
_SLOTS = {
    QueryOperator.DOES_NOT_EXIST: QueryOperator.EXISTS,
    QueryOperator.STARTS_WITH: QueryOperator.MATCHES_REGEX,
    QueryOperator.ENDS_WITH: QueryOperator.MATCHES_REGEX,
    QueryOperator.CONTAINS: QueryOperator.MATCHES_REGEX,
}


def _check_encodable(field: str, op: QueryOperator, operand: Any) -> None:
    try:
        wire = encode_value(operand)
    except PreconditionError as exc:
        raise PreconditionError(f"{op.value} on {field!r}: {exc.message}") from exc
    try:
        json.dumps(wire, allow_nan=False)
    except ValueError as exc:
        raise PreconditionError(f"{op.value} on {field!r} has a non-finite number (NaN or Infinity)") from exc


@dataclass(frozen=True)
class Constraint:
    """Una condición de filtro. Varias condiciones en una consulta se combinan con AND."""

    field: str
    operator: QueryOperator
    operand: Any = None
    options: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field:
            raise PreconditionError("Constraint field must be a non-empty string")
        op = self.operator
        if op in _NO_OPERAND:
            if self.operand is not None:
                raise PreconditionError(f"{op.value} takes no operand")
        elif op in _LIST_OPERAND:
            if isinstance(self.operand, (str, bytes, Mapping)) or not isinstance(self.operand, (list, tuple, set, frozenset)):
                raise PreconditionError(f"{op.value} on {self.field!r} requires a list operand")
            object.__setattr__(self, "operand", tuple(self.operand))
            _check_encodable(self.field, op, list(self.operand))
        elif op in _TEXT_OPERAND:
            if not isinstance(self.operand, str):
                raise PreconditionError(f"{op.value} on {self.field!r} requires a string operand")
            if op is QueryOperator.MATCHES_REGEX and not self.operand:
                raise PreconditionError("matchesRegex requires a non-empty pattern")
        elif op in _COMPARISON:
            if self.operand is None or isinstance(self.operand, (list, tuple, set, Mapping)):
                raise PreconditionError(f"{op.value} on {self.field!r} requires a scalar operand")
            _check_encodable(self.field, op, self.operand)
        elif op in (QueryOperator.EQUAL_TO, QueryOperator.NOT_EQUAL_TO):
            _check_encodable(self.field, op, self.operand)
        elif op is QueryOperator.NEAR:
            if not isinstance(self.operand, GeoPoint):
                raise PreconditionError(f"near on {self.field!r} requires a GeoPoint")
        if self.options is not None and op is not QueryOperator.MATCHES_REGEX:
            raise PreconditionError("Regex options only apply to matchesRegex")

    @property
    def slot(self) -> tuple[str, QueryOperator]:
        """Clave `(campo, operador en el cable)`; dos condiciones con la misma clave se pisarían."""

        return self.field, _SLOTS.get(self.operator, self.operator)


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False

    def token(self) -> str:
        return f"-{self.field}" if self.descending else self.field


@dataclass(frozen=True)
class TextSearch:
    field: str
    term: str
    language: str | None = None
    case_sensitive: bool | None = None
    diacritic_sensitive: bool | None = None


@dataclass(frozen=True)
class RelatedTo:
    """Restringe a los objetos de la relación `key` del objeto padre."""

    parent: Pointer
    key: str


@dataclass
class QuerySpec:
    """Estado completo de una consulta: filtros, orden, paginación y proyección."""

    class_name: str
    constraints: list[Constraint] = field(default_factory=list)
    sort: list[SortKey] = field(default_factory=list)
    limit: int | None = None
    skip: int | None = None
    keys: list[str] = field(default_factory=list)
    include: list[str] = field(default_factory=list)
    search: TextSearch | None = None
    related_to: RelatedTo | None = None
    use_master_key: bool = False

    def __post_init__(self) -> None:
        if self.limit is not None:
            check_non_negative("limit", self.limit)
        if self.skip is not None:
            check_non_negative("skip", self.skip)

    def add_constraint(self, constraint: Constraint) -> None:
        for existing in self.constraints:
            if existing.slot == constraint.slot:
                raise PreconditionError(
                    f"{constraint.field!r} already has a {existing.operator.value} condition; "
                    f"{constraint.operator.value} would replace it"
                )
        self.constraints.append(constraint)

    def copy(self) -> "QuerySpec":
        return replace(
            self,
            constraints=list(self.constraints),
            sort=list(self.sort),
            keys=list(self.keys),
            include=list(self.include),
        )


def check_non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PreconditionError(f"{name} must be an integer")
    if value < 0:
        raise PreconditionError(f"{name} must be non-negative, got {value}")
    return value


__all__ = [
    "Constraint",
    "QueryOperator",
    "QuerySpec",
    "RelatedTo",
    "SortKey",
    "TextSearch",
    "check_non_negative",
]
