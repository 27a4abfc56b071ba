"""Compilador de consultas: `QuerySpec` -> parámetros de query-string.

Por qué una función pura:
- Compilar dos veces la misma especificación produce exactamente la misma salida;
  no hay estado ni I/O, así que se prueba sin red.
- Las reglas de colocación (p.ej. `count`/`limit` siempre fuera de `where`) se
  garantizan aquí y no en el transporte.

Reglas:
- Cada `Constraint` se convierte en `field: valor` (EqualTo) o en un objeto de
  operadores `{"$op": operando}`; varias condiciones sobre el mismo campo se fusionan.
- Dos condiciones que ocuparían la misma clave de un campo (p.ej. dos `equal_to`) son un
  `PreconditionError`: ninguna se descarta en silencio.
- `order`, `keys` e `include` se unen con comas respetando el orden de inserción.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.query import Constraint, QueryOperator, QuerySpec
from parse_rest.core.domain.values import encode_value

OPERATOR_TOKENS: dict[QueryOperator, str] = {
    QueryOperator.NOT_EQUAL_TO: "$ne",
    QueryOperator.GREATER_THAN: "$gt",
    QueryOperator.GREATER_OR_EQUAL: "$gte",
    QueryOperator.LESS_THAN: "$lt",
    QueryOperator.LESS_OR_EQUAL: "$lte",
    QueryOperator.CONTAINED_IN: "$in",
    QueryOperator.NOT_CONTAINED_IN: "$nin",
    QueryOperator.CONTAINS_ALL: "$all",
    QueryOperator.EXISTS: "$exists",
    QueryOperator.DOES_NOT_EXIST: "$exists",
    QueryOperator.STARTS_WITH: "$regex",
    QueryOperator.ENDS_WITH: "$regex",
    QueryOperator.CONTAINS: "$regex",
    QueryOperator.MATCHES_REGEX: "$regex",
    QueryOperator.NEAR: "$nearSphere",
}

# EqualTo dentro de un objeto de operadores (cuando comparte campo con otro operador).
EQ_TOKEN = "$eq"


def dumps(value: Any) -> str:
    """JSON compacto y estable para parámetros de URL."""

    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except ValueError as exc:
        raise PreconditionError("NaN and Infinity cannot be sent to Parse Server") from exc


def _operand_for(constraint: Constraint) -> Any:
    op = constraint.operator
    if op is QueryOperator.EXISTS:
        return True
    if op is QueryOperator.DOES_NOT_EXIST:
        return False
    if op is QueryOperator.STARTS_WITH:
        return "^" + re.escape(constraint.operand)
    if op is QueryOperator.ENDS_WITH:
        return re.escape(constraint.operand) + "$"
    if op is QueryOperator.CONTAINS:
        return re.escape(constraint.operand)
    if op is QueryOperator.MATCHES_REGEX:
        return constraint.operand
    return encode_value(constraint.operand)


def compile_where(spec: QuerySpec) -> dict[str, Any]:
    """Construye el objeto `where` (AND implícito entre condiciones)."""

    where: dict[str, Any] = {}
    # Campos cuyo valor actual es un EqualTo desnudo (no un objeto de operadores).
    bare: set[str] = set()
    seen: set[tuple[str, QueryOperator]] = set()

    for constraint in spec.constraints:
        name = constraint.field
        if constraint.slot in seen:
            raise PreconditionError(f"Conflicting {constraint.operator.value} condition on {name!r}")
        seen.add(constraint.slot)
        if constraint.operator is QueryOperator.EQUAL_TO:
            value = encode_value(constraint.operand)
            if name in where and name not in bare:
                where[name][EQ_TOKEN] = value
            else:
                where[name] = value
                bare.add(name)
            continue

        operators: dict[str, Any]
        if name in bare:
            operators = {EQ_TOKEN: where[name]}
            bare.discard(name)
        else:
            operators = where.get(name, {})
        operators[OPERATOR_TOKENS[constraint.operator]] = _operand_for(constraint)
        if constraint.options:
            operators["$options"] = constraint.options
        where[name] = operators

    if spec.search is not None:
        search = spec.search
        term: dict[str, Any] = {"$term": search.term}
        if search.language is not None:
            term["$language"] = search.language
        if search.case_sensitive is not None:
            term["$caseSensitive"] = search.case_sensitive
        if search.diacritic_sensitive is not None:
            term["$diacriticSensitive"] = search.diacritic_sensitive
        clause = {"$text": {"$search": term}}
        if search.field in bare:
            clause[EQ_TOKEN] = where[search.field]
            bare.discard(search.field)
            where[search.field] = clause
        else:
            where.setdefault(search.field, {}).update(clause)

    if spec.related_to is not None:
        where["$relatedTo"] = {"object": spec.related_to.parent.to_wire(), "key": spec.related_to.key}

    return where


def _joined(items: Sequence[str]) -> str:
    return ",".join(items)


def compile_find(spec: QuerySpec) -> dict[str, str]:
    """Parámetros de `find`: where, order, limit, skip, keys, include."""

    params: dict[str, str] = {}
    where = compile_where(spec)
    if where:
        params["where"] = dumps(where)
    if spec.sort:
        params["order"] = _joined([key.token() for key in spec.sort])
    if spec.limit is not None:
        params["limit"] = str(spec.limit)
    if spec.skip is not None:
        params["skip"] = str(spec.skip)
    if spec.keys:
        params["keys"] = _joined(spec.keys)
    if spec.include:
        params["include"] = _joined(spec.include)
    return params


def compile_first(spec: QuerySpec) -> dict[str, str]:
    params = compile_find(spec)
    params["limit"] = "1"
    return params


def compile_get(spec: QuerySpec) -> dict[str, str]:
    """`get` por objectId: solo proyección e inclusión aplican."""

    params: dict[str, str] = {}
    if spec.keys:
        params["keys"] = _joined(spec.keys)
    if spec.include:
        params["include"] = _joined(spec.include)
    return params


def compile_count(spec: QuerySpec) -> dict[str, str]:
    """Modo count: `count=1` y `limit=0` como parámetros de primer nivel.

    Nunca se colocan dentro de `where`; el orden, skip y proyección no aplican.
    """

    params: dict[str, str] = {}
    where = compile_where(spec)
    if where:
        params["where"] = dumps(where)
    params["count"] = "1"
    params["limit"] = "0"
    return params


def compile_distinct(spec: QuerySpec, field: str) -> dict[str, str]:
    if not isinstance(field, str) or not field:
        raise PreconditionError("distinct requires a field name")
    params: dict[str, str] = {"distinct": field}
    where = compile_where(spec)
    if where:
        params["where"] = dumps(where)
    return params


def compile_aggregate(spec: QuerySpec, pipeline: Sequence[Mapping[str, Any]]) -> dict[str, str]:
    """Pipeline de agregación; las condiciones del builder se anteponen como `$match`."""

    if isinstance(pipeline, (str, bytes, Mapping)) or not isinstance(pipeline, Sequence):
        raise PreconditionError("aggregate requires a list of pipeline stages")
    stages: list[Any] = []
    for stage in pipeline:
        if not isinstance(stage, Mapping) or not stage:
            raise PreconditionError("Each pipeline stage must be a non-empty mapping")
        stages.append(encode_value(stage))
    where = compile_where(spec)
    if where:
        stages.insert(0, {"$match": where})
    return {"pipeline": dumps(stages)}


__all__ = [
    "EQ_TOKEN",
    "OPERATOR_TOKENS",
    "compile_aggregate",
    "compile_count",
    "compile_distinct",
    "compile_find",
    "compile_first",
    "compile_get",
    "compile_where",
    "dumps",
]
