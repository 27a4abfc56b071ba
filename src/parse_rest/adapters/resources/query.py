"""Builder de consultas + operaciones terminales.

Por qué un builder mutable:
- Cada llamada encadenable modifica un único `QuerySpec` y devuelve `self`.
- El `QuerySpec` es inerte: solo `find`, `first`, `get`, `count`, `distinct` y `aggregate`
  lo compilan y ejecutan.

Ejemplo:
    scores = await client.query("GameScore").equal_to("playerName", "Sean").add_descending("score").limit(10).find()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path, path_segment
from parse_rest.adapters.response_decoder import expect_count, expect_list, expect_object, expect_results
from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.models import ParseObject, validate_class_name
from parse_rest.core.domain.query import (
    Constraint,
    QueryOperator,
    QuerySpec,
    RelatedTo,
    SortKey,
    TextSearch,
    check_non_negative,
)
from parse_rest.core.domain.values import GeoPoint, Pointer, decode_value
from parse_rest.core.services.query_compiler import (
    compile_aggregate,
    compile_count,
    compile_distinct,
    compile_find,
    compile_first,
    compile_get,
)

logger = logging.getLogger(__name__)


class ParseQuery:
    def __init__(self, class_name: str, *, api: ParseAPI | None = None) -> None:
        self._spec = QuerySpec(class_name=validate_class_name(class_name))
        self._api = api

    @property
    def class_name(self) -> str:
        return self._spec.class_name

    @property
    def spec(self) -> QuerySpec:
        """Copia del estado actual (para inspección/tests)."""

        return self._spec.copy()

    def _where(self, field: str, operator: QueryOperator, operand: Any = None, options: str | None = None) -> "ParseQuery":
        self._spec.add_constraint(Constraint(field, operator, operand, options))
        return self

    # Filtros ------------------------------------------------------------

    def equal_to(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.EQUAL_TO, value)

    def not_equal_to(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.NOT_EQUAL_TO, value)

    def greater_than(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.GREATER_THAN, value)

    def greater_than_or_equal_to(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.GREATER_OR_EQUAL, value)

    def less_than(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.LESS_THAN, value)

    def less_than_or_equal_to(self, field: str, value: Any) -> "ParseQuery":
        return self._where(field, QueryOperator.LESS_OR_EQUAL, value)

    def contained_in(self, field: str, values: Sequence[Any]) -> "ParseQuery":
        return self._where(field, QueryOperator.CONTAINED_IN, values)

    def not_contained_in(self, field: str, values: Sequence[Any]) -> "ParseQuery":
        return self._where(field, QueryOperator.NOT_CONTAINED_IN, values)

    def contains_all(self, field: str, values: Sequence[Any]) -> "ParseQuery":
        return self._where(field, QueryOperator.CONTAINS_ALL, values)

    def exists(self, field: str) -> "ParseQuery":
        return self._where(field, QueryOperator.EXISTS)

    def does_not_exist(self, field: str) -> "ParseQuery":
        return self._where(field, QueryOperator.DOES_NOT_EXIST)

    def starts_with(self, field: str, prefix: str) -> "ParseQuery":
        return self._where(field, QueryOperator.STARTS_WITH, prefix)

    def ends_with(self, field: str, suffix: str) -> "ParseQuery":
        return self._where(field, QueryOperator.ENDS_WITH, suffix)

    def contains(self, field: str, substring: str) -> "ParseQuery":
        return self._where(field, QueryOperator.CONTAINS, substring)

    def matches_regex(self, field: str, pattern: str, modifiers: str | None = None) -> "ParseQuery":
        return self._where(field, QueryOperator.MATCHES_REGEX, pattern, modifiers or None)

    def near(self, field: str, point: GeoPoint) -> "ParseQuery":
        return self._where(field, QueryOperator.NEAR, point)

    def search(
        self,
        field: str,
        term: str,
        *,
        language: str | None = None,
        case_sensitive: bool | None = None,
        diacritic_sensitive: bool | None = None,
    ) -> "ParseQuery":
        if not field or not isinstance(term, str) or not term:
            raise PreconditionError("search requires a field and a non-empty term")
        self._spec.search = TextSearch(field, term, language, case_sensitive, diacritic_sensitive)
        return self

    def related_to(self, parent: ParseObject | Pointer, key: str) -> "ParseQuery":
        pointer = parent.to_pointer() if isinstance(parent, ParseObject) else parent
        if not isinstance(pointer, Pointer):
            raise PreconditionError("related_to requires a parent object or pointer")
        if not key:
            raise PreconditionError("related_to requires a relation key")
        self._spec.related_to = RelatedTo(pointer, key)
        return self

    # Orden, paginación y proyección --------------------------------------

    def order(self, *keys: str) -> "ParseQuery":
        """Reemplaza el orden. Un prefijo `-` indica descendente."""

        self._spec.sort = [
            SortKey(key[1:], descending=True) if key.startswith("-") else SortKey(key) for key in _non_empty(keys, "order")
        ]
        return self

    def add_ascending(self, *keys: str) -> "ParseQuery":
        self._spec.sort.extend(SortKey(key) for key in _plain_sort_keys(keys))
        return self

    def add_descending(self, *keys: str) -> "ParseQuery":
        self._spec.sort.extend(SortKey(key, descending=True) for key in _plain_sort_keys(keys))
        return self

    def limit(self, value: int) -> "ParseQuery":
        self._spec.limit = check_non_negative("limit", value)
        return self

    def skip(self, value: int) -> "ParseQuery":
        self._spec.skip = check_non_negative("skip", value)
        return self

    def select(self, *keys: str) -> "ParseQuery":
        for key in _non_empty(keys, "select"):
            if key not in self._spec.keys:
                self._spec.keys.append(key)
        return self

    def include(self, *keys: str) -> "ParseQuery":
        for key in _non_empty(keys, "include"):
            if key not in self._spec.include:
                self._spec.include.append(key)
        return self

    def use_master_key(self, enabled: bool = True) -> "ParseQuery":
        self._spec.use_master_key = enabled
        return self

    def to_params(self) -> dict[str, str]:
        """Parámetros que enviaría `find()`."""

        return compile_find(self._spec)

    # Terminales ---------------------------------------------------------

    def _require_api(self) -> ParseAPI:
        if self._api is None:
            raise PreconditionError("This query is not bound to a client; build it with client.query()")
        return self._api

    def _decode(self, raw: Mapping[str, Any]) -> ParseObject:
        return ParseObject.from_wire(raw, self._spec.class_name)

    async def find(self) -> list[ParseObject]:
        api = self._require_api()
        raw = await api.get(
            class_path(self._spec.class_name),
            params=compile_find(self._spec),
            use_master_key=self._spec.use_master_key,
        )
        results = expect_results(raw)
        logger.debug("find %s -> %d results", self._spec.class_name, len(results))
        return [self._decode(item) for item in results]

    async def first(self) -> ParseObject | None:
        api = self._require_api()
        raw = await api.get(
            class_path(self._spec.class_name),
            params=compile_first(self._spec),
            use_master_key=self._spec.use_master_key,
        )
        results = expect_results(raw)
        return self._decode(results[0]) if results else None

    async def get(self, object_id: str) -> ParseObject:
        """Objeto por id; si no existe el servidor responde con el código 101."""

        api = self._require_api()
        raw = await api.get(
            class_path(self._spec.class_name, object_id),
            params=compile_get(self._spec),
            use_master_key=self._spec.use_master_key,
        )
        return self._decode(expect_object(raw))

    async def count(self) -> int:
        api = self._require_api()
        raw = await api.get(
            class_path(self._spec.class_name),
            params=compile_count(self._spec),
            use_master_key=self._spec.use_master_key,
        )
        return expect_count(raw)

    async def distinct(self, field: str) -> list[Any]:
        """Valores distintos de `field` (requiere master key)."""

        api = self._require_api()
        raw = await api.get(
            f"/aggregate/{path_segment(self._spec.class_name, 'class name')}",
            params=compile_distinct(self._spec, field),
            use_master_key=True,
        )
        return [decode_value(item, object_factory=ParseObject.from_wire) for item in _results_list(raw)]

    async def aggregate(self, pipeline: Sequence[Mapping[str, Any]]) -> list[Any]:
        """Ejecuta un pipeline de agregación (requiere master key)."""

        api = self._require_api()
        raw = await api.get(
            f"/aggregate/{path_segment(self._spec.class_name, 'class name')}",
            params=compile_aggregate(self._spec, pipeline),
            use_master_key=True,
        )
        return [decode_value(item, object_factory=ParseObject.from_wire) for item in _results_list(raw)]


def _non_empty(keys: Sequence[str], what: str) -> Sequence[str]:
    if not keys:
        raise PreconditionError(f"{what} requires at least one key")
    for key in keys:
        if not isinstance(key, str) or not key or key == "-":
            raise PreconditionError(f"Invalid {what} key: {key!r}")
    return keys


def _plain_sort_keys(keys: Sequence[str]) -> Sequence[str]:
    # La dirección la da el método; un `-` aquí invertiría el orden pedido.
    for key in _non_empty(keys, "sort"):
        if key.startswith("-"):
            raise PreconditionError(f"Sort key {key!r} has a '-' prefix; use order() or drop the prefix")
    return keys


def _results_list(raw: Any) -> list[Any]:
    # A diferencia de find, los elementos pueden ser escalares (distinct).
    body = expect_object(raw)
    if "results" not in body:
        raise DecodeError("Expected a 'results' key in the response")
    return expect_list(body["results"], "results")


__all__ = ["ParseQuery"]
