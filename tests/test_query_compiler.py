from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.query import Constraint, QueryOperator, QuerySpec
from parse_rest.core.domain.values import GeoPoint, Pointer
from parse_rest.core.services.query_compiler import (
    OPERATOR_TOKENS,
    compile_aggregate,
    compile_count,
    compile_distinct,
    compile_find,
    compile_first,
    compile_get,
    compile_where,
)


def _where(query: ParseQuery) -> dict:
    return json.loads(query.to_params()["where"])


def test_equal_to_and_less_than_compile_to_where() -> None:
    query = ParseQuery("GameScore").equal_to("score", 100).less_than("wins", 50)

    assert _where(query) == {"score": 100, "wins": {"$lt": 50}}


def test_starts_with_anchors_and_escapes_literal_text() -> None:
    assert _where(ParseQuery("GameScore").starts_with("name", "Mon")) == {"name": {"$regex": "^Mon"}}
    assert _where(ParseQuery("GameScore").starts_with("name", "a.b*")) == {"name": {"$regex": "^a\\.b\\*"}}


def test_ends_with_and_contains_escape_literal_text() -> None:
    assert _where(ParseQuery("Doc").ends_with("path", "(v1)")) == {"path": {"$regex": "\\(v1\\)$"}}
    assert _where(ParseQuery("Doc").contains("title", "a+b")) == {"title": {"$regex": "a\\+b"}}


def test_matches_regex_keeps_raw_pattern_and_options() -> None:
    query = ParseQuery("Doc").matches_regex("title", "^h.*o$", "i")

    assert _where(query) == {"title": {"$regex": "^h.*o$", "$options": "i"}}


def test_same_field_constraints_merge_into_one_operator_object() -> None:
    query = ParseQuery("GameScore").greater_than("score", 10).less_than_or_equal_to("score", 100)

    assert _where(query) == {"score": {"$gt": 10, "$lte": 100}}


def test_equal_to_merges_with_operators_as_eq() -> None:
    query = ParseQuery("GameScore").equal_to("score", 5).exists("score")

    assert _where(query) == {"score": {"$eq": 5, "$exists": True}}


@pytest.mark.parametrize(
    ("method", "args", "expected"),
    [
        ("not_equal_to", ("f", 1), {"$ne": 1}),
        ("greater_than", ("f", 1), {"$gt": 1}),
        ("greater_than_or_equal_to", ("f", 1), {"$gte": 1}),
        ("less_than", ("f", 1), {"$lt": 1}),
        ("less_than_or_equal_to", ("f", 1), {"$lte": 1}),
        ("contained_in", ("f", [1, 2]), {"$in": [1, 2]}),
        ("not_contained_in", ("f", [1, 2]), {"$nin": [1, 2]}),
        ("contains_all", ("f", ["a", "b"]), {"$all": ["a", "b"]}),
        ("exists", ("f",), {"$exists": True}),
        ("does_not_exist", ("f",), {"$exists": False}),
    ],
)
def test_operator_tokens(method: str, args: tuple, expected: dict) -> None:
    query = getattr(ParseQuery("Thing"), method)(*args)

    assert _where(query) == {"f": expected}


def test_every_operator_has_exactly_one_token() -> None:
    assert set(OPERATOR_TOKENS) == set(QueryOperator) - {QueryOperator.EQUAL_TO}


def test_domain_operands_are_wire_encoded() -> None:
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    query = (
        ParseQuery("GameScore")
        .equal_to("player", Pointer("_User", "u1"))
        .greater_than("createdAt", when)
    )

    assert _where(query) == {
        "player": {"__type": "Pointer", "className": "_User", "objectId": "u1"},
        "createdAt": {"$gt": {"__type": "Date", "iso": "2024-01-01T00:00:00.000Z"}},
    }


@pytest.mark.parametrize(
    ("operator", "operand"),
    [
        (QueryOperator.CONTAINED_IN, 5),
        (QueryOperator.NOT_CONTAINED_IN, "abc"),
        (QueryOperator.CONTAINS_ALL, {"a": 1}),
        (QueryOperator.STARTS_WITH, 12),
        (QueryOperator.MATCHES_REGEX, ""),
        (QueryOperator.EXISTS, True),
        (QueryOperator.LESS_THAN, None),
        (QueryOperator.GREATER_THAN, [1, 2]),
        (QueryOperator.NEAR, (1.0, 2.0)),
        (QueryOperator.EQUAL_TO, object()),
        (QueryOperator.NOT_EQUAL_TO, object()),
        (QueryOperator.GREATER_THAN, float("nan")),
        (QueryOperator.LESS_OR_EQUAL, float("inf")),
        (QueryOperator.CONTAINED_IN, [1, object()]),
    ],
)
def test_invalid_operator_operand_combinations_fail_at_build_time(operator: QueryOperator, operand: object) -> None:
    with pytest.raises(PreconditionError):
        Constraint("f", operator, operand)


def test_regex_options_only_apply_to_matches_regex() -> None:
    with pytest.raises(PreconditionError):
        Constraint("f", QueryOperator.STARTS_WITH, "a", options="i")


def test_order_is_comma_joined_in_insertion_order() -> None:
    query = ParseQuery("GameScore").add_descending("score").add_ascending("playerName", "createdAt")

    assert query.to_params()["order"] == "-score,playerName,createdAt"


def test_order_replaces_previous_sort() -> None:
    query = ParseQuery("GameScore").add_ascending("a").order("-b", "c")

    assert query.to_params()["order"] == "-b,c"


def test_pagination_and_projection_are_top_level() -> None:
    query = (
        ParseQuery("GameScore")
        .equal_to("cheatMode", False)
        .limit(10)
        .skip(20)
        .select("score", "playerName", "score")
        .include("player", "player.team")
    )

    params = query.to_params()

    assert params["limit"] == "10"
    assert params["skip"] == "20"
    assert params["keys"] == "score,playerName"
    assert params["include"] == "player,player.team"
    assert json.loads(params["where"]) == {"cheatMode": False}


def test_negative_limit_or_skip_is_rejected() -> None:
    with pytest.raises(PreconditionError):
        ParseQuery("GameScore").limit(-1)
    with pytest.raises(PreconditionError):
        ParseQuery("GameScore").skip(-5)
    with pytest.raises(PreconditionError):
        QuerySpec(class_name="GameScore", limit=-1)


def test_count_mode_places_count_and_limit_at_top_level_only() -> None:
    query = ParseQuery("GameScore").equal_to("playerName", "Sean").limit(50).skip(3).add_ascending("score")

    params = compile_count(query.spec)

    assert params["count"] == "1"
    assert params["limit"] == "0"
    assert "skip" not in params and "order" not in params
    where = json.loads(params["where"])
    assert where == {"playerName": "Sean"}
    assert "count" not in where and "limit" not in where


def test_count_without_constraints_has_no_where() -> None:
    assert compile_count(QuerySpec(class_name="GameScore")) == {"count": "1", "limit": "0"}


def test_find_omits_empty_parameters() -> None:
    assert compile_find(QuerySpec(class_name="GameScore")) == {}


def test_first_forces_limit_one() -> None:
    spec = ParseQuery("GameScore").limit(30).spec

    assert compile_first(spec)["limit"] == "1"


def test_get_only_sends_projection() -> None:
    spec = ParseQuery("GameScore").equal_to("a", 1).include("player").spec

    assert compile_get(spec) == {"include": "player"}


def test_compilation_is_deterministic() -> None:
    query = (
        ParseQuery("GameScore")
        .equal_to("score", 1)
        .contained_in("tags", ["a", "b"])
        .add_descending("score")
        .select("score")
    )

    assert compile_find(query.spec) == compile_find(query.spec)


def test_constraint_order_is_preserved_in_spec() -> None:
    spec = ParseQuery("GameScore").less_than("wins", 50).equal_to("score", 100).spec

    assert [c.field for c in spec.constraints] == ["wins", "score"]
    assert spec.constraints[0].operator is QueryOperator.LESS_THAN


def test_spec_is_a_copy() -> None:
    query = ParseQuery("GameScore")
    spec = query.spec
    spec.constraints.append(Constraint("x", QueryOperator.EXISTS))

    assert query.spec.constraints == []


def test_full_text_search() -> None:
    query = ParseQuery("Post").search("body", "coffee", language="en", case_sensitive=False)

    assert _where(query) == {
        "body": {"$text": {"$search": {"$term": "coffee", "$language": "en", "$caseSensitive": False}}}
    }


def test_related_to_is_a_top_level_clause() -> None:
    query = ParseQuery("_User").related_to(Pointer("Post", "p1"), "likes")

    assert _where(query) == {
        "$relatedTo": {"object": {"__type": "Pointer", "className": "Post", "objectId": "p1"}, "key": "likes"}
    }


def test_near_uses_near_sphere() -> None:
    query = ParseQuery("Place").near("location", GeoPoint(30.0, -20.0))

    assert _where(query) == {
        "location": {"$nearSphere": {"__type": "GeoPoint", "latitude": 30.0, "longitude": -20.0}}
    }


def test_distinct_sends_field_and_where() -> None:
    spec = ParseQuery("GameScore").greater_than("score", 10).spec

    params = compile_distinct(spec, "playerName")

    assert params["distinct"] == "playerName"
    assert json.loads(params["where"]) == {"score": {"$gt": 10}}


def test_aggregate_prepends_constraints_as_match() -> None:
    spec = ParseQuery("GameScore").equal_to("cheatMode", False).spec

    params = compile_aggregate(spec, [{"$group": {"_id": "$playerName", "total": {"$sum": "$score"}}}])

    assert json.loads(params["pipeline"]) == [
        {"$match": {"cheatMode": False}},
        {"$group": {"_id": "$playerName", "total": {"$sum": "$score"}}},
    ]


def test_aggregate_rejects_non_list_pipeline() -> None:
    spec = QuerySpec(class_name="GameScore")

    with pytest.raises(PreconditionError):
        compile_aggregate(spec, {"$group": {}})
    with pytest.raises(PreconditionError):
        compile_aggregate(spec, [{}])


def test_compile_where_is_empty_for_an_empty_spec() -> None:
    assert compile_where(QuerySpec(class_name="GameScore")) == {}


def test_invalid_class_name_is_rejected() -> None:
    with pytest.raises(PreconditionError):
        ParseQuery("Game Score")


def test_unencodable_operand_fails_when_the_query_is_built() -> None:
    query = ParseQuery("Thing")

    with pytest.raises(PreconditionError):
        query.equal_to("x", object())
    with pytest.raises(PreconditionError):
        query.greater_than("a", float("nan"))

    assert query.spec.constraints == []


def test_repeated_condition_on_a_field_is_rejected() -> None:
    query = ParseQuery("Thing").equal_to("a", 1)

    with pytest.raises(PreconditionError):
        query.equal_to("a", 2)
    with pytest.raises(PreconditionError):
        ParseQuery("Thing").greater_than("a", 1).greater_than("a", 5)
    with pytest.raises(PreconditionError):
        ParseQuery("Thing").starts_with("name", "Mo").matches_regex("name", "n$")
    with pytest.raises(PreconditionError):
        ParseQuery("Thing").exists("a").does_not_exist("a")

    assert _where(query) == {"a": 1}


def test_compiler_rejects_conflicting_constraints_in_a_hand_built_spec() -> None:
    spec = QuerySpec(
        class_name="Thing",
        constraints=[
            Constraint("a", QueryOperator.EQUAL_TO, 1),
            Constraint("a", QueryOperator.EQUAL_TO, 2),
        ],
    )

    with pytest.raises(PreconditionError):
        compile_where(spec)


def test_non_finite_numbers_never_reach_the_wire() -> None:
    with pytest.raises(PreconditionError):
        compile_aggregate(QuerySpec(class_name="Thing"), [{"$match": {"score": float("nan")}}])


def test_sort_helpers_reject_a_direction_prefix() -> None:
    with pytest.raises(PreconditionError):
        ParseQuery("GameScore").add_ascending("-score")
    with pytest.raises(PreconditionError):
        ParseQuery("GameScore").add_descending("-score")
