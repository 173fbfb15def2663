import datetime
import re

import pytest


@pytest.fixture
def target_class():
    from ..crud.query_filter import MongoQueryFilter

    return MongoQueryFilter


@pytest.fixture
def target(target_class):
    return target_class(
        custom={"between": "updatedAt", "after": "updatedAt", "before": "updatedAt"},
        blacklist={"fields", "page", "sort", "order"},
    )


def test_blacklisted_keys_are_ignored(target):
    assert target.parse({"fields": "a,b", "page": "2", "sort": "x", "order": "asc"}) == {}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("foo", "foo"),
        ("42", 42),
        ("-1.5", -1.5),
        ("true", True),
        ("False", False),
        ("!foo", {"$ne": "foo"}),
        (">18", {"$gt": 18}),
        (">=18", {"$gte": 18}),
        ("<65", {"$lt": 65}),
        ("<=65", {"$lte": 65}),
        ("~bar", {"$regex": "bar", "$options": "i"}),
        ("^bar", {"$regex": "^bar", "$options": "i"}),
        ("bar$", {"$regex": "bar$", "$options": "i"}),
        ("", {"$exists": True}),
    ],
)
def test_value_operators(target, raw, expected):
    assert target.parse({"name": raw}) == {"name": expected}


def test_regex_values_are_escaped(target):
    assert target.parse({"name": "~a.b"}) == {"name": {"$regex": r"a\.b", "$options": "i"}}


def test_negated_regex(target):
    result = target.parse({"name": "!~bar"})
    assert isinstance(result["name"]["$not"], re.Pattern)
    assert result["name"]["$not"].pattern == "bar"
    assert result["name"]["$not"].flags & re.IGNORECASE


def test_missing_field(target):
    assert target.parse({"!email": ""}) == {"email": {"$exists": False}}


def test_multiple_values(target):
    assert target.parse({"tag": ["a", "b", "!c"]}) == {"tag": {"$in": ["a", "b"], "$nin": ["c"]}}


def test_array_suffix_is_stripped(target):
    assert target.parse({"tag[]": ["1", "2"]}) == {"tag": {"$in": [1, 2]}}


def test_invalid_keys_are_ignored(target):
    assert target.parse({"$where": "1", "a b": "x", "ok": "y"}) == {"ok": "y"}


def test_whitelist(target_class):
    target = target_class(whitelist={"name"})
    assert target.parse({"name": "x", "age": "3"}) == {"name": "x"}


def test_after_and_before_combine(target):
    result = target.parse({"after": "2024-01-01", "before": "2024-02-01T00:00:00Z"})

    utc = datetime.timezone.utc
    assert result == {
        "updatedAt": {
            "$gte": datetime.datetime(2024, 1, 1, tzinfo=utc),
            "$lt": datetime.datetime(2024, 2, 1, tzinfo=utc),
        }
    }


def test_between(target):
    result = target.parse({"between": "1704067200|1706745600000"})

    utc = datetime.timezone.utc
    assert result == {
        "updatedAt": {
            "$gte": datetime.datetime(2024, 1, 1, tzinfo=utc),
            "$lt": datetime.datetime(2024, 2, 1, tzinfo=utc),
        }
    }


@pytest.mark.parametrize("params", [{"after": "yesterday"}, {"between": "2024-01-01"}, {"between": "x|y"}])
def test_unparseable_dates_are_ignored(target, params):
    assert target.parse(params) == {}


def test_query_params_object(target):
    from starlette.datastructures import QueryParams

    assert target.parse(QueryParams("tag=a&tag=b&page=2")) == {"tag": {"$in": ["a", "b"]}}


def test_rejects_unknown_custom_operator(target_class):
    with pytest.raises(ValueError):
        target_class(custom={"near": "location"})
