"""
Query-string to Mongo filter translation.

Value syntax (one parameter per field):

- `name=foo`            equality, `true`/`false` and numbers are coerced
- `name=!foo`           not equal
- `age=>18`, `age=>=18`, `age=<65`, `age=<=65`
- `name=~foo`           case-insensitive contains
- `name=^foo`, `name=foo$`   starts with / ends with
- `name=!~foo`, `name=!^foo` negated regex
- `name=`               field exists, `!name=` field does not exist
- `tag=a&tag=b`         `$in`; values prefixed with `!` go to `$nin`

Custom operators map a parameter name onto a date field:
`after` (`$gte`), `before` (`$lt`) and `between=<from>|<to>`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_KEY_REGEX = re.compile(r"^[a-zA-Z0-9_.\-]+$")

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")
_DATE_OPERATORS = ("after", "before", "between")


def _grouped(params: Any) -> dict[str, list[str]]:
    """
    Normalize a query mapping to `{key: [values...]}`.

    Accepts plain mappings (str or list values) and Starlette's `QueryParams`.
    """
    grouped: dict[str, list[str]] = {}
    if hasattr(params, "multi_items"):
        items: Iterable[tuple[str, Any]] = params.multi_items()
    elif isinstance(params, Mapping):
        items = params.items()
    else:
        items = params or ()

    for key, value in items:
        if isinstance(value, (list, tuple)):
            values = [str(v) for v in value]
        elif value is None:
            values = [""]
        else:
            values = [str(value)]
        if key.endswith("[]"):
            key = key[:-2]
        grouped.setdefault(key, []).extend(values)
    return grouped


def coerce_scalar(raw: str) -> Any:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def parse_date(raw: str) -> datetime | None:
    raw = (raw or "").strip()
    if not raw:
        return None

    if _INT_RE.match(raw):
        ts = int(raw)
        # Anything this large is a millisecond timestamp.
        if ts >= 10_000_000_000:
            ts = ts / 1000
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _regex(pattern: str) -> dict[str, str]:
    return {"$regex": pattern, "$options": "i"}


def _value_condition(raw: str) -> Any:
    if raw.startswith("!~") and len(raw) > 2:
        return {"$not": re.compile(re.escape(raw[2:]), re.IGNORECASE)}
    if raw.startswith("!^") and len(raw) > 2:
        return {"$not": re.compile("^" + re.escape(raw[2:]), re.IGNORECASE)}
    if raw.startswith("!") and len(raw) > 1:
        return {"$ne": coerce_scalar(raw[1:])}
    if raw.startswith(">=") and len(raw) > 2:
        return {"$gte": coerce_scalar(raw[2:])}
    if raw.startswith("<=") and len(raw) > 2:
        return {"$lte": coerce_scalar(raw[2:])}
    if raw.startswith(">") and len(raw) > 1:
        return {"$gt": coerce_scalar(raw[1:])}
    if raw.startswith("<") and len(raw) > 1:
        return {"$lt": coerce_scalar(raw[1:])}
    if raw.startswith("~") and len(raw) > 1:
        return _regex(re.escape(raw[1:]))
    if raw.startswith("^") and len(raw) > 1:
        return _regex("^" + re.escape(raw[1:]))
    if raw.endswith("$") and len(raw) > 1:
        return _regex(re.escape(raw[:-1]) + "$")
    return coerce_scalar(raw)


def _merge(query: dict[str, Any], field: str, condition: Any) -> None:
    existing = query.get(field)
    if isinstance(existing, dict) and isinstance(condition, dict):
        existing.update(condition)
    else:
        query[field] = condition


class MongoQueryFilter:
    """
    Build Mongo filter documents from request query parameters.

    `custom` maps a date operator (`after`, `before`, `between`) to the
    field it applies to. Keys in `blacklist` never become clauses; when a
    `whitelist` is given only those keys do.
    """

    def __init__(
        self,
        *,
        custom: Mapping[str, str] | None = None,
        blacklist: Iterable[str] | None = None,
        whitelist: Iterable[str] | None = None,
        key_regex: re.Pattern[str] = DEFAULT_KEY_REGEX,
    ) -> None:
        unknown = set(custom or {}) - set(_DATE_OPERATORS)
        if unknown:
            raise ValueError(f"Unsupported custom operators: {sorted(unknown)}")
        self.custom = dict(custom or {})
        self.blacklist = frozenset(blacklist or ())
        self.whitelist = frozenset(whitelist) if whitelist is not None else None
        self.key_regex = key_regex

    def _allowed(self, key: str) -> bool:
        if not self.key_regex.match(key):
            return False
        if key in self.blacklist:
            return False
        if self.whitelist is not None and key not in self.whitelist:
            return False
        return True

    def _custom_condition(self, op: str, raw: str) -> dict[str, datetime] | None:
        if op == "between":
            parts = raw.split("|")
            if len(parts) != 2:
                return None
            start, end = parse_date(parts[0]), parse_date(parts[1])
            if start is None or end is None:
                return None
            return {"$gte": start, "$lt": end}

        value = parse_date(raw)
        if value is None:
            return None
        return {"$gte": value} if op == "after" else {"$lt": value}

    def parse(self, params: Any) -> dict[str, Any]:
        query: dict[str, Any] = {}

        for key, values in _grouped(params).items():
            if key in self.custom:
                condition = self._custom_condition(key, values[-1])
                if condition is None:
                    logger.debug("query_filter_ignored key=%s value=%s", key, values[-1])
                    continue
                _merge(query, self.custom[key], condition)
                continue

            negated_key = key.startswith("!")
            field = key[1:] if negated_key else key
            if not self._allowed(field):
                continue

            if negated_key:
                if all(v == "" for v in values):
                    query[field] = {"$exists": False}
                continue

            if len(values) > 1:
                included = [coerce_scalar(v) for v in values if not v.startswith("!")]
                excluded = [coerce_scalar(v[1:]) for v in values if v.startswith("!")]
                condition: dict[str, Any] = {}
                if included:
                    condition["$in"] = included
                if excluded:
                    condition["$nin"] = excluded
                _merge(query, field, condition)
                continue

            raw = values[0]
            if raw == "":
                query[field] = {"$exists": True}
                continue
            _merge(query, field, _value_condition(raw))

        return query
