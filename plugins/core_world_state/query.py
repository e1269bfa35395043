# plugins/core_world_state/query.py
"""
A subset of the CouchDB Mango query language, evaluated against JSON
state values. Only the `selector` part is interpreted; results always come
back in key order so that bookmarks stay valid across pages.
"""

import json
import re
from typing import Any, Callable, Dict, List

from .contracts import StoreReadError

Predicate = Callable[[Any], bool]

_MISSING = object()

IGNORED_QUERY_KEYS = frozenset({"use_index", "execution_stats"})
# 与分页游标冲突的字段，一律拒绝
PAGINATION_CONFLICT_KEYS = frozenset({"limit", "skip", "sort", "fields", "bookmark"})

_OPERATION = "rich_query"


def _fail(message: str) -> StoreReadError:
    return StoreReadError(f"invalid query: {message}", operation=_OPERATION)


def _lookup(document: Any, path: str) -> Any:
    current = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _comparable(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    numbers = (int, float)
    return (isinstance(a, numbers) and isinstance(b, numbers)) or (isinstance(a, str) and isinstance(b, str))


def _compare(op: str, operand: Any) -> Predicate:
    def check(value: Any) -> bool:
        if value is _MISSING or not _comparable(value, operand):
            return False
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
        if op == "$lt":
            return value < operand
        return value <= operand
    return check


def _compile_operator(op: str, operand: Any) -> Predicate:
    if op == "$eq":
        return lambda v: v is not _MISSING and v == operand
    if op == "$ne":
        return lambda v: v is not _MISSING and v != operand
    if op in ("$gt", "$gte", "$lt", "$lte"):
        return _compare(op, operand)
    if op in ("$in", "$nin"):
        if not isinstance(operand, list):
            raise _fail(f"'{op}' expects an array")
        if op == "$in":
            return lambda v: v is not _MISSING and v in operand
        return lambda v: v is not _MISSING and v not in operand
    if op == "$exists":
        if not isinstance(operand, bool):
            raise _fail("'$exists' expects a boolean")
        return lambda v: (v is not _MISSING) is operand
    if op == "$regex":
        if not isinstance(operand, str):
            raise _fail("'$regex' expects a string")
        try:
            pattern = re.compile(operand)
        except re.error as e:
            raise _fail(f"bad '$regex' pattern: {e}") from e
        return lambda v: isinstance(v, str) and pattern.search(v) is not None
    raise _fail(f"unsupported operator '{op}'")


def _compile_condition(condition: Any) -> Predicate:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        predicates = [_compile_operator(op, operand) for op, operand in condition.items()]
        return lambda v: all(p(v) for p in predicates)
    # 非操作符写法是隐式的 $eq
    return _compile_operator("$eq", condition)


def _compile_selector_list(op: str, operand: Any) -> List[Predicate]:
    if not isinstance(operand, list) or not operand:
        raise _fail(f"'{op}' expects a non-empty array of selectors")
    return [compile_selector(s) for s in operand]


def compile_selector(selector: Any) -> Predicate:
    if not isinstance(selector, dict):
        raise _fail("selector must be a JSON object")

    predicates: List[Predicate] = []
    for key, value in selector.items():
        if key == "$and":
            subs = _compile_selector_list(key, value)
            predicates.append(lambda doc, subs=subs: all(p(doc) for p in subs))
        elif key == "$or":
            subs = _compile_selector_list(key, value)
            predicates.append(lambda doc, subs=subs: any(p(doc) for p in subs))
        elif key == "$nor":
            subs = _compile_selector_list(key, value)
            predicates.append(lambda doc, subs=subs: not any(p(doc) for p in subs))
        elif key == "$not":
            sub = compile_selector(value)
            predicates.append(lambda doc, sub=sub: not sub(doc))
        elif key.startswith("$"):
            raise _fail(f"unsupported combination operator '{key}'")
        else:
            field_check = _compile_condition(value)
            predicates.append(lambda doc, path=key, check=field_check: check(_lookup(doc, path)))

    return lambda doc: all(p(doc) for p in predicates)


class RichQuery:
    """A parsed query document, reusable across state values."""

    def __init__(self, selector: Dict[str, Any]):
        self.selector = selector
        self._predicate = compile_selector(selector)

    @classmethod
    def parse(cls, query_string: str) -> "RichQuery":
        try:
            document = json.loads(query_string)
        except (TypeError, json.JSONDecodeError) as e:
            raise _fail(f"query is not valid JSON ({e})") from e
        if not isinstance(document, dict):
            raise _fail("query must be a JSON object")
        if "selector" not in document:
            raise _fail("'selector' is required")

        conflicts = sorted(PAGINATION_CONFLICT_KEYS.intersection(document))
        if conflicts:
            raise _fail(f"{', '.join(conflicts)} cannot be combined with paginated queries")
        unknown = set(document) - {"selector"} - IGNORED_QUERY_KEYS
        if unknown:
            raise _fail(f"unknown query field(s): {', '.join(sorted(unknown))}")

        return cls(document["selector"])

    def matches_value(self, raw: bytes) -> bool:
        """Values that are not JSON objects never match."""
        try:
            document = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        if not isinstance(document, dict):
            return False
        return self._predicate(document)
