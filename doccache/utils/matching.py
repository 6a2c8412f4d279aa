"""In-process evaluation of Mongo-style query predicates.

The query loader sends a batch of predicates to the store as a single
``{"$or": [...]}`` filter and gets back the union of their matches.  To hand
every caller only the documents its own predicate selects, the union is
filtered again here with the same semantics the store applies:

* top-level fields are combined with an implicit AND;
* dotted paths descend into sub-documents and fan out across arrays;
* an array field matches when the array itself or any element matches;
* ``{"field": None}`` also matches documents where the field is missing;
* comparisons between incomparable types are simply false.

Supported operators: ``$eq $ne $gt $gte $lt $lte $in $nin $exists $size
$all $elemMatch $not $regex $options $mod $type`` and the logical
``$and $or $nor``.  Anything else raises :class:`QueryMatchError`.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from datetime import date, datetime
from functools import partial
from typing import Any

from doccache.utils.errors import QueryMatchError
from doccache.utils.keys import normalize_id


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}

_TYPE_NAMES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "int": (int,),
    "long": (int,),
    "double": (float,),
    "number": (int, float),
    "bool": (bool,),
    "object": (dict,),
    "array": (list,),
    "date": (datetime, date),
    "binData": (bytes,),
}


def matches(query: dict[str, Any], document: dict[str, Any]) -> bool:
    """Return ``True`` when *document* satisfies *query*."""
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(sub, document) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(sub, document) for sub in condition):
                return False
        elif key == "$nor":
            if any(matches(sub, document) for sub in condition):
                return False
        elif key == "$comment":
            continue
        elif key.startswith("$"):
            raise QueryMatchError(f"Unsupported top-level operator {key!r}")
        elif not _field_matches(_resolve(document, key.split(".")), condition):
            return False
    return True


def compile_query(query: dict[str, Any]) -> Callable[[dict[str, Any]], bool]:
    """Bind *query* into a reusable document predicate."""
    return partial(matches, query)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def _resolve(value: Any, parts: list[str]) -> list[Any]:
    if not parts:
        return [value]
    head, rest = parts[0], parts[1:]
    if isinstance(value, dict):
        if head in value:
            return _resolve(value[head], rest)
        return [_MISSING]
    if isinstance(value, list):
        found: list[Any] = []
        if head.isdigit() and int(head) < len(value):
            found.extend(_resolve(value[int(head)], rest))
        for item in value:
            if isinstance(item, dict):
                found.extend(v for v in _resolve(item, parts) if v is not _MISSING)
        return found or [_MISSING]
    return [_MISSING]


def _expand(values: list[Any]) -> list[Any]:
    expanded: list[Any] = []
    for value in values:
        expanded.append(value)
        if isinstance(value, list):
            expanded.extend(value)
    return expanded


# ---------------------------------------------------------------------------
# Field conditions
# ---------------------------------------------------------------------------

def _is_operator_dict(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(
        isinstance(k, str) and k.startswith("$") for k in condition
    )


def _field_matches(values: list[Any], condition: Any) -> bool:
    if isinstance(condition, re.Pattern):
        return _any_regex(values, condition)
    if _is_operator_dict(condition):
        return all(
            _apply_operator(op, argument, values, condition)
            for op, argument in condition.items()
            if op != "$options"
        )
    return _any_equal(values, condition)


def _is_id_like(value: Any) -> bool:
    return isinstance(value, bytes) or isinstance(getattr(value, "binary", None), bytes)


def _same_kind(actual: Any, expected: Any) -> bool:
    # bool is an int subclass in Python but a distinct type in queries.
    return isinstance(actual, bool) == isinstance(expected, bool)


def _equals(actual: Any, expected: Any) -> bool:
    if actual is _MISSING:
        return expected is None
    if not _same_kind(actual, expected):
        return False
    if _is_id_like(actual) or _is_id_like(expected):
        return normalize_id(actual) == normalize_id(expected)
    return actual == expected


def _any_equal(values: list[Any], expected: Any) -> bool:
    for value in values:
        if _equals(value, expected):
            return True
        if isinstance(value, list) and any(_equals(item, expected) for item in value):
            return True
    return False


def _compare(actual: Any, expected: Any, op: Callable[[Any, Any], bool]) -> bool:
    if actual is _MISSING or actual is None or not _same_kind(actual, expected):
        return False
    try:
        return bool(op(actual, expected))
    except TypeError:
        return False


def _any_regex(values: list[Any], pattern: re.Pattern) -> bool:
    return any(isinstance(v, str) and pattern.search(v) for v in _expand(values))


def _compile_regex(argument: Any, options: str) -> re.Pattern:
    if isinstance(argument, re.Pattern):
        return argument
    flags = 0
    for letter in options:
        flags |= _REGEX_FLAGS.get(letter, 0)
    return re.compile(argument, flags)


def _elem_matches(element: Any, condition: dict[str, Any]) -> bool:
    if _is_operator_dict(condition):
        return _field_matches([element], condition)
    if isinstance(element, dict):
        return matches(condition, element)
    return False


def _type_matches(value: Any, type_name: Any) -> bool:
    if type_name == "null":
        return value is None
    if type_name == "objectId":
        return _is_id_like(value) and not isinstance(value, bytes)
    types = _TYPE_NAMES.get(type_name)
    if types is None:
        raise QueryMatchError(f"Unsupported $type {type_name!r}")
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


def _apply_operator(op: str, argument: Any, values: list[Any], condition: dict[str, Any]) -> bool:
    if op in _COMPARISONS:
        return any(_compare(v, argument, _COMPARISONS[op]) for v in _expand(values))
    if op == "$eq":
        return _any_equal(values, argument)
    if op == "$ne":
        return not _any_equal(values, argument)
    if op == "$in":
        return any(
            _any_regex(values, item) if isinstance(item, re.Pattern) else _any_equal(values, item)
            for item in argument
        )
    if op == "$nin":
        return not _apply_operator("$in", argument, values, condition)
    if op == "$exists":
        return any(v is not _MISSING for v in values) == bool(argument)
    if op == "$size":
        return any(isinstance(v, list) and len(v) == argument for v in values)
    if op == "$all":
        return bool(argument) and all(_any_equal(values, item) for item in argument)
    if op == "$elemMatch":
        return any(
            isinstance(v, list) and any(_elem_matches(item, argument) for item in v)
            for v in values
        )
    if op == "$not":
        return not _field_matches(values, argument)
    if op == "$regex":
        return _any_regex(values, _compile_regex(argument, condition.get("$options", "")))
    if op == "$mod":
        divisor, remainder = argument
        return any(
            isinstance(v, (int, float)) and not isinstance(v, bool) and v % divisor == remainder
            for v in _expand(values)
        )
    if op == "$type":
        names = argument if isinstance(argument, list) else [argument]
        return any(
            v is not _MISSING and _type_matches(v, name)
            for v in _expand(values)
            for name in names
        )
    raise QueryMatchError(f"Unsupported query operator {op!r}")
