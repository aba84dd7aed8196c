# app/file_access/sorting.py
"""
List filter/sort engine.

A pure function over a list of resources, applied by every provider's
``list`` just before returning. Field values are coerced before comparing:

- ``path`` compares by depth (number of ``/``-separated parts), not as text
- ``size`` compares numerically
- ``createdAtTime`` / ``lastModifiedTime`` compare as parsed dates
- everything else compares as text

Ties keep no particular order; callers must not rely on one.
"""
import math
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from app.core.errors import BadRequest
from app.core.paths import path_depth
from app.core.timestamps import parse_timestamp
from app.file_access.base import RESOURCE_FIELDS, ListRequestOptions, Resource

OPERATORS = ("<", ">", "=")
DIRECTIONS = ("asc", "desc")
DATE_FIELDS = ("createdAtTime", "lastModifiedTime")
TEXT_FIELDS = ("name", "kind", "mimeType", "provider", "contentUri")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _coerce(field_name: str, value: Any) -> Any:
    if field_name == "path":
        return path_depth(str(value))
    if field_name == "size":
        return _to_number(value)
    if field_name in DATE_FIELDS:
        return parse_timestamp(value)
    return "" if value is None else str(value)


def _check_field(field_name: str) -> None:
    if field_name not in RESOURCE_FIELDS:
        raise BadRequest(
            f"Unknown field {field_name!r}; expected one of {', '.join(RESOURCE_FIELDS)}"
        )


def filter_resources(
    resources: List[Resource], compare_with: str, operator: str, value: Any
) -> List[Resource]:
    """Keep resources whose ``compare_with`` field satisfies ``<operator> value``."""
    _check_field(compare_with)
    if operator not in OPERATORS:
        raise BadRequest(f"Invalid operator {operator!r}; expected one of {' '.join(OPERATORS)}")

    target = _coerce(compare_with, value)

    def keep(resource: Resource) -> bool:
        current = _coerce(compare_with, resource.get(compare_with))
        # Unparseable dates never match
        if current is None or target is None:
            return False
        if operator == "<":
            return current < target
        if operator == ">":
            return current > target
        return current == target

    return [resource for resource in resources if keep(resource)]


def _sort_key(order_by: str) -> Callable[[Resource], Any]:
    if order_by in TEXT_FIELDS:
        def text_key(resource: Resource):
            text = _coerce(order_by, resource.get(order_by))
            return (text.casefold(), text)
        return text_key
    if order_by == "path":
        return lambda resource: path_depth(resource.path)
    if order_by == "size":
        def size_key(resource: Resource):
            size = _to_number(resource.size)
            # Unknown sizes sort after known ones
            return (math.isnan(size), 0.0 if math.isnan(size) else size)
        return size_key

    def date_key(resource: Resource):
        parsed = parse_timestamp(resource.get(order_by))
        return (parsed is None, parsed or _EPOCH)
    return date_key


def sort_resources(resources: List[Resource], order_by: str, direction: str) -> List[Resource]:
    """Order resources by one field; ``desc`` reverses the ascending order."""
    _check_field(order_by)
    if direction not in DIRECTIONS:
        raise BadRequest(f"Invalid direction {direction!r}; expected asc or desc")
    return sorted(resources, key=_sort_key(order_by), reverse=direction == "desc")


def apply_list_options(resources: List[Resource], options: Optional[ListRequestOptions]) -> List[Resource]:
    """
    Filter then sort a list of resources.

    Filtering runs only when ``compare_with``, ``operator`` and ``value`` are all
    set; sorting only when both ``order_by`` and ``direction`` are set.
    """
    result = list(resources)
    if options is None:
        return result
    if options.compare_with and options.operator and options.value not in (None, ""):
        result = filter_resources(result, options.compare_with, options.operator, options.value)
    if options.order_by and options.direction:
        result = sort_resources(result, options.order_by, options.direction)
    return result
