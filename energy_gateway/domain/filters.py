"""Query-parameter filters for listing and statistics endpoints.

A FilterSpec is built from the raw query mapping before storage is touched.
Typed values (numbers, dates, booleans) are validated here; enum-like string
filters are passed through untouched, so an unknown status simply matches no
rows on listing endpoints.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from energy_gateway.config import settings
from energy_gateway.domain.exceptions import ValidationError

# Predicate operators understood by the repositories
EQ = "eq"
GTE = "gte"
LTE = "lte"
DAY_FROM = "day_from"  # column >= start of the given day
DAY_TO = "day_to"  # column < start of the following day

TRUTHY = {"1", "true", "on", "yes"}


@dataclass(frozen=True)
class FilterField:
    """A recognised query parameter and how it maps onto a column"""

    param: str
    column: str
    op: str = EQ
    kind: str = "str"  # str | int | float | date | bool


@dataclass(frozen=True)
class Predicate:
    column: str
    op: str
    value: Any


@dataclass
class FilterSpec:
    predicates: List[Predicate] = field(default_factory=list)
    search: Optional[str] = None
    search_columns: Tuple[str, ...] = ()
    sort_by: Optional[str] = None
    sort_direction: str = "desc"
    page: int = 1
    per_page: int = 15

    def as_log_context(self) -> Dict[str, Any]:
        """Flatten into something safe to attach to a log record"""
        return {
            "predicates": [f"{p.column} {p.op} {p.value}" for p in self.predicates],
            "search": self.search,
            "sort_by": self.sort_by,
            "sort_direction": self.sort_direction,
            "page": self.page,
            "per_page": self.per_page,
        }


def is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def coerce(param: str, kind: str, value: Any) -> Any:
    """
    Convert a raw query value to the field's type.

    Raises:
        ValidationError: When the value does not parse
    """
    try:
        if kind == "int":
            return int(value)
        if kind == "float":
            return float(value)
        if kind == "date":
            return value if isinstance(value, date) else date.fromisoformat(str(value)[:10])
        if kind == "bool":
            return parse_bool(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(param, f"The {param} field must be a valid {kind}.")
    return str(value)


def clamp_per_page(requested: int, maximum: Optional[int] = None) -> int:
    """Limit page size to [1, maximum]"""
    maximum = maximum or settings.max_per_page
    return min(max(requested, 1), maximum)


def parse_filters(
    params: Mapping[str, Any],
    fields: Sequence[FilterField],
    sort_fields: Sequence[str] = (),
    default_sort: Optional[str] = None,
    search_columns: Sequence[str] = (),
) -> FilterSpec:
    """
    Build a FilterSpec from raw query parameters.

    Unknown or empty parameters are ignored. A sort field outside
    `sort_fields` leaves the query unordered rather than falling back.
    """
    predicates = []
    for spec_field in fields:
        raw = params.get(spec_field.param)
        if not is_filled(raw):
            continue
        predicates.append(
            Predicate(
                column=spec_field.column,
                op=spec_field.op,
                value=coerce(spec_field.param, spec_field.kind, raw),
            )
        )

    search = params.get("search") if search_columns and is_filled(params.get("search")) else None

    sort_by = params.get("sort_by") or default_sort
    if sort_by not in sort_fields:
        sort_by = None

    sort_direction = str(params.get("sort_direction") or "desc").lower()
    if sort_direction not in ("asc", "desc"):
        raise ValidationError.for_field("sort_direction", "The sort_direction field must be asc or desc.")

    per_page = settings.default_per_page
    if is_filled(params.get("per_page")):
        per_page = coerce("per_page", "int", params["per_page"])

    page = 1
    if is_filled(params.get("page")):
        page = max(coerce("page", "int", params["page"]), 1)

    return FilterSpec(
        predicates=predicates,
        search=search,
        search_columns=tuple(search_columns),
        sort_by=sort_by,
        sort_direction=sort_direction,
        page=page,
        per_page=clamp_per_page(per_page),
    )
