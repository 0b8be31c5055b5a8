"""
DevCamper API: Listing Query Translator
========================================

What:  Turns listing query strings into validated filter expressions and
       executes them as a paginated, sorted, projected SQL query.
How:   Every resource publishes a ResourceFields whitelist. Query keys are
       resolved against it, values are coerced to the column type, and only
       then are SQLAlchemy clauses built. Nothing from the query string ever
       reaches the database without passing through the whitelist.
Who:   Used by the listing routes of bootcamps, courses, reviews and users.

Query grammar:
    field=value              equality (list fields: containment)
    field[op]=value          op in gt, gte, lt, lte, in
    field[in]=a,b&field[in]=c
                             membership; comma-separated and/or repeated
    select=name,description  projection (id is always kept)
    sort=-averageCost,name   ordering, "-" prefix for descending
                             (default: -createdAt)
    page=2&limit=10          1-based page (at most MAX_PAGE), limit capped at
                             max_page_limit;
                             unparseable or non-positive values fall back
                             to the defaults

Example:
    GET /api/v1/bootcamps?averageCost[lte]=10000&careers=UI/UX&select=name&page=2

    → FilterExpression("average_cost", LTE, 10000.0)
      FilterExpression("careers", EQ, "UI/UX")
      select={"id", "name"}, sort=[("created_at", desc)], page=2, limit=25
"""

import enum
import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
)

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from devcamper.config import settings
from devcamper.exceptions import ValidationError
from devcamper.schemas.common import ListResponse, PageRef, Pagination

logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})
DEFAULT_SORT = "-createdAt"
# Keeps OFFSET within a 64-bit integer for any allowed limit
MAX_PAGE = 1_000_000

_FILTER_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_.]*)(?:\[(?P<op>[a-z]+)\])?$")


class FilterOperator(str, enum.Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


EQUALITY_OPERATORS = frozenset({FilterOperator.EQ, FilterOperator.IN})
ALL_OPERATORS = frozenset(FilterOperator)


# ── Value coercion ────────────────────────────────────────────────────────

def coerce_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(f"not a boolean: {raw}")


def coerce_datetime(raw: str) -> datetime:
    # Accepts a trailing "Z" as well as explicit offsets
    return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))


def coerce_enum(enum_cls: Type[enum.Enum]) -> Callable[[str], Any]:
    def _coerce(raw: str) -> Any:
        return enum_cls(raw.strip()).value

    return _coerce


def coerce_str(raw: str) -> str:
    return raw.strip()


def coerce_uuid(raw: str) -> uuid.UUID:
    return uuid.UUID(raw.strip())


# ── Whitelist ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldSpec:
    """One filterable/sortable column."""

    column: InstrumentedAttribute
    coerce: Callable[[str], Any]
    operators: FrozenSet[FilterOperator] = EQUALITY_OPERATORS
    is_list: bool = False
    sortable: bool = True


@dataclass(frozen=True)
class ResourceFields:
    """
    Whitelist of one listable resource.

    `fields` is keyed by the public (camelCase) name; snake_case names are
    accepted as well. `output_schema` decides which names `select=` accepts.
    """

    model: Any
    output_schema: Type[BaseModel]
    fields: Dict[str, FieldSpec]

    def resolve(self, name: str) -> Tuple[str, FieldSpec]:
        if name in self.fields:
            return name, self.fields[name]
        camel = ".".join(to_camel(part) for part in name.split("."))
        if camel in self.fields:
            return camel, self.fields[camel]
        raise ValidationError(f"Unknown field '{name}'", field=name)

    def resolve_output_field(self, name: str) -> str:
        """Map a public or Python output name to the schema field name."""
        for field_name in self.output_schema.model_fields:
            if name in (field_name, to_camel(field_name)):
                return field_name
        raise ValidationError(f"Unknown field '{name}' in select", field=name)


@dataclass(frozen=True)
class FilterExpression:
    field: str
    operator: FilterOperator
    value: Any


@dataclass
class ResourceQuery:
    filters: List[FilterExpression] = field(default_factory=list)
    # Schema field names to keep; None keeps everything
    select: Optional[Set[str]] = None
    # (public field name, descending)
    sort: List[Tuple[str, bool]] = field(default_factory=list)
    page: int = 1
    limit: int = 25

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class AdvancedResults:
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pagination(self) -> Pagination:
        pagination = Pagination()
        if self.page * self.limit < self.total:
            pagination.next = PageRef(page=self.page + 1, limit=self.limit)
        if self.page > 1:
            pagination.prev = PageRef(page=self.page - 1, limit=self.limit)
        return pagination


# ── Parsing ───────────────────────────────────────────────────────────────

def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= 1 else default


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _coerce(name: str, spec: FieldSpec, raw: str) -> Any:
    try:
        return spec.coerce(raw)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid value '{raw}' for field '{name}'", field=name)


def parse_query_params(
    params: Sequence[Tuple[str, str]],
    resource: ResourceFields,
    default_limit: Optional[int] = None,
) -> ResourceQuery:
    """
    Build a ResourceQuery from raw (key, value) pairs.

    Raises:
        ValidationError: unknown field, operator not allowed for the field,
        value that cannot be coerced, or unknown select/sort name.
    """
    limit_default = default_limit or settings.default_page_limit
    query = ResourceQuery(limit=limit_default)
    reserved: Dict[str, str] = {}
    membership: Dict[str, List[Any]] = {}

    for key, raw in params:
        if key in RESERVED_PARAMS:
            reserved[key] = raw
            continue

        match = _FILTER_KEY.match(key)
        if match is None:
            raise ValidationError(f"Invalid query parameter '{key}'", field=key)

        name, spec = resource.resolve(match.group("field"))
        op_name = match.group("op") or FilterOperator.EQ.value
        try:
            operator = FilterOperator(op_name)
        except ValueError:
            raise ValidationError(f"Unknown operator '{op_name}'", field=name)
        if operator not in spec.operators:
            raise ValidationError(
                f"Operator '{op_name}' is not supported for field '{name}'", field=name
            )

        if operator is FilterOperator.IN:
            values = membership.setdefault(name, [])
            values.extend(_coerce(name, spec, part) for part in _split_csv(raw))
            continue
        query.filters.append(FilterExpression(name, operator, _coerce(name, spec, raw)))

    for name, values in membership.items():
        query.filters.append(FilterExpression(name, FilterOperator.IN, values))

    if reserved.get("select"):
        query.select = {"id"}
        query.select.update(
            resource.resolve_output_field(name) for name in _split_csv(reserved["select"])
        )

    for item in _split_csv(reserved.get("sort") or DEFAULT_SORT):
        descending = item.startswith("-")
        name, spec = resource.resolve(item.lstrip("-"))
        if not spec.sortable:
            raise ValidationError(f"Field '{name}' cannot be used for sorting", field=name)
        query.sort.append((name, descending))

    query.page = _positive_int(reserved.get("page"), 1)
    if query.page > MAX_PAGE:
        raise ValidationError(f"Page must be at most {MAX_PAGE}", field="page")
    query.limit = min(_positive_int(reserved.get("limit"), limit_default), settings.max_page_limit)
    return query


# ── SQL translation ───────────────────────────────────────────────────────

def _contains_member(column: InstrumentedAttribute, value: Any):
    # JSON arrays are serialized with json.dumps; match the quoted member
    return cast(column, String).contains(json.dumps(value), autoescape=True)


def build_filter_clauses(resource: ResourceFields, filters: Iterable[FilterExpression]) -> list:
    clauses = []
    for expression in filters:
        spec = resource.fields[expression.field]
        column = spec.column
        op = expression.operator
        value = expression.value

        if op is FilterOperator.EQ:
            clauses.append(_contains_member(column, value) if spec.is_list else column == value)
        elif op is FilterOperator.IN:
            if spec.is_list:
                clauses.append(or_(*(_contains_member(column, v) for v in value)))
            else:
                clauses.append(column.in_(value))
        elif op is FilterOperator.GT:
            clauses.append(column > value)
        elif op is FilterOperator.GTE:
            clauses.append(column >= value)
        elif op is FilterOperator.LT:
            clauses.append(column < value)
        elif op is FilterOperator.LTE:
            clauses.append(column <= value)
    return clauses


async def fetch_page(
    db: AsyncSession,
    resource: ResourceFields,
    query: ResourceQuery,
    options: Sequence[Any] = (),
) -> AdvancedResults:
    """
    Run the filtered count and the page query.

    The total counts the filtered set, so pagination links never point past
    the last matching record.
    """
    clauses = build_filter_clauses(resource, query.filters)

    count_stmt = select(func.count()).select_from(resource.model).where(*clauses)
    total = (await db.execute(count_stmt)).scalar_one()

    order_by = []
    for name, descending in query.sort:
        column = resource.fields[name].column
        order_by.append(column.desc() if descending else column.asc())
    order_by.append(resource.model.id.asc())

    stmt = (
        select(resource.model)
        .where(*clauses)
        .order_by(*order_by)
        .offset(query.skip)
        .limit(query.limit)
    )
    if options:
        stmt = stmt.options(*options)

    items = list((await db.execute(stmt)).scalars().all())
    logger.debug(
        "Listing %s: %d of %d (page=%d, limit=%d)",
        resource.model.__tablename__,
        len(items),
        total,
        query.page,
        query.limit,
    )
    return AdvancedResults(items=items, total=total, page=query.page, limit=query.limit)


def project(item: BaseModel, fields: Optional[Set[str]] = None) -> Dict[str, Any]:
    """Serialize one output model for the wire, keeping only `fields` if given."""
    return item.model_dump(by_alias=True, exclude_none=True, mode="json", include=fields)


def to_list_response(
    results: AdvancedResults,
    query: ResourceQuery,
    serialize: Callable[[Any], BaseModel],
) -> ListResponse:
    data = [project(serialize(item), query.select) for item in results.items]
    return ListResponse(count=len(data), pagination=results.pagination, data=data)
