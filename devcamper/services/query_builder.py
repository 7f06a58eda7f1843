"""
DevCamper API — List Query Builder
====================================

What:  Turns a listing request's query string into one filtered, projected,
       sorted and paginated fetch plus a pagination descriptor.
Who:   BootcampService.list_bootcamps and CourseService.list_courses.
When:  Once per listing request; nothing is cached between requests.

Query string grammar:
    select=name,description      projection (comma and/or space separated)
    sort=-average_cost,name      ordering, leading '-' means descending
    page=2&limit=10              pagination window (1-based page)
    housing=true                 equality filter
    careers=Business             JSON column, cannot be filtered, ignored
    average_cost[lte]=10000      operator filter (eq, ne, gt, gte, lt, lte, in)
    name=A&name=B                repeated key, membership filter

    `select`, `sort`, `page` and `limit` are control keys and are never
    turned into filters. Keys that do not name a column are dropped.

Store round trips:
    Exactly two per call, issued in order: COUNT over the filtered set,
    then the page fetch. They are not atomic with each other; a concurrent
    write between them can make `next`/`prev` slightly stale.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import JSON, ColumnElement, Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only, selectinload

from devcamper.config import settings
from devcamper.exceptions import ValidationError
from devcamper.schemas.common import PageLink, Pagination

logger = logging.getLogger(__name__)

QueryValue = Union[str, List[str]]

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})

# OFFSET is bound as a signed 64-bit integer by both PostgreSQL and SQLite
MAX_OFFSET = 2**63 - 1

# Maps operators from `field[op]=value` to SQLAlchemy column methods.
# For example, `?tuition[gte]=5000` calls `Course.tuition.__ge__(5000.0)`.
OPERATOR_MAP = {
    "eq": "__eq__",
    "ne": "__ne__",
    "gt": "__gt__",
    "gte": "__ge__",
    "lt": "__lt__",
    "lte": "__le__",
    "in": "in_",
}

# Operators whose value is a comma-separated list
LIST_OPERATORS = {"in"}

_OPERATOR_KEY = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)\[(?P<op>[A-Za-z]+)\]$")
_FIELD_SEPARATORS = re.compile(r"[\s,]+")
_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


def first_value(value: Optional[QueryValue]) -> Optional[str]:
    """A control key sent twice (`page=1&page=2`) keeps its first value."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_field_list(value: Optional[QueryValue]) -> List[str]:
    """
    Split a `select`/`sort` value into field names.

    Commas and whitespace both separate; empty entries and repeats are
    dropped, order of first appearance is kept.
        "name,description"   → ["name", "description"]
        "name  description"  → ["name", "description"]
    """
    raw = first_value(value)
    if not raw:
        return []
    fields: List[str] = []
    for name in _FIELD_SEPARATORS.split(raw.strip()):
        if name and name not in fields:
            fields.append(name)
    return fields


def parse_positive_int(value: Optional[QueryValue], default: int) -> int:
    """
    Safe integer parsing for `page` and `limit`.

    Missing, non-numeric, zero and negative values all fall back to the
    default; this never raises.
    """
    raw = first_value(value)
    if raw is None:
        return default
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def query_map_from_params(params: Any) -> Dict[str, QueryValue]:
    """
    Flatten Starlette's QueryParams (a multi-dict) into the query map.

    Keys that appear once map to a string, repeated keys to a list.
    """
    query_map: Dict[str, QueryValue] = {}
    for key in params.keys():
        values = params.getlist(key)
        query_map[key] = values[0] if len(values) == 1 else list(values)
    return query_map


def coerce_value(column: Any, field: str, raw: str) -> Any:
    """
    Convert a query-string value to the Python type of `column`.

    Raises ValidationError when the value does not fit, e.g. `tuition=abc`.
    """
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw

    try:
        if python_type is bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is uuid.UUID:
            return uuid.UUID(raw)
        return python_type(raw)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid value '{raw}' for field '{field}'",
            field=field,
            context={"expected_type": python_type.__name__},
        )


class ListQuery:
    """
    One listing request, parsed.

    Construction only parses the query map; nothing touches the database
    until execute(). The parsed pieces are public so they can be inspected
    without a session:

        filters         {field: [(operator, raw value), ...]}
        criteria        SQLAlchemy WHERE clauses built from filters
        projection      selected field names, or None for full documents
        sort_fields     [(field, descending), ...] before the id tie-breaker
        page / limit / start_index / end_index

    Args:
        model:           ORM class to list
        query_params:    the request's query map
        default_sort:    field used when `sort` is absent or names no column
        populate:        relationship eagerly loaded into every document
        populate_fields: columns of the related record to embed (all if None)
        base_filters:    extra WHERE clauses the caller always applies
    """

    def __init__(
        self,
        model: Any,
        query_params: Mapping[str, QueryValue],
        *,
        default_sort: str = "name",
        populate: Optional[str] = None,
        populate_fields: Optional[Sequence[str]] = None,
        base_filters: Sequence[ColumnElement] = (),
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ):
        self.model = model
        self.mapper = inspect(model)
        self.populate = populate
        self.populate_fields = list(populate_fields) if populate_fields else None
        self.base_filters = list(base_filters)

        # Columns a client may filter and sort on; JSON columns are select-only
        self.columns = {
            attr.key: attr.columns[0]
            for attr in self.mapper.column_attrs
            if not isinstance(attr.columns[0].type, JSON)
        }
        self.document_columns = [attr.key for attr in self.mapper.column_attrs]
        self.primary_key = self.mapper.get_property_by_column(
            self.mapper.primary_key[0]
        ).key

        self.filters = self._partition_filters(query_params)
        self.criteria = self._build_criteria()
        self.projection = self._parse_projection(query_params.get("select"))
        self.sort_fields = self._parse_sort(query_params.get("sort"), default_sort)

        default_limit = default_limit or settings.default_page_size
        max_limit = max_limit or settings.max_page_size
        self.page = parse_positive_int(query_params.get("page"), 1)
        self.limit = min(parse_positive_int(query_params.get("limit"), default_limit), max_limit)
        # A page far past the end still yields an empty page, never a bind error
        self.page = min(self.page, MAX_OFFSET // self.limit + 1)
        self.start_index = (self.page - 1) * self.limit
        self.end_index = self.page * self.limit

    # ── Parsing ───────────────────────────────────────────────────────────

    def _partition_filters(
        self, query_params: Mapping[str, QueryValue]
    ) -> Dict[str, List[Tuple[str, QueryValue]]]:
        filters: Dict[str, List[Tuple[str, QueryValue]]] = {}
        for key, value in query_params.items():
            if key in RESERVED_PARAMS:
                continue

            match = _OPERATOR_KEY.match(key)
            if match:
                field, op = match.group("field"), match.group("op").lower()
            else:
                field = key
                op = "in" if isinstance(value, (list, tuple)) else "eq"

            if field not in self.columns:
                logger.debug("Ignoring filter on unknown field '%s'", field)
                continue
            if op not in OPERATOR_MAP:
                raise ValidationError(
                    message=f"Unsupported filter operator '{op}' on field '{field}'",
                    field=field,
                    context={"allowed": sorted(OPERATOR_MAP)},
                )
            filters.setdefault(field, []).append((op, value))
        return filters

    def _build_criteria(self) -> List[ColumnElement]:
        criteria = list(self.base_filters)
        for field, conditions in self.filters.items():
            column = getattr(self.model, field)
            for op, value in conditions:
                if op in LIST_OPERATORS:
                    if isinstance(value, (list, tuple)):
                        raw_values = list(value)
                    else:
                        raw_values = [v for v in value.split(",") if v != ""]
                    coerced = [coerce_value(column, field, raw) for raw in raw_values]
                    criteria.append(getattr(column, OPERATOR_MAP[op])(coerced))
                else:
                    raw = first_value(value) or ""
                    coerced = coerce_value(column, field, raw)
                    criteria.append(getattr(column, OPERATOR_MAP[op])(coerced))
        return criteria

    def _parse_projection(self, value: Optional[QueryValue]) -> Optional[List[str]]:
        requested = parse_field_list(value)
        if not requested:
            return None
        return [name for name in requested if name in self.document_columns]

    def _parse_sort(
        self, value: Optional[QueryValue], default_sort: str
    ) -> List[Tuple[str, bool]]:
        sort_fields: List[Tuple[str, bool]] = []
        for name in parse_field_list(value):
            descending = name.startswith("-")
            field = name.lstrip("-+")
            if field in self.columns and field not in (f for f, _ in sort_fields):
                sort_fields.append((field, descending))
        if not sort_fields:
            sort_fields.append((default_sort, False))
        return sort_fields

    # ── Statements ────────────────────────────────────────────────────────

    @property
    def document_keys(self) -> List[str]:
        """Keys each returned document carries, identifier first."""
        if self.projection is None:
            return list(self.document_columns)
        keys = [self.primary_key]
        keys.extend(name for name in self.projection if name != self.primary_key)
        return keys

    def _load_columns(self) -> List[str]:
        """Projected columns plus whatever the populate step needs locally."""
        keys = list(self.document_keys)
        if self.populate:
            relationship = self.mapper.relationships[self.populate]
            for column in relationship.local_columns:
                key = self.mapper.get_property_by_column(column).key
                if key not in keys:
                    keys.append(key)
        return keys

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.model).where(*self.criteria)

    def statement(self) -> Select:
        stmt = select(self.model).where(*self.criteria)

        if self.projection is not None:
            stmt = stmt.options(
                load_only(*(getattr(self.model, key) for key in self._load_columns()))
            )

        if self.populate:
            loader = selectinload(getattr(self.model, self.populate))
            if self.populate_fields:
                target = self.mapper.relationships[self.populate].mapper.class_
                loader = loader.load_only(
                    *(getattr(target, name) for name in self.populate_fields)
                )
            stmt = stmt.options(loader)

        order_by = []
        for field, descending in self.sort_fields:
            column = getattr(self.model, field)
            order_by.append(column.desc() if descending else column.asc())
        if self.primary_key not in (f for f, _ in self.sort_fields):
            order_by.append(getattr(self.model, self.primary_key).asc())

        return stmt.order_by(*order_by).offset(self.start_index).limit(self.limit)

    # ── Results ───────────────────────────────────────────────────────────

    def paginate(self, total: int) -> Pagination:
        """Build next/prev links for this window against `total` matches."""
        pagination = Pagination()
        if self.end_index < total:
            pagination.next = PageLink(page=self.page + 1, limit=self.limit)
        if self.start_index > 0:
            pagination.prev = PageLink(page=self.page - 1, limit=self.limit)
        return pagination

    def to_document(self, instance: Any) -> Dict[str, Any]:
        """Serialize one row using only the attributes the query loaded."""
        document = {key: getattr(instance, key) for key in self.document_keys}
        if self.populate:
            related = getattr(instance, self.populate)
            if isinstance(related, list):
                document[self.populate] = [self._related_document(item) for item in related]
            elif related is not None:
                document[self.populate] = self._related_document(related)
            else:
                document[self.populate] = None
        return document

    def _related_document(self, instance: Any) -> Dict[str, Any]:
        related_mapper = inspect(type(instance))
        if self.populate_fields:
            primary_key = related_mapper.get_property_by_column(
                related_mapper.primary_key[0]
            ).key
            keys = [primary_key] + [k for k in self.populate_fields if k != primary_key]
        else:
            keys = [attr.key for attr in related_mapper.column_attrs]
        return {key: getattr(instance, key) for key in keys}

    async def execute(self, db: AsyncSession) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        Run the count and the page fetch, in that order.

        Returns:
            (documents, pagination). Store errors propagate unchanged.
        """
        total = (await db.execute(self.count_statement())).scalar() or 0

        result = await db.execute(self.statement())
        rows = list(result.scalars().all())

        logger.debug(
            "Listed %s: page=%d limit=%d returned=%d total=%d",
            self.model.__tablename__,
            self.page,
            self.limit,
            len(rows),
            total,
        )
        return [self.to_document(row) for row in rows], self.paginate(total)


async def build_list_query(
    db: AsyncSession,
    model: Any,
    query_params: Mapping[str, QueryValue],
    **options: Any,
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """Parse `query_params` against `model` and execute the listing in one call."""
    return await ListQuery(model, query_params, **options).execute(db)
