# app/repositories/base.py
"""
Generic SQLAlchemy repository.

One repository instance is bound to one model class and one Session. It
translates domain criteria, sorting and pagination into SELECTs and wraps
every SQLAlchemy fault into a typed application error, so callers never see a
raw SQLAlchemyError.

Criteria grammar (field names may be camelCase or snake_case)::

    {"status": "active"}                          equality (None -> IS NULL, list -> IN)
    {"duration": {"gte": 30, "lt": 120}}          operator object
    {"name": {"contains": "gmbh"}}                case-insensitive substring
    {"OR": [{"city": "Berlin"}, {"city": "Hamburg"}]}
    {"AND": [...]}
    {"search": "mueller"}                         OR of contains over search_fields
"""

import logging
import math
import re
from bisect import bisect_right
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, ClassVar, Generic, Iterable, Iterator, Sequence, TypeVar

from sqlalchemy import Select, and_, delete as sa_delete, false, func, inspect, or_, select, true, update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import AppError, BadRequestError, ConflictError, DatabaseError, NotFoundError, ParameterError
from app.models.base import Base, utcnow

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Base)
T = TypeVar("T")
U = TypeVar("U")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

_UOW_DEPTH_KEY = "uow_depth"
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


# -------------------------
# Value objects
# -------------------------
@dataclass
class SortOptions:
    field: str
    direction: str = "asc"

    def __post_init__(self) -> None:
        self.direction = "desc" if str(self.direction).lower() == "desc" else "asc"


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass
class PaginationResult(Generic[T]):
    """``len(data) <= limit`` and ``total_pages == ceil(total / limit)``."""

    data: list[T]
    pagination: Pagination

    def map(self, fn: Callable[[T], U]) -> "PaginationResult[U]":
        return PaginationResult(data=[fn(item) for item in self.data], pagination=self.pagination)


# -------------------------
# Period statistics
# -------------------------
STAT_PERIODS = ("weekly", "monthly", "yearly")


@dataclass
class PeriodBucket:
    """Counts for one calendar period; ``start`` is inclusive, ``end`` exclusive (UTC)."""

    period: str
    start: datetime
    end: datetime
    count: int = 0
    breakdown: dict[str, int] = field(default_factory=dict)


def _add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    offset, month_index = divmod(month - 1 + delta, 12)
    return year + offset, month_index + 1


def period_buckets(period: str, periods: int, now: datetime) -> list[PeriodBucket]:
    """
    Build ``periods`` consecutive buckets ending with the one containing
    ``now``, oldest first. Weeks start on Monday and are labelled with their
    ISO week (``2024-W07``), months as ``2024-02`` and years as ``2024``.
    """
    if period not in STAT_PERIODS:
        raise ParameterError(
            f"Unknown statistics period '{period}'",
            context={"period": period, "allowed": list(STAT_PERIODS)},
        )
    if periods < 1:
        raise ParameterError("At least one period is required", context={"periods": periods})

    now = _as_utc(now)
    buckets: list[PeriodBucket] = []
    for back in range(periods - 1, -1, -1):
        if period == "weekly":
            this_week = datetime(now.year, now.month, now.day, tzinfo=timezone.utc) - timedelta(days=now.weekday())
            start = this_week - timedelta(weeks=back)
            end = start + timedelta(weeks=1)
            iso_year, iso_week, _ = start.isocalendar()
            label = f"{iso_year}-W{iso_week:02d}"
        elif period == "monthly":
            year, month = _add_months(now.year, now.month, -back)
            start = datetime(year, month, 1, tzinfo=timezone.utc)
            end = datetime(*_add_months(year, month, 1), 1, tzinfo=timezone.utc)
            label = f"{year}-{month:02d}"
        else:
            start = datetime(now.year - back, 1, 1, tzinfo=timezone.utc)
            end = datetime(now.year - back + 1, 1, 1, tzinfo=timezone.utc)
            label = str(start.year)
        buckets.append(PeriodBucket(period=label, start=start, end=end))
    return buckets


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -------------------------
# Unit of work
# -------------------------
def in_unit_of_work(db: Session) -> bool:
    return db.info.get(_UOW_DEPTH_KEY, 0) > 0


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Group every repository write on ``db`` into one commit.

    Inside the block repositories only flush. The outermost block commits on
    success and rolls back on any exception; nested blocks are flattened into
    the outer one.
    """
    depth = db.info.get(_UOW_DEPTH_KEY, 0)
    db.info[_UOW_DEPTH_KEY] = depth + 1
    try:
        yield db
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    else:
        if depth == 0:
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise DatabaseError(
                    "Failed to commit transaction",
                    context={"operation": "transaction"},
                ) from exc
    finally:
        db.info[_UOW_DEPTH_KEY] = depth


def _escape_like(value: Any) -> str:
    return str(value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _as_list(value: Any) -> list:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "eq": lambda col, v: col.is_(None) if v is None else col == v,
    "neq": lambda col, v: col.is_not(None) if v is None else col != v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "contains": lambda col, v: col.ilike(f"%{_escape_like(v)}%", escape="\\"),
    "startsWith": lambda col, v: col.like(f"{_escape_like(v)}%", escape="\\"),
    "endsWith": lambda col, v: col.like(f"%{_escape_like(v)}", escape="\\"),
    "in": lambda col, v: col.in_(_as_list(v)),
    "notIn": lambda col, v: col.not_in(_as_list(v)),
}
_OPERATORS["starts_with"] = _OPERATORS["startsWith"]
_OPERATORS["ends_with"] = _OPERATORS["endsWith"]
_OPERATORS["not_in"] = _OPERATORS["notIn"]


class SqlAlchemyRepository(Generic[EntityT]):
    """
    CRUD, criteria queries, pagination and transactions for one model.

    Subclasses set ``model`` and may tune ``search_fields``,
    ``default_sort_field`` and ``relation_sorts``.
    """

    model: ClassVar[type]
    resource_name: ClassVar[str] = "Resource"
    search_fields: ClassVar[tuple[str, ...]] = ("name",)
    default_sort_field: ClassVar[str] = "created_at"
    default_sort_direction: ClassVar[str] = "desc"
    # sort key -> (relationship attribute, column on the related model)
    relation_sorts: ClassVar[dict[str, tuple[str, str]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self._mapper = inspect(self.model)
        self._columns = set(self._mapper.column_attrs.keys())
        self._relations = set(self._mapper.relationships.keys())

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    # -------------------------
    # Reads
    # -------------------------
    def find_by_id(self, entity_id: Any, relations: Sequence[str] | None = None) -> EntityT | None:
        try:
            return self.db.get(self.model, entity_id, options=self._load_options(relations))
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "find_by_id") from exc

    def find_all(
        self,
        *,
        page: int | None = DEFAULT_PAGE,
        limit: int | None = DEFAULT_LIMIT,
        sort: SortOptions | None = None,
        criteria: dict[str, Any] | None = None,
        relations: Sequence[str] | None = None,
    ) -> PaginationResult[EntityT]:
        page = page if page and page > 0 else DEFAULT_PAGE
        limit = limit if limit and limit > 0 else DEFAULT_LIMIT
        where = self._build_where(criteria)

        try:
            total = self.db.scalar(select(func.count()).select_from(self.model).where(*where)) or 0
            stmt = self._apply_sort(select(self.model).where(*where), sort)
            stmt = stmt.options(*self._load_options(relations))
            rows = list(self.db.scalars(stmt.offset((page - 1) * limit).limit(limit)).unique())
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "find_all") from exc

        return PaginationResult(
            data=rows,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    def find_by_criteria(
        self,
        criteria: dict[str, Any] | None = None,
        *,
        sort: SortOptions | None = None,
        limit: int | None = None,
        relations: Sequence[str] | None = None,
    ) -> list[EntityT]:
        stmt = self._apply_sort(select(self.model).where(*self._build_where(criteria)), sort)
        stmt = stmt.options(*self._load_options(relations))
        if limit:
            stmt = stmt.limit(limit)
        try:
            return list(self.db.scalars(stmt).unique())
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "find_by_criteria") from exc

    def find_one_by_criteria(self, criteria: dict[str, Any]) -> EntityT | None:
        results = self.find_by_criteria(criteria, limit=1)
        return results[0] if results else None

    def count(self, criteria: dict[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._build_where(criteria))
        try:
            return self.db.scalar(stmt) or 0
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "count") from exc

    def exists(self, entity_id: Any) -> bool:
        return self.count({"id": entity_id}) > 0

    def exists_by_criteria(self, criteria: dict[str, Any]) -> bool:
        return self.count(criteria) > 0

    def search(self, term: str, *, limit: int = DEFAULT_LIMIT) -> list[EntityT]:
        return self.find_by_criteria({"search": term}, limit=limit)

    def count_by_group(self, field: str, criteria: dict[str, Any] | None = None) -> dict[str, int]:
        column = self._column(field)
        stmt = select(column, func.count()).where(*self._build_where(criteria)).group_by(column)
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "count_by_group") from exc
        return {str(getattr(value, "value", value)): count for value, count in rows}

    def count_by_period(
        self,
        period: str,
        *,
        periods: int = 12,
        date_field: str = "created_at",
        group_field: str | None = None,
        group_values: Iterable[str] = (),
        criteria: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> list[PeriodBucket]:
        """
        Count rows per calendar period of ``date_field``.

        With ``group_field`` every bucket also carries a breakdown by that
        column; ``group_values`` are always present in it, zero-filled.
        """
        buckets = period_buckets(period, periods, now or utcnow())
        for bucket in buckets:
            bucket.breakdown = {str(value): 0 for value in group_values}

        date_column = self._column(date_field)
        columns = [date_column]
        if group_field:
            columns.append(self._column(group_field))
        stmt = select(*columns).where(
            date_column >= buckets[0].start,
            date_column < buckets[-1].end,
            *self._build_where(criteria),
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "count_by_period") from exc

        starts = [bucket.start for bucket in buckets]
        for row in rows:
            index = bisect_right(starts, _as_utc(row[0])) - 1
            if index < 0:
                continue
            bucket = buckets[index]
            bucket.count += 1
            if group_field:
                key = str(getattr(row[1], "value", row[1]))
                bucket.breakdown[key] = bucket.breakdown.get(key, 0) + 1
        return buckets

    # -------------------------
    # Writes
    # -------------------------
    def create(self, data: dict[str, Any]) -> EntityT:
        entity = self.model(**self._check_columns(data, "create"))
        try:
            self.db.add(entity)
            self._persist()
            self.db.refresh(entity)
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "create") from exc
        return entity

    def update(self, entity_id: Any, data: dict[str, Any]) -> EntityT:
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(resource=self.resource_name, resource_id=entity_id)

        values = self._check_columns(data, "update")
        if "updated_at" in self._columns:
            values.setdefault("updated_at", utcnow())

        try:
            for key, value in values.items():
                setattr(entity, key, value)
            self._persist()
            self.db.refresh(entity)
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "update") from exc
        return entity

    def delete(self, entity_id: Any) -> bool:
        entity = self.find_by_id(entity_id)
        if entity is None:
            return False
        try:
            self.db.delete(entity)
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "delete") from exc
        return True

    def bulk_update(self, ids: Iterable[Any], data: dict[str, Any]) -> int:
        """Update every existing id; ids that do not exist are simply not counted."""
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return 0

        values = self._check_columns(data, "bulk_update")
        if "updated_at" in self._columns:
            values.setdefault("updated_at", utcnow())

        stmt = (
            sa_update(self.model)
            .where(self.model.id.in_(unique_ids))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.expire_all()
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "bulk_update") from exc
        return result.rowcount or 0

    def update_by_criteria(self, criteria: dict[str, Any], data: dict[str, Any]) -> int:
        values = self._check_columns(data, "update_by_criteria")
        if "updated_at" in self._columns:
            values.setdefault("updated_at", utcnow())

        stmt = (
            sa_update(self.model)
            .where(*self._build_where(criteria))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.expire_all()
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "update_by_criteria") from exc
        return result.rowcount or 0

    def delete_by_criteria(self, criteria: dict[str, Any]) -> int:
        if not criteria:
            raise ParameterError(
                "Refusing to delete without criteria",
                context={"operation": "delete_by_criteria", "table": self.table_name},
            )
        stmt = (
            sa_delete(self.model)
            .where(*self._build_where(criteria))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.expire_all()
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "delete_by_criteria") from exc
        return result.rowcount or 0

    def transaction(self, callback: Callable[["SqlAlchemyRepository[EntityT]"], T]) -> T:
        """
        Run ``callback(self)`` as one atomic unit of work.

        Every repository sharing this session joins the same unit of work, so
        callbacks may write through other repositories too.
        """
        with unit_of_work(self.db):
            return callback(self)

    # -------------------------
    # Internals
    # -------------------------
    def _persist(self) -> None:
        if in_unit_of_work(self.db):
            self.db.flush()
        else:
            self.db.commit()

    def _rollback(self) -> None:
        # Inside a unit of work the outer block owns the rollback
        if not in_unit_of_work(self.db):
            self.db.rollback()

    def _resolve_field(self, name: str) -> str:
        if name in self._columns:
            return name
        snake = camel_to_snake(name)
        if snake in self._columns:
            return snake
        raise ParameterError(
            f"Unknown field '{name}' for {self.table_name}",
            context={"field": name, "table": self.table_name},
        )

    def _column(self, name: str):
        return getattr(self.model, self._resolve_field(name))

    def _check_columns(self, data: dict[str, Any], operation: str) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for key, value in data.items():
            try:
                values[self._resolve_field(key)] = value
            except ParameterError as exc:
                exc.context["operation"] = operation
                raise
        values.pop("id", None)
        return values

    def _load_options(self, relations: Sequence[str] | None) -> list:
        options = []
        for name in relations or ():
            if name not in self._relations:
                raise ParameterError(
                    f"Unknown relation '{name}' for {self.table_name}",
                    context={"relation": name, "table": self.table_name},
                )
            options.append(selectinload(getattr(self.model, name)))
        return options

    def _build_where(self, criteria: dict[str, Any] | None) -> list:
        if not criteria:
            return []
        return [self._build_clause(criteria)]

    def _build_clause(self, criteria: dict[str, Any]):
        clauses = []
        for key, value in criteria.items():
            if key in ("OR", "AND"):
                parts = [self._build_clause(sub) for sub in _as_list(value) if sub]
                if not parts:
                    continue
                clauses.append(or_(*parts) if key == "OR" else and_(*parts))
            elif key == "search":
                if value is None or str(value).strip() == "":
                    continue
                term = str(value).strip()
                clauses.append(or_(*(_OPERATORS["contains"](self._column(f), term) for f in self.search_fields)))
            else:
                clauses.append(self._field_clause(key, value))
        if not clauses:
            return true()
        return and_(*clauses)

    def _field_clause(self, field: str, value: Any):
        column = self._column(field)
        if isinstance(value, dict):
            parts = []
            for op, operand in value.items():
                handler = _OPERATORS.get(op)
                if handler is None:
                    raise ParameterError(
                        f"Unknown operator '{op}' for field '{field}'",
                        context={"field": field, "operator": op},
                    )
                if op == "in" and not _as_list(operand):
                    parts.append(false())
                    continue
                parts.append(handler(column, operand))
            return and_(*parts) if parts else true()
        if value is None:
            return column.is_(None)
        if isinstance(value, (list, tuple, set)):
            return column.in_(list(value)) if value else false()
        return column == value

    def _apply_sort(self, stmt: Select, sort: SortOptions | None) -> Select:
        field = sort.field if sort else self.default_sort_field
        direction = sort.direction if sort else self.default_sort_direction

        if field in self.relation_sorts:
            relation, target_field = self.relation_sorts[field]
            rel_attr = getattr(self.model, relation)
            target = getattr(rel_attr.property.mapper.class_, target_field)
            stmt = stmt.outerjoin(rel_attr)
            order_col = target
        else:
            try:
                order_col = self._column(field)
            except ParameterError:
                # Unknown sort fields fall back to the repository default
                order_col = self._column(self.default_sort_field)
                direction = self.default_sort_direction

        ordered = order_col.desc() if direction == "desc" else order_col.asc()
        return stmt.order_by(ordered, self.model.id.asc())

    def _wrap_error(self, exc: SQLAlchemyError, operation: str) -> AppError:
        orig = getattr(exc, "orig", None)
        context: dict[str, Any] = {"operation": operation, "table": self.table_name}
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint:
            context["constraint"] = constraint

        if isinstance(exc, IntegrityError):
            detail = str(orig or exc).lower()
            if "unique" in detail or "duplicate" in detail:
                return ConflictError(
                    f"A {self.resource_name.lower()} with these values already exists",
                    context=context,
                )
            if "foreign key" in detail:
                if operation == "delete":
                    return ConflictError(
                        f"{self.resource_name} is still referenced by other records",
                        context=context,
                    )
                return BadRequestError("Referenced record does not exist", context=context)

        logger.error("Database error during %s on %s: %s", operation, self.table_name, exc)
        return DatabaseError(
            f"Database error during {operation} on {self.table_name}",
            context=context,
        )
