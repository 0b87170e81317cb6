# app/services/base_service.py
"""
Generic CRUD service pipeline.

A CrudService is assembled from small capabilities instead of abstract hook
methods:

- Validator    returns a ValidationResult, never raises for bad input
- Mapper       converts payloads to column values and entities to DTOs
- AuditStamper sets created_by / updated_by from the ServiceContext
- ServiceHooks before/after points around every write

Write order is fixed:

    create: validate -> stamp -> before_create -> to_entity -> repo.create -> after_create -> to_dto
    update: validate -> find (404) -> stamp -> before_update -> to_entity -> repo.update -> after_update -> to_dto
    delete: find (404) -> before_delete -> repo.delete -> after_delete
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Iterator, Protocol, Sequence, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel

from app.core.errors import AppError, NotFoundError, ValidationError, to_app_error
from app.repositories.base import PaginationResult, SortOptions, SqlAlchemyRepository
from app.schemas.stats import PeriodStat

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")
ResponseT = TypeVar("ResponseT", bound=BaseModel)
T = TypeVar("T")

DEFAULT_STAT_PERIODS = {"weekly": 12, "monthly": 12, "yearly": 3}


# -------------------------
# Context
# -------------------------
@dataclass(frozen=True)
class ServiceContext:
    """Who is performing the operation. ``user_id=None`` means anonymous/system."""

    user_id: int | None = None
    user_name: str | None = None
    ip_address: str | None = None


# -------------------------
# Validation
# -------------------------
class ValidationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class FieldError(BaseModel):
    field: str
    message: str
    type: str = "invalid"


class ValidationResult(BaseModel):
    result: ValidationStatus
    errors: list[FieldError] = []

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(result=ValidationStatus.SUCCESS)

    @classmethod
    def error(cls, errors: Iterable[FieldError]) -> "ValidationResult":
        return cls(result=ValidationStatus.ERROR, errors=list(errors))

    @property
    def is_valid(self) -> bool:
        return self.result == ValidationStatus.SUCCESS


class FieldErrors:
    """Small builder used by validators to collect field errors."""

    def __init__(self) -> None:
        self.items: list[FieldError] = []

    def add(self, field: str, message: str, type: str = "invalid") -> None:
        self.items.append(FieldError(field=field, message=message, type=type))

    def require(self, data: dict[str, Any], field: str, label: str | None = None) -> bool:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, f"{label or field} is required", "required")
            return False
        return True

    def not_null(self, data: dict[str, Any], *fields: str) -> None:
        """Reject an explicit ``None`` for columns that cannot be cleared."""
        for field in fields:
            if field in data and data[field] is None:
                self.add(field, f"{field} cannot be null", "required")

    def email(self, data: dict[str, Any], field: str = "email") -> None:
        value = data.get(field)
        if not value:
            return
        try:
            validate_email(str(value), check_deliverability=False)
        except EmailNotValidError:
            self.add(field, "Invalid email address", "format")

    def max_length(self, data: dict[str, Any], field: str, limit: int) -> None:
        value = data.get(field)
        if isinstance(value, str) and len(value) > limit:
            self.add(field, f"{field} must be at most {limit} characters", "length")

    def result(self) -> ValidationResult:
        return ValidationResult.error(self.items) if self.items else ValidationResult.success()


class Validator(Protocol):
    def validate(
        self,
        data: dict[str, Any],
        *,
        is_update: bool = False,
        entity_id: Any = None,
    ) -> ValidationResult:
        ...


class Mapper(Protocol[EntityT, ResponseT]):
    def to_entity(self, data: dict[str, Any], existing: EntityT | None = None) -> dict[str, Any]:
        ...

    def to_dto(self, entity: EntityT) -> ResponseT:
        ...


class ModelMapper(Generic[EntityT, ResponseT]):
    """
    Default mapper: payload keys are column names, DTOs are built with
    ``response_model.model_validate(entity)``.
    """

    def __init__(self, response_model: type[ResponseT]):
        self.response_model = response_model

    def to_entity(self, data: dict[str, Any], existing: EntityT | None = None) -> dict[str, Any]:
        return dict(data)

    def to_dto(self, entity: EntityT) -> ResponseT:
        return self.response_model.model_validate(entity)


class AuditStamper:
    def stamp(
        self,
        data: dict[str, Any],
        context: ServiceContext | None,
        *,
        is_create: bool,
    ) -> dict[str, Any]:
        stamped = dict(data)
        if not is_create:
            stamped.pop("created_by", None)

        user_id = context.user_id if context else None
        if user_id is None:
            return stamped

        if is_create:
            stamped["created_by"] = user_id
        stamped["updated_by"] = user_id
        return stamped


class ServiceHooks(Generic[EntityT]):
    """No-op hooks; subclass and override what you need."""

    def before_create(self, data: dict[str, Any], context: ServiceContext | None) -> dict[str, Any]:
        return data

    def after_create(self, entity: EntityT, context: ServiceContext | None) -> EntityT:
        return entity

    def before_update(
        self,
        entity_id: Any,
        data: dict[str, Any],
        existing: EntityT,
        context: ServiceContext | None,
    ) -> dict[str, Any]:
        return data

    def after_update(self, entity: EntityT, context: ServiceContext | None) -> EntityT:
        return entity

    def before_delete(self, entity: EntityT, context: ServiceContext | None) -> None:
        return None

    def after_delete(self, entity_id: Any, snapshot: Any, context: ServiceContext | None) -> None:
        return None


class AlwaysValid:
    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        return ValidationResult.success()


# -------------------------
# Service
# -------------------------
class CrudService(Generic[EntityT, ResponseT]):
    entity_name: str = "Resource"
    stats_date_field: str = "created_at"
    stats_group_field: str | None = None
    stats_group_values: tuple[str, ...] = ()

    def __init__(
        self,
        repository: SqlAlchemyRepository,
        *,
        mapper: Mapper,
        validator: Validator | None = None,
        stamper: AuditStamper | None = None,
        hooks: ServiceHooks | None = None,
    ):
        self.repository = repository
        self.mapper = mapper
        self.validator = validator or AlwaysValid()
        self.stamper = stamper or AuditStamper()
        self.hooks = hooks or ServiceHooks()

    @property
    def db(self):
        return self.repository.db

    # -------------------------
    # Writes
    # -------------------------
    def create(self, data: BaseModel | dict[str, Any], context: ServiceContext | None = None) -> ResponseT:
        payload = self._as_dict(data)
        with self._errors("create"):
            self._ensure_valid(payload, is_update=False)
            payload = self.stamper.stamp(payload, context, is_create=True)
            payload = self.hooks.before_create(payload, context)
            entity = self.repository.create(self.mapper.to_entity(payload))
            entity = self.hooks.after_create(entity, context)
            return self.mapper.to_dto(entity)

    def update(
        self,
        entity_id: Any,
        data: BaseModel | dict[str, Any],
        context: ServiceContext | None = None,
    ) -> ResponseT:
        payload = self._as_dict(data)
        with self._errors("update"):
            self._ensure_valid(payload, is_update=True, entity_id=entity_id)
            existing = self._get_or_404(entity_id)
            payload = self.stamper.stamp(payload, context, is_create=False)
            payload = self.hooks.before_update(entity_id, payload, existing, context)
            entity = self.repository.update(entity_id, self.mapper.to_entity(payload, existing))
            entity = self.hooks.after_update(entity, context)
            return self.mapper.to_dto(entity)

    def delete(self, entity_id: Any, context: ServiceContext | None = None) -> bool:
        with self._errors("delete"):
            existing = self._get_or_404(entity_id)
            self.hooks.before_delete(existing, context)
            snapshot = self.mapper.to_dto(existing)
            deleted = self.repository.delete(entity_id)
            self.hooks.after_delete(entity_id, snapshot, context)
            return deleted

    def bulk_update(
        self,
        ids: Iterable[Any],
        data: BaseModel | dict[str, Any],
        context: ServiceContext | None = None,
    ) -> int:
        payload = self._as_dict(data)
        with self._errors("bulk_update"):
            self._ensure_valid(payload, is_update=True)
            payload = self.stamper.stamp(payload, context, is_create=False)
            return self.repository.bulk_update(ids, self.mapper.to_entity(payload))

    def transaction(self, callback: Callable[["CrudService[EntityT, ResponseT]"], T]) -> T:
        """
        Run ``callback`` against a copy of this service bound to the
        transaction-scoped repository; all writes commit together or not at all.
        """

        def run(tx_repository: SqlAlchemyRepository) -> T:
            tx_service = copy.copy(self)
            tx_service.repository = tx_repository
            return callback(tx_service)

        with self._errors("transaction"):
            return self.repository.transaction(run)

    # -------------------------
    # Reads
    # -------------------------
    def get_all(
        self,
        *,
        page: int | None = 1,
        limit: int | None = 10,
        sort: SortOptions | None = None,
        criteria: dict[str, Any] | None = None,
        relations: Sequence[str] | None = None,
    ) -> PaginationResult[ResponseT]:
        with self._errors("get_all"):
            result = self.repository.find_all(
                page=page,
                limit=limit,
                sort=sort,
                criteria=criteria,
                relations=relations,
            )
            return result.map(self.mapper.to_dto)

    find_all = get_all

    def get_by_id(self, entity_id: Any, relations: Sequence[str] | None = None) -> ResponseT | None:
        with self._errors("get_by_id"):
            entity = self.repository.find_by_id(entity_id, relations=relations)
            return self.mapper.to_dto(entity) if entity is not None else None

    def find_by_criteria(self, criteria: dict[str, Any], *, sort: SortOptions | None = None) -> list[ResponseT]:
        with self._errors("find_by_criteria"):
            return [self.mapper.to_dto(e) for e in self.repository.find_by_criteria(criteria, sort=sort)]

    def count(self, criteria: dict[str, Any] | None = None) -> int:
        with self._errors("count"):
            return self.repository.count(criteria)

    def exists(self, entity_id: Any) -> bool:
        with self._errors("exists"):
            return self.repository.exists(entity_id)

    def exists_by_criteria(self, criteria: dict[str, Any]) -> bool:
        with self._errors("exists_by_criteria"):
            return self.repository.exists_by_criteria(criteria)

    def search(self, term: str, *, limit: int = 10) -> list[ResponseT]:
        with self._errors("search"):
            return [self.mapper.to_dto(e) for e in self.repository.search(term, limit=limit)]

    def get_period_stats(
        self,
        period: str,
        *,
        periods: int | None = None,
        now: datetime | None = None,
    ) -> list[PeriodStat]:
        """Row counts per week, month or year, oldest period first."""
        with self._errors("get_period_stats"):
            buckets = self.repository.count_by_period(
                period,
                periods=periods or DEFAULT_STAT_PERIODS.get(period, 12),
                date_field=self.stats_date_field,
                group_field=self.stats_group_field,
                group_values=self.stats_group_values,
                now=now,
            )
            return [PeriodStat.model_validate(bucket) for bucket in buckets]

    # -------------------------
    # Errors
    # -------------------------
    @staticmethod
    def handle_error(exc: BaseException) -> AppError:
        return to_app_error(exc)

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except AppError:
            raise
        except Exception as exc:
            logger.exception("%s.%s failed", type(self).__name__, operation)
            raise self.handle_error(exc) from exc

    # -------------------------
    # Helpers
    # -------------------------
    @staticmethod
    def _as_dict(data: BaseModel | dict[str, Any]) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=True)
        return dict(data)

    def _ensure_valid(self, payload: dict[str, Any], *, is_update: bool, entity_id: Any = None) -> None:
        result = self.validator.validate(payload, is_update=is_update, entity_id=entity_id)
        if not result.is_valid:
            raise ValidationError(
                f"{self.entity_name} validation failed",
                field_errors=[e.model_dump() for e in result.errors],
            )

    def _get_or_404(self, entity_id: Any) -> EntityT:
        entity = self.repository.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(resource=self.entity_name, resource_id=entity_id)
        return entity
