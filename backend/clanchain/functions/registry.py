"""
Resource handler registry for the CRUD functions gateway

Each resource is a `ResourceHandler` bound to one table. The gateway looks the
handler up by name and lets it answer the HTTP verb; there is no branching on
resource names anywhere else.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from clanchain.core.auth import Identity
from clanchain.core.config import get_settings
from clanchain.core.exceptions import (AuthenticationError, ClanChainError,
                                       ConflictError, MethodNotAllowedError,
                                       NotFoundError, ValidationError)
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import function_operations_total
from clanchain.utils.datetime_utils import parse_datetime

logger = LoggingConfig.get_logger(__name__)

ALL_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

_OPERATIONS = {"POST": "create", "PUT": "update", "DELETE": "delete"}


class DeleteMode(str, Enum):
    HARD = "hard"
    SOFT = "soft"


@dataclass
class ResourceHandler:
    """
    CRUD handler for one table.

    Attributes:
        name: Path segment under the gateway (e.g. "youth-tasks")
        model: SQLAlchemy model
        label: Human name used in error messages
        id_param: Query parameter carrying the row id; None when the resource
            has no per-row addressing
        create_schema / update_schema: Pydantic models validating bodies
        filters: Query parameter -> column name for list filtering
        base_filters: Column -> value applied to every list
        methods: Verbs the resource answers; others get 405
        delete_mode: HARD removes the row, SOFT writes `soft_delete_values`
        owner_field: Column filled with the caller's id on create
        default_limit: List size when `limit` is absent (settings default otherwise)
    """
    name: str
    model: Type[Any]
    label: str
    create_schema: Type[BaseModel]
    update_schema: Optional[Type[BaseModel]] = None
    id_param: Optional[str] = None
    filters: Dict[str, str] = field(default_factory=dict)
    base_filters: Dict[str, Any] = field(default_factory=dict)
    methods: FrozenSet[str] = ALL_METHODS
    delete_mode: DeleteMode = DeleteMode.HARD
    soft_delete_values: Dict[str, Any] = field(default_factory=dict)
    owner_field: Optional[str] = None
    default_limit: Optional[int] = None

    def handle(
        self,
        method: str,
        db: Session,
        params: Mapping[str, str],
        body: Any = None,
        identity: Optional[Identity] = None,
    ) -> Tuple[int, Any]:
        """
        Answer one request

        Returns:
            (status_code, JSON-ready payload)
        """
        method = method.upper()
        if method not in self.methods:
            raise MethodNotAllowedError()
        if method != "GET" and identity is None:
            raise AuthenticationError("Unauthorized")

        row_id = params.get(self.id_param) if self.id_param else None

        if method == "GET":
            if row_id:
                return 200, self.get_row(db, row_id).to_dict()
            return 200, [row.to_dict() for row in self.list_rows(db, params)]

        if method == "POST":
            return 201, self.create_row(db, body, identity).to_dict()

        if not row_id:
            raise ValidationError(f"{self.label} ID required for {_OPERATIONS[method]}")

        if method == "PUT":
            return 200, self.update_row(db, row_id, body).to_dict()

        return 200, self.delete_row(db, row_id)

    def base_query(self, db: Session) -> Query:
        return db.query(self.model)

    def apply_filters(self, query: Query, params: Mapping[str, str]) -> Query:
        for column, value in self.base_filters.items():
            query = query.filter(getattr(self.model, column) == value)

        for param, column in self.filters.items():
            value = params.get(param)
            if value:
                query = query.filter(getattr(self.model, column) == value)

        try:
            start = parse_datetime(params.get("start_date"))
            end = parse_datetime(params.get("end_date"))
        except ValueError as e:
            raise ValidationError(f"Invalid date filter: {e}")
        if start:
            query = query.filter(self.model.created_at >= start)
        if end:
            query = query.filter(self.model.created_at <= end)
        return query

    def resolve_limit(self, params: Mapping[str, str]) -> int:
        settings = get_settings()
        raw = params.get("limit")
        if raw is None or raw == "":
            return self.default_limit or settings.functions_default_page_size
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid limit '{raw}'")
        return max(1, min(limit, settings.functions_max_page_size))

    def list_rows(self, db: Session, params: Mapping[str, str]) -> List[Any]:
        query = self.apply_filters(self.base_query(db), params)
        return query.order_by(self.model.created_at.desc()).limit(self.resolve_limit(params)).all()

    def get_row(self, db: Session, row_id: str) -> Any:
        row = db.get(self.model, row_id)
        if row is None:
            raise NotFoundError(f"{self.label} not found")
        return row

    def create_row(self, db: Session, body: Any, identity: Optional[Identity]) -> Any:
        values = self._validate(self.create_schema, body, partial=False)
        if self.owner_field and identity and not values.get(self.owner_field):
            values[self.owner_field] = identity.user_id

        row = self.model(**values)
        db.add(row)
        self._commit(db)
        db.refresh(row)
        return row

    def update_row(self, db: Session, row_id: str, body: Any) -> Any:
        schema = self.update_schema or self.create_schema
        values = self._validate(schema, body, partial=True)
        row = self.get_row(db, row_id)
        for key, value in values.items():
            setattr(row, key, value)
        self._commit(db)
        db.refresh(row)
        return row

    def delete_row(self, db: Session, row_id: str) -> Any:
        row = self.get_row(db, row_id)
        if self.delete_mode == DeleteMode.SOFT:
            for key, value in self.soft_delete_values.items():
                setattr(row, key, value)
            self._commit(db)
            db.refresh(row)
            return row.to_dict()

        db.delete(row)
        self._commit(db)
        return {"success": True}

    def _validate(self, schema: Type[BaseModel], body: Any, partial: bool) -> Dict[str, Any]:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            payload = schema.model_validate(body)
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid {self.label.lower()} data: {errors}")
        return payload.model_dump(exclude_unset=partial)

    def _commit(self, db: Session):
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(
                f"Integrity error on {self.name}: {e.orig}",
                extra={"resource": self.name},
            )
            raise ConflictError(f"{self.label} violates a data constraint")


class ResourceRegistry:
    """Name -> handler lookup used by the functions gateway"""

    def __init__(self):
        self._handlers: Dict[str, ResourceHandler] = {}

    def register(self, handler: ResourceHandler) -> ResourceHandler:
        if handler.name in self._handlers:
            raise ValueError(f"Resource '{handler.name}' already registered")
        self._handlers[handler.name] = handler
        logger.debug(f"Registered resource handler {handler.name}")
        return handler

    def get(self, name: str) -> ResourceHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise NotFoundError("Not found")
        return handler

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def dispatch(
        self,
        resource: str,
        method: str,
        db: Session,
        params: Mapping[str, str],
        body: Any = None,
        identity: Optional[Identity] = None,
    ) -> Tuple[int, Any]:
        handler = self.get(resource)
        operation = "list" if method.upper() == "GET" else _OPERATIONS.get(method.upper(), method.lower())
        try:
            result = handler.handle(method, db, params, body=body, identity=identity)
        except ClanChainError:
            function_operations_total.labels(resource=resource, operation=operation, status="error").inc()
            raise
        function_operations_total.labels(resource=resource, operation=operation, status="success").inc()
        return result
