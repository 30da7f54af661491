"""
Tenant-scoped access to one table ("collection").

ScopedCollection is the only write path for tenant-owned records. It:
- prepends ``company_id == context.company_id`` to every read unless the
  caller is an admin or the collection is tenant-exempt
- refuses tenant-enforced writes without a resolvable company
- verifies company and team ownership before update/remove

Reads come in two flavours: ``query`` (one-shot) and ``subscribe``
(a LiveQuery that re-delivers on every committed change).
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.exceptions import (
    AccessDeniedError,
    BackendError,
    ErrorCategory,
    MissingTenantContextError,
    NotAuthenticatedError,
    RecordNotFoundError,
    map_backend_error,
)
from app.core.logging_config import tenant_extra
from app.core.tenancy import TenantContext
from app.crud.live_query import LiveQuery
from app.models.common import RecordStatus, utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Columns a caller may never set through update()
PROTECTED_FIELDS = frozenset({"id", "created_at", "created_by"})


def is_tenant_exempt(collection_name: str) -> bool:
    return collection_name in settings.TENANT_EXEMPT_COLLECTIONS


def _default_session_factory() -> sessionmaker:
    from app.core.database import SessionLocal
    return SessionLocal


class ScopedCollection(Generic[ModelT]):
    """
    Tenant-enforcing CRUD and live queries for one model.

    Args:
        db: Session used for one-shot reads and all writes
        model: Mapped class (Job, Candidate, CandidateJob, ...)
        context: The caller's TenantContext
        enforce_tenant: Set False only for system-level access
        session_factory: Factory for the short-lived sessions live queries refresh in
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        context: TenantContext,
        enforce_tenant: bool = True,
        session_factory: Optional[sessionmaker] = None,
    ):
        self.db = db
        self.model = model
        self.context = context
        self.enforce_tenant = enforce_tenant
        self._session_factory = session_factory

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @property
    def is_exempt(self) -> bool:
        return is_tenant_exempt(self.name)

    @property
    def requires_company_context(self) -> bool:
        """Reads must be company-filtered."""
        return self.enforce_tenant and not self.is_exempt and not self.context.is_admin

    @property
    def session_factory(self) -> sessionmaker:
        return self._session_factory or _default_session_factory()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def tenant_filters(self) -> List[Any]:
        """
        Filters every read on this collection must carry.

        Raises:
            MissingTenantContextError: company scoping is required but unknown
        """
        if not self.requires_company_context:
            return []
        if not self.context.company_id:
            raise MissingTenantContextError()
        return [self.model.company_id == self.context.company_id]

    def _statement(self, filters: Sequence[Any], order_by: Sequence[Any], limit: Optional[int]):
        stmt = select(self.model).where(*self.tenant_filters(), *filters)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def query(
        self,
        *filters: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[ModelT]:
        """One-shot scoped read in the backend's order for the given sort."""
        stmt = self._statement(filters, order_by, limit)
        if offset:
            stmt = stmt.offset(offset)
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Query on {self.name} failed: {e}", extra=tenant_extra(self.context))
            raise map_backend_error(e) from e

    def subscribe(
        self,
        *filters: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        on_change=None,
    ) -> LiveQuery:
        """
        Open a live query.

        Never raises: a missing company yields an inert subscription with an
        empty result set and the "no company selected" error.
        """
        try:
            stmt = self._statement(filters, order_by, limit)
        except MissingTenantContextError as e:
            logger.warning(
                f"Subscription to {self.name} refused: no company selected",
                extra=tenant_extra(self.context),
            )
            return LiveQuery.failed(e.category, e.message)
        except SQLAlchemyError as e:
            mapped = map_backend_error(e)
            return LiveQuery.failed(mapped.category, mapped.message)

        live = LiveQuery(
            session_factory=self.session_factory,
            statement=stmt,
            tables=(self.name,),
            on_change=on_change,
        )
        return live.start()

    def get(self, record_id: str) -> Optional[ModelT]:
        """Scoped read of a single record; None if absent or owned by another tenant."""
        results = self.query(self.model.id == record_id, limit=1)
        return results[0] if results else None

    # ------------------------------------------------------------------
    # Access checks
    # ------------------------------------------------------------------

    def validate_access(self, record: Any) -> None:
        """
        Verify the caller may modify ``record``.

        Records without a company are open. Company must match the caller's;
        when the record has a team and the caller has teams, the team must be
        one of them.

        Raises:
            MissingTenantContextError: non-admin caller without a company
            AccessDeniedError: company or team mismatch
        """
        record_company = getattr(record, "company_id", None)
        if not record_company or not self.requires_company_context:
            return

        if not self.context.company_id:
            raise MissingTenantContextError()

        if record_company != self.context.company_id:
            logger.warning(
                f"Denied cross-company access to {self.name} {getattr(record, 'id', None)}",
                extra=tenant_extra(self.context),
            )
            raise AccessDeniedError("Invalid company access")

        record_team = getattr(record, "team_id", None)
        if record_team and self.context.team_ids and record_team not in self.context.team_ids:
            logger.warning(
                f"Denied cross-team access to {self.name} {getattr(record, 'id', None)}",
                extra=tenant_extra(self.context),
            )
            raise AccessDeniedError("Invalid team access")

    def _load_for_write(self, record_id: str) -> ModelT:
        # Unscoped on purpose: a record in another tenant must surface as
        # access denied, not as "not found".
        record = self.db.get(self.model, record_id)
        if record is None:
            raise RecordNotFoundError(f"{self.name} record {record_id} not found")
        if self.enforce_tenant:
            self.validate_access(record)
        return record

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Stamp tenant ownership and the default lifecycle status onto a new record.

        Raises:
            NotAuthenticatedError / MissingTenantContextError before anything is written
        """
        if not self.enforce_tenant or self.is_exempt:
            return dict(data)

        if not self.context.is_authenticated:
            raise NotAuthenticatedError()
        if not self.context.company_id:
            raise MissingTenantContextError("Please select a company before adding data")

        enriched = self.context.enrich(data)
        status_column = self.model.__table__.columns.get("status")
        if status_column is not None and not data.get("status"):
            default = status_column.default
            enriched["status"] = default.arg if default is not None else RecordStatus.ACTIVE
        return enriched

    def build(self, data: Dict[str, Any]) -> ModelT:
        """Prepare and stage a new record in the session without committing."""
        record = self.model(**self.prepare(data))
        self.db.add(record)
        return record

    def add(self, data: Dict[str, Any]) -> str:
        """Insert a record and return its id."""
        record = self.build(data)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to add {self.name} record: {e}", extra=tenant_extra(self.context))
            raise map_backend_error(e) from e

        logger.info(f"Added {self.name} record {record.id}", extra=tenant_extra(self.context))
        return record.id

    def update(self, record_id: str, changes: Dict[str, Any]) -> ModelT:
        """
        Apply a partial update after the ownership check.

        company_id is immutable: moving a record to another tenant is denied.
        """
        record = self._load_for_write(record_id)

        new_company = changes.get("company_id")
        if new_company is not None and new_company != record.company_id:
            raise AccessDeniedError("A record cannot be moved to another company")

        writable = {
            field: value for field, value in changes.items()
            if field not in PROTECTED_FIELDS and field != "company_id"
        }
        mapped = set(inspect(self.model).attrs.keys())
        unknown = sorted(field for field in writable if field not in mapped)
        if unknown:
            raise BackendError(ErrorCategory.INVALID_QUERY, f"{self.name} has no field(s) {', '.join(unknown)}")

        for field, value in writable.items():
            setattr(record, field, value)
        if hasattr(record, "updated_at"):
            record.updated_at = utcnow()

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update {self.name} {record_id}: {e}", extra=tenant_extra(self.context))
            raise map_backend_error(e) from e

        self.db.refresh(record)
        logger.info(f"Updated {self.name} {record_id}: {sorted(changes)}", extra=tenant_extra(self.context))
        return record

    def remove(self, record_id: str) -> None:
        """Delete a single record after the ownership check."""
        record = self._load_for_write(record_id)
        self.db.delete(record)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to remove {self.name} {record_id}: {e}", extra=tenant_extra(self.context))
            raise map_backend_error(e) from e

        logger.info(f"Removed {self.name} {record_id}", extra=tenant_extra(self.context))
