from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, col, select

from app.domain.errors import ConflictError, DependentsError, NotFoundError
from app.domain.models import ListQuery, Personel, now_utc
from app.infra import audit
from app.infra.auth import UserSession
from app.infra.db import get_engine

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class Dependent:
    """A child table whose rows block deletion of the parent."""

    model: type[SQLModel]
    column: str


@dataclass(frozen=True)
class ParentRef:
    """Foreign key on the resource that must point at an existing row."""

    field: str
    model: type[SQLModel]
    message: str


@dataclass(frozen=True)
class Page(Generic[ModelT]):
    items: list[ModelT]
    total: int
    page: int
    limit: int


class ResourceService(Generic[ModelT]):
    """Uniform list/get/create/update/delete for one table.

    Every successful verb writes its audit entry after the commit. Subclasses
    set the class attributes and override the ``_before_*`` hooks for
    resource-specific checks.
    """

    model: ClassVar[type[SQLModel]]
    entity_type: ClassVar[str]
    not_found_message: ClassVar[str] = "Kayıt bulunamadı"
    conflict_message: ClassVar[str] = "Bu kayıt zaten var"
    search_fields: ClassVar[tuple[str, ...]] = ()
    sortable_fields: ClassVar[frozenset[str]] = frozenset({"created_at", "updated_at"})
    default_sort: ClassVar[tuple[str, str]] = ("created_at", "desc")
    dependents: ClassVar[tuple[Dependent, ...]] = ()
    parents: ClassVar[tuple[ParentRef, ...]] = ()
    tracks_users: ClassVar[bool] = True

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def label(self, row: ModelT) -> str | None:
        value = getattr(row, "ad", None)
        return str(value) if value is not None else None

    # ------------------------------------------------------------------ lookups

    def _find(self, session: Session, record_id: str) -> ModelT | None:
        return session.get(self.model, record_id)  # type: ignore[return-value]

    def _get_or_404(self, session: Session, record_id: str) -> ModelT:
        row = self._find(session, record_id)
        if row is None:
            raise NotFoundError(self.not_found_message)
        return row

    def resolve_actor_id(self, session: Session, user: UserSession | None) -> str | None:
        if user is None:
            return None
        if session.get(Personel, user.subject_id) is None:
            return None
        return user.subject_id

    def _check_parents(self, session: Session, data: dict[str, Any]) -> None:
        for parent in self.parents:
            parent_id = data.get(parent.field)
            if parent_id is None:
                continue
            if session.get(parent.model, parent_id) is None:
                raise NotFoundError(parent.message)

    def count_dependents(self, session: Session, record_id: str) -> int:
        total = 0
        for dependent in self.dependents:
            column = getattr(dependent.model, dependent.column)
            total += session.exec(
                select(func.count()).select_from(dependent.model).where(column == record_id)
            ).one()
        return total

    # ------------------------------------------------------------------ verbs

    def list_page(
        self,
        query: ListQuery,
        *,
        filters: dict[str, Any] | None = None,
        extra: dict[str, Any] | None = None,
        user: UserSession | None = None,
    ) -> Page[ModelT]:
        active_filters = {key: value for key, value in (filters or {}).items() if value is not None}
        active_extra = {key: value for key, value in (extra or {}).items() if value is not None}
        with self._session() as session:
            statement = select(self.model)
            for key, value in active_filters.items():
                statement = statement.where(getattr(self.model, key) == value)
            statement = self._apply_search(statement, query.search)
            statement = self._apply_extra_filters(statement, active_extra)

            total = session.exec(select(func.count()).select_from(statement.subquery())).one()
            statement = self._apply_sort(statement, query)
            rows = list(
                session.exec(statement.offset((query.page - 1) * query.limit).limit(query.limit)).all()
            )

        audit.log_list(
            self.entity_type,
            filters={**active_filters, **active_extra, **query.model_dump(exclude_none=True)},
            result_count=len(rows),
            session=user,
        )
        return Page(items=rows, total=total, page=query.page, limit=query.limit)

    def _apply_search(self, statement: Any, search: str | None) -> Any:
        if not search or not self.search_fields:
            return statement
        pattern = f"%{search}%"
        clauses = [col(getattr(self.model, field)).ilike(pattern) for field in self.search_fields]
        return statement.where(or_(*clauses))

    def _apply_extra_filters(self, statement: Any, extra: dict[str, Any]) -> Any:
        return statement

    def _apply_sort(self, statement: Any, query: ListQuery) -> Any:
        if query.sort_by and query.sort_by in self.sortable_fields:
            field, order = query.sort_by, query.sort_order
        else:
            field, order = self.default_sort
        column = col(getattr(self.model, field))
        return statement.order_by(column.desc() if order == "desc" else column.asc())

    def get(self, record_id: str, *, user: UserSession | None = None) -> ModelT:
        with self._session() as session:
            row = self._get_or_404(session, record_id)
        audit.log_view(self.entity_type, record_id, self.label(row), session=user)
        return row

    def create(self, payload: BaseModel, *, user: UserSession | None = None) -> ModelT:
        data = self._create_data(payload)
        with self._session() as session:
            self._check_parents(session, data)
            self._before_create(session, data)
            if self.tracks_users:
                actor_id = self.resolve_actor_id(session, user)
                data["created_user_id"] = actor_id
                data["updated_user_id"] = actor_id
            row = self.model(**data)
            session.add(row)
            self._commit(session)
            session.refresh(row)
            self._after_create(session, row, payload, user)
        audit.log_create(self.entity_type, row.id, row, self.label(row), session=user)  # type: ignore[attr-defined]
        return row  # type: ignore[return-value]

    def update(self, record_id: str, payload: BaseModel, *, user: UserSession | None = None) -> ModelT:
        changes = self._update_data(payload)
        with self._session() as session:
            row = self._get_or_404(session, record_id)
            before = audit.snapshot(row)
            self._check_parents(session, changes)
            self._before_update(session, row, changes)
            actor_id = self.resolve_actor_id(session, user) if self.tracks_users else None
            # Pending changes must reach the database only inside _commit.
            with session.no_autoflush:
                for key, value in changes.items():
                    setattr(row, key, value)
                if self.tracks_users:
                    row.updated_user_id = actor_id  # type: ignore[attr-defined]
                row.updated_at = now_utc()  # type: ignore[attr-defined]
            session.add(row)
            self._commit(session)
            session.refresh(row)
            self._after_update(session, row, payload, user)
        audit.log_update(self.entity_type, record_id, before, row, self.label(row), session=user)
        return row

    def delete(self, record_id: str, *, user: UserSession | None = None) -> None:
        with self._session() as session:
            row = self._get_or_404(session, record_id)
            self._before_delete(session, row, user)
            if self.count_dependents(session, record_id) > 0:
                raise DependentsError()
            before = audit.snapshot(row)
            label = self.label(row)
            session.delete(row)
            self._commit(session)
        audit.log_delete(self.entity_type, record_id, before, label, session=user)

    # ------------------------------------------------------------------ hooks

    def _create_data(self, payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump()

    def _update_data(self, payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump(exclude_unset=True)

    def _before_create(self, session: Session, data: dict[str, Any]) -> None:
        return None

    def _after_create(self, session: Session, row: ModelT, payload: BaseModel, user: UserSession | None) -> None:
        return None

    def _before_update(self, session: Session, row: ModelT, changes: dict[str, Any]) -> None:
        return None

    def _after_update(self, session: Session, row: ModelT, payload: BaseModel, user: UserSession | None) -> None:
        return None

    def _before_delete(self, session: Session, row: ModelT, user: UserSession | None) -> None:
        return None

    def _commit(self, session: Session) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            logger.info("integrity violation on %s", self.entity_type, extra={"context": {"error": str(exc.orig)}})
            raise ConflictError(self.conflict_message) from exc


def exists_all(session: Session, model: type[SQLModel], ids: Sequence[str]) -> bool:
    if not ids:
        return True
    statement = select(func.count()).select_from(model).where(col(model.id).in_(ids))  # type: ignore[attr-defined]
    found = session.exec(statement).one()
    return found == len(set(ids))
