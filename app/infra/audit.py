from __future__ import annotations

import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from app.domain.models import AuditAction, AuditLog
from app.infra.auth import UserSession
from app.infra.db import engine
from app.infra.request_context import get_current_user_session, get_request_meta

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = ("parola", "password", "token", "secret")
MASK = "[GİZLİ]"
DIFF_IGNORED_FIELDS = {"created_at", "updated_at", "created_user_id", "updated_user_id"}


def snapshot(record: Any) -> dict[str, Any] | None:
    if record is None:
        return None
    encoded = jsonable_encoder(record)
    if not isinstance(encoded, dict):
        return None
    return encoded


def sanitize(data: dict[str, Any] | None) -> dict[str, Any] | None:
    if data is None:
        return None
    sanitized = dict(data)
    for field in SENSITIVE_FIELDS:
        if field in sanitized:
            sanitized[field] = MASK
    return sanitized


def diff(before: dict[str, Any] | None, after: dict[str, Any] | None) -> dict[str, Any] | None:
    if before is None or after is None:
        return None
    changes: dict[str, Any] = {}
    for key in sorted(set(before) | set(after)):
        if key in DIFF_IGNORED_FIELDS:
            continue
        old_value = before.get(key)
        new_value = after.get(key)
        if old_value != new_value:
            changes[key] = {"before": old_value, "after": new_value}
    return changes or None


def write_audit_log(
    *,
    action: AuditAction,
    description: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    entity_label: str | None = None,
    before: Any = None,
    after: Any = None,
    metadata: dict[str, Any] | None = None,
    session: UserSession | None = None,
    actor_id: str | None = None,
    actor_name: str | None = None,
) -> None:
    """Append one audit row.

    Failures are logged and swallowed; the caller's operation has already
    committed and must not be affected.
    """
    try:
        user = session or get_current_user_session()
        meta = get_request_meta()
        before_state = sanitize(snapshot(before))
        after_state = sanitize(snapshot(after))
        log = AuditLog(
            action=action,
            description=description,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_label=entity_label,
            actor_id=actor_id if actor_id is not None else (user.subject_id if user else None),
            actor_name=actor_name if actor_name is not None else (user.display_name if user else None),
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            before_state=before_state,
            after_state=after_state,
            changes=diff(before_state, after_state),
            extra=jsonable_encoder(metadata) if metadata else None,
        )
        with Session(engine) as db_session:
            db_session.add(log)
            db_session.commit()
    except Exception:
        logger.exception(
            "audit write failed",
            extra={"context": {"action": str(action), "entity_type": entity_type, "entity_id": entity_id}},
        )


def log_create(
    entity_type: str,
    entity_id: str,
    after: Any,
    entity_label: str | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.CREATE,
        description=f"Yeni {entity_type} oluşturuldu",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        after=after,
        session=session,
    )


def log_update(
    entity_type: str,
    entity_id: str,
    before: Any,
    after: Any,
    entity_label: str | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.UPDATE,
        description=f"{entity_type} güncellendi",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        before=before,
        after=after,
        session=session,
    )


def log_delete(
    entity_type: str,
    entity_id: str,
    before: Any,
    entity_label: str | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.DELETE,
        description=f"{entity_type} silindi",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        before=before,
        session=session,
    )


def log_view(
    entity_type: str,
    entity_id: str,
    entity_label: str | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.VIEW,
        description=f"{entity_type} görüntülendi",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        session=session,
    )


def log_list(
    entity_type: str,
    filters: dict[str, Any] | None = None,
    result_count: int | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.VIEW,
        description=f"{entity_type} listesi görüntülendi",
        entity_type=entity_type,
        metadata={"filters": filters or {}, "result_count": result_count},
        session=session,
    )


def log_status_change(
    entity_type: str,
    entity_id: str,
    before_status: str,
    after_status: str,
    entity_label: str | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.STATUS_CHANGE,
        description=f"{entity_type} durumu değiştirildi: {before_status} -> {after_status}",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        metadata={"status": {"before": before_status, "after": after_status}},
        session=session,
    )


def log_bulk(
    action: AuditAction,
    entity_type: str,
    entity_ids: list[str],
    metadata: dict[str, Any] | None = None,
    session: UserSession | None = None,
) -> None:
    write_audit_log(
        action=action,
        description=f"{len(entity_ids)} adet {entity_type} toplu işlendi",
        entity_type=entity_type,
        metadata={"count": len(entity_ids), "entity_ids": entity_ids, **(metadata or {})},
        session=session,
    )


def log_login(
    *,
    personel_id: str,
    display_name: str,
    success: bool,
    metadata: dict[str, Any] | None = None,
) -> None:
    write_audit_log(
        action=AuditAction.LOGIN if success else AuditAction.LOGIN_FAIL,
        description="Giriş yapıldı" if success else "Başarısız giriş denemesi",
        entity_type="Personel",
        entity_id=personel_id,
        metadata=metadata,
        actor_id=personel_id if success else None,
        actor_name=display_name,
    )


def log_logout(session: UserSession) -> None:
    write_audit_log(
        action=AuditAction.LOGOUT,
        description="Çıkış yapıldı",
        entity_type="Personel",
        entity_id=session.subject_id,
        session=session,
    )
