from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from app.domain.errors import NotFoundError, ValidationError
from app.domain.models import (
    TercihKategori,
    TercihUpsert,
    WorkspaceAction,
    WorkspaceActionType,
    WorkspacePreferences,
)
from app.domain.tab_workspace import (
    LOCALE_STORAGE_KEY,
    RUNTIME_STORAGE_KEY,
    TAB_STORAGE_KEY,
    THEME_STORAGE_KEY,
    SplitOrientation,
    TabWorkspace,
)
from app.services.tercih_service import TercihService

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "tr"
DEFAULT_THEME = "system"


class WorkspaceStorage(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStorage:
    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._items.get(key)

    def set(self, key: str, value: Any) -> None:
        self._items[key] = value


class PreferenceStorage:
    """Storage keys mapped onto one personel's ``workspace`` preference rows."""

    def __init__(self, personel_id: str, tercihler: TercihService | None = None) -> None:
        self.personel_id = personel_id
        self.tercihler = tercihler or TercihService()

    def get(self, key: str) -> Any:
        return self.tercihler.get_value(self.personel_id, TercihKategori.WORKSPACE, key)

    def set(self, key: str, value: Any) -> None:
        self.tercihler.upsert(
            self.personel_id,
            TercihUpsert(kategori=TercihKategori.WORKSPACE, anahtar=key, deger=value),
        )


# Fields each action needs besides ``type``.
REQUIRED_FIELDS: dict[WorkspaceActionType, tuple[str, ...]] = {
    WorkspaceActionType.OPEN_TAB: ("path",),
    WorkspaceActionType.CLOSE_TAB: ("tab_id",),
    WorkspaceActionType.CLOSE_OTHER_TABS: ("tab_id",),
    WorkspaceActionType.CLOSE_TABS_TO_RIGHT: ("tab_id",),
    WorkspaceActionType.SET_ACTIVE: ("tab_id",),
    WorkspaceActionType.UPDATE_SCROLL: ("tab_id", "offset"),
    WorkspaceActionType.UPDATE_SPLIT_SCROLL: ("offset",),
    WorkspaceActionType.UPDATE_TITLE: ("tab_id", "title"),
    WorkspaceActionType.UPDATE_ICON: ("tab_id", "icon"),
    WorkspaceActionType.SET_TAB_DIRTY: ("tab_id", "dirty"),
    WorkspaceActionType.REORDER: ("from_index", "to_index"),
    WorkspaceActionType.PIN_TAB: ("tab_id",),
    WorkspaceActionType.UNPIN_TAB: ("tab_id",),
    WorkspaceActionType.CREATE_GROUP: ("label", "color"),
    WorkspaceActionType.UPDATE_GROUP: ("group_id",),
    WorkspaceActionType.DELETE_GROUP: ("group_id",),
    WorkspaceActionType.ASSIGN_TAB_TO_GROUP: ("tab_id",),
    WorkspaceActionType.SAVE_SESSION: ("name",),
    WorkspaceActionType.LOAD_SESSION: ("session_id",),
    WorkspaceActionType.DELETE_SESSION: ("session_id",),
    WorkspaceActionType.SELECT_SPLIT_TAB: ("tab_id",),
}

TAB_ACTIONS = frozenset(
    {
        WorkspaceActionType.CLOSE_TAB,
        WorkspaceActionType.CLOSE_OTHER_TABS,
        WorkspaceActionType.CLOSE_TABS_TO_RIGHT,
        WorkspaceActionType.SET_ACTIVE,
        WorkspaceActionType.UPDATE_SCROLL,
        WorkspaceActionType.UPDATE_TITLE,
        WorkspaceActionType.UPDATE_ICON,
        WorkspaceActionType.SET_TAB_DIRTY,
        WorkspaceActionType.PIN_TAB,
        WorkspaceActionType.UNPIN_TAB,
        WorkspaceActionType.ASSIGN_TAB_TO_GROUP,
        WorkspaceActionType.OPEN_SPLIT,
        WorkspaceActionType.SELECT_SPLIT_TAB,
    }
)
GROUP_ACTIONS = frozenset(
    {
        WorkspaceActionType.UPDATE_GROUP,
        WorkspaceActionType.DELETE_GROUP,
        WorkspaceActionType.ASSIGN_TAB_TO_GROUP,
    }
)
SESSION_ACTIONS = frozenset({WorkspaceActionType.LOAD_SESSION, WorkspaceActionType.DELETE_SESSION})

Handler = Callable[[TabWorkspace, WorkspaceAction], Any]

HANDLERS: dict[WorkspaceActionType, Handler] = {
    WorkspaceActionType.OPEN_TAB: lambda ws, a: ws.open_tab(
        a.path or "/", background=a.background, live_scroll=a.live_scroll
    ),
    WorkspaceActionType.CLOSE_TAB: lambda ws, a: ws.close_tab(a.tab_id or ""),
    WorkspaceActionType.CLOSE_OTHER_TABS: lambda ws, a: ws.close_other_tabs(a.tab_id or ""),
    WorkspaceActionType.CLOSE_TABS_TO_RIGHT: lambda ws, a: ws.close_tabs_to_right(a.tab_id or ""),
    WorkspaceActionType.CLOSE_ALL_TABS: lambda ws, a: ws.close_all_tabs(),
    WorkspaceActionType.RESET: lambda ws, a: ws.reset(),
    WorkspaceActionType.REOPEN_LAST_CLOSED_TAB: lambda ws, a: ws.reopen_last_closed_tab(),
    WorkspaceActionType.SET_ACTIVE: lambda ws, a: ws.set_active_tab(a.tab_id or "", live_scroll=a.live_scroll),
    WorkspaceActionType.UPDATE_SCROLL: lambda ws, a: ws.update_scroll_position(a.tab_id or "", a.offset or 0),
    WorkspaceActionType.UPDATE_SPLIT_SCROLL: lambda ws, a: ws.update_split_scroll(a.offset or 0),
    WorkspaceActionType.UPDATE_TITLE: lambda ws, a: ws.update_tab_title(
        a.tab_id or "", a.title or "", dynamic=a.dynamic
    ),
    WorkspaceActionType.UPDATE_ICON: lambda ws, a: ws.update_tab_icon(a.tab_id or "", a.icon or ""),
    WorkspaceActionType.SET_TAB_DIRTY: lambda ws, a: ws.set_tab_dirty(a.tab_id or "", bool(a.dirty)),
    WorkspaceActionType.REORDER: lambda ws, a: ws.reorder_tabs(a.from_index or 0, a.to_index or 0),
    WorkspaceActionType.PIN_TAB: lambda ws, a: ws.pin_tab(a.tab_id or ""),
    WorkspaceActionType.UNPIN_TAB: lambda ws, a: ws.unpin_tab(a.tab_id or ""),
    WorkspaceActionType.CREATE_GROUP: lambda ws, a: ws.create_group(a.label or "", a.color or ""),
    WorkspaceActionType.UPDATE_GROUP: lambda ws, a: ws.update_group(a.group_id or "", label=a.label, color=a.color),
    WorkspaceActionType.DELETE_GROUP: lambda ws, a: ws.delete_group(a.group_id or ""),
    WorkspaceActionType.ASSIGN_TAB_TO_GROUP: lambda ws, a: ws.assign_tab_to_group(a.tab_id or "", a.group_id),
    WorkspaceActionType.SAVE_SESSION: lambda ws, a: ws.save_session(a.name or ""),
    WorkspaceActionType.LOAD_SESSION: lambda ws, a: ws.load_session(a.session_id or ""),
    WorkspaceActionType.DELETE_SESSION: lambda ws, a: ws.delete_session(a.session_id or ""),
    WorkspaceActionType.OPEN_SPLIT: lambda ws, a: ws.open_split(a.tab_id, SplitOrientation(a.orientation)),
    WorkspaceActionType.SELECT_SPLIT_TAB: lambda ws, a: ws.select_split_tab(a.tab_id or ""),
    WorkspaceActionType.CLOSE_SPLIT: lambda ws, a: ws.close_split(),
}


class WorkspaceService:
    """Tab workspace of one personel, rebuilt from storage on every call.

    The restorable tab list and the per-sitting state (split pane, reopen
    history, mounted panels) are stored under separate keys. Nothing is
    held between requests, so every worker sees the last write.
    """

    _lock = threading.RLock()

    def __init__(self, owner_id: str, storage: WorkspaceStorage, **workspace_kwargs: Any) -> None:
        self.owner_id = owner_id
        self.storage = storage
        self._workspace_kwargs = workspace_kwargs

    def load(self) -> TabWorkspace:
        with self._lock:
            workspace = self._restore()
            if workspace is None:
                # Store the fresh home tab so its id is stable across calls.
                workspace = TabWorkspace.with_home(**self._workspace_kwargs)
                self.save(workspace)
                return workspace
            self._restore_runtime(workspace)
            return workspace

    def _restore_runtime(self, workspace: TabWorkspace) -> None:
        raw_runtime = self.storage.get(RUNTIME_STORAGE_KEY)
        if raw_runtime is not None:
            try:
                workspace.restore_runtime(raw_runtime)
            except (TypeError, ValueError, KeyError):
                logger.warning(
                    "stored runtime tab state is unreadable, ignoring it",
                    exc_info=True,
                    extra={"context": {"owner_id": self.owner_id}},
                )

    def _restore(self) -> TabWorkspace | None:
        raw = self.storage.get(TAB_STORAGE_KEY)
        restored = None
        if raw is not None:
            try:
                restored = TabWorkspace.from_persisted(raw, **self._workspace_kwargs)
            except (TypeError, ValueError, KeyError):
                logger.warning(
                    "stored workspace state is unreadable, starting fresh",
                    exc_info=True,
                    extra={"context": {"owner_id": self.owner_id}},
                )
        return restored

    def save(self, workspace: TabWorkspace) -> None:
        self.storage.set(TAB_STORAGE_KEY, workspace.to_persisted())
        self.storage.set(RUNTIME_STORAGE_KEY, workspace.to_runtime())

    def apply(self, action: WorkspaceAction) -> tuple[TabWorkspace, Any]:
        """Run one operation and write the result through to storage.

        Unknown tab, group or session ids answer 404. An operation that
        leaves the workspace unchanged still succeeds and yields ``False``.
        """
        missing = [name for name in REQUIRED_FIELDS.get(action.type, ()) if getattr(action, name) is None]
        if missing:
            raise ValidationError(
                details={
                    "fieldErrors": {name: ["Bu alan zorunludur"] for name in missing},
                    "formErrors": [],
                }
            )
        with self._lock:
            workspace = self.load()
            self._check_references(workspace, action)
            result = HANDLERS[action.type](workspace, action)
            self.save(workspace)
        return workspace, result

    def _check_references(self, workspace: TabWorkspace, action: WorkspaceAction) -> None:
        if action.type in GROUP_ACTIONS and action.group_id is not None:
            if workspace.get_group(action.group_id) is None:
                raise NotFoundError("Sekme grubu bulunamadı")
        if action.type in SESSION_ACTIONS and workspace.get_session(action.session_id or "") is None:
            raise NotFoundError("Kayıtlı oturum bulunamadı")
        if action.type in TAB_ACTIONS and action.tab_id is not None:
            if workspace.get_tab(action.tab_id) is None:
                raise NotFoundError("Sekme bulunamadı")

    def preferences(self) -> WorkspacePreferences:
        return WorkspacePreferences(
            locale=self.storage.get(LOCALE_STORAGE_KEY) or DEFAULT_LOCALE,
            theme=self.storage.get(THEME_STORAGE_KEY) or DEFAULT_THEME,
        )

    def update_preferences(self, payload: WorkspacePreferences) -> WorkspacePreferences:
        if payload.locale is not None:
            self.storage.set(LOCALE_STORAGE_KEY, payload.locale)
        if payload.theme is not None:
            self.storage.set(THEME_STORAGE_KEY, payload.theme)
        return self.preferences()
