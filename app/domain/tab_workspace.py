"""Tab workspace for the browser shell.

An ordered set of open pages with a single active tab, pinned tabs, colour
groups, saved sessions and an optional split pane. The state is plain data;
the shell persists it under ``TAB_STORAGE_KEY`` and asks the workspace what
to render.

Panels are mounted lazily: a tab's page is rendered only after the tab has
been active once and is then kept mounted (hidden) until the tab closes.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any
from uuid import uuid4

from app.domain.page_registry import HOME_PATH, PageRegistry, normalize_path, page_registry

TAB_STORAGE_KEY = "altay_tabs_state"
TAB_STORAGE_VERSION = 1
# Per-sitting state kept apart from the restorable tab list.
RUNTIME_STORAGE_KEY = "altay_tabs_runtime"
LOCALE_STORAGE_KEY = "altay_locale"
THEME_STORAGE_KEY = "altay_theme"

DEFAULT_MAX_TABS = 15
CLOSED_HISTORY_LIMIT = 10
HOME_ICON = "Home"


class SplitOrientation(StrEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class PaneKind(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass
class Tab:
    id: str
    path: str
    title: str
    icon: str | None = None
    params: dict[str, str] = field(default_factory=dict)
    is_pinned: bool = False
    is_dirty: bool = False
    is_dynamic: bool = False
    group_id: str | None = None
    scroll_position: int = 0
    opened_at: float = 0.0
    last_active_at: float = 0.0
    has_been_active: bool = False

    @property
    def is_home(self) -> bool:
        return self.path == HOME_PATH


@dataclass
class TabGroup:
    id: str
    label: str
    color: str


@dataclass
class TabSession:
    id: str
    name: str
    tabs: list[dict[str, Any]]
    created_at: float


@dataclass
class SplitState:
    primary_tab_id: str
    secondary_tab_id: str | None = None
    selector_open: bool = True
    orientation: SplitOrientation = SplitOrientation.HORIZONTAL
    secondary_scroll_position: int = 0


@dataclass(frozen=True)
class PanelPlan:
    tab_id: str
    path: str
    pane: PaneKind
    visible: bool
    page_key: str | None
    params: dict[str, str]
    not_found: bool
    restore_scroll: int | None = None


@dataclass(frozen=True)
class RenderPlan:
    panels: list[PanelPlan]
    split_selector_open: bool = False
    split_orientation: SplitOrientation | None = None


TAB_FIELDS = frozenset(item.name for item in fields(Tab))

# Fields written to storage for each tab.
PERSISTED_TAB_FIELDS = (
    "id",
    "path",
    "title",
    "icon",
    "scroll_position",
    "opened_at",
    "is_dynamic",
    "is_pinned",
    "group_id",
)


class TabWorkspace:
    def __init__(
        self,
        *,
        registry: PageRegistry | None = None,
        max_tabs: int = DEFAULT_MAX_TABS,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self.registry = registry or page_registry
        self.max_tabs = max_tabs
        self._clock = clock
        self._new_id = id_factory
        self.tabs: list[Tab] = []
        self.active_tab_id: str | None = None
        self.groups: list[TabGroup] = []
        self.sessions: list[TabSession] = []
        self.closed_tabs: list[Tab] = []
        self.split: SplitState | None = None

    @classmethod
    def with_home(cls, **kwargs: Any) -> TabWorkspace:
        workspace = cls(**kwargs)
        workspace.open_tab(HOME_PATH)
        return workspace

    # ------------------------------------------------------------------ lookups

    def get_tab(self, tab_id: str) -> Tab | None:
        return next((tab for tab in self.tabs if tab.id == tab_id), None)

    def get_tab_by_path(self, path: str) -> Tab | None:
        normalized = normalize_path(path)
        return next((tab for tab in self.tabs if tab.path == normalized), None)

    @property
    def active_tab(self) -> Tab | None:
        return self.get_tab(self.active_tab_id) if self.active_tab_id else None

    def _index(self, tab_id: str) -> int:
        for index, tab in enumerate(self.tabs):
            if tab.id == tab_id:
                return index
        return -1

    # ------------------------------------------------------------------ open / activate

    def open_tab(self, path: str, *, background: bool = False, live_scroll: int | None = None) -> Tab:
        """Open ``path`` or focus the tab already showing it.

        A background open of an existing path leaves the workspace untouched.
        """
        normalized = normalize_path(path)
        existing = self.get_tab_by_path(normalized)
        if existing is not None:
            if not background:
                self._activate(existing, live_scroll)
            return existing

        now = self._clock()
        match = self.registry.resolve(normalized)
        tab = Tab(
            id=self._new_id(),
            path=normalized,
            title=self.registry.title_for(normalized),
            icon=self.registry.icon_for(normalized),
            params=dict(match.params) if match else {},
            is_pinned=normalized == HOME_PATH,
            opened_at=now,
            last_active_at=now,
        )
        self.tabs.append(tab)
        self._evict_overflow(keep=tab)
        if not background:
            self._activate(tab, live_scroll)
        return tab

    def _evict_overflow(self, *, keep: Tab) -> None:
        while len(self.tabs) > self.max_tabs:
            candidates = [tab for tab in self.tabs if not tab.is_home and tab.id != keep.id]
            if not candidates:
                return
            victim = min(candidates, key=lambda tab: tab.last_active_at)
            self._remove(victim)
            if self.active_tab_id == victim.id:
                self.active_tab_id = None
                self._activate(keep, None)

    def set_active_tab(self, tab_id: str, *, live_scroll: int | None = None) -> bool:
        """Activate ``tab_id``.

        ``live_scroll`` is the outgoing panel's current offset; it replaces the
        stored offset only when larger.
        """
        tab = self.get_tab(tab_id)
        if tab is None:
            return False
        self._activate(tab, live_scroll)
        return True

    def _activate(self, tab: Tab, live_scroll: int | None) -> None:
        outgoing = self.active_tab
        if outgoing is not None and outgoing.id != tab.id and live_scroll is not None:
            if live_scroll > outgoing.scroll_position:
                outgoing.scroll_position = live_scroll
        self.active_tab_id = tab.id
        tab.has_been_active = True
        tab.last_active_at = self._clock()

    def scroll_restore(self) -> int | None:
        tab = self.active_tab
        if tab is None or tab.scroll_position <= 0:
            return None
        return tab.scroll_position

    def update_scroll_position(self, tab_id: str, offset: int) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None or tab.id == self.active_tab_id:
            return False
        if offset <= tab.scroll_position:
            return False
        tab.scroll_position = offset
        return True

    def update_split_scroll(self, offset: int) -> bool:
        if self.split is None or self.split.secondary_tab_id is None:
            return False
        self.split.secondary_scroll_position = max(0, offset)
        return True

    # ------------------------------------------------------------------ close

    def _remove(self, tab: Tab) -> None:
        self.tabs = [item for item in self.tabs if item.id != tab.id]
        if self.split is not None:
            if self.split.primary_tab_id == tab.id:
                self.split = None
            elif self.split.secondary_tab_id == tab.id:
                self.split.secondary_tab_id = None
                self.split.selector_open = True
                self.split.secondary_scroll_position = 0

    def _remember_closed(self, tab: Tab) -> None:
        self.closed_tabs.append(tab)
        if len(self.closed_tabs) > CLOSED_HISTORY_LIMIT:
            self.closed_tabs = self.closed_tabs[-CLOSED_HISTORY_LIMIT:]

    def close_tab(self, tab_id: str) -> bool:
        """Remove a tab; a closed active tab hands focus to its left neighbour.

        Closing the leftmost active tab focuses the new first tab. Pin state
        is not checked here.
        """
        index = self._index(tab_id)
        if index == -1:
            return False
        tab = self.tabs[index]
        was_active = self.active_tab_id == tab_id
        self._remove(tab)
        self._remember_closed(tab)
        if was_active:
            self.active_tab_id = None
            if self.tabs:
                self._activate(self.tabs[max(index - 1, 0)], None)
        return True

    def close_other_tabs(self, tab_id: str) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None:
            return False
        keep_ids = {tab.id} | {item.id for item in self.tabs if item.is_home}
        for item in [item for item in self.tabs if item.id not in keep_ids]:
            self._remove(item)
        self._activate(tab, None)
        return True

    def close_tabs_to_right(self, tab_id: str) -> bool:
        index = self._index(tab_id)
        if index == -1:
            return False
        for item in [item for position, item in enumerate(self.tabs) if position > index and not item.is_home]:
            self._remove(item)
        if self.active_tab is None:
            self._activate(self.tabs[index], None)
        return True

    def close_all_tabs(self) -> None:
        """Close every tab except home."""
        for item in [item for item in self.tabs if not item.is_home]:
            self._remove(item)
        home = next((tab for tab in self.tabs if tab.is_home), None)
        self.active_tab_id = None
        if home is not None:
            self._activate(home, None)

    def reset(self) -> None:
        """Drop every unpinned tab, the split pane and the reopen history."""
        self.tabs = [tab for tab in self.tabs if tab.is_pinned]
        self.split = None
        self.closed_tabs = []
        if self.active_tab is None:
            self.active_tab_id = None
            if self.tabs:
                self._activate(self.tabs[0], None)

    def reopen_last_closed_tab(self) -> Tab | None:
        if not self.closed_tabs:
            return None
        closed = self.closed_tabs.pop()
        existing = self.get_tab_by_path(closed.path)
        if existing is not None:
            self._activate(existing, None)
            return existing
        now = self._clock()
        reopened = Tab(
            id=self._new_id(),
            path=closed.path,
            title=closed.title,
            icon=closed.icon,
            params=dict(closed.params),
            is_pinned=closed.is_pinned,
            is_dynamic=closed.is_dynamic,
            group_id=closed.group_id if self.get_group(closed.group_id) else None,
            scroll_position=closed.scroll_position,
            opened_at=now,
            last_active_at=now,
        )
        self.tabs.append(reopened)
        self._evict_overflow(keep=reopened)
        self._activate(reopened, None)
        return reopened

    # ------------------------------------------------------------------ tab attributes

    def update_tab_title(self, tab_id: str, title: str, *, dynamic: bool = True) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None or tab.is_home:
            return False
        tab.title = title
        tab.is_dynamic = dynamic
        return True

    def update_tab_icon(self, tab_id: str, icon: str) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None:
            return False
        tab.icon = icon
        return True

    def set_tab_dirty(self, tab_id: str, dirty: bool) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None:
            return False
        tab.is_dirty = dirty
        return True

    def reorder_tabs(self, from_index: int, to_index: int) -> bool:
        size = len(self.tabs)
        if not (0 <= from_index < size and 0 <= to_index < size) or from_index == to_index:
            return False
        if self.tabs[0].is_home and 0 in (from_index, to_index):
            return False
        moved = self.tabs.pop(from_index)
        self.tabs.insert(to_index, moved)
        return True

    def pin_tab(self, tab_id: str) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None or tab.is_pinned:
            return False
        tab.is_pinned = True
        others = [item for item in self.tabs if item.id != tab.id]
        home = [item for item in others if item.is_home]
        pinned = [item for item in others if item.is_pinned and not item.is_home]
        unpinned = [item for item in others if not item.is_pinned and not item.is_home]
        self.tabs = [*home, *pinned, tab, *unpinned]
        return True

    def unpin_tab(self, tab_id: str) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None or not tab.is_pinned or tab.is_home:
            return False
        tab.is_pinned = False
        return True

    # ------------------------------------------------------------------ groups

    def get_group(self, group_id: str | None) -> TabGroup | None:
        if group_id is None:
            return None
        return next((group for group in self.groups if group.id == group_id), None)

    def get_session(self, session_id: str) -> TabSession | None:
        return next((item for item in self.sessions if item.id == session_id), None)

    def create_group(self, label: str, color: str) -> TabGroup:
        group = TabGroup(id=self._new_id(), label=label, color=color)
        self.groups.append(group)
        return group

    def update_group(self, group_id: str, *, label: str | None = None, color: str | None = None) -> bool:
        group = self.get_group(group_id)
        if group is None:
            return False
        if label is not None:
            group.label = label
        if color is not None:
            group.color = color
        return True

    def delete_group(self, group_id: str) -> bool:
        if self.get_group(group_id) is None:
            return False
        self.groups = [group for group in self.groups if group.id != group_id]
        for tab in self.tabs:
            if tab.group_id == group_id:
                tab.group_id = None
        return True

    def assign_tab_to_group(self, tab_id: str, group_id: str | None) -> bool:
        tab = self.get_tab(tab_id)
        if tab is None:
            return False
        if group_id is not None and self.get_group(group_id) is None:
            return False
        tab.group_id = group_id
        return True

    # ------------------------------------------------------------------ sessions

    def save_session(self, name: str) -> TabSession:
        session = TabSession(
            id=self._new_id(),
            name=name,
            tabs=[_persist_tab(tab) for tab in self.tabs],
            created_at=self._clock(),
        )
        self.sessions.append(session)
        return session

    def load_session(self, session_id: str) -> bool:
        session = self.get_session(session_id)
        if session is None:
            return False
        now = self._clock()
        self.tabs = [self._restore_tab(data, now) for data in session.tabs]
        for tab in self.tabs:
            if self.get_group(tab.group_id) is None:
                tab.group_id = None
        self.split = None
        self.active_tab_id = None
        if self.tabs:
            self._activate(self.tabs[0], None)
        return True

    def delete_session(self, session_id: str) -> bool:
        before = len(self.sessions)
        self.sessions = [item for item in self.sessions if item.id != session_id]
        return len(self.sessions) != before

    # ------------------------------------------------------------------ split

    def open_split(
        self,
        tab_id: str | None = None,
        orientation: SplitOrientation = SplitOrientation.HORIZONTAL,
    ) -> bool:
        primary = self.get_tab(tab_id) if tab_id else None
        if primary is None:
            if tab_id is not None or not self.tabs:
                return False
            primary = self.tabs[0]
        self.split = SplitState(primary_tab_id=primary.id, orientation=orientation)
        return True

    def select_split_tab(self, tab_id: str) -> bool:
        tab = self.get_tab(tab_id)
        if self.split is None or tab is None:
            return False
        self.split.secondary_tab_id = tab.id
        self.split.selector_open = False
        self.split.secondary_scroll_position = 0
        return True

    def close_split(self) -> None:
        self.split = None

    # ------------------------------------------------------------------ rendering

    def render_plan(self) -> RenderPlan:
        panels: list[PanelPlan] = []
        for tab in self.tabs:
            if not tab.has_been_active:
                continue
            visible = tab.id == self.active_tab_id
            panels.append(
                self._panel(
                    tab,
                    PaneKind.PRIMARY,
                    visible=visible,
                    restore_scroll=self.scroll_restore() if visible else None,
                )
            )
        if self.split is not None and self.split.secondary_tab_id is not None:
            secondary = self.get_tab(self.split.secondary_tab_id)
            if secondary is not None:
                offset = self.split.secondary_scroll_position
                panels.append(
                    self._panel(secondary, PaneKind.SECONDARY, visible=True, restore_scroll=offset or None)
                )
        return RenderPlan(
            panels=panels,
            split_selector_open=self.split.selector_open if self.split else False,
            split_orientation=self.split.orientation if self.split else None,
        )

    def _panel(self, tab: Tab, pane: PaneKind, *, visible: bool, restore_scroll: int | None) -> PanelPlan:
        match = self.registry.resolve(tab.path)
        return PanelPlan(
            tab_id=tab.id,
            path=tab.path,
            pane=pane,
            visible=visible,
            page_key=match.page.key if match else None,
            params=dict(match.params) if match else {},
            not_found=match is None,
            restore_scroll=restore_scroll,
        )

    # ------------------------------------------------------------------ persistence

    def to_persisted(self) -> dict[str, Any]:
        return {
            "version": TAB_STORAGE_VERSION,
            "tabs": [_persist_tab(tab) for tab in self.tabs],
            "active_tab_id": self.active_tab_id,
            "groups": [asdict(group) for group in self.groups],
            "sessions": [asdict(session) for session in self.sessions],
        }

    @classmethod
    def from_persisted(cls, data: Any, **kwargs: Any) -> TabWorkspace | None:
        """Rebuild a workspace from storage.

        Returns ``None`` for a foreign version or an empty tab list. Split
        state and the reopen history are never restored. Non-dynamic titles
        are re-derived from the page registry.
        """
        if not isinstance(data, dict) or data.get("version") != TAB_STORAGE_VERSION:
            return None
        raw_tabs = data.get("tabs")
        if not isinstance(raw_tabs, list) or not raw_tabs:
            return None

        workspace = cls(**kwargs)
        seen: set[str] = set()
        for raw in raw_tabs:
            if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
                continue
            tab = workspace._restore_tab(raw, None)
            if tab.id in seen or workspace.get_tab_by_path(tab.path) is not None:
                continue
            seen.add(tab.id)
            workspace.tabs.append(tab)
        if not workspace.tabs:
            return None

        workspace.groups = [
            TabGroup(id=str(item["id"]), label=str(item.get("label", "")), color=str(item.get("color", "")))
            for item in data.get("groups") or []
            if isinstance(item, dict) and "id" in item
        ]
        for tab in workspace.tabs:
            if workspace.get_group(tab.group_id) is None:
                tab.group_id = None
        workspace.sessions = [
            TabSession(
                id=str(item["id"]),
                name=str(item.get("name", "")),
                tabs=[tab for tab in item.get("tabs") or [] if isinstance(tab, dict)],
                created_at=float(item.get("created_at") or 0),
            )
            for item in data.get("sessions") or []
            if isinstance(item, dict) and "id" in item
        ]

        active = workspace.get_tab(str(data.get("active_tab_id") or "")) or workspace.tabs[0]
        workspace.active_tab_id = active.id
        active.has_been_active = True
        return workspace

    def _restore_tab(self, raw: dict[str, Any], now: float | None) -> Tab:
        path = normalize_path(str(raw["path"]))
        is_dynamic = bool(raw.get("is_dynamic"))
        opened_at = float(raw.get("opened_at") or 0)
        match = self.registry.resolve(path)
        title = str(raw.get("title") or "") if is_dynamic else ""
        return Tab(
            id=str(raw.get("id") or self._new_id()) if now is None else self._new_id(),
            path=path,
            title=title or self.registry.title_for(path),
            icon=HOME_ICON if path == HOME_PATH else (raw.get("icon") or self.registry.icon_for(path)),
            params=dict(match.params) if match else {},
            is_pinned=path == HOME_PATH or bool(raw.get("is_pinned")),
            is_dynamic=is_dynamic,
            group_id=raw.get("group_id"),
            scroll_position=max(0, int(raw.get("scroll_position") or 0)),
            opened_at=opened_at if now is None else now,
            last_active_at=opened_at if now is None else now,
        )

    def to_runtime(self) -> dict[str, Any]:
        return {
            "version": TAB_STORAGE_VERSION,
            "tabs": {
                tab.id: {
                    "last_active_at": tab.last_active_at,
                    "has_been_active": tab.has_been_active,
                    "is_dirty": tab.is_dirty,
                }
                for tab in self.tabs
            },
            "closed_tabs": [asdict(tab) for tab in self.closed_tabs],
            "split": asdict(self.split) if self.split else None,
        }

    def restore_runtime(self, data: Any) -> None:
        """Re-apply per-sitting state on top of a restored tab list.

        Entries naming tabs that are no longer open are dropped.
        """
        if not isinstance(data, dict) or data.get("version") != TAB_STORAGE_VERSION:
            return
        runtime_tabs = data.get("tabs") if isinstance(data.get("tabs"), dict) else {}
        for tab in self.tabs:
            raw = runtime_tabs.get(tab.id)
            if not isinstance(raw, dict):
                continue
            tab.last_active_at = float(raw.get("last_active_at") or tab.last_active_at)
            tab.has_been_active = tab.has_been_active or bool(raw.get("has_been_active"))
            tab.is_dirty = bool(raw.get("is_dirty"))

        self.closed_tabs = [
            Tab(**{name: item[name] for name in TAB_FIELDS if name in item})
            for item in data.get("closed_tabs") or []
            if isinstance(item, dict) and isinstance(item.get("id"), str) and isinstance(item.get("path"), str)
        ][-CLOSED_HISTORY_LIMIT:]

        raw_split = data.get("split")
        if not isinstance(raw_split, dict) or self.get_tab(str(raw_split.get("primary_tab_id"))) is None:
            self.split = None
            return
        split = SplitState(
            primary_tab_id=str(raw_split["primary_tab_id"]),
            orientation=SplitOrientation(raw_split.get("orientation") or SplitOrientation.HORIZONTAL),
        )
        secondary = self.get_tab(str(raw_split.get("secondary_tab_id") or ""))
        if secondary is not None:
            split.secondary_tab_id = secondary.id
            split.selector_open = bool(raw_split.get("selector_open"))
            split.secondary_scroll_position = max(0, int(raw_split.get("secondary_scroll_position") or 0))
        self.split = split

    def snapshot(self) -> dict[str, Any]:
        """Full in-memory state, including fields that are not persisted."""
        return {
            "tabs": [asdict(tab) for tab in self.tabs],
            "active_tab_id": self.active_tab_id,
            "groups": [asdict(group) for group in self.groups],
            "sessions": [{"id": item.id, "name": item.name, "tab_count": len(item.tabs)} for item in self.sessions],
            "closed_tab_count": len(self.closed_tabs),
            "split": asdict(self.split) if self.split else None,
            "max_tabs": self.max_tabs,
        }


def _persist_tab(tab: Tab) -> dict[str, Any]:
    return {name: getattr(tab, name) for name in PERSISTED_TAB_FIELDS}
