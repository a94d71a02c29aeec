from __future__ import annotations

from dataclasses import dataclass, field

HOME_PATH = "/"
NEW_RECORD_SEGMENT = "yeni"
FALLBACK_TITLE = "Sayfa"
FALLBACK_ICON = "FileText"


@dataclass(frozen=True)
class PageDefinition:
    key: str
    title: str
    icon: str
    dynamic: bool = False


@dataclass(frozen=True)
class PageMatch:
    pattern: str
    page: PageDefinition
    params: dict[str, str] = field(default_factory=dict)


STATIC_PAGES: dict[str, PageDefinition] = {
    "/": PageDefinition("home", "Ana Sayfa", "Home"),
    "/kisiler": PageDefinition("kisiler", "Kişiler", "Users"),
    "/kisiler/yeni": PageDefinition("kisi_yeni", "Yeni Kişi", "UserPlus"),
    "/numaralar": PageDefinition("numaralar", "Numaralar", "Phone"),
    "/araclar": PageDefinition("araclar", "Araçlar", "Car"),
    "/tanitimlar": PageDefinition("tanitimlar", "Tanıtımlar", "Megaphone"),
    "/operasyonlar": PageDefinition("operasyonlar", "Operasyonlar", "Workflow"),
    "/takipler": PageDefinition("takipler", "Takipler", "CalendarClock"),
    "/takipler/yeni": PageDefinition("takip_yeni", "Yeni Takip", "CalendarPlus"),
    "/alarmlar": PageDefinition("alarmlar", "Alarmlar", "Bell"),
    "/lokasyonlar": PageDefinition("lokasyonlar", "Lokasyonlar", "MapPin"),
    "/lokasyonlar/iller": PageDefinition("iller", "İller", "MapPin"),
    "/lokasyonlar/ilceler": PageDefinition("ilceler", "İlçeler", "MapPin"),
    "/lokasyonlar/mahalleler": PageDefinition("mahalleler", "Mahalleler", "MapPin"),
    "/marka-model": PageDefinition("marka_model", "Marka Model", "Car"),
    "/marka-model/markalar": PageDefinition("markalar", "Markalar", "Car"),
    "/marka-model/modeller": PageDefinition("modeller", "Modeller", "Car"),
    "/personel": PageDefinition("personel", "Personel", "UserCog"),
    "/personel/yeni": PageDefinition("personel_yeni", "Yeni Personel", "UserPlus"),
    "/ayarlar": PageDefinition("ayarlar", "Ayarlar", "Settings"),
    "/loglar": PageDefinition("loglar", "Loglar", "Activity"),
}

# ``/<section>/<id>`` detail pages; ``yeni`` is reserved for the create form.
DETAIL_PAGES: dict[str, PageDefinition] = {
    "kisiler": PageDefinition("kisi_detay", "Kişi Detay", "User", dynamic=True),
    "takipler": PageDefinition("takip_detay", "Takip Detay", "CalendarClock", dynamic=True),
    "tanitimlar": PageDefinition("tanitim_detay", "Tanıtım Detay", "Megaphone", dynamic=True),
    "operasyonlar": PageDefinition("operasyon_detay", "Operasyon Detay", "Workflow", dynamic=True),
    "personel": PageDefinition("personel_detay", "Personel Detay", "UserCog", dynamic=True),
    "loglar": PageDefinition("log_detay", "Log Detay", "Activity", dynamic=True),
}


class PageRegistry:
    """Static path to page lookup built once at import time."""

    def __init__(
        self,
        static_pages: dict[str, PageDefinition] | None = None,
        detail_pages: dict[str, PageDefinition] | None = None,
    ) -> None:
        self._static = dict(STATIC_PAGES if static_pages is None else static_pages)
        self._detail = dict(DETAIL_PAGES if detail_pages is None else detail_pages)

    def resolve(self, path: str) -> PageMatch | None:
        normalized = normalize_path(path)
        page = self._static.get(normalized)
        if page is not None:
            return PageMatch(pattern=normalized, page=page)

        segments = [segment for segment in normalized.split("/") if segment]
        if len(segments) == 2 and segments[1] != NEW_RECORD_SEGMENT:
            detail = self._detail.get(segments[0])
            if detail is not None:
                return PageMatch(
                    pattern=f"/{segments[0]}/[id]",
                    page=detail,
                    params={"id": segments[1]},
                )
        return None

    def title_for(self, path: str) -> str:
        match = self.resolve(path)
        if match is not None:
            return match.page.title
        segments = [segment for segment in normalize_path(path).split("/") if segment]
        return segments[-1] if segments else FALLBACK_TITLE

    def icon_for(self, path: str) -> str:
        match = self.resolve(path)
        return match.page.icon if match is not None else FALLBACK_ICON


def normalize_path(path: str) -> str:
    bare = path.split("?", 1)[0].split("#", 1)[0]
    if not bare.startswith("/"):
        bare = f"/{bare}"
    if len(bare) > 1:
        bare = bare.rstrip("/") or HOME_PATH
    return bare


page_registry = PageRegistry()
