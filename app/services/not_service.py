from __future__ import annotations

from app.domain.models import Kisi, KisiNot
from app.services.resource_service import ParentRef, ResourceService


class NotService(ResourceService[KisiNot]):
    model = KisiNot
    entity_type = "Not"
    not_found_message = "Not bulunamadı"
    search_fields = ("icerik",)
    parents = (ParentRef("kisi_id", Kisi, "Kişi bulunamadı"),)

    def label(self, row: KisiNot) -> str | None:
        return row.icerik[:50]
