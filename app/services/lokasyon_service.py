from __future__ import annotations

from app.domain.models import Adres, Il, Ilce, Mahalle, Operasyon, Tanitim
from app.services.resource_service import Dependent, ParentRef, ResourceService


class IlService(ResourceService[Il]):
    model = Il
    entity_type = "Il"
    not_found_message = "İl bulunamadı"
    conflict_message = "Bu il adı veya plaka kodu zaten mevcut"
    search_fields = ("ad",)
    sortable_fields = frozenset({"ad", "plaka", "created_at"})
    default_sort = ("ad", "asc")
    dependents = (Dependent(Ilce, "il_id"),)


class IlceService(ResourceService[Ilce]):
    model = Ilce
    entity_type = "Ilce"
    not_found_message = "İlçe bulunamadı"
    conflict_message = "Bu ilde aynı isimde ilçe zaten mevcut"
    search_fields = ("ad",)
    sortable_fields = frozenset({"ad", "created_at"})
    default_sort = ("ad", "asc")
    dependents = (Dependent(Mahalle, "ilce_id"),)
    parents = (ParentRef("il_id", Il, "İl bulunamadı"),)


class MahalleService(ResourceService[Mahalle]):
    model = Mahalle
    entity_type = "Mahalle"
    not_found_message = "Mahalle bulunamadı"
    conflict_message = "Bu ilçede aynı isimde mahalle zaten mevcut"
    search_fields = ("ad",)
    sortable_fields = frozenset({"ad", "created_at"})
    default_sort = ("ad", "asc")
    dependents = (
        Dependent(Adres, "mahalle_id"),
        Dependent(Tanitim, "mahalle_id"),
        Dependent(Operasyon, "mahalle_id"),
    )
    parents = (ParentRef("ilce_id", Ilce, "İlçe bulunamadı"),)
