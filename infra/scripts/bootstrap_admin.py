"""Create the first ADMIN personel from environment variables.

Does nothing once any personel row exists. Run after migrations:

    BOOTSTRAP_ADMIN_VISIBLE_ID=100001 BOOTSTRAP_ADMIN_PAROLA=... \
        python infra/scripts/bootstrap_admin.py
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from app.domain.models import PersonelCreate  # noqa: E402
from app.infra.logging_config import configure_logging  # noqa: E402
from app.services.personel_service import PersonelService  # noqa: E402

logger = logging.getLogger("bootstrap_admin")


def main() -> int:
    configure_logging()
    visible_id = os.getenv("BOOTSTRAP_ADMIN_VISIBLE_ID")
    parola = os.getenv("BOOTSTRAP_ADMIN_PAROLA")
    if not visible_id or not parola:
        logger.error("BOOTSTRAP_ADMIN_VISIBLE_ID and BOOTSTRAP_ADMIN_PAROLA are required")
        return 2

    payload = PersonelCreate(
        visible_id=visible_id,
        ad=os.getenv("BOOTSTRAP_ADMIN_AD", "Sistem"),
        soyad=os.getenv("BOOTSTRAP_ADMIN_SOYAD", "Yöneticisi"),
        parola=parola,
    )
    created = PersonelService().bootstrap_admin(payload)
    if created is None:
        logger.info("personel table is not empty, nothing to do")
        return 0
    logger.info("admin created", extra={"context": {"id": created.id, "visible_id": created.visible_id}})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
