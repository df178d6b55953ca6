"""
TabScope Backend — System Tab Seeding
=======================================

What:  The fixed catalog of system-default tabs and the idempotent seeder.
How:   Reads the keys already present at system scope and inserts only the
       missing ones. Running it twice inserts nothing the second time.
When:  On application startup (settings.seed_on_startup) and from the
       `tabscope-seed` console script.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from tabscope.config import settings
from tabscope.exceptions import DatabaseError
from tabscope.scopes import Scope
from tabscope.services.store import TabStore

logger = logging.getLogger(__name__)


def _tab(key: str, label: str, icon: str, order: int, category: str) -> dict:
    return {
        "key": key,
        "label": label,
        "icon": icon,
        "content_type": "builtin_component",
        "display_order": order,
        "category": category,
    }


SYSTEM_TABS: List[dict] = [
    _tab("overview", "Overview", "User", 10, "clinical"),
    _tab("visits", "Visits", "Calendar", 20, "clinical"),
    _tab("lab", "Lab Results", "TestTube", 30, "clinical"),
    _tab("medications", "Medications", "Pill", 40, "clinical"),
    _tab("vitals", "Vitals", "Activity", 50, "clinical"),
    _tab("documents", "Documents", "FileText", 60, "administrative"),
    _tab("billing", "Billing", "CreditCard", 70, "administrative"),
    _tab("insurance", "Insurance", "Shield", 80, "administrative"),
    _tab("appointments", "Appointments", "CalendarDays", 90, "administrative"),
    _tab("history", "History", "History", 100, "clinical"),
    _tab("med-reviews", "Reviews", "FileCheck", 110, "clinical"),
    _tab("communication", "Chat", "MessageSquare", 120, "administrative"),
    _tab("immunizations", "Vaccines", "Syringe", 130, "clinical"),
    _tab("timeline", "Timeline", "Clock", 140, "clinical"),
    _tab("safety", "Safety", "Shield", 150, "clinical"),
    _tab("specialty", "Specialty", "Stethoscope", 160, "clinical"),
    _tab("allergies", "Allergies", "AlertTriangle", 170, "clinical"),
    _tab("imaging", "Imaging", "Scan", 180, "clinical"),
    _tab("procedures", "Procedures", "Scissors", 190, "clinical"),
    _tab("referrals", "Referrals", "Users", 200, "clinical"),
    _tab("care-plans", "Care Plans", "ClipboardList", 210, "clinical"),
    _tab("notes", "Notes", "BookOpen", 220, "clinical"),
    _tab("longevity", "Longevity", "Timer", 230, "clinical"),
]


async def seed_system_tabs(store: TabStore, catalog: Optional[Sequence[dict]] = None) -> int:
    """
    Insert catalog entries whose key is missing at system scope.

    Returns:
        Number of records inserted.
    """
    catalog = SYSTEM_TABS if catalog is None else catalog
    existing = await store.system_keys()
    missing = [tab for tab in catalog if tab["key"] not in existing]
    if not missing:
        logger.info("All %d system tabs already present", len(existing))
        return 0

    for tab in missing:
        await store.insert(
            {
                **tab,
                "settings": {},
                "scope": Scope.SYSTEM,
                "scope_owner_id": None,
                "organization_id": None,
                "is_visible": True,
                "is_mandatory": tab.get("is_mandatory", False),
                "is_system_default": True,
                "created_by": None,
            }
        )
    logger.info(
        "Seeded %d system tabs: %s",
        len(missing), ", ".join(tab["key"] for tab in missing),
    )
    return len(missing)


@retry(
    stop=stop_after_attempt(settings.seed_retry_attempts),
    wait=wait_exponential_jitter(
        initial=settings.seed_retry_min_wait,
        max=settings.seed_retry_max_wait,
    ),
    retry=retry_if_exception_type(DatabaseError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def seed_with_retry() -> int:
    """
    Seed in a dedicated session, retrying while the database is unreachable.

    The database container often starts after the API; DatabaseError is
    retried with exponential backoff, anything else propagates at once.
    """
    from sqlalchemy.exc import SQLAlchemyError

    from tabscope.database import async_session_factory
    from tabscope.services.store import SqlAlchemyTabStore

    async with async_session_factory() as session:
        try:
            inserted = await seed_system_tabs(SqlAlchemyTabStore(session))
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError(
                message="Seeding failed",
                context={"original_error": type(e).__name__},
            )
        except Exception:
            await session.rollback()
            raise
    return inserted


def main() -> None:
    """Console entry point: `tabscope-seed`."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    from tabscope.database import dispose_engine

    async def _run() -> int:
        try:
            return await seed_with_retry()
        finally:
            await dispose_engine()

    inserted = asyncio.run(_run())
    logger.info("Seeding complete: %d inserted", inserted)


if __name__ == "__main__":
    main()
