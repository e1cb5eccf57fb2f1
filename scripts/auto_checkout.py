"""Nightly auto-checkout sweep, meant to be run from cron near civil midnight.

    APP_ENV=production python scripts/auto_checkout.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staffing_portal.staffing_portal.container import build_container
from src.staffing_portal.staffing_portal.notifications.dispatcher import dispatch_events

logger = logging.getLogger("auto_checkout")


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        notifications_backend=getattr(settings, "NOTIFICATIONS_BACKEND", "mysql"),
    )
    result = container.attendance_service.auto_checkout()
    if not result.ok:
        logger.error("Auto-checkout failed: %s", result.message)
        return 1

    dispatch_events(container.notifier, result.effects)
    report = result.value
    for outcome in report.results:
        if not outcome.success:
            logger.warning("session %s (user %s) not closed: %s", outcome.session_id, outcome.user_id, outcome.error)
    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
