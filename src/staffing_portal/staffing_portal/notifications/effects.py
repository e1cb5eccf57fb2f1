from __future__ import annotations

import logging
from typing import Callable

from .model import NotifyEvent

logger = logging.getLogger(__name__)


def build_effects(build: Callable[[], NotifyEvent]) -> tuple[NotifyEvent, ...]:
    """Build the notification for a change that is already saved.

    Looking up recipients or names can fail; that is logged and the operation
    still succeeds, just without the notification.
    """

    try:
        return (build(),)
    except Exception:
        logger.exception("Could not build notification")
        return ()
