from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Protocol, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import NotifyEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def notify(self, user_ids: Sequence[int], title: str, body: str, metadata: dict[str, Any]) -> None:
        raise NotImplementedError


def dispatch_events(dispatcher: NotificationDispatcher, events: Iterable[NotifyEvent]) -> int:
    """Fire events best-effort; returns how many were delivered.

    A failing event is logged and skipped, it never fails the operation that
    produced it.
    """

    delivered = 0
    for event in events:
        if not event.user_ids:
            continue
        try:
            dispatcher.notify(list(event.user_ids), event.title, event.body, event.metadata())
            delivered += 1
        except Exception:
            logger.exception(
                "Notification dispatch failed (title=%r, recipients=%d)",
                event.title,
                len(event.user_ids),
            )
    return delivered


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Development backend: writes notifications to the log only."""

    def notify(self, user_ids: Sequence[int], title: str, body: str, metadata: dict[str, Any]) -> None:
        logger.info("notify %s -> %s: %s | %s", metadata.get("category"), list(user_ids), title, body)


class MySQLNotificationDispatcher(NotificationDispatcher):
    """In-app notifications: one ``notifications`` row plus one receipt per recipient."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(self, user_ids: Sequence[int], title: str, body: str, metadata: dict[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(category, title, body, entity_type, entity_id, data)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    metadata.get("category"),
                    title,
                    body,
                    metadata.get("entity_type"),
                    metadata.get("entity_id"),
                    json.dumps(metadata.get("data") or {}, default=_json_default),
                ),
            )
            notification_id = int(cur.lastrowid)
            cur.executemany(
                """
                INSERT INTO notification_receipts(notification_id, user_id, channel)
                VALUES(%s,%s,%s)
                """,
                [(notification_id, int(uid), "IN_APP") for uid in user_ids],
            )


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return str(value)
