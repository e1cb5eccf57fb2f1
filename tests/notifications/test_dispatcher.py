import logging

from src.staffing_portal.staffing_portal.core.enums import NotificationCategory
from src.staffing_portal.staffing_portal.notifications.dispatcher import LoggingNotificationDispatcher, dispatch_events
from src.staffing_portal.staffing_portal.notifications.model import NotifyEvent


class RecordingDispatcher:
    def __init__(self, fail_on=()):
        self.sent = []
        self._fail_on = set(fail_on)

    def notify(self, user_ids, title, body, metadata):
        if title in self._fail_on:
            raise RuntimeError("push gateway down")
        self.sent.append((list(user_ids), title, body, metadata))


def _event(title, user_ids=(9,)):
    return NotifyEvent(
        user_ids=tuple(user_ids),
        title=title,
        body="Total hours: 8.50",
        category=NotificationCategory.ATTENDANCE,
        entity_type="ATTENDANCE",
        entity_id=3,
        data={"type": "CHECK_OUT"},
    )


def test_dispatch_passes_metadata():
    d = RecordingDispatcher()

    assert dispatch_events(d, [_event("Nima checked out")]) == 1

    (user_ids, title, body, metadata) = d.sent[0]
    assert user_ids == [9]
    assert metadata == {
        "category": "ATTENDANCE",
        "entity_type": "ATTENDANCE",
        "entity_id": 3,
        "data": {"type": "CHECK_OUT"},
    }


def test_failures_are_logged_and_swallowed(caplog):
    d = RecordingDispatcher(fail_on={"first"})

    with caplog.at_level(logging.ERROR):
        delivered = dispatch_events(d, [_event("first"), _event("second")])

    assert delivered == 1
    assert [t for _, t, _, _ in d.sent] == ["second"]
    assert "Notification dispatch failed" in caplog.text


def test_events_without_recipients_are_skipped():
    d = RecordingDispatcher()

    assert dispatch_events(d, [_event("nobody", user_ids=())]) == 0
    assert d.sent == []


def test_logging_dispatcher(caplog):
    with caplog.at_level(logging.INFO):
        dispatch_events(LoggingNotificationDispatcher(), [_event("Nima checked out")])

    assert "Nima checked out" in caplog.text
