# backend/crewtech/services/notifications.py
from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

from sqlalchemy import insert
from sqlalchemy.orm import Session

from crewtech.models.notification import Notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    """One outbound message produced by a transition."""
    recipient: str
    title: str
    message: str
    level: str = "info"  # info | success | warning | error
    category: str = "mission"
    mission_id: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class NotificationDispatcher(Protocol):
    def dispatch(self, events: Sequence[NotificationEvent]) -> None: ...


class RecordingDispatcher:
    """Keeps dispatched events in memory (tests, dry runs)."""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def dispatch(self, events: Sequence[NotificationEvent]) -> None:
        self.events.extend(events)

    def for_recipient(self, recipient: str) -> List[NotificationEvent]:
        return [e for e in self.events if e.recipient == recipient]


class SqlNotificationDispatcher:
    """Persists events as in-app notifications, one row per event."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def dispatch(self, events: Sequence[NotificationEvent]) -> None:
        if not events:
            return
        rows = [
            dict(
                id=f"notif-{uuid.uuid4().hex}",
                recipient=e.recipient,
                level=e.level,
                category=e.category,
                title=e.title,
                message=e.message,
                mission_id=e.mission_id,
                meta=e.metadata,
                read=False,
            )
            for e in events
        ]
        with self._session_factory() as s:
            s.execute(insert(Notification), rows)
            s.commit()
        logger.info("Dispatched %d notification(s): %s", len(rows), ", ".join(e.title for e in events))
