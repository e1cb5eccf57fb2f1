from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.enums import NotificationCategory


@dataclass(frozen=True)
class NotifyEvent:
    """A notification the caller should fire once the core operation has committed."""

    user_ids: tuple[int, ...]
    title: str
    body: str
    category: NotificationCategory
    entity_type: str
    entity_id: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)

    def metadata(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "data": dict(self.data),
        }
