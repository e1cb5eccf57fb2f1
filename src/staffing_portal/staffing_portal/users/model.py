from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: portal user.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    name: Optional[str]
    email: str
    role: Role
    is_active: bool = True
    password_hash: Optional[str] = field(default=None, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or self.email
