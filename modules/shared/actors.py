# File path: modules/shared/actors.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class UserActor:
    """A logged-in user acting through the session."""
    user_id: int
    display_name: Optional[str] = None


@dataclass(frozen=True)
class AnonymousActor:
    """Someone acting through a public order link; only a typed-in name is known."""
    display_name: str


Actor = Union[UserActor, AnonymousActor]


def actor_user_id(actor: Optional[Actor]) -> Optional[int]:
    if isinstance(actor, UserActor):
        return actor.user_id
    return None


def actor_display_name(actor: Optional[Actor]) -> Optional[str]:
    if actor is None:
        return None
    return (actor.display_name or "").strip() or None
