"""Database models."""

from reelhouse.models.user import User
from reelhouse.models.profile import Profile, AVATAR_CHOICES
from reelhouse.models.content import Content, ContentType, split_genres
from reelhouse.models.viewing_history import ViewingHistory

__all__ = [
    "User",
    "Profile",
    "AVATAR_CHOICES",
    "Content",
    "ContentType",
    "split_genres",
    "ViewingHistory",
]
