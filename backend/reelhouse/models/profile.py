"""Viewer profile model."""

from datetime import datetime
from typing import List

from sqlalchemy import String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelhouse.database import Base

AVATAR_CHOICES = (
    "profile_pic_1.png",
    "profile_pic_2.png",
    "profile_pic_3.png",
    "profile_pic_4.png",
)


class Profile(Base):
    """A viewer identity under a user account, with its own likes."""

    __tablename__ = "profiles"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_profiles_user_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    name: Mapped[str] = mapped_column(String(20))
    avatar: Mapped[str] = mapped_column(String(50))

    # Liked content ids; membership is checked before appending
    likes: Mapped[List[int]] = mapped_column(JSON, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profiles")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, user_id={self.user_id}, name={self.name})>"
