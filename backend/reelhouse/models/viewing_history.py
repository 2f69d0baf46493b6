"""Viewing history model for resumable playback."""

from datetime import datetime

from sqlalchemy import Integer, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reelhouse.database import Base


class ViewingHistory(Base):
    """Last known playback position of one profile on one content item."""

    __tablename__ = "viewing_history"
    __table_args__ = (
        UniqueConstraint("profile_id", "content_id", name="uq_viewing_history_profile_content"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), index=True)
    # Not a foreign key: catalog entries can be deleted while history remains
    content_id: Mapped[int] = mapped_column(Integer, index=True)

    # Playback state, in seconds
    current_time: Mapped[int] = mapped_column("position_seconds", Integer, default=0)
    duration: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    last_watched: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<ViewingHistory(profile_id={self.profile_id}, content_id={self.content_id}, "
            f"current_time={self.current_time}, completed={self.completed})>"
        )
