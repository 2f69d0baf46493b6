"""Catalog content model."""

import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import String, Text, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from reelhouse.database import Base


class ContentType(str, enum.Enum):
    """Catalog entry kind."""
    MOVIE = "movie"
    SERIES = "series"


def split_genres(genre: Optional[str]) -> List[str]:
    """Split a stored comma-separated genre string into trimmed tokens."""
    if not genre:
        return []
    return [token.strip() for token in genre.split(",") if token.strip()]


def join_genres(genres: List[str]) -> str:
    """Serialize genre tokens back to the stored form."""
    return ", ".join(token.strip() for token in genres if token and token.strip())


class Content(Base):
    """A movie or series in the catalog."""

    __tablename__ = "content"

    # Stable public id, assigned on creation (max id + 1)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), index=True)
    year: Mapped[int] = mapped_column(Integer, index=True)
    genre: Mapped[str] = mapped_column(String(255))  # "Comedy, Drama"
    type: Mapped[str] = mapped_column(String(20), index=True)  # movie, series

    # Series only
    episodes: Mapped[Optional[int]] = mapped_column(Integer)
    seasons: Mapped[Optional[int]] = mapped_column(Integer)
    # Movie only, display string such as "2h 10m"
    duration: Mapped[Optional[str]] = mapped_column(String(50))

    rating: Mapped[str] = mapped_column(String(10))
    description: Mapped[str] = mapped_column(Text)
    image: Mapped[str] = mapped_column(String(500))
    video_url: Mapped[Optional[str]] = mapped_column(String(500))

    # OMDB ratings, refreshed by the admin ratings sync
    imdb_id: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    omdb_ratings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    omdb_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def genres(self) -> List[str]:
        """Genre tokens in listed order."""
        return split_genres(self.genre)

    @genres.setter
    def genres(self, value: List[str]) -> None:
        self.genre = join_genres(value)

    @property
    def primary_genre(self) -> Optional[str]:
        tokens = self.genres
        return tokens[0] if tokens else None

    @property
    def rating_value(self) -> float:
        try:
            return float(self.rating)
        except (TypeError, ValueError):
            return 0.0

    def has_genre(self, genre: str) -> bool:
        """Whole-token, case-insensitive genre membership."""
        wanted = genre.strip().lower()
        return any(token.lower() == wanted for token in self.genres)

    def __repr__(self) -> str:
        return f"<Content(id={self.id}, name={self.name}, type={self.type})>"
