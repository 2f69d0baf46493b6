"""Request and response schemas.

Wire format is camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator
from pydantic.alias_generators import to_camel

from reelhouse.models.content import ContentType
from reelhouse.models.profile import AVATAR_CHOICES

# Positions are stored in 32-bit integer columns
MAX_SECONDS = 2_147_483_647

SortOption = Literal["name-asc", "name-desc", "year-asc", "year-desc", "rating-desc", "rating"]
WatchedFilter = Literal["all", "watched", "unwatched"]


def _clean_profile_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Profile name cannot be empty")
    if len(value) > 20:
        raise ValueError("Profile name cannot exceed 20 characters")
    return value


def _check_avatar(value: str) -> str:
    if value not in AVATAR_CHOICES:
        raise ValueError("Invalid avatar selection")
    return value


def _clean_genres(value: List[str]) -> List[str]:
    cleaned = [token.strip() for token in value if token and token.strip()]
    if not cleaned:
        raise ValueError("At least one genre is required")
    if any("," in token for token in cleaned):
        raise ValueError("Genre names cannot contain commas")
    return cleaned


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Auth ---

class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)
    confirm_password: str

    @field_validator("username", "email")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()

    @field_validator("email")
    @classmethod
    def looks_like_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value.lower()


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    is_admin: bool


class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# --- Profiles ---

class ProfileCreate(CamelModel):
    name: str
    avatar: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _clean_profile_name(value)

    @field_validator("avatar")
    @classmethod
    def check_avatar(cls, value: str) -> str:
        return _check_avatar(value)


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _clean_profile_name(value)

    @field_validator("avatar")
    @classmethod
    def check_avatar(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _check_avatar(value)


class ProfileOut(CamelModel):
    id: int
    name: str
    avatar: str
    likes: List[int] = Field(default_factory=list)


# --- Likes ---

class LikeRequest(CamelModel):
    content_id: StrictInt = Field(gt=0)


class LikesOut(CamelModel):
    likes: List[int] = Field(default_factory=list)


# --- Content ---

IMDB_ID_PATTERN = r"^tt\d{7,10}$"


class OmdbRatings(CamelModel):
    imdb_rating: Optional[float] = None
    imdb_votes: Optional[str] = None
    metascore: Optional[int] = None
    rotten_tomatoes: Optional[str] = None
    awards: Optional[str] = None


class ContentOut(CamelModel):
    id: int
    name: str
    year: int
    genre: str
    genres: List[str] = Field(default_factory=list)
    type: str
    episodes: Optional[int] = None
    seasons: Optional[int] = None
    duration: Optional[str] = None
    rating: str
    description: str
    image: str
    video_url: Optional[str] = None
    imdb_id: Optional[str] = None
    omdb_ratings: Optional[OmdbRatings] = None
    omdb_updated_at: Optional[datetime] = None


class PopularContentOut(ContentOut):
    content_id: int
    total_likes: int


class ContentWrite(CamelModel):
    """Admin payload for creating a catalog entry."""
    name: str = Field(min_length=1, max_length=255)
    year: int = Field(ge=1878, le=2100)
    genres: List[str] = Field(min_length=1)
    type: ContentType
    episodes: Optional[int] = Field(default=None, ge=1)
    seasons: Optional[int] = Field(default=None, ge=1)
    duration: Optional[str] = None
    rating: str
    description: str = Field(min_length=1)
    image: str = Field(min_length=1)
    video_url: Optional[str] = None

    @field_validator("genres")
    @classmethod
    def clean_genres(cls, value: List[str]) -> List[str]:
        return _clean_genres(value)

    @model_validator(mode="after")
    def check_type_fields(self) -> "ContentWrite":
        if self.type == ContentType.SERIES and (self.episodes is None or self.seasons is None):
            raise ValueError("Series require episodes and seasons")
        if self.type == ContentType.MOVIE and not self.duration:
            raise ValueError("Movies require a duration")
        return self


class ContentUpdate(CamelModel):
    """Admin payload for a partial catalog update."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    year: Optional[int] = Field(default=None, ge=1878, le=2100)
    genres: Optional[List[str]] = None
    type: Optional[ContentType] = None
    episodes: Optional[int] = Field(default=None, ge=1)
    seasons: Optional[int] = Field(default=None, ge=1)
    duration: Optional[str] = None
    rating: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    video_url: Optional[str] = None

    # Omitting these leaves them unchanged; they can never be cleared
    @field_validator("name", "year", "genres", "type", "rating", "description", "image", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("genres")
    @classmethod
    def clean_genres(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return _clean_genres(value)


class Pagination(CamelModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool


class ContentPage(CamelModel):
    content: List[ContentOut]
    pagination: Pagination


# --- Viewing history ---

class ProgressIn(CamelModel):
    content_id: StrictInt = Field(gt=0)
    current_time: float = Field(ge=0, le=MAX_SECONDS, allow_inf_nan=False)
    duration: float = Field(ge=0, le=MAX_SECONDS, allow_inf_nan=False)
    completed: Optional[bool] = None


class ProgressOut(CamelModel):
    id: Optional[int] = None
    profile_id: Optional[int] = None
    content_id: Optional[int] = None
    current_time: int = 0
    duration: Optional[int] = None
    completed: bool = False
    last_watched: Optional[datetime] = None


class HistoryEntryOut(ProgressOut):
    content: Optional[ContentOut] = None


# --- Statistics ---

class DailyCount(CamelModel):
    date: str
    count: int = 0


class DailyViewSeries(CamelModel):
    profile_id: int
    profile_name: str
    dates: List[DailyCount]


class GenreCount(CamelModel):
    genre: str
    count: int


class StatisticsOut(CamelModel):
    daily_views: List[DailyViewSeries] = Field(default_factory=list)
    genre_popularity: List[GenreCount] = Field(default_factory=list)


# --- OMDB ratings ---

class RatingUpdateRequest(CamelModel):
    imdb_id: str = Field(pattern=IMDB_ID_PATTERN)


class RatingBatchItem(CamelModel):
    content_id: StrictInt = Field(gt=0)
    imdb_id: str = Field(pattern=IMDB_ID_PATTERN)


class RatingBatchRequest(CamelModel):
    updates: List[RatingBatchItem] = Field(min_length=1)


class RatingSyncError(CamelModel):
    content_id: int
    name: Optional[str] = None
    error: str


class RatingSyncResult(CamelModel):
    updated: int = 0
    failed: int = 0
    errors: List[RatingSyncError] = Field(default_factory=list)


class OmdbSearchResult(CamelModel):
    imdb_id: str
    title: str
    year: str
    type: str
    poster: Optional[str] = None


class OmdbTitleOut(CamelModel):
    imdb_id: str
    title: Optional[str] = None
    year: Optional[str] = None
    type: Optional[str] = None
    ratings: OmdbRatings
    plot: Optional[str] = None
    poster: Optional[str] = None
