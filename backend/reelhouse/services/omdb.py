"""OMDB API integration for external ratings."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from reelhouse.config import get_settings
from reelhouse.errors import NotFoundError, ServiceUnavailableError

logger = logging.getLogger(__name__)

settings = get_settings()


def _available(value: Any) -> bool:
    return value not in (None, "", "N/A")


def extract_ratings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the rating fields out of an OMDB title payload.

    Values OMDB reports as ``"N/A"`` become None.
    """
    imdb_rating = None
    if _available(data.get("imdbRating")):
        try:
            imdb_rating = float(data["imdbRating"])
        except ValueError:
            pass

    metascore = None
    if _available(data.get("Metascore")):
        try:
            metascore = int(data["Metascore"])
        except ValueError:
            pass

    rotten_tomatoes = None
    for rating in data.get("Ratings") or []:
        if rating.get("Source") == "Rotten Tomatoes":
            rotten_tomatoes = rating.get("Value")
            break

    return {
        "imdb_rating": imdb_rating,
        "imdb_votes": data["imdbVotes"] if _available(data.get("imdbVotes")) else None,
        "metascore": metascore,
        "rotten_tomatoes": rotten_tomatoes,
        "awards": data["Awards"] if _available(data.get("Awards")) else None,
    }


class OmdbService:
    """Client for the OMDB title and search endpoints."""

    REQUEST_TIMEOUT = httpx.Timeout(timeout=10.0, connect=3.0)

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.omdb_api_key
        self.base_url = base_url or settings.omdb_base_url
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Run an OMDB request and return the JSON payload.

        OMDB answers lookups it cannot satisfy with HTTP 200 and
        ``"Response": "False"``; those become NotFoundError.
        """
        if not self.api_key:
            raise ServiceUnavailableError("OMDB API key is not configured")

        query = {**params, "apikey": self.api_key}
        try:
            async with httpx.AsyncClient(
                timeout=self.REQUEST_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.get(self.base_url, params=query)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._log_failure(params, exc)
            raise ServiceUnavailableError("OMDB request failed") from exc

        if data.get("Response") == "False":
            raise NotFoundError(data.get("Error") or "Not found on OMDB")
        return data

    def _log_failure(self, params: Dict[str, Any], exc: Exception) -> None:
        message = "OMDB request failed | params=%r | exc_type=%s | exc=%r"
        args = (params, type(exc).__name__, exc)

        if isinstance(exc, httpx.TimeoutException):
            logger.warning(message, *args)
            return

        logger.error(message, *args)

    async def get_title(self, imdb_id: str) -> Dict[str, Any]:
        """Full OMDB record for an IMDB id."""
        return await self._get({"i": imdb_id, "plot": "full"})

    async def search(self, title: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
        """Titles matching ``title``, optionally restricted to ``year``."""
        params: Dict[str, Any] = {"s": title}
        if year:
            params["y"] = year
        data = await self._get(params)
        return data.get("Search") or []


omdb_service = OmdbService()


def get_omdb_service() -> OmdbService:
    return omdb_service
