"""Unsplash photo search client and best-effort ImageEnricher."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from tripdesk.config import DEFAULT_IMAGE_TIMEOUT_SECONDS
from tripdesk.contracts import MAX_TRIP_IMAGES, TripRequest


Fetcher = Callable[[Request, float], tuple[int, str]]

logger = logging.getLogger(__name__)


class ImageSearchError(RuntimeError):
    """Raised when the image service returns an unusable response."""


def _default_fetcher(request: Request, timeout: float) -> tuple[int, str]:
    try:
        with urlopen(request, timeout=timeout) as response:  # nosec B310 - fixed trusted Unsplash endpoint
            return response.status, response.read().decode("utf-8")
    except HTTPError as exc:
        return exc.code, exc.read().decode("utf-8", errors="replace")


class UnsplashClient:
    """Minimal Unsplash search client."""

    BASE_URL = "https://api.unsplash.com/search/photos"

    def __init__(
        self,
        access_key: str,
        fetcher: Fetcher | None = None,
        *,
        timeout_seconds: float = DEFAULT_IMAGE_TIMEOUT_SECONDS,
    ) -> None:
        if not access_key:
            raise ValueError("access_key is required")
        self._access_key = access_key
        self._fetcher = fetcher or _default_fetcher
        self._timeout_seconds = timeout_seconds

    def search_photos(self, *, query: str, per_page: int = MAX_TRIP_IMAGES) -> dict[str, Any]:
        params = {
            "query": query,
            "per_page": max(1, per_page),
            "client_id": self._access_key,
        }
        url = f"{self.BASE_URL}?{urlencode(params)}"
        request = Request(  # noqa: S310
            url,
            headers={"Accept": "application/json", "Accept-Version": "v1"},
        )
        status, body = self._fetcher(request, self._timeout_seconds)
        if status != 200:
            raise ImageSearchError(f"Unsplash API returned status {status}")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ImageSearchError("Failed to parse Unsplash response") from exc
        if not isinstance(payload, dict):
            raise ImageSearchError("Unexpected Unsplash response shape.")
        return payload


class ImageEnricher:
    """Looks up a few photos for a trip. Any failure yields an empty list."""

    def __init__(self, client: UnsplashClient | None = None) -> None:
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def fetch_images(self, query: str, max_count: int = MAX_TRIP_IMAGES) -> list[str]:
        if self._client is None:
            logger.warning("UNSPLASH_ACCESS_KEY is not configured; skipping trip images")
            return []

        try:
            payload = self._client.search_photos(query=query, per_page=max_count)
            urls = _extract_image_urls(payload, max_count)
        except Exception as exc:
            logger.warning("Failed to fetch images for %r: %s", query, exc)
            return []

        if not urls:
            logger.info("No images found for %r", query)
        return urls


def build_image_query(request: TripRequest) -> str:
    parts = [request.country, request.interests, request.travel_style]
    return " ".join(part for part in parts if part)


def _extract_image_urls(payload: dict[str, Any], max_count: int) -> list[str]:
    results = payload.get("results")
    if not isinstance(results, list):
        return []

    urls: list[str] = []
    for row in results[:max_count]:
        if not isinstance(row, dict):
            continue
        links = row.get("urls")
        regular = links.get("regular") if isinstance(links, dict) else None
        if isinstance(regular, str) and regular.strip():
            urls.append(regular.strip())
    return urls
