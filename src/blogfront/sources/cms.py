"""Client for the headless CMS article API."""

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from blogfront.config import CMSConfig
from blogfront.listing import sort_articles
from blogfront.models import Article, Media

logger = logging.getLogger(__name__)

_ARTICLES_PATH = "/api/articles"


class CMSError(RuntimeError):
    """Raised when the CMS cannot be reached or returns unusable data."""


def absolute_url(base_url: str, url: str) -> str:
    """Prefix CMS-relative URLs (``/uploads/...``) with the base URL."""
    if url.startswith(("http://", "https://", "//", "data:")):
        return url
    if not url.startswith("/"):
        url = f"/{url}"
    return f"{base_url.rstrip('/')}{url}"


class CMSClient:
    """Fetches articles from a Strapi-style REST API."""

    def __init__(
        self, config: CMSConfig | None = None, client: httpx.Client | None = None
    ) -> None:
        self.config = config or CMSConfig()
        self.base_url = self.config.base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"
        self._client = client or httpx.Client(timeout=self.config.timeout)
        self._headers = headers

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CMSClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def list_articles(self) -> list[Article]:
        """Fetch every article with thumbnail and tags, newest update first."""
        params = {
            "populate[thumbnail]": "true",
            "populate[tags]": "true",
            "pagination[pageSize]": str(self.config.fetch_page_size),
        }
        payload = self._get(_ARTICLES_PATH, params)
        articles = self._parse_articles(payload)
        logger.info("Fetched %d articles from %s", len(articles), self.base_url)
        return sort_articles(articles)

    def get_article(self, document_id: str) -> Article | None:
        """Fetch a single article by its document ID.

        Returns:
            The article, or ``None`` if no article has that ID.
        """
        if not document_id:
            return None
        params = {
            "filters[documentId][$eq]": document_id,
            "populate": "*",
        }
        payload = self._get(_ARTICLES_PATH, params)
        articles = self._parse_articles(payload)
        if not articles:
            logger.info("Article %s not found", document_id)
            return None
        return articles[0]

    def media_url(self, media: Media | None) -> str | None:
        """Return an absolute URL for a media object."""
        if media is None or not media.url:
            return None
        return self.absolute_url(media.url)

    def absolute_url(self, url: str) -> str:
        return absolute_url(self.base_url, url)

    def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET a JSON document with exponential backoff on 5xx and transport errors."""
        url = f"{self.base_url}{path}"
        max_retries = max(1, self.config.max_retries)
        for attempt in range(max_retries):
            try:
                response = self._client.get(url, params=params, headers=self._headers)
                if response.status_code < 500:
                    response.raise_for_status()
                    return self._decode(response)
                error: Exception = httpx.HTTPStatusError(
                    f"Server error {response.status_code}",
                    request=response.request,
                    response=response,
                )
            except httpx.HTTPStatusError as e:
                msg = f"CMS request failed with status {e.response.status_code}: {url}"
                raise CMSError(msg) from e
            except httpx.TransportError as e:
                error = e

            if attempt < max_retries - 1:
                delay = self.config.retry_delay * (2**attempt)
                logger.warning(
                    "CMS request failed (attempt %d/%d): %s. Retrying in %.1fs",
                    attempt + 1,
                    max_retries,
                    error,
                    delay,
                )
                time.sleep(delay)

        msg = f"CMS request failed after {max_retries} attempts: {url}"
        raise CMSError(msg) from error

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            msg = f"CMS returned invalid JSON from {response.request.url}"
            raise CMSError(msg) from e
        if not isinstance(payload, dict):
            msg = "CMS response is not a JSON object"
            raise CMSError(msg)
        return payload

    @staticmethod
    def _parse_articles(payload: dict[str, Any]) -> list[Article]:
        """Parse the ``data`` array of an API response."""
        data = payload.get("data") or []
        if not isinstance(data, list):
            msg = "CMS response 'data' is not a list"
            raise CMSError(msg)
        try:
            return [Article.model_validate(item) for item in data]
        except ValidationError as e:
            msg = f"CMS returned a malformed article: {e}"
            raise CMSError(msg) from e
