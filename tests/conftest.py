"""Shared test fixtures."""

from pathlib import Path

import pytest

from blogfront.config import BlogConfig, CMSConfig
from blogfront.models import Article
from blogfront.sources.cms import CMSClient

BASE_URL = "http://cms.test"
ARTICLES_URL = f"{BASE_URL}/api/articles"


def article_payload(
    id: int = 1,
    document_id: str = "doc1",
    title: str = "First Post",
    content: str | None = "Hello **world**.",
    updated_at: str | None = "2024-05-01T10:00:00.000Z",
    tags: list[dict[str, object]] | None = None,
    thumbnail: dict[str, object] | None = None,
) -> dict[str, object]:
    """Build an article as the CMS returns it."""
    return {
        "id": id,
        "documentId": document_id,
        "title": title,
        "content": content,
        "createdAt": "2024-04-01T09:00:00.000Z",
        "updatedAt": updated_at,
        "publishedAt": "2024-04-01T09:30:00.000Z",
        "tags": tags if tags is not None else [],
        "thumbnail": thumbnail,
    }


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """Return a temporary config file path."""
    return tmp_path / "config.toml"


@pytest.fixture
def default_config() -> BlogConfig:
    """Return a default config instance."""
    return BlogConfig()


@pytest.fixture
def blog_config() -> BlogConfig:
    """Config pointing at the mocked CMS with retries that do not sleep."""
    config = BlogConfig()
    config.cms = CMSConfig(base_url=BASE_URL, retry_delay=0.0)
    config.site.page_size = 2
    return config


@pytest.fixture
def cms_client(blog_config: BlogConfig) -> CMSClient:
    client = CMSClient(blog_config.cms)
    yield client  # type: ignore[misc]
    client.close()


@pytest.fixture
def articles() -> list[Article]:
    """Three articles, newest first."""
    return [
        Article.model_validate(
            article_payload(
                id=3,
                document_id="doc3",
                title="Python Packaging",
                content="Use pyproject.toml.",
                updated_at="2024-06-01T00:00:00Z",
                tags=[{"id": 1, "name": "python"}],
            )
        ),
        Article.model_validate(
            article_payload(
                id=2,
                document_id="doc2",
                title="Flask Tips",
                content="Blueprints keep PYTHON apps tidy.",
                updated_at="2024-05-15T00:00:00Z",
            )
        ),
        Article.model_validate(
            article_payload(
                id=1,
                document_id="doc1",
                title="Hello",
                content=None,
                updated_at="2024-05-01T00:00:00Z",
            )
        ),
    ]
