"""HTML page rendering with Jinja2 templates."""

import logging
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from blogfront.config import BlogConfig
from blogfront.listing import Listing, ViewMode, parse_view_mode
from blogfront.models import Article, Media
from blogfront.output.markdown import MarkdownRenderer
from blogfront.sources.cms import absolute_url

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

UNKNOWN_DATE = "Unknown"


class UrlBuilder(Protocol):
    """Builds the links embedded in rendered pages."""

    def index(self, page: int = 1, view: ViewMode | None = None, query: str = "") -> str: ...

    def article(self, document_id: str) -> str: ...

    def media(self, media: Media | None) -> str | None: ...


def _zone(name: str) -> ZoneInfo | timezone:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return timezone.utc


def format_timestamp(
    value: datetime | None,
    fmt: str = "%Y-%m-%d %H:%M",
    tz: str = "UTC",
) -> str:
    """Format a timestamp in the display timezone; ``None`` becomes "Unknown"."""
    if value is None:
        return UNKNOWN_DATE
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_zone(tz)).strftime(fmt)


def create_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


class PageRenderer:
    """Renders the index, article and not-found pages."""

    def __init__(
        self,
        config: BlogConfig,
        urls: UrlBuilder,
        markdown_renderer: MarkdownRenderer | None = None,
    ) -> None:
        self.config = config
        self.urls = urls
        self.markdown = markdown_renderer or MarkdownRenderer(
            promo=config.promo,
            resolve_url=partial(absolute_url, config.cms.base_url),
        )
        self.env = create_environment()
        self.env.filters["timestamp"] = self._timestamp
        self.env.globals.update(
            site=config.site,
            urls=urls,
            default_view=parse_view_mode(config.site.default_view),
        )

    def _timestamp(self, value: datetime | None) -> str:
        return format_timestamp(
            value, self.config.site.date_format, self.config.site.timezone
        )

    def render_index(
        self,
        listing: Listing,
        view: ViewMode = "card",
        notice: str | None = None,
        interactive: bool = True,
    ) -> str:
        """Render one page of the article list."""
        template = self.env.get_template("index.html")
        return template.render(
            listing=listing,
            page=listing.page,
            view=view,
            notice=notice,
            interactive=interactive,
        )

    def render_article(self, article: Article) -> str:
        """Render a full article page with its Markdown body converted."""
        template = self.env.get_template("article.html")
        body = Markup(self.markdown.render(article.content))
        return template.render(article=article, body=body)

    def render_not_found(self) -> str:
        return self.env.get_template("not_found.html").render()
