"""Static export of the blog to a directory of HTML files."""

import logging
import re
from pathlib import Path

from blogfront.config import BlogConfig
from blogfront.listing import ViewMode, build_listing, parse_view_mode
from blogfront.models import Article, Media
from blogfront.output.html import PageRenderer
from blogfront.sources.cms import CMSClient

logger = logging.getLogger(__name__)

_SAFE_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


class StaticUrls:
    """URL builder for the exported file layout.

    Pages live at ``page/<n>/index.html`` and articles at
    ``articles/<document_id>/index.html``, all under ``base_path``.
    """

    def __init__(self, client: CMSClient, base_path: str = "/") -> None:
        self.client = client
        self.base_path = "/" + base_path.strip("/") + "/" if base_path.strip("/") else "/"

    def index(self, page: int = 1, view: ViewMode | None = None, query: str = "") -> str:
        if page > 1:
            return f"{self.base_path}page/{page}/"
        return self.base_path

    def article(self, document_id: str) -> str:
        return f"{self.base_path}articles/{document_id}/"

    def media(self, media: Media | None) -> str | None:
        return self.client.media_url(media)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def build_site(
    config: BlogConfig,
    client: CMSClient,
    output_dir: Path | None = None,
) -> list[Path]:
    """Fetch every article once and write the static site.

    Returns:
        The paths of all files written.
    """
    output_dir = Path(output_dir or config.build.output_dir).expanduser()
    renderer = PageRenderer(config, StaticUrls(client, config.build.base_path))
    view = parse_view_mode(config.site.default_view)

    articles: list[Article] = []
    for article in client.list_articles():
        if not _SAFE_ID_RE.fullmatch(article.document_id):
            logger.warning("Skipping article with unsafe document ID %r", article.document_id)
            continue
        articles.append(article)

    written: list[Path] = []

    first = build_listing(articles, page=1, page_size=config.site.page_size)
    total_pages = max(first.page.total_pages, 1)
    for number in range(1, total_pages + 1):
        listing = build_listing(articles, page=number, page_size=config.site.page_size)
        html = renderer.render_index(listing, view, interactive=False)
        if number == 1:
            path = output_dir / "index.html"
        else:
            path = output_dir / "page" / str(number) / "index.html"
        written.append(_write(path, html))

    for article in articles:
        path = output_dir / "articles" / article.document_id / "index.html"
        written.append(_write(path, renderer.render_article(article)))

    written.append(_write(output_dir / "404.html", renderer.render_not_found()))

    logger.info(
        "Wrote %d pages and %d articles to %s", total_pages, len(articles), output_dir
    )
    return written
