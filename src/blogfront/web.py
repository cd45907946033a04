"""Flask application serving the blog."""

import logging

from flask import Flask, request, url_for

from blogfront.config import BlogConfig, load_config
from blogfront.listing import (
    ViewMode,
    build_listing,
    parse_page,
    parse_view_mode,
)
from blogfront.models import Media
from blogfront.output.html import PageRenderer
from blogfront.sources.cms import CMSClient, CMSError

logger = logging.getLogger(__name__)

FETCH_FAILED_NOTICE = "Articles could not be loaded. Please try again later."

_HTML = {"Content-Type": "text/html; charset=utf-8"}


class FlaskUrls:
    """URL builder backed by ``url_for``; valid inside a request context."""

    def __init__(self, client: CMSClient, default_view: ViewMode = "card") -> None:
        self.client = client
        self.default_view = default_view

    def index(self, page: int = 1, view: ViewMode | None = None, query: str = "") -> str:
        params: dict[str, object] = {}
        if query:
            params["q"] = query
        if page > 1:
            params["page"] = page
        if view and view != self.default_view:
            params["view"] = view
        return url_for("index", **params)

    def article(self, document_id: str) -> str:
        return url_for("article", document_id=document_id)

    def media(self, media: Media | None) -> str | None:
        return self.client.media_url(media)


def create_app(
    config: BlogConfig | None = None, client: CMSClient | None = None
) -> Flask:
    """Create the Flask app.

    Args:
        config: Blog configuration; loaded from the default locations if omitted.
        client: CMS client; built from ``config.cms`` if omitted.
    """
    config = config or load_config()
    client = client or CMSClient(config.cms)
    default_view = parse_view_mode(config.site.default_view)
    renderer = PageRenderer(config, FlaskUrls(client, default_view))

    app = Flask(__name__)
    app.config["BLOG"] = config
    app.extensions["blogfront.cms"] = client

    @app.get("/")
    def index() -> tuple[str, int, dict[str, str]]:
        query = request.args.get("q", "")
        page = parse_page(request.args.get("page"))
        view = parse_view_mode(request.args.get("view", default_view))

        notice = None
        try:
            articles = client.list_articles()
        except CMSError:
            logger.exception("Failed to fetch articles")
            articles = []
            notice = FETCH_FAILED_NOTICE

        listing = build_listing(articles, query, page, config.site.page_size)
        return renderer.render_index(listing, view, notice=notice), 200, _HTML

    @app.get("/articles/<document_id>")
    def article(document_id: str) -> tuple[str, int, dict[str, str]]:
        try:
            item = client.get_article(document_id)
        except CMSError:
            logger.exception("Failed to fetch article %s", document_id)
            item = None

        if item is None:
            return renderer.render_not_found(), 404, _HTML
        return renderer.render_article(item), 200, _HTML

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
