"""Markdown rendering for article bodies.

Article content from the CMS is GitHub-flavoured Markdown. It is converted
with Python-Markdown plus a small extension that adjusts the generated tree:

* images are centred, lazy-loaded and resolved against the CMS origin;
* inline code is highlighted, code blocks are wrapped in a styled container;
* links open in a new tab;
* an optional promotional link is injected after the N-th paragraph.

Raw HTML in the source is escaped rather than passed through.
"""

import html
import re
import threading
import xml.etree.ElementTree as etree
from collections.abc import Callable

import markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import ETX, HTML_PLACEHOLDER_RE, STX

from blogfront.config import PromoConfig
from blogfront.models import Article

DEFAULT_IMAGE_ALT = "image"

_EXTENSIONS = [
    "extra",
    "sane_lists",
    "toc",
    "pymdownx.tilde",
    "pymdownx.magiclink",
    "pymdownx.tasklist",
]

_CODE_BLOCK_RE = re.compile(r"<pre><code([^>]*)>(.*?)</code></pre>", re.DOTALL)
_CLASS_ATTR_RE = re.compile(r'class="([^"]*)"')
_LANGUAGE_PREFIX = "language-"
_SCHEME_RE = re.compile(r"([a-z][a-z0-9+.-]*):")
_SAFE_SCHEMES = frozenset({"http", "https", "mailto", "tel"})
_ESCAPED_CHAR_RE = re.compile(f"{STX}(\\d+){ETX}")
# Browsers drop these from URLs before reading the scheme
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")


def _add_class(el: etree.Element, name: str) -> None:
    classes = el.get("class", "").split()
    if name not in classes:
        classes.append(name)
    el.set("class", " ".join(classes))


def _is_stashed_block(el: etree.Element) -> bool:
    text = (el.text or "").strip()
    return len(el) == 0 and HTML_PLACEHOLDER_RE.fullmatch(text) is not None


def _is_safe_url(value: str, allow_data_image: bool = False) -> bool:
    """Allow relative URLs and http(s), mailto and tel links.

    The value is checked as the browser will read it: backslash-escape
    placeholders and character references are decoded first.
    """
    value = _ESCAPED_CHAR_RE.sub(lambda m: chr(int(m.group(1))), value)
    value = _IGNORED_URL_CHARS_RE.sub("", html.unescape(value)).lower()
    match = _SCHEME_RE.match(value)
    if match is None:
        return True
    if match.group(1) in _SAFE_SCHEMES:
        return True
    return allow_data_image and value.startswith("data:image/")


class SanitizeTreeprocessor(Treeprocessor):
    """Drop event-handler attributes and replace URLs with unsafe schemes."""

    def run(self, root: etree.Element) -> None:
        for el in root.iter():
            for name in list(el.attrib):
                if name.lower().startswith("on"):
                    del el.attrib[name]
                elif name in ("href", "src") and not _is_safe_url(
                    el.attrib[name], allow_data_image=el.tag == "img"
                ):
                    el.set(name, "#")


class ImageTreeprocessor(Treeprocessor):
    """Make images responsive and resolve CMS-relative sources."""

    def __init__(
        self,
        md: markdown.Markdown,
        resolve_url: Callable[[str], str] | None,
        fallback_alt: str,
    ) -> None:
        super().__init__(md)
        self.resolve_url = resolve_url
        self.fallback_alt = fallback_alt

    def run(self, root: etree.Element) -> None:
        for img in root.iter("img"):
            _add_class(img, "article-image")
            img.set("loading", "lazy")
            if not img.get("alt"):
                img.set("alt", self.fallback_alt)
            src = img.get("src", "")
            if src.startswith("/") and not src.startswith("//") and self.resolve_url:
                img.set("src", self.resolve_url(src))


class InlineCodeTreeprocessor(Treeprocessor):
    """Mark inline ``code`` elements; block code lives under ``pre``."""

    def run(self, root: etree.Element) -> None:
        for parent in root.iter():
            if parent.tag == "pre":
                continue
            for child in parent:
                if child.tag == "code":
                    _add_class(child, "inline-code")


class LinkTreeprocessor(Treeprocessor):
    """Open every non-fragment link in a new tab."""

    def run(self, root: etree.Element) -> None:
        for link in root.iter("a"):
            href = link.get("href", "")
            if not href or href.startswith("#"):
                continue
            link.set("target", "_blank")
            rel = link.get("rel", "").split()
            for value in ("noopener", "noreferrer"):
                if value not in rel:
                    rel.append(value)
            link.set("rel", " ".join(rel))
            _add_class(link, "article-link")


class PromoTreeprocessor(Treeprocessor):
    """Insert a promotional link after the N-th top-level paragraph.

    Paragraphs that only hold a stashed raw block (fenced code) do not count.
    Nothing is injected when the document already links to the promo URL.
    """

    def __init__(self, md: markdown.Markdown, promo: PromoConfig) -> None:
        super().__init__(md)
        self.promo = promo

    def run(self, root: etree.Element) -> None:
        url = self.promo.url
        if any(a.get("href") == url for a in root.iter("a")):
            return

        aside = etree.Element("aside", {"class": "promo"})
        link = etree.SubElement(
            aside,
            "a",
            {
                "href": url,
                "class": "promo-link",
                "target": "_blank",
                "rel": "sponsored noopener noreferrer",
            },
        )
        link.text = self.promo.text or url

        position = len(root)
        if self.promo.after_paragraph < 1:
            position = 0
        else:
            seen = 0
            for index, child in enumerate(root):
                if child.tag != "p" or _is_stashed_block(child):
                    continue
                seen += 1
                if seen == self.promo.after_paragraph:
                    position = index + 1
                    break
        root.insert(position, aside)


class CodeBlockPostprocessor(Postprocessor):
    """Wrap ``<pre><code>`` blocks in a container exposing the language."""

    def run(self, text: str) -> str:
        return _CODE_BLOCK_RE.sub(self._wrap, text)

    @staticmethod
    def _wrap(match: re.Match[str]) -> str:
        attrs, body = match.group(1), match.group(2)
        language = ""
        class_match = _CLASS_ATTR_RE.search(attrs)
        if class_match:
            for name in class_match.group(1).split():
                if name.startswith(_LANGUAGE_PREFIX):
                    language = name[len(_LANGUAGE_PREFIX) :]
                    break
        data = f' data-language="{language}"' if language else ""
        return (
            f'<div class="code-block"{data}>'
            f"<pre><code{attrs}>{body}</code></pre>"
            f"</div>"
        )


class BlogExtension(Extension):
    """Python-Markdown extension bundling the article rendering rules."""

    def __init__(
        self,
        promo: PromoConfig | None = None,
        resolve_url: Callable[[str], str] | None = None,
        image_alt: str = DEFAULT_IMAGE_ALT,
    ) -> None:
        super().__init__()
        self.promo = promo
        self.resolve_url = resolve_url
        self.image_alt = image_alt

    def extendMarkdown(self, md: markdown.Markdown) -> None:  # noqa: N802
        # Escape raw HTML instead of passing it through
        md.preprocessors.deregister("html_block", strict=False)
        md.inlinePatterns.deregister("html", strict=False)

        promo = self.promo
        if promo is not None and promo.enabled and promo.url:
            md.treeprocessors.register(PromoTreeprocessor(md, promo), "blog_promo", 8)
        md.treeprocessors.register(
            ImageTreeprocessor(md, self.resolve_url, self.image_alt),
            "blog_images",
            7,
        )
        md.treeprocessors.register(InlineCodeTreeprocessor(md), "blog_inline_code", 6)
        md.treeprocessors.register(LinkTreeprocessor(md), "blog_links", 5)
        # After attr_list so attributes it adds are checked too
        md.treeprocessors.register(SanitizeTreeprocessor(md), "blog_sanitize", 1)
        md.postprocessors.register(CodeBlockPostprocessor(md), "blog_code_blocks", 5)


class MarkdownRenderer:
    """Reusable Markdown-to-HTML converter for article bodies.

    ``markdown.Markdown`` keeps per-document state, so each thread gets its
    own configured instance, reset between documents.
    """

    def __init__(
        self,
        promo: PromoConfig | None = None,
        resolve_url: Callable[[str], str] | None = None,
        image_alt: str = DEFAULT_IMAGE_ALT,
    ) -> None:
        self.promo = promo
        self.resolve_url = resolve_url
        self.image_alt = image_alt
        self._local = threading.local()

    def _markdown(self) -> markdown.Markdown:
        md = getattr(self._local, "md", None)
        if md is None:
            md = markdown.Markdown(
                extensions=[
                    *_EXTENSIONS,
                    BlogExtension(
                        promo=self.promo,
                        resolve_url=self.resolve_url,
                        image_alt=self.image_alt,
                    ),
                ],
                output_format="html",
            )
            self._local.md = md
        return md

    def render(self, text: str | None) -> str:
        """Convert Markdown to an HTML fragment."""
        if not text or not text.strip():
            return ""
        md = self._markdown()
        md.reset()
        return md.convert(text)


def render_markdown(
    text: str | None,
    promo: PromoConfig | None = None,
    resolve_url: Callable[[str], str] | None = None,
) -> str:
    """Convert Markdown to an HTML fragment with a one-off renderer."""
    return MarkdownRenderer(promo=promo, resolve_url=resolve_url).render(text)


def article_to_markdown(article: Article, date_format: str = "%Y-%m-%d") -> str:
    """Render an Article back to a standalone Markdown document."""
    lines: list[str] = []

    lines.append(f"# {article.title}")

    meta_parts = []
    if article.updated_at:
        meta_parts.append(f"Updated: {article.updated_at.strftime(date_format)}")
    if article.published_at:
        meta_parts.append(f"Published: {article.published_at.strftime(date_format)}")
    if meta_parts:
        lines.append(f"\n*{' | '.join(meta_parts)}*")

    if article.tags:
        lines.append(f"\nTags: {', '.join(tag.name for tag in article.tags)}")

    lines.append("")
    if article.content:
        lines.append(article.content.rstrip())
        lines.append("")

    return "\n".join(lines)
