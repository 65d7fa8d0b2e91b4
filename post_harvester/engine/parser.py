"""DOM parsing for forum listing and detail pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable
from urllib.parse import urljoin, urlparse

from selectolax.lexbor import LexborHTMLParser, LexborNode as Node

from ..models import Comment

ITEM_SELECTOR = "div.thing"
BODY_SELECTOR = "div.usertext-body"
USER_PATH_PREFIXES = ("/user/", "/u/")

BLOCK_POST = "post"
BLOCK_COMMENT = "comment"
BLOCK_OTHER = "other"


@dataclass(slots=True)
class ListingItem:
    """One candidate post as seen on a listing page."""

    id: str
    title: str
    author: str
    url: str
    timestamp: datetime
    timestamp_estimated: bool = False
    detail_url: str | None = None


@dataclass(slots=True)
class TextBlock:
    """A body block tagged by the structure it sits in."""

    kind: str
    text: str
    author: str = ""
    depth: int = 0


@dataclass(slots=True)
class DetailPage:
    body: str = ""
    comments: list[Comment] = field(default_factory=list)
    blocks: list[TextBlock] = field(default_factory=list)


def _classes(node: Node) -> set[str]:
    return set((node.attributes.get("class") or "").split())


def _attr(node: Node | None, name: str) -> str:
    if node is None:
        return ""
    return (node.attributes.get(name) or "").strip()


def _text(node: Node | None) -> str:
    if node is None:
        return ""
    return " ".join(node.text(separator=" ", strip=True).split())


def _block_text(node: Node) -> str:
    raw = node.text(separator="\n", strip=True)
    return "\n".join(line.strip() for line in raw.splitlines() if line.strip())


def normalise_author(href: str) -> str:
    """Turn ``/user/name`` (relative or absolute profile link) into ``name``."""

    href = (href or "").strip()
    if not href:
        return ""
    path = urlparse(href).path
    for prefix in USER_PATH_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix):].strip("/").split("/", 1)[0]
    return href


def parse_epoch_millis(value: str) -> datetime | None:
    try:
        millis = int(value.strip())
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def parse_iso_datetime(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Parser:
    """Parse listing and detail pages of old-style Reddit markup."""

    def parse_listing(
        self,
        html: str,
        page_url: str,
        base_url: str | None = None,
        now: datetime | None = None,
    ) -> list[ListingItem]:
        tree = LexborHTMLParser(html)
        base = (base_url or page_url).rstrip("/") + "/"
        items: list[ListingItem] = []
        seen: set[str] = set()
        for node in tree.css(ITEM_SELECTOR):
            post_id = _attr(node, "data-fullname")
            if not post_id or post_id in seen:
                continue
            seen.add(post_id)
            items.append(self._listing_item(node, post_id, page_url, base, now))
        return items

    def _listing_item(
        self, node: Node, post_id: str, page_url: str, base: str, now: datetime | None
    ) -> ListingItem:
        title_node = node.css_first("a.title")
        href = _attr(title_node, "href")
        timestamp, estimated = self.extract_timestamp(node, now)
        permalink = _attr(node.css_first("a.comments"), "href")
        return ListingItem(
            id=post_id,
            title=_text(title_node),
            author=normalise_author(_attr(node.css_first("a.author"), "href")),
            url=urljoin(page_url, href) if href else "",
            timestamp=timestamp,
            timestamp_estimated=estimated,
            detail_url=urljoin(base, permalink) if permalink else None,
        )

    @staticmethod
    def extract_timestamp(node: Node, now: datetime | None = None) -> tuple[datetime, bool]:
        """Return ``(timestamp, estimated)``; estimated means capture time was used."""

        parsed = None
        raw = _attr(node, "data-timestamp")
        if raw:
            parsed = parse_epoch_millis(raw)
        if parsed is None:
            time_node = node.css_first("time")
            raw_time = _attr(time_node, "datetime")
            if raw_time:
                parsed = parse_iso_datetime(raw_time)
        if parsed is not None:
            return parsed, False
        return (now or datetime.now(timezone.utc)), True

    # ------------------------------------------------------------------
    # Detail pages
    # ------------------------------------------------------------------
    def parse_detail(self, html: str, max_comments: int | None = None) -> DetailPage:
        blocks = self.collect_blocks(html)
        body = next((block.text for block in blocks if block.kind == BLOCK_POST), "")
        comments: list[Comment] = []
        for block in blocks:
            if max_comments is not None and len(comments) >= max_comments:
                break
            if block.kind != BLOCK_COMMENT or block.depth != 1:
                continue
            if not block.author or not block.text:
                continue
            comments.append(Comment(author=block.author, body=block.text))
        return DetailPage(body=body, comments=comments, blocks=blocks)

    def collect_blocks(self, html: str) -> list[TextBlock]:
        tree = LexborHTMLParser(html)
        return [self._classify(node) for node in tree.css(BODY_SELECTOR)]

    def _classify(self, node: Node) -> TextBlock:
        owner: Node | None = None
        depth = 0
        for ancestor in self._ancestors(node):
            if ancestor.tag != "div":
                continue
            classes = _classes(ancestor)
            if "thing" not in classes:
                continue
            if owner is None:
                owner = ancestor
            if "comment" in classes:
                depth += 1
        text = _block_text(node)
        if owner is None:
            return TextBlock(kind=BLOCK_OTHER, text=text)
        if "comment" not in _classes(owner):
            return TextBlock(kind=BLOCK_POST, text=text, author=self._author_of(owner))
        return TextBlock(kind=BLOCK_COMMENT, text=text, author=self._author_of(owner), depth=depth)

    @staticmethod
    def _author_of(thing: Node) -> str:
        author = _attr(thing, "data-author")
        if author:
            return author
        # First a.author in document order belongs to the thing's own entry,
        # nested replies come after it.
        return _text(thing.css_first("a.author"))

    @staticmethod
    def _ancestors(node: Node) -> Iterable[Node]:
        current = node.parent
        while current is not None:
            yield current
            current = current.parent


__all__ = [
    "BLOCK_COMMENT",
    "BLOCK_OTHER",
    "BLOCK_POST",
    "DetailPage",
    "ListingItem",
    "Parser",
    "TextBlock",
    "normalise_author",
    "parse_epoch_millis",
    "parse_iso_datetime",
]
