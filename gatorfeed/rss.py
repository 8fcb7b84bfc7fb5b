"""Fetching and parsing RSS feeds."""

from __future__ import annotations

import html
import urllib.error
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

USER_AGENT = "gator"


class FeedFetchError(Exception):
    """A feed could not be downloaded or parsed."""


@dataclass
class RSSItem:
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class RSSFeed:
    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _text(element: ET.Element, tag: str) -> str:
    return element.findtext(tag, default="") or ""


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document, unescaping HTML entities in titles and descriptions."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise FeedFetchError(f"Error parsing response body: {exc}") from exc
    channel = root.find("channel")
    if channel is None:
        return RSSFeed()
    items = [
        RSSItem(
            title=html.unescape(_text(item, "title")),
            link=_text(item, "link"),
            description=html.unescape(_text(item, "description")),
            pub_date=_text(item, "pubDate"),
        )
        for item in channel.findall("item")
    ]
    return RSSFeed(
        title=html.unescape(_text(channel, "title")),
        link=_text(channel, "link"),
        description=html.unescape(_text(channel, "description")),
        items=items,
    )


def fetch_feed(url: str, timeout: float | None = None) -> RSSFeed:
    """Download the feed at ``url`` and parse it."""
    try:
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    except ValueError as exc:
        raise FeedFetchError(f"Error forming request: {exc}") from exc
    try:
        kwargs = {} if timeout is None else {"timeout": timeout}
        with urllib.request.urlopen(request, **kwargs) as response:
            body = response.read()
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise FeedFetchError(f"Error making request: {exc}") from exc
    return parse_feed(body)