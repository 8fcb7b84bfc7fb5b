import pytest

from gatorfeed.rss import FeedFetchError, RSSFeed, fetch_feed, parse_feed

SAMPLE = b"""<?xml version="1.0"?>
<rss version="2.0"><channel>
<title>News &amp;amp; Views</title>
<link>https://example.com/</link>
<description>All the news</description>
<item><title>First &amp;quot;post&amp;quot;</title><link>https://example.com/1</link>
<description>One</description><pubDate>Mon, 02 Jan 2006 15:04:05 -0700</pubDate></item>
<item><title>Second</title><link>https://example.com/2</link>
<description>Two</description><pubDate>Tue, 03 Jan 2006 15:04:05 -0700</pubDate></item>
</channel></rss>"""


def test_parse_feed_unescapes_titles():
    feed = parse_feed(SAMPLE)
    assert feed.title == "News & Views"
    assert feed.items[0].title == 'First "post"'
    assert [item.link for item in feed.items] == ["https://example.com/1", "https://example.com/2"]
    assert feed.items[1].pub_date == "Tue, 03 Jan 2006 15:04:05 -0700"


def test_parse_feed_without_channel_is_empty():
    assert parse_feed("<rss></rss>") == RSSFeed()


def test_parse_feed_rejects_malformed():
    with pytest.raises(FeedFetchError):
        parse_feed("<rss><channel>")


def test_fetch_feed_reads_file_url(tmp_path):
    path = tmp_path / "feed.xml"
    path.write_bytes(SAMPLE)
    feed = fetch_feed(path.as_uri())
    assert feed == parse_feed(SAMPLE)


def test_fetch_feed_bad_url():
    with pytest.raises(FeedFetchError):
        fetch_feed("notascheme://nowhere")