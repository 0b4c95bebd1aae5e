"""RSS 크롤러 단위 테스트 — httpx.MockTransport + 로컬 소켓 서버 (외부 네트워크 없음)."""

import socket
import threading
import time
from datetime import UTC, datetime

import httpx
import pytest

from feedlens.domain.errors import FetchError
from feedlens.infra.crawlers.rss import fetch_feed, make_snippet, parse_feed

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Tech Wire</title>
    <description>Technology news</description>
    <link>https://wire.example.com</link>
    <item>
      <title>Apple beats estimates</title>
      <link>https://wire.example.com/apple</link>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <dc:creator>Jane Doe</dc:creator>
      <description>&lt;p&gt;Short &lt;b&gt;summary&lt;/b&gt;&lt;/p&gt;</description>
      <content:encoded><![CDATA[<p>Full article body about Apple.</p>]]></content:encoded>
      <enclosure url="https://wire.example.com/apple.jpg" type="image/jpeg" length="1000"/>
    </item>
    <item>
      <title>Podcast episode</title>
      <link>https://wire.example.com/podcast</link>
      <description>Listen now</description>
      <enclosure url="https://wire.example.com/ep.mp3" type="audio/mpeg" length="5000"/>
    </item>
  </channel>
</rss>
"""

ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom News</title>
  <entry>
    <title>Atom entry</title>
    <link href="https://atom.example.com/1"/>
    <updated>2024-02-03T04:05:06Z</updated>
    <author><name>Bob</name></author>
    <content type="html">Atom body</content>
  </entry>
</feed>
"""

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ─── parse_feed ──────────────────────────────────────────────


class TestParseFeed:
    def test_channel_metadata(self):
        feed = parse_feed(RSS, now=NOW)
        assert feed.title == "Tech Wire"
        assert feed.description == "Technology news"
        assert len(feed.items) == 2

    def test_item_fields(self):
        item = parse_feed(RSS, now=NOW).items[0]
        assert item.title == "Apple beats estimates"
        assert item.link == "https://wire.example.com/apple"
        assert item.pub_date == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        assert item.author == "Jane Doe"

    def test_encoded_content_preferred(self):
        item = parse_feed(RSS, now=NOW).items[0]
        assert "Full article body" in item.content

    def test_content_falls_back_to_description(self):
        item = parse_feed(RSS, now=NOW).items[1]
        assert item.content == "Listen now"

    def test_snippet_strips_markup(self):
        item = parse_feed(RSS, now=NOW).items[0]
        assert item.content_snippet == "Short summary"

    def test_missing_pub_date_uses_now(self):
        item = parse_feed(RSS, now=NOW).items[1]
        assert item.pub_date == NOW

    def test_missing_author_is_empty(self):
        assert parse_feed(RSS, now=NOW).items[1].author == ""

    def test_image_enclosure_kept(self):
        item = parse_feed(RSS, now=NOW).items[0]
        assert item.enclosure is not None
        assert item.enclosure.type == "image/jpeg"
        assert item.image_url == "https://wire.example.com/apple.jpg"

    def test_non_image_enclosure_dropped(self):
        assert parse_feed(RSS, now=NOW).items[1].enclosure is None

    def test_atom(self):
        feed = parse_feed(ATOM, now=NOW)
        assert feed.title == "Atom News"
        item = feed.items[0]
        assert item.link == "https://atom.example.com/1"
        assert item.pub_date == datetime(2024, 2, 3, 4, 5, 6, tzinfo=UTC)
        assert item.author == "Bob"
        assert item.content == "Atom body"

    def test_missing_titles_use_placeholders(self):
        doc = b"""<rss version="2.0"><channel>
            <item><link>https://x.example.com/1</link></item>
        </channel></rss>"""
        feed = parse_feed(doc, now=NOW)
        assert feed.title == "Unknown Feed"
        assert feed.items[0].title == "Untitled"

    def test_unparsable_raises(self):
        with pytest.raises(FetchError, match="Unparsable"):
            parse_feed(b"<html><body>not a feed</body></html>", url="https://bad.example.com")

    def test_empty_feed_is_valid(self):
        doc = b"""<rss version="2.0"><channel><title>Empty</title></channel></rss>"""
        feed = parse_feed(doc, now=NOW)
        assert feed.title == "Empty"
        assert feed.items == []


class TestMakeSnippet:
    def test_short_text_unchanged(self):
        assert make_snippet("hello") == "hello"

    def test_truncates_with_ellipsis(self):
        snippet = make_snippet("a" * 300)
        assert snippet == "a" * 200 + "..."

    def test_exact_length_not_truncated(self):
        assert make_snippet("b" * 200) == "b" * 200

    def test_empty(self):
        assert make_snippet("") == ""


# ─── fetch_feed ──────────────────────────────────────────────


class TestFetchFeed:
    def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers.get("user-agent")
            return httpx.Response(200, content=RSS)

        feed = fetch_feed("https://wire.example.com/rss", client=_client(handler))
        assert feed.title == "Tech Wire"
        assert "feedlens" in seen["ua"]

    def test_non_2xx_raises(self):
        client = _client(lambda request: httpx.Response(503, content=b"down"))
        with pytest.raises(FetchError, match="HTTP 503"):
            fetch_feed("https://wire.example.com/rss", client=client)

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError, match="connection refused"):
            fetch_feed("https://wire.example.com/rss", client=_client(handler))

    def test_timeout_raises_fetch_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(FetchError):
            fetch_feed("https://slow.example.com/rss", timeout=0.1, client=_client(handler))

    def test_html_body_raises(self):
        client = _client(lambda request: httpx.Response(200, content=b"<html><body>login</body></html>"))
        with pytest.raises(FetchError):
            fetch_feed("https://wire.example.com/rss", client=client)

    def test_oversized_body_raises(self, monkeypatch):
        monkeypatch.setenv("INGEST_MAX_FEED_BYTES", "1024")
        client = _client(lambda request: httpx.Response(200, content=RSS + b" " * 2048))
        with pytest.raises(FetchError, match="exceeds 1024 bytes"):
            fetch_feed("https://big.example.com/rss", client=client)


@pytest.fixture
def dripping_server():
    """200 헤더 후 본문을 0.2초마다 1바이트씩 끝없이 보내는 로컬 서버."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    server.settimeout(5)
    stop = threading.Event()

    def serve():
        try:
            conn, _ = server.accept()
        except OSError:
            return
        with conn:
            conn.recv(65536)
            conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Type: application/rss+xml\r\nContent-Length: 1000000\r\n\r\n")
            while not stop.is_set():
                try:
                    conn.sendall(b" ")
                except OSError:
                    return
                stop.wait(0.2)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.getsockname()[1]}/rss"
    stop.set()
    server.close()
    thread.join(timeout=5)


class TestFetchDeadline:
    def test_slow_drip_hits_total_deadline(self, dripping_server):
        started = time.monotonic()
        with httpx.Client(trust_env=False) as client:
            with pytest.raises(FetchError, match="timed out"):
                fetch_feed(dripping_server, timeout=1.0, client=client)
        assert time.monotonic() - started < 3.0
