"""RSS/Atom 피드 크롤러 — 원격 문서 → NormalizedFeed.

httpx로 조회(요청 전체 데드라인 + 크기 상한)하고 feedparser로 파싱한 뒤 필드별 fallback 규칙으로 정규화.
부작용 없음.

Usage:
    feed = fetch_feed("https://techcrunch.com/feed/")
    for item in feed.items:
        print(item.link, item.pub_date)
"""

import logging
import time
from contextlib import nullcontext
from datetime import UTC, datetime

import feedparser
import httpx
from bs4 import BeautifulSoup

from feedlens.domain.config import get_config
from feedlens.domain.errors import FetchError
from feedlens.domain.feed import Enclosure, NormalizedFeed, NormalizedItem

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.9, */*;q=0.8"

UNKNOWN_FEED_TITLE = "Unknown Feed"
UNTITLED_ITEM = "Untitled"


def fetch_feed(
    url: str,
    *,
    timeout: float | None = None,
    client: httpx.Client | None = None,
) -> NormalizedFeed:
    """피드 URL 조회 + 정규화.

    Args:
        url: RSS/Atom URL
        timeout: 요청 전체 데드라인 (초). 기본값 INGEST_FETCH_TIMEOUT_SEC
        client: 재사용할 httpx.Client (테스트에서 MockTransport 주입)

    Raises:
        FetchError: 네트워크 오류, non-2xx 응답, 데드라인/크기 초과, 파싱 불가 문서
    """
    config = get_config().ingest
    headers = {"User-Agent": config.user_agent, "Accept": FEED_ACCEPT}
    timeout = timeout if timeout is not None else config.fetch_timeout_sec

    # httpx timeout은 청크 단위로 갱신됨 → 본문을 스트리밍하며 전체 데드라인 별도 확인
    deadline = time.monotonic() + timeout
    try:
        with nullcontext(client) if client is not None else httpx.Client() as http:
            with http.stream("GET", url, headers=headers, timeout=timeout, follow_redirects=True) as resp:
                resp.raise_for_status()
                content = _read_body(resp, url, deadline, timeout, config.max_feed_bytes)
    except httpx.HTTPStatusError as e:
        raise FetchError(url, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise FetchError(url, str(e) or type(e).__name__) from e

    feed = parse_feed(content, url=url, snippet_length=config.snippet_length)
    logger.debug("Fetched %d items from %s", len(feed.items), url)
    return feed


def _read_body(resp: httpx.Response, url: str, deadline: float, timeout: float, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    for chunk in resp.iter_bytes():
        if time.monotonic() > deadline:
            raise FetchError(url, f"timed out after {timeout:g}s")
        size += len(chunk)
        if size > max_bytes:
            raise FetchError(url, f"response exceeds {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def parse_feed(
    content: bytes | str,
    *,
    url: str = "",
    snippet_length: int = 200,
    now: datetime | None = None,
) -> NormalizedFeed:
    """피드 문서 파싱 + 정규화 (순수 변환).

    Raises:
        FetchError: 엔트리가 없고 feedparser가 형식 오류(bozo)를 보고하거나
            RSS/Atom 버전을 인식하지 못한 경우
    """
    parsed = feedparser.parse(content)
    entries = parsed.get("entries") or []

    if not entries and (parsed.get("bozo") or not parsed.get("version")):
        reason = parsed.get("bozo_exception") or "not an RSS/Atom document"
        raise FetchError(url, f"Unparsable feed: {reason}")

    if parsed.get("bozo"):
        # 엔트리는 파싱됨 — 경미한 형식 오류는 허용
        logger.debug("Feed bozo flagged for %s: %s", url, parsed.get("bozo_exception"))

    meta = parsed.get("feed") or {}
    fallback_time = now or datetime.now(UTC)

    return NormalizedFeed(
        title=(meta.get("title") or "").strip() or UNKNOWN_FEED_TITLE,
        description=meta.get("description") or meta.get("subtitle") or "",
        items=[_normalize_entry(entry, fallback_time, snippet_length) for entry in entries],
    )


def _normalize_entry(entry, fallback_time: datetime, snippet_length: int) -> NormalizedItem:
    description = entry.get("summary") or entry.get("description") or ""
    content = _encoded_content(entry) or description

    snippet = entry.get("contentsnippet") or entry.get("snippet")
    if not snippet:
        snippet = make_snippet(description or content, snippet_length)

    return NormalizedItem(
        title=(entry.get("title") or "").strip() or UNTITLED_ITEM,
        link=(entry.get("link") or "").strip(),
        pub_date=_parse_datetime(entry) or fallback_time,
        author=entry.get("author") or entry.get("creator") or entry.get("dc_creator") or "",
        content=content,
        content_snippet=snippet,
        enclosure=_image_enclosure(entry),
    )


def _parse_datetime(entry) -> datetime | None:
    # feedparser는 파싱 가능한 날짜만 *_parsed (UTC struct_time)로 제공
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=UTC)
            except (TypeError, ValueError):
                return None
    return None


def _encoded_content(entry) -> str:
    """content:encoded / Atom content 본문."""
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return ""


def _image_enclosure(entry) -> Enclosure | None:
    """첫 번째 enclosure가 image/* 일 때만 반환."""
    enclosures = entry.get("enclosures") or []
    if not enclosures:
        return None
    enc = enclosures[0]
    mime = enc.get("type") or ""
    href = enc.get("href") or enc.get("url") or ""
    if href and mime.startswith("image/"):
        return Enclosure(url=href, type=mime)
    return None


def make_snippet(text: str, max_length: int = 200) -> str:
    """마크업 제거 후 max_length로 자르고 잘렸으면 '...' 추가."""
    if not text:
        return ""

    clean = BeautifulSoup(text, "html.parser").get_text()
    if len(clean) <= max_length:
        return clean

    return clean[:max_length].strip() + "..."
