"""E2E — RSS 문서 → fetch → admission → fan-out → DB 전체 흐름.

httpx.MockTransport로 원격 피드를, SQLite in-memory로 저장소를, AsyncMock으로
LLM provider를 대체.
"""

from datetime import UTC, datetime
from functools import partial
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlmodel import select

from feedlens.domain.config import get_config
from feedlens.infra.crawlers.rss import fetch_feed
from feedlens.infra.database.models import (
    ArticleDB,
    FeedDB,
    KeywordDB,
    SentimentAnalysisDB,
    StockDB,
    StockMentionDB,
)
from feedlens.services.ingest.refresher import build_refresher

FEED_URL = "https://markets.example.com/rss"
DOWN_URL = "https://down.example.com/rss"

RSS = b"""<?xml version="1.0"?>
<rss version="2.0">
  <channel>
    <title>Markets Daily</title>
    <item>
      <title>Apple stock price surged today on strong earnings</title>
      <link>https://markets.example.com/apple</link>
      <pubDate>Tue, 02 Jan 2024 09:00:00 GMT</pubDate>
      <description>Apple shares rally after a strong quarter.</description>
    </item>
    <item>
      <title>Tesla deliveries decline amid weak demand</title>
      <link>https://markets.example.com/tesla</link>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <description>Tesla faces a tough quarter as deliveries drop.</description>
    </item>
    <item>
      <title>Local council approves new park</title>
      <link>https://markets.example.com/park</link>
      <description>The council voted on Monday.</description>
    </item>
  </channel>
</rss>
"""


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "down.example.com":
        return httpx.Response(503)
    return httpx.Response(200, content=RSS, headers={"content-type": "application/rss+xml"})


@pytest.fixture
def fetcher():
    client = httpx.Client(transport=httpx.MockTransport(_handler))
    yield partial(fetch_feed, client=client)
    client.close()


@pytest.fixture
def feeds(session_factory):
    with session_factory() as s:
        s.add(FeedDB(url=FEED_URL, title="Markets Daily"))
        s.add(FeedDB(url=DOWN_URL, title="Down Feed"))
        s.commit()


def _count(session_factory, model) -> int:
    with session_factory() as s:
        return len(s.exec(select(model)).all())


@pytest.fixture
def local_refresher(session_factory, fetcher, monkeypatch):
    monkeypatch.setenv("INGEST_INTER_FEED_DELAY_SEC", "0")
    get_config.cache_clear()
    return build_refresher(session_factory, use_llm=False, fetcher=fetcher)


class TestRefreshFlow:
    def test_first_refresh_ingests_everything(self, feeds, local_refresher, session_factory):
        started = datetime.now(UTC).replace(tzinfo=None)

        results = local_refresher.refresh_all()

        by_title = {r.feed_title: r for r in results}
        assert by_title["Markets Daily"].success is True
        assert by_title["Markets Daily"].new_articles == 3
        assert by_title["Down Feed"].success is False
        assert "HTTP 503" in by_title["Down Feed"].error

        assert _count(session_factory, ArticleDB) == 3
        assert _count(session_factory, SentimentAnalysisDB) == 3
        assert _count(session_factory, KeywordDB) > 0

        with session_factory() as s:
            feed = s.exec(select(FeedDB).where(FeedDB.url == FEED_URL)).one()
            assert feed.last_fetched.replace(tzinfo=None) >= started

            apple = s.exec(select(ArticleDB).where(ArticleDB.url == "https://markets.example.com/apple")).one()
            mentions = s.exec(select(StockMentionDB).where(StockMentionDB.article_id == apple.id)).all()
            assert len(mentions) == 1
            stock = s.get(StockDB, mentions[0].stock_id)
            assert stock.symbol == "AAPL"
            assert mentions[0].context_type == "direct"
            assert mentions[0].relevance_score >= 0.8

            methods = {row.analysis_method for row in s.exec(select(SentimentAnalysisDB)).all()}
            assert methods == {"local"}

    def test_second_refresh_is_idempotent(self, feeds, local_refresher, session_factory):
        local_refresher.refresh_all()
        counts = {m: _count(session_factory, m) for m in (ArticleDB, SentimentAnalysisDB, KeywordDB, StockMentionDB)}

        results = local_refresher.refresh_all()

        markets = next(r for r in results if r.feed_title == "Markets Daily")
        assert markets.success is True
        assert markets.new_articles == 0
        assert {m: _count(session_factory, m) for m in counts} == counts

    def test_missing_pub_date_defaults_to_refresh_time(self, feeds, local_refresher, session_factory):
        before = datetime.now(UTC).replace(tzinfo=None)
        local_refresher.refresh_all()
        with session_factory() as s:
            park = s.exec(select(ArticleDB).where(ArticleDB.url == "https://markets.example.com/park")).one()
            assert park.published_at.replace(tzinfo=None) >= before


class TestProviderFailure:
    def test_sentiment_provider_failure_isolated_per_article(self, feeds, session_factory, fetcher, monkeypatch):
        """Apple 기사에서 LLM 감성 분석이 실패해도 키워드/종목 분석은 저장되고 감성은 로컬로 대체."""
        monkeypatch.setenv("INGEST_INTER_FEED_DELAY_SEC", "0")
        get_config.cache_clear()

        async def generate_json(prompt, schema, **kwargs):
            if "Apple" in prompt:
                raise RuntimeError("rate limited")
            if "stocks" in schema.get("properties", {}):
                return {"stocks": []}
            return {"overall": "negative", "positive": 0.1, "negative": 0.7, "neutral": 0.2, "confidence": 0.8}

        provider = MagicMock()
        provider.provider_name = "deepseek_cloud"
        provider.generate_json = AsyncMock(side_effect=generate_json)

        refresher = build_refresher(session_factory, llm_provider=provider, fetcher=fetcher)
        refresher.refresh_all()

        with session_factory() as s:
            apple = s.exec(select(ArticleDB).where(ArticleDB.url == "https://markets.example.com/apple")).one()
            tesla = s.exec(select(ArticleDB).where(ArticleDB.url == "https://markets.example.com/tesla")).one()

            apple_sentiment = s.exec(select(SentimentAnalysisDB).where(SentimentAnalysisDB.article_id == apple.id)).one()
            tesla_sentiment = s.exec(select(SentimentAnalysisDB).where(SentimentAnalysisDB.article_id == tesla.id)).one()
            assert apple_sentiment.analysis_method == "local"
            assert tesla_sentiment.analysis_method == "deepseek_cloud"

            assert s.exec(select(KeywordDB).where(KeywordDB.article_id == apple.id)).first() is not None
            apple_mentions = s.exec(select(StockMentionDB).where(StockMentionDB.article_id == apple.id)).all()
            assert [m.context_type for m in apple_mentions] == ["direct"]
