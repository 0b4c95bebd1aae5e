"""Analysis Fan-out 단위 테스트 — 분석기 격리 + 저장 멱등성."""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from sqlmodel import select

from feedlens.domain.analysis import SentimentResult, StockMentionCandidate
from feedlens.domain.enums import ContextType, SentimentLabel
from feedlens.infra.database.models import (
    ArticleDB,
    FeedDB,
    KeywordDB,
    SentimentAnalysisDB,
    StockDB,
    StockMentionDB,
)
from feedlens.services.ingest.fanout import AnalysisFanout
from feedlens.services.ingest.sentiment import LexiconSentimentStrategy
from feedlens.services.ingest.stocks import LocalStockStrategy
from feedlens.services.ingest.strategy import AnalysisStrategy


class BrokenStrategy(AnalysisStrategy):
    @property
    def name(self) -> str:
        return "broken"

    def analyze(self, text, title=""):
        raise RuntimeError("provider exploded")


class FixedSentiment(AnalysisStrategy[SentimentResult]):
    def __init__(self, method: str):
        self._method = method

    @property
    def name(self) -> str:
        return self._method

    def analyze(self, text, title=""):
        return SentimentResult(
            overall=SentimentLabel.NEGATIVE,
            positive=0.1,
            negative=0.8,
            neutral=0.1,
            confidence=0.7,
            reasoning="Weak guidance",
            method=self._method,
        )


class FixedStocks(AnalysisStrategy[list[StockMentionCandidate]]):
    def __init__(self, *symbols: str):
        self._symbols = symbols

    @property
    def name(self) -> str:
        return "fixed"

    def analyze(self, text, title=""):
        return [
            StockMentionCandidate(symbol=s, name=f"{s} Holdings", relevance_score=0.6, context_type=ContextType.LLM_DETECTED)
            for s in self._symbols
        ]


@pytest.fixture
def article(session) -> ArticleDB:
    feed = FeedDB(url="https://wire.example.com/rss", title="Wire")
    session.add(feed)
    session.commit()
    article = ArticleDB(
        feed_id=feed.id,
        title="Apple stock price surged today on strong earnings",
        summary="Apple shares rally after earnings beat",
        content="Apple reported record revenue. The market cheered the strong results.",
        url="https://wire.example.com/apple",
        published_at=datetime(2024, 1, 1, tzinfo=UTC),
    )
    session.add(article)
    session.commit()
    session.refresh(article)
    return article


class TestAnalyze:
    def test_all_analyzers_persist(self, session, article):
        report = AnalysisFanout().analyze(session, article)

        assert report.ok
        assert report.keywords > 0
        assert report.sentiment_method == "local"
        assert report.stock_mentions == 1

        words = [k.word for k in session.exec(select(KeywordDB)).all()]
        assert "apple" in words
        assert "earnings" in words

        sentiment = session.exec(select(SentimentAnalysisDB)).one()
        assert sentiment.analysis_method == "local"
        assert sentiment.overall_sentiment == "positive"
        assert "market" in json.loads(sentiment.keyword_sentiments_json)

        stock = session.exec(select(StockDB)).one()
        assert stock.symbol == "AAPL"
        assert stock.exchange == "NASDAQ"
        assert stock.industry == "Consumer Electronics"
        mention = session.exec(select(StockMentionDB)).one()
        assert mention.context_type == "direct"
        assert mention.stock_id == stock.id

    def test_sentiment_failure_isolated(self, session, article):
        fanout = AnalysisFanout(sentiment_strategies=[BrokenStrategy()])
        report = fanout.analyze(session, article)

        assert "sentiment" in report.failures
        assert session.exec(select(SentimentAnalysisDB)).first() is None
        assert len(session.exec(select(KeywordDB)).all()) > 0
        assert len(session.exec(select(StockMentionDB)).all()) == 1

    def test_keyword_failure_isolated(self, session, article):
        extractor = MagicMock()
        extractor.extract.side_effect = RuntimeError("tokenizer crashed")
        report = AnalysisFanout(keyword_extractor=extractor).analyze(session, article)

        assert set(report.failures) == {"keyword"}
        assert session.exec(select(SentimentAnalysisDB)).first() is not None
        assert len(session.exec(select(StockMentionDB)).all()) == 1

    def test_llm_failure_falls_back_to_local(self, session, article):
        fanout = AnalysisFanout(
            sentiment_strategies=[BrokenStrategy(), LexiconSentimentStrategy()],
            stock_strategies=[BrokenStrategy(), LocalStockStrategy()],
        )
        report = fanout.analyze(session, article)

        assert report.ok
        assert report.sentiment_method == "local"
        assert report.stock_mentions == 1

    def test_rerun_is_idempotent(self, session, article):
        fanout = AnalysisFanout()
        fanout.analyze(session, article)
        keywords_before = len(session.exec(select(KeywordDB)).all())

        report = fanout.analyze(session, article)

        assert report.ok
        assert report.keywords == 0
        assert report.stock_mentions == 0
        assert len(session.exec(select(KeywordDB)).all()) == keywords_before
        assert len(session.exec(select(SentimentAnalysisDB)).all()) == 1
        assert len(session.exec(select(StockMentionDB)).all()) == 1

    def test_unknown_symbol_gets_placeholder_listing(self, session, article):
        fanout = AnalysisFanout(stock_strategies=[FixedStocks("ZZZ", "AAPL")])
        report = fanout.analyze(session, article)

        assert report.stock_mentions == 2
        zzz = session.exec(select(StockDB).where(StockDB.symbol == "ZZZ")).one()
        assert zzz.name == "ZZZ Holdings"
        assert zzz.exchange == "NASDAQ"
        assert zzz.sector == "Technology"
        contexts = {m.context_type for m in session.exec(select(StockMentionDB)).all()}
        assert contexts == {"deepseek_detected"}

    def test_existing_stock_reused(self, session, article):
        session.add(StockDB(symbol="AAPL", name="Apple Inc.", exchange="NASDAQ"))
        session.commit()

        AnalysisFanout().analyze(session, article)

        assert len(session.exec(select(StockDB)).all()) == 1


class TestReanalyzeSentiment:
    def test_replaces_previous_row(self, session, article):
        AnalysisFanout().analyze(session, article)

        result = AnalysisFanout(sentiment_strategies=[FixedSentiment("deepseek_cloud")]).reanalyze_sentiment(
            session, article.id
        )

        assert result.method == "deepseek_cloud"
        rows = session.exec(select(SentimentAnalysisDB)).all()
        assert len(rows) == 1
        assert rows[0].analysis_method == "deepseek_cloud"
        assert rows[0].overall_sentiment == "negative"
        assert rows[0].reasoning == "Weak guidance"

    def test_missing_article(self, session):
        with pytest.raises(LookupError):
            AnalysisFanout().reanalyze_sentiment(session, 999)
