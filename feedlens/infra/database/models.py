"""SQLModel 테이블 정의 — DB 스키마의 Single Source of Truth.

각 테이블은 SQLModel(table=True)로 정의.
유니크 제약이 파이프라인 멱등성의 유일한 동시성 안전장치:
    articles.url, sentiment_analyses.article_id, stocks.symbol,
    stock_mentions(article_id, stock_id)
"""

from datetime import UTC, datetime

from sqlalchemy import Index, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ─── Feeds & Articles ────────────────────────────────────────────


class FeedDB(SQLModel, table=True):
    __tablename__ = "feeds"

    id: int | None = Field(default=None, primary_key=True)
    url: str = Field(max_length=1000)
    title: str = Field(max_length=500)
    description: str | None = Field(default=None, sa_type=Text)
    category: str = Field(default="general", max_length=50)
    language: str = Field(default="en", max_length=10)
    is_active: bool = Field(default=True)
    last_fetched: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (
        UniqueConstraint("url", name="uq_feeds_url"),
        Index("ix_feeds_active", "is_active"),
    )


class ArticleDB(SQLModel, table=True):
    __tablename__ = "articles"

    id: int | None = Field(default=None, primary_key=True)
    feed_id: int = Field(foreign_key="feeds.id")
    title: str = Field(max_length=1000)
    content: str | None = Field(default=None, sa_type=Text)
    summary: str | None = Field(default=None, sa_type=Text)
    url: str = Field(max_length=2000)
    author: str | None = Field(default=None, max_length=300)
    published_at: datetime
    image_url: str | None = Field(default=None, max_length=2000)
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (
        UniqueConstraint("url", name="uq_articles_url"),
        Index("ix_articles_feed_published", "feed_id", "published_at"),
    )


# ─── Analysis ────────────────────────────────────────────────────


class KeywordDB(SQLModel, table=True):
    __tablename__ = "keywords"

    id: int | None = Field(default=None, primary_key=True)
    article_id: int = Field(foreign_key="articles.id")
    word: str = Field(max_length=100)
    frequency: int

    __table_args__ = (
        UniqueConstraint("article_id", "word", name="uq_keywords_article_word"),
        Index("ix_keywords_word", "word"),
    )


class SentimentAnalysisDB(SQLModel, table=True):
    __tablename__ = "sentiment_analyses"

    id: int | None = Field(default=None, primary_key=True)
    article_id: int = Field(foreign_key="articles.id")
    overall_sentiment: str = Field(max_length=10)
    positive_score: float
    negative_score: float
    neutral_score: float
    confidence_score: float
    keyword_sentiments_json: str | None = Field(default=None, sa_type=Text)
    reasoning: str | None = Field(default=None, sa_type=Text)
    analysis_method: str = Field(max_length=30)
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (UniqueConstraint("article_id", name="uq_sentiment_article"),)


# ─── Stocks ──────────────────────────────────────────────────────


class StockDB(SQLModel, table=True):
    __tablename__ = "stocks"

    id: int | None = Field(default=None, primary_key=True)
    symbol: str = Field(max_length=10)
    name: str = Field(max_length=200)
    exchange: str | None = Field(default=None, max_length=20)
    sector: str | None = Field(default=None, max_length=50)
    industry: str | None = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (UniqueConstraint("symbol", name="uq_stocks_symbol"),)


class StockMentionDB(SQLModel, table=True):
    __tablename__ = "stock_mentions"

    id: int | None = Field(default=None, primary_key=True)
    article_id: int = Field(foreign_key="articles.id")
    stock_id: int = Field(foreign_key="stocks.id")
    relevance_score: float
    mention_count: int = 1
    context_type: str = Field(max_length=30)
    created_at: datetime = Field(default_factory=_utcnow)

    __table_args__ = (
        UniqueConstraint("article_id", "stock_id", name="uq_mentions_article_stock"),
        Index("ix_mentions_stock", "stock_id", "created_at"),
    )
