"""Database infrastructure — SQLModel engine, session, table models."""

from .engine import get_engine, get_session, init_db
from .models import (
    ArticleDB,
    FeedDB,
    KeywordDB,
    SentimentAnalysisDB,
    StockDB,
    StockMentionDB,
)

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "ArticleDB",
    "FeedDB",
    "KeywordDB",
    "SentimentAnalysisDB",
    "StockDB",
    "StockMentionDB",
]
