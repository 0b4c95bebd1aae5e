"""feedlens 도메인 모델 — 수집 파이프라인 데이터 계약의 Single Source of Truth.

Usage:
    from feedlens.domain import NormalizedFeed, SentimentResult, RefreshResult
    from feedlens.domain.config import AppConfig
"""

# --- Types ---
from .types import Count, SignedScore, TickerSymbol, UnitScore

# --- Enums ---
from .enums import ContextType, SentimentLabel

# --- Errors ---
from .errors import (
    AdmissionError,
    AnalysisError,
    DuplicateFeedError,
    FeedlensError,
    FeedNotFoundError,
    FetchError,
    ProviderUnavailable,
)

# --- Feed ---
from .feed import Enclosure, NormalizedFeed, NormalizedItem, RefreshResult, RefreshSummary

# --- Analysis ---
from .analysis import KeywordSentiment, SentimentResult, StockMentionCandidate

# --- Lexicon ---
from .lexicon import (
    DEFAULT_SENTIMENT_LEXICON,
    DEFAULT_STOCK_UNIVERSE,
    SentimentLexicon,
    StockListing,
    StockUniverse,
)

__all__ = [
    # Types
    "Count",
    "SignedScore",
    "TickerSymbol",
    "UnitScore",
    # Enums
    "ContextType",
    "SentimentLabel",
    # Errors
    "AdmissionError",
    "AnalysisError",
    "DuplicateFeedError",
    "FeedlensError",
    "FeedNotFoundError",
    "FetchError",
    "ProviderUnavailable",
    # Feed
    "Enclosure",
    "NormalizedFeed",
    "NormalizedItem",
    "RefreshResult",
    "RefreshSummary",
    # Analysis
    "KeywordSentiment",
    "SentimentResult",
    "StockMentionCandidate",
    # Lexicon
    "DEFAULT_SENTIMENT_LEXICON",
    "DEFAULT_STOCK_UNIVERSE",
    "SentimentLexicon",
    "StockListing",
    "StockUniverse",
]
