"""분석기 고정 어휘 — 감성 사전, 종목 유니버스.

불변 dataclass로 정의하고 각 로컬 전략 생성 시 주입한다.
DEFAULT_* 인스턴스가 기본값.
"""

from dataclasses import dataclass

FINANCIAL_KEYWORDS: tuple[str, ...] = (
    "stock",
    "price",
    "trading",
    "market",
    "earnings",
    "revenue",
    "profit",
    "shares",
)


@dataclass(frozen=True)
class SentimentLexicon:
    """로컬 감성 분석 어휘."""

    positive_words: tuple[str, ...]
    negative_words: tuple[str, ...]
    # keywordSentiments 산출 대상
    focus_keywords: tuple[str, ...] = (
        "stock",
        "market",
        "price",
        "trading",
        "investment",
        "earnings",
        "revenue",
        "profit",
    )


@dataclass(frozen=True)
class StockListing:
    """종목 1건 — 심볼, 표시명, 본문 매칭용 별칭."""

    symbol: str
    name: str
    aliases: tuple[str, ...] = ()
    exchange: str | None = None
    sector: str | None = None
    industry: str | None = None

    @property
    def match_terms(self) -> tuple[str, ...]:
        """회사명 매칭 후보 (표시명 + 별칭)."""
        return (self.name, *self.aliases)


@dataclass(frozen=True)
class StockUniverse:
    """로컬 종목 탐지 대상 + 맥락 판정 어휘."""

    listings: tuple[StockListing, ...]
    financial_keywords: tuple[str, ...] = FINANCIAL_KEYWORDS
    sector_terms: tuple[str, ...] = ("tech", "technology")
    market_terms: tuple[str, ...] = ("market", "stocks")
    # 제목 영역으로 간주하는 앞부분 길이
    headline_window: int = 100

    @property
    def symbols(self) -> frozenset[str]:
        return frozenset(s.symbol for s in self.listings)

    def get(self, symbol: str) -> StockListing | None:
        for listing in self.listings:
            if listing.symbol == symbol:
                return listing
        return None


DEFAULT_SENTIMENT_LEXICON = SentimentLexicon(
    positive_words=(
        "good",
        "great",
        "excellent",
        "amazing",
        "wonderful",
        "fantastic",
        "awesome",
        "brilliant",
        "success",
        "win",
        "victory",
        "achievement",
        "breakthrough",
        "innovation",
        "growth",
        "profit",
        "increase",
        "rise",
        "boost",
        "improve",
        "better",
        "best",
        "positive",
        "optimistic",
        "strong",
        "bullish",
        "surge",
        "soar",
        "rally",
        "gain",
        "advance",
        "upgrade",
        "outperform",
    ),
    negative_words=(
        "bad",
        "terrible",
        "awful",
        "horrible",
        "disaster",
        "crisis",
        "problem",
        "issue",
        "fail",
        "failure",
        "loss",
        "decline",
        "decrease",
        "drop",
        "fall",
        "crash",
        "negative",
        "pessimistic",
        "concern",
        "worry",
        "risk",
        "danger",
        "threat",
        "weak",
        "bearish",
        "plunge",
        "tumble",
        "slide",
        "slump",
        "downgrade",
        "underperform",
        "volatile",
        "uncertainty",
    ),
)

DEFAULT_STOCK_UNIVERSE = StockUniverse(
    listings=(
        StockListing("AAPL", "Apple Inc.", ("Apple",), "NASDAQ", "Technology", "Consumer Electronics"),
        StockListing("GOOGL", "Alphabet Inc.", ("Alphabet", "Google"), "NASDAQ", "Technology", "Internet Content & Information"),
        StockListing("MSFT", "Microsoft Corporation", ("Microsoft",), "NASDAQ", "Technology", "Software"),
        StockListing("AMZN", "Amazon.com Inc.", ("Amazon",), "NASDAQ", "Consumer Cyclical", "Internet Retail"),
        StockListing("TSLA", "Tesla Inc.", ("Tesla",), "NASDAQ", "Consumer Cyclical", "Auto Manufacturers"),
        StockListing("META", "Meta Platforms Inc.", ("Meta Platforms",), "NASDAQ", "Technology", "Internet Content & Information"),
        StockListing("NVDA", "NVIDIA Corporation", ("NVIDIA",), "NASDAQ", "Technology", "Semiconductors"),
        StockListing("NFLX", "Netflix Inc.", ("Netflix",), "NASDAQ", "Communication Services", "Entertainment"),
        StockListing("AMD", "Advanced Micro Devices", (), "NASDAQ", "Technology", "Semiconductors"),
        StockListing("INTC", "Intel Corporation", ("Intel",), "NASDAQ", "Technology", "Semiconductors"),
    )
)
