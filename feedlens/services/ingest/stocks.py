"""Stock-Mention Detector 전략 — 로컬 심볼/회사명 매칭 + LLM 탐지.

로컬 relevance:
    0.5 + 0.1 × (본문에 포함된 금융 키워드 수) + 0.2 (앞 100자 내 심볼/회사명) → 최대 1.0
contextType:
    direct (심볼/회사명 포함) → sector (tech 용어) → market (market 용어) → indirect
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from feedlens.domain.analysis import StockMentionCandidate
from feedlens.domain.enums import ContextType
from feedlens.domain.errors import ProviderUnavailable
from feedlens.domain.lexicon import DEFAULT_STOCK_UNIVERSE, StockListing, StockUniverse
from feedlens.infra.llm.base import BaseLLMProvider

from .strategy import AnalysisStrategy, AsyncBridge

logger = logging.getLogger(__name__)

BASE_RELEVANCE = 0.5
KEYWORD_BONUS = 0.1
HEADLINE_BONUS = 0.2

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.\-]{1,10}$")


def _mention_pattern(listing: StockListing) -> re.Pattern[str]:
    """심볼 + 회사명/별칭 단어 경계 매칭. 긴 후보 우선 (겹침 이중 카운트 방지)."""
    terms = sorted({listing.symbol, *listing.match_terms}, key=len, reverse=True)
    alternation = "|".join(re.escape(t) for t in terms)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)


class LocalStockStrategy(AnalysisStrategy[list[StockMentionCandidate]]):
    """고정 종목 유니버스 기반 로컬 탐지."""

    def __init__(self, universe: StockUniverse = DEFAULT_STOCK_UNIVERSE):
        self._universe = universe
        self._patterns = [(listing, _mention_pattern(listing)) for listing in universe.listings]

    @property
    def name(self) -> str:
        return "local"

    def analyze(self, text: str, title: str = "") -> list[StockMentionCandidate]:
        mentions = []
        for listing, pattern in self._patterns:
            count = len(pattern.findall(text))
            if count == 0:
                continue
            mentions.append(
                StockMentionCandidate(
                    symbol=listing.symbol,
                    name=listing.name,
                    count=count,
                    relevance_score=self.relevance(text, listing),
                    context_type=self.context_type(text, listing),
                )
            )
        return mentions

    def relevance(self, text: str, listing: StockListing) -> float:
        lowered = text.lower()
        score = BASE_RELEVANCE
        score += KEYWORD_BONUS * sum(1 for kw in self._universe.financial_keywords if kw in lowered)

        headline = lowered[: self._universe.headline_window]
        if _contains_any(headline, (listing.symbol, *listing.match_terms)):
            score += HEADLINE_BONUS

        # 부동소수 누적 오차 제거 (0.5 + 0.1×3 → 0.8)
        return round(min(1.0, score), 4)

    def context_type(self, text: str, listing: StockListing) -> ContextType:
        lowered = text.lower()
        if _contains_any(lowered, (listing.symbol, *listing.match_terms)):
            return ContextType.DIRECT
        if _contains_any(lowered, self._universe.sector_terms):
            return ContextType.SECTOR
        if _contains_any(lowered, self._universe.market_terms):
            return ContextType.MARKET
        return ContextType.INDIRECT


def _contains_any(lowered: str, terms: tuple[str, ...]) -> bool:
    return any(t.lower() in lowered for t in terms)


# ─── LLM ────────────────────────────────────────────────────


STOCK_SCHEMA = {
    "type": "object",
    "properties": {
        "stocks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "symbol": {"type": "string"},
                    "name": {"type": "string"},
                    "relevance": {"type": "number", "minimum": 0, "maximum": 1},
                    "sentiment": {"type": "string", "enum": ["positive", "negative", "neutral"]},
                    "reasoning": {"type": "string"},
                },
                "required": ["symbol"],
            },
        }
    },
    "required": ["stocks"],
}

STOCK_SYSTEM_PROMPT = (
    "You are a financial analyst who identifies listed companies mentioned in news "
    "and estimates how relevant the article is to each of them. Always respond with valid JSON."
)


class _LLMStock(BaseModel):
    symbol: str = ""
    name: str = ""
    relevance: float | None = None


class _LLMStockPayload(BaseModel):
    stocks: list[dict[str, Any]] = Field(default_factory=list)


class LLMStockStrategy(AnalysisStrategy[list[StockMentionCandidate]]):
    """LLM 기반 종목 탐지. 모든 결과는 count=1, contextType=deepseek_detected."""

    def __init__(
        self,
        provider: BaseLLMProvider | None,
        bridge: AsyncBridge | None = None,
        max_chars: int = 2000,
        universe: StockUniverse = DEFAULT_STOCK_UNIVERSE,
    ):
        self._provider = provider
        self._bridge = bridge or AsyncBridge()
        self._max_chars = max_chars
        self._universe = universe

    @property
    def name(self) -> str:
        return self._provider.provider_name if self._provider else "llm"

    def is_available(self) -> bool:
        return self._provider is not None

    def close(self) -> None:
        self._bridge.close()

    def analyze(self, text: str, title: str = "") -> list[StockMentionCandidate]:
        if self._provider is None:
            raise ProviderUnavailable("LLM stock provider not configured")

        common = ", ".join(sorted(self._universe.symbols))
        prompt = (
            "Identify the stocks mentioned in the following news article and rate how "
            "relevant the article is to each one.\n"
            f"Title: {title or '(untitled)'}\n"
            f"Content: {text[: self._max_chars]}\n\n"
            "Include explicitly mentioned ticker symbols and company names. "
            f"Common tickers include {common}. "
            'Return {"stocks": [{"symbol", "name", "relevance", "sentiment", "reasoning"}]} as JSON.'
        )
        raw = self._bridge.run(
            self._provider.generate_json(
                prompt,
                STOCK_SCHEMA,
                system=STOCK_SYSTEM_PROMPT,
                service="stock_detection",
            )
        )
        try:
            payload = _LLMStockPayload.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Malformed stock detection response: {e}") from e

        mentions: dict[str, StockMentionCandidate] = {}
        for entry in payload.stocks:
            try:
                stock = _LLMStock.model_validate(entry)
            except ValidationError:
                continue
            symbol = stock.symbol.strip().upper()
            if symbol in mentions:
                continue
            if not _SYMBOL_PATTERN.match(symbol):
                logger.debug("Dropping invalid ticker from LLM response: %r", stock.symbol)
                continue
            relevance = 0.5 if stock.relevance is None else max(0.0, min(1.0, stock.relevance))
            listing = self._universe.get(symbol)
            mentions[symbol] = StockMentionCandidate(
                symbol=symbol,
                name=stock.name.strip() or (listing.name if listing else symbol),
                count=1,
                relevance_score=relevance,
                context_type=ContextType.LLM_DETECTED,
            )

        return list(mentions.values())
