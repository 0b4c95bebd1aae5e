"""분석 결과 모델 — 감성 분석, 종목 언급."""

from pydantic import BaseModel, Field

from .enums import ContextType, SentimentLabel
from .types import Count, SignedScore, TickerSymbol, UnitScore


class KeywordSentiment(BaseModel):
    """키워드별 감성 세부 점수."""

    sentiment: SentimentLabel
    score: SignedScore  # positive - negative
    confidence: UnitScore
    mentions: Count | None = None  # 로컬 전략만 채움


class SentimentResult(BaseModel):
    """감성 분석 결과.

    positive + negative + neutral 합이 1일 필요는 없음 (로컬 휴리스틱 기본값
    0.5/0.5/1.0). 각 점수만 [0, 1]로 제한.
    """

    overall: SentimentLabel
    positive: UnitScore
    negative: UnitScore
    neutral: UnitScore
    confidence: UnitScore
    keyword_sentiments: dict[str, KeywordSentiment] = Field(default_factory=dict)
    reasoning: str | None = None
    method: str  # 결과를 만든 전략 이름 (local, deepseek_cloud, ...)


class StockMentionCandidate(BaseModel):
    """기사 내 종목 언급 후보 (저장 전)."""

    symbol: TickerSymbol
    name: str
    count: Count = 1
    relevance_score: UnitScore
    context_type: ContextType
