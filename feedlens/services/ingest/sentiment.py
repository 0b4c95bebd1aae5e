"""Sentiment Analyzer 전략 — 로컬 사전 기반 + LLM 기반.

로컬 점수 규칙:
    공백 토큰화 → 각 토큰이 긍정/부정 단어를 부분 문자열로 포함하면 카운트
    매칭 0건: neutral, positive=0.5, negative=0.5, neutral=1.0, confidence=0.3 (고정 기본값)
    그 외: positive=pos/total, negative=neg/total, neutral=max(0, 1-pos-neg),
           confidence=|pos-neg|, overall=더 큰 쪽 (동률이면 neutral)
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from feedlens.domain.analysis import KeywordSentiment, SentimentResult
from feedlens.domain.enums import SentimentLabel
from feedlens.domain.errors import ProviderUnavailable
from feedlens.domain.lexicon import DEFAULT_SENTIMENT_LEXICON, SentimentLexicon
from feedlens.infra.llm.base import BaseLLMProvider

from .strategy import AnalysisStrategy, AsyncBridge

logger = logging.getLogger(__name__)

LOCAL_METHOD = "local"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


class LexiconScores(BaseModel):
    overall: SentimentLabel
    positive: float
    negative: float
    neutral: float
    confidence: float


def score_text(text: str, lexicon: SentimentLexicon = DEFAULT_SENTIMENT_LEXICON) -> LexiconScores:
    """사전 매칭 기반 감성 점수."""
    positive_count = 0
    negative_count = 0
    for word in text.lower().split():
        if any(pw in word for pw in lexicon.positive_words):
            positive_count += 1
        if any(nw in word for nw in lexicon.negative_words):
            negative_count += 1

    total = positive_count + negative_count
    if total == 0:
        return LexiconScores(
            overall=SentimentLabel.NEUTRAL,
            positive=0.5,
            negative=0.5,
            neutral=1.0,
            confidence=0.3,
        )

    positive = positive_count / total
    negative = negative_count / total
    if positive > negative:
        overall = SentimentLabel.POSITIVE
    elif negative > positive:
        overall = SentimentLabel.NEGATIVE
    else:
        overall = SentimentLabel.NEUTRAL

    return LexiconScores(
        overall=overall,
        positive=positive,
        negative=negative,
        neutral=max(0.0, 1 - positive - negative),
        confidence=abs(positive - negative),
    )


class LexiconSentimentStrategy(AnalysisStrategy[SentimentResult]):
    """고정 긍정/부정 단어 목록 기반 로컬 전략."""

    def __init__(self, lexicon: SentimentLexicon = DEFAULT_SENTIMENT_LEXICON):
        self._lexicon = lexicon

    @property
    def name(self) -> str:
        return LOCAL_METHOD

    def analyze(self, text: str, title: str = "") -> SentimentResult:
        scores = score_text(text, self._lexicon)
        return SentimentResult(
            **scores.model_dump(),
            keyword_sentiments=self._keyword_sentiments(text),
            method=self.name,
        )

    def _keyword_sentiments(self, text: str) -> dict[str, KeywordSentiment]:
        """관심 키워드가 포함된 문장만 모아 키워드별 감성 산출."""
        sentences = _SENTENCE_SPLIT.split(text)
        result: dict[str, KeywordSentiment] = {}

        for keyword in self._lexicon.focus_keywords:
            relevant = [s for s in sentences if keyword in s.lower()]
            if not relevant:
                continue
            scores = score_text(". ".join(relevant), self._lexicon)
            result[keyword] = KeywordSentiment(
                sentiment=scores.overall,
                score=scores.positive - scores.negative,
                confidence=scores.confidence,
                mentions=len(relevant),
            )

        return result


# ─── LLM ────────────────────────────────────────────────────


SENTIMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "overall": {"type": "string", "enum": ["positive", "negative", "neutral"]},
        "positive": {"type": "number", "minimum": 0, "maximum": 1},
        "negative": {"type": "number", "minimum": 0, "maximum": 1},
        "neutral": {"type": "number", "minimum": 0, "maximum": 1},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "keywordSentiments": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "sentiment": {"type": "string", "enum": ["positive", "negative", "neutral"]},
                    "score": {"type": "number", "minimum": -1, "maximum": 1},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                },
            },
        },
        "reasoning": {"type": "string"},
    },
    "required": ["overall", "positive", "negative", "neutral", "confidence"],
}

SENTIMENT_SYSTEM_PROMPT = (
    "You are a financial news sentiment analyst. "
    "Assess the overall tone of the article, the sentiment attached to its key terms, "
    "and its potential market impact. Always respond with valid JSON."
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class _LLMKeywordSentiment(BaseModel):
    sentiment: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = 0.0
    confidence: float = 0.5


class _LLMSentimentPayload(BaseModel):
    """LLM 응답 검증 — 누락 필드는 중립 기본값, 점수는 범위로 clamp."""

    overall: SentimentLabel = SentimentLabel.NEUTRAL
    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.5
    confidence: float = 0.5
    keyword_sentiments: dict[str, Any] = Field(default_factory=dict, alias="keywordSentiments")
    reasoning: str = ""

    @field_validator("overall", mode="before")
    @classmethod
    def _normalize_label(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class LLMSentimentStrategy(AnalysisStrategy[SentimentResult]):
    """LLM 기반 감성 분석 (title + 본문 → 점수 + 키워드별 감성 + 근거).

    Args:
        provider: LLM provider. None이면 사용 불가 (항상 로컬 fallback)
        bridge: async 호출 실행기
        max_chars: 프롬프트에 포함할 본문 최대 길이
    """

    def __init__(
        self,
        provider: BaseLLMProvider | None,
        bridge: AsyncBridge | None = None,
        max_chars: int = 2000,
    ):
        self._provider = provider
        self._bridge = bridge or AsyncBridge()
        self._max_chars = max_chars

    @property
    def name(self) -> str:
        return self._provider.provider_name if self._provider else "llm"

    def is_available(self) -> bool:
        return self._provider is not None

    def close(self) -> None:
        self._bridge.close()

    def analyze(self, text: str, title: str = "") -> SentimentResult:
        if self._provider is None:
            raise ProviderUnavailable("LLM sentiment provider not configured")

        prompt = (
            "Analyze the sentiment of the following news article.\n"
            f"Title: {title or '(untitled)'}\n"
            f"Content: {text[: self._max_chars]}\n\n"
            "Focus on the overall tone, the sentiment of key terms, the potential impact "
            "on markets and investors, and how objective the language is. "
            "Return overall, positive, negative, neutral, confidence, keywordSentiments "
            "and reasoning as JSON."
        )
        raw = self._bridge.run(
            self._provider.generate_json(
                prompt,
                SENTIMENT_SCHEMA,
                system=SENTIMENT_SYSTEM_PROMPT,
                service="sentiment_analysis",
            )
        )
        try:
            payload = _LLMSentimentPayload.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Malformed sentiment response: {e}") from e

        return SentimentResult(
            overall=payload.overall,
            positive=_clamp(payload.positive, 0, 1),
            negative=_clamp(payload.negative, 0, 1),
            neutral=_clamp(payload.neutral, 0, 1),
            confidence=_clamp(payload.confidence, 0, 1),
            keyword_sentiments=_parse_keyword_sentiments(payload.keyword_sentiments),
            reasoning=payload.reasoning or None,
            method=self.name,
        )


def _parse_keyword_sentiments(raw: dict[str, Any]) -> dict[str, KeywordSentiment]:
    """형식이 맞지 않는 항목은 버림."""
    result: dict[str, KeywordSentiment] = {}
    for keyword, value in raw.items():
        if not isinstance(value, dict):
            continue
        try:
            item = _LLMKeywordSentiment.model_validate(value)
        except ValidationError:
            logger.debug("Dropping malformed keyword sentiment: %s", keyword)
            continue
        result[str(keyword)[:100]] = KeywordSentiment(
            sentiment=item.sentiment,
            score=_clamp(item.score, -1, 1),
            confidence=_clamp(item.confidence, 0, 1),
        )
    return result
