"""열거형 정의 — 시스템 전체에서 사용하는 상수값."""

from enum import StrEnum


class SentimentLabel(StrEnum):
    """전체 감성 판정"""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ContextType(StrEnum):
    """종목 언급 맥락"""

    DIRECT = "direct"  # 심볼/회사명 직접 언급
    SECTOR = "sector"  # 기술 섹터 맥락
    MARKET = "market"  # 시장 전반 맥락
    INDIRECT = "indirect"
    LLM_DETECTED = "deepseek_detected"  # LLM 탐지 결과
