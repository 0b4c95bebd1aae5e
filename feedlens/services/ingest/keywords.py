"""Keyword Extractor — 빈도 기반 상위 키워드 (외부 호출 없음, 결정적)."""

import re
from collections import Counter

DEFAULT_STOP_WORDS = frozenset(
    [
        "the",
        "a",
        "an",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "is",
        "are",
        "was",
        "were",
        "be",
        "been",
        "being",
        "have",
        "has",
        "had",
        "do",
        "does",
        "did",
        "will",
        "would",
        "could",
        "should",
        "may",
        "might",
        "can",
        "this",
        "that",
        "these",
        "those",
    ]
)

_PUNCTUATION = re.compile(r"[^\w\s]")
# KeywordDB.word max_length와 일치
KEYWORD_MAX_LENGTH = 100


class KeywordExtractor:
    """소문자화 → 구두점 제거 → 공백 토큰화 → 필터 → 빈도 상위 N.

    Args:
        stop_words: 제외 단어
        limit: 반환 키워드 수
        min_length: 최소 토큰 길이 (이 길이 미만 제외)
        max_length: 최대 토큰 길이 (초과 토큰 제외)
    """

    def __init__(
        self,
        stop_words: frozenset[str] = DEFAULT_STOP_WORDS,
        limit: int = 10,
        min_length: int = 4,
        max_length: int = KEYWORD_MAX_LENGTH,
    ):
        self._stop_words = stop_words
        self._limit = limit
        self._min_length = min_length
        self._max_length = max_length

    def extract(self, text: str) -> list[tuple[str, int]]:
        """[(word, frequency), ...] 빈도 내림차순. 동률은 첫 등장 순서."""
        words = _PUNCTUATION.sub("", text.lower()).split()
        counts = Counter(
            w for w in words if self._min_length <= len(w) <= self._max_length and w not in self._stop_words
        )
        # most_common은 안정 정렬 → 동률이면 삽입(첫 등장) 순서 유지
        return counts.most_common(self._limit)
