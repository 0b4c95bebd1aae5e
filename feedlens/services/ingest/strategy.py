"""분석 전략 인터페이스 — LLM / 로컬 전략 공통 계약 + fallback 체인.

감성 분석과 종목 탐지는 같은 형태의 전략 목록을 가진다:
    [LLM 전략 (설정된 경우), 로컬 전략]
fan-out은 목록 순서대로 is_available() 확인 후 실행하고, 실패하면 다음 전략으로
넘어간다. fallback은 기사 단위이며 다음 기사는 다시 첫 전략부터 시도.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Coroutine, Sequence
from typing import Any, Generic, TypeVar

from feedlens.domain.errors import AnalysisError, ProviderUnavailable
from feedlens.infra.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisStrategy(ABC, Generic[T]):
    """분석 capability: {is_available(), analyze(text, title)}."""

    @property
    @abstractmethod
    def name(self) -> str:
        """결과 태그 (analysis_method)."""
        ...

    def is_available(self) -> bool:
        return True

    def close(self) -> None:
        """보유 자원 정리 (기본: 없음)."""

    @abstractmethod
    def analyze(self, text: str, title: str = "") -> T: ...


def run_with_fallback(
    strategies: Sequence[AnalysisStrategy[T]],
    text: str,
    title: str,
    *,
    analyzer: str,
    article_id: int | None = None,
) -> tuple[T, str]:
    """사용 가능한 첫 전략부터 순차 실행. (결과, 전략 이름) 반환.

    Raises:
        AnalysisError: 모든 전략이 실패했거나 사용 가능한 전략이 없음
    """
    errors: list[str] = []
    for strategy in strategies:
        if not strategy.is_available():
            logger.debug("[article %s] %s strategy '%s' unavailable", article_id, analyzer, strategy.name)
            continue
        try:
            return strategy.analyze(text, title), strategy.name
        except ProviderUnavailable:
            logger.debug("[article %s] %s strategy '%s' not configured", article_id, analyzer, strategy.name)
        except Exception as e:
            logger.warning(
                "[article %s] %s strategy '%s' failed, falling back: %s",
                article_id,
                analyzer,
                strategy.name,
                e,
            )
            errors.append(f"{strategy.name}: {e}")

    raise AnalysisError(analyzer, article_id, "; ".join(errors) or "no strategy available")


class AsyncBridge:
    """동기 파이프라인에서 async LLM 호출 실행.

    provider의 async HTTP 클라이언트가 이벤트 루프에 묶이므로 루프 하나를 재사용.
    루프는 첫 호출 때 생성하고 close()로 정리. 호출마다 timeout 적용, 스레드 간 직렬화.
    """

    def __init__(self, timeout: float = 30.0):
        self._timeout = timeout
        self._runner: asyncio.Runner | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._runner is not None

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        with self._lock:
            if self._runner is None:
                self._runner = asyncio.Runner()
            return self._runner.run(asyncio.wait_for(coro, self._timeout))

    def close(self) -> None:
        """이벤트 루프 종료. 여러 번 호출해도 안전, 이후 run()은 새 루프 생성."""
        with self._lock:
            if self._runner is not None:
                self._runner.close()
                self._runner = None

    def __enter__(self) -> "AsyncBridge":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def resolve_llm_provider(tier: str = "analysis") -> BaseLLMProvider | None:
    """LLM provider 조회. 미설정(API 키 없음 등)이면 None — 로컬 전략만 사용."""
    from feedlens.infra.llm.factory import LLMFactory

    try:
        return LLMFactory.get_provider(tier)
    except Exception as e:
        logger.info("LLM provider unavailable, using local analyzers: %s", e)
        return None
