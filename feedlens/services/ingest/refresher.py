"""Refresh Orchestrator — 활성 피드 순회 + 피드별 fetch → admit → analyze → lastFetched.

피드는 단일 워커에서 순차 처리하고 피드 사이에 고정 지연을 둔다.
한 피드의 실패는 해당 피드의 RefreshResult(success=False)로만 기록되며
refresh_all 밖으로 예외가 전파되지 않는다.

Usage:
    with build_refresher(get_session) as refresher:
        for result in refresher.refresh_all():
            print(result.feed_title, result.success, result.new_articles)
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from sqlmodel import Session

from feedlens.domain.config import AppConfig, get_config
from feedlens.domain.errors import DuplicateFeedError, FeedNotFoundError
from feedlens.domain.feed import NormalizedFeed, RefreshResult, RefreshSummary
from feedlens.infra.crawlers.rss import fetch_feed
from feedlens.infra.database.models import ArticleDB, FeedDB
from feedlens.infra.database.repositories import FeedRepository
from feedlens.infra.llm.base import BaseLLMProvider

from .admission import ArticleAdmission
from .fanout import AnalysisFanout
from .keywords import KeywordExtractor
from .sentiment import LexiconSentimentStrategy, LLMSentimentStrategy
from .stocks import LLMStockStrategy, LocalStockStrategy
from .strategy import AsyncBridge, resolve_llm_provider

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
Fetcher = Callable[[str], NormalizedFeed]


class FeedRefresher:
    """피드 리프레시 오케스트레이터.

    Args:
        session_factory: 피드별 새 Session 생성 (컨텍스트 매니저로 사용)
        admission: 신규 기사 게이트
        fanout: 기사별 분석 실행기
        fetcher: url → NormalizedFeed (FetchError 발생 가능)
        inter_feed_delay: 피드 사이 지연 (초)
        sleep: 지연 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        admission: ArticleAdmission | None = None,
        fanout: AnalysisFanout | None = None,
        fetcher: Fetcher = fetch_feed,
        inter_feed_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._session_factory = session_factory
        self.admission = admission or ArticleAdmission()
        self.fanout = fanout or AnalysisFanout()
        self._fetcher = fetcher
        self._inter_feed_delay = inter_feed_delay
        self._sleep = sleep

    def close(self) -> None:
        self.fanout.close()

    def __enter__(self) -> "FeedRefresher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- public ---

    def refresh_all(self) -> list[RefreshResult]:
        """모든 활성 피드 리프레시. 피드당 결과 1건, 예외를 던지지 않음."""
        try:
            with self._session_factory() as session:
                feeds = [(f.id, f.title, f.url) for f in FeedRepository.get_active_feeds(session)]
        except Exception:
            logger.exception("Failed to list active feeds")
            return []

        logger.info("Refreshing %d active feeds", len(feeds))
        results: list[RefreshResult] = []

        for idx, (feed_id, title, url) in enumerate(feeds):
            try:
                new_count = self._refresh_feed(feed_id, url)
                results.append(RefreshResult(feed_id=feed_id, feed_title=title, success=True, new_articles=new_count))
                logger.info("[feed %s] %s: %d new articles", feed_id, title, new_count)
            except Exception as e:
                results.append(RefreshResult(feed_id=feed_id, feed_title=title, success=False, error=str(e)))
                logger.warning("[feed %s] %s refresh failed: %s", feed_id, title, e)

            if idx < len(feeds) - 1 and self._inter_feed_delay > 0:
                self._sleep(self._inter_feed_delay)

        ok = sum(1 for r in results if r.success)
        logger.info("Refresh complete: %d/%d feeds succeeded", ok, len(results))
        return results

    def refresh_all_summary(self) -> RefreshSummary:
        return RefreshSummary(results=self.refresh_all())

    def refresh_one(self, feed_id: int) -> int:
        """단일 피드 즉시 리프레시. 신규 기사 수 반환.

        Raises:
            FeedNotFoundError: 피드 없음
            FetchError: 조회/파싱 실패
        """
        with self._session_factory() as session:
            feed = FeedRepository.get_feed(session, feed_id)
            if feed is None:
                raise FeedNotFoundError(feed_id)
            url = feed.url

        new_count = self._refresh_feed(feed_id, url)
        logger.info("[feed %s] on-demand refresh: %d new articles", feed_id, new_count)
        return new_count

    def add_feed(self, url: str, title: str | None = None, category: str | None = None) -> tuple[FeedDB, int]:
        """피드 구독 추가 + 즉시 첫 수집. (피드, 신규 기사 수) 반환.

        Raises:
            DuplicateFeedError: 이미 등록된 URL
            FetchError: 검증용 조회 실패 (피드는 생성되지 않음)
        """
        with self._session_factory() as session:
            if FeedRepository.get_by_url(session, url) is not None:
                raise DuplicateFeedError(url)

        parsed = self._fetcher(url)
        now = datetime.now(UTC)

        with self._session_factory() as session:
            feed = FeedRepository.create_feed(
                session,
                FeedDB(
                    url=url,
                    title=(title or parsed.title)[:500],
                    description=parsed.description or None,
                    category=category or "general",
                    last_fetched=now,
                ),
            )
            if feed is None:
                raise DuplicateFeedError(url)

            articles = self.admission.admit_new(session, feed.id, parsed.items)
            self._analyze_all(session, articles)
            session.refresh(feed)
            logger.info("[feed %s] added %s with %d articles", feed.id, url, len(articles))
            return feed, len(articles)

    # --- internals ---

    def _refresh_feed(self, feed_id: int, url: str) -> int:
        parsed = self._fetcher(url)
        with self._session_factory() as session:
            articles = self.admission.admit_new(session, feed_id, parsed.items)
            self._analyze_all(session, articles)
            FeedRepository.mark_fetched(session, feed_id, datetime.now(UTC))
        return len(articles)

    def _analyze_all(self, session: Session, articles: list[ArticleDB]) -> None:
        failed = 0
        for article in articles:
            report = self.fanout.analyze(session, article)
            if not report.ok:
                failed += 1
        if failed:
            logger.warning("%d/%d articles had analyzer failures", failed, len(articles))


def build_refresher(
    session_factory: SessionFactory,
    *,
    llm_provider: BaseLLMProvider | None = None,
    use_llm: bool = True,
    config: AppConfig | None = None,
    fetcher: Fetcher | None = None,
) -> FeedRefresher:
    """설정 기반 FeedRefresher 조립.

    use_llm=True이고 llm_provider가 없으면 팩토리에서 조회하며,
    미설정(API 키 없음)이면 로컬 전략만 사용.
    """
    config = config or get_config()
    if llm_provider is None and use_llm:
        llm_provider = resolve_llm_provider("analysis")

    bridge = AsyncBridge(timeout=config.llm.request_timeout_sec)
    max_chars = config.llm.max_input_chars
    fanout = AnalysisFanout(
        keyword_extractor=KeywordExtractor(limit=config.ingest.keyword_limit),
        sentiment_strategies=[
            LLMSentimentStrategy(llm_provider, bridge, max_chars),
            LexiconSentimentStrategy(),
        ],
        stock_strategies=[
            LLMStockStrategy(llm_provider, bridge, max_chars),
            LocalStockStrategy(),
        ],
    )

    return FeedRefresher(
        session_factory,
        admission=ArticleAdmission(),
        fanout=fanout,
        fetcher=fetcher or fetch_feed,
        inter_feed_delay=config.ingest.inter_feed_delay_sec,
    )
