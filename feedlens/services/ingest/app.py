"""Feed Ingest 서비스 — 피드 리프레시 트리거 API.

HTTP POST /refresh 로 전체 활성 피드 수집, /feeds/{id}/refresh 로 단일 피드 수집,
POST /feeds 로 구독 추가(즉시 첫 수집). INGEST_REFRESH_INTERVAL_SEC > 0 이면
백그라운드 루프가 주기적으로 전체 리프레시를 실행.

Data Flow:
  RSS fetch → Dedup/Admission → DB(articles)
            → Fan-out → DB(keywords, sentiment_analyses, stock_mentions)
"""

import logging
import threading
import time
from contextlib import asynccontextmanager

from fastapi import Depends
from pydantic import BaseModel, Field

from feedlens.domain.config import get_config
from feedlens.domain.feed import RefreshSummary
from feedlens.infra.database.engine import init_db
from feedlens.infra.observability.logging import setup_logging_from_config
from feedlens.services.base import create_app
from feedlens.services.deps import close_refresher, get_refresher

from .refresher import FeedRefresher

logger = logging.getLogger(__name__)

# ─── Background Loop ──────────────────────────────────

_loop_running = False
_loop_thread: threading.Thread | None = None


def _refresh_loop(interval: int) -> None:
    """주기적 전체 리프레시 루프."""
    cycle = 0
    logger.info("Feed refresh daemon started (interval %ds)", interval)

    while _loop_running:
        cycle += 1
        try:
            summary = get_refresher().refresh_all_summary()
            logger.info("[cycle %d] %s, %d new articles", cycle, summary.message, summary.total_new_articles)
        except Exception as e:
            logger.error("[cycle %d] Refresh loop error: %s", cycle, e, exc_info=True)

        # 조기 종료 확인하며 대기
        for _ in range(interval):
            if not _loop_running:
                break
            time.sleep(1)

    logger.info("Feed refresh daemon stopped")


# ─── FastAPI App ────────────────────────────────────────


@asynccontextmanager
async def lifespan(app):
    global _loop_running, _loop_thread
    setup_logging_from_config("feed-ingest")
    init_db()

    interval = get_config().ingest.refresh_interval_sec
    if interval > 0:
        _loop_running = True
        _loop_thread = threading.Thread(target=_refresh_loop, args=(interval,), name="feed-refresh-loop", daemon=True)
        _loop_thread.start()

    yield

    _loop_running = False
    if _loop_thread:
        _loop_thread.join(timeout=10)
        _loop_thread = None
    close_refresher()


app = create_app("feed-ingest", version="1.0.0", lifespan=lifespan, dependencies=["db"])


class FeedRefreshResponse(BaseModel):
    feed_id: int
    new_articles: int = 0
    message: str = ""


class AddFeedRequest(BaseModel):
    url: str = Field(min_length=1, max_length=1000)
    title: str | None = None
    category: str | None = None


class AddFeedResponse(BaseModel):
    feed_id: int
    title: str
    url: str
    category: str
    new_articles: int = 0


@app.post("/refresh")
def refresh_all(refresher: FeedRefresher = Depends(get_refresher)) -> RefreshSummary:
    """전체 활성 피드 리프레시. 일부 피드가 실패해도 항상 200."""
    return refresher.refresh_all_summary()


@app.post("/feeds/{feed_id}/refresh")
def refresh_feed(feed_id: int, refresher: FeedRefresher = Depends(get_refresher)) -> FeedRefreshResponse:
    """단일 피드 즉시 리프레시. 피드 없음 404, 조회 실패 502."""
    new_articles = refresher.refresh_one(feed_id)
    return FeedRefreshResponse(
        feed_id=feed_id,
        new_articles=new_articles,
        message=f"Feed refreshed, {new_articles} new articles",
    )


@app.post("/feeds", status_code=201)
def add_feed(body: AddFeedRequest, refresher: FeedRefresher = Depends(get_refresher)) -> AddFeedResponse:
    """피드 구독 추가 + 첫 수집. 중복 URL 409."""
    feed, new_articles = refresher.add_feed(body.url, title=body.title, category=body.category)
    return AddFeedResponse(
        feed_id=feed.id,
        title=feed.title,
        url=feed.url,
        category=feed.category,
        new_articles=new_articles,
    )
