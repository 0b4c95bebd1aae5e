"""FastAPI Depends 기반 DI — 서비스 공통 의존성 팩토리.

Usage:
    from feedlens.services.deps import get_refresher

    @app.post("/refresh")
    def refresh(refresher: FeedRefresher = Depends(get_refresher)):
        ...
"""

from functools import lru_cache

from feedlens.infra.database.engine import get_session
from feedlens.services.ingest.refresher import FeedRefresher, build_refresher


@lru_cache
def get_refresher() -> FeedRefresher:
    """설정 기반 FeedRefresher (싱글턴). 피드마다 get_session()으로 새 세션."""
    return build_refresher(get_session)


def close_refresher() -> None:
    """싱글턴 FeedRefresher 자원 정리 (앱 종료 시)."""
    if get_refresher.cache_info().currsize:
        get_refresher().close()
        get_refresher.cache_clear()
