"""SQLModel engine, session factory, 스키마 초기화."""

from functools import lru_cache

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from feedlens.domain.config import get_config


@lru_cache
def get_engine():
    """프로세스 전역 SQLAlchemy Engine (싱글턴).

    테스트에서는 get_engine.cache_clear() 후 재생성.
    """
    config = get_config()
    connect_args = {"check_same_thread": False} if config.db.is_sqlite else {}
    engine = create_engine(
        config.db.url,
        pool_pre_ping=config.db.pool_pre_ping,
        echo=config.debug,
        connect_args=connect_args,
    )

    if config.db.is_sqlite:
        # SQLite는 연결마다 FK 강제를 켜야 함
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(engine=None) -> None:
    """테이블 생성 (없는 것만)."""
    from . import models  # noqa: F401  # 테이블 메타데이터 등록

    SQLModel.metadata.create_all(engine or get_engine())



def get_session() -> Session:
    """작업 단위 세션 팩토리 (피드 1건, 스크립트 1회).

    Usage:
        with get_session() as session:
            FeedRepository.get_active_feeds(session)
    """
    return Session(get_engine())
