"""공용 Fixtures — SQLite in-memory DB + 설정 캐시 초기화."""

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from feedlens.domain.config import get_config
from feedlens.infra.database import models  # noqa: F401  # 테이블 메타데이터 등록


@pytest.fixture(autouse=True)
def _clear_config():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def engine():
    """스레드 간 공유되는 SQLite in-memory engine (FK 강제)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def session_factory(engine):
    return lambda: Session(engine)
