"""공유 DB 쿼리 — 수집 파이프라인이 사용하는 Repository 패턴.

모든 쿼리는 SQLModel Session을 받아 순수 함수로 동작.
도메인 모델 변환은 호출자 책임 (Repository는 DB 모델만 반환).

중복 INSERT 정책:
    유니크 제약 위반은 예외로 전파하지 않고 `insert_if_absent` / `get_or_create`가
    "이미 존재"로 보고한다. 위반 시 해당 트랜잭션만 롤백.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, desc, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .models import (
    ArticleDB,
    FeedDB,
    KeywordDB,
    SentimentAnalysisDB,
    StockDB,
    StockMentionDB,
)

logger = logging.getLogger(__name__)


def _commit_unique(session: Session, record) -> bool:
    """record INSERT + commit. 유니크 제약 위반이면 롤백 후 False."""
    session.add(record)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        return False
    session.refresh(record)
    return True


# ─── Feeds ───────────────────────────────────────────────────────


class FeedRepository:
    """구독 피드."""

    @staticmethod
    def get_active_feeds(session: Session) -> list[FeedDB]:
        stmt = select(FeedDB).where(FeedDB.is_active == True).order_by(FeedDB.id)  # noqa: E712
        return list(session.exec(stmt).all())

    @staticmethod
    def get_feed(session: Session, feed_id: int) -> FeedDB | None:
        return session.get(FeedDB, feed_id)

    @staticmethod
    def get_by_url(session: Session, url: str) -> FeedDB | None:
        return session.exec(select(FeedDB).where(FeedDB.url == url)).first()

    @staticmethod
    def create_feed(session: Session, feed: FeedDB) -> FeedDB | None:
        """피드 생성. 같은 URL이 이미 있으면 None."""
        return feed if _commit_unique(session, feed) else None

    @staticmethod
    def mark_fetched(session: Session, feed_id: int, fetched_at: datetime) -> None:
        """lastFetched 단일 필드 갱신."""
        session.exec(
            update(FeedDB)  # type: ignore[call-overload]
            .where(FeedDB.id == feed_id)
            .values(last_fetched=fetched_at)
        )
        session.commit()


# ─── Articles ────────────────────────────────────────────────────


class ArticleRepository:
    """기사 — url이 식별 키."""

    @staticmethod
    def get_article(session: Session, article_id: int) -> ArticleDB | None:
        return session.get(ArticleDB, article_id)

    @staticmethod
    def get_by_url(session: Session, url: str) -> ArticleDB | None:
        return session.exec(select(ArticleDB).where(ArticleDB.url == url)).first()

    @staticmethod
    def insert_if_absent(session: Session, article: ArticleDB) -> ArticleDB | None:
        """신규 URL이면 INSERT 후 반환, 이미 있으면 None.

        조회와 INSERT 사이 동시 리프레시가 같은 URL을 먼저 넣은 경우
        유니크 제약 위반 → "이미 수집됨"으로 처리.
        """
        if ArticleRepository.get_by_url(session, article.url) is not None:
            return None
        if not _commit_unique(session, article):
            logger.debug("Article already admitted concurrently: %s", article.url)
            return None
        return article


# ─── Keywords ────────────────────────────────────────────────────


class KeywordRepository:
    """기사 키워드 (append-only)."""

    @staticmethod
    def get_keywords(session: Session, article_id: int) -> list[KeywordDB]:
        stmt = (
            select(KeywordDB)
            .where(KeywordDB.article_id == article_id)
            .order_by(desc(KeywordDB.frequency), KeywordDB.id)
        )
        return list(session.exec(stmt).all())

    @staticmethod
    def save_keywords(session: Session, article_id: int, counts: list[tuple[str, int]]) -> int:
        """키워드 일괄 저장. 이미 키워드가 있는 기사는 재계산하지 않음.

        Returns:
            저장된 키워드 수
        """
        if not counts:
            return 0
        existing = session.exec(select(KeywordDB.id).where(KeywordDB.article_id == article_id).limit(1)).first()
        if existing is not None:
            return 0

        session.add_all(KeywordDB(article_id=article_id, word=word, frequency=freq) for word, freq in counts)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            return 0
        return len(counts)


# ─── Sentiment ───────────────────────────────────────────────────


class SentimentRepository:
    """기사당 최대 1건의 감성 분석."""

    @staticmethod
    def get_for_article(session: Session, article_id: int) -> SentimentAnalysisDB | None:
        stmt = select(SentimentAnalysisDB).where(SentimentAnalysisDB.article_id == article_id)
        return session.exec(stmt).first()

    @staticmethod
    def insert_if_absent(session: Session, record: SentimentAnalysisDB) -> bool:
        """감성 분석 INSERT. 기사에 이미 분석 행이 있으면 False (덮어쓰지 않음)."""
        if SentimentRepository.get_for_article(session, record.article_id) is not None:
            return False
        return _commit_unique(session, record)

    @staticmethod
    def delete_for_article(session: Session, article_id: int) -> int:
        """재분석 전 기존 행 명시적 삭제."""
        result = session.exec(
            delete(SentimentAnalysisDB).where(SentimentAnalysisDB.article_id == article_id)  # type: ignore[call-overload]
        )
        session.commit()
        return result.rowcount or 0


# ─── Stocks ──────────────────────────────────────────────────────


class StockRepository:
    """종목 차원 테이블 — 첫 언급 시 lazy 생성."""

    @staticmethod
    def get_by_symbol(session: Session, symbol: str) -> StockDB | None:
        return session.exec(select(StockDB).where(StockDB.symbol == symbol)).first()

    @staticmethod
    def get_or_create(
        session: Session,
        symbol: str,
        name: str,
        *,
        exchange: str | None = None,
        sector: str | None = None,
        industry: str | None = None,
    ) -> StockDB:
        """심볼로 조회, 없으면 생성.

        두 탐지 호출이 같은 심볼을 동시에 생성하면 두 번째 INSERT는
        유니크 위반 → 롤백 후 먼저 생성된 행을 재조회.
        """
        existing = StockRepository.get_by_symbol(session, symbol)
        if existing is not None:
            return existing

        stock = StockDB(symbol=symbol, name=name[:200], exchange=exchange, sector=sector, industry=industry)
        if _commit_unique(session, stock):
            logger.info("Stock created: %s (%s)", symbol, name)
            return stock

        existing = StockRepository.get_by_symbol(session, symbol)
        if existing is None:
            raise LookupError(f"Stock {symbol} insert conflicted but row not found")
        return existing


class StockMentionRepository:
    """(article, stock) 쌍당 최대 1건."""

    @staticmethod
    def get_for_article(session: Session, article_id: int) -> list[StockMentionDB]:
        stmt = select(StockMentionDB).where(StockMentionDB.article_id == article_id).order_by(StockMentionDB.id)
        return list(session.exec(stmt).all())

    @staticmethod
    def insert_if_absent(session: Session, mention: StockMentionDB) -> bool:
        """언급 INSERT. 같은 (article, stock) 쌍이 있으면 False."""
        stmt = (
            select(StockMentionDB.id)
            .where(StockMentionDB.article_id == mention.article_id)
            .where(StockMentionDB.stock_id == mention.stock_id)
        )
        if session.exec(stmt).first() is not None:
            return False
        return _commit_unique(session, mention)
