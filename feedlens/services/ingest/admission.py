"""Dedup & Upsert — 정규화된 아이템 중 신규 URL만 Article로 INSERT.

식별 키는 URL 동일성뿐 (콘텐츠 해시 없음). 이미 있는 URL은 갱신하지 않고 스킵.
아이템 1건의 실패는 로그 후 스킵하며 나머지 배치는 계속 처리.
"""

import logging
from collections.abc import Iterable

from sqlmodel import Session

from feedlens.domain.errors import AdmissionError
from feedlens.domain.feed import NormalizedItem
from feedlens.infra.database.models import ArticleDB
from feedlens.infra.database.repositories import ArticleRepository

logger = logging.getLogger(__name__)


def to_article(feed_id: int, item: NormalizedItem) -> ArticleDB:
    return ArticleDB(
        feed_id=feed_id,
        title=item.title[:1000],
        content=item.content or None,
        summary=item.content_snippet or None,
        url=item.link,
        author=item.author[:300] or None,
        published_at=item.pub_date,
        image_url=item.image_url,
    )


class ArticleAdmission:
    """기사 수집 게이트."""

    def admit_new(self, session: Session, feed_id: int, items: Iterable[NormalizedItem]) -> list[ArticleDB]:
        """신규 아이템만 INSERT. 실제로 삽입된 Article 목록 반환 (입력 순서)."""
        admitted: list[ArticleDB] = []
        skipped = 0

        for item in items:
            if not item.link:
                logger.debug("[feed %s] item without link skipped: %s", feed_id, item.title)
                skipped += 1
                continue
            try:
                article = self._admit_one(session, feed_id, item)
            except AdmissionError as e:
                logger.warning("[feed %s] %s", feed_id, e)
                skipped += 1
                continue
            if article is None:
                skipped += 1
            else:
                admitted.append(article)

        logger.info("[feed %s] admitted %d new articles (%d skipped)", feed_id, len(admitted), skipped)
        return admitted

    def _admit_one(self, session: Session, feed_id: int, item: NormalizedItem) -> ArticleDB | None:
        try:
            return ArticleRepository.insert_if_absent(session, to_article(feed_id, item))
        except Exception as e:
            session.rollback()
            raise AdmissionError(item.link, str(e)) from e
