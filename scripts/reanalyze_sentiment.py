"""감성 분석 재실행 — 기존 sentiment_analyses 행을 삭제한 뒤 다시 분석.

LLM provider를 새로 설정했거나 사전을 바꾼 뒤, 이미 수집된 기사의 감성 점수를
다시 계산할 때 사용. 기사당 분석 행은 1건이므로 삭제 후 INSERT.

Usage:
    python scripts/reanalyze_sentiment.py --article-id 42
    python scripts/reanalyze_sentiment.py --method local --limit 100
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlmodel import select

from feedlens.infra.database.engine import get_session
from feedlens.infra.database.models import SentimentAnalysisDB
from feedlens.services.ingest.refresher import build_refresher

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Re-run sentiment analysis for stored articles")
    parser.add_argument("--article-id", type=int, default=None, help="단일 기사만 재분석")
    parser.add_argument("--method", default=None, help="이 analysis_method로 분석된 기사만 (예: local)")
    parser.add_argument("--limit", type=int, default=50, help="최대 재분석 건수")
    parser.add_argument("--no-llm", action="store_true", help="LLM 분석 비활성화")
    args = parser.parse_args()

    refresher = build_refresher(get_session, use_llm=not args.no_llm)
    fanout = refresher.fanout

    with refresher, get_session() as session:
        if args.article_id is not None:
            article_ids = [args.article_id]
        else:
            stmt = select(SentimentAnalysisDB.article_id)
            if args.method:
                stmt = stmt.where(SentimentAnalysisDB.analysis_method == args.method)
            stmt = stmt.order_by(SentimentAnalysisDB.article_id).limit(args.limit)
            article_ids = list(session.exec(stmt).all())

        logger.info("Re-analyzing %d articles", len(article_ids))

        done = 0
        failed = 0
        for article_id in article_ids:
            try:
                result = fanout.reanalyze_sentiment(session, article_id)
            except Exception as e:
                session.rollback()
                logger.warning("  article %d: failed: %s", article_id, e)
                failed += 1
                continue
            logger.info(
                "  article %d: %s (confidence %.2f, %s)",
                article_id,
                result.overall.value,
                result.confidence,
                result.method,
            )
            done += 1

    logger.info("Done: %d re-analyzed, %d failed", done, failed)


if __name__ == "__main__":
    main()
