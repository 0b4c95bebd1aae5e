"""전체(또는 단일) 피드 1회 리프레시 — cron 등 외부 스케줄러용.

Usage:
    python scripts/refresh_feeds.py
    python scripts/refresh_feeds.py --feed-id 3
    python scripts/refresh_feeds.py --no-llm   # 로컬 분석기만 사용
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from feedlens.infra.database.engine import get_session, init_db
from feedlens.infra.observability.logging import setup_logging_from_config
from feedlens.services.ingest.refresher import build_refresher

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Refresh RSS feeds once")
    parser.add_argument("--feed-id", type=int, default=None, help="단일 피드만 리프레시")
    parser.add_argument("--no-llm", action="store_true", help="LLM 분석 비활성화")
    args = parser.parse_args()

    setup_logging_from_config("feed-refresh")
    init_db()

    with build_refresher(get_session, use_llm=not args.no_llm) as refresher:
        if args.feed_id is not None:
            new_articles = refresher.refresh_one(args.feed_id)
            logger.info("Feed %d: %d new articles", args.feed_id, new_articles)
            return

        summary = refresher.refresh_all_summary()

    for result in summary.results:
        if result.success:
            logger.info("  OK   %-30s %d new", result.feed_title, result.new_articles or 0)
        else:
            logger.info("  FAIL %-30s %s", result.feed_title, result.error)
    logger.info("%s, %d new articles", summary.message, summary.total_new_articles)


if __name__ == "__main__":
    main()
