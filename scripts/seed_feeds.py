"""기본 피드 + 종목 시딩 스크립트.

신규 설치 시 실행하여 기본 RSS 구독(CNN, BBC World, TechCrunch, Yahoo Finance)과
로컬 종목 유니버스의 stocks 행을 생성한다. 이미 있는 URL/심볼은 건드리지 않음.

Usage:
    # Dry-run (DB 저장 없이 결과 확인)
    python scripts/seed_feeds.py --dry-run

    # 실행
    python scripts/seed_feeds.py
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_FEEDS = [
    {
        "title": "CNN Top Stories",
        "url": "http://rss.cnn.com/rss/cnn_topstories.rss",
        "description": "CNN.com delivers the latest breaking news and information on the latest top stories, "
        "weather, business, entertainment, politics, and more.",
        "category": "general",
    },
    {
        "title": "BBC World News",
        "url": "https://feeds.bbci.co.uk/news/world/rss.xml",
        "description": "BBC News - World",
        "category": "general",
    },
    {
        "title": "TechCrunch",
        "url": "https://techcrunch.com/feed/",
        "description": "TechCrunch is a leading technology media property, dedicated to obsessively profiling "
        "startups, reviewing new Internet products, and breaking tech news.",
        "category": "technology",
    },
    {
        "title": "Yahoo Finance",
        "url": "https://feeds.finance.yahoo.com/rss/2.0/headline",
        "description": "Yahoo Finance - Business News, Personal Finance, Market Data",
        "category": "finance",
    },
]


def seed(dry_run: bool = False) -> dict:
    """feeds / stocks 테이블 시딩.

    Returns:
        {"feeds": int, "stocks": int} 신규 생성 건수
    """
    from feedlens.domain.lexicon import DEFAULT_STOCK_UNIVERSE
    from feedlens.infra.database.engine import get_session, init_db
    from feedlens.infra.database.models import FeedDB
    from feedlens.infra.database.repositories import FeedRepository, StockRepository

    if dry_run:
        for feed in DEFAULT_FEEDS:
            logger.info("  feed  %-20s %s", feed["title"], feed["url"])
        for listing in DEFAULT_STOCK_UNIVERSE.listings:
            logger.info("  stock %-6s %s (%s)", listing.symbol, listing.name, listing.sector)
        logger.info(
            "DRY-RUN: %d feeds, %d stocks would be seeded",
            len(DEFAULT_FEEDS),
            len(DEFAULT_STOCK_UNIVERSE.listings),
        )
        return {"feeds": 0, "stocks": 0}

    init_db()

    feeds_created = 0
    stocks_created = 0
    with get_session() as session:
        for feed in DEFAULT_FEEDS:
            if FeedRepository.get_by_url(session, feed["url"]) is not None:
                continue
            if FeedRepository.create_feed(session, FeedDB(**feed)) is not None:
                feeds_created += 1

        for listing in DEFAULT_STOCK_UNIVERSE.listings:
            if StockRepository.get_by_symbol(session, listing.symbol) is not None:
                continue
            StockRepository.get_or_create(
                session,
                listing.symbol,
                listing.name,
                exchange=listing.exchange,
                sector=listing.sector,
                industry=listing.industry,
            )
            stocks_created += 1

    logger.info("Seed complete: feeds=%d, stocks=%d", feeds_created, stocks_created)
    return {"feeds": feeds_created, "stocks": stocks_created}


def main():
    parser = argparse.ArgumentParser(description="Seed default feeds and stocks")
    parser.add_argument("--dry-run", action="store_true", help="Print results without DB write")
    args = parser.parse_args()

    result = seed(dry_run=args.dry_run)
    logger.info("Result: %s", result)


if __name__ == "__main__":
    main()
