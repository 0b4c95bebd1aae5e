"""Analysis Fan-out — 신규 기사 1건 → keyword / sentiment / stock 분석 + 저장.

세 분석기는 순서대로 실행되며 서로 격리된다. 한 분석기의 실패(예외, timeout,
잘못된 응답)는 로그만 남기고 나머지 분석기와 기사 수집에 영향을 주지 않는다.
같은 패스 안에서 재시도하지 않음.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlmodel import Session

from feedlens.domain.analysis import SentimentResult, StockMentionCandidate
from feedlens.domain.config import get_config
from feedlens.domain.lexicon import DEFAULT_STOCK_UNIVERSE, StockUniverse
from feedlens.infra.database.models import ArticleDB, SentimentAnalysisDB, StockMentionDB
from feedlens.infra.database.repositories import (
    ArticleRepository,
    KeywordRepository,
    SentimentRepository,
    StockMentionRepository,
    StockRepository,
)

from .keywords import KeywordExtractor
from .sentiment import LexiconSentimentStrategy
from .stocks import LocalStockStrategy
from .strategy import AnalysisStrategy, run_with_fallback

logger = logging.getLogger(__name__)

KEYWORDS = "keyword"
SENTIMENT = "sentiment"
STOCKS = "stock"


@dataclass
class FanoutReport:
    """기사 1건 분석 결과 요약."""

    article_id: int
    keywords: int = 0
    sentiment_method: str | None = None
    stock_mentions: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def keyword_text(article: ArticleDB) -> str:
    return f"{article.title} {article.summary or ''}"


def analysis_text(article: ArticleDB) -> str:
    return f"{article.title} {article.content or ''}"


class AnalysisFanout:
    """기사별 분석기 실행기.

    Args:
        keyword_extractor: 빈도 기반 키워드 추출기
        sentiment_strategies: [LLM, 로컬] 순서의 감성 전략 목록
        stock_strategies: [LLM, 로컬] 순서의 종목 탐지 전략 목록
        universe: lazy 생성되는 종목 행의 거래소/섹터 정보 출처
    """

    def __init__(
        self,
        keyword_extractor: KeywordExtractor | None = None,
        sentiment_strategies: Sequence[AnalysisStrategy[SentimentResult]] | None = None,
        stock_strategies: Sequence[AnalysisStrategy[list[StockMentionCandidate]]] | None = None,
        universe: StockUniverse = DEFAULT_STOCK_UNIVERSE,
    ):
        self.keyword_extractor = keyword_extractor or KeywordExtractor()
        self.sentiment_strategies = list(sentiment_strategies or [LexiconSentimentStrategy()])
        self.stock_strategies = list(stock_strategies or [LocalStockStrategy(universe)])
        self._universe = universe

    def close(self) -> None:
        """전략이 보유한 LLM 이벤트 루프 정리."""
        for strategy in (*self.sentiment_strategies, *self.stock_strategies):
            strategy.close()

    def analyze(self, session: Session, article: ArticleDB) -> FanoutReport:
        """세 분석기 실행. 예외를 던지지 않음 — 실패는 report.failures에 기록."""
        report = FanoutReport(article_id=article.id)

        steps = (
            (KEYWORDS, self._run_keywords),
            (SENTIMENT, self._run_sentiment),
            (STOCKS, self._run_stocks),
        )
        for analyzer, step in steps:
            try:
                step(session, article, report)
            except Exception as e:
                session.rollback()
                logger.warning("[article %s] %s analyzer failed: %s", article.id, analyzer, e)
                report.failures[analyzer] = str(e)

        logger.debug(
            "[article %s] analyzed: %d keywords, sentiment=%s, %d stock mentions",
            article.id,
            report.keywords,
            report.sentiment_method,
            report.stock_mentions,
        )
        return report

    def reanalyze_sentiment(self, session: Session, article_id: int) -> SentimentResult:
        """기존 감성 분석 행 삭제 후 재분석 + 저장.

        Raises:
            LookupError: 기사 없음
            AnalysisError: 모든 감성 전략 실패 (기존 행은 이미 삭제됨)
        """
        article = ArticleRepository.get_article(session, article_id)
        if article is None:
            raise LookupError(f"Article not found: {article_id}")

        deleted = SentimentRepository.delete_for_article(session, article_id)
        logger.info("[article %s] removed %d sentiment rows before re-analysis", article_id, deleted)

        result, _ = run_with_fallback(
            self.sentiment_strategies,
            analysis_text(article),
            article.title,
            analyzer=SENTIMENT,
            article_id=article_id,
        )
        SentimentRepository.insert_if_absent(session, _sentiment_row(article_id, result))
        return result

    # --- analyzers ---

    def _run_keywords(self, session: Session, article: ArticleDB, report: FanoutReport) -> None:
        counts = self.keyword_extractor.extract(keyword_text(article))
        report.keywords = KeywordRepository.save_keywords(session, article.id, counts)

    def _run_sentiment(self, session: Session, article: ArticleDB, report: FanoutReport) -> None:
        result, method = run_with_fallback(
            self.sentiment_strategies,
            analysis_text(article),
            article.title,
            analyzer=SENTIMENT,
            article_id=article.id,
        )
        if SentimentRepository.insert_if_absent(session, _sentiment_row(article.id, result)):
            report.sentiment_method = method
        else:
            logger.debug("[article %s] sentiment already present, skipped", article.id)

    def _run_stocks(self, session: Session, article: ArticleDB, report: FanoutReport) -> None:
        candidates, _ = run_with_fallback(
            self.stock_strategies,
            analysis_text(article),
            article.title,
            analyzer=STOCKS,
            article_id=article.id,
        )
        ingest = get_config().ingest
        for candidate in candidates:
            # 종목 1건 실패가 나머지 언급 저장을 막지 않음
            try:
                listing = self._universe.get(candidate.symbol)
                stock = StockRepository.get_or_create(
                    session,
                    candidate.symbol,
                    candidate.name,
                    exchange=listing.exchange if listing and listing.exchange else ingest.default_exchange,
                    sector=listing.sector if listing and listing.sector else ingest.default_sector,
                    industry=listing.industry if listing else None,
                )
                inserted = StockMentionRepository.insert_if_absent(
                    session,
                    StockMentionDB(
                        article_id=article.id,
                        stock_id=stock.id,
                        relevance_score=candidate.relevance_score,
                        mention_count=candidate.count,
                        context_type=candidate.context_type.value,
                    ),
                )
            except Exception as e:
                session.rollback()
                logger.warning("[article %s] stock mention %s not saved: %s", article.id, candidate.symbol, e)
                continue
            if inserted:
                report.stock_mentions += 1


def _sentiment_row(article_id: int, result: SentimentResult) -> SentimentAnalysisDB:
    keyword_sentiments = {k: v.model_dump(mode="json", exclude_none=True) for k, v in result.keyword_sentiments.items()}
    return SentimentAnalysisDB(
        article_id=article_id,
        overall_sentiment=result.overall.value,
        positive_score=result.positive,
        negative_score=result.negative,
        neutral_score=result.neutral,
        confidence_score=result.confidence,
        keyword_sentiments_json=json.dumps(keyword_sentiments, ensure_ascii=False),
        reasoning=result.reasoning,
        analysis_method=result.method[:30],
    )
