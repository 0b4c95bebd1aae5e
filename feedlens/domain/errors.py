"""수집 파이프라인 예외 계층.

전파 정책:
    FetchError          → 피드 단위 실패. RefreshResult(success=False)로 기록
    AdmissionError      → 아이템 단위 실패. 로그 후 스킵
    AnalysisError       → 분석기 단위 실패. 로그 후 나머지 분석기 계속
    ProviderUnavailable → LLM 미설정. 조용히 로컬 전략으로 대체
"""


class FeedlensError(Exception):
    """feedlens 공통 예외."""


class FetchError(FeedlensError):
    """피드 조회/파싱 실패 (네트워크, non-2xx, 잘못된 XML)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch RSS feed {url}: {reason}")


class AdmissionError(FeedlensError):
    """단일 기사 INSERT 실패."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Article admission failed for {url}: {reason}")


class AnalysisError(FeedlensError):
    """분석기 실행 실패 (keyword / sentiment / stock)."""

    def __init__(self, analyzer: str, article_id: int | None, reason: str):
        self.analyzer = analyzer
        self.article_id = article_id
        self.reason = reason
        super().__init__(f"{analyzer} analysis failed for article {article_id}: {reason}")


class ProviderUnavailable(FeedlensError):
    """플러그형 분석 provider 미설정 (API 키 없음 등)."""


class FeedNotFoundError(FeedlensError):
    def __init__(self, feed_id: int):
        self.feed_id = feed_id
        super().__init__(f"Feed not found: {feed_id}")


class DuplicateFeedError(FeedlensError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Feed already exists: {url}")
