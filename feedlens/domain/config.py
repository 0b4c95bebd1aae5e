"""통합 설정 모델 — Pydantic Settings 기반.

모든 설정값은 환경 변수로 주입. 우선순위:
  1. 환경 변수 (docker-compose env, .env)
  2. Pydantic Settings 기본값
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """데이터베이스 설정."""

    url: str = "sqlite:///./feedlens.db"
    pool_pre_ping: bool = True

    model_config = {"env_prefix": "DB_"}

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class LLMConfig(BaseSettings):
    """LLM 설정."""

    tier_analysis_provider: str = "deepseek_cloud"
    deepseek_model: str = "deepseek-chat"
    openai_model: str = "gpt-4o-mini"
    request_timeout_sec: float = 30.0
    # 프롬프트에 포함할 본문 최대 길이
    max_input_chars: int = 2000

    model_config = {"env_prefix": "LLM_"}


class IngestConfig(BaseSettings):
    """피드 수집 파이프라인 설정."""

    # 요청 전체(연결~본문 수신) 데드라인
    fetch_timeout_sec: float = 15.0
    max_feed_bytes: int = 10 * 1024 * 1024
    inter_feed_delay_sec: float = 1.0
    snippet_length: int = 200
    keyword_limit: int = 10
    user_agent: str = "Mozilla/5.0 (compatible; feedlens/1.0; +https://github.com/feedlens)"
    # 0이면 백그라운드 루프 비활성화
    refresh_interval_sec: int = 0
    # 신규 Stock 행의 placeholder 값
    default_exchange: str = "NASDAQ"
    default_sector: str = "Technology"

    model_config = {"env_prefix": "INGEST_"}


class SecretsConfig(BaseSettings):
    """외부 서비스 API 키 — 환경변수 직접 매핑 (prefix 없음).

    env_prefix 없이 필드명이 곧 환경변수명:
        deepseek_api_key → DEEPSEEK_API_KEY
        openai_api_key   → OPENAI_API_KEY
    """

    deepseek_api_key: str = ""
    openrouter_api_key: str = ""
    openai_api_key: str = ""


class AppConfig(BaseSettings):
    """최상위 설정 — 서브 설정 객체를 조합.

    Usage:
        from feedlens.domain.config import get_config
        config = get_config()
        print(config.db.url)
        print(config.ingest.inter_feed_delay_sec)
    """

    env: str = Field(default="production", description="development | staging | production")
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = True

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)

    model_config = {"env_prefix": "APP_"}


@lru_cache
def get_config() -> AppConfig:
    """싱글턴 설정 인스턴스.

    프로세스 내에서 한 번만 환경 변수를 읽고 캐싱.
    테스트에서는 get_config.cache_clear()로 초기화.
    """
    return AppConfig()
