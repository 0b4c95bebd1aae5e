"""피드 수집 모델 — 정규화된 피드/아이템 + 리프레시 결과."""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from .types import Count


class Enclosure(BaseModel):
    """이미지 첨부 (MIME type이 image/* 인 경우만 유지)."""

    url: str
    type: str


class NormalizedItem(BaseModel):
    """정규화된 피드 아이템."""

    title: str
    link: str
    pub_date: datetime
    author: str = ""
    content: str = ""
    content_snippet: str = ""
    enclosure: Enclosure | None = None

    @property
    def image_url(self) -> str | None:
        return self.enclosure.url if self.enclosure else None


class NormalizedFeed(BaseModel):
    """원격 RSS/Atom 문서의 정규화 결과."""

    title: str
    description: str = ""
    items: list[NormalizedItem] = Field(default_factory=list)


class RefreshResult(BaseModel):
    """피드 1건 리프레시 결과."""

    feed_id: int
    feed_title: str
    success: bool
    new_articles: Count | None = None
    error: str | None = None


class RefreshSummary(BaseModel):
    """refresh_all 집계 — 트리거 API 응답용."""

    results: list[RefreshResult] = Field(default_factory=list)

    @computed_field
    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @computed_field
    @property
    def total_new_articles(self) -> int:
        return sum(r.new_articles or 0 for r in self.results)

    @computed_field
    @property
    def message(self) -> str:
        return f"Refreshed {self.success_count}/{len(self.results)} feeds"
