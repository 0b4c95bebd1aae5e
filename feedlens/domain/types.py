"""기본 타입 정의 — 서비스 전체에서 공유하는 Annotated 타입."""

from typing import Annotated

from pydantic import Field

# 0~1 범위 점수 (감성 점수, 관련도, 신뢰도)
UnitScore = Annotated[float, Field(ge=0, le=1)]

# -1~1 범위 방향성 점수 (positive - negative)
SignedScore = Annotated[float, Field(ge=-1, le=1)]

# 종목 심볼: 영문 대문자/숫자/점 (예: "AAPL", "BRK.B")
TickerSymbol = Annotated[str, Field(min_length=1, max_length=10, pattern=r"^[A-Z0-9.\-]+$")]

# 0 이상 정수 (건수)
Count = Annotated[int, Field(ge=0)]
