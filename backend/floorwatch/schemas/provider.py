from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from floorwatch.errors import FailureKind

T = TypeVar("T")


class UpstreamResult(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    ok: bool
    value: Optional[T] = None
    reason: Optional[FailureKind] = None
    detail: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "UpstreamResult[T]":
        if self.ok and (self.value is None or self.reason is not None):
            raise ValueError("a successful result carries a value and no failure reason")
        if not self.ok and (self.reason is None or self.value is not None):
            raise ValueError("a failed result carries a failure reason and no value")
        return self

    @classmethod
    def success(cls, value: T) -> "UpstreamResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: FailureKind, detail: str | None = None) -> "UpstreamResult[T]":
        return cls(ok=False, reason=reason, detail=detail)


class IntervalStats(BaseModel):
    window: str
    volume: Optional[float] = None
    average_price: Optional[float] = None
    sales: Optional[int] = None
    floor_price_delta: Optional[float] = None


class RawMarketStats(BaseModel):
    provider: str
    floor_price: Optional[float] = None
    currency: Optional[str] = None
    holders: Optional[int] = None
    total_volume: Optional[float] = None
    total_supply: Optional[int] = None
    listed_count: Optional[int] = None
    intervals: dict[str, IntervalStats] = Field(default_factory=dict)


class FloorQuote(BaseModel):
    provider: str
    floor_price: Optional[float] = None
    currency: Optional[str] = None


StatsResult = UpstreamResult[RawMarketStats]
FloorQuoteResult = UpstreamResult[FloorQuote]
SupplyResult = UpstreamResult[int]
RateResult = UpstreamResult[float]


class SourceBundle(BaseModel):
    stats_v2: StatsResult
    stats_v1: StatsResult
    floor_quote: FloorQuoteResult
    chain_supply: SupplyResult
    fx_rate: RateResult

    def failures(self) -> dict[str, str]:
        failed: dict[str, str] = {}
        for name in type(self).model_fields:
            result = getattr(self, name)
            if not result.ok and result.reason is not None:
                failed[name] = result.reason.value
        return failed
