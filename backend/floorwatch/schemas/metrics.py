from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UNAVAILABLE = "unavailable"

SupplySource = Literal["chain", "stats", "holders", "unknown"]


class WindowMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume: float | None = None
    volume_usd: str = UNAVAILABLE
    price_change_percent: float = 0.0


class MetricsSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    floor_price: float
    floor_price_usd: str = UNAVAILABLE
    currency: str
    floor_price_source: str
    market_cap: float = 0.0
    market_cap_usd: str = UNAVAILABLE
    total_volume: float | None = None
    total_volume_usd: str = UNAVAILABLE
    windows: dict[str, WindowMetrics] = Field(default_factory=dict)
    holders: int | None = None
    total_supply: int = 0
    supply_source: SupplySource = "unknown"
    listed_count: int | None = None
    listing_ratio: float = 0.0
    cap_to_volume_ratio: float = 0.0
    usd_rate: str = UNAVAILABLE
    generated_at: datetime.datetime


class MetricsResponse(BaseModel):
    message: str
    data: MetricsSnapshot


class ErrorResponse(BaseModel):
    message: str
    data: dict = Field(default_factory=dict)
