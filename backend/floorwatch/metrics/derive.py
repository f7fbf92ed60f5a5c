from __future__ import annotations

import datetime
from typing import Callable, Optional, Sequence, TypeVar

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import NoResolvableFloorPrice
from floorwatch.schemas.metrics import UNAVAILABLE, MetricsSnapshot, SupplySource, WindowMetrics
from floorwatch.schemas.provider import RawMarketStats, SourceBundle

T = TypeVar("T")

Extractor = Callable[[SourceBundle], Optional[T]]


def _v2(bundle: SourceBundle) -> RawMarketStats | None:
    return bundle.stats_v2.value if bundle.stats_v2.ok else None


def _v1(bundle: SourceBundle) -> RawMarketStats | None:
    return bundle.stats_v1.value if bundle.stats_v1.ok else None


def _stats_field(source: Callable[[SourceBundle], RawMarketStats | None], field: str) -> Extractor:
    def extract(bundle: SourceBundle):
        stats = source(bundle)
        return getattr(stats, field) if stats is not None else None

    return extract


def _interval_field(
    source: Callable[[SourceBundle], RawMarketStats | None], window: str, field: str
) -> Extractor:
    def extract(bundle: SourceBundle):
        stats = source(bundle)
        if stats is None or window not in stats.intervals:
            return None
        return getattr(stats.intervals[window], field)

    return extract


def _quote_floor(bundle: SourceBundle) -> float | None:
    return bundle.floor_quote.value.floor_price if bundle.floor_quote.ok else None


def _quote_currency(bundle: SourceBundle) -> str | None:
    return bundle.floor_quote.value.currency if bundle.floor_quote.ok else None


def _chain_supply(bundle: SourceBundle) -> int | None:
    return bundle.chain_supply.value if bundle.chain_supply.ok else None


# Ordered fallback chains, highest priority first.
FLOOR_PRICE_SOURCES: list[tuple[str, Extractor[float]]] = [
    ("opensea_v2", _stats_field(_v2, "floor_price")),
    ("opensea_v1", _stats_field(_v1, "floor_price")),
    ("moralis", _quote_floor),
]

CURRENCY_SOURCES: dict[str, Extractor[str]] = {
    "opensea_v2": _stats_field(_v2, "currency"),
    "opensea_v1": _stats_field(_v1, "currency"),
    "moralis": _quote_currency,
}

DECLARED_SUPPLY_SOURCES: list[tuple[str, Extractor[int]]] = [
    ("opensea_v2", _stats_field(_v2, "total_supply")),
    ("opensea_v1", _stats_field(_v1, "total_supply")),
]

HOLDER_SOURCES: list[tuple[str, Extractor[int]]] = [
    ("opensea_v2", _stats_field(_v2, "holders")),
    ("opensea_v1", _stats_field(_v1, "holders")),
]

LISTED_COUNT_SOURCES: list[tuple[str, Extractor[int]]] = [
    ("opensea_v2", _stats_field(_v2, "listed_count")),
    ("opensea_v1", _stats_field(_v1, "listed_count")),
]

TOTAL_VOLUME_SOURCES: list[tuple[str, Extractor[float]]] = [
    ("opensea_v2", _stats_field(_v2, "total_volume")),
    ("opensea_v1", _stats_field(_v1, "total_volume")),
]


def window_volume_sources(window: str) -> list[tuple[str, Extractor[float]]]:
    return [
        ("opensea_v2", _interval_field(_v2, window, "volume")),
        ("opensea_v1", _interval_field(_v1, window, "volume")),
    ]


def floor_delta_sources(window: str) -> list[tuple[str, Extractor[float]]]:
    return [
        ("opensea_v2", _interval_field(_v2, window, "floor_price_delta")),
        ("opensea_v1", _interval_field(_v1, window, "floor_price_delta")),
    ]


def _is_present(value) -> bool:
    return value is not None


def _is_positive(value) -> bool:
    return value is not None and value > 0


def first_present(
    bundle: SourceBundle,
    sources: Sequence[tuple[str, Extractor[T]]],
    accept: Callable[[T], bool] = _is_present,
) -> tuple[str, T] | None:
    for name, extract in sources:
        value = extract(bundle)
        if accept(value):
            return name, value
    return None


def resolve_floor_price(bundle: SourceBundle) -> tuple[str, float] | None:
    return first_present(bundle, FLOOR_PRICE_SOURCES, _is_positive)


def resolve_currency(bundle: SourceBundle, floor_source: str, default: str) -> str:
    currency = CURRENCY_SOURCES[floor_source](bundle)
    if currency:
        return currency
    found = first_present(bundle, list(CURRENCY_SOURCES.items()), bool)
    return found[1] if found else default


def resolve_supply(bundle: SourceBundle) -> tuple[SupplySource, int]:
    chain_value = _chain_supply(bundle)
    if chain_value:
        return "chain", chain_value
    declared = first_present(bundle, DECLARED_SUPPLY_SOURCES, _is_positive)
    if declared is not None:
        return "stats", declared[1]
    holders = first_present(bundle, HOLDER_SOURCES, _is_positive)
    if holders is not None:
        return "holders", holders[1]
    return "unknown", 0


def market_cap(floor_price: float | None, supply: int) -> float:
    if not floor_price or floor_price <= 0:
        return 0.0
    return floor_price * supply


def percentage_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def listing_ratio(listed_count: int | None, supply: int | None) -> float:
    if listed_count is None or not supply or supply <= 0:
        return 0.0
    return listed_count / supply * 100


def cap_to_volume_ratio(cap: float, volume: float | None) -> float:
    if not volume or volume <= 0:
        return 0.0
    return cap / volume


def to_fiat(native: float | None, rate: float | None, decimals: int) -> str:
    if rate is None or native is None or native <= 0:
        return UNAVAILABLE
    return f"{round(native * rate, decimals):.{decimals}f}"


def _value(found: tuple[str, T] | None) -> T | None:
    return found[1] if found is not None else None


def _rounded(value: float | None, digits: int) -> float | None:
    return round(value, digits) if value is not None else None


def build_snapshot(
    bundle: SourceBundle,
    now: datetime.datetime,
    config: Settings = default_settings,
) -> MetricsSnapshot:
    floor = resolve_floor_price(bundle)
    if floor is None:
        raise NoResolvableFloorPrice(bundle.failures())
    floor_source, floor_price = floor

    digits = config.rounding
    rate = bundle.fx_rate.value if bundle.fx_rate.ok else None

    supply_source, supply = resolve_supply(bundle)
    cap = market_cap(floor_price, supply)
    listed = _value(first_present(bundle, LISTED_COUNT_SOURCES))
    holders = _value(first_present(bundle, HOLDER_SOURCES))
    total_volume = _value(first_present(bundle, TOTAL_VOLUME_SOURCES))

    windows: dict[str, WindowMetrics] = {}
    for window in config.windows:
        volume = _value(first_present(bundle, window_volume_sources(window)))
        delta = _value(first_present(bundle, floor_delta_sources(window)))
        change = 0.0
        if delta is not None:
            change = percentage_change(floor_price, floor_price - delta)
        windows[window] = WindowMetrics(
            volume=_rounded(volume, digits.native_price),
            volume_usd=to_fiat(volume, rate, digits.fiat_aggregate),
            price_change_percent=round(change, digits.percent),
        )

    liquidity_volume = _value(first_present(bundle, window_volume_sources(config.liquidity_window)))

    return MetricsSnapshot(
        floor_price=round(floor_price, digits.native_price),
        floor_price_usd=to_fiat(floor_price, rate, digits.fiat_price),
        currency=resolve_currency(bundle, floor_source, config.default_currency),
        floor_price_source=floor_source,
        market_cap=round(cap, digits.native_price),
        market_cap_usd=to_fiat(cap, rate, digits.fiat_aggregate),
        total_volume=_rounded(total_volume, digits.native_price),
        total_volume_usd=to_fiat(total_volume, rate, digits.fiat_aggregate),
        windows=windows,
        holders=holders,
        total_supply=supply,
        supply_source=supply_source,
        listed_count=listed,
        listing_ratio=round(listing_ratio(listed, supply), digits.percent),
        cap_to_volume_ratio=round(cap_to_volume_ratio(cap, liquidity_volume), digits.native_price),
        usd_rate=f"{rate:.{digits.fiat_price}f}" if rate is not None else UNAVAILABLE,
        generated_at=now,
    )
