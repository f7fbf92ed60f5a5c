from __future__ import annotations

import httpx
from loguru import logger

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import FailureKind
from floorwatch.providers.http import request_json, to_float, to_int
from floorwatch.schemas.provider import IntervalStats, RawMarketStats, StatsResult


_V2_STATS_PATH = "/api/v2/collections/{slug}/stats"
_V1_STATS_PATH = "/api/v1/collection/{slug}/stats"
_V1_WINDOWS = ("one_day", "seven_day", "thirty_day")


def _build_url(config: Settings, path: str) -> str:
    base_url = config.providers.opensea_base_url.rstrip("/")
    return f"{base_url}{path.format(slug=config.collection_slug)}"


def _missing_config(config: Settings, provider: str) -> StatsResult | None:
    missing = []
    if not config.providers.opensea_api_key:
        missing.append("opensea_api_key")
    if not config.collection_slug:
        missing.append("collection_slug")
    if not missing:
        return None
    logger.warning(f"{provider}: skipped, missing {', '.join(missing)}")
    return StatsResult.failure(FailureKind.CONFIGURATION_MISSING, ", ".join(missing))


def _headers(config: Settings) -> dict[str, str]:
    return {"X-API-KEY": config.providers.opensea_api_key or "", "accept": "application/json"}


def parse_stats_v2(payload: dict) -> RawMarketStats | None:
    total = payload.get("total")
    if not isinstance(total, dict):
        return None

    intervals: dict[str, IntervalStats] = {}
    raw_intervals = payload.get("intervals") or []
    if isinstance(raw_intervals, list):
        for entry in raw_intervals:
            if not isinstance(entry, dict):
                continue
            window = entry.get("interval")
            if not isinstance(window, str) or not window:
                continue
            intervals[window] = IntervalStats(
                window=window,
                volume=to_float(entry.get("volume")),
                average_price=to_float(entry.get("average_price")),
                sales=to_int(entry.get("sales")),
                floor_price_delta=to_float(entry.get("floor_price_delta")),
            )

    symbol = total.get("floor_price_symbol")
    return RawMarketStats(
        provider="opensea_v2",
        floor_price=to_float(total.get("floor_price")),
        currency=symbol.upper() if isinstance(symbol, str) and symbol else None,
        holders=to_int(total.get("num_owners")),
        total_volume=to_float(total.get("volume")),
        total_supply=to_int(total.get("total_supply")),
        listed_count=to_int(total.get("listed_count")),
        intervals=intervals,
    )


def parse_stats_v1(payload: dict) -> RawMarketStats | None:
    stats = payload.get("stats")
    if not isinstance(stats, dict):
        return None

    intervals: dict[str, IntervalStats] = {}
    for window in _V1_WINDOWS:
        volume = to_float(stats.get(f"{window}_volume"))
        average_price = to_float(stats.get(f"{window}_average_price"))
        sales = to_int(stats.get(f"{window}_sales"))
        if volume is None and average_price is None and sales is None:
            continue
        intervals[window] = IntervalStats(
            window=window,
            volume=volume,
            average_price=average_price,
            sales=sales,
        )

    total_supply = to_int(stats.get("total_supply"))
    if total_supply is None:
        total_supply = to_int(stats.get("count"))

    return RawMarketStats(
        provider="opensea_v1",
        floor_price=to_float(stats.get("floor_price")),
        holders=to_int(stats.get("num_owners")),
        total_volume=to_float(stats.get("total_volume")),
        total_supply=total_supply,
        listed_count=to_int(stats.get("listed_count")),
        intervals=intervals,
    )


async def _fetch_stats(
    client: httpx.AsyncClient, config: Settings, provider: str, path: str, parser
) -> StatsResult:
    missing = _missing_config(config, provider)
    if missing is not None:
        return missing

    result = await request_json(
        client, "GET", _build_url(config, path), provider=provider, headers=_headers(config)
    )
    if not result.ok:
        return StatsResult.failure(result.reason, result.detail)

    stats = parser(result.value)
    if stats is None:
        logger.warning(f"{provider}: stats block missing from response")
        return StatsResult.failure(FailureKind.UPSTREAM_MALFORMED, "stats block missing")
    return StatsResult.success(stats)


async def fetch_stats_v2(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> StatsResult:
    return await _fetch_stats(client, config, "opensea_v2", _V2_STATS_PATH, parse_stats_v2)


async def fetch_stats_v1(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> StatsResult:
    return await _fetch_stats(client, config, "opensea_v1", _V1_STATS_PATH, parse_stats_v1)
