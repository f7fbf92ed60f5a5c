from __future__ import annotations

import asyncio
import datetime

import httpx
from loguru import logger

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import ConfigurationMissing, FailureKind
from floorwatch.metrics.derive import build_snapshot
from floorwatch.providers import chain, fx, moralis, opensea
from floorwatch.schemas.metrics import MetricsSnapshot
from floorwatch.schemas.provider import (
    FloorQuoteResult,
    RateResult,
    SourceBundle,
    StatsResult,
    SupplyResult,
)


def ensure_configured(config: Settings) -> None:
    has_opensea = bool(config.providers.opensea_api_key and config.collection_slug)
    has_moralis = bool(config.providers.moralis_api_key and config.contract_address)
    if has_opensea or has_moralis:
        return
    missing = []
    if not config.providers.opensea_api_key:
        missing.append("opensea_api_key")
    if not config.collection_slug:
        missing.append("collection_slug")
    if not config.providers.moralis_api_key:
        missing.append("moralis_api_key")
    if not config.contract_address:
        missing.append("contract_address")
    raise ConfigurationMissing(missing)


def _settle(result, result_type, name: str):
    if isinstance(result, BaseException):
        logger.opt(exception=result).error(f"{name}: adapter raised unexpectedly")
        return result_type.failure(FailureKind.UPSTREAM_UNAVAILABLE, type(result).__name__)
    return result


async def collect_sources(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> SourceBundle:
    results = await asyncio.gather(
        opensea.fetch_stats_v2(client, config),
        opensea.fetch_stats_v1(client, config),
        moralis.fetch_floor_price(client, config),
        chain.fetch_total_supply(client, config),
        fx.fetch_usd_rate(client, config),
        return_exceptions=True,
    )
    stats_v2, stats_v1, floor_quote, chain_supply, fx_rate = results
    bundle = SourceBundle(
        stats_v2=_settle(stats_v2, StatsResult, "opensea_v2"),
        stats_v1=_settle(stats_v1, StatsResult, "opensea_v1"),
        floor_quote=_settle(floor_quote, FloorQuoteResult, "moralis"),
        chain_supply=_settle(chain_supply, SupplyResult, "rpc"),
        fx_rate=_settle(fx_rate, RateResult, "fx"),
    )
    failures = bundle.failures()
    if failures:
        logger.info(f"Collected sources with failures: {failures}")
    return bundle


async def refresh_snapshot(
    client: httpx.AsyncClient,
    now: datetime.datetime,
    config: Settings = default_settings,
) -> MetricsSnapshot:
    ensure_configured(config)
    bundle = await collect_sources(client, config)
    return build_snapshot(bundle, now, config)
