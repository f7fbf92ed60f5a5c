from __future__ import annotations

import httpx
from loguru import logger

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import FailureKind
from floorwatch.providers.http import request_json, to_float
from floorwatch.schemas.provider import RateResult


_SIMPLE_PRICE_PATH = "/simple/price"


async def fetch_usd_rate(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> RateResult:
    asset_id = config.providers.fx_asset_id
    url = f"{config.providers.fx_base_url.rstrip('/')}{_SIMPLE_PRICE_PATH}"
    result = await request_json(
        client,
        "GET",
        url,
        provider="fx",
        params={"ids": asset_id, "vs_currencies": "usd"},
    )
    if not result.ok:
        return RateResult.failure(result.reason, result.detail)

    entry = result.value.get(asset_id)
    rate = to_float(entry.get("usd")) if isinstance(entry, dict) else None
    if rate is None or rate <= 0:
        logger.warning(f"fx: no usable usd rate for {asset_id}")
        return RateResult.failure(FailureKind.UPSTREAM_MALFORMED, "rate missing")
    return RateResult.success(rate)
