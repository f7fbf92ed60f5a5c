from __future__ import annotations

import httpx
from loguru import logger

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import FailureKind
from floorwatch.providers.http import request_json, to_float, to_int
from floorwatch.schemas.provider import FloorQuote, FloorQuoteResult


_FLOOR_PRICE_PATH = "/nft/{address}/floorprice"
_DEFAULT_DECIMALS = 18


def _build_url(config: Settings) -> str:
    base_url = config.providers.moralis_base_url.rstrip("/")
    return f"{base_url}{_FLOOR_PRICE_PATH.format(address=config.contract_address)}"


def parse_floor_price(payload: dict) -> FloorQuote | None:
    # {"nativePrice": {"value": "<wei>", "decimals": 18, "name": "ETH"}}
    native = payload.get("nativePrice")
    if not isinstance(native, dict):
        return None
    raw_value = to_float(native.get("value"))
    if raw_value is None:
        return None
    decimals = to_int(native.get("decimals"))
    if decimals is None:
        decimals = _DEFAULT_DECIMALS
    try:
        floor_price = raw_value / (10**decimals)
    except OverflowError:
        return None
    name = native.get("name")
    return FloorQuote(
        provider="moralis",
        floor_price=floor_price,
        currency=name.upper() if isinstance(name, str) and name else None,
    )


async def fetch_floor_price(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> FloorQuoteResult:
    api_key = config.providers.moralis_api_key
    if not api_key:
        logger.warning("moralis: skipped, missing moralis_api_key")
        return FloorQuoteResult.failure(FailureKind.CONFIGURATION_MISSING, "moralis_api_key")

    result = await request_json(
        client,
        "GET",
        _build_url(config),
        provider="moralis",
        headers={"X-API-Key": api_key, "accept": "application/json"},
        params={"chain": config.chain},
    )
    if not result.ok:
        return FloorQuoteResult.failure(result.reason, result.detail)

    quote = parse_floor_price(result.value)
    if quote is None:
        logger.warning("moralis: nativePrice missing from response")
        return FloorQuoteResult.failure(FailureKind.UPSTREAM_MALFORMED, "nativePrice missing")
    return FloorQuoteResult.success(quote)
