from __future__ import annotations

import httpx
from loguru import logger

from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.errors import FailureKind
from floorwatch.providers.http import request_json
from floorwatch.schemas.provider import SupplyResult, UpstreamResult


# keccak256("totalSupply()")[:4]
TOTAL_SUPPLY_SELECTOR = "0x18160ddd"

BlockResult = UpstreamResult[int]


def parse_hex_quantity(value: object) -> int | None:
    if not isinstance(value, str) or not value.startswith("0x"):
        return None
    digits = value[2:]
    if not digits:
        return None
    try:
        return int(digits, 16)
    except ValueError:
        return None


async def _rpc_call(
    client: httpx.AsyncClient, config: Settings, method: str, params: list
) -> tuple[object | None, FailureKind | None, str | None]:
    rpc_url = config.providers.rpc_url
    if not rpc_url:
        return None, FailureKind.CONFIGURATION_MISSING, "rpc_url"

    body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
    result = await request_json(client, "POST", rpc_url, provider=f"rpc:{method}", json_body=body)
    if not result.ok:
        return None, result.reason, result.detail

    payload = result.value
    if payload.get("error"):
        logger.warning(f"rpc:{method}: node returned error {payload['error']!r}")
        return None, FailureKind.UPSTREAM_UNAVAILABLE, "rpc error"
    return payload.get("result"), None, None


async def fetch_total_supply(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> SupplyResult:
    """Read ``totalSupply()`` from the collection contract.

    Any read failure yields a supply of ``0`` so that derivation falls back to
    declared supply or holder count. Only a missing RPC URL is reported as a
    failure.
    """
    params = [{"to": config.contract_address, "data": TOTAL_SUPPLY_SELECTOR}, "latest"]
    raw, reason, detail = await _rpc_call(client, config, "eth_call", params)
    if reason is FailureKind.CONFIGURATION_MISSING:
        logger.warning("rpc: skipped supply read, missing rpc_url")
        return SupplyResult.failure(reason, detail)
    if reason is not None:
        return SupplyResult.success(0)

    supply = parse_hex_quantity(raw)
    if supply is None:
        logger.warning(f"rpc: totalSupply returned unusable result {raw!r}")
        return SupplyResult.success(0)
    return SupplyResult.success(supply)


async def fetch_latest_block_number(
    client: httpx.AsyncClient, config: Settings = default_settings
) -> BlockResult:
    raw, reason, detail = await _rpc_call(client, config, "eth_blockNumber", [])
    if reason is not None:
        return BlockResult.failure(reason, detail)
    number = parse_hex_quantity(raw)
    if number is None:
        return BlockResult.failure(FailureKind.UPSTREAM_MALFORMED, "invalid block number")
    return BlockResult.success(number)


async def fetch_block_timestamp(
    client: httpx.AsyncClient, block_hash: str, config: Settings = default_settings
) -> BlockResult:
    raw, reason, detail = await _rpc_call(
        client, config, "eth_getBlockByHash", [block_hash, False]
    )
    if reason is not None:
        return BlockResult.failure(reason, detail)
    if not isinstance(raw, dict):
        return BlockResult.failure(FailureKind.UPSTREAM_MALFORMED, "block not found")
    timestamp = parse_hex_quantity(raw.get("timestamp"))
    if timestamp is None:
        return BlockResult.failure(FailureKind.UPSTREAM_MALFORMED, "invalid block timestamp")
    return BlockResult.success(timestamp)
