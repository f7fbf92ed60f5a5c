from __future__ import annotations

import math
from typing import Any

import httpx
from loguru import logger

from floorwatch.errors import FailureKind
from floorwatch.schemas.provider import UpstreamResult

JsonResult = UpstreamResult[dict]


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    json_body: dict | None = None,
) -> JsonResult:
    try:
        response = await client.request(
            method, url, headers=headers, params=params, json=json_body
        )
    except httpx.HTTPError as exc:
        logger.warning(f"{provider}: request failed: {exc!r}")
        return JsonResult.failure(FailureKind.UPSTREAM_UNAVAILABLE, str(exc) or type(exc).__name__)

    if not response.is_success:
        detail = "rate_limited" if response.status_code == 429 else f"status {response.status_code}"
        logger.warning(f"{provider}: upstream answered {response.status_code}")
        return JsonResult.failure(FailureKind.UPSTREAM_UNAVAILABLE, detail)

    try:
        payload = response.json()
    except ValueError:
        logger.warning(f"{provider}: response body is not JSON")
        return JsonResult.failure(FailureKind.UPSTREAM_MALFORMED, "invalid json")

    if not isinstance(payload, dict):
        logger.warning(f"{provider}: expected a JSON object, got {type(payload).__name__}")
        return JsonResult.failure(FailureKind.UPSTREAM_MALFORMED, "unexpected payload shape")
    return JsonResult.success(payload)


def to_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_int(value: Any) -> int | None:
    number = to_float(value)
    if number is None or number < 0:
        return None
    return int(number)
