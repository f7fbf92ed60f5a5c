from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from floorwatch.cache import SnapshotCache
from floorwatch.errors import ConfigurationMissing, NoResolvableFloorPrice
from floorwatch.schemas.metrics import ErrorResponse, MetricsResponse

router = APIRouter()

_ALLOWED_METHODS = ("GET", "POST")
_ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

FRESH_MESSAGE = "Collection metrics fetched successfully."
STALE_MESSAGE = "Serving cached metrics; refresh failed."


def get_cache(request: Request) -> SnapshotCache:
    return request.app.state.cache


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.api_route("/api/metrics", methods=_ROUTED_METHODS)
@router.api_route("/api/cron-update", methods=_ROUTED_METHODS, include_in_schema=False)
async def metrics_endpoint(
    request: Request, cache: SnapshotCache = Depends(get_cache)
) -> JSONResponse:
    if request.method not in _ALLOWED_METHODS:
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"message": "Only GET or POST requests allowed"},
            headers={"Allow": ", ".join(_ALLOWED_METHODS)},
        )

    try:
        result = await cache.get()
    except ConfigurationMissing as exc:
        logger.error(f"Metrics unavailable: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server configuration is incomplete.")
    except NoResolvableFloorPrice as exc:
        logger.error(f"Metrics unavailable: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to resolve a floor price.")
    except Exception:
        logger.exception("Metrics refresh failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch collection metrics.")

    message = STALE_MESSAGE if result.stale else FRESH_MESSAGE
    body = MetricsResponse(message=message, data=result.snapshot)
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))
