import datetime

import pytest

from floorwatch.config.settings import ProviderSettings, Settings
from upstream_stubs import (
    FX_PAYLOAD,
    MORALIS_PAYLOAD,
    RPC_URL,
    STATS_V1_PAYLOAD,
    STATS_V2_PAYLOAD,
    rpc_result,
)


@pytest.fixture
def config() -> Settings:
    return Settings(
        collection_slug="pop-collection",
        cache_ttl_seconds=60,
        providers=ProviderSettings(
            opensea_api_key="opensea-key",
            moralis_api_key="moralis-key",
            rpc_url=RPC_URL,
        ),
    )


@pytest.fixture
def healthy_responses() -> dict:
    return {
        "opensea_v2": STATS_V2_PAYLOAD,
        "opensea_v1": STATS_V1_PAYLOAD,
        "moralis": MORALIS_PAYLOAD,
        "rpc:eth_call": rpc_result(hex(1000)),
        "fx": FX_PAYLOAD,
    }


@pytest.fixture
def now() -> datetime.datetime:
    return datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.UTC)
