import asyncio

import pytest

from floorwatch.config.settings import ProviderSettings, Settings
from floorwatch.errors import ConfigurationMissing, FailureKind
from floorwatch.providers import aggregator
from floorwatch.schemas.provider import (
    FloorQuoteResult,
    RateResult,
    RawMarketStats,
    StatsResult,
    SupplyResult,
)
from upstream_stubs import UpstreamStub


def test_collect_sources_returns_one_result_per_adapter(config, healthy_responses) -> None:
    stub = UpstreamStub(healthy_responses)

    async def _run():
        async with stub.client() as client:
            return await aggregator.collect_sources(client, config)

    bundle = asyncio.run(_run())

    assert bundle.failures() == {}
    assert bundle.stats_v2.value.floor_price == 1.5
    assert bundle.stats_v1.value.total_supply == 1000
    assert bundle.floor_quote.value.floor_price == 1.4
    assert bundle.chain_supply.value == 1000
    assert bundle.fx_rate.value == 3000.0


def test_adapters_run_concurrently_and_all_settle(monkeypatch, config) -> None:
    events: list[str] = []

    def fake(name, result):
        async def adapter(client, config):
            events.append(f"start:{name}")
            await asyncio.sleep(0)
            events.append(f"end:{name}")
            if isinstance(result, Exception):
                raise result
            return result

        return adapter

    monkeypatch.setattr(
        "floorwatch.providers.opensea.fetch_stats_v2",
        fake("v2", StatsResult.success(RawMarketStats(provider="opensea_v2", floor_price=2.0))),
    )
    monkeypatch.setattr(
        "floorwatch.providers.opensea.fetch_stats_v1", fake("v1", RuntimeError("adapter bug"))
    )
    monkeypatch.setattr(
        "floorwatch.providers.moralis.fetch_floor_price",
        fake("moralis", FloorQuoteResult.failure(FailureKind.UPSTREAM_UNAVAILABLE)),
    )
    monkeypatch.setattr(
        "floorwatch.providers.chain.fetch_total_supply", fake("rpc", SupplyResult.success(10))
    )
    monkeypatch.setattr("floorwatch.providers.fx.fetch_usd_rate", fake("fx", RateResult.success(5.0)))

    bundle = asyncio.run(aggregator.collect_sources(None, config))

    first_end = min(index for index, event in enumerate(events) if event.startswith("end:"))
    assert all(event.startswith("start:") for event in events[:first_end])
    assert len(events) == 10
    assert bundle.stats_v1.reason is FailureKind.UPSTREAM_UNAVAILABLE
    assert bundle.stats_v2.value.floor_price == 2.0
    assert bundle.chain_supply.value == 10


def test_ensure_configured_accepts_either_floor_source() -> None:
    opensea_only = Settings(
        collection_slug="pop-collection",
        providers=ProviderSettings(opensea_api_key="key", moralis_api_key=None),
    )
    aggregator.ensure_configured(opensea_only)

    moralis_only = Settings(
        collection_slug=None,
        providers=ProviderSettings(opensea_api_key=None, moralis_api_key="key"),
    )
    aggregator.ensure_configured(moralis_only)


def test_ensure_configured_reports_missing_names() -> None:
    config = Settings(
        collection_slug=None,
        providers=ProviderSettings(opensea_api_key=None, moralis_api_key=None),
    )

    with pytest.raises(ConfigurationMissing) as excinfo:
        aggregator.ensure_configured(config)

    assert excinfo.value.names == ["opensea_api_key", "collection_slug", "moralis_api_key"]


def test_refresh_snapshot_derives_from_collected_sources(config, healthy_responses, now) -> None:
    stub = UpstreamStub(healthy_responses)

    async def _run():
        async with stub.client() as client:
            return await aggregator.refresh_snapshot(client, now, config)

    snapshot = asyncio.run(_run())

    assert snapshot.floor_price_source == "opensea_v2"
    assert snapshot.total_supply == 1000
    assert snapshot.generated_at == now
