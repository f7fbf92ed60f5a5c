from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoundingSettings(BaseModel):
    native_price: int = 4
    fiat_price: int = 2
    fiat_aggregate: int = 0
    percent: int = 2


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLOORWATCH_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
    opensea_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENSEA_API_KEY", "FLOORWATCH_OPENSEA_API_KEY"),
    )
    moralis_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MORALIS_API_KEY", "FLOORWATCH_MORALIS_API_KEY"),
    )
    rpc_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ETH_RPC_URL", "FLOORWATCH_RPC_URL"),
    )
    opensea_base_url: str = "https://api.opensea.io"
    moralis_base_url: str = "https://deep-index.moralis.io/api/v2.2"
    fx_base_url: str = "https://api.coingecko.com/api/v3"
    fx_asset_id: str = "ethereum"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLOORWATCH_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    collection_slug: str | None = None
    contract_address: str = "0x45025cd9587206f7225f2f5f8a5b146350faf0a8"
    chain: str = "eth"
    default_currency: str = "ETH"
    cache_ttl_seconds: float = 60.0
    request_timeout_seconds: float = 10.0
    liquidity_window: str = "one_day"
    windows: list[str] = Field(default_factory=lambda: ["one_day", "seven_day", "thirty_day"])
    log_level: str = "INFO"
    log_serialize: bool = False

    rounding: RoundingSettings = Field(default_factory=RoundingSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
