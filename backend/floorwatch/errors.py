from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_MALFORMED = "upstream_malformed"
    CONFIGURATION_MISSING = "configuration_missing"


class FloorwatchError(Exception):
    """Base class for refresh-level failures."""


class ConfigurationMissing(FloorwatchError):
    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__("Missing required configuration: " + ", ".join(names))


class NoResolvableFloorPrice(FloorwatchError):
    def __init__(self, failures: dict[str, str] | None = None) -> None:
        self.failures = failures or {}
        detail = ", ".join(f"{name}={reason}" for name, reason in sorted(self.failures.items()))
        message = "No source yielded a usable floor price."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
