from __future__ import annotations

from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_NUT_PORT = 3493
DEFAULT_PASSIVE_PORT = 63623
DEFAULT_ONE_WIRE_PATH = "/sys/bus/w1/devices"

MIN_POLLER_COOLDOWN = 0.2
MIN_SENDER_COOLDOWN = 1.0

DEFAULT_UPS_VARIABLES = (
    "battery.charge",
    "battery.charge.low",
    "battery.runtime",
    "battery.runtime.low",
    "input.frequency",
    "input.voltage",
    "output.frequency",
    "output.frequency.nominal",
    "output.voltage",
    "output.voltage.nominal",
    "ups.load",
    "ups.power",
    "ups.power.nominal",
    "ups.realpower",
    "ups.status",
)


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class _PeriodicSection(_Section):
    cooldown: float = Field(default=1.0, ge=0)

    @field_validator("cooldown", mode="before")
    @classmethod
    def parse_cooldown(cls, value: Any) -> Any:
        # Older config files store durations as {"secs": .., "nanos": ..}.
        if isinstance(value, dict) and "secs" in value:
            return float(value["secs"]) + float(value.get("nanos", 0)) / 1_000_000_000
        return value


class OneWireConfig(_PeriodicSection):
    enabled: bool = False
    base_path: str = DEFAULT_ONE_WIRE_PATH
    cooldown: float = Field(default=1.0, ge=0)
    evict_stale: bool = False

    @property
    def effective_cooldown(self) -> float:
        return max(self.cooldown, MIN_POLLER_COOLDOWN)


class UpsConfig(_Section):
    name: str = Field(..., min_length=1)
    variables_to_monitor: Optional[List[str]] = None

    @property
    def variables(self) -> List[str]:
        return list(self.variables_to_monitor or DEFAULT_UPS_VARIABLES)


class NutServerConfig(_Section):
    host: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_NUT_PORT, ge=1, le=65535)
    enable_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    upses: List[UpsConfig] = Field(default_factory=list)

    @property
    def server_id(self) -> str:
        """``user@host:port`` or ``host:port`` when no username is set."""
        prefix = f"{self.username}@" if self.username else ""
        return f"{prefix}{self.host}:{self.port}"

    def ups_id(self, ups_name: str) -> str:
        return f"[{ups_name}]{self.server_id}"


class UpsMonitoringConfig(_PeriodicSection):
    enabled: bool = False
    cooldown: float = Field(default=5.0, ge=0)
    servers: List[NutServerConfig] = Field(default_factory=list)

    @property
    def effective_cooldown(self) -> float:
        return max(self.cooldown, MIN_POLLER_COOLDOWN)


class Endpoint(_Section):
    url: str = Field(..., min_length=1)
    bearer_token: Optional[str] = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid URL {value!r}: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"URL {value!r} must be an absolute http(s) URL")
        return value


class ActiveSenderConfig(_PeriodicSection):
    enabled: bool = False
    cooldown: float = Field(default=10.0, ge=0)
    ignore_connection_errors: bool = False
    endpoints: List[Endpoint] = Field(default_factory=list)

    @property
    def effective_cooldown(self) -> float:
        return max(self.cooldown, MIN_SENDER_COOLDOWN)


class PassiveEndpointConfig(_Section):
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=DEFAULT_PASSIVE_PORT, ge=1, le=65535)
    bearer_token: Optional[str] = None


class AppConfig(_Section):
    one_wire: OneWireConfig = Field(default_factory=OneWireConfig)
    ups_monitoring: UpsMonitoringConfig = Field(default_factory=UpsMonitoringConfig)
    active_data_sender: ActiveSenderConfig = Field(default_factory=ActiveSenderConfig)
    passive_data_endpoint: PassiveEndpointConfig = Field(
        default_factory=PassiveEndpointConfig
    )


def example_config() -> AppConfig:
    """Configuration written for operators when no config file exists yet."""
    return AppConfig(
        one_wire=OneWireConfig(enabled=True),
        ups_monitoring=UpsMonitoringConfig(
            enabled=True,
            servers=[
                NutServerConfig(
                    host="localhost",
                    username="ups-monitor",
                    password="EXAMPLE_PASSWORD",
                    upses=[
                        UpsConfig(
                            name="ups1",
                            variables_to_monitor=[
                                "battery.charge",
                                "battery.charge.low",
                                "battery.runtime",
                                "battery.runtime.low",
                            ],
                        )
                    ],
                )
            ],
        ),
        active_data_sender=ActiveSenderConfig(
            enabled=True,
            ignore_connection_errors=True,
            endpoints=[
                Endpoint(url="http://localhost:3001/anything/status/200"),
                Endpoint(
                    url="https://home-panel.lan/api/trpc/m2m.storeUniversalData",
                    bearer_token="EXAMPLE_TOKEN",
                ),
            ],
        ),
        passive_data_endpoint=PassiveEndpointConfig(enabled=True),
    )
