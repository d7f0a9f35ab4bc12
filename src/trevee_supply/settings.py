"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from web3 import Web3

from .constants import (
    ALCHEMY_ETHEREUM_URL,
    DEFAULT_CHAINS,
    DEFAULT_EXCLUDED_ADDRESSES,
    ETHEREUM,
    PLASMA,
    SONIC,
    TOKEN_ADDRESS,
)
from .domain import ChainDescriptor, TotalSupplyPolicy

load_dotenv()

SECRET_FIELDS = {"alchemy_api_key"}


def normalize_addresses(addresses: Iterable[str]) -> tuple[str, ...]:
    """Checksum addresses and drop case-insensitive duplicates, keeping order."""
    deduped: dict[str, str] = {}
    for address in addresses:
        if not address:
            continue
        checksum = Web3.to_checksum_address(address.strip())
        deduped.setdefault(checksum.lower(), checksum)
    return tuple(deduped.values())


def _dedupe_urls(urls: Iterable[str | None]) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    for url in urls:
        if url:
            seen.setdefault(url.strip(), url.strip())
    return tuple(seen.values())


class ChainSettings(BaseModel):
    """One chain the token is deployed on."""

    name: str
    rpc_urls: list[str] = Field(default_factory=list)
    excluded_addresses: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("name")
    @classmethod
    def lowercase_name(cls, v: str) -> str:
        return v.strip().lower()


def _default_chains() -> list[ChainSettings]:
    return [ChainSettings(**chain) for chain in DEFAULT_CHAINS]


def _env_alias(name: str) -> AliasChoices:
    """Accept the prefixed env name, the bare env name and the field name."""
    return AliasChoices(f"TREVEE_SUPPLY_{name.upper()}", name.upper(), name)


class SupplySettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with TREVEE_SUPPLY_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- token ---
    token_address: str = TOKEN_ADDRESS
    excluded_addresses: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_ADDRESSES)
    )

    # --- chains / endpoints ---
    chains: list[ChainSettings] = Field(default_factory=_default_chains)
    ethereum_rpc_url: str | None = Field(
        default=None, validation_alias=_env_alias("ethereum_rpc_url")
    )
    sonic_rpc_url: str | None = Field(
        default=None, validation_alias=_env_alias("sonic_rpc_url")
    )
    plasma_rpc_url: str | None = Field(
        default=None, validation_alias=_env_alias("plasma_rpc_url")
    )
    alchemy_api_key: SecretStr | None = Field(
        default=None, validation_alias=_env_alias("alchemy_api_key")
    )

    # --- aggregation ---
    total_supply_policy: TotalSupplyPolicy = TotalSupplyPolicy.SUM
    canonical_chain: str = SONIC
    decimals_chain: str = ETHEREUM
    normalize_chain_decimals: bool = False

    # --- cache ---
    fresh_ttl_seconds: float = Field(default=60.0, gt=0)
    stale_ttl_seconds: float = Field(default=300.0, gt=0)

    # --- retries and RPC ---
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_jitter: float = Field(default=0.0, ge=0)
    rpc_timeout: float = Field(default=10.0, gt=0)
    rpc_max_concurrent_calls: int = Field(default=8, ge=1)

    # --- server ---
    host: str = "0.0.0.0"
    port: int = Field(
        default=3000, validation_alias=AliasChoices("TREVEE_SUPPLY_PORT", "PORT", "port")
    )

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TREVEE_SUPPLY_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
        populate_by_name=True,
    )

    @field_validator("alchemy_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("canonical_chain", "decimals_chain")
    @classmethod
    def lowercase_chain(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("token_address")
    @classmethod
    def checksum_token(cls, v: str) -> str:
        return Web3.to_checksum_address(v.strip())

    @model_validator(mode="after")
    def validate_ttl_ordering(self) -> "SupplySettings":
        """Validate that the fresh window ends before the stale window."""
        if self.fresh_ttl_seconds >= self.stale_ttl_seconds:
            raise ValueError(
                f"fresh_ttl_seconds ({self.fresh_ttl_seconds}) "
                f"must be less than stale_ttl_seconds ({self.stale_ttl_seconds})"
            )
        return self

    @model_validator(mode="after")
    def validate_chains(self) -> "SupplySettings":
        """Validate chain names and that every chain ends up with an endpoint."""
        if not self.chains:
            raise ValueError("At least one chain must be configured")

        names = [chain.name for chain in self.chains]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate chain names: {', '.join(duplicates)}")

        for field_name in ("canonical_chain", "decimals_chain"):
            value = getattr(self, field_name)
            if value not in names:
                raise ValueError(
                    f"{field_name} '{value}' is not a configured chain "
                    f"(configured: {', '.join(names)})"
                )

        # Building descriptors validates endpoints and addresses
        self.chain_descriptors
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("TREVEE_SUPPLY_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("trevee-supply.toml")
                    user_config = (
                        Path.home() / ".config" / "trevee-supply" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [trevee_supply]
                body = data.get("trevee_supply", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.alchemy_api_key:
            data["alchemy_api_key"] = "***redacted***"
        return data

    def _preferred_urls(self, chain_name: str) -> list[str | None]:
        """Endpoints configured outside the chain list, tried before its defaults."""
        if chain_name == ETHEREUM:
            alchemy_url = (
                ALCHEMY_ETHEREUM_URL.format(
                    api_key=self.alchemy_api_key.get_secret_value()
                )
                if self.alchemy_api_key
                else None
            )
            return [self.ethereum_rpc_url, alchemy_url]
        if chain_name == SONIC:
            return [self.sonic_rpc_url]
        if chain_name == PLASMA:
            return [self.plasma_rpc_url]
        return []

    @property
    def normalized_excluded_addresses(self) -> tuple[str, ...]:
        """Globally excluded addresses, checksummed and deduplicated."""
        return normalize_addresses(self.excluded_addresses)

    @property
    def chain_descriptors(self) -> list[ChainDescriptor]:
        """Build the ordered chain descriptors used by the fetchers."""
        return [
            ChainDescriptor(
                name=chain.name,
                endpoints=_dedupe_urls(
                    [*self._preferred_urls(chain.name), *chain.rpc_urls]
                ),
                excluded_addresses=normalize_addresses(
                    [*self.excluded_addresses, *chain.excluded_addresses]
                ),
            )
            for chain in self.chains
        ]

    @property
    def all_excluded_addresses(self) -> tuple[str, ...]:
        """Every address subtracted on any chain, global ones first."""
        return normalize_addresses(
            address
            for descriptor in self.chain_descriptors
            for address in descriptor.excluded_addresses
        )

    @property
    def chain_names(self) -> list[str]:
        return [chain.name for chain in self.chains]
