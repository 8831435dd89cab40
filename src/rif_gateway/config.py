"""Canonical configuration surface for the RIF Gateway."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

ONE_GWEI = 10**9


class GatewaySettings(BaseSettings):
    """Main RIF Gateway configuration."""

    # Environment
    environment: Literal["dev", "testnet", "mainnet"] = "dev"

    # Chain identity used for EIP-712 domain separation
    chain_id: int = 31337

    # Smart wallet signing domain
    eip712_domain_name: str = "RSK RIF GATEWAY"
    eip712_domain_version: str = "1"

    # Literal mixed into the CREATE2 salt of every smart wallet
    smart_wallet_salt: str = "0"

    # Fee charged to a service per consumption, in wei
    consumption_fee_wei: int = ONE_GWEI

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        env_prefix = "RIF_GATEWAY_"
        env_file = ".env"
        extra = "ignore"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("consumption_fee_wei", "chain_id")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


@lru_cache
def load_settings(env_file: str | None = None) -> GatewaySettings:
    """Load GatewaySettings once per process so every chain agrees on them."""
    env_path = Path(env_file) if env_file else None
    return GatewaySettings(_env_file=env_path)
