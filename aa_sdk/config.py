from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        env_prefix="AA_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Endpoints
    node_url: str = Field(default="", description="Ethereum node JSON-RPC URL")
    bundler_url: str = Field(default="", description="ERC-4337 bundler JSON-RPC URL")
    request_timeout_seconds: float = Field(default=20.0, gt=0, description="HTTP request timeout")

    # Contracts
    entrypoint_address: str = Field(
        default="0x0000000071727De22E5E9d8BAf0edAc6f37da032",
        description="EntryPoint v0.7 address",
    )
    account_factory_address: str = Field(default="", description="SimpleAccountFactory address")
    paymaster_address: str = Field(default="", description="Verifying paymaster address (empty disables sponsorship)")

    # Keys
    paymaster_verifying_keys: str = Field(
        default="",
        description="Comma-separated private keys that sign paymaster sponsorships (rotated round-robin)",
        validation_alias=AliasChoices(
            "aa_paymaster_verifying_keys",
            "aa_paymaster_verifying_key",
            "paymaster_verifying_key",
        ),
    )
    executor_key: str = Field(
        default="",
        description="Private key for direct EntryPoint handleOps submission",
        validation_alias=AliasChoices("aa_executor_key", "executor_key"),
    )

    # Receipt polling
    wait_receipt_interval_seconds: float = Field(default=1.0, gt=0, description="Receipt poll interval")
    wait_receipt_timeout_seconds: float = Field(default=30.0, gt=0, description="Receipt poll deadline")

    # Address cache
    address_cache_size: int = Field(default=10000, ge=1, description="Max cached smart account addresses")

    # Paymaster validity window (0 valid_until = no expiry)
    paymaster_valid_until: int = Field(default=2**31 - 1, ge=0, lt=2**48)
    paymaster_valid_after: int = Field(default=0, ge=0, lt=2**48)

    @property
    def verifying_keys(self) -> List[str]:
        return [key.strip() for key in self.paymaster_verifying_keys.split(",") if key.strip()]

    @property
    def paymaster(self) -> Optional[str]:
        return self.paymaster_address or None


# Global settings instance
settings = Settings()
