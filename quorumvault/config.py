"""
Configuration management for the QuorumVault engine.
"""
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

U64_MAX = 2**64 - 1


class Settings(BaseSettings):
    """Engine settings loaded from ``QUORUMVAULT_*`` environment variables."""

    # Capacity bounds
    max_members: int = Field(10, ge=1, le=255)
    max_signers: int = Field(10, ge=1, le=255)
    max_name_length: int = Field(64, ge=1)

    # Governance policy
    require_member_to_propose: bool = False

    # Vault
    vault_address: str = "vault"
    deposit_fee: int = Field(0, ge=0, le=U64_MAX)

    # Local state
    state_file: str = "./quorumvault-state.json"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "text"
    log_file_enabled: bool = False
    log_file_path: str = "./logs/quorumvault.log"

    # Blockchain Configuration
    rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int = 1337
    token_contract_address: Optional[str] = None
    vault_private_key: Optional[str] = None
    transaction_timeout: float = 120.0

    model_config = SettingsConfigDict(
        env_prefix="QUORUMVAULT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level {v!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return fmt

    @field_validator("token_contract_address")
    @classmethod
    def validate_contract_address(cls, v: Optional[str]) -> Optional[str]:
        """Validate contract addresses are proper Ethereum addresses."""
        if v and not (isinstance(v, str) and len(v) == 42 and v.startswith("0x")):
            raise ValueError("Contract address must be a valid Ethereum address (0x...)")
        return v

    @field_validator("vault_private_key")
    @classmethod
    def validate_private_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate private key format if provided."""
        if v and not (isinstance(v, str) and len(v) in [64, 66]):
            raise ValueError("Private key must be 64 or 66 characters long")
        return v

    @model_validator(mode="after")
    def validate_capacity(self) -> "Settings":
        """A full registry must fit into one proposal's signer snapshot."""
        if self.max_signers < self.max_members:
            raise ValueError("max_signers must be >= max_members")
        return self


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


__all__ = ["Settings", "get_settings", "U64_MAX"]
