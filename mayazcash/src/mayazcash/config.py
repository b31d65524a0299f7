"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mayazcash.models import NetworkParams, NetworkType, get_network_params


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ZCASH_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: NetworkType = NetworkType.TESTNET
    consensus_branch_id: int | None = Field(default=None, ge=0, le=0xFFFFFFFF)

    rpc_url: str = "http://127.0.0.1:18232"
    rpc_user: str = ""
    rpc_password: str = ""
    rpc_timeout: float = Field(default=30.0, gt=0)

    log_level: str = "INFO"

    @property
    def network_params(self) -> NetworkParams:
        return get_network_params(self.network, self.consensus_branch_id)


def get_settings() -> Settings:
    return Settings()
