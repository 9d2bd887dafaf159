"""
Pathz Relay Configuration Settings
"""

from pydantic_settings import BaseSettings
from typing import List

from pathz_api.utils.errors import InvalidNetworkError, MissingApiKeyError

NETWORK_URLS = {
    "mainnet": "https://eth-mainnet.alchemyapi.io/v2/{api_key}",
    "sepolia": "https://eth-sepolia.g.alchemy.com/v2/{api_key}",
}


class Settings(BaseSettings):
    # Application Settings
    app_name: str = "Pathz Relay API"
    version: str = "1.0.0"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    # Alchemy / JSON-RPC provider
    alchemy_api_key: str = ""
    alchemy_network: str = "sepolia"
    rpc_timeout: float = 15.0

    # Contracts
    portal_contract_address: str = "0x9017B2224597bA0A71F08f685fD4D17A9ec92Fdd"
    nft_contract_address: str = "0xac29fAE73352891bF5d0E05053D072f4c8E4461b"

    # Realtime relay
    ws_send_timeout: float = 2.0
    watcher_enabled: bool = True
    watcher_poll_interval: float = 12.0

    # CORS Settings: exact hostnames, their subdomains are allowed too
    allowed_hosts: List[str] = ["pathz.xyz", "localhost"]
    allowed_methods: List[str] = ["GET", "OPTIONS"]
    allowed_headers: List[str] = ["Content-Type", "Authorization", "Pragma", "Cache-Control"]

    class Config:
        env_file = ".env"
        case_sensitive = False

    def rpc_url(self, network: str) -> str:
        """Alchemy base URL for `network`, shared by JSON-RPC and the NFT API."""
        if not self.alchemy_api_key:
            raise MissingApiKeyError()
        template = NETWORK_URLS.get(network)
        if template is None:
            raise InvalidNetworkError()
        return template.format(api_key=self.alchemy_api_key)


# Global settings instance
settings = Settings()
