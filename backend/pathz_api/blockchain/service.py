"""
Read-only access to the Pathz contracts over Alchemy JSON-RPC
"""

import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from web3 import Web3

from pathz_api.blockchain.contracts import NFT_ABI, PORTAL_ABI, read_only_functions
from pathz_api.config import Settings, settings as default_settings
from pathz_api.utils.errors import ProxyError

PORTAL_READ_FUNCTIONS = read_only_functions(PORTAL_ABI)


def clean_result(value: Any) -> Any:
    """Make a contract call result JSON friendly: big ints as strings, tuples as lists."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [clean_result(item) for item in value]
    if isinstance(value, dict):
        return {key: clean_result(item) for key, item in value.items()}
    return value


class ContractReader:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._clients: Dict[str, Web3] = {}
        self._clients_lock = threading.Lock()

    def web3(self, network: str) -> Web3:
        # shared by threadpool routes and the watcher thread
        with self._clients_lock:
            client = self._clients.get(network)
            if client is None:
                provider = Web3.HTTPProvider(
                    self.settings.rpc_url(network),
                    request_kwargs={"timeout": self.settings.rpc_timeout},
                )
                client = Web3(provider)
                self._clients[network] = client
        return client

    def portal(self, network: str):
        return self.web3(network).eth.contract(
            address=Web3.to_checksum_address(self.settings.portal_contract_address),
            abi=PORTAL_ABI,
        )

    def nft(self, network: str):
        return self.web3(network).eth.contract(
            address=Web3.to_checksum_address(self.settings.nft_contract_address),
            abi=NFT_ABI,
        )

    def block_number(self, network: str) -> int:
        return self.web3(network).eth.block_number

    def read_function(self, network: str, function_name: str, params: Sequence[Any] = ()) -> Any:
        """Call a view/pure function of the portal contract and return its cleaned result."""
        if function_name not in PORTAL_READ_FUNCTIONS:
            raise ProxyError(400, f"Unknown or non read-only function: {function_name}")
        contract = self.portal(network)
        try:
            result = getattr(contract.functions, function_name)(*params).call()
        except Exception as e:
            logger.error(f"readFunction {function_name} failed: {e}")
            raise ProxyError(500, "Error calling smart contract function", str(e)) from e
        return clean_result(result)

    def get_all_path_stories(self, network: str, pathz_ids: List[int]):
        return self.portal(network).functions.getAllPathStories(pathz_ids).call()

    def get_mint_stage(self, network: str, wallet_address: Optional[str] = None) -> Dict[str, Any]:
        timestamp = int(time.time())
        logger.info(f"Calling getMintStage with timestamp: {timestamp}")
        contract = self.nft(network)
        try:
            total_mint_cap, max_per_wallet, price_wei, start_ts, end_ts = (
                contract.functions.getMintStage(timestamp).call()
            )
            total_minted = contract.functions.totalMinted().call()

            stage = {
                "totalMintCap": int(total_mint_cap),
                "maxPerWallet": int(max_per_wallet),
                "price": str(Web3.from_wei(price_wei, "ether")),
                "startTimestamp": int(start_ts),
                "endTimestamp": int(end_ts),
                "totalMinted": int(total_minted),
            }
            if wallet_address:
                balance = contract.functions.balanceOf(Web3.to_checksum_address(wallet_address)).call()
                stage["walletPathzBalance"] = int(balance)
        except Exception as e:
            logger.error(f"Error in getMintStage: {e}")
            raise ProxyError(
                500,
                "Internal Server Error - The contract call reverted. Check that the provided timestamp is valid.",
            ) from e
        return stage
