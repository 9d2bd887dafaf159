from typing import Optional

from fastapi import APIRouter, Depends
from loguru import logger

from pathz_api.dependencies import get_nft_service
from pathz_api.models.nft import NFTsResponse
from pathz_api.nfts.service import NFTService
from pathz_api.utils.errors import ProxyError

router = APIRouter()


@router.get("/getNFTs", response_model=NFTsResponse)
def get_nfts(
    walletAddress: Optional[str] = None,
    nftContract: Optional[str] = None,
    network: str = "mainnet",
    service: NFTService = Depends(get_nft_service),
):
    """Owned NFTs for a wallet, merged with the current path-story state."""
    if not walletAddress:
        raise ProxyError(400, "Missing walletAddress parameter")
    if not nftContract:
        raise ProxyError(400, "Missing nftContract parameter")

    logger.info(f"getNFTs: {walletAddress} on {network}")
    return service.get_nfts(network, walletAddress, nftContract)
