"""
Owned-NFT lookup through the Alchemy NFT API, merged with on-chain path stories.

NFTs are joined to the portal's `getAllPathStories` output by edition
(the pathz ID): each NFT's `treePath` attribute is replaced with the
contract's current tree path.
"""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from pathz_api.blockchain.service import ContractReader
from pathz_api.config import Settings, settings as default_settings
from pathz_api.models.nft import CurrentPathStory, NFTItem, NFTsResponse, PathStory
from pathz_api.utils.errors import ProxyError


def editions_of(nfts: List[NFTItem]) -> List[int]:
    editions = []
    for nft in nfts:
        edition = (nft.metadata or {}).get("edition")
        if not edition:
            continue
        try:
            editions.append(int(edition))
        except (TypeError, ValueError):
            logger.warning(f"Skipping NFT with non-numeric edition: {edition!r}")
    return editions


def apply_tree_paths(nfts: List[NFTItem], tree_paths) -> List[NFTItem]:
    """Replace the `treePath` attribute of each NFT whose edition has a new path."""
    path_by_edition = {int(pathz_id): tree_path for pathz_id, tree_path in tree_paths}
    for nft in nfts:
        metadata = nft.metadata or {}
        try:
            edition = int(metadata.get("edition") or 0)
        except (TypeError, ValueError):
            continue
        new_path = path_by_edition.get(edition)
        attributes = metadata.get("attributes")
        if not new_path or not isinstance(attributes, list):
            continue
        metadata["attributes"] = [
            {**attr, "value": new_path} if attr.get("trait_type") == "treePath" else attr
            for attr in attributes
        ]
    return nfts


def parse_path_story(raw) -> PathStory:
    number, story_cid, history_cid, encryption = (list(raw) + [None] * 4)[:4]
    result_cid, dec_keys = (list(encryption or ()) + [None, None])[:2]
    dec_key, dec_iv = (list(dec_keys or ()) + [None, None])[:2]
    return PathStory(
        pathStoryNumber=int(number or 0),
        pathStoryCID=story_cid or "",
        characterTraitsHistoryCID=history_cid or "",
        resultAndIncreaseCID=result_cid or "",
        decKey=dec_key or "",
        decIV=dec_iv or "",
    )


class NFTService:
    def __init__(self, reader: ContractReader, settings: Optional[Settings] = None):
        self.reader = reader
        self.settings = settings or default_settings

    def fetch_owned_nfts(self, network: str, wallet_address: str, nft_contract: str) -> List[NFTItem]:
        base_url = self.settings.rpc_url(network)
        try:
            response = requests.get(
                f"{base_url}/getNFTs",
                params={"owner": wallet_address, "contractAddresses[]": [nft_contract]},
                timeout=self.settings.rpc_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            body = getattr(e.response, "text", None)
            logger.error(f"Error fetching NFTs: {e}")
            if body:
                logger.error(f"Alchemy API Response: {body}")
            raise ProxyError(500, "Internal Server Error", str(e)) from e

        owned = response.json().get("ownedNfts") or []
        return [NFTItem(metadata=nft.get("metadata"), media=nft.get("media")) for nft in owned]

    def get_nfts(self, network: str, wallet_address: str, nft_contract: str) -> NFTsResponse:
        nfts = self.fetch_owned_nfts(network, wallet_address, nft_contract)
        result = NFTsResponse(nfts=nfts)

        editions = editions_of(nfts)
        if not editions:
            return result

        try:
            tree_paths, deadline, active, _base_url, stories = self.reader.get_all_path_stories(network, editions)
        except Exception as e:
            logger.error(f"Error calling getAllPathStories: {e}")
            return result

        result.nfts = apply_tree_paths(nfts, tree_paths or [])
        result.currentPathStory = CurrentPathStory(deadlineTimestamp=int(deadline), active=bool(active))
        result.allPathStory = [parse_path_story(story) for story in stories or []]
        return result
