import json
from typing import Optional

from fastapi import APIRouter, Depends
from web3 import Web3

from pathz_api.blockchain.service import ContractReader
from pathz_api.dependencies import get_contract_reader
from pathz_api.models.contract import MintStageResponse, ReadFunctionResponse
from pathz_api.utils.errors import ProxyError

router = APIRouter()


def parse_params(params: str):
    try:
        parsed = json.loads(params)
    except ValueError as e:
        raise ProxyError(400, "Invalid params parameter, expected a JSON array", str(e)) from e
    if not isinstance(parsed, list):
        raise ProxyError(400, "Invalid params parameter, expected a JSON array")
    return parsed


@router.get("/readFunction", response_model=ReadFunctionResponse)
def read_function(
    functionName: Optional[str] = None,
    network: str = "mainnet",
    params: Optional[str] = None,
    reader: ContractReader = Depends(get_contract_reader),
):
    if not functionName:
        raise ProxyError(400, "Missing functionName parameter")
    args = parse_params(params) if params else []
    # validates the network before any RPC work
    reader.settings.rpc_url(network)
    return ReadFunctionResponse(result=reader.read_function(network, functionName, args))


@router.get("/getMintStages", response_model=MintStageResponse, response_model_exclude_none=True)
def get_mint_stages(
    network: str = "mainnet",
    walletAddress: Optional[str] = None,
    reader: ContractReader = Depends(get_contract_reader),
):
    reader.settings.rpc_url(network)
    if walletAddress and not Web3.is_address(walletAddress):
        raise ProxyError(400, "Invalid wallet address provided.")
    return reader.get_mint_stage(network, walletAddress)
