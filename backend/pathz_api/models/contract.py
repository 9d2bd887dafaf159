"""
Contract read Data Models
"""

from pydantic import BaseModel, Field
from typing import Any, Optional


class ReadFunctionResponse(BaseModel):
    result: Any = Field(..., description="Call result, integers as decimal strings")


class MintStageResponse(BaseModel):
    totalMintCap: int
    maxPerWallet: int
    price: str = Field(..., description="Mint price in ether")
    startTimestamp: int
    endTimestamp: int
    totalMinted: int
    walletPathzBalance: Optional[int] = None


class StatusMessage(BaseModel):
    message: str
