"""
NFT Data Models
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class NFTItem(BaseModel):
    metadata: Optional[Dict[str, Any]] = None
    media: Optional[Any] = None


class CurrentPathStory(BaseModel):
    deadlineTimestamp: int = 0
    active: bool = False


class PathStory(BaseModel):
    pathStoryNumber: int
    pathStoryCID: str = ""
    characterTraitsHistoryCID: str = ""
    resultAndIncreaseCID: str = ""
    decKey: str = ""
    decIV: str = ""


class NFTsResponse(BaseModel):
    nfts: List[NFTItem] = Field(default_factory=list)
    currentPathStory: CurrentPathStory = Field(default_factory=CurrentPathStory)
    allPathStory: List[PathStory] = Field(default_factory=list)
