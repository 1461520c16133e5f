from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DirectoryListingResponse(BaseModel):
    path: str
    parent: Optional[str] = Field(None, description="Absent at the filesystem root.")
    children: List[str] = Field(default_factory=list)


class HomeDirectoryResponse(BaseModel):
    path: str
