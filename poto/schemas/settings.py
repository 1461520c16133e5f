from __future__ import annotations

from pydantic import BaseModel, Field

from poto.schemas.config import FolderRule


class ScanDirectoryRequest(BaseModel):
    path: str = Field(..., min_length=1)


class FolderRuleRequest(BaseModel):
    folder: str = Field(..., min_length=1, description="Parent directory the rule applies to.")
    rule: FolderRule = Field(default_factory=FolderRule)


class IgnorePatternRequest(BaseModel):
    pattern: str = Field(..., min_length=1, description="Wildcard matched against directory names, e.g. node_*")
