"""Response models of the file endpoints."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class EntrySummary(BaseModel):
    name: str
    path: str
    isFolder: bool
    size: int
    mimeType: Optional[str] = None
    createdAt: str
    updatedAt: str


class EntryMetadataModel(BaseModel):
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    version: Optional[str] = None


class EntryInfo(BaseModel):
    name: str
    path: str
    size: int
    isDirectory: bool
    isFile: bool
    mimeType: Optional[str] = None
    isTextFile: bool
    lastModified: str
    created: str
    metadata: EntryMetadataModel


class DirectoryListing(BaseModel):
    items: List[EntrySummary]
    currentPath: str
    parentPath: Optional[str] = None


class SearchResults(BaseModel):
    results: List[EntrySummary]
    query: str
    total: int


class DirectoryStats(BaseModel):
    path: str
    totalFiles: int
    totalDirectories: int
    totalSize: int


class ListResponse(BaseModel):
    success: bool = True
    data: DirectoryListing


class InfoResponse(BaseModel):
    success: bool = True
    data: EntryInfo


class SearchResponse(BaseModel):
    success: bool = True
    data: SearchResults


class StatsResponse(BaseModel):
    success: bool = True
    data: DirectoryStats
