from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class ConvertOptionsDTO(BaseModel):
    mode: Optional[str] = None
    entries: Optional[List[str]] = None


class ModuleDTO(BaseModel):
    id: str
    dependencies: List[str]
    requires: List[str] = []


class BundleGraphDTO(BaseModel):
    modules: List[ModuleDTO]
    roots: List[str]
    internals: List[str]
    externals: List[str]
