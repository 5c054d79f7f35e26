from __future__ import annotations

from amdcompact.ingest.adapter_contract import DiscoveryAdapter, ModuleRecord
from amdcompact.ingest.amd_adapter import AmdAdapter


def discover_modules(text: str, adapter: DiscoveryAdapter | None = None) -> list[ModuleRecord]:
    """Split bundle text into module records with ``adapter`` (AMD by default)."""
    return (adapter or AmdAdapter()).discover(text)


__all__ = [
    "AmdAdapter",
    "DiscoveryAdapter",
    "ModuleRecord",
    "discover_modules",
]
