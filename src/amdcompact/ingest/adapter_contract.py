from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ModuleRecord:
    """One ``define`` call: its id, declared dependencies and factory body."""

    id: str
    dependencies: tuple[str, ...] = ()
    body: str = ""


@runtime_checkable
class DiscoveryAdapter(Protocol):
    language_id: str

    def discover(self, text: str) -> list[ModuleRecord]: ...
