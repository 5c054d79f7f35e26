from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence

from amdcompact.ingest.adapter_contract import ModuleRecord


class ModuleClass(StrEnum):
    ROOT = "root"
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Classification:
    """Partition of every id defined or depended on in one bundle.

    Each tuple lists ids in the order they were first seen while visiting
    records (own id first, then declared dependencies).
    """

    roots: tuple[str, ...] = ()
    internals: tuple[str, ...] = ()
    externals: tuple[str, ...] = ()

    def class_of(self, module_id: str) -> ModuleClass | None:
        if module_id in self.roots:
            return ModuleClass.ROOT
        if module_id in self.internals:
            return ModuleClass.INTERNAL
        if module_id in self.externals:
            return ModuleClass.EXTERNAL
        return None


def classify(records: Sequence[ModuleRecord]) -> Classification:
    classes: dict[str, ModuleClass] = {}
    for record in records:
        # Already seen: either consumed earlier or defined twice.
        if record.id in classes:
            classes[record.id] = ModuleClass.INTERNAL
        else:
            classes[record.id] = ModuleClass.ROOT
        for dependency in record.dependencies:
            current = classes.get(dependency)
            if current is None:
                classes[dependency] = ModuleClass.EXTERNAL
            elif current is ModuleClass.ROOT:
                classes[dependency] = ModuleClass.INTERNAL
    return Classification(
        roots=tuple(k for k, v in classes.items() if v is ModuleClass.ROOT),
        internals=tuple(k for k, v in classes.items() if v is ModuleClass.INTERNAL),
        externals=tuple(k for k, v in classes.items() if v is ModuleClass.EXTERNAL),
    )
