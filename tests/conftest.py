from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for _path in (ROOT, ROOT / "src"):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))


import pytest

from amdcompact.ingest import ModuleRecord


@pytest.fixture
def make_record():
    def _make(module_id: str, dependencies: tuple[str, ...] = (), body: str = "") -> ModuleRecord:
        return ModuleRecord(id=module_id, dependencies=tuple(dependencies), body=body)

    return _make


@pytest.fixture
def write_bundle(tmp_path: Path):
    def _write(text: str, name: str = "bundle.js") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
