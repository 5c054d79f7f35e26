"""Name synthesis and code emission for amdcompact."""

from amdcompact.synthesis.emission import (
    bundle_hash,
    emit_multi,
    emit_single,
    emit_standalone,
    wrap_module,
)
from amdcompact.synthesis.naming import binding_table, sanitize

__all__ = [
    "binding_table",
    "bundle_hash",
    "emit_multi",
    "emit_single",
    "emit_standalone",
    "sanitize",
    "wrap_module",
]
