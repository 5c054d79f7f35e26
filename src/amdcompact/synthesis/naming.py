from __future__ import annotations

import re
from typing import Iterable

from amdcompact.exceptions import BindingCollisionError

BINDING_PREFIX = "$"

# ASCII word characters only; emitted bindings must be legal in any JS engine.
_ILLEGAL_RE = re.compile(r"[^A-Za-z0-9_]")


def sanitize(module_id: str) -> str:
    """Return the local binding name used for ``module_id`` in emitted code."""
    return BINDING_PREFIX + _ILLEGAL_RE.sub("_", module_id)


def binding_table(module_ids: Iterable[str]) -> dict[str, str]:
    """Map each id to its binding, rejecting ids that would share one.

    Repeated ids are fine; only distinct ids with the same sanitized form are
    an error.
    """
    table: dict[str, str] = {}
    owners: dict[str, str] = {}
    for module_id in module_ids:
        if module_id in table:
            continue
        binding = sanitize(module_id)
        previous = owners.get(binding)
        if previous is not None:
            raise BindingCollisionError(binding, (previous, module_id))
        owners[binding] = module_id
        table[module_id] = binding
    return table
