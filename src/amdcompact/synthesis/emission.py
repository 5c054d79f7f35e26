"""Text templates and emitters for the three output shapes.

Every template is joined with ``"\\n"`` and must stay byte-compatible with
existing consumers of the generated code.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Sequence

from amdcompact.synthesis.naming import sanitize

logger = logging.getLogger(__name__)

MODULE_TEMPLATE = "\n".join(
    [
        "var {binding} = function () {{",
        "var exports = {{}}, module = {{ exports: exports }};",
        "{body}",
        "return module.exports;",
        "}}();",
    ]
)

AMD_TEMPLATE = "\n".join(
    [
        'define("{module_id}", [ {dependencies} ], function (require, exports, module) {{',
        "{body}",
        "}});",
    ]
)

STANDALONE_TEMPLATE = "\n".join(
    [
        "(function () {{",
        "{body}",
        "}}());",
    ]
)


def wrap_module(module_id: str, rewritten_body: str) -> str:
    """Wrap one module body into a self-invoking scope bound to its binding."""
    return MODULE_TEMPLATE.format(binding=sanitize(module_id), body=rewritten_body)


def bundle_hash(code: str) -> str:
    return hashlib.sha1(code.encode("utf-8")).hexdigest()


def _quoted_list(module_ids: Sequence[str]) -> str:
    return ", ".join(f'"{module_id}"' for module_id in module_ids)


def _external_preamble(externals: Sequence[str]) -> str:
    return "\n".join(
        f'var {sanitize(module_id)} = require("{module_id}");'
        for module_id in externals
    )


def _amd_define(module_id: str, dependencies: str, body: str) -> str:
    return AMD_TEMPLATE.format(module_id=module_id, dependencies=dependencies, body=body)


def emit_standalone(code: str) -> str:
    return STANDALONE_TEMPLATE.format(body=code)


def emit_single(root: str, externals: Sequence[str], code: str) -> str:
    """Emit one AMD module named ``root`` that inlines the whole bundle."""
    body = "\n".join(
        [
            _external_preamble(externals),
            code,
            f"module.exports = {sanitize(root)};",
        ]
    )
    return _amd_define(root, _quoted_list(externals), body)


def emit_multi(roots: Sequence[str], externals: Sequence[str], code: str) -> str:
    """Emit a shared synthetic module plus one re-export shim per root.

    The synthetic module is named by :func:`bundle_hash` of ``code``; shims
    follow in the order ``roots`` is given.
    """
    bundle_id = bundle_hash(code)
    logger.debug("shared bundle %s exports %d roots", bundle_id, len(roots))
    shared_body = "\n".join(
        [
            _external_preamble(externals),
            code,
            "\n".join(
                f"exports.{sanitize(module_id)} = {sanitize(module_id)};"
                for module_id in roots
            ),
        ]
    )
    output = [_amd_define(bundle_id, _quoted_list(externals), shared_body)]
    for module_id in roots:
        output.append(
            _amd_define(
                module_id,
                _quoted_list([bundle_id]),
                f'module.exports = require("{bundle_id}").{sanitize(module_id)};',
            )
        )
    return "\n".join(output)
