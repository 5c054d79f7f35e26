"""Lexical rewriting of in-body ``require`` calls.

``require("id")`` calls are located with a regular expression, not a parser.
Text shaped like such a call inside a string literal, comment or regular
expression literal is rewritten too; callers must accept that limitation.
"""

from __future__ import annotations

import re

from amdcompact.synthesis.naming import sanitize

# A match may not follow an ASCII word character (``myrequire``) or a member
# access (``obj.require``). The single preceding character is captured and kept.
_REQUIRE_RE = re.compile(
    r"(?P<prefix>^|[^.])\brequire\s*\(\s*['\"](?P<id>[^'\"]+?)['\"]\s*\)",
    re.ASCII,
)


def rewrite_body(body: str) -> str:
    return _REQUIRE_RE.sub(
        lambda match: match.group("prefix") + sanitize(match.group("id")),
        body,
    )


def required_ids(body: str) -> tuple[str, ...]:
    """Ids that :func:`rewrite_body` would replace, in first-seen order."""
    seen: dict[str, None] = {}
    for match in _REQUIRE_RE.finditer(body):
        seen.setdefault(match.group("id"), None)
    return tuple(seen)
