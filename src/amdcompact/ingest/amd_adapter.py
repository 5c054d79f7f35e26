"""Static discovery of AMD ``define`` call sites.

The bundle text is tokenized, never executed. Only the lexical structure
needed to find ``define(...)`` calls and to skip over strings, template
literals, comments and regular-expression literals is recognized.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass

from amdcompact.exceptions import BundleParseError
from amdcompact.ingest.adapter_contract import DiscoveryAdapter, ModuleRecord

logger = logging.getLogger(__name__)

_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_$")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())
_REGEX_AFTER_PUNCT = frozenset("(,=:[!&|?{};+-*%<>~^}")
# A `)` closing one of these heads ends a statement head, not an operand.
_CONTROL_HEADS = frozenset({"if", "while", "for", "with"})
_REGEX_AFTER_WORD = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "case",
        "do",
        "else",
        "yield",
        "await",
    }
)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    start: int
    closes_head: bool = False


class _Tokenizer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self._prev: _Token | None = None
        self._parens: list[bool] = []

    def error(self, message: str, offset: int | None = None) -> BundleParseError:
        return BundleParseError(message, offset=self.pos if offset is None else offset)

    def _skip_trivia(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self.error("unterminated block comment")
                self.pos = end + 2
            else:
                return

    def peek_char(self) -> str:
        self._skip_trivia()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def next(self) -> _Token:
        self._skip_trivia()
        token = self._read()
        self._prev = token
        return token

    def _regex_allowed(self) -> bool:
        prev = self._prev
        if prev is None:
            return True
        if prev.kind == "punct":
            if prev.value == ")":
                return prev.closes_head
            return prev.value in _REGEX_AFTER_PUNCT
        if prev.kind == "word":
            return prev.value in _REGEX_AFTER_WORD
        return False

    def _read(self) -> _Token:
        text = self.text
        start = self.pos
        if start >= len(text):
            return _Token("eof", "", start)
        char = text[start]
        if char in "'\"":
            return _Token("string", self._read_string(), start)
        if char == "`":
            self._skip_template()
            return _Token("template", text[start : self.pos], start)
        if char == "/" and self._regex_allowed():
            self._skip_regex()
            return _Token("regex", text[start : self.pos], start)
        if char in _WORD_CHARS:
            end = start
            while end < len(text) and text[end] in _WORD_CHARS:
                end += 1
            self.pos = end
            return _Token("word", text[start:end], start)
        if char in "+-" and text.startswith(char, start + 1):
            # `++` and `--` are never followed by a regular expression literal.
            self.pos = start + 2
            return _Token("punct", char * 2, start)
        self.pos = start + 1
        if char == "(":
            prev = self._prev
            self._parens.append(
                prev is not None and prev.kind == "word" and prev.value in _CONTROL_HEADS
            )
        elif char == ")":
            closes_head = self._parens.pop() if self._parens else False
            return _Token("punct", char, start, closes_head)
        return _Token("punct", char, start)

    def _read_string(self) -> str:
        text = self.text
        quote = text[self.pos]
        start = self.pos
        self.pos += 1
        parts: list[str] = []
        while self.pos < len(text):
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(parts)
            if char == "\n":
                break
            if char == "\\":
                parts.append(self._read_escape())
                continue
            parts.append(char)
            self.pos += 1
        raise self.error("unterminated string literal", offset=start)

    def _read_escape(self) -> str:
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise self.error("dangling escape")
        char = text[self.pos]
        self.pos += 1
        if char in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[char]
        if char == "\r" and text.startswith("\n", self.pos):
            self.pos += 1
            return ""
        if char == "\n":
            return ""
        if char == "x":
            return chr(self._read_hex(2))
        if char == "u":
            if text.startswith("{", self.pos):
                end = text.find("}", self.pos)
                if end == -1:
                    raise self.error("unterminated unicode escape")
                digits = text[self.pos + 1 : end]
                self.pos = end + 1
                try:
                    return chr(int(digits, 16))
                except ValueError:
                    raise self.error(f"invalid unicode escape {digits!r}") from None
            return chr(self._read_hex(4))
        return char

    def _read_hex(self, width: int) -> int:
        digits = self.text[self.pos : self.pos + width]
        if len(digits) != width or any(c not in string.hexdigits for c in digits):
            raise self.error(f"invalid hex escape {digits!r}")
        self.pos += width
        return int(digits, 16)

    def _skip_template(self) -> None:
        text = self.text
        start = self.pos
        self.pos += 1
        while self.pos < len(text):
            char = text[self.pos]
            if char == "\\":
                self.pos += 2
            elif char == "`":
                self.pos += 1
                return
            elif text.startswith("${", self.pos):
                self.pos += 2
                self._prev = None
                self.skip_balanced("}")
            else:
                self.pos += 1
        raise self.error("unterminated template literal", offset=start)

    def _skip_regex(self) -> None:
        text = self.text
        start = self.pos
        self.pos += 1
        in_class = False
        while self.pos < len(text):
            char = text[self.pos]
            if char == "\n":
                break
            if char == "\\":
                self.pos += 2
                continue
            self.pos += 1
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                while self.pos < len(text) and text[self.pos] in _WORD_CHARS:
                    self.pos += 1
                return
        raise self.error("unterminated regular expression literal", offset=start)

    def skip_balanced(self, closer: str) -> int:
        """Consume tokens up to and including ``closer`` at nesting depth zero.

        The matching opener must already be consumed. Returns the offset of
        ``closer``.
        """
        stack: list[str] = []
        while True:
            token = self.next()
            if token.kind == "eof":
                raise self.error(f"expected {closer!r} before end of input")
            if token.kind != "punct":
                continue
            if token.value in _OPENERS:
                stack.append(_OPENERS[token.value])
            elif token.value in _CLOSERS:
                if not stack:
                    if token.value != closer:
                        raise self.error(
                            f"unbalanced {token.value!r}, expected {closer!r}",
                            offset=token.start,
                        )
                    return token.start
                expected = stack.pop()
                if token.value != expected:
                    raise self.error(
                        f"unbalanced {token.value!r}, expected {expected!r}",
                        offset=token.start,
                    )

    def expect_punct(self, value: str) -> _Token:
        token = self.next()
        if token.kind != "punct" or token.value != value:
            raise self.error(f"expected {value!r}", offset=token.start)
        return token

    def expect_string(self, what: str) -> str:
        token = self.next()
        if token.kind != "string":
            raise self.error(f"{what} must be a string literal", offset=token.start)
        return token.value

    @property
    def previous(self) -> _Token | None:
        return self._prev


def _parse_define(tokens: _Tokenizer, call_start: int) -> ModuleRecord | None:
    tokens.expect_punct("(")
    if tokens.peek_char() not in ("'", '"'):
        # Anonymous calls such as a UMD header's `define(["dep"], factory)`.
        logger.debug("skipping define without a literal id at offset %d", call_start)
        return None
    module_id = tokens.expect_string("module id")
    tokens.expect_punct(",")

    dependencies: list[str] = []
    if tokens.peek_char() == "[":
        tokens.expect_punct("[")
        while tokens.peek_char() != "]":
            dependencies.append(tokens.expect_string("dependency id"))
            if tokens.peek_char() == ",":
                tokens.expect_punct(",")
            elif tokens.peek_char() != "]":
                raise tokens.error(f"malformed dependency list of {module_id!r}")
        tokens.expect_punct("]")
        tokens.expect_punct(",")

    keyword = tokens.next()
    if keyword.kind != "word" or keyword.value != "function":
        raise tokens.error(
            f"factory of {module_id!r} must be a function expression",
            offset=keyword.start,
        )
    if tokens.peek_char() != "(":
        name = tokens.next()
        if name.kind != "word":
            raise tokens.error(f"malformed factory of {module_id!r}", offset=name.start)
    tokens.expect_punct("(")
    tokens.skip_balanced(")")
    open_brace = tokens.expect_punct("{")
    close_brace = tokens.skip_balanced("}")
    tokens.expect_punct(")")
    logger.debug("define %r at offset %d", module_id, call_start)
    return ModuleRecord(
        id=module_id,
        dependencies=tuple(dependencies),
        body=tokens.text[open_brace.start + 1 : close_brace],
    )


class AmdAdapter(DiscoveryAdapter):
    """Discover ``define(id, [deps], function (...) { ... })`` calls.

    The dependency array may be omitted. Calls are returned in source order;
    ``define`` used as a member (``x.define(``) or as a declared name
    (``function define(``) is ignored, and so is a call whose first argument
    is not a string literal.
    """

    language_id = "amd"

    def discover(self, text: str) -> list[ModuleRecord]:
        tokens = _Tokenizer(text)
        records: list[ModuleRecord] = []
        while True:
            before = tokens.previous
            token = tokens.next()
            if token.kind == "eof":
                break
            if token.kind != "word" or token.value != "define":
                continue
            if before is not None and (
                (before.kind == "punct" and before.value == ".")
                or (before.kind == "word" and before.value == "function")
            ):
                continue
            if tokens.peek_char() != "(":
                continue
            record = _parse_define(tokens, token.start)
            if record is not None:
                records.append(record)
        return records
