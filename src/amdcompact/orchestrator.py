"""Conversion entry points.

``convert`` sequences discovery, per-module rewriting, classification and
emission. Every call is independent; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterator, Mapping, Sequence

from pydantic import ValidationError

from amdcompact.analysis.classify import Classification, classify
from amdcompact.exceptions import EntryResolutionError, InvalidOptionsError, UnknownModeError
from amdcompact.ingest import DiscoveryAdapter, ModuleRecord, discover_modules
from amdcompact.invariants import never
from amdcompact.refactor.rewrite import required_ids, rewrite_body
from amdcompact.schema import ConvertOptionsDTO
from amdcompact.synthesis.emission import (
    emit_multi,
    emit_single,
    emit_standalone,
    wrap_module,
)
from amdcompact.synthesis.naming import binding_table

logger = logging.getLogger(__name__)


class ConvertMode(StrEnum):
    STANDALONE = "standalone"
    COMPACT = "compact"


def resolve_mode(mode: object) -> ConvertMode:
    if isinstance(mode, ConvertMode):
        return mode
    try:
        return ConvertMode(mode)
    except ValueError:
        raise UnknownModeError(mode) from None


@dataclass(frozen=True)
class ConvertOptions:
    """Validated conversion options.

    ``entries`` is only consulted in compact mode; ``None`` means every root
    module of the bundle.
    """

    mode: ConvertMode = ConvertMode.STANDALONE
    entries: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", resolve_mode(self.mode))
        if isinstance(self.entries, str):
            raise InvalidOptionsError(
                f"entries must be a list of module ids, not the string {self.entries!r}"
            )
        if self.entries is not None:
            object.__setattr__(self, "entries", tuple(self.entries))


OptionsLike = ConvertOptions | Mapping[str, object] | str | None


def normalize_options(options: OptionsLike) -> ConvertOptions:
    if options is None:
        return ConvertOptions()
    if type(options) is ConvertOptions:
        return options
    if isinstance(options, str):
        options = {"mode": options}
    if not isinstance(options, Mapping):
        raise InvalidOptionsError(
            f"options must be a mode string or a mapping, not {type(options).__name__}"
        )
    try:
        dto = ConvertOptionsDTO.model_validate(dict(options))
    except ValidationError as exc:
        raise InvalidOptionsError(str(exc)) from exc
    return ConvertOptions(
        mode=ConvertMode.STANDALONE if dto.mode is None else dto.mode,
        entries=dto.entries,
    )


@dataclass(frozen=True)
class BundleGraph:
    records: tuple[ModuleRecord, ...]
    classification: Classification


def _referenced_ids(records: Sequence[ModuleRecord]) -> Iterator[str]:
    for record in records:
        yield record.id
        yield from record.dependencies
        yield from required_ids(record.body)


def analyze(code: str, *, adapter: DiscoveryAdapter | None = None) -> BundleGraph:
    """Discover and classify the modules of ``code`` without emitting anything."""
    records = tuple(discover_modules(code, adapter))
    return BundleGraph(records=records, classification=classify(records))


def resolve_entries(
    requested: Sequence[str] | None, classification: Classification
) -> tuple[str, ...]:
    entries = classification.roots if requested is None else tuple(requested)
    if not entries:
        if requested is None:
            raise EntryResolutionError("bundle has no root modules to expose")
        raise EntryResolutionError("entry list is empty")
    unknown = [entry for entry in entries if entry not in classification.roots]
    if unknown:
        raise EntryResolutionError(
            f"entries {unknown!r} are not root modules of the bundle "
            f"(roots: {list(classification.roots)!r})"
        )
    if len(set(entries)) != len(entries):
        raise EntryResolutionError(f"entries {list(entries)!r} contain duplicates")
    return entries


def convert(
    code: str,
    options: OptionsLike = None,
    *,
    adapter: DiscoveryAdapter | None = None,
) -> str:
    """Convert an AMD bundle into standalone or compact code.

    :param code: Bundle text containing ``define`` calls.
    :param options: A :class:`ConvertOptions`, a mapping with ``mode`` and
        ``entries`` keys, or a mode string.
    :param adapter: Discovery adapter; the AMD scanner by default.
    :returns: The generated code.
    :raises BundleParseError: If the bundle cannot be split into modules.
    :raises ConfigurationError: If the options cannot be honored.
    """
    resolved = normalize_options(options)
    records = discover_modules(code, adapter)
    logger.debug("discovered %d modules", len(records))
    binding_table(_referenced_ids(records))

    module_code = "\n".join(
        wrap_module(record.id, rewrite_body(record.body)) for record in records
    )

    if resolved.mode is ConvertMode.STANDALONE:
        return emit_standalone(module_code)
    if resolved.mode is ConvertMode.COMPACT:
        classification = classify(records)
        logger.debug(
            "roots=%s externals=%s", list(classification.roots), list(classification.externals)
        )
        entries = resolve_entries(resolved.entries, classification)
        if len(entries) == 1:
            return emit_single(entries[0], classification.externals, module_code)
        return emit_multi(entries, classification.externals, module_code)
    never("unhandled conversion mode", mode=str(resolved.mode))
