"""Error taxonomy for amdcompact conversions."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for every error raised by a conversion call."""


class BundleParseError(ConversionError):
    """Raised when bundle text cannot be split into module records.

    ``offset`` is the character index in the bundle text where scanning
    stopped, when known.
    """

    def __init__(self, message: str, *, offset: int | None = None):
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class ConfigurationError(ConversionError):
    """Raised when the caller asks for a conversion that cannot be honored."""


class UnknownModeError(ConfigurationError):
    def __init__(self, mode: object):
        super().__init__(f"unknown conversion mode {mode!r}")
        self.mode = mode


class EntryResolutionError(ConfigurationError):
    """Raised when the effective entry list of a compact conversion is unusable."""


class InvalidOptionsError(ConfigurationError):
    """Raised when an options mapping fails validation."""


class BindingCollisionError(ConfigurationError):
    """Raised when two distinct module ids sanitize to the same local binding."""

    def __init__(self, binding: str, ids: tuple[str, ...]):
        joined = ", ".join(repr(module_id) for module_id in ids)
        super().__init__(f"module ids {joined} share the local binding {binding}")
        self.binding = binding
        self.ids = ids


class NeverThrown(RuntimeError):
    """Sentinel raised by :func:`amdcompact.invariants.never`.

    Reaching it means a code path believed unreachable was taken.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})
