"""amdcompact package root."""

from amdcompact.orchestrator import BundleGraph, ConvertMode, ConvertOptions, analyze, convert
from amdcompact.exceptions import (
    BindingCollisionError,
    BundleParseError,
    ConfigurationError,
    ConversionError,
    EntryResolutionError,
    InvalidOptionsError,
    UnknownModeError,
)

__all__ = [
    "__version__",
    "BindingCollisionError",
    "BundleGraph",
    "BundleParseError",
    "ConfigurationError",
    "ConversionError",
    "ConvertMode",
    "ConvertOptions",
    "EntryResolutionError",
    "InvalidOptionsError",
    "UnknownModeError",
    "analyze",
    "convert",
]

__version__ = "0.1.0"
