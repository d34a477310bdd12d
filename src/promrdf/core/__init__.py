"""Core modules for promrdf - centralized definitions and utilities."""

from promrdf.core.errors import (
    ConfigurationError,
    DiscoveryError,
    ExitCode,
    PromRdfError,
    StoreError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "PromRdfError",
    "ConfigurationError",
    "DiscoveryError",
    "StoreError",
    "main_with_error_handling",
    "format_error_message",
]
