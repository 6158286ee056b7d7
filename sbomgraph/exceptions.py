"""Custom exceptions for sbomgraph."""


class SbomgraphError(Exception):
    """Base exception for all sbomgraph operations."""


class ConfigurationError(SbomgraphError):
    """Raised when configuration validation fails."""


class ManifestError(SbomgraphError):
    """Raised when a manifest is missing, unreadable or lacks a root identity."""


class UnsupportedManifestError(ManifestError):
    """Raised when no ecosystem provider handles a manifest file name."""


class CommandExecutionError(SbomgraphError):
    """Raised when external command execution fails."""


class CommandTimeoutError(CommandExecutionError):
    """Raised when an external command exceeds its time budget."""


class ToolNotFoundError(CommandExecutionError):
    """Raised when the executable of an ecosystem tool cannot be found."""
