"""Core utilities: the exception hierarchy."""

from .exceptions import (
    AnalyzerError,
    ArtifactError,
    ArtifactParseError,
    ArtifactReadError,
    ConfigurationError,
    CorrelationError,
    DelegationError,
    InvalidConfigError,
    InvalidOptionsError,
    ScannerError,
    SecCopilotError,
)

__all__ = [
    "SecCopilotError",
    "ScannerError",
    "AnalyzerError",
    "ArtifactError",
    "ArtifactReadError",
    "ArtifactParseError",
    "CorrelationError",
    "DelegationError",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidOptionsError",
]
