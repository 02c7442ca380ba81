"""Custom exception hierarchy for SecCopilot.

Scanner errors split into artifact errors, which are recovered locally by
the analyzers, and analyzer-stage errors, which are fatal to a scan.
Correlation errors never leave the correlation engine.
"""


class SecCopilotError(Exception):
    """Base exception for all SecCopilot errors.

    All custom exceptions should inherit from this class to allow
    callers to catch all SecCopilot-specific errors with a single
    except clause when appropriate.
    """
    pass


# =============================================================================
# Scanner Errors
# =============================================================================

class ScannerError(SecCopilotError):
    """Base exception for scanner-related errors."""
    pass


class AnalyzerError(ScannerError):
    """A whole domain analyzer failed; the scan cannot continue."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class ArtifactError(ScannerError):
    """Base exception for errors tied to a single scanned artifact."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class ArtifactReadError(ArtifactError):
    """Artifact could not be read (binary, undecodable, unreadable, too large)."""
    pass


class ArtifactParseError(ArtifactError):
    """Structured artifact (YAML/JSON template or manifest) failed to parse."""
    pass


# =============================================================================
# Correlation Errors
# =============================================================================

class CorrelationError(SecCopilotError):
    """Base exception for correlation errors."""
    pass


class DelegationError(CorrelationError):
    """The external reasoning service call failed or answered garbage."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(SecCopilotError):
    """Base exception for configuration errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid or malformed."""
    pass


class InvalidOptionsError(ConfigurationError):
    """Caller-supplied scan options are invalid."""
    pass
