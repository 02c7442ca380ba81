"""
File provider abstractions for SecCopilot.

Analyzers enumerate and read artifacts only through a FileProvider.
"""

from .base import (
    FileNotFoundError,
    FileProvider,
    FileProviderError,
    FileSizeLimitExceededError,
    FileStats,
    FileType,
    PermissionError,
)
from .local import LocalFileProvider

__all__ = [
    "FileProvider",
    "FileStats",
    "FileType",
    "FileProviderError",
    "FileNotFoundError",
    "PermissionError",
    "FileSizeLimitExceededError",
    "LocalFileProvider",
]
