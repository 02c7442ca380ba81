"""
Base file provider interface and data models.

Analyzers enumerate candidate artifacts and read their contents only through
a FileProvider, so detectors never touch the file system directly and demo
mode can run without one.
"""

import stat
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FileType(Enum):
    """Kinds of path a provider can report."""
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FileStats:
    """Metadata for one path under the scan root."""
    path: str
    file_type: FileType
    size: int
    modified_time: datetime
    is_readable: bool = True

    @property
    def is_directory(self) -> bool:
        return self.file_type == FileType.DIRECTORY

    @classmethod
    def from_stat(cls, path: str, stat_result, is_readable: bool = True) -> "FileStats":
        if stat.S_ISDIR(stat_result.st_mode):
            file_type = FileType.DIRECTORY
        elif stat.S_ISLNK(stat_result.st_mode):
            file_type = FileType.SYMLINK
        else:
            file_type = FileType.FILE

        return cls(
            path=path,
            file_type=file_type,
            size=stat_result.st_size,
            modified_time=datetime.fromtimestamp(stat_result.st_mtime),
            is_readable=is_readable,
        )


class FileProviderError(Exception):
    """Base exception for file provider errors."""
    pass


class FileNotFoundError(FileProviderError):
    """Path does not exist under the scan root."""
    pass


class PermissionError(FileProviderError):
    """Path exists but cannot be read or listed."""
    pass


class FileSizeLimitExceededError(FileProviderError):
    """Artifact is larger than the configured size limit."""
    pass


class FileProvider(ABC):
    """
    Read-only view of a scan root.

    Every operation is async; implementations push blocking I/O onto worker
    threads so the analyzers' detector tasks keep running while files load.
    Failures surface as FileProviderError subclasses, which the artifact
    loader turns into skipped artifacts.
    """

    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_DIRECTORY_FILES = 1000
    MAX_PATH_DEPTH = 40

    @abstractmethod
    async def read_file(
        self,
        file_path: str,
        encoding: str = "utf-8",
        max_size: int | None = None
    ) -> str:
        """
        Read one artifact as text.

        Args:
            file_path: Absolute path, or a path relative to the scan root
            encoding: Text encoding to use (default: utf-8)
            max_size: Size limit in bytes (default: MAX_FILE_SIZE)

        Raises:
            FileNotFoundError: If the file doesn't exist
            PermissionError: If the file can't be read
            FileSizeLimitExceededError: If the file is too large
            FileProviderError: If the file is not text in ``encoding``
        """

    @abstractmethod
    async def list_directory(
        self,
        directory_path: str,
        pattern: str | None = None,
        recursive: bool = False,
        max_files: int | None = None,
        exclude_dirs: Iterable[str] | None = None,
    ) -> list[str]:
        """
        List a directory as absolute paths.

        A recursive listing returns regular files only, walking directories in
        sorted order and never descending into ``exclude_dirs``. A flat
        listing returns every entry, sorted. At most ``max_files`` paths are
        returned (default: MAX_DIRECTORY_FILES).

        Raises:
            FileNotFoundError: If the directory doesn't exist
            PermissionError: If the directory can't be listed
        """

    @abstractmethod
    async def file_exists(self, path: str) -> bool:
        """True when ``path`` exists under the scan root."""

    @abstractmethod
    async def get_file_stats(self, path: str) -> FileStats:
        """
        Metadata for ``path``.

        Raises:
            FileNotFoundError: If the path doesn't exist
            PermissionError: If the path can't be accessed
        """

    def relative_path(self, path: str) -> str:
        """Display form of ``path``; providers without a root return it unchanged."""
        return path

    async def is_directory(self, path: str) -> bool:
        try:
            stats = await self.get_file_stats(path)
            return stats.is_directory
        except FileProviderError:
            return False

    async def is_file(self, path: str) -> bool:
        try:
            stats = await self.get_file_stats(path)
            return stats.file_type == FileType.FILE
        except FileProviderError:
            return False

    def _check_file_size(self, size: int, max_size: int | None = None) -> None:
        limit = max_size or self.MAX_FILE_SIZE
        if size > limit:
            raise FileSizeLimitExceededError(
                f"File size {size} bytes exceeds limit of {limit} bytes"
            )
