"""
Local file provider implementation.

This module provides a local file system implementation of the FileProvider
interface, restricted to the scan root.
"""

import asyncio
import errno
import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from .base import FileNotFoundError as BaseFileNotFoundError
from .base import (
    FileProvider,
    FileProviderError,
    FileStats,
    PermissionError,
)


class LocalFileProvider(FileProvider):
    """
    FileProvider over the local file system.

    When ``base_path`` is set, every path is resolved against it and paths
    that escape it (through "..", absolute paths or symlinks) are rejected.
    """

    def __init__(self, base_path: str | None = None):
        self.base_path = Path(base_path).resolve() if base_path else None

    def _get_absolute_path(self, path: str) -> Path:
        """Resolve ``path``, rejecting anything outside base_path."""
        validated = self._validate_path(path)

        if self.base_path:
            candidate = validated if validated.is_absolute() else self.base_path / validated
            abs_path = candidate.resolve()
            try:
                abs_path.relative_to(self.base_path)
            except ValueError as e:
                raise FileProviderError(
                    f"Path {abs_path} is outside allowed base path {self.base_path}"
                ) from e
        else:
            abs_path = validated.resolve()

        return abs_path

    async def read_file(
        self,
        file_path: str,
        encoding: str = "utf-8",
        max_size: int | None = None
    ) -> str:
        abs_path = self._get_absolute_path(file_path)

        if not abs_path.is_file():
            raise BaseFileNotFoundError(f"File not found: {abs_path}")

        try:
            size = abs_path.stat().st_size
        except OSError as e:
            raise PermissionError(f"Cannot access file {abs_path}: {e}") from e
        self._check_file_size(size, max_size)

        try:
            def _read_file():
                with open(abs_path, encoding=encoding) as f:
                    return f.read()

            return await asyncio.to_thread(_read_file)
        except OSError as e:
            raise PermissionError(f"Cannot read file {abs_path}: {e}") from e
        except UnicodeDecodeError as e:
            raise FileProviderError(
                f"Failed to decode file {abs_path} with encoding {encoding}: {e}"
            ) from e

    async def list_directory(
        self,
        directory_path: str,
        pattern: str | None = None,
        recursive: bool = False,
        max_files: int | None = None,
        exclude_dirs: Iterable[str] | None = None,
    ) -> list[str]:
        abs_path = self._get_absolute_path(directory_path)

        if not abs_path.is_dir():
            raise BaseFileNotFoundError(f"Directory not found: {abs_path}")

        if not os.access(abs_path, os.R_OK | os.X_OK):
            raise PermissionError(f"Cannot read directory {abs_path}")

        limit = max_files or self.MAX_DIRECTORY_FILES
        excluded = set(exclude_dirs or ())

        def _matches(name: str) -> bool:
            return pattern is None or fnmatch.fnmatch(name, pattern)

        def _list_directory() -> list[str]:
            files: list[str] = []

            if recursive:
                for current, dirnames, filenames in os.walk(abs_path):
                    # Prune in place so os.walk never descends into excluded dirs
                    dirnames[:] = sorted(d for d in dirnames if d not in excluded)
                    for name in sorted(filenames):
                        if not _matches(name):
                            continue
                        files.append(os.path.join(current, name))
                        if len(files) >= limit:
                            return files
            else:
                for item in sorted(abs_path.iterdir()):
                    if not _matches(item.name):
                        continue
                    files.append(str(item))
                    if len(files) >= limit:
                        break

            return files

        try:
            return await asyncio.to_thread(_list_directory)
        except OSError as e:
            raise PermissionError(f"Cannot list directory {abs_path}: {e}") from e

    async def file_exists(self, path: str) -> bool:
        abs_path = self._get_absolute_path(path)
        try:
            return abs_path.exists()
        except OSError:
            return False

    async def get_file_stats(self, path: str) -> FileStats:
        abs_path = self._get_absolute_path(path)

        try:
            stat_result = abs_path.stat()
            is_readable = os.access(abs_path, os.R_OK)

            return FileStats.from_stat(
                path=str(abs_path),
                stat_result=stat_result,
                is_readable=is_readable
            )
        except OSError as e:
            if e.errno == errno.ENOENT:
                raise BaseFileNotFoundError(f"Path not found: {abs_path}") from e
            else:
                raise PermissionError(f"Cannot access path {abs_path}: {e}") from e

    def relative_path(self, path: str) -> str:
        """Return ``path`` relative to base_path, with POSIX separators."""
        abs_path = Path(path)
        if self.base_path:
            try:
                return abs_path.relative_to(self.base_path).as_posix()
            except ValueError:
                pass
        return abs_path.as_posix()

    def _validate_path(self, path: str) -> Path:
        """Reject empty, over-deep and relative ".." paths before resolving."""
        if not path:
            raise FileProviderError("Path cannot be empty")

        path_obj = Path(path)
        if not path_obj.is_absolute() and ".." in path_obj.parts:
            raise FileProviderError("Path traversal attempt detected: '..' in path")

        if len(path_obj.parts) > self.MAX_PATH_DEPTH:
            raise FileProviderError(f"Path too deep (max {self.MAX_PATH_DEPTH} levels)")

        return path_obj

    def __repr__(self) -> str:
        base_info = f"base_path={self.base_path}" if self.base_path else "unrestricted"
        return f"LocalFileProvider({base_info})"
