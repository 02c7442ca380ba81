"""
Test cases for the LocalFileProvider implementation of the FileProvider interface.
"""

from unittest.mock import patch

import pytest

from seccopilot.providers import (
    FileNotFoundError,
    FileProviderError,
    FileSizeLimitExceededError,
    FileType,
    LocalFileProvider,
)


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.js").write_text("console.log('hi');\n")
    (tmp_path / "src" / "util.py").write_text("x = 1\n")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("module.exports = 1;\n")
    (tmp_path / "README.md").write_text("# project\n")
    return tmp_path


@pytest.fixture
def provider(project):
    return LocalFileProvider(str(project))


class TestLocalFileProvider:
    """Test cases for LocalFileProvider."""

    @pytest.mark.asyncio
    async def test_read_file_relative_to_base(self, provider):
        assert await provider.read_file("src/app.js") == "console.log('hi');\n"

    @pytest.mark.asyncio
    async def test_read_missing_file(self, provider):
        with pytest.raises(FileNotFoundError):
            await provider.read_file("src/missing.js")

    @pytest.mark.asyncio
    async def test_read_file_size_limit(self, provider):
        with pytest.raises(FileSizeLimitExceededError):
            await provider.read_file("src/app.js", max_size=5)

    @pytest.mark.asyncio
    async def test_read_binary_file_fails_to_decode(self, provider, project):
        (project / "blob.bin").write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(FileProviderError, match="decode"):
            await provider.read_file("blob.bin")

    @pytest.mark.asyncio
    async def test_path_traversal_is_rejected(self, provider):
        with pytest.raises(FileProviderError, match="traversal"):
            await provider.read_file("../outside.txt")

    @pytest.mark.asyncio
    async def test_absolute_path_outside_base_is_rejected(self, provider, tmp_path_factory):
        outside = tmp_path_factory.mktemp("outside") / "secret.txt"
        outside.write_text("nope")
        with pytest.raises(FileProviderError, match="outside allowed base path"):
            await provider.read_file(str(outside))

    @pytest.mark.asyncio
    async def test_empty_path_is_rejected(self, provider):
        with pytest.raises(FileProviderError):
            await provider.read_file("")

    @pytest.mark.asyncio
    async def test_recursive_listing_prunes_excluded_dirs(self, provider, project):
        files = await provider.list_directory(
            str(project), recursive=True, exclude_dirs={"node_modules"}
        )

        assert [provider.relative_path(f) for f in files] == [
            "README.md",
            "src/app.js",
            "src/util.py",
        ]

    @pytest.mark.asyncio
    async def test_recursive_listing_with_pattern_and_limit(self, provider, project):
        files = await provider.list_directory(str(project), pattern="*.js", recursive=True)
        assert [provider.relative_path(f) for f in files] == [
            "node_modules/lib/index.js",
            "src/app.js",
        ]

        limited = await provider.list_directory(str(project), recursive=True, max_files=2)
        assert len(limited) == 2

    @pytest.mark.asyncio
    async def test_flat_listing_includes_directories(self, provider, project):
        entries = await provider.list_directory(str(project))
        assert [provider.relative_path(e) for e in entries] == ["README.md", "node_modules", "src"]

    @pytest.mark.asyncio
    async def test_list_missing_directory(self, provider):
        with pytest.raises(FileNotFoundError):
            await provider.list_directory("nowhere")

    @pytest.mark.asyncio
    async def test_file_exists(self, provider):
        assert await provider.file_exists("src/app.js") is True
        assert await provider.file_exists("src/gone.js") is False

    @pytest.mark.asyncio
    async def test_file_stats_and_type_checks(self, provider):
        stats = await provider.get_file_stats("src/app.js")

        assert stats.file_type == FileType.FILE
        assert stats.size == len("console.log('hi');\n")
        assert stats.is_readable
        assert await provider.is_file("src/app.js")
        assert not await provider.is_directory("src/app.js")
        assert await provider.is_directory("src")

    @pytest.mark.asyncio
    async def test_type_checks_on_missing_path(self, provider):
        assert await provider.is_file("missing") is False
        assert await provider.is_directory("missing") is False

    @pytest.mark.asyncio
    async def test_unreadable_directory(self, provider, project):
        with patch("os.access", return_value=False):
            with pytest.raises(FileProviderError, match="Cannot read directory"):
                await provider.list_directory(str(project))

    def test_relative_path(self, provider, project):
        assert provider.relative_path(str(project / "src" / "app.js")) == "src/app.js"
        assert provider.relative_path("/elsewhere/file.txt") == "/elsewhere/file.txt"

    def test_repr(self, provider, project):
        assert repr(provider) == f"LocalFileProvider(base_path={project.resolve()})"
        assert repr(LocalFileProvider()) == "LocalFileProvider(unrestricted)"
