"""
Artifact model: the typed inputs detectors operate over.

A TextArtifact carries raw content for line-oriented pattern rules. A
StructuredArtifact carries parsed YAML/JSON documents for schema-aware rules
over cloud templates and orchestration manifests.
"""

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import yaml

from .core.exceptions import ArtifactParseError, ArtifactReadError
from .providers import FileProvider, FileProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextArtifact:
    """A file read as text."""

    path: str
    content: str

    @cached_property
    def lines(self) -> list[str]:
        return self.content.split("\n")

    def line_of(self, offset: int) -> int:
        """1-based line number of a character offset in ``content``."""
        return self.content.count("\n", 0, offset) + 1


@dataclass(frozen=True)
class StructuredArtifact:
    """A file parsed into one or more key-value/tree documents.

    ``document_lines`` holds the 1-based first line of each document, parallel
    to ``documents``; it may be empty when the positions are unknown.
    """

    path: str
    documents: list[Any] = field(default_factory=list)
    content: str = ""
    document_lines: list[int] = field(default_factory=list)

    @classmethod
    def parse(cls, path: str, content: str) -> "StructuredArtifact":
        """Parse ``content`` into an artifact that remembers document positions.

        Raises:
            ArtifactParseError: If the content is not valid for its format
        """
        located = parse_located_documents(path, content)
        return cls(
            path=path,
            documents=[document for _, document in located],
            content=content,
            document_lines=[line for line, _ in located],
        )

    def mappings(self) -> list[dict[str, Any]]:
        """Documents that are mappings; lists, scalars and empty documents are skipped."""
        return [doc for doc in self.documents if isinstance(doc, dict)]

    def located_mappings(self) -> list[tuple[int, int | None, dict[str, Any]]]:
        """``(first line, last line, document)`` for every mapping document.

        The last line is None for the final document, or for every document
        when positions are unknown.
        """
        if len(self.document_lines) != len(self.documents):
            return [(1, None, doc) for doc in self.mappings()]
        located = []
        for index, document in enumerate(self.documents):
            if not isinstance(document, dict):
                continue
            following = self.document_lines[index + 1:index + 2]
            located.append((self.document_lines[index], following[0] - 1 if following else None, document))
        return located


class TemplateLoader(yaml.SafeLoader):
    """SafeLoader that understands CloudFormation short-form intrinsic tags."""


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> dict[str, Any]:
    value: Any
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)

    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


TemplateLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_located_documents(path: str, content: str) -> list[tuple[int, Any]]:
    """Parse YAML (multi-document) or JSON content, keeping each document's first line.

    Empty YAML documents are dropped.

    Raises:
        ArtifactParseError: If the content is not valid for its format, or is
            nested too deeply to load
    """
    try:
        if path.lower().endswith(".json"):
            return [(1, json.loads(content))]

        loader = TemplateLoader(content)
        try:
            located = []
            while loader.check_node():
                node = loader.get_node()
                document = loader.construct_document(node)
                if document is not None:
                    located.append((node.start_mark.line + 1, document))
            return located
        finally:
            loader.dispose()
    except (yaml.YAMLError, ValueError, RecursionError) as e:
        raise ArtifactParseError(str(e) or type(e).__name__, path=path) from e


def parse_documents(path: str, content: str) -> list[Any]:
    """Parse YAML (multi-document) or JSON content.

    Raises:
        ArtifactParseError: If the content is not valid for its format
    """
    return [document for _, document in parse_located_documents(path, content)]


async def read_artifact_text(
    provider: FileProvider,
    path: str,
    max_size: int | None = None,
) -> str:
    """Read an artifact through the provider.

    Raises:
        ArtifactReadError: If the file is unreadable, undecodable or too large
    """
    try:
        content = await provider.read_file(path, max_size=max_size)
    except FileProviderError as e:
        raise ArtifactReadError(str(e), path=path) from e

    if "\x00" in content:
        raise ArtifactReadError(f"Binary content in {path}", path=path)
    return content


def display_path(provider: FileProvider, path: str) -> str:
    return provider.relative_path(path)


async def load_text_artifact(
    provider: FileProvider,
    path: str,
    max_size: int | None = None,
) -> TextArtifact:
    """Load a text artifact; its path is stored relative to the scan root."""
    content = await read_artifact_text(provider, path, max_size)
    return TextArtifact(path=display_path(provider, path), content=content)


async def load_structured_artifact(
    provider: FileProvider,
    path: str,
    max_size: int | None = None,
) -> StructuredArtifact:
    """Load and parse a structured artifact.

    Raises:
        ArtifactReadError: If the file cannot be read
        ArtifactParseError: If the file cannot be parsed; ``path`` on the
            error is relative to the scan root
    """
    content = await read_artifact_text(provider, path, max_size)
    relative = display_path(provider, path)
    artifact = StructuredArtifact.parse(relative, content)
    logger.debug(f"Parsed {len(artifact.documents)} document(s) from {relative}")
    return artifact
