"""
Shared analyzer machinery: scan context, artifact collection and the
bounded concurrent detector runner.
"""

import asyncio
import fnmatch
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from ..artifacts import (
    StructuredArtifact,
    TextArtifact,
    display_path,
    load_structured_artifact,
    load_text_artifact,
)
from ..constants import (
    DEFAULT_MAX_WORKERS,
    EXCLUDED_DIRS,
    MAX_LISTED_PATHS,
    MAX_SCANNED_FILE_SIZE,
)
from ..core.exceptions import AnalyzerError, ArtifactParseError, ArtifactReadError
from ..models import Confidence, Finding, Severity
from ..providers import FileProvider
from ..rules.common import Detector, FindingBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ScanContext:
    """Everything an analyzer needs to know about the scan it is part of.

    Attributes:
        root: Absolute path of the scan root.
        provider: File provider restricted to ``root``; None in demo mode.
        cloud_provider: Target cloud, one of ``aws``, ``azure``, ``gcp``.
        demo: When true, analyzers return fixed illustrative findings.
        max_workers: Bound on concurrent reads and detector applications.
        max_file_size: Files larger than this are skipped.
        exclude_patterns: Glob patterns matched against root-relative paths.
    """

    root: str
    provider: FileProvider | None = None
    cloud_provider: str = "aws"
    demo: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    max_file_size: int = MAX_SCANNED_FILE_SIZE
    exclude_patterns: tuple[str, ...] = field(default_factory=tuple)

    def require_provider(self) -> FileProvider:
        if self.provider is None:
            raise AnalyzerError("No file provider available for a live scan")
        return self.provider


class Analyzer(Protocol):
    """A domain analyzer: a name and a coroutine producing findings."""

    name: str

    async def analyze(self) -> list[Finding]: ...


# ---------------------------------------------------------------------------
# Path selection
# ---------------------------------------------------------------------------


async def list_candidate_files(context: ScanContext) -> list[str]:
    """All scannable files under the root, in sorted traversal order."""
    provider = context.require_provider()
    paths = await provider.list_directory(
        context.root,
        recursive=True,
        max_files=MAX_LISTED_PATHS,
        exclude_dirs=EXCLUDED_DIRS,
    )
    if context.exclude_patterns:
        paths = [
            path
            for path in paths
            if not any(
                fnmatch.fnmatch(display_path(provider, path), pattern)
                for pattern in context.exclude_patterns
            )
        ]
    logger.debug(f"Listed {len(paths)} candidate files under {context.root}")
    return paths


def file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def name_matches(*patterns: str) -> Callable[[str], bool]:
    """Predicate matching a path's file name against glob patterns."""

    def _matches(path: str) -> bool:
        name = file_name(path)
        return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)

    return _matches


def select_paths(
    paths: Iterable[str],
    matches: Callable[[str], bool],
    cap: int,
    label: str,
) -> list[str]:
    """Paths accepted by ``matches``, truncated to ``cap``."""
    selected = [path for path in paths if matches(path)]
    if len(selected) > cap:
        logger.debug(
            f"Truncating {label} from {len(selected)} to {cap} files",
            extra={"event": "truncated", "findings": len(selected)},
        )
        selected = selected[:cap]
    return selected


# ---------------------------------------------------------------------------
# Artifact loading
# ---------------------------------------------------------------------------


async def _bounded_gather(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[Any]],
    max_workers: int,
) -> list[Any]:
    semaphore = asyncio.Semaphore(max(1, max_workers))

    async def _run(item: T) -> Any:
        async with semaphore:
            return await worker(item)

    return await asyncio.gather(*(_run(item) for item in items))


async def load_text_artifacts(context: ScanContext, paths: Sequence[str]) -> list[TextArtifact]:
    """Read files as text; unreadable files are logged and skipped."""
    provider = context.require_provider()

    async def _load(path: str) -> TextArtifact | None:
        try:
            return await load_text_artifact(provider, path, context.max_file_size)
        except ArtifactReadError as e:
            logger.warning(
                f"Skipping unreadable artifact {display_path(provider, path)}: {e}",
                extra={"event": "artifact_skipped", "file": display_path(provider, path)},
            )
            return None

    loaded = await _bounded_gather(paths, _load, context.max_workers)
    return [artifact for artifact in loaded if artifact is not None]


def parse_failure_finding(error: ArtifactParseError, detector: str = "PARSE") -> Finding:
    """Turn a parse failure into a reportable configuration finding.

    ``detector`` names the rule set the file was loaded for, so a file
    selected by two analyzers yields two distinct ids.
    """
    path = error.path or "unknown"
    return FindingBuilder(detector, path).build(
        severity=Severity.MEDIUM,
        category="Configuration",
        title="Unparseable configuration file",
        description=f"{path} could not be parsed and was not analyzed: {error}",
        recommendation="Fix the syntax so the file can be validated by tooling",
        business_impact="Misconfigurations in this file go undetected",
        confidence=Confidence.HIGH,
    )


async def load_structured_artifacts(
    context: ScanContext,
    paths: Sequence[str],
    detector: str = "PARSE",
) -> tuple[list[StructuredArtifact], list[Finding]]:
    """Read and parse files; parse failures are reported under ``detector``.

    Returns:
        Parsed artifacts, and one finding for every file that failed to parse
    """
    provider = context.require_provider()

    async def _load(path: str) -> StructuredArtifact | Finding | None:
        try:
            return await load_structured_artifact(provider, path, context.max_file_size)
        except ArtifactReadError as e:
            logger.warning(
                f"Skipping unreadable artifact {display_path(provider, path)}: {e}",
                extra={"event": "artifact_skipped", "file": display_path(provider, path)},
            )
            return None
        except ArtifactParseError as e:
            logger.warning(
                f"Failed to parse {e.path}: {e}",
                extra={"event": "parse_failed", "file": e.path},
            )
            return parse_failure_finding(e, detector)

    artifacts: list[StructuredArtifact] = []
    failures: list[Finding] = []
    for loaded in await _bounded_gather(paths, _load, context.max_workers):
        if isinstance(loaded, StructuredArtifact):
            artifacts.append(loaded)
        elif isinstance(loaded, Finding):
            failures.append(loaded)
    return artifacts, failures


# ---------------------------------------------------------------------------
# Detector runner
# ---------------------------------------------------------------------------


async def run_detectors(
    artifacts: Sequence[Any],
    detectors: Sequence[Detector],
    max_workers: int = DEFAULT_MAX_WORKERS,
    analyzer: str = "",
) -> list[Finding]:
    """
    Apply every detector to every artifact.

    Detector bodies run in worker threads, at most ``max_workers`` at a time.
    Results are concatenated in artifact order, then detector order. A
    detector that raises is logged and contributes nothing.
    """
    pairs = [(artifact, detector) for artifact in artifacts for detector in detectors]

    async def _apply(pair: tuple[Any, Detector]) -> list[Finding]:
        artifact, detector = pair
        target = getattr(artifact, "path", artifact)
        try:
            return await asyncio.to_thread(detector, artifact)
        except Exception as e:
            logger.warning(
                f"Detector {detector.__name__} failed on {target}: {e}",
                extra={
                    "event": "detector_failed",
                    "analyzer": analyzer,
                    "detector": detector.__name__,
                    "file": str(target),
                },
            )
            return []

    results = await _bounded_gather(pairs, _apply, max_workers)
    return [finding for findings in results for finding in findings]
