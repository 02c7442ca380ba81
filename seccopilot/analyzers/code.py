"""
Code analyzer: web sources, scripts, container builds and secrets.
"""

import logging

from ..artifacts import TextArtifact, display_path
from ..constants import (
    MAX_CONTAINER_BUILD_FILES,
    MAX_SCRIPT_FILES,
    MAX_SECRET_SCAN_FILES,
    MAX_WEB_SOURCE_FILES,
)
from ..models import Finding
from ..rules import (
    CONTAINER_BUILD_DETECTORS,
    SCRIPT_DETECTORS,
    SECRET_DETECTORS,
    WEB_SOURCE_DETECTORS,
)
from .base import (
    ScanContext,
    list_candidate_files,
    load_text_artifacts,
    name_matches,
    run_detectors,
    select_paths,
)

logger = logging.getLogger(__name__)

WEB_SOURCE_PATTERNS = ("*.js", "*.ts", "*.jsx", "*.tsx")
SCRIPT_PATTERNS = ("*.py",)
CONTAINER_BUILD_PATTERNS = ("Dockerfile*", "*.dockerfile")


class CodeAnalyzer:
    """Scans application source and build files."""

    name = "code"

    def __init__(self, context: ScanContext):
        self.context = context

    async def analyze(self) -> list[Finding]:
        paths = await list_candidate_files(self.context)
        cache: dict[str, TextArtifact | None] = {}
        findings: list[Finding] = []

        catalogs = (
            ("web sources", name_matches(*WEB_SOURCE_PATTERNS), MAX_WEB_SOURCE_FILES, WEB_SOURCE_DETECTORS),
            ("scripts", name_matches(*SCRIPT_PATTERNS), MAX_SCRIPT_FILES, SCRIPT_DETECTORS),
            (
                "container builds",
                name_matches(*CONTAINER_BUILD_PATTERNS),
                MAX_CONTAINER_BUILD_FILES,
                CONTAINER_BUILD_DETECTORS,
            ),
            ("secret scan", lambda path: True, MAX_SECRET_SCAN_FILES, SECRET_DETECTORS),
        )

        for label, matches, cap, detectors in catalogs:
            selected = select_paths(paths, matches, cap, label)
            artifacts = await self._load(selected, cache)
            catalog_findings = await run_detectors(
                artifacts, detectors, self.context.max_workers, self.name
            )
            logger.debug(f"{label}: {len(artifacts)} files, {len(catalog_findings)} findings")
            findings.extend(catalog_findings)

        return findings

    async def _load(
        self,
        paths: list[str],
        cache: dict[str, TextArtifact | None],
    ) -> list[TextArtifact]:
        """Load paths not read yet in this analysis; unreadable ones cache as None."""
        missing = [path for path in paths if path not in cache]
        if missing:
            provider = self.context.require_provider()
            loaded = {
                artifact.path: artifact
                for artifact in await load_text_artifacts(self.context, missing)
            }
            for path in missing:
                cache[path] = loaded.get(display_path(provider, path))
        return [artifact for artifact in (cache[path] for path in paths) if artifact is not None]
