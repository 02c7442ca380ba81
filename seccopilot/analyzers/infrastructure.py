"""
Infrastructure analyzer: Kubernetes manifests, compose files and sensitive
configuration files at the scan root.
"""

import logging
import re

from ..artifacts import display_path
from ..constants import MAX_MANIFEST_FILES
from ..models import Finding
from ..rules import COMPOSE_DETECTORS, CONFIG_FILE_DETECTORS, KUBERNETES_DETECTORS
from .base import (
    ScanContext,
    file_name,
    list_candidate_files,
    load_structured_artifacts,
    name_matches,
    run_detectors,
    select_paths,
)

logger = logging.getLogger(__name__)

MANIFEST_NAME = re.compile(
    r"^(deployment|service|pod|statefulset|daemonset|job|cronjob)\.ya?ml$", re.IGNORECASE
)
MANIFEST_DIRS = {"k8s", "kubernetes", "manifests", "deploy"}
COMPOSE_PATTERNS = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")


class InfrastructureAnalyzer:
    """Scans orchestration manifests and configuration files."""

    name = "infra"

    def __init__(self, context: ScanContext):
        self.context = context
        self._is_compose = name_matches(*COMPOSE_PATTERNS)

    def _is_manifest(self, path: str) -> bool:
        name = file_name(path)
        if not name.lower().endswith((".yaml", ".yml")) or self._is_compose(path):
            return False
        if MANIFEST_NAME.match(name):
            return True
        relative = display_path(self.context.require_provider(), path)
        return any(part in MANIFEST_DIRS for part in relative.split("/")[:-1])

    async def analyze(self) -> list[Finding]:
        paths = await list_candidate_files(self.context)
        findings: list[Finding] = []

        manifests = select_paths(paths, self._is_manifest, MAX_MANIFEST_FILES, "kubernetes manifests")
        artifacts, parse_failures = await load_structured_artifacts(self.context, manifests, "PARSE-K8S")
        findings.extend(parse_failures)
        findings.extend(
            await run_detectors(artifacts, KUBERNETES_DETECTORS, self.context.max_workers, self.name)
        )

        compose = select_paths(paths, self._is_compose, MAX_MANIFEST_FILES, "compose files")
        artifacts, parse_failures = await load_structured_artifacts(self.context, compose, "PARSE-COMPOSE")
        findings.extend(parse_failures)
        findings.extend(
            await run_detectors(artifacts, COMPOSE_DETECTORS, self.context.max_workers, self.name)
        )

        findings.extend(
            await run_detectors(
                await self._root_files(), CONFIG_FILE_DETECTORS, self.context.max_workers, self.name
            )
        )
        return findings

    async def _root_files(self) -> list[str]:
        """Root-relative names of regular files directly under the scan root."""
        provider = self.context.require_provider()
        entries = await provider.list_directory(self.context.root)
        files = []
        for entry in entries:
            if await provider.is_file(entry):
                files.append(display_path(provider, entry))
        return files
