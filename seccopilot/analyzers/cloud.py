"""
Cloud analyzer: CloudFormation templates and Terraform configuration.
"""

import logging

from ..constants import MAX_CLOUD_TEMPLATE_FILES, MAX_TERRAFORM_FILES
from ..models import Finding
from ..rules import CLOUDFORMATION_DETECTORS, TERRAFORM_DETECTORS
from .base import (
    ScanContext,
    list_candidate_files,
    load_structured_artifacts,
    load_text_artifacts,
    name_matches,
    run_detectors,
    select_paths,
)

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = ("yaml", "yml", "json")
CLOUDFORMATION_PATTERNS = tuple(
    f"{stem}.{extension}"
    for stem in ("template", "cloudformation", "*.cfn")
    for extension in TEMPLATE_EXTENSIONS
)
TERRAFORM_PATTERNS = ("*.tf", "*.tfvars")


class CloudAnalyzer:
    """Scans infrastructure-as-code for the configured cloud provider."""

    name = "cloud"

    def __init__(self, context: ScanContext):
        self.context = context

    async def analyze(self) -> list[Finding]:
        paths = await list_candidate_files(self.context)
        findings: list[Finding] = []

        if self.context.cloud_provider == "aws":
            findings.extend(await self._scan_cloudformation(paths))
        else:
            logger.info(
                f"Skipping CloudFormation checks for provider {self.context.cloud_provider}",
                extra={"analyzer": self.name, "reason": "provider"},
            )

        terraform = select_paths(paths, name_matches(*TERRAFORM_PATTERNS), MAX_TERRAFORM_FILES, "terraform")
        artifacts = await load_text_artifacts(self.context, terraform)
        findings.extend(
            await run_detectors(artifacts, TERRAFORM_DETECTORS, self.context.max_workers, self.name)
        )
        return findings

    async def _scan_cloudformation(self, paths: list[str]) -> list[Finding]:
        templates = select_paths(
            paths, name_matches(*CLOUDFORMATION_PATTERNS), MAX_CLOUD_TEMPLATE_FILES, "cloudformation"
        )
        artifacts, parse_failures = await load_structured_artifacts(self.context, templates, "PARSE-CFN")
        findings = await run_detectors(
            artifacts, CLOUDFORMATION_DETECTORS, self.context.max_workers, self.name
        )
        return parse_failures + findings
