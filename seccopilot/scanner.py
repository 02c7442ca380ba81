"""
Scan orchestrator.

Runs the registered domain analyzers in series, correlates their findings,
and summarizes the result:

    start -> code-scan -> cloud-scan -> infra-scan -> correlate -> summarize -> done
"""

import asyncio
import time
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from .analyzers import ScanContext, build_analyzers
from .config import ScanOptions, SecCopilotConfig
from .constants import (
    DEFAULT_RECOMMENDATION_IMPACT,
    MAX_SUMMARY_RECOMMENDATIONS,
    MAX_TOP_CATEGORIES,
    RISK_LEVEL_THRESHOLDS,
    VERSION,
)
from .core.exceptions import AnalyzerError
from .correlation import CorrelationEngine, CorrelationOutcome
from .logging_config import get_scan_logger
from .models import (
    CategoryCount,
    Finding,
    RiskLevel,
    ScanMetadata,
    ScanMode,
    ScanResult,
    ScanSummary,
    Severity,
    SummaryRecommendation,
)
from .providers import LocalFileProvider
from .scoring import round_half_up

logger = get_scan_logger()

ProgressCallback = Callable[[str, str], None]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def calculate_risk_score(findings: list[Finding]) -> int:
    """Mean severity weight scaled to 0..100; 0 when there are no findings."""
    if not findings:
        return 0
    mean_weight = sum(f.severity.weight for f in findings) / len(findings)
    return min(100, round_half_up(mean_weight * 10))


def get_risk_level(score: int) -> RiskLevel:
    for threshold, level in RISK_LEVEL_THRESHOLDS:
        if score >= threshold:
            return RiskLevel(level)
    return RiskLevel.LOW


def generate_summary(findings: list[Finding]) -> ScanSummary:
    """Derive counts, risk score and top recommendations from ``findings``."""
    severity_breakdown: dict[str, int] = {}
    for finding in findings:
        key = finding.severity.value
        severity_breakdown[key] = severity_breakdown.get(key, 0) + 1

    # Counter preserves first-seen order and sorted() is stable
    category_counts = Counter(f.category for f in findings)
    top_categories = [
        CategoryCount(category=category, count=count)
        for category, count in sorted(category_counts.items(), key=lambda item: -item[1])[
            :MAX_TOP_CATEGORIES
        ]
    ]

    recommendations = [
        SummaryRecommendation(
            priority="HIGH",
            action=f.recommendation,
            impact=f.business_impact or DEFAULT_RECOMMENDATION_IMPACT,
        )
        for f in findings
        if f.severity == Severity.CRITICAL
    ][:MAX_SUMMARY_RECOMMENDATIONS]

    risk_score = calculate_risk_score(findings)
    return ScanSummary(
        total_findings=len(findings),
        severity_breakdown=severity_breakdown,
        risk_score=risk_score,
        risk_level=get_risk_level(risk_score),
        top_categories=top_categories,
        recommendations=recommendations,
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Scanner:
    """Runs one scan over a repository, or over fixed findings in demo mode."""

    def __init__(
        self,
        options: ScanOptions,
        config: SecCopilotConfig | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.options = options
        self.config = config or SecCopilotConfig()
        self.progress = progress
        self.demo = options.demo

    def _report(self, stage: str, message: str) -> None:
        logger.info(f"[{stage}] {message}", extra={"event": "stage", "stage": stage})
        if self.progress is not None:
            self.progress(stage, message)

    def _build_context(self) -> ScanContext:
        scanning = self.config.scanning
        if self.demo:
            return ScanContext(
                root=self.options.repo,
                cloud_provider=self.options.cloud,
                demo=True,
                max_workers=scanning.max_workers,
            )

        root = Path(self.options.repo).expanduser().resolve()
        if not root.is_dir():
            raise AnalyzerError(f"Scan root {root} is not a readable directory", stage="start")
        return ScanContext(
            root=str(root),
            provider=LocalFileProvider(str(root)),
            cloud_provider=self.options.cloud,
            demo=False,
            max_workers=scanning.max_workers,
            max_file_size=scanning.max_file_size,
            exclude_patterns=scanning.effective_exclude_patterns(),
        )

    async def _analyze(self, context: ScanContext) -> list[Finding]:
        findings: list[Finding] = []
        for analyzer in build_analyzers(context):
            stage = f"{analyzer.name}-scan"
            try:
                found = await analyzer.analyze()
            except AnalyzerError as e:
                if e.stage is None:
                    e.stage = stage
                raise
            except Exception as e:
                raise AnalyzerError(f"{stage} failed: {e}", stage=stage) from e
            findings.extend(found)
            self._report(stage, f"{len(found)} findings")
        return findings

    async def _correlate(self, findings: list[Finding]) -> CorrelationOutcome:
        settings = self.config.ai
        if self.demo:
            settings = settings.model_copy(update={"enabled": False})
        try:
            outcome = await CorrelationEngine(settings).correlate(findings)
        except Exception as e:
            logger.warning(
                f"Correlation failed, keeping uncorrelated findings: {e}",
                extra={"event": "correlation_failed", "stage": "correlate", "reason": str(e)},
            )
            return CorrelationOutcome(findings=list(findings), mode="failed")
        self._report("correlate", f"{len(outcome.findings)} findings ({outcome.mode})")
        return outcome

    async def run(self) -> ScanResult:
        started = time.perf_counter()
        mode = ScanMode.DEMO if self.demo else ScanMode.LIVE
        self._report("start", f"Scanning {self.options.repo} ({mode.value} mode)")

        context = self._build_context()
        findings = await self._analyze(context)
        outcome = await self._correlate(findings)

        summary = generate_summary(outcome.findings)
        self._report("summarize", f"Risk score {summary.risk_score} ({summary.risk_level.value})")

        result = ScanResult(
            findings=outcome.findings,
            summary=summary,
            metadata=ScanMetadata(
                scan_time=round(time.perf_counter() - started, 3),
                timestamp=datetime.now(timezone.utc).isoformat(),
                version=VERSION,
                mode=mode,
                correlation=outcome.mode,
            ),
            prioritized_recommendations=outcome.recommendations,
        )
        self._report("done", f"{summary.total_findings} findings")
        return result


def run_scan(
    options: ScanOptions,
    config: SecCopilotConfig | None = None,
    progress: ProgressCallback | None = None,
) -> ScanResult:
    """Synchronous wrapper around Scanner.run()."""
    return asyncio.run(Scanner(options, config, progress).run())
