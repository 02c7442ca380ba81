"""
Report rendering for scan results.

Formats: ``table`` (plain fixed-width text), ``json`` (camelCase dump) and
``markdown``. The report mode decides how much is shown: ``executive`` shows
the summary only, ``technical`` lists every finding, ``compliance`` lists
findings grouped by category.
"""

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import ReportingSettings, ScanOptions
from .models import Finding, ScanResult

logger = logging.getLogger(__name__)

FILE_EXTENSIONS = {"table": "txt", "json": "json", "markdown": "md"}


def _location(finding: Finding) -> str:
    if not finding.file:
        return "-"
    return f"{finding.file}:{finding.line}" if finding.line else finding.file


class ReportGenerator:
    """Renders a ScanResult for the options a scan was run with."""

    def __init__(self, options: ScanOptions, settings: ReportingSettings | None = None):
        self.options = options
        self.settings = settings or ReportingSettings()

    def filter_findings(self, findings: Iterable[Finding]) -> list[Finding]:
        """Findings at or above the minimum severity."""
        return [f for f in findings if f.severity.at_least(self.options.severity)]

    def _grouped(self, findings: list[Finding]) -> list[tuple[str, list[Finding]]]:
        if self.options.mode != "compliance":
            return [("Findings", findings)]
        groups: dict[str, list[Finding]] = {}
        for finding in findings:
            groups.setdefault(finding.category, []).append(finding)
        return list(groups.items())

    def render(self, result: ScanResult) -> str:
        findings = self.filter_findings(result.findings)
        if self.options.output == "json":
            return self._render_json(result, findings)
        if self.options.output == "markdown":
            return self._render_markdown(result, findings)
        return self._render_table(result, findings)

    def _render_json(self, result: ScanResult, findings: list[Finding]) -> str:
        data: dict[str, Any] = result.to_dict()
        if self.options.mode == "executive":
            data.pop("findings", None)
        else:
            data["findings"] = [
                f.model_dump(mode="json", by_alias=True, exclude_none=True) for f in findings
            ]
        return json.dumps(data, indent=2)

    def _render_table(self, result: ScanResult, findings: list[Finding]) -> str:
        summary = result.summary
        lines = [
            "SecCopilot Security Report",
            "=" * 78,
            f"Risk score: {summary.risk_score}/100 ({summary.risk_level.value})",
            f"Total findings: {summary.total_findings}",
        ]
        if summary.severity_breakdown:
            breakdown = ", ".join(f"{sev}: {count}" for sev, count in summary.severity_breakdown.items())
            lines.append(f"By severity: {breakdown}")
        if summary.top_categories:
            lines.append("Top categories: " + ", ".join(
                f"{c.category} ({c.count})" for c in summary.top_categories
            ))
        for recommendation in summary.recommendations:
            lines.append(f"  [{recommendation.priority}] {recommendation.action}")

        if self.options.mode != "executive":
            for title, group in self._grouped(findings):
                lines.extend(["", title, "-" * 78])
                lines.append(f"{'SEVERITY':<10} {'ID':<18} {'LOCATION':<30} TITLE")
                for f in group:
                    lines.append(
                        f"{f.severity.value.upper():<10} {f.id:<18} {_location(f)[:30]:<30} {f.title}"
                    )
                if not group:
                    lines.append("No findings at or above the selected severity.")

        lines.extend(["", f"Scanned in {result.metadata.scan_time}s ({result.metadata.mode.value} mode)"])
        return "\n".join(lines)

    def _render_markdown(self, result: ScanResult, findings: list[Finding]) -> str:
        summary = result.summary
        lines = [
            "# Security Report",
            "",
            f"**Risk score:** {summary.risk_score}/100 ({summary.risk_level.value})  ",
            f"**Total findings:** {summary.total_findings}",
            "",
        ]
        if summary.severity_breakdown:
            lines.extend(["| Severity | Count |", "|---|---|"])
            lines.extend(f"| {sev} | {count} |" for sev, count in summary.severity_breakdown.items())
            lines.append("")
        if summary.recommendations:
            lines.append("## Key Recommendations")
            lines.append("")
            lines.extend(f"- **{r.priority}**: {r.action} ({r.impact})" for r in summary.recommendations)
            lines.append("")
        if result.prioritized_recommendations:
            lines.append("## Prioritized Remediation")
            lines.append("")
            lines.extend(
                f"{r.priority}. {r.action}" + (f" ({r.impact})" if r.impact else "")
                for r in result.prioritized_recommendations
            )
            lines.append("")

        if self.options.mode != "executive":
            for title, group in self._grouped(findings):
                lines.extend([f"## {title}", ""])
                for f in group:
                    lines.append(f"### [{f.severity.value.upper()}] {f.title}")
                    lines.append("")
                    lines.append(f"- **ID:** `{f.id}`")
                    lines.append(f"- **Category:** {f.category}")
                    lines.append(f"- **Location:** `{_location(f)}`")
                    lines.append(f"- **Description:** {f.description}")
                    lines.append(f"- **Recommendation:** {f.recommendation}")
                    if f.business_impact:
                        lines.append(f"- **Business impact:** {f.business_impact}")
                    if f.related_findings:
                        lines.append(f"- **Related findings:** {', '.join(f.related_findings)}")
                    lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def save(self, result: ScanResult, directory: str | Path | None = None) -> Path:
        """Write the rendered report and return its path."""
        target_dir = Path(directory or self.settings.report_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        path = target_dir / f"security-report-{stamp}.{FILE_EXTENSIONS[self.options.output]}"
        path.write_text(self.render(result), encoding="utf-8")
        logger.info(f"Saved report to {path}")
        return path
