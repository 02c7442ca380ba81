"""Shared building blocks for detection rules.

A detector is a pure function from one artifact to a list of findings. Pattern
rules are declarative regex rules applied to text artifacts; each rule yields
at most one finding per file, located at its first match.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..artifacts import TextArtifact
from ..models import Confidence, Finding, Severity

Detector = Callable[[Any], list[Finding]]


def finding_id(detector: str, path: str, line: int | None, sequence: int) -> str:
    """Deterministic finding id from detector, artifact, line and sequence number."""
    digest = hashlib.sha1(f"{path}:{line or 0}:{sequence}".encode()).hexdigest()[:10]
    return f"{detector}-{digest}"


class FindingBuilder:
    """Creates findings for one detector applied to one artifact.

    The sequence counter is local to the builder, so ids stay unique for
    repeated hits on the same line while detectors remain free of shared state.
    """

    def __init__(self, detector: str, path: str) -> None:
        self.detector = detector
        self.path = path
        self._sequence = 0

    def build(self, *, line: int | None = None, **fields: Any) -> Finding:
        self._sequence += 1
        return Finding(
            id=finding_id(self.detector, self.path, line, self._sequence),
            file=self.path,
            line=line,
            **fields,
        )


@dataclass(frozen=True)
class PatternRule:
    """A regex rule over raw file content.

    Attributes:
        name: Short human-readable name, used in titles.
        pattern: Compiled pattern; ``.`` does not cross lines.
        severity: Severity of a hit.
        category: Finding category.
        title: Finding title; ``{name}`` is substituted.
        description: Finding description; ``{name}`` is substituted.
        recommendation: Remediation advice; ``{name}`` is substituted.
        business_impact: Consequence statement.
        confidence: Confidence of a hit.
    """

    name: str
    pattern: re.Pattern[str]
    severity: Severity
    category: str
    title: str
    description: str
    recommendation: str
    business_impact: str | None = None
    confidence: Confidence = Confidence.MEDIUM


def apply_pattern_rules(
    artifact: TextArtifact,
    rules: tuple[PatternRule, ...],
    detector: str,
) -> list[Finding]:
    """One finding per matching rule, at the line of the rule's first match."""
    builder = FindingBuilder(detector, artifact.path)
    findings = []
    for rule in rules:
        match = rule.pattern.search(artifact.content)
        if not match:
            continue
        findings.append(
            builder.build(
                line=artifact.line_of(match.start()),
                severity=rule.severity,
                category=rule.category,
                title=rule.title.format(name=rule.name),
                description=rule.description.format(name=rule.name),
                recommendation=rule.recommendation.format(name=rule.name),
                business_impact=rule.business_impact,
                confidence=rule.confidence,
            )
        )
    return findings


def find_key_line(
    content: str,
    key: str,
    start_line: int = 1,
    end_line: int | None = None,
    value: str | None = None,
    indent: int | None = None,
) -> int | None:
    """Line of the first ``key:`` (YAML) or ``"key":`` (JSON) occurrence.

    Only lines ``start_line`` through ``end_line`` (inclusive, 1-based) are
    searched. With ``value`` the key must also be followed by that value; with
    ``indent`` it must start exactly that many spaces into the line.
    """
    prefix = r"\s*" if indent is None else " " * indent
    expression = prefix + rf"(?:-\s*)?[\"']?{re.escape(key)}[\"']?\s*:"
    if value is not None:
        expression += rf"\s*[\"']?{re.escape(value)}[\"']?\s*(?:[,#}}\]]|$)"
    pattern = re.compile(expression)

    lines = content.split("\n")
    last = len(lines) if end_line is None else min(end_line, len(lines))
    for number in range(max(start_line, 1), last + 1):
        if pattern.match(lines[number - 1]):
            return number
    return None
