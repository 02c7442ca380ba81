"""
Correlation engine: priority enrichment and attack-chain synthesis.

The heuristic chain is co-occurrence only. With two or more findings present
it asserts that they combine into a critical path, without understanding how
the findings relate. Delegation to the reasoning service replaces that guess
with model-produced groupings when an API key is configured.
"""

import logging
from dataclasses import dataclass, field

from ..config import ReasoningSettings
from ..constants import MAX_CHAIN_REFERENCES
from ..models import AIInsights, Confidence, Finding, PrioritizedRecommendation, Severity
from ..scoring import insights_for
from .reasoning_client import CorrelationGroup, ReasoningClient

logger = logging.getLogger(__name__)

ATTACK_CHAIN_CATEGORY = "Attack Chain"


@dataclass(frozen=True)
class CorrelationOutcome:
    """Findings after correlation, plus any ranked recommendations.

    ``mode`` is one of ``skipped``, ``heuristic`` or ``delegated``.
    """

    findings: list[Finding]
    recommendations: list[PrioritizedRecommendation] = field(default_factory=list)
    mode: str = "heuristic"


def _chain_id(index: int) -> str:
    return f"CORR-{index:03d}"


def heuristic_chain(findings: list[Finding], index: int = 1) -> Finding:
    """Synthesize the critical multi-vector chain over ``findings``."""
    ranked = sorted(findings, key=lambda f: f.severity.weight, reverse=True)
    categories = list(dict.fromkeys(f.category for f in findings))
    return Finding(
        id=_chain_id(index),
        severity=Severity.CRITICAL,
        category=ATTACK_CHAIN_CATEGORY,
        title="AI-Identified Multi-Vector Attack Path",
        description=(
            f"{len(findings)} findings across {', '.join(categories)} "
            "can be combined into a path to infrastructure compromise"
        ),
        recommendation="Prioritize credential security and container hardening together",
        business_impact="Complete infrastructure compromise possible",
        confidence=Confidence.AI_GENERATED,
        ai_generated=True,
        ai_insights=AIInsights(priority_score=10, business_context="Critical business systems at risk"),
        related_findings=[f.id for f in ranked[:MAX_CHAIN_REFERENCES]],
    )


def delegated_chain(group: CorrelationGroup, known_ids: set[str], index: int) -> Finding:
    """Turn one reasoning-service group into a finding; unknown ids are dropped."""
    chain = Finding(
        id=_chain_id(index),
        severity=group.combined_risk,
        category=ATTACK_CHAIN_CATEGORY,
        title="AI-Identified Attack Chain",
        description=group.attack_scenario,
        recommendation="Address all related findings together",
        business_impact="Combined attack chain increases risk",
        confidence=Confidence.AI_GENERATED,
        ai_generated=True,
        related_findings=[fid for fid in dict.fromkeys(group.finding_ids) if fid in known_ids],
    )
    return chain.model_copy(update={"ai_insights": insights_for(chain)})


class CorrelationEngine:
    """Enriches findings and appends attack-chain findings."""

    def __init__(self, settings: ReasoningSettings | None = None, client: ReasoningClient | None = None):
        self.settings = settings or ReasoningSettings()
        self.client = client or ReasoningClient(self.settings)

    async def correlate(self, findings: list[Finding]) -> CorrelationOutcome:
        if not findings:
            return CorrelationOutcome(findings=[], mode="skipped")

        enriched = [f.model_copy(update={"ai_insights": insights_for(f)}) for f in findings]

        if len(findings) < 2:
            return CorrelationOutcome(findings=enriched, mode="heuristic")

        if self.settings.delegation_enabled:
            result = await self.client.correlate(findings)
            if result.ok and result.response is not None:
                known_ids = {f.id for f in findings}
                chains = [
                    delegated_chain(group, known_ids, index)
                    for index, group in enumerate(result.response.correlations, start=1)
                ]
                if not any(chain.severity == Severity.CRITICAL for chain in chains):
                    chains.append(heuristic_chain(findings, len(chains) + 1))
                logger.info(
                    f"Delegated correlation produced {len(chains)} attack chains",
                    extra={"event": "correlated", "mode": "delegated", "findings": len(chains)},
                )
                return CorrelationOutcome(
                    findings=enriched + chains,
                    recommendations=list(result.response.prioritized_recommendations),
                    mode="delegated",
                )
            logger.warning(
                f"Correlation delegation failed, using heuristic correlation: {result.error}",
                extra={"event": "delegation_failed", "reason": result.error},
            )

        return CorrelationOutcome(findings=enriched + [heuristic_chain(findings)], mode="heuristic")
