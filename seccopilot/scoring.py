"""Scoring helpers shared by correlation and the scan summary."""

import math

from .constants import (
    BUSINESS_CONTEXT,
    CATEGORY_MULTIPLIERS,
    DEFAULT_CATEGORY_MULTIPLIER,
)
from .models import AIInsights, Finding


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input.

    ``round()`` rounds halves to even, which would score a mean weight of 5.25 as 52.
    """
    return int(math.floor(value + 0.5))


def priority_score(finding: Finding) -> int:
    multiplier = CATEGORY_MULTIPLIERS.get(finding.category, DEFAULT_CATEGORY_MULTIPLIER)
    return round_half_up(finding.severity.weight * multiplier)


def business_context(finding: Finding) -> str:
    return BUSINESS_CONTEXT[finding.severity.value]


def insights_for(finding: Finding) -> AIInsights:
    return AIInsights(priority_score=priority_score(finding), business_context=business_context(finding))
