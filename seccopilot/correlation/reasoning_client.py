"""
Client for the external reasoning service used to correlate findings.

The service is asked to group findings into attack scenarios and to rank
remediation steps. Every failure mode comes back as a failed
DelegationResult; callers never see an exception from this module.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import Field, ValidationError

from ..config import ReasoningSettings
from ..constants import ANTHROPIC_MESSAGES_URL, OPENAI_CHAT_URL
from ..core.exceptions import DelegationError
from ..models import CamelModel, Finding, PrioritizedRecommendation, Severity

logger = logging.getLogger(__name__)


class CorrelationGroup(CamelModel):
    finding_ids: list[str] = Field(default_factory=list)
    attack_scenario: str
    combined_risk: Severity


class CorrelationResponse(CamelModel):
    correlations: list[CorrelationGroup] = Field(default_factory=list)
    prioritized_recommendations: list[PrioritizedRecommendation] = Field(default_factory=list)


@dataclass(frozen=True)
class DelegationResult:
    """Outcome of one delegation attempt: a response or a failure reason."""

    response: CorrelationResponse | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.response is not None

    @classmethod
    def success(cls, response: CorrelationResponse) -> "DelegationResult":
        return cls(response=response)

    @classmethod
    def failure(cls, reason: str) -> "DelegationResult":
        return cls(error=reason)


class ReasoningClient:
    """Asks an LLM API to correlate findings into attack chains."""

    def __init__(self, settings: ReasoningSettings):
        self.settings = settings

    async def correlate(self, findings: list[Finding]) -> DelegationResult:
        """
        Request correlations for ``findings``.

        Returns:
            A successful result with the validated response, or a failed
            result naming the reason (timeout, HTTP error, bad payload)
        """
        if not self.settings.api_key:
            return DelegationResult.failure("no API key configured")

        prompt = self._build_correlation_prompt(findings)
        try:
            payload = await asyncio.wait_for(
                self._query_llm(prompt), timeout=self.settings.timeout_seconds
            )
            return DelegationResult.success(CorrelationResponse.model_validate(payload))
        except asyncio.TimeoutError:
            return DelegationResult.failure(
                f"reasoning service timed out after {self.settings.timeout_seconds}s"
            )
        except httpx.HTTPStatusError as e:
            return DelegationResult.failure(f"reasoning service returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            return DelegationResult.failure(f"reasoning service request failed: {e}")
        except ValidationError as e:
            return DelegationResult.failure(f"reasoning service response has unexpected shape: {e}")
        except DelegationError as e:
            return DelegationResult.failure(str(e))
        except Exception as e:
            logger.debug("Unexpected delegation failure", exc_info=True)
            return DelegationResult.failure(f"unexpected error: {e}")

    def _build_correlation_prompt(self, findings: list[Finding]) -> str:
        """Build the correlation prompt from finding summaries."""
        summaries = json.dumps(
            [
                {
                    "id": finding.id,
                    "severity": finding.severity.value,
                    "title": finding.title,
                    "category": finding.category,
                }
                for finding in findings
            ],
            indent=2,
        )

        return f"""As a cybersecurity expert, analyze these security findings and provide correlations and prioritized recommendations.

Security Findings:
{summaries}

Group findings that together enable an attack, referencing them by id.

Respond with JSON only:
{{
  "correlations": [
    {{
      "findingIds": ["id1", "id2"],
      "attackScenario": "description",
      "combinedRisk": "critical|high|medium|low"
    }}
  ],
  "prioritizedRecommendations": [
    {{
      "priority": 1,
      "action": "specific action",
      "impact": "business impact",
      "effort": "low|medium|high"
    }}
  ]
}}"""

    async def _query_llm(self, prompt: str) -> dict[str, Any]:
        if self.settings.provider == "openai":
            content = await self._query_openai(prompt)
        else:
            content = await self._query_anthropic(prompt)
        return self._extract_json(content)

    async def _query_openai(self, prompt: str) -> str:
        """Query OpenAI API."""
        async with httpx.AsyncClient(timeout=self.settings.timeout_seconds) as client:
            response = await client.post(
                OPENAI_CHAT_URL,
                headers={
                    "Authorization": f"Bearer {self.settings.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.settings.resolved_model,
                    "messages": [
                        {
                            "role": "system",
                            "content": "You are a security expert. Always respond with valid JSON.",
                        },
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": 0.1,
                    "response_format": {"type": "json_object"},
                },
            )
            response.raise_for_status()
            result = response.json()
            try:
                return str(result["choices"][0]["message"]["content"])
            except (KeyError, IndexError, TypeError) as e:
                raise DelegationError("reasoning service reply has no message content") from e

    async def _query_anthropic(self, prompt: str) -> str:
        """Query Anthropic API."""
        async with httpx.AsyncClient(timeout=self.settings.timeout_seconds) as client:
            response = await client.post(
                ANTHROPIC_MESSAGES_URL,
                headers={
                    "x-api-key": self.settings.api_key or "",
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json={
                    "model": self.settings.resolved_model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": 0.1,
                    "max_tokens": 4000,
                },
            )
            response.raise_for_status()
            result = response.json()
            try:
                return str(result["content"][0]["text"])
            except (KeyError, IndexError, TypeError) as e:
                raise DelegationError("reasoning service reply has no text content") from e

    @staticmethod
    def _extract_json(content: str) -> dict[str, Any]:
        """Extract the outermost JSON object from a model reply."""
        json_match = re.search(r"\{.*\}", content, re.DOTALL)
        if not json_match:
            raise DelegationError("No JSON found in reasoning service response")
        try:
            payload = json.loads(json_match.group())
        except json.JSONDecodeError as e:
            raise DelegationError(f"Malformed JSON in reasoning service response: {e}") from e
        if not isinstance(payload, dict):
            raise DelegationError("Reasoning service response is not a JSON object")
        return payload
