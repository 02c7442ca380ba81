"""Tests for the correlation engine and the reasoning client."""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from httpx import Response

from seccopilot.config import ReasoningSettings
from seccopilot.correlation import (
    CorrelationEngine,
    CorrelationResponse,
    DelegationResult,
    ReasoningClient,
)
from seccopilot.models import Confidence, Severity


@pytest.fixture
def delegating_settings():
    return ReasoningSettings(api_key="test-anthropic-key")


@pytest.fixture
def findings(make_finding):
    return [
        make_finding(Severity.MEDIUM, "Cross-Site Scripting"),
        make_finding(Severity.CRITICAL, "Secrets Management"),
        make_finding(Severity.HIGH, "Injection"),
    ]


def correlation_payload(finding_ids, combined_risk="critical"):
    return {
        "correlations": [
            {
                "findingIds": finding_ids,
                "attackScenario": "Leaked key plus injection leads to data theft",
                "combinedRisk": combined_risk,
            }
        ],
        "prioritizedRecommendations": [
            {"priority": 1, "action": "Rotate keys", "impact": "Stops access", "effort": "low"}
        ],
    }


def mock_anthropic_response(text: str) -> MagicMock:
    mock_response = MagicMock(spec=Response)
    mock_response.json.return_value = {"content": [{"type": "text", "text": text}]}
    mock_response.raise_for_status = MagicMock()
    return mock_response


class TestCorrelationEngineHeuristic:
    @pytest.mark.asyncio
    async def test_empty_input_is_skipped(self):
        outcome = await CorrelationEngine().correlate([])
        assert outcome.findings == []
        assert outcome.mode == "skipped"

    @pytest.mark.asyncio
    async def test_single_finding_gets_no_chain(self, make_finding):
        outcome = await CorrelationEngine().correlate([make_finding()])

        assert len(outcome.findings) == 1
        assert outcome.findings[0].ai_insights is not None
        assert not any(f.category == "Attack Chain" for f in outcome.findings)

    @pytest.mark.asyncio
    async def test_enrichment_priority_scores(self, make_finding):
        inputs = [
            make_finding(Severity.CRITICAL, "Secrets Management"),
            make_finding(Severity.HIGH, "Injection"),
            make_finding(Severity.MEDIUM, "Data Exposure"),
            make_finding(Severity.LOW, "Availability"),
        ]

        outcome = await CorrelationEngine().correlate(inputs)
        scores = [f.ai_insights.priority_score for f in outcome.findings[:4]]

        assert scores == [13, 8, 5, 1]
        assert outcome.findings[0].ai_insights.business_context == (
            "Immediate business risk requiring executive attention"
        )

    @pytest.mark.asyncio
    async def test_two_or_more_findings_add_critical_chain(self, findings):
        outcome = await CorrelationEngine().correlate(findings)
        chain = outcome.findings[-1]

        assert outcome.mode == "heuristic"
        assert len(outcome.findings) == len(findings) + 1
        assert chain.id == "CORR-001"
        assert chain.severity == Severity.CRITICAL
        assert chain.category == "Attack Chain"
        assert chain.ai_generated is True
        assert chain.confidence == Confidence.AI_GENERATED
        assert chain.related_findings == [findings[1].id, findings[2].id, findings[0].id]

    @pytest.mark.asyncio
    async def test_chain_references_at_most_five_findings(self, make_finding):
        inputs = [make_finding() for _ in range(8)]
        outcome = await CorrelationEngine().correlate(inputs)
        assert len(outcome.findings[-1].related_findings) == 5

    @pytest.mark.asyncio
    async def test_input_findings_are_not_mutated(self, findings):
        await CorrelationEngine().correlate(findings)
        assert all(f.ai_insights is None for f in findings)

    @pytest.mark.asyncio
    async def test_synthesized_findings_are_ai_generated(self, findings):
        outcome = await CorrelationEngine().correlate(findings)
        for finding in outcome.findings:
            assert finding.ai_generated == (finding.confidence == Confidence.AI_GENERATED)


class TestCorrelationEngineDelegation:
    @pytest.mark.asyncio
    async def test_delegated_groups_become_chains(self, delegating_settings, findings):
        client = MagicMock(spec=ReasoningClient)
        response = CorrelationResponse.model_validate(
            correlation_payload([findings[1].id, findings[2].id, "NOT-A-FINDING"])
        )
        client.correlate = AsyncMock(return_value=DelegationResult.success(response))

        outcome = await CorrelationEngine(delegating_settings, client).correlate(findings)
        chains = [f for f in outcome.findings if f.category == "Attack Chain"]

        assert outcome.mode == "delegated"
        assert len(chains) == 1
        assert chains[0].severity == Severity.CRITICAL
        assert chains[0].title == "AI-Identified Attack Chain"
        assert chains[0].related_findings == [findings[1].id, findings[2].id]
        assert chains[0].ai_insights.priority_score == 10
        assert [r.action for r in outcome.recommendations] == ["Rotate keys"]

    @pytest.mark.asyncio
    async def test_non_critical_groups_keep_heuristic_chain(self, delegating_settings, findings):
        client = MagicMock(spec=ReasoningClient)
        response = CorrelationResponse.model_validate(
            correlation_payload([findings[0].id, findings[2].id], combined_risk="high")
        )
        client.correlate = AsyncMock(return_value=DelegationResult.success(response))

        outcome = await CorrelationEngine(delegating_settings, client).correlate(findings)
        chains = [f for f in outcome.findings if f.category == "Attack Chain"]

        assert [(c.id, c.severity) for c in chains] == [
            ("CORR-001", Severity.HIGH),
            ("CORR-002", Severity.CRITICAL),
        ]

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_heuristic(self, delegating_settings, findings, caplog):
        client = MagicMock(spec=ReasoningClient)
        client.correlate = AsyncMock(return_value=DelegationResult.failure("reasoning service timed out"))

        with caplog.at_level(logging.WARNING, logger="seccopilot"):
            outcome = await CorrelationEngine(delegating_settings, client).correlate(findings)

        assert outcome.mode == "heuristic"
        assert len(outcome.findings) >= len(findings)
        assert any(
            f.category == "Attack Chain" and f.severity == Severity.CRITICAL for f in outcome.findings
        )
        assert any("timed out" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_disabled_delegation_never_calls_client(self, findings):
        client = MagicMock(spec=ReasoningClient)
        client.correlate = AsyncMock()
        settings = ReasoningSettings(api_key="key", enabled=False)

        outcome = await CorrelationEngine(settings, client).correlate(findings)

        client.correlate.assert_not_called()
        assert outcome.mode == "heuristic"

    @pytest.mark.asyncio
    async def test_single_finding_is_not_delegated(self, delegating_settings, make_finding):
        client = MagicMock(spec=ReasoningClient)
        client.correlate = AsyncMock()

        await CorrelationEngine(delegating_settings, client).correlate([make_finding()])

        client.correlate.assert_not_called()


class TestReasoningClient:
    @pytest.mark.asyncio
    async def test_anthropic_success(self, delegating_settings, findings):
        text = "Here is my analysis:\n" + json.dumps(correlation_payload([findings[0].id]))
        mock_response = mock_anthropic_response(text)

        with patch("httpx.AsyncClient.post", return_value=mock_response) as mock_post:
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert result.ok
        assert result.response.correlations[0].finding_ids == [findings[0].id]
        assert result.response.correlations[0].combined_risk == Severity.CRITICAL
        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["x-api-key"] == "test-anthropic-key"
        prompt = kwargs["json"]["messages"][0]["content"]
        for finding in findings:
            assert finding.id in prompt
            assert finding.category in prompt

    @pytest.mark.asyncio
    async def test_openai_success(self, findings):
        settings = ReasoningSettings(provider="openai", api_key="test-openai-key")
        mock_response = MagicMock(spec=Response)
        mock_response.json.return_value = {
            "choices": [{"message": {"content": json.dumps(correlation_payload([findings[1].id]))}}]
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient.post", return_value=mock_response) as mock_post:
            result = await ReasoningClient(settings).correlate(findings)

        assert result.ok
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer test-openai-key"
        assert mock_post.call_args.kwargs["json"]["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_reply_without_json(self, delegating_settings, findings):
        with patch("httpx.AsyncClient.post", return_value=mock_anthropic_response("I cannot help")):
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert not result.ok
        assert "No JSON" in result.error

    @pytest.mark.asyncio
    async def test_schema_mismatch(self, delegating_settings, findings):
        payload = {"correlations": [{"findingIds": ["a"], "combinedRisk": "extreme"}]}
        with patch(
            "httpx.AsyncClient.post", return_value=mock_anthropic_response(json.dumps(payload))
        ):
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert not result.ok
        assert "unexpected shape" in result.error

    @pytest.mark.asyncio
    async def test_http_error(self, delegating_settings, findings):
        mock_response = MagicMock(spec=Response)
        mock_response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                "server error", request=MagicMock(), response=MagicMock(status_code=500)
            )
        )

        with patch("httpx.AsyncClient.post", return_value=mock_response):
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert not result.ok
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_network_error(self, delegating_settings, findings):
        with patch("httpx.AsyncClient.post", side_effect=httpx.ConnectError("connection refused")):
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert not result.ok
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    async def test_timeout(self, findings):
        settings = ReasoningSettings(api_key="key", timeout_seconds=0.05)

        async def slow_post(*args, **kwargs):
            await asyncio.sleep(5)

        with patch("httpx.AsyncClient.post", new=slow_post):
            result = await ReasoningClient(settings).correlate(findings)

        assert not result.ok
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_unexpected_error_never_raises(self, delegating_settings, findings):
        with patch("httpx.AsyncClient.post", side_effect=Exception("API error")):
            result = await ReasoningClient(delegating_settings).correlate(findings)

        assert not result.ok
        assert "API error" in result.error

    @pytest.mark.asyncio
    async def test_missing_api_key(self, findings):
        with patch("httpx.AsyncClient.post") as mock_post:
            result = await ReasoningClient(ReasoningSettings()).correlate(findings)

        assert not result.ok
        mock_post.assert_not_called()
