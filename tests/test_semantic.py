"""Tests for semantic response normalization, bounded invocation, and the HTTP client."""

import asyncio
import json

import httpx
import pytest

from flashaudit.config.schema import AuditConfig, AuditOptions
from flashaudit.findings.models import SEMANTIC
from flashaudit.semantic.adapter import (
    DEFAULT_SCORE,
    UNAVAILABLE_MESSAGE,
    MalformedResponse,
    fallback_result,
    parse_semantic_response,
    run_semantic_analysis,
)
from flashaudit.semantic.client import (
    ChatCompletionsClient,
    CollaboratorError,
    build_collaborator,
)
from flashaudit.semantic.prompt import build_prompt
from flashaudit.source.parser import parse_source


def _run(text, collaborator, *, timeout=5.0, cancel=None):
    return asyncio.run(
        run_semantic_analysis(
            text, parse_source(text), AuditOptions(), collaborator, timeout=timeout, cancel=cancel
        )
    )


class TestParseResponse:
    def test_full_response(self, full_semantic_response):
        result = parse_semantic_response(full_semantic_response, "m")
        assert not result.degraded
        assert result.scores.security == 40
        assert result.quality_score == 82
        assert result.gas_score == 64
        assert result.summary == "One critical reentrancy issue."
        assert result.recommendations == ("Add a reentrancy guard.",)
        kinds = [(f.kind, f.category, f.severity) for f in result.findings]
        assert kinds == [("security", "reentrancy", "critical")]

    def test_vulnerability_fields(self, full_semantic_response):
        vuln = parse_semantic_response(full_semantic_response).findings[0]
        assert vuln.source == SEMANTIC
        assert vuln.title == "Reentrancy in withdraw"
        assert vuln.line == 12
        assert vuln.location.function == "withdraw"
        assert vuln.confidence == 0.9

    def test_gas_optimizations_are_not_findings(self, full_semantic_response):
        result = parse_semantic_response(full_semantic_response)
        (opt,) = result.gas_optimizations
        assert opt.description == "Cache balances[msg.sender]."
        assert opt.location.line == 11
        assert opt.estimated_savings is None
        assert opt.estimated_gas == 0

    def test_estimated_savings_parsed(self):
        raw = {
            "gasOptimizations": [
                {"description": "Pack structs", "estimatedSavings": "~500 gas", "implementation": "uint128 a;"},
                {"description": "Cache length", "estimatedSavings": "~2,000 gas per call"},
                {"description": "Vague", "estimatedSavings": "some"},
                {"estimatedSavings": "~900 gas"},
            ]
        }
        opts = parse_semantic_response(raw).gas_optimizations
        assert [o.estimated_gas for o in opts] == [500, 2000, 0]
        assert opts[0].to_dict()["implementation"] == "uint128 a;"
        assert "implementation" not in opts[1].to_dict()

    def test_quality_assessment(self, full_semantic_response):
        quality = parse_semantic_response(full_semantic_response).quality
        assert quality.issues == ("Missing NatSpec comments",)
        assert quality.strengths == ("Small surface",)
        assert quality.maintainability == "medium"

    def test_quality_ratings_coerced(self):
        raw = {"codeQuality": {"maintainability": "HIGH", "readability": "excellent", "testability": 3}}
        quality = parse_semantic_response(raw).quality
        assert (quality.maintainability, quality.readability, quality.testability) == ("high", "medium", "medium")

    def test_code_quality_score_used_when_top_level_missing(self):
        result = parse_semantic_response({"codeQuality": {"score": 70}})
        assert result.quality_score == 70

    def test_absent_subscores_are_none(self):
        result = parse_semantic_response({"summary": "ok", "vulnerabilities": []})
        assert result.quality_score is None
        assert result.gas_score is None
        assert result.scores.quality == DEFAULT_SCORE

    def test_non_numeric_subscores_are_none(self):
        result = parse_semantic_response({"qualityScore": "good", "gasScore": True})
        assert result.quality_score is None
        assert result.gas_score is None

    def test_defi_and_compliance(self):
        raw = {
            "defiAnalysis": {
                "tokenomics": " Fixed supply ",
                "oracleRisks": ["Single price source", 7, ""],
                "liquidityRisks": "not a list",
            },
            "complianceChecks": {
                "erc20Compliance": True,
                "erc721Compliance": "yes",
                "accessControlPatterns": ["Ownable"],
            },
        }
        result = parse_semantic_response(raw)
        assert result.defi["tokenomics"] == "Fixed supply"
        assert result.defi["oracleRisks"] == ["Single price source"]
        assert result.defi["liquidityRisks"] == []
        assert result.compliance["erc20Compliance"] is True
        assert result.compliance["erc721Compliance"] is False
        assert result.compliance["pausabilityImplemented"] is False
        assert result.compliance["accessControlPatterns"] == ["Ownable"]
        assert result.compliance["upgradeabilityPatterns"] == []

    def test_defi_and_compliance_absent(self, full_semantic_response):
        result = parse_semantic_response(full_semantic_response)
        assert result.defi is None
        assert result.compliance is None

    def test_json_string_with_fence(self, full_semantic_response):
        raw = "```json\n" + json.dumps(full_semantic_response) + "\n```"
        assert parse_semantic_response(raw).scores.security == 40

    def test_json_embedded_in_prose(self):
        raw = 'Here you go: {"securityScore": 90} hope that helps'
        assert parse_semantic_response(raw).scores.security == 90

    def test_missing_fields_defaulted(self):
        result = parse_semantic_response({})
        assert result.findings == ()
        assert result.scores.security == DEFAULT_SCORE
        assert result.summary is None

    def test_bad_field_values_coerced(self):
        raw = {
            "vulnerabilities": [
                {"severity": "EXTREME", "category": "Access Control", "location": "line 7", "confidence": 3},
                "not-a-dict",
            ],
            "securityScore": "high",
            "qualityScore": 250,
            "gasScore": -4,
        }
        result = parse_semantic_response(raw)
        assert len(result.findings) == 1
        vuln = result.findings[0]
        assert vuln.severity == "medium"
        assert vuln.category == "access-control"
        assert vuln.line == 7
        assert vuln.confidence == 1.0
        assert result.scores.security == DEFAULT_SCORE
        assert result.scores.quality == 100
        assert result.scores.gas == 0

    def test_info_severity_maps_to_low(self):
        result = parse_semantic_response({"vulnerabilities": [{"severity": "info"}]})
        assert result.findings[0].severity == "low"

    def test_gas_category_vulnerability_is_gas_kind(self):
        result = parse_semantic_response({"vulnerabilities": [{"category": "gas"}]})
        assert result.findings[0].kind == "gas"

    @pytest.mark.parametrize("raw", ["no json here", "[1, 2, 3]", "{not valid", 42])
    def test_malformed(self, raw):
        with pytest.raises(MalformedResponse):
            parse_semantic_response(raw)


class TestFallback:
    def test_fallback_shape(self):
        result = fallback_result("timed out", "m")
        assert result.degraded
        assert result.error == "timed out"
        assert result.quality_score is None
        assert result.gas_score is None
        (finding,) = result.findings
        assert finding.kind == "quality"
        assert finding.category == "other"
        assert finding.severity == "medium"
        assert finding.message == UNAVAILABLE_MESSAGE
        assert finding.scored is False
        assert finding.to_dict()["scored"] is False


class TestRunSemanticAnalysis:
    def test_no_collaborator(self, clean_contract):
        result = _run(clean_contract, None)
        assert result.degraded

    def test_success(self, clean_contract, make_collaborator, full_semantic_response):
        collaborator = make_collaborator(full_semantic_response)
        result = _run(clean_contract, collaborator)
        assert not result.degraded
        assert result.model == "fake/model"
        assert "Counter" in collaborator.prompts[0]

    def test_timeout_falls_back(self, clean_contract, make_collaborator):
        result = _run(clean_contract, make_collaborator({}, delay=5), timeout=0.05)
        assert result.degraded
        assert "timed out" in result.error

    def test_exception_falls_back(self, clean_contract, make_collaborator):
        result = _run(clean_contract, make_collaborator(RuntimeError("boom")))
        assert result.degraded

    def test_collaborator_error_falls_back(self, clean_contract, make_collaborator):
        result = _run(clean_contract, make_collaborator(CollaboratorError("endpoint down")))
        assert result.degraded
        assert result.error == "endpoint down"

    def test_malformed_falls_back(self, clean_contract, make_collaborator):
        result = _run(clean_contract, make_collaborator("I refuse to answer in JSON"))
        assert result.degraded

    def test_cancel_falls_back(self, clean_contract, make_collaborator):
        async def scenario():
            cancel = asyncio.Event()
            loop = asyncio.get_running_loop()
            loop.call_later(0.05, cancel.set)
            text = clean_contract
            return await run_semantic_analysis(
                text,
                parse_source(text),
                AuditOptions(),
                make_collaborator({}, delay=5),
                timeout=10,
                cancel=cancel,
            )

        result = asyncio.run(scenario())
        assert result.degraded
        assert "cancelled" in result.error


class TestPrompt:
    def test_includes_context(self, clean_contract):
        prompt = build_prompt(
            clean_contract, parse_source(clean_contract), AuditOptions(chain="polygon", analysis_mode="gas")
        )
        assert "Chain: polygon" in prompt
        assert "gas optimization" in prompt
        assert "contract Counter" in prompt
        assert '"securityScore"' in prompt


def _client(handler) -> ChatCompletionsClient:
    return ChatCompletionsClient(
        "test-key",
        base_url="https://llm.test/v1",
        model="test/model",
        transport=httpx.MockTransport(handler),
    )


class TestChatCompletionsClient:
    def test_returns_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": '{"securityScore": 80}'}}]})

        content = asyncio.run(_client(handler).analyze("prompt"))
        assert content == '{"securityScore": 80}'
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["model"] == "test/model"
        assert seen["body"]["messages"][1]["content"] == "prompt"

    def test_non_200(self):
        client = _client(lambda request: httpx.Response(429, json={"error": "rate limited"}))
        with pytest.raises(CollaboratorError, match="429"):
            asyncio.run(client.analyze("prompt"))

    def test_missing_content(self):
        client = _client(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(CollaboratorError):
            asyncio.run(client.analyze("prompt"))

    def test_connect_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CollaboratorError, match="unreachable"):
            asyncio.run(_client(handler).analyze("prompt"))


class TestBuildCollaborator:
    def test_disabled(self):
        cfg = AuditConfig()
        cfg.semantic.enabled = False
        cfg.api_key = "k"
        assert build_collaborator(cfg) is None

    def test_missing_key(self):
        assert build_collaborator(AuditConfig()) is None

    def test_configured(self):
        cfg = AuditConfig()
        cfg.api_key = "k"
        client = build_collaborator(cfg)
        assert isinstance(client, ChatCompletionsClient)
        assert client.model == cfg.semantic.model
