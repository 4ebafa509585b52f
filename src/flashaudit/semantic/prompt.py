"""Prompt construction for the semantic collaborator."""

from __future__ import annotations

from flashaudit.config.schema import AuditOptions
from flashaudit.source.models import SourceUnit

RESPONSE_SCHEMA = """\
{
  "vulnerabilities": [
    {
      "name": "Vulnerability Name",
      "severity": "critical|high|medium|low",
      "category": "reentrancy|access-control|arithmetic|logic|gas|defi|mev|other",
      "description": "Detailed description of the vulnerability",
      "location": {"line": 42, "function": "functionName", "contract": "ContractName"},
      "recommendation": "How to fix this vulnerability",
      "confidence": 0.95
    }
  ],
  "securityScore": 85,
  "qualityScore": 78,
  "gasScore": 82,
  "summary": "Brief summary of the analysis",
  "recommendations": ["General recommendation"],
  "gasOptimizations": [
    {
      "description": "Optimization description",
      "location": "Line 42",
      "estimatedSavings": "~500 gas",
      "implementation": "How to apply it"
    }
  ],
  "codeQuality": {
    "issues": ["Issue"],
    "strengths": ["Strength"],
    "maintainability": "high|medium|low",
    "readability": "high|medium|low",
    "testability": "high|medium|low"
  },
  "defiAnalysis": {
    "tokenomics": "Token economics notes",
    "liquidityRisks": ["Risk"],
    "flashLoanVulnerabilities": ["Risk"],
    "yieldFarmingRisks": ["Risk"],
    "governanceRisks": ["Risk"],
    "oracleRisks": ["Risk"]
  },
  "complianceChecks": {
    "erc20Compliance": true,
    "erc721Compliance": false,
    "accessControlPatterns": ["Ownable"],
    "upgradeabilityPatterns": ["Proxy"],
    "pausabilityImplemented": false
  }
}"""

_MODE_FOCUS = {
    "security": "Focus on security vulnerabilities: reentrancy, access control, arithmetic, MEV.",
    "gas": "Focus on gas optimization opportunities; still report critical security issues.",
    "quality": "Focus on code quality and best practices; still report critical security issues.",
}
_DEFAULT_FOCUS = (
    "Cover security vulnerabilities, code quality and best practices, gas "
    "optimization, and DeFi-specific risks where applicable."
)


def build_prompt(text: str, unit: SourceUnit, options: AuditOptions) -> str:
    """Build the structured analysis request for one contract source."""
    contracts = ", ".join(unit.contracts) or "Unknown"
    focus = _MODE_FOCUS.get(options.analysis_mode, _DEFAULT_FOCUS)
    return f"""Analyze this Solidity smart contract for security vulnerabilities, code quality, and gas optimization opportunities.

Contract Information:
- Chain: {options.chain}
- Analysis mode: {options.analysis_mode}
- Contracts: {contracts}
- Functions: {len(unit.functions)}
- Complexity: {unit.complexity.value}
- Lines of Code: {unit.line_count}

Contract Code:
{text}

{focus}

Respond with ONLY a single valid JSON object (no markdown, no code fence, no extra text) with this shape:
{RESPONSE_SCHEMA}

Line numbers refer to the contract code above, starting at 1."""
