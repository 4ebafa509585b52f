"""Semantic analysis — collaborator client, prompt, response normalization."""

from flashaudit.semantic.adapter import (
    GasOptimization,
    MalformedResponse,
    QualityAssessment,
    SemanticResult,
    fallback_result,
    parse_semantic_response,
    run_semantic_analysis,
)
from flashaudit.semantic.client import (
    ChatCompletionsClient,
    CollaboratorError,
    SemanticCollaborator,
    build_collaborator,
)
from flashaudit.semantic.prompt import build_prompt

__all__ = [
    "ChatCompletionsClient",
    "CollaboratorError",
    "GasOptimization",
    "MalformedResponse",
    "QualityAssessment",
    "SemanticCollaborator",
    "SemanticResult",
    "build_collaborator",
    "build_prompt",
    "fallback_result",
    "parse_semantic_response",
    "run_semantic_analysis",
]
