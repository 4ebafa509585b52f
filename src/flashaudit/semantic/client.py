"""Semantic collaborator: an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Protocol, Union

import httpx

from flashaudit.config.schema import AuditConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional smart contract security auditor with expertise in "
    "Solidity, DeFi, and blockchain security. Always respond with valid JSON only."
)

RawSemanticResponse = Union[str, Dict[str, Any]]


class CollaboratorError(Exception):
    """Raised when the semantic collaborator cannot produce a response."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class SemanticCollaborator(Protocol):
    """Anything that turns a prompt into a (hopefully JSON) assessment."""

    @property
    def model(self) -> str: ...

    async def analyze(self, prompt: str) -> RawSemanticResponse: ...


class ChatCompletionsClient:
    """Single-shot client for ``POST {base_url}/chat/completions``.

    No retries: one request per call. The engine bounds the wait on top of the
    transport timeout configured here.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "google/gemma-2-9b-it:free",
        temperature: float = 0.1,
        max_tokens: int = 4000,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "flashaudit",
        }

    def _payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def analyze(self, prompt: str) -> str:
        """Send *prompt* and return the model's message content.

        Raises CollaboratorError on connection failure, timeout, non-200
        status, or a body without message content.
        """
        url = f"{self.base_url}/chat/completions"
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                response = await client.post(url, headers=self._headers(), json=self._payload(prompt))
        except httpx.ConnectError as e:
            raise CollaboratorError("Semantic analysis endpoint is unreachable.", cause=e) from e
        except httpx.TimeoutException as e:
            raise CollaboratorError("Semantic analysis request timed out.", cause=e) from e
        except httpx.HTTPError as e:
            raise CollaboratorError("Semantic analysis request failed.", cause=e) from e
        elapsed = time.perf_counter() - start

        if response.status_code != 200:
            logger.info(
                "Semantic analysis request failed",
                extra={"llm_latency_seconds": elapsed, "model": self._model, "status": response.status_code},
            )
            raise CollaboratorError(f"Semantic analysis endpoint returned status {response.status_code}.")

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise CollaboratorError("Semantic analysis response body is not valid JSON.", cause=e) from e

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CollaboratorError("Semantic analysis response has no message content.", cause=e) from e
        if not isinstance(content, str) or not content.strip():
            raise CollaboratorError("Semantic analysis response has no message content.")

        logger.info(
            "Semantic analysis request completed",
            extra={"llm_latency_seconds": elapsed, "model": self._model, "response_chars": len(content)},
        )
        return content


def build_collaborator(config: AuditConfig) -> Optional[ChatCompletionsClient]:
    """Return a client for *config*, or None when semantic analysis is off."""
    if not config.semantic.enabled:
        return None
    if not config.api_key:
        logger.warning(
            "Semantic analysis disabled: %s is not set", config.semantic.api_key_env
        )
        return None
    return ChatCompletionsClient(
        config.api_key,
        base_url=config.semantic.base_url,
        model=config.semantic.model,
        temperature=config.semantic.temperature,
        max_tokens=config.semantic.max_tokens,
        timeout=config.engine.semantic_timeout_sec,
    )
