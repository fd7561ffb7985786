"""Structured-output client over OpenRouter, OpenAI or Ollama."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..core.config import Settings, settings
from .parser import extract_json_object

logger = logging.getLogger(__name__)

SCHEMA_NAME = "ClaimTriage"


class GenerationFailure(str, Enum):
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    PROVIDER_FAILURE = "PROVIDER_FAILURE"


class GenerationError(Exception):
    """Generator failure tagged with its retry class."""

    def __init__(self, kind: GenerationFailure, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def schema_mismatch(cls, message: str) -> "GenerationError":
        return cls(GenerationFailure.SCHEMA_MISMATCH, message)

    @classmethod
    def provider_failure(cls, message: str) -> "GenerationError":
        return cls(GenerationFailure.PROVIDER_FAILURE, message)


@dataclass
class GenerationUsage:
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass
class Generation:
    output: Dict[str, Any]
    usage: Optional[GenerationUsage] = None


def _reasoning_effort(budget: int) -> str:
    if budget <= 1024:
        return "low"
    if budget <= 4096:
        return "medium"
    return "high"


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class LLMClient:
    """HTTP client requesting schema constrained JSON from the configured provider.

    The client never retries; callers decide what a failure means.
    """

    def __init__(self, cfg: Settings = settings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg
        self._transport = transport

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.cfg.llm_request_timeout, connect=self.cfg.llm_connect_timeout)

    async def generate(self, prompt: str, *, schema: Dict[str, Any], budget: int) -> Generation:
        """Generate a JSON object matching ``schema`` for ``prompt``."""

        provider = self.cfg.llm_provider.lower()
        try:
            if provider == "ollama":
                data = await self._call_ollama(prompt, schema)
                content = (data.get("message") or {}).get("content")
                usage = self._ollama_usage(data)
            elif provider in ("openai", "openrouter"):
                data = await self._call_chat_completions(provider, prompt, schema, budget)
                content = self._chat_content(data)
                usage = self._chat_usage(data)
            else:
                raise GenerationError.provider_failure(f"Unsupported provider: {self.cfg.llm_provider}")
        except httpx.HTTPError as exc:
            logger.warning("LLM transport failure provider=%s: %s", provider, exc)
            raise GenerationError.provider_failure(str(exc) or exc.__class__.__name__) from exc

        if not isinstance(content, str) or not content.strip():
            raise GenerationError.provider_failure("Empty response from provider")
        try:
            output = extract_json_object(content)
        except ValueError as exc:
            raise GenerationError.schema_mismatch(str(exc)) from exc
        return Generation(output=output, usage=usage)

    async def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout(), transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as exc:
                raise GenerationError.provider_failure("Provider returned a non JSON body") from exc
        if not isinstance(data, dict):
            raise GenerationError.provider_failure("Provider returned an unexpected body")
        return data

    async def _call_ollama(self, prompt: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.cfg.ollama_base_url.rstrip('/')}/api/chat"
        payload = {
            "model": self.cfg.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "format": schema,
            "stream": False,
            "options": {"temperature": self.cfg.llm_temperature},
        }
        return await self._post(url, payload)

    async def _call_chat_completions(
        self, provider: str, prompt: str, schema: Dict[str, Any], budget: int
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.cfg.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": SCHEMA_NAME, "strict": True, "schema": schema},
            },
        }
        if provider == "openrouter":
            url = f"{self.cfg.openrouter_base_url.rstrip('/')}/chat/completions"
            headers = {
                "Authorization": f"Bearer {self.cfg.openrouter_api_key}",
                "X-Title": "Claim Triage",
            }
            payload["temperature"] = self.cfg.llm_temperature
            payload["reasoning"] = {"max_tokens": budget}
        else:
            url = f"{self.cfg.openai_base_url.rstrip('/')}/chat/completions"
            headers = {"Authorization": f"Bearer {self.cfg.openai_api_key}"}
            payload["reasoning_effort"] = _reasoning_effort(budget)
        return await self._post(url, payload, headers)

    @staticmethod
    def _chat_content(data: Dict[str, Any]) -> Optional[str]:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return None
        return message.get("content")

    @staticmethod
    def _chat_usage(data: Dict[str, Any]) -> Optional[GenerationUsage]:
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None
        return GenerationUsage(
            input_tokens=_as_int(usage.get("prompt_tokens")),
            output_tokens=_as_int(usage.get("completion_tokens")),
            total_tokens=_as_int(usage.get("total_tokens")),
        )

    @staticmethod
    def _ollama_usage(data: Dict[str, Any]) -> Optional[GenerationUsage]:
        prompt_tokens = _as_int(data.get("prompt_eval_count"))
        output_tokens = _as_int(data.get("eval_count"))
        total = prompt_tokens + output_tokens if prompt_tokens is not None and output_tokens is not None else None
        if prompt_tokens is None and output_tokens is None:
            return None
        return GenerationUsage(input_tokens=prompt_tokens, output_tokens=output_tokens, total_tokens=total)
