"""AI triage orchestration: prompt, bounded retry and output validation."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from ..core.config import Settings, settings
from ..core.errors import AiFailureReason, AiGenerationFailed
from ..llm import prompts
from ..llm.client import Generation, GenerationError, GenerationFailure, GenerationUsage, LLMClient
from ..llm.prompts import ClaimPromptInput
from ..schemas.claims import CLAIM_AI_RESPONSE_SCHEMA, ClaimAiResponse, Invalid, validate_ai_response

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class StructuredGenerator(Protocol):
    async def generate(self, prompt: str, *, schema: Dict[str, Any], budget: int) -> Generation:
        ...


@dataclass
class ClaimAiResult:
    response: ClaimAiResponse
    model: str
    prompt_version: str
    latency_ms: int
    token_usage: Optional[Dict[str, Optional[int]]]


def normalize_usage(usage: Optional[GenerationUsage]) -> Optional[Dict[str, Optional[int]]]:
    """Map provider usage onto ``{prompt, completion, total}``; ``None`` when empty."""

    if usage is None:
        return None
    normalized = {
        "prompt": usage.input_tokens,
        "completion": usage.output_tokens,
        "total": usage.total_tokens,
    }
    if all(value is None for value in normalized.values()):
        return None
    return normalized


class ClaimAiService:
    """Produce a validated triage recommendation for one claim.

    Attempts run at most twice. A schema failure (the generator reported a
    mismatch, or its object fails local validation) earns one retry; a
    provider failure ends the call at once.
    """

    def __init__(
        self,
        generator: StructuredGenerator,
        *,
        model: str,
        prompt_version: str,
        reasoning_budget: int,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.generator = generator
        self.model = model
        self.prompt_version = prompt_version
        self.reasoning_budget = reasoning_budget
        self.timer = timer

    @classmethod
    def from_settings(cls, cfg: Settings = settings, generator: Optional[StructuredGenerator] = None) -> "ClaimAiService":
        return cls(
            generator or LLMClient(cfg),
            model=cfg.llm_model,
            prompt_version=cfg.prompt_version,
            reasoning_budget=cfg.llm_reasoning_budget,
        )

    async def generate_claim_insights(self, claim: ClaimPromptInput) -> ClaimAiResult:
        logger.info(
            "generateClaimInsights start claimId=%s type=%s amount=%s attachments=%d",
            claim.id,
            claim.claim_type,
            claim.estimated_amount,
            len(claim.attachments),
        )
        prompt = prompts.build_claim_prompt(claim)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            logger.debug(
                "AI request attempt=%d model=%s promptVersion=%s", attempt, self.model, self.prompt_version
            )
            started = self.timer()
            try:
                generation = await self.generator.generate(
                    prompt, schema=CLAIM_AI_RESPONSE_SCHEMA, budget=self.reasoning_budget
                )
            except GenerationError as exc:
                if exc.kind is not GenerationFailure.SCHEMA_MISMATCH:
                    logger.error("AI provider error claimId=%s attempt=%d", claim.id, attempt, exc_info=exc)
                    raise AiGenerationFailed(AiFailureReason.PROVIDER_ERROR) from exc
                problem = str(exc)
            except Exception as exc:
                logger.error("AI provider error claimId=%s attempt=%d", claim.id, attempt, exc_info=exc)
                raise AiGenerationFailed(AiFailureReason.PROVIDER_ERROR) from exc
            else:
                validated = validate_ai_response(generation.output)
                if not isinstance(validated, Invalid):
                    latency_ms = int((self.timer() - started) * 1000)
                    usage = normalize_usage(generation.usage)
                    logger.info(
                        "AI response ok claimId=%s latencyMs=%d triage=%s",
                        claim.id,
                        latency_ms,
                        validated.value.triage,
                    )
                    if usage:
                        logger.debug(
                            "AI token usage claimId=%s prompt=%s completion=%s total=%s",
                            claim.id,
                            usage["prompt"] if usage["prompt"] is not None else "n/a",
                            usage["completion"] if usage["completion"] is not None else "n/a",
                            usage["total"] if usage["total"] is not None else "n/a",
                        )
                    return ClaimAiResult(
                        response=validated.value,
                        model=self.model,
                        prompt_version=self.prompt_version,
                        latency_ms=latency_ms,
                        token_usage=usage,
                    )
                problem = "; ".join(f"{issue['path']}: {issue['message']}" for issue in validated.issues)

            if attempt < MAX_ATTEMPTS:
                logger.warning(
                    "AI output failed schema validation claimId=%s attempt=%d (%s). Retrying once.",
                    claim.id,
                    attempt,
                    problem,
                )
                continue
            logger.warning(
                "AI output failed schema validation claimId=%s attempt=%d (%s). Giving up.",
                claim.id,
                attempt,
                problem,
            )

        raise AiGenerationFailed(AiFailureReason.SCHEMA_VALIDATION_FAILED)
