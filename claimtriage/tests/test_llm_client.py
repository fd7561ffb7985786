import asyncio
import json

import httpx
import pytest

from claimtriage.api.core.config import Settings
from claimtriage.api.llm.client import GenerationError, GenerationFailure, LLMClient
from claimtriage.api.schemas.claims import CLAIM_AI_RESPONSE_SCHEMA


def make_client(handler, **env) -> LLMClient:
    cfg = Settings(
        LLM_MODEL="test-model",
        OPENROUTER_API_KEY="router-key",
        OPENROUTER_BASE_URL="https://router.test/api/v1",
        OPENAI_API_KEY="openai-key",
        OPENAI_BASE_URL="https://openai.test/v1",
        OLLAMA_BASE_URL="http://ollama.test:11434/",
        **env,
    )
    return LLMClient(cfg, transport=httpx.MockTransport(handler))


def chat_body(content, usage=None):
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return body


def generate(client: LLMClient, budget: int = 512):
    return asyncio.run(client.generate("prompt text", schema=CLAIM_AI_RESPONSE_SCHEMA, budget=budget))


def test_openrouter_request_and_usage(ai_output):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        usage = {"prompt_tokens": 120, "completion_tokens": 40, "total_tokens": 160}
        return httpx.Response(200, json=chat_body(json.dumps(ai_output), usage))

    generation = generate(make_client(handler, LLM_PROVIDER="openrouter"), budget=256)

    assert generation.output == ai_output
    assert generation.usage.input_tokens == 120
    assert generation.usage.output_tokens == 40
    assert generation.usage.total_tokens == 160

    request = seen[0]
    assert str(request.url) == "https://router.test/api/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer router-key"
    payload = json.loads(request.content)
    assert payload["model"] == "test-model"
    assert payload["messages"] == [{"role": "user", "content": "prompt text"}]
    assert payload["reasoning"] == {"max_tokens": 256}
    schema_format = payload["response_format"]
    assert schema_format["type"] == "json_schema"
    assert schema_format["json_schema"]["strict"] is True
    assert schema_format["json_schema"]["schema"] == CLAIM_AI_RESPONSE_SCHEMA


@pytest.mark.parametrize("budget, effort", [(512, "low"), (1024, "low"), (2048, "medium"), (8192, "high")])
def test_openai_maps_budget_to_effort(ai_output, budget, effort):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=chat_body(json.dumps(ai_output)))

    generation = generate(make_client(handler, LLM_PROVIDER="openai"), budget=budget)
    assert generation.usage is None
    assert seen[0]["reasoning_effort"] == effort
    assert "reasoning" not in seen[0]


def test_ollama_request_and_usage(ai_output):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = {"message": {"content": json.dumps(ai_output)}, "prompt_eval_count": 30, "eval_count": 12}
        return httpx.Response(200, json=body)

    generation = generate(make_client(handler, LLM_PROVIDER="ollama"))

    assert str(seen[0].url) == "http://ollama.test:11434/api/chat"
    payload = json.loads(seen[0].content)
    assert payload["format"] == CLAIM_AI_RESPONSE_SCHEMA
    assert payload["stream"] is False
    assert generation.output == ai_output
    assert generation.usage.total_tokens == 42


def test_fenced_content_is_accepted(ai_output):
    def handler(request):
        return httpx.Response(200, json=chat_body(f"```json\n{json.dumps(ai_output)}\n```"))

    assert generate(make_client(handler, LLM_PROVIDER="openrouter")).output == ai_output


def test_unparseable_content_is_a_schema_mismatch():
    def handler(request):
        return httpx.Response(200, json=chat_body("I think this claim is fine."))

    with pytest.raises(GenerationError) as info:
        generate(make_client(handler, LLM_PROVIDER="openrouter"))
    assert info.value.kind is GenerationFailure.SCHEMA_MISMATCH


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "upstream"}),
        httpx.Response(429, text="slow down"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json=chat_body("   ")),
    ],
)
def test_provider_failures(response):
    def handler(request):
        return response

    with pytest.raises(GenerationError) as info:
        generate(make_client(handler, LLM_PROVIDER="openrouter"))
    assert info.value.kind is GenerationFailure.PROVIDER_FAILURE


def test_transport_errors_are_provider_failures():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationError) as info:
        generate(make_client(handler, LLM_PROVIDER="openai"))
    assert info.value.kind is GenerationFailure.PROVIDER_FAILURE
    assert len(calls) == 1


def test_unknown_provider_fails_without_a_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(GenerationError) as info:
        generate(make_client(handler, LLM_PROVIDER="acme"))
    assert info.value.kind is GenerationFailure.PROVIDER_FAILURE
