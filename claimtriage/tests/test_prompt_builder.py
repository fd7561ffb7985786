import pytest

from claimtriage.api.llm import prompts
from claimtriage.api.llm.parser import extract_json_object


def sample_claim(**overrides) -> prompts.ClaimPromptInput:
    fields = dict(
        id="c-1",
        policy_number="PN-12345",
        claim_type="auto",
        incident_date="2026-01-20",
        location="Austin, TX",
        description="Rear-ended at a stop light",
        estimated_amount=1250.5,
        attachments=["https://example.com/photo1.jpg", "https://example.com/photo2.jpg"],
    )
    fields.update(overrides)
    return prompts.ClaimPromptInput(**fields)


def test_prompt_contains_sections():
    prompt = prompts.build_claim_prompt(sample_claim())
    assert prompt.startswith("You are an insurance claims triage assistant.")
    assert "Rules:" in prompt
    assert "- Policy Number: PN-12345" in prompt
    assert "- Claim Type: auto" in prompt
    assert "- Estimated Amount (USD): 1250.5\n" in prompt
    assert "- https://example.com/photo1.jpg\n- https://example.com/photo2.jpg" in prompt


def test_prompt_is_deterministic():
    assert prompts.build_claim_prompt(sample_claim()) == prompts.build_claim_prompt(sample_claim())


def test_prompt_without_attachments():
    prompt = prompts.build_claim_prompt(sample_claim(attachments=[]))
    assert prompt.endswith("- Attachments:\nNone")


def test_instructions_list_every_triage_value():
    text = prompts.build_instructions()
    for value in ("FAST_TRACK", "ADJUSTER_REVIEW", "FRAUD_REVIEW"):
        assert value in text


def test_parser_reads_bare_and_fenced_json():
    assert extract_json_object('{"triage": "FAST_TRACK"}') == {"triage": "FAST_TRACK"}
    assert extract_json_object('```json\n{"triage": "FRAUD_REVIEW"}\n```') == {"triage": "FRAUD_REVIEW"}


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2]", "{broken"])
def test_parser_rejects_non_objects(text):
    with pytest.raises(ValueError):
        extract_json_object(text)


@pytest.mark.parametrize("amount, text", [(1250.5, "1250.5"), (42.0, "42"), (0, "0"), (19.99, "19.99")])
def test_amount_is_rendered_like_json(amount, text):
    assert prompts.format_amount(amount) == text
    assert f"- Estimated Amount (USD): {text}\n" in prompts.build_claim_prompt(sample_claim(estimated_amount=amount))
