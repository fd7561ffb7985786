"""Prompt builders for claim triage."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class ClaimPromptInput:
    id: str
    policy_number: str
    claim_type: str
    incident_date: str
    location: str
    description: str
    estimated_amount: float
    attachments: List[str]


def build_instructions() -> str:
    return (
        "You are an insurance claims triage assistant.\n"
        "Return ONLY a valid JSON object that matches this schema exactly:\n"
        "{\n"
        '  "summary_bullets": [string],\n'
        '  "triage": "FAST_TRACK" | "ADJUSTER_REVIEW" | "FRAUD_REVIEW",\n'
        '  "rationale_bullets": [string],\n'
        '  "missing_info_questions": [string],\n'
        '  "confidence": number (0 to 1)\n'
        "}"
    )


def build_rules() -> str:
    return (
        "Rules:\n"
        "- Do not include markdown or extra keys.\n"
        "- Arrays must contain concise strings.\n"
        '- If information is missing, list questions under "missing_info_questions".\n'
        "- Confidence must be between 0 and 1."
    )


def format_attachments(attachments: Sequence[str]) -> str:
    if not attachments:
        return "None"
    return "\n".join(f"- {url}" for url in attachments)


def format_amount(amount: float) -> str:
    """Render an amount the way it reads in JSON: ``1250.5``, ``42``."""

    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def build_claim_prompt(claim: ClaimPromptInput) -> str:
    """Compose the full prompt; identical claims yield identical prompts."""

    claim_lines = [
        "Claim:",
        f"- Policy Number: {claim.policy_number}",
        f"- Claim Type: {claim.claim_type}",
        f"- Incident Date: {claim.incident_date}",
        f"- Location: {claim.location}",
        f"- Description: {claim.description}",
        f"- Estimated Amount (USD): {format_amount(claim.estimated_amount)}",
        "- Attachments:",
        format_attachments(claim.attachments),
    ]
    return "\n\n".join([build_instructions(), build_rules(), "\n".join(claim_lines)])
