from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from warmwelcome.models import BrandVoice, Campaign, EmailBlueprint

DEFAULT_CUSTOMER: dict[str, str] = {
    "firstName": "Jamie",
    "lastName": "Lee",
    "email": "jamie@example.com",
}

_SYSTEM_PREAMBLE = (
    "You are WarmWelcome AI, an expert at writing friendly, high-performing onboarding emails for ecommerce brands.",
    "Use the brand guidance provided to match tone and perspective.",
    'Always return valid JSON with the following shape: { "subject": string, "html": string, "text": string }.',
    "The html field should contain semantic HTML ready for email sending "
    "(no extraneous styles, inline basic styling where needed).",
    "The text field should be a plain-text version of the HTML.",
)
_USER_INSTRUCTION = "Generate a personalised onboarding email using the following context."
_NO_FENCES_INSTRUCTION = "Respond ONLY with JSON and do not include markdown fences."


@dataclass(frozen=True)
class BrandVoiceContext:
    business_name: str | None = None
    business_description: str | None = None
    tone: str | None = None
    values: str | None = None
    talking_points: str | None = None
    dos_donts: str | None = None
    example_copy: str | None = None

    def guidance_lines(self) -> list[str]:
        labelled = (
            ("Business name", self.business_name),
            ("Tone", self.tone),
            ("Values", self.values),
            ("Talking points", self.talking_points),
            ("Dos & Don'ts", self.dos_donts),
            ("Example copy", self.example_copy),
        )
        return [f"{label}: {value}" for label, value in labelled if value]


@dataclass(frozen=True)
class EmailBlueprintContext:
    name: str
    subject_pattern: str
    structure: dict[str, Any] = field(default_factory=dict)
    variables: list[Any] = field(default_factory=list)
    optional_vars: list[Any] = field(default_factory=list)
    example: str | None = None

    def to_prompt_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "subjectPattern": self.subject_pattern,
            "structure": self.structure,
            "variables": self.variables,
            "optionalVars": self.optional_vars,
            "example": self.example,
        }


@dataclass(frozen=True)
class CampaignContext:
    name: str
    goal: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


def _parse_json_field(value: str | None, fallback: Any) -> Any:
    if not value:
        return fallback
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return fallback


def _format_list(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value if item)
    if isinstance(value, str):
        return value
    return ""


def _format_dos_donts(value: Any) -> str:
    if not isinstance(value, dict):
        return ""
    dos = value.get("dos")
    donts = value.get("donts")
    dos_text = ", ".join(str(item) for item in dos) if isinstance(dos, list) else ""
    donts_text = ", ".join(str(item) for item in donts) if isinstance(donts, list) else ""
    if not dos_text and not donts_text:
        return ""
    return f"Do: {dos_text}. Don't: {donts_text}".strip()


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def normalize_brand_voice(record: BrandVoice | None) -> BrandVoiceContext | None:
    if record is None:
        return None
    # Free-text values that are not JSON are kept as typed.
    values = _parse_json_field(record.values, record.values or [])
    talking_points = _parse_json_field(record.talking_points, record.talking_points or [])
    dos_donts = _parse_json_field(record.dos_donts, {})
    return BrandVoiceContext(
        business_name=record.business_name or None,
        business_description=record.business_description or None,
        tone=record.tone or None,
        values=_format_list(values) or None,
        talking_points=_format_list(talking_points) or None,
        dos_donts=_format_dos_donts(dos_donts) or None,
        example_copy=record.example_copy or None,
    )


def serialize_blueprint(record: EmailBlueprint) -> EmailBlueprintContext:
    structure = _parse_json_field(record.structure, {})
    return EmailBlueprintContext(
        name=record.name,
        subject_pattern=record.subject_pattern,
        structure=structure if isinstance(structure, dict) else {},
        variables=_as_list(_parse_json_field(record.variables, [])),
        optional_vars=_as_list(_parse_json_field(record.optional_vars, [])),
        example=record.example,
    )


def campaign_context(record: Campaign) -> CampaignContext:
    return CampaignContext(name=record.name, goal=record.goal, description=record.description)


def merge_customer(overrides: dict[str, Any] | None) -> dict[str, Any]:
    merged: dict[str, Any] = dict(DEFAULT_CUSTOMER)
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def build_system_prompt(brand_voice: BrandVoiceContext | None) -> str:
    lines = list(_SYSTEM_PREAMBLE)
    details = brand_voice.guidance_lines() if brand_voice else []
    if details:
        lines.append("Brand guidance:")
        lines.extend(details)
    return "\n".join(lines)


def build_user_prompt(
    *,
    campaign: CampaignContext,
    blueprint: EmailBlueprintContext,
    customer: dict[str, Any],
) -> str:
    payload = {
        "campaign": {
            "name": campaign.name,
            "goal": campaign.goal,
            "description": campaign.description,
        },
        "customer": customer,
        "blueprint": blueprint.to_prompt_payload(),
    }
    return "\n\n".join([_USER_INSTRUCTION, _NO_FENCES_INSTRUCTION, json.dumps(payload, indent=2)])


def build_prompts(
    brand_voice: BrandVoiceContext | None,
    campaign: CampaignContext,
    blueprint: EmailBlueprintContext,
    customer: dict[str, Any],
) -> PromptPair:
    return PromptPair(
        system_prompt=build_system_prompt(brand_voice),
        user_prompt=build_user_prompt(campaign=campaign, blueprint=blueprint, customer=customer),
    )
