from __future__ import annotations

import json

from warmwelcome.emails.prompting import (
    DEFAULT_CUSTOMER,
    BrandVoiceContext,
    CampaignContext,
    EmailBlueprintContext,
    build_prompts,
    merge_customer,
    normalize_brand_voice,
    serialize_blueprint,
)
from warmwelcome.models import BrandVoice, EmailBlueprint

CAMPAIGN = CampaignContext(name="Welcome series", goal="First purchase", description="Sent after signup")
BLUEPRINT = EmailBlueprintContext(
    name="Warm welcome",
    subject_pattern="Welcome, {{firstName}}!",
    structure={"sections": ["greeting", "offer"]},
    variables=["firstName"],
    optional_vars=["discountCode"],
    example="Hi Jamie, welcome aboard.",
)


def _user_payload(user_prompt: str) -> dict:
    return json.loads(user_prompt[user_prompt.index("{") :])


def test_system_prompt_declares_json_shape_without_brand_block():
    prompts = build_prompts(None, CAMPAIGN, BLUEPRINT, merge_customer(None))

    assert '{ "subject": string, "html": string, "text": string }' in prompts.system_prompt
    assert "Brand guidance:" not in prompts.system_prompt


def test_brand_guidance_only_lists_present_fields():
    brand_voice = BrandVoiceContext(business_name="Acme Tea", tone="Playful", values=None, example_copy="")

    system_prompt = build_prompts(brand_voice, CAMPAIGN, BLUEPRINT, {}).system_prompt

    assert "Brand guidance:\nBusiness name: Acme Tea\nTone: Playful" in system_prompt
    assert "Values:" not in system_prompt
    assert "Example copy:" not in system_prompt
    assert "Talking points:" not in system_prompt


def test_empty_brand_voice_adds_no_guidance_header():
    system_prompt = build_prompts(BrandVoiceContext(), CAMPAIGN, BLUEPRINT, {}).system_prompt

    assert "Brand guidance:" not in system_prompt


def test_user_prompt_contains_campaign_customer_and_blueprint():
    customer = merge_customer({"firstName": "Ana"})

    user_prompt = build_prompts(None, CAMPAIGN, BLUEPRINT, customer).user_prompt

    assert "do not include markdown fences" in user_prompt
    payload = _user_payload(user_prompt)
    assert payload["campaign"] == {
        "name": "Welcome series",
        "goal": "First purchase",
        "description": "Sent after signup",
    }
    assert payload["customer"] == {"firstName": "Ana", "lastName": "Lee", "email": "jamie@example.com"}
    assert payload["blueprint"]["subjectPattern"] == "Welcome, {{firstName}}!"
    assert payload["blueprint"]["optionalVars"] == ["discountCode"]


def test_merge_customer_ignores_null_overrides():
    merged = merge_customer({"firstName": None, "email": "ana@example.com", "city": "Lisbon"})

    assert merged == {**DEFAULT_CUSTOMER, "email": "ana@example.com", "city": "Lisbon"}
    assert DEFAULT_CUSTOMER["email"] == "jamie@example.com"


def test_normalize_brand_voice_flattens_json_blobs():
    record = BrandVoice(
        user_id="u1",
        business_name="Acme Tea",
        tone="Warm",
        values=json.dumps(["Sustainability", "", "Craft"]),
        talking_points="Free shipping over $50",
        dos_donts=json.dumps({"dos": ["Be kind"], "donts": ["Use slang", "Shout"]}),
        example_copy=None,
    )

    context = normalize_brand_voice(record)

    assert context.values == "Sustainability, Craft"
    assert context.talking_points == "Free shipping over $50"
    assert context.dos_donts == "Do: Be kind. Don't: Use slang, Shout"
    assert context.example_copy is None


def test_normalize_brand_voice_falls_back_on_malformed_blobs():
    record = BrandVoice(user_id="u1", tone="Warm", dos_donts="{not json", values="42")

    context = normalize_brand_voice(record)

    assert context.dos_donts is None
    assert context.values is None
    assert context.guidance_lines() == ["Tone: Warm"]


def test_normalize_brand_voice_none():
    assert normalize_brand_voice(None) is None


def test_serialize_blueprint_defaults_for_bad_json():
    record = EmailBlueprint(
        name="Warm welcome",
        subject_pattern="Hi {{firstName}}",
        structure="not json",
        variables='["firstName"]',
        optional_vars=None,
        example=None,
    )

    context = serialize_blueprint(record)

    assert context.structure == {}
    assert context.variables == ["firstName"]
    assert context.optional_vars == []
