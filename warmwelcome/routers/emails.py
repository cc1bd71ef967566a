from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warmwelcome.auth import get_app_context, get_current_user
from warmwelcome.context import AppContext
from warmwelcome.db import get_session
from warmwelcome.emails.parsing import GeneratedEmail
from warmwelcome.emails.prompting import (
    BrandVoiceContext,
    CampaignContext,
    EmailBlueprintContext,
    campaign_context,
    merge_customer,
    normalize_brand_voice,
    serialize_blueprint,
)
from warmwelcome.errors import AppError, FeatureDisabledError, NotFoundError
from warmwelcome.models import Campaign, Email, User, utcnow
from warmwelcome.repositories import BrandVoicesRepository, CampaignsRepository, EmailsRepository
from warmwelcome.schemas import (
    GeneratedEmailResponse,
    PreviewEmailRequest,
    SendTestEmailRequest,
    success_response,
)

router = APIRouter(prefix="/api/emails", tags=["emails"])
logger = logging.getLogger("emails.routes")


class EmailDeliveryError(AppError):
    status_code = 500
    public_message = "Failed to send email. Check SMTP configuration and try again."


@dataclass(frozen=True)
class CampaignGenerationContext:
    campaign: Campaign
    campaign_context: CampaignContext
    blueprint: EmailBlueprintContext
    brand_voice: BrandVoiceContext | None


def _require_ai_configured(context: AppContext) -> None:
    if not context.settings.openai_configured:
        raise FeatureDisabledError(
            message="Email generation requested without OPENAI_API_KEY",
            public_message="AI provider is not configured. Set OPENAI_API_KEY to enable previews.",
        )


def _load_campaign_context(*, session: Session, campaign_id: str, user_id: str) -> CampaignGenerationContext:
    campaign = CampaignsRepository(session).get_for_user(campaign_id=campaign_id, user_id=user_id)
    if campaign is None:
        raise NotFoundError(message=f"Campaign {campaign_id} not found for user {user_id}", public_message="Campaign not found")
    if campaign.blueprint is None:
        raise NotFoundError(
            message=f"Campaign {campaign_id} has no blueprint",
            public_message="Attach a blueprint to the campaign before generating emails",
        )
    return CampaignGenerationContext(
        campaign=campaign,
        campaign_context=campaign_context(campaign),
        blueprint=serialize_blueprint(campaign.blueprint),
        brand_voice=normalize_brand_voice(BrandVoicesRepository(session).get_for_user(user_id)),
    )


async def _generate(
    *,
    context: AppContext,
    loaded: CampaignGenerationContext,
    customer: dict[str, Any],
) -> GeneratedEmail:
    return await context.email_generator.generate(
        brand_voice=loaded.brand_voice,
        campaign=loaded.campaign_context,
        blueprint=loaded.blueprint,
        customer=customer,
    )


def _customer_overrides(payload: PreviewEmailRequest) -> dict[str, Any] | None:
    return payload.customer.model_dump() if payload.customer else None


@router.post("/preview")
async def preview_email(
    payload: PreviewEmailRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    context: AppContext = Depends(get_app_context),
):
    _require_ai_configured(context)
    loaded = _load_campaign_context(session=session, campaign_id=payload.campaignId, user_id=user.id)
    customer = merge_customer(_customer_overrides(payload))
    generated = await _generate(context=context, loaded=loaded, customer=customer)
    return success_response(
        GeneratedEmailResponse(
            subject=generated.subject,
            html=generated.html,
            text=generated.text,
            customer=customer,
        ).model_dump()
    )


@router.post("/send-test")
async def send_test_email(
    payload: SendTestEmailRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    context: AppContext = Depends(get_app_context),
):
    _require_ai_configured(context)
    loaded = _load_campaign_context(session=session, campaign_id=payload.campaignId, user_id=user.id)
    customer = merge_customer(_customer_overrides(payload))
    generated = await _generate(context=context, loaded=loaded, customer=customer)

    mailer = context.mailer()
    if mailer is None:
        logger.warning("Test email not sent because SMTP_HOST is not configured")
        sent = False
    else:
        sent = await mailer.send(to=payload.to, subject=generated.subject, html=generated.html, text=generated.text)

    recipient_name = " ".join(
        part for part in (customer.get("firstName"), customer.get("lastName")) if isinstance(part, str) and part
    ).strip()
    EmailsRepository(session).create(
        Email(
            campaign_id=loaded.campaign.id,
            recipient_email=payload.to.lower(),
            recipient_name=recipient_name or None,
            subject=generated.subject,
            body=generated.html,
            ai_generated=True,
            status="sent" if sent else "failed",
            sent_at=utcnow() if sent else None,
            metadata_json=json.dumps({"customerProfile": customer, "testSend": True}),
            error_message=None if sent else "Unable to send email via SMTP transporter",
        )
    )

    if not sent:
        raise EmailDeliveryError(message=f"Test email for campaign {loaded.campaign.id} was not delivered")
    return success_response({"success": True}, "Test email sent")
