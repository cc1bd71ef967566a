from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def success_response(data: Any = None, message: str = "Success") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def error_response(message: str, errors: list[Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


class InstallRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    shop: str = Field(..., min_length=1)


class InstallResponse(BaseModel):
    installUrl: str


class OAuthConnectedResponse(BaseModel):
    shop: str
    scope: str


class StoreSummary(BaseModel):
    id: str
    shopDomain: str
    scope: str
    isActive: bool
    createdAt: datetime
    updatedAt: datetime


class StoreToggleResponse(BaseModel):
    id: str


class CustomerProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    firstName: str | None = None
    lastName: str | None = None
    email: str | None = None


class PreviewEmailRequest(BaseModel):
    campaignId: str = Field(..., min_length=1)
    customer: CustomerProfile | None = None


class SendTestEmailRequest(PreviewEmailRequest):
    to: str = Field(..., min_length=3)

    @field_validator("to")
    @classmethod
    def validate_recipient(cls, value: str) -> str:
        cleaned = value.strip()
        local, _, domain = cleaned.partition("@")
        if not local or "." not in domain:
            raise ValueError("to must be a valid email address")
        return cleaned


class GeneratedEmailResponse(BaseModel):
    subject: str
    html: str
    text: str
    customer: dict[str, Any]
