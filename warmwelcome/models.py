from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(length=255), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(length=120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(length=120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class ShopifyStore(Base):
    __tablename__ = "shopify_stores"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    shop_domain: Mapped[str] = mapped_column(String(length=255), unique=True, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    # Always the serialized ciphertext from TokenCipher, never the raw token.
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class BrandVoice(Base):
    __tablename__ = "brand_voices"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False)
    business_name: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    business_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tone: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    # JSON arrays / objects serialized as text.
    values: Mapped[str | None] = mapped_column(Text, nullable=True)
    talking_points: Mapped[str | None] = mapped_column(Text, nullable=True)
    dos_donts: Mapped[str | None] = mapped_column(Text, nullable=True)
    example_copy: Mapped[str | None] = mapped_column(Text, nullable=True)


class EmailBlueprint(Base):
    __tablename__ = "email_blueprints"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    subject_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    structure: Mapped[str | None] = mapped_column(Text, nullable=True)
    variables: Mapped[str | None] = mapped_column(Text, nullable=True)
    optional_vars: Mapped[str | None] = mapped_column(Text, nullable=True)
    example: Mapped[str | None] = mapped_column(Text, nullable=True)


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    blueprint_id: Mapped[str | None] = mapped_column(ForeignKey("email_blueprints.id"), nullable=True)
    store_id: Mapped[str | None] = mapped_column(ForeignKey("shopify_stores.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    status: Mapped[str] = mapped_column(String(length=32), nullable=False, default="draft")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    blueprint: Mapped[EmailBlueprint | None] = relationship(lazy="joined")


class Email(Base):
    __tablename__ = "emails"

    id: Mapped[str] = mapped_column(String(length=32), primary_key=True, default=new_id)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("campaigns.id"), nullable=False, index=True)
    recipient_email: Mapped[str] = mapped_column(String(length=255), nullable=False)
    recipient_name: Mapped[str | None] = mapped_column(String(length=255), nullable=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(String(length=32), nullable=False)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
