"""Shopify install/callback flow.

An attempt moves NOT_STARTED -> INSTALL_REQUESTED -> AWAITING_CALLBACK ->
TOKEN_EXCHANGED -> CONNECTED. REJECTED, EXPIRED, MISMATCHED_SHOP and
EXCHANGE_FAILED end the attempt without touching any stored credential.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode
from uuid import uuid4

from warmwelcome.config import Settings
from warmwelcome.encryption import TokenCipher
from warmwelcome.errors import AppError, AuthenticationError, ConfigurationError
from warmwelcome.repositories import StoresRepository
from warmwelcome.security import StateSigner, normalize_shop_domain, verify_oauth_hmac
from warmwelcome.shopify_api import ShopifyApiClient

logger = logging.getLogger("shopify.oauth")


class OAuthAttemptState(str, Enum):
    NOT_STARTED = "not_started"
    INSTALL_REQUESTED = "install_requested"
    AWAITING_CALLBACK = "awaiting_callback"
    TOKEN_EXCHANGED = "token_exchanged"
    CONNECTED = "connected"
    REJECTED = "rejected"
    EXPIRED = "expired"
    MISMATCHED_SHOP = "mismatched_shop"
    EXCHANGE_FAILED = "exchange_failed"


class InvalidShopDomainError(AppError):
    status_code = 400
    public_message = "Invalid shop domain."


@dataclass(frozen=True)
class OAuthConnection:
    store_id: str
    shop: str
    scope: str
    redirect_url: str | None


class ShopifyOAuthFlow:
    def __init__(
        self,
        *,
        settings: Settings,
        state_signer: StateSigner,
        shopify_api: ShopifyApiClient,
        cipher: TokenCipher,
    ) -> None:
        self._settings = settings
        self._state_signer = state_signer
        self._shopify_api = shopify_api
        self._cipher = cipher

    def _require_oauth_config(self) -> None:
        if not self._settings.shopify_oauth_configured:
            raise ConfigurationError(
                message="Shopify credentials are not configured",
                public_message="Shopify credentials are not configured.",
            )

    def build_install_url(self, *, shop: str, user_id: str) -> str:
        shop_domain = normalize_shop_domain(shop)
        if shop_domain is None:
            raise InvalidShopDomainError(message=f"Rejected shop identifier {shop!r}")
        self._require_oauth_config()

        state = self._state_signer.create_state({"userId": user_id, "shop": shop_domain, "nonce": uuid4().hex})
        query = urlencode(
            {
                "client_id": self._settings.SHOPIFY_API_KEY,
                "scope": self._settings.SHOPIFY_SCOPES,
                "redirect_uri": self._settings.SHOPIFY_REDIRECT_URI,
                "state": state,
            }
        )
        logger.info(
            "Shopify install requested",
            extra={"shop_domain": shop_domain, "user_id": user_id, "oauth_state": OAuthAttemptState.INSTALL_REQUESTED},
        )
        return f"https://{shop_domain}/admin/oauth/authorize?{query}"

    def _reject(self, reason: OAuthAttemptState, detail: str, *, shop: str | None) -> AuthenticationError:
        logger.warning("Shopify OAuth callback rejected: %s", detail, extra={"shop_domain": shop, "oauth_state": reason})
        return AuthenticationError(message=detail, reason=reason)

    async def complete_callback(
        self,
        *,
        query_items: Sequence[tuple[str, str]],
        stores: StoresRepository,
    ) -> OAuthConnection:
        params = dict(query_items)
        shop = params.get("shop")
        code = params.get("code")
        state_token = params.get("state")
        if not shop or not code or not state_token:
            raise self._reject(OAuthAttemptState.REJECTED, "Missing required OAuth parameters", shop=shop)

        if not verify_oauth_hmac(query_items, secret=self._settings.SHOPIFY_API_SECRET):
            raise self._reject(OAuthAttemptState.REJECTED, "Invalid HMAC signature", shop=shop)

        decoded_state = self._state_signer.decode_state(state_token)
        if decoded_state is None:
            raise self._reject(OAuthAttemptState.EXPIRED, "Invalid or expired state parameter", shop=shop)

        if decoded_state.get("shop") != shop:
            raise self._reject(
                OAuthAttemptState.MISMATCHED_SHOP,
                "Shop mismatch between state and callback parameters",
                shop=shop,
            )
        user_id = decoded_state.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise self._reject(OAuthAttemptState.REJECTED, "State is missing the initiating user", shop=shop)

        self._require_oauth_config()
        try:
            access_token, scope = await self._shopify_api.exchange_code_for_access_token(shop_domain=shop, code=code)
        except AppError:
            logger.warning(
                "Shopify OAuth token exchange failed",
                extra={"shop_domain": shop, "oauth_state": OAuthAttemptState.EXCHANGE_FAILED},
            )
            raise
        logger.debug("Shopify token exchanged", extra={"shop_domain": shop, "oauth_state": OAuthAttemptState.TOKEN_EXCHANGED})

        store = stores.upsert_credential(
            shop_domain=shop,
            user_id=user_id,
            encrypted_access_token=self._cipher.encrypt(access_token),
            scope=scope,
        )
        logger.info(
            "Shopify store connected",
            extra={"shop_domain": shop, "store_id": store.id, "oauth_state": OAuthAttemptState.CONNECTED},
        )
        return OAuthConnection(store_id=store.id, shop=shop, scope=scope, redirect_url=self._success_redirect(shop))

    def _success_redirect(self, shop: str) -> str | None:
        frontend_url = (self._settings.FRONTEND_URL or "").strip().rstrip("/")
        if not frontend_url.lower().startswith("https://"):
            return None
        return f"{frontend_url}/integrations?{urlencode({'shop': shop})}"
