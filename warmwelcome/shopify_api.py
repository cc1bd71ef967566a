from __future__ import annotations

import logging
from typing import Any

import httpx

from warmwelcome.errors import ExchangeFailedError, NetworkError

logger = logging.getLogger("shopify.api")


class ShopifyApiClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        api_secret: str | None,
        admin_api_version: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._admin_api_version = admin_api_version
        self._timeout = timeout
        self._transport = transport

    async def exchange_code_for_access_token(self, *, shop_domain: str, code: str) -> tuple[str, str]:
        url = f"https://{shop_domain}/admin/oauth/access_token"
        payload = {
            "client_id": self._api_key,
            "client_secret": self._api_secret,
            "code": code,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload)
        except httpx.RequestError as exc:
            raise NetworkError(message=f"Network error during Shopify token exchange: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Shopify token exchange failed",
                extra={"shop_domain": shop_domain, "status_code": response.status_code, "body": response.text},
            )
            raise ExchangeFailedError(
                message=f"Shopify token exchange failed ({response.status_code}) for {shop_domain}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ExchangeFailedError(message="Shopify token exchange returned invalid JSON") from exc

        access_token = body.get("access_token") if isinstance(body, dict) else None
        scope = body.get("scope") if isinstance(body, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise ExchangeFailedError(message="OAuth token exchange response is missing access_token")
        if not isinstance(scope, str):
            scope = ""
        return access_token, scope

    async def list_customers(self, *, shop_domain: str, access_token: str, limit: int) -> list[dict[str, Any]]:
        url = f"https://{shop_domain}/admin/api/{self._admin_api_version}/customers.json"
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": access_token,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, params={"limit": limit}, headers=headers)
        except httpx.RequestError as exc:
            raise NetworkError(message=f"Network error while calling Shopify: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Shopify customer fetch failed",
                extra={"shop_domain": shop_domain, "status_code": response.status_code, "body": response.text},
            )
            raise NetworkError(
                message=f"Shopify API call failed ({response.status_code})",
                status_code=response.status_code,
                public_message="Failed to fetch customers from Shopify.",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError(message="Shopify API returned invalid JSON") from exc

        customers = body.get("customers") if isinstance(body, dict) else None
        if not isinstance(customers, list):
            raise NetworkError(message="Shopify customers response is missing customers")
        return customers
