from __future__ import annotations

import hashlib
import hmac
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from jose import jwt
from jose.exceptions import JOSEError

from warmwelcome.errors import ConfigurationError

logger = logging.getLogger("shopify.security")

SHOP_DOMAIN_SUFFIX = ".myshopify.com"
STATE_TTL = timedelta(minutes=10)
STATE_ALGORITHM = "HS256"

_SHOP_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9-]+\.myshopify\.com$")
_HMAC_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_EXCLUDED_HMAC_KEYS = {"hmac", "signature"}

QueryValue = Union[str, list[str], tuple[str, ...]]
QueryInput = Union[Mapping[str, QueryValue], Iterable[tuple[str, str]]]


def normalize_shop_domain(shop: str) -> str | None:
    """Append the myshopify suffix when missing; ``None`` when the result is not a shop domain."""
    candidate = shop.strip().lower()
    if not candidate.endswith(SHOP_DOMAIN_SUFFIX):
        candidate = f"{candidate}{SHOP_DOMAIN_SUFFIX}"
    if not _SHOP_DOMAIN_RE.fullmatch(candidate):
        return None
    return candidate


def _flatten_query(query: QueryInput) -> list[tuple[str, str]]:
    if isinstance(query, Mapping):
        items: list[tuple[str, str]] = []
        for key, value in query.items():
            if isinstance(value, (list, tuple)):
                items.extend((key, item) for item in value)
            else:
                items.append((key, value))
        return items
    return [(key, value) for key, value in query]


def build_hmac_message(query: QueryInput) -> tuple[str, str | None]:
    """Return the canonical ``key=value&...`` message and the supplied hmac."""
    supplied_hmac: str | None = None
    filtered: list[tuple[str, str]] = []
    for key, value in _flatten_query(query):
        if key == "hmac":
            supplied_hmac = value
        if key in _EXCLUDED_HMAC_KEYS:
            continue
        filtered.append((key, value))

    # list.sort is stable: repeated keys keep their encounter order.
    filtered.sort(key=lambda item: item[0])
    message = "&".join(f"{key}={value}" for key, value in filtered)
    return message, supplied_hmac


def verify_oauth_hmac(query: QueryInput, *, secret: str | None) -> bool:
    if not secret:
        return False
    try:
        message, supplied_hmac = build_hmac_message(query)
    except (TypeError, ValueError):
        return False
    if not isinstance(supplied_hmac, str) or not _HMAC_HEX_RE.fullmatch(supplied_hmac):
        return False

    digest = hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(digest, supplied_hmac.lower())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateSigner:
    """Issues and verifies the signed, 10-minute OAuth ``state`` parameter."""

    def __init__(self, secret: str | None, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._secret = secret
        self._clock = clock

    def create_state(self, payload: Mapping[str, Any]) -> str:
        if not self._secret:
            raise ConfigurationError(message="No SHOPIFY_STATE_SECRET or JWT_SECRET configured for OAuth state")
        issued_at = self._clock()
        claims = dict(payload)
        claims["iat"] = int(issued_at.timestamp())
        claims["exp"] = int((issued_at + STATE_TTL).timestamp())
        return jwt.encode(claims, self._secret, algorithm=STATE_ALGORITHM)

    def decode_state(self, token: str) -> dict[str, Any] | None:
        if not self._secret or not token:
            return None
        try:
            # exp is checked against the injected clock below, not the wall clock.
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[STATE_ALGORITHM],
                options={"verify_exp": False},
            )
        except JOSEError:
            logger.info("OAuth state failed signature verification")
            return None

        expires_at = claims.get("exp")
        if not isinstance(expires_at, int) or self._clock().timestamp() >= expires_at:
            logger.info("OAuth state expired")
            return None
        return claims
