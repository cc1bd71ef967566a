from __future__ import annotations

import logging

from openai import AsyncOpenAI

from warmwelcome.config import Settings
from warmwelcome.emails.generation import EmailGenerator
from warmwelcome.encryption import TokenCipher
from warmwelcome.errors import FeatureDisabledError
from warmwelcome.mailer import Mailer
from warmwelcome.oauth import ShopifyOAuthFlow
from warmwelcome.security import StateSigner
from warmwelcome.shopify_api import ShopifyApiClient

logger = logging.getLogger("context")


class AppContext:
    """Process-wide collaborators, built once at startup and injected into handlers.

    The completion client and the mailer are created lazily on first use and
    then reused; ``reset()`` drops them so the next access rebuilds them.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cipher = TokenCipher(settings.ENCRYPTION_KEY)
        self.state_signer = StateSigner(settings.state_secret)
        self.shopify_api = ShopifyApiClient(
            api_key=settings.SHOPIFY_API_KEY,
            api_secret=settings.SHOPIFY_API_SECRET,
            admin_api_version=settings.SHOPIFY_ADMIN_API_VERSION,
            timeout=settings.SHOPIFY_REQUEST_TIMEOUT_SECONDS,
        )
        self.oauth = ShopifyOAuthFlow(
            settings=settings,
            state_signer=self.state_signer,
            shopify_api=self.shopify_api,
            cipher=self.cipher,
        )
        self.email_generator = EmailGenerator(client_factory=lambda: self.completion_client(), model=settings.OPENAI_MODEL)
        self._completion_client: AsyncOpenAI | None = None
        self._mailer: Mailer | None = None
        self._mailer_resolved = False

    def completion_client(self) -> AsyncOpenAI:
        if not self.settings.openai_configured:
            raise FeatureDisabledError(
                message="OPENAI_API_KEY is not configured",
                public_message="AI provider is not configured. Set OPENAI_API_KEY to enable previews.",
            )
        if self._completion_client is None:
            client_kwargs = {
                "api_key": self.settings.OPENAI_API_KEY,
                "timeout": self.settings.OPENAI_REQUEST_TIMEOUT_SECONDS,
                "max_retries": 0,
            }
            if self.settings.OPENAI_BASE_URL:
                client_kwargs["base_url"] = self.settings.OPENAI_BASE_URL
            self._completion_client = AsyncOpenAI(**client_kwargs)
            logger.debug("Initialized completion API client", extra={"model": self.settings.OPENAI_MODEL})
        return self._completion_client

    def mailer(self) -> Mailer | None:
        """The SMTP mailer, or ``None`` when ``SMTP_HOST`` is not configured."""
        if self._mailer_resolved:
            return self._mailer
        self._mailer_resolved = True
        if not self.settings.smtp_configured:
            return None
        self._mailer = Mailer(
            host=self.settings.SMTP_HOST.strip(),
            port=self.settings.SMTP_PORT,
            use_tls=self.settings.smtp_use_tls,
            username=self.settings.SMTP_USER,
            password=self.settings.SMTP_PASS,
            sender=self.settings.EMAIL_FROM,
        )
        return self._mailer

    def reset(self) -> None:
        self._completion_client = None
        self._mailer = None
        self._mailer_resolved = False
