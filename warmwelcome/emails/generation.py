from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from openai import AsyncOpenAI, OpenAIError

from warmwelcome.emails.parsing import GeneratedEmail, parse_model_response
from warmwelcome.emails.prompting import (
    BrandVoiceContext,
    CampaignContext,
    EmailBlueprintContext,
    build_prompts,
)
from warmwelcome.errors import (
    ConfigurationError,
    GenerationError,
    GenerationFailureKind,
    ParsingError,
)

logger = logging.getLogger("emails.generation")

GENERATION_TEMPERATURE = 0.7
_PUBLIC_FAILURE = "Failed to generate email content"


class _EmptyResponse(Exception):
    pass


class EmailGenerator:
    def __init__(self, *, client_factory: Callable[[], AsyncOpenAI], model: str) -> None:
        self._client_factory = client_factory
        self._model = model

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        client = self._client_factory()
        response = await client.chat.completions.create(
            model=self._model,
            messages=messages,
            temperature=GENERATION_TEMPERATURE,
        )
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not content:
            raise _EmptyResponse("completion API returned an empty response")
        return content

    async def generate(
        self,
        *,
        brand_voice: BrandVoiceContext | None,
        campaign: CampaignContext,
        blueprint: EmailBlueprintContext,
        customer: dict[str, Any],
    ) -> GeneratedEmail:
        prompts = build_prompts(brand_voice, campaign, blueprint, customer)
        messages = [
            {"role": "system", "content": prompts.system_prompt},
            {"role": "user", "content": prompts.user_prompt},
        ]

        try:
            content = await self._complete(messages)
            return parse_model_response(content)
        except ConfigurationError as exc:
            kind = GenerationFailureKind.CONFIGURATION
            cause: Exception = exc
        except (OpenAIError, httpx.HTTPError) as exc:
            kind = GenerationFailureKind.NETWORK
            cause = exc
        except _EmptyResponse as exc:
            kind = GenerationFailureKind.EMPTY_RESPONSE
            cause = exc
        except ParsingError as exc:
            kind = GenerationFailureKind.PARSING
            cause = exc
        except Exception as exc:
            kind = GenerationFailureKind.UNEXPECTED
            cause = exc

        logger.error(
            "Email generation failed: %s",
            cause,
            exc_info=cause,
            extra={"failure_kind": kind.value, "model": self._model, "campaign": campaign.name},
        )
        raise GenerationError(message=_PUBLIC_FAILURE, kind=kind) from cause
