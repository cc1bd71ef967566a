from __future__ import annotations

from enum import Enum


class AppError(RuntimeError):
    """Base for errors that are recovered at the HTTP boundary.

    ``message`` is the internal description (logged); ``public_message`` is the
    only text ever sent back to the caller.
    """

    status_code: int = 500
    public_message: str = "Unexpected server error."

    def __init__(
        self,
        *,
        message: str,
        status_code: int | None = None,
        public_message: str | None = None,
    ) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(AppError):
    status_code = 500
    public_message = "Server is not configured for this operation."


class FeatureDisabledError(ConfigurationError):
    status_code = 503


class AuthenticationError(AppError):
    status_code = 400
    public_message = "Invalid or expired OAuth request."

    def __init__(self, *, message: str, reason: Enum | None = None, **kwargs) -> None:
        super().__init__(message=message, **kwargs)
        self.reason = reason


class ExchangeFailedError(AppError):
    status_code = 400
    public_message = "Failed to exchange token with Shopify."


class DecryptionError(AppError):
    status_code = 500
    public_message = "Stored credentials could not be read."


class NetworkError(AppError):
    status_code = 502
    public_message = "Upstream service request failed."


class ParsingError(AppError):
    status_code = 500
    public_message = "Failed to generate email content."


class GenerationFailureKind(str, Enum):
    CONFIGURATION = "configuration"
    NETWORK = "network"
    EMPTY_RESPONSE = "empty_response"
    PARSING = "parsing"
    UNEXPECTED = "unexpected"


class GenerationError(AppError):
    status_code = 500
    public_message = "Failed to generate email content."

    def __init__(self, *, message: str, kind: GenerationFailureKind, **kwargs) -> None:
        super().__init__(message=message, **kwargs)
        self.kind = kind


class NotFoundError(AppError):
    status_code = 404
    public_message = "Resource not found."
