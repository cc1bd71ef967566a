"""AES-256-GCM encryption of Shopify access tokens at rest.

Every value gets its own random salt and IV; the AES key is derived from the
process-wide ``ENCRYPTION_KEY`` with PBKDF2-HMAC-SHA256. Serialized form::

    <saltHex>:<ivHex>:<authTagHex>:<ciphertextHex>

This format is persisted and must stay stable.
"""

from __future__ import annotations

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from warmwelcome.config import MIN_ENCRYPTION_KEY_LENGTH
from warmwelcome.errors import ConfigurationError, DecryptionError

logger = logging.getLogger("encryption")

_SALT_LENGTH = 64
_IV_LENGTH = 16
_TAG_LENGTH = 16
_KEY_LENGTH = 32
_ITERATIONS = 100_000
_SEGMENTS = 4


def is_encrypted(value: object) -> bool:
    """Structural check only: exactly four non-empty colon-delimited segments.

    ``"a:b:c:d"`` passes even though it cannot be decrypted. Use it to make
    backfills idempotent, never to decide whether a value is trustworthy.
    """
    if not isinstance(value, str) or not value:
        return False
    parts = value.split(":")
    return len(parts) == _SEGMENTS and all(parts)


class TokenCipher:
    def __init__(self, secret: str | None) -> None:
        self._secret = secret

    def _require_secret(self) -> bytes:
        secret = (self._secret or "").strip()
        if not secret:
            raise ConfigurationError(message="ENCRYPTION_KEY environment variable is not set")
        if len(secret) < MIN_ENCRYPTION_KEY_LENGTH:
            raise ConfigurationError(
                message=f"ENCRYPTION_KEY must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters long"
            )
        return secret.encode("utf-8")

    @staticmethod
    def _derive_key(secret: bytes, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=_KEY_LENGTH,
            salt=salt,
            iterations=_ITERATIONS,
        )
        return kdf.derive(secret)

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Cannot encrypt an empty value")
        secret = self._require_secret()

        salt = os.urandom(_SALT_LENGTH)
        iv = os.urandom(_IV_LENGTH)
        key = self._derive_key(secret, salt)
        # AESGCM appends the 16-byte tag to the ciphertext.
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, auth_tag = sealed[:-_TAG_LENGTH], sealed[-_TAG_LENGTH:]
        return ":".join(part.hex() for part in (salt, iv, auth_tag, ciphertext))

    def decrypt(self, serialized: str) -> str:
        try:
            secret = self._require_secret()
        except ConfigurationError as exc:
            raise DecryptionError(message=f"Cannot decrypt: {exc}") from exc

        parts = serialized.split(":") if isinstance(serialized, str) else []
        if len(parts) != _SEGMENTS:
            raise DecryptionError(message="Invalid encrypted data format")

        try:
            salt, iv, auth_tag, ciphertext = (bytes.fromhex(part) for part in parts)
        except ValueError as exc:
            raise DecryptionError(message="Encrypted data is not valid hex") from exc
        if len(auth_tag) != _TAG_LENGTH or not iv:
            raise DecryptionError(message="Encrypted data has an invalid IV or auth tag")

        key = self._derive_key(secret, salt)
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext + auth_tag, None)
        except InvalidTag as exc:
            logger.error("Decryption failed: authentication tag mismatch")
            raise DecryptionError(message="Authentication tag verification failed") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError(message="Decrypted value is not valid UTF-8") from exc
