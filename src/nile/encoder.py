"""Protect outgoing messages: encrypt for the recipient, then sign as the sender."""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Mapping

from .clock import now_ms
from .exceptions import KeyParseError, RecipientKeyError, SigningError
from .jwe import encrypt_compact
from .jwk import public_jwk, signing_algorithm
from .jws import sign_compact
from .keymanager import KeyManager
from .models import KeyAnnouncement
from .types import ContentEncryption, KeyRole

logger = logging.getLogger(__name__)

ANNOUNCEMENT_TTL = timedelta(minutes=2)


class Encoder:
    def __init__(self, key_manager: KeyManager,
                 content_encryption: ContentEncryption = ContentEncryption.A256CBC_HS512,
                 announcement_ttl: timedelta = ANNOUNCEMENT_TTL,
                 clock: Callable[[], int] = now_ms) -> None:
        self._key_manager = key_manager
        self._content_encryption = ContentEncryption(content_encryption)
        self._announcement_ttl = announcement_ttl
        self._clock = clock

    @property
    def content_encryption(self) -> ContentEncryption:
        return self._content_encryption

    async def encode(self, plaintext: str, recipient_public_key: Mapping[str, Any]) -> str:
        """Encrypt ``plaintext`` for the recipient and sign the resulting ciphertext.

        The signature covers the encrypted blob, so anyone holding the
        sender's public key can check who sent it without decrypting.
        """
        encrypted = await self.encrypt(plaintext, recipient_public_key)
        return await self.sign(encrypted)

    async def encrypt(self, plaintext: str, recipient_public_key: Mapping[str, Any]) -> str:
        """Encrypt into a compact JWE. Carries no proof of sender on its own."""
        try:
            recipient = await self._key_manager.parse_key(recipient_public_key)
        except KeyParseError as e:
            raise RecipientKeyError(f"Invalid recipient key: {e}") from e
        logger.debug("Encrypting %d bytes with %s", len(plaintext), self._content_encryption.value)
        return await asyncio.to_thread(encrypt_compact, plaintext.encode("utf-8"), recipient,
                                       self._content_encryption)

    async def sign(self, data: str) -> str:
        """Sign ``data`` with the own private key into a compact JWS."""
        try:
            handle = await self._key_manager.get_key_handle(KeyRole.PRIVATE)
            alg = signing_algorithm(self._key_manager.key(KeyRole.PRIVATE))
        except KeyParseError as e:
            raise SigningError(f"Private key is unusable: {e}") from e
        return await asyncio.to_thread(sign_compact, data.encode("utf-8"), alg, handle)

    async def make_key_announcement(self) -> str:
        """Build a self-signed announcement of the own public key.

        The payload holds the public JWK, its thumbprint and an absolute
        expiry in epoch milliseconds, and is signed by the private half of
        the key it announces.
        """
        info = await self._key_manager.get_public_key_info()
        expires = self._clock() + int(self._announcement_ttl.total_seconds() * 1000)
        announcement = KeyAnnouncement(key=dict(public_jwk(info.key)), thumbprint=info.thumbprint, exp=expires)
        return await self.sign(announcement.model_dump_json())
