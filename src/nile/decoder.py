"""Open incoming messages and validate key announcements."""
import asyncio
import logging
from typing import Any, Callable, Mapping

from .clock import now_ms
from .exceptions import (
    DecryptionFailed, ExpiredAnnouncement, MalformedAnnouncement, SignatureInvalid, ThumbprintMismatch,
)
from .jwe import decrypt_compact
from .jwk import b64url_decode, public_jwk
from .jws import verify_compact
from .keymanager import KeyManager
from .models import DecryptedMessage, DirectoryEntry, KeyAnnouncement, VerifiedMessage
from .types import KeyRole

logger = logging.getLogger(__name__)


class Decoder:
    def __init__(self, key_manager: KeyManager, clock: Callable[[], int] = now_ms) -> None:
        self._key_manager = key_manager
        self._clock = clock

    async def decode(self, envelope: str, sender_public_key: Mapping[str, Any]) -> str:
        """Verify the sender signature, then decrypt the enclosed JWE with the own private key."""
        verified = await self.verify(envelope, sender_public_key)
        decrypted = await self.decrypt(verified.payload)
        return decrypted.payload

    async def verify(self, token: str, sender_public_key: Mapping[str, Any]) -> VerifiedMessage:
        """Check a compact JWS against the claimed signer's public JWK.

        Raises:
            KeyParseError: The claimed key is malformed or unsupported.
            SignatureInvalid: The token is malformed, the signature does not match,
                or the signed payload is not UTF-8 text.
        """
        signer = await self._key_manager.parse_key(sender_public_key)
        payload, header = await asyncio.to_thread(verify_compact, token, signer)
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureInvalid("Signed payload is not valid UTF-8") from e
        return VerifiedMessage(payload=text, header=header)

    async def decrypt(self, token: str) -> DecryptedMessage:
        """Decrypt a compact JWE addressed to the own key.

        Raises DecryptionFailed, also when the plaintext is not UTF-8 text.
        """
        handle = await self._key_manager.get_key_handle(KeyRole.PRIVATE)
        plaintext, header = await asyncio.to_thread(decrypt_compact, token, handle)
        try:
            text = plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionFailed("Decrypted payload is not valid UTF-8") from e
        return DecryptedMessage(payload=text, header=header)

    async def validate_key_announcement(self, signed_announcement: str, external_id: str) -> DirectoryEntry:
        """Validate a self-signed key announcement and bind its key to ``external_id``.

        The payload is read twice: once untrusted, to find the key that is
        supposed to have signed it, and once after the signature has been
        checked with that key. Expiry and thumbprint must agree between the
        two reads, and the thumbprint must also match one recomputed from
        the verified key.

        This proves possession of the private key only. Binding the key to
        ``external_id`` is trust on first use.

        Raises:
            MalformedAnnouncement: Not a compact JWS, or key/exp missing.
            KeyParseError: The announced key cannot be parsed.
            SignatureInvalid: Not signed by the announced key.
            ExpiredAnnouncement: Expired, or expiry differs between reads.
            ThumbprintMismatch: Thumbprints disagree or do not match the key.
        """
        parts = signed_announcement.split(".") if isinstance(signed_announcement, str) else []
        if len(parts) != 3:
            raise MalformedAnnouncement("Invalid key announcement format")
        try:
            for part in parts:
                b64url_decode(part)
            untrusted = KeyAnnouncement.model_validate_json(b64url_decode(parts[1]))
        except ValueError as e:
            raise MalformedAnnouncement("Invalid key announcement") from e

        verified = await self.verify(signed_announcement, untrusted.key)
        try:
            announcement = KeyAnnouncement.model_validate_json(verified.payload)
        except ValueError as e:
            raise MalformedAnnouncement("Invalid key announcement") from e

        if announcement.exp != untrusted.exp or announcement.exp < self._clock():
            raise ExpiredAnnouncement("Expired key announcement")
        if announcement.thumbprint != untrusted.thumbprint:
            raise ThumbprintMismatch("Thumbprint mismatch")
        calculated = await self._key_manager.calculate_thumbprint(announcement.key)
        if calculated != announcement.thumbprint:
            raise ThumbprintMismatch("Thumbprint mismatch")

        logger.debug("Validated key announcement for %s (thumbprint=%s)", external_id, calculated)
        return DirectoryEntry(id=external_id, key=public_jwk(announcement.key), thumbprint=calculated)
