"""Nile: send and receive protected messages between directory-registered peers."""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Mapping, Optional

from pydantic import BaseModel

from .config import load_key_pair
from .decoder import Decoder
from .directory import Directory, InMemoryDirectory
from .encoder import ANNOUNCEMENT_TTL, Encoder
from .exceptions import BootstrapFailed, UnknownRecipient, UnknownSender
from .keymanager import KeyManager
from .types import ContentEncryption

if TYPE_CHECKING:
    from .config import NileConfig

logger = logging.getLogger(__name__)


class Nile:
    """One participant: its id, its key pair and the directory it trusts.

    Before the first message is prepared or handled the participant
    announces its own public key to the directory. This bootstrap runs at
    most once successfully; concurrent first calls share one attempt, and a
    failed attempt is retried by the next call.
    """

    def __init__(self, id: str, private_key: Mapping[str, Any], public_key: Mapping[str, Any],
                 directory: Optional[Directory] = None,
                 content_encryption: ContentEncryption = ContentEncryption.A256CBC_HS512,
                 announcement_ttl: timedelta = ANNOUNCEMENT_TTL) -> None:
        if not id:
            raise ValueError("id cannot be empty")
        self._id = id
        self._key_manager = KeyManager(public_key, private_key)
        self._encoder = Encoder(self._key_manager, content_encryption, announcement_ttl)
        self._decoder = Decoder(self._key_manager)
        self._directory: Directory = directory if directory is not None else InMemoryDirectory(self._decoder)
        self._ready = False
        self._bootstrap: Optional[asyncio.Future[None]] = None

    @classmethod
    def from_config(cls, config: NileConfig, directory: Optional[Directory] = None) -> "Nile":
        key_pair = load_key_pair(config.key_pair_path)
        return cls(config.id, key_pair["privateKey"], key_pair["publicKey"], directory=directory,
                   content_encryption=config.content_encryption,
                   announcement_ttl=timedelta(seconds=config.announcement_ttl_seconds))

    @property
    def id(self) -> str:
        return self._id

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def directory(self) -> Directory:
        return self._directory

    @property
    def encoder(self) -> Encoder:
        return self._encoder

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    async def prepare_message(self, message: Any, recipient_id: str) -> str:
        """Serialise ``message`` to JSON and protect it for ``recipient_id``.

        Raises:
            BootstrapFailed: The own key could not be registered.
            UnknownRecipient: ``recipient_id`` is not in the directory.
            RecipientKeyError: The directory entry holds an unusable key.
        """
        payload = _serialise(message)
        await self.ensure_ready()
        entry = await self._directory.get(recipient_id)
        if entry is None:
            raise UnknownRecipient(f"Unknown recipient: {recipient_id}", peer_id=recipient_id)
        return await self._encoder.encode(payload, entry.key)

    async def handle_message(self, envelope: str, sender_id: str) -> Any:
        """Verify ``envelope`` as sent by ``sender_id``, decrypt it and parse the JSON inside.

        Raises:
            BootstrapFailed: The own key could not be registered.
            UnknownSender: ``sender_id`` is not in the directory.
            SignatureInvalid: Not signed by ``sender_id``'s key.
            DecryptionFailed: Not encrypted for this participant, or tampered.
        """
        await self.ensure_ready()
        entry = await self._directory.get(sender_id)
        if entry is None:
            raise UnknownSender(f"Unknown sender: {sender_id}", peer_id=sender_id)
        return json.loads(await self._decoder.decode(envelope, entry.key))

    async def ensure_ready(self) -> None:
        """Register the own key with the directory unless that already succeeded."""
        if self._ready:
            return
        bootstrap = self._bootstrap
        if bootstrap is None:
            bootstrap = self._bootstrap = asyncio.ensure_future(self._register_self())
            bootstrap.add_done_callback(self._bootstrap_done)
        try:
            # shielded so one cancelled caller does not abort the shared attempt
            await asyncio.shield(bootstrap)
        except BootstrapFailed:
            raise
        except Exception as e:
            raise BootstrapFailed(f"Could not register {self._id}: {e}") from e

    async def _register_self(self) -> None:
        announcement = await self._encoder.make_key_announcement()
        if not await self._directory.register(self._id, announcement):
            logger.warning("Directory rejected key announcement for %s", self._id)
            raise BootstrapFailed(f"Directory rejected key announcement for {self._id}")
        self._ready = True
        logger.info("Registered %s with directory", self._id)

    def _bootstrap_done(self, future: asyncio.Future[None]) -> None:
        if self._bootstrap is future:
            self._bootstrap = None


def _serialise(message: Any) -> str:
    if isinstance(message, BaseModel):
        return message.model_dump_json(by_alias=True, exclude_none=True)
    return json.dumps(message)
