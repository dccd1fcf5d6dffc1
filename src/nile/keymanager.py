"""Key pair ownership with cached key handles and thumbprints."""
import asyncio
import copy
import logging
from typing import Any, Mapping

from .jwk import calculate_thumbprint, parse_jwk
from .models import KeyInfo
from .types import JsonWebKey, KeyHandle, KeyRole

logger = logging.getLogger(__name__)


class KeyManager:
    """Holds one principal's public and private JWKs.

    Handles and thumbprints are derived on first use and cached for the
    lifetime of the instance. Concurrent first calls for the same role wait
    on a per-role lock so the derivation runs once.
    """

    def __init__(self, public_key: Mapping[str, Any], private_key: Mapping[str, Any]) -> None:
        self._keys: dict[KeyRole, JsonWebKey] = {
            KeyRole.PUBLIC: copy.deepcopy(dict(public_key)),
            KeyRole.PRIVATE: copy.deepcopy(dict(private_key)),
        }
        self._handles: dict[KeyRole, KeyHandle] = {}
        self._thumbprints: dict[KeyRole, str] = {}
        self._handle_locks = {role: asyncio.Lock() for role in KeyRole}
        self._thumbprint_locks = {role: asyncio.Lock() for role in KeyRole}

    def key(self, role: KeyRole) -> JsonWebKey:
        return copy.deepcopy(self._keys[role])

    async def get_key_handle(self, role: KeyRole) -> KeyHandle:
        if role in self._handles:
            return self._handles[role]
        async with self._handle_locks[role]:
            if role not in self._handles:
                logger.debug("Parsing %s key", role.value)
                self._handles[role] = await self.parse_key(self._keys[role])
            return self._handles[role]

    async def get_thumbprint(self, role: KeyRole) -> str:
        if role in self._thumbprints:
            return self._thumbprints[role]
        async with self._thumbprint_locks[role]:
            if role not in self._thumbprints:
                logger.debug("Calculating %s key thumbprint", role.value)
                self._thumbprints[role] = await self.calculate_thumbprint(self._keys[role])
            return self._thumbprints[role]

    async def get_key_info(self, role: KeyRole) -> KeyInfo:
        handle, thumbprint = await asyncio.gather(self.get_key_handle(role), self.get_thumbprint(role))
        return KeyInfo(key=self.key(role), handle=handle, thumbprint=thumbprint)

    async def get_public_key_info(self) -> KeyInfo:
        return await self.get_key_info(KeyRole.PUBLIC)

    async def get_private_key_info(self) -> KeyInfo:
        return await self.get_key_info(KeyRole.PRIVATE)

    async def get_key_pair_info(self) -> dict[KeyRole, KeyInfo]:
        public, private = await asyncio.gather(self.get_public_key_info(), self.get_private_key_info())
        return {KeyRole.PUBLIC: public, KeyRole.PRIVATE: private}

    async def calculate_thumbprint(self, key: Mapping[str, Any]) -> str:
        """Uncached thumbprint of an arbitrary JWK."""
        return await asyncio.to_thread(calculate_thumbprint, key)

    async def parse_key(self, key: Mapping[str, Any]) -> KeyHandle:
        """Uncached key handle of an arbitrary JWK."""
        return await asyncio.to_thread(parse_jwk, key)
