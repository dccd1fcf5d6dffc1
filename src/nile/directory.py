"""Identity directory: resolves external ids to verified public keys."""
import logging
from typing import Optional, Protocol, runtime_checkable

from .decoder import Decoder
from .exceptions import NileError
from .models import DirectoryEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class Directory(Protocol):
    """Capability set any directory backend must provide.

    ``register`` reports a rejected announcement as ``False`` rather than
    raising, and leaves the directory unchanged. ``get`` returns ``None``
    for unknown ids.
    """

    async def register(self, external_id: str, signed_announcement: str) -> bool: ...

    async def get(self, external_id: str) -> Optional[DirectoryEntry]: ...


class InMemoryDirectory:
    """Reference directory held in a dict.

    Registration is trust on first use with no pinning: a later valid
    announcement for the same id replaces the earlier entry without any
    continuity check against the previously trusted key.
    """

    def __init__(self, decoder: Decoder) -> None:
        self._decoder = decoder
        self._entries: dict[str, DirectoryEntry] = {}

    async def register(self, external_id: str, signed_announcement: str) -> bool:
        if not external_id or not signed_announcement:
            raise ValueError("external_id and signed_announcement are required")
        try:
            entry = await self._decoder.validate_key_announcement(signed_announcement, external_id)
        except NileError as e:
            logger.warning("Rejected key announcement for %s: %s", external_id, type(e).__name__)
            return False
        if external_id in self._entries and self._entries[external_id].thumbprint != entry.thumbprint:
            logger.info("Replacing key for %s (thumbprint=%s)", external_id, entry.thumbprint)
        else:
            logger.info("Registered %s (thumbprint=%s)", external_id, entry.thumbprint)
        self._entries[external_id] = entry
        return True

    async def get(self, external_id: str) -> Optional[DirectoryEntry]:
        return self._entries.get(external_id)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
