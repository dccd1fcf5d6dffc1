"""Data models for keys, directory entries and protected messages."""
from dataclasses import dataclass, field
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import JsonWebKey, KeyHandle


@dataclass(frozen=True)
class KeyInfo:
    key: JsonWebKey
    handle: KeyHandle
    thumbprint: str


@dataclass(frozen=True)
class DirectoryEntry:
    """Trusted binding of an external id to a verified public key."""
    id: str
    key: JsonWebKey
    thumbprint: str
    def __post_init__(self) -> None:
        if not self.id: raise ValueError("id cannot be empty")
        if not self.key: raise ValueError("key cannot be empty")
        if not self.thumbprint: raise ValueError("thumbprint cannot be empty")


@dataclass(frozen=True)
class VerifiedMessage:
    payload: str
    header: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DecryptedMessage:
    payload: str
    header: dict[str, Any] = field(default_factory=dict)


class KeyAnnouncement(BaseModel):
    """Self-signed claim of key ownership sent to a directory on registration.

    ``exp`` is an absolute expiry in epoch milliseconds. ``thumbprint`` is
    optional at parse time so that a missing value surfaces as a
    thumbprint mismatch rather than a parse failure.
    """
    key: dict[str, Any]
    thumbprint: Optional[str] = None
    exp: Annotated[int, Field(strict=True)]

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("key cannot be empty")
        return v


class RequestMessage(BaseModel):
    """A serialised HTTP-style request, the typical payload of a protected message."""
    model_config = ConfigDict(populate_by_name=True)

    method: str
    path: str
    headers: Optional[dict[str, str | list[str]]] = None
    query_params: Optional[dict[str, str | list[str]]] = Field(default=None, alias="queryParams")
    body: Optional[str] = None
    trailers: Optional[dict[str, str | list[str]]] = None
