"""Exception types for the Nile messaging library."""


class NileError(Exception):
    """Base exception for all Nile errors."""
    pass


class ConfigError(NileError):
    """Configuration or key pair file is missing or invalid."""
    pass


class KeyParseError(NileError):
    """Key description is malformed or uses an unsupported algorithm."""
    pass


class RecipientKeyError(KeyParseError):
    """Recipient public key cannot be used for encryption."""
    pass


class SigningError(NileError):
    """Own private key cannot produce a signature."""
    pass


class SignatureInvalid(NileError):
    """Signed envelope does not verify against the claimed signer key."""
    pass


class DecryptionFailed(NileError):
    """Encrypted envelope is corrupt, tampered, or not meant for this key."""
    pass


class AnnouncementError(NileError):
    """Key announcement was rejected."""
    pass


class MalformedAnnouncement(AnnouncementError):
    """Key announcement is not a well-formed signed structure."""
    pass


class ExpiredAnnouncement(AnnouncementError):
    """Key announcement expiry is in the past or was altered."""
    pass


class ThumbprintMismatch(AnnouncementError):
    """Key announcement thumbprint does not match its key."""
    pass


class UnknownPeer(NileError):
    """Peer id has no entry in the directory."""
    def __init__(self, message: str, peer_id: str | None = None) -> None:
        super().__init__(message)
        self.peer_id = peer_id


class UnknownRecipient(UnknownPeer):
    """Recipient id has no entry in the directory."""
    pass


class UnknownSender(UnknownPeer):
    """Sender id has no entry in the directory."""
    pass


class BootstrapFailed(NileError):
    """Own key could not be registered with the directory."""
    pass
