"""Nile: signed and encrypted messaging between peers registered in an identity directory."""

from .config import NileConfig, load_config_file, load_config_from_env, load_key_pair
from .decoder import Decoder
from .directory import Directory, InMemoryDirectory
from .encoder import Encoder
from .exceptions import (
    AnnouncementError, BootstrapFailed, ConfigError, DecryptionFailed, ExpiredAnnouncement, KeyParseError,
    MalformedAnnouncement, NileError, RecipientKeyError, SignatureInvalid, SigningError, ThumbprintMismatch,
    UnknownPeer, UnknownRecipient, UnknownSender,
)
from .facade import Nile
from .jwk import calculate_thumbprint, generate_key_pair
from .keymanager import KeyManager
from .models import DirectoryEntry, KeyAnnouncement, KeyInfo, RequestMessage
from .types import ContentEncryption, KeyRole, SigningAlgorithm

__all__ = [
    "Nile", "KeyManager", "Encoder", "Decoder", "Directory", "InMemoryDirectory",
    "NileConfig", "load_config_file", "load_config_from_env", "load_key_pair",
    "generate_key_pair", "calculate_thumbprint",
    "DirectoryEntry", "KeyAnnouncement", "KeyInfo", "RequestMessage",
    "ContentEncryption", "KeyRole", "SigningAlgorithm",
    "NileError", "ConfigError", "KeyParseError", "RecipientKeyError", "SigningError", "SignatureInvalid",
    "DecryptionFailed", "AnnouncementError", "MalformedAnnouncement", "ExpiredAnnouncement", "ThumbprintMismatch",
    "UnknownPeer", "UnknownRecipient", "UnknownSender", "BootstrapFailed",
]

__version__ = "0.1.0"
