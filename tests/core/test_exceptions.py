"""Tests for exception types."""

from nile.exceptions import (
    AnnouncementError, BootstrapFailed, ConfigError, DecryptionFailed, ExpiredAnnouncement, KeyParseError,
    MalformedAnnouncement, NileError, RecipientKeyError, SignatureInvalid, SigningError, ThumbprintMismatch,
    UnknownPeer, UnknownRecipient, UnknownSender,
)


class TestExceptionHierarchy:
    def test_all_exceptions_inherit_from_nile_error(self) -> None:
        for exc in (ConfigError, KeyParseError, RecipientKeyError, SigningError, SignatureInvalid,
                    DecryptionFailed, MalformedAnnouncement, ExpiredAnnouncement, ThumbprintMismatch,
                    UnknownRecipient, UnknownSender, BootstrapFailed):
            assert issubclass(exc, NileError)

    def test_announcement_errors_share_base(self) -> None:
        for exc in (MalformedAnnouncement, ExpiredAnnouncement, ThumbprintMismatch):
            assert issubclass(exc, AnnouncementError)

    def test_recipient_key_error_is_key_parse_error(self) -> None:
        assert issubclass(RecipientKeyError, KeyParseError)


class TestUnknownPeer:
    def test_stores_peer_id(self) -> None:
        e = UnknownRecipient("missing", peer_id="bob")
        assert e.peer_id == "bob"
        assert str(e) == "missing"
        assert isinstance(e, UnknownPeer)

    def test_peer_id_optional(self) -> None:
        assert UnknownSender("missing").peer_id is None
