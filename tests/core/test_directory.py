"""Tests for the in-memory directory."""

import logging

import pytest

from nile.clock import now_ms
from nile.directory import Directory, InMemoryDirectory
from nile.encoder import Encoder
from nile.jwk import calculate_thumbprint, generate_key_pair
from nile.keymanager import KeyManager


class TestInMemoryDirectory:
    def test_satisfies_directory_protocol(self, directory) -> None:
        assert isinstance(directory, Directory)

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, directory) -> None:
        assert await directory.get("nobody") is None

    @pytest.mark.asyncio
    async def test_register_then_get(self, directory, alice_encoder, alice_keys) -> None:
        assert await directory.register("alice", await alice_encoder.make_key_announcement())
        entry = await directory.get("alice")
        assert entry.id == "alice"
        assert entry.key == alice_keys[1]
        assert entry.thumbprint == calculate_thumbprint(alice_keys[1])
        assert "alice" in directory and len(directory) == 1

    @pytest.mark.asyncio
    async def test_rejected_announcement_returns_false(self, directory, alice_keys, announcement_payload, sign_announcement) -> None:
        forged = sign_announcement(generate_key_pair("ES256")[0],
                                   announcement_payload(alice_keys[0], now_ms() + 60_000))
        assert await directory.register("alice", forged) is False
        assert await directory.get("alice") is None

    @pytest.mark.asyncio
    async def test_rejection_is_logged_without_detail(self, directory, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="nile.directory"):
            assert await directory.register("alice", "not.an.announcement") is False
        assert "Rejected key announcement for alice" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_register_leaves_existing_entry(self, directory, alice_encoder) -> None:
        await directory.register("alice", await alice_encoder.make_key_announcement())
        before = await directory.get("alice")
        assert await directory.register("alice", "garbage") is False
        assert await directory.get("alice") == before

    @pytest.mark.asyncio
    async def test_register_overwrites_existing_entry(self, directory, alice_encoder) -> None:
        await directory.register("alice", await alice_encoder.make_key_announcement())
        private_key, public_key = generate_key_pair("ES256")
        other = Encoder(KeyManager(public_key, private_key))
        assert await directory.register("alice", await other.make_key_announcement())
        assert (await directory.get("alice")).key == public_key

    @pytest.mark.asyncio
    @pytest.mark.parametrize("external_id,announcement", [("", "a.b.c"), ("alice", "")])
    async def test_requires_arguments(self, directory, external_id: str, announcement: str) -> None:
        with pytest.raises(ValueError):
            await directory.register(external_id, announcement)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("crv", [["P-256"], {"name": "P-256"}])
    async def test_announcement_with_non_string_curve_returns_false(
        self, directory, alice_keys, announcement_payload, sign_announcement, crv
    ) -> None:
        payload = announcement_payload(alice_keys[0], now_ms() + 60_000)
        payload["key"]["crv"] = crv
        assert await directory.register("mallory", sign_announcement(alice_keys[0], payload)) is False
        assert await directory.get("mallory") is None
