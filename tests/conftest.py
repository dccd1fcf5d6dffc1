"""Pytest fixtures for Nile tests."""
import json

import pytest

from nile.decoder import Decoder
from nile.directory import InMemoryDirectory
from nile.encoder import Encoder
from nile.jwk import calculate_thumbprint, generate_key_pair, parse_jwk, public_jwk
from nile.jws import sign_compact
from nile.keymanager import KeyManager


def _make_signed_announcement(signing_private_jwk: dict, payload: dict) -> str:
    """Sign an arbitrary announcement payload, for building forged or broken announcements."""
    return sign_compact(json.dumps(payload).encode(), signing_private_jwk["alg"], parse_jwk(signing_private_jwk))


def _announcement_payload(private_jwk: dict, exp: int) -> dict:
    key = public_jwk(private_jwk)
    return {"key": key, "thumbprint": calculate_thumbprint(key), "exp": exp}


def _flip_char(token: str, index: int) -> str:
    """Replace one base64url character with a different one."""
    c = token[index]
    replacement = "A" if c != "A" else "B"
    return token[:index] + replacement + token[index + 1:]


@pytest.fixture
def alice_keys() -> tuple[dict, dict]:
    return generate_key_pair("ES256")


@pytest.fixture
def bob_keys() -> tuple[dict, dict]:
    return generate_key_pair("ES256")


@pytest.fixture
def alice_manager(alice_keys) -> KeyManager:
    private_key, public_key = alice_keys
    return KeyManager(public_key, private_key)


@pytest.fixture
def bob_manager(bob_keys) -> KeyManager:
    private_key, public_key = bob_keys
    return KeyManager(public_key, private_key)


@pytest.fixture
def alice_encoder(alice_manager) -> Encoder:
    return Encoder(alice_manager)


@pytest.fixture
def alice_decoder(alice_manager) -> Decoder:
    return Decoder(alice_manager)


@pytest.fixture
def bob_decoder(bob_manager) -> Decoder:
    return Decoder(bob_manager)


@pytest.fixture
def directory(bob_decoder) -> InMemoryDirectory:
    return InMemoryDirectory(bob_decoder)


@pytest.fixture
def sign_announcement():
    return _make_signed_announcement


@pytest.fixture
def announcement_payload():
    return _announcement_payload


@pytest.fixture
def flip_char():
    return _flip_char
