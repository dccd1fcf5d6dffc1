"""Compact JWE encryption to an EC public key using ECDH-ES+A256KW.

A fresh ephemeral key pair on the recipient's curve is generated for every
message. The agreed secret is run through the Concat KDF of RFC 7518
section 4.6.2 to obtain a key-encryption key, which wraps a random content
encryption key. The protected header is authenticated as additional data.
"""

import json
import os
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.constant_time import bytes_eq
from cryptography.hazmat.primitives.kdf.concatkdf import ConcatKDFHash
from cryptography.hazmat.primitives.keywrap import InvalidUnwrap, aes_key_unwrap, aes_key_wrap

from .exceptions import DecryptionFailed, KeyParseError
from .jwk import b64url_decode, b64url_encode, export_jwk, parse_jwk
from .jws import read_header
from .types import ContentEncryption, KeyHandle

KEY_AGREEMENT_ALGORITHM = "ECDH-ES+A256KW"
_KEK_SIZE = 32


@dataclass(frozen=True)
class _ContentSpec:
    key_size: int
    hash: type[hashes.HashAlgorithm] | None = None

    @property
    def is_gcm(self) -> bool:
        return self.hash is None


_CONTENT: dict[ContentEncryption, _ContentSpec] = {
    ContentEncryption.A128CBC_HS256: _ContentSpec(32, hashes.SHA256),
    ContentEncryption.A192CBC_HS384: _ContentSpec(48, hashes.SHA384),
    ContentEncryption.A256CBC_HS512: _ContentSpec(64, hashes.SHA512),
    ContentEncryption.A128GCM: _ContentSpec(16),
    ContentEncryption.A192GCM: _ContentSpec(24),
    ContentEncryption.A256GCM: _ContentSpec(32),
}


def _length_prefixed(data: bytes) -> bytes:
    return len(data).to_bytes(4, "big") + data


def _derive_kek(shared_secret: bytes) -> bytes:
    # apu and apv are left empty
    other_info = (_length_prefixed(KEY_AGREEMENT_ALGORITHM.encode("ascii"))
                  + _length_prefixed(b"") + _length_prefixed(b"")
                  + (_KEK_SIZE * 8).to_bytes(4, "big"))
    return ConcatKDFHash(algorithm=hashes.SHA256(), length=_KEK_SIZE, otherinfo=other_info).derive(shared_secret)


def _cbc_hmac_tag(spec: _ContentSpec, mac_key: bytes, aad: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    h = hmac.HMAC(mac_key, spec.hash())
    h.update(aad + iv + ciphertext + (len(aad) * 8).to_bytes(8, "big"))
    return h.finalize()[:spec.key_size // 2]


def _encrypt_content(spec: _ContentSpec, cek: bytes, plaintext: bytes, aad: bytes) -> tuple[bytes, bytes, bytes]:
    if spec.is_gcm:
        iv = os.urandom(12)
        sealed = AESGCM(cek).encrypt(iv, plaintext, aad)
        return iv, sealed[:-16], sealed[-16:]
    half = spec.key_size // 2
    mac_key, enc_key = cek[:half], cek[half:]
    iv = os.urandom(16)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return iv, ciphertext, _cbc_hmac_tag(spec, mac_key, aad, iv, ciphertext)


def _decrypt_content(spec: _ContentSpec, cek: bytes, iv: bytes, ciphertext: bytes, tag: bytes, aad: bytes) -> bytes:
    if spec.is_gcm:
        return AESGCM(cek).decrypt(iv, ciphertext + tag, aad)
    half = spec.key_size // 2
    mac_key, enc_key = cek[:half], cek[half:]
    if not bytes_eq(_cbc_hmac_tag(spec, mac_key, aad, iv, ciphertext), tag):
        raise InvalidTag()
    decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


def encrypt_compact(plaintext: bytes, public_key: KeyHandle,
                    enc: ContentEncryption = ContentEncryption.A256CBC_HS512) -> str:
    """Encrypt ``plaintext`` for the holder of the private half of ``public_key``."""
    if isinstance(public_key, ec.EllipticCurvePrivateKey):
        public_key = public_key.public_key()
    enc = ContentEncryption(enc)
    spec = _CONTENT[enc]
    ephemeral = ec.generate_private_key(public_key.curve)
    kek = _derive_kek(ephemeral.exchange(ec.ECDH(), public_key))
    cek = os.urandom(spec.key_size)
    header = {"alg": KEY_AGREEMENT_ALGORITHM, "enc": enc.value, "epk": export_jwk(ephemeral.public_key())}
    protected = b64url_encode(json.dumps(header, separators=(",", ":")).encode())
    iv, ciphertext, tag = _encrypt_content(spec, cek, plaintext, protected.encode("ascii"))
    return ".".join([protected, b64url_encode(aes_key_wrap(kek, cek)), b64url_encode(iv),
                     b64url_encode(ciphertext), b64url_encode(tag)])


def decrypt_compact(token: str, private_key: KeyHandle) -> tuple[bytes, dict[str, Any]]:
    """Decrypt a compact JWE. Returns (plaintext, protected_header)."""
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise DecryptionFailed("Decryption requires a private EC key")
    if not isinstance(token, str) or token.count(".") != 4:
        raise DecryptionFailed("Invalid JWE format")
    protected, encrypted_key_b64, iv_b64, ciphertext_b64, tag_b64 = token.split(".")
    try:
        header = read_header(token)
        if header.get("alg") != KEY_AGREEMENT_ALGORITHM:
            raise DecryptionFailed(f"Unsupported key agreement algorithm: {header.get('alg')!r}")
        spec = _CONTENT[ContentEncryption(header.get("enc"))]
        epk = header.get("epk")
        if not isinstance(epk, dict) or "d" in epk:
            raise DecryptionFailed("Invalid ephemeral public key")
        ephemeral = parse_jwk(epk)
        if ephemeral.curve.name != private_key.curve.name:
            raise DecryptionFailed("Ephemeral key curve does not match recipient key")
        kek = _derive_kek(private_key.exchange(ec.ECDH(), ephemeral))
        cek = aes_key_unwrap(kek, b64url_decode(encrypted_key_b64))
        if len(cek) != spec.key_size:
            raise DecryptionFailed("Content encryption key has wrong length")
        plaintext = _decrypt_content(spec, cek, b64url_decode(iv_b64), b64url_decode(ciphertext_b64),
                                     b64url_decode(tag_b64), protected.encode("ascii"))
    except DecryptionFailed:
        raise
    except (ValueError, KeyParseError, InvalidTag, InvalidUnwrap) as e:
        raise DecryptionFailed(f"Failed to decrypt: {type(e).__name__}") from e
    return plaintext, header
