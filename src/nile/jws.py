"""Compact JWS signing and verification with ECDSA keys."""

import json
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature

from .exceptions import KeyParseError, SignatureInvalid, SigningError
from .jwk import b64url_decode, b64url_encode, curve_for_algorithm, curve_for_handle
from .types import KeyHandle


def sign_compact(payload: bytes, alg: str, private_key: KeyHandle) -> str:
    """Sign ``payload`` and return ``header.payload.signature``.

    The ECDSA signature is encoded as the fixed-length concatenation of
    ``r`` and ``s`` (RFC 7518 section 3.4), not DER.
    """
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise SigningError("Signing requires a private EC key")
    try:
        spec = curve_for_algorithm(alg)
    except KeyParseError as e:
        raise SigningError(str(e)) from e
    if curve_for_handle(private_key) != spec:
        raise SigningError(f"Algorithm {alg} does not match key curve {private_key.curve.name}")
    header_b64 = b64url_encode(json.dumps({"alg": spec.algorithm.value}, separators=(",", ":")).encode())
    signing_input = f"{header_b64}.{b64url_encode(payload)}"
    try:
        der = private_key.sign(signing_input.encode("ascii"), ec.ECDSA(spec.hash()))
    except ValueError as e:
        raise SigningError(f"Failed to sign: {e}") from e
    r, s = decode_dss_signature(der)
    return f"{signing_input}.{b64url_encode(r.to_bytes(spec.size, 'big') + s.to_bytes(spec.size, 'big'))}"


def read_header(token: str) -> dict[str, Any]:
    """Decode the protected header of a compact token without verifying anything."""
    header = json.loads(b64url_decode(token.split(".", 1)[0]))
    if not isinstance(header, dict):
        raise ValueError("Protected header must be a JSON object")
    return header


def verify_compact(token: str, public_key: KeyHandle) -> tuple[bytes, dict[str, Any]]:
    """Verify a compact JWS. Returns (payload, protected_header).

    The header ``alg`` must match the curve of ``public_key``; anything else
    is rejected rather than negotiated.
    """
    if isinstance(public_key, ec.EllipticCurvePrivateKey):
        public_key = public_key.public_key()
    if not isinstance(token, str) or token.count(".") != 2:
        raise SignatureInvalid("Invalid JWS format")
    header_b64, payload_b64, signature_b64 = token.split(".")
    try:
        header = read_header(token)
        spec = curve_for_algorithm(header.get("alg"))
        payload = b64url_decode(payload_b64)
        signature = b64url_decode(signature_b64)
    except (ValueError, KeyParseError) as e:
        raise SignatureInvalid(f"Invalid JWS: {e}") from e
    if "crit" in header:
        raise SignatureInvalid("Unsupported critical header parameters")
    if curve_for_handle(public_key) != spec:
        raise SignatureInvalid(f"Algorithm {spec.algorithm.value} does not match signer key")
    if len(signature) != 2 * spec.size:
        raise SignatureInvalid("Invalid signature length")
    der = encode_dss_signature(int.from_bytes(signature[:spec.size], "big"), int.from_bytes(signature[spec.size:], "big"))
    try:
        public_key.verify(der, f"{header_b64}.{payload_b64}".encode("ascii"), ec.ECDSA(spec.hash()))
    except InvalidSignature as e:
        raise SignatureInvalid("Signature verification failed") from e
    return payload, header
