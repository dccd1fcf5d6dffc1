"""JSON Web Key parsing, export and RFC 7638 thumbprints for EC keys."""

import base64
import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any, Mapping

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from .exceptions import KeyParseError
from .types import JsonWebKey, KeyHandle, SigningAlgorithm

_B64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class CurveSpec:
    name: str
    curve: type[ec.EllipticCurve]
    size: int
    algorithm: SigningAlgorithm
    hash: type[hashes.HashAlgorithm]


CURVES: dict[str, CurveSpec] = {
    "P-256": CurveSpec("P-256", ec.SECP256R1, 32, SigningAlgorithm.ES256, hashes.SHA256),
    "P-384": CurveSpec("P-384", ec.SECP384R1, 48, SigningAlgorithm.ES384, hashes.SHA384),
    "P-521": CurveSpec("P-521", ec.SECP521R1, 66, SigningAlgorithm.ES512, hashes.SHA512),
}
_CURVES_BY_ALGORITHM = {spec.algorithm.value: spec for spec in CURVES.values()}
_CURVES_BY_OPENSSL_NAME = {spec.curve.name: spec for spec in CURVES.values()}
_THUMBPRINT_MEMBERS = ("crv", "kty", "x", "y")


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """Decode unpadded base64url, rejecting foreign characters and non-canonical input."""
    if not isinstance(data, str) or not _B64URL_PATTERN.match(data):
        raise ValueError("Invalid base64url characters")
    raw = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    if b64url_encode(raw) != data:
        raise ValueError("Non-canonical base64url encoding")
    return raw


def curve_for_algorithm(alg: str) -> CurveSpec:
    try:
        return _CURVES_BY_ALGORITHM[alg]
    except (KeyError, TypeError) as e:
        raise KeyParseError(f"Unsupported signing algorithm: {alg!r}") from e


def curve_for_handle(handle: KeyHandle) -> CurveSpec:
    try:
        return _CURVES_BY_OPENSSL_NAME[handle.curve.name]
    except (KeyError, AttributeError) as e:
        raise KeyParseError(f"Unsupported key: {type(handle).__name__}") from e


def _curve_for_jwk(jwk: Mapping[str, Any]) -> CurveSpec:
    if not isinstance(jwk, Mapping):
        raise KeyParseError("Key description must be a JSON object")
    if jwk.get("kty") != "EC":
        raise KeyParseError(f"Unsupported key type: {jwk.get('kty')!r}")
    crv = jwk.get("crv")
    if not isinstance(crv, str) or crv not in CURVES:
        raise KeyParseError(f"Unsupported curve: {crv!r}")
    spec = CURVES[crv]
    alg = jwk.get("alg")
    if alg is not None and alg != spec.algorithm.value:
        raise KeyParseError(f"Algorithm {alg!r} does not match curve {crv}")
    return spec


def _coordinate(jwk: Mapping[str, Any], member: str, size: int) -> int:
    value = jwk.get(member)
    if not isinstance(value, str):
        raise KeyParseError(f"Missing key member {member!r}")
    try:
        raw = b64url_decode(value)
    except ValueError as e:
        raise KeyParseError(f"Invalid encoding of key member {member!r}: {e}") from e
    if len(raw) != size:
        raise KeyParseError(f"Key member {member!r} must be {size} bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def parse_jwk(jwk: Mapping[str, Any]) -> KeyHandle:
    """Build a usable key from a JWK. Returns a private key when ``d`` is present."""
    spec = _curve_for_jwk(jwk)
    x = _coordinate(jwk, "x", spec.size)
    y = _coordinate(jwk, "y", spec.size)
    try:
        public_numbers = ec.EllipticCurvePublicNumbers(x, y, spec.curve())
        if "d" in jwk:
            d = _coordinate(jwk, "d", spec.size)
            return ec.EllipticCurvePrivateNumbers(d, public_numbers).private_key()
        return public_numbers.public_key()
    except ValueError as e:
        raise KeyParseError(f"Invalid {spec.name} key: {e}") from e


def signing_algorithm(jwk: Mapping[str, Any]) -> str:
    """Signature algorithm a JWK is meant for: its ``alg`` or the curve default."""
    return _curve_for_jwk(jwk).algorithm.value


def public_jwk(jwk: Mapping[str, Any]) -> JsonWebKey:
    return {k: v for k, v in jwk.items() if k != "d"}


def calculate_thumbprint(jwk: Mapping[str, Any]) -> str:
    """RFC 7638 thumbprint: SHA-256 of the required public members in canonical JSON."""
    _curve_for_jwk(jwk)
    members = {}
    for name in _THUMBPRINT_MEMBERS:
        if not isinstance(jwk.get(name), str):
            raise KeyParseError(f"Missing key member {name!r}")
        members[name] = jwk[name]
    canonical = json.dumps(members, separators=(",", ":"), sort_keys=True)
    return b64url_encode(hashlib.sha256(canonical.encode("utf-8")).digest())


def export_jwk(handle: KeyHandle, alg: str | None = None) -> JsonWebKey:
    """Serialise a key handle to a JWK. Private handles include ``d``."""
    spec = curve_for_handle(handle)
    if isinstance(handle, ec.EllipticCurvePrivateKey):
        private_numbers = handle.private_numbers()
        numbers = private_numbers.public_numbers
    else:
        private_numbers = None
        numbers = handle.public_numbers()
    jwk: JsonWebKey = {
        "kty": "EC",
        "crv": spec.name,
        "x": b64url_encode(numbers.x.to_bytes(spec.size, "big")),
        "y": b64url_encode(numbers.y.to_bytes(spec.size, "big")),
    }
    if private_numbers is not None:
        jwk["d"] = b64url_encode(private_numbers.private_value.to_bytes(spec.size, "big"))
    if alg is not None:
        jwk["alg"] = alg
    return jwk


def generate_key_pair(alg: str = SigningAlgorithm.ES512.value) -> tuple[JsonWebKey, JsonWebKey]:
    """Generate a new EC key pair tagged with ``alg``. Returns (private_jwk, public_jwk)."""
    spec = curve_for_algorithm(alg)
    private_key = ec.generate_private_key(spec.curve())
    return export_jwk(private_key, spec.algorithm.value), export_jwk(private_key.public_key(), spec.algorithm.value)
