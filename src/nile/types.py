"""Type definitions and enums for the Nile messaging library."""

from enum import Enum
from typing import TypedDict, Union

from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey


class KeyRole(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class SigningAlgorithm(str, Enum):
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"


class ContentEncryption(str, Enum):
    """Authenticated content encryption algorithms for the inner envelope."""
    A128CBC_HS256 = "A128CBC-HS256"
    A192CBC_HS384 = "A192CBC-HS384"
    A256CBC_HS512 = "A256CBC-HS512"
    A128GCM = "A128GCM"
    A192GCM = "A192GCM"
    A256GCM = "A256GCM"


class JsonWebKey(TypedDict, total=False):
    kty: str
    crv: str
    x: str
    y: str
    d: str
    alg: str


class KeyPairFile(TypedDict):
    privateKey: JsonWebKey
    publicKey: JsonWebKey


KeyHandle = Union[EllipticCurvePublicKey, EllipticCurvePrivateKey]
