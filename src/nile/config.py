"""Configuration and key pair file handling."""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .clock import now_ms
from .exceptions import ConfigError
from .types import ContentEncryption, KeyPairFile

logger = logging.getLogger(__name__)

DEFAULT_ANNOUNCEMENT_TTL_SECONDS = 120


@dataclass(frozen=True)
class NileConfig:
    """Settings for one ``Nile`` participant.

    ``key_pair_path`` points at a JSON file holding ``privateKey`` and
    ``publicKey`` JWKs, as written by ``nile keygen``.
    """

    id: str
    key_pair_path: Path
    content_encryption: ContentEncryption = ContentEncryption.A256CBC_HS512
    announcement_ttl_seconds: int = DEFAULT_ANNOUNCEMENT_TTL_SECONDS


def _parse_content_encryption(value: Optional[str], default: ContentEncryption) -> ContentEncryption:
    """Parse a content encryption name.

    Returns *default* when the value is empty or unset. Logs a warning and
    returns *default* for unrecognised names.
    """
    if not value:
        return default
    try:
        return ContentEncryption(value.upper())
    except ValueError:
        logger.warning(
            "Unrecognised content encryption %r, using default %s. Expected one of: %s.",
            value,
            default.value,
            ", ".join(e.value for e in ContentEncryption),
        )
        return default


def _parse_ttl(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_ANNOUNCEMENT_TTL_SECONDS
    try:
        ttl = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Announcement TTL must be an integer, got {value!r}") from e
    if ttl <= 0:
        raise ConfigError("Announcement TTL must be positive")
    return ttl


def _build_config(values: Mapping[str, Any], source: str) -> NileConfig:
    missing = [name for name in ("id", "keypair_file") if not values.get(name)]
    if missing:
        raise ConfigError(f"Missing in {source}: {', '.join(missing)}")
    return NileConfig(
        id=str(values["id"]),
        key_pair_path=Path(values["keypair_file"]).expanduser(),
        content_encryption=_parse_content_encryption(values.get("content_encryption"),
                                                     ContentEncryption.A256CBC_HS512),
        announcement_ttl_seconds=_parse_ttl(values.get("announcement_ttl")),
    )


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> NileConfig:
    """Read ``NILE_ID``, ``NILE_KEYPAIR_FILE``, ``NILE_CONTENT_ENCRYPTION`` and ``NILE_ANNOUNCEMENT_TTL``."""
    env = os.environ if environ is None else environ
    missing = [name for name in ("NILE_ID", "NILE_KEYPAIR_FILE") if not env.get(name)]
    if missing:
        raise ConfigError(f"Missing: {', '.join(missing)}")
    return _build_config(
        {
            "id": env.get("NILE_ID"),
            "keypair_file": env.get("NILE_KEYPAIR_FILE"),
            "content_encryption": env.get("NILE_CONTENT_ENCRYPTION"),
            "announcement_ttl": env.get("NILE_ANNOUNCEMENT_TTL"),
        },
        "environment",
    )


def load_config_file(path: Path) -> NileConfig:
    """Read the same settings from a YAML file with lower-case keys."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config not found at {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Invalid config: expected a mapping")
    return _build_config(data, str(path))


def load_key_pair(path: Path) -> KeyPairFile:
    """Load a key pair file. Raises ConfigError if it is missing or malformed."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Key pair file not found at {path}. Run 'nile keygen' first.")
    try:
        with open(path) as f:
            data = json.load(f)
    except ValueError as e:
        raise ConfigError(f"Invalid key pair file: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Invalid key pair file: expected a JSON object")
    for name in ("privateKey", "publicKey"):
        if not isinstance(data.get(name), dict):
            raise ConfigError(f"Invalid key pair file: missing {name}")
    return KeyPairFile(privateKey=data["privateKey"], publicKey=data["publicKey"])


def save_key_pair(key_pair: KeyPairFile, directory: Path) -> Path:
    """Write ``keypair_<epoch_ms>.json`` into *directory* with owner-only permissions."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"keypair_{now_ms()}.json"
    with open(path, "w") as f:
        json.dump(key_pair, f)
    path.chmod(0o600)
    return path
