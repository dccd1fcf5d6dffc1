"""Tests for configuration and key pair files."""

import json
import logging
from pathlib import Path

import pytest

from nile.config import (
    DEFAULT_ANNOUNCEMENT_TTL_SECONDS, NileConfig, load_config_file, load_config_from_env, load_key_pair,
    save_key_pair,
)
from nile.exceptions import ConfigError
from nile.facade import Nile
from nile.jwk import generate_key_pair
from nile.types import ContentEncryption, KeyPairFile


@pytest.fixture
def key_pair_path(tmp_path: Path) -> Path:
    private_key, public_key = generate_key_pair("ES256")
    return save_key_pair(KeyPairFile(privateKey=private_key, publicKey=public_key), tmp_path)


class TestLoadConfigFromEnv:
    def test_minimal_environment(self, tmp_path: Path) -> None:
        config = load_config_from_env({"NILE_ID": "svc", "NILE_KEYPAIR_FILE": str(tmp_path / "k.json")})
        assert config == NileConfig(id="svc", key_pair_path=tmp_path / "k.json")
        assert config.content_encryption == ContentEncryption.A256CBC_HS512
        assert config.announcement_ttl_seconds == DEFAULT_ANNOUNCEMENT_TTL_SECONDS

    def test_missing_variables(self) -> None:
        with pytest.raises(ConfigError, match="NILE_ID, NILE_KEYPAIR_FILE"):
            load_config_from_env({})

    def test_reads_os_environ(self, monkeypatch) -> None:
        monkeypatch.setenv("NILE_ID", "from-env")
        monkeypatch.setenv("NILE_KEYPAIR_FILE", "/tmp/k.json")
        assert load_config_from_env().id == "from-env"

    def test_overrides(self) -> None:
        config = load_config_from_env({
            "NILE_ID": "svc", "NILE_KEYPAIR_FILE": "k.json",
            "NILE_CONTENT_ENCRYPTION": "a128gcm", "NILE_ANNOUNCEMENT_TTL": "30",
        })
        assert config.content_encryption == ContentEncryption.A128GCM
        assert config.announcement_ttl_seconds == 30

    def test_unknown_content_encryption_falls_back(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="nile.config"):
            config = load_config_from_env({
                "NILE_ID": "svc", "NILE_KEYPAIR_FILE": "k.json", "NILE_CONTENT_ENCRYPTION": "A256GMC",
            })
        assert config.content_encryption == ContentEncryption.A256CBC_HS512
        assert "Unrecognised content encryption" in caplog.text

    @pytest.mark.parametrize("ttl", ["soon", "0", "-5"])
    def test_invalid_ttl(self, ttl: str) -> None:
        with pytest.raises(ConfigError):
            load_config_from_env({"NILE_ID": "svc", "NILE_KEYPAIR_FILE": "k.json", "NILE_ANNOUNCEMENT_TTL": ttl})


class TestLoadConfigFile:
    def test_reads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "nile.yaml"
        path.write_text("id: svc\nkeypair_file: keys.json\ncontent_encryption: A192GCM\nannouncement_ttl: 60\n")
        config = load_config_file(path)
        assert config.id == "svc"
        assert config.key_pair_path == Path("keys.json")
        assert config.content_encryption == ContentEncryption.A192GCM
        assert config.announcement_ttl_seconds == 60

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config_file(tmp_path / "missing.yaml")

    def test_missing_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "nile.yaml"
        path.write_text("id: svc\n")
        with pytest.raises(ConfigError, match="keypair_file"):
            load_config_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "nile.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config_file(path)


class TestKeyPairFile:
    def test_save_and_load(self, key_pair_path: Path) -> None:
        assert key_pair_path.name.startswith("keypair_") and key_pair_path.suffix == ".json"
        assert key_pair_path.stat().st_mode & 0o777 == 0o600
        key_pair = load_key_pair(key_pair_path)
        assert key_pair["privateKey"]["alg"] == key_pair["publicKey"]["alg"] == "ES256"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="nile keygen"):
            load_key_pair(tmp_path / "none.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_key_pair(path)

    def test_missing_member(self, tmp_path: Path) -> None:
        path = tmp_path / "half.json"
        path.write_text(json.dumps({"privateKey": {}}))
        with pytest.raises(ConfigError, match="publicKey"):
            load_key_pair(path)


class TestNileFromConfig:
    @pytest.mark.asyncio
    async def test_builds_working_facade(self, key_pair_path: Path) -> None:
        nile = Nile.from_config(NileConfig(id="svc", key_pair_path=key_pair_path,
                                           content_encryption=ContentEncryption.A256GCM))
        assert nile.id == "svc"
        assert nile.encoder.content_encryption == ContentEncryption.A256GCM
        assert await nile.handle_message(await nile.prepare_message({"ok": 1}, "svc"), "svc") == {"ok": 1}
