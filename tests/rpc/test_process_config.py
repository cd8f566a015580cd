from __future__ import annotations

import pytest
from pydantic import ValidationError

from docbuf.compiler import compile_source
from docbuf.rpc import ProcessConfig, process_config_from_mapping, transport_settings
from docbuf.schema import SchemaModel


def test_defaults() -> None:
    config = ProcessConfig()
    assert config.host == "127.0.0.1"
    assert config.port == 4433
    assert config.protocol == "quic"
    assert config.crypto == "ed25519"
    assert config.hash == "sha256"
    assert config.keypair is None


def test_from_mapping_normalizes_values() -> None:
    config = process_config_from_mapping(
        {"host": " ::1 ", "ipv6": True, "protocol": "TCP", "crypto": "ECDSA-P256", "hash": "SHA3_256"}
    )
    assert config.host == "::1"
    assert config.protocol == "tcp"
    assert config.crypto == "ecdsa-p256"
    assert config.hash == "sha3-256"


def test_unquoted_algorithm_names_use_underscores(make_schema) -> None:
    assert ProcessConfig(crypto="ecdsa_p256").crypto == "ecdsa-p256"

    model = compile_source(
        make_schema(
            """
            #[document::options { root = true; }]
            document Ping {}

            #[process::options { crypto = ecdsa_p256; hash = sha3_256; }]
            process Health { check: Ping -> (), }
            """
        )
    )
    config = model.process("Health").config
    assert (config.crypto, config.hash) == ("ecdsa-p256", "sha3-256")


@pytest.mark.parametrize(
    "values",
    [
        {"port": 0},
        {"port": 70000},
        {"crypto": "rsa"},
        {"hash": "md5"},
        {"protocol": ""},
        {"colour": "blue"},
    ],
)
def test_invalid_mappings(values: dict) -> None:
    with pytest.raises(ValidationError):
        process_config_from_mapping(values)


def test_config_is_frozen() -> None:
    with pytest.raises(ValidationError):
        ProcessConfig().port = 1


def test_transport_settings_drop_unset_paths(shop_model: SchemaModel) -> None:
    settings = transport_settings(shop_model.process("Orders").config)
    assert settings == {
        "host": "127.0.0.1",
        "port": 8443,
        "ipv6": False,
        "protocol": "quic",
        "crypto": "ed25519",
        "hash": "sha256",
        "noise": False,
    }
    assert transport_settings(ProcessConfig(keypair="keys/orders.pem"))["keypair"] == "keys/orders.pem"
