"""Tests for Argon2id password hashing and its encoded form."""

from __future__ import annotations

import pytest

from backend.potaflow.auth.password import (
    Argon2Params,
    HashDecodeError,
    hash_password,
    verify_password,
)

FAST = Argon2Params(memory=256, iterations=1, parallelism=2, salt_length=16, key_length=32)


def test_hash_encodes_parameters():
    encoded = hash_password("hunter2", FAST)

    assert encoded.startswith("$argon2id$v=19$m=256,t=1,p=2$")
    parts = encoded.split("$")
    assert len(parts) == 6
    # Unpadded base64.
    assert "=" not in parts[4]
    assert "=" not in parts[5]


def test_verify_accepts_correct_password_and_rejects_wrong_one():
    encoded = hash_password("hunter2", FAST)

    assert verify_password("hunter2", encoded) is True
    assert verify_password("hunter3", encoded) is False
    assert verify_password("", encoded) is False


def test_same_password_gets_fresh_salt():
    first = hash_password("hunter2", FAST)
    second = hash_password("hunter2", FAST)

    assert first != second
    assert verify_password("hunter2", first)
    assert verify_password("hunter2", second)


def test_verify_uses_parameters_from_the_encoding():
    encoded = hash_password(
        "hunter2",
        Argon2Params(memory=512, iterations=2, parallelism=1, salt_length=8, key_length=24),
    )

    assert "$m=512,t=2,p=1$" in encoded
    assert verify_password("hunter2", encoded)


@pytest.mark.parametrize(
    "encoded",
    [
        "",
        "not-a-hash",
        "$argon2id$v=19$m=256,t=1,p=2$c2FsdA",
        "$argon2i$v=19$m=256,t=1,p=2$c2FsdHNhbHRzYWx0$aGFzaGhhc2g",
        "$argon2id$19$m=256,t=1,p=2$c2FsdHNhbHRzYWx0$aGFzaGhhc2g",
        "$argon2id$v=19$m=256;t=1;p=2$c2FsdHNhbHRzYWx0$aGFzaGhhc2g",
        "$argon2id$v=19$m=256,t=1,p=2$***$aGFzaGhhc2g",
        "$argon2id$v=19$m=256,t=1,p=2$c2FsdHNhbHRzYWx0$***",
    ],
)
def test_malformed_encodings_raise(encoded):
    with pytest.raises(HashDecodeError):
        verify_password("hunter2", encoded)


def test_loosely_formatted_fields_are_rejected():
    encoded = hash_password("hunter2", FAST)
    parts = encoded.split("$")

    variants = []
    for index, suffix in ((2, "\n"), (3, "\n"), (4, "=="), (5, "=")):
        mutated = list(parts)
        mutated[index] += suffix
        variants.append("$".join(mutated))

    for variant in variants:
        with pytest.raises(HashDecodeError):
            verify_password("hunter2", variant)


def test_params_from_mapping_defaults_and_overrides():
    assert Argon2Params.from_mapping({}) == Argon2Params()

    params = Argon2Params.from_mapping({"ARGON_MEMORY": "1024", "ARGON_ITERATIONS": "3"})
    assert params.memory == 1024
    assert params.iterations == 3
    assert params.parallelism == Argon2Params().parallelism


@pytest.mark.parametrize("value", ["abc", "0", "-4"])
def test_params_from_mapping_rejects_invalid_values(value):
    with pytest.raises(ValueError, match="ARGON_PARALLELISM"):
        Argon2Params.from_mapping({"ARGON_PARALLELISM": value})
