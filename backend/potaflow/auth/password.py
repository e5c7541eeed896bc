"""Argon2id password hashing with a self-describing encoded form.

Encoded hashes look like::

    $argon2id$v=19$m=65536,t=1,p=4$<base64 salt>$<base64 hash>

Salt and hash use standard base64 without padding. The encoding carries every
parameter needed to verify it, so hashes produced before a parameter change
keep verifying afterwards.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import re
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, Type, hash_secret_raw

ALGORITHM = "argon2id"

_PARAMS_RE = re.compile(r"m=(\d+),t=(\d+),p=(\d+)", re.ASCII)
_VERSION_RE = re.compile(r"v=(\d+)", re.ASCII)


class PasswordHashError(Exception):
    """Raised when a password cannot be hashed with the given parameters."""


class HashDecodeError(PasswordHashError):
    """Raised when a stored hash is not a valid encoded Argon2id hash."""


@dataclass(frozen=True)
class Argon2Params:
    """Tunable Argon2id cost parameters."""

    memory: int = 64 * 1024  # KiB
    iterations: int = 1
    parallelism: int = 4
    salt_length: int = 16
    key_length: int = 32

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Argon2Params:
        """Build parameters from ``ARGON_*`` keys, keeping defaults for missing ones."""

        defaults = cls()
        values: dict[str, int] = {}
        for field_name, key in (
            ("memory", "ARGON_MEMORY"),
            ("iterations", "ARGON_ITERATIONS"),
            ("parallelism", "ARGON_PARALLELISM"),
            ("salt_length", "ARGON_SALT_LENGTH"),
            ("key_length", "ARGON_KEY_LENGTH"),
        ):
            raw = mapping.get(key)
            if raw is None or raw == "":
                values[field_name] = getattr(defaults, field_name)
                continue
            try:
                parsed = int(raw)
            except (TypeError, ValueError):
                raise ValueError(f"invalid {key}: {raw!r}") from None
            if parsed <= 0:
                raise ValueError(f"invalid {key}: must be positive")
            values[field_name] = parsed
        return cls(**values)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def _b64decode(value: str, label: str) -> bytes:
    if "=" in value:
        raise HashDecodeError(f"decode {label}: unexpected padding")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HashDecodeError(f"decode {label}: {exc}") from exc


def _derive(
    password: str,
    salt: bytes,
    *,
    memory: int,
    iterations: int,
    parallelism: int,
    key_length: int,
    version: int = ARGON2_VERSION,
) -> bytes:
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=iterations,
        memory_cost=memory,
        parallelism=parallelism,
        hash_len=key_length,
        type=Type.ID,
        version=version,
    )


def hash_password(password: str, params: Argon2Params | None = None) -> str:
    """Hash ``password`` with a fresh random salt and return the encoded form."""

    params = params or Argon2Params()
    salt = secrets.token_bytes(params.salt_length)
    try:
        key = _derive(
            password,
            salt,
            memory=params.memory,
            iterations=params.iterations,
            parallelism=params.parallelism,
            key_length=params.key_length,
        )
    except HashingError as exc:
        raise PasswordHashError(f"hash password: {exc}") from exc

    return (
        f"${ALGORITHM}$v={ARGON2_VERSION}"
        f"$m={params.memory},t={params.iterations},p={params.parallelism}"
        f"${_b64encode(salt)}${_b64encode(key)}"
    )


def _decode(encoded: str) -> tuple[int, Argon2Params, bytes, bytes]:
    parts = encoded.split("$")
    if len(parts) != 6 or parts[0] != "":
        raise HashDecodeError("invalid hash format")

    if parts[1] != ALGORITHM:
        raise HashDecodeError(f"unsupported algorithm {parts[1]!r}")

    version_match = _VERSION_RE.fullmatch(parts[2])
    if version_match is None:
        raise HashDecodeError("parse version: unexpected format")

    params_match = _PARAMS_RE.fullmatch(parts[3])
    if params_match is None:
        raise HashDecodeError("parse parameters: unexpected format")
    memory, iterations, parallelism = (int(group) for group in params_match.groups())

    salt = _b64decode(parts[4], "salt")
    key = _b64decode(parts[5], "hash")

    params = Argon2Params(
        memory=memory,
        iterations=iterations,
        parallelism=parallelism,
        salt_length=len(salt),
        key_length=len(key),
    )
    return int(version_match.group(1)), params, salt, key


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against an encoded hash.

    Returns ``False`` on mismatch. A malformed encoding raises
    :class:`HashDecodeError` instead, since it points at corrupt stored data
    rather than a wrong password.
    """

    version, params, salt, expected = _decode(encoded)
    try:
        candidate = _derive(
            password,
            salt,
            memory=params.memory,
            iterations=params.iterations,
            parallelism=params.parallelism,
            key_length=params.key_length,
            version=version,
        )
    except HashingError as exc:
        raise HashDecodeError(f"stored parameters rejected: {exc}") from exc

    return hmac.compare_digest(candidate, expected)
