"""Core primitives for metaddr.

This module provides the foundational utilities used throughout the package:
- Name normalization and name hashing (truncated SHA-256)
- UUID coercion with a length-only byte check
- YAML/JSON loading with consistent encoding

Design principles:
- Pure functions where possible
- No global mutable state
- Explicit error handling
"""

from __future__ import annotations

import hashlib
import json
import pathlib
import uuid
from typing import Any, Union

import yaml

from metaddr.errors import InvalidInputError, MalformedUUIDError

# Package root, computed once at module load
PACKAGE_ROOT = pathlib.Path(__file__).resolve().parent

UUID_LENGTH = 16
NAME_HASH_LENGTH = 16

UUIDLike = Union[uuid.UUID, str, bytes]


def sha256_bytes(data: bytes) -> bytes:
    """Compute the raw SHA-256 digest of bytes."""
    return hashlib.sha256(data).digest()


def normalize_name(name: str) -> str:
    """Normalize a record or record specification name (trim, lowercase)."""
    return (name or "").strip().lower()


def name_hash(name: str) -> bytes:
    """Hash a name into the 16 byte form stored in record addresses.

    The name is normalized first, so ``"Foo"``, ``" foo "`` and ``"FOO"``
    all produce the same hash.

    Raises:
        InvalidInputError: if the normalized name is empty.
    """
    normalized = normalize_name(name)
    if not normalized:
        raise InvalidInputError("missing name value for name hash")
    return sha256_bytes(normalized.encode("utf-8"))[:NAME_HASH_LENGTH]


def uuid_from_bytes(bz: bytes) -> uuid.UUID:
    """Interpret exactly 16 bytes as a UUID.

    Only the length is checked; version and variant bits are not enforced,
    so hash-derived identifiers are accepted too.
    """
    if len(bz) != UUID_LENGTH:
        raise MalformedUUIDError(
            f"invalid UUID (got {len(bz)} bytes, expected {UUID_LENGTH})"
        )
    return uuid.UUID(bytes=bytes(bz))


def coerce_uuid(value: UUIDLike) -> uuid.UUID:
    """Coerce a UUID, UUID string or 16 raw bytes into a ``uuid.UUID``."""
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return uuid_from_bytes(bytes(value))
        except MalformedUUIDError as e:
            raise InvalidInputError(str(e)) from e
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise InvalidInputError("empty UUID string")
        try:
            return uuid.UUID(s)
        except ValueError as e:
            raise InvalidInputError(f"invalid UUID string {value!r}: {e}") from e
    raise InvalidInputError(f"cannot use {type(value).__name__} as a UUID")


def load_yaml(path: pathlib.Path) -> Any:
    """Load YAML file with UTF-8 encoding."""
    return yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))


def load_json(path: pathlib.Path) -> Any:
    """Load JSON file with UTF-8 encoding."""
    return json.loads(pathlib.Path(path).read_text(encoding="utf-8"))


def load_document(path: pathlib.Path) -> Any:
    """Load a JSON or YAML document, picking the parser by file suffix."""
    p = pathlib.Path(path)
    if p.suffix.lower() == ".json":
        return load_json(p)
    return load_yaml(p)
