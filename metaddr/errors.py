"""Error types for the metadata address codec.

Every failure raised by the codec carries an ``ErrorKind`` so callers can
branch on the category without matching message text. The exception classes
all derive from ``MetadataAddressError`` (itself a ``ValueError``), so a
single ``except MetadataAddressError`` covers any rejected input.

``InvariantViolation`` is different: it is raised by the ``must_*`` helpers
when a caller that promised valid input passed something invalid. It is a
programming error and is never caught inside this package.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Categories of codec failure."""
    EMPTY = "empty"
    UNKNOWN_TYPE = "unknown_type"
    LENGTH_MISMATCH = "length_mismatch"
    MALFORMED_UUID = "malformed_uuid"
    INVALID_INPUT = "invalid_input"
    DECODE_ERROR = "decode_error"
    PREFIX_MISMATCH = "prefix_mismatch"
    WRONG_TYPE = "wrong_type"
    NIL_ENTRY = "nil_entry"
    DUPLICATE_ADDRESS = "duplicate_address"
    MISSING_ACCOUNT = "missing_account"
    NOT_A_SCOPE_ADDRESS = "not_a_scope_address"
    NOT_A_DENOM = "not_a_denom"


class MetadataAddressError(ValueError):
    """Base exception for rejected metadata address input."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def error_code(self) -> str:
        return self.kind.value


class EmptyAddressError(MetadataAddressError):
    """Address bytes or text were empty."""
    kind = ErrorKind.EMPTY


class UnknownTypeError(MetadataAddressError):
    """The type tag byte is not one of the known address types."""
    kind = ErrorKind.UNKNOWN_TYPE


class LengthMismatchError(MetadataAddressError):
    """The byte length does not match what the type tag requires."""
    kind = ErrorKind.LENGTH_MISMATCH


class MalformedUUIDError(MetadataAddressError):
    """A UUID slot could not be read as a 16 byte UUID."""
    kind = ErrorKind.MALFORMED_UUID


class InvalidInputError(MetadataAddressError):
    """A required argument was missing or unusable (e.g. an empty name)."""
    kind = ErrorKind.INVALID_INPUT


class DecodeError(MetadataAddressError):
    """Text (bech32, hex or base64) could not be decoded."""
    kind = ErrorKind.DECODE_ERROR


class PrefixMismatchError(MetadataAddressError):
    """The bech32 HRP disagrees with the type encoded in the bytes."""
    kind = ErrorKind.PREFIX_MISMATCH


class WrongTypeError(MetadataAddressError):
    """The address type does not carry the requested component."""
    kind = ErrorKind.WRONG_TYPE


class NotADenomError(MetadataAddressError):
    """A denom string lacks the metadata address denom prefix."""
    kind = ErrorKind.NOT_A_DENOM


class NotAScopeAddressError(MetadataAddressError):
    """An address expected to be a valid scope address is not one."""
    kind = ErrorKind.NOT_A_SCOPE_ADDRESS


class LinkValidationError(MetadataAddressError):
    """Base class for ownership link list failures."""


class NilEntryError(LinkValidationError):
    kind = ErrorKind.NIL_ENTRY


class DuplicateAddressError(LinkValidationError):
    kind = ErrorKind.DUPLICATE_ADDRESS


class MissingAccountError(LinkValidationError):
    kind = ErrorKind.MISSING_ACCOUNT


class InvariantViolation(RuntimeError):
    """A ``must_*`` helper received input its caller guaranteed was valid."""
    pass


__all__ = [
    "ErrorKind",
    "MetadataAddressError",
    "EmptyAddressError",
    "UnknownTypeError",
    "LengthMismatchError",
    "MalformedUUIDError",
    "InvalidInputError",
    "DecodeError",
    "PrefixMismatchError",
    "WrongTypeError",
    "NotADenomError",
    "NotAScopeAddressError",
    "LinkValidationError",
    "NilEntryError",
    "DuplicateAddressError",
    "MissingAccountError",
    "InvariantViolation",
]
