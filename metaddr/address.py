"""Typed metadata addresses.

A metadata address is a fixed-layout byte string identifying one entity in
the metadata graph. Byte 0 is the type tag; it determines the total length,
the component layout, and the bech32 human readable prefix (HRP):

    ============================  ===  =====  ==============================
    type                          tag  bytes  payload
    ============================  ===  =====  ==============================
    scope                         00   17     scope uuid
    session                       01   33     scope uuid + session uuid
    record                        02   33     scope uuid + name hash
    contract specification        03   17     contract spec uuid
    scope specification           04   17     scope spec uuid
    record specification          05   33     contract spec uuid + name hash
    ============================  ===  =====  ==============================

The raw bytes are used verbatim as keys in an ordered store, so the layout
above is a persisted format. Child entities share their parent's uuid right
after the tag, which makes ``tag + parent uuid`` a range-scan prefix for all
of a parent's children.

Text form is bech32 with the type's HRP. When parsing text the HRP is
checked against the type derived from the bytes; the bytes win.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Tuple, TypeVar, Union

from metaddr.core import (
    NAME_HASH_LENGTH,
    UUID_LENGTH,
    UUIDLike,
    coerce_uuid,
    name_hash,
    normalize_name,
    uuid_from_bytes,
)
from metaddr.encoding import convert_and_encode, decode_and_convert
from metaddr.errors import (
    DecodeError,
    EmptyAddressError,
    InvalidInputError,
    InvariantViolation,
    LengthMismatchError,
    MetadataAddressError,
    NotADenomError,
    NotAScopeAddressError,
    PrefixMismatchError,
    UnknownTypeError,
    WrongTypeError,
)

if TYPE_CHECKING:
    from metaddr.details import MetadataAddressDetails

# Bech32 human readable prefixes
PREFIX_SCOPE = "scope"
PREFIX_SESSION = "session"
PREFIX_RECORD = "record"
PREFIX_SCOPE_SPECIFICATION = "scopespec"
PREFIX_CONTRACT_SPECIFICATION = "contractspec"
PREFIX_RECORD_SPECIFICATION = "recspec"

# String prepended to a metadata address to form the denom for that object.
DENOM_PREFIX = "nft/"

# Key prefixes (the tag byte of each type)
SCOPE_KEY_PREFIX = b"\x00"
SESSION_KEY_PREFIX = b"\x01"
RECORD_KEY_PREFIX = b"\x02"
CONTRACT_SPECIFICATION_KEY_PREFIX = b"\x03"
SCOPE_SPECIFICATION_KEY_PREFIX = b"\x04"
RECORD_SPECIFICATION_KEY_PREFIX = b"\x05"

_PRIMARY = slice(1, 1 + UUID_LENGTH)
_SECONDARY = slice(1 + UUID_LENGTH, 1 + UUID_LENGTH + NAME_HASH_LENGTH)
SHORT_ADDRESS_LENGTH = 1 + UUID_LENGTH
LONG_ADDRESS_LENGTH = 1 + UUID_LENGTH + UUID_LENGTH


class Component(Enum):
    """What occupies the 16 bytes after the primary uuid."""
    NONE = "none"
    UUID = "uuid"
    NAME_HASH = "name_hash"


class AddressType(Enum):
    """The closed set of metadata address types.

    Each member carries (tag byte, hrp, second component, formal name).
    """
    SCOPE = (0x00, PREFIX_SCOPE, Component.NONE, "scope")
    SESSION = (0x01, PREFIX_SESSION, Component.UUID, "session")
    RECORD = (0x02, PREFIX_RECORD, Component.NAME_HASH, "record")
    CONTRACT_SPECIFICATION = (
        0x03, PREFIX_CONTRACT_SPECIFICATION, Component.NONE, "contract specification",
    )
    SCOPE_SPECIFICATION = (
        0x04, PREFIX_SCOPE_SPECIFICATION, Component.NONE, "scope specification",
    )
    RECORD_SPECIFICATION = (
        0x05, PREFIX_RECORD_SPECIFICATION, Component.NAME_HASH, "record specification",
    )

    def __init__(self, tag: int, hrp: str, secondary: Component, formal_name: str):
        self.tag = tag
        self.hrp = hrp
        self.secondary = secondary
        self.formal_name = formal_name

    @property
    def key_prefix(self) -> bytes:
        return bytes([self.tag])

    @property
    def required_length(self) -> int:
        if self.secondary is Component.NONE:
            return SHORT_ADDRESS_LENGTH
        return LONG_ADDRESS_LENGTH

    @property
    def payload_length(self) -> int:
        return self.required_length - 1

    @classmethod
    def from_tag(cls, tag: int) -> "AddressType":
        try:
            return _BY_TAG[tag]
        except KeyError:
            raise UnknownTypeError(f"invalid metadata address type: {tag}") from None

    @classmethod
    def from_hrp(cls, hrp: str) -> "AddressType":
        for member in cls:
            if member.hrp == hrp:
                return member
        raise UnknownTypeError(f"unknown metadata address prefix {hrp!r}")


_BY_TAG = {member.tag: member for member in AddressType}

SCOPE_TYPES = (AddressType.SCOPE, AddressType.SESSION, AddressType.RECORD)
CONTRACT_SPEC_TYPES = (AddressType.CONTRACT_SPECIFICATION, AddressType.RECORD_SPECIFICATION)


def verify_format(bz: bytes) -> str:
    """Check bytes for proper metadata address format.

    Returns:
        The bech32 HRP of the address type.

    Raises:
        EmptyAddressError: zero length input.
        UnknownTypeError: byte 0 is not a known tag.
        LengthMismatchError: total length differs from the type's length.
        MalformedUUIDError: a uuid slot is not 16 bytes.
    """
    if len(bz) == 0:
        raise EmptyAddressError("address is empty")
    address_type = AddressType.from_tag(bz[0])
    required = address_type.required_length
    if len(bz) != required:
        raise LengthMismatchError(
            f"incorrect address length (expected: {required}, actual: {len(bz)})"
        )
    # all valid metadata addresses have at least one uuid
    uuid_from_bytes(bz[_PRIMARY])
    if address_type.secondary is Component.UUID:
        uuid_from_bytes(bz[_SECONDARY])
    return address_type.hrp


@dataclass(frozen=True, order=True)
class MetadataAddress:
    """An immutable metadata address.

    Wraps the raw key bytes. The empty address (``MetadataAddress()``) is the
    unset value. Instances may hold invalid bytes (e.g. from ``from_hex``);
    use ``validate()`` or the parsing constructors when validity matters.
    Ordering is lexicographic over the raw bytes, matching store key order.
    """
    raw: bytes = b""

    def __post_init__(self):
        if not isinstance(self.raw, bytes):
            object.__setattr__(self, "raw", bytes(self.raw))

    # -- basic value behavior -------------------------------------------------

    def __bytes__(self) -> bytes:
        return self.raw

    def __len__(self) -> int:
        return len(self.raw)

    def __bool__(self) -> bool:
        return len(self.raw) > 0

    def empty(self) -> bool:
        """True if this address is unset."""
        return len(self.raw) == 0

    def to_bytes(self) -> bytes:
        return self.raw

    def to_hex(self) -> str:
        return self.raw.hex()

    def compare(self, other: "MetadataAddress") -> int:
        """Three-way comparison of the raw bytes."""
        a, b = self.raw, bytes(other)
        return (a > b) - (a < b)

    @property
    def address_type(self) -> Optional[AddressType]:
        """Type named by the tag byte, or None if empty or unknown."""
        if not self.raw:
            return None
        return _BY_TAG.get(self.raw[0])

    def _is_type_one_of(self, *types: AddressType) -> bool:
        return self.address_type in types

    # -- validation -----------------------------------------------------------

    def validate(self) -> None:
        """Raise if the bytes do not form a valid metadata address."""
        verify_format(self.raw)

    def prefix(self) -> str:
        """The bech32 HRP of this address, e.g. ``"scope"``."""
        return verify_format(self.raw)

    def _has_valid_type(self, address_type: AddressType) -> bool:
        try:
            return verify_format(self.raw) == address_type.hrp
        except MetadataAddressError:
            return False

    def is_scope_address(self) -> bool:
        return self._has_valid_type(AddressType.SCOPE)

    def is_session_address(self) -> bool:
        return self._has_valid_type(AddressType.SESSION)

    def is_record_address(self) -> bool:
        return self._has_valid_type(AddressType.RECORD)

    def is_scope_specification_address(self) -> bool:
        return self._has_valid_type(AddressType.SCOPE_SPECIFICATION)

    def is_contract_specification_address(self) -> bool:
        return self._has_valid_type(AddressType.CONTRACT_SPECIFICATION)

    def is_record_specification_address(self) -> bool:
        return self._has_valid_type(AddressType.RECORD_SPECIFICATION)

    def validate_is_scope_address(self) -> None:
        """Raise ``NotAScopeAddressError`` unless this is a valid scope address."""
        try:
            verify_has_type(self, AddressType.SCOPE)
        except MetadataAddressError as e:
            raise NotAScopeAddressError(str(e)) from e

    def validate_is_scope_specification_address(self) -> None:
        verify_has_type(self, AddressType.SCOPE_SPECIFICATION)

    # -- components -----------------------------------------------------------

    def primary_uuid(self) -> uuid.UUID:
        """The 16 bytes after the tag as a UUID.

        For a record specification this is the contract specification uuid,
        since that is the first component of those addresses.
        """
        if not self.raw:
            raise EmptyAddressError("address empty")
        if self.address_type is None:
            raise UnknownTypeError(
                f"invalid address type out of valid range (got: {self.raw[0]})"
            )
        if len(self.raw) < SHORT_ADDRESS_LENGTH:
            raise LengthMismatchError(
                f"incorrect address length (must be at least {SHORT_ADDRESS_LENGTH}, "
                f"actual: {len(self.raw)})"
            )
        return uuid_from_bytes(self.raw[_PRIMARY])

    def secondary_uuid(self) -> uuid.UUID:
        """The second uuid of a session address."""
        if not self.raw:
            raise EmptyAddressError("address empty")
        if not self._is_type_one_of(AddressType.SESSION):
            raise WrongTypeError(
                f"invalid address type out of valid range (got: {self.raw[0]})"
            )
        if len(self.raw) < LONG_ADDRESS_LENGTH:
            raise LengthMismatchError(
                f"incorrect address length (must be at least {LONG_ADDRESS_LENGTH}, "
                f"actual: {len(self.raw)})"
            )
        return uuid_from_bytes(self.raw[_SECONDARY])

    def name_hash(self) -> bytes:
        """A copy of the name hash of a record or record specification address."""
        if not self.raw:
            raise EmptyAddressError("address empty")
        if not self._is_type_one_of(AddressType.RECORD, AddressType.RECORD_SPECIFICATION):
            raise WrongTypeError(
                f"invalid address type out of valid range (got: {self.raw[0]})"
            )
        if len(self.raw) < LONG_ADDRESS_LENGTH:
            raise LengthMismatchError(
                f"incorrect address length (must be at least {LONG_ADDRESS_LENGTH}, "
                f"actual: {len(self.raw)})"
            )
        return bytes(self.raw[_SECONDARY])

    def scope_uuid(self) -> uuid.UUID:
        if not self._is_type_one_of(*SCOPE_TYPES):
            raise WrongTypeError(
                f"this metadata address ({self}) does not contain a scope uuid"
            )
        return self.primary_uuid()

    def session_uuid(self) -> uuid.UUID:
        if self.raw and not self._is_type_one_of(AddressType.SESSION):
            raise WrongTypeError(
                f"this metadata address ({self}) does not contain a session uuid"
            )
        return self.secondary_uuid()

    def scope_spec_uuid(self) -> uuid.UUID:
        if self.raw and not self._is_type_one_of(AddressType.SCOPE_SPECIFICATION):
            raise WrongTypeError(
                f"this metadata address ({self}) does not contain a scope specification uuid"
            )
        return self.primary_uuid()

    def contract_spec_uuid(self) -> uuid.UUID:
        if not self._is_type_one_of(*CONTRACT_SPEC_TYPES):
            raise WrongTypeError(
                f"this metadata address ({self}) does not contain a contract specification uuid"
            )
        return self.primary_uuid()

    # -- derivation -----------------------------------------------------------

    def as_scope_address(self) -> "MetadataAddress":
        """The scope address for the scope uuid in this address."""
        return scope_address(self.scope_uuid())

    def as_session_address(self, session_uuid: UUIDLike) -> "MetadataAddress":
        """A session address in the scope of this address."""
        return session_address(self.scope_uuid(), session_uuid)

    def as_record_address(self, name: str) -> "MetadataAddress":
        """A record address in the scope of this address."""
        scope_id = self.scope_uuid()
        if not name:
            raise InvalidInputError("missing name value for record metadata address")
        return record_address(scope_id, name)

    def as_contract_spec_address(self) -> "MetadataAddress":
        """The contract specification address for the contract spec uuid in this address."""
        return contract_spec_address(self.contract_spec_uuid())

    def as_record_spec_address(self, name: str) -> "MetadataAddress":
        """A record specification address under the contract spec of this address."""
        return record_spec_address(self.contract_spec_uuid(), name)

    def must_get_as_scope_address(self) -> "MetadataAddress":
        return _must(self.as_scope_address)

    def must_get_as_session_address(self, session_uuid: UUIDLike) -> "MetadataAddress":
        return _must(self.as_session_address, session_uuid)

    def must_get_as_record_address(self, name: str) -> "MetadataAddress":
        return _must(self.as_record_address, name)

    def must_get_as_contract_spec_address(self) -> "MetadataAddress":
        return _must(self.as_contract_spec_address)

    def must_get_as_record_spec_address(self, name: str) -> "MetadataAddress":
        return _must(self.as_record_spec_address, name)

    # -- scan prefixes --------------------------------------------------------

    def _child_prefix(self, child: AddressType, parents: Tuple[AddressType, ...], what: str) -> bytes:
        if not self.raw:
            return child.key_prefix
        if not self._is_type_one_of(*parents):
            raise WrongTypeError(f"this metadata address does not contain a {what} uuid")
        if len(self.raw) < SHORT_ADDRESS_LENGTH:
            raise LengthMismatchError(
                f"incorrect address length (must be at least {SHORT_ADDRESS_LENGTH}, "
                f"actual: {len(self.raw)})"
            )
        return child.key_prefix + self.raw[_PRIMARY]

    def scope_session_iterator_prefix(self) -> bytes:
        """Key prefix for the sessions of this address's scope.

        An empty address yields the prefix of all sessions.
        """
        return self._child_prefix(AddressType.SESSION, SCOPE_TYPES, "scope")

    def scope_record_iterator_prefix(self) -> bytes:
        """Key prefix for the records of this address's scope.

        An empty address yields the prefix of all records.
        """
        return self._child_prefix(AddressType.RECORD, SCOPE_TYPES, "scope")

    def contract_spec_record_spec_iterator_prefix(self) -> bytes:
        """Key prefix for the record specifications of this address's contract spec.

        An empty address yields the prefix of all record specifications.
        """
        return self._child_prefix(
            AddressType.RECORD_SPECIFICATION, CONTRACT_SPEC_TYPES, "contract spec"
        )

    # -- details --------------------------------------------------------------

    def get_details(self) -> "MetadataAddressDetails":
        """Break this address down into its components. Never raises."""
        from metaddr.details import get_details
        return get_details(self)

    # -- text -----------------------------------------------------------------

    def to_bech32(self) -> str:
        """Bech32 text for this address.

        Empty gives ``""``; invalid bytes give the ``repr`` placeholder,
        which is never valid bech32. Never raises.
        """
        if not self.raw:
            return ""
        try:
            hrp = verify_format(self.raw)
        except MetadataAddressError:
            return repr(self)
        return convert_and_encode(hrp, self.raw)

    def denom(self) -> str:
        """The denom string for this address."""
        return DENOM_PREFIX + str(self)

    def __str__(self) -> str:
        return self.to_bech32()

    def __repr__(self) -> str:
        return f"MetadataAddress(0x{self.raw.hex()})"

    def __format__(self, spec: str) -> str:
        # x/X render the raw bytes like a byte string would; everything else
        # formats the bech32 text.
        if spec in ("x", "X"):
            out = self.raw.hex()
            return out.upper() if spec == "X" else out
        return format(str(self), spec)


F = TypeVar("F")


def _must(fn: Callable[..., F], *args) -> F:
    try:
        return fn(*args)
    except MetadataAddressError as e:
        raise InvariantViolation(str(e)) from e


def verify_has_type(addr: MetadataAddress, address_type: AddressType) -> None:
    """Require ``addr`` to be a valid address of ``address_type``."""
    try:
        hrp = verify_format(bytes(addr))
    except MetadataAddressError as e:
        raise type(e)(
            f"invalid {address_type.formal_name} metadata address {addr!r}: {e}"
        ) from e
    if hrp != address_type.hrp:
        raise WrongTypeError(f"invalid {address_type.formal_name} id {str(addr)!r}: wrong type")


# -- constructors -------------------------------------------------------------

def scope_address(scope_uuid: UUIDLike) -> MetadataAddress:
    """Address for a scope by its uuid."""
    return MetadataAddress(SCOPE_KEY_PREFIX + coerce_uuid(scope_uuid).bytes)


def session_address(scope_uuid: UUIDLike, session_uuid: UUIDLike) -> MetadataAddress:
    """Address for a session within a scope."""
    return MetadataAddress(
        SESSION_KEY_PREFIX + coerce_uuid(scope_uuid).bytes + coerce_uuid(session_uuid).bytes
    )


def record_address(scope_uuid: UUIDLike, name: str) -> MetadataAddress:
    """Address for a record within a scope, identified by name."""
    scope_id = coerce_uuid(scope_uuid)
    if not normalize_name(name):
        raise InvalidInputError("missing name value for record metadata address")
    return MetadataAddress(RECORD_KEY_PREFIX + scope_id.bytes + name_hash(name))


def scope_spec_address(spec_uuid: UUIDLike) -> MetadataAddress:
    """Address for a scope specification."""
    return MetadataAddress(SCOPE_SPECIFICATION_KEY_PREFIX + coerce_uuid(spec_uuid).bytes)


def contract_spec_address(spec_uuid: UUIDLike) -> MetadataAddress:
    """Address for a contract specification."""
    return MetadataAddress(CONTRACT_SPECIFICATION_KEY_PREFIX + coerce_uuid(spec_uuid).bytes)


def record_spec_address(contract_spec_uuid: UUIDLike, name: str) -> MetadataAddress:
    """Address for a record specification within a contract specification."""
    spec_id = coerce_uuid(contract_spec_uuid)
    if not normalize_name(name):
        raise InvalidInputError("missing name value for record spec metadata address")
    return MetadataAddress(
        RECORD_SPECIFICATION_KEY_PREFIX + spec_id.bytes + name_hash(name)
    )


def encode(
    address_type: AddressType,
    primary: UUIDLike,
    secondary: Optional[UUIDLike] = None,
    name: Optional[str] = None,
) -> MetadataAddress:
    """Build an address of any type from its identity components.

    Components the type does not carry are rejected rather than ignored.
    """
    if not isinstance(address_type, AddressType):
        raise UnknownTypeError(f"unknown address type {address_type!r}")
    if secondary is not None and address_type is not AddressType.SESSION:
        raise InvalidInputError(
            f"a {address_type.formal_name} address does not take a session uuid"
        )
    if name is not None and address_type.secondary is not Component.NAME_HASH:
        raise InvalidInputError(f"a {address_type.formal_name} address does not take a name")
    if address_type is AddressType.SCOPE:
        return scope_address(primary)
    if address_type is AddressType.SESSION:
        if secondary is None:
            raise InvalidInputError("a session address requires a session uuid")
        return session_address(primary, secondary)
    if address_type is AddressType.RECORD:
        return record_address(primary, name or "")
    if address_type is AddressType.SCOPE_SPECIFICATION:
        return scope_spec_address(primary)
    if address_type is AddressType.CONTRACT_SPECIFICATION:
        return contract_spec_address(primary)
    if address_type is AddressType.RECORD_SPECIFICATION:
        return record_spec_address(primary, name or "")
    raise UnknownTypeError(f"unknown address type {address_type!r}")


def from_bytes(bz: bytes) -> MetadataAddress:
    """Wrap bytes as an address, validating unless they are empty."""
    addr = MetadataAddress(bytes(bz))
    if addr:
        verify_format(addr.raw)
    return addr


def from_hex(text: str) -> MetadataAddress:
    """Decode hex into an address. Only hex decoding is checked, not the format."""
    if not text:
        raise InvalidInputError("address decode failed: must provide an address")
    try:
        return MetadataAddress(bytes.fromhex(text))
    except ValueError as e:
        raise DecodeError(f"address decode failed: {e}") from e


def parse_bech32(text: str) -> Tuple[MetadataAddress, str]:
    """Decode bech32 text into an address, returning the address and its HRP.

    The HRP in the text must equal the HRP implied by the decoded bytes.
    """
    if not text or not text.strip():
        raise EmptyAddressError("empty address string is not allowed")
    hrp, bz = decode_and_convert(text)
    expected = verify_format(bz)
    if expected != hrp:
        raise PrefixMismatchError(f"invalid bech32 prefix; expected {expected}, got {hrp}")
    return MetadataAddress(bz), hrp


def from_bech32(text: str) -> MetadataAddress:
    """Decode bech32 text into an address."""
    addr, _ = parse_bech32(text)
    return addr


def from_denom(denom: str) -> MetadataAddress:
    """The address a denom was created for."""
    if not denom.startswith(DENOM_PREFIX):
        raise NotADenomError(f"denom {denom!r} is not a MetadataAddress denom")
    try:
        return from_bech32(denom[len(DENOM_PREFIX):])
    except MetadataAddressError as e:
        raise type(e)(f"invalid metadata address in denom {denom!r}: {e}") from e


def convert_hash_to_address(type_code: Union[int, bytes], hash_b64: str) -> MetadataAddress:
    """Build an address from a type code and a base64 hash.

    The decoded hash is truncated to the type's payload length. The result
    is not guaranteed to hold real uuids or name hashes.
    """
    if isinstance(type_code, (bytes, bytearray)):
        if len(type_code) == 0:
            raise InvalidInputError("empty typeCode bytes")
        code = type_code[0]
    else:
        try:
            code = int(type_code)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"invalid address type code {type_code!r}") from e
    if not hash_b64:
        raise InvalidInputError("empty hash string")
    try:
        address_type = AddressType.from_tag(code)
    except UnknownTypeError:
        raise UnknownTypeError(f"invalid address type code 0x{code:02X}") from None
    try:
        raw = base64.b64decode(hash_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 hash {hash_b64!r}: {e}") from e
    required = address_type.payload_length
    if len(raw) < required:
        raise LengthMismatchError(
            f'invalid hash "{hash_b64}" byte length, expected at least {required} bytes, '
            f"found {len(raw)}"
        )
    return from_bytes(address_type.key_prefix + raw[:required])


__all__ = [
    "AddressType",
    "Component",
    "MetadataAddress",
    "DENOM_PREFIX",
    "PREFIX_SCOPE",
    "PREFIX_SESSION",
    "PREFIX_RECORD",
    "PREFIX_SCOPE_SPECIFICATION",
    "PREFIX_CONTRACT_SPECIFICATION",
    "PREFIX_RECORD_SPECIFICATION",
    "SCOPE_KEY_PREFIX",
    "SESSION_KEY_PREFIX",
    "RECORD_KEY_PREFIX",
    "CONTRACT_SPECIFICATION_KEY_PREFIX",
    "SCOPE_SPECIFICATION_KEY_PREFIX",
    "RECORD_SPECIFICATION_KEY_PREFIX",
    "verify_format",
    "verify_has_type",
    "scope_address",
    "session_address",
    "record_address",
    "scope_spec_address",
    "contract_spec_address",
    "record_spec_address",
    "encode",
    "from_bytes",
    "from_hex",
    "parse_bech32",
    "from_bech32",
    "from_denom",
    "convert_hash_to_address",
]
