"""Breakdown of a metadata address into its components.

``get_details`` is a diagnostic view: it never raises, and it reports
whatever it can find even in malformed input (unknown tags render as hex,
stray trailing bytes are reported as excess).
"""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict

from metaddr.address import (
    LONG_ADDRESS_LENGTH,
    SHORT_ADDRESS_LENGTH,
    MetadataAddress,
)
from metaddr.errors import MetadataAddressError


@dataclass
class MetadataAddressDetails:
    """The components of a MetadataAddress.

    Byte fields are empty when the address has no such portion. String
    fields are the human readable versions of the byte fields.
    """
    # The full address in question.
    address: MetadataAddress = field(default_factory=MetadataAddress)
    # The tag byte. Length 1 only if the address has a prefix portion.
    address_prefix: bytes = b""
    # Length 16 only if the address has a primary uuid portion.
    address_primary_uuid: bytes = b""
    # Length 16 only if the address has a secondary uuid portion.
    address_secondary_uuid: bytes = b""
    # Length 16 only if the address has a name hash portion.
    address_name_hash: bytes = b""
    # Bytes not accounted for in the other fields.
    address_excess: bytes = b""
    # e.g. "scope", or the hex of the tag byte if it is not a known type.
    prefix: str = ""
    # e.g. "9e3e80f4-78ba-4fad-aed1-b79e1370cebd"
    primary_uuid: str = ""
    secondary_uuid: str = ""
    name_hash_hex: str = ""
    name_hash_base64: str = ""
    excess_hex: str = ""
    excess_base64: str = ""
    # Scope address for sessions and records, contract spec address for
    # record specs, empty for everything else.
    parent_address: MetadataAddress = field(default_factory=MetadataAddress)

    def to_dict(self) -> Dict[str, Any]:
        """Render as a JSON/YAML-safe mapping, omitting empty fields."""
        d: Dict[str, Any] = {
            "address": str(self.address),
            "address_hex": self.address.to_hex(),
            "prefix": self.prefix,
            "primary_uuid": self.primary_uuid,
            "secondary_uuid": self.secondary_uuid,
            "name_hash_hex": self.name_hash_hex,
            "name_hash_base64": self.name_hash_base64,
            "excess_hex": self.excess_hex,
            "excess_base64": self.excess_base64,
            "parent_address": str(self.parent_address),
        }
        return {k: v for k, v in d.items() if v != ""}


def _b64(bz: bytes) -> str:
    return base64.b64encode(bz).decode("ascii")


def get_details(ma: MetadataAddress) -> MetadataAddressDetails:
    """Break an address down into its various components."""
    addr = MetadataAddress(bytes(ma))
    details = MetadataAddressDetails(address=addr)
    raw = addr.raw

    if len(raw) >= 1:
        details.address_prefix = raw[0:1]
        try:
            details.prefix = addr.prefix()
        except MetadataAddressError:
            details.prefix = details.address_prefix.hex()

    # Every type has a primary uuid right after the tag. Read the bytes
    # directly so they are reported even when primary_uuid() would fail.
    if len(raw) >= SHORT_ADDRESS_LENGTH:
        details.address_primary_uuid = raw[1:SHORT_ADDRESS_LENGTH]
        details.primary_uuid = str(uuid.UUID(bytes=details.address_primary_uuid))

    has_secondary = False
    try:
        secondary = addr.secondary_uuid()
    except MetadataAddressError:
        pass
    else:
        has_secondary = True
        details.address_secondary_uuid = secondary.bytes
        details.secondary_uuid = str(secondary)

    has_name_hash = False
    try:
        hashed = addr.name_hash()
    except MetadataAddressError:
        pass
    else:
        has_name_hash = True
        details.address_name_hash = hashed
        details.name_hash_hex = hashed.hex()
        details.name_hash_base64 = _b64(hashed)

    expected_length = SHORT_ADDRESS_LENGTH
    if has_secondary or has_name_hash:
        expected_length = LONG_ADDRESS_LENGTH
    if len(raw) > expected_length:
        details.address_excess = raw[expected_length:]
        details.excess_hex = details.address_excess.hex()
        details.excess_base64 = _b64(details.address_excess)

    if not addr.is_scope_address():
        try:
            details.parent_address = addr.as_scope_address()
        except MetadataAddressError:
            pass
    if not addr.is_contract_specification_address():
        try:
            details.parent_address = addr.as_contract_spec_address()
        except MetadataAddressError:
            pass

    return details
