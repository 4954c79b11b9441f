"""metaddr: typed, hierarchical metadata addresses.

Architecture:
    metaddr/
    ├── __init__.py       # Package entry, version, public API
    ├── core.py           # Primitives: sha256, name hashing, uuids, YAML/JSON
    ├── encoding.py       # Bech32 encode/decode over 8-bit payloads
    ├── address.py        # MetadataAddress codec, derivation, scan prefixes
    ├── details.py        # Component breakdown of an address
    ├── links.py          # Account to metadata address ownership links
    ├── serde.py          # JSON/YAML boundaries and link documents
    ├── schema.py         # JSON Schema validation infrastructure
    ├── config.py         # Layered configuration
    ├── observability.py  # Structured logging
    ├── errors.py         # Error taxonomy
    └── cli.py            # Command-line interface

An address is a one byte type tag followed by one or two 16 byte
components, rendered as bech32 with a per-type human readable prefix:

    >>> from metaddr import scope_address
    >>> str(scope_address("91978ba2-5f35-459a-86a7-feca1b0512e0"))
    'scope1qzge0zaztu65tx5x5llv5xc9ztsqxlkwel'
"""

__version__ = "0.1.0"

from metaddr.core import (
    NAME_HASH_LENGTH,
    UUID_LENGTH,
    name_hash,
    normalize_name,
    sha256_bytes,
)

from metaddr.errors import (
    ErrorKind,
    InvariantViolation,
    LinkValidationError,
    MetadataAddressError,
)

from metaddr.address import (
    DENOM_PREFIX,
    AddressType,
    MetadataAddress,
    contract_spec_address,
    convert_hash_to_address,
    encode,
    from_bech32,
    from_bytes,
    from_denom,
    from_hex,
    parse_bech32,
    record_address,
    record_spec_address,
    scope_address,
    scope_spec_address,
    session_address,
    verify_format,
)

from metaddr.details import MetadataAddressDetails, get_details

from metaddr.links import (
    AccMDLink,
    AccMDLinks,
    AccountAddress,
    new_acc_md_link,
)

__all__ = [
    "__version__",
    # Core
    "NAME_HASH_LENGTH",
    "UUID_LENGTH",
    "name_hash",
    "normalize_name",
    "sha256_bytes",
    # Errors
    "ErrorKind",
    "InvariantViolation",
    "LinkValidationError",
    "MetadataAddressError",
    # Addresses
    "DENOM_PREFIX",
    "AddressType",
    "MetadataAddress",
    "contract_spec_address",
    "convert_hash_to_address",
    "encode",
    "from_bech32",
    "from_bytes",
    "from_denom",
    "from_hex",
    "parse_bech32",
    "record_address",
    "record_spec_address",
    "scope_address",
    "scope_spec_address",
    "session_address",
    "verify_format",
    # Details
    "MetadataAddressDetails",
    "get_details",
    # Links
    "AccMDLink",
    "AccMDLinks",
    "AccountAddress",
    "new_acc_md_link",
]
