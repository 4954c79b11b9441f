"""Account to metadata address links.

An ``AccMDLink`` pairs an account address with a metadata address. Callers
build an ``AccMDLinks`` list to express ownership changes (e.g. which
accounts now own which scopes), validate it, and use the projections below
to drive their own bookkeeping. The list itself is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from metaddr.address import MetadataAddress
from metaddr.config import get_config
from metaddr.encoding import convert_and_encode, decode_and_convert
from metaddr.errors import (
    DuplicateAddressError,
    EmptyAddressError,
    InvalidInputError,
    LinkValidationError,
    MetadataAddressError,
    MissingAccountError,
    NilEntryError,
    PrefixMismatchError,
)
from metaddr.observability import Layer, get_logger

_log = get_logger("links", Layer.LINKS)

# Markers used in string output for absent values.
NIL_STR = "<nil>"
EMPTY_STR = "<empty>"


@dataclass(frozen=True, order=True)
class AccountAddress:
    """An opaque account identifier, rendered as bech32 with the account HRP.

    The HRP comes from configuration (``account.hrp``) at render time, so
    the same bytes print consistently for whichever network is configured.
    """
    raw: bytes = b""

    def __post_init__(self):
        if not isinstance(self.raw, bytes):
            object.__setattr__(self, "raw", bytes(self.raw))

    def __bytes__(self) -> bytes:
        return self.raw

    def __len__(self) -> int:
        return len(self.raw)

    def __bool__(self) -> bool:
        return len(self.raw) > 0

    def empty(self) -> bool:
        return len(self.raw) == 0

    def __str__(self) -> str:
        if not self.raw:
            return ""
        return convert_and_encode(get_config().account.hrp.get(), self.raw)

    def __repr__(self) -> str:
        return f"AccountAddress(0x{self.raw.hex()})"

    @classmethod
    def from_bech32(cls, text: str, hrp: Optional[str] = None) -> "AccountAddress":
        """Parse bech32 account text, checking the HRP and byte length.

        ``hrp`` defaults to the configured account HRP.
        """
        if not text or not text.strip():
            raise EmptyAddressError("empty address string is not allowed")
        expected = hrp if hrp is not None else get_config().account.hrp.get()
        got, bz = decode_and_convert(text)
        if got != expected:
            raise PrefixMismatchError(f"invalid Bech32 prefix; expected {expected}, got {got}")
        verify_account_format(bz)
        return cls(bz)


def verify_account_format(bz: bytes) -> None:
    """Require 1 to ``account.max_length`` bytes."""
    if len(bz) == 0:
        raise EmptyAddressError("addresses cannot be empty")
    max_length = get_config().account.max_length.get()
    if len(bz) > max_length:
        raise InvalidInputError(
            f"address max length is {max_length}, got {len(bz)}"
        )


def _acc_str(acc: Optional[AccountAddress]) -> str:
    if acc is None:
        return NIL_STR
    if acc:
        return str(acc)
    return EMPTY_STR


def _md_str(md: Optional[MetadataAddress]) -> str:
    if md is None:
        return NIL_STR
    if md:
        return str(md)
    return EMPTY_STR


@dataclass
class AccMDLink:
    """Associates an account address with a metadata address."""
    acc_addr: AccountAddress = field(default_factory=AccountAddress)
    md_addr: MetadataAddress = field(default_factory=MetadataAddress)

    def __str__(self) -> str:
        """``<acc>:<md>`` using bech32, or ``<nil>``/``<empty>`` markers."""
        return _acc_str(self.acc_addr) + ":" + _md_str(self.md_addr)


def new_acc_md_link(acc_addr: AccountAddress, md_addr: MetadataAddress) -> AccMDLink:
    return AccMDLink(acc_addr=acc_addr, md_addr=md_addr)


class AccMDLinks(list):
    """An ordered list of account/metadata address links.

    Entries may be None; each operation documents how it treats them.
    """

    def __init__(self, links: Iterable[Optional[AccMDLink]] = ()):
        super().__init__(links)

    def __str__(self) -> str:
        if not self:
            return EMPTY_STR
        return "[" + ", ".join(NIL_STR if link is None else str(link) for link in self) + "]"

    def __repr__(self) -> str:
        return f"AccMDLinks({list.__repr__(self)})"

    def validate_for_scopes(self) -> None:
        """Check this list as a set of scope ownership entries.

        Raises on the first problem found, in list order:
            NilEntryError: an entry is None.
            DuplicateAddressError: a metadata address appears again.
            NotAScopeAddressError: a metadata address is not a valid scope id.
            MissingAccountError: an entry has no account address.
        """
        if not self:
            return

        seen: Set[bytes] = set()
        try:
            for i, link in enumerate(self):
                if link is None:
                    raise NilEntryError(f"nil entry not allowed (index {i})")

                md_addr = link.md_addr if link.md_addr is not None else MetadataAddress()
                key = bytes(md_addr)
                if key in seen:
                    raise DuplicateAddressError(
                        f"duplicate metadata address {_md_str(link.md_addr)!r} not allowed"
                    )
                seen.add(key)
                md_addr.validate_is_scope_address()

                if not link.acc_addr:
                    raise MissingAccountError(
                        "no account address associated with metadata address "
                        f"{_md_str(link.md_addr)!r}"
                    )
        except MetadataAddressError as e:
            _log.debug(
                "Rejected scope ownership links",
                operation="validate_for_scopes",
                error_code=e.error_code,
                reason=str(e),
                entries=len(self),
            )
            raise

    def get_acc_addrs(self) -> List[AccountAddress]:
        """Distinct account addresses in first-seen order, skipping empty and None entries."""
        seen = set()
        rv: List[AccountAddress] = []
        for link in self:
            if link is None or not link.acc_addr:
                continue
            key = bytes(link.acc_addr)
            if key not in seen:
                seen.add(key)
                rv.append(link.acc_addr)
        return rv

    def get_primary_uuids(self) -> List[str]:
        """The primary uuid string of each entry's metadata address.

        The result lines up with this list; entries that are None, have an
        empty address, or whose uuid cannot be extracted yield ``""``.
        """
        rv = [""] * len(self)
        for i, link in enumerate(self):
            if link is not None and link.md_addr:
                try:
                    rv[i] = str(link.md_addr.primary_uuid())
                except MetadataAddressError:
                    continue
        return rv

    def get_md_addrs_for_acc_addr(self, addr: str) -> List[MetadataAddress]:
        """All metadata addresses linked to the account whose bech32 text is ``addr``."""
        return [
            link.md_addr
            for link in self
            if link is not None and str(link.acc_addr or "") == addr
        ]


__all__ = [
    "AccountAddress",
    "AccMDLink",
    "AccMDLinks",
    "LinkValidationError",
    "new_acc_md_link",
    "verify_account_format",
]
