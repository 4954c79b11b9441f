"""
Tests for the MetadataAddress codec: construction, validation, text forms,
component accessors and the conversion helpers.

Vectors use the scope/session/contract spec uuids from conftest and the
record name "recordname".
"""

import base64
import uuid

import pytest

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
    verify_has_type,
)
from metaddr.encoding import convert_and_encode
from metaddr.errors import (
    DecodeError,
    EmptyAddressError,
    ErrorKind,
    InvalidInputError,
    LengthMismatchError,
    MetadataAddressError,
    NotADenomError,
    NotAScopeAddressError,
    PrefixMismatchError,
    UnknownTypeError,
    WrongTypeError,
)

SCOPE_TEXT = "scope1qzge0zaztu65tx5x5llv5xc9ztsqxlkwel"
SESSION_TEXT = "session1qxge0zaztu65tx5x5llv5xc9zts9sqlch3sxwn44j50jzgt8rshvqyfrjcr"
RECORD_TEXT = "record1q2ge0zaztu65tx5x5llv5xc9ztsw42dq2jdvmdazuwzcaddhh8gmu3mcze3"
SCOPE_SPEC_TEXT = "scopespec1qnwg86nsatx5pl56muw0v9ytlz3qu3jx6m"
CONTRACT_SPEC_TEXT = "contractspec1q000d0q2e8w5say53afqdesxp2zqzkr4fn"
RECORD_SPEC_TEXT = "recspec1qh00d0q2e8w5say53afqdesxp2zw42dq2jdvmdazuwzcaddhh8gmuqhez44"


@pytest.fixture
def addresses(scope_uuid, session_uuid, contract_spec_uuid, scope_spec_uuid):
    return {
        "scope": scope_address(scope_uuid),
        "session": session_address(scope_uuid, session_uuid),
        "record": record_address(scope_uuid, "recordname"),
        "scopespec": scope_spec_address(scope_spec_uuid),
        "contractspec": contract_spec_address(contract_spec_uuid),
        "recspec": record_spec_address(contract_spec_uuid, "recordname"),
    }


class TestConstruction:
    """Building addresses from their identity components."""

    def test_scope(self, addresses, scope_uuid):
        addr = addresses["scope"]
        assert addr.raw == b"\x00" + uuid.UUID(scope_uuid).bytes
        assert len(addr) == 17
        assert str(addr) == SCOPE_TEXT

    def test_session(self, addresses):
        addr = addresses["session"]
        assert len(addr) == 33
        assert addr.raw[0] == 0x01
        assert str(addr) == SESSION_TEXT

    def test_record(self, addresses):
        addr = addresses["record"]
        assert addr.raw[0] == 0x02
        assert addr.raw[17:].hex() == "eaa9a0549acdb7a2e3858eb5b7b9d1be"
        assert str(addr) == RECORD_TEXT

    def test_scope_spec(self, addresses):
        assert addresses["scopespec"].raw[0] == 0x04
        assert str(addresses["scopespec"]) == SCOPE_SPEC_TEXT

    def test_contract_spec(self, addresses):
        assert addresses["contractspec"].raw[0] == 0x03
        assert str(addresses["contractspec"]) == CONTRACT_SPEC_TEXT

    def test_record_spec(self, addresses):
        assert addresses["recspec"].raw[0] == 0x05
        assert str(addresses["recspec"]) == RECORD_SPEC_TEXT

    def test_record_name_is_normalized(self, scope_uuid):
        assert record_address(scope_uuid, "  RecordName ") == record_address(scope_uuid, "recordname")

    @pytest.mark.parametrize("name", ["", "   "])
    def test_record_requires_name(self, scope_uuid, name):
        with pytest.raises(InvalidInputError, match="missing name value"):
            record_address(scope_uuid, name)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_record_spec_requires_name(self, contract_spec_uuid, name):
        with pytest.raises(InvalidInputError, match="missing name value"):
            record_spec_address(contract_spec_uuid, name)

    def test_uuid_forms_are_interchangeable(self, scope_uuid):
        u = uuid.UUID(scope_uuid)
        assert scope_address(u) == scope_address(scope_uuid) == scope_address(u.bytes)

    def test_encode_dispatch(self, addresses, scope_uuid, session_uuid, contract_spec_uuid, scope_spec_uuid):
        assert encode(AddressType.SCOPE, scope_uuid) == addresses["scope"]
        assert encode(AddressType.SESSION, scope_uuid, secondary=session_uuid) == addresses["session"]
        assert encode(AddressType.RECORD, scope_uuid, name="recordname") == addresses["record"]
        assert encode(AddressType.SCOPE_SPECIFICATION, scope_spec_uuid) == addresses["scopespec"]
        assert encode(AddressType.CONTRACT_SPECIFICATION, contract_spec_uuid) == addresses["contractspec"]
        assert encode(AddressType.RECORD_SPECIFICATION, contract_spec_uuid, name="recordname") == addresses["recspec"]

    def test_encode_session_requires_secondary(self, scope_uuid):
        with pytest.raises(InvalidInputError):
            encode(AddressType.SESSION, scope_uuid)

    def test_encode_record_requires_name(self, scope_uuid):
        with pytest.raises(InvalidInputError):
            encode(AddressType.RECORD, scope_uuid)

    def test_encode_rejects_unused_components(self, scope_uuid, session_uuid, contract_spec_uuid):
        with pytest.raises(InvalidInputError, match="does not take a session uuid"):
            encode(AddressType.SCOPE, scope_uuid, secondary=session_uuid)
        with pytest.raises(InvalidInputError, match="does not take a session uuid"):
            encode(AddressType.RECORD, scope_uuid, secondary=session_uuid, name="recordname")
        with pytest.raises(InvalidInputError, match="does not take a name"):
            encode(AddressType.SCOPE, scope_uuid, name="recordname")
        with pytest.raises(InvalidInputError, match="does not take a name"):
            encode(AddressType.CONTRACT_SPECIFICATION, contract_spec_uuid, name="recordname")

    def test_encode_unknown_type(self, scope_uuid):
        with pytest.raises(UnknownTypeError):
            encode("scope", scope_uuid)


class TestAddressType:

    def test_table(self):
        assert [(t.tag, t.hrp, t.required_length) for t in AddressType] == [
            (0x00, "scope", 17),
            (0x01, "session", 33),
            (0x02, "record", 33),
            (0x03, "contractspec", 17),
            (0x04, "scopespec", 17),
            (0x05, "recspec", 33),
        ]

    def test_from_tag(self):
        assert AddressType.from_tag(0x02) is AddressType.RECORD
        with pytest.raises(UnknownTypeError):
            AddressType.from_tag(0x06)

    def test_from_hrp(self):
        assert AddressType.from_hrp("recspec") is AddressType.RECORD_SPECIFICATION
        with pytest.raises(UnknownTypeError):
            AddressType.from_hrp("pb")

    def test_key_prefix(self):
        assert AddressType.SCOPE_SPECIFICATION.key_prefix == b"\x04"


class TestVerifyFormat:
    """Byte-level validation."""

    def test_valid_addresses(self, addresses):
        for hrp, addr in addresses.items():
            assert verify_format(addr.raw) == hrp
            assert addr.prefix() == hrp
            addr.validate()

    def test_empty(self):
        with pytest.raises(EmptyAddressError) as exc:
            verify_format(b"")
        assert exc.value.kind is ErrorKind.EMPTY

    def test_unknown_tag(self):
        with pytest.raises(UnknownTypeError, match="invalid metadata address type: 9"):
            verify_format(b"\x09" + b"\x00" * 16)

    @pytest.mark.parametrize("raw", [
        b"\x00" + b"\x00" * 15,
        b"\x00" + b"\x00" * 17,
        b"\x01" + b"\x00" * 16,
        b"\x02" + b"\x00" * 33,
        b"\x05",
    ])
    def test_length_mismatch(self, raw):
        with pytest.raises(LengthMismatchError, match="incorrect address length"):
            verify_format(raw)

    def test_predicates(self, addresses):
        assert addresses["scope"].is_scope_address()
        assert not addresses["scope"].is_session_address()
        assert addresses["session"].is_session_address()
        assert addresses["record"].is_record_address()
        assert addresses["scopespec"].is_scope_specification_address()
        assert addresses["contractspec"].is_contract_specification_address()
        assert addresses["recspec"].is_record_specification_address()
        assert not MetadataAddress().is_scope_address()
        assert not MetadataAddress(b"\x00\x01").is_scope_address()

    def test_validate_is_scope_address(self, addresses):
        addresses["scope"].validate_is_scope_address()
        with pytest.raises(NotAScopeAddressError) as exc:
            addresses["session"].validate_is_scope_address()
        assert isinstance(exc.value.__cause__, WrongTypeError)
        with pytest.raises(NotAScopeAddressError) as exc:
            MetadataAddress().validate_is_scope_address()
        assert isinstance(exc.value.__cause__, EmptyAddressError)

    def test_validate_is_scope_specification_address(self, addresses):
        addresses["scopespec"].validate_is_scope_specification_address()
        with pytest.raises(WrongTypeError):
            addresses["contractspec"].validate_is_scope_specification_address()

    def test_verify_has_type_keeps_error_kind(self):
        with pytest.raises(LengthMismatchError, match="invalid scope metadata address"):
            verify_has_type(MetadataAddress(b"\x00\x01"), AddressType.SCOPE)


class TestBech32:
    """Text encoding and decoding."""

    def test_known_vectors_decode(self, addresses):
        for text, key in [
            (SCOPE_TEXT, "scope"),
            (SESSION_TEXT, "session"),
            (RECORD_TEXT, "record"),
            (SCOPE_SPEC_TEXT, "scopespec"),
            (CONTRACT_SPEC_TEXT, "contractspec"),
            (RECORD_SPEC_TEXT, "recspec"),
        ]:
            assert from_bech32(text) == addresses[key]

    def test_parse_returns_hrp(self):
        addr, hrp = parse_bech32(SESSION_TEXT)
        assert hrp == "session"
        assert addr.is_session_address()

    def test_empty_text(self):
        for text in ["", "   "]:
            with pytest.raises(EmptyAddressError):
                from_bech32(text)

    def test_prefix_mismatch(self, addresses):
        # scope bytes under the session HRP decode fine but disagree on type
        text = convert_and_encode("session", addresses["scope"].raw)
        with pytest.raises(PrefixMismatchError, match="expected scope, got session"):
            from_bech32(text)

    def test_invalid_payload(self):
        text = convert_and_encode("scope", b"\x00\x01\x02")
        with pytest.raises(LengthMismatchError):
            from_bech32(text)

    def test_bad_checksum(self):
        with pytest.raises(DecodeError):
            from_bech32(SCOPE_TEXT[:-1] + "x")

    def test_empty_address_renders_empty(self):
        assert str(MetadataAddress()) == ""
        assert MetadataAddress().to_bech32() == ""

    def test_invalid_bytes_render_placeholder(self):
        addr = MetadataAddress(b"\x09\x01")
        assert str(addr) == "MetadataAddress(0x0901)"
        with pytest.raises(MetadataAddressError):
            from_bech32(str(addr))


class TestValueBehavior:

    def test_empty(self):
        addr = MetadataAddress()
        assert addr.empty()
        assert not addr
        assert len(addr) == 0
        assert bytes(addr) == b""

    def test_equality_and_hash(self, scope_uuid):
        a = scope_address(scope_uuid)
        b = from_bech32(SCOPE_TEXT)
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_ordering_follows_bytes(self, addresses):
        ordered = sorted(addresses.values())
        assert [a.raw[0] for a in ordered] == [0, 1, 2, 3, 4, 5]

    def test_compare(self, addresses):
        scope, session = addresses["scope"], addresses["session"]
        assert scope.compare(session) == -1
        assert session.compare(scope) == 1
        assert scope.compare(scope) == 0

    def test_immutable(self, addresses):
        with pytest.raises(AttributeError):
            addresses["scope"].raw = b""

    def test_bytearray_is_copied_to_bytes(self):
        buf = bytearray(b"\x00" * 17)
        addr = MetadataAddress(buf)
        buf[0] = 1
        assert addr.raw == b"\x00" * 17

    def test_repr_and_format(self, addresses):
        addr = addresses["scope"]
        assert repr(addr) == "MetadataAddress(0x0091978ba25f35459a86a7feca1b0512e0)"
        assert f"{addr}" == SCOPE_TEXT
        assert f"{addr:x}" == addr.to_hex()
        assert f"{addr:X}" == addr.to_hex().upper()
        assert f"{addr:>45}" == SCOPE_TEXT.rjust(45)


class TestComponents:
    """Component accessors."""

    def test_primary_uuid(self, addresses, scope_uuid, contract_spec_uuid):
        assert str(addresses["record"].primary_uuid()) == scope_uuid
        assert str(addresses["recspec"].primary_uuid()) == contract_spec_uuid

    def test_primary_uuid_errors(self):
        with pytest.raises(EmptyAddressError):
            MetadataAddress().primary_uuid()
        with pytest.raises(UnknownTypeError):
            MetadataAddress(b"\x09" * 17).primary_uuid()
        with pytest.raises(LengthMismatchError):
            MetadataAddress(b"\x00" * 5).primary_uuid()

    def test_secondary_uuid(self, addresses, session_uuid):
        assert str(addresses["session"].secondary_uuid()) == session_uuid
        with pytest.raises(WrongTypeError):
            addresses["record"].secondary_uuid()
        with pytest.raises(LengthMismatchError):
            MetadataAddress(addresses["session"].raw[:20]).secondary_uuid()

    def test_name_hash(self, addresses):
        expected = bytes.fromhex("eaa9a0549acdb7a2e3858eb5b7b9d1be")
        assert addresses["record"].name_hash() == expected
        assert addresses["recspec"].name_hash() == expected
        with pytest.raises(WrongTypeError):
            addresses["scope"].name_hash()
        with pytest.raises(EmptyAddressError):
            MetadataAddress().name_hash()

    def test_scope_uuid(self, addresses, scope_uuid):
        for key in ("scope", "session", "record"):
            assert str(addresses[key].scope_uuid()) == scope_uuid
        for key in ("scopespec", "contractspec", "recspec"):
            with pytest.raises(WrongTypeError, match="does not contain a scope uuid"):
                addresses[key].scope_uuid()

    def test_session_uuid(self, addresses, session_uuid):
        assert str(addresses["session"].session_uuid()) == session_uuid
        with pytest.raises(WrongTypeError, match="session uuid"):
            addresses["scope"].session_uuid()

    def test_spec_uuids(self, addresses, scope_spec_uuid, contract_spec_uuid):
        assert str(addresses["scopespec"].scope_spec_uuid()) == scope_spec_uuid
        assert str(addresses["contractspec"].contract_spec_uuid()) == contract_spec_uuid
        assert str(addresses["recspec"].contract_spec_uuid()) == contract_spec_uuid
        with pytest.raises(WrongTypeError):
            addresses["scope"].scope_spec_uuid()
        with pytest.raises(WrongTypeError):
            addresses["scopespec"].contract_spec_uuid()


class TestParsing:
    """Byte, hex, denom and hash constructors."""

    def test_from_bytes(self, addresses):
        assert from_bytes(addresses["record"].raw) == addresses["record"]
        assert from_bytes(b"") == MetadataAddress()
        with pytest.raises(LengthMismatchError):
            from_bytes(b"\x00\x01")

    def test_from_hex(self, addresses):
        addr = addresses["session"]
        assert from_hex(addr.to_hex()) == addr
        assert from_hex(addr.to_hex().upper()) == addr

    def test_from_hex_does_not_validate_format(self):
        assert from_hex("0901").raw == b"\x09\x01"

    def test_from_hex_errors(self):
        with pytest.raises(InvalidInputError, match="must provide an address"):
            from_hex("")
        with pytest.raises(DecodeError):
            from_hex("zz")
        with pytest.raises(DecodeError):
            from_hex("abc")

    def test_denom(self, addresses):
        assert addresses["scope"].denom() == DENOM_PREFIX + SCOPE_TEXT
        assert from_denom("nft/" + SCOPE_TEXT) == addresses["scope"]

    def test_from_denom_errors(self):
        with pytest.raises(NotADenomError):
            from_denom(SCOPE_TEXT)
        with pytest.raises(NotADenomError):
            from_denom("nhash")
        with pytest.raises(EmptyAddressError, match="in denom 'nft/'"):
            from_denom("nft/")
        with pytest.raises(DecodeError):
            from_denom("nft/scope1garbage")

    def test_convert_hash_to_address(self, addresses):
        digest = bytes(range(40))
        b64 = base64.b64encode(digest).decode()

        scope = convert_hash_to_address(0x00, b64)
        assert scope.raw == b"\x00" + digest[:16]
        assert scope.is_scope_address()

        session = convert_hash_to_address(b"\x01", b64)
        assert session.raw == b"\x01" + digest[:32]

        record = convert_hash_to_address(2, b64)
        assert record.is_record_address()

    def test_convert_hash_to_address_errors(self):
        b64 = base64.b64encode(b"\x00" * 32).decode()
        with pytest.raises(UnknownTypeError, match="0x09"):
            convert_hash_to_address(9, b64)
        with pytest.raises(InvalidInputError):
            convert_hash_to_address(b"", b64)
        with pytest.raises(InvalidInputError, match="invalid address type code"):
            convert_hash_to_address("zero", b64)
        with pytest.raises(InvalidInputError):
            convert_hash_to_address(None, b64)
        with pytest.raises(InvalidInputError):
            convert_hash_to_address(0, "")
        with pytest.raises(DecodeError):
            convert_hash_to_address(0, "not base64!!")
        short = base64.b64encode(b"\x00" * 20).decode()
        with pytest.raises(LengthMismatchError, match="expected at least 32 bytes"):
            convert_hash_to_address(1, short)
