"""
Tests for the account record entity and its binary layout
"""

import struct

import pytest

from btms.records import (
    AccountRecord, RECORD_SIZE, MAX_NAME_BYTES, BALANCE_OFFSET,
    pack_record, unpack_record, peek_account_no, peek_balance,
    replace_balance, truncate_name, is_valid_amount
)


class TestRecordLayout:
    """Test the on-disk encoding"""

    def test_record_size_matches_c_struct(self):
        """int + char[50] + 2 pad bytes + double is 64 bytes"""
        assert RECORD_SIZE == 64
        assert BALANCE_OFFSET == 56

    def test_field_offsets(self):
        """Fields land at the C struct offsets"""
        raw = pack_record(AccountRecord(1001, "Alice", 500.0))

        assert struct.unpack_from("<i", raw, 0)[0] == 1001
        assert raw[4:9] == b"Alice"
        assert raw[9:54] == b"\0" * 45
        assert raw[54:56] == b"\0\0"
        assert struct.unpack_from("<d", raw, 56)[0] == 500.0

    def test_unpack_restores_record(self):
        """Decoding an encoded record gives the same record back"""
        record = AccountRecord(42, "Bob Smith", 123.45)
        assert unpack_record(pack_record(record)) == record

    def test_unpack_ignores_bytes_after_nul(self):
        """Leftover bytes after the name terminator are not part of the name"""
        raw = bytearray(pack_record(AccountRecord(7, "Eve", 1.0)))
        raw[8:20] = b"\xffgarbage-gar"
        assert len(raw) == RECORD_SIZE
        assert unpack_record(bytes(raw)).name == "Eve"

    def test_unpack_rejects_wrong_size(self):
        """A short chunk is not a record"""
        with pytest.raises(ValueError, match="64 bytes"):
            unpack_record(b"\0" * 10)

    def test_peek_helpers(self):
        """Account number and balance can be read without a full decode"""
        raw = pack_record(AccountRecord(-5, "Neg", 9.5))
        assert peek_account_no(raw) == -5
        assert peek_balance(raw) == 9.5

    def test_replace_balance_keeps_other_bytes(self):
        """Only the balance bytes change"""
        raw = bytearray(pack_record(AccountRecord(3, "Carol", 10.0)))
        raw[54:56] = b"\x01\x02"  # Non-zero padding from a foreign writer
        updated = replace_balance(bytes(raw), 25.0)

        assert len(updated) == RECORD_SIZE
        assert updated[:BALANCE_OFFSET] == bytes(raw[:BALANCE_OFFSET])
        assert peek_balance(updated) == 25.0


class TestAccountRecord:
    """Test AccountRecord construction"""

    def test_long_name_is_truncated(self):
        """Names are cut to the field width minus the terminator"""
        record = AccountRecord(1, "x" * 80, 0.0)
        assert record.name == "x" * MAX_NAME_BYTES
        assert unpack_record(pack_record(record)) == record

    def test_truncation_keeps_whole_characters(self):
        """A multi-byte character straddling the limit is dropped whole"""
        name = "a" * (MAX_NAME_BYTES - 1) + "é"
        truncated = truncate_name(name)
        assert truncated == "a" * (MAX_NAME_BYTES - 1)
        assert len(truncated.encode("utf-8")) <= MAX_NAME_BYTES

    def test_balance_is_float(self):
        """Integer balances are stored as floats"""
        record = AccountRecord(1, "Int", 100)
        assert isinstance(record.balance, float)

    def test_account_number_must_fit_int32(self):
        """Out of range identifiers are rejected"""
        with pytest.raises(ValueError, match="32-bit"):
            AccountRecord(2 ** 31, "Too Big", 0.0)
        with pytest.raises(ValueError):
            AccountRecord(-(2 ** 31) - 1, "Too Small", 0.0)

    def test_can_cover(self):
        """Debits are covered up to and including the full balance"""
        record = AccountRecord(1, "Cover", 30.0)
        assert record.can_cover(30.0)
        assert record.can_cover(29.99)
        assert not record.can_cover(50.0)

    def test_name_ends_at_first_nul(self):
        """An embedded NUL ends the name in memory just as it does on disk"""
        record = AccountRecord(1, "Al\0ice", 5.0)
        assert record.name == "Al"
        assert unpack_record(pack_record(record)) == record

    def test_unencodable_name_characters_are_replaced(self):
        """Lone surrogates from undecodable console bytes are stored as '?'"""
        record = AccountRecord(2, "Bob\udcff", 5.0)
        assert record.name == "Bob?"
        assert pack_record(record)[4:9] == b"Bob?\0"
        assert unpack_record(pack_record(record)) == record

    def test_truncate_name_leaves_fitting_names_alone(self):
        assert truncate_name("Zoë") == "Zoë"


class TestAmountValidation:
    """Test amount checks shared by the orchestrator"""

    @pytest.mark.parametrize("amount", [0.01, 1, 500.0])
    def test_positive_amounts(self, amount):
        assert is_valid_amount(amount)

    @pytest.mark.parametrize("amount", [0, 0.0, -1.0, float("nan"), float("inf"), True, "10"])
    def test_rejected_amounts(self, amount):
        assert not is_valid_amount(amount)

    def test_zero_allowed_for_opening_balance(self):
        assert is_valid_amount(0.0, allow_zero=True)
        assert not is_valid_amount(-0.5, allow_zero=True)
