"""
Account Record Module

The single entity kept in the store and its on-disk encoding. Records
are 64 bytes back to back with no header, laid out the way a C compiler
lays out ``struct { int account_no; char name[50]; double balance; }``
on x86-64, so files stay interchangeable with the C tool that writes them.
"""

import math
import struct
from dataclasses import dataclass


# account_no (int32) | name (50 bytes, NUL padded) | 2 pad bytes | balance (float64)
RECORD_FORMAT = "<i50s2xd"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)
NAME_FIELD_WIDTH = 50
MAX_NAME_BYTES = NAME_FIELD_WIDTH - 1  # Leave room for the NUL terminator
BALANCE_OFFSET = RECORD_SIZE - 8

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

_record_struct = struct.Struct(RECORD_FORMAT)
_account_no_struct = struct.Struct("<i")
_balance_struct = struct.Struct("<d")


def truncate_name(name: str) -> str:
    """
    Reduce a name to exactly what the name field will hold

    The name ends at the first NUL, as it does for C string readers.
    Characters UTF-8 cannot encode (lone surrogates from undecodable
    console bytes) become "?", and the result is cut to the field width
    without splitting a character.
    """
    name = name.split("\0", 1)[0]
    encoded = name.encode("utf-8", errors="replace")
    if len(encoded) <= MAX_NAME_BYTES and encoded.decode("utf-8") == name:
        return name
    return encoded[:MAX_NAME_BYTES].decode("utf-8", errors="ignore")


@dataclass
class AccountRecord:
    """
    One account as stored on disk

    The name is truncated on construction so that an in-memory record
    compares equal to the same record read back from the store.
    """
    account_no: int
    name: str
    balance: float

    def __post_init__(self):
        if not INT32_MIN <= self.account_no <= INT32_MAX:
            raise ValueError(
                f"Account number {self.account_no} does not fit a 32-bit integer"
            )
        self.name = truncate_name(self.name)
        self.balance = float(self.balance)

    def can_cover(self, amount: float) -> bool:
        """Check if the balance covers a debit of ``amount``"""
        return self.balance >= amount


def pack_record(record: AccountRecord) -> bytes:
    """Encode a record into its fixed-size binary form"""
    name_bytes = record.name.encode("utf-8", errors="replace")[:MAX_NAME_BYTES]
    return _record_struct.pack(record.account_no, name_bytes, record.balance)


def unpack_record(raw: bytes) -> AccountRecord:
    """
    Decode one fixed-size record

    Bytes after the first NUL in the name field are ignored; files
    written by C code may carry leftover stack bytes there.
    """
    if len(raw) != RECORD_SIZE:
        raise ValueError(f"Record must be {RECORD_SIZE} bytes, got {len(raw)}")
    account_no, name_field, balance = _record_struct.unpack(raw)
    name = name_field.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    return AccountRecord(account_no=account_no, name=name, balance=balance)


def peek_account_no(raw: bytes) -> int:
    """Read only the account number of an encoded record"""
    return _account_no_struct.unpack_from(raw, 0)[0]


def peek_balance(raw: bytes) -> float:
    """Read only the balance of an encoded record"""
    return _balance_struct.unpack_from(raw, BALANCE_OFFSET)[0]


def replace_balance(raw: bytes, balance: float) -> bytes:
    """Return a copy of an encoded record with a new balance, all other bytes kept"""
    return raw[:BALANCE_OFFSET] + _balance_struct.pack(balance)


def is_valid_amount(amount: float, allow_zero: bool = False) -> bool:
    """Check that an amount is a finite number above zero (or at zero when allowed)"""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    if not math.isfinite(amount):
        return False
    return amount >= 0 if allow_zero else amount > 0
