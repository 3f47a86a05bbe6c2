"""
Record Store Module

Keeps account records in one flat binary file of fixed-size records.
Creation appends, lookup scans from the start, and every mutation
streams the whole file into a staging file which then replaces the
original. No index, no cache, no cross-process locking.
"""

import math
import os
import threading
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from .errors import InvalidAmountError, StorageUnavailableError
from .logging_config import get_logger, log_action
from .records import (
    AccountRecord, RECORD_SIZE, pack_record, unpack_record,
    peek_account_no, peek_balance, replace_balance
)


class OperationKind(Enum):
    """Mutations that rewrite_apply knows how to apply to a record"""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_OUT = "transfer_out"  # Debit leg of a transfer
    TRANSFER_IN = "transfer_in"    # Credit leg of a transfer
    DELETE = "delete"

    @property
    def is_credit(self) -> bool:
        return self in (OperationKind.DEPOSIT, OperationKind.TRANSFER_IN)

    @property
    def is_debit(self) -> bool:
        return self in (OperationKind.WITHDRAW, OperationKind.TRANSFER_OUT)


class RecordStore:
    """
    Flat-file account store

    Each instance serializes its own operations with a lock. Two stores
    (or two processes) pointed at the same files will still corrupt each
    other, since the staging file has a fixed name.
    """

    def __init__(self, store_path: Union[str, Path], temp_path: Union[str, Path]):
        self.store_path = Path(store_path)
        self.temp_path = Path(temp_path)
        if self.store_path.resolve() == self.temp_path.resolve():
            raise ValueError("Store path and temporary path must differ")
        self._lock = threading.RLock()
        self.logger = get_logger("btms.storage")

    def _iter_raw(self, fh: BinaryIO) -> Iterator[bytes]:
        """Yield encoded records until end of file"""
        while chunk := fh.read(RECORD_SIZE):
            if len(chunk) < RECORD_SIZE:
                self.logger.warning(
                    f"Ignoring {len(chunk)} trailing bytes in {self.store_path}"
                )
                break
            yield chunk

    def _open_for_read(self) -> Optional[BinaryIO]:
        """Open the store for reading, None if it does not exist yet"""
        try:
            return open(self.store_path, "rb")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise self._unavailable("read", self.store_path, e)

    def _unavailable(self, mode: str, path: Path, error: OSError) -> StorageUnavailableError:
        log_action(
            self.logger, "error", f"Could not open {path} for {mode}: {error}",
            action=f"open_{mode}", resource=str(path)
        )
        return StorageUnavailableError(
            f"Could not open {path} for {mode}", path=str(path), cause=error
        )

    def _discard_temp(self) -> None:
        try:
            self.temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Could not remove staging file {self.temp_path}: {e}")

    def exists(self) -> bool:
        """Check if the store file exists"""
        return self.store_path.exists()

    def append(self, record: AccountRecord) -> None:
        """
        Write one record at the end of the store

        No duplicate check happens here; callers look the account up first.

        Raises:
            StorageUnavailableError: If the store cannot be opened or written
        """
        data = pack_record(record)
        with self._lock:
            try:
                with open(self.store_path, "ab") as fh:
                    fh.write(data)
            except OSError as e:
                raise self._unavailable("append", self.store_path, e)

        log_action(
            self.logger, "debug", f"Appended account {record.account_no}",
            action="append", resource=f"account:{record.account_no}"
        )

    def scan(self) -> List[AccountRecord]:
        """Read every record in file order, an empty list if the store is absent"""
        with self._lock:
            fh = self._open_for_read()
            if fh is None:
                return []
            with fh:
                try:
                    return [unpack_record(raw) for raw in self._iter_raw(fh)]
                except OSError as e:
                    raise self._unavailable("read", self.store_path, e)

    def lookup(self, account_no: int) -> Optional[AccountRecord]:
        """
        Find the first record with a matching account number

        Args:
            account_no: Account number to search for

        Returns:
            The record, or None if the store is absent or has no match
        """
        with self._lock:
            fh = self._open_for_read()
            if fh is None:
                return None
            with fh:
                try:
                    for raw in self._iter_raw(fh):
                        if peek_account_no(raw) == account_no:
                            return unpack_record(raw)
                except OSError as e:
                    raise self._unavailable("read", self.store_path, e)
        return None

    def count(self) -> int:
        """Count records in the store"""
        return len(self.scan())

    def rewrite_apply(self, account_no: int, amount: float, kind: OperationKind) -> bool:
        """
        Apply one mutation by rewriting the whole store

        Every record is streamed into the staging file. Records that do not
        match are copied byte for byte; the first match gets ``kind``
        applied. The staging file replaces the store only when the
        mutation went through, otherwise it is discarded and the store is
        left as it was.

        Args:
            account_no: Account to mutate
            amount: Amount to credit or debit (ignored for DELETE)
            kind: Mutation to apply

        Returns:
            True if the store was replaced, False if the account was not
            found or a debit exceeded the balance

        Raises:
            InvalidAmountError: If a credit would push the balance past the
                largest representable float
            StorageUnavailableError: If either file cannot be opened, read,
                written or swapped
        """
        with self._lock:
            source = self._open_for_read()
            if source is None:
                return False

            with source:
                try:
                    staging = open(self.temp_path, "wb")
                except OSError as e:
                    raise self._unavailable("write", self.temp_path, e)

                try:
                    with staging:
                        applied = self._stream_apply(source, staging, account_no, amount, kind)
                except OSError as e:
                    self._discard_temp()
                    raise self._unavailable("rewrite", self.temp_path, e)
                except InvalidAmountError:
                    self._discard_temp()
                    raise

            if not applied:
                self._discard_temp()
                return False

            try:
                os.replace(self.temp_path, self.store_path)
            except OSError as e:
                self._discard_temp()
                raise self._unavailable("replace", self.store_path, e)

        log_action(
            self.logger, "info", f"Applied {kind.value} to account {account_no}",
            action=kind.value, resource=f"account:{account_no}",
            extra={"amount": amount}
        )
        return True

    def _stream_apply(self, source: BinaryIO, staging: BinaryIO, account_no: int,
                      amount: float, kind: OperationKind) -> bool:
        matched = False
        for raw in self._iter_raw(source):
            if matched or peek_account_no(raw) != account_no:
                staging.write(raw)
                continue

            matched = True
            balance = peek_balance(raw)
            if kind.is_credit:
                credited = balance + amount
                if not math.isfinite(credited):
                    raise InvalidAmountError(
                        f"Crediting {amount} would overflow the balance of account {account_no}.",
                        account_no
                    )
                staging.write(replace_balance(raw, credited))
            elif kind.is_debit:
                if balance < amount:
                    log_action(
                        self.logger, "warning",
                        f"Rejected {kind.value} of {amount:.2f} from account {account_no}",
                        action=kind.value, resource=f"account:{account_no}",
                        extra={"balance": balance, "amount": amount}
                    )
                    return False
                staging.write(replace_balance(raw, balance - amount))
            # DELETE: the record is left out of the staging file

        return matched
