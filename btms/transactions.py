"""
Transaction Orchestration Module

Validates requests and sequences them over the record store: account
creation, single-account views, deposits, withdrawals, two-leg transfers,
deletion and full listings. Every operation hands back an
OperationResult; rejected requests never raise to the caller.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import (
    BankingError, ErrorKind, AccountNotFoundError, DuplicateAccountError,
    InsufficientBalanceError, InvalidAccountNumberError, InvalidAmountError,
    SameAccountTransferError
)
from .logging_config import get_logger, log_action
from .records import AccountRecord, INT32_MAX, INT32_MIN, is_valid_amount
from .storage import OperationKind, RecordStore


class TransferState(Enum):
    """Where a transfer ended up"""
    COMPLETED = "completed"  # Both legs applied
    FAILED = "failed"        # Nothing applied
    PARTIAL = "partial"      # Source debited, destination not credited


@dataclass
class OperationResult:
    """Outcome of one orchestrated operation, with what is needed to render it"""
    success: bool
    message: str
    error: Optional[ErrorKind] = None
    account: Optional[AccountRecord] = None
    accounts: List[AccountRecord] = field(default_factory=list)
    transfer_state: Optional[TransferState] = None

    @property
    def count(self) -> int:
        return len(self.accounts)

    @classmethod
    def ok(cls, message: str, **kwargs) -> "OperationResult":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def failed(cls, error: BankingError, **kwargs) -> "OperationResult":
        return cls(success=False, message=error.message, error=error.kind, **kwargs)


def parse_account_no(text: str) -> int:
    """
    Parse an account number typed at the console

    Raises:
        InvalidAccountNumberError: If the text is not an integer that fits int32
    """
    try:
        account_no = int(text.strip())
    except (ValueError, AttributeError):
        raise InvalidAccountNumberError(f"Invalid account number: {text!r}")
    if not INT32_MIN <= account_no <= INT32_MAX:
        raise InvalidAccountNumberError(f"Account number {account_no} is out of range")
    return account_no


def parse_amount(text: str) -> float:
    """
    Parse an amount typed at the console

    Only checks that the text is a finite number; sign rules belong to
    the operation using it.

    Raises:
        InvalidAmountError: If the text is not a finite number
    """
    try:
        amount = float(text.strip())
    except (ValueError, AttributeError):
        raise InvalidAmountError(f"Invalid amount: {text!r}")
    if not math.isfinite(amount):
        raise InvalidAmountError(f"Invalid amount: {text!r}")
    return amount


class TransactionOrchestrator:
    """
    Runs account operations against a record store

    Transfers are two separate rewrites with no compensation: if the
    credit leg fails after the debit leg succeeded, the result reports
    TransferState.PARTIAL and the source stays debited.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.logger = get_logger("btms.transactions")

    def _reject(self, error: BankingError, action: str, **kwargs) -> OperationResult:
        level = "error" if error.kind == ErrorKind.STORAGE_UNAVAILABLE else "warning"
        log_action(
            self.logger, level, f"{action} rejected: {error.message}",
            action=action,
            resource=f"account:{error.account_no}" if error.account_no is not None else None,
            extra={"error": error.kind.value}
        )
        return OperationResult.failed(error, **kwargs)

    def _require_positive(self, amount: float, label: str) -> None:
        if not is_valid_amount(amount):
            raise InvalidAmountError(f"Invalid {label} amount.")

    def _require_account(self, account_no: int, label: str = "Account") -> AccountRecord:
        account = self.store.lookup(account_no)
        if account is None:
            raise AccountNotFoundError(f"{label} {account_no} not found.", account_no)
        return account

    def _require_available(self, account_no: int) -> None:
        if not INT32_MIN <= account_no <= INT32_MAX:
            raise InvalidAccountNumberError(
                f"Account number {account_no} is out of range", account_no
            )
        if self.store.lookup(account_no) is not None:
            raise DuplicateAccountError(
                f"Account Number {account_no} already exists.", account_no
            )

    def check_available(self, account_no: int) -> OperationResult:
        """Check that a new account could be opened under this number"""
        try:
            self._require_available(account_no)
        except BankingError as e:
            return self._reject(e, "check_available")
        return OperationResult.ok(f"Account Number {account_no} is available.")

    def create_account(self, account_no: int, name: str, initial_balance: float) -> OperationResult:
        """
        Create a new account

        Args:
            account_no: Identifier, must not already exist
            name: Holder name, truncated to the record's name width
            initial_balance: Opening balance, zero or more

        Returns:
            OperationResult carrying the new record on success
        """
        try:
            self._require_available(account_no)
            if not is_valid_amount(initial_balance, allow_zero=True):
                raise InvalidAmountError("Invalid deposit amount.", account_no)

            record = AccountRecord(account_no=account_no, name=name, balance=initial_balance)
            self.store.append(record)
        except BankingError as e:
            return self._reject(e, "create_account")

        log_action(
            self.logger, "info", f"Account {account_no} created",
            action="create_account", resource=f"account:{account_no}",
            extra={"balance": record.balance}
        )
        return OperationResult.ok(f"Account {account_no} Created Successfully!", account=record)

    def view_account(self, account_no: int) -> OperationResult:
        """Look up a single account"""
        try:
            account = self._require_account(account_no, "Account Number")
        except BankingError as e:
            return self._reject(e, "view_account")
        return OperationResult.ok("Account Found", account=account)

    def deposit(self, account_no: int, amount: float) -> OperationResult:
        """
        Credit an account

        Credits never hit the balance guard; a deposit fails only on the
        amount, on a missing account, or on a balance that would overflow.
        """
        try:
            self._require_positive(amount, "deposit")
            if not self.store.rewrite_apply(account_no, amount, OperationKind.DEPOSIT):
                raise AccountNotFoundError("Deposit failed. Account not found.", account_no)
            account = self.store.lookup(account_no)
        except BankingError as e:
            return self._reject(e, "deposit")

        return OperationResult.ok(
            f"Deposit Successful! Account {account_no} updated.", account=account
        )

    def withdraw(self, account_no: int, amount: float) -> OperationResult:
        """
        Debit an account if its balance covers the amount

        When the rewrite reports failure the account is looked up again
        to tell a missing account from a short balance.
        """
        try:
            self._require_positive(amount, "withdrawal")
            if not self.store.rewrite_apply(account_no, amount, OperationKind.WITHDRAW):
                account = self.store.lookup(account_no)
                if account is not None and not account.can_cover(amount):
                    raise InsufficientBalanceError(
                        f"Insufficient Balance. Current Balance: {account.balance:.2f}",
                        account_no, balance=account.balance
                    )
                raise AccountNotFoundError("Withdrawal failed. Account not found.", account_no)
            account = self.store.lookup(account_no)
        except BankingError as e:
            return self._reject(e, "withdraw")

        return OperationResult.ok(
            f"Withdrawal Successful! Account {account_no} updated.", account=account
        )

    def transfer(self, source_no: int, dest_no: int, amount: float) -> OperationResult:
        """
        Move funds between two accounts

        Both accounts are checked up front, then the source is debited and
        the destination credited as two independent rewrites. A failed
        credit leg is reported with TransferState.PARTIAL and not reversed.

        Args:
            source_no: Account to debit
            dest_no: Account to credit, must differ from source_no
            amount: Amount to move, above zero

        Returns:
            OperationResult whose transfer_state says how far the transfer got
        """
        failed = TransferState.FAILED
        try:
            if source_no == dest_no:
                raise SameAccountTransferError(
                    "Cannot transfer to the same account.", source_no
                )
            self._require_positive(amount, "transfer")

            source = self._require_account(source_no, "Source Account")
            if not source.can_cover(amount):
                raise InsufficientBalanceError(
                    f"Insufficient Balance in Source Account. "
                    f"Current Balance: {source.balance:.2f}",
                    source_no, balance=source.balance
                )
            dest = self._require_account(dest_no, "Destination Account")
            if not math.isfinite(dest.balance + amount):
                raise InvalidAmountError(
                    f"Crediting {amount} would overflow the balance of account {dest_no}.",
                    dest_no
                )

            if not self.store.rewrite_apply(source_no, amount, OperationKind.TRANSFER_OUT):
                raise self._debit_failure(source_no, amount)
        except BankingError as e:
            return self._reject(e, "transfer", transfer_state=failed)

        try:
            credited = self.store.rewrite_apply(dest_no, amount, OperationKind.TRANSFER_IN)
        except BankingError as e:
            return self._partial(source_no, dest_no, amount, e)
        if not credited:
            return self._partial(source_no, dest_no, amount, AccountNotFoundError(
                "Failed to deposit to Destination Account. "
                "Transaction aborted (Source account was debited).", dest_no
            ))

        log_action(
            self.logger, "info", f"Transferred {amount:.2f} from {source_no} to {dest_no}",
            action="transfer", resource=f"account:{source_no}",
            extra={"source": source_no, "destination": dest_no, "amount": amount}
        )
        return OperationResult.ok(
            f"Fund Transfer of {amount:.2f} from {source_no} to {dest_no} Successful!",
            transfer_state=TransferState.COMPLETED
        )

    def _debit_failure(self, source_no: int, amount: float) -> BankingError:
        # The account changed between the pre-check and the debit leg
        account = self.store.lookup(source_no)
        if account is None:
            return AccountNotFoundError(f"Source Account {source_no} not found.", source_no)
        return InsufficientBalanceError(
            f"Failed to withdraw from Source Account. "
            f"Current Balance: {account.balance:.2f}",
            source_no, balance=account.balance
        )

    def _partial(self, source_no: int, dest_no: int, amount: float,
                 error: BankingError) -> OperationResult:
        log_action(
            self.logger, "error",
            f"Transfer of {amount:.2f} from {source_no} to {dest_no} left source debited: "
            f"{error.message}",
            action="transfer_partial", resource=f"account:{dest_no}",
            extra={"source": source_no, "destination": dest_no, "amount": amount,
                   "error": error.kind.value}
        )
        return OperationResult.failed(error, transfer_state=TransferState.PARTIAL)

    def delete_account(self, account_no: int) -> OperationResult:
        """Remove an account from the store"""
        try:
            if not self.store.rewrite_apply(account_no, 0.0, OperationKind.DELETE):
                raise AccountNotFoundError(
                    f"Account {account_no} not found or deletion failed.", account_no
                )
        except BankingError as e:
            return self._reject(e, "delete_account")

        return OperationResult.ok(f"Account {account_no} deleted successfully.")

    def view_all(self) -> OperationResult:
        """List every account in file order"""
        try:
            if not self.store.exists():
                return OperationResult.ok("No accounts found. File does not exist or is empty.")
            accounts = self.store.scan()
        except BankingError as e:
            return self._reject(e, "view_all")

        if not accounts:
            return OperationResult.ok("No accounts found. File does not exist or is empty.")
        return OperationResult.ok(f"Total Accounts: {len(accounts)}", accounts=accounts)
