"""
Error Kinds Module

Every way an account operation can be rejected. The record store raises
these for I/O trouble, the transaction orchestrator raises them for
business rule violations and converts them into failed results before
anything reaches the caller.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Reasons an operation can fail"""
    DUPLICATE_ACCOUNT = "duplicate_account"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INVALID_AMOUNT = "invalid_amount"                  # Non-positive, non-finite or unparsable
    INVALID_ACCOUNT_NUMBER = "invalid_account_number"  # Unparsable or outside int32
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SAME_ACCOUNT_TRANSFER = "same_account_transfer"
    STORAGE_UNAVAILABLE = "storage_unavailable"        # Store or temp file cannot be opened


class BankingError(Exception):
    """Base class for all rejected account operations"""

    kind: ErrorKind = ErrorKind.STORAGE_UNAVAILABLE

    def __init__(self, message: str, account_no: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.account_no = account_no


class DuplicateAccountError(BankingError):
    kind = ErrorKind.DUPLICATE_ACCOUNT


class AccountNotFoundError(BankingError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND


class InvalidAmountError(BankingError):
    kind = ErrorKind.INVALID_AMOUNT


class InvalidAccountNumberError(BankingError):
    kind = ErrorKind.INVALID_ACCOUNT_NUMBER


class InsufficientBalanceError(BankingError):
    """Raised when a debit would take the balance below zero"""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, message: str, account_no: Optional[int] = None,
                 balance: Optional[float] = None):
        super().__init__(message, account_no)
        self.balance = balance


class SameAccountTransferError(BankingError):
    kind = ErrorKind.SAME_ACCOUNT_TRANSFER


class StorageUnavailableError(BankingError):
    """Raised when the store or staging file cannot be opened, read or written"""

    kind = ErrorKind.STORAGE_UNAVAILABLE

    def __init__(self, message: str, path: Optional[str] = None,
                 cause: Optional[OSError] = None):
        super().__init__(message)
        self.path = path
        self.cause = cause
