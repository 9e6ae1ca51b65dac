"""Error taxonomy for ledger, directory and storage operations."""


class LedgerError(Exception):
    """Base exception for all bank-ledger errors."""


class FrozenAccountError(LedgerError):
    """Raised when a balance mutation is attempted on a frozen account."""

    def __init__(self, account_number: str, role: str = "Account"):
        self.account_number = account_number
        super().__init__(f"{role} {account_number} is frozen")


class InvalidAmountError(LedgerError, ValueError):
    """Raised when a deposit, withdrawal or transfer amount is not positive."""


class InsufficientFundsError(LedgerError):
    """Raised when a withdrawal or transfer exceeds the available balance."""

    def __init__(self, account_number: str, balance, requested):
        self.account_number = account_number
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient funds in {account_number}: "
            f"balance {balance}, requested {requested}"
        )


class SelfTransferError(LedgerError, ValueError):
    """Raised when source and destination of a transfer are the same account."""


class AccountNotFoundError(LedgerError, LookupError):
    """Raised when an account number does not resolve to a stored account."""


class CustomerNotFoundError(LedgerError, LookupError):
    """Raised when a customer lookup misses."""


class DuplicateUsernameError(LedgerError):
    """Raised when a username is already taken."""


class DuplicateEmailError(LedgerError):
    """Raised when an email address is already taken."""


class StorageReadError(LedgerError):
    """Raised when a collection cannot be read and the policy is ``raise``."""

    def __init__(self, collection: str, cause: BaseException):
        self.collection = collection
        self.cause = cause
        super().__init__(f"Failed to read collection '{collection}': {cause}")
