"""
Account Module

The Account entity owns every balance mutation: deposits, withdrawals and
transfers. Each successful mutation returns the Transaction record(s) it
produced and appends their ids to the affected account(s); persisting either
side is the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Tuple

from .errors import (
    FrozenAccountError, InsufficientFundsError, InvalidAmountError, SelfTransferError
)
from .serialization import parse_datetime, parse_decimal, record_to_dict
from .transactions import Transaction, TransactionStatus, TransactionType, new_id


DEFAULT_INITIATOR = "System"
ATM_CHANNEL = "ATM"
ONLINE_CHANNEL = "Online"


class AccountType(Enum):
    """Account products (persisted as ordinals)"""
    CURRENT = 0
    SAVING = 1
    FIXED_DEPOSIT = 2

    @property
    def label(self) -> str:
        return {
            AccountType.CURRENT: "Current",
            AccountType.SAVING: "Saving",
            AccountType.FIXED_DEPOSIT: "Fixed Deposit",
        }[self]


def default_account_name(owner_name: str, account_type: AccountType) -> str:
    """Name given to accounts opened on an owner's behalf"""
    return f"{owner_name}'s {account_type.label} Account"


def to_amount(value: Any) -> Decimal:
    """
    Coerce a monetary value to Decimal

    Floats go through ``str()`` so 0.1 becomes Decimal('0.1') rather than its
    binary expansion. Non-numeric and non-finite values are rejected.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return amount


def _format_amount(amount: Decimal) -> str:
    return f"{amount:,.2f}"


@dataclass
class Account:
    """
    Bank account with freeze state and an ordered list of transaction ids

    ``account_balance`` never goes negative: every debit checks funds before
    the first mutation, and a frozen account rejects all balance changes.
    """
    account_name: str
    account_number: str
    account_type: AccountType = AccountType.CURRENT
    customer_id: str = ""
    account_balance: Decimal = Decimal("0")
    transaction_ids: List[str] = field(default_factory=list)
    date_created: datetime = field(default_factory=datetime.now)
    is_frozen: bool = False

    def _ensure_active(self, role: str = "Account") -> None:
        if self.is_frozen:
            raise FrozenAccountError(self.account_number, role)

    @staticmethod
    def _positive(amount: Any, verb: str) -> Decimal:
        amount = to_amount(amount)
        if amount <= 0:
            raise InvalidAmountError(f"{verb} amount must be positive, got {amount}")
        return amount

    def _ensure_funds(self, amount: Decimal) -> None:
        if self.account_balance < amount:
            raise InsufficientFundsError(self.account_number, self.account_balance, amount)

    def deposit(self, amount: Any, initiator: str = DEFAULT_INITIATOR,
                channel: str = ATM_CHANNEL) -> Transaction:
        """
        Deposit into this account

        Raises:
            FrozenAccountError: the account is frozen
            InvalidAmountError: amount is not positive
        """
        self._ensure_active()
        amount = self._positive(amount, "Deposit")

        self.account_balance += amount
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            amount=amount,
            source_account="",
            destination_account=self.account_number,
            status=TransactionStatus.COMPLETED,
            description=f"Deposit of {_format_amount(amount)}",
            balance_after_transaction=self.account_balance,
            initiator=initiator,
            channel=channel,
        )
        self.transaction_ids.append(transaction.id)
        return transaction

    def withdraw(self, amount: Any, initiator: str = DEFAULT_INITIATOR,
                 channel: str = ATM_CHANNEL) -> Transaction:
        """
        Withdraw from this account

        Raises:
            FrozenAccountError: the account is frozen
            InvalidAmountError: amount is not positive
            InsufficientFundsError: balance is lower than amount
        """
        self._ensure_active()
        amount = self._positive(amount, "Withdrawal")
        self._ensure_funds(amount)

        self.account_balance -= amount
        transaction = Transaction(
            transaction_type=TransactionType.WITHDRAW,
            amount=amount,
            source_account=self.account_number,
            destination_account="",
            status=TransactionStatus.COMPLETED,
            description=f"Withdrawal of {_format_amount(amount)}",
            balance_after_transaction=self.account_balance,
            initiator=initiator,
            channel=channel,
        )
        self.transaction_ids.append(transaction.id)
        return transaction

    def transfer(self, amount: Any, destination: 'Account',
                 initiator: str = DEFAULT_INITIATOR,
                 channel: str = ONLINE_CHANNEL) -> Tuple[Transaction, Transaction]:
        """
        Move funds from this account to ``destination``

        Both balances change in the same in-memory step. Returns the debit leg
        (this account) and the credit leg (destination); the legs share a
        reference number and timestamp but have distinct ids.

        Raises:
            SelfTransferError: destination is this account
            FrozenAccountError: either side is frozen (source checked first)
            InvalidAmountError: amount is not positive
            InsufficientFundsError: this account's balance is lower than amount
        """
        if destination is self or destination.account_number == self.account_number:
            raise SelfTransferError(f"Cannot transfer from {self.account_number} to itself")
        self._ensure_active("Source account")
        destination._ensure_active("Destination account")
        amount = self._positive(amount, "Transfer")
        self._ensure_funds(amount)

        self.account_balance -= amount
        destination.account_balance += amount

        transaction_date = datetime.now()
        reference_number = new_id()

        transfer_out = Transaction(
            transaction_type=TransactionType.TRANSFER,
            amount=amount,
            source_account=self.account_number,
            destination_account=destination.account_number,
            status=TransactionStatus.COMPLETED,
            date_created=transaction_date,
            description=f"Transfer to {destination.account_number}",
            balance_after_transaction=self.account_balance,
            initiator=initiator,
            channel=channel,
            reference_number=reference_number,
        )
        self.transaction_ids.append(transfer_out.id)

        transfer_in = Transaction(
            transaction_type=TransactionType.TRANSFER,
            amount=amount,
            source_account=self.account_number,
            destination_account=destination.account_number,
            status=TransactionStatus.COMPLETED,
            date_created=transaction_date,
            description=f"Transfer from {self.account_number}",
            balance_after_transaction=destination.account_balance,
            initiator=initiator,
            channel=channel,
            reference_number=reference_number,
        )
        destination.transaction_ids.append(transfer_in.id)

        return transfer_out, transfer_in

    def freeze(self) -> None:
        """Block all balance mutations"""
        self.is_frozen = True

    def unfreeze(self) -> None:
        """Allow balance mutations again"""
        self.is_frozen = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for storage"""
        return record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from a stored dictionary"""
        return cls(
            account_name=data.get('accountName', ""),
            account_number=str(data['accountNumber']),
            account_type=AccountType(data.get('accountType', AccountType.CURRENT.value)),
            customer_id=data.get('customerId') or "",
            account_balance=parse_decimal(data.get('accountBalance')),
            transaction_ids=list(data.get('transactionIds') or []),
            date_created=parse_datetime(data.get('dateCreated')) or datetime.now(),
            is_frozen=bool(data.get('isFrozen', False)),
        )
