"""
Transaction Records Module

Transaction records are produced exclusively as a by-product of account
balance mutations. Apart from ``status`` they are never changed after
creation.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from .serialization import parse_datetime, parse_decimal, record_to_dict


class TransactionType(Enum):
    """Types of ledger transactions (persisted as ordinals)"""
    WITHDRAW = 0
    DEPOSIT = 1
    TRANSFER = 2


class TransactionStatus(Enum):
    """States of a transaction (persisted as ordinals)"""
    PENDING = 0
    COMPLETED = 1
    FAILED = 2
    CANCELLED = 3


def new_id() -> str:
    """Generate a transaction id or reference number"""
    return str(uuid.uuid4())


@dataclass
class Transaction:
    """
    One entry in the transaction log

    Deposits carry only ``destination_account``, withdrawals only
    ``source_account``; both legs of a transfer carry both account numbers
    and share ``reference_number``.
    """
    id: str = field(default_factory=new_id)
    transaction_type: TransactionType = TransactionType.DEPOSIT
    amount: Decimal = Decimal("0")
    source_account: str = ""
    destination_account: str = ""
    status: TransactionStatus = TransactionStatus.PENDING
    date_created: datetime = field(default_factory=datetime.now)
    description: str = ""
    balance_after_transaction: Decimal = Decimal("0")
    initiator: str = ""
    channel: str = ""
    reference_number: str = field(default_factory=new_id)

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    def involves(self, account_number: str) -> bool:
        """Check if the account is on either side of this transaction"""
        return account_number in (self.source_account, self.destination_account)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for storage"""
        return record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from a stored dictionary"""
        return cls(
            id=data['id'],
            transaction_type=TransactionType(data.get('transactionType', TransactionType.DEPOSIT.value)),
            amount=parse_decimal(data.get('amount')),
            source_account=data.get('sourceAccount') or "",
            destination_account=data.get('destinationAccount') or "",
            status=TransactionStatus(data.get('status', TransactionStatus.PENDING.value)),
            date_created=parse_datetime(data.get('dateCreated')) or datetime.now(),
            description=data.get('description', ""),
            balance_after_transaction=parse_decimal(data.get('balanceAfterTransaction')),
            initiator=data.get('initiator', ""),
            channel=data.get('channel', ""),
            reference_number=data.get('referenceNumber') or new_id(),
        )
