"""
Ledger Service Module

Orchestrates the read-mutate-write cycle for every balance operation:
load the account(s), let the Account entity validate and mutate, write the
account(s) back, then append the resulting transaction record(s) to the
transaction log.

The Account entity is the single authority for frozen / amount / funds
checks; this layer only adds lookups and persistence. When a storage with
unit-of-work support is supplied, all writes of one operation are staged and
flushed together, so a failure anywhere before the flush leaves the stored
ledger untouched.
"""

from contextlib import contextmanager, nullcontext
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from .accounts import ATM_CHANNEL, DEFAULT_INITIATOR, ONLINE_CHANNEL, Account, AccountType
from .errors import AccountNotFoundError, LedgerError
from .logging_config import get_logger, log_action
from .numbering import AccountNumberGenerator
from .repositories import AccountRepository, TransactionRepository
from .storage import StorageInterface
from .transactions import Transaction, TransactionStatus


class LedgerService:
    """
    Deposits, withdrawals, transfers and account administration
    """

    def __init__(
        self,
        accounts: AccountRepository,
        transactions: Optional[TransactionRepository] = None,
        storage: Optional[StorageInterface] = None,
        number_generator: Optional[AccountNumberGenerator] = None,
        initiator: str = DEFAULT_INITIATOR,
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.storage = storage
        self.number_generator = number_generator
        self.initiator = initiator
        self.logger = get_logger("bank_ledger.ledger")

    @contextmanager
    def _unit_of_work(self):
        scope = self.storage.atomic() if self.storage is not None else nullcontext()
        with scope:
            yield

    def _require_account(self, account_number: str, role: str = "Account") -> Account:
        account = self.accounts.get_by_number(account_number)
        if account is None:
            raise AccountNotFoundError(f"{role} {account_number} not found")
        return account

    def _record(self, *transactions: Transaction) -> None:
        if self.transactions is not None:
            self.transactions.add_many(transactions)

    def _reject(self, action: str, account_number: str, error: Exception) -> None:
        log_action(
            self.logger, "warning", f"{action} rejected for {account_number}: {error}",
            action=action, resource=f"account:{account_number}",
            extra={"error_type": type(error).__name__}
        )

    def deposit(self, account_number: str, amount: Any,
                channel: str = ATM_CHANNEL) -> Transaction:
        """
        Deposit into an account and persist the result

        Raises:
            AccountNotFoundError, FrozenAccountError, InvalidAmountError
        """
        try:
            with self._unit_of_work():
                account = self._require_account(account_number)
                transaction = account.deposit(amount, initiator=self.initiator, channel=channel)
                self.accounts.update(account)
                self._record(transaction)
        except LedgerError as e:
            self._reject("deposit", account_number, e)
            raise

        log_action(
            self.logger, "info", f"Deposit to {account_number}",
            action="deposit", resource=f"account:{account_number}",
            extra={
                "transaction_id": transaction.id,
                "amount": str(transaction.amount),
                "balance": str(transaction.balance_after_transaction),
            }
        )
        return transaction

    def withdraw(self, account_number: str, amount: Any,
                 channel: str = ATM_CHANNEL) -> Transaction:
        """
        Withdraw from an account and persist the result

        Raises:
            AccountNotFoundError, FrozenAccountError, InvalidAmountError,
            InsufficientFundsError
        """
        try:
            with self._unit_of_work():
                account = self._require_account(account_number)
                transaction = account.withdraw(amount, initiator=self.initiator, channel=channel)
                self.accounts.update(account)
                self._record(transaction)
        except LedgerError as e:
            self._reject("withdraw", account_number, e)
            raise

        log_action(
            self.logger, "info", f"Withdrawal from {account_number}",
            action="withdraw", resource=f"account:{account_number}",
            extra={
                "transaction_id": transaction.id,
                "amount": str(transaction.amount),
                "balance": str(transaction.balance_after_transaction),
            }
        )
        return transaction

    def transfer(self, source_number: str, destination_number: str, amount: Any,
                 channel: str = ONLINE_CHANNEL) -> Tuple[Transaction, Transaction]:
        """
        Transfer between two stored accounts

        Writes the source account, then the destination account, then both
        legs to the transaction log. Without a unit-of-work storage these are
        independent writes and a crash between them leaves the two balances
        out of step.

        Raises:
            AccountNotFoundError, SelfTransferError, FrozenAccountError,
            InvalidAmountError, InsufficientFundsError
        """
        try:
            with self._unit_of_work():
                source = self._require_account(source_number, "Source account")
                destination = self._require_account(destination_number, "Destination account")
                debit, credit = source.transfer(
                    amount, destination, initiator=self.initiator, channel=channel
                )
                self.accounts.update(source)
                self.accounts.update(destination)
                self._record(debit, credit)
        except LedgerError as e:
            self._reject("transfer", source_number, e)
            raise

        log_action(
            self.logger, "info", f"Transfer {source_number} -> {destination_number}",
            action="transfer", resource=f"account:{source_number}",
            extra={
                "reference_number": debit.reference_number,
                "amount": str(debit.amount),
                "destination": destination_number,
            }
        )
        return debit, credit

    def open_account(self, account_name: str,
                     account_type: AccountType = AccountType.CURRENT,
                     customer_id: str = "") -> Account:
        """Open an account with a freshly generated number; ``customer_id`` may be empty"""
        if self.number_generator is None:
            raise RuntimeError("LedgerService was built without an account number generator")

        account = Account(
            account_name=account_name,
            account_number=self.number_generator.next_number(),
            account_type=account_type,
            customer_id=customer_id,
        )
        self.accounts.add(account)

        log_action(
            self.logger, "info", f"Account opened: {account.account_number}",
            action="open_account", resource=f"account:{account.account_number}",
            extra={"account_type": account_type.name, "customer_id": customer_id or None}
        )
        return account

    def get_account(self, account_number: str) -> Optional[Account]:
        return self.accounts.get_by_number(account_number)

    def list_accounts(self) -> List[Account]:
        return self.accounts.get_all()

    def get_balance(self, account_number: str) -> Decimal:
        return self._require_account(account_number).account_balance

    def freeze_account(self, account_number: str) -> Account:
        account = self._require_account(account_number)
        account.freeze()
        self.accounts.update(account)
        log_action(
            self.logger, "info", f"Account frozen: {account_number}",
            action="freeze_account", resource=f"account:{account_number}"
        )
        return account

    def unfreeze_account(self, account_number: str) -> Account:
        account = self._require_account(account_number)
        account.unfreeze()
        self.accounts.update(account)
        log_action(
            self.logger, "info", f"Account unfrozen: {account_number}",
            action="unfreeze_account", resource=f"account:{account_number}"
        )
        return account

    def delete_account(self, account_number: str) -> bool:
        """
        Administrative delete

        Does not cascade: the account's transactions stay in the log and the
        owning customer keeps the number in ``account_numbers``.
        """
        deleted = self.accounts.delete(account_number)
        if deleted:
            log_action(
                self.logger, "info", f"Account deleted: {account_number}",
                action="delete_account", resource=f"account:{account_number}"
            )
        return deleted

    def get_statement(self, account_number: str) -> List[Transaction]:
        """Every logged transaction touching the account, oldest first"""
        if self.transactions is None:
            raise RuntimeError("LedgerService was built without a transaction repository")
        entries = self.transactions.get_by_account_number(account_number)
        return sorted(entries, key=lambda t: t.date_created)


class TransactionService:
    """
    Read access to the transaction log plus out-of-band status updates
    """

    def __init__(self, transactions: TransactionRepository):
        self.transactions = transactions
        self.logger = get_logger("bank_ledger.transactions")

    def create_transaction(self, transaction: Transaction) -> Transaction:
        self.transactions.add(transaction)
        return transaction

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.transactions.get_by_id(transaction_id)

    def get_transactions_by_account(self, account_number: str) -> List[Transaction]:
        """Transactions where the account is source or destination, in log order"""
        return self.transactions.get_by_account_number(account_number)

    def get_transaction_history(self, account_number: str) -> List[Transaction]:
        """Same as ``get_transactions_by_account`` but ordered by creation time"""
        return sorted(self.get_transactions_by_account(account_number), key=lambda t: t.date_created)

    def get_all_transactions(self) -> List[Transaction]:
        return self.transactions.get_all()

    def update_transaction_status(self, transaction_id: str,
                                  status: TransactionStatus) -> Optional[Transaction]:
        """
        Set a transaction's status

        Any status may be set from any other; there is no transition check.
        Returns None when the id is unknown.
        """
        transaction = self.transactions.get_by_id(transaction_id)
        if transaction is None:
            return None

        previous = transaction.status
        transaction.status = TransactionStatus(status)
        self.transactions.update(transaction)

        log_action(
            self.logger, "info", f"Transaction status updated: {transaction_id}",
            action="update_transaction_status", resource=f"transaction:{transaction_id}",
            extra={"from": previous.name, "to": transaction.status.name}
        )
        return transaction
