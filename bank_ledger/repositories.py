"""
Repository Module

Repositories map records onto storage collections. Every Add/Update/Delete
is a full cycle: load the whole collection, change the list in memory, save
the whole collection back. Nothing guards that cycle against a concurrent
writer; the last save wins.
"""

from decimal import InvalidOperation
from typing import Callable, Generic, Iterable, List, Optional, Type, TypeVar

from .account_managers import AccountManager
from .accounts import Account
from .customers import Customer
from .storage import ACCOUNT_MANAGERS, ACCOUNTS, CUSTOMERS, TRANSACTIONS, StorageInterface
from .transactions import Transaction


RecordT = TypeVar("RecordT")

# What from_dict raises on a record with missing keys, bad ordinals or bad values
DECODE_ERRORS = (KeyError, ValueError, TypeError, AttributeError, InvalidOperation)


class CollectionRepository(Generic[RecordT]):
    """
    Generic whole-collection repository

    Subclasses set ``collection``, ``record_type`` and ``key_attr`` (the
    attribute that identifies a record within its collection).
    """

    collection: str = ""
    record_type: Type = object
    key_attr: str = "id"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def _key(self, record: RecordT) -> str:
        return getattr(record, self.key_attr)

    def _load(self) -> List[RecordT]:
        records = self.storage.load_all(self.collection)
        try:
            return [self.record_type.from_dict(data) for data in records]
        except DECODE_ERRORS as e:
            return self.storage.handle_read_error(self.collection, e)

    def _save(self, records: Iterable[RecordT]) -> None:
        self.storage.save_all(self.collection, [record.to_dict() for record in records])

    def _first(self, predicate: Callable[[RecordT], bool]) -> Optional[RecordT]:
        return next((record for record in self._load() if predicate(record)), None)

    def get_all(self) -> List[RecordT]:
        """Load every record in the collection"""
        return self._load()

    def get_by_id(self, key: str) -> Optional[RecordT]:
        """Get record by its key"""
        return self._first(lambda record: self._key(record) == key)

    def add(self, record: RecordT) -> None:
        """Append a record"""
        records = self._load()
        records.append(record)
        self._save(records)

    def add_many(self, new_records: Iterable[RecordT]) -> None:
        """Append several records in a single collection rewrite"""
        records = self._load()
        records.extend(new_records)
        self._save(records)

    def update(self, record: RecordT) -> bool:
        """Replace the record with the same key; unknown keys are a no-op"""
        records = self._load()
        key = self._key(record)
        for index, existing in enumerate(records):
            if self._key(existing) == key:
                records[index] = record
                self._save(records)
                return True
        return False

    def delete(self, key: str) -> bool:
        """Remove the record with the given key"""
        records = self._load()
        remaining = [record for record in records if self._key(record) != key]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        return True

    def exists(self, key: str) -> bool:
        """Check if a record with the given key exists"""
        return any(self._key(record) == key for record in self._load())

    def count(self) -> int:
        return len(self._load())


class AccountRepository(CollectionRepository[Account]):
    """Accounts keyed by account number"""

    collection = ACCOUNTS
    record_type = Account
    key_attr = "account_number"

    def get_by_number(self, account_number: str) -> Optional[Account]:
        """Get account by account number"""
        return self.get_by_id(account_number)

    def get_by_customer(self, customer_id: str) -> List[Account]:
        """Get all accounts owned by a customer"""
        return [account for account in self._load() if account.customer_id == customer_id]

    def max_account_number(self) -> Optional[int]:
        """Highest numeric account number in the store, if any"""
        numbers = [int(account.account_number) for account in self._load()
                   if account.account_number.isdigit()]
        return max(numbers) if numbers else None


class TransactionRepository(CollectionRepository[Transaction]):
    """The transaction log"""

    collection = TRANSACTIONS
    record_type = Transaction
    key_attr = "id"

    def get_by_account_number(self, account_number: str) -> List[Transaction]:
        """Transactions where the account is source or destination"""
        return [transaction for transaction in self._load() if transaction.involves(account_number)]

    def get_by_reference(self, reference_number: str) -> List[Transaction]:
        """Transactions sharing a reference number (both legs of a transfer)"""
        return [transaction for transaction in self._load()
                if transaction.reference_number == reference_number]


class CustomerRepository(CollectionRepository[Customer]):
    """Customers keyed by id"""

    collection = CUSTOMERS
    record_type = Customer
    key_attr = "id"

    def get_by_username(self, username: str) -> Optional[Customer]:
        return self._first(lambda customer: customer.username == username)

    def get_by_name(self, name: str) -> Optional[Customer]:
        return self._first(lambda customer: customer.name == name)

    def username_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None


class AccountManagerRepository(CollectionRepository[AccountManager]):
    """Account managers keyed by id"""

    collection = ACCOUNT_MANAGERS
    record_type = AccountManager
    key_attr = "id"

    def get_by_username(self, username: str) -> Optional[AccountManager]:
        return self._first(lambda manager: manager.username == username)

    def get_by_email(self, email: str) -> Optional[AccountManager]:
        return self._first(lambda manager: manager.email == email)

    def username_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None
