"""
Tests for whole-collection repositories
"""

from decimal import Decimal

import pytest

from bank_ledger.account_managers import AccountManager
from bank_ledger.accounts import Account
from bank_ledger.customers import Customer
from bank_ledger.errors import AccountNotFoundError, StorageReadError
from bank_ledger.ledger import LedgerService
from bank_ledger.repositories import (
    AccountManagerRepository, AccountRepository, CustomerRepository, TransactionRepository
)
from bank_ledger.storage import InMemoryStorage, JsonFileStorage
from bank_ledger.transactions import Transaction, TransactionType


class TestAccountRepository:
    """Test AccountRepository"""

    def setup_method(self):
        """Set up test fixtures"""
        self.storage = InMemoryStorage()
        self.accounts = AccountRepository(self.storage)

    def _account(self, number, balance="0", customer_id=""):
        return Account(
            account_name=f"Account {number}",
            account_number=number,
            account_balance=Decimal(balance),
            customer_id=customer_id,
        )

    def test_add_and_get(self):
        """Test add then lookup by number"""
        self.accounts.add(self._account("1000001", "10.50"))

        loaded = self.accounts.get_by_number("1000001")

        assert loaded is not None
        assert loaded.account_balance == Decimal("10.50")
        assert self.accounts.get_by_number("9999999") is None
        assert self.accounts.exists("1000001")
        assert self.accounts.count() == 1

    def test_update_replaces_record(self):
        """Test update persists changed fields"""
        account = self._account("1000001", "10")
        self.accounts.add(account)

        account.freeze()
        assert self.accounts.update(account)

        assert self.accounts.get_by_number("1000001").is_frozen

    def test_update_unknown_is_noop(self):
        """Test updating a record that was never added"""
        self.accounts.add(self._account("1000001"))

        assert not self.accounts.update(self._account("1000002"))
        assert self.accounts.count() == 1

    def test_delete(self):
        """Test delete by key"""
        self.accounts.add(self._account("1000001"))
        self.accounts.add(self._account("1000002"))

        assert self.accounts.delete("1000001")
        assert not self.accounts.delete("1000001")
        assert [a.account_number for a in self.accounts.get_all()] == ["1000002"]

    def test_get_by_customer(self):
        """Test filtering by owner"""
        self.accounts.add(self._account("1000001", customer_id="c1"))
        self.accounts.add(self._account("1000002", customer_id="c2"))
        self.accounts.add(self._account("1000003", customer_id="c1"))

        owned = self.accounts.get_by_customer("c1")

        assert [a.account_number for a in owned] == ["1000001", "1000003"]

    def test_max_account_number(self):
        """Test highest numeric account number, ignoring non-numeric ones"""
        assert self.accounts.max_account_number() is None

        self.accounts.add(self._account("1000007"))
        self.accounts.add(self._account("1000050"))
        self.accounts.add(self._account("LEGACY-1"))

        assert self.accounts.max_account_number() == 1000050

    def test_high_precision_balance_survives_reload(self, tmp_path):
        """Test balances beyond float precision come back exactly, scale included"""
        accounts = AccountRepository(JsonFileStorage(tmp_path))
        accounts.add(self._account("1000001", "12345678901234567.89"))
        accounts.add(self._account("1000002", "10.00"))

        reloaded = AccountRepository(JsonFileStorage(tmp_path))

        assert reloaded.get_by_number("1000001").account_balance == Decimal("12345678901234567.89")
        assert str(reloaded.get_by_number("1000002").account_balance) == "10.00"

    def test_corrupt_store_reads_as_empty(self):
        """Test repositories see an unreadable collection as empty"""
        self.storage.put_raw("accounts", "][")

        assert self.accounts.get_all() == []
        assert self.accounts.get_by_number("1000001") is None


class TestMalformedRecords:
    """Test records that parse as JSON but do not decode"""

    malformed = [
        '[{"accountName": "no number"}]',
        '[{"accountNumber": "1000001", "accountType": 9}]',
        '[{"accountNumber": "1000001", "accountBalance": "lots"}]',
        '[{"accountNumber": "1000001", "dateCreated": 17}]',
        '["not an object"]',
    ]

    @pytest.mark.parametrize("payload", malformed)
    def test_empty_policy_reads_as_empty(self, payload):
        """Test a malformed record makes the collection read as empty"""
        storage = InMemoryStorage()
        storage.put_raw("accounts", payload)
        accounts = AccountRepository(storage)

        assert accounts.get_all() == []
        assert accounts.get_by_number("1000001") is None
        assert accounts.max_account_number() is None

    @pytest.mark.parametrize("payload", malformed)
    def test_raise_policy(self, payload):
        """Test a malformed record raises StorageReadError under the raise policy"""
        storage = InMemoryStorage(read_error_policy="raise")
        storage.put_raw("accounts", payload)

        with pytest.raises(StorageReadError) as exc_info:
            AccountRepository(storage).get_all()

        assert exc_info.value.collection == "accounts"

    def test_malformed_transaction_and_directory_records(self):
        """Test the other collections apply the same policy"""
        storage = InMemoryStorage()
        storage.put_raw("transactions", '[{"amount": 5}]')
        storage.put_raw("customers", '[{"id": "c1", "gender": 7}]')
        storage.put_raw("account_managers", '[{"username": "no id"}]')

        assert TransactionRepository(storage).get_all() == []
        assert CustomerRepository(storage).get_by_username("x") is None
        assert not AccountManagerRepository(storage).username_exists("no id")

    def test_ledger_reports_missing_account(self):
        """Test a ledger over malformed storage sees no accounts"""
        storage = InMemoryStorage()
        storage.put_raw("accounts", '[{"accountName": "no number"}]')

        with pytest.raises(AccountNotFoundError):
            LedgerService(AccountRepository(storage)).deposit("1000001", "5")


class TestTransactionRepository:
    """Test TransactionRepository"""

    def setup_method(self):
        """Set up test fixtures"""
        self.transactions = TransactionRepository(InMemoryStorage())

    def test_get_by_account_number_matches_either_side(self):
        """Test source or destination match"""
        deposit = Transaction(destination_account="A")
        withdrawal = Transaction(transaction_type=TransactionType.WITHDRAW, source_account="A")
        other = Transaction(destination_account="B")
        self.transactions.add_many([deposit, withdrawal, other])

        found = self.transactions.get_by_account_number("A")

        assert [t.id for t in found] == [deposit.id, withdrawal.id]

    def test_get_by_reference(self):
        """Test both legs are found by reference number"""
        out_leg = Transaction(transaction_type=TransactionType.TRANSFER, reference_number="ref-1")
        in_leg = Transaction(transaction_type=TransactionType.TRANSFER, reference_number="ref-1")
        self.transactions.add_many([out_leg, in_leg, Transaction()])

        assert len(self.transactions.get_by_reference("ref-1")) == 2

    def test_round_trip_through_json_file(self, tmp_path):
        """Test a transaction survives save and reload unchanged"""
        repository = TransactionRepository(JsonFileStorage(tmp_path))
        transaction = Transaction(
            transaction_type=TransactionType.TRANSFER,
            amount=Decimal("75.00"),
            source_account="1000001",
            destination_account="1000002",
            balance_after_transaction=Decimal("125.00"),
            description="Transfer to 1000002",
            initiator="System",
            channel="Online",
        )
        repository.add(transaction)

        reloaded = TransactionRepository(JsonFileStorage(tmp_path)).get_by_id(transaction.id)

        assert reloaded == transaction


class TestDirectoryRepositories:
    """Test customer and account manager repositories"""

    def setup_method(self):
        """Set up test fixtures"""
        storage = InMemoryStorage()
        self.customers = CustomerRepository(storage)
        self.managers = AccountManagerRepository(storage)

    def test_customer_lookups(self):
        """Test lookup by username, name and id"""
        customer = Customer(name="Ada Lovelace", username="ada")
        self.customers.add(customer)

        assert self.customers.get_by_username("ada").id == customer.id
        assert self.customers.get_by_name("Ada Lovelace").id == customer.id
        assert self.customers.get_by_id(customer.id).username == "ada"
        assert self.customers.username_exists("ada")
        assert not self.customers.username_exists("bob")

    def test_account_manager_lookups(self):
        """Test lookup by username and email"""
        manager = AccountManager(account_manager_name="Grace", username="grace", email="grace@bank.test")
        self.managers.add(manager)

        assert self.managers.get_by_email("grace@bank.test").id == manager.id
        assert self.managers.username_exists("grace")
        assert self.managers.email_exists("grace@bank.test")
        assert not self.managers.email_exists("other@bank.test")
