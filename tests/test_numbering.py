"""
Tests for account number generation
"""

import threading
from decimal import Decimal

from bank_ledger.accounts import Account
from bank_ledger.numbering import DEFAULT_FLOOR, AccountNumberGenerator
from bank_ledger.repositories import AccountRepository
from bank_ledger.storage import InMemoryStorage


class TestAccountNumberGenerator:
    """Test AccountNumberGenerator"""

    def test_sequence_from_seed(self):
        """Test seed 1000050 yields 1000051 then 1000052"""
        generator = AccountNumberGenerator(1000050)

        assert generator.next_number() == "1000051"
        assert generator.next_number() == "1000052"
        assert generator.current == 1000052

    def test_default_start(self):
        """Test default seed is the floor"""
        assert AccountNumberGenerator().next_number() == str(DEFAULT_FLOOR + 1)

    def test_unique_under_concurrency(self):
        """Test 1000 calls across threads never repeat a number"""
        generator = AccountNumberGenerator(1000050)
        issued = []
        issued_lock = threading.Lock()

        def worker():
            local = [generator.next_number() for _ in range(100)]
            with issued_lock:
                issued.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(issued) == 1000
        assert len(set(issued)) == 1000
        assert sorted(int(n) for n in issued) == list(range(1000051, 1001051))


class TestSeedFromRepository:
    """Test seeding from persisted accounts"""

    def setup_method(self):
        """Set up test fixtures"""
        self.accounts = AccountRepository(InMemoryStorage())

    def test_empty_store_uses_floor(self):
        """Test no accounts seeds at the floor"""
        generator = AccountNumberGenerator.from_repository(self.accounts, floor=5000)

        assert generator.next_number() == "5001"

    def test_resumes_after_highest_number(self):
        """Test generator continues after the largest stored number"""
        for number in ("1000003", "1000050", "1000010"):
            self.accounts.add(Account(account_name=number, account_number=number,
                                      account_balance=Decimal("0")))

        generator = AccountNumberGenerator.from_repository(self.accounts)

        assert generator.next_number() == "1000051"

    def test_floor_wins_over_low_numbers(self):
        """Test numbers below the floor do not pull the seed down"""
        self.accounts.add(Account(account_name="legacy", account_number="42"))

        generator = AccountNumberGenerator.from_repository(self.accounts, floor=1000000)

        assert generator.next_number() == "1000001"
