"""
System wiring.

Builds storage, repositories, the account number generator and every
service from a ``LedgerConfig`` (or explicit overrides), so callers share
one generator and one storage instance.
"""

from dataclasses import dataclass
from typing import Optional

from .account_managers import AccountManagerService
from .config import LedgerConfig, get_config
from .customers import CustomerService
from .ledger import LedgerService, TransactionService
from .logging_config import get_logger, setup_logging
from .numbering import AccountNumberGenerator
from .repositories import (
    AccountManagerRepository, AccountRepository, CustomerRepository, TransactionRepository
)
from .storage import JsonFileStorage, StorageInterface


@dataclass
class BankingSystem:
    """All services of one ledger, bound to a single storage"""
    storage: StorageInterface
    accounts: AccountRepository
    transactions: TransactionRepository
    customers: CustomerRepository
    account_managers: AccountManagerRepository
    number_generator: AccountNumberGenerator
    ledger: LedgerService
    transaction_service: TransactionService
    customer_service: CustomerService
    account_manager_service: AccountManagerService

    def close(self) -> None:
        self.storage.close()


def build_system(
    config: Optional[LedgerConfig] = None,
    storage: Optional[StorageInterface] = None,
    configure_logging: bool = False,
) -> BankingSystem:
    """
    Assemble a BankingSystem

    Args:
        config: Settings to use; the global configuration when omitted
        storage: Pre-built storage (e.g. InMemoryStorage in tests); a
            JsonFileStorage under ``config.data_dir`` when omitted
        configure_logging: Install the package log handler from config
    """
    config = config or get_config()

    if configure_logging:
        setup_logging(config.log_level, config.log_format, config.log_file)

    if storage is None:
        storage = JsonFileStorage(
            config.data_dir,
            pretty=config.pretty_json,
            read_error_policy=config.read_error_policy,
        )

    accounts = AccountRepository(storage)
    transactions = TransactionRepository(storage)
    customers = CustomerRepository(storage)
    account_managers = AccountManagerRepository(storage)

    number_generator = AccountNumberGenerator.from_repository(
        accounts, floor=config.account_number_floor
    )
    get_logger("bank_ledger.system").info(
        "Account numbering seeded at %s", number_generator.current
    )

    return BankingSystem(
        storage=storage,
        accounts=accounts,
        transactions=transactions,
        customers=customers,
        account_managers=account_managers,
        number_generator=number_generator,
        ledger=LedgerService(
            accounts, transactions, storage=storage,
            number_generator=number_generator, initiator=config.default_initiator,
        ),
        transaction_service=TransactionService(transactions),
        customer_service=CustomerService(customers, accounts, number_generator),
        account_manager_service=AccountManagerService(account_managers, customers),
    )
