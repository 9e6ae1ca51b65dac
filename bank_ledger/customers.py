"""
Customer Management Module

Customers own a de-duplicated list of account numbers and an embedded list
of complaints. Creating a customer always opens one default account for
them; the account is written first, then the customer record.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .accounts import Account, AccountType, default_account_name
from .errors import CustomerNotFoundError, DuplicateUsernameError
from .logging_config import get_logger, log_action
from .security import hash_password, verify_password
from .serialization import parse_datetime, record_to_dict

if TYPE_CHECKING:
    from .numbering import AccountNumberGenerator
    from .repositories import AccountRepository, CustomerRepository


class Gender(Enum):
    MALE = 0
    FEMALE = 1
    OTHER = 2


class MaritalStatus(Enum):
    SINGLE = 0
    MARRIED = 1
    DIVORCED = 2
    WIDOWED = 3


class ComplaintStatus(Enum):
    """Complaint lifecycle (persisted as ordinals)"""
    PENDING = 0
    IN_PROGRESS = 1
    RESOLVED = 2
    CLOSED = 3


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Complaint:
    """Customer complaint, embedded in its customer's record"""
    narration: str
    customer_id: str
    id: str = field(default_factory=_new_id)
    time_created: datetime = field(default_factory=datetime.now)
    status: ComplaintStatus = ComplaintStatus.PENDING
    account_id: Optional[str] = None
    account_manager_id: str = ""
    resolution_details: str = ""
    time_resolved: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in (ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS)

    def to_dict(self) -> Dict[str, Any]:
        return record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Complaint':
        return cls(
            id=data['id'],
            narration=data.get('narration', ""),
            customer_id=data.get('customerId', ""),
            time_created=parse_datetime(data.get('timeCreated')) or datetime.now(),
            status=ComplaintStatus(data.get('status', ComplaintStatus.PENDING.value)),
            account_id=data.get('accountId'),
            account_manager_id=data.get('accountManagerId', ""),
            resolution_details=data.get('resolutionDetails', ""),
            time_resolved=parse_datetime(data.get('timeResolved')),
        )


@dataclass
class Customer:
    """
    Customer profile with credentials, owned account numbers and complaints
    """
    name: str
    username: str
    password: str = ""  # PBKDF2 hash, never plain text
    id: str = field(default_factory=_new_id)
    gender: Gender = Gender.MALE
    age: int = 0
    date_of_birth: Optional[datetime] = None
    nationality: str = ""
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    phone_number: str = ""
    address: str = ""
    account_numbers: List[str] = field(default_factory=list)
    complaints: List[Complaint] = field(default_factory=list)

    @classmethod
    def create(cls, name: str, username: str, password: str, **details: Any) -> 'Customer':
        """Build a new customer, hashing the plain-text password"""
        return cls(name=name, username=username, password=hash_password(password), **details)

    def add_account(self, account_number: str) -> None:
        """Link an account number; already-linked numbers are ignored"""
        if account_number not in self.account_numbers:
            self.account_numbers.append(account_number)

    def remove_account(self, account_number: str) -> None:
        if account_number in self.account_numbers:
            self.account_numbers.remove(account_number)

    def file_complaint(self, narration: str, account_id: Optional[str] = None) -> Complaint:
        complaint = Complaint(narration=narration, customer_id=self.id, account_id=account_id)
        self.complaints.append(complaint)
        return complaint

    def get_complaint(self, complaint_id: str) -> Optional[Complaint]:
        return next((c for c in self.complaints if c.id == complaint_id), None)

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.password)

    def to_dict(self) -> Dict[str, Any]:
        return record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=data['id'],
            name=data.get('name', ""),
            username=data.get('username', ""),
            password=data.get('password', ""),
            gender=Gender(data.get('gender', Gender.MALE.value)),
            age=int(data.get('age', 0)),
            date_of_birth=parse_datetime(data.get('dateOfBirth')),
            nationality=data.get('nationality', ""),
            marital_status=MaritalStatus(data.get('maritalStatus', MaritalStatus.SINGLE.value)),
            phone_number=data.get('phoneNumber', ""),
            address=data.get('address', ""),
            account_numbers=list(data.get('accountNumbers') or []),
            complaints=[Complaint.from_dict(c) for c in data.get('complaints') or []],
        )


class CustomerService:
    """
    Customer directory: registration, account linkage, complaints
    """

    def __init__(
        self,
        customers: 'CustomerRepository',
        accounts: 'AccountRepository',
        number_generator: 'AccountNumberGenerator',
    ):
        self.customers = customers
        self.accounts = accounts
        self.number_generator = number_generator
        self.logger = get_logger("bank_ledger.customers")

    def _require(self, username: str) -> Customer:
        customer = self.customers.get_by_username(username)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {username} not found")
        return customer

    def _open_account_for(self, customer: Customer, account_type: AccountType) -> Account:
        return Account(
            account_name=default_account_name(customer.name, account_type),
            account_number=self.number_generator.next_number(),
            account_type=account_type,
            customer_id=customer.id,
        )

    def create_customer(
        self,
        customer: Customer,
        account_type: AccountType = AccountType.CURRENT
    ) -> Account:
        """
        Register a customer together with their default account

        The account is persisted first, then the customer with the new number
        linked. There is no rollback between the two writes.

        Returns:
            The default account that was opened

        Raises:
            DuplicateUsernameError: the username is already registered
        """
        if self.customers.username_exists(customer.username):
            raise DuplicateUsernameError(f"Username {customer.username} already exists")

        account = self._open_account_for(customer, account_type)
        self.accounts.add(account)
        customer.add_account(account.account_number)
        self.customers.add(customer)

        log_action(
            self.logger, "info", f"Customer created: {customer.username}",
            action="create_customer", resource=f"customer:{customer.id}",
            extra={"account_number": account.account_number, "account_type": account_type.name}
        )
        return account

    def open_additional_account(self, username: str, account_type: AccountType) -> Account:
        """Open another account for an existing customer and link it"""
        customer = self._require(username)
        account = self._open_account_for(customer, account_type)
        self.accounts.add(account)
        customer.add_account(account.account_number)
        self.customers.update(customer)

        log_action(
            self.logger, "info", f"Account {account.account_number} opened for {username}",
            action="open_account", resource=f"account:{account.account_number}",
            extra={"customer_id": customer.id, "account_type": account_type.name}
        )
        return account

    def update_customer(self, customer: Customer) -> bool:
        return self.customers.update(customer)

    def get_customer(self, username: str) -> Optional[Customer]:
        """Get customer by username"""
        return self.customers.get_by_username(username)

    def get_customer_by_id(self, customer_id: str) -> Optional[Customer]:
        return self.customers.get_by_id(customer_id)

    def get_all_customers(self) -> List[Customer]:
        return self.customers.get_all()

    def delete_customer(self, username: str) -> bool:
        """Delete a customer record; their accounts are left in place"""
        customer = self.customers.get_by_username(username)
        if customer is None:
            return False
        deleted = self.customers.delete(customer.id)
        if deleted:
            log_action(
                self.logger, "info", f"Customer deleted: {username}",
                action="delete_customer", resource=f"customer:{customer.id}"
            )
        return deleted

    def get_customer_accounts(self, username: str) -> List[Account]:
        """Resolve a customer's linked account numbers; dangling numbers are skipped"""
        customer = self.customers.get_by_username(username)
        if customer is None:
            return []
        accounts = []
        for account_number in customer.account_numbers:
            account = self.accounts.get_by_number(account_number)
            if account is not None:
                accounts.append(account)
        return accounts

    def file_complaint(self, username: str, narration: str,
                       account_id: Optional[str] = None) -> Complaint:
        customer = self._require(username)
        complaint = customer.file_complaint(narration, account_id)
        self.customers.update(customer)
        log_action(
            self.logger, "info", f"Complaint filed by {username}",
            action="file_complaint", resource=f"complaint:{complaint.id}"
        )
        return complaint

    def authenticate(self, username: str, password: str) -> Optional[Customer]:
        """Return the customer when the credentials match"""
        customer = self.customers.get_by_username(username)
        if customer is None or not customer.verify_password(password):
            return None
        return customer
