"""
Account Manager Module

Account managers are staff identities. Username and email are unique across
the directory; both are checked by full-collection scan before a new record
is written.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .customers import ComplaintStatus
from .errors import CustomerNotFoundError, DuplicateEmailError, DuplicateUsernameError
from .logging_config import get_logger, log_action
from .security import hash_password, verify_password
from .serialization import parse_datetime, record_to_dict

if TYPE_CHECKING:
    from .accounts import Account
    from .customers import Complaint
    from .repositories import AccountManagerRepository, CustomerRepository


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class AccountManager:
    """Staff identity with credentials and an active flag"""
    account_manager_name: str
    username: str
    email: str
    password: str = ""  # PBKDF2 hash
    id: str = field(default_factory=_new_id)
    account_manager_id: str = field(default_factory=_new_id)
    contact_information: str = ""
    phone_number: str = ""
    date_created: datetime = field(default_factory=datetime.now)
    is_active: bool = True

    @classmethod
    def create(cls, account_manager_name: str, username: str, password: str, email: str,
               phone_number: str = "", contact_information: str = "") -> 'AccountManager':
        """Build a new account manager, hashing the plain-text password"""
        return cls(
            account_manager_name=account_manager_name,
            username=username,
            email=email,
            password=hash_password(password),
            phone_number=phone_number,
            contact_information=contact_information,
        )

    def deactivate_account(self, account: 'Account') -> None:
        """Freeze a customer account"""
        account.freeze()

    def respond_to_complaint(self, complaint: 'Complaint', resolution_details: str) -> None:
        """Resolve a complaint"""
        complaint.resolution_details = resolution_details
        complaint.account_manager_id = self.account_manager_id
        complaint.status = ComplaintStatus.RESOLVED
        complaint.time_resolved = datetime.now()

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self.password)

    def to_dict(self) -> Dict[str, Any]:
        return record_to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccountManager':
        return cls(
            id=data['id'],
            account_manager_id=data.get('accountManagerId') or _new_id(),
            account_manager_name=data.get('accountManagerName', ""),
            contact_information=data.get('contactInformation', ""),
            username=data.get('username', ""),
            password=data.get('password', ""),
            email=data.get('email', ""),
            phone_number=data.get('phoneNumber', ""),
            date_created=parse_datetime(data.get('dateCreated')) or datetime.now(),
            is_active=bool(data.get('isActive', True)),
        )


class AccountManagerService:
    """
    Account manager directory and complaint handling
    """

    def __init__(
        self,
        managers: 'AccountManagerRepository',
        customers: Optional['CustomerRepository'] = None,
    ):
        self.managers = managers
        self.customers = customers
        self.logger = get_logger("bank_ledger.account_managers")

    def create_account_manager(self, manager: AccountManager) -> None:
        """
        Persist a new account manager

        Raises:
            DuplicateUsernameError: the username is taken
            DuplicateEmailError: the email is taken
        """
        if self.managers.username_exists(manager.username):
            log_action(
                self.logger, "warning", f"Rejected duplicate username {manager.username}",
                action="create_account_manager", resource=f"account_manager:{manager.id}"
            )
            raise DuplicateUsernameError(f"Username {manager.username} already exists")

        if self.managers.email_exists(manager.email):
            log_action(
                self.logger, "warning", f"Rejected duplicate email {manager.email}",
                action="create_account_manager", resource=f"account_manager:{manager.id}"
            )
            raise DuplicateEmailError(f"Email {manager.email} already exists")

        self.managers.add(manager)
        log_action(
            self.logger, "info", f"Account manager created: {manager.username}",
            action="create_account_manager", resource=f"account_manager:{manager.id}"
        )

    def update_account_manager(self, manager: AccountManager) -> bool:
        return self.managers.update(manager)

    def get_account_manager(self, username: str) -> Optional[AccountManager]:
        """Get account manager by username"""
        return self.managers.get_by_username(username)

    def get_account_manager_by_id(self, manager_id: str) -> Optional[AccountManager]:
        return self.managers.get_by_id(manager_id)

    def get_all_account_managers(self) -> List[AccountManager]:
        return self.managers.get_all()

    def delete_account_manager(self, manager_id: str) -> bool:
        return self.managers.delete(manager_id)

    def authenticate(self, username: str, password: str) -> bool:
        """Inactive managers never authenticate"""
        manager = self.managers.get_by_username(username)
        if manager is None or not manager.is_active:
            return False
        return manager.verify_password(password)

    def username_exists(self, username: str) -> bool:
        return self.managers.username_exists(username)

    def email_exists(self, email: str) -> bool:
        return self.managers.email_exists(email)

    def respond_to_complaint(
        self,
        manager: AccountManager,
        customer_username: str,
        complaint_id: str,
        resolution_details: str
    ) -> 'Complaint':
        """Resolve one of a customer's complaints and persist the customer"""
        if self.customers is None:
            raise RuntimeError("AccountManagerService was built without a customer repository")

        customer = self.customers.get_by_username(customer_username)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {customer_username} not found")

        complaint = customer.get_complaint(complaint_id)
        if complaint is None:
            raise LookupError(f"Complaint {complaint_id} not found for {customer_username}")

        manager.respond_to_complaint(complaint, resolution_details)
        self.customers.update(customer)

        log_action(
            self.logger, "info", f"Complaint {complaint_id} resolved",
            action="respond_to_complaint", resource=f"complaint:{complaint_id}",
            extra={"account_manager": manager.username, "customer": customer_username}
        )
        return complaint
