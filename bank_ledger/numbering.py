"""Account number generation."""

import threading
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .repositories import AccountRepository


DEFAULT_FLOOR = 1_000_000


class AccountNumberGenerator:
    """
    Monotonic, thread-safe account number source

    Seed it with the highest number already issued; the first call returns
    seed + 1. One generator should be shared by every component that opens
    accounts against the same store.
    """

    def __init__(self, start: int = DEFAULT_FLOOR):
        self._counter = start
        self._lock = threading.Lock()

    @classmethod
    def from_repository(cls, accounts: 'AccountRepository',
                        floor: int = DEFAULT_FLOOR) -> 'AccountNumberGenerator':
        """Seed from the maximum persisted account number, or ``floor`` if lower or absent"""
        existing: Optional[int] = accounts.max_account_number()
        return cls(max(existing, floor) if existing is not None else floor)

    @property
    def current(self) -> int:
        """Last number handed out (or the seed)"""
        with self._lock:
            return self._counter

    def next_number(self) -> str:
        """Issue the next account number"""
        with self._lock:
            self._counter += 1
            return str(self._counter)
