"""
Storage Backend Module

Provides the whole-collection persistence contract and its implementations:
a JSON-file store (one JSON array per collection) and an in-memory store for
testing. Every write replaces an entire collection; there is no append or
partial update primitive.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import StorageReadError
from .logging_config import get_logger, log_action
from .serialization import encode_json


ACCOUNTS = "accounts"
CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
ACCOUNT_MANAGERS = "account_managers"

COLLECTION_FILES = {
    ACCOUNTS: "accounts.json",
    CUSTOMERS: "customers.json",
    TRANSACTIONS: "transactions.json",
    ACCOUNT_MANAGERS: "accountManagers.json",
}

READ_ERROR_POLICIES = ("empty", "raise")


@dataclass(frozen=True)
class ReadResult:
    """Outcome of reading one collection: either records or the read error"""
    collection: str
    records: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, collection: str, records: List[Dict[str, Any]]) -> 'ReadResult':
        return cls(collection=collection, records=records)

    @classmethod
    def failure(cls, collection: str, error: BaseException) -> 'ReadResult':
        return cls(collection=collection, error=error)


def _decode(payload: str) -> List[Dict[str, Any]]:
    """Decode a stored collection; numbers with a fraction become Decimals"""
    data = json.loads(payload, parse_float=Decimal)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return data


class StorageInterface(ABC):
    """
    Abstract interface for whole-collection storage backends

    ``read`` reports failures explicitly; ``load_all`` applies the configured
    read-error policy on top of it. Writes issued inside ``atomic()`` are
    staged and flushed together when the outermost block exits cleanly.
    """

    def __init__(self, read_error_policy: str = "empty"):
        if read_error_policy not in READ_ERROR_POLICIES:
            raise ValueError(
                f"read_error_policy must be one of {READ_ERROR_POLICIES}, got {read_error_policy!r}"
            )
        self.read_error_policy = read_error_policy
        self.logger = get_logger("bank_ledger.storage")
        self._lock = threading.RLock()
        self._staged: Dict[str, List[Dict[str, Any]]] = {}
        self._depth = 0

    @abstractmethod
    def _read_collection(self, collection: str) -> ReadResult:
        """Read one collection from the backing store"""
        pass

    @abstractmethod
    def _write_collection(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite one collection in the backing store"""
        pass

    @abstractmethod
    def collections(self) -> List[str]:
        """Names of the collections currently held by the store"""
        pass

    def close(self) -> None:
        """Close storage (default no-op)"""
        pass

    def read(self, collection: str) -> ReadResult:
        """Read a collection, seeing any writes staged by an open unit of work"""
        with self._lock:
            if collection in self._staged:
                return ReadResult.success(collection, _decode(self._encode(self._staged[collection])))
            return self._read_collection(collection)

    def load_all(self, collection: str) -> List[Dict[str, Any]]:
        """Load a whole collection, applying the read-error policy"""
        result = self.read(collection)
        if result.ok:
            return result.records
        return self.handle_read_error(collection, result.error)

    def handle_read_error(self, collection: str, error: BaseException) -> List[Any]:
        """
        Apply the read-error policy to a collection that could not be read or decoded

        Returns [] under the ``empty`` policy.

        Raises:
            StorageReadError: the policy is ``raise``
        """
        if self.read_error_policy == "raise":
            raise StorageReadError(collection, error)

        log_action(
            self.logger, "warning",
            f"Collection '{collection}' unreadable, treating as empty",
            action="load_all", resource=f"collection:{collection}",
            extra={"error": str(error), "error_type": type(error).__name__}
        )
        return []

    def save_all(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite a whole collection"""
        with self._lock:
            if self._depth > 0:
                self._staged[collection] = list(records)
                return
            self._write_collection(collection, records)

    def count(self, collection: str) -> int:
        """Count records in a collection"""
        return len(self.load_all(collection))

    def clear_collection(self, collection: str) -> None:
        """Replace a collection with an empty one"""
        self.save_all(collection, [])

    def begin_transaction(self) -> None:
        """Open (or join) a unit of work"""
        with self._lock:
            self._depth += 1

    def commit(self) -> None:
        """Close a unit of work, flushing staged writes at the outermost level"""
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth > 0:
                return
            staged, self._staged = self._staged, {}
            for collection, records in staged.items():
                self._write_collection(collection, records)

    def rollback(self) -> None:
        """Discard every staged write and close all open levels"""
        with self._lock:
            self._staged = {}
            self._depth = 0

    def _rollback_to(self, savepoint: Dict[str, List[Dict[str, Any]]]) -> None:
        # Inner levels only undo their own writes; the outer unit stays open
        with self._lock:
            if self._depth <= 1:
                self.rollback()
                return
            self._staged = savepoint
            self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self):
        """
        Context manager for staged, all-or-nothing writes

        A nested block joins the enclosing one. If it fails, only the writes
        staged inside it are discarded and the enclosing block carries on.
        """
        with self._lock:
            self.begin_transaction()
            savepoint = dict(self._staged)
        try:
            yield
        except BaseException:
            self._rollback_to(savepoint)
            raise
        self.commit()

    @staticmethod
    def _encode(records: List[Dict[str, Any]], indent: Optional[int] = None) -> str:
        return encode_json(records, indent=indent)


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self, read_error_policy: str = "empty"):
        super().__init__(read_error_policy)
        # Collections are held as encoded text so every read is an independent copy
        self._data: Dict[str, str] = {}

    def _read_collection(self, collection: str) -> ReadResult:
        payload = self._data.get(collection)
        if payload is None:
            return ReadResult.success(collection, [])
        try:
            return ReadResult.success(collection, _decode(payload))
        except ValueError as e:
            return ReadResult.failure(collection, e)

    def _write_collection(self, collection: str, records: List[Dict[str, Any]]) -> None:
        self._data[collection] = self._encode(records)

    def collections(self) -> List[str]:
        with self._lock:
            return sorted(self._data)

    def put_raw(self, collection: str, payload: str) -> None:
        """Store raw text for a collection, bypassing encoding"""
        with self._lock:
            self._data[collection] = payload

    def get_all_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Get all data for debugging/inspection"""
        with self._lock:
            return {name: self.load_all(name) for name in self._data}


class JsonFileStorage(StorageInterface):
    """
    JSON file storage: one file per collection holding a JSON array

    Files are rewritten through a temporary sibling and ``os.replace`` so a
    reader never observes a half-written array.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        pretty: bool = True,
        read_error_policy: str = "empty",
    ):
        super().__init__(read_error_policy)
        self.data_dir = Path(data_dir)
        self.pretty = pretty
        self.initialize()

    def initialize(self) -> None:
        """Create the data directory and seed missing collection files with []"""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for collection in COLLECTION_FILES:
            path = self.file_path(collection)
            if not path.exists():
                self._write_collection(collection, [])

    def file_path(self, collection: str) -> Path:
        """Path of the file backing a collection"""
        return self.data_dir / COLLECTION_FILES.get(collection, f"{collection}.json")

    def _read_collection(self, collection: str) -> ReadResult:
        path = self.file_path(collection)
        if not path.exists():
            return ReadResult.success(collection, [])
        try:
            with open(path, "r", encoding="utf-8") as f:
                return ReadResult.success(collection, _decode(f.read()))
        except (OSError, ValueError) as e:
            return ReadResult.failure(collection, e)

    def _write_collection(self, collection: str, records: List[Dict[str, Any]]) -> None:
        path = self.file_path(collection)
        payload = self._encode(records, indent=2 if self.pretty else None)

        fd, tmp_name = tempfile.mkstemp(dir=str(self.data_dir), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def collections(self) -> List[str]:
        known = {filename: name for name, filename in COLLECTION_FILES.items()}
        names = []
        for path in sorted(self.data_dir.glob("*.json")):
            names.append(known.get(path.name, path.stem))
        return names
