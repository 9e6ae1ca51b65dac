"""
Maintenance Module

Backup, restore, statistics and reset for a JSON-file data directory.
Backups are plain directory copies of the collection files.
"""

import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .logging_config import get_logger, log_action
from .storage import ACCOUNT_MANAGERS, ACCOUNTS, CUSTOMERS, TRANSACTIONS, StorageInterface

logger = get_logger("bank_ledger.maintenance")

BACKUP_PREFIX = "BankLedger_Backup_"


@dataclass
class DatabaseStats:
    total_accounts: int
    total_customers: int
    total_transactions: int
    total_account_managers: int
    database_size: int
    last_modified: Optional[datetime]


def backup(data_dir: Union[str, Path], backup_root: Union[str, Path],
           now: Optional[datetime] = None) -> Path:
    """Copy every ``*.json`` file into a new timestamped directory under ``backup_root``"""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    target = Path(backup_root) / f"{BACKUP_PREFIX}{stamp}"
    target.mkdir(parents=True, exist_ok=True)

    copied = 0
    for path in sorted(Path(data_dir).glob("*.json")):
        shutil.copy2(path, target / path.name)
        copied += 1

    log_action(
        logger, "info", f"Backup written to {target}",
        action="backup", resource=f"directory:{target}", extra={"files": copied}
    )
    return target


def restore(backup_dir: Union[str, Path], data_dir: Union[str, Path]) -> int:
    """
    Copy every ``*.json`` file from a backup over the data directory

    Raises:
        FileNotFoundError: the backup directory does not exist
    """
    source = Path(backup_dir)
    if not source.is_dir():
        raise FileNotFoundError(f"Backup directory not found: {source}")

    destination = Path(data_dir)
    destination.mkdir(parents=True, exist_ok=True)

    restored = 0
    for path in sorted(source.glob("*.json")):
        shutil.copy2(path, destination / path.name)
        restored += 1

    log_action(
        logger, "info", f"Restored {restored} files from {source}",
        action="restore", resource=f"directory:{destination}"
    )
    return restored


def stats(storage: StorageInterface, data_dir: Optional[Union[str, Path]] = None) -> DatabaseStats:
    """Record counts per collection plus on-disk size and last modification"""
    size = 0
    last_modified = None
    if data_dir is not None:
        files = list(Path(data_dir).glob("*.json"))
        size = sum(path.stat().st_size for path in files)
        if files:
            last_modified = datetime.fromtimestamp(max(path.stat().st_mtime for path in files))

    return DatabaseStats(
        total_accounts=storage.count(ACCOUNTS),
        total_customers=storage.count(CUSTOMERS),
        total_transactions=storage.count(TRANSACTIONS),
        total_account_managers=storage.count(ACCOUNT_MANAGERS),
        database_size=size,
        last_modified=last_modified,
    )


def clear(storage: StorageInterface) -> None:
    """Empty every collection"""
    for collection in (ACCOUNTS, CUSTOMERS, TRANSACTIONS, ACCOUNT_MANAGERS):
        storage.clear_collection(collection)
    log_action(logger, "warning", "All collections cleared", action="clear")
