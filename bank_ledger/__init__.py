"""
Bank Ledger

A single-process banking ledger: accounts, customers, account managers and an
append-only transaction log, persisted as whole-collection JSON files with
exact Decimal arithmetic.
"""

__version__ = "1.0.0"
