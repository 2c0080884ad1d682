"""
StakePoll Storage

Provides:
  - Storage / MemoryStorage / SQLiteStorage   (kv.py)
  - Transaction                               (transaction.py)
  - Singleton / Bucket                        (typed.py)
"""

from .kv import MemoryStorage, SQLiteStorage, Storage
from .transaction import Transaction
from .typed import Bucket, Singleton

__all__ = [
    "Storage",
    "MemoryStorage",
    "SQLiteStorage",
    "Transaction",
    "Bucket",
    "Singleton",
]
