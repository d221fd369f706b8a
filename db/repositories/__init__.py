"""
Repository layer exports.
"""

from db.repositories.errors import (
    PlanNotFoundError,
    RepositoryError,
    TransactionPersistenceError,
)
from db.repositories.snapshot_repository import SnapshotRepository
from db.repositories.transaction_repository import TransactionRepository

__all__ = [
    "SnapshotRepository",
    "TransactionRepository",
    "RepositoryError",
    "PlanNotFoundError",
    "TransactionPersistenceError",
]
