"""
Repository-layer exceptions for record store and plan persistence flows.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class PlanNotFoundError(RepositoryError, LookupError):
    """Raised when a plan id does not exist in the store."""


class TransactionPersistenceError(RepositoryError, RuntimeError):
    """Raised when imported transactions cannot be written; the session was rolled back."""
