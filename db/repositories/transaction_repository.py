"""
db/repositories/transaction_repository.py

Persistence layer for imported ledger transactions and categorization rules.

The caller controls commit/rollback; :meth:`bulk_insert_atomic` wraps its
writes in a savepoint when a transaction is already open so the outer
transaction is never implicitly committed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.category_rule import CategoryRule as CategoryRuleRow
from db.models.transaction import Transaction as TransactionRow
from db.repositories.errors import TransactionPersistenceError

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 500


class TransactionRepository:
    """
    Repository for writing imported transactions and reading the rules and
    hashes the importer needs.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def existing_import_hashes(self, hashes: Iterable[str] | None = None) -> set[str]:
        """
        Return the ``import_hash`` values already stored.

        When *hashes* is given only those candidates are looked up.
        """
        stmt = select(TransactionRow.import_hash).where(TransactionRow.import_hash.is_not(None))
        if hashes is not None:
            candidates = list(hashes)
            if not candidates:
                return set()
            stmt = stmt.where(TransactionRow.import_hash.in_(candidates))
        return {value for value in self._session.execute(stmt).scalars().all() if value}

    def list_category_rules(self) -> list[CategoryRuleRow]:
        stmt = select(CategoryRuleRow).order_by(CategoryRuleRow.priority.desc())
        return list(self._session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def bulk_insert(
        self,
        rows: Sequence[dict[str, Any]],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert transaction payload dicts in batches.

        Each dict carries the ``transactions`` column values
        (``date``, ``description``, ``amount``, ``type``, ``category``,
        ``is_cac``, ``source``, ``import_hash``).

        Returns
        -------
        int
            Number of rows written.
        """
        if not rows:
            return 0

        size = max(1, batch_size)
        written = 0
        for start in range(0, len(rows), size):
            chunk = list(rows[start : start + size])
            self._session.execute(insert(TransactionRow), chunk)
            written += len(chunk)
        return written

    def bulk_insert_atomic(
        self,
        rows: Sequence[dict[str, Any]],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Transaction-safe wrapper around :meth:`bulk_insert`.

        Raises TransactionPersistenceError after rolling back on failure.
        """
        if not rows:
            return 0

        try:
            with self._transaction_context():
                return self.bulk_insert(rows, batch_size=batch_size)
        except SQLAlchemyError as exc:
            logger.exception("Transaction import persistence failed for %d rows", len(rows))
            raise TransactionPersistenceError("Failed to persist imported transactions.") from exc

    def _transaction_context(self) -> Any:
        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()
