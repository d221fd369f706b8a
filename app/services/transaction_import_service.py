"""
app/services/transaction_import_service.py

Service layer for bank-statement CSV import.

Parsing and categorization are pure (:meth:`TransactionImportService.import_csv`
takes text, rules and known hashes). :meth:`import_upload` adds the I/O:
it reads the upload, loads rules and stored hashes through
:class:`~db.repositories.transaction_repository.TransactionRepository`,
writes the new rows atomically and commits.

Rows are de-duplicated by a SHA-256 ``import_hash`` over
``date|description|amount``, both against stored rows and within the file.
"""

from __future__ import annotations

import csv
import hashlib
import io
import itertools
import logging
from decimal import Decimal
from functools import lru_cache
from typing import Any, Iterable, Sequence, TextIO

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.config import get_transaction_import_settings
from app.domain.transaction_import import (
    CategoryRuleInput,
    ImportedTransaction,
    ParsedStatement,
    RowValidationError,
    TransactionImportSummary,
)
from app.mappers.category_mapper import CategoryMapper
from app.validators.transaction_validator import TransactionRowValidator, detect_columns
from db.repositories.transaction_repository import TransactionRepository
from kpi.types import TransactionType

logger = logging.getLogger(__name__)

_MIN_COLUMNS = 3


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TransactionImportError(ValueError):
    """
    Raised when the uploaded statement cannot be read at all.
    """


class TransactionHeaderError(TransactionImportError):
    """
    Raised when the header row is missing or has too few columns.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TransactionImportService:
    """
    Coordinates statement parsing, categorization, de-duplication and
    persistence.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        max_validation_errors: int,
        validator: TransactionRowValidator | None = None,
        mapper: CategoryMapper | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._max_validation_errors = max(1, max_validation_errors)
        self._validator = validator or TransactionRowValidator()
        self._mapper = mapper or CategoryMapper()

    # ------------------------------------------------------------------
    # Pure import
    # ------------------------------------------------------------------

    def parse_statement(
        self,
        content: str | TextIO,
        rules: Sequence[CategoryRuleInput] = (),
    ) -> ParsedStatement:
        """
        Parse statement text into categorized transactions.

        Parameters
        ----------
        content:
            Statement text, or a text stream opened with ``newline=""`` so
            quoted fields may span lines.
        rules:
            User categorization rules, highest priority first.

        Raises TransactionHeaderError when the file has no usable header.
        """
        stream = io.StringIO(content, newline="") if isinstance(content, str) else content
        try:
            return self._parse_rows(stream, rules)
        except csv.Error as exc:
            raise TransactionImportError(f"Invalid CSV format: {exc}") from exc

    def _parse_rows(self, stream: TextIO, rules: Sequence[CategoryRuleInput]) -> ParsedStatement:
        # Blank lines before the header are ignored; the delimiter comes
        # from the header line alone.
        for header_line in stream:
            if header_line.strip():
                break
        else:
            raise TransactionHeaderError("CSV header row is missing.")

        delimiter = ";" if ";" in header_line else ","
        reader = csv.reader(itertools.chain([header_line], stream), delimiter=delimiter)

        headers = [cell.strip() for cell in next(reader)]
        if len(headers) < _MIN_COLUMNS:
            raise TransactionHeaderError(
                f"CSV header must have at least {_MIN_COLUMNS} columns "
                f"(date, description, amount); found {len(headers)}."
            )
        layout = detect_columns(headers)
        logger.debug("Statement columns detected: %s (delimiter=%r)", layout, delimiter)

        transactions: list[ImportedTransaction] = []
        captured_errors: list[RowValidationError] = []
        rows_processed = 0
        rows_skipped = 0
        rows_failed = 0

        row_number = 1
        for row in reader:
            if _is_blank_line(row):
                continue
            row_number += 1
            rows_processed += 1
            if self._validator.is_completely_empty_row(row):
                rows_skipped += 1
                continue

            parsed, errors = self._validator.validate_row(
                row=row,
                layout=layout,
                row_number=row_number,
            )
            if errors:
                rows_failed += 1
                for error in errors:
                    self._record_error(captured_errors, error)
                continue
            if parsed is None:
                rows_skipped += 1
                continue

            assignment = self._mapper.resolve(parsed.description, parsed.csv_category, rules)
            transactions.append(
                ImportedTransaction(
                    date=parsed.date,
                    description=parsed.description,
                    amount=float(parsed.amount),
                    type=TransactionType.REVENUE if parsed.amount > 0 else TransactionType.EXPENSE,
                    category=assignment.category,
                    is_cac=assignment.is_cac,
                    import_hash=import_hash(parsed.date.isoformat(), parsed.description, parsed.amount),
                )
            )

        return ParsedStatement(
            transactions=transactions,
            validation_errors=captured_errors,
            rows_processed=rows_processed,
            rows_skipped=rows_skipped,
            rows_failed=rows_failed,
        )

    def import_csv(
        self,
        content: str,
        rules: Sequence[CategoryRuleInput] = (),
        existing_hashes: Iterable[str] = (),
    ) -> tuple[list[ImportedTransaction], TransactionImportSummary]:
        """
        Parse *content* and drop rows whose hash is already known.

        Returns the new transactions and the run summary.
        """
        return self._deduplicate(self.parse_statement(content, rules), existing_hashes)

    def _deduplicate(
        self,
        statement: ParsedStatement,
        existing_hashes: Iterable[str],
    ) -> tuple[list[ImportedTransaction], TransactionImportSummary]:
        seen = set(existing_hashes)
        fresh: list[ImportedTransaction] = []
        duplicates = 0
        for txn in statement.transactions:
            if txn.import_hash in seen:
                duplicates += 1
                continue
            seen.add(txn.import_hash)
            fresh.append(txn)

        summary = TransactionImportSummary(
            rows_processed=statement.rows_processed,
            rows_imported=len(fresh),
            rows_duplicated=duplicates,
            rows_skipped=statement.rows_skipped,
            rows_failed=statement.rows_failed,
            validation_errors=statement.validation_errors,
        )
        return fresh, summary

    # ------------------------------------------------------------------
    # Upload + persistence
    # ------------------------------------------------------------------

    def import_upload(self, *, upload_file: UploadFile, db: Session) -> TransactionImportSummary:
        """
        Import an uploaded statement and commit the new rows.

        Raises TransactionImportError for unreadable files and
        TransactionPersistenceError (after rollback) when writing fails.
        """
        repository = TransactionRepository(db)
        rules = [
            CategoryRuleInput(
                pattern=row.pattern,
                category=row.category,
                is_cac=row.is_cac,
                priority=row.priority,
            )
            for row in repository.list_category_rules()
        ]
        raw_file = upload_file.file
        raw_file.seek(0)
        text_stream = io.TextIOWrapper(raw_file, encoding="utf-8-sig", newline="")
        try:
            statement = self.parse_statement(text_stream, rules)
        except UnicodeDecodeError as exc:
            raise TransactionImportError("CSV must be UTF-8 encoded.") from exc
        finally:
            # Leave the upload's own file object open for FastAPI to close.
            text_stream.detach()

        known = repository.existing_import_hashes(t.import_hash for t in statement.transactions)

        fresh, summary = self._deduplicate(statement, known)
        if fresh:
            repository.bulk_insert_atomic(
                [_to_row(txn) for txn in fresh],
                batch_size=self._batch_size,
            )
            db.commit()

        logger.info(
            "Transaction import finished processed=%d imported=%d duplicated=%d skipped=%d failed=%d",
            summary.rows_processed,
            summary.rows_imported,
            summary.rows_duplicated,
            summary.rows_skipped,
            summary.rows_failed,
        )
        return summary

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        logger.warning(
            "Statement validation error row=%s column=%s message=%s value=%r",
            error.row_number,
            error.column,
            error.message,
            error.value,
        )
        if len(captured_errors) < self._max_validation_errors:
            captured_errors.append(error)


# ---------------------------------------------------------------------------
# Module-level helpers (no business logic)
# ---------------------------------------------------------------------------


def _is_blank_line(row: Sequence[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def import_hash(iso_date: str, description: str, amount: Decimal | float) -> str:
    """SHA-256 hex digest of ``date|description|amount`` (amount to 2 places)."""
    payload = f"{iso_date}|{description}|{Decimal(str(amount)).quantize(Decimal('0.01'))}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _to_row(txn: ImportedTransaction) -> dict[str, Any]:
    return {
        "date": txn.date,
        "description": txn.description,
        "amount": Decimal(str(txn.amount)),
        "type": txn.type,
        "category": txn.category,
        "is_cac": txn.is_cac,
        "source": "csv_import",
        "import_hash": txn.import_hash,
    }


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_transaction_import_service() -> TransactionImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_transaction_import_settings()
    return TransactionImportService(
        batch_size=settings.batch_size,
        max_validation_errors=settings.max_validation_errors,
    )
