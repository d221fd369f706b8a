"""
app/domain/transaction_import.py

Domain models used by the bank-statement CSV import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ImportedTransaction:
    """
    One parsed, categorized CSV row ready for persistence.

    ``amount`` keeps the sign found in the file.
    """

    date: date
    description: str
    amount: float
    type: str
    category: str
    is_cac: bool
    import_hash: str


@dataclass(frozen=True)
class RowValidationError:
    """
    One CSV row validation error detail.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class ParsedStatement:
    """
    Parse result before de-duplication against stored hashes.
    """

    transactions: list[ImportedTransaction] = field(default_factory=list)
    validation_errors: list[RowValidationError] = field(default_factory=list)
    rows_processed: int = 0
    rows_skipped: int = 0
    rows_failed: int = 0


@dataclass(frozen=True)
class TransactionImportSummary:
    """
    End-of-run import summary.
    """

    rows_processed: int
    rows_imported: int
    rows_duplicated: int
    rows_skipped: int
    rows_failed: int
    validation_errors: list[RowValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class CategoryRuleInput:
    """
    Wildcard categorization rule (``*`` any run, ``?`` one character).
    """

    pattern: str
    category: str
    is_cac: bool = False
    priority: int = 0


@dataclass(frozen=True)
class CategoryAssignment:
    category: str
    is_cac: bool
