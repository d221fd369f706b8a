"""
app/validators/transaction_validator.py

Header detection and row-level parsing for bank-statement CSV import.

Statements come from Brazilian and US banks alike, so amounts accept both
``1.234,56`` and ``1,234.56`` and dates accept day-first formats.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Sequence

from app.domain.transaction_import import RowValidationError

DATE_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y-%m-%d",
)

_SHORT_YEAR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{2})$")
_CURRENCY_NOISE = re.compile(r"[R$\s ]")

_DATE_HEADERS = ("data", "date", "dt", "dia", "quando")
_DESCRIPTION_HEADERS = (
    "item",
    "descricao",
    "description",
    "desc",
    "historico",
    "lancamento",
    "detalhe",
)
_AMOUNT_HEADERS = ("quanto", "valor", "amount", "value", "quantia", "total")
_CATEGORY_HEADERS = ("categoria", "category")


def normalize_text(value: str) -> str:
    """Lowercase, strip and remove accents (``Descrição`` -> ``descricao``)."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower().strip()


@dataclass(frozen=True)
class ColumnLayout:
    """
    Column indexes resolved from the header row; ``category`` is None when
    the statement has no category column.
    """

    date: int
    description: int
    amount: int
    category: int | None = None


def detect_columns(headers: Sequence[str]) -> ColumnLayout:
    """
    Locate the date, description, amount and category columns by name
    fragments. Undetected required columns fall back to positions 0, 1, 2.
    """
    normalized = [normalize_text(header) for header in headers]

    def find(fragments: tuple[str, ...]) -> int | None:
        for index, header in enumerate(normalized):
            if any(fragment in header for fragment in fragments):
                return index
        return None

    date_index = find(_DATE_HEADERS)
    description_index = find(_DESCRIPTION_HEADERS)
    amount_index = find(_AMOUNT_HEADERS)
    category_index = next(
        (index for index, header in enumerate(normalized) if header in _CATEGORY_HEADERS),
        None,
    )

    return ColumnLayout(
        date=date_index if date_index is not None else 0,
        description=description_index if description_index is not None else 1,
        amount=amount_index if amount_index is not None else 2,
        category=category_index,
    )


def parse_amount(value: str) -> Decimal | None:
    """
    Parse a signed amount in Brazilian or US notation.

    The comma is the decimal separator when it appears after the last dot
    or when there is no dot at all. Returns None when nothing numeric is
    left.
    """
    cleaned = _CURRENCY_NOISE.sub("", value or "")
    if not cleaned:
        return None

    comma_decimal = "," in cleaned and (
        cleaned.rfind(",") > cleaned.rfind(".") or "." not in cleaned
    )
    if comma_decimal:
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    else:
        cleaned = cleaned.replace(",", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_date(value: str) -> date | None:
    """
    Parse ``DD/MM/YYYY``, ``DD-MM-YYYY``, ``YYYY-MM-DD`` or ``DD/MM/YY``.

    Two-digit years above 50 belong to the 1900s.
    """
    raw = (value or "").strip()
    if not raw:
        return None

    short = _SHORT_YEAR_DATE.match(raw)
    if short:
        day, month, year = (int(part) for part in short.groups())
        year += 1900 if year > 50 else 2000
        try:
            return date(year, month, day)
        except ValueError:
            return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class ParsedRow:
    date: date
    description: str
    amount: Decimal
    csv_category: str | None


class TransactionRowValidator:
    """
    Validates and parses one statement row against a resolved layout.
    """

    def is_completely_empty_row(self, row: Sequence[str]) -> bool:
        return all(not (cell or "").strip() for cell in row)

    def validate_row(
        self,
        *,
        row: Sequence[str],
        layout: ColumnLayout,
        row_number: int,
    ) -> tuple[ParsedRow | None, list[RowValidationError]]:
        """
        Return the parsed row or the errors that prevented parsing.

        A row without a description yields ``(None, [])``: it is skipped,
        not reported.
        """
        description = self._cell(row, layout.description)
        if not description:
            return None, []

        errors: list[RowValidationError] = []
        raw_date = self._cell(row, layout.date)
        parsed_date = parse_date(raw_date)
        if parsed_date is None:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="date",
                    message="Date could not be parsed. Expected DD/MM/YYYY, DD-MM-YYYY, YYYY-MM-DD or DD/MM/YY.",
                    value=raw_date or None,
                )
            )

        raw_amount = self._cell(row, layout.amount)
        amount = parse_amount(raw_amount)
        if amount is None:
            errors.append(
                RowValidationError(
                    row_number=row_number,
                    column="amount",
                    message="Amount could not be parsed.",
                    value=raw_amount or None,
                )
            )

        if errors or parsed_date is None or amount is None:
            return None, errors

        category = self._cell(row, layout.category) if layout.category is not None else ""
        return (
            ParsedRow(
                date=parsed_date,
                description=description,
                amount=amount,
                csv_category=category or None,
            ),
            [],
        )

    @staticmethod
    def _cell(row: Sequence[str], index: int | None) -> str:
        if index is None or index >= len(row):
            return ""
        return (row[index] or "").strip()
