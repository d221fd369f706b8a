"""
tests/test_transaction_import.py

Unit tests for the bank-statement CSV import flow.

Coverage:
  - Amount and date parsing (Brazilian and US notation)
  - Header detection
  - Category resolution: wildcard rules, statement aliases, fallback
  - TransactionImportService: counters, de-duplication, header errors
  - import_upload against the SQLite schema
"""

from __future__ import annotations

import io
from datetime import date
from decimal import Decimal

import pytest
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.transaction_import import CategoryRuleInput
from app.mappers.category_mapper import CategoryMapper, wildcard_to_regex
from app.services.transaction_import_service import (
    TransactionHeaderError,
    TransactionImportError,
    TransactionImportService,
    import_hash,
)
from app.validators.transaction_validator import detect_columns, parse_amount, parse_date
from db.models import CategoryRule, Transaction

STATEMENT = (
    "Data;Descrição;Valor;Categoria\n"
    "15/01/2024;Google Ads;-1.500,00;Marketing\n"
    "16/01/2024;Cliente XPTO;2.000,00;Receita\n"
    "16/01/2024;Cliente XPTO;2.000,00;Receita\n"
    "17/01/2024;;10,00;Outros\n"
    "32/01/2024;Broken;10,00;Outros\n"
    ";;;\n"
)


@pytest.fixture()
def service() -> TransactionImportService:
    return TransactionImportService(batch_size=2, max_validation_errors=10)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


class TestParseAmount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            ("-R$ 50,00", Decimal("-50.00")),
            ("12,5", Decimal("12.5")),
            ("-99.90", Decimal("-99.90")),
        ],
    )
    def test_notations(self, raw: str, expected: Decimal) -> None:
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "R$"])
    def test_unparseable(self, raw: str) -> None:
        assert parse_amount(raw) is None


class TestParseDate:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("15/01/2024", date(2024, 1, 15)),
            ("15-01-2024", date(2024, 1, 15)),
            ("2024-01-15", date(2024, 1, 15)),
            ("15/01/24", date(2024, 1, 15)),
            ("15/01/99", date(1999, 1, 15)),
        ],
    )
    def test_formats(self, raw: str, expected: date) -> None:
        assert parse_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", "31/02/2024", "01/15/2024", "yesterday"])
    def test_invalid(self, raw: str) -> None:
        assert parse_date(raw) is None


class TestDetectColumns:
    def test_portuguese_headers(self) -> None:
        layout = detect_columns(["Data", "Descrição", "Valor", "Categoria"])
        assert (layout.date, layout.description, layout.amount, layout.category) == (0, 1, 2, 3)

    def test_reordered_headers(self) -> None:
        layout = detect_columns(["Valor", "Histórico", "Data"])
        assert (layout.date, layout.description, layout.amount) == (2, 1, 0)
        assert layout.category is None

    def test_positional_fallback(self) -> None:
        layout = detect_columns(["a", "b", "c"])
        assert (layout.date, layout.description, layout.amount) == (0, 1, 2)


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------


class TestCategoryMapper:
    def test_highest_priority_rule_wins(self) -> None:
        rules = [
            CategoryRuleInput(pattern="*google*", category="marketing", is_cac=True, priority=1),
            CategoryRuleInput(pattern="*ads*", category="tools", is_cac=False, priority=5),
        ]
        assignment = CategoryMapper().resolve("Google Ads invoice", "Marketing", rules)
        assert (assignment.category, assignment.is_cac) == ("tools", False)

    def test_rule_beats_statement_category(self) -> None:
        rules = [CategoryRuleInput(pattern="aws", category="infrastructure")]
        assignment = CategoryMapper().resolve("Pagamento AWS", "Marketing", rules)
        assert assignment.category == "infrastructure"

    def test_wildcards(self) -> None:
        assert wildcard_to_regex("uber*trip").search("UBER BR TRIP 123")
        assert wildcard_to_regex("ab?d").search("xxabcdxx")
        assert not wildcard_to_regex("a.b").search("axb")

    @pytest.mark.parametrize(
        ("label", "category", "is_cac"),
        [
            ("Tráfego Pago", "marketing", True),
            ("COMISSÕES", "sales", True),
            ("Impostos federais", "taxes", False),
            ("Receita", "other_revenue", False),
            ("something else", "other", False),
        ],
    )
    def test_statement_aliases(self, label: str, category: str, is_cac: bool) -> None:
        assignment = CategoryMapper().map_statement_category(label)
        assert (assignment.category, assignment.is_cac) == (category, is_cac)

    def test_no_rule_no_category(self) -> None:
        assert CategoryMapper().resolve("Anything", None, []).category == "other"


# ---------------------------------------------------------------------------
# Service (pure)
# ---------------------------------------------------------------------------


class TestImportCsv:
    def test_counters(self, service: TransactionImportService) -> None:
        fresh, summary = service.import_csv(STATEMENT)
        assert summary.rows_processed == 6
        assert summary.rows_imported == 2
        assert summary.rows_duplicated == 1
        assert summary.rows_skipped == 2
        assert summary.rows_failed == 1
        assert len(fresh) == 2
        (error,) = summary.validation_errors
        assert error.row_number == 6
        assert error.column == "date"

    def test_rows_are_categorized(self, service: TransactionImportService) -> None:
        fresh, _ = service.import_csv(STATEMENT)
        ads, client = fresh
        assert (ads.type, ads.category, ads.is_cac, ads.amount) == ("expense", "marketing", True, -1500.0)
        assert (client.type, client.category, client.is_cac) == ("revenue", "other_revenue", False)

    def test_known_hashes_are_skipped(self, service: TransactionImportService) -> None:
        known = {import_hash("2024-01-15", "Google Ads", Decimal("-1500.00"))}
        fresh, summary = service.import_csv(STATEMENT, existing_hashes=known)
        assert [t.description for t in fresh] == ["Cliente XPTO"]
        assert summary.rows_duplicated == 2

    def test_comma_delimited_us_statement(self, service: TransactionImportService) -> None:
        content = 'date,description,amount\n2024-01-15,AWS bill,"-1,234.56"\n'
        rules = [CategoryRuleInput(pattern="aws*", category="infrastructure")]
        fresh, _ = service.import_csv(content, rules)
        (txn,) = fresh
        assert txn.amount == pytest.approx(-1234.56)
        assert txn.category == "infrastructure"

    def test_quoted_description_keeps_line_breaks(self, service: TransactionImportService) -> None:
        content = (
            "Data;Descrição;Valor\n"
            '20/01/2024;"PIX enviado\nFornecedor X";-50,00\n'
            "\n"
            '21/01/2024;"Boleto\n\nAluguel";-900,00\n'
            "22/01/2024;Broken;abc\n"
        )
        fresh, summary = service.import_csv(content)
        assert [(t.description, t.amount) for t in fresh] == [
            ("PIX enviado\nFornecedor X", -50.0),
            ("Boleto\n\nAluguel", -900.0),
        ]
        assert summary.rows_processed == 3
        (error,) = summary.validation_errors
        assert error.row_number == 4

    def test_captured_errors_are_capped(self) -> None:
        service = TransactionImportService(batch_size=10, max_validation_errors=1)
        content = "data;descricao;valor\nxx;A;1,00\nyy;B;2,00\n"
        _, summary = service.import_csv(content)
        assert summary.rows_failed == 2
        assert len(summary.validation_errors) == 1

    @pytest.mark.parametrize("content", ["", "\n\n", "data;valor\n01/01/2024;1,00\n"])
    def test_header_errors(self, service: TransactionImportService, content: str) -> None:
        with pytest.raises(TransactionHeaderError):
            service.import_csv(content)

    def test_hash_ignores_amount_representation(self) -> None:
        assert import_hash("2024-01-15", "x", Decimal("-1500")) == import_hash("2024-01-15", "x", -1500.0)


# ---------------------------------------------------------------------------
# Service (persistence)
# ---------------------------------------------------------------------------


def _upload(content: str | bytes) -> UploadFile:
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return UploadFile(file=io.BytesIO(raw), filename="statement.csv")


class TestImportUpload:
    def test_rows_persisted_once(self, service: TransactionImportService, db_session: Session) -> None:
        db_session.add(CategoryRule(pattern="*xpto*", category="consulting", is_cac=False, priority=10))
        db_session.commit()

        first = service.import_upload(upload_file=_upload(STATEMENT), db=db_session)
        second = service.import_upload(upload_file=_upload(STATEMENT), db=db_session)

        assert first.rows_imported == 2
        assert second.rows_imported == 0
        assert second.rows_duplicated == 3

        rows = db_session.execute(select(Transaction).order_by(Transaction.date)).scalars().all()
        assert [(r.description, r.category, r.source) for r in rows] == [
            ("Google Ads", "marketing", "csv_import"),
            ("Cliente XPTO", "consulting", "csv_import"),
        ]
        assert rows[0].amount == Decimal("-1500.00")

    def test_multiline_description_persisted(
        self, service: TransactionImportService, db_session: Session
    ) -> None:
        content = '\ufeffdate,description,amount\n2024-01-20,"PIX enviado\nFornecedor X",-50.00\n'
        upload = _upload(content)

        summary = service.import_upload(upload_file=upload, db=db_session)

        assert summary.rows_imported == 1
        row = db_session.execute(select(Transaction)).scalars().one()
        assert row.description == "PIX enviado\nFornecedor X"
        assert not upload.file.closed

    def test_non_utf8_upload(self, service: TransactionImportService, db_session: Session) -> None:
        with pytest.raises(TransactionImportError, match="UTF-8"):
            service.import_upload(upload_file=_upload(b"\xff\xfe\x00bad"), db=db_session)
