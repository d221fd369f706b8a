"""
app/schemas/transaction_import.py

Response schemas for the bank-statement import endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TransactionValidationErrorResponse(BaseModel):
    """
    API response model for one row-level validation error.
    """

    row_number: int = Field(..., ge=1)
    message: str
    column: str | None = None
    value: str | None = None


class TransactionImportSummaryResponse(BaseModel):
    """
    API response model for a statement import run.
    """

    rows_processed: int = Field(..., ge=0)
    rows_imported: int = Field(..., ge=0)
    rows_duplicated: int = Field(..., ge=0)
    rows_skipped: int = Field(..., ge=0)
    rows_failed: int = Field(..., ge=0)
    validation_errors: list[TransactionValidationErrorResponse] = Field(default_factory=list)
