"""
app/api/routers/transaction_import_router.py

Bank-statement CSV import endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload
from app.schemas.transaction_import import (
    TransactionImportSummaryResponse,
    TransactionValidationErrorResponse,
)
from app.services.transaction_import_service import (
    TransactionImportError,
    TransactionImportService,
    get_transaction_import_service,
)
from db.repositories.errors import TransactionPersistenceError
from db.session import get_db

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("/import", response_model=TransactionImportSummaryResponse)
def import_transactions(
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    import_service: TransactionImportService = Depends(get_transaction_import_service),
) -> TransactionImportSummaryResponse:
    """
    Import one bank-statement CSV into the transaction ledger.

    Rows already imported (same date, description and amount) are skipped.
    """

    try:
        summary = import_service.import_upload(upload_file=file, db=db)
    except TransactionImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except TransactionPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist imported transactions.",
        ) from exc
    finally:
        file.file.close()

    return TransactionImportSummaryResponse(
        rows_processed=summary.rows_processed,
        rows_imported=summary.rows_imported,
        rows_duplicated=summary.rows_duplicated,
        rows_skipped=summary.rows_skipped,
        rows_failed=summary.rows_failed,
        validation_errors=[
            TransactionValidationErrorResponse(
                row_number=error.row_number,
                column=error.column,
                message=error.message,
                value=error.value,
            )
            for error in summary.validation_errors
        ],
    )
