"""
app/services package marker.
"""

from app.services.kpi_orchestrator import (
    InvalidDateRangeError,
    KPIAggregationError,
    KPIOrchestrator,
    get_kpi_orchestrator,
)
from app.services.kpi_service import KPIService, PeriodComparison
from app.services.transaction_import_service import (
    TransactionHeaderError,
    TransactionImportError,
    TransactionImportService,
    get_transaction_import_service,
)

__all__ = [
    "InvalidDateRangeError",
    "KPIAggregationError",
    "KPIOrchestrator",
    "get_kpi_orchestrator",
    "KPIService",
    "PeriodComparison",
    "TransactionHeaderError",
    "TransactionImportError",
    "TransactionImportService",
    "get_transaction_import_service",
]
