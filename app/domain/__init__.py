"""
app/domain package marker.
"""

from app.domain.planning import Plan, PlanMetrics, PlanStatus, SavedScenario
from app.domain.transaction_import import (
    CategoryAssignment,
    CategoryRuleInput,
    ImportedTransaction,
    ParsedStatement,
    RowValidationError,
    TransactionImportSummary,
)

__all__ = [
    "CategoryAssignment",
    "CategoryRuleInput",
    "ImportedTransaction",
    "ParsedStatement",
    "Plan",
    "PlanMetrics",
    "PlanStatus",
    "RowValidationError",
    "SavedScenario",
    "TransactionImportSummary",
]
