"""
app/schemas package marker.
"""

from app.schemas.metrics import (
    CashFlowPointResponse,
    CategoryAmountResponse,
    ChurnHistoryPointResponse,
    ClientRankingResponse,
    FinancialMetricsResponse,
    MetricsBundleResponse,
    MetricsComparisonResponse,
    MrrAtDateResponse,
    MrrHistoryPointResponse,
    MrrProjectionResponse,
    ProjectionPointResponse,
    RankedClientResponse,
    RevenueHistoryPointResponse,
)
from app.schemas.planning import (
    PlanArchiveRequest,
    PlanMetricsSchema,
    PlanResponse,
    PlanUpsertRequest,
    SavedScenarioSchema,
    ScenarioOutcomeResponse,
    ScenarioSimulationRequest,
)
from app.schemas.transaction_import import (
    TransactionImportSummaryResponse,
    TransactionValidationErrorResponse,
)

__all__ = [
    "CashFlowPointResponse",
    "CategoryAmountResponse",
    "ChurnHistoryPointResponse",
    "ClientRankingResponse",
    "FinancialMetricsResponse",
    "MetricsBundleResponse",
    "MetricsComparisonResponse",
    "MrrAtDateResponse",
    "MrrHistoryPointResponse",
    "MrrProjectionResponse",
    "PlanArchiveRequest",
    "PlanMetricsSchema",
    "PlanResponse",
    "PlanUpsertRequest",
    "ProjectionPointResponse",
    "RankedClientResponse",
    "RevenueHistoryPointResponse",
    "SavedScenarioSchema",
    "ScenarioOutcomeResponse",
    "ScenarioSimulationRequest",
    "TransactionImportSummaryResponse",
    "TransactionValidationErrorResponse",
]
