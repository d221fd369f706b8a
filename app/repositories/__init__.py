"""
app/repositories package marker.
"""

from app.repositories.plan_repository import InMemoryPlanStore, PlanStore, SQLAlchemyPlanStore

__all__ = [
    "InMemoryPlanStore",
    "PlanStore",
    "SQLAlchemyPlanStore",
]
