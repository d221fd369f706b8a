"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.category_rule import CategoryRule
from db.models.client import Client
from db.models.client_addon import ClientAddon
from db.models.expense import Expense
from db.models.plan import PlanRecord
from db.models.product import Product
from db.models.transaction import Transaction

__all__ = [
    "Product",
    "Client",
    "ClientAddon",
    "Transaction",
    "Expense",
    "CategoryRule",
    "PlanRecord",
]
