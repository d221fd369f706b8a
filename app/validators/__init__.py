"""
app/validators package marker.
"""

from app.validators.transaction_validator import (
    ColumnLayout,
    ParsedRow,
    TransactionRowValidator,
    detect_columns,
    parse_amount,
    parse_date,
)

__all__ = [
    "ColumnLayout",
    "ParsedRow",
    "TransactionRowValidator",
    "detect_columns",
    "parse_amount",
    "parse_date",
]
