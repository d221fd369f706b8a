"""
app/config.py

Metrics and import settings, read from the environment with clamping.
Unparseable values fall back to the defaults below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_SUPPORTED_LABEL_LOCALES = {"pt_BR", "en"}


def _env(name: str) -> str | None:
    load_env_files()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _int_setting(name: str, default: int, minimum: int) -> int:
    raw_value = _env(name)
    try:
        value = int(raw_value) if raw_value is not None else default
    except ValueError:
        value = default
    return max(minimum, value)


@dataclass(frozen=True)
class MetricsSettings:
    """
    Business knobs of the metrics engine.

    The -1 / 99 ratio sentinels belong to the wire contract and are
    fixed.
    """

    max_lifetime_months: int = 36
    default_history_months: int = 12
    month_label_locale: str = "pt_BR"
    projection_months: int = 6
    projection_lookback_months: int = 6
    ranking_page_size: int = 5


@dataclass(frozen=True)
class TransactionImportSettings:
    """
    Runtime settings for bank-statement CSV import.
    """

    batch_size: int = 500
    max_validation_errors: int = 200


@lru_cache(maxsize=1)
def get_metrics_settings() -> MetricsSettings:
    locale = _env("METRICS_MONTH_LABEL_LOCALE") or "pt_BR"
    if locale not in _SUPPORTED_LABEL_LOCALES:
        locale = "pt_BR"

    return MetricsSettings(
        max_lifetime_months=_int_setting("METRICS_MAX_LIFETIME_MONTHS", 36, 1),
        default_history_months=_int_setting("METRICS_DEFAULT_HISTORY_MONTHS", 12, 1),
        month_label_locale=locale,
        projection_months=_int_setting("METRICS_PROJECTION_MONTHS", 6, 1),
        projection_lookback_months=_int_setting("METRICS_PROJECTION_LOOKBACK_MONTHS", 6, 2),
        ranking_page_size=_int_setting("METRICS_RANKING_PAGE_SIZE", 5, 1),
    )


@lru_cache(maxsize=1)
def get_transaction_import_settings() -> TransactionImportSettings:
    """Cached; call ``cache_clear()`` after changing the environment."""
    return TransactionImportSettings(
        batch_size=_int_setting("TRANSACTION_IMPORT_BATCH_SIZE", 500, 1),
        max_validation_errors=_int_setting("TRANSACTION_IMPORT_MAX_VALIDATION_ERRORS", 200, 1),
    )
