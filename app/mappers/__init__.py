"""
app/mappers package marker.
"""

from app.mappers.category_mapper import DEFAULT_CATEGORY_ALIASES, CategoryMapper, wildcard_to_regex

__all__ = [
    "DEFAULT_CATEGORY_ALIASES",
    "CategoryMapper",
    "wildcard_to_regex",
]
