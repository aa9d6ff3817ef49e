"""Data models for Memebase."""

from .filters import (
    FilterCriteria,
    ListQuery,
    PageSpec,
    SortDirection,
    SortField,
    SortSpec,
    build_filter,
    validate_list_query,
)
from .meme import MemePatch, MemeRecord, validate_meme
from .metadata import PaginationMetadata, calculate_metadata

__all__ = [
    "FilterCriteria",
    "ListQuery",
    "PageSpec",
    "SortDirection",
    "SortField",
    "SortSpec",
    "build_filter",
    "validate_list_query",
    "MemePatch",
    "MemeRecord",
    "validate_meme",
    "PaginationMetadata",
    "calculate_metadata",
]
