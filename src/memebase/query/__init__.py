"""Query construction."""

from .pipeline import (
    LimitStage,
    MatchStage,
    QueryPipeline,
    SkipStage,
    SortStage,
    build_list_pipeline,
)

__all__ = [
    "LimitStage",
    "MatchStage",
    "QueryPipeline",
    "SkipStage",
    "SortStage",
    "build_list_pipeline",
]
