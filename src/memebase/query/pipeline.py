"""Store-independent query pipeline for paginated listing."""

from dataclasses import dataclass
from typing import List, Tuple, Union

from ..models.filters import FilterCriteria, PageSpec, SortDirection, SortSpec

ID_FIELD = "_id"


@dataclass(frozen=True)
class MatchStage:
    criteria: FilterCriteria


@dataclass(frozen=True)
class SortStage:
    sort: SortSpec

    @property
    def keys(self) -> List[Tuple[str, int]]:
        """Primary key and direction, then ``_id`` ascending as tie-break."""
        return [
            (self.sort.field.value, int(self.sort.direction)),
            (ID_FIELD, int(SortDirection.ASCENDING)),
        ]


@dataclass(frozen=True)
class SkipStage:
    count: int


@dataclass(frozen=True)
class LimitStage:
    count: int


Stage = Union[MatchStage, SortStage, SkipStage, LimitStage]

STAGE_ORDER = (MatchStage, SortStage, SkipStage, LimitStage)


@dataclass(frozen=True)
class QueryPipeline:
    """
    An ordered sequence of stages.

    Stages must appear as match, sort, skip, limit. Skipping or limiting
    before sorting would page over an unordered set, so any other order is
    rejected at construction.
    """

    stages: Tuple[Stage, ...]

    def __post_init__(self) -> None:
        kinds = tuple(type(stage) for stage in self.stages)
        if kinds != STAGE_ORDER:
            names = ", ".join(kind.__name__ for kind in kinds)
            raise ValueError(f"pipeline stages out of order: {names}")

    @property
    def match(self) -> MatchStage:
        return self.stages[0]

    @property
    def sort(self) -> SortStage:
        return self.stages[1]

    @property
    def skip(self) -> SkipStage:
        return self.stages[2]

    @property
    def limit(self) -> LimitStage:
        return self.stages[3]


def build_list_pipeline(criteria: FilterCriteria, sort: SortSpec, page: PageSpec) -> QueryPipeline:
    """Compose filter, sort, skip and limit into a listing pipeline."""
    return QueryPipeline((
        MatchStage(criteria),
        SortStage(sort),
        SkipStage(page.offset),
        LimitStage(page.limit),
    ))
