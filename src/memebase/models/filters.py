"""Filter, sort and page specifications for listing memes."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator

from ..exceptions.base import ValidationFailedError

MAX_PAGE = 1_000
MAX_PAGE_SIZE = 10
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 5
DEFAULT_SORT = "created"
SORT_SAFELIST = ("artist", "title", "created", "-artist", "-title", "-created")


class SortField(str, Enum):
    """Fields a listing may be ordered by."""

    ARTIST = "artist"
    TITLE = "title"
    CREATED = "created"


class SortDirection(IntEnum):
    """Sort direction in the store's numeric convention."""

    ASCENDING = 1
    DESCENDING = -1


@dataclass(frozen=True)
class SortSpec:
    """Primary sort key; ties are always broken on ``_id`` ascending."""

    field: SortField
    direction: SortDirection = SortDirection.ASCENDING

    def __post_init__(self) -> None:
        if not isinstance(self.field, SortField):
            raise TypeError(f"unsafe sort field: {self.field!r}")
        if not isinstance(self.direction, SortDirection):
            raise TypeError(f"invalid sort direction: {self.direction!r}")

    @classmethod
    def parse(cls, raw: str, safelist: Sequence[str] = SORT_SAFELIST) -> "SortSpec":
        """
        Parse a sort key such as ``"title"`` or ``"-created"``.

        Raises:
            ValueError: If the key is not in the safelist
        """
        if raw not in safelist:
            raise ValueError("invalid sort value")
        direction = SortDirection.DESCENDING if raw.startswith("-") else SortDirection.ASCENDING
        return cls(SortField(raw.removeprefix("-")), direction)


@dataclass(frozen=True)
class PageSpec:
    """A validated page request."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if not 1 <= self.page <= MAX_PAGE:
            raise ValueError(f"page out of range: {self.page}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size out of range: {self.page_size}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class FilterCriteria:
    """Exact match on artist, case-insensitive substring match on title.

    ``None`` means no constraint on that field.
    """

    artist: Optional[str] = None
    title: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.artist is None and self.title is None


def build_filter(artist: Optional[str] = None, title: Optional[str] = None) -> FilterCriteria:
    """Translate optional criteria into a predicate; empty strings mean no constraint."""
    return FilterCriteria(artist=artist or None, title=title or None)


@dataclass(frozen=True)
class ListQuery:
    """Everything the list operation needs, already validated."""

    criteria: FilterCriteria
    sort: SortSpec
    page: PageSpec


class ListParams(BaseModel):
    """Raw listing parameters as received from the caller."""

    artist: Optional[str] = None
    title: Optional[str] = None
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT

    @field_validator("page")
    @classmethod
    def check_page(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        if v > MAX_PAGE:
            raise ValueError("must be a maximum of 1 thousand")
        return v

    @field_validator("page_size")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        if v > MAX_PAGE_SIZE:
            raise ValueError(f"must be a maximum of {MAX_PAGE_SIZE}")
        return v

    @field_validator("sort")
    @classmethod
    def check_sort(cls, v: str, info: ValidationInfo) -> str:
        safelist = (info.context or {}).get("sort_safelist", SORT_SAFELIST)
        if v not in safelist:
            raise ValueError("invalid sort value")
        return v


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else "__root__"
        if error["type"] == "value_error":
            message = str(error["ctx"]["error"])
        elif error["type"] in ("int_parsing", "int_type", "int_from_float"):
            message = "must be an integer value"
        else:
            message = error["msg"]
        errors.setdefault(name, message)
    return errors


def validate_list_query(
    params: Mapping[str, Any],
    safelist: Sequence[str] = SORT_SAFELIST,
) -> ListQuery:
    """
    Validate raw listing parameters.

    Args:
        params: Raw values keyed by ``artist``, ``title``, ``page``,
            ``page_size`` and ``sort``; missing keys take their defaults
        safelist: Permitted sort keys

    Returns:
        ListQuery: Normalized criteria, sort and page

    Raises:
        ValidationFailedError: Listing every violated parameter
    """
    try:
        parsed = ListParams.model_validate(
            {key: value for key, value in params.items() if value is not None},
            context={"sort_safelist": tuple(safelist)},
        )
    except ValidationError as e:
        raise ValidationFailedError(_field_errors(e)) from e

    return ListQuery(
        criteria=build_filter(parsed.artist, parsed.title),
        sort=SortSpec.parse(parsed.sort, safelist),
        page=PageSpec(parsed.page, parsed.page_size),
    )
