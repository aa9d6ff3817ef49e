"""Pagination metadata."""

from typing import Dict

from pydantic import BaseModel, Field


class PaginationMetadata(BaseModel):
    """
    Pagination summary for a listing.

    All fields are zero when the requested page is empty.
    """

    current_page: int = Field(0, description="Page that was returned")
    page_size: int = Field(0, description="Requested page size")
    first_page: int = Field(0, description="Always 1 when non-empty")
    last_page: int = Field(0, description="ceil(total_records / page_size)")
    total_records: int = Field(0, description="Size of the unpaginated filtered set")

    @property
    def is_empty(self) -> bool:
        return self.current_page == 0

    def to_dict(self) -> Dict[str, int]:
        """Serialize, omitting zero-valued fields."""
        return self.model_dump(exclude_defaults=True)


def calculate_metadata(
    filtered_count: int,
    total_records: int,
    page: int,
    page_size: int,
) -> PaginationMetadata:
    """
    Compute pagination metadata.

    Args:
        filtered_count: Number of records returned on this page
        total_records: Number of records matching the filter, unpaginated
        page: Requested page number
        page_size: Requested page size

    Returns:
        PaginationMetadata, all zero when ``filtered_count`` is 0
    """
    if filtered_count == 0:
        return PaginationMetadata()

    return PaginationMetadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=(total_records + page_size - 1) // page_size,
        total_records=total_records,
    )
