"""Pagination model."""

from pydantic import BaseModel, Field, StrictBool, StrictInt


class PaginationInfo(BaseModel):
    """Pagination metadata for list responses."""

    page: StrictInt = Field(..., description="Current page, starting at 1")
    limit: StrictInt = Field(..., description="Maximum number of items requested")
    total_pages: StrictInt = Field(..., description="Number of pages available")
    has_more: StrictBool = Field(..., description="Whether more items are available after this page")

    @classmethod
    def for_page(cls, *, page: int, limit: int, total: int) -> "PaginationInfo":
        total_pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_more=page * limit < total,
        )
