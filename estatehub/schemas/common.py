"""
Shared schema pieces: pagination metadata and simple acknowledgements.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict
import math


class PageMeta(BaseModel):
    """Pagination fields carried by every list response."""

    total: int = Field(..., description="Total number of matching records", examples=[150])
    page: int = Field(..., description="Current page number", examples=[1])
    page_size: int = Field(..., description="Number of records per page", examples=[20])
    total_pages: int = Field(..., description="Total number of pages", examples=[8])
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


def page_meta(total: int, page: int, page_size: int) -> Dict[str, Any]:
    """
    Compute pagination metadata.

    Args:
        total: Total number of matching records
        page: 1-based page number
        page_size: Records per page

    Returns:
        Dictionary matching PageMeta
    """
    total_pages = math.ceil(total / page_size) if page_size else 0
    return {
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }


def page_offset(page: int, page_size: int) -> int:
    """Row offset of the first record on a page."""
    return (page - 1) * page_size
