"""Offset pagination helpers shared by list endpoints (pages start at 1)."""
import math
from typing import Tuple

from app.core.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

def page_bounds(page: int, page_size: int) -> Tuple[int, int]:
    """Return (offset, limit) for a 1-based page"""
    if page < 1:
        raise ValidationError("page must be 1 or greater")
    if page_size < 1:
        raise ValidationError("page_size must be 1 or greater")
    return (page - 1) * page_size, page_size

def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size) if page_size else 0
