"""Pagination — page window and metadata for catalog listing.

Invariants:
    - page and limit are >= 1 (enforced at the API boundary, re-checked here)
    - total_pages is 0 when there are no matches
    - has_next / has_prev derived only from page and total_pages
"""

import math
from dataclasses import dataclass

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_window(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> PageWindow:
    """Clamp raw page/limit values into a usable window."""
    return PageWindow(page=max(page, 1), limit=min(max(limit, 1), MAX_LIMIT))


def build_pagination(window: PageWindow, total_count: int) -> dict:
    """Pagination metadata for a page of results."""
    total_pages = math.ceil(total_count / window.limit) if total_count else 0
    return {
        "current_page": window.page,
        "total_pages": total_pages,
        "total_count": total_count,
        "has_next": window.page < total_pages,
        "has_prev": window.page > 1,
    }
