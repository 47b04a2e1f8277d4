"""Total-count estimation from GitHub ``Link`` headers."""

import re
from typing import Optional

from ...core.primitives import PaginationParams

_LAST_PAGE = re.compile(r'[&?]page=(\d+)(?:&[^>]*)?>;\s*rel="last"')


def parse_total_from_link_header(
    link_header: Optional[str], current_page_count: int, pagination: PaginationParams
) -> int:
    """Estimate the collection size.

    GitHub list endpoints expose no total, only a ``rel="last"`` link. When we
    are not on the last page the result is an upper bound that assumes the
    final page is full.
    """
    seen = (pagination.page - 1) * pagination.limit + current_page_count
    if not link_header:
        return seen

    match = _LAST_PAGE.search(link_header)
    if match is None:
        return seen

    last_page = int(match.group(1))
    if pagination.page == last_page:
        return (last_page - 1) * pagination.limit + current_page_count
    return last_page * pagination.limit
