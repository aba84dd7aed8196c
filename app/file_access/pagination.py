# app/file_access/pagination.py
"""
Pagination driver shared by every remote ``list``.

Pages are fetched one after another (each request needs the previous
page's continuation token) until the provider stops returning a token or the
collected items exceed a soft cap. The remaining token is handed back to the
caller as ``nextSetToken`` so the next request can resume.
"""
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from app.monitoring.logger import log

Page = Tuple[List[Any], Optional[str]]
PageFetcher = Callable[[Optional[str]], Awaitable[Page]]


async def drain_pages(
    fetch_page: PageFetcher,
    start_token: Optional[str] = None,
    soft_cap: int = 50,
    component: str = "pagination",
) -> Page:
    """
    Collect items from consecutive pages.

    Args:
        fetch_page: Coroutine taking a continuation token (None for the first
            page) and returning ``(items, next_token)``
        start_token: Token supplied by the caller to resume a listing
        soft_cap: Stop once more than this many items were collected

    Returns:
        ``(items, next_token)``; next_token is None when the listing is complete

    Any error raised by fetch_page propagates; no partial result is returned.
    """
    items: List[Any] = []
    token = start_token or None
    pages = 0
    while True:
        page_items, token = await fetch_page(token)
        pages += 1
        items.extend(page_items or [])
        if not token or len(items) > soft_cap:
            break
    log("DEBUG", f"Collected {len(items)} items in {pages} page(s)", component=component, has_more=bool(token))
    return items, token or None
