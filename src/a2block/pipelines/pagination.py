from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    has_more: bool
    total: int


def paginate(records: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice [page*size, (page+1)*size); more pages remain while end < len."""
    if page < 0:
        raise ValueError("page must be >= 0")
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    start = page * page_size
    end = start + page_size
    return Page(items=list(records[start:end]), page=page, has_more=end < len(records), total=len(records))


def merge_page(current: Sequence[T], page: Page[T]) -> list[T]:
    """
    Page 0 replaces the list, later pages append to it.
    Duplicate requests are the caller's problem (see FeedView's in-flight flag).
    """
    if page.page == 0:
        return list(page.items)
    return list(current) + list(page.items)


def sort_events(events: list[Any], today: Optional[date] = None) -> list[Any]:
    """
    Today's events first, then ascending by date.
    Events without a parseable sort_date go last instead of posing as "now".
    """
    today = today or date.today()

    def key(ev: Any) -> tuple[int, date]:
        d = getattr(ev, "sort_date", None)
        if d is None:
            return (2, date.max)
        return (0 if d == today else 1, d)

    return sorted(events, key=key)
