"""Navigation index: ordered jump targets for the non-equal diff items."""

from __future__ import annotations

from ..config import PREVIEW_LENGTH
from ..types import DiffItem, DiffType, NavigationItem

ELLIPSIS = "..."


def make_preview(content: str, limit: int = PREVIEW_LENGTH) -> str:
    """First ``limit`` characters, with an ellipsis marker when cut."""
    if len(content) > limit:
        return content[:limit] + ELLIPSIS
    return content


def build_navigation(items: list[DiffItem]) -> list[NavigationItem]:
    """Non-equal items in document order."""
    return [
        NavigationItem(
            id=item.id,
            type=item.type,
            line_number=item.line_number,
            preview=make_preview(item.content),
        )
        for item in items
        if item.type is not DiffType.EQUAL
    ]
