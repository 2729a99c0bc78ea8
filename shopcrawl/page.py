"""Parsed page model with CSS selector search."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

LOGGER = logging.getLogger(__name__)


class PageKind(str, Enum):
    """Where a page model came from."""

    DETAIL = "detail"  # Full product page fetched by an agent
    LISTING = "listing"  # Product card cut out of a catalog page


class PageModel:
    """Selector search over a fetched document or one of its fragments."""

    def __init__(
        self,
        root: Tag,
        *,
        url: str = "",
        status: int = 200,
        kind: PageKind = PageKind.DETAIL,
    ) -> None:
        self.root = root
        self.url = url
        self.status = status
        self.kind = kind

    @classmethod
    def from_html(
        cls,
        html: Union[str, bytes],
        *,
        url: str = "",
        status: int = 200,
        kind: PageKind = PageKind.DETAIL,
    ) -> PageModel:
        """Parse raw HTML into a page model."""
        soup = BeautifulSoup(html or "", "html.parser")
        LOGGER.debug("Parsed page %s (status=%s, %d bytes)", url or "<inline>", status, len(html or ""))
        return cls(soup, url=url, status=status, kind=kind)

    @property
    def is_detail(self) -> bool:
        return self.kind is PageKind.DETAIL

    def select(self, selector: str) -> List[Tag]:
        return self.root.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.root.select_one(selector)

    def fragments(self, selector: str) -> Iterator[PageModel]:
        """Yield a listing-kind model for every element matching selector."""
        for element in self.select(selector):
            yield PageModel(element, url=self.url, status=self.status, kind=PageKind.LISTING)

    def text(self) -> str:
        return self.root.get_text(" ", strip=True)

    def __repr__(self) -> str:
        return f"PageModel(url={self.url!r}, status={self.status}, kind={self.kind.value})"
