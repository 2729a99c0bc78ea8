"""Selector-chain field extraction and product link discovery."""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from .config import SelectorChain, SelectorConfig
from .page import PageModel
from .urls import resolve_url

LOGGER = logging.getLogger(__name__)

_PRICE_NOISE_RE = re.compile(r"[£€$,\s]")
_LEADING_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def parse_price(text: Optional[str]) -> float:
    """Strip currency symbols, commas and whitespace, then parse a float.

    Only the leading numeric part counts; anything unparsable is 0.0.
    """
    cleaned = _PRICE_NOISE_RE.sub("", text or "")
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


@dataclass
class ExtractedFields:
    """Raw values pulled from one page before the image is stored."""

    name: str = ""
    price: float = 0.0
    description: str = ""
    image_url: str = ""
    category: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FieldExtractor:
    """Apply per-field selector chains to a page model."""

    def __init__(
        self,
        selectors: Optional[SelectorConfig] = None,
        *,
        base_url: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.selectors = selectors or SelectorConfig()
        self.base_url = base_url
        self.logger = logger or LOGGER

    def extract(self, page: PageModel) -> ExtractedFields:
        """Extract every field; a miss on one never stops the others."""
        return ExtractedFields(
            name=self.extract_name(page),
            price=self.extract_price(page),
            description=self.extract_description(page),
            image_url=self.extract_image_url(page),
            category=self.extract_category(page),
        )

    def extract_name(self, page: PageModel) -> str:
        element = self._first_match(page, self.selectors.name, "name")
        if element is None:
            return ""
        return element.get_text().strip()

    def extract_price(self, page: PageModel) -> float:
        element = self._first_match(page, self.selectors.price, "price")
        if element is None:
            return 0.0
        raw = element.get_text().strip()
        price = parse_price(raw)
        self.logger.debug("Product price found: %s -> %s", raw, price)
        return price

    def extract_description(self, page: PageModel) -> str:
        element = self._first_match(page, self.selectors.description, "description")
        if element is None:
            return ""
        return element.get_text().strip()

    def extract_image_url(self, page: PageModel) -> str:
        for selector in self.selectors.image.for_page(page.is_detail):
            element = self._select_one(page, selector, "image")
            if element is None:
                continue
            src = element.get("src") or element.get("data-src")
            if src:
                url = resolve_url(src, self.base_url) or ""
                self.logger.debug("Product image URL found: %s", url)
                return url
        self.logger.error("Product image not found on %s", page.url or "<fragment>")
        return ""

    def extract_category(self, page: PageModel) -> str:
        """Second-to-last breadcrumb entry of a detail page."""
        if page.is_detail:
            try:
                crumbs = page.select(self.selectors.breadcrumb)
            except SelectorSyntaxError as exc:
                self.logger.error("Invalid breadcrumb selector '%s': %s", self.selectors.breadcrumb, exc)
                crumbs = []
            if len(crumbs) >= 2:
                category = crumbs[-2].get_text().strip()
                if category:
                    return category
        self.logger.error("Product category not found in breadcrumb on %s", page.url or "<fragment>")
        return ""

    def _first_match(self, page: PageModel, chain: SelectorChain, field: str) -> Optional[Tag]:
        selectors = chain.for_page(page.is_detail)
        for selector in selectors:
            element = self._select_one(page, selector, field)
            if element is not None:
                return element
        self.logger.error(
            "Product %s not found on %s using selectors %s",
            field,
            page.url or "<fragment>",
            list(selectors),
        )
        return None

    def _select_one(self, page: PageModel, selector: str, field: str) -> Optional[Tag]:
        try:
            return page.select_one(selector)
        except SelectorSyntaxError as exc:
            self.logger.error("Invalid %s selector '%s': %s", field, selector, exc)
            return None


def discover_links(
    page: PageModel,
    selector: str,
    base_url: str,
    *,
    deduplicate: bool = False,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Collect absolute hrefs of every element matching selector, in page order."""
    logger = logger or LOGGER
    logger.info("Extracting product links with selector '%s'", selector)

    links: List[str] = []
    seen = set()
    for element in page.select(selector):
        href = element.get("href")
        if not href:
            continue
        url = resolve_url(href, base_url)
        if url is None:
            logger.error("Failed to build full URL from %r", href)
            continue
        if deduplicate:
            if url in seen:
                continue
            seen.add(url)
        links.append(url)
        logger.debug("Found product link: %s", url)

    logger.info("Extracted %d product links", len(links))
    return links
