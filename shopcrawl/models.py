"""Product record and the shared collection workers append to."""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

LOGGER = logging.getLogger(__name__)


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    price: float = 0.0
    description: str = ""
    category: str = ""
    image_path: str = ""  # Relative to the media root, empty when no image was saved

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def info(self) -> str:
        return (
            f"{self.name or '<unnamed>'} | {self.price:.2f} | "
            f"{self.category or 'uncategorized'} | {self.image_path or '-'}"
        )


class ItemCollection:
    """Append-only product list guarded by a single lock.

    Workers only call add(); everything else is meant for the caller once
    the crawl has joined.
    """

    def __init__(
        self,
        items: Optional[Iterable[Product]] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._items: List[Product] = list(items or [])
        self._lock = threading.Lock()
        self.logger = logger or LOGGER

    def add(self, product: Product) -> None:
        with self._lock:
            self._items.append(product)
            count = len(self._items)
        self.logger.debug("Item added - name=%s, price=%s (total %d)", product.name, product.price, count)

    def remove(self, product: Product) -> bool:
        with self._lock:
            try:
                self._items.remove(product)
            except ValueError:
                self.logger.info("Attempted to remove item not found - name=%s", product.name)
                return False
        self.logger.info("Item removed - name=%s, price=%s", product.name, product.price)
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._items)
            self._items.clear()
        self.logger.info("All items deleted - %d items removed", count)
        return count

    @property
    def items(self) -> List[Product]:
        """Snapshot copy of the current items."""
        with self._lock:
            return list(self._items)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Product]:
        return iter(self.items)

    def __repr__(self) -> str:
        return f"ItemCollection({len(self)} items)"
