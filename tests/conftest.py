import threading
from typing import Dict, List, Optional, Union

import pytest

from shopcrawl.agents.base import AgentError
from shopcrawl.config import CrawlConfig
from shopcrawl.page import PageModel

BASE_URL = "http://shop.test/catalogue"
START_PAGE = f"{BASE_URL}/page-1.html"


def product_page(
    name: str,
    price: str = "£51.77",
    category: str = "Poetry",
    image_src: Optional[str] = "../../media/cache/fe/72/cover.jpg",
    description: str = "A fine book.",
) -> str:
    image = f'<div class="item active"><img src="{image_src}" alt=""></div>' if image_src else ""
    return f"""
    <html><body>
      <ul class="breadcrumb">
        <li><a href="../index.html">Home</a></li>
        <li><a href="../category/books_1/index.html">Books</a></li>
        <li><a href="../category/{category.lower()}/index.html">{category}</a></li>
        <li class="active">{name}</li>
      </ul>
      <div id="product_gallery">{image}</div>
      <div class="product_main">
        <h1>{name}</h1>
        <p class="price_color">{price}</p>
      </div>
      <div id="product_description" class="sub-header"><h2>Product Description</h2></div>
      <p>{description}</p>
    </body></html>
    """


def catalog_page(hrefs: List[str]) -> str:
    cards = "".join(
        f"""
        <li><article class="product_pod">
          <div class="image_container"><a href="{href}"><img src="../media/thumb-{i}.jpg"></a></div>
          <h3><a href="{href}" title="Book {i}">Book {i}</a></h3>
          <div class="product_price"><p class="price_color">£{i}.50</p></div>
        </article></li>
        """
        for i, href in enumerate(hrefs, 1)
    )
    return f"<html><body><section><ol class='row'>{cards}</ol></section></body></html>"


Scripted = Union[int, Exception]


class FakeAgent:
    """In-memory site implementing the FetchAgent protocol."""

    name = "fake"

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        *,
        statuses: Optional[Dict[str, List[Scripted]]] = None,
        downloads: Optional[Dict[str, Union[bytes, Exception]]] = None,
        fetch_errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.pages = pages or {}
        self.statuses = {url: list(script) for url, script in (statuses or {}).items()}
        self.downloads = downloads or {}
        self.fetch_errors = fetch_errors or {}
        self.head_calls: List[str] = []
        self.fetch_calls: List[str] = []
        self.download_calls: List[str] = []
        self.closed = 0
        self._lock = threading.Lock()

    def check_head(self, url: str) -> int:
        with self._lock:
            self.head_calls.append(url)
            script = self.statuses.get(url)
            outcome = script.pop(0) if script else (200 if url in self.pages else 404)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fetch(self, url: str) -> PageModel:
        with self._lock:
            self.fetch_calls.append(url)
        if url in self.fetch_errors:
            raise self.fetch_errors[url]
        if url not in self.pages:
            raise AgentError(f"GET {url} returned 404", url=url, status=404)
        return PageModel.from_html(self.pages[url], url=url)

    def download(self, url: str) -> bytes:
        with self._lock:
            self.download_calls.append(url)
        data = self.downloads.get(url, b"\x89PNG fake image")
        if isinstance(data, Exception):
            raise data
        return data

    def close(self) -> None:
        with self._lock:
            self.closed += 1

    def __enter__(self) -> "FakeAgent":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class NoSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []
        self._lock = threading.Lock()

    def __call__(self, seconds: float) -> None:
        with self._lock:
            self.calls.append(seconds)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "SHOPCRAWL_START_PAGE",
        "SHOPCRAWL_BASE_URL",
        "SHOPCRAWL_CONCURRENCY",
        "SHOPCRAWL_AGENT",
        "SHOPCRAWL_MEDIA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def no_sleep():
    return NoSleep()


@pytest.fixture
def crawl_config(tmp_path):
    return CrawlConfig(
        start_page=START_PAGE,
        base_url=BASE_URL,
        concurrency=2,
        delay_between_requests=0,
        max_retries=3,
        media_dir=tmp_path / "media",
    )


@pytest.fixture
def shop():
    """Catalog with three fully matched product pages."""
    hrefs = ["book-1/index.html", "book-2/index.html", "book-3/index.html"]
    pages = {START_PAGE: catalog_page(hrefs)}
    for i, href in enumerate(hrefs, 1):
        pages[f"{BASE_URL}/{href}"] = product_page(f"Book {i}", price=f"£{i}0.25", image_src=f"../../media/cover-{i}.jpg")
    return FakeAgent(pages)
