"""Playwright-based browser emulation agent."""
from __future__ import annotations

import logging
from typing import Optional

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from ..page import PageModel
from .base import DEFAULT_TIMEOUT, USER_AGENT, AgentError, BaseAgent

LOGGER = logging.getLogger(__name__)


class BrowserAgent(BaseAgent):
    """Headless Chromium session with its own cookie jar.

    The browser is launched lazily on first use. Playwright's sync API is
    bound to the thread that started it, so each worker thread must own
    its own BrowserAgent.
    """

    name = "browser"

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        headless: bool = True,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        LOGGER.info("BrowserAgent configured with timeout %.1fs (headless=%s)", self.timeout, headless)

    @property
    def timeout_ms(self) -> float:
        return self.timeout * 1000

    def _ensure_started(self) -> BrowserContext:
        if self._context is not None:
            return self._context

        LOGGER.info("BrowserAgent: launching Chromium")
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context(
            user_agent=self.headers["User-Agent"],
            ignore_https_errors=True,
        )
        self._context.set_default_timeout(self.timeout_ms)
        self._context.set_default_navigation_timeout(self.timeout_ms)
        self._page = self._context.new_page()
        return self._context

    def fetch(self, url: str) -> PageModel:
        LOGGER.info("BrowserAgent: fetching page %s", url)
        self._ensure_started()
        try:
            response = self._page.goto(url, wait_until="domcontentloaded")
            html = self._page.content()
        except PlaywrightError as exc:
            raise AgentError(f"navigation to {url} failed: {exc}", url=url) from exc

        status = response.status if response is not None else 200
        if status >= 400:
            raise AgentError(f"GET {url} returned {status}", url=url, status=status)
        LOGGER.info("BrowserAgent: page fetched, status %s", status)
        return PageModel.from_html(html, url=url, status=status)

    def check_head(self, url: str) -> int:
        LOGGER.debug("BrowserAgent: checking %s", url)
        context = self._ensure_started()
        try:
            response = context.request.head(url, timeout=self.timeout_ms)
        except PlaywrightError as exc:
            raise AgentError(f"HEAD {url} failed: {exc}", url=url) from exc
        try:
            return response.status
        finally:
            response.dispose()

    def download(self, url: str) -> bytes:
        LOGGER.info("BrowserAgent: downloading %s", url)
        context = self._ensure_started()
        try:
            response = context.request.get(url, timeout=self.timeout_ms)
            try:
                if response.status != 200:
                    raise AgentError(
                        f"download of {url} returned {response.status}",
                        url=url,
                        status=response.status,
                    )
                data = response.body()
            finally:
                response.dispose()
        except PlaywrightError as exc:
            raise AgentError(f"download of {url} failed: {exc}", url=url) from exc
        LOGGER.info("BrowserAgent: downloaded %d bytes", len(data))
        return data

    def close(self) -> None:
        if self._context is not None:
            self._context.close()
        if self._browser is not None:
            self._browser.close()
        if self._playwright is not None:
            self._playwright.stop()
        self._playwright = self._browser = self._context = self._page = None
