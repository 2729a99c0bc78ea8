"""Plain HTTP agents: stateless requests calls and a pooled httpx client."""
from __future__ import annotations

import logging
from typing import Optional

import httpx
import requests

from ..page import PageModel
from .base import DEFAULT_TIMEOUT, USER_AGENT, AgentError, BaseAgent

LOGGER = logging.getLogger(__name__)


class RequestsAgent(BaseAgent):
    """Lightweight agent issuing one-off requests without session state."""

    name = "requests"

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        LOGGER.info("RequestsAgent initialized with timeout %.1fs", self.timeout)

    def fetch(self, url: str) -> PageModel:
        LOGGER.info("RequestsAgent: fetching page %s", url)
        response = self._request("GET", url)
        if response.status_code >= 400:
            raise AgentError(f"GET {url} returned {response.status_code}", url=url, status=response.status_code)
        LOGGER.info("RequestsAgent: page fetched, status %s", response.status_code)
        return PageModel.from_html(response.text, url=url, status=response.status_code)

    def check_head(self, url: str) -> int:
        LOGGER.debug("RequestsAgent: checking %s", url)
        return self._request("HEAD", url).status_code

    def download(self, url: str) -> bytes:
        LOGGER.info("RequestsAgent: downloading %s", url)
        response = self._request("GET", url)
        if response.status_code != 200:
            raise AgentError(f"download of {url} returned {response.status_code}", url=url, status=response.status_code)
        LOGGER.info("RequestsAgent: downloaded %d bytes", len(response.content))
        return response.content

    def _request(self, method: str, url: str) -> requests.Response:
        try:
            return requests.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise AgentError(f"{method} {url} failed: {exc}", url=url) from exc


class HttpxAgent(BaseAgent):
    """Intermediate agent backed by a persistent httpx connection pool."""

    name = "httpx"

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.client = httpx.Client(
            timeout=httpx.Timeout(self.timeout),
            headers=self.headers,
            follow_redirects=True,
            transport=transport,
        )
        LOGGER.info("HttpxAgent initialized with timeout %.1fs", self.timeout)

    def fetch(self, url: str) -> PageModel:
        LOGGER.info("HttpxAgent: fetching page %s", url)
        response = self._request("GET", url)
        if response.status_code >= 400:
            raise AgentError(f"GET {url} returned {response.status_code}", url=url, status=response.status_code)
        LOGGER.info("HttpxAgent: page fetched, status %s", response.status_code)
        return PageModel.from_html(response.text, url=url, status=response.status_code)

    def check_head(self, url: str) -> int:
        LOGGER.debug("HttpxAgent: checking %s", url)
        return self._request("HEAD", url).status_code

    def download(self, url: str) -> bytes:
        LOGGER.info("HttpxAgent: downloading %s", url)
        response = self._request("GET", url)
        if response.status_code != 200:
            raise AgentError(f"download of {url} returned {response.status_code}", url=url, status=response.status_code)
        LOGGER.info("HttpxAgent: downloaded %d bytes", len(response.content))
        return response.content

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, url: str) -> httpx.Response:
        try:
            return self.client.request(method, url)
        except httpx.HTTPError as exc:
            raise AgentError(f"{method} {url} failed: {exc}", url=url) from exc
