"""Fetch agent interface shared by all HTTP and browser variants."""
from __future__ import annotations

from typing import Optional, Protocol

from ..page import PageModel

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_TIMEOUT = 30.0
DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class AgentError(Exception):
    """Transport or status failure raised by a fetch agent."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class FetchAgent(Protocol):
    """Capability set every agent variant provides.

    Agents own their session state (cookies, connection pools, browser
    contexts) and are not shared between worker threads.
    """

    name: str

    def fetch(self, url: str) -> PageModel:
        """Fetch a page and return its parsed model.

        Raises
        ------
        AgentError
            On transport failure
        """
        ...

    def check_head(self, url: str) -> int:
        """Return the HTTP status code of a HEAD request."""
        ...

    def download(self, url: str) -> bytes:
        """Return raw bytes of a resource.

        Raises
        ------
        AgentError
            On transport failure or a non-200 status
        """
        ...

    def close(self) -> None:
        """Release session resources."""
        ...


class BaseAgent:
    """Shared plumbing for agent variants.

    Subclass this and implement fetch(), check_head() and download().
    """

    name = "base"

    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT) -> None:
        self.timeout = float(timeout)
        self.headers = dict(DEFAULT_HEADERS, **{"User-Agent": user_agent})

    def fetch(self, url: str) -> PageModel:
        raise NotImplementedError("Subclass must implement fetch()")

    def check_head(self, url: str) -> int:
        raise NotImplementedError("Subclass must implement check_head()")

    def download(self, url: str) -> bytes:
        raise NotImplementedError("Subclass must implement download()")

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout})"
