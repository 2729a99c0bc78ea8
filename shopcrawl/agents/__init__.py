"""Fetch agents over HTTP clients and a headless browser.

- base.py: FetchAgent protocol, AgentError, shared headers
- http.py: requests and httpx variants
- browser.py: Playwright variant with a per-agent cookie session
- factory.py: selection by explicit kind or site complexity
"""

from .base import DEFAULT_TIMEOUT, USER_AGENT, AgentError, BaseAgent, FetchAgent
from .browser import BrowserAgent
from .factory import (
    AgentKind,
    agent_from_config,
    create_agent,
    create_by_complexity,
    parse_kind,
    resolve_kind,
)
from .http import HttpxAgent, RequestsAgent

__all__ = [
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
    "AgentError",
    "BaseAgent",
    "FetchAgent",
    "BrowserAgent",
    "HttpxAgent",
    "RequestsAgent",
    "AgentKind",
    "agent_from_config",
    "create_agent",
    "create_by_complexity",
    "parse_kind",
    "resolve_kind",
]
