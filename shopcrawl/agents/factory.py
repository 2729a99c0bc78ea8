"""Agent selection by explicit kind or site complexity."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Type, Union

from .base import DEFAULT_TIMEOUT, BaseAgent
from .browser import BrowserAgent
from .http import HttpxAgent, RequestsAgent

if TYPE_CHECKING:
    from ..config import CrawlConfig

LOGGER = logging.getLogger(__name__)


class AgentKind(str, Enum):
    """Available agent variants."""

    REQUESTS = "requests"  # Lightweight one-off HTTP calls
    HTTPX = "httpx"  # Pooled HTTP client
    BROWSER = "browser"  # Headless browser with cookie session


DEFAULT_KIND = AgentKind.BROWSER

_KIND_ALIASES: Dict[str, AgentKind] = {
    "requests": AgentKind.REQUESTS,
    "httparty": AgentKind.REQUESTS,
    "simple": AgentKind.REQUESTS,
    "httpx": AgentKind.HTTPX,
    "faraday": AgentKind.HTTPX,
    "browser": AgentKind.BROWSER,
    "playwright": AgentKind.BROWSER,
    "mechanize": AgentKind.BROWSER,
    "medium": AgentKind.BROWSER,
    "default": AgentKind.BROWSER,
}

_COMPLEXITY_TABLE: Dict[str, AgentKind] = {
    "simple": AgentKind.REQUESTS,
    "medium": AgentKind.BROWSER,
    "complex": AgentKind.BROWSER,
}

_AGENT_CLASSES: Dict[AgentKind, Type[BaseAgent]] = {
    AgentKind.REQUESTS: RequestsAgent,
    AgentKind.HTTPX: HttpxAgent,
    AgentKind.BROWSER: BrowserAgent,
}


def parse_kind(value: Union[str, AgentKind]) -> AgentKind:
    """Map an agent name or alias to a kind, falling back to the browser."""
    if isinstance(value, AgentKind):
        return value
    key = str(value).strip().lower()
    kind = _KIND_ALIASES.get(key)
    if kind is None:
        LOGGER.warning("Unknown agent type '%s', using %s", value, DEFAULT_KIND.value)
        return DEFAULT_KIND
    return kind


def kind_for_complexity(complexity: str) -> AgentKind:
    return _COMPLEXITY_TABLE.get(str(complexity).strip().lower(), DEFAULT_KIND)


def resolve_kind(agent_kind: Optional[str] = None, complexity: Optional[str] = None) -> AgentKind:
    """Explicit kind wins, then the complexity table, then the default."""
    if agent_kind:
        return parse_kind(agent_kind)
    if complexity:
        return kind_for_complexity(complexity)
    return DEFAULT_KIND


def create_agent(kind: Union[str, AgentKind], *, timeout: float = DEFAULT_TIMEOUT) -> BaseAgent:
    resolved = parse_kind(kind)
    agent = _AGENT_CLASSES[resolved](timeout=timeout)
    LOGGER.info("Created %s agent", resolved.value)
    return agent


def create_by_complexity(complexity: str, *, timeout: float = DEFAULT_TIMEOUT) -> BaseAgent:
    LOGGER.info("Creating agent for complexity '%s'", complexity)
    return create_agent(kind_for_complexity(complexity), timeout=timeout)


def agent_from_config(config: CrawlConfig) -> BaseAgent:
    kind = resolve_kind(config.agent_kind, config.site_complexity)
    return create_agent(kind, timeout=config.timeout)
