"""Concurrent catalog crawler with selector-driven product extraction.

This package provides the crawl-and-extract engine:
- Pluggable fetch agents (requests, httpx, Playwright)
- Accessibility probing with fixed-delay retries
- Selector-chain field extraction and image download
- A bounded worker pool feeding a shared item collection
"""
import logging

from .config import ConfigError, CrawlConfig, SelectorConfig, load_config
from .crawler import CrawlCoordinator, CrawlResult, WorkerStats
from .models import ItemCollection, Product

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "SelectorConfig",
    "load_config",
    "CrawlCoordinator",
    "CrawlResult",
    "WorkerStats",
    "ItemCollection",
    "Product",
]
