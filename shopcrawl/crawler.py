"""Crawl coordinator: link discovery and the bounded worker pool."""
from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .agents.base import FetchAgent
from .agents.factory import create_agent, resolve_kind
from .checker import AccessibilityChecker
from .config import CrawlConfig
from .extractor import FieldExtractor, discover_links
from .images import ImageAcquirer
from .models import ItemCollection, Product
from .page import PageModel

LOGGER = logging.getLogger(__name__)

AgentFactory = Callable[[], FetchAgent]


@dataclass
class WorkerStats:
    """Per-worker counters."""

    worker_id: str
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass
class CrawlResult:
    """Outcome of a crawl: success flag plus whatever was extracted."""

    success: bool
    items: ItemCollection
    links: List[str] = field(default_factory=list)
    stats: List[WorkerStats] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success

    @property
    def totals(self) -> Dict[str, int]:
        return {
            "links": len(self.links),
            "processed": sum(s.processed for s in self.stats),
            "succeeded": sum(s.succeeded for s in self.stats),
            "failed": sum(s.failed for s in self.stats),
            "items": len(self.items),
        }


class CrawlWorker:
    """Drain the link queue until it is empty, one link at a time.

    The worker creates its agent on its own thread and closes it on exit.
    """

    def __init__(self, worker_id: str, coordinator: CrawlCoordinator, links: "queue.Queue[str]") -> None:
        self.worker_id = worker_id
        self.coordinator = coordinator
        self.links = links
        self.stats = WorkerStats(worker_id)
        self.logger = coordinator.logger

    def run(self) -> None:
        self.logger.info("Worker %s started", self.worker_id)
        try:
            agent = self.coordinator.agent_factory()
        except Exception:
            self.logger.error("Worker %s could not create an agent", self.worker_id, exc_info=True)
            self._skip_remaining()
            self._log_stats()
            return

        delay = self.coordinator.config.delay_between_requests
        try:
            while True:
                try:
                    link = self.links.get_nowait()
                except queue.Empty:
                    break

                try:
                    self.logger.info("Worker %s processing %s", self.worker_id, link)
                    product = self.coordinator.process_link(link, agent)
                    if product is None:
                        self.stats.failed += 1
                    else:
                        self.stats.succeeded += 1
                except Exception as exc:
                    self.stats.failed += 1
                    self.logger.error(
                        "Worker %s failed on %s - %s",
                        self.worker_id,
                        link,
                        exc,
                        exc_info=True,
                    )
                finally:
                    self.stats.processed += 1
                    if delay > 0:
                        self.logger.debug("Worker %s sleeping for %.2f seconds", self.worker_id, delay)
                        self.coordinator.sleep(delay)
        finally:
            agent.close()
            self._log_stats()

    def _skip_remaining(self) -> None:
        """Consume the rest of the queue, counting every link as failed."""
        while True:
            try:
                link = self.links.get_nowait()
            except queue.Empty:
                break
            self.stats.processed += 1
            self.stats.failed += 1
            self.logger.error("Worker %s skipped %s - no agent available", self.worker_id, link)

    def _log_stats(self) -> None:
        self.logger.info(
            "Worker %s finished: processed=%d, succeeded=%d, failed=%d",
            self.worker_id,
            self.stats.processed,
            self.stats.succeeded,
            self.stats.failed,
        )


class CrawlCoordinator:
    """Discover product links on the start page and process them in parallel."""

    def __init__(
        self,
        config: CrawlConfig,
        *,
        agent_factory: Optional[AgentFactory] = None,
        items: Optional[ItemCollection] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize coordinator.

        Parameters
        ----------
        config : CrawlConfig
            Crawl settings, read-only for the whole run
        agent_factory : callable, optional
            Returns a fresh agent; called once for the start page and once
            per worker. Defaults to the agent selected by the config.
        items : ItemCollection, optional
            Collection to append to (a new empty one by default)
        sleep : callable
            Used for politeness delays and retry waits
        logger : logging.Logger, optional
            Log sink; the module logger when omitted
        """
        self.config = config
        self.logger = logger or LOGGER
        if agent_factory is None:
            kind = resolve_kind(config.agent_kind, config.site_complexity)
            self.logger.info("Using %s agent", kind.value)
            agent_factory = lambda: create_agent(kind, timeout=config.timeout)  # noqa: E731
        self.agent_factory = agent_factory
        self.items = items if items is not None else ItemCollection(logger=self.logger)
        self.sleep = sleep
        self.extractor = FieldExtractor(config.selectors, base_url=config.base_url, logger=self.logger)

    def start(self) -> CrawlResult:
        """Run a full crawl from the configured start page."""
        start_page = self.config.start_page
        self.logger.info("Starting crawl from %s", start_page)

        try:
            agent = self.agent_factory()
        except Exception as exc:
            self.logger.error("Could not create an agent for the start page - %s", exc, exc_info=True)
            return CrawlResult(False, self.items)

        try:
            if not self._checker(agent).check_url(start_page):
                self.logger.error("Start page %s is not accessible", start_page)
                return CrawlResult(False, self.items)
            try:
                page = agent.fetch(start_page)
            except Exception as exc:
                self.logger.error("Error fetching start page %s - %s", start_page, exc, exc_info=True)
                return CrawlResult(False, self.items)
        finally:
            agent.close()

        links = self.discover_links(page)
        if not links:
            self.logger.error("No product links found on start page")
            return CrawlResult(False, self.items, links)

        stats = self.parse_all(links)
        result = CrawlResult(True, self.items, links, stats)
        self.logger.info("Crawl completed: %s", result.totals)
        return result

    def discover_links(self, page: PageModel) -> List[str]:
        return discover_links(
            page,
            self.config.selectors.link,
            self.config.base_url,
            deduplicate=self.config.deduplicate_links,
            logger=self.logger,
        )

    def parse_all(self, links: List[str]) -> List[WorkerStats]:
        """Process every link with `concurrency` workers and wait for them."""
        link_queue: "queue.Queue[str]" = queue.Queue()
        for link in links:
            link_queue.put_nowait(link)

        concurrency = max(1, self.config.concurrency)
        self.logger.info("Starting parallel parsing of %d links with concurrency=%d", len(links), concurrency)

        workers = [CrawlWorker(str(index + 1), self, link_queue) for index in range(concurrency)]
        threads = [
            threading.Thread(target=worker.run, name=f"crawl-worker-{worker.worker_id}", daemon=True)
            for worker in workers
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        return [worker.stats for worker in workers]

    def parse_product_page(self, link: str) -> Optional[Product]:
        """Process a single link with a dedicated agent."""
        agent = self.agent_factory()
        try:
            return self.process_link(link, agent)
        except Exception as exc:
            self.logger.error("Error parsing product page %s - %s", link, exc, exc_info=True)
            return None
        finally:
            agent.close()

    def process_link(self, link: str, agent: FetchAgent) -> Optional[Product]:
        """Check, fetch, extract and store one product page.

        Returns None when the page is not accessible; fetch errors propagate.
        """
        if not self._checker(agent).check_url(link):
            self.logger.error("Product page %s is not accessible", link)
            return None

        page = agent.fetch(link)
        fields = self.extractor.extract(page)

        image_path = ""
        if fields.image_url:
            acquirer = ImageAcquirer(
                agent,
                self.config.media_dir,
                max_collisions=self.config.max_name_collisions,
                logger=self.logger,
            )
            image_path = acquirer.acquire(fields.image_url, fields.name, fields.category)
        else:
            self.logger.info("No image URL found for %s, skipping image download", link)

        product = Product(
            name=fields.name,
            price=fields.price,
            description=fields.description,
            category=fields.category,
            image_path=image_path,
        )
        self.items.add(product)
        self.logger.info("Parsed product - %s, price: %s, category: %s", product.name, product.price, product.category)
        return product

    def _checker(self, agent: FetchAgent) -> AccessibilityChecker:
        return AccessibilityChecker(
            agent,
            max_retries=self.config.max_retries,
            sleep=self.sleep,
            logger=self.logger,
        )
