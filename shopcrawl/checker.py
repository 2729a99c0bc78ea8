"""Pre-flight reachability probe with fixed-delay retries."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from .agents.base import FetchAgent

LOGGER = logging.getLogger(__name__)

RETRY_DELAY = 1.0


class AccessibilityChecker:
    """Decide whether a URL answers a HEAD request with status < 400."""

    def __init__(
        self,
        agent: FetchAgent,
        *,
        max_retries: int = 3,
        delay: float = RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.agent = agent
        self.max_retries = max(1, int(max_retries))
        self.delay = delay
        self.sleep = sleep
        self.logger = logger or LOGGER

    def check_url(self, url: Optional[str], max_retries: Optional[int] = None) -> bool:
        """Probe url up to max_retries times, sleeping between failures.

        Returns False immediately, without a network call, for an empty url.
        """
        if not url:
            return False

        attempts = max(1, int(max_retries or self.max_retries))
        self.logger.info("Checking URL accessibility: %s (max retries: %d)", url, attempts)

        def log_attempt(state: RetryCallState) -> None:
            outcome = state.outcome
            if outcome is not None and outcome.failed:
                self.logger.error(
                    "URL check failed for %s (attempt %d/%d) - %s",
                    url,
                    state.attempt_number,
                    attempts,
                    outcome.exception(),
                )

        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(Exception) | retry_if_result(lambda ok: not ok),
            after=log_attempt,
            retry_error_callback=lambda state: False,
            sleep=self.sleep,
        )
        if retrying(self._probe, url):
            return True

        self.logger.error("URL %s is not accessible after %d attempts", url, attempts)
        return False

    def _probe(self, url: str) -> bool:
        status = self.agent.check_head(url)
        if status < 400:
            self.logger.info("URL %s is accessible, status: %s", url, status)
            return True
        self.logger.error("URL %s returned status %s", url, status)
        return False
