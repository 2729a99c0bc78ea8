from shopcrawl.agents.base import AgentError
from shopcrawl.checker import AccessibilityChecker

from conftest import FakeAgent

URL = "http://shop.test/item"


def test_check_url_succeeds_on_third_attempt(no_sleep):
    agent = FakeAgent(statuses={URL: [AgentError("reset"), 503, 200]})
    checker = AccessibilityChecker(agent, max_retries=3, sleep=no_sleep)

    assert checker.check_url(URL) is True
    assert agent.head_calls == [URL, URL, URL]
    assert no_sleep.calls == [1.0, 1.0]


def test_check_url_gives_up_after_max_retries(no_sleep):
    agent = FakeAgent(statuses={URL: [AgentError("down")] * 5})
    checker = AccessibilityChecker(agent, max_retries=3, sleep=no_sleep)

    assert checker.check_url(URL) is False
    assert len(agent.head_calls) == 3
    assert no_sleep.calls == [1.0, 1.0]


def test_check_url_treats_client_errors_as_failures(no_sleep):
    agent = FakeAgent(statuses={URL: [404, 404]})
    checker = AccessibilityChecker(agent, max_retries=2, sleep=no_sleep)

    assert checker.check_url(URL) is False
    assert len(agent.head_calls) == 2


def test_check_url_accepts_redirect_statuses(no_sleep):
    agent = FakeAgent(statuses={URL: [302]})
    assert AccessibilityChecker(agent, sleep=no_sleep).check_url(URL) is True
    assert no_sleep.calls == []


def test_check_url_skips_network_for_empty_url(no_sleep):
    agent = FakeAgent()
    checker = AccessibilityChecker(agent, sleep=no_sleep)

    assert checker.check_url("") is False
    assert checker.check_url(None) is False
    assert agent.head_calls == []


def test_max_retries_argument_overrides_default(no_sleep):
    agent = FakeAgent(statuses={URL: [500] * 10})
    checker = AccessibilityChecker(agent, max_retries=5, sleep=no_sleep)

    assert checker.check_url(URL, max_retries=2) is False
    assert len(agent.head_calls) == 2


def test_single_attempt_never_sleeps(no_sleep):
    agent = FakeAgent(statuses={URL: [ValueError("boom")]})
    checker = AccessibilityChecker(agent, max_retries=1, sleep=no_sleep)

    assert checker.check_url(URL) is False
    assert no_sleep.calls == []
