import pytest

from shopcrawl.agents.base import AgentError
from shopcrawl.crawler import CrawlCoordinator

from conftest import BASE_URL, START_PAGE, FakeAgent, catalog_page, product_page


def _coordinator(config, agent, no_sleep, **kwargs):
    return CrawlCoordinator(config, agent_factory=lambda: agent, sleep=no_sleep, **kwargs)


def test_end_to_end_crawl_collects_every_product(crawl_config, shop, no_sleep):
    result = _coordinator(crawl_config, shop, no_sleep).start()

    assert result.success is True
    assert bool(result) is True
    assert len(result.items) == 3
    assert sorted(item.name for item in result.items) == ["Book 1", "Book 2", "Book 3"]
    assert sorted(item.price for item in result.items) == pytest.approx([10.25, 20.25, 30.25])
    assert {item.category for item in result.items} == {"Poetry"}
    for item in result.items:
        assert (crawl_config.media_dir / item.image_path).is_file()
    assert result.totals["succeeded"] == 3
    assert result.totals["failed"] == 0


def test_every_agent_created_is_closed(crawl_config, shop, no_sleep):
    _coordinator(crawl_config, shop, no_sleep).start()
    # one for the start page plus one per worker
    assert shop.closed == 1 + crawl_config.concurrency


def test_inaccessible_start_page_fails_crawl(crawl_config, no_sleep):
    agent = FakeAgent(statuses={START_PAGE: [500, 500, 500]})
    result = _coordinator(crawl_config, agent, no_sleep).start()

    assert result.success is False
    assert len(result.items) == 0
    assert len(agent.head_calls) == 3
    assert agent.fetch_calls == []


def test_start_page_without_links_fails_crawl(crawl_config, no_sleep):
    agent = FakeAgent({START_PAGE: "<html><body>No products today</body></html>"})
    result = _coordinator(crawl_config, agent, no_sleep).start()

    assert result.success is False
    assert result.links == []


def test_start_page_fetch_error_fails_crawl(crawl_config, no_sleep):
    agent = FakeAgent(
        {START_PAGE: catalog_page(["a.html"])},
        fetch_errors={START_PAGE: AgentError("timed out", url=START_PAGE)},
    )
    assert _coordinator(crawl_config, agent, no_sleep).start().success is False


@pytest.mark.parametrize("concurrency", [1, 2, 4, 8])
def test_concurrent_workers_neither_lose_nor_duplicate_items(tmp_path, crawl_config, no_sleep, concurrency):
    hrefs = [f"book-{i}/index.html" for i in range(40)]
    pages = {START_PAGE: catalog_page(hrefs)}
    broken = {f"{BASE_URL}/book-{i}/index.html" for i in range(0, 40, 5)}
    unreachable = {f"{BASE_URL}/book-{i}/index.html" for i in range(1, 40, 7)} - broken
    for i, href in enumerate(hrefs):
        url = f"{BASE_URL}/{href}"
        if url not in unreachable:
            pages[url] = product_page(f"Book {i}", image_src=None)
    agent = FakeAgent(pages, fetch_errors={url: AgentError("reset", url=url) for url in broken})
    config = crawl_config.with_overrides(concurrency=concurrency, media_dir=tmp_path / f"media-{concurrency}")

    result = _coordinator(config, agent, no_sleep).start()

    expected = 40 - len(broken) - len(unreachable)
    names = [item.name for item in result.items]
    assert result.success is True
    assert len(names) == expected
    assert len(set(names)) == expected
    assert result.totals["processed"] == 40
    assert result.totals["succeeded"] == expected
    assert len(result.stats) == concurrency


def test_fetch_failure_abandons_only_that_link(crawl_config, shop, no_sleep):
    failing = f"{BASE_URL}/book-2/index.html"
    shop.fetch_errors[failing] = AgentError("connection reset", url=failing)

    result = _coordinator(crawl_config, shop, no_sleep).start()

    assert result.success is True
    assert sorted(item.name for item in result.items) == ["Book 1", "Book 3"]
    assert shop.fetch_calls.count(failing) == 1


def test_image_failure_still_records_product(crawl_config, shop, no_sleep):
    shop.downloads[f"{BASE_URL}/media/cover-1.jpg"] = AgentError("404", status=404)

    result = _coordinator(crawl_config, shop, no_sleep).start()

    by_name = {item.name: item for item in result.items}
    assert by_name["Book 1"].image_path == ""
    assert by_name["Book 2"].image_path == "Poetry/Book_2.jpg"


def test_politeness_delay_after_every_link(crawl_config, shop, no_sleep):
    config = crawl_config.with_overrides(delay_between_requests=0.5)
    _coordinator(config, shop, no_sleep).start()
    assert no_sleep.calls == [0.5, 0.5, 0.5]


def test_duplicate_links_produce_duplicate_records(crawl_config, no_sleep):
    url = f"{BASE_URL}/same/index.html"
    agent = FakeAgent({START_PAGE: catalog_page(["same/index.html"] * 2), url: product_page("Twice", image_src=None)})

    result = _coordinator(crawl_config, agent, no_sleep).start()
    assert [item.name for item in result.items] == ["Twice", "Twice"]

    deduped = _coordinator(crawl_config.with_overrides(deduplicate_links=True), agent, no_sleep).start()
    assert [item.name for item in deduped.items] == ["Twice"]


def test_parse_product_page_skips_inaccessible_link(crawl_config, shop, no_sleep):
    coordinator = _coordinator(crawl_config, shop, no_sleep)

    assert coordinator.parse_product_page(f"{BASE_URL}/missing.html") is None
    product = coordinator.parse_product_page(f"{BASE_URL}/book-3/index.html")

    assert product.name == "Book 3"
    assert coordinator.items.items == [product]


def test_workers_without_agent_count_their_links_as_failed(crawl_config, no_sleep, caplog):
    calls = []

    def factory():
        calls.append(1)
        raise RuntimeError("no browser")

    links = [f"{BASE_URL}/a.html", f"{BASE_URL}/b.html", f"{BASE_URL}/c.html"]
    coordinator = CrawlCoordinator(crawl_config, agent_factory=factory, sleep=no_sleep)
    stats = coordinator.parse_all(links)

    assert len(calls) == crawl_config.concurrency
    assert sum(s.processed for s in stats) == 3
    assert sum(s.failed for s in stats) == 3
    assert len(coordinator.items) == 0
    assert "skipped" in caplog.text


def test_start_survives_worker_agent_failures(crawl_config, shop, no_sleep):
    agents = iter([shop])

    def factory():
        agent = next(agents, None)
        if agent is None:
            raise RuntimeError("no browser")
        return agent

    result = CrawlCoordinator(crawl_config, agent_factory=factory, sleep=no_sleep).start()

    assert result.totals["links"] == 3
    assert result.totals["processed"] == 3
    assert result.totals["failed"] == 3
    assert result.totals["items"] == 0


def test_start_page_agent_failure_fails_crawl(crawl_config, no_sleep):
    def factory():
        raise RuntimeError("chromium missing")

    result = CrawlCoordinator(crawl_config, agent_factory=factory, sleep=no_sleep).start()

    assert result.success is False
    assert len(result.items) == 0


def test_unknown_agent_kind_warns_once(crawl_config, shop, no_sleep, monkeypatch, caplog):
    from shopcrawl import crawler

    monkeypatch.setattr(crawler, "create_agent", lambda kind, timeout: shop)
    config = crawl_config.with_overrides(agent_kind="lynx", concurrency=4)

    result = CrawlCoordinator(config, sleep=no_sleep).start()

    assert result.success is True
    assert caplog.text.count("Unknown agent type") == 1
