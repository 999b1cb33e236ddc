"""
SearchPipeline 单元测试
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from config import Config
from core.dispatcher import QueryDispatcher
from core.models import ImageDescriptor, SearchResult, SessionStatus
from core.pipeline import SearchPipeline, SEARCH_FAILED_MESSAGE
from core.progress import CallbackProgressReporter


class StaticAdapter:
    def __init__(self, name, results):
        self.name = name
        self.results = results
        self.calls = []

    async def search(self, query):
        self.calls.append(query)
        return list(self.results)


class GatedAdapter:
    """查询 "first" 会一直等待，直到 release 被设置"""

    name = "gated"

    def __init__(self):
        self.release = asyncio.Event()

    async def search(self, query):
        if query == "first":
            await self.release.wait()
        return [SearchResult(title=query, url=f"https://{query}.example.com", score=5)]


class StubExtractor:
    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay

    async def extract(self, target):
        self.calls.append(target.url)
        if self.delay:
            await asyncio.sleep(self.delay)
        return [ImageDescriptor(url=f"{target.url}/img.png", source=target.source, source_url=target.url)]


def _config(**search):
    return Config(search=search, crawler={"crawl_delay": 0})


def _cats_providers():
    return [
        StaticAdapter("A", [SearchResult(title="a", url="a.com", score=9)]),
        StaticAdapter("B", [SearchResult(title="b", url="b.com", score=7)]),
        StaticAdapter("C", [SearchResult(title="a dup", url="a.com", score=5)]),
    ]


class TestSubmit(unittest.TestCase):
    def test_scenario_cats(self):
        pipeline = SearchPipeline(_config(), providers=_cats_providers())

        session = asyncio.run(pipeline.submit("cats"))

        self.assertIs(session, pipeline.session)
        self.assertEqual(session.status, SessionStatus.RANKED)
        self.assertEqual([(r.url, r.score) for r in session.ranked_results], [("a.com", 9), ("b.com", 7)])
        self.assertEqual(session.crawled_images, [])
        self.assertEqual(session.generation, 1)

    def test_session_keeps_own_dispatch_stats(self):
        class Broken:
            name = "broken"

            async def search(self, query):
                raise RuntimeError("down")

        pipeline = SearchPipeline(_config(), providers=_cats_providers() + [Broken()])
        session = asyncio.run(pipeline.submit("cats"))

        self.assertEqual(session.dispatch_stats["total_adapters"], 4)
        self.assertEqual(session.dispatch_stats["succeeded"], 3)
        self.assertEqual(session.dispatch_stats["failed"], 1)
        self.assertEqual(session.dispatch_stats["results"], 3)

    def test_blank_query_is_noop(self):
        providers = _cats_providers()
        pipeline = SearchPipeline(_config(), providers=providers)

        self.assertIsNone(asyncio.run(pipeline.submit("   ")))
        self.assertIsNone(pipeline.session)
        self.assertEqual(pipeline.generation, 0)
        self.assertTrue(all(p.calls == [] for p in providers))

    def test_generation_increments(self):
        pipeline = SearchPipeline(_config(), providers=_cats_providers())
        asyncio.run(pipeline.submit("one"))
        session = asyncio.run(pipeline.submit("two"))
        self.assertEqual(session.generation, 2)
        self.assertEqual(pipeline.session.query, "two")

    def test_pipeline_failure_marks_errored(self):
        dispatcher = MagicMock(spec=QueryDispatcher)
        dispatcher.dispatch = AsyncMock(side_effect=RuntimeError("dispatch exploded"))
        pipeline = SearchPipeline(_config(), providers=[], dispatcher=dispatcher)

        session = asyncio.run(pipeline.submit("cats"))

        self.assertEqual(session.status, SessionStatus.ERRORED)
        self.assertEqual(session.error, SEARCH_FAILED_MESSAGE)
        self.assertEqual(session.ranked_results, [])

    def test_all_providers_failing_is_empty_not_errored(self):
        class Broken:
            name = "broken"

            async def search(self, query):
                raise RuntimeError("down")

        pipeline = SearchPipeline(_config(), providers=[Broken()])
        session = asyncio.run(pipeline.submit("cats"))

        self.assertEqual(session.status, SessionStatus.RANKED)
        self.assertEqual(session.ranked_results, [])

    def test_max_results_from_config(self):
        results = [SearchResult(title=str(i), url=f"https://{i}.com", score=i) for i in range(10)]
        pipeline = SearchPipeline(_config(max_results=3), providers=[StaticAdapter("many", results)])
        session = asyncio.run(pipeline.submit("x"))
        self.assertEqual([r.score for r in session.ranked_results], [9, 8, 7])


class TestStaleSessions(unittest.TestCase):
    async def _race(self, pipeline, adapter):
        first_task = asyncio.create_task(pipeline.submit("first"))
        for _ in range(5):
            await asyncio.sleep(0)
        second = await pipeline.submit("second")
        adapter.release.set()
        first = await first_task
        return first, second

    def test_stale_results_discarded(self):
        async def run():
            adapter = GatedAdapter()
            pipeline = SearchPipeline(_config(), providers=[adapter])
            first, second = await self._race(pipeline, adapter)
            return pipeline, first, second

        pipeline, first, second = asyncio.run(run())

        self.assertIs(pipeline.session, second)
        self.assertEqual(second.status, SessionStatus.RANKED)
        self.assertEqual(first.status, SessionStatus.SEARCHING)
        self.assertEqual(first.ranked_results, [])
        self.assertFalse(pipeline.is_current(first))

    def test_last_finisher_wins_when_not_discarding(self):
        async def run():
            adapter = GatedAdapter()
            pipeline = SearchPipeline(_config(discard_stale_results=False), providers=[adapter])
            first, second = await self._race(pipeline, adapter)
            return pipeline, first, second

        pipeline, first, second = asyncio.run(run())

        self.assertIs(pipeline.session, first)
        self.assertEqual(first.status, SessionStatus.RANKED)
        self.assertEqual([r.title for r in first.ranked_results], ["first"])


class TestCrawlImages(unittest.TestCase):
    def _wiki_pipeline(self, extractor):
        providers = [StaticAdapter("wiki", [
            SearchResult(title="Cat", url="https://en.wikipedia.org/wiki/Cat", source="Wikipedia", score=9),
            SearchResult(title="Bing", url="https://www.bing.com/search?q=cat", source="Bing", score=8),
        ])]
        return SearchPipeline(_config(), providers=providers, extractor=extractor)

    def test_crawl_current_session(self):
        extractor = StubExtractor()
        pipeline = self._wiki_pipeline(extractor)

        async def run():
            await pipeline.submit("cat")
            return await pipeline.crawl_images()

        images = asyncio.run(run())

        self.assertEqual(extractor.calls, ["https://en.wikipedia.org/wiki/Cat"])
        self.assertEqual(len(images), 1)
        self.assertEqual(pipeline.session.status, SessionStatus.DONE)

    def test_crawl_is_memoized(self):
        extractor = StubExtractor()
        pipeline = self._wiki_pipeline(extractor)

        async def run():
            await pipeline.submit("cat")
            await pipeline.crawl_images()
            return await pipeline.crawl_images()

        images = asyncio.run(run())
        self.assertEqual(len(extractor.calls), 1)
        self.assertEqual(len(images), 1)

    def test_crawl_without_session(self):
        pipeline = SearchPipeline(_config(), providers=[])
        self.assertEqual(asyncio.run(pipeline.crawl_images()), [])

    def test_crawl_errored_session_is_skipped(self):
        dispatcher = MagicMock(spec=QueryDispatcher)
        dispatcher.dispatch = AsyncMock(side_effect=RuntimeError("boom"))
        extractor = StubExtractor()
        pipeline = SearchPipeline(_config(), providers=[], dispatcher=dispatcher, extractor=extractor)

        async def run():
            await pipeline.submit("cats")
            return await pipeline.crawl_images()

        self.assertEqual(asyncio.run(run()), [])
        self.assertEqual(extractor.calls, [])

    def test_search_convenience(self):
        extractor = StubExtractor()
        pipeline = self._wiki_pipeline(extractor)

        session = asyncio.run(pipeline.search("cat"))
        self.assertEqual(session.status, SessionStatus.DONE)
        self.assertEqual(len(session.crawled_images), 1)

        session = asyncio.run(pipeline.search("dog", crawl=False))
        self.assertEqual(session.status, SessionStatus.RANKED)

    def test_concurrent_crawl_requests_run_once(self):
        extractor = StubExtractor(delay=0.01)
        pipeline = self._wiki_pipeline(extractor)

        async def run():
            await pipeline.submit("cat")
            return await asyncio.gather(
                pipeline.crawl_images(),
                pipeline.crawl_images(),
                return_exceptions=True,
            )

        first, second = asyncio.run(run())

        self.assertEqual(len(first), 1)
        self.assertIsInstance(second, list)
        self.assertEqual(extractor.calls, ["https://en.wikipedia.org/wiki/Cat"])
        self.assertEqual(pipeline.session.status, SessionStatus.DONE)

    def test_crawl_after_supersede_closes_reporter(self):
        extractor = StubExtractor()
        pipeline = self._wiki_pipeline(extractor)
        summaries = []

        async def run():
            first = await pipeline.submit("cat")
            await pipeline.submit("dog")
            return await pipeline.crawl_images(
                reporter=CallbackProgressReporter(on_complete=summaries.append), session=first
            )

        self.assertEqual(asyncio.run(run()), [])
        self.assertEqual(extractor.calls, [])
        self.assertEqual(len(summaries), 1)
        self.assertTrue(summaries[0].cancelled)


class TestContextManager(unittest.TestCase):
    def test_inits_and_closes_providers(self):
        provider = MagicMock()
        provider.init = AsyncMock()
        provider.close = AsyncMock()

        async def run():
            async with SearchPipeline(_config(), providers=[provider]):
                pass

        asyncio.run(run())
        provider.init.assert_awaited_once()
        provider.close.assert_awaited_once()


class TestOpenUrl(unittest.TestCase):
    def test_forwards_valid_url(self):
        navigator = MagicMock()
        pipeline = SearchPipeline(_config(), providers=[], navigator=navigator)

        self.assertTrue(pipeline.open_url("https://a.com"))
        navigator.assert_called_once_with("https://a.com")

    def test_ignores_invalid_urls(self):
        navigator = MagicMock()
        pipeline = SearchPipeline(_config(), providers=[], navigator=navigator)

        for url in (None, "", "null", "undefined"):
            self.assertFalse(pipeline.open_url(url))
        navigator.assert_not_called()

    def test_navigator_failure(self):
        pipeline = SearchPipeline(_config(), providers=[], navigator=MagicMock(side_effect=OSError("no browser")))
        self.assertFalse(pipeline.open_url("https://a.com"))

    def test_without_navigator(self):
        self.assertFalse(SearchPipeline(_config(), providers=[]).open_url("https://a.com"))
