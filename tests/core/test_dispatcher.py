"""
QueryDispatcher 单元测试
"""
import asyncio
import unittest

from core.dispatcher import QueryDispatcher, adapter_name
from core.models import SearchResult
from core.ranker import rank_results


class FakeAdapter:
    """可控的搜索源"""

    def __init__(self, name, results=None, error=None, delay=0.0):
        self.name = name
        self.results = results or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def search(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.results)


def _result(url, score, engine="E"):
    return SearchResult(title=url, url=url, score=score, engine=engine)


class TestQueryDispatcher(unittest.TestCase):
    def test_merges_in_registration_order(self):
        adapters = [
            FakeAdapter("one", [_result("a.com", 1)]),
            FakeAdapter("two", [_result("b.com", 2), _result("c.com", 3)]),
        ]
        dispatcher = QueryDispatcher()

        combined = asyncio.run(dispatcher.dispatch("cats", adapters))

        self.assertEqual([r.url for r in combined], ["a.com", "b.com", "c.com"])
        self.assertEqual(dispatcher.get_stats()['succeeded'], 2)
        self.assertEqual(dispatcher.get_stats()['results'], 3)

    def test_failing_adapter_is_isolated(self):
        adapters = [
            FakeAdapter("ok", [_result("a.com", 9)]),
            FakeAdapter("broken", error=RuntimeError("boom")),
            FakeAdapter("ok2", [_result("b.com", 7)]),
        ]
        dispatcher = QueryDispatcher()

        combined = asyncio.run(dispatcher.dispatch("cats", adapters))

        self.assertEqual([r.url for r in combined], ["a.com", "b.com"])
        stats = dispatcher.get_stats()
        self.assertEqual(stats['failed'], 1)
        self.assertEqual(stats['succeeded'], 2)
        self.assertEqual(dispatcher.get_errors()[0]['adapter'], "broken")
        self.assertIn("boom", dispatcher.get_errors()[0]['error'])

    def test_all_adapters_fail(self):
        adapters = [
            FakeAdapter("x", error=ValueError("bad")),
            FakeAdapter("y", error=ConnectionError("down")),
        ]
        combined = asyncio.run(QueryDispatcher().dispatch("cats", adapters))
        self.assertEqual(combined, [])

    def test_slow_adapter_times_out(self):
        adapters = [
            FakeAdapter("slow", [_result("slow.com", 10)], delay=1.0),
            FakeAdapter("fast", [_result("fast.com", 1)]),
        ]
        dispatcher = QueryDispatcher(timeout=0.05)

        combined = asyncio.run(dispatcher.dispatch("cats", adapters))

        self.assertEqual([r.url for r in combined], ["fast.com"])
        self.assertEqual(dispatcher.get_stats()['timed_out'], 1)

    def test_adapter_raising_synchronously(self):
        class SyncBroken:
            name = "sync"

            def search(self, query):
                raise RuntimeError("sync failure")

        combined = asyncio.run(QueryDispatcher().dispatch("cats", [SyncBroken(), FakeAdapter("ok", [_result("a.com", 1)])]))
        self.assertEqual([r.url for r in combined], ["a.com"])

    def test_blank_query_invokes_nothing(self):
        adapter = FakeAdapter("one", [_result("a.com", 1)])
        dispatcher = QueryDispatcher()

        self.assertEqual(asyncio.run(dispatcher.dispatch("", [adapter])), [])
        self.assertEqual(asyncio.run(dispatcher.dispatch("   \t", [adapter])), [])
        self.assertEqual(adapter.calls, [])

    def test_query_is_trimmed(self):
        adapter = FakeAdapter("one")
        asyncio.run(QueryDispatcher().dispatch("  cats  ", [adapter]))
        self.assertEqual(adapter.calls, ["cats"])

    def test_no_adapters(self):
        self.assertEqual(asyncio.run(QueryDispatcher().dispatch("cats", [])), [])

    def test_non_result_items_dropped(self):
        adapter = FakeAdapter("mixed", [_result("a.com", 1), {"url": "b.com"}, None])
        combined = asyncio.run(QueryDispatcher().dispatch("cats", [adapter]))
        self.assertEqual([r.url for r in combined], ["a.com"])

    def test_adapters_run_concurrently(self):
        """第一个搜索源等待第二个搜索源设置的事件，串行执行会超时"""

        async def run():
            ready = asyncio.Event()

            class Waiter:
                name = "waiter"

                async def search(self, query):
                    await ready.wait()
                    return [_result("waiter.com", 5)]

            class Setter:
                name = "setter"

                async def search(self, query):
                    ready.set()
                    return [_result("setter.com", 4)]

            dispatcher = QueryDispatcher(timeout=1.0)
            combined = await dispatcher.dispatch("cats", [Waiter(), Setter()])
            return dispatcher, combined

        dispatcher, combined = asyncio.run(run())
        self.assertEqual([r.url for r in combined], ["waiter.com", "setter.com"])
        self.assertEqual(dispatcher.get_stats()['timed_out'], 0)

    def test_scenario_cats_end_to_end(self):
        adapters = [
            FakeAdapter("A", [_result("a.com", 9)]),
            FakeAdapter("B", [_result("b.com", 7)]),
            FakeAdapter("C", [_result("a.com", 5)]),
        ]
        combined = asyncio.run(QueryDispatcher().dispatch("cats", adapters))
        ranked = rank_results(combined)
        self.assertEqual([(r.url, r.score) for r in ranked], [("a.com", 9), ("b.com", 7)])

    def test_overlapping_dispatches_keep_separate_counters(self):
        async def run():
            release = asyncio.Event()

            class Gated:
                name = "gated"

                async def search(self, query):
                    await release.wait()
                    return [_result("slow.com", 1)]

            dispatcher = QueryDispatcher(timeout=1.0)
            slow = asyncio.create_task(dispatcher.dispatch("slow", [Gated(), FakeAdapter("ok", [_result("a.com", 1)])]))
            for _ in range(5):
                await asyncio.sleep(0)
            await dispatcher.dispatch("fast", [
                FakeAdapter("x", [_result("x.com", 1)]),
                FakeAdapter("y", error=RuntimeError("down")),
                FakeAdapter("z"),
            ])
            fast_stats = dispatcher.get_stats()
            release.set()
            await slow
            return fast_stats, dispatcher.get_stats()

        fast_stats, slow_stats = asyncio.run(run())

        self.assertEqual(fast_stats, {'total_adapters': 3, 'succeeded': 2, 'failed': 1, 'timed_out': 0, 'results': 1})
        self.assertEqual(slow_stats, {'total_adapters': 2, 'succeeded': 2, 'failed': 0, 'timed_out': 0, 'results': 2})


class TestAdapterName(unittest.TestCase):
    def test_uses_name_attribute(self):
        self.assertEqual(adapter_name(FakeAdapter("bing")), "bing")

    def test_falls_back_to_class_name(self):
        class Anonymous:
            pass

        self.assertEqual(adapter_name(Anonymous()), "Anonymous")
