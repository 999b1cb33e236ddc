"""
查询分发模块

将同一查询并发分发给所有搜索源，任一搜索源失败不影响其他搜索源
"""
import asyncio
from collections import deque
from typing import List, Dict, Any, Optional, Sequence, Protocol
from loguru import logger

from core.models import SearchResult


class SearchAdapter(Protocol):
    """搜索源接口：把查询转换为候选结果，异步失败视为无结果"""

    name: str

    async def search(self, query: str) -> List[SearchResult]: ...


def adapter_name(adapter: Any) -> str:
    return getattr(adapter, "name", None) or type(adapter).__name__


class QueryDispatcher:
    """
    查询分发器

    "全部发出、全部等待"：所有搜索源调用先全部启动再统一等待，
    每个调用独立捕获异常和超时，失败的搜索源贡献空列表。
    合并顺序为搜索源注册顺序，最终排序由 rank_results 负责。

    Example:
        dispatcher = QueryDispatcher(timeout=10)
        candidates = await dispatcher.dispatch("cats", providers)
    """

    def __init__(self, timeout: Optional[float] = 10.0):
        """
        初始化分发器

        Args:
            timeout: 单个搜索源的超时时间（秒），None 表示不限制
        """
        self.timeout = timeout
        self.stats = self._empty_stats()
        # 错误记录
        self.errors = deque(maxlen=100)

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'total_adapters': 0,
            'succeeded': 0,
            'failed': 0,
            'timed_out': 0,
            'results': 0,
        }

    async def dispatch(self, query: str, adapters: Sequence[SearchAdapter]) -> List[SearchResult]:
        """
        分发查询

        Args:
            query: 查询字符串，空白查询直接返回空列表
            adapters: 搜索源列表（按注册顺序）

        Returns:
            所有成功搜索源的结果，按注册顺序拼接
        """
        if not query or not query.strip():
            logger.debug("⏭️  空查询，跳过分发")
            return []

        query = query.strip()
        # 每次调用独立计数，并发调用互不干扰
        stats = self._empty_stats()
        stats['total_adapters'] = len(adapters)

        logger.info(f"🔍 分发查询 \"{query}\" 到 {len(adapters)} 个搜索源")

        # gather 会先把所有协程调度为任务，再统一等待
        contributions = await asyncio.gather(
            *[self._run_adapter(adapter, query, stats) for adapter in adapters]
        )

        combined: List[SearchResult] = []
        for hits in contributions:
            combined.extend(hits)

        stats['results'] = len(combined)
        self.stats = stats
        logger.info(f"📦 分发完成: 成功={stats['succeeded']}, "
                    f"失败={stats['failed']}, "
                    f"候选结果={len(combined)}")
        return combined

    async def _run_adapter(self, adapter: SearchAdapter, query: str, stats: Dict[str, int]) -> List[SearchResult]:
        """执行单个搜索源，失败时返回空列表"""
        name = adapter_name(adapter)
        try:
            call = adapter.search(query)
            if self.timeout is not None:
                hits = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                hits = await call
        except asyncio.TimeoutError:
            stats['failed'] += 1
            stats['timed_out'] += 1
            self.errors.append({'adapter': name, 'error': f"timeout after {self.timeout}s"})
            logger.warning(f"⏱️  搜索源超时: {name}")
            return []
        except Exception as e:
            stats['failed'] += 1
            self.errors.append({'adapter': name, 'error': str(e)})
            logger.warning(f"⚠️  搜索源失败 {name}: {e}")
            return []

        hits = [hit for hit in (hits or []) if isinstance(hit, SearchResult)]
        stats['succeeded'] += 1
        logger.debug(f"   ✓ {name}: {len(hits)} 条结果")
        return hits

    def get_stats(self) -> Dict[str, Any]:
        """获取最近一次完成的分发的统计信息"""
        return self.stats.copy()

    def get_errors(self) -> List[Dict[str, Any]]:
        """获取错误列表"""
        return list(self.errors)
