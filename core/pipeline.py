"""
搜索流水线模块

流水线驱动方：独占持有当前会话，串起 分发 → 排序 → 爬取。
每次提交查询都会创建新的会话并递增代号（generation），
已被取代的会话结果默认丢弃（search.discard_stale_results）。
"""
from typing import Callable, List, Optional, Sequence
from loguru import logger

from config import Config, config as default_config
from core.dispatcher import QueryDispatcher, SearchAdapter
from core.extractor import ImageExtractor, PlaceholderImageExtractor
from core.models import AggregationSession, ImageDescriptor, SessionStatus
from core.progress import ProgressReporter
from core.ranker import rank_results
from core.scheduler import CrawlScheduler

SEARCH_FAILED_MESSAGE = "搜索失败，请重试"


class SearchPipeline:
    """
    搜索流水线

    Example:
        async with SearchPipeline(config) as pipeline:
            session = await pipeline.submit("cats")
            images = await pipeline.crawl_images(reporter=TqdmProgressReporter())
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        providers: Optional[Sequence[SearchAdapter]] = None,
        extractor: Optional[ImageExtractor] = None,
        dispatcher: Optional[QueryDispatcher] = None,
        scheduler: Optional[CrawlScheduler] = None,
        navigator: Optional[Callable[[str], object]] = None
    ):
        """
        初始化流水线

        Args:
            config: 配置对象，默认使用全局配置
            providers: 搜索源列表，默认按 config.search.providers 创建
            extractor: 图片提取器，默认占位提取器
            dispatcher: 查询分发器
            scheduler: 爬取调度器
            navigator: 点击跳转回调，接收URL
        """
        self.config = config or default_config
        self._providers = list(providers) if providers is not None else None
        self.extractor = extractor or PlaceholderImageExtractor(self.config.image)
        self.dispatcher = dispatcher or QueryDispatcher(timeout=self.config.search.provider_timeout)
        self.scheduler = scheduler or CrawlScheduler(self.config.crawler)
        self.navigator = navigator

        self.generation = 0
        self.session: Optional[AggregationSession] = None

    @property
    def providers(self) -> List[SearchAdapter]:
        if self._providers is None:
            from providers.provider_factory import ProviderFactory
            self._providers = ProviderFactory.create_all(self.config)
        return self._providers

    async def __aenter__(self):
        """异步上下文管理器入口：初始化所有搜索源的HTTP会话"""
        for provider in self.providers:
            init = getattr(provider, "init", None)
            if init is not None:
                await init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        for provider in self.providers:
            close = getattr(provider, "close", None)
            if close is not None:
                await close()

    def is_current(self, session: AggregationSession) -> bool:
        """会话是否仍是最新提交的会话"""
        return self.session is not None and self.session.generation == session.generation

    async def submit(self, query: str) -> Optional[AggregationSession]:
        """
        提交查询

        Args:
            query: 查询字符串，空白查询不做任何事

        Returns:
            本次查询的会话；空白查询返回 None。
            整体失败时会话状态为 ERRORED，不抛出异常。
        """
        if not query or not query.strip():
            logger.debug("⏭️  空查询，忽略")
            return None

        query = query.strip()
        self.generation += 1
        session = AggregationSession(query=query, generation=self.generation)
        self.session = session
        session.advance(SessionStatus.SEARCHING)

        logger.info(f"🔍 会话 #{session.generation}: 搜索所有搜索源 \"{query}\"")

        try:
            candidates = await self.dispatcher.dispatch(query, self.providers)
            session.dispatch_stats = self.dispatcher.get_stats()
            ranked = rank_results(candidates, max_results=self.config.search.max_results)
        except Exception as e:
            logger.error(f"❌ 搜索出错: {e}")
            session.ranked_results = []
            session.error = SEARCH_FAILED_MESSAGE
            session.advance(SessionStatus.ERRORED)
            return session

        if not self.is_current(session):
            if self.config.search.discard_stale_results:
                logger.warning(f"⏭️  会话 #{session.generation} 已被取代，丢弃结果")
                return session
            # 不丢弃时后完成的会话覆盖当前会话
            self.session = session

        session.ranked_results = ranked
        session.advance(SessionStatus.RANKED)
        logger.success(f"🎉 找到 {len(ranked)} 条结果")
        return session

    async def crawl_images(
        self,
        reporter: Optional[ProgressReporter] = None,
        session: Optional[AggregationSession] = None
    ) -> List[ImageDescriptor]:
        """
        爬取当前会话的图片（同一会话只爬取一次）

        Args:
            reporter: 进度报告器
            session: 指定会话，默认当前会话

        Returns:
            会话中累计的图片列表
        """
        session = session or self.session
        if session is None:
            logger.warning("⚠️  还没有提交查询")
            return []
        if session.status in (SessionStatus.IDLE, SessionStatus.SEARCHING, SessionStatus.ERRORED):
            logger.warning(f"⚠️  会话状态为 {session.status.value}，无法爬取图片")
            return []

        is_current = None
        if self.config.search.discard_stale_results:
            is_current = lambda: self.is_current(session)

        return await self.scheduler.crawl(
            session,
            self.extractor,
            session.ranked_results,
            reporter=reporter,
            is_current=is_current,
        )

    async def search(
        self,
        query: str,
        crawl: bool = True,
        reporter: Optional[ProgressReporter] = None
    ) -> Optional[AggregationSession]:
        """提交查询并（可选）爬取图片"""
        session = await self.submit(query)
        if session is not None and crawl and session.status == SessionStatus.RANKED:
            await self.crawl_images(reporter=reporter, session=session)
        return session

    def open_url(self, url: Optional[str]) -> bool:
        """
        点击跳转：把URL交给宿主界面

        Returns:
            是否已转发
        """
        if not url or url in ("null", "undefined"):
            logger.debug(f"⏭️  忽略无效URL: {url!r}")
            return False
        if self.navigator is None:
            logger.warning(f"⚠️  没有可用的跳转回调: {url}")
            return False

        try:
            self.navigator(url)
        except Exception as e:
            logger.error(f"❌ 跳转出错 {url}: {e}")
            return False
        return True
