"""
爬取调度模块

从排序后的结果中筛选可爬取的目标，严格串行地调用图片提取器：
同一时刻只有一个提取调用在进行，每个目标之后固定延迟，避免频繁请求第三方站点。
"""
import asyncio
import re
from typing import Callable, List, Optional, Sequence
from loguru import logger

from config import CrawlerConfig
from core.extractor import ImageExtractor
from core.models import (
    AggregationSession,
    CrawlProgress,
    CrawlSummary,
    CrawlTarget,
    ImageDescriptor,
    SearchResult,
    SessionStatus,
)
from core.progress import ProgressReporter, LoggingProgressReporter


class CrawlRun:
    """
    一次爬取的步进器

    每一步：报告进度 → 提取 → 追加图片到会话 → 延迟。
    步与步之间的边界就是状态机的状态（index）。
    """

    def __init__(
        self,
        session: AggregationSession,
        extractor: ImageExtractor,
        plan: Sequence[CrawlTarget],
        reporter: ProgressReporter,
        delay: float = 0.5,
        extract_timeout: Optional[float] = None
    ):
        self.session = session
        self.extractor = extractor
        self.plan = list(plan)
        self.reporter = reporter
        self.delay = delay
        self.extract_timeout = extract_timeout

        self.index = 0
        self.failed_targets = 0

    @property
    def total(self) -> int:
        return len(self.plan)

    @property
    def finished(self) -> bool:
        return self.index >= self.total

    async def step(self) -> List[ImageDescriptor]:
        """
        处理下一个目标

        Returns:
            本步提取到的图片（失败时为空列表）
        """
        if self.finished:
            raise RuntimeError("爬取计划已全部处理完")

        target = self.plan[self.index]
        self.reporter.on_progress(CrawlProgress(
            done=self.index,
            total=self.total,
            current_label=target.source,
        ))

        images = await self._extract(target)
        # 立即追加，便于界面渐进显示
        self.session.crawled_images.extend(images)

        self.index += 1
        await asyncio.sleep(self.delay)
        return images

    async def _extract(self, target: CrawlTarget) -> List[ImageDescriptor]:
        """调用提取器，异常和超时都转换为空结果"""
        try:
            call = self.extractor.extract(target)
            if self.extract_timeout is not None:
                images = await asyncio.wait_for(call, timeout=self.extract_timeout)
            else:
                images = await call
        except asyncio.TimeoutError:
            self.failed_targets += 1
            logger.error(f"❌ 提取超时 {target.url}")
            return []
        except Exception as e:
            self.failed_targets += 1
            logger.error(f"❌ 爬取出错 {target.url}: {e}")
            return []

        return [image for image in (images or []) if isinstance(image, ImageDescriptor)]


class CrawlScheduler:
    """
    爬取调度器

    Example:
        scheduler = CrawlScheduler(config.crawler)
        images = await scheduler.crawl(session, PlaceholderImageExtractor(), session.ranked_results, reporter)
    """

    def __init__(self, crawler_config: Optional[CrawlerConfig] = None):
        """
        初始化调度器

        Args:
            crawler_config: 爬取配置，默认使用 CrawlerConfig()
        """
        self.config = crawler_config or CrawlerConfig()
        self.patterns = [re.compile(p) for p in self.config.crawlable_patterns]

    def is_crawlable(self, url: str) -> bool:
        """URL 是否匹配可爬取白名单"""
        if not url:
            return False
        return any(pattern.search(url) for pattern in self.patterns)

    def build_plan(self, ranked: Sequence[SearchResult]) -> List[CrawlTarget]:
        """按排序顺序取前 max_targets 个可爬取的结果"""
        crawlable = [result for result in ranked if self.is_crawlable(result.url)]
        return crawlable[:self.config.max_targets]

    async def crawl(
        self,
        session: AggregationSession,
        extractor: ImageExtractor,
        ranked: Sequence[SearchResult],
        reporter: Optional[ProgressReporter] = None,
        is_current: Optional[Callable[[], bool]] = None
    ) -> List[ImageDescriptor]:
        """
        爬取图片

        Args:
            session: 当前会话（crawled_images 会被原地追加）
            extractor: 图片提取器
            ranked: 排序后的结果
            reporter: 进度报告器，默认输出到日志
            is_current: 返回 False 时说明会话已被新查询取代，停止爬取

        Returns:
            会话中累计的图片列表
        """
        reporter = reporter or LoggingProgressReporter()

        if session.crawled_images:
            logger.debug("♻️  会话已有图片，跳过爬取")
            return list(session.crawled_images)
        if session.status == SessionStatus.DONE:
            logger.debug("♻️  会话已完成爬取（无图片），跳过")
            return []
        if session.status == SessionStatus.CRAWLING:
            logger.debug(f"⏳ 会话 #{session.generation} 正在爬取，不重复启动")
            return list(session.crawled_images)

        session.advance(SessionStatus.CRAWLING)

        plan = self.build_plan(ranked)
        logger.info(f"🕷️  开始爬取 {len(plan)} 个网站的图片")

        run = CrawlRun(
            session=session,
            extractor=extractor,
            plan=plan,
            reporter=reporter,
            delay=self.config.crawl_delay,
            extract_timeout=self.config.extract_timeout,
        )

        while not run.finished:
            if is_current is not None and not is_current():
                logger.warning(f"⏹️  会话 #{session.generation} 已被取代，停止爬取")
                reporter.on_complete(self.summarize(session, run, cancelled=True))
                return list(session.crawled_images)
            await run.step()

        session.advance(SessionStatus.DONE)
        summary = self.summarize(session, run)
        reporter.on_complete(summary)
        return list(session.crawled_images)

    @staticmethod
    def summarize(session: AggregationSession, run: CrawlRun, cancelled: bool = False) -> CrawlSummary:
        """生成结束汇总"""
        images = session.crawled_images
        site_count = len({image.source_url for image in images})

        if cancelled:
            label = f"⏹️  爬取已取消（有新的查询），已处理 {run.index}/{run.total} 个网站"
        elif images:
            label = f"🎉 从 {site_count} 个网站找到 {len(images)} 张图片！"
        else:
            label = "😔 搜索结果中没有找到图片"

        return CrawlSummary(
            image_count=len(images),
            site_count=site_count,
            targets_total=run.total,
            targets_failed=run.failed_targets,
            label=label,
            cancelled=cancelled,
        )
