"""
进度报告模块

调度器在每个目标处理前调用 on_progress()，结束时调用一次 on_complete()。
不做缓冲或合并，事件实时送达。
"""
from abc import ABC, abstractmethod
from typing import Callable, Optional
from loguru import logger
from tqdm import tqdm

from core.models import CrawlProgress, CrawlSummary


class ProgressReporter(ABC):
    """进度报告器基类"""

    @abstractmethod
    def on_progress(self, progress: CrawlProgress) -> None:
        """非终止进度更新"""

    @abstractmethod
    def on_complete(self, summary: CrawlSummary) -> None:
        """爬取结束"""


class CallbackProgressReporter(ProgressReporter):
    """把两个回调函数包装成报告器"""

    def __init__(
        self,
        on_progress: Optional[Callable[[CrawlProgress], None]] = None,
        on_complete: Optional[Callable[[CrawlSummary], None]] = None
    ):
        self._on_progress = on_progress
        self._on_complete = on_complete

    def on_progress(self, progress: CrawlProgress) -> None:
        if self._on_progress:
            self._on_progress(progress)

    def on_complete(self, summary: CrawlSummary) -> None:
        if self._on_complete:
            self._on_complete(summary)


class LoggingProgressReporter(ProgressReporter):
    """输出到日志"""

    def on_progress(self, progress: CrawlProgress) -> None:
        logger.info(f"🕷️  爬取中: {progress.done}/{progress.total} 个站点 • 当前: {progress.current_label}")

    def on_complete(self, summary: CrawlSummary) -> None:
        if summary.found_images and not summary.cancelled:
            logger.success(summary.label)
        else:
            logger.warning(summary.label)


class TqdmProgressReporter(ProgressReporter):
    """
    终端进度条

    第一次收到进度时按 total 创建进度条，结束时关闭。
    """

    def __init__(self, desc: str = "爬取进度", **tqdm_kwargs):
        self.desc = desc
        self.tqdm_kwargs = tqdm_kwargs
        self.bar: Optional[tqdm] = None

    def on_progress(self, progress: CrawlProgress) -> None:
        if self.bar is None:
            self.bar = tqdm(total=progress.total, desc=self.desc, **self.tqdm_kwargs)
        self.bar.n = progress.done
        self.bar.set_postfix_str(progress.current_label)
        self.bar.refresh()

    def on_complete(self, summary: CrawlSummary) -> None:
        if self.bar is not None:
            if not summary.cancelled:
                self.bar.n = summary.targets_total
            self.bar.refresh()
            self.bar.close()
            self.bar = None
        tqdm.write(summary.label)
