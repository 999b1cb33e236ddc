"""
核心模块

包含基础组件：
- models: 结果、图片、进度与会话记录
- dispatcher: 查询分发器（并发、失败隔离）
- ranker: 结果去重与排序
- scheduler: 串行限速的图片爬取调度器
- extractor: 可替换的图片提取器
- progress: 进度报告器
- pipeline: 搜索流水线（会话持有者）
"""
from .models import (
    SearchResult,
    CrawlTarget,
    ImageDescriptor,
    CrawlProgress,
    CrawlSummary,
    SessionStatus,
    AggregationSession,
    InvalidStatusTransition,
)
from .dispatcher import QueryDispatcher
from .ranker import rank_results, dedup_key
from .extractor import ImageExtractor, PlaceholderImageExtractor, ExtractionError
from .progress import ProgressReporter, CallbackProgressReporter, LoggingProgressReporter, TqdmProgressReporter
from .scheduler import CrawlScheduler, CrawlRun
from .pipeline import SearchPipeline

__all__ = [
    'SearchResult',
    'CrawlTarget',
    'ImageDescriptor',
    'CrawlProgress',
    'CrawlSummary',
    'SessionStatus',
    'AggregationSession',
    'InvalidStatusTransition',
    'QueryDispatcher',
    'rank_results',
    'dedup_key',
    'ImageExtractor',
    'PlaceholderImageExtractor',
    'ExtractionError',
    'ProgressReporter',
    'CallbackProgressReporter',
    'LoggingProgressReporter',
    'TqdmProgressReporter',
    'CrawlScheduler',
    'CrawlRun',
    'SearchPipeline',
]
