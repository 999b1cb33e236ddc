"""
图片提取器模块

提取器是可替换的策略：调度器只依赖 ImageExtractor.extract() 接口，
真实的页面解析实现可以直接替换默认的占位实现。
"""
import random
import time
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote
from loguru import logger

from config import ImageConfig
from core.models import CrawlTarget, ImageDescriptor


class ExtractionError(Exception):
    """单个目标的图片提取失败"""


class ImageExtractor(ABC):
    """
    图片提取器基类

    子类需要实现:
    - extract(): 从一个爬取目标中提取图片，失败时抛出异常
    """

    name = "base"

    @abstractmethod
    async def extract(self, target: CrawlTarget) -> List[ImageDescriptor]:
        """
        提取图片

        Args:
            target: 爬取目标（只读）

        Returns:
            图片列表，可以为空
        """


class PlaceholderImageExtractor(ImageExtractor):
    """
    占位图片提取器

    不访问目标页面，为每个目标生成 1~4 张占位图片，
    轮流使用 picsum.photos / via.placeholder.com / placehold.co。
    """

    name = "placeholder"

    def __init__(self, image_config: Optional[ImageConfig] = None, rng: Optional[random.Random] = None):
        """
        初始化占位提取器

        Args:
            image_config: 图片配置，默认使用 ImageConfig()
            rng: 随机数生成器（测试时可传入固定种子）
        """
        self.config = image_config or ImageConfig()
        self.rng = rng or random.Random()

    async def extract(self, target: CrawlTarget) -> List[ImageDescriptor]:
        logger.debug(f"🕷️  提取图片: {target.source} - {target.url}")

        services = self.config.placeholder_services
        if not services:
            raise ExtractionError("没有可用的占位图服务")

        low = min(self.config.min_images, self.config.max_images)
        count = self.rng.randint(low, self.config.max_images)

        images = []
        for i in range(count):
            size = self.config.base_size + i * self.config.size_step
            service = services[i % len(services)]
            images.append(ImageDescriptor(
                url=self._build_image_url(service, size, i, target),
                title=f"Image from {target.title}",
                source=target.source,
                source_url=target.url,
                icon_tag=target.icon_tag or self.config.fallback_icon,
            ))

        return images

    def _build_image_url(self, service: str, size: int, index: int, target: CrawlTarget) -> str:
        """生成占位图URL"""
        label = quote(target.source, safe="")
        if service == "picsum.photos":
            token = f"{int(time.time() * 1000)}-{index}"
            return f"https://picsum.photos/{size}/{size}?random={token}"
        if service == "via.placeholder.com":
            return f"https://via.placeholder.com/{size}x{size}/667eea/ffffff?text={label}"
        return f"https://{service}/{size}x{size}/764ba2/ffffff/png?text={label}"
