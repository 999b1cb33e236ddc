"""
搜索源基类模块

包含搜索源的抽象基类：
- BaseProvider: 搜索源基类
- ProviderError: 搜索源请求/解析失败
"""
import asyncio
import aiohttp
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from bs4 import BeautifulSoup
from loguru import logger
from fake_useragent import UserAgent

from config import Config, config as default_config
from core.models import SearchResult


class ProviderError(Exception):
    """搜索源请求或解析失败"""


def clean_text(text: Optional[str]) -> str:
    """去掉搜索源返回文本中的HTML标签和实体"""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


class BaseProvider(ABC):
    """
    搜索源基类

    所有搜索源的公共基类，提供：
    - HTTP Session 管理
    - JSON 接口请求
    - 结果记录构造（填充来源、图标、分数）
    - 统计信息
    - 异步上下文管理

    子类需要实现:
    - _search(): 把查询转换为结果列表
    """

    name = "base"
    engine = ""
    source = ""
    icon_tag = "🌐"
    score = 5

    def __init__(self, config: Optional[Config] = None):
        """
        初始化搜索源

        Args:
            config: 配置对象，默认使用全局配置
        """
        self.config = config or default_config
        self.session: Optional[aiohttp.ClientSession] = None
        self.ua = UserAgent()

        # 基础统计信息
        self.stats = {
            'searches': 0,
            'results_returned': 0,
            'requests_failed': 0,
        }

    async def __aenter__(self):
        """异步上下文管理器入口"""
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def init(self):
        """初始化HTTP会话"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.crawler.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
            logger.debug(f"✓ {self.name} HTTP会话已创建")

    async def close(self):
        """关闭HTTP会话"""
        if self.session:
            await self.session.close()
            self.session = None
            logger.debug(f"✓ {self.name} HTTP会话已关闭")

    def get_headers(self) -> Dict[str, str]:
        """
        获取请求头

        子类可重写此方法添加特定请求头
        """
        return {
            "User-Agent": self.ua.random if self.config.crawler.rotate_user_agent else self.ua.chrome,
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9,zh-CN;q=0.8",
        }

    async def fetch_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        请求JSON接口

        Args:
            url: 接口URL
            params: 查询参数

        Returns:
            解析后的JSON

        Raises:
            ProviderError: 会话未初始化、HTTP 非 200、超时或响应不是JSON
        """
        if self.session is None:
            raise ProviderError(f"{self.name} 会话未初始化")

        try:
            logger.debug(f"📄 请求接口: {url}")
            async with self.session.get(url, params=params, headers=self.get_headers()) as response:
                if response.status != 200:
                    raise ProviderError(f"{self.name} HTTP {response.status}")
                # 部分接口的 Content-Type 不是 application/json
                return await response.json(content_type=None)
        except ProviderError:
            self.stats['requests_failed'] += 1
            raise
        except asyncio.TimeoutError as e:
            self.stats['requests_failed'] += 1
            raise ProviderError(f"{self.name} 请求超时") from e
        except (aiohttp.ClientError, ValueError) as e:
            self.stats['requests_failed'] += 1
            raise ProviderError(f"{self.name} 请求失败: {e}") from e

    async def search(self, query: str) -> List[SearchResult]:
        """
        搜索

        Args:
            query: 查询字符串

        Returns:
            结果列表（缺少 url 或 title 的条目已被过滤）
        """
        self.stats['searches'] += 1
        results = [r for r in await self._search(query) if r.has_required_fields]
        self.stats['results_returned'] += len(results)
        return results

    @abstractmethod
    async def _search(self, query: str) -> List[SearchResult]:
        """
        执行搜索

        子类必须实现此方法
        """

    def make_result(self, **fields) -> SearchResult:
        """构造结果记录，未指定的字段使用搜索源默认值"""
        fields.setdefault("source", self.source)
        fields.setdefault("engine", self.engine)
        fields.setdefault("icon_tag", self.icon_tag)
        fields.setdefault("score", self.score)
        return SearchResult(**fields)

    def get_statistics(self) -> Dict[str, Any]:
        """获取统计信息"""
        return {'name': self.name, **self.stats}
