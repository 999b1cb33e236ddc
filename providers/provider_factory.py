"""
搜索源工厂模块

提供统一的搜索源创建接口
"""
from typing import Dict, List, Optional, Type
from loguru import logger

from config import Config, config as default_config
from providers.base import BaseProvider


class ProviderFactory:
    """
    搜索源工厂类

    统一管理所有搜索源的创建：
    - 接口类: duckduckgo, wikipedia, github, reddit, stackoverflow, hackernews
    - 链接类: bing, google, brave, yahoo

    继承关系:
    - BaseProvider (抽象基类)
      ├── DuckDuckGoProvider / WikipediaProvider / GitHubProvider / ...
      └── SearchLinkProvider
          ├── BingProvider
          ├── GoogleProvider
          ├── BraveProvider
          └── YahooProvider
    """

    # 延迟初始化注册表（避免循环导入）
    _registry: Optional[Dict[str, Type[BaseProvider]]] = None

    @classmethod
    def _init_registry(cls):
        """延迟初始化注册表"""
        if cls._registry is None:
            from providers.api_providers import (
                DuckDuckGoProvider,
                WikipediaProvider,
                GitHubProvider,
                RedditProvider,
                StackOverflowProvider,
                HackerNewsProvider,
            )
            from providers.link_providers import BingProvider, GoogleProvider, BraveProvider, YahooProvider
            cls._registry = {
                provider.name: provider
                for provider in (
                    DuckDuckGoProvider,
                    BingProvider,
                    GoogleProvider,
                    BraveProvider,
                    YahooProvider,
                    WikipediaProvider,
                    GitHubProvider,
                    RedditProvider,
                    StackOverflowProvider,
                    HackerNewsProvider,
                )
            }

    @classmethod
    def register(cls, name: str, provider_class: Type[BaseProvider]):
        """
        注册新的搜索源

        Args:
            name: 搜索源标识
            provider_class: 搜索源类（必须继承 BaseProvider）

        Examples:
            ProviderFactory.register('mysource', MySourceProvider)
        """
        cls._init_registry()
        cls._registry[name] = provider_class
        logger.info(f"✅ 注册搜索源: {name} -> {provider_class.__name__}")

    @classmethod
    def available(cls) -> List[str]:
        """已注册的搜索源名称（注册顺序）"""
        cls._init_registry()
        return list(cls._registry.keys())

    @classmethod
    def create(cls, name: str, config: Optional[Config] = None) -> BaseProvider:
        """
        创建单个搜索源

        Raises:
            ValueError: 未知的搜索源名称
        """
        cls._init_registry()
        key = name.lower()
        if key not in cls._registry:
            raise ValueError(f"未知的搜索源: {name}，可用: {', '.join(cls._registry)}")
        return cls._registry[key](config=config or default_config)

    @classmethod
    def create_all(cls, config: Optional[Config] = None, names: Optional[List[str]] = None) -> List[BaseProvider]:
        """
        按配置顺序创建搜索源

        Args:
            config: 配置对象
            names: 搜索源名称列表，默认使用 config.search.providers

        Returns:
            搜索源实例列表（顺序即合并顺序）
        """
        final_config = config or default_config
        names = names if names is not None else final_config.search.providers
        providers = [cls.create(name, final_config) for name in names]
        logger.info(f"🏭 创建搜索源: {', '.join(p.name for p in providers)}")
        return providers
