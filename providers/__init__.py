"""
搜索源模块

包含各种搜索源：
- BaseProvider: 搜索源基类
- SearchLinkProvider: 结果页链接类搜索源基类（Bing/Google/Brave/Yahoo）
- DuckDuckGo / Wikipedia / GitHub / Reddit / StackOverflow / HackerNews: 接口类搜索源
- ProviderFactory: 搜索源工厂
"""
from providers.base import BaseProvider, ProviderError, clean_text
from providers.link_providers import (
    SearchLinkProvider,
    BingProvider,
    GoogleProvider,
    BraveProvider,
    YahooProvider,
)
from providers.api_providers import (
    DuckDuckGoProvider,
    WikipediaProvider,
    GitHubProvider,
    RedditProvider,
    StackOverflowProvider,
    HackerNewsProvider,
)
from providers.provider_factory import ProviderFactory

__all__ = [
    'BaseProvider',
    'ProviderError',
    'clean_text',
    'SearchLinkProvider',
    'BingProvider',
    'GoogleProvider',
    'BraveProvider',
    'YahooProvider',
    'DuckDuckGoProvider',
    'WikipediaProvider',
    'GitHubProvider',
    'RedditProvider',
    'StackOverflowProvider',
    'HackerNewsProvider',
    'ProviderFactory',
]
