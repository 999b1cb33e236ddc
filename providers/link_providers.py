"""
搜索链接类搜索源

这些搜索源不调用接口，只返回一条指向该搜索引擎结果页的链接
"""
from typing import List
from urllib.parse import quote

from core.models import SearchResult
from providers.base import BaseProvider


class SearchLinkProvider(BaseProvider):
    """
    搜索链接基类

    子类通过类属性描述结果页：
    - url_template: 含 {query} 占位的结果页URL
    - title_suffix: 标题后缀
    - description_template: 含 {query} 占位的摘要
    """

    url_template = ""
    title_suffix = ""
    description_template = 'Search results for "{query}"'

    async def _search(self, query: str) -> List[SearchResult]:
        return [self.make_result(
            title=f"{query} - {self.title_suffix}",
            url=self.url_template.format(query=quote(query, safe="")),
            description=self.description_template.format(query=query),
        )]


class BingProvider(SearchLinkProvider):
    name = "bing"
    engine = "Bing"
    source = "Microsoft Bing"
    icon_tag = "🔎"
    score = 8
    url_template = "https://www.bing.com/search?q={query}"
    title_suffix = "Bing Search Results"
    description_template = 'Comprehensive search results for "{query}" on Microsoft Bing'


class GoogleProvider(SearchLinkProvider):
    name = "google"
    engine = "Google"
    source = "Google"
    icon_tag = "🔍"
    score = 10
    url_template = "https://www.google.com/search?q={query}"
    title_suffix = "Google Search"
    description_template = 'The world\'s most popular search results for "{query}"'


class BraveProvider(SearchLinkProvider):
    name = "brave"
    engine = "Brave"
    source = "Brave Search"
    icon_tag = "🦁"
    score = 9
    url_template = "https://search.brave.com/search?q={query}"
    title_suffix = "Brave Search"
    description_template = 'Private, independent search results for "{query}"'


class YahooProvider(SearchLinkProvider):
    name = "yahoo"
    engine = "Yahoo"
    source = "Yahoo"
    icon_tag = "💜"
    score = 7
    url_template = "https://search.yahoo.com/search?p={query}"
    title_suffix = "Yahoo Search"
    description_template = 'Search results for "{query}" on Yahoo'
