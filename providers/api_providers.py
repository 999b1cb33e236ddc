"""
接口类搜索源

调用各站点公开的JSON接口，把返回数据规整为 SearchResult
"""
from typing import List
from urllib.parse import quote
from loguru import logger

from core.models import SearchResult
from providers.base import BaseProvider, clean_text


class DuckDuckGoProvider(BaseProvider):
    """
    DuckDuckGo 即时答案接口

    - 有直接答案时返回一条（分数10）
    - 有百科摘要时返回一条（分数9）
    - 总是附带一条搜索结果页链接（分数8）
    """

    name = "duckduckgo"
    engine = "DuckDuckGo"
    source = "DuckDuckGo"
    icon_tag = "🦆"
    score = 8
    api_url = "https://api.duckduckgo.com/"

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "q": query,
            "format": "json",
            "no_html": 1,
            "skip_disambig": 1,
        })
        search_page = f"https://duckduckgo.com/?q={quote(query, safe='')}"

        results = []
        if data.get("Answer"):
            results.append(self.make_result(
                title=f"{query} - Direct Answer",
                url=data.get("AnswerURL") or search_page,
                description=clean_text(str(data["Answer"])),
                score=10,
            ))

        if data.get("Abstract"):
            abstract_source = data.get("AbstractSource") or ""
            results.append(self.make_result(
                title=f"{query} - {abstract_source or 'Encyclopedia'}",
                url=data.get("AbstractURL", ""),
                description=clean_text(data["Abstract"]),
                source=abstract_source or self.source,
                score=9,
            ))

        results.append(self.make_result(
            title=f"{query} - DuckDuckGo Search Results",
            url=search_page,
            description=f'Complete search results for "{query}" on DuckDuckGo',
        ))
        return results


class WikipediaProvider(BaseProvider):
    """Wikipedia opensearch 接口"""

    name = "wikipedia"
    engine = "Wikipedia API"
    source = "Wikipedia"
    icon_tag = "📚"
    score = 9
    api_url = "https://en.wikipedia.org/w/api.php"
    limit = 2

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "action": "opensearch",
            "search": query,
            "limit": self.limit,
            "format": "json",
        })
        # [查询, [标题...], [摘要...], [链接...]]
        if not isinstance(data, list) or len(data) < 4:
            logger.debug(f"⚠️  {self.name} 返回格式异常")
            return []

        titles, descriptions, urls = data[1], data[2], data[3]
        results = []
        for i, title in enumerate(titles):
            description = descriptions[i] if i < len(descriptions) else ""
            results.append(self.make_result(
                title=title,
                url=urls[i] if i < len(urls) else "",
                description=clean_text(description) or f"Wikipedia article about {title}",
            ))
        return results


class GitHubProvider(BaseProvider):
    """GitHub 仓库搜索（按 star 排序）"""

    name = "github"
    engine = "GitHub API"
    source = "GitHub"
    icon_tag = "💻"
    score = 8
    api_url = "https://api.github.com/search/repositories"
    limit = 2

    def get_headers(self):
        headers = super().get_headers()
        headers["Accept"] = "application/vnd.github+json"
        return headers

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "q": query,
            "sort": "stars",
            "per_page": self.limit,
        })

        results = []
        for repo in data.get("items", []):
            owner = (repo.get("owner") or {}).get("login", "")
            results.append(self.make_result(
                title=f"{repo.get('name', '')} - {owner}",
                url=repo.get("html_url", ""),
                description=repo.get("description") or f"GitHub repository: {repo.get('full_name', '')}",
            ))
        return results


class RedditProvider(BaseProvider):
    """Reddit 帖子搜索"""

    name = "reddit"
    engine = "Reddit API"
    source = "Reddit"
    icon_tag = "💬"
    score = 7
    api_url = "https://www.reddit.com/search.json"
    limit = 2

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "q": query,
            "limit": self.limit,
            "sort": "relevance",
        })

        results = []
        for child in (data.get("data") or {}).get("children", []):
            post = child.get("data") or {}
            permalink = post.get("permalink")
            results.append(self.make_result(
                title=clean_text(post.get("title")),
                url=f"https://reddit.com{permalink}" if permalink else "",
                description=clean_text(post.get("selftext")) or f"Reddit discussion in r/{post.get('subreddit', '')}",
            ))
        return results


class StackOverflowProvider(BaseProvider):
    """Stack Overflow 问题搜索（标题含 HTML 实体，需要清理）"""

    name = "stackoverflow"
    engine = "Stack Overflow API"
    source = "Stack Overflow"
    icon_tag = "❓"
    score = 8
    api_url = "https://api.stackexchange.com/2.3/search"
    limit = 2

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "order": "desc",
            "sort": "relevance",
            "intitle": query,
            "site": "stackoverflow",
            "pagesize": self.limit,
        })

        results = []
        for question in data.get("items", []):
            results.append(self.make_result(
                title=clean_text(question.get("title")),
                url=question.get("link", ""),
                description=f"Stack Overflow Q&A - {question.get('answer_count', 0)} answers",
            ))
        return results


class HackerNewsProvider(BaseProvider):
    """Hacker News（Algolia）故事搜索，跳过没有链接的条目"""

    name = "hackernews"
    engine = "HackerNews API"
    source = "Hacker News"
    icon_tag = "📰"
    score = 7
    api_url = "https://hn.algolia.com/api/v1/search"
    limit = 2

    async def _search(self, query: str) -> List[SearchResult]:
        data = await self.fetch_json(self.api_url, params={
            "query": query,
            "tags": "story",
            "hitsPerPage": self.limit,
        })

        results = []
        for hit in data.get("hits", []):
            if not hit.get("url") or not hit.get("title"):
                continue
            results.append(self.make_result(
                title=hit["title"],
                url=hit["url"],
                description=f"Hacker News - {hit.get('points') or 0} points",
            ))
        return results
