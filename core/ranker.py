"""
结果去重与排序模块
"""
from typing import Dict, Iterable, List
from loguru import logger

from core.models import SearchResult

DEFAULT_MAX_RESULTS = 20


def dedup_key(url: str) -> str:
    """去重键：小写URL"""
    return url.lower()


def rank_results(
    candidates: Iterable[SearchResult],
    max_results: int = DEFAULT_MAX_RESULTS
) -> List[SearchResult]:
    """
    合并候选结果并排序

    规则：
    1. 缺少 url 或 title 的结果直接丢弃
    2. 同一去重键只保留分数最高的结果，分数相同时保留先出现的
    3. 按分数降序排列（同分保持首次出现的顺序），截取前 max_results 条

    纯函数，不修改输入。

    Args:
        candidates: 各搜索源合并后的候选结果
        max_results: 最多返回的结果数

    Returns:
        排序后的结果列表
    """
    best: Dict[str, SearchResult] = {}
    dropped = 0

    for result in candidates:
        if not result.has_required_fields:
            dropped += 1
            continue

        key = dedup_key(result.url)
        current = best.get(key)
        # 只有严格更高的分数才替换，保证同分时先到先得
        if current is None or result.score > current.score:
            best[key] = result

    # dict 保留插入顺序，sorted 是稳定排序
    ranked = sorted(best.values(), key=lambda r: r.score, reverse=True)[:max_results]

    logger.debug(f"🧮 排序完成: 有效 {len(best)} 条, 丢弃 {dropped} 条, 输出 {len(ranked)} 条")
    return ranked
