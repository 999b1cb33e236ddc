"""
CLI命令处理函数
"""
import json
import webbrowser
from typing import Optional
from loguru import logger

from config import Config, QUICK_QUERIES, config as default_config, get_named_config
from core.models import AggregationSession, SessionStatus
from core.pipeline import SearchPipeline
from core.progress import TqdmProgressReporter
from providers import ProviderFactory


def resolve_config(args) -> Config:
    """
    根据命令行参数生成本次运行的配置

    不修改全局配置，返回深拷贝后覆盖过参数的配置。

    Raises:
        ValueError: 未知的配置名称，或参数超出配置允许的范围
    """
    config_name = getattr(args, 'config', None)
    base = get_named_config(config_name) if config_name else default_config
    final_config = base.model_copy(deep=True)

    if getattr(args, 'providers', None):
        final_config.search.providers = [
            name.strip().lower() for name in args.providers.split(',') if name.strip()
        ]
    if getattr(args, 'max_results', None) is not None:
        final_config.search.max_results = args.max_results
    if getattr(args, 'max_targets', None) is not None:
        final_config.crawler.max_targets = args.max_targets
    if getattr(args, 'delay', None) is not None:
        final_config.crawler.crawl_delay = args.delay

    return final_config


async def handle_search(args, query: Optional[str] = None) -> Optional[AggregationSession]:
    """处理 search 子命令"""
    query = query if query is not None else args.query

    try:
        final_config = resolve_config(args)
        pipeline = SearchPipeline(final_config, navigator=webbrowser.open)
        # 提前创建搜索源，未知名称在这里报错
        pipeline.providers
    except ValueError as e:
        logger.error(f"❌ {e}")
        return None

    if not args.json:
        print(f"\n📌 命令: 聚合搜索")
        print(f"查询: {query}")
        print(f"搜索源: {', '.join(final_config.search.providers)}")

    reporter = None if args.json else TqdmProgressReporter()

    async with pipeline:
        session = await pipeline.search(query, crawl=args.images, reporter=reporter)

    if session is None:
        logger.warning("⚠️  查询为空")
        return None

    if args.json:
        print(json.dumps(session.model_dump(mode="json"), ensure_ascii=False, indent=2))
    else:
        print_results(session)
        if args.images and session.status == SessionStatus.DONE:
            print_images(session)
        print_statistics(pipeline)

    if args.open:
        _open_result(pipeline, session, args.open)

    return session


async def handle_quick(args) -> Optional[AggregationSession]:
    """处理 quick 子命令"""
    query = QUICK_QUERIES[args.preset]
    logger.info(f"⚡ 快捷搜索: {args.preset} -> {query}")
    return await handle_search(args, query=query)


async def handle_providers(args) -> None:
    """处理 providers 子命令"""
    try:
        final_config = resolve_config(args)
    except ValueError as e:
        logger.error(f"❌ {e}")
        return

    print("\n📋 已注册的搜索源:")
    for name in ProviderFactory.available():
        enabled = "✓" if name in final_config.search.providers else " "
        print(f"  [{enabled}] {name}")


def _open_result(pipeline: SearchPipeline, session: AggregationSession, index: int) -> None:
    """打开第 index 条结果（从 1 开始）"""
    if not 1 <= index <= len(session.ranked_results):
        logger.error(f"❌ 没有第 {index} 条结果（共 {len(session.ranked_results)} 条）")
        return
    pipeline.open_url(session.ranked_results[index - 1].url)


# ============================================================================
# 辅助函数
# ============================================================================

def print_results(session: AggregationSession):
    """输出搜索结果"""
    print("\n" + "=" * 60)
    if session.status == SessionStatus.ERRORED:
        print(f"⚠️  {session.error}")
        print("=" * 60)
        return

    results = session.ranked_results
    if not results:
        print(f"🔍 没有找到 \"{session.query}\" 的结果，换个关键词试试")
        print("=" * 60)
        return

    print(f"🎉 从所有搜索源找到 {len(results)} 条 \"{session.query}\" 的结果")
    for i, result in enumerate(results, 1):
        print(f"\n{i:2d}. {result.icon_tag or '🌐'} {result.title}  [{result.source}]")
        print(f"    {result.url}")
        if result.description:
            print(f"    {result.description}")
        print(f"    来自: {result.engine} (score={result.score})")
    print("=" * 60)


def print_images(session: AggregationSession):
    """输出爬取到的图片"""
    images = session.crawled_images
    print("\n🖼️  图片:")
    if not images:
        print("  😔 搜索结果中没有找到图片，换个更直观的主题试试")
        return
    for i, image in enumerate(images, 1):
        print(f"  {i:2d}. {image.icon_tag} {image.source}: {image.url}")
        print(f"      ↳ {image.source_url}")


def print_statistics(pipeline: SearchPipeline):
    """输出统计信息"""
    session = pipeline.session
    # 会话统计优先
    stats = session.dispatch_stats if session is not None and session.dispatch_stats else pipeline.dispatcher.get_stats()
    print("\n" + "=" * 60)
    print("📊 搜索统计:")
    print(f"  搜索源: {stats['total_adapters']}")
    print(f"  成功: {stats['succeeded']}")
    print(f"  失败: {stats['failed']} (超时 {stats['timed_out']})")
    print(f"  候选结果: {stats['results']}")
    if session is not None:
        print(f"  排序后结果: {len(session.ranked_results)}")
        print(f"  图片: {len(session.crawled_images)}")
    print("=" * 60)
