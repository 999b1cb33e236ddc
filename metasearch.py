"""
聚合搜索 + 图片爬取 - 命令行入口
"""
import asyncio
import sys
from typing import Optional
from loguru import logger

from config import LogConfig, config
from cli import create_parser, handle_search, handle_quick, handle_providers


def setup_logging(log_config: Optional[LogConfig] = None, verbose: bool = False):
    """
    配置日志

    Args:
        log_config: 日志配置，默认使用全局配置
        verbose: 终端输出 DEBUG 级别日志
    """
    log_config = log_config or config.log

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if verbose else log_config.log_level,
        colorize=True
    )

    log_file = log_config.log_dir / log_config.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=log_config.rotation,
        retention=log_config.retention,
        encoding="utf-8",
        level="DEBUG"
    )


async def main(argv=None):
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    if not getattr(args, 'json', False):
        print("\n" + "=" * 60)
        print("🌐 聚合搜索 + 图片爬取")
        print("=" * 60)

    # 根据子命令执行相应操作
    if args.command == 'search':
        await handle_search(args)
    elif args.command == 'quick':
        await handle_quick(args)
    elif args.command == 'providers':
        await handle_providers(args)


def run():
    """console script 入口"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
