"""
CLI命令定义（argparse）
"""
import argparse

from config import QUICK_QUERIES


def create_parser() -> argparse.ArgumentParser:
    """
    创建命令行参数解析器

    Returns:
        ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog='metasearch.py',
        description='聚合搜索 + 图片爬取',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
示例:
  # 搜索所有搜索源并爬取图片
  python metasearch.py search "rust async runtime"

  # 只搜索，不爬取图片
  python metasearch.py search "cats" --no-images

  # 指定搜索源、限速与输出格式
  python metasearch.py search "python" --providers wikipedia,github --delay 1 --json

  # 打开第 1 条结果
  python metasearch.py search "python" --no-images --open 1

  # 快捷搜索
  python metasearch.py quick weather

  # 列出搜索源
  python metasearch.py providers
        '''
    )
    parser.add_argument('--config', type=str, default=None,
                        help='配置文件名（configs/ 下，不含 .json）')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='输出调试日志')

    # 创建子命令
    subparsers = parser.add_subparsers(dest='command', help='子命令', required=True)

    # ============================================================================
    # 子命令: search - 聚合搜索
    # ============================================================================
    parser_search = subparsers.add_parser('search', help='聚合搜索所有搜索源，并从结果中爬取图片')
    parser_search.add_argument('query', type=str, help='查询字符串')
    _add_search_options(parser_search)

    # ============================================================================
    # 子命令: quick - 快捷搜索
    # ============================================================================
    parser_quick = subparsers.add_parser('quick', help='快捷搜索预设')
    parser_quick.add_argument('preset', type=str, choices=sorted(QUICK_QUERIES), help='预设名称')
    _add_search_options(parser_quick)

    # ============================================================================
    # 子命令: providers - 列出搜索源
    # ============================================================================
    subparsers.add_parser('providers', help='列出已注册的搜索源')

    return parser


def _add_search_options(parser: argparse.ArgumentParser) -> None:
    """search / quick 共用的参数"""
    parser.add_argument('--images', dest='images', action='store_true', default=True,
                        help='从结果中爬取图片（默认：启用）')
    parser.add_argument('--no-images', dest='images', action='store_false',
                        help='不爬取图片')
    parser.add_argument('--providers', type=str, default=None,
                        help='逗号分隔的搜索源名称（默认：配置中的全部）')
    parser.add_argument('--max-results', type=int, default=None,
                        help='最多保留的结果数')
    parser.add_argument('--max-targets', type=int, default=None,
                        help='最多爬取的网站数')
    parser.add_argument('--delay', type=float, default=None,
                        help='每个网站之后的延迟（秒）')
    parser.add_argument('--open', type=int, default=None, metavar='N',
                        help='在浏览器中打开第 N 条结果')
    parser.add_argument('--json', action='store_true',
                        help='以 JSON 输出结果')
