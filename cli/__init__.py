"""
CLI模块

包含命令行接口相关功能：
- handlers: 命令处理函数
- commands: argparse 定义
"""
from cli.handlers import (
    handle_search,
    handle_quick,
    handle_providers,
    print_results,
    print_images,
    print_statistics,
)
from cli.commands import create_parser

__all__ = [
    'handle_search',
    'handle_quick',
    'handle_providers',
    'print_results',
    'print_images',
    'print_statistics',
    'create_parser',
]
