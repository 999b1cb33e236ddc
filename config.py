"""
配置管理模块 - 聚合搜索 + 图片爬取
统一配置管理，支持环境变量与 JSON 配置文件
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
import os
import json
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# 项目根目录
BASE_DIR = Path(__file__).parent
CONFIG_DIR = BASE_DIR / "configs"

# 默认启用的搜索源（顺序即注册顺序，决定合并顺序）
DEFAULT_PROVIDERS = [
    "duckduckgo",
    "bing",
    "google",
    "brave",
    "yahoo",
    "wikipedia",
    "github",
    "reddit",
    "stackoverflow",
    "hackernews",
]

# 可爬取URL的白名单模式（百科、代码托管、讨论区、新闻/博客/文章）
DEFAULT_CRAWLABLE_PATTERNS = [
    r"wikipedia\.org",
    r"github\.com",
    r"reddit\.com",
    r"medium\.com",
    r"news\.",
    r"blog",
    r"article",
]

# 快捷搜索预设
QUICK_QUERIES: Dict[str, str] = {
    "weather": "current weather",
    "news": "breaking news today",
    "translate": "online translator",
    "calculator": "calculator tool",
}


class SearchConfig(BaseModel):
    """搜索聚合配置"""
    model_config = ConfigDict(validate_assignment=True)

    providers: List[str] = Field(default_factory=lambda: list(DEFAULT_PROVIDERS), description="启用的搜索源（按注册顺序）")
    max_results: int = Field(default=20, ge=1, le=20, description="排序后保留的最大结果数（上限20）")
    provider_timeout: Optional[float] = Field(default=10.0, description="单个搜索源超时（秒），None 表示不限制")
    discard_stale_results: bool = Field(default=True, description="丢弃已被新查询取代的会话结果")


class CrawlerConfig(BaseModel):
    """图片爬取配置"""
    model_config = ConfigDict(validate_assignment=True)

    max_targets: int = Field(default=10, ge=1, le=10, description="每个会话最多爬取的目标数（上限10）")
    crawl_delay: float = Field(default=0.5, ge=0, description="每个目标之后的固定延迟（秒）")
    extract_timeout: Optional[float] = Field(default=15.0, description="单个目标提取超时（秒），None 表示不限制")
    request_timeout: int = Field(default=10, description="HTTP 请求超时时间")
    rotate_user_agent: bool = Field(default=True, description="是否轮换UA")
    crawlable_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CRAWLABLE_PATTERNS),
        description="可爬取URL的正则白名单"
    )


class ImageConfig(BaseModel):
    """占位图片配置"""
    min_images: int = Field(default=1, ge=0, description="每个目标最少生成图片数")
    max_images: int = Field(default=4, ge=0, description="每个目标最多生成图片数")
    base_size: int = Field(default=300, description="首张图片边长（像素）")
    size_step: int = Field(default=50, description="每张图片边长递增（像素）")
    placeholder_services: List[str] = Field(
        default_factory=lambda: ["picsum.photos", "via.placeholder.com", "placehold.co"],
        description="占位图服务（轮流使用）"
    )
    fallback_icon: str = Field(default="🖼️", description="目标没有图标时使用的图标")


class LogConfig(BaseModel):
    """日志配置"""
    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: Path = Field(default=BASE_DIR / "logs", description="日志目录")
    log_file: str = Field(default="metasearch.log", description="日志文件名")
    rotation: str = Field(default="100 MB", description="日志轮转大小")
    retention: str = Field(default="30 days", description="日志保留时间")


class Config(BaseModel):
    """全局配置"""
    search: SearchConfig = Field(default_factory=SearchConfig)
    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    log: LogConfig = Field(default_factory=LogConfig)


# ============================================================================
# 配置文件加载
# ============================================================================

def load_config_file(config_file: Path) -> Dict[str, Any]:
    """
    加载 JSON 配置文件

    Args:
        config_file: 配置文件路径

    Returns:
        配置字典

    Raises:
        FileNotFoundError: 配置文件不存在
        json.JSONDecodeError: JSON格式错误
    """
    with open(config_file, 'r', encoding='utf-8') as f:
        return json.load(f)


def create_config_from_dict(data: Dict[str, Any]) -> Config:
    """
    从字典创建Config对象

    未知的顶层键会被忽略，缺失的部分使用默认值。

    Args:
        data: 配置字典

    Returns:
        Config实例
    """
    return Config(
        search=data.get("search", {}),
        crawler=data.get("crawler", {}),
        image=data.get("image", {}),
        log=data.get("log", {}),
    )


def get_named_config(name: str) -> Config:
    """
    按名称加载 configs/ 目录下的配置

    Args:
        name: 配置名称（configs/ 下的文件名，不含.json后缀）

    Returns:
        Config实例

    Raises:
        ValueError: 未知的配置名称
    """
    config_file = CONFIG_DIR / f"{name}.json"
    if not config_file.exists():
        available = ", ".join(sorted(p.stem for p in CONFIG_DIR.glob("*.json"))) if CONFIG_DIR.exists() else ""
        raise ValueError(f"未知的配置: {name}，可用: {available}")

    data = load_config_file(config_file)
    logger.info(f"✅ 加载配置: {name}")
    return create_config_from_dict(data)


# ============================================================================
# 环境变量
# ============================================================================

def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def _env_timeout(name: str, default: str) -> Optional[float]:
    """读取超时配置，0 或 none 表示不限制"""
    raw = os.getenv(name, default).strip().lower()
    if raw in ("", "0", "none", "off"):
        return None
    return float(raw)


def load_config_from_env() -> Config:
    """从环境变量加载配置"""
    config_data = {
        "search": {
            "providers": _env_list("SEARCH_PROVIDERS", DEFAULT_PROVIDERS),
            "max_results": int(os.getenv("MAX_RESULTS", "20")),
            "provider_timeout": _env_timeout("PROVIDER_TIMEOUT", "10"),
            "discard_stale_results": os.getenv("DISCARD_STALE_RESULTS", "true").lower() == "true",
        },
        "crawler": {
            "max_targets": int(os.getenv("MAX_CRAWL_TARGETS", "10")),
            "crawl_delay": float(os.getenv("CRAWL_DELAY", "0.5")),
            "extract_timeout": _env_timeout("EXTRACT_TIMEOUT", "15"),
            "request_timeout": int(os.getenv("REQUEST_TIMEOUT", "10")),
        },
        "log": {
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
    }
    return Config(**config_data)


# 全局配置实例（默认从环境变量加载）
config = load_config_from_env()
