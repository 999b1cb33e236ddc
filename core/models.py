"""
数据模型模块

搜索结果在流水线中流转所用的记录类型：
- SearchResult: 单条搜索结果（去重键为小写URL）
- ImageDescriptor: 从搜索结果中提取出的图片
- CrawlProgress / CrawlSummary: 爬取进度与最终汇总
- AggregationSession: 一次查询的完整生命周期状态
"""
from enum import Enum
from typing import List, Optional, Dict, Set
from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """单条搜索结果"""
    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="标题")
    url: str = Field(default="", description="结果URL（去重键，忽略大小写）")
    description: str = Field(default="", description="摘要")
    source: str = Field(default="", description="来源站点名称")
    engine: str = Field(default="", description="提供结果的搜索源")
    icon_tag: str = Field(default="", description="展示用图标")
    score: int = Field(default=0, description="搜索源给出的相关度分数")

    @property
    def has_required_fields(self) -> bool:
        """url 与 title 均非空"""
        return bool(self.url) and bool(self.title)


# 被选中进行图片提取的搜索结果，对提取器只读
CrawlTarget = SearchResult


class ImageDescriptor(BaseModel):
    """提取到的图片"""
    model_config = ConfigDict(frozen=True)

    url: str = Field(description="图片URL")
    title: str = Field(default="", description="图片标题")
    source: str = Field(default="", description="来源站点名称")
    source_url: str = Field(default="", description="来源搜索结果的URL（用于点击跳转）")
    icon_tag: str = Field(default="", description="展示用图标")


class CrawlProgress(BaseModel):
    """爬取进度（每个目标处理前发出）"""
    done: int = Field(ge=0, description="已处理目标数")
    total: int = Field(ge=0, description="计划目标总数")
    current_label: str = Field(default="", description="当前目标的来源名称")

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.done / self.total * 100


class CrawlSummary(BaseModel):
    """爬取结束时的汇总"""
    image_count: int = 0
    site_count: int = 0
    targets_total: int = 0
    targets_failed: int = 0
    label: str = ""
    # 会话被新查询取代时提前结束
    cancelled: bool = False

    @property
    def found_images(self) -> bool:
        return self.image_count > 0


class SessionStatus(str, Enum):
    """会话状态（只能前进）"""
    IDLE = "idle"
    SEARCHING = "searching"
    RANKED = "ranked"
    CRAWLING = "crawling"
    DONE = "done"
    ERRORED = "errored"


_ALLOWED_TRANSITIONS: Dict[SessionStatus, Set[SessionStatus]] = {
    SessionStatus.IDLE: {SessionStatus.SEARCHING},
    SessionStatus.SEARCHING: {SessionStatus.RANKED, SessionStatus.ERRORED},
    SessionStatus.RANKED: {SessionStatus.CRAWLING},
    SessionStatus.CRAWLING: {SessionStatus.DONE},
    SessionStatus.DONE: set(),
    SessionStatus.ERRORED: set(),
}


class InvalidStatusTransition(RuntimeError):
    """会话状态非法回退或跳转"""


class AggregationSession(BaseModel):
    """
    一次查询的会话状态

    由流水线驱动方独占持有，提交新查询时被替换。
    crawled_images 按发现顺序追加，一旦非空即视为已缓存。
    """
    query: str = ""
    generation: int = 0
    ranked_results: List[SearchResult] = Field(default_factory=list)
    crawled_images: List[ImageDescriptor] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.IDLE
    error: Optional[str] = None
    # 本次查询的分发统计
    dispatch_stats: Dict[str, int] = Field(default_factory=dict)

    def advance(self, new_status: SessionStatus) -> None:
        """
        推进会话状态

        Raises:
            InvalidStatusTransition: 目标状态不是当前状态的合法后继
        """
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"会话状态不能从 {self.status.value} 变为 {new_status.value}"
            )
        self.status = new_status

    @property
    def is_finished(self) -> bool:
        return self.status in (SessionStatus.DONE, SessionStatus.ERRORED)
