"""Pydantic 数据模型

定义 API 请求和响应的数据模型。
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from textops.matcher import SearchMode


# ============ 搜索 ============

class MatchEntry(BaseModel):
    """单个内容匹配"""
    line_number: int = Field(..., ge=1, description="行号（从 1 开始）")
    line_content: str = Field(..., description="行内容，超过 200 字符时截断")
    context: str = Field(..., description="匹配附近的上下文")
    match_start: int = Field(..., description="匹配在上下文中的起始偏移")
    match_end: int = Field(..., description="匹配在上下文中的结束偏移")


class FileResult(BaseModel):
    """单个文件的内容搜索结果"""
    path: str = Field(..., description="文件完整路径")
    name: str = Field(..., description="文件名")
    match_type: Literal["filename", "content", "both"] = Field(..., description="匹配类型")
    score: int = Field(..., description="相关性评分")
    match_count: int = Field(..., description="匹配数量")
    matches: List[MatchEntry] = Field(default_factory=list, description="匹配列表")


class SearchContentRequest(BaseModel):
    """内容搜索请求

    限制参数为 0 或负数时使用服务端默认值。
    """
    directory: str = Field(..., min_length=1, description="搜索根目录")
    keyword: str = Field(..., min_length=1, description="搜索关键词")
    case_sensitive: bool = Field(False, description="是否区分大小写")
    file_extensions: List[str] = Field(default_factory=list, description="扩展名过滤")
    max_files: int = Field(0, description="最多返回的文件数")
    max_file_size: int = Field(0, description="可扫描的最大文件大小（字节）")
    max_matches_per_file: int = Field(0, description="每个文件最多记录的匹配数")
    context_length: int = Field(0, description="匹配之后保留的上下文字符数")
    max_depth: int = Field(0, description="最大遍历深度")
    recursive: bool = Field(True, description="是否搜索子目录")
    use_regex: bool = Field(False, description="把关键词作为正则表达式")


class SearchContentResponse(BaseModel):
    """内容搜索响应"""
    results: List[FileResult] = Field(..., description="按评分降序排列的结果")
    total_files: int = Field(..., description="结果文件数")
    total_matches: int = Field(..., description="匹配总数")
    duration: int = Field(..., description="耗时（毫秒）")
    skipped_files: int = Field(..., description="因超过大小限制而跳过的文件数")
    truncated: bool = Field(..., description="是否因达到最大文件数提前结束")


class SearchFilesRequest(BaseModel):
    """文件搜索请求"""
    directory: str = Field(..., min_length=1, description="搜索根目录")
    query: str = Field(..., min_length=1, description="查询字符串，默认按通配符解释")
    search_type: Literal["name", "content", "both"] = Field("name", description="搜索范围")
    file_types: List[str] = Field(default_factory=list, description="扩展名过滤")
    max_results: int = Field(100, ge=1, le=10000, description="最多返回的文件数")
    recursive: bool = Field(True, description="是否搜索子目录")
    mode: SearchMode = Field(SearchMode.GLOB, description="匹配模式")
    case_sensitive: bool = Field(False, description="是否区分大小写（glob 模式下忽略）")
    max_depth: Optional[int] = Field(None, ge=1, description="最大遍历深度，不传表示不限制")
    include_hidden: bool = Field(False, description="是否包含隐藏文件和目录")
    min_size: Optional[int] = Field(None, ge=0, description="最小文件大小（字节）")
    max_size: Optional[int] = Field(None, ge=0, description="最大文件大小（字节）")
    modified_after: Optional[float] = Field(None, description="最早修改时间（Unix 时间戳，秒）")
    modified_before: Optional[float] = Field(None, description="最晚修改时间（Unix 时间戳，秒）")


class FileInfo(BaseModel):
    name: str
    path: str
    size: int
    type: Literal["file", "directory"]
    mtime: float
    is_hidden: bool
    mime_type: Optional[str] = None


class SearchFilesResponse(BaseModel):
    files: List[FileInfo] = Field(..., description="匹配的文件")
    total_found: int = Field(..., description="匹配文件数")
    truncated: bool = Field(False, description="是否因达到最大结果数提前结束")
    search_time: int = Field(0, description="耗时（毫秒）")


# ============ 编辑 ============

class ReadRangeRequest(BaseModel):
    path: str = Field(..., min_length=1, description="文件路径")
    start_line: int = Field(..., description="起始行（1-based，包含）")
    end_line: int = Field(..., description="结束行（1-based，包含）")
    algorithm: Optional[str] = Field(None, description="范围哈希算法（md5 或 sha256）")


class ReadRangeResponse(BaseModel):
    """行范围读取响应

    range_hash 用于在后续写入前确认该范围没有被其他调用修改。
    """
    content: str
    total_lines: int
    start_line: int
    end_line: int
    range_hash: str


class InsertRequest(BaseModel):
    path: str = Field(..., min_length=1, description="文件路径")
    line: int = Field(..., description="插入位置（1-based）")
    content: str = Field(..., description="要插入的文本")


class InsertResponse(BaseModel):
    success: bool
    lines_inserted: int
    insert_line: int
    total_lines: int


class ReplaceRequest(BaseModel):
    path: str = Field(..., min_length=1, description="文件路径")
    search: str = Field(..., min_length=1, description="查找内容")
    replace: str = Field(..., description="替换内容")
    is_regex: bool = Field(False, description="查找内容是否为正则表达式")
    replace_all: bool = Field(True, description="是否替换全部出现")
    case_sensitive: bool = Field(True, description="是否区分大小写")


class ReplaceResponse(BaseModel):
    replacements: int
    modified: bool


class ApplyDiffRequest(BaseModel):
    path: str = Field(..., min_length=1, description="文件路径")
    diff: str = Field(..., description="unified diff 格式的补丁")
    create_backup: bool = Field(False, description="修改前创建 .bak 备份")
    verify: bool = Field(False, description="校验上下文行和删除行")


class ApplyDiffResponse(BaseModel):
    success: bool
    lines_changed: int
    lines_added: int
    lines_deleted: int
    backup_path: Optional[str] = None


class FileHashResponse(BaseModel):
    hash: str
    algorithm: str


class LineCountResponse(BaseModel):
    lines: int


class ErrorResponse(BaseModel):
    """错误响应模型

    统一的错误响应格式。
    """
    error: str = Field(..., description="错误类型")
    detail: str = Field(..., description="错误详细信息")
    timestamp: datetime = Field(default_factory=datetime.now, description="错误发生时间")
