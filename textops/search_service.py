"""搜索服务模块

协调目录遍历、匹配、内容扫描和评分，在全局限制下生成排序后的结果。
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from textops import fs
from textops.config import settings
from textops.errors import NotADirectoryError_, NotFoundError, TextOpsError
from textops.limits import SearchLimits
from textops.matcher import (
    SearchMode,
    SearchQuery,
    SearchScope,
    compile_pattern,
    compile_query,
)
from textops.scanner import MatchEntry, SkipReason, Skipped, contains_match, scan_file
from textops.scorer import calculate_score, rank_by_score
from textops.security import validate_path
from textops.walker import FileEntry, normalize_extensions, walk


logger = logging.getLogger(__name__)


class MatchType:
    FILENAME = "filename"
    CONTENT = "content"
    BOTH = "both"


@dataclass
class FileResult:
    """单个文件的搜索结果"""
    path: str
    name: str
    match_type: str
    score: int
    match_count: int
    matches: Tuple[MatchEntry, ...] = ()

    def to_dict(self):
        """转换为字典格式"""
        return {
            'path': self.path,
            'name': self.name,
            'match_type': self.match_type,
            'score': self.score,
            'match_count': self.match_count,
            'matches': [m.to_dict() for m in self.matches],
        }


@dataclass
class SearchReport:
    """内容搜索的汇总结果

    Attributes:
        results: 按评分降序排列的文件结果
        total_matches: 所有结果的匹配总数
        skipped_files: 因超过大小限制而跳过的文件数
        duration_ms: 耗时（毫秒）
        truncated: 是否因达到 max_files 提前结束
        cancelled: 是否被取消信号中止
    """
    results: List[FileResult] = field(default_factory=list)
    total_matches: int = 0
    skipped_files: int = 0
    duration_ms: int = 0
    truncated: bool = False
    cancelled: bool = False

    @property
    def total_files(self) -> int:
        return len(self.results)


@dataclass
class FileSearchReport:
    """文件搜索结果，不包含评分和上下文"""
    files: List[dict] = field(default_factory=list)
    duration_ms: int = 0
    truncated: bool = False

    @property
    def total_found(self) -> int:
        return len(self.files)


def _resolve_directory(directory: str) -> Path:
    """验证搜索根目录

    Raises:
        SecurityError: 路径不在工作区内
        NotFoundError: 目录不存在
        NotADirectoryError_: 路径不是目录
    """
    root = validate_path(directory)
    if not fs.exists(root):
        raise NotFoundError(f"Invalid directory: {directory}")
    if not fs.is_directory(root):
        raise NotADirectoryError_(f"Invalid directory: {directory}")
    return root


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


def search(
    root: Path,
    query: SearchQuery,
    limits: SearchLimits,
    cancel: Optional[threading.Event] = None
) -> SearchReport:
    """在目录树中执行带评分的搜索

    文件名匹配始终忽略大小写；内容匹配按查询的大小写设置进行。
    文件满足以下任一条件时产生结果：
    搜索范围包含文件名且文件名匹配，或搜索范围包含内容且至少有一个内容匹配。
    搜索范围包含内容时，被跳过的文件（非文本、超过大小限制、读取失败）不产生结果，
    即使文件名匹配；超过大小限制的文件计入 skipped_files。

    Args:
        root: 已验证的根目录
        query: 查询参数
        limits: 搜索限制
        cancel: 可选的取消信号

    Returns:
        SearchReport: 排序后的结果和统计信息
    """
    start_time = time.monotonic()

    content_pattern = compile_query(query)
    name_pattern = compile_pattern(query.raw_pattern, query.mode, False, query.scope)
    max_files = min(query.max_results, limits.max_files)
    if query.max_depth is None:
        max_depth = limits.max_depth
    else:
        max_depth = min(query.max_depth, limits.max_depth)

    report = SearchReport()
    results: List[FileResult] = []

    def visit(entry: FileEntry) -> bool:
        name_matched = query.scope.includes_name and name_pattern.matches_name(entry.name)

        matches: Tuple[MatchEntry, ...] = ()
        if query.scope.includes_content:
            outcome = scan_file(entry.path, entry.size, content_pattern, limits)
            if isinstance(outcome, Skipped):
                if outcome.reason is SkipReason.TOO_LARGE:
                    report.skipped_files += 1
                return True
            matches = outcome.matches

        if not name_matched and not matches:
            return True

        if name_matched and matches:
            match_type = MatchType.BOTH
        elif name_matched:
            match_type = MatchType.FILENAME
        else:
            match_type = MatchType.CONTENT

        results.append(FileResult(
            path=str(entry.path),
            name=entry.name,
            match_type=match_type,
            score=calculate_score(entry.name, query.raw_pattern, len(matches), name_matched),
            match_count=len(matches),
            matches=matches,
        ))
        report.total_matches += len(matches)

        if len(results) >= max_files:
            report.truncated = True
            return False
        return True

    walk(
        root,
        visit,
        max_depth=max_depth,
        recursive=query.recursive,
        file_types=query.file_types,
        cancel=cancel,
    )

    report.results = rank_by_score(results)
    report.cancelled = cancel is not None and cancel.is_set()
    report.duration_ms = _elapsed_ms(start_time)
    return report


def search_content(
    directory: str,
    keyword: str,
    case_sensitive: bool = False,
    file_extensions: Optional[Sequence[str]] = None,
    max_files: int = 0,
    max_file_size: int = 0,
    max_matches_per_file: int = 0,
    context_length: int = 0,
    max_depth: int = 0,
    recursive: bool = True,
    use_regex: bool = False,
    cancel: Optional[threading.Event] = None
) -> SearchReport:
    """在目录中搜索文件内容

    只返回匹配结果（行号、截断的行内容和上下文窗口），不返回完整文件内容。
    非正数的限制参数使用配置中的默认值。

    Args:
        directory: 搜索根目录
        keyword: 搜索关键词
        case_sensitive: 是否区分大小写
        file_extensions: 扩展名过滤（"md" 或 ".md" 均可）
        max_files: 最多返回的文件数
        max_file_size: 可扫描的最大文件大小（字节）
        max_matches_per_file: 每个文件最多记录的匹配数
        context_length: 匹配之后保留的上下文字符数
        max_depth: 最大遍历深度
        recursive: 是否搜索子目录
        use_regex: 把关键词作为正则表达式
        cancel: 可选的取消信号

    Returns:
        SearchReport: 按评分降序排列的结果

    Raises:
        NotFoundError / NotADirectoryError_: 目录无效
        InvalidPatternError: 正则表达式无法编译
        ValueError: 关键词为空
    """
    root = _resolve_directory(directory)
    limits = SearchLimits.resolve(
        max_files=max_files,
        max_file_size=max_file_size,
        max_matches_per_file=max_matches_per_file,
        context_length=context_length,
        max_depth=max_depth,
    )
    query = SearchQuery(
        raw_pattern=keyword,
        mode=SearchMode.REGEX if use_regex else SearchMode.LITERAL,
        case_sensitive=case_sensitive,
        scope=SearchScope.BOTH,
        file_types=normalize_extensions(file_extensions),
        max_results=limits.max_files,
        max_depth=limits.max_depth,
        recursive=recursive,
    )

    report = search(root, query, limits, cancel=cancel)

    logger.info(
        f"searchContent completed: {report.total_files} files, "
        f"{report.total_matches} matches in {report.duration_ms}ms"
    )
    return report


def _within(value: float, lower: Optional[float], upper: Optional[float]) -> bool:
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def search_files(
    directory: str,
    query: str,
    search_type: str = "name",
    file_types: Optional[Sequence[str]] = None,
    max_results: int = 100,
    recursive: bool = True,
    mode: SearchMode = SearchMode.GLOB,
    case_sensitive: bool = False,
    max_depth: Optional[int] = None,
    include_hidden: bool = False,
    min_size: Optional[int] = None,
    max_size: Optional[int] = None,
    modified_after: Optional[float] = None,
    modified_before: Optional[float] = None
) -> FileSearchReport:
    """按文件名和/或内容搜索文件

    默认把查询作为通配符模式（支持 * 和 ?，忽略大小写）。
    结果按遍历顺序返回，不计算评分。
    与内容搜索不同，这里默认不限制遍历深度。
    大小和修改时间过滤在匹配之前执行，上下界都包含在内。

    Args:
        directory: 搜索根目录
        query: 查询字符串
        search_type: "name"、"content" 或 "both"
        file_types: 扩展名过滤
        max_results: 最多返回的文件数
        recursive: 是否搜索子目录
        mode: 匹配模式
        case_sensitive: 是否区分大小写（glob 模式下忽略）
        max_depth: 最大遍历深度，None 表示不限制
        include_hidden: 是否包含以 "." 开头的文件和目录
        min_size: 最小文件大小（字节）
        max_size: 最大文件大小（字节）
        modified_after: 最早修改时间（Unix 时间戳，秒）
        modified_before: 最晚修改时间（Unix 时间戳，秒）

    Returns:
        FileSearchReport: 匹配文件的信息列表

    Raises:
        ValueError: 大小或时间范围的下界大于上界
    """
    start_time = time.monotonic()

    if min_size is not None and max_size is not None and min_size > max_size:
        raise ValueError(f"min_size ({min_size}) is greater than max_size ({max_size})")
    if (modified_after is not None and modified_before is not None
            and modified_after > modified_before):
        raise ValueError("modified_after is later than modified_before")

    root = _resolve_directory(directory)

    search_query = SearchQuery(
        raw_pattern=query,
        mode=SearchMode(mode),
        case_sensitive=case_sensitive,
        scope=SearchScope(search_type),
        file_types=normalize_extensions(file_types),
        max_results=max_results if max_results > 0 else settings.max_files,
        max_depth=max_depth if max_depth and max_depth > 0 else None,
        recursive=recursive,
    )
    pattern = compile_query(search_query)
    scope = search_query.scope

    report = FileSearchReport()

    def visit(entry: FileEntry) -> bool:
        if not _within(entry.size, min_size, max_size):
            return True
        if not _within(entry.mtime, modified_after, modified_before):
            return True

        matched = False
        if scope.includes_name:
            matched = pattern.matches_name(entry.name)
        if not matched and scope.includes_content:
            matched = contains_match(
                entry.path, entry.size, pattern, settings.files_search_max_file_size
            )

        if matched:
            try:
                report.files.append(fs.file_info(entry.path))
            except TextOpsError as e:
                logger.debug(f"Skipping file that disappeared during search: {entry.path} - {e}")
                return True

        if len(report.files) >= search_query.max_results:
            report.truncated = True
            return False
        return True

    walk(
        root,
        visit,
        max_depth=search_query.max_depth,
        recursive=search_query.recursive,
        file_types=search_query.file_types,
        include_hidden=include_hidden,
    )

    report.duration_ms = _elapsed_ms(start_time)
    logger.info(f"searchFiles completed: {report.total_found} files in {report.duration_ms}ms")
    return report
