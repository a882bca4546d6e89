"""内容扫描模块

逐行扫描单个文本文件，收集匹配位置并为每个匹配构建有界的上下文窗口。
读取失败不会抛出异常，而是返回 Skipped 结果，由调用方把文件排除在结果之外。
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple, Union

from textops import fs
from textops.limits import SearchLimits
from textops.matcher import CompiledPattern


logger = logging.getLogger(__name__)


# 内容搜索支持的文本文件扩展名
TEXT_EXTENSIONS = frozenset({
    'txt', 'md', 'json', 'xml', 'html', 'css', 'js', 'ts', 'java',
    'kt', 'swift', 'py', 'rb', 'go', 'rs', 'c', 'cpp', 'h',
    'yml', 'yaml', 'ini', 'conf', 'log', 'sh',
})

LINE_CONTENT_MAX_LENGTH = 200
CONTEXT_LEAD_CHARS = 2
ELLIPSIS = "..."


class SkipReason(str, Enum):
    NOT_TEXT = "not_text"
    TOO_LARGE = "too_large"
    READ_ERROR = "read_error"


@dataclass(frozen=True)
class MatchEntry:
    """一次匹配的展示信息

    Attributes:
        line_number: 行号，从 1 开始
        line_content: 行内容，超过 200 字符时截断并追加 "..."
        context: 匹配附近的上下文窗口
        match_start: 匹配在 context 中的起始偏移
        match_end: 匹配在 context 中的结束偏移
    """
    line_number: int
    line_content: str
    context: str
    match_start: int
    match_end: int

    def to_dict(self):
        """转换为字典格式"""
        return {
            'line_number': self.line_number,
            'line_content': self.line_content,
            'context': self.context,
            'match_start': self.match_start,
            'match_end': self.match_end,
        }


@dataclass(frozen=True)
class Found:
    matches: Tuple[MatchEntry, ...]


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason


ScanOutcome = Union[Found, Skipped]


def is_text_file(name: str, use_mime: bool = False) -> bool:
    """判断文件是否按文本处理

    Args:
        name: 文件名
        use_mime: 为 True 时 MIME 类型以 text/ 开头的文件也视为文本
    """
    if fs.extension(name) in TEXT_EXTENSIONS:
        return True
    return use_mime and fs.mime_type(name).startswith('text/')


def build_match_entry(
    line: str,
    line_number: int,
    start: int,
    end: int,
    context_length: int
) -> MatchEntry:
    """为一行中的单个匹配构建 MatchEntry

    上下文窗口从匹配前两个字符开始，到匹配后 context_length 个字符结束。
    窗口不从行首开始时加上 "..." 前缀，偏移量同步后移。
    """
    context_start = max(0, start - CONTEXT_LEAD_CHARS)
    context_end = min(len(line), end + context_length)

    prefix = ELLIPSIS if context_start > 0 else ""
    context = prefix + line[context_start:context_end]

    adjusted_start = start - context_start + len(prefix)
    adjusted_end = adjusted_start + (end - start)

    if len(line) > LINE_CONTENT_MAX_LENGTH:
        line_content = line[:LINE_CONTENT_MAX_LENGTH] + ELLIPSIS
    else:
        line_content = line

    return MatchEntry(
        line_number=line_number,
        line_content=line_content,
        context=context,
        match_start=adjusted_start,
        match_end=adjusted_end,
    )


def scan_file(
    path: Path,
    size: int,
    pattern: CompiledPattern,
    limits: SearchLimits
) -> ScanOutcome:
    """扫描单个文件的内容

    Args:
        path: 文件路径
        size: 文件大小（字节），用于在打开文件前判断是否跳过
        pattern: 编译后的查询
        limits: 搜索限制

    Returns:
        ScanOutcome: Found（可能为空匹配列表）或 Skipped
    """
    if not is_text_file(path.name):
        return Skipped(SkipReason.NOT_TEXT)

    if size > limits.max_file_size:
        logger.debug(f"Skipped large file: {path} ({size} bytes)")
        return Skipped(SkipReason.TOO_LARGE)

    matches = []
    budget = limits.max_matches_per_file
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            for line_number, raw_line in enumerate(f, start=1):
                line = raw_line[:-1] if raw_line.endswith('\n') else raw_line
                for start, end in pattern.find_spans(line, budget - len(matches)):
                    matches.append(
                        build_match_entry(line, line_number, start, end, limits.context_length)
                    )
                if len(matches) >= budget:
                    break
    except OSError as e:
        logger.warning(f"Failed to search in file: {path} - {e}")
        return Skipped(SkipReason.READ_ERROR)

    return Found(tuple(matches))


def contains_match(path: Path, size: int, pattern: CompiledPattern, max_file_size: int) -> bool:
    """判断文件内容中是否存在至少一个匹配

    用于不需要上下文和评分的文件搜索，文本判断同时接受 text/* MIME 类型。
    """
    if not is_text_file(path.name, use_mime=True):
        return False

    if size > max_file_size:
        return False

    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            for raw_line in f:
                line = raw_line[:-1] if raw_line.endswith('\n') else raw_line
                if pattern.find_spans(line, 1):
                    return True
    except OSError as e:
        logger.warning(f"Failed to read file for content search: {path} - {e}")

    return False
