"""行编辑模块

提供面向行的文件编辑操作：读取行范围、插入内容、查找替换、
计算文件哈希和统计行数。

每个操作在修改前完成全部校验，失败时抛出类型化错误，文件保持不变。
同一文件上的并发调用没有互斥保护，需要由调用方按路径串行化。
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from textops import fs
from textops.config import SUPPORTED_HASH_ALGORITHMS, settings
from textops.errors import InvalidPatternError, InvalidRangeError, UnsupportedAlgorithmError
from textops.security import validate_path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RangeRead:
    """行范围读取结果"""
    content: str
    total_lines: int
    start_line: int
    end_line: int
    range_hash: str

    def to_dict(self):
        """转换为字典格式"""
        return {
            'content': self.content,
            'total_lines': self.total_lines,
            'start_line': self.start_line,
            'end_line': self.end_line,
            'range_hash': self.range_hash,
        }


@dataclass(frozen=True)
class InsertResult:
    lines_inserted: int
    insert_line: int
    total_lines: int


@dataclass(frozen=True)
class ReplaceResult:
    replacements: int
    modified: bool


def normalize_algorithm(algorithm: Optional[str]) -> str:
    """规范化哈希算法名称

    接受 "md5"、"sha256" 以及 "SHA-256" 之类的写法。

    Raises:
        UnsupportedAlgorithmError: 算法不受支持
    """
    if algorithm is None:
        return settings.default_hash_algorithm
    normalized = algorithm.strip().lower().replace('-', '')
    if normalized not in SUPPORTED_HASH_ALGORITHMS:
        raise UnsupportedAlgorithmError(f"Hash algorithm not supported: {algorithm}")
    return normalized


def calculate_hash(content: str, algorithm: Optional[str] = None) -> str:
    """计算文本的十六进制摘要（UTF-8 编码）"""
    digest = hashlib.new(normalize_algorithm(algorithm))
    digest.update(content.encode('utf-8'))
    return digest.hexdigest()


def _open_file(path: str) -> Path:
    return fs.require_file(validate_path(path))


# ============ 纯行数组操作 ============

def clamp_range(total_lines: int, start_line: int, end_line: int):
    """把 1-based 行范围裁剪到 [1, total_lines]

    Returns:
        tuple: (start_line, end_line)

    Raises:
        InvalidRangeError: 裁剪后起始行大于结束行，或起始行超出总行数
    """
    start_line = max(1, start_line)
    end_line = min(total_lines, end_line)

    if start_line > end_line or start_line > total_lines:
        raise InvalidRangeError(f"Invalid line range: {start_line}-{end_line}")

    return start_line, end_line


def extract_range(lines: List[str], start_line: int, end_line: int) -> str:
    return fs.join_lines(lines[start_line - 1:end_line])


def insert_lines(lines: List[str], line: int, content: str):
    """在 1-based 行号之前插入内容，返回新的行数组和实际插入下标

    插入下标裁剪到 [0, len(lines)]。内容按 "\\n" 拆分并保留末尾的空段，
    所以 "X\\n" 会插入 "X" 和一个空行。
    """
    insert_index = max(0, min(len(lines), line - 1))
    new_lines = content.split('\n')
    return lines[:insert_index] + new_lines + lines[insert_index:], insert_index


def replace_text(
    content: str,
    search: str,
    replace: str,
    is_regex: bool = False,
    replace_all: bool = True,
    case_sensitive: bool = True
):
    """在完整文本上执行查找替换

    字面量模式下替换串按原样插入；正则模式下替换串支持 \\1、\\g<name> 等分组引用。
    返回的替换次数等于实际执行的替换次数，
    对于忽略大小写的字面量替换即为不重叠的忽略大小写出现次数。

    Returns:
        tuple: (新文本, 替换次数)

    Raises:
        ValueError: 查找串为空
        InvalidPatternError: 正则表达式或替换模板无效
    """
    if not search:
        raise ValueError("Search string cannot be empty")

    flags = 0 if case_sensitive else re.IGNORECASE
    count = 0 if replace_all else 1

    try:
        if is_regex:
            pattern = re.compile(search, flags)
            return pattern.subn(replace, content, count=count)

        pattern = re.compile(re.escape(search), flags)
        return pattern.subn(lambda match: replace, content, count=count)
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern or replacement: {e}") from e


# ============ 文件操作 ============

def read_file_range(
    path: str,
    start_line: int,
    end_line: int,
    algorithm: Optional[str] = None
) -> RangeRead:
    """读取文件指定行范围

    Args:
        path: 文件路径
        start_line: 起始行（1-based，包含）
        end_line: 结束行（1-based，包含）
        algorithm: 范围哈希算法，默认使用配置值（md5）

    Returns:
        RangeRead: 内容、总行数、实际使用的行范围和内容哈希

    Raises:
        NotFoundError: 文件不存在
        InvalidRangeError: 行范围无效
    """
    file_path = _open_file(path)
    lines = fs.read_all_lines(file_path)
    total_lines = len(lines)

    start_line, end_line = clamp_range(total_lines, start_line, end_line)
    content = extract_range(lines, start_line, end_line)

    return RangeRead(
        content=content,
        total_lines=total_lines,
        start_line=start_line,
        end_line=end_line,
        range_hash=calculate_hash(content, algorithm),
    )


def insert_content(path: str, line: int, content: str) -> InsertResult:
    """在指定行插入内容

    Args:
        path: 文件路径
        line: 插入位置（1-based），新内容出现在原第 line 行之前
        content: 要插入的文本，可包含多行

    Raises:
        NotFoundError: 文件不存在
    """
    file_path = _open_file(path)
    lines = fs.read_all_lines(file_path)

    new_lines, insert_index = insert_lines(lines, line, content)
    fs.write_all_lines(file_path, new_lines)

    inserted = len(new_lines) - len(lines)
    logger.info(f"Inserted {inserted} lines into {file_path} at line {insert_index + 1}")

    return InsertResult(
        lines_inserted=inserted,
        insert_line=insert_index + 1,
        total_lines=len(new_lines),
    )


def replace_in_file(
    path: str,
    search: str,
    replace: str,
    is_regex: bool = False,
    replace_all: bool = True,
    case_sensitive: bool = True
) -> ReplaceResult:
    """查找并替换文件内容

    只有在内容实际发生变化时才写回文件。
    """
    file_path = _open_file(path)
    content = fs.read_all_text(file_path)

    new_content, replacements = replace_text(
        content, search, replace,
        is_regex=is_regex,
        replace_all=replace_all,
        case_sensitive=case_sensitive,
    )

    modified = new_content != content
    if modified:
        fs.write_all_text(file_path, new_content)
        logger.info(f"Replaced {replacements} occurrences in {file_path}")

    return ReplaceResult(replacements=replacements, modified=modified)


def get_file_hash(path: str, algorithm: Optional[str] = None) -> dict:
    """获取文件内容哈希

    Raises:
        UnsupportedAlgorithmError: 算法不受支持
    """
    normalized = normalize_algorithm(algorithm)
    file_path = _open_file(path)
    content = fs.read_all_text(file_path)
    return {'hash': calculate_hash(content, normalized), 'algorithm': normalized}


def get_line_count(path: str) -> int:
    file_path = _open_file(path)
    return len(fs.read_all_lines(file_path))
