"""匹配器模块

把用户查询编译为正则表达式，并对文件名或文本行执行匹配。
查询在编译时确定匹配模式和搜索范围，之后对每个文件复用同一个编译结果。
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from textops.errors import InvalidPatternError


class SearchMode(str, Enum):
    """查询字符串的解释方式"""
    GLOB = "glob"
    LITERAL = "literal"
    REGEX = "regex"


class SearchScope(str, Enum):
    """匹配作用于文件名、文件内容，或两者"""
    NAME = "name"
    CONTENT = "content"
    BOTH = "both"

    @property
    def includes_name(self) -> bool:
        return self in (SearchScope.NAME, SearchScope.BOTH)

    @property
    def includes_content(self) -> bool:
        return self in (SearchScope.CONTENT, SearchScope.BOTH)


@dataclass(frozen=True)
class SearchQuery:
    """一次搜索的查询参数

    Attributes:
        raw_pattern: 原始查询字符串，不能为空
        mode: 匹配模式
        case_sensitive: 是否区分大小写（glob 模式下忽略）
        scope: 搜索范围
        file_types: 扩展名过滤，空集合表示不过滤
        max_results: 最大结果数
        max_depth: 最大遍历深度，None 表示不限制
        recursive: 是否进入子目录
    """
    raw_pattern: str
    mode: SearchMode = SearchMode.LITERAL
    case_sensitive: bool = False
    scope: SearchScope = SearchScope.BOTH
    file_types: FrozenSet[str] = field(default_factory=frozenset)
    max_results: int = 100
    max_depth: Optional[int] = 5
    recursive: bool = True

    def __post_init__(self):
        if not self.raw_pattern:
            raise ValueError("Search pattern cannot be empty")
        if self.max_results <= 0:
            raise ValueError(f"max_results must be positive, got {self.max_results}")
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")


@dataclass(frozen=True)
class CompiledPattern:
    """编译后的查询，可在多个文件之间复用"""
    regex: re.Pattern
    mode: SearchMode
    scope: SearchScope

    def matches_name(self, name: str) -> bool:
        """文件名中任意位置出现匹配即返回 True"""
        return self.regex.search(name) is not None

    def find_spans(self, line: str, limit: Optional[int] = None) -> List[Tuple[int, int]]:
        """查找一行中所有不重叠的匹配区间

        Args:
            line: 文本行
            limit: 最多返回的区间数量，None 表示不限制

        Returns:
            list: (start, end) 区间列表，按出现顺序排列
        """
        spans = []
        if limit is not None and limit <= 0:
            return spans
        for match in self.regex.finditer(line):
            # 零宽匹配没有可展示的内容
            if match.end() == match.start():
                continue
            spans.append((match.start(), match.end()))
            if limit is not None and len(spans) >= limit:
                break
        return spans


def glob_to_regex(pattern: str) -> str:
    """将通配符查询转换为正则表达式

    只转换 "."、"*" 和 "?"，其余字符原样保留。
    """
    return (
        pattern
        .replace('.', '\\.')
        .replace('*', '.*')
        .replace('?', '.')
    )


def compile_pattern(
    raw_pattern: str,
    mode: SearchMode,
    case_sensitive: bool = False,
    scope: SearchScope = SearchScope.BOTH
) -> CompiledPattern:
    """按匹配模式编译查询字符串

    Raises:
        InvalidPatternError: 查询无法编译为正则表达式
    """
    mode = SearchMode(mode)
    if mode is SearchMode.GLOB:
        # glob 模式始终忽略大小写
        source = glob_to_regex(raw_pattern)
        flags = re.IGNORECASE
    elif mode is SearchMode.LITERAL:
        source = re.escape(raw_pattern)
        flags = 0 if case_sensitive else re.IGNORECASE
    else:
        source = raw_pattern
        flags = 0 if case_sensitive else re.IGNORECASE

    try:
        regex = re.compile(source, flags)
    except re.error as e:
        raise InvalidPatternError(f"Invalid search pattern {raw_pattern!r}: {e}") from e

    return CompiledPattern(regex=regex, mode=mode, scope=SearchScope(scope))


def compile_query(query: SearchQuery) -> CompiledPattern:
    return compile_pattern(query.raw_pattern, query.mode, query.case_sensitive, query.scope)
