"""搜索限制模块"""

from dataclasses import dataclass
from typing import Optional

from textops.config import settings


@dataclass(frozen=True)
class SearchLimits:
    """一次内容搜索的全局与单文件限制

    任何一个限制达到后，对应分支的遍历立即停止，已收集的结果保留。
    """
    max_files: int
    max_file_size: int
    max_matches_per_file: int
    context_length: int
    max_depth: int

    @classmethod
    def resolve(
        cls,
        max_files: Optional[int] = None,
        max_file_size: Optional[int] = None,
        max_matches_per_file: Optional[int] = None,
        context_length: Optional[int] = None,
        max_depth: Optional[int] = None
    ) -> "SearchLimits":
        """用配置中的默认值替换未设置或非正数的限制"""
        return cls(
            max_files=_positive_or(max_files, settings.max_files),
            max_file_size=_positive_or(max_file_size, settings.max_file_size),
            max_matches_per_file=_positive_or(max_matches_per_file, settings.max_matches_per_file),
            context_length=_positive_or(context_length, settings.context_length),
            max_depth=_positive_or(max_depth, settings.max_depth),
        )


def _positive_or(value: Optional[int], default: int) -> int:
    if value is None or value <= 0:
        return default
    return value
