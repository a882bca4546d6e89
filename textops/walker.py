"""目录遍历模块

提供有深度限制的递归目录遍历，在把文件交给匹配器之前
过滤隐藏条目和不符合扩展名要求的文件。
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, FrozenSet

from textops import fs
from textops.errors import TextOpsError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """遍历得到的候选文件

    Attributes:
        path: 文件完整路径
        name: 文件名
        size: 文件大小（字节）
        depth: 所在目录相对根目录的深度，根目录为 0
        mtime: 最后修改时间（Unix 时间戳，秒）
    """
    path: Path
    name: str
    size: int
    depth: int
    mtime: float = 0.0


def normalize_extensions(file_types: Optional[Iterable[str]]) -> FrozenSet[str]:
    """规范化扩展名过滤列表

    ".MD"、"md" 和 "Md" 都规范化为 "md"，空字符串被忽略。
    """
    if not file_types:
        return frozenset()
    return frozenset(
        t.strip().lstrip('.').lower()
        for t in file_types
        if t and t.strip().lstrip('.')
    )


def is_hidden(name: str) -> bool:
    return name.startswith('.')


def walk(
    root: Path,
    visit: Callable[[FileEntry], bool],
    *,
    max_depth: Optional[int],
    recursive: bool = True,
    file_types: Optional[FrozenSet[str]] = None,
    cancel: Optional[threading.Event] = None,
    include_hidden: bool = False
) -> bool:
    """遍历目录树并对每个候选文件调用 visit

    目录无法列出时（权限不足、I/O 错误等）视为没有条目，不会中断整个遍历。
    符号链接指向的目录不会被进入，所以不限制深度时遍历也一定会结束。

    Args:
        root: 根目录
        visit: 回调函数，返回 False 时立即停止整个遍历
        max_depth: 最大深度，深度达到该值的目录不再列出；None 表示不限制
        recursive: 是否进入子目录
        file_types: 规范化后的扩展名集合，空集合或 None 表示不过滤
        cancel: 可选的取消信号，被设置后遍历在下一个条目前停止
        include_hidden: 是否包含以 "." 开头的文件和目录

    Returns:
        bool: 遍历完整结束返回 True，被 visit 或取消信号中止返回 False
    """
    return _walk_directory(
        Path(root), visit, 0, max_depth, recursive,
        file_types or frozenset(), cancel, include_hidden
    )


def _walk_directory(
    directory: Path,
    visit: Callable[[FileEntry], bool],
    depth: int,
    max_depth: Optional[int],
    recursive: bool,
    file_types: FrozenSet[str],
    cancel: Optional[threading.Event],
    include_hidden: bool
) -> bool:
    if max_depth is not None and depth >= max_depth:
        return True

    try:
        entries = fs.list_entries(directory)
    except TextOpsError as e:
        logger.debug(f"Skipping unreadable directory {directory}: {e}")
        return True

    for entry in entries:
        if cancel is not None and cancel.is_set():
            logger.info(f"Walk cancelled while in {directory}")
            return False

        if not include_hidden and is_hidden(entry.name):
            continue

        try:
            entry_is_dir = entry.is_dir(follow_symlinks=False)
            entry_is_file = not entry_is_dir and entry.is_file()
        except OSError as e:
            logger.debug(f"Skipping entry {entry.path}: {e}")
            continue

        if entry_is_dir:
            if recursive:
                completed = _walk_directory(
                    Path(entry.path), visit, depth + 1, max_depth,
                    recursive, file_types, cancel, include_hidden
                )
                if not completed:
                    return False
            continue

        if not entry_is_file:
            continue

        if file_types and fs.extension(entry.name) not in file_types:
            continue

        try:
            stat_result = entry.stat()
        except OSError as e:
            logger.debug(f"Skipping entry {entry.path}: {e}")
            continue

        file_entry = FileEntry(
            path=Path(entry.path),
            name=entry.name,
            size=stat_result.st_size,
            depth=depth,
            mtime=stat_result.st_mtime,
        )
        if not visit(file_entry):
            return False

    return True
