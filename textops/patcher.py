"""补丁应用模块

解析 unified diff 格式的补丁文本，并把其中的插入和删除操作应用到文件的行数组上。

应用过程是对操作序列的一次折叠：每一步接收一个不可变的 PatchState，
返回新的 PatchState。offset 记录到目前为止插入行数减去删除行数，
后续 hunk 的起始位置以 offset 修正到已修改的行数组上。

默认不校验上下文行和删除行是否与文件当前内容一致，
与目标文件不匹配的补丁会被原样应用并可能破坏文件。
需要校验时使用 verify=True，不一致时抛出 PatchMismatchError 且文件不被修改。
"""

import logging
import re
from dataclasses import dataclass
from functools import reduce
from typing import List, NamedTuple, Optional, Tuple, Union

from textops import fs
from textops.errors import PatchMismatchError
from textops.security import validate_path


logger = logging.getLogger(__name__)


HUNK_HEADER_RE = re.compile(r'@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@')

BACKUP_SUFFIX = ".bak"


class ContextLine(NamedTuple):
    text: str


class DeleteLine(NamedTuple):
    text: str


class InsertLine(NamedTuple):
    text: str


Operation = Union[ContextLine, DeleteLine, InsertLine]


class DiffHunk(NamedTuple):
    """补丁中的一个 hunk

    Attributes:
        original_start: 原文件中的起始行号（1-based）
        new_start: 新文件中的起始行号（1-based），仅作记录
        operations: 按顺序排列的上下文、删除和插入操作
    """
    original_start: int
    new_start: int
    operations: Tuple[Operation, ...]


class Patch(NamedTuple):
    metadata: Tuple[str, ...]
    hunks: Tuple[DiffHunk, ...]


class PatchState(NamedTuple):
    """补丁应用过程中的状态

    Attributes:
        lines: 当前（已修改的）行数组
        current: 下一个操作作用的 0-based 下标
        offset: 已插入行数减去已删除行数
        added: 已插入行数
        deleted: 已删除行数
    """
    lines: Tuple[str, ...]
    current: int = 0
    offset: int = 0
    added: int = 0
    deleted: int = 0


@dataclass(frozen=True)
class PatchResult:
    success: bool
    lines_added: int
    lines_deleted: int
    backup_path: Optional[str] = None

    @property
    def lines_changed(self) -> int:
        return self.lines_added + self.lines_deleted

    def to_dict(self):
        """转换为字典格式"""
        result = {
            'success': self.success,
            'lines_changed': self.lines_changed,
            'lines_added': self.lines_added,
            'lines_deleted': self.lines_deleted,
        }
        if self.backup_path is not None:
            result['backup_path'] = self.backup_path
        return result


def _is_ignored_line(line: str) -> bool:
    # "\ No newline at end of file" 标记和文件头
    return line.startswith(('\\', '---', '+++', 'diff'))


def parse_patch(diff: str) -> Patch:
    """把补丁文本解析为 hunk 序列

    第一个 hunk 头之前的所有行作为元数据保留，不参与应用。
    末尾的空行被丢弃，以换行结尾的补丁不会多出一个空的上下文行。
    无法解析的 "@@" 行被忽略。

    Args:
        diff: unified diff 格式文本

    Returns:
        Patch: 元数据和 hunk 列表
    """
    metadata: List[str] = []
    hunks: List[DiffHunk] = []
    header: Optional[Tuple[int, int]] = None
    operations: List[Operation] = []

    raw_lines = diff.split('\n')
    while raw_lines and raw_lines[-1] == '':
        raw_lines.pop()

    for line in raw_lines:
        if line.startswith('@@'):
            match = HUNK_HEADER_RE.search(line)
            if match is None:
                continue
            if header is not None:
                hunks.append(DiffHunk(header[0], header[1], tuple(operations)))
            header = (int(match.group(1)), int(match.group(2)))
            operations = []
            continue

        if header is None:
            metadata.append(line)
            continue

        if line.startswith('-') and not line.startswith('---'):
            operations.append(DeleteLine(line[1:]))
        elif line.startswith('+') and not line.startswith('+++'):
            operations.append(InsertLine(line[1:]))
        elif not _is_ignored_line(line):
            operations.append(ContextLine(line[1:] if line.startswith(' ') else line))

    if header is not None:
        hunks.append(DiffHunk(header[0], header[1], tuple(operations)))

    return Patch(metadata=tuple(metadata), hunks=tuple(hunks))


def _check_line(state: PatchState, expected: str, kind: str) -> None:
    if state.current >= len(state.lines):
        raise PatchMismatchError(
            f"Patch {kind} line {expected!r} is beyond end of file "
            f"(line {state.current + 1}, file has {len(state.lines)} lines)"
        )
    actual = state.lines[state.current]
    if actual != expected:
        raise PatchMismatchError(
            f"Patch {kind} line mismatch at line {state.current + 1}: "
            f"expected {expected!r}, found {actual!r}"
        )


def apply_operation(state: PatchState, operation: Operation, verify: bool = False) -> PatchState:
    """应用单个操作，返回新的状态

    - 删除：删除 current 处的行（越界时不做任何事，也不计数），offset 减一
    - 插入：在 current 处插入，current 和 offset 加一
    - 上下文：current 加一
    """
    if isinstance(operation, DeleteLine):
        if verify:
            _check_line(state, operation.text, "delete")
        if state.current >= len(state.lines):
            return state
        lines = state.lines[:state.current] + state.lines[state.current + 1:]
        return state._replace(
            lines=lines,
            offset=state.offset - 1,
            deleted=state.deleted + 1,
        )

    if isinstance(operation, InsertLine):
        index = min(state.current, len(state.lines))
        lines = state.lines[:index] + (operation.text,) + state.lines[index:]
        return state._replace(
            lines=lines,
            current=index + 1,
            offset=state.offset + 1,
            added=state.added + 1,
        )

    if verify:
        _check_line(state, operation.text, "context")
    return state._replace(current=state.current + 1)


def start_hunk(state: PatchState, hunk: DiffHunk) -> PatchState:
    """把 current 定位到 hunk 在已修改行数组中的起始下标"""
    return state._replace(current=max(0, hunk.original_start - 1 + state.offset))


def apply_hunk(state: PatchState, hunk: DiffHunk, verify: bool = False) -> PatchState:
    return reduce(
        lambda s, op: apply_operation(s, op, verify),
        hunk.operations,
        start_hunk(state, hunk),
    )


def apply_hunks(lines: List[str], hunks: Tuple[DiffHunk, ...], verify: bool = False) -> PatchState:
    """按文档顺序把所有 hunk 应用到行数组上

    Raises:
        PatchMismatchError: verify=True 且补丁与当前内容不一致
    """
    return reduce(
        lambda s, hunk: apply_hunk(s, hunk, verify),
        hunks,
        PatchState(lines=tuple(lines)),
    )


def apply_diff(
    path: str,
    diff: str,
    create_backup: bool = False,
    verify: bool = False
) -> PatchResult:
    """对文件应用 unified diff 补丁

    Args:
        path: 文件路径
        diff: 补丁文本
        create_backup: 修改前把原文件逐字节复制到 "<path>.bak"
        verify: 校验上下文行和删除行

    Returns:
        PatchResult: 插入、删除行数和备份路径

    Raises:
        NotFoundError: 文件不存在
        IOFailureError / PermissionDeniedError: 备份或读写失败，文件不会被修改
        PatchMismatchError: 启用校验且补丁不匹配
    """
    file_path = fs.require_file(validate_path(path))

    backup_path = None
    if create_backup:
        backup_path = str(file_path) + BACKUP_SUFFIX
        fs.copy(file_path, backup_path)
        logger.info(f"Created backup {backup_path}")

    lines = fs.read_all_lines(file_path)
    patch = parse_patch(diff)
    state = apply_hunks(lines, patch.hunks, verify=verify)

    if list(state.lines) != lines:
        fs.write_all_lines(file_path, list(state.lines))

    logger.info(
        f"Applied {len(patch.hunks)} hunks to {file_path}: "
        f"+{state.added} -{state.deleted}"
    )

    return PatchResult(
        success=True,
        lines_added=state.added,
        lines_deleted=state.deleted,
        backup_path=backup_path,
    )
