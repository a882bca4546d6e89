"""文件系统访问模块

搜索引擎和编辑器访问磁盘的唯一入口。
所有底层 OSError 都会转换为 textops.errors 中的类型化错误，
由调用方决定是降级处理（搜索）还是直接中止（编辑）。
"""

import logging
import mimetypes
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from textops.errors import (
    IOFailureError,
    NotAFileError,
    NotFoundError,
    PermissionDeniedError,
)


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@contextmanager
def translate_os_errors(path: PathLike) -> Iterator[None]:
    """将 OSError 转换为类型化错误

    Args:
        path: 出错时写入错误信息的路径
    """
    try:
        yield
    except FileNotFoundError as e:
        raise NotFoundError(f"File does not exist: {path}") from e
    except IsADirectoryError as e:
        raise NotAFileError(f"Path is a directory, not a file: {path}") from e
    except PermissionError as e:
        raise PermissionDeniedError(f"Permission denied: {path}") from e
    except UnicodeDecodeError as e:
        raise IOFailureError(f"File is not valid UTF-8 text: {path}") from e
    except OSError as e:
        raise IOFailureError(f"I/O error on {path}: {e}") from e


def exists(path: PathLike) -> bool:
    return os.path.exists(path)


def is_directory(path: PathLike) -> bool:
    return os.path.isdir(path)


def extension(name: str) -> str:
    """获取文件扩展名（小写，不含点）

    以点开头且没有其他点的名称（例如 ".bashrc"）和以点结尾的名称没有扩展名。
    """
    last_dot = name.rfind('.')
    if 0 < last_dot < len(name) - 1:
        return name[last_dot + 1:].lower()
    return ""


def mime_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def list_entries(directory: PathLike) -> List[os.DirEntry]:
    """列出目录条目，按名称排序

    排序保证遍历顺序在不同平台上一致，评分相同的结果因此有稳定的先后顺序。

    Raises:
        NotFoundError / PermissionDeniedError / IOFailureError: 目录无法读取
    """
    with translate_os_errors(directory):
        with os.scandir(directory) as it:
            entries = list(it)
    entries.sort(key=lambda entry: entry.name)
    return entries


def require_file(path: PathLike) -> Path:
    """确认路径存在且是普通文件

    Raises:
        NotFoundError: 路径不存在
        NotAFileError: 路径不是普通文件
    """
    file_path = Path(path)
    if not file_path.exists():
        raise NotFoundError(f"File does not exist: {path}")
    if not file_path.is_file():
        raise NotAFileError(f"Path is not a regular file: {path}")
    return file_path


def read_all_text(path: PathLike) -> str:
    """按 UTF-8 读取完整文本，不做换行符转换"""
    with translate_os_errors(path):
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()


def write_all_text(path: PathLike, text: str) -> None:
    with translate_os_errors(path):
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(text)


def split_lines(text: str) -> List[str]:
    """把文本拆分为行数组

    \\r\\n 和 \\r 统一视为换行；末尾的单个换行不会产生额外的空行，
    空文本对应空数组。
    """
    if not text:
        return []
    normalized = text.replace('\r\n', '\n').replace('\r', '\n')
    if normalized.endswith('\n'):
        normalized = normalized[:-1]
    return normalized.split('\n')


def join_lines(lines: List[str]) -> str:
    return '\n'.join(lines)


def read_all_lines(path: PathLike) -> List[str]:
    return split_lines(read_all_text(path))


def write_all_lines(path: PathLike, lines: List[str]) -> None:
    """写入行数组，行之间以 \\n 分隔，最后一行之后不追加换行"""
    write_all_text(path, join_lines(lines))


def copy(src: PathLike, dst: PathLike) -> None:
    """逐字节复制文件"""
    with translate_os_errors(src):
        shutil.copyfile(src, dst)


def file_info(path: PathLike) -> dict:
    """构建文件信息字典

    Returns:
        dict: 包含 name、path、size、type、mtime、is_hidden、mime_type
    """
    file_path = Path(path)
    with translate_os_errors(path):
        stat_result = file_path.stat()
    is_dir = file_path.is_dir()
    info = {
        'name': file_path.name,
        'path': str(file_path.absolute()),
        'size': stat_result.st_size,
        'type': 'directory' if is_dir else 'file',
        'mtime': stat_result.st_mtime,
        'is_hidden': file_path.name.startswith('.'),
    }
    if not is_dir:
        info['mime_type'] = mime_type(file_path.name)
    return info
