"""目录遍历测试

测试深度限制、隐藏文件过滤、扩展名过滤、提前停止和取消。
"""

import os
import threading

import pytest

from textops import fs
from textops.errors import PermissionDeniedError
from textops.walker import normalize_extensions, walk


@pytest.fixture
def tree(tmp_path):
    """创建测试目录树

    root/
        a.txt
        .hidden.txt
        .git/x.txt
        sub/b.md
        sub/deep/c.txt
    """
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / ".hidden.txt").write_text("hidden")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "x.txt").write_text("x")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.md").write_text("b")
    (tmp_path / "sub" / "deep").mkdir()
    (tmp_path / "sub" / "deep" / "c.txt").write_text("c")
    return tmp_path


def _collect(root, **kwargs):
    visited = []

    def visit(entry):
        visited.append(entry.name)
        return True

    completed = walk(root, visit, **kwargs)
    return visited, completed


def test_walk_skips_hidden_entries(tree):
    visited, completed = _collect(tree, max_depth=5)
    assert visited == ["a.txt", "b.md", "c.txt"]
    assert completed is True


@pytest.mark.parametrize("max_depth,expected", [
    (1, ["a.txt"]),
    (2, ["a.txt", "b.md"]),
    (3, ["a.txt", "b.md", "c.txt"]),
])
def test_walk_depth_limit(tree, max_depth, expected):
    visited, _ = _collect(tree, max_depth=max_depth)
    assert visited == expected


def test_walk_non_recursive(tree):
    visited, _ = _collect(tree, max_depth=5, recursive=False)
    assert visited == ["a.txt"]


def test_walk_extension_filter(tree):
    visited, _ = _collect(tree, max_depth=5, file_types=frozenset({"md"}))
    assert visited == ["b.md"]


def test_walk_records_depth_and_size(tree):
    entries = []
    walk(tree, lambda e: entries.append(e) or True, max_depth=5)
    by_name = {e.name: e for e in entries}
    assert by_name["a.txt"].depth == 0
    assert by_name["c.txt"].depth == 2
    assert by_name["b.md"].size == 1


def test_visit_can_stop_walk(tree):
    visited = []

    def visit(entry):
        visited.append(entry.name)
        return False

    assert walk(tree, visit, max_depth=5) is False
    assert visited == ["a.txt"]


def test_cancelled_walk_stops_immediately(tree):
    cancel = threading.Event()
    cancel.set()
    visited, completed = _collect(tree, max_depth=5, cancel=cancel)
    assert visited == []
    assert completed is False


def test_unreadable_directory_is_skipped(tree, monkeypatch):
    """目录无法列出时视为空目录，遍历继续"""
    original = fs.list_entries
    blocked = tree / "sub"

    def fake_list_entries(directory):
        if os.fspath(directory) == os.fspath(blocked):
            raise PermissionDeniedError(f"Permission denied: {directory}")
        return original(directory)

    monkeypatch.setattr(fs, "list_entries", fake_list_entries)

    visited, completed = _collect(tree, max_depth=5)
    assert visited == ["a.txt"]
    assert completed is True


def test_symlinked_directory_not_followed(tree):
    os.symlink(tree / "sub", tree / "link")
    visited, _ = _collect(tree, max_depth=5)
    assert visited.count("b.md") == 1


def test_normalize_extensions():
    assert normalize_extensions([".MD", "txt", "", " .Py "]) == frozenset({"md", "txt", "py"})
    assert normalize_extensions(None) == frozenset()


def test_walk_includes_hidden_when_requested(tree):
    visited, _ = _collect(tree, max_depth=5, include_hidden=True)
    assert visited == ["x.txt", ".hidden.txt", "a.txt", "b.md", "c.txt"]


def test_walk_without_depth_limit(tree):
    deeper = tree / "sub" / "deep" / "d1" / "d2" / "d3" / "d4" / "d5"
    deeper.mkdir(parents=True)
    (deeper / "bottom.txt").write_text("x")

    bounded, _ = _collect(tree, max_depth=5)
    unbounded, _ = _collect(tree, max_depth=None)

    assert "bottom.txt" not in bounded
    assert "bottom.txt" in unbounded


def test_walk_records_mtime(tree):
    os.utime(tree / "a.txt", (1_000_000, 1_000_000))
    entries = []
    walk(tree, lambda e: entries.append(e) or True, max_depth=1)
    assert entries[0].name == "a.txt"
    assert entries[0].mtime == 1_000_000
