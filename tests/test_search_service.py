"""搜索服务功能测试

测试内容搜索（评分、限制、过滤）和文件搜索。
"""

import os
import threading

import pytest

from textops.errors import InvalidPatternError, NotADirectoryError_, NotFoundError
from textops.search_service import search_content, search_files


@pytest.fixture
def docs_dir(tmp_path):
    """创建测试目录

    a.txt 包含 "hello world"，b.md 包含 "hello"，隐藏文件 .c.txt 包含 "hello"。
    """
    d = tmp_path / "d"
    d.mkdir()
    (d / "a.txt").write_text("hello world")
    (d / "b.md").write_text("hello")
    (d / ".c.txt").write_text("hello")
    return d


class TestSearchFiles:
    """测试文件搜索"""

    def test_content_search_excludes_hidden(self, docs_dir):
        report = search_files(str(docs_dir), "hello", "content", [], 100, True)

        names = {f['name'] for f in report.files}
        assert names == {"a.txt", "b.md"}
        assert report.total_found == 2

    def test_name_glob(self, docs_dir):
        report = search_files(str(docs_dir), "*.md", "name", [], 100, True)
        assert [f['name'] for f in report.files] == ["b.md"]

    def test_both_matches_name_or_content(self, docs_dir):
        (docs_dir / "world.log").write_text("nothing")
        report = search_files(str(docs_dir), "world", "both", [], 100, True)
        assert {f['name'] for f in report.files} == {"a.txt", "world.log"}

    def test_file_type_filter(self, docs_dir):
        report = search_files(str(docs_dir), "hello", "content", [".txt"], 100, True)
        assert [f['name'] for f in report.files] == ["a.txt"]

    def test_max_results(self, docs_dir):
        report = search_files(str(docs_dir), "hello", "content", [], 1, True)
        assert report.total_found == 1
        assert report.truncated is True

    def test_file_info_fields(self, docs_dir):
        report = search_files(str(docs_dir), "a.txt", "name", [], 100, True)
        info = report.files[0]
        assert info['path'] == str(docs_dir / "a.txt")
        assert info['size'] == len("hello world")
        assert info['type'] == "file"
        assert info['is_hidden'] is False
        assert info['mime_type'] == "text/plain"

    def test_invalid_directory(self, tmp_path):
        with pytest.raises(NotFoundError):
            search_files(str(tmp_path / "missing"), "x")

    def test_include_hidden(self, docs_dir):
        report = search_files(str(docs_dir), "hello", "content", include_hidden=True)

        by_name = {f['name']: f for f in report.files}
        assert set(by_name) == {"a.txt", "b.md", ".c.txt"}
        assert by_name[".c.txt"]['is_hidden'] is True

    def test_size_filter(self, docs_dir):
        """大小过滤的上下界都包含在内"""
        report = search_files(str(docs_dir), "*", "name", min_size=5, max_size=5)
        assert [f['name'] for f in report.files] == ["b.md"]

        report = search_files(str(docs_dir), "*", "name", min_size=6)
        assert [f['name'] for f in report.files] == ["a.txt"]

    def test_modified_time_filter(self, docs_dir):
        os.utime(docs_dir / "a.txt", (1_000, 1_000))
        os.utime(docs_dir / "b.md", (5_000, 5_000))

        older = search_files(str(docs_dir), "*", "name", modified_before=2_000)
        newer = search_files(str(docs_dir), "*", "name", modified_after=2_000)
        both = search_files(
            str(docs_dir), "*", "name", modified_after=1_000, modified_before=5_000
        )

        assert [f['name'] for f in older.files] == ["a.txt"]
        assert [f['name'] for f in newer.files] == ["b.md"]
        assert [f['name'] for f in both.files] == ["a.txt", "b.md"]

    def test_inverted_ranges_rejected(self, docs_dir):
        with pytest.raises(ValueError):
            search_files(str(docs_dir), "*", min_size=10, max_size=1)
        with pytest.raises(ValueError):
            search_files(str(docs_dir), "*", modified_after=10, modified_before=1)

    def test_no_depth_limit_by_default(self, docs_dir):
        nested = docs_dir.joinpath(*[f"level{i}" for i in range(8)])
        nested.mkdir(parents=True)
        (nested / "bottom.txt").write_text("x")

        unbounded = search_files(str(docs_dir), "bottom.txt")
        bounded = search_files(str(docs_dir), "bottom.txt", max_depth=3)

        assert unbounded.total_found == 1
        assert bounded.total_found == 0

    def test_duration_reported(self, docs_dir):
        report = search_files(str(docs_dir), "*.md")
        assert report.duration_ms >= 0


class TestSearchContent:
    """测试内容搜索"""

    def test_ranking_by_score(self, docs_dir):
        (docs_dir / "hello.md").write_text("hello\nhello again\nHELLO")

        report = search_content(str(docs_dir), "hello")

        assert [r.name for r in report.results][0] == "hello.md"
        top = report.results[0]
        assert top.score == 256
        assert top.match_type == "both"
        assert top.match_count == 3
        assert report.total_matches == 3 + 1 + 1
        assert report.total_files == 3

    def test_context_offsets_point_at_match(self, docs_dir):
        (docs_dir / "long.txt").write_text("some text before the Hello keyword and after")

        report = search_content(str(docs_dir), "hello")

        for result in report.results:
            for match in result.matches:
                assert match.context[match.match_start:match.match_end].lower() == "hello"

    def test_filename_only_match(self, docs_dir):
        """文件名匹配但内容无匹配的文本文件也会返回，匹配列表为空"""
        (docs_dir / "hello.txt").write_text("nothing to see")

        report = search_content(str(docs_dir), "hello")

        by_name = {r.name: r for r in report.results}
        named = by_name["hello.txt"]
        assert named.match_type == "filename"
        assert named.matches == ()
        assert named.score == 100

    def test_skipped_files_never_returned(self, tmp_path):
        """被跳过的文件即使文件名匹配也不产生结果"""
        (tmp_path / "hello.txt").write_text("x" * 2000)
        (tmp_path / "hello.png").write_bytes(b"\x89PNG hello")

        report = search_content(str(tmp_path), "hello", max_file_size=100)

        assert report.results == []
        assert report.skipped_files == 1
        assert report.total_matches == 0

    def test_case_sensitive(self, docs_dir):
        report = search_content(str(docs_dir), "HELLO", case_sensitive=True)
        assert report.results == []

    def test_regex(self, docs_dir):
        report = search_content(str(docs_dir), r"hel+o\s\w+", use_regex=True, case_sensitive=True)
        assert [r.name for r in report.results] == ["a.txt"]
        assert report.results[0].matches[0].context == "hello world"

    def test_invalid_regex(self, docs_dir):
        with pytest.raises(InvalidPatternError):
            search_content(str(docs_dir), "(", use_regex=True)

    def test_max_files_is_hard_ceiling(self, tmp_path):
        for i in range(5):
            (tmp_path / f"f{i}.txt").write_text("x marks the spot")

        report = search_content(str(tmp_path), "x", max_files=2)

        assert len(report.results) == 2
        assert report.truncated is True

    def test_max_matches_per_file(self, tmp_path):
        (tmp_path / "many.txt").write_text("abc " * 30)

        report = search_content(str(tmp_path), "abc", max_matches_per_file=5)

        assert report.results[0].match_count == 5
        assert report.total_matches == 5

    def test_large_files_counted_as_skipped(self, tmp_path):
        (tmp_path / "big.txt").write_text("needle " * 10)
        (tmp_path / "small.txt").write_text("needle")

        report = search_content(str(tmp_path), "needle", max_file_size=10)

        assert [r.name for r in report.results] == ["small.txt"]
        assert report.skipped_files == 1

    def test_extension_filter(self, docs_dir):
        report = search_content(str(docs_dir), "hello", file_extensions=[".md"])
        assert [r.name for r in report.results] == ["b.md"]

    def test_depth_limit(self, docs_dir):
        nested = docs_dir / "one" / "two"
        nested.mkdir(parents=True)
        (nested / "deep.txt").write_text("hello")

        shallow = search_content(str(docs_dir), "hello", max_depth=2)
        deep = search_content(str(docs_dir), "hello", max_depth=3)

        assert "deep.txt" not in {r.name for r in shallow.results}
        assert "deep.txt" in {r.name for r in deep.results}

    def test_non_recursive(self, docs_dir):
        (docs_dir / "sub").mkdir()
        (docs_dir / "sub" / "inner.txt").write_text("hello")

        report = search_content(str(docs_dir), "hello", recursive=False)
        assert "inner.txt" not in {r.name for r in report.results}

    def test_ties_keep_traversal_order(self, tmp_path):
        for name in ["c.txt", "a.txt", "b.txt"]:
            (tmp_path / name).write_text("zzz")

        report = search_content(str(tmp_path), "zzz")

        assert [r.name for r in report.results] == ["a.txt", "b.txt", "c.txt"]

    def test_cancelled_search(self, docs_dir):
        cancel = threading.Event()
        cancel.set()

        report = search_content(str(docs_dir), "hello", cancel=cancel)

        assert report.results == []
        assert report.cancelled is True

    def test_not_a_directory(self, docs_dir):
        with pytest.raises(NotADirectoryError_):
            search_content(str(docs_dir / "a.txt"), "hello")

    def test_empty_keyword(self, docs_dir):
        with pytest.raises(ValueError):
            search_content(str(docs_dir), "")
