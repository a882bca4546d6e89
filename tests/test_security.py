"""安全功能测试

测试查询长度限制、工作区路径限制和错误信息清理。
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from textops import config
from textops.security import (
    MAX_PATH_LENGTH,
    MAX_QUERY_LENGTH,
    SecurityError,
    sanitize_error_message,
    validate_path,
    validate_query_length,
)


class TestQueryLengthValidation:
    """测试查询字符串长度验证"""

    def test_valid_query_length(self):
        validate_query_length("test query")  # 不应抛出异常

    def test_max_query_length(self):
        validate_query_length("a" * MAX_QUERY_LENGTH)

    def test_query_too_long(self):
        with pytest.raises(SecurityError) as exc_info:
            validate_query_length("a" * (MAX_QUERY_LENGTH + 1))
        assert "too long" in str(exc_info.value).lower()

    def test_chinese_query_length(self):
        """中文字符按字符数计算长度"""
        validate_query_length("测试" * 100)


class TestPathValidation:
    """测试路径验证"""

    def test_no_workspace_returns_absolute_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with patch.object(config.settings, 'workspace_root', None):
            result = validate_path("sub/file.txt")

        assert result == Path.cwd() / "sub" / "file.txt"
        assert result.is_absolute()

    def test_home_is_expanded(self):
        with patch.object(config.settings, 'workspace_root', None):
            result = validate_path("~/notes.txt")
        assert result == Path.home() / "notes.txt"

    def test_path_too_long(self):
        with pytest.raises(SecurityError) as exc_info:
            validate_path("a" * (MAX_PATH_LENGTH + 1))
        assert "too long" in str(exc_info.value).lower()

    def test_path_inside_workspace(self, tmp_path):
        workspace = tmp_path / "workspace"
        nested = workspace / "subdir" / "nested"
        nested.mkdir(parents=True)
        target = nested / "test.txt"
        target.write_text("content")

        with patch.object(config.settings, 'workspace_root', workspace):
            result = validate_path(str(target))

        assert result.exists()
        assert result.name == "test.txt"

    def test_workspace_root_itself_allowed(self, tmp_path):
        with patch.object(config.settings, 'workspace_root', tmp_path):
            assert validate_path(str(tmp_path)) == tmp_path

    def test_path_traversal_attempt(self, tmp_path):
        """测试通过 .. 跳出工作区"""
        workspace = tmp_path / "workspace"
        workspace.mkdir()

        with patch.object(config.settings, 'workspace_root', workspace):
            with pytest.raises(SecurityError) as exc_info:
                validate_path(str(workspace / ".." / ".." / "etc" / "passwd"))

        assert "outside" in str(exc_info.value).lower()

    def test_absolute_path_outside_workspace(self, tmp_path):
        workspace = tmp_path / "workspace"
        workspace.mkdir()

        with patch.object(config.settings, 'workspace_root', workspace):
            with pytest.raises(SecurityError):
                validate_path("/etc/passwd")

    def test_symlink_escaping_workspace(self, tmp_path):
        """测试指向工作区外部的符号链接"""
        workspace = tmp_path / "workspace"
        workspace.mkdir()
        outside = tmp_path / "outside.txt"
        outside.write_text("secret")
        link = workspace / "link.txt"
        link.symlink_to(outside)

        with patch.object(config.settings, 'workspace_root', workspace):
            with pytest.raises(SecurityError):
                validate_path(str(link))

    def test_sibling_with_common_prefix_rejected(self, tmp_path):
        workspace = tmp_path / "work"
        workspace.mkdir()
        sibling = tmp_path / "work-other"
        sibling.mkdir()

        with patch.object(config.settings, 'workspace_root', workspace):
            with pytest.raises(SecurityError):
                validate_path(str(sibling / "f.txt"))


class TestSanitizeErrorMessage:
    """测试错误信息清理"""

    def test_plain_message_kept(self):
        assert sanitize_error_message("File does not exist") == "File does not exist"

    def test_traceback_hidden(self):
        result = sanitize_error_message("Traceback (most recent call last): ...")
        assert "internal error" in result.lower()

    def test_workspace_path_hidden(self, tmp_path):
        with patch.object(config.settings, 'workspace_root', tmp_path):
            result = sanitize_error_message(f"failed to read {tmp_path}/secret.txt")
        assert str(tmp_path) not in result

    def test_development_mode_keeps_message(self):
        message = "Exception in handler"
        assert sanitize_error_message(message, is_production=False) == message
