"""安全模块

提供安全相关的验证和防护功能。
"""

import logging
import os
from pathlib import Path

from textops.config import settings


logger = logging.getLogger(__name__)


# 安全配置常量
MAX_QUERY_LENGTH = 500  # 查询字符串最大长度
MAX_PATH_LENGTH = 1000  # 文件路径最大长度


class SecurityError(Exception):
    """安全错误异常类

    用于表示安全验证失败的情况。
    """
    pass


def validate_query_length(query: str) -> None:
    """验证查询字符串长度

    防止过长的查询字符串（尤其是正则表达式）导致性能问题。

    Args:
        query: 查询字符串

    Raises:
        SecurityError: 如果查询字符串超过最大长度
    """
    if len(query) > MAX_QUERY_LENGTH:
        logger.warning(
            f"Query string too long: {len(query)} characters (max: {MAX_QUERY_LENGTH})"
        )
        raise SecurityError(
            f"Query string too long. Maximum length is {MAX_QUERY_LENGTH} characters."
        )


def validate_path(file_path: str) -> Path:
    """验证路径，防止访问工作区之外的文件

    未配置工作区根目录时只做长度检查和规范化。
    配置了工作区根目录时，解析符号链接和 ".." 后的路径必须位于根目录内。

    Args:
        file_path: 文件或目录路径

    Returns:
        Path: 规范化后的绝对路径

    Raises:
        SecurityError: 路径过长或不在允许的目录内
    """
    if len(file_path) > MAX_PATH_LENGTH:
        logger.warning(
            f"File path too long: {len(file_path)} characters (max: {MAX_PATH_LENGTH})"
        )
        raise SecurityError(
            f"File path too long. Maximum length is {MAX_PATH_LENGTH} characters."
        )

    full_path = Path(os.path.abspath(os.path.expanduser(file_path)))

    if settings.workspace_root is None:
        return full_path

    workspace_root = Path(settings.workspace_root).resolve()
    resolved_path = full_path.resolve()

    # 检查路径是否在允许的根目录内
    try:
        resolved_path.relative_to(workspace_root)
    except ValueError:
        logger.warning(
            f"Path traversal attempt detected: {file_path}",
            extra={
                "requested_path": file_path,
                "resolved_path": str(resolved_path),
                "workspace_root": str(workspace_root)
            }
        )
        raise SecurityError(
            "Access denied: Path is outside the allowed workspace directory"
        )

    return full_path


def sanitize_error_message(error_message: str, is_production: bool = True) -> str:
    """清理错误信息，避免泄露敏感信息

    Args:
        error_message: 原始错误信息
        is_production: 是否为生产环境

    Returns:
        str: 清理后的错误信息
    """
    if not is_production:
        return error_message

    sensitive_keywords = ["traceback", "exception"]
    if settings.workspace_root is not None:
        sensitive_keywords.append(str(settings.workspace_root))

    for keyword in sensitive_keywords:
        if keyword.lower() in error_message.lower():
            return "An internal error occurred. Please contact the administrator."

    return error_message
