"""配置管理模块

提供全局配置参数，支持从环境变量和 .env 文件读取配置。
包含配置验证和错误提示功能。
"""

import sys
import logging
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator, ValidationError


logger = logging.getLogger(__name__)


# 支持的哈希算法
SUPPORTED_HASH_ALGORITHMS = ('md5', 'sha256')


class Settings(BaseSettings):
    """应用配置类

    从环境变量或 .env 文件读取配置参数。
    所有搜索限制都有默认值，调用方传入非正数时回退到这些默认值。
    """

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 工作区根目录，设置后所有路径都必须位于其中
    workspace_root: Optional[Path] = None

    # 日志级别
    log_level: str = "INFO"

    # 内容搜索默认限制
    max_files: int = 100
    max_file_size: int = 500 * 1024  # 500KB
    max_matches_per_file: int = 10
    context_length: int = 40
    max_depth: int = 5

    # 文件搜索（searchFiles）中内容匹配的文件大小上限
    files_search_max_file_size: int = 10 * 1024 * 1024  # 10MB

    # 文件哈希默认算法
    default_hash_algorithm: str = "md5"

    @field_validator('workspace_root')
    @classmethod
    def validate_workspace_root(cls, v: Optional[Path]) -> Optional[Path]:
        """验证工作区根目录存在且为目录"""
        if v is None:
            return v
        if not v.exists():
            raise ValueError(
                f"工作区根目录不存在: {v.absolute()}\n"
                f"请确保路径正确，或创建该目录。"
            )
        if not v.is_dir():
            raise ValueError(
                f"WORKSPACE_ROOT 必须是一个目录，但 {v.absolute()} 是一个文件。"
            )
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别是否有效"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"无效的日志级别: {v}\n"
                f"有效的日志级别: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator(
        'max_files',
        'max_file_size',
        'max_matches_per_file',
        'context_length',
        'max_depth',
        'files_search_max_file_size',
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """验证搜索限制为正整数"""
        if v <= 0:
            raise ValueError(
                f"{info.field_name.upper()} 必须大于 0，当前值: {v}"
            )
        return v

    @field_validator('max_files')
    @classmethod
    def validate_max_files(cls, v: int) -> int:
        """验证最大结果文件数是否合理"""
        if v > 10000:
            raise ValueError(
                f"MAX_FILES 不应超过 10000，当前值: {v}\n"
                f"过大的限制可能导致性能问题。"
            )
        return v

    @field_validator('default_hash_algorithm')
    @classmethod
    def validate_hash_algorithm(cls, v: str) -> str:
        """验证默认哈希算法"""
        v_lower = v.lower()
        if v_lower not in SUPPORTED_HASH_ALGORITHMS:
            raise ValueError(
                f"不支持的哈希算法: {v}\n"
                f"支持的算法: {', '.join(SUPPORTED_HASH_ALGORITHMS)}"
            )
        return v_lower


def load_settings() -> Settings:
    """加载并验证配置

    如果配置验证失败，记录错误并退出程序。

    Returns:
        Settings: 验证通过的配置实例

    Raises:
        SystemExit: 配置验证失败时退出
    """
    try:
        return Settings()
    except ValidationError as e:
        # 格式化错误信息
        error_messages = []
        error_messages.append("=" * 60)
        error_messages.append("配置错误 - 应用无法启动")
        error_messages.append("=" * 60)

        for error in e.errors():
            field = error['loc'][0] if error['loc'] else 'unknown'
            msg = error['msg']
            error_messages.append(f"\n字段: {str(field).upper()}")
            error_messages.append(f"错误: {msg}")

        error_messages.append("\n" + "=" * 60)
        error_messages.append("请检查 .env 文件或环境变量配置。")
        error_messages.append("=" * 60)

        error_text = "\n".join(error_messages)
        logger.error(error_text)
        print(error_text, file=sys.stderr)
        sys.exit(1)


# 全局配置实例
settings = load_settings()
