"""FastAPI 应用入口

创建和配置 FastAPI 应用实例。
启动命令:
    uvicorn textops.main:app
"""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from textops.api import router
from textops.config import settings
from textops.middleware import ErrorHandlingMiddleware, AccessLoggingMiddleware


def setup_logging():
    """配置应用日志系统

    设置日志格式、级别和处理器。
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # 设置第三方库的日志级别（避免过多日志）
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理

    服务本身不持有任何跨请求的状态，启动时只记录生效的配置。
    """
    logger.info("Starting text search-and-patch service...")
    if settings.workspace_root is not None:
        logger.info(f"Paths are confined to workspace: {settings.workspace_root}")
    else:
        logger.warning("No WORKSPACE_ROOT configured, any readable path is accessible")
    logger.info(
        f"Search defaults: max_files={settings.max_files}, "
        f"max_file_size={settings.max_file_size}, "
        f"max_matches_per_file={settings.max_matches_per_file}, "
        f"context_length={settings.context_length}, max_depth={settings.max_depth}"
    )
    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="Text Search and Patch Service",
    description="目录内容搜索与面向行的文件编辑服务",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(AccessLoggingMiddleware)

# 可以通过环境变量 CORS_ORIGINS 配置允许的源
cors_origins = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else ["*"]
cors_origins = [origin.strip() for origin in cors_origins if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,
)

app.include_router(router)
