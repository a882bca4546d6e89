"""API 路由模块

把搜索和编辑操作暴露为请求/响应式的 JSON 端点。
端点声明为普通函数，由 FastAPI 在线程池中执行，长时间的目录遍历不会阻塞事件循环。
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query

from textops import line_editor, patcher, search_service
from textops.errors import TextOpsError
from textops.models import (
    ApplyDiffRequest,
    ApplyDiffResponse,
    FileHashResponse,
    FileInfo,
    FileResult,
    InsertRequest,
    InsertResponse,
    LineCountResponse,
    ReadRangeRequest,
    ReadRangeResponse,
    ReplaceRequest,
    ReplaceResponse,
    SearchContentRequest,
    SearchContentResponse,
    SearchFilesRequest,
    SearchFilesResponse,
)
from textops.security import validate_query_length, SecurityError


# 创建日志记录器
logger = logging.getLogger(__name__)

# 创建 API 路由器
router = APIRouter()


def _to_http_exception(exc: Exception) -> HTTPException:
    """把领域错误转换为 HTTPException

    - TextOpsError: 使用错误类型自带的状态码
    - SecurityError: 403
    - ValueError: 422
    """
    if isinstance(exc, TextOpsError):
        status_code = exc.status_code
    elif isinstance(exc, SecurityError):
        status_code = 403
    else:
        status_code = 422

    if status_code >= 500:
        logger.error(f"Operation failed: {exc}")
    else:
        logger.warning(f"Request rejected: {exc}")

    return HTTPException(status_code=status_code, detail=str(exc))


_HANDLED_ERRORS = (TextOpsError, SecurityError, ValueError)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/search/content", response_model=SearchContentResponse)
def search_content(request: SearchContentRequest):
    """内容搜索端点

    在目录中搜索关键词，返回按评分排序的文件结果和匹配上下文。

    Raises:
        HTTPException: 404 目录不存在，400 路径不是目录，422 参数或正则无效
    """
    if not request.keyword.strip():
        logger.warning("Empty keyword rejected")
        raise HTTPException(
            status_code=422,
            detail="Keyword cannot be empty or contain only whitespace"
        )

    try:
        validate_query_length(request.keyword)
        report = search_service.search_content(
            directory=request.directory,
            keyword=request.keyword,
            case_sensitive=request.case_sensitive,
            file_extensions=request.file_extensions,
            max_files=request.max_files,
            max_file_size=request.max_file_size,
            max_matches_per_file=request.max_matches_per_file,
            context_length=request.context_length,
            max_depth=request.max_depth,
            recursive=request.recursive,
            use_regex=request.use_regex,
        )
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return SearchContentResponse(
        results=[FileResult(**r.to_dict()) for r in report.results],
        total_files=report.total_files,
        total_matches=report.total_matches,
        duration=report.duration_ms,
        skipped_files=report.skipped_files,
        truncated=report.truncated,
    )


@router.post("/search/files", response_model=SearchFilesResponse)
def search_files(request: SearchFilesRequest):
    """文件搜索端点

    按文件名（默认通配符）和/或内容搜索文件，结果按遍历顺序返回。
    """
    try:
        validate_query_length(request.query)
        report = search_service.search_files(
            directory=request.directory,
            query=request.query,
            search_type=request.search_type,
            file_types=request.file_types,
            max_results=request.max_results,
            recursive=request.recursive,
            mode=request.mode,
            case_sensitive=request.case_sensitive,
            max_depth=request.max_depth,
            include_hidden=request.include_hidden,
            min_size=request.min_size,
            max_size=request.max_size,
            modified_after=request.modified_after,
            modified_before=request.modified_before,
        )
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return SearchFilesResponse(
        files=[FileInfo(**info) for info in report.files],
        total_found=report.total_found,
        truncated=report.truncated,
        search_time=report.duration_ms,
    )


@router.post("/files/read-range", response_model=ReadRangeResponse)
def read_file_range(request: ReadRangeRequest):
    try:
        result = line_editor.read_file_range(
            request.path, request.start_line, request.end_line, request.algorithm
        )
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return ReadRangeResponse(**result.to_dict())


@router.post("/files/insert", response_model=InsertResponse)
def insert_content(request: InsertRequest):
    try:
        result = line_editor.insert_content(request.path, request.line, request.content)
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return InsertResponse(
        success=True,
        lines_inserted=result.lines_inserted,
        insert_line=result.insert_line,
        total_lines=result.total_lines,
    )


@router.post("/files/replace", response_model=ReplaceResponse)
def replace_in_file(request: ReplaceRequest):
    """查找替换端点

    只有内容实际变化时才写回文件，modified 反映这一点。
    """
    try:
        result = line_editor.replace_in_file(
            request.path,
            request.search,
            request.replace,
            is_regex=request.is_regex,
            replace_all=request.replace_all,
            case_sensitive=request.case_sensitive,
        )
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return ReplaceResponse(replacements=result.replacements, modified=result.modified)


@router.post("/files/apply-diff", response_model=ApplyDiffResponse)
def apply_diff(request: ApplyDiffRequest):
    """补丁应用端点

    默认不校验补丁上下文；verify=True 时不匹配的补丁返回 409 且文件不被修改。
    """
    try:
        result = patcher.apply_diff(
            request.path,
            request.diff,
            create_backup=request.create_backup,
            verify=request.verify,
        )
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return ApplyDiffResponse(**result.to_dict())


@router.get("/files/hash", response_model=FileHashResponse)
def get_file_hash(
    path: str = Query(..., min_length=1, description="文件路径"),
    algorithm: Optional[str] = Query(None, description="哈希算法（md5 或 sha256）")
):
    try:
        result = line_editor.get_file_hash(path, algorithm)
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return FileHashResponse(**result)


@router.get("/files/line-count", response_model=LineCountResponse)
def get_line_count(path: str = Query(..., min_length=1, description="文件路径")):
    try:
        lines = line_editor.get_line_count(path)
    except _HANDLED_ERRORS as e:
        raise _to_http_exception(e)

    return LineCountResponse(lines=lines)
