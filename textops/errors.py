"""错误类型模块

定义搜索与编辑操作使用的类型化异常。
编辑操作遇到这些错误时立即中止；搜索操作只在入口参数校验时抛出，
遍历和扫描过程中的错误降级为日志记录。
"""


class TextOpsError(Exception):
    """所有类型化错误的基类

    Attributes:
        status_code: 映射到 HTTP 响应时使用的状态码
        error_type: 错误响应中的错误类型名称
    """

    status_code = 500
    error_type = "Text Operation Error"


class NotFoundError(TextOpsError):
    """路径不存在"""

    status_code = 404
    error_type = "Not Found"


class NotAFileError(TextOpsError):
    """路径存在但不是普通文件"""

    status_code = 400
    error_type = "Not A File"


class NotADirectoryError_(TextOpsError):
    """路径存在但不是目录

    名称末尾的下划线用于避免与内置 NotADirectoryError 冲突。
    """

    status_code = 400
    error_type = "Not A Directory"


class InvalidRangeError(TextOpsError):
    """行范围无效（裁剪后起始行大于结束行，或起始行超出总行数）"""

    status_code = 422
    error_type = "Invalid Range"


class UnsupportedAlgorithmError(TextOpsError):
    """不支持的哈希算法"""

    status_code = 422
    error_type = "Unsupported Algorithm"


class InvalidPatternError(TextOpsError):
    """正则表达式无法编译"""

    status_code = 422
    error_type = "Invalid Pattern"


class PatchMismatchError(TextOpsError):
    """启用校验时补丁的上下文行或删除行与文件当前内容不一致"""

    status_code = 409
    error_type = "Patch Mismatch"


class IOFailureError(TextOpsError):
    """读写文件失败"""

    status_code = 500
    error_type = "IO Failure"


class PermissionDeniedError(TextOpsError):
    """没有读取或写入权限"""

    status_code = 403
    error_type = "Permission Denied"
