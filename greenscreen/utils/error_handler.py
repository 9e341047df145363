"""错误处理工具模块.

提供统一的错误处理机制和用户友好的错误消息。
调用方（如 HTTP 层）可据 get_error_details 的结果映射传输层状态码。
"""

from __future__ import annotations

from typing import Any

from greenscreen.utils.exceptions import (
    AppException,
    CanvasTooLargeError,
    ConfigError,
    DecodeError,
    EmptyImageError,
    ImageNotFoundError,
    ImageProcessError,
    InvalidCanvasError,
    InvalidKeySpecError,
    ResourceError,
    ValidationError,
)
from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射（子类在前）
ERROR_MESSAGES = {
    EmptyImageError: "图片尺寸为零，请重新上传",
    DecodeError: "图片无法识别，请检查图片文件",
    InvalidKeySpecError: "键色设置无效，请重新选择背景颜色",
    InvalidCanvasError: "画布尺寸无效",
    ValidationError: "请求参数无效",
    CanvasTooLargeError: "画布尺寸过大，请降低输出分辨率",
    ResourceError: "图片过大，系统资源不足",
    ImageNotFoundError: "图片文件不存在",
    ImageProcessError: "图片处理失败，请稍后重试",
    ConfigError: "配置错误，请检查配置文件",
}

# 建议的传输层状态码
SUGGESTED_STATUS = {
    DecodeError: 400,
    ValidationError: 400,
    ImageNotFoundError: 404,
    ResourceError: 413,
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "操作失败，请稍后重试"


def get_status_code(exception: Exception) -> int:
    """获取建议的传输层状态码，未知错误为 500."""
    for exc_type, status in SUGGESTED_STATUS.items():
        if isinstance(exception, exc_type):
            return status
    return 500


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
        "status_code": get_status_code(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code
        details["message"] = exception.message

    if isinstance(exception, DecodeError) and exception.source:
        details["source"] = exception.source

    return details


def handle_exception(
    exception: Exception,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> dict[str, Any]:
    """统一异常处理.

    Args:
        exception: 异常对象
        context: 上下文描述
        reraise: 是否重新抛出异常
        log_traceback: 是否记录堆栈跟踪

    Returns:
        错误详情（不重新抛出时）
    """
    msg = "异常发生"
    if context:
        msg = f"{context}: {msg}"

    # 应用异常属于预期内的拒绝，不记录堆栈
    if log_traceback and not isinstance(exception, AppException):
        logger.exception(f"{msg}: {exception}")
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
    return get_error_details(exception)
