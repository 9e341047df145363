"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# 解码相关异常
# ===================
class DecodeError(AppException):
    """图片解码错误异常.

    输入字节无法解析为图片，不重试，直接拒绝该图片。

    Attributes:
        source: 出错的输入标识（如 "background"、"foreground1"）
    """

    def __init__(self, message: str, source: str = "") -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message, "DECODE_ERROR")


class ImageCorruptedError(DecodeError):
    """图片数据损坏或格式不支持异常."""

    def __init__(self, source: str = "", reason: str = "") -> None:
        msg = "图片数据损坏或无法识别"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, source)


class EmptyImageError(DecodeError):
    """图片尺寸为零异常."""

    def __init__(self, source: str = "", size: tuple[int, int] = (0, 0)) -> None:
        super().__init__(f"图片尺寸无效: {size[0]}x{size[1]}", source)


class UnsupportedImageModeError(DecodeError):
    """不支持的像素格式异常."""

    def __init__(self, mode: str, source: str = "") -> None:
        super().__init__(f"不支持的像素格式: {mode}", source)


# ===================
# 校验相关异常
# ===================
class ValidationError(AppException):
    """请求参数校验错误异常.

    在任何像素处理开始之前抛出。
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, "VALIDATION_ERROR")


class InvalidKeySpecError(ValidationError):
    """键色配置无效异常."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"键色配置无效: {reason}")


class InvalidCanvasError(ValidationError):
    """画布尺寸无效异常."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__(f"画布尺寸必须为正整数: {width}x{height}")


# ===================
# 资源相关异常
# ===================
class ResourceError(AppException):
    """资源分配错误异常.

    对当前请求是致命错误，不重试。
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, "RESOURCE_ERROR")


class CanvasTooLargeError(ResourceError):
    """画布过大异常."""

    def __init__(self, pixels: int, max_pixels: int) -> None:
        super().__init__(f"画布像素数过大 ({pixels})，最大允许 {max_pixels}")


# ===================
# 图片处理相关异常
# ===================
class ImageProcessError(AppException):
    """图片处理错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "IMAGE_PROCESS_ERROR")


class ImageNotFoundError(ImageProcessError):
    """图片文件未找到异常."""

    def __init__(self, path: str) -> None:
        super().__init__(f"图片文件未找到: {path}")
