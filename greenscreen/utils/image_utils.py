"""图片工具函数模块.

提供图片解码、缩放、编码等工具函数，是流水线与 Pillow 之间的边界。
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from greenscreen.models.composite_config import OutputFormat
from greenscreen.models.pixel_grid import PixelGrid
from greenscreen.utils.constants import DEFAULT_OUTPUT_QUALITY, DEFAULT_SUBJECT_SCALE
from greenscreen.utils.exceptions import (
    EmptyImageError,
    ImageCorruptedError,
    ImageNotFoundError,
    ResourceError,
)
from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)

ImageSource = Union[bytes, str, Path]


def read_image_source(source: ImageSource) -> bytes:
    """读取图片来源为字节数据.

    Args:
        source: 字节数据或文件路径

    Returns:
        图片字节数据

    Raises:
        ImageNotFoundError: 文件不存在
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    path = Path(source)
    if not path.is_file():
        raise ImageNotFoundError(str(path))
    return path.read_bytes()


def decode_image(data: bytes, source: str = "") -> Image.Image:
    """解码图片字节数据.

    按 EXIF 方向信息旋转，保证像素方向与拍摄时一致。

    Args:
        data: 图片字节数据
        source: 输入标识，用于错误消息

    Returns:
        已加载到内存的 PIL Image 对象

    Raises:
        ImageCorruptedError: 数据为空、损坏或格式不支持
        EmptyImageError: 图片尺寸为零
        ResourceError: 图片像素数超过 Pillow 的安全上限
    """
    if not data:
        raise ImageCorruptedError(source, "空数据")

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Image.DecompressionBombError as e:
        raise ResourceError(f"{source}: 图片过大 ({e})") from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.error(f"图片解码失败: {source}, {e}")
        raise ImageCorruptedError(source, type(e).__name__) from e

    if image.width == 0 or image.height == 0:
        raise EmptyImageError(source, image.size)

    transposed = ImageOps.exif_transpose(image)
    return transposed if transposed is not None else image


def fit_within(
    image: Image.Image,
    size: Tuple[int, int],
    scale_percent: int = DEFAULT_SUBJECT_SCALE,
) -> Image.Image:
    """保持纵横比缩放，使图片恰好放入指定尺寸.

    小图会被放大（与 contain 策略一致），不填充空白。
    之后再按 scale_percent 额外缩放。

    Args:
        image: PIL Image 对象
        size: 目标尺寸 (宽, 高)
        scale_percent: 额外缩放百分比

    Returns:
        缩放后的新图片
    """
    target_w, target_h = size
    img_w, img_h = image.size
    scale = min(target_w / img_w, target_h / img_h) * scale_percent / 100

    new_w = max(1, round(img_w * scale))
    new_h = max(1, round(img_h * scale))
    if (new_w, new_h) == image.size:
        return image.copy()
    return image.resize((new_w, new_h), Image.Resampling.LANCZOS)


def cover_resize(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """按 cover 策略缩放：等比放大填满，居中裁掉溢出部分.

    Args:
        image: PIL Image 对象
        size: 目标尺寸 (宽, 高)

    Returns:
        尺寸恰为 size 的新图片
    """
    return ImageOps.fit(
        image,
        size,
        method=Image.Resampling.LANCZOS,
        centering=(0.5, 0.5),
    )


def ensure_rgb(image: Image.Image) -> Image.Image:
    """确保图片为 RGB 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGB 模式的图片
    """
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def has_transparency(image: Image.Image) -> bool:
    """检查图片是否有透明通道.

    Args:
        image: PIL Image 对象

    Returns:
        是否有透明通道
    """
    if image.mode in ("RGBA", "LA", "PA"):
        return True
    if image.mode == "P" and "transparency" in image.info:
        return True
    return False


def prepare_background(
    data: bytes,
    canvas_size: Tuple[int, int],
) -> PixelGrid:
    """解码背景图并按 cover 策略缩放到画布尺寸.

    Returns:
        画布尺寸的 RGB 网格
    """
    image = ensure_rgb(decode_image(data, "background"))
    resized = cover_resize(image, canvas_size)
    logger.debug(f"背景图: {image.size} -> {resized.size}")
    return PixelGrid.from_image(resized)


def prepare_foreground(
    data: bytes,
    canvas_size: Tuple[int, int],
    scale_percent: int = DEFAULT_SUBJECT_SCALE,
    source: str = "foreground",
) -> PixelGrid:
    """解码前景图并等比缩放到画布内.

    带透明信息的图片保留为 RGBA，其余为 RGB。

    Returns:
        前景网格
    """
    image = decode_image(data, source)
    image = image.convert("RGBA") if has_transparency(image) else ensure_rgb(image)
    resized = fit_within(image, canvas_size, scale_percent)
    logger.debug(f"{source}: {image.size} -> {resized.size} ({scale_percent}%)")
    return PixelGrid.from_image(resized)


def encode_grid(
    grid: PixelGrid,
    format: OutputFormat = OutputFormat.PNG,
    quality: int = DEFAULT_OUTPUT_QUALITY,
) -> bytes:
    """把网格编码为图片字节数据.

    JPEG 不支持透明，RGBA 网格会先丢弃 alpha。

    Args:
        grid: 像素网格
        format: 输出格式
        quality: JPEG 质量 (1-100)

    Returns:
        图片字节数据
    """
    image = grid.to_image()
    save_kwargs = {}
    if format == OutputFormat.JPEG:
        image = ensure_rgb(image)
        save_kwargs["quality"] = quality

    buffer = io.BytesIO()
    image.save(buffer, format=format.pil_format, **save_kwargs)
    return buffer.getvalue()


def decode_grid(data: bytes, source: str = "") -> PixelGrid:
    """解码图片字节数据为网格（不缩放）."""
    return PixelGrid.from_image(decode_image(data, source))
