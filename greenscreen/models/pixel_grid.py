"""像素网格与几何数据模型.

流水线各阶段之间传递的值类型：像素网格、内容边界框和贴放位置。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import numpy as np
from PIL import Image

from greenscreen.utils.exceptions import UnsupportedImageModeError

# 通道数 -> Pillow 模式
_CHANNEL_MODES = {3: "RGB", 4: "RGBA"}


class PixelGrid:
    """像素网格.

    独占一块连续的 uint8 缓冲区，形状为 (height, width, channels)，
    channels 为 3 (RGB) 或 4 (RGBA)。构造时复制传入数据，
    不同网格之间不会共享缓冲区。

    Attributes:
        width: 宽度（像素）
        height: 高度（像素）
        channels: 通道数
        pixels: 像素数组（只读视图）

    Example:
        >>> grid = PixelGrid.filled(4, 4, (0, 255, 0))
        >>> grid.size
        (4, 4)
    """

    def __init__(self, pixels: np.ndarray) -> None:
        """初始化像素网格.

        Args:
            pixels: 形状为 (H, W, 3|4) 的数组，会被复制为 uint8

        Raises:
            UnsupportedImageModeError: 维度或通道数不符合要求
        """
        if pixels.ndim != 3 or pixels.shape[2] not in _CHANNEL_MODES:
            raise UnsupportedImageModeError(f"shape={pixels.shape}")
        data = np.ascontiguousarray(pixels, dtype=np.uint8).copy()
        data.setflags(write=False)
        self._pixels = data

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def channels(self) -> int:
        return self._pixels.shape[2]

    @property
    def size(self) -> tuple[int, int]:
        """(宽, 高) 元组."""
        return (self.width, self.height)

    @property
    def mode(self) -> str:
        """对应的 Pillow 模式."""
        return _CHANNEL_MODES[self.channels]

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def rgb(self) -> np.ndarray:
        """RGB 三通道视图."""
        return self._pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        """Alpha 通道；RGB 网格视为全不透明."""
        if self.has_alpha:
            return self._pixels[:, :, 3]
        return np.full((self.height, self.width), 255, dtype=np.uint8)

    def to_image(self) -> Image.Image:
        """转换为 Pillow 图片（新缓冲区）."""
        return Image.fromarray(np.array(self._pixels))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelGrid":
        """从 Pillow 图片创建网格.

        非 RGB/RGBA 模式会先转换：带透明信息的转为 RGBA，其余转为 RGB。

        Args:
            image: Pillow 图片

        Returns:
            PixelGrid 实例
        """
        if image.mode not in ("RGB", "RGBA"):
            has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")
        return cls(np.asarray(image))

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        color: tuple[int, ...],
    ) -> "PixelGrid":
        """创建纯色网格，颜色长度决定通道数."""
        pixels = np.empty((height, width, len(color)), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    def __repr__(self) -> str:
        return f"PixelGrid({self.width}x{self.height}, {self.mode})"


@dataclass(frozen=True)
class BoundingBox:
    """内容边界框.

    源网格像素坐标，右、下边界为开区间。宽或高为 0 时表示空。

    Attributes:
        left: 左边界（含）
        top: 上边界（含）
        right: 右边界（不含）
        bottom: 下边界（不含）
    """

    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    EMPTY: ClassVar["BoundingBox"]

    def __post_init__(self) -> None:
        if self.left > self.right or self.top > self.bottom:
            raise ValueError(
                f"无效的边界框: ({self.left}, {self.top}, {self.right}, {self.bottom})"
            )

    @property
    def is_empty(self) -> bool:
        return self.right == self.left or self.bottom == self.top

    @property
    def width(self) -> int:
        """内容宽度，空框为 0."""
        return 0 if self.is_empty else self.right - self.left

    @property
    def height(self) -> int:
        """内容高度，空框为 0."""
        return 0 if self.is_empty else self.bottom - self.top

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.right, self.bottom)


BoundingBox.EMPTY = BoundingBox()


@dataclass(frozen=True)
class Placement:
    """贴放位置.

    前景完整（未裁剪）网格在画布上的左上角坐标，可为负数。
    """

    offset_x: int
    offset_y: int

    def shifted(self, dx: int, dy: int) -> "Placement":
        """返回平移后的新位置."""
        return Placement(self.offset_x + dx, self.offset_y + dy)
