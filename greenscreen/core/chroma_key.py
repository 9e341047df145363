"""键色分类器模块.

判断前景图中哪些像素属于背景幕布（需要变为透明）。

Features:
    - 调色板形式：每通道盒式容差，任一参考色命中即为背景
    - 范围形式：HSV 色相/饱和度/明度范围 + 绿色主导
    - 可选的边缘平滑（单次低半径模糊，仅作用于主体一侧）
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image, ImageFilter

from greenscreen.models.key_spec import KeySpec, PaletteKeySpec, RangeKeySpec
from greenscreen.models.pixel_grid import PixelGrid
from greenscreen.utils.logger import setup_logger
from greenscreen.utils.performance import timed

logger = setup_logger(__name__)


def rgb_to_hsv(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """RGB 转 HSV.

    Args:
        rgb: 形状为 (..., 3) 的 uint8 数组

    Returns:
        (hue, saturation, value) 数组元组，色相单位为度 [0, 360)，
        饱和度与明度为百分比 [0, 100]
    """
    rgb = rgb.astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    delta = maxc - minc

    # 灰色像素 (delta == 0) 色相记为 0
    has_hue = delta > 0
    safe_delta = np.where(has_hue, delta, 1.0)

    hue = np.zeros_like(maxc)
    red_max = has_hue & (maxc == r)
    green_max = has_hue & ~red_max & (maxc == g)
    blue_max = has_hue & ~red_max & ~green_max
    hue = np.where(red_max, ((g - b) / safe_delta) % 6, hue)
    hue = np.where(green_max, (b - r) / safe_delta + 2, hue)
    hue = np.where(blue_max, (r - g) / safe_delta + 4, hue)
    hue = (hue * 60.0) % 360.0

    safe_max = np.where(maxc > 0, maxc, 1.0)
    saturation = np.where(maxc > 0, delta / safe_max * 100.0, 0.0)
    value = maxc / 255.0 * 100.0
    return hue, saturation, value


def _match_palette(rgb: np.ndarray, spec: PaletteKeySpec) -> np.ndarray:
    """调色板匹配：盒式容差的并集."""
    mask = np.zeros(rgb.shape[:-1], dtype=bool)
    if spec.is_empty:
        return mask

    tol = spec.effective_tolerance
    signed = rgb.astype(np.int16)
    for color in spec.colors:
        diff = np.abs(signed - np.asarray(color, dtype=np.int16))
        mask |= np.all(diff < tol, axis=-1)
    return mask


def _match_range(rgb: np.ndarray, spec: RangeKeySpec) -> np.ndarray:
    """HSV 范围匹配."""
    hue, _, _ = rgb_to_hsv(rgb)
    values = rgb.astype(np.float64)
    r, g, b = values[..., 0], values[..., 1], values[..., 2]
    maxc = values.max(axis=-1)
    delta = maxc - values.min(axis=-1)

    hue_min = min(max(spec.hue_min, 0.0), 360.0)
    hue_max = min(max(spec.hue_max, 0.0), 360.0)
    sat_min = min(max(spec.saturation_min, 0.0), 100.0)
    val_min = min(max(spec.value_min, 0.0), 100.0)

    mask = (hue >= hue_min) & (hue <= hue_max)
    # 乘法形式比较，避免除以通道值
    mask &= delta * 100.0 >= sat_min * maxc
    mask &= maxc * 100.0 >= val_min * 255.0

    if spec.green_dominance is not None:
        mult = max(spec.green_dominance, 0.0)
        mask &= (g > r * mult) & (g > b * mult)
    return mask


def classify_rgb(rgb: np.ndarray, spec: KeySpec) -> np.ndarray:
    """对 RGB 数组逐像素分类.

    Args:
        rgb: 形状为 (..., 3) 的 uint8 数组
        spec: 键色配置

    Returns:
        布尔数组，True 表示背景
    """
    if isinstance(spec, PaletteKeySpec):
        return _match_palette(rgb, spec)
    if isinstance(spec, RangeKeySpec):
        return _match_range(rgb, spec)
    raise TypeError(f"不支持的键色配置类型: {type(spec).__name__}")


def classify(pixel: Sequence[int], spec: KeySpec) -> bool:
    """判断单个像素是否为背景.

    Args:
        pixel: (r, g, b) 或 (r, g, b, a)，alpha 被忽略
        spec: 键色配置

    Returns:
        是否为背景
    """
    rgb = np.asarray(pixel[:3], dtype=np.uint8).reshape(1, 1, 3)
    return bool(classify_rgb(rgb, spec)[0, 0])


@timed
def classify_grid(grid: PixelGrid, spec: KeySpec) -> np.ndarray:
    """对整张网格分类.

    Returns:
        形状为 (H, W) 的布尔掩码，True 表示背景
    """
    return classify_rgb(grid.rgb, spec)


def smooth_mask(
    backdrop: np.ndarray,
    radius: float = 0.0,
    soft: bool = False,
) -> np.ndarray:
    """将背景掩码转换为 alpha，并可选地平滑边缘.

    平滑不会改变像素的分类：背景像素 alpha 始终为 0，
    主体像素 alpha 始终在 [1, 255] 内，只有主体一侧的边缘变为渐变。
    二值输出与分类掩码一一对应，因此只有 ``soft`` 为 True 时才会模糊。

    Args:
        backdrop: 布尔背景掩码
        radius: 高斯模糊半径，0 表示不模糊
        soft: True 保留渐变 alpha，False 输出二值 alpha

    Returns:
        uint8 alpha 数组，0 为透明，255 为不透明
    """
    alpha = np.where(backdrop, 0, 255).astype(np.uint8)
    if radius <= 0 or not soft or alpha.size == 0:
        return alpha

    blurred = Image.fromarray(alpha).filter(ImageFilter.GaussianBlur(radius))
    result = np.asarray(blurred, dtype=np.uint8)
    return np.where(backdrop, 0, np.maximum(result, 1)).astype(np.uint8)
