"""前景提取模块.

根据键色分类结果生成带透明背景的 RGBA 网格，并计算可见内容的边界框。
提取不会裁剪网格，输出尺寸始终等于输入尺寸。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from greenscreen.core.chroma_key import classify_grid, smooth_mask
from greenscreen.models.key_spec import KeySpec
from greenscreen.models.pixel_grid import BoundingBox, PixelGrid
from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    """提取结果.

    Attributes:
        rgba: 与输入同尺寸的 RGBA 网格
        bbox: 不透明像素的边界框，全部透明时为 BoundingBox.EMPTY
    """

    rgba: PixelGrid
    bbox: BoundingBox

    @property
    def content_width(self) -> int:
        return self.bbox.width

    @property
    def content_height(self) -> int:
        return self.bbox.height


def compute_bbox(alpha: np.ndarray) -> BoundingBox:
    """计算 alpha > 0 像素的边界框.

    Args:
        alpha: 形状为 (H, W) 的 alpha 数组

    Returns:
        边界框（右、下为开区间）
    """
    opaque = alpha > 0
    rows = np.flatnonzero(opaque.any(axis=1))
    if rows.size == 0:
        return BoundingBox.EMPTY
    cols = np.flatnonzero(opaque.any(axis=0))
    return BoundingBox(
        left=int(cols[0]),
        top=int(rows[0]),
        right=int(cols[-1]) + 1,
        bottom=int(rows[-1]) + 1,
    )


def extract(
    grid: PixelGrid,
    spec: KeySpec,
    smooth_radius: float = 0.0,
    soft_edges: bool = False,
) -> ExtractionResult:
    """提取前景.

    背景像素 alpha 置 0 且 RGB 置 0（避免边缘颜色渗出），
    其余像素 alpha 为 255（或平滑后的渐变值，至少为 1），RGB 不变。
    输入自带的 alpha 会与分类结果相乘，原本透明的像素保持透明。
    平滑不改变分类，对不透明输入，边界框为空当且仅当所有像素都是背景。

    Args:
        grid: RGB 或 RGBA 前景网格
        spec: 键色配置
        smooth_radius: 边缘平滑半径
        soft_edges: 是否保留渐变 alpha

    Returns:
        ExtractionResult
    """
    backdrop = classify_grid(grid, spec)
    alpha = smooth_mask(backdrop, smooth_radius, soft_edges)

    if grid.has_alpha:
        source_alpha = grid.alpha.astype(np.uint16)
        alpha = ((alpha.astype(np.uint16) * source_alpha + 127) // 255).astype(np.uint8)

    rgba = np.zeros((grid.height, grid.width, 4), dtype=np.uint8)
    visible = (alpha > 0) & ~backdrop
    rgba[..., :3] = np.where(visible[..., None], grid.rgb, 0)
    rgba[..., 3] = alpha

    bbox = compute_bbox(alpha)
    logger.debug(
        f"前景提取完成: {grid.width}x{grid.height}, "
        f"背景像素 {int(backdrop.sum())}, 边界框 {bbox.as_tuple()}"
    )
    return ExtractionResult(rgba=PixelGrid(rgba), bbox=bbox)
