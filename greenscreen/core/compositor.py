"""图层合成模块.

按顺序把前景图层以 source-over 方式混合到背景画布上，
序列中最后一个图层位于最上层。
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from greenscreen.models.pixel_grid import PixelGrid, Placement
from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)


class Layer(NamedTuple):
    """合成图层：完整的前景网格及其贴放位置."""

    grid: PixelGrid
    placement: Placement


def _visible_region(
    layer_size: tuple[int, int],
    placement: Placement,
    canvas_size: tuple[int, int],
) -> tuple[slice, slice, slice, slice] | None:
    """计算图层与画布的相交区域.

    Returns:
        (画布行, 画布列, 图层行, 图层列) 切片，无交集时为 None
    """
    layer_w, layer_h = layer_size
    canvas_w, canvas_h = canvas_size
    ox, oy = placement.offset_x, placement.offset_y

    x0, x1 = max(0, ox), min(canvas_w, ox + layer_w)
    y0, y1 = max(0, oy), min(canvas_h, oy + layer_h)
    if x0 >= x1 or y0 >= y1:
        return None
    return (
        slice(y0, y1),
        slice(x0, x1),
        slice(y0 - oy, y1 - oy),
        slice(x0 - ox, x1 - ox),
    )


def blend_over(dst: np.ndarray, src: np.ndarray) -> None:
    """source-over 混合（原地写入 dst）.

    out_rgb = src_rgb * a + dst_rgb * (1 - a)
    out_a = a + dst_a * (1 - a)

    Args:
        dst: (H, W, 4) float32 数组，取值 [0, 1]
        src: (H, W, 4) float32 数组，取值 [0, 1]
    """
    a = src[..., 3:4]
    inv = 1.0 - a
    dst[..., :3] = src[..., :3] * a + dst[..., :3] * inv
    dst[..., 3:4] = a + dst[..., 3:4] * inv
    np.clip(dst, 0.0, 1.0, out=dst)


def _as_float_rgba(grid: PixelGrid, rows: slice, cols: slice) -> np.ndarray:
    region = grid.pixels[rows, cols]
    out = np.empty(region.shape[:2] + (4,), dtype=np.float32)
    out[..., :3] = region[..., :3] / 255.0
    if grid.has_alpha:
        out[..., 3] = region[..., 3] / 255.0
    else:
        out[..., 3] = 1.0
    return out


def composite(
    background: PixelGrid,
    layers: Sequence[Layer | tuple[PixelGrid, Placement]],
    keep_alpha: bool = False,
) -> PixelGrid:
    """合成图层.

    背景需已缩放到画布尺寸。图层严格按序列顺序混合，最后一个在最上层；
    超出画布的像素直接裁掉，不会报错。

    Args:
        background: 画布尺寸的背景网格
        layers: 有序图层序列
        keep_alpha: True 输出 RGBA，否则输出 RGB

    Returns:
        新的合成网格
    """
    canvas_size = background.size
    canvas = _as_float_rgba(background, slice(None), slice(None))

    for index, (grid, placement) in enumerate(layers):
        region = _visible_region(grid.size, placement, canvas_size)
        if region is None:
            logger.debug(f"图层 {index} 完全位于画布之外，跳过")
            continue
        canvas_rows, canvas_cols, layer_rows, layer_cols = region
        src = _as_float_rgba(grid, layer_rows, layer_cols)
        blend_over(canvas[canvas_rows, canvas_cols], src)

    result = np.clip(np.rint(canvas * 255.0), 0, 255).astype(np.uint8)
    if not keep_alpha:
        result = result[..., :3]
    return PixelGrid(result)
