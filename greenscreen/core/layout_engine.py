"""布局引擎模块.

根据两个主体的内容边界框，计算它们在画布上并排居中、互不重叠的贴放位置。
"""

from __future__ import annotations

import math

from greenscreen.models.pixel_grid import BoundingBox, Placement
from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)


def gutter_width(canvas_width: int, gutter_percent: float) -> int:
    """计算间距像素宽度（向下取整）."""
    return math.floor(canvas_width * gutter_percent / 100)


def layout(
    bbox1: BoundingBox,
    bbox2: BoundingBox,
    canvas_width: int,
    canvas_height: int,
    gutter_percent: float,
) -> tuple[Placement, Placement]:
    """计算两个主体的贴放位置.

    两个主体的内容作为一个整体水平居中，主体 1 在左、主体 2 在右，
    中间留出间距；垂直方向内容顶部对齐画布上边缘。
    内容比画布宽时起点可为负，不做裁剪（由合成器负责裁剪）。

    空边界框的宽度按 0 计算。

    Args:
        bbox1: 主体 1 内容边界框
        bbox2: 主体 2 内容边界框
        canvas_width: 画布宽度
        canvas_height: 画布高度（顶部对齐，不参与计算）
        gutter_percent: 间距占画布宽度的百分比

    Returns:
        (主体 1 位置, 主体 2 位置)
    """
    w1 = bbox1.width
    w2 = bbox2.width
    gutter = gutter_width(canvas_width, gutter_percent)
    total_width = w1 + w2 + gutter
    start_x = (canvas_width - total_width) // 2

    placement1 = Placement(offset_x=start_x - bbox1.left, offset_y=-bbox1.top)
    placement2 = Placement(
        offset_x=start_x + w1 + gutter - bbox2.left,
        offset_y=-bbox2.top,
    )

    logger.debug(
        f"布局计算: 画布 {canvas_width}x{canvas_height}, 内容宽 {w1}+{w2}, "
        f"间距 {gutter}, 起点 {start_x}"
    )
    return placement1, placement2
