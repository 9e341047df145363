"""核心业务逻辑模块."""

from greenscreen.core.chroma_key import classify, classify_grid, smooth_mask
from greenscreen.core.composite_processor import (
    CompositeProcessor,
    CompositeResult,
    composite_images,
)
from greenscreen.core.compositor import Layer, composite
from greenscreen.core.extractor import ExtractionResult, compute_bbox, extract
from greenscreen.core.layout_engine import gutter_width, layout

__all__ = [
    # 键色分类
    "classify",
    "classify_grid",
    "smooth_mask",
    # 前景提取
    "ExtractionResult",
    "compute_bbox",
    "extract",
    # 布局
    "gutter_width",
    "layout",
    # 图层合成
    "Layer",
    "composite",
    # 合成处理器
    "CompositeProcessor",
    "CompositeResult",
    "composite_images",
]
