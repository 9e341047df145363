"""数据模型模块."""

from greenscreen.models.composite_config import (
    CompositeConfig,
    OutputConfig,
    OutputFormat,
    SubjectConfig,
)
from greenscreen.models.key_spec import (
    KEY_SPEC_PRESETS,
    KeySpec,
    PaletteKeySpec,
    RangeKeySpec,
    empty_key_spec,
    green_palette,
    green_screen_range,
    key_spec_from_settings,
    parse_key_spec,
)
from greenscreen.models.pixel_grid import BoundingBox, PixelGrid, Placement

__all__ = [
    # 合成配置
    "CompositeConfig",
    "OutputConfig",
    "OutputFormat",
    "SubjectConfig",
    # 键色
    "KEY_SPEC_PRESETS",
    "KeySpec",
    "PaletteKeySpec",
    "RangeKeySpec",
    "empty_key_spec",
    "green_palette",
    "green_screen_range",
    "key_spec_from_settings",
    "parse_key_spec",
    # 像素与几何
    "BoundingBox",
    "PixelGrid",
    "Placement",
]
