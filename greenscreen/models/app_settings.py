"""应用设置模型."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from greenscreen.utils.constants import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_GUTTER_PERCENT,
    DEFAULT_OUTPUT_QUALITY,
    MAX_CANVAS_PIXELS,
)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量和 .env 文件加载配置，环境变量前缀为 ``GREENSCREEN_``。

    Attributes:
        log_level: 日志级别
        canvas_width: 默认画布宽度
        canvas_height: 默认画布高度
        gutter_percent: 默认主体间距（画布宽度百分比）
        output_format: 默认输出格式 (jpeg / png)
        output_quality: 默认输出质量
        max_canvas_pixels: 画布像素上限
        debug: 调试模式
    """

    model_config = SettingsConfigDict(
        env_prefix="GREENSCREEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="日志级别",
    )

    # 画布配置
    canvas_width: int = Field(
        default=DEFAULT_CANVAS_WIDTH,
        ge=1,
        le=16384,
        description="默认画布宽度",
    )

    canvas_height: int = Field(
        default=DEFAULT_CANVAS_HEIGHT,
        ge=1,
        le=16384,
        description="默认画布高度",
    )

    gutter_percent: float = Field(
        default=DEFAULT_GUTTER_PERCENT,
        ge=0,
        le=100,
        description="默认主体间距 %",
    )

    # 输出配置
    output_format: str = Field(
        default="jpeg",
        description="默认输出格式",
    )

    output_quality: int = Field(
        default=DEFAULT_OUTPUT_QUALITY,
        ge=1,
        le=100,
        description="默认输出质量",
    )

    # 资源限制
    max_canvas_pixels: int = Field(
        default=MAX_CANVAS_PIXELS,
        ge=1,
        description="画布像素上限",
    )

    debug: bool = Field(
        default=False,
        description="调试模式",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """验证输出格式."""
        lower_v = v.lower()
        if lower_v == "jpg":
            lower_v = "jpeg"
        if lower_v not in {"jpeg", "png"}:
            raise ValueError(f"无效的输出格式: {v}，有效值: jpeg, png")
        return lower_v

    @property
    def canvas_size(self) -> tuple[int, int]:
        """获取默认画布尺寸."""
        return (self.canvas_width, self.canvas_height)
