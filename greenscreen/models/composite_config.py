"""合成请求配置模型."""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from greenscreen.models.key_spec import KeySpec, PaletteKeySpec, parse_key_spec
from greenscreen.utils.constants import (
    CONTENT_TYPES,
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_GUTTER_PERCENT,
    DEFAULT_OUTPUT_QUALITY,
    DEFAULT_SUBJECT_SCALE,
    MAX_SMOOTH_RADIUS,
    MAX_SUBJECT_SCALE,
    MIN_SUBJECT_SCALE,
)
from greenscreen.utils.exceptions import InvalidKeySpecError, ValidationError

if TYPE_CHECKING:
    from greenscreen.models.app_settings import Settings


class OutputFormat(str, Enum):
    """输出格式枚举."""

    PNG = "png"
    JPEG = "jpeg"

    @property
    def pil_format(self) -> str:
        """Pillow 格式名."""
        return self.value.upper()

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.pil_format]


class SubjectConfig(BaseModel):
    """单个前景主体的配置.

    Attributes:
        key_spec: 键色配置，默认空调色板（不抠除）
        scale: 缩放百分比，在适配画布之后应用
        offset: 在自动布局结果上的额外偏移 (dx, dy)
        smooth_radius: 边缘平滑半径，0 表示不平滑
        soft_edges: 是否启用渐变边缘，关闭时 alpha 与分类结果一致
    """

    key_spec: KeySpec = Field(default_factory=PaletteKeySpec, description="键色配置")
    scale: int = Field(
        default=DEFAULT_SUBJECT_SCALE,
        ge=MIN_SUBJECT_SCALE,
        le=MAX_SUBJECT_SCALE,
        description="缩放百分比",
    )
    offset: tuple[int, int] = Field(default=(0, 0), description="位置微调")
    smooth_radius: float = Field(
        default=0.0,
        ge=0,
        le=MAX_SMOOTH_RADIUS,
        description="边缘平滑半径",
    )
    soft_edges: bool = Field(default=False, description="保留渐变边缘")

    @field_validator("key_spec", mode="before")
    @classmethod
    def coerce_key_spec(cls, v: Any) -> Any:
        """兼容未带 kind 的调色板字典."""
        if isinstance(v, dict) and "kind" not in v and "colors" in v:
            return {"kind": "palette", **v}
        return v


class OutputConfig(BaseModel):
    """输出配置.

    Attributes:
        format: 输出格式
        quality: JPEG 质量 (1-100)
        keep_alpha: PNG 输出时保留透明通道
    """

    format: OutputFormat = Field(default=OutputFormat.JPEG, description="输出格式")
    quality: int = Field(default=DEFAULT_OUTPUT_QUALITY, ge=1, le=100, description="输出质量")
    keep_alpha: bool = Field(default=False, description="保留透明通道")

    @property
    def preserves_alpha(self) -> bool:
        """JPEG 不支持透明，只有 PNG 才会保留."""
        return self.keep_alpha and self.format == OutputFormat.PNG


class CompositeConfig(BaseModel):
    """合成配置.

    subject1 为第一个人物，始终位于最上层；subject2 位于其下。

    直接构造时校验失败抛出 pydantic 的 ValidationError；
    需要应用异常（InvalidKeySpecError / ValidationError）时请使用
    ``from_dict`` 或 ``with_key_specs``。

    Attributes:
        canvas_width: 画布宽度
        canvas_height: 画布高度
        gutter_percent: 两个主体之间的间距（画布宽度百分比）
        subject1: 第一个主体配置
        subject2: 第二个主体配置
        output: 输出配置

    Example:
        >>> config = CompositeConfig(
        ...     subject1=SubjectConfig(key_spec=green_palette()),
        ...     subject2=SubjectConfig(key_spec=green_palette()),
        ... )
        >>> config.canvas_size
        (1920, 1080)
    """

    canvas_width: int = Field(default=DEFAULT_CANVAS_WIDTH, gt=0, description="画布宽度")
    canvas_height: int = Field(default=DEFAULT_CANVAS_HEIGHT, gt=0, description="画布高度")
    gutter_percent: float = Field(default=DEFAULT_GUTTER_PERCENT, ge=0, description="主体间距 %")
    subject1: SubjectConfig = Field(default_factory=SubjectConfig)
    subject2: SubjectConfig = Field(default_factory=SubjectConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)

    def to_json(self) -> str:
        """转换为 JSON 字符串."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "CompositeConfig":
        """从 JSON 字符串创建配置.

        Raises:
            ValidationError: JSON 或字段无效
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValidationError(f"配置 JSON 无效: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """转换为字典."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "CompositeConfig":
        """从字典创建配置.

        pydantic 的校验错误会转换为应用的 ValidationError。
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors()
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in errors
            )
            if all("key_spec" in err["loc"] for err in errors):
                raise InvalidKeySpecError(details) from e
            raise ValidationError(f"合成配置无效: {details}") from e

    @classmethod
    def from_settings(cls, settings: "Settings", **overrides: Any) -> "CompositeConfig":
        """以应用设置为默认值创建配置.

        Args:
            settings: 应用设置
            **overrides: 覆盖字段

        Returns:
            CompositeConfig 实例
        """
        data: dict[str, Any] = {
            "canvas_width": settings.canvas_width,
            "canvas_height": settings.canvas_height,
            "gutter_percent": settings.gutter_percent,
            "output": {
                "format": settings.output_format,
                "quality": settings.output_quality,
            },
        }
        data.update(overrides)
        return cls.from_dict(data)

    def with_key_specs(self, spec1: Any, spec2: Any) -> "CompositeConfig":
        """返回替换两个主体键色后的新配置."""
        return self.model_copy(
            update={
                "subject1": self.subject1.model_copy(
                    update={"key_spec": parse_key_spec(spec1)}
                ),
                "subject2": self.subject2.model_copy(
                    update={"key_spec": parse_key_spec(spec2)}
                ),
            }
        )
