"""双人合成处理器模块.

串联整个合成流水线：解码缩放 -> 抠像提取 -> 布局 -> 图层合成 -> 编码。

Features:
    - 三张输入图并行解码（fork-join）
    - 两个主体并行抠像
    - 人物 1 始终位于最上层
    - 进度回调与阶段耗时统计
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional

from greenscreen.core.compositor import Layer, composite
from greenscreen.core.config_manager import get_config
from greenscreen.core.extractor import ExtractionResult, extract
from greenscreen.core.layout_engine import layout
from greenscreen.models.app_settings import Settings
from greenscreen.models.composite_config import CompositeConfig, SubjectConfig
from greenscreen.models.key_spec import (
    PaletteKeySpec,
    RangeKeySpec,
    key_spec_from_settings,
)
from greenscreen.models.pixel_grid import BoundingBox, PixelGrid, Placement
from greenscreen.utils.exceptions import (
    AppException,
    CanvasTooLargeError,
    ImageProcessError,
    InvalidCanvasError,
    InvalidKeySpecError,
    ResourceError,
    ValidationError,
)
from greenscreen.utils.image_utils import (
    ImageSource,
    encode_grid,
    prepare_background,
    prepare_foreground,
    read_image_source,
)
from greenscreen.utils.logger import setup_logger
from greenscreen.utils.performance import PerformanceTracker, get_performance_tracker

logger = setup_logger(__name__)

# 进度回调类型
ProgressCallback = Callable[[int, str], None]


@dataclass(frozen=True)
class CompositeResult:
    """合成结果.

    Attributes:
        data: 编码后的图片字节数据
        content_type: MIME 类型
        width: 输出宽度
        height: 输出高度
        bbox1: 主体 1 内容边界框
        bbox2: 主体 2 内容边界框
        placement1: 主体 1 最终位置
        placement2: 主体 2 最终位置
    """

    data: bytes
    content_type: str
    width: int
    height: int
    bbox1: BoundingBox
    bbox2: BoundingBox
    placement1: Placement
    placement2: Placement


@dataclass(frozen=True)
class _DecodedInputs:
    background: PixelGrid
    foreground1: PixelGrid
    foreground2: PixelGrid


class CompositeProcessor:
    """双人合成处理器.

    无状态：每次调用都重新分配网格，请求之间不共享可变数据，
    同一个实例可以被并发调用。

    Attributes:
        settings: 应用设置

    Example:
        >>> processor = CompositeProcessor()
        >>> result = await processor.composite(
        ...     background=bg_bytes,
        ...     foreground1=person1_bytes,
        ...     foreground2=person2_bytes,
        ...     config=CompositeConfig(
        ...         subject1=SubjectConfig(key_spec=green_palette()),
        ...         subject2=SubjectConfig(key_spec=green_palette()),
        ...     ),
        ... )
        >>> result.content_type
        'image/jpeg'
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        tracker: Optional[PerformanceTracker] = None,
    ) -> None:
        """初始化合成处理器.

        Args:
            settings: 应用设置，None 时使用全局配置
            tracker: 性能追踪器，None 时使用全局单例
        """
        self._settings = settings
        self._tracker = tracker or get_performance_tracker()

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = get_config().settings
        return self._settings

    def default_config(self) -> CompositeConfig:
        """以应用设置生成默认合成配置."""
        return CompositeConfig.from_settings(self.settings)

    def validate_config(self, config: CompositeConfig) -> None:
        """在任何像素处理之前校验配置.

        Args:
            config: 合成配置

        Raises:
            InvalidCanvasError: 画布尺寸非正
            InvalidKeySpecError: 键色配置无效
            CanvasTooLargeError: 画布像素数超过上限
        """
        width, height = config.canvas_size
        if width <= 0 or height <= 0:
            raise InvalidCanvasError(width, height)
        if config.gutter_percent < 0:
            raise ValidationError(f"间距不能为负: {config.gutter_percent}")

        pixels = width * height
        if pixels > self.settings.max_canvas_pixels:
            raise CanvasTooLargeError(pixels, self.settings.max_canvas_pixels)

        # model_copy(update=...) 不经过字段校验，这里再检查一次
        for name, subject in (("subject1", config.subject1), ("subject2", config.subject2)):
            spec = subject.key_spec
            if not isinstance(spec, (PaletteKeySpec, RangeKeySpec)):
                raise InvalidKeySpecError(f"{name}: 未知的键色类型 {type(spec).__name__}")
            if isinstance(spec, PaletteKeySpec) and spec.tolerance < 0:
                raise InvalidKeySpecError(f"{name}: 容差不能为负 ({spec.tolerance})")
            if isinstance(spec, RangeKeySpec) and spec.hue_min > spec.hue_max:
                raise InvalidKeySpecError(
                    f"{name}: hue_min ({spec.hue_min}) 大于 hue_max ({spec.hue_max})"
                )

    # ===================
    # 流水线阶段
    # ===================
    def _load_background(self, source: ImageSource, config: CompositeConfig) -> PixelGrid:
        with self._tracker.track("decode_background"):
            return prepare_background(read_image_source(source), config.canvas_size)

    def _load_foreground(
        self,
        source: ImageSource,
        subject: SubjectConfig,
        config: CompositeConfig,
        name: str,
    ) -> PixelGrid:
        with self._tracker.track("decode_foreground"):
            return prepare_foreground(
                read_image_source(source),
                config.canvas_size,
                subject.scale,
                source=name,
            )

    def _extract_subject(self, grid: PixelGrid, subject: SubjectConfig) -> ExtractionResult:
        with self._tracker.track("extract"):
            return extract(
                grid,
                subject.key_spec,
                smooth_radius=subject.smooth_radius,
                soft_edges=subject.soft_edges,
            )

    def _arrange(
        self,
        extracted1: ExtractionResult,
        extracted2: ExtractionResult,
        config: CompositeConfig,
    ) -> tuple[Placement, Placement]:
        """计算位置并叠加用户微调偏移."""
        placement1, placement2 = layout(
            extracted1.bbox,
            extracted2.bbox,
            config.canvas_width,
            config.canvas_height,
            config.gutter_percent,
        )
        return (
            placement1.shifted(*config.subject1.offset),
            placement2.shifted(*config.subject2.offset),
        )

    def _render(
        self,
        background: PixelGrid,
        extracted1: ExtractionResult,
        extracted2: ExtractionResult,
        placement1: Placement,
        placement2: Placement,
        config: CompositeConfig,
    ) -> bytes:
        """合成并编码。图层顺序固定为 [人物 2, 人物 1]，人物 1 在最上层."""
        with self._tracker.track("composite"):
            canvas = composite(
                background,
                [
                    Layer(extracted2.rgba, placement2),
                    Layer(extracted1.rgba, placement1),
                ],
                keep_alpha=config.output.preserves_alpha,
            )
        with self._tracker.track("encode"):
            return encode_grid(canvas, config.output.format, config.output.quality)

    def _build_result(
        self,
        data: bytes,
        extracted1: ExtractionResult,
        extracted2: ExtractionResult,
        placement1: Placement,
        placement2: Placement,
        config: CompositeConfig,
    ) -> CompositeResult:
        return CompositeResult(
            data=data,
            content_type=config.output.format.content_type,
            width=config.canvas_width,
            height=config.canvas_height,
            bbox1=extracted1.bbox,
            bbox2=extracted2.bbox,
            placement1=placement1,
            placement2=placement2,
        )

    # ===================
    # 对外接口
    # ===================
    async def composite(
        self,
        background: ImageSource,
        foreground1: ImageSource,
        foreground2: ImageSource,
        config: Optional[CompositeConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CompositeResult:
        """执行双人合成.

        三张图的解码缩放并行执行，两个主体的抠像并行执行，
        其后依次布局、合成和编码。结果与 composite_sync 完全一致。

        Args:
            background: 背景图（字节数据或路径）
            foreground1: 人物 1 图片（最上层）
            foreground2: 人物 2 图片
            config: 合成配置，None 时使用应用设置生成的默认配置
            on_progress: 进度回调

        Returns:
            合成结果

        Raises:
            DecodeError: 输入图片无法解码
            ValidationError: 配置无效
            ResourceError: 画布或图片过大
            ImageProcessError: 其他意外错误
        """
        config = config or self.default_config()

        def report_progress(progress: int, message: str) -> None:
            if on_progress:
                on_progress(progress, message)
            logger.debug(f"进度 {progress}%: {message}")

        try:
            # Step 1: 校验 (0-5%)
            report_progress(5, "校验参数")
            self.validate_config(config)

            # Step 2: 并行解码缩放 (5-40%)
            report_progress(10, "解码图片")
            loop = asyncio.get_running_loop()
            bg_grid, fg1_grid, fg2_grid = await asyncio.gather(
                loop.run_in_executor(None, self._load_background, background, config),
                loop.run_in_executor(
                    None, self._load_foreground, foreground1, config.subject1, config, "foreground1"
                ),
                loop.run_in_executor(
                    None, self._load_foreground, foreground2, config.subject2, config, "foreground2"
                ),
            )
            report_progress(40, "图片解码完成")

            # Step 3: 并行抠像 (40-60%)
            report_progress(45, "抠像中...")
            extracted1, extracted2 = await asyncio.gather(
                loop.run_in_executor(None, self._extract_subject, fg1_grid, config.subject1),
                loop.run_in_executor(None, self._extract_subject, fg2_grid, config.subject2),
            )
            report_progress(60, "抠像完成")

            # Step 4: 布局 (60-65%)
            placement1, placement2 = self._arrange(extracted1, extracted2, config)
            report_progress(65, "布局完成")

            # Step 5: 合成与编码 (65-100%)
            report_progress(70, "合成图层")
            data = await loop.run_in_executor(
                None,
                self._render,
                bg_grid,
                extracted1,
                extracted2,
                placement1,
                placement2,
                config,
            )
            report_progress(100, "完成")

        except AppException:
            raise
        except MemoryError as e:
            logger.error(f"合成时内存不足: {config.canvas_width}x{config.canvas_height}")
            raise ResourceError("合成时内存不足") from e
        except Exception as e:
            logger.exception("双人合成失败")
            raise ImageProcessError(f"双人合成失败: {e}") from e

        logger.info(
            f"双人合成完成: {config.canvas_width}x{config.canvas_height}, "
            f"{config.output.format.value}, {len(data)} 字节"
        )
        return self._build_result(data, extracted1, extracted2, placement1, placement2, config)

    def composite_sync(
        self,
        background: ImageSource,
        foreground1: ImageSource,
        foreground2: ImageSource,
        config: Optional[CompositeConfig] = None,
    ) -> CompositeResult:
        """顺序执行双人合成（参考语义，不使用线程池）.

        Args:
            background: 背景图
            foreground1: 人物 1 图片（最上层）
            foreground2: 人物 2 图片
            config: 合成配置

        Returns:
            合成结果
        """
        config = config or self.default_config()
        try:
            self.validate_config(config)
            bg_grid = self._load_background(background, config)
            fg1_grid = self._load_foreground(foreground1, config.subject1, config, "foreground1")
            fg2_grid = self._load_foreground(foreground2, config.subject2, config, "foreground2")
            extracted1 = self._extract_subject(fg1_grid, config.subject1)
            extracted2 = self._extract_subject(fg2_grid, config.subject2)
            placement1, placement2 = self._arrange(extracted1, extracted2, config)
            data = self._render(
                bg_grid, extracted1, extracted2, placement1, placement2, config
            )
        except AppException:
            raise
        except MemoryError as e:
            raise ResourceError("合成时内存不足") from e
        except Exception as e:
            logger.exception("双人合成失败")
            raise ImageProcessError(f"双人合成失败: {e}") from e

        return self._build_result(data, extracted1, extracted2, placement1, placement2, config)


# 便捷函数
async def composite_images(
    background: ImageSource,
    foreground1: ImageSource,
    foreground2: ImageSource,
    key_spec1: Any = None,
    key_spec2: Any = None,
    settings: Optional[Settings] = None,
    **kwargs: Any,
) -> CompositeResult:
    """便捷的双人合成函数.

    Args:
        background: 背景图
        foreground1: 人物 1 图片
        foreground2: 人物 2 图片
        key_spec1: 人物 1 键色（键色对象、字典、JSON 或预设名），None 为不抠除
        key_spec2: 人物 2 键色
        settings: 应用设置
        **kwargs: 其他 CompositeConfig 字段

    Returns:
        合成结果
    """
    processor = CompositeProcessor(settings=settings)
    config = CompositeConfig.from_settings(processor.settings, **kwargs)
    config = config.with_key_specs(
        key_spec_from_settings(key_spec1),
        key_spec_from_settings(key_spec2),
    )
    return await processor.composite(background, foreground1, foreground2, config)
