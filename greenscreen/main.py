"""绿幕双人合成工具 - 命令行入口.

Usage:
    greenscreen --background bg.jpg --person1 a.png --person2 b.png \\
        --key1 green --key2 '{"kind": "range", "hue_min": 80, "hue_max": 160}' \\
        -o result.jpg
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from greenscreen import __version__
from greenscreen.core.composite_processor import CompositeProcessor
from greenscreen.core.config_manager import get_config
from greenscreen.models.composite_config import CompositeConfig
from greenscreen.models.key_spec import KEY_SPEC_PRESETS, key_spec_from_settings
from greenscreen.utils.constants import APP_NAME, MAX_SUBJECT_SCALE, MIN_SUBJECT_SCALE
from greenscreen.utils.error_handler import get_user_friendly_message, handle_exception
from greenscreen.utils.exceptions import AppException
from greenscreen.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)


def _parse_offset(value: str) -> tuple[int, int]:
    """解析 "dx,dy" 形式的偏移."""
    try:
        dx, dy = (int(part) for part in value.split(","))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"偏移格式应为 dx,dy: {value}") from e
    return dx, dy


def _parse_scale(value: str) -> int:
    scale = int(value)
    if not MIN_SUBJECT_SCALE <= scale <= MAX_SUBJECT_SCALE:
        raise argparse.ArgumentTypeError(
            f"缩放应在 {MIN_SUBJECT_SCALE}-{MAX_SUBJECT_SCALE} 之间: {value}"
        )
    return scale


def build_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器."""
    parser = argparse.ArgumentParser(
        prog="greenscreen",
        description=f"{APP_NAME}: 抠除两张人物图的绿幕并并排合成到背景图上",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    inputs = parser.add_argument_group("输入")
    inputs.add_argument("--background", required=True, type=Path, help="背景图路径")
    inputs.add_argument("--person1", required=True, type=Path, help="人物 1 图片（最上层）")
    inputs.add_argument("--person2", required=True, type=Path, help="人物 2 图片")

    keying = parser.add_argument_group("抠像")
    presets = ", ".join(KEY_SPEC_PRESETS)
    keying.add_argument("--key1", default=None, help=f"人物 1 键色：预设名 ({presets}) 或 JSON")
    keying.add_argument("--key2", default=None, help="人物 2 键色")
    keying.add_argument(
        "--smooth", type=float, default=0.0, help="边缘平滑半径（配合 --soft-edges 生效）"
    )
    keying.add_argument("--soft-edges", action="store_true", help="保留渐变边缘")

    canvas = parser.add_argument_group("画布与布局")
    canvas.add_argument("--width", type=int, default=None, help="画布宽度")
    canvas.add_argument("--height", type=int, default=None, help="画布高度")
    canvas.add_argument("--gutter", type=float, default=None, help="主体间距（画布宽度 %%）")
    canvas.add_argument("--scale1", type=_parse_scale, default=None, help="人物 1 缩放 %%")
    canvas.add_argument("--scale2", type=_parse_scale, default=None, help="人物 2 缩放 %%")
    canvas.add_argument("--offset1", type=_parse_offset, default=None, help="人物 1 偏移 dx,dy")
    canvas.add_argument("--offset2", type=_parse_offset, default=None, help="人物 2 偏移 dx,dy")

    output = parser.add_argument_group("输出")
    output.add_argument("-o", "--output", required=True, type=Path, help="输出文件路径")
    output.add_argument("--format", choices=["jpeg", "png"], default=None, help="输出格式")
    output.add_argument("--quality", type=int, default=None, help="JPEG 质量 (1-100)")
    output.add_argument("--keep-alpha", action="store_true", help="PNG 输出保留透明通道")
    output.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    return parser


def build_config(args: argparse.Namespace, base: CompositeConfig) -> CompositeConfig:
    """在默认配置上叠加命令行参数.

    Args:
        args: 解析后的参数
        base: 默认合成配置

    Returns:
        新的合成配置

    Raises:
        ValidationError: 参数无效
    """
    data: dict[str, Any] = base.to_dict()

    for field, value in (
        ("canvas_width", args.width),
        ("canvas_height", args.height),
        ("gutter_percent", args.gutter),
    ):
        if value is not None:
            data[field] = value

    for name, key, scale, offset in (
        ("subject1", args.key1, args.scale1, args.offset1),
        ("subject2", args.key2, args.scale2, args.offset2),
    ):
        subject = data[name]
        if key is not None:
            subject["key_spec"] = key_spec_from_settings(key).model_dump()
        if scale is not None:
            subject["scale"] = scale
        if offset is not None:
            subject["offset"] = offset
        subject["smooth_radius"] = args.smooth
        subject["soft_edges"] = args.soft_edges

    if args.format is not None:
        data["output"]["format"] = args.format
    if args.quality is not None:
        data["output"]["quality"] = args.quality
    data["output"]["keep_alpha"] = args.keep_alpha

    return CompositeConfig.from_dict(data)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """命令行主入口函数.

    Returns:
        退出码，0 表示正常退出
    """
    load_dotenv()
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_log_level("DEBUG")

    try:
        manager = get_config()
        config = build_config(args, manager.composite_config)
        processor = CompositeProcessor(settings=manager.settings)
        result = asyncio.run(
            processor.composite(args.background, args.person1, args.person2, config)
        )
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(result.data)
    except AppException as e:
        handle_exception(e, "合成失败", reraise=False)
        print(f"错误: {get_user_friendly_message(e)} ({e.message})", file=sys.stderr)
        return 1
    except OSError as e:
        handle_exception(e, f"写入输出文件失败: {args.output}", reraise=False)
        print(f"错误: 无法写入 {args.output}", file=sys.stderr)
        return 1

    logger.info(
        f"已保存: {args.output} ({result.width}x{result.height}, {result.content_type})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
