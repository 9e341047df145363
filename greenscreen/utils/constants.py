"""应用常量定义."""

import os
from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "双人绿幕抠像合成工具"
APP_VERSION = "1.0.0"

# ===================
# 路径常量
# ===================
# 应用数据目录（可通过 GREENSCREEN_HOME 覆盖）
APP_DATA_DIR = Path(
    os.environ.get("GREENSCREEN_HOME", Path.home() / ".greenscreen-composer")
)

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# ===================
# 画布设置
# ===================
DEFAULT_CANVAS_WIDTH = 1920
DEFAULT_CANVAS_HEIGHT = 1080
DEFAULT_CANVAS_SIZE = (DEFAULT_CANVAS_WIDTH, DEFAULT_CANVAS_HEIGHT)

# 两个主体之间的间距（画布宽度百分比）
DEFAULT_GUTTER_PERCENT = 5.0

# 画布像素上限，超出视为资源错误 (约 8K x 8K)
MAX_CANVAS_PIXELS = 64_000_000

# ===================
# 抠像设置
# ===================
# 默认键色（界面默认的纯绿）
DEFAULT_KEY_COLOR = (0, 255, 0)

# 调色板模式默认每通道容差
DEFAULT_KEY_TOLERANCE = 60

# 容差上限：|差值| < 256 恒成立
MAX_KEY_TOLERANCE = 256

# 绿色主导倍数（G > R*倍数 且 G > B*倍数）
DEFAULT_GREEN_DOMINANCE = 1.4

# 边缘平滑半径上限
MAX_SMOOTH_RADIUS = 10.0

# ===================
# 主体缩放
# ===================
MIN_SUBJECT_SCALE = 1
MAX_SUBJECT_SCALE = 200
DEFAULT_SUBJECT_SCALE = 100

# ===================
# 输出设置
# ===================
DEFAULT_OUTPUT_QUALITY = 90

CONTENT_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}
