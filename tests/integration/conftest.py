"""集成测试配置和共享 fixtures."""

from pathlib import Path

import pytest
from PIL import Image

from greenscreen.models.composite_config import CompositeConfig


@pytest.fixture
def sample_background_image(temp_dir: Path) -> Path:
    """创建示例背景图片（上蓝下棕）."""
    img = Image.new("RGB", (640, 360), color=(70, 130, 200))
    img.paste((120, 90, 60), (0, 240, 640, 360))
    path = temp_dir / "background.jpg"
    img.save(path, quality=95)
    return path


@pytest.fixture
def sample_person_images(temp_dir: Path) -> tuple[Path, Path]:
    """创建两张绿幕人物图片."""
    paths = []
    for index, color in enumerate(((210, 60, 50), (40, 60, 200))):
        img = Image.new("RGB", (300, 400), color=(0, 255, 0))
        # 身体与头部
        img.paste(color, (100, 150, 200, 400))
        img.paste(color, (125, 80, 175, 150))
        path = temp_dir / f"person{index + 1}.png"
        img.save(path)
        paths.append(path)
    return paths[0], paths[1]


@pytest.fixture
def composite_config() -> CompositeConfig:
    """小画布合成配置，两个主体都使用绿幕预设."""
    return CompositeConfig.from_dict(
        {
            "canvas_width": 640,
            "canvas_height": 360,
            "subject1": {"key_spec": {"kind": "palette", "colors": [[0, 255, 0]]}},
            "subject2": {"key_spec": {"kind": "range", "green_dominance": 1.4}},
            "output": {"format": "png"},
        }
    )
