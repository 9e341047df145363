"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

# 日志与配置文件写入临时目录，需在导入 greenscreen 之前设置
os.environ.setdefault("GREENSCREEN_HOME", tempfile.mkdtemp(prefix="greenscreen-test-"))

import pytest
from PIL import Image

from greenscreen.core.config_manager import ConfigManager

GREEN = (0, 255, 0)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """每个测试使用独立的配置管理器，并清除 GREENSCREEN_ 环境变量."""
    for key in list(os.environ):
        if key.startswith("GREENSCREEN_") and key != "GREENSCREEN_HOME":
            monkeypatch.delenv(key, raising=False)
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture
def encode_png() -> Callable[[Image.Image], bytes]:
    """返回把 PIL 图片编码为 PNG 字节的函数."""

    def _encode(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    return _encode


@pytest.fixture
def green_screen_person() -> Image.Image:
    """绿幕人物图：40x60 绿色背景，中间 10x20 红色人物."""
    img = Image.new("RGB", (40, 60), GREEN)
    img.paste((200, 30, 30), (15, 20, 25, 40))
    return img


@pytest.fixture
def blue_person() -> Image.Image:
    """绿幕人物图：40x60 绿色背景，左上 8x12 蓝色人物."""
    img = Image.new("RGB", (40, 60), GREEN)
    img.paste((20, 40, 220), (2, 3, 10, 15))
    return img


