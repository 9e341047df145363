"""应用设置单元测试."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from greenscreen.models.app_settings import Settings


class TestSettings:
    """测试应用设置."""

    def test_defaults(self) -> None:
        """测试默认值."""
        settings = Settings()
        assert settings.canvas_size == (1920, 1080)
        assert settings.gutter_percent == 5.0
        assert settings.output_format == "jpeg"
        assert settings.output_quality == 90
        assert settings.log_level == "INFO"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """测试环境变量覆盖."""
        monkeypatch.setenv("GREENSCREEN_CANVAS_WIDTH", "1280")
        monkeypatch.setenv("GREENSCREEN_OUTPUT_FORMAT", "PNG")
        monkeypatch.setenv("GREENSCREEN_LOG_LEVEL", "debug")
        settings = Settings()
        assert settings.canvas_width == 1280
        assert settings.output_format == "png"
        assert settings.log_level == "DEBUG"

    def test_jpg_alias(self) -> None:
        """测试 jpg 视为 jpeg."""
        assert Settings(output_format="jpg").output_format == "jpeg"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("log_level", "VERBOSE"),
            ("output_format", "gif"),
            ("canvas_width", 0),
            ("output_quality", 101),
        ],
    )
    def test_invalid(self, field: str, value) -> None:
        """测试无效值."""
        with pytest.raises(PydanticValidationError):
            Settings(**{field: value})
