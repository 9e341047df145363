"""命令行入口集成测试."""

from pathlib import Path

import pytest
from PIL import Image

from greenscreen.main import build_config, build_parser, main
from greenscreen.models.composite_config import CompositeConfig, OutputFormat
from greenscreen.models.key_spec import PaletteKeySpec, RangeKeySpec

pytestmark = pytest.mark.integration


def _args(background: Path, person1: Path, person2: Path, output: Path, *extra: str) -> list:
    return [
        "--background", str(background),
        "--person1", str(person1),
        "--person2", str(person2),
        "-o", str(output),
        *extra,
    ]


class TestBuildConfig:
    """测试命令行参数转换为合成配置."""

    def test_overrides(self, temp_dir: Path):
        """测试参数覆盖默认配置."""
        args = build_parser().parse_args(
            _args(
                temp_dir / "bg.png",
                temp_dir / "a.png",
                temp_dir / "b.png",
                temp_dir / "out.png",
                "--key1", "green",
                "--key2", '{"kind": "range", "hue_min": 90, "hue_max": 150}',
                "--width", "800",
                "--height", "600",
                "--gutter", "10",
                "--scale1", "150",
                "--offset2=-5,12",
                "--format", "png",
                "--keep-alpha",
            )
        )
        config = build_config(args, CompositeConfig())

        assert config.canvas_size == (800, 600)
        assert config.gutter_percent == 10
        assert isinstance(config.subject1.key_spec, PaletteKeySpec)
        assert config.subject1.key_spec.colors == [(0, 255, 0)]
        assert config.subject1.scale == 150
        assert isinstance(config.subject2.key_spec, RangeKeySpec)
        assert config.subject2.offset == (-5, 12)
        assert config.output.format == OutputFormat.PNG
        assert config.output.preserves_alpha

    def test_defaults_kept(self, temp_dir: Path):
        """测试未指定的参数沿用默认配置."""
        args = build_parser().parse_args(
            _args(temp_dir / "bg", temp_dir / "a", temp_dir / "b", temp_dir / "o")
        )
        base = CompositeConfig(canvas_width=1000)
        config = build_config(args, base)
        assert config.canvas_width == 1000
        assert config.subject1.key_spec.is_empty

    @pytest.mark.parametrize("extra", [["--scale1", "0"], ["--offset1", "5"]])
    def test_invalid_arguments(self, temp_dir: Path, extra: list):
        """测试无效参数退出."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                _args(temp_dir / "bg", temp_dir / "a", temp_dir / "b", temp_dir / "o", *extra)
            )


class TestMain:
    """测试命令行主流程."""

    def test_main_writes_output(
        self,
        temp_dir: Path,
        sample_background_image: Path,
        sample_person_images: tuple,
    ):
        """测试成功写出合成图片."""
        person1, person2 = sample_person_images
        output = temp_dir / "out" / "result.jpg"

        exit_code = main(
            _args(
                sample_background_image, person1, person2, output,
                "--key1", "green",
                "--key2", "green-range",
                "--width", "320",
                "--height", "180",
            )
        )

        assert exit_code == 0
        with Image.open(output) as img:
            assert img.format == "JPEG"
            assert img.size == (320, 180)

    def test_main_reports_decode_error(
        self,
        temp_dir: Path,
        sample_background_image: Path,
        sample_person_images: tuple,
        capsys: pytest.CaptureFixture,
    ):
        """测试输入损坏时返回非零退出码并提示用户."""
        broken = temp_dir / "broken.png"
        broken.write_bytes(b"garbage")
        person1, _ = sample_person_images

        exit_code = main(
            _args(sample_background_image, person1, broken, temp_dir / "out.jpg")
        )

        assert exit_code == 1
        assert "图片无法识别" in capsys.readouterr().err
        assert not (temp_dir / "out.jpg").exists()

    def test_main_reports_invalid_key(
        self,
        temp_dir: Path,
        sample_background_image: Path,
        sample_person_images: tuple,
        capsys: pytest.CaptureFixture,
    ):
        """测试键色无效时返回非零退出码."""
        person1, person2 = sample_person_images
        exit_code = main(
            _args(
                sample_background_image, person1, person2, temp_dir / "out.jpg",
                "--key1", "purple",
            )
        )
        assert exit_code == 1
        assert "键色" in capsys.readouterr().err
