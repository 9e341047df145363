"""键色分类器单元测试."""

from __future__ import annotations

import numpy as np
import pytest

from greenscreen.core.chroma_key import (
    classify,
    classify_grid,
    classify_rgb,
    rgb_to_hsv,
    smooth_mask,
)
from greenscreen.models.key_spec import (
    PaletteKeySpec,
    RangeKeySpec,
    empty_key_spec,
    green_palette,
    green_screen_range,
)
from greenscreen.models.pixel_grid import PixelGrid


# ===================
# HSV 转换测试
# ===================
class TestRgbToHsv:
    """测试 RGB 转 HSV."""

    @pytest.mark.parametrize(
        "rgb, expected",
        [
            ((255, 0, 0), (0.0, 100.0, 100.0)),
            ((0, 255, 0), (120.0, 100.0, 100.0)),
            ((0, 0, 255), (240.0, 100.0, 100.0)),
            ((255, 255, 0), (60.0, 100.0, 100.0)),
            ((255, 0, 255), (300.0, 100.0, 100.0)),
        ],
    )
    def test_primary_colors(self, rgb, expected) -> None:
        """测试基本颜色."""
        hue, sat, val = rgb_to_hsv(np.array([[rgb]], dtype=np.uint8))
        assert hue[0, 0] == pytest.approx(expected[0])
        assert sat[0, 0] == pytest.approx(expected[1])
        assert val[0, 0] == pytest.approx(expected[2])

    def test_black_has_no_hue_or_saturation(self) -> None:
        """测试黑色不会产生除零."""
        hue, sat, val = rgb_to_hsv(np.zeros((1, 1, 3), dtype=np.uint8))
        assert hue[0, 0] == 0.0
        assert sat[0, 0] == 0.0
        assert val[0, 0] == 0.0

    def test_gray_has_zero_saturation(self) -> None:
        """测试灰色饱和度为 0."""
        hue, sat, val = rgb_to_hsv(np.array([[(128, 128, 128)]], dtype=np.uint8))
        assert hue[0, 0] == 0.0
        assert sat[0, 0] == 0.0
        assert val[0, 0] == pytest.approx(128 / 255 * 100)


# ===================
# 调色板形式测试
# ===================
class TestPaletteClassify:
    """测试调色板形式分类."""

    def test_empty_palette_matches_nothing(self) -> None:
        """测试空调色板不匹配任何像素."""
        spec = empty_key_spec()
        assert classify((0, 255, 0), spec) is False
        assert classify((0, 0, 0), spec) is False

    def test_exact_color_always_matches(self) -> None:
        """测试与参考色完全相同的像素在任何容差下都匹配."""
        for tolerance in (0, 1, 10, 256, 1000):
            spec = PaletteKeySpec(colors=[(12, 200, 34)], tolerance=tolerance)
            assert classify((12, 200, 34), spec)

    def test_tolerance_is_strict(self) -> None:
        """测试差值等于容差时不匹配."""
        spec = PaletteKeySpec(colors=[(0, 255, 0)], tolerance=10)
        assert classify((9, 246, 9), spec)
        assert not classify((10, 255, 0), spec)
        assert not classify((0, 245, 0), spec)

    def test_every_channel_must_be_within_tolerance(self) -> None:
        """测试每个通道都需在容差内."""
        spec = PaletteKeySpec(colors=[(100, 100, 100)], tolerance=20)
        assert classify((119, 81, 110), spec)
        assert not classify((119, 81, 121), spec)

    def test_any_color_in_palette_matches(self) -> None:
        """测试任一参考色命中即为背景."""
        spec = PaletteKeySpec(colors=[(0, 255, 0), (0, 0, 255)], tolerance=5)
        assert classify((0, 252, 3), spec)
        assert classify((2, 1, 250), spec)
        assert not classify((255, 0, 0), spec)

    def test_max_tolerance_matches_everything(self) -> None:
        """测试容差 256 匹配所有颜色."""
        spec = PaletteKeySpec(colors=[(0, 0, 0)], tolerance=256)
        assert classify((255, 255, 255), spec)

    def test_alpha_channel_is_ignored(self) -> None:
        """测试 alpha 不参与分类."""
        spec = green_palette(tolerance=5)
        assert classify((0, 255, 0, 0), spec)
        assert classify((0, 255, 0, 255), spec)


# ===================
# 范围形式测试
# ===================
class TestRangeClassify:
    """测试 HSV 范围形式分类."""

    def test_pure_green_matches(self) -> None:
        """测试纯绿匹配."""
        assert classify((0, 255, 0), RangeKeySpec())
        assert classify((0, 255, 0), green_screen_range())

    def test_hue_bounds_inclusive(self) -> None:
        """测试色相边界包含两端."""
        spec = RangeKeySpec(
            hue_min=120, hue_max=120, saturation_min=0, value_min=0, green_dominance=None
        )
        assert classify((0, 255, 0), spec)
        assert not classify((255, 0, 0), spec)

    def test_low_saturation_rejected(self) -> None:
        """测试饱和度过低不匹配."""
        spec = RangeKeySpec(saturation_min=50, green_dominance=None)
        # 色相 120，饱和度约 20%
        assert not classify((160, 200, 160), spec)

    def test_low_value_rejected(self) -> None:
        """测试明度过低不匹配."""
        spec = RangeKeySpec(value_min=50, green_dominance=None)
        assert not classify((0, 60, 0), spec)
        assert classify((0, 200, 0), spec)

    def test_green_dominance(self) -> None:
        """测试绿色主导倍数."""
        # 色相约 73 度，G 仅略高于 R
        pixel = (200, 255, 0)
        assert classify(pixel, RangeKeySpec(hue_min=60, green_dominance=None))
        assert classify(pixel, RangeKeySpec(hue_min=60, green_dominance=1.0))
        assert not classify(pixel, RangeKeySpec(hue_min=60, green_dominance=1.4))

    def test_black_and_white_never_match(self) -> None:
        """测试黑白不会被当作绿幕."""
        spec = RangeKeySpec(hue_min=0, hue_max=359, saturation_min=0, value_min=0)
        assert not classify((0, 0, 0), spec)
        assert not classify((255, 255, 255), spec)


class TestClassifyGrid:
    """测试整张网格分类."""

    def test_mask_shape_and_values(self) -> None:
        """测试掩码形状与取值."""
        pixels = np.array(
            [[(0, 255, 0), (255, 0, 0)], [(10, 250, 5), (0, 0, 0)]],
            dtype=np.uint8,
        )
        mask = classify_grid(PixelGrid(pixels), green_palette(tolerance=20))
        assert mask.shape == (2, 2)
        assert mask.tolist() == [[True, False], [True, False]]

    def test_unknown_spec_type_rejected(self) -> None:
        """测试未知键色类型."""
        with pytest.raises(TypeError):
            classify_rgb(np.zeros((1, 1, 3), dtype=np.uint8), object())


# ===================
# 边缘平滑测试
# ===================
class TestSmoothMask:
    """测试边缘平滑."""

    def test_no_smoothing_is_binary(self) -> None:
        """测试半径 0 时只输出 0 或 255."""
        backdrop = np.array([[True, False], [False, True]])
        alpha = smooth_mask(backdrop)
        assert alpha.tolist() == [[0, 255], [255, 0]]

    def test_soft_edges_produce_partial_alpha(self) -> None:
        """测试保留渐变边缘."""
        backdrop = np.zeros((20, 20), dtype=bool)
        backdrop[:, :10] = True
        alpha = smooth_mask(backdrop, radius=2.0, soft=True)
        edge = alpha[10, 8:12]
        assert ((edge > 0) & (edge < 255)).any()

    def test_hard_edges_follow_classification(self) -> None:
        """测试二值输出与分类掩码一致."""
        backdrop = np.ones((5, 5), dtype=bool)
        backdrop[2, 2] = False
        alpha = smooth_mask(backdrop, radius=2.0, soft=False)
        assert np.array_equal(alpha, np.where(backdrop, 0, 255))

    def test_soft_edges_keep_classification(self) -> None:
        """测试渐变边缘不会改变像素分类."""
        backdrop = np.ones((9, 9), dtype=bool)
        backdrop[3:6, 3:6] = False
        alpha = smooth_mask(backdrop, radius=1.0, soft=True)
        assert (alpha[backdrop] == 0).all()
        assert (alpha[~backdrop] >= 1).all()
        assert alpha[4, 4] < 255
