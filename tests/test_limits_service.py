"""
Tests for size limits and enlarge factor availability.
"""
from PIL import Image

from enlarger.models.image_model import ImageAsset
from enlarger.services.limits_service import TOO_LARGE_MESSAGE, LimitsService

MIB = 1024 * 1024


def fake_asset(width, height, size_bytes):
    return ImageAsset(
        data=b"\0" * size_bytes,
        pil_image=Image.new("RGBA", (1, 1)),
        width=width,
        height=height,
        mime_type="image/png",
    )


class TestEnlargeOptions:
    """Test factor availability against the pixel budget."""

    def test_typical_image_enables_every_factor(self, limits):
        """Test a 1000x800 image can use 2X, 3X, 4X and 8X."""
        options = limits.enlarge_options(1000 * 800)
        assert [o.factor for o in options] == [2, 3, 4, 8]
        assert [o.label for o in options] == ["2X", "3X", "4X", "8X"]
        assert not any(o.disabled for o in options)

    def test_budget_boundary_is_inclusive(self):
        """Test pixels * factor equal to the budget is still allowed."""
        limits = LimitsService(max_pixel_budget=100, max_file_bytes=MIB)
        assert limits.is_factor_enabled(50, 2)
        assert not limits.is_factor_enabled(50, 3)
        assert not limits.is_pixel_exceeded(50)
        assert limits.is_pixel_exceeded(51)

    def test_largest_allowed_square(self, limits):
        """Test 2500x2500 keeps 2X only."""
        options = {o.factor: o.disabled for o in limits.enlarge_options(2500 * 2500)}
        assert options == {2: False, 3: True, 4: True, 8: True}

    def test_unknown_factor_is_disabled(self, limits):
        """Test a factor outside the list is never enabled."""
        assert not limits.is_factor_enabled(100, 5)


class TestSubmitBlocker:
    """Test the combined submit guard."""

    def test_small_image_passes(self, limits):
        assert limits.submit_blocker(fake_asset(1000, 800, MIB), factor=8) is None

    def test_file_over_limit_blocks(self, limits):
        """Test a file one byte over 5 MiB is refused."""
        error = limits.submit_blocker(fake_asset(10, 10, 5 * MIB + 1))
        assert error is not None
        assert error.message == TOO_LARGE_MESSAGE
        assert error.details["size_bytes"] == 5 * MIB + 1

    def test_file_at_limit_passes(self, limits):
        assert limits.submit_blocker(fake_asset(10, 10, 5 * MIB)) is None

    def test_pixel_budget_blocks(self, limits):
        """Test an image too large for every factor is refused."""
        error = limits.submit_blocker(fake_asset(2501, 2500, MIB))
        assert error is not None
        assert error.error_code == "IMAGE_TOO_LARGE"

    def test_disabled_factor_blocks(self, limits):
        """Test a selected factor over budget blocks submission."""
        assert limits.submit_blocker(fake_asset(2500, 2500, MIB), factor=4) is not None
        assert limits.submit_blocker(fake_asset(2500, 2500, MIB), factor=2) is None
