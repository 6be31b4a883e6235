import pytest

from image_proxy.services.format_negotiator import select_format


class TestSelectFormat:
    def test_auto_with_webp_accept(self):
        assert select_format("auto", "text/html,image/webp,*/*") == "webp"

    def test_auto_without_webp_accept(self):
        assert select_format("auto", "text/html") == "jpeg"

    def test_auto_without_accept(self):
        assert select_format("auto", None) == "jpeg"
        assert select_format(None) == "jpeg"

    @pytest.mark.parametrize("accept", [None, "image/webp", "image/png"])
    def test_explicit_wins(self, accept):
        assert select_format("png", accept) == "png"
        assert select_format("jpeg", accept) == "jpeg"

    def test_png_never_negotiated(self):
        assert select_format("auto", "image/png,image/*") == "jpeg"
